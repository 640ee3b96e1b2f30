"""
Scope registry for scoped-policy.

Scopes are declared once, during start-up, in the order they should be
tried. The registry is then frozen into an immutable tuple that the
dispatcher shares across all requests without locking.

Example:
    >>> registry = ScopeRegistry(name="app")
    >>>
    >>> registry.register(
    ...     {"subdomain": "portal"},
    ...     PortalRules(),
    ...     focus=lambda subject: subject["current_user"],
    ... )
    >>>
    >>> @registry.scope({"subdomain": "app"}, parent_policy=GlobalPolicy())
    ... def app_rules(action, user, params):
    ...     return action == "enter" and user.role == "app_user"
    >>>
    >>> scopes = registry.freeze()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from scoped_policy.config import DEFAULT_CONFIG, ScopedPolicyConfig
from scoped_policy.exceptions import ConfigurationError, RegistryFrozenError
from scoped_policy.patterns import MatchPattern, as_pattern
from scoped_policy.rules import AuthorizePolicy, as_policy, policy_name

logger = logging.getLogger(__name__)

F = TypeVar("F")


@dataclass(frozen=True, eq=False)
class Scope:
    """
    One registered scope.

    Attributes:
        scope_id: Unique identifier, used in traces and decisions.
        pattern: Shape the subject must have to activate the scope.
        rules: The scope's own Authorize capability.
        parent_policy: Optional gate evaluated on the original subject.
        focus: Optional transform applied to the subject before ``rules``.
        allow_all: Allow every request reaching this scope. None defers
            to the configured default.
        debug: Emit trace records for this scope. None defers to the
            configured default.
        declaration_order: Zero-based registration index.
    """

    scope_id: str
    pattern: MatchPattern
    rules: AuthorizePolicy
    parent_policy: AuthorizePolicy | None = None
    focus: Callable[[Any], Any] | None = None
    allow_all: bool | None = None
    debug: bool | None = None
    declaration_order: int = 0

    def describe(self) -> str:
        """Short human-readable summary."""
        parts = [f"pattern={self.pattern!r}", f"rules={policy_name(self.rules)}"]
        if self.parent_policy is not None:
            parts.append(f"parent={policy_name(self.parent_policy)}")
        if self.focus is not None:
            parts.append(f"focus={getattr(self.focus, '__qualname__', repr(self.focus))}")
        if self.allow_all:
            parts.append("allow_all")
        return ", ".join(parts)


def _check_flag(option: str, value: Any) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise ConfigurationError(config_key=option, expected="a bool or None", received=value)


class ScopeRegistry:
    """
    Ordered, append-only collection of scopes.

    Registration order is the resolution order: the first scope whose
    pattern matches a subject governs the request. Scopes are never
    sorted or deduplicated. A scope registered without a pattern matches
    everything and should therefore be declared last.

    Thread Safety:
        Registration is guarded by an internal lock. The frozen tuple is
        immutable and safe to share.
    """

    def __init__(
        self,
        config: ScopedPolicyConfig | None = None,
        name: str | None = None,
    ) -> None:
        """
        Initialize the registry.

        Args:
            config: Defaults for options scopes leave unspecified.
            name: Registry name, used to build default scope ids.
        """
        self.config = config or DEFAULT_CONFIG
        self.name = name or "scoped_policy"
        self._scopes: list[Scope] = []
        self._ids: set[str] = set()
        self._frozen: tuple[Scope, ...] | None = None
        self._lock = threading.RLock()

        if self.config.allow_all:
            logger.warning(
                f"Scope registry '{self.name}' defaults allow_all to True: every scope "
                "without an explicit allow_all allows ALL actions for matching subjects "
                "and should NOT be used in production!"
            )

    def _default_id(self, index: int) -> str:
        # Explicit ids may already use the "<name>#<n>" form.
        candidate = f"{self.name}#{index}"
        suffix = 1
        while candidate in self._ids:
            candidate = f"{self.name}#{index}-{suffix}"
            suffix += 1
        return candidate

    def register(
        self,
        pattern: Any = None,
        rules: Any = None,
        *,
        parent_policy: Any = None,
        focus: Callable[[Any], Any] | None = None,
        allow_all: bool | None = None,
        debug: bool | None = None,
        scope_id: str | None = None,
    ) -> Scope:
        """
        Register a scope.

        Args:
            pattern: Subject shape (see ``as_pattern``). None matches
                every subject.
            rules: The scope's Authorize capability: an object with an
                ``authorize`` method, a Policy subclass, or a callable.
            parent_policy: Optional Authorize capability run first, on
                the unfocused subject.
            focus: Optional callable narrowing the subject for ``rules``.
            allow_all: Allow everything that reaches this scope.
            debug: Emit trace records for this scope.
            scope_id: Explicit identifier. Defaults to "<name>#<index>",
                with a "-<n>" suffix if an explicit id already took it.

        Returns:
            The registered Scope.

        Raises:
            RegistryFrozenError: If the registry was already frozen.
            ConfigurationError: If an option is invalid.
        """
        if rules is None:
            raise ConfigurationError(
                config_key="rules",
                expected="an Authorize capability",
            )
        if focus is not None and not callable(focus):
            raise ConfigurationError(config_key="focus", expected="a callable", received=focus)

        match_pattern = as_pattern(pattern)
        rules_policy = as_policy(rules, "rules")
        parent = as_policy(parent_policy, "parent_policy") if parent_policy is not None else None
        allow_all = _check_flag("allow_all", allow_all)
        debug = _check_flag("debug", debug)

        with self._lock:
            if self._frozen is not None:
                raise RegistryFrozenError(self.name)

            index = len(self._scopes)
            resolved_id = scope_id or self._default_id(index)
            if resolved_id in self._ids:
                raise ConfigurationError(
                    config_key="scope_id",
                    expected="an identifier unique within the registry",
                    received=resolved_id,
                )

            scope = Scope(
                scope_id=resolved_id,
                pattern=match_pattern,
                rules=rules_policy,
                parent_policy=parent,
                focus=focus,
                allow_all=allow_all,
                debug=debug,
                declaration_order=index,
            )
            self._scopes.append(scope)
            self._ids.add(resolved_id)

        if allow_all:
            logger.warning(
                f"Scope '{resolved_id}' allows ALL actions for matching subjects "
                "and should NOT be used in production!"
            )
        logger.debug(f"Registered scope '{resolved_id}': {scope.describe()}")
        return scope

    def scope(self, pattern: Any = None, **options: Any) -> Callable[[F], F]:
        """
        Decorator form of ``register``.

        Registers the decorated function, Policy subclass or policy
        object as the scope's rules and returns it unchanged.

        Example:
            >>> @registry.scope({"subdomain": "portal"}, scope_id="portal")
            ... class PortalPolicy(Policy):
            ...     def can_enter(self, subject, params):
            ...         return True
        """

        def decorator(rules: F) -> F:
            self.register(pattern, rules, **options)
            return rules

        return decorator

    def freeze(self) -> tuple[Scope, ...]:
        """
        Freeze the registry and return its scopes in declaration order.

        Further registration raises RegistryFrozenError. Calling freeze
        again returns the same tuple.
        """
        with self._lock:
            if self._frozen is None:
                self._frozen = tuple(self._scopes)
                logger.debug(f"Froze scope registry '{self.name}' with {len(self._frozen)} scopes")
            return self._frozen

    @property
    def frozen(self) -> bool:
        """Whether the registry has been frozen."""
        return self._frozen is not None

    def list_scopes(self) -> dict[str, str]:
        """
        List registered scopes in declaration order.

        Returns:
            Dictionary mapping scope ids to short descriptions.
        """
        with self._lock:
            return {scope.scope_id: scope.describe() for scope in self._scopes}

    def __len__(self) -> int:
        with self._lock:
            return len(self._scopes)
