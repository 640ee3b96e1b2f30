"""
Authorize capabilities for scoped-policy.

Anything that can answer ``authorize(action, subject, params) -> bool``
can be a scope's rules or a parent policy. This module provides the
protocol plus three ways of writing one:

    - ``Policy``: a Pundit-style class with ``can_<action>`` methods.
    - ``RuleSet``: an ordered list of clauses, first match wins.
    - a plain function, adapted with ``as_policy``.

Rule sets must be total. When nothing applies they raise
``NoApplicableRuleError`` rather than quietly denying, so a forgotten
catch-all is found in testing instead of in production.

Example:
    >>> class AppPolicy(Policy):
    ...     def can_enter(self, subject, params):
    ...         return subject["role"] in ("app_user", "admin")
    ...
    ...     def otherwise(self, action, subject, params):
    ...         return False
    >>>
    >>> portal_rules = (
    ...     RuleSet("portal")
    ...     .allow("enter", subject={"role": "portal_user"})
    ...     .otherwise(False)
    ... )
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, runtime_checkable

from scoped_policy.exceptions import ConfigurationError, NoApplicableRuleError
from scoped_policy.patterns import ANY, MatchPattern, as_pattern, matches

logger = logging.getLogger(__name__)

Predicate = Callable[[Any, Any, Any], bool]


@runtime_checkable
class AuthorizePolicy(Protocol):
    """
    Protocol for anything that can make an authorization decision.

    Implementations must return a bool for every input they can receive.

    Example:
        >>> class OpenPolicy:
        ...     def authorize(self, action, subject, params):
        ...         return True
        >>> isinstance(OpenPolicy(), AuthorizePolicy)
        True
    """

    def authorize(self, action: Any, subject: Any, params: Any) -> bool:
        """
        Decide whether ``subject`` may perform ``action``.

        Args:
            action: The action being authorized.
            subject: Who or what is being authorized.
            params: Extra information about the action.

        Returns:
            True to allow, False to deny.
        """
        ...


class FunctionPolicy:
    """Adapts a plain ``(action, subject, params) -> bool`` callable."""

    def __init__(self, func: Predicate, name: str | None = None) -> None:
        self.func = func
        self.name = name or getattr(func, "__name__", repr(func))

    def authorize(self, action: Any, subject: Any, params: Any) -> bool:
        return self.func(action, subject, params)

    def __repr__(self) -> str:
        return f"FunctionPolicy({self.name})"


def as_policy(obj: Any, option: str = "rules") -> AuthorizePolicy:
    """
    Normalize ``obj`` into an Authorize capability.

    Args:
        obj: An object with an ``authorize`` method, a Policy subclass
            (instantiated with no arguments), or a plain callable.
        option: Option name used in the error message.

    Returns:
        An object implementing AuthorizePolicy.

    Raises:
        ConfigurationError: If ``obj`` cannot authorize.
    """
    if isinstance(obj, type) and issubclass(obj, Policy):
        return obj()
    if isinstance(obj, AuthorizePolicy) and not isinstance(obj, type):
        return obj
    if callable(obj):
        return FunctionPolicy(obj)
    raise ConfigurationError(
        config_key=option,
        expected="an object with an authorize(action, subject, params) method or a callable",
        received=obj,
    )


def policy_name(policy: Any) -> str:
    """Best-effort display name for a capability."""
    name = getattr(policy, "name", None)
    if isinstance(name, str):
        return name
    return type(policy).__name__


class Policy:
    """
    Base class for class-based rule sets.

    Following the Pundit pattern, a method named ``can_<action>``
    answers for that action. It receives the (possibly focused) subject
    and the params. Actions with no method fall through to
    ``otherwise``, which raises NoApplicableRuleError unless a subclass
    overrides it with an explicit catch-all.

    Example:
        >>> class PostPolicy(Policy):
        ...     def can_update(self, subject, params):
        ...         return params["author_id"] == subject["id"]
        ...
        ...     def otherwise(self, action, subject, params):
        ...         return False
        >>>
        >>> PostPolicy().authorize("update", {"id": 7}, {"author_id": 7})
        True
        >>> PostPolicy().authorize("delete", {"id": 7}, {"author_id": 7})
        False
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    def authorize(self, action: Any, subject: Any, params: Any) -> bool:
        method = getattr(self, f"can_{action}", None) if isinstance(action, str) else None

        if method is None:
            return self.otherwise(action, subject, params)

        return method(subject, params)

    def otherwise(self, action: Any, subject: Any, params: Any) -> bool:
        """
        Answer actions with no ``can_<action>`` method.

        Override to return False for a catch-all deny.

        Raises:
            NoApplicableRuleError: Always, in the base implementation.
        """
        raise NoApplicableRuleError(self.name, action, subject)

    @classmethod
    def get_available_actions(cls) -> list[str]:
        """
        Get all actions defined by this policy.

        Returns:
            Sorted action names (without the ``can_`` prefix).
        """
        actions = []
        for name in dir(cls):
            if name.startswith("can_") and callable(getattr(cls, name)):
                actions.append(name[4:])
        return sorted(actions)


class _Clause:
    __slots__ = ("action", "subject", "params", "outcome")

    def __init__(
        self,
        action: MatchPattern,
        subject: MatchPattern,
        params: MatchPattern,
        outcome: bool | Predicate,
    ) -> None:
        self.action = action
        self.subject = subject
        self.params = params
        self.outcome = outcome

    def applies(self, action: Any, subject: Any, params: Any) -> bool:
        return (
            matches(self.action, action)
            and matches(self.subject, subject)
            and matches(self.params, params)
        )

    def evaluate(self, action: Any, subject: Any, params: Any) -> bool:
        if callable(self.outcome):
            return self.outcome(action, subject, params)
        return self.outcome


class RuleSet:
    """
    Ordered authorization clauses; the first applicable clause answers.

    Each clause matches on action, subject and params with the same
    structural patterns used for scope selection. Its outcome is either
    a fixed bool or a predicate called with ``(action, subject, params)``.

    Example:
        >>> rules = RuleSet("dashboard")
        >>> rules.allow("view")
        >>> rules.allow("edit", subject={"role": "editor"})
        >>>
        >>> @rules.when("publish")
        ... def can_publish(action, subject, params):
        ...     return subject["role"] == "editor" and params["reviewed"]
        >>>
        >>> rules.otherwise(False)
    """

    def __init__(self, name: str | None = None) -> None:
        self.name = name or "RuleSet"
        self._clauses: list[_Clause] = []
        self._fallback: bool | Predicate | None = None

    def _add(
        self,
        action: Any,
        subject: Any,
        params: Any,
        outcome: bool | Predicate,
    ) -> RuleSet:
        clause = _Clause(as_pattern(action), as_pattern(subject), as_pattern(params), outcome)
        self._clauses.append(clause)
        return self

    def allow(self, action: Any = ANY, subject: Any = ANY, params: Any = ANY) -> RuleSet:
        """Add a clause that allows matching requests."""
        return self._add(action, subject, params, True)

    def deny(self, action: Any = ANY, subject: Any = ANY, params: Any = ANY) -> RuleSet:
        """Add a clause that denies matching requests."""
        return self._add(action, subject, params, False)

    def when(
        self, action: Any = ANY, subject: Any = ANY, params: Any = ANY
    ) -> Callable[[Predicate], Predicate]:
        """
        Decorator adding a clause answered by the decorated predicate.

        The predicate is returned unchanged.
        """

        def decorator(predicate: Predicate) -> Predicate:
            self._add(action, subject, params, predicate)
            return predicate

        return decorator

    def otherwise(self, outcome: bool | Predicate) -> RuleSet:
        """
        Set the catch-all answer used when no clause applies.

        Args:
            outcome: A bool, or a predicate taking (action, subject, params).
        """
        if not isinstance(outcome, bool) and not callable(outcome):
            raise ConfigurationError(
                config_key="otherwise",
                expected="a bool or a callable",
                received=outcome,
            )
        self._fallback = outcome
        return self

    def __len__(self) -> int:
        return len(self._clauses)

    def authorize(self, action: Any, subject: Any, params: Any) -> bool:
        for clause in self._clauses:
            if clause.applies(action, subject, params):
                return clause.evaluate(action, subject, params)

        if self._fallback is None:
            raise NoApplicableRuleError(self.name, action, subject)

        logger.debug(f"{self.name}: no clause for action {action!r}, using catch-all")
        if callable(self._fallback):
            return self._fallback(action, subject, params)
        return self._fallback

    def __repr__(self) -> str:
        return f"RuleSet({self.name!r}, clauses={len(self._clauses)})"
