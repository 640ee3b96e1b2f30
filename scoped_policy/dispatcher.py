"""
Scoped policy dispatcher.

``ScopedPolicy`` is the ``authorize(action, subject, params)`` entry
point. For each request it runs a single linear pipeline:

    match -> (trace) -> allow-all check -> parent gate -> focus -> rules

It denies early when no scope matches or the parent policy denies, and
allows early for allow-all scopes. Nothing is kept between requests.

A ScopedPolicy is itself an Authorize capability, so policies can be
layered: one ScopedPolicy can be another scope's parent policy.

Example:
    >>> registry = ScopeRegistry(name="app")
    >>> registry.register({"subdomain": "portal"}, portal_rules,
    ...                   focus=lambda s: s["current_user"], scope_id="portal")
    >>> registry.register({"subdomain": "app"}, app_rules,
    ...                   parent_policy=GlobalPolicy(), scope_id="app")
    >>>
    >>> policy = ScopedPolicy(registry)
    >>> policy.decide("enter", {"subdomain": "portal", "current_user": alice})
    Decision(allowed=True, reason=None, scope_id='portal')
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Sequence

from scoped_policy.config import ScopedPolicyConfig
from scoped_policy.exceptions import (
    NoApplicableRuleError,
    PolicyCycleError,
    PolicyDefinitionError,
)
from scoped_policy.matcher import match_scope, matching_scopes
from scoped_policy.registry import Scope, ScopeRegistry
from scoped_policy.tracing import LoggingTraceSink, TraceSink, emit_trace
from scoped_policy.types import AuthorizationRequest, Decision, DenyReason, TraceRecord

logger = logging.getLogger(__name__)

# Dispatchers currently evaluating a request in this context, outermost first.
_active_policies: ContextVar[tuple[ScopedPolicy, ...]] = ContextVar(
    "scoped_policy_active", default=()
)


class ScopedPolicy:
    """
    Dispatches authorization requests to the first matching scope.

    Attributes:
        name: Display name, used in logs, traces and cycle reports.
        scopes: The frozen scopes, in declaration order.
        config: Defaults for options scopes leave unspecified.
        trace_sink: Where debug trace records are written.
    """

    def __init__(
        self,
        scopes: ScopeRegistry | Sequence[Scope],
        *,
        config: ScopedPolicyConfig | None = None,
        trace_sink: TraceSink | None = None,
        name: str | None = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            scopes: A ScopeRegistry (frozen here) or already-frozen scopes.
            config: Defaults. Falls back to the registry's config.
            trace_sink: Trace backend. Defaults to LoggingTraceSink.
            name: Display name. Falls back to the registry's name.
        """
        if isinstance(scopes, ScopeRegistry):
            self.scopes: tuple[Scope, ...] = scopes.freeze()
            self.config = config or scopes.config
            self.name = name or scopes.name
        else:
            self.scopes = tuple(scopes)
            self.config = config or ScopedPolicyConfig()
            self.name = name or "scoped_policy"

        self.trace_sink: TraceSink = trace_sink or LoggingTraceSink()

        # A registry warns about its own config when it is created.
        if self.config.allow_all and self.config is not getattr(scopes, "config", None):
            logger.warning(
                f"ScopedPolicy '{self.name}' defaults allow_all to True: every scope "
                "without an explicit allow_all allows ALL actions for matching subjects "
                "and should NOT be used in production!"
            )

    def authorize(self, action: Any, subject: Any, params: Any = None) -> bool:
        """
        Check authorization and return a bool.

        This makes a ScopedPolicy usable wherever an Authorize
        capability is expected.
        """
        return self.decide(action, subject, params).allowed

    def evaluate(self, request: AuthorizationRequest) -> Decision:
        """Decide an AuthorizationRequest."""
        return self.decide(request.action, request.subject, request.params)

    def decide(self, action: Any, subject: Any, params: Any = None) -> Decision:
        """
        Check authorization and return a detailed decision.

        Args:
            action: The action being authorized.
            subject: The authorization subject. Never mutated.
            params: Extra information about the action.

        Returns:
            Decision with the outcome, deny reason and governing scope.

        Raises:
            PolicyDefinitionError: If a rule set has no answer for the
                request, returns a non-bool, a focus transform fails, or
                the parent chain loops back to this dispatcher.
        """
        active = _active_policies.get()
        if any(policy is self for policy in active):
            chain = [policy.name for policy in active] + [self.name]
            raise PolicyCycleError(chain, action=action)

        token = _active_policies.set(active + (self,))
        try:
            decision = self._dispatch(action, subject, params)
        finally:
            _active_policies.reset(token)

        outcome = "allowed" if decision.allowed else f"denied ({decision.reason.value})"
        logger.debug(
            f"{self.name}: action={action!r} {outcome}, scope={decision.scope_id!r}"
        )
        return decision

    def _dispatch(self, action: Any, subject: Any, params: Any) -> Decision:
        scope = match_scope(self.scopes, subject)

        if scope is None:
            if self.config.debug:
                self._trace(None, action, subject, params)
            return Decision.deny(DenyReason.NO_MATCHING_SCOPE)

        if self._option(scope, "debug"):
            self._trace(scope, action, subject, params)

        if self._option(scope, "allow_all"):
            return Decision.allow(scope.scope_id)

        if scope.parent_policy is not None:
            parent_allowed = scope.parent_policy.authorize(action, subject, params)
            _require_bool(parent_allowed, "parent policy", scope, action)
            if not parent_allowed:
                return Decision.deny(DenyReason.PARENT_DENIED, scope.scope_id)

        focused = self._focus(scope, action, subject)

        try:
            allowed = scope.rules.authorize(action, focused, params)
        except NoApplicableRuleError as e:
            if e.scope_id is None:
                e.scope_id = scope.scope_id
                e.details["scope_id"] = scope.scope_id
            raise
        _require_bool(allowed, "rules", scope, action)
        if allowed:
            return Decision.allow(scope.scope_id)
        return Decision.deny(DenyReason.SCOPE_DENIED, scope.scope_id)

    def _option(self, scope: Scope, key: str) -> bool:
        value = getattr(scope, key)
        if value is None:
            return bool(self.config.get(key, False))
        return value

    def _focus(self, scope: Scope, action: Any, subject: Any) -> Any:
        if scope.focus is None:
            return subject
        try:
            return scope.focus(subject)
        except PolicyDefinitionError:
            raise
        except Exception as e:
            raise PolicyDefinitionError(
                f"Focus transform of scope '{scope.scope_id}' failed: {e}",
                scope_id=scope.scope_id,
                action=action,
                details={"cause": type(e).__name__},
            ) from e

    def _trace(self, scope: Scope | None, action: Any, subject: Any, params: Any) -> None:
        record = TraceRecord(
            scope_id=scope.scope_id if scope else None,
            action=action,
            subject=subject,
            params=params,
            matched=scope is not None,
            policy_name=self.name,
        )
        emit_trace(self.trace_sink, record)

    def explain(self, subject: Any) -> list[str]:
        """
        List the ids of every scope whose pattern matches ``subject``.

        The first id is the scope ``decide`` would use; the rest are
        shadowed by it.
        """
        return [scope.scope_id for scope in matching_scopes(self.scopes, subject)]

    def __repr__(self) -> str:
        return f"ScopedPolicy({self.name!r}, scopes={len(self.scopes)})"


def _require_bool(result: Any, source: str, scope: Scope, action: Any) -> None:
    if not isinstance(result, bool):
        raise PolicyDefinitionError(
            f"The {source} of scope '{scope.scope_id}' returned {result!r} "
            f"for action {action!r}; expected True or False",
            scope_id=scope.scope_id,
            action=action,
            details={"source": source, "result_type": type(result).__name__},
        )
