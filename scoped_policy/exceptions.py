"""
Custom exceptions for scoped-policy.

Business denials are never exceptions inside the engine: they are
``Decision`` values. Exceptions are reserved for policy authoring
mistakes (which must surface loudly instead of masquerading as a deny),
invalid configuration, and the uniform failure raised at the permit
boundary.
"""

from __future__ import annotations

from typing import Any


class ScopedPolicyError(Exception):
    """
    Base exception for all scoped-policy errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context about the error.

    Example:
        >>> try:
        ...     policy.authorize("read", subject, None)
        ... except ScopedPolicyError as e:
        ...     logger.error(f"Scoped policy error: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class PolicyDefinitionError(ScopedPolicyError):
    """
    Raised when a policy is authored incorrectly.

    This is a programmer error, not a denial. It is raised when a rule
    set returns something other than a bool, when a focus transform
    fails, or (via subclasses) when no rule applies or a parent chain
    loops back on itself.

    Attributes:
        scope_id: The scope being evaluated when the error occurred.
        action: The action being authorized.

    Example:
        >>> raise PolicyDefinitionError(
        ...     "Rules returned None instead of a bool",
        ...     scope_id="portal#0",
        ...     action="enter",
        ... )
    """

    def __init__(
        self,
        message: str,
        scope_id: str | None = None,
        action: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.scope_id = scope_id
        self.action = action

        merged = {"scope_id": scope_id, "action": action}
        merged.update(details or {})
        super().__init__(message, merged)


class NoApplicableRuleError(PolicyDefinitionError):
    """
    Raised when a rule set has no case for the given inputs.

    Rule sets must be total: every (action, subject, params) they can
    receive needs an answer, including an explicit catch-all deny.

    Example:
        >>> rules = RuleSet("portal").allow("enter")
        >>> rules.authorize("leave", "alice", None)
        Traceback (most recent call last):
        ...
        NoApplicableRuleError: No rule in 'portal' applies to action 'leave' ...
    """

    def __init__(
        self,
        rules_name: str,
        action: Any,
        subject: Any = None,
        scope_id: str | None = None,
    ) -> None:
        self.rules_name = rules_name
        message = (
            f"No rule in '{rules_name}' applies to action {action!r}. "
            "Add an explicit catch-all (for example RuleSet.otherwise(False))."
        )
        super().__init__(
            message,
            scope_id=scope_id,
            action=action,
            details={"rules": rules_name, "subject_type": type(subject).__name__},
        )


class PolicyCycleError(PolicyDefinitionError):
    """
    Raised when a parent policy chain re-enters a dispatcher already
    evaluating the same request.

    Attributes:
        chain: Names of the dispatchers on the call chain, outermost first.
    """

    def __init__(self, chain: list[str], action: Any = None) -> None:
        self.chain = chain
        message = f"Cyclic parent policy chain: {' -> '.join(chain)}"
        super().__init__(message, action=action, details={"chain": chain})


class ConfigurationError(ScopedPolicyError):
    """
    Raised when scopes or defaults are configured incorrectly.

    This catches misconfigurations at registration time, before any
    request is authorized.

    Attributes:
        config_key: The configuration key or option that has an issue.
        expected: What was expected for this configuration.
        received: What was actually provided.

    Example:
        >>> raise ConfigurationError(
        ...     config_key="focus",
        ...     expected="a callable",
        ...     received="current_user",
        ... )
    """

    def __init__(
        self,
        config_key: str,
        expected: str | None = None,
        received: Any = None,
    ) -> None:
        self.config_key = config_key
        self.expected = expected
        self.received = received

        message = f"Configuration error for '{config_key}'"
        if expected:
            message += f": expected {expected}"
        if received is not None:
            message += f", got {received!r}"

        details = {
            "config_key": config_key,
            "expected": expected,
            "received": str(received) if received is not None else None,
        }
        super().__init__(message, details)


class RegistryFrozenError(ScopedPolicyError):
    """Raised when a scope is registered after the registry was frozen."""

    def __init__(self, registry_name: str) -> None:
        self.registry_name = registry_name
        super().__init__(
            f"Scope registry '{registry_name}' is frozen; "
            "scopes can only be registered during initialization",
            {"registry": registry_name},
        )


class UnauthorizedError(ScopedPolicyError):
    """
    Raised by ``permit`` when a request is denied.

    Every business denial (no matching scope, parent denied, scope
    denied) surfaces as this same error. The reason is deliberately not
    exposed so callers cannot branch on it.

    Attributes:
        action: The action that was attempted.

    Example:
        >>> try:
        ...     permit(app_policy, "enter", subject)
        ... except UnauthorizedError:
        ...     return redirect("/login")
    """

    def __init__(self, action: Any, policy_name: str | None = None) -> None:
        self.action = action
        self.policy_name = policy_name
        message = f"Unauthorized: action {action!r} is not permitted"
        if policy_name:
            message += f" by '{policy_name}'"
        super().__init__(message, {"action": action, "policy": policy_name})
