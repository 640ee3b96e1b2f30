"""
Core type definitions for scoped-policy.

This module defines the value objects that flow through the dispatcher:
the request triple, the decision returned for it, and the trace record
emitted for debug-enabled scopes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class DenyReason(Enum):
    """Why a request was denied."""

    NO_MATCHING_SCOPE = "no_matching_scope"
    """No registered scope pattern matched the subject."""

    PARENT_DENIED = "parent_denied"
    """The scope's parent policy denied the original subject."""

    SCOPE_DENIED = "scope_denied"
    """The scope's own rules returned False."""


@dataclass(frozen=True)
class AuthorizationRequest:
    """
    A single authorization request.

    Attributes:
        action: What is being authorized (e.g. "enter", "update_post").
        subject: Who or what is being authorized, usually a mapping of
            contextual fields such as the current user and subdomain.
        params: Any extra information about the action.

    Example:
        >>> request = AuthorizationRequest(
        ...     action="enter",
        ...     subject={"subdomain": "portal", "current_user": user},
        ... )
    """

    action: Any
    subject: Any
    params: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "action": self.action,
            "subject": self.subject,
            "params": self.params,
        }


@dataclass(frozen=True)
class Decision:
    """
    Result of dispatching a request through a scoped policy.

    Attributes:
        allowed: Whether the action is authorized.
        reason: Why it was denied, None when allowed.
        scope_id: The scope that governed the decision, None when no
            scope matched.

    Example:
        >>> decision = policy.decide("enter", subject)
        >>> if not decision:
        ...     logger.info(f"Denied: {decision.reason}")
    """

    allowed: bool
    reason: DenyReason | None = None
    scope_id: str | None = None

    @classmethod
    def allow(cls, scope_id: str | None = None) -> Decision:
        """Create an allowed decision."""
        return cls(allowed=True, scope_id=scope_id)

    @classmethod
    def deny(cls, reason: DenyReason, scope_id: str | None = None) -> Decision:
        """Create a denied decision."""
        return cls(allowed=False, reason=reason, scope_id=scope_id)

    def __bool__(self) -> bool:
        return self.allowed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "allowed": self.allowed,
            "reason": self.reason.value if self.reason else None,
            "scope_id": self.scope_id,
        }


@dataclass(frozen=True)
class TraceRecord:
    """
    Debug trace for one dispatch.

    Attributes:
        scope_id: The matched scope, or None when nothing matched.
        action: The requested action.
        subject: The original, unfocused subject.
        params: The request params.
        matched: Whether a scope matched the subject.
        policy_name: Name of the dispatcher that produced the record.
    """

    scope_id: str | None
    action: Any
    subject: Any
    params: Any
    matched: bool
    policy_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "scope_id": self.scope_id,
            "action": self.action,
            "subject": self.subject,
            "params": self.params,
            "matched": self.matched,
            "policy_name": self.policy_name,
        }
