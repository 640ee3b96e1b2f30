"""
scoped-policy: scope-based dispatch for authorize(action, subject, params).

Instead of one large authorize function with many guarded clauses,
declare small independent scopes. Each scope is activated only when the
subject has a declared shape, may narrow ("focus") the subject for its
rules, and may be gated by a parent policy evaluated on the original
subject. The first matching scope, in declaration order, decides.

Basic Usage:
    >>> from scoped_policy import Policy, RuleSet, ScopeRegistry, ScopedPolicy, permit
    >>>
    >>> registry = ScopeRegistry(name="app")
    >>>
    >>> def current_user(subject):
    ...     return subject["current_user"]
    >>>
    >>> @registry.scope({"subdomain": "portal"}, focus=current_user, scope_id="portal")
    ... class PortalPolicy(Policy):
    ...     def can_enter(self, user, params):
    ...         return user["role"] == "portal_user"
    ...
    ...     def otherwise(self, action, user, params):
    ...         return False
    >>>
    >>> registry.register(
    ...     {"subdomain": "app"},
    ...     RuleSet("app").allow("enter", subject={"current_user": {"role": "app_user"}})
    ...                   .otherwise(False),
    ...     scope_id="app",
    ... )
    >>>
    >>> policy = ScopedPolicy(registry)
    >>> permit(policy, "enter", {"subdomain": "portal",
    ...                          "current_user": {"role": "portal_user"}})
"""

__version__ = "0.1.0"

from scoped_policy.config import ScopedPolicyConfig
from scoped_policy.dispatcher import ScopedPolicy
from scoped_policy.exceptions import (
    ConfigurationError,
    NoApplicableRuleError,
    PolicyCycleError,
    PolicyDefinitionError,
    RegistryFrozenError,
    ScopedPolicyError,
    UnauthorizedError,
)
from scoped_policy.matcher import match_scope, matching_scopes
from scoped_policy.patterns import (
    ANY,
    AnyOf,
    MatchPattern,
    Scalar,
    SubsetMap,
    Wildcard,
    as_pattern,
    matches,
)
from scoped_policy.permit import is_permitted, permit, require_permit
from scoped_policy.registry import Scope, ScopeRegistry
from scoped_policy.rules import AuthorizePolicy, FunctionPolicy, Policy, RuleSet, as_policy
from scoped_policy.tracing import (
    InMemoryTraceSink,
    LoggingTraceSink,
    NullTraceSink,
    TraceSink,
)
from scoped_policy.types import AuthorizationRequest, Decision, DenyReason, TraceRecord

__all__ = [
    # Version
    "__version__",
    # Dispatcher
    "ScopedPolicy",
    # Registry
    "Scope",
    "ScopeRegistry",
    "match_scope",
    "matching_scopes",
    # Patterns
    "ANY",
    "AnyOf",
    "MatchPattern",
    "Scalar",
    "SubsetMap",
    "Wildcard",
    "as_pattern",
    "matches",
    # Rules
    "AuthorizePolicy",
    "FunctionPolicy",
    "Policy",
    "RuleSet",
    "as_policy",
    # Permit boundary
    "permit",
    "is_permitted",
    "require_permit",
    # Tracing
    "TraceSink",
    "LoggingTraceSink",
    "InMemoryTraceSink",
    "NullTraceSink",
    # Config
    "ScopedPolicyConfig",
    # Types
    "AuthorizationRequest",
    "Decision",
    "DenyReason",
    "TraceRecord",
    # Exceptions
    "ScopedPolicyError",
    "PolicyDefinitionError",
    "NoApplicableRuleError",
    "PolicyCycleError",
    "ConfigurationError",
    "RegistryFrozenError",
    "UnauthorizedError",
]
