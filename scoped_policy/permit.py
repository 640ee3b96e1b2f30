"""
Permit boundary for application code.

Application code asks a single question: may this happen? Every kind of
business denial collapses into the same UnauthorizedError so callers
cannot branch on why. Policy definition errors are not denials and
propagate unchanged.

Example:
    >>> permit(app_policy, "enter", {"subdomain": "portal", "current_user": alice})
    >>>
    >>> @require_permit(app_policy, "update_post", params_param="post")
    ... def update_post(subject, post, changes):
    ...     ...
"""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable, TypeVar

from scoped_policy.exceptions import PolicyDefinitionError, UnauthorizedError
from scoped_policy.rules import AuthorizePolicy, policy_name

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _allowed(policy: AuthorizePolicy, action: Any, subject: Any, params: Any) -> bool:
    decide = getattr(policy, "decide", None)
    if decide is not None:
        decision = decide(action, subject, params)
        if not decision.allowed:
            logger.debug(
                f"permit denied action {action!r} by {policy_name(policy)}: "
                f"{decision.reason.value}"
            )
        return decision.allowed

    allowed = policy.authorize(action, subject, params)
    if not isinstance(allowed, bool):
        raise PolicyDefinitionError(
            f"{policy_name(policy)} returned {allowed!r} for action {action!r}; "
            "expected True or False",
            action=action,
        )
    if not allowed:
        logger.debug(f"permit denied action {action!r} by {policy_name(policy)}")
    return allowed


def permit(policy: AuthorizePolicy, action: Any, subject: Any, params: Any = None) -> None:
    """
    Authorize a request or raise.

    Args:
        policy: Any Authorize capability, usually a ScopedPolicy.
        action: The action being authorized.
        subject: The authorization subject.
        params: Extra information about the action.

    Raises:
        UnauthorizedError: If the request is denied for any reason.
        PolicyDefinitionError: If the policy is incomplete.
    """
    if not _allowed(policy, action, subject, params):
        raise UnauthorizedError(action, policy_name(policy))


def is_permitted(policy: AuthorizePolicy, action: Any, subject: Any, params: Any = None) -> bool:
    """
    Authorize a request and return a bool.

    Definition errors still propagate.

    Example:
        >>> if is_permitted(app_policy, "view_billing", subject):
        ...     show_billing_link()
    """
    return _allowed(policy, action, subject, params)


def require_permit(
    policy: AuthorizePolicy,
    action: Any,
    subject_param: str = "subject",
    params_param: str | None = None,
) -> Callable[[F], F]:
    """
    Decorator permitting calls to a function before running it.

    Works with sync and async functions. The subject (and optionally
    the params) are taken from the call's arguments by name.

    Args:
        policy: The Authorize capability to consult.
        action: The action the function performs.
        subject_param: Name of the argument holding the subject.
        params_param: Name of the argument holding the params, if any.

    Raises:
        UnauthorizedError: At call time, if the request is denied.

    Example:
        >>> @require_permit(app_policy, "delete_post", params_param="post")
        ... async def delete_post(subject, post):
        ...     await post.delete()
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        def check(args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
            bound = signature.bind_partial(*args, **kwargs)
            bound.apply_defaults()
            subject = bound.arguments.get(subject_param)
            params = bound.arguments.get(params_param) if params_param else None
            permit(policy, action, subject, params)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                check(args, kwargs)
                return await func(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            check(args, kwargs)
            return func(*args, **kwargs)

        return sync_wrapper  # type: ignore[return-value]

    return decorator
