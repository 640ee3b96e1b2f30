"""
Pytest fixtures for scoped-policy tests.

Provides common subjects, rule sets and dispatchers used across test modules.
"""

from __future__ import annotations

from typing import Any

import pytest

from scoped_policy import (
    InMemoryTraceSink,
    Policy,
    RuleSet,
    ScopedPolicy,
    ScopeRegistry,
)


# ============================================================================
# Subject Fixtures
# ============================================================================


@pytest.fixture
def dave_in_app_one() -> dict[str, Any]:
    """Subject with app_mode 'one' and current user 'dave'."""
    return {"app_mode": "one", "current_user": "dave"}


@pytest.fixture
def dave_in_app_two() -> dict[str, Any]:
    """Subject with app_mode 'two' and current user 'dave'."""
    return {"app_mode": "two", "current_user": "dave"}


@pytest.fixture
def portal_subject() -> dict[str, Any]:
    """Subject on the portal subdomain."""
    return {
        "subdomain": "portal",
        "current_user": {"id": 1, "role": "portal_user"},
    }


# ============================================================================
# Rule Fixtures
# ============================================================================


class Probe:
    """Rule set recording every call it receives."""

    def __init__(self, result: Any = True) -> None:
        self.result = result
        self.calls: list[tuple[Any, Any, Any]] = []

    def authorize(self, action: Any, subject: Any, params: Any) -> Any:
        self.calls.append((action, subject, params))
        return self.result


@pytest.fixture
def probe() -> Probe:
    """An allowing rule set that records its calls."""
    return Probe(True)


class AppModeOnePolicy(Policy):
    """Parent policy allowing 'check' only in app_mode 'one'."""

    def can_check(self, subject, params):
        return subject.get("app_mode") == "one"

    def otherwise(self, action, subject, params):
        return False


@pytest.fixture
def app_mode_one_policy() -> AppModeOnePolicy:
    return AppModeOnePolicy()


def current_user(subject: dict[str, Any]) -> Any:
    """Focus transform used across tests."""
    return subject["current_user"]


# ============================================================================
# Dispatcher Fixtures
# ============================================================================


@pytest.fixture
def trace_sink() -> InMemoryTraceSink:
    return InMemoryTraceSink()


@pytest.fixture
def ab_policy(trace_sink: InMemoryTraceSink) -> ScopedPolicy:
    """Two scalar scopes, 'a' and 'b', each allowing one same-named action."""
    registry = ScopeRegistry(name="ab")
    registry.register(
        "a",
        RuleSet("a_rules").allow("works_with_a").otherwise(False),
        scope_id="a",
    )
    registry.register(
        "b",
        RuleSet("b_rules").allow("works_with_b").otherwise(False),
        scope_id="b",
    )
    return ScopedPolicy(registry, trace_sink=trace_sink)
