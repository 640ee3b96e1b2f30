"""
Scope selection.

First match wins: scopes are tried strictly in declaration order and
the first one whose pattern matches the subject is used, however
specific a later scope might be.
"""

from __future__ import annotations

from typing import Any, Iterator, Sequence

from scoped_policy.patterns import matches
from scoped_policy.registry import Scope


def match_scope(scopes: Sequence[Scope], subject: Any) -> Scope | None:
    """
    Find the scope governing ``subject``.

    Args:
        scopes: Frozen scopes in declaration order.
        subject: The authorization subject.

    Returns:
        The first matching Scope, or None if no pattern matches.
    """
    for scope in scopes:
        if matches(scope.pattern, subject):
            return scope
    return None


def matching_scopes(scopes: Sequence[Scope], subject: Any) -> Iterator[Scope]:
    """Yield every scope whose pattern matches ``subject``, in order."""
    for scope in scopes:
        if matches(scope.pattern, subject):
            yield scope
