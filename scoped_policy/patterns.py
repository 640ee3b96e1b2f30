"""
Structural match patterns for scope selection.

A scope is activated only when the authorization subject has a declared
shape. Shapes are built from four pattern types:

    - ``Wildcard`` (the ``ANY`` singleton): matches anything.
    - ``Scalar(value)``: matches a subject structurally equal to ``value``.
    - ``SubsetMap(fields)``: matches a mapping that contains every listed
      key with a matching value. Extra keys are ignored.
    - ``AnyOf(patterns)``: matches if any alternative matches.

Authors rarely build these by hand. ``as_pattern`` turns plain Python
values into patterns:

    >>> as_pattern({"subdomain": "portal"})
    SubsetMap(fields={'subdomain': Scalar(value='portal')})
    >>> as_pattern(["admin", "owner"])
    AnyOf(patterns=(Scalar(value='admin'), Scalar(value='owner')))
"""

from __future__ import annotations

from collections.abc import Mapping, Set
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

_NUMBER_TYPES = (bool, int, float)


def _snapshot(value: Any) -> Any:
    # Containers are copied into read-only equivalents; other values are kept as-is.
    if isinstance(value, Mapping):
        return MappingProxyType({key: _snapshot(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_snapshot(item) for item in value)
    if isinstance(value, Set):
        return frozenset(value)
    return value


def _hash_key(value: Any) -> Any:
    if isinstance(value, Mapping):
        return frozenset((key, _hash_key(item)) for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(_hash_key(item) for item in value)
    if isinstance(value, _NUMBER_TYPES):
        return (type(value), value)
    return value


def _structurally_equal(expected: Any, actual: Any) -> bool:
    """
    Compare two values without Python's numeric coercion.

    ``True``, ``1`` and ``1.0`` are different values here. Mappings must
    have the same keys and lists and tuples the same items, compared
    recursively. Everything else falls back to ``==``.
    """
    if isinstance(expected, _NUMBER_TYPES) or isinstance(actual, _NUMBER_TYPES):
        return type(expected) is type(actual) and expected == actual

    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping) or len(expected) != len(actual):
            return False
        return all(
            key in actual and _structurally_equal(item, actual[key])
            for key, item in expected.items()
        )

    if isinstance(expected, (list, tuple)):
        if not isinstance(actual, (list, tuple)) or len(expected) != len(actual):
            return False
        return all(_structurally_equal(a, b) for a, b in zip(expected, actual))

    return bool(expected == actual)


@dataclass(frozen=True)
class Wildcard:
    """Matches any subject, including None."""

    def __repr__(self) -> str:
        return "ANY"


ANY = Wildcard()


@dataclass(frozen=True)
class Scalar:
    """
    Matches a subject structurally equal to ``value``.

    Numbers compare by type as well as value, so ``Scalar(True)`` does
    not match ``1`` and ``Scalar(1)`` does not match ``1.0``. Container
    values are snapshotted on construction; lists and tuples are
    interchangeable.
    """

    value: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _snapshot(self.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Scalar):
            return NotImplemented
        return _structurally_equal(self.value, other.value)

    def __hash__(self) -> int:
        return hash(_hash_key(self.value))


@dataclass(frozen=True)
class SubsetMap:
    """Matches a mapping containing at least ``fields``, recursively."""

    fields: Mapping[str, MatchPattern] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __hash__(self) -> int:
        return hash(frozenset(self.fields.items()))

    def __repr__(self) -> str:
        return f"SubsetMap(fields={dict(self.fields)!r})"


@dataclass(frozen=True)
class AnyOf:
    """Matches if any of ``patterns`` matches, tried in order."""

    patterns: tuple[MatchPattern, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "patterns", tuple(self.patterns))


MatchPattern = Union[Wildcard, Scalar, SubsetMap, AnyOf]

_PATTERN_TYPES = (Wildcard, Scalar, SubsetMap, AnyOf)


def is_pattern(value: Any) -> bool:
    """Check if ``value`` is already a match pattern."""
    return isinstance(value, _PATTERN_TYPES)


def _coerce_field(value: Any) -> MatchPattern:
    # Inside a mapping only nested mappings recurse; sequences compare by equality.
    if is_pattern(value):
        return value
    if isinstance(value, Mapping):
        return SubsetMap({key: _coerce_field(item) for key, item in value.items()})
    return Scalar(value)


def as_pattern(value: Any = None) -> MatchPattern:
    """
    Convert a plain value into a match pattern.

    Args:
        value: None for a wildcard, an existing pattern, a mapping for a
            subset match, a list or tuple of alternatives, or any other
            value for an equality match.

    Returns:
        The equivalent MatchPattern.

    Example:
        >>> as_pattern(None)
        ANY
        >>> as_pattern([{"role": "admin"}, {"role": "owner"}])
        AnyOf(patterns=(SubsetMap(...), SubsetMap(...)))
    """
    if value is None:
        return ANY
    if isinstance(value, (list, tuple)):
        return AnyOf(tuple(_coerce_field(item) for item in value))
    return _coerce_field(value)


def matches(pattern: MatchPattern, subject: Any) -> bool:
    """
    Check whether ``subject`` has the shape described by ``pattern``.

    A None subject only matches a wildcard (directly or as one of the
    alternatives of an AnyOf).

    Args:
        pattern: The pattern to test.
        subject: The authorization subject, or a nested value of it.

    Returns:
        True if the subject matches.

    Raises:
        TypeError: If ``pattern`` is not a MatchPattern.
    """
    if isinstance(pattern, Wildcard):
        return True

    if isinstance(pattern, AnyOf):
        return any(matches(alternative, subject) for alternative in pattern.patterns)

    if isinstance(pattern, Scalar):
        if subject is None:
            return False
        return _structurally_equal(pattern.value, subject)

    if isinstance(pattern, SubsetMap):
        if not isinstance(subject, Mapping):
            return False
        for key, field_pattern in pattern.fields.items():
            if key not in subject:
                return False
            if not matches(field_pattern, subject[key]):
                return False
        return True

    raise TypeError(f"Not a match pattern: {pattern!r}")
