"""
Tests for structural match patterns.

Tests cover:
- Wildcard, Scalar, SubsetMap and AnyOf matching
- None subjects
- Coercion of plain values with as_pattern
"""

from __future__ import annotations

from collections import OrderedDict

import pytest

from scoped_policy.patterns import (
    ANY,
    AnyOf,
    Scalar,
    SubsetMap,
    Wildcard,
    as_pattern,
    is_pattern,
    matches,
)


class TestWildcard:
    """Tests for the wildcard pattern."""

    def test_matches_anything(self):
        for subject in ("a", 1, {"a": 1}, [1, 2], object()):
            assert matches(ANY, subject) is True

    def test_matches_none(self):
        assert matches(ANY, None) is True

    def test_any_is_a_wildcard(self):
        assert isinstance(ANY, Wildcard)
        assert Wildcard() == ANY


class TestScalar:
    """Tests for equality patterns."""

    def test_equal_value_matches(self):
        assert matches(Scalar("a"), "a") is True

    def test_different_value_does_not_match(self):
        assert matches(Scalar("a"), "b") is False

    def test_deep_equality(self):
        assert matches(Scalar({"x": [1, 2]}), {"x": [1, 2]}) is True
        assert matches(Scalar({"x": [1, 2]}), {"x": [1, 2], "y": 3}) is False

    def test_none_subject_never_matches(self):
        assert matches(Scalar(None), None) is False
        assert matches(Scalar("a"), None) is False

    def test_bool_and_int_are_different(self):
        assert matches(Scalar(True), 1) is False
        assert matches(Scalar(1), True) is False
        assert matches(Scalar(False), 0) is False
        assert matches(Scalar(True), True) is True

    def test_int_and_float_are_different(self):
        assert matches(Scalar(1), 1.0) is False
        assert matches(Scalar(1.0), 1) is False
        assert matches(Scalar(1.0), 1.0) is True

    def test_nested_numbers_compare_by_type(self):
        assert matches(Scalar({"flags": [True, 2]}), {"flags": [1, 2]}) is False
        assert matches(Scalar({"flags": [True, 2]}), {"flags": [True, 2]}) is True
        assert matches(SubsetMap({"admin": Scalar(True)}), {"admin": 1}) is False

    def test_lists_and_tuples_are_interchangeable(self):
        assert matches(Scalar([1, 2]), (1, 2)) is True
        assert matches(Scalar((1, 2)), [1, 2]) is True
        assert matches(Scalar([1, 2]), [1, 2, 3]) is False

    def test_container_value_is_snapshotted(self):
        tags = ["x"]
        pattern = Scalar(tags)
        tags.append("y")

        assert matches(pattern, ["x"]) is True
        assert matches(pattern, ["x", "y"]) is False

    def test_equality_and_hash_follow_types(self):
        assert Scalar(1) != Scalar(True)
        assert Scalar([1, 2]) == Scalar((1, 2))
        assert hash(Scalar([1, 2])) == hash(Scalar((1, 2)))
        assert hash(Scalar({"a": [1]})) == hash(Scalar({"a": (1,)}))


class TestSubsetMap:
    """Tests for partial mapping patterns."""

    def test_extra_keys_ignored(self):
        pattern = SubsetMap({"a": Scalar(1)})
        assert matches(pattern, {"a": 1, "b": 2, "c": 3}) is True

    def test_missing_key_does_not_match(self):
        pattern = SubsetMap({"a": Scalar(1)})
        assert matches(pattern, {"b": 2}) is False

    def test_wrong_value_does_not_match(self):
        pattern = SubsetMap({"a": Scalar(1)})
        assert matches(pattern, {"a": 2}) is False

    def test_non_mapping_does_not_match(self):
        pattern = SubsetMap({"a": Scalar(1)})
        assert matches(pattern, "a") is False
        assert matches(pattern, [("a", 1)]) is False
        assert matches(pattern, None) is False

    def test_empty_fields_match_any_mapping(self):
        assert matches(SubsetMap({}), {}) is True
        assert matches(SubsetMap({}), {"x": 1}) is True
        assert matches(SubsetMap({}), "x") is False

    def test_nested_subset(self):
        pattern = SubsetMap({"user": SubsetMap({"role": Scalar("admin")})})
        assert matches(pattern, {"user": {"role": "admin", "id": 7}}) is True
        assert matches(pattern, {"user": {"role": "guest", "id": 7}}) is False

    def test_wildcard_field_requires_key_presence(self):
        pattern = SubsetMap({"current_user": ANY})
        assert matches(pattern, {"current_user": None}) is True
        assert matches(pattern, {"other": 1}) is False

    def test_any_mapping_type(self):
        pattern = SubsetMap({"a": Scalar(1)})
        assert matches(pattern, OrderedDict(a=1, b=2)) is True

    def test_fields_are_copied(self):
        fields = {"a": Scalar(1)}
        pattern = SubsetMap(fields)
        fields["a"] = Scalar(2)
        fields["b"] = Scalar(3)

        assert matches(pattern, {"a": 1}) is True
        assert dict(pattern.fields) == {"a": Scalar(1)}

    def test_fields_are_read_only(self):
        pattern = SubsetMap({"a": Scalar(1)})
        with pytest.raises(TypeError):
            pattern.fields["a"] = Scalar(2)  # type: ignore[index]

    def test_hashable(self):
        assert hash(as_pattern({"a": 1})) == hash(SubsetMap({"a": Scalar(1)}))
        assert hash(SubsetMap({"a": ANY, "b": Scalar(2)})) == hash(
            SubsetMap({"b": Scalar(2), "a": ANY})
        )
        assert len({as_pattern({"a": 1}), as_pattern({"a": 1})}) == 1

    def test_repr(self):
        assert repr(SubsetMap({"a": ANY})) == "SubsetMap(fields={'a': ANY})"


class TestAnyOf:
    """Tests for alternative patterns."""

    def test_any_alternative_matches(self):
        pattern = AnyOf((Scalar("a"), Scalar("b")))
        assert matches(pattern, "a") is True
        assert matches(pattern, "b") is True
        assert matches(pattern, "c") is False

    def test_empty_alternatives_never_match(self):
        assert matches(AnyOf(()), "a") is False

    def test_short_circuits_on_first_match(self):
        class Exploding:
            def __eq__(self, other):
                raise AssertionError("should not be compared")

        pattern = AnyOf((Scalar("a"), Scalar(Exploding())))
        assert matches(pattern, "a") is True

    def test_wildcard_alternative_matches_none(self):
        assert matches(AnyOf((Scalar("a"), ANY)), None) is True

    def test_list_of_patterns_is_stored_as_tuple(self):
        alternatives = [Scalar("a")]
        pattern = AnyOf(alternatives)  # type: ignore[arg-type]
        alternatives.append(Scalar("b"))

        assert pattern.patterns == (Scalar("a"),)
        assert matches(pattern, "b") is False
        assert hash(pattern) == hash(AnyOf((Scalar("a"),)))


class TestMatchesErrors:
    """Tests for invalid patterns."""

    def test_unknown_pattern_raises(self):
        with pytest.raises(TypeError, match="Not a match pattern"):
            matches("a", "a")


class TestAsPattern:
    """Tests for coercing plain values into patterns."""

    def test_none_is_wildcard(self):
        assert as_pattern(None) is ANY
        assert as_pattern() is ANY

    def test_pattern_passes_through(self):
        pattern = Scalar("a")
        assert as_pattern(pattern) is pattern

    def test_scalar(self):
        assert as_pattern("a") == Scalar("a")
        assert as_pattern(1) == Scalar(1)

    def test_mapping_becomes_subset_map(self):
        pattern = as_pattern({"subdomain": "portal", "user": {"role": "admin"}})
        assert pattern == SubsetMap(
            {
                "subdomain": Scalar("portal"),
                "user": SubsetMap({"role": Scalar("admin")}),
            }
        )

    def test_top_level_list_becomes_any_of(self):
        pattern = as_pattern(["a", {"b": 1}])
        assert pattern == AnyOf((Scalar("a"), SubsetMap({"b": Scalar(1)})))

    def test_nested_list_compares_by_equality(self):
        pattern = as_pattern({"tags": ["x", "y"]})
        assert matches(pattern, {"tags": ["x", "y"]}) is True
        assert matches(pattern, {"tags": ["x"]}) is False

    def test_patterns_inside_mapping_are_kept(self):
        pattern = as_pattern({"role": AnyOf((Scalar("admin"), Scalar("owner")))})
        assert matches(pattern, {"role": "owner"}) is True
        assert matches(pattern, {"role": "guest"}) is False

    def test_is_pattern(self):
        assert is_pattern(ANY) is True
        assert is_pattern(Scalar(1)) is True
        assert is_pattern({"a": 1}) is False
