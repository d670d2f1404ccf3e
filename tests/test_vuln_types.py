"""Tests for vulnerability-type payload normalization."""

import pytest

from ciaa_dashboard.errors import NOT_FOUND
from ciaa_dashboard.filters.vuln_types import (
    DEFAULT_VULNERABILITY_TYPE_OPTIONS,
    FALLBACK_VULNERABILITY_TYPES,
    normalize_vulnerability_types,
    resolve_shape,
    vulnerability_type_options,
)


def _pairs(result):
    return [(entry.label, entry.count) for entry in result]


FALLBACK = list(FALLBACK_VULNERABILITY_TYPES)


class TestShapes:
    def test_canonical_objects(self):
        raw = {"types": [
            {"type": "Type Confusion", "count": 12},
            {"type": "Use-After-Free", "count": 40},
        ]}
        assert _pairs(normalize_vulnerability_types(raw, 5)) == [
            ("Use-After-Free", 40),
            ("Type Confusion", 12),
        ]

    def test_types_with_counts(self):
        raw = {
            "types": ["Race Condition", "Double Free", "Heap Corruption"],
            "counts": {"Race Condition": 3, "Heap Corruption": 9},
        }
        assert _pairs(normalize_vulnerability_types(raw, 5)) == [
            ("Heap Corruption", 9),
            ("Race Condition", 3),
            ("Double Free", 0),
        ]

    def test_types_without_counts_get_descending_synthetic_counts(self):
        raw = {"types": ["A", "B", "C"]}
        assert _pairs(normalize_vulnerability_types(raw, 5)) == [("A", 100), ("B", 80), ("C", 60)]

    def test_bare_list_with_type_or_name(self):
        raw = [
            {"name": "Integer Overflow", "count": 4},
            {"count": 99},
            {"type": "Buffer Overflow", "count": 8},
            {"type": "Null Pointer Dereference"},
        ]
        assert _pairs(normalize_vulnerability_types(raw, 5)) == [
            ("Buffer Overflow", 8),
            ("Integer Overflow", 4),
            ("Null Pointer Dereference", 0),
        ]

    def test_bare_mapping_skips_reserved_and_non_numeric(self):
        raw = {"Use-After-Free": 10, "Type Confusion": 30, "types": "n/a", "note": "n/a", "flag": True}
        assert _pairs(normalize_vulnerability_types(raw, 5)) == [
            ("Type Confusion", 30),
            ("Use-After-Free", 10),
        ]

    def test_canonical_shape_wins_over_mapping(self):
        raw = {"types": [{"type": "X", "count": 1}], "Y": 50}
        assert resolve_shape(raw) == [("X", 1)]

    def test_types_of_entries_without_counts_use_their_labels(self):
        raw = {"types": [{"type": "A"}, {"name": "B"}, {"other": 1}]}
        assert _pairs(normalize_vulnerability_types(raw, 5)) == [("A", 100), ("B", 80)]

    def test_entry_types_with_counts_mapping(self):
        raw = {"types": [{"type": "A"}, {"type": "B", "count": 4}, ["nested"]], "counts": {"A": 2}}
        assert _pairs(normalize_vulnerability_types(raw, 5)) == [("B", 4), ("A", 2)]

    def test_entry_types_without_labels_or_counts_never_raise(self):
        raw = {"types": [{"type": "A"}], "counts": {}}
        assert _pairs(normalize_vulnerability_types(raw, 5)) == [("A", 0)]
        assert _pairs(normalize_vulnerability_types({"types": [{"x": 1}]}, 5)) == FALLBACK


class TestRanking:
    def test_truncates_to_limit(self):
        raw = {"types": [{"type": f"T{i}", "count": i} for i in range(10)]}
        result = normalize_vulnerability_types(raw, 3)
        assert _pairs(result) == [("T9", 9), ("T8", 8), ("T7", 7)]

    def test_ties_keep_input_order(self):
        raw = [{"type": "first", "count": 5}, {"type": "second", "count": 5}, {"type": "third", "count": 7}]
        assert [e.label for e in normalize_vulnerability_types(raw, 5)] == ["third", "first", "second"]

    def test_duplicate_labels_first_wins(self):
        raw = [{"type": "A", "count": 9}, {"type": "B", "count": 4}, {"type": "A", "count": 2}]
        result = normalize_vulnerability_types(raw, 5)
        assert _pairs(result) == [("A", 9), ("B", 4)]

    @pytest.mark.parametrize("raw", [
        {"types": [{"type": "A", "count": 3}, {"type": "B", "count": 3}, {"type": "A", "count": 1}]},
        {"types": ["A", "B", "A"], "counts": {"A": 2, "B": 5}},
        {"types": ["A", "B", "B"]},
        [{"name": "A", "count": 1}, {"type": "B", "count": 2}, {"type": "B", "count": 2}],
        {"A": 1, "B": 2, "C": 3},
    ])
    def test_output_sorted_and_unique(self, raw):
        result = normalize_vulnerability_types(raw, 2)
        counts = [e.count for e in result]
        labels = [e.label for e in result]
        assert counts == sorted(counts, reverse=True)
        assert len(labels) == len(set(labels))
        assert len(result) <= 2


class TestFallback:
    def test_non_finite_counts_are_skipped_in_mappings(self):
        raw = {"Use-After-Free": float("nan"), "XSS": 3, "Race": float("-inf")}
        assert _pairs(normalize_vulnerability_types(raw, 5)) == [("XSS", 3)]

    def test_non_finite_counts_become_zero_in_entries(self):
        raw = [{"type": "A", "count": float("inf")}, {"type": "B", "count": 2}]
        assert _pairs(normalize_vulnerability_types(raw, 5)) == [("B", 2), ("A", 0)]

    @pytest.mark.parametrize("raw", [None, {}, [], NOT_FOUND, {"notFound": True}, {"types": []}, "garbage", 42])
    def test_unusable_input_yields_fixed_catalog(self, raw):
        assert _pairs(normalize_vulnerability_types(raw, 5)) == FALLBACK

    def test_zero_limit_yields_fixed_catalog(self):
        assert _pairs(normalize_vulnerability_types({"A": 1}, 0)) == FALLBACK

    def test_fallback_is_a_fresh_list(self):
        first = normalize_vulnerability_types(None)
        first.pop()
        assert len(normalize_vulnerability_types(None)) == 5


class TestOptions:
    def test_options_from_string_list(self):
        assert vulnerability_type_options({"types": ["Race Condition", "Double Free"]}) == [
            "Race Condition",
            "Double Free",
        ]

    def test_options_default_catalog(self):
        assert vulnerability_type_options(NOT_FOUND) == list(DEFAULT_VULNERABILITY_TYPE_OPTIONS)
        assert len(DEFAULT_VULNERABILITY_TYPE_OPTIONS) == 10
