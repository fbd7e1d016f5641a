"""
Tests for the Statistics Aggregator.

Tests verify that:
    - Merging is a field-wise sum with per-key sums for the type mappings
    - Merging never mutates its operands
    - Merge order does not change the result
    - Statistics derived from a form are internally consistent
"""

from cfm.aggregation import GenerationStatistics, collect_statistics, merge_statistics
from cfm.examples import build_expense_report_analysis, build_simple_analysis
from cfm.mapper import map_to_canonical


def _stats(controls: int, widget: str, source: str, **kwargs) -> GenerationStatistics:
    return GenerationStatistics(
        total_controls=controls,
        control_type_counts={source: controls},
        widget_type_counts={widget: controls},
        **kwargs,
    )


class TestMerge:
    """Test merging statistics."""

    def test_field_wise_sum(self):
        """Scalar counters add, mappings add per key."""
        a = _stats(3, "textbox", "TextField", total_variables=2, total_pages=1, total_rows=3)
        b = _stats(2, "choice", "DropDown", total_variables=1, total_pages=1, total_rows=2,
                   total_repeating_sections=1)
        merged = a.merged(b)

        assert merged.total_controls == 5
        assert merged.total_variables == 3
        assert merged.total_pages == 2
        assert merged.total_rows == 5
        assert merged.total_repeating_sections == 1
        assert merged.widget_type_counts == {"textbox": 3, "choice": 2}
        assert merged.control_type_counts == {"TextField": 3, "DropDown": 2}

    def test_shared_keys_add(self):
        """Keys present on both sides are summed."""
        merged = _stats(3, "textbox", "TextField").merged(_stats(4, "textbox", "TextField"))
        assert merged.widget_type_counts == {"textbox": 7}

    def test_operands_not_mutated(self):
        """Neither operand changes."""
        a = _stats(3, "textbox", "TextField")
        b = _stats(2, "choice", "DropDown")
        a.merged(b)
        assert a == _stats(3, "textbox", "TextField")
        assert b == _stats(2, "choice", "DropDown")

    def test_order_independence(self):
        """[A, B, C] and [C, A, B] merge to the same totals."""
        a = _stats(3, "textbox", "TextField", total_pages=1)
        b = _stats(2, "choice", "DropDown", total_pages=2)
        c = _stats(5, "textbox", "TextField", total_rows=4)
        assert merge_statistics([a, b, c]) == merge_statistics([c, a, b])

    def test_merge_nothing(self):
        """Merging no items gives all zeros."""
        assert merge_statistics([]) == GenerationStatistics()

    def test_merged_stays_consistent(self):
        """Merging consistent statistics keeps them consistent."""
        merged = merge_statistics([_stats(3, "textbox", "TextField"), _stats(2, "choice", "DropDown")])
        assert merged.is_consistent()

    def test_inconsistent_detected(self):
        """Mappings that do not sum to total_controls are reported."""
        assert not GenerationStatistics(total_controls=2, widget_type_counts={"textbox": 1}).is_consistent()


class TestCollectStatistics:
    """Test statistics derived directly from a canonical form."""

    def test_expense_report(self):
        """Counts reflect the flattened form."""
        stats = collect_statistics(map_to_canonical(build_expense_report_analysis()))
        assert stats.total_controls == 11
        assert stats.total_pages == 2
        assert stats.total_variables == 9
        assert stats.total_rows == 8
        assert stats.total_repeating_sections == 1
        assert stats.control_type_counts["Currency"] == 2
        assert stats.control_type_counts["RepeatingTable"] == 1
        assert stats.widget_type_counts["TextField"] == 3
        assert stats.is_consistent()

    def test_simple_form(self):
        """A simple form counts one row per control."""
        stats = collect_statistics(map_to_canonical(build_simple_analysis("A", 3)))
        assert stats.total_controls == 3
        assert stats.total_rows == 3
        assert stats.widget_type_counts == {"TextField": 3}
