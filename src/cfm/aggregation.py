"""
Statistics Aggregator.

GenerationStatistics are additive counters. Every successful batch item
contributes one GenerationStatistics; the batch folds them together with
merge_statistics.

INVARIANTS:
    - sum(control_type_counts.values()) == total_controls
    - sum(widget_type_counts.values()) == total_controls
    - merging is field-wise addition: associative and commutative, so the
      final aggregate does not depend on processing order
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable

from cfm.model import CanonicalForm
from cfm.naming import parse_grid_position


def _add_counts(left: Dict[str, int], right: Dict[str, int]) -> Dict[str, int]:
    merged = dict(left)
    for key, count in right.items():
        merged[key] = merged.get(key, 0) + count
    return merged


@dataclass
class GenerationStatistics:
    """
    Counters for one form, or for a whole batch after merging.

    Properties:
        total_controls: Controls emitted
        total_variables: Variables (data fields) emitted
        total_pages: Pages emitted
        total_rows: Layout rows emitted
        total_repeating_sections: Repeating containers emitted
        control_type_counts: Emitted controls keyed by source control type
        widget_type_counts: Emitted controls keyed by target widget type
    """

    total_controls: int = 0
    total_variables: int = 0
    total_pages: int = 0
    total_rows: int = 0
    total_repeating_sections: int = 0
    control_type_counts: Dict[str, int] = field(default_factory=dict)
    widget_type_counts: Dict[str, int] = field(default_factory=dict)

    def merged(self, other: GenerationStatistics) -> GenerationStatistics:
        """Field-wise sum of self and other. Neither operand is modified."""
        return GenerationStatistics(
            total_controls=self.total_controls + other.total_controls,
            total_variables=self.total_variables + other.total_variables,
            total_pages=self.total_pages + other.total_pages,
            total_rows=self.total_rows + other.total_rows,
            total_repeating_sections=self.total_repeating_sections + other.total_repeating_sections,
            control_type_counts=_add_counts(self.control_type_counts, other.control_type_counts),
            widget_type_counts=_add_counts(self.widget_type_counts, other.widget_type_counts),
        )

    def is_consistent(self) -> bool:
        """Check that both type mappings sum to total_controls."""
        return (
            sum(self.control_type_counts.values()) == self.total_controls
            and sum(self.widget_type_counts.values()) == self.total_controls
        )


def merge_statistics(items: Iterable[GenerationStatistics]) -> GenerationStatistics:
    """Fold any number of statistics into one, starting from zero."""
    total = GenerationStatistics()
    for item in items:
        total = total.merged(item)
    return total


def collect_statistics(form: CanonicalForm) -> GenerationStatistics:
    """
    Derive a statistics contribution straight from a canonical form.

    Used for generators that do not compute their own: one page per view,
    one row per distinct grid row, one variable per data column, and every
    control counted under its source token and its canonical type.
    """
    control_types: Counter = Counter()
    widget_types: Counter = Counter()
    total_rows = 0
    repeating = 0

    for view in form.views:
        total_rows += len({parse_grid_position(c.grid_position)[0] for c in view.controls})
        for control in view.controls:
            control_types[control.source_type or "unknown"] += 1
            widget_types[control.type.value] += 1
            if control.is_repeating_container:
                repeating += 1

    return GenerationStatistics(
        total_controls=form.total_flattened_controls,
        total_variables=len(form.data_columns),
        total_pages=len(form.views),
        total_rows=total_rows,
        total_repeating_sections=repeating,
        control_type_counts=dict(control_types),
        widget_type_counts=dict(widget_types),
    )
