"""
Form Inspector — Diagnostics and inventory of canonical forms.

This module provides lightweight analysis of CanonicalForm objects:
    - Control inventory (by type, depth, repeating containers)
    - Duplicate control names within a view
    - Containers that hold no controls
    - Dynamic sections pointing at controls that do not exist
    - Conditional fields that are not data columns
    - Analyzer metadata that disagrees with the flattened form

IMPORTANT: It does NOT modify the form. It only produces read-only reports.
The batch orchestrator forwards report warnings into BatchResult.warnings.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Set

from cfm.model import CanonicalForm


@dataclass
class FormReport:
    """Analysis report for one canonical form."""

    form_id: str
    total_views: int = 0
    total_controls: int = 0
    total_data_columns: int = 0
    total_dynamic_sections: int = 0

    # Inventory
    control_type_counts: Dict[str, int] = field(default_factory=dict)
    max_depth: int = 0
    repeating_containers: int = 0
    unlabeled_controls: int = 0
    empty_containers: List[str] = field(default_factory=list)

    # Consistency
    duplicate_control_names: Dict[str, List[str]] = field(default_factory=dict)
    unknown_dynamic_targets: Set[str] = field(default_factory=set)
    unknown_conditional_fields: Set[str] = field(default_factory=set)
    metadata_mismatch: bool = False

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_form(form: CanonicalForm) -> FormReport:
    """
    Inspect a CanonicalForm.

    Checks for:
    - Duplicate control names per view
    - Containers with no children
    - Broken dynamic-section and conditional-field references
    - Metadata counts that differ from the flattened control count

    Returns a FormReport with metrics and warnings.
    """
    report = FormReport(form_id=form.id)

    report.total_views = len(form.views)
    report.total_controls = form.total_flattened_controls
    report.total_data_columns = len(form.data_columns)
    report.total_dynamic_sections = len(form.dynamic_sections)

    # =========================================================================
    # 1. CONTROL INVENTORY
    # =========================================================================

    type_counts: Counter = Counter()
    for control in form.all_controls():
        type_counts[control.type.value] += 1
        report.max_depth = max(report.max_depth, control.depth)
        if control.is_repeating_container:
            report.repeating_containers += 1
        if not control.label:
            report.unlabeled_controls += 1
        if control.is_container and control.child_count == 0:
            report.empty_containers.append(control.name)
    report.control_type_counts = dict(type_counts)

    # =========================================================================
    # 2. NAMES
    # =========================================================================

    control_names: Set[str] = set()
    for view in form.views:
        names = Counter(c.name for c in view.controls)
        control_names.update(names)
        duplicates = sorted(n for n, count in names.items() if count > 1)
        if duplicates:
            report.duplicate_control_names[view.name] = duplicates

    # =========================================================================
    # 3. REFERENCES
    # =========================================================================

    for section in form.dynamic_sections:
        for name in section.controls:
            if name not in control_names:
                report.unknown_dynamic_targets.add(name)

    column_names = {c.name for c in form.data_columns}
    conditional_fields = set(form.metadata.conditional_fields)
    conditional_fields.update(
        c.conditional_on_field for c in form.data_columns if c.conditional_on_field
    )
    report.unknown_conditional_fields = conditional_fields - column_names

    # =========================================================================
    # 4. METADATA
    # =========================================================================

    # Zero means the analyzer did not report a count
    if form.metadata.total_controls and form.metadata.total_controls != report.total_controls:
        report.metadata_mismatch = True

    # =========================================================================
    # 5. WARNING FLAGS
    # =========================================================================

    for view_name, duplicates in report.duplicate_control_names.items():
        report.add_warning(
            f"Duplicate control names in view {view_name}: {', '.join(duplicates)}"
        )

    if report.empty_containers:
        report.add_warning(
            f"Containers without controls: {', '.join(report.empty_containers)}"
        )

    if report.unknown_dynamic_targets:
        report.add_warning(
            f"Dynamic sections reference unknown controls: {', '.join(sorted(report.unknown_dynamic_targets))}"
        )

    if report.unknown_conditional_fields:
        report.add_warning(
            f"Conditional fields without data columns: {', '.join(sorted(report.unknown_conditional_fields))}"
        )

    if report.metadata_mismatch:
        report.add_warning(
            f"Analyzer reported {form.metadata.total_controls} controls, "
            f"flattened form has {report.total_controls}"
        )

    return report
