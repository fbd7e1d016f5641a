"""
Schema Mapper (Analyzer Result → Canonical Form Model).

Translates a FormAnalysisResult into a CanonicalForm:
    - Recursive control trees are flattened depth-first, pre-order
    - Type tokens go through the closed taxonomy (cfm.taxonomy)
    - Options, valid values and dynamic sections are copied field-for-field
      with empty defaults
    - Metadata is copied, never recomputed

The mapper is a pure function of its input. The only hard failures are a
missing form definition or an empty view list (ValidationError) and a
control tree that contains itself (MappingError). Anything else malformed
produces a best-effort form using the default fallbacks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Set

from cfm.config import DEFAULT_FORM_NAME, DEFAULT_VIEW_NAME, SYNTHESIZED_NAME_PREFIX
from cfm.exceptions import MappingError, ValidationError
from cfm.model import (
    CanonicalControl,
    CanonicalDataColumn,
    CanonicalForm,
    CanonicalSection,
    CanonicalView,
    DataOption,
    DynamicSection,
    Metadata,
    PropertyValue,
    RepeatingSectionInfo,
)
from cfm.source import (
    ControlDefinition,
    DataColumn,
    FormAnalysisResult,
    FormMetadata,
    SourceDataOption,
    SourceDynamicSection,
    SourceSection,
    ViewDefinition,
)
from cfm.taxonomy import map_control_type, map_type

logger = logging.getLogger(__name__)


@dataclass
class _FlatEntry:
    """One visited node of the control tree during flattening."""
    source: ControlDefinition
    parent_index: Optional[int]
    depth: int
    child_count: int = 0


def map_to_canonical(analysis: Optional[FormAnalysisResult]) -> CanonicalForm:
    """
    Map one analyzer result to a CanonicalForm.

    Args:
        analysis: Result produced by the external analyzer

    Returns:
        A new, immutable CanonicalForm

    Raises:
        ValidationError: If the analysis, its form definition or its views
            are missing
        MappingError: If a control tree contains itself
    """
    if analysis is None:
        raise ValidationError("Analysis result is missing")

    definition = analysis.form_definition
    if definition is None:
        raise ValidationError("Form definition is missing from analysis")

    views = [v for v in definition.views or [] if v is not None]
    if not views:
        raise ValidationError("Form definition contains no views")

    form_id = definition.file_name or analysis.form_name or DEFAULT_FORM_NAME
    form_name = analysis.form_name or PurePath(form_id).stem or form_id

    form = CanonicalForm(
        id=form_id,
        name=form_name,
        views=tuple(_map_view(v) for v in views),
        data_columns=tuple(_map_data_column(c) for c in definition.data or [] if c is not None),
        dynamic_sections=tuple(
            _map_dynamic_section(s) for s in definition.dynamic_sections or [] if s is not None
        ),
        metadata=_map_metadata(definition.metadata),
        form_type=analysis.form_type,
        source_warnings=tuple(analysis.warnings()),
    )

    logger.debug(
        f"Mapped form {form.id}: {len(form.views)} view(s), "
        f"{form.total_flattened_controls} control(s), {len(form.data_columns)} column(s)"
    )
    return form


# =============================================================================
# VIEWS AND CONTROLS
# =============================================================================

def _map_view(view: ViewDefinition) -> CanonicalView:
    return CanonicalView(
        name=view.view_name or DEFAULT_VIEW_NAME,
        controls=tuple(map_controls(view.controls)),
        sections=tuple(_map_section(s) for s in view.sections or [] if s is not None),
    )


def map_controls(controls: Optional[List[ControlDefinition]]) -> List[CanonicalControl]:
    """
    Flatten a control tree into a canonical control sequence.

    Each node is emitted exactly once, before its descendants. Children keep
    an index-based link to their container (parent_index) and, when the
    analyzer marked them, a by-name link to their repeating section.

    Unnamed controls get a synthesized name that does not collide with any
    other name in the same sequence.
    """
    entries: List[_FlatEntry] = []
    try:
        _flatten(controls or [], None, 0, entries, set())
    except RecursionError as e:
        raise MappingError("Control tree is nested too deeply to flatten") from e

    names = _assign_names(entries)
    return [_map_control(entry, name) for entry, name in zip(entries, names)]


def _flatten(controls: List[ControlDefinition], parent_index: Optional[int], depth: int,
             out: List[_FlatEntry], ancestors: Set[int]) -> None:
    """Depth-first pre-order walk. ancestors holds id() of the open path."""
    for ctrl in controls:
        if ctrl is None:
            continue
        if id(ctrl) in ancestors:
            raise MappingError(
                f"Control '{ctrl.name or '<unnamed>'}' contains itself and cannot be flattened"
            )

        index = len(out)
        entry = _FlatEntry(source=ctrl, parent_index=parent_index, depth=depth)
        out.append(entry)

        if ctrl.controls:
            ancestors.add(id(ctrl))
            _flatten(ctrl.controls, index, depth + 1, out, ancestors)
            ancestors.discard(id(ctrl))

        entry.child_count = len(out) - index - 1


def _assign_names(entries: List[_FlatEntry]) -> List[str]:
    used = {e.source.name for e in entries if e.source.name}
    names = []
    for index, entry in enumerate(entries):
        if entry.source.name:
            names.append(entry.source.name)
            continue
        candidate = f"{SYNTHESIZED_NAME_PREFIX}{index + 1}"
        suffix = 1
        while candidate in used:
            suffix += 1
            candidate = f"{SYNTHESIZED_NAME_PREFIX}{index + 1}_{suffix}"
        used.add(candidate)
        names.append(candidate)
    return names


def _map_control(entry: _FlatEntry, name: str) -> CanonicalControl:
    ctrl = entry.source
    properties = _map_properties(ctrl.properties)

    return CanonicalControl(
        name=name,
        type=map_control_type(ctrl.type),
        source_type=ctrl.type or "",
        label=ctrl.label,
        binding=ctrl.binding,
        grid_position=ctrl.grid_position,
        data_options=tuple(_map_option(o) for o in ctrl.data_options or [] if o is not None),
        repeating_section=_map_repeating_section_info(ctrl),
        parent_index=entry.parent_index,
        depth=entry.depth,
        child_count=entry.child_count,
        properties=properties,
        is_read_only=bool(properties.get("IsReadOnly", False)),
        is_required=bool(properties.get("IsRequired", False)),
    )


def _map_repeating_section_info(ctrl: ControlDefinition) -> Optional[RepeatingSectionInfo]:
    if not ctrl.is_in_repeating_section:
        return None
    return RepeatingSectionInfo(
        name=ctrl.repeating_section_name,
        binding=ctrl.repeating_section_binding,
    )


def coerce_property(value: Any) -> PropertyValue:
    """Fit an arbitrary analyzer value into the PropertyValue variant."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    return str(value)


def _as_flag(value: PropertyValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def _map_properties(source: Optional[Dict[str, Any]]) -> Dict[str, PropertyValue]:
    properties: Dict[str, PropertyValue] = {
        str(k): coerce_property(v) for k, v in (source or {}).items()
    }

    # Well-known flags are resolved once here, not looked up ad hoc later
    for raw_key, flag_key in (("ReadOnly", "IsReadOnly"), ("Required", "IsRequired")):
        if raw_key in properties:
            properties[flag_key] = _as_flag(properties[raw_key])
        elif flag_key in properties:
            properties[flag_key] = _as_flag(properties[flag_key])

    return properties


def _map_section(section: SourceSection) -> CanonicalSection:
    return CanonicalSection(
        name=section.name or "",
        type=section.type or "",
        owner_control_id=section.ctrl_id,
        start_row=section.start_row or 0,
        end_row=section.end_row or 0,
        control_count=len(section.control_ids or []),
    )


# =============================================================================
# DATA, OPTIONS, DYNAMIC SECTIONS, METADATA
# =============================================================================

def _map_option(option: SourceDataOption) -> DataOption:
    value = option.value or ""
    return DataOption(
        value=value,
        display_text=option.display_text if option.display_text is not None else value,
        is_default=bool(option.is_default),
        order=option.order or 0,
    )


def _map_data_column(column: DataColumn) -> CanonicalDataColumn:
    name = column.column_name or ""
    return CanonicalDataColumn(
        name=name,
        display_name=column.display_name or name,
        type=map_type(column.type or column.data_type),
        valid_values=tuple(_map_option(v) for v in column.valid_values or [] if v is not None),
        is_repeating=bool(column.is_repeating),
        repeating_section=column.repeating_section,
        is_conditional=bool(column.is_conditional),
        conditional_on_field=column.conditional_on_field,
        default_value=column.default_value,
    )


def _map_dynamic_section(section: SourceDynamicSection) -> DynamicSection:
    return DynamicSection(
        name=section.ctrl_id or "",
        mode=section.mode or "",
        ctrl_id=section.ctrl_id,
        caption=section.caption,
        condition=section.condition or "",
        condition_field=section.condition_field or "",
        condition_value=section.condition_value or "",
        controls=tuple(section.controls or []),
        is_visible=bool(section.is_visible),
    )


def _map_metadata(metadata: Optional[FormMetadata]) -> Metadata:
    if metadata is None:
        return Metadata()
    return Metadata(
        total_controls=metadata.total_controls or 0,
        total_sections=metadata.total_sections or 0,
        dynamic_section_count=metadata.dynamic_section_count or 0,
        repeating_section_count=metadata.repeating_section_count or 0,
        conditional_fields=tuple(metadata.conditional_fields or []),
    )
