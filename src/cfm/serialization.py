"""
Serialization helpers for CFM objects.

Two directions:
    - Canonical forms and batch results <-> plain dict / JSON / YAML
    - Analyzer interchange documents -> FormAnalysisResult

The analyzer writes PascalCase keys ("FormDefinition", "ViewName", ...);
snake_case keys are accepted too. Canonical forms round-trip losslessly
through the dict representation.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

from cfm.aggregation import GenerationStatistics
from cfm.model import (
    CanonicalControl,
    CanonicalDataColumn,
    CanonicalForm,
    CanonicalSection,
    CanonicalView,
    DataOption,
    DynamicSection,
    Metadata,
    RepeatingSectionInfo,
)
from cfm.results import BatchResult
from cfm.source import (
    AnalysisMessage,
    ControlDefinition,
    DataColumn,
    FormAnalysisResult,
    FormMetadata,
    MessageSeverity,
    SourceDataOption,
    SourceDynamicSection,
    SourceFormDefinition,
    SourceSection,
    ViewDefinition,
)
from cfm.taxonomy import ControlType


# =============================================================================
# CANONICAL FORM
# =============================================================================

def option_to_dict(o: DataOption) -> Dict[str, Any]:
    return {"value": o.value, "display_text": o.display_text, "is_default": o.is_default, "order": o.order}


def option_from_dict(d: Dict[str, Any]) -> DataOption:
    return DataOption(
        value=d["value"],
        display_text=d.get("display_text", ""),
        is_default=d.get("is_default", False),
        order=d.get("order", 0),
    )


def control_to_dict(c: CanonicalControl) -> Dict[str, Any]:
    repeating = None
    if c.repeating_section is not None:
        repeating = {"name": c.repeating_section.name, "binding": c.repeating_section.binding}
    return {
        "name": c.name,
        "type": c.type.value,
        "source_type": c.source_type,
        "label": c.label,
        "binding": c.binding,
        "grid_position": c.grid_position,
        "data_options": [option_to_dict(o) for o in c.data_options],
        "repeating_section": repeating,
        "parent_index": c.parent_index,
        "depth": c.depth,
        "child_count": c.child_count,
        "properties": dict(c.properties),
        "is_read_only": c.is_read_only,
        "is_required": c.is_required,
    }


def control_from_dict(d: Dict[str, Any]) -> CanonicalControl:
    repeating = d.get("repeating_section")
    return CanonicalControl(
        name=d["name"],
        type=ControlType(d.get("type", ControlType.TEXT_FIELD.value)),
        source_type=d.get("source_type", ""),
        label=d.get("label"),
        binding=d.get("binding"),
        grid_position=d.get("grid_position"),
        data_options=tuple(option_from_dict(o) for o in d.get("data_options", [])),
        repeating_section=(
            RepeatingSectionInfo(name=repeating.get("name"), binding=repeating.get("binding"))
            if repeating is not None else None
        ),
        parent_index=d.get("parent_index"),
        depth=d.get("depth", 0),
        child_count=d.get("child_count", 0),
        properties=dict(d.get("properties", {})),
        is_read_only=d.get("is_read_only", False),
        is_required=d.get("is_required", False),
    )


def section_to_dict(s: CanonicalSection) -> Dict[str, Any]:
    return {
        "name": s.name,
        "type": s.type,
        "owner_control_id": s.owner_control_id,
        "start_row": s.start_row,
        "end_row": s.end_row,
        "control_count": s.control_count,
    }


def section_from_dict(d: Dict[str, Any]) -> CanonicalSection:
    return CanonicalSection(
        name=d["name"],
        type=d.get("type", ""),
        owner_control_id=d.get("owner_control_id"),
        start_row=d.get("start_row", 0),
        end_row=d.get("end_row", 0),
        control_count=d.get("control_count", 0),
    )


def view_to_dict(v: CanonicalView) -> Dict[str, Any]:
    return {
        "name": v.name,
        "controls": [control_to_dict(c) for c in v.controls],
        "sections": [section_to_dict(s) for s in v.sections],
    }


def view_from_dict(d: Dict[str, Any]) -> CanonicalView:
    return CanonicalView(
        name=d["name"],
        controls=tuple(control_from_dict(c) for c in d.get("controls", [])),
        sections=tuple(section_from_dict(s) for s in d.get("sections", [])),
    )


def data_column_to_dict(c: CanonicalDataColumn) -> Dict[str, Any]:
    return {
        "name": c.name,
        "display_name": c.display_name,
        "type": c.type.value,
        "valid_values": [option_to_dict(o) for o in c.valid_values],
        "is_repeating": c.is_repeating,
        "repeating_section": c.repeating_section,
        "is_conditional": c.is_conditional,
        "conditional_on_field": c.conditional_on_field,
        "default_value": c.default_value,
    }


def data_column_from_dict(d: Dict[str, Any]) -> CanonicalDataColumn:
    return CanonicalDataColumn(
        name=d["name"],
        display_name=d.get("display_name", ""),
        type=ControlType(d.get("type", ControlType.TEXT_FIELD.value)),
        valid_values=tuple(option_from_dict(o) for o in d.get("valid_values", [])),
        is_repeating=d.get("is_repeating", False),
        repeating_section=d.get("repeating_section"),
        is_conditional=d.get("is_conditional", False),
        conditional_on_field=d.get("conditional_on_field"),
        default_value=d.get("default_value"),
    )


def dynamic_section_to_dict(s: DynamicSection) -> Dict[str, Any]:
    return {
        "name": s.name,
        "mode": s.mode,
        "ctrl_id": s.ctrl_id,
        "caption": s.caption,
        "condition": s.condition,
        "condition_field": s.condition_field,
        "condition_value": s.condition_value,
        "controls": list(s.controls),
        "is_visible": s.is_visible,
    }


def dynamic_section_from_dict(d: Dict[str, Any]) -> DynamicSection:
    return DynamicSection(
        name=d.get("name", ""),
        mode=d.get("mode", ""),
        ctrl_id=d.get("ctrl_id"),
        caption=d.get("caption"),
        condition=d.get("condition", ""),
        condition_field=d.get("condition_field", ""),
        condition_value=d.get("condition_value", ""),
        controls=tuple(d.get("controls", [])),
        is_visible=d.get("is_visible", False),
    )


def metadata_to_dict(m: Metadata) -> Dict[str, Any]:
    return {
        "total_controls": m.total_controls,
        "total_sections": m.total_sections,
        "dynamic_section_count": m.dynamic_section_count,
        "repeating_section_count": m.repeating_section_count,
        "conditional_fields": list(m.conditional_fields),
    }


def metadata_from_dict(d: Dict[str, Any] | None) -> Metadata:
    if d is None:
        return Metadata()
    return Metadata(
        total_controls=d.get("total_controls", 0),
        total_sections=d.get("total_sections", 0),
        dynamic_section_count=d.get("dynamic_section_count", 0),
        repeating_section_count=d.get("repeating_section_count", 0),
        conditional_fields=tuple(d.get("conditional_fields", [])),
    )


def form_to_dict(f: CanonicalForm) -> Dict[str, Any]:
    return {
        "id": f.id,
        "name": f.name,
        "form_type": f.form_type,
        "views": [view_to_dict(v) for v in f.views],
        "data_columns": [data_column_to_dict(c) for c in f.data_columns],
        "dynamic_sections": [dynamic_section_to_dict(s) for s in f.dynamic_sections],
        "metadata": metadata_to_dict(f.metadata),
        "source_warnings": list(f.source_warnings),
    }


def form_from_dict(d: Dict[str, Any]) -> CanonicalForm:
    return CanonicalForm(
        id=d["id"],
        name=d.get("name", d["id"]),
        form_type=d.get("form_type"),
        views=tuple(view_from_dict(v) for v in d.get("views", [])),
        data_columns=tuple(data_column_from_dict(c) for c in d.get("data_columns", [])),
        dynamic_sections=tuple(dynamic_section_from_dict(s) for s in d.get("dynamic_sections", [])),
        metadata=metadata_from_dict(d.get("metadata")),
        source_warnings=tuple(d.get("source_warnings", [])),
    )


def form_to_json(f: CanonicalForm) -> str:
    return json.dumps(form_to_dict(f), sort_keys=True)


def form_from_json(s: str) -> CanonicalForm:
    d = json.loads(s)
    return form_from_dict(d)


def form_to_yaml(f: CanonicalForm) -> str:
    return yaml.safe_dump(form_to_dict(f))


def form_from_yaml(s: str) -> CanonicalForm:
    d = yaml.safe_load(s)
    return form_from_dict(d)


# =============================================================================
# BATCH RESULT (export only)
# =============================================================================

def statistics_to_dict(s: GenerationStatistics) -> Dict[str, Any]:
    return {
        "total_controls": s.total_controls,
        "total_variables": s.total_variables,
        "total_pages": s.total_pages,
        "total_rows": s.total_rows,
        "total_repeating_sections": s.total_repeating_sections,
        "control_type_counts": dict(s.control_type_counts),
        "widget_type_counts": dict(s.widget_type_counts),
    }


def batch_result_to_dict(r: BatchResult) -> Dict[str, Any]:
    """Export view of a batch; output bytes are left out, artifact names kept."""
    return {
        "success": r.success,
        "cancelled": r.cancelled,
        "total_forms": r.total_forms,
        "successful_forms": r.successful_forms,
        "failed_forms": r.failed_forms,
        "start_time": r.start_time.isoformat(),
        "end_time": r.end_time.isoformat() if r.end_time else None,
        "form_results": {
            form_id: {
                "success": result.success,
                "error_message": result.error_message,
                "target": result.target,
                "output_path": result.output_path,
                "artifacts": sorted(result.artifacts),
            }
            for form_id, result in r.form_results.items()
        },
        "errors": list(r.errors),
        "warnings": list(r.warnings),
        "messages": list(r.messages),
        "statistics": statistics_to_dict(r.statistics),
    }


# =============================================================================
# ANALYZER INTERCHANGE (input only)
# =============================================================================

def _pascal(key: str) -> str:
    return "".join(part.capitalize() for part in key.split("_"))


def _get(d: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Look up a snake_case key, falling back to its PascalCase spelling."""
    if key in d:
        return d[key]
    return d.get(_pascal(key), default)


def _items(d: Dict[str, Any], key: str) -> List[Any]:
    return [item for item in _get(d, key) or [] if item is not None]


def _severity(value: Any) -> MessageSeverity:
    for severity in MessageSeverity:
        if str(value).lower() == severity.value.lower():
            return severity
    return MessageSeverity.INFO


def source_option_from_dict(d: Dict[str, Any]) -> SourceDataOption:
    return SourceDataOption(
        value=_get(d, "value"),
        display_text=_get(d, "display_text"),
        is_default=bool(_get(d, "is_default", False)),
        order=_get(d, "order", 0) or 0,
    )


def control_definition_from_dict(d: Dict[str, Any]) -> ControlDefinition:
    return ControlDefinition(
        name=_get(d, "name"),
        type=_get(d, "type"),
        label=_get(d, "label"),
        binding=_get(d, "binding"),
        grid_position=_get(d, "grid_position"),
        is_in_repeating_section=bool(_get(d, "is_in_repeating_section", False)),
        repeating_section_name=_get(d, "repeating_section_name"),
        repeating_section_binding=_get(d, "repeating_section_binding"),
        properties=dict(_get(d, "properties") or {}),
        controls=[control_definition_from_dict(c) for c in _items(d, "controls")],
        data_options=[source_option_from_dict(o) for o in _items(d, "data_options")],
    )


def view_definition_from_dict(d: Dict[str, Any]) -> ViewDefinition:
    return ViewDefinition(
        view_name=_get(d, "view_name"),
        controls=[control_definition_from_dict(c) for c in _items(d, "controls")],
        sections=[
            SourceSection(
                name=_get(s, "name"),
                type=_get(s, "type"),
                ctrl_id=_get(s, "ctrl_id"),
                start_row=_get(s, "start_row", 0) or 0,
                end_row=_get(s, "end_row", 0) or 0,
                control_ids=list(_get(s, "control_ids") or []),
            )
            for s in _items(d, "sections")
        ],
    )


def source_data_column_from_dict(d: Dict[str, Any]) -> DataColumn:
    return DataColumn(
        column_name=_get(d, "column_name"),
        type=_get(d, "type"),
        data_type=_get(d, "data_type"),
        display_name=_get(d, "display_name"),
        repeating_section=_get(d, "repeating_section"),
        is_repeating=bool(_get(d, "is_repeating", False)),
        is_conditional=bool(_get(d, "is_conditional", False)),
        conditional_on_field=_get(d, "conditional_on_field"),
        valid_values=[source_option_from_dict(o) for o in _items(d, "valid_values")],
        default_value=_get(d, "default_value"),
    )


def source_dynamic_section_from_dict(d: Dict[str, Any]) -> SourceDynamicSection:
    return SourceDynamicSection(
        mode=_get(d, "mode"),
        ctrl_id=_get(d, "ctrl_id"),
        caption=_get(d, "caption"),
        condition=_get(d, "condition"),
        condition_field=_get(d, "condition_field"),
        condition_value=_get(d, "condition_value"),
        controls=list(_get(d, "controls") or []),
        is_visible=bool(_get(d, "is_visible", False)),
    )


def form_definition_from_dict(d: Dict[str, Any] | None) -> SourceFormDefinition | None:
    if d is None:
        return None
    metadata = _get(d, "metadata")
    return SourceFormDefinition(
        file_name=_get(d, "file_name"),
        views=[view_definition_from_dict(v) for v in _items(d, "views")],
        data=[source_data_column_from_dict(c) for c in _items(d, "data")],
        dynamic_sections=[source_dynamic_section_from_dict(s) for s in _items(d, "dynamic_sections")],
        metadata=FormMetadata(
            total_controls=_get(metadata, "total_controls", 0) or 0,
            total_sections=_get(metadata, "total_sections", 0) or 0,
            dynamic_section_count=_get(metadata, "dynamic_section_count", 0) or 0,
            repeating_section_count=_get(metadata, "repeating_section_count", 0) or 0,
            conditional_fields=list(_get(metadata, "conditional_fields") or []),
        ) if metadata is not None else None,
    )


def analysis_from_dict(d: Dict[str, Any]) -> FormAnalysisResult:
    return FormAnalysisResult(
        form_name=_get(d, "form_name"),
        form_type=_get(d, "form_type"),
        analyzer_used=_get(d, "analyzer_used"),
        form_definition=form_definition_from_dict(_get(d, "form_definition")),
        messages=[
            AnalysisMessage(
                severity=_severity(_get(m, "severity")),
                message=_get(m, "message", "") or "",
                details=_get(m, "details"),
                source=_get(m, "source"),
            )
            for m in _items(d, "messages")
        ],
    )


def analysis_from_json(s: str) -> FormAnalysisResult:
    d = json.loads(s)
    return analysis_from_dict(d)


def analysis_from_yaml(s: str) -> FormAnalysisResult:
    d = yaml.safe_load(s)
    return analysis_from_dict(d)
