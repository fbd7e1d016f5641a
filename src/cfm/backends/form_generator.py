"""
Nintex form-definition generator for canonical forms.

Converts a CanonicalForm into a target form definition:
    - One page per view
    - Rows grouped by grid-row number
    - One control per canonical control, widget chosen from WIDGET_TABLE
    - Variables for data-bearing widgets
    - Translations, rule groups, required flags and formulas as switched
      on by GenerationOptions

Ids are derived from positions (page/row/control index), so the same form
always produces the same document.
"""

import json
import logging
from collections import Counter
from typing import Any, Dict, List, Tuple

import yaml

from cfm.aggregation import GenerationStatistics
from cfm.config import GenerationOptions
from cfm.exceptions import GenerationError
from cfm.model import CanonicalControl, CanonicalForm, CanonicalView
from cfm.naming import parse_grid_position, sanitize_table_name, variable_id
from cfm.results import RebuildResult
from cfm.taxonomy import PRESENTATION_TYPES, ControlType

logger = logging.getLogger(__name__)

TARGET = "nintex"
CALCULATION_PROPERTY = "Calculation"
TITLE_TRANSLATION_KEY = "FORMDESIGNER_CONTROL_PROP_TITLE"

WIDGET_TABLE: Dict[ControlType, str] = {
    ControlType.TEXT_FIELD: "textbox",
    ControlType.TEXT_AREA: "multilinetext",
    ControlType.RICH_TEXT: "multilinetext",
    ControlType.NUMBER: "number",
    ControlType.DECIMAL: "number",
    ControlType.CURRENCY: "currency",
    ControlType.DATE_PICKER: "datetime",
    ControlType.CHECK_BOX: "boolean",
    ControlType.DROP_DOWN: "choice",
    ControlType.CHOICE: "choice",
    ControlType.PEOPLE_PICKER: "people-picker-core",
    ControlType.EMAIL: "email",
    ControlType.FILE_UPLOAD: "file-upload",
    ControlType.SIGNATURE: "signature",
    ControlType.REPEATING_TABLE: "repeating-section",
    ControlType.REPEATING_SECTION: "repeating-section",
    ControlType.SECTION: "group-control",
    ControlType.GROUP: "group-control",
    ControlType.LABEL: "richtext-label",
    ControlType.BUTTON: "button",
    ControlType.IMAGE: "image",
}

_ARRAY_TYPES = frozenset({ControlType.FILE_UPLOAD, ControlType.PEOPLE_PICKER})
_OBJECT_TYPES = frozenset({
    ControlType.REPEATING_TABLE, ControlType.REPEATING_SECTION, ControlType.GROUP,
})
_NUMBER_TYPES = frozenset({ControlType.NUMBER, ControlType.DECIMAL, ControlType.CURRENCY})


def variable_data_type(control_type: ControlType) -> str:
    if control_type == ControlType.CHECK_BOX:
        return "boolean"
    if control_type in _NUMBER_TYPES:
        return "number"
    if control_type in _ARRAY_TYPES:
        return "array"
    if control_type in _OBJECT_TYPES:
        return "object"
    return "string"


def is_data_bearing(control: CanonicalControl) -> bool:
    """Presentation widgets and plain layout sections hold no data."""
    return control.type not in PRESENTATION_TYPES and control.type != ControlType.SECTION


class NintexFormGenerator:
    """
    Generator producing a Nintex-style form definition.

    The generator keeps no state between calls; everything built for a
    form lives in a per-call _FormBuild.
    """

    target = TARGET

    def generate(self, form: CanonicalForm, options: GenerationOptions) -> RebuildResult:
        if not form.views:
            raise GenerationError(f"Form {form.id} has no views to render")

        build = _FormBuild(form, options)
        document = build.document()

        artifacts = {"form-definition.json": json.dumps(document, indent=2, ensure_ascii=False)}
        if options.generate_workflow:
            artifacts["workflow-definition.json"] = json.dumps(
                build.workflow(), indent=2, ensure_ascii=False
            )
        if options.include_metadata:
            artifacts["metadata.json"] = json.dumps(build.metadata(), indent=2, ensure_ascii=False)
            artifacts["conversion-info.txt"] = build.conversion_info()

        if options.output_format == "YAML":
            output = yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
            extension = "yaml"
        else:
            output = artifacts["form-definition.json"]
            extension = "json"

        logger.debug(
            f"Generated {TARGET} form for {form.id}: "
            f"{build.stats.total_controls} control(s), {build.stats.total_variables} variable(s)"
        )

        return RebuildResult(
            success=True,
            target=TARGET,
            output_data=output.encode("utf-8"),
            output_path=f"{sanitize_table_name(build.form_name)}_nintex.{extension}",
            artifacts=artifacts,
            statistics=build.stats,
        )


class _FormBuild:
    """Working state for converting one form."""

    def __init__(self, form: CanonicalForm, options: GenerationOptions):
        self.form = form
        self.options = options
        self.form_name = form.name
        self.variables: List[Dict[str, Any]] = []
        self.translations: Dict[str, str] = {}
        self.control_ids: Dict[str, str] = {}
        self.stats = GenerationStatistics()
        self._variable_ids = set()
        self._control_types: Counter = Counter()
        self._widget_types: Counter = Counter()

    def document(self) -> Dict[str, Any]:
        pages = [self._page(index, view) for index, view in enumerate(self.form.views, start=1)]

        document: Dict[str, Any] = {
            "id": variable_id(self.form_name),
            "name": self.form_name,
            "description": self.options.description or f"Converted from {self.form.id}",
            "version": "1.0",
            "settings": {
                "layoutType": self.options.layout_type,
                "defaultLanguage": self.options.default_language,
            },
            "pages": pages,
            "variables": self.variables,
            "translations": {self.options.default_language: self.translations},
        }
        if self.options.include_conditional_logic:
            document["rules"] = self._rules()

        self.stats = GenerationStatistics(
            total_controls=sum(self._control_types.values()),
            total_variables=len(self.variables),
            total_pages=len(pages),
            total_rows=sum(len(p["rows"]) for p in pages),
            total_repeating_sections=sum(1 for c in self.form.all_controls() if c.is_repeating_container),
            control_type_counts=dict(self._control_types),
            widget_type_counts=dict(self._widget_types),
        )
        return document

    # -------------------------------------------------------------------------
    # Pages, rows and controls
    # -------------------------------------------------------------------------

    def _page(self, page_number: int, view: CanonicalView) -> Dict[str, Any]:
        rows: Dict[int, List[Tuple[int, CanonicalControl]]] = {}
        for index, control in enumerate(view.controls):
            row, _ = parse_grid_position(control.grid_position)
            rows.setdefault(row, []).append((index, control))

        page_id = f"page_{page_number}"
        ids = {index: f"ctrl_{page_number}_{index + 1}" for index in range(len(view.controls))}

        page_rows = []
        for row_number in sorted(rows):
            page_rows.append({
                "id": f"{page_id}_row_{len(page_rows) + 1}",
                "controls": [self._control(ids, index, control) for index, control in rows[row_number]],
            })

        return {"id": page_id, "name": view.name, "rows": page_rows}

    def _control(self, ids: Dict[int, str], index: int, control: CanonicalControl) -> Dict[str, Any]:
        widget = WIDGET_TABLE[control.type]
        control_id = ids[index]
        self.control_ids.setdefault(control.name, control_id)
        self._control_types[control.source_type or "unknown"] += 1
        self._widget_types[widget] += 1

        properties: Dict[str, Any] = {"readOnly": control.is_read_only}
        if self.options.include_validation_rules:
            properties["required"] = control.is_required
        if self.options.include_calculations:
            formula = control.properties.get(CALCULATION_PROPERTY)
            if formula:
                properties["formula"] = str(formula)

        result: Dict[str, Any] = {
            "id": control_id,
            "name": control.name,
            "widget": widget,
            "sourceType": control.source_type,
            "label": control.label or control.name,
            "properties": properties,
        }
        if control.parent_index is not None:
            result["parentId"] = ids[control.parent_index]
        if control.data_options:
            result["options"] = [
                {"value": o.value, "text": o.display_text, "default": o.is_default}
                for o in sorted(control.data_options, key=lambda o: o.order)
            ]
        if control.repeating_section is not None and control.repeating_section.name:
            result["repeatingSection"] = control.repeating_section.name

        if is_data_bearing(control):
            result["variableId"] = self._add_variable(control, control_id)
        if control.label:
            self.translations[f"{control_id}.{TITLE_TRANSLATION_KEY}"] = control.label

        return result

    def _add_variable(self, control: CanonicalControl, control_id: str) -> str:
        base = variable_id(control.name, self.options.variable_prefix)
        candidate = base
        suffix = 1
        while candidate in self._variable_ids:
            suffix += 1
            candidate = f"{base}_{suffix}"
        self._variable_ids.add(candidate)

        self.variables.append({
            "id": candidate,
            "name": control.name,
            "dataType": variable_data_type(control.type),
            "controlId": control_id,
        })
        return candidate

    # -------------------------------------------------------------------------
    # Rules, workflow, metadata
    # -------------------------------------------------------------------------

    def _rules(self) -> List[Dict[str, Any]]:
        rules = []
        for index, section in enumerate(self.form.dynamic_sections, start=1):
            rules.append({
                "id": f"rule_{index}",
                "name": section.caption or section.name or f"rule_{index}",
                "action": "show",
                "condition": section.condition,
                "field": section.condition_field,
                "value": section.condition_value,
                "targets": [self.control_ids[n] for n in section.controls if n in self.control_ids],
            })
        return rules

    def workflow(self) -> Dict[str, Any]:
        return {
            "name": f"{self.form_name} Workflow",
            "trigger": "form-submitted",
            "actions": [
                {"type": "store-data", "variables": [v["id"] for v in self.variables]},
            ],
        }

    def metadata(self) -> Dict[str, Any]:
        return {
            "sourceFormId": self.form.id,
            "sourceFormType": self.form.form_type,
            "generatedBy": TARGET,
            "views": len(self.form.views),
            "controls": self.stats.total_controls,
            "dataColumns": len(self.form.data_columns),
            "sourceWarnings": list(self.form.source_warnings),
        }

    def conversion_info(self) -> str:
        lines = [
            f"Form: {self.form_name}",
            f"Source: {self.form.id}",
            f"Pages: {self.stats.total_pages}",
            f"Rows: {self.stats.total_rows}",
            f"Controls: {self.stats.total_controls}",
            f"Variables: {self.stats.total_variables}",
            "",
            "Widget usage:",
        ]
        lines.extend(f"  {w}: {n}" for w, n in sorted(self.stats.widget_type_counts.items()))
        return "\n".join(lines) + "\n"
