"""
Tests for serialization.

Canonical forms round-trip through JSON and YAML; analyzer interchange
documents load from PascalCase or snake_case keys; batch results export
to plain dicts.
"""

import json

import yaml
from cfm.batch import run_batch
from cfm.backends import NintexFormGenerator
from cfm.examples import build_analysis_without_views, build_expense_report_analysis, build_simple_analysis
from cfm.mapper import map_to_canonical
from cfm.serialization import (
    analysis_from_dict,
    analysis_from_json,
    analysis_from_yaml,
    batch_result_to_dict,
    form_from_dict,
    form_from_json,
    form_from_yaml,
    form_to_dict,
    form_to_json,
    form_to_yaml,
)
from cfm.source import MessageSeverity
from cfm.taxonomy import ControlType


ANALYZER_DOCUMENT = {
    "FormName": "Leave Request",
    "FormType": "InfoPath",
    "AnalyzerUsed": "InfoPathAnalyzer",
    "FormDefinition": {
        "FileName": "LeaveRequest.xsn",
        "Views": [
            {
                "ViewName": "view1.xsl",
                "Controls": [
                    {"Name": "Employee", "Type": "PeoplePicker", "Label": "Employee", "GridPosition": "1A",
                     "Properties": {"Required": "true"}},
                    {
                        "Name": "Days", "Type": "RepeatingSection", "GridPosition": "2A",
                        "Controls": [
                            {"Name": "Day", "Type": "DatePicker", "GridPosition": "3A",
                             "IsInRepeatingSection": True, "RepeatingSectionName": "Days"},
                        ],
                    },
                    {"Type": "Label", "Label": "Notes", "GridPosition": "4A"},
                ],
                "Sections": [{"Name": "Days", "Type": "repeating", "CtrlId": "CTRL3", "StartRow": 2,
                              "EndRow": 3, "ControlIds": ["Day"]}],
            }
        ],
        "Data": [
            {"ColumnName": "Employee", "Type": "user"},
            {"ColumnName": "Day", "DataType": "date", "IsRepeating": True, "RepeatingSection": "Days"},
        ],
        "DynamicSections": [],
        "Metadata": {"TotalControls": 4, "TotalSections": 1, "RepeatingSectionCount": 1},
    },
    "Messages": [
        {"Severity": "Warning", "Message": "Custom code ignored"},
        {"Severity": "info", "Message": "Done"},
    ],
}


class TestCanonicalForm:
    """Test canonical form round-trips."""

    def test_dict_roundtrip(self):
        """A mapped form survives dict conversion unchanged."""
        form = map_to_canonical(build_expense_report_analysis())
        assert form_from_dict(form_to_dict(form)) == form

    def test_json_roundtrip(self):
        """A mapped form survives JSON conversion unchanged."""
        form = map_to_canonical(build_expense_report_analysis())
        assert form_from_json(form_to_json(form)) == form

    def test_yaml_roundtrip(self):
        """A mapped form survives YAML conversion unchanged."""
        form = map_to_canonical(build_expense_report_analysis())
        assert form_from_yaml(form_to_yaml(form)) == form

    def test_dict_shape(self):
        """Types are written by canonical name."""
        d = form_to_dict(map_to_canonical(build_expense_report_analysis()))
        control = d["views"][0]["controls"][4]
        assert control["name"] == "ExpenseItems"
        assert control["type"] == "RepeatingTable"
        assert control["child_count"] == 3
        json.dumps(d)


class TestAnalyzerDocuments:
    """Test loading analyzer interchange documents."""

    def test_pascal_case(self):
        """PascalCase documents load into the boundary model."""
        analysis = analysis_from_dict(ANALYZER_DOCUMENT)
        assert analysis.form_name == "Leave Request"
        definition = analysis.form_definition
        assert definition.file_name == "LeaveRequest.xsn"
        assert definition.views[0].controls[1].controls[0].is_in_repeating_section
        assert definition.views[0].sections[0].ctrl_id == "CTRL3"
        assert definition.data[1].data_type == "date"
        assert definition.metadata.total_controls == 4
        assert [m.severity for m in analysis.messages] == [MessageSeverity.WARNING, MessageSeverity.INFO]

    def test_maps_to_canonical(self):
        """A loaded document maps like a hand-built analysis."""
        form = map_to_canonical(analysis_from_dict(ANALYZER_DOCUMENT))
        view = form.views[0]
        assert [c.name for c in view.controls] == ["Employee", "Days", "Day", "Control_4"]
        assert view.get_control("Employee").type == ControlType.PEOPLE_PICKER
        assert view.get_control("Employee").is_required
        assert view.get_control("Day").repeating_section.name == "Days"
        assert form.get_data_column("Employee").type == ControlType.PEOPLE_PICKER
        assert form.source_warnings == ("Custom code ignored",)

    def test_snake_case(self):
        """snake_case keys are accepted."""
        analysis = analysis_from_dict({
            "form_name": "Simple",
            "form_definition": {
                "file_name": "Simple.xsn",
                "views": [{"view_name": "v", "controls": [{"name": "A", "type": "Number"}]}],
            },
        })
        form = map_to_canonical(analysis)
        assert form.views[0].controls[0].type == ControlType.NUMBER

    def test_missing_definition(self):
        """A document without a definition loads with form_definition None."""
        assert analysis_from_dict({"FormName": "X"}).form_definition is None

    def test_json_and_yaml(self):
        """JSON and YAML text load the same document."""
        from_json = analysis_from_json(json.dumps(ANALYZER_DOCUMENT))
        from_yaml = analysis_from_yaml(yaml.safe_dump(ANALYZER_DOCUMENT))
        assert from_json == from_yaml


def test_batch_result_export():
    """Batch results export as plain, JSON-safe dicts."""
    result = run_batch(
        {"A": build_simple_analysis("A", 2), "B": build_analysis_without_views("B")},
        NintexFormGenerator(),
    )
    d = batch_result_to_dict(result)
    assert d["success"] is True
    assert d["successful_forms"] == 1
    assert d["failed_forms"] == 1
    assert d["form_results"]["A"]["artifacts"] == ["conversion-info.txt", "form-definition.json", "metadata.json"]
    assert d["form_results"]["B"]["error_message"].startswith("Failed to map form structure")
    assert d["statistics"]["total_controls"] == 2
    assert d["end_time"] is not None
    json.dumps(d)
