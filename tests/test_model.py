"""
Tests for CFM Core Model Objects

These tests verify:
    - Basic model creation and defaults
    - Immutability
    - Index-based container navigation
    - Retrieval methods
"""

import dataclasses

import pytest
from cfm.examples import build_expense_report_analysis
from cfm.mapper import map_to_canonical
from cfm.model import (
    CanonicalControl,
    CanonicalForm,
    CanonicalView,
    DataOption,
    Metadata,
    RepeatingSectionInfo,
)
from cfm.taxonomy import ControlType


class TestCanonicalControl:
    """Test CanonicalControl objects."""

    def test_defaults(self):
        """A bare control is a top-level TextField with no links."""
        control = CanonicalControl(name="Field1")
        assert control.type == ControlType.TEXT_FIELD
        assert control.parent_index is None
        assert control.depth == 0
        assert control.child_count == 0
        assert control.properties == {}
        assert not control.is_read_only
        assert not control.is_required
        assert not control.in_repeating_section

    def test_frozen(self):
        """Controls cannot be modified after construction."""
        control = CanonicalControl(name="Field1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            control.name = "Other"

    def test_properties_read_only(self):
        """Extension properties cannot be changed through the control."""
        source = {"Calculation": "sum(x)"}
        control = CanonicalControl(name="Total", properties=source)
        with pytest.raises(TypeError):
            control.properties["Calculation"] = "other"
        source["Calculation"] = "other"
        assert control.properties["Calculation"] == "sum(x)"

    def test_hashable(self):
        """Controls, views and forms can be hashed."""
        form = map_to_canonical(build_expense_report_analysis())
        control = form.views[0].controls[0]
        assert hash(control) == hash(dataclasses.replace(control))
        assert hash(form) == hash(map_to_canonical(build_expense_report_analysis()))

    def test_repeating_container(self):
        """Repeating tables and sections are repeating containers; groups are not."""
        assert CanonicalControl(name="T", type=ControlType.REPEATING_TABLE).is_repeating_container
        assert CanonicalControl(name="S", type=ControlType.REPEATING_SECTION).is_repeating_container
        assert not CanonicalControl(name="G", type=ControlType.GROUP).is_repeating_container
        assert CanonicalControl(name="G", type=ControlType.GROUP).is_container
        assert not CanonicalControl(name="A").is_container

    def test_repeating_section_link(self):
        """A control with a repeating-section link reports it."""
        control = CanonicalControl(name="Item", repeating_section=RepeatingSectionInfo(name="Items"))
        assert control.in_repeating_section
        assert control.repeating_section.name == "Items"


class TestCanonicalView:
    """Test navigation within a flattened view."""

    def _view(self) -> CanonicalView:
        return map_to_canonical(build_expense_report_analysis()).views[0]

    def test_get_control(self):
        """Should retrieve controls by name."""
        view = self._view()
        assert view.get_control("Total").type == ControlType.CURRENCY
        assert view.get_control("Missing") is None

    def test_descendants_follow_container(self):
        """Descendants are the child_count entries right after the container."""
        view = self._view()
        index = [c.name for c in view.controls].index("ExpenseItems")
        names = [c.name for c in view.descendants_of(index)]
        assert names == ["ItemDate", "ItemDescription", "ItemAmount"]

    def test_children_of(self):
        """Direct children point back at the container index."""
        view = self._view()
        index = [c.name for c in view.controls].index("ExpenseItems")
        children = view.children_of(index)
        assert len(children) == 3
        assert all(c.parent_index == index for c in children)

    def test_leaf_has_no_children(self):
        """A leaf control has no descendants."""
        view = self._view()
        assert view.descendants_of(0) == []

    def test_controls_in_repeating_section(self):
        """Controls are found by repeating-section name."""
        view = self._view()
        assert len(view.controls_in_repeating_section("ExpenseItems")) == 3
        assert view.controls_in_repeating_section("Other") == []


class TestCanonicalForm:
    """Test CanonicalForm objects."""

    def test_empty_form(self):
        """A form can be created with only id and name."""
        form = CanonicalForm(id="A.xsn", name="A")
        assert form.views == ()
        assert form.metadata == Metadata()
        assert form.total_flattened_controls == 0

    def test_all_controls_spans_views(self):
        """all_controls walks every view in order."""
        form = map_to_canonical(build_expense_report_analysis())
        names = [c.name for c in form.all_controls()]
        assert len(names) == 11
        assert names[0] == "Title"
        assert names[-1] == "ApproverComments"
        assert form.total_flattened_controls == 11

    def test_get_view_and_column(self):
        """Views and data columns are found by name."""
        form = map_to_canonical(build_expense_report_analysis())
        assert form.get_view("approval.xsl") is form.views[1]
        assert form.get_view("missing.xsl") is None
        assert form.get_data_column("Total").name == "Total"
        assert form.get_data_column("Missing") is None

    def test_equal_forms(self):
        """Forms with equal content are equal."""
        a = CanonicalForm(id="A", name="A", views=(CanonicalView(name="v", controls=(CanonicalControl(name="x"),)),))
        b = CanonicalForm(id="A", name="A", views=(CanonicalView(name="v", controls=(CanonicalControl(name="x"),)),))
        assert a == b


def test_data_option_defaults():
    """Options default to not preselected, order 0."""
    option = DataOption(value="A")
    assert option.display_text == ""
    assert not option.is_default
    assert option.order == 0
