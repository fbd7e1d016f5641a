"""
Example analyzer results for demos and tests.

Builds FormAnalysisResult objects shaped like real analyzer output:
an expense claim with a repeating items table, a conditional section and
choice fields, plus small synthetic forms.
"""
from typing import Optional

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


def build_expense_report_analysis(file_name: str = "ExpenseReport.xsn") -> FormAnalysisResult:
    """
    Expense claim: 7 top-level controls, one of them a repeating table with
    3 children.

    Flattened: 10 controls in view1.xsl, 1 control in the approval view.
    """
    items_table = ControlDefinition(
        name="ExpenseItems",
        type="RepeatingTable",
        label="Expense Items",
        binding="my:ExpenseItems",
        grid_position="4A",
        controls=[
            ControlDefinition(
                name="ItemDate", type="DatePicker", label="Date", binding="my:ItemDate",
                grid_position="5A", is_in_repeating_section=True,
                repeating_section_name="ExpenseItems", repeating_section_binding="my:ExpenseItems",
            ),
            ControlDefinition(
                name="ItemDescription", type="TextField", label="Description", binding="my:ItemDescription",
                grid_position="5B", is_in_repeating_section=True,
                repeating_section_name="ExpenseItems", repeating_section_binding="my:ExpenseItems",
            ),
            ControlDefinition(
                name="ItemAmount", type="Currency", label="Amount", binding="my:ItemAmount",
                grid_position="5C", is_in_repeating_section=True,
                repeating_section_name="ExpenseItems", repeating_section_binding="my:ExpenseItems",
                properties={"Required": "true"},
            ),
        ],
    )

    main_view = ViewDefinition(
        view_name="view1.xsl",
        controls=[
            ControlDefinition(name="Title", type="Label", label="Expense Claim", grid_position="1A"),
            ControlDefinition(
                name="EmployeeName", type="TextField", label="Employee Name", binding="my:EmployeeName",
                grid_position="2A", properties={"Required": True},
            ),
            ControlDefinition(
                name="Department", type="DropDown", label="Department", binding="my:Department",
                grid_position="2B",
                data_options=[
                    SourceDataOption(value="FIN", display_text="Finance", order=0),
                    SourceDataOption(value="ENG", display_text="Engineering", is_default=True, order=1),
                    SourceDataOption(value="OPS", order=2),
                ],
            ),
            ControlDefinition(
                name="TravelInvolved", type="CheckBox", label="Travel involved?",
                binding="my:TravelInvolved", grid_position="3A",
            ),
            items_table,
            ControlDefinition(
                name="Total", type="Currency", label="Total", binding="my:Total", grid_position="6A",
                properties={"ReadOnly": "true", "Calculation": "sum(my:ItemAmount)"},
            ),
            ControlDefinition(
                name="TravelDestination", type="TextField", label="Destination",
                binding="my:TravelDestination", grid_position="7A",
            ),
        ],
        sections=[
            SourceSection(
                name="ExpenseItems", type="repeating", ctrl_id="CTRL10", start_row=4, end_row=5,
                control_ids=["ItemDate", "ItemDescription", "ItemAmount"],
            ),
        ],
    )

    approval_view = ViewDefinition(
        view_name="approval.xsl",
        controls=[
            ControlDefinition(
                name="ApproverComments", type="TextArea", label="Comments",
                binding="my:ApproverComments", grid_position="1A",
            ),
        ],
    )

    data = [
        DataColumn(column_name="EmployeeName", type="string", display_name="Employee Name"),
        DataColumn(
            column_name="Department", type="dropdown",
            valid_values=[
                SourceDataOption(value="FIN", display_text="Finance", order=0),
                SourceDataOption(value="ENG", display_text="Engineering", is_default=True, order=1),
                SourceDataOption(value="OPS", display_text="Operations", order=2),
            ],
        ),
        DataColumn(column_name="TravelInvolved", data_type="boolean"),
        DataColumn(
            column_name="TravelDestination", type="string",
            is_conditional=True, conditional_on_field="TravelInvolved",
        ),
        DataColumn(column_name="Total", type="currency"),
        DataColumn(
            column_name="ItemDate", type="date", is_repeating=True, repeating_section="ExpenseItems",
        ),
        DataColumn(
            column_name="ItemDescription", type="string", is_repeating=True, repeating_section="ExpenseItems",
        ),
        DataColumn(
            column_name="ItemAmount", type="decimal", is_repeating=True, repeating_section="ExpenseItems",
        ),
        DataColumn(column_name="ApproverComments", type="textarea"),
    ]

    return FormAnalysisResult(
        form_name="Expense Report",
        form_type="InfoPath",
        analyzer_used="InfoPathAnalyzer",
        form_definition=SourceFormDefinition(
            file_name=file_name,
            views=[main_view, approval_view],
            data=data,
            dynamic_sections=[
                SourceDynamicSection(
                    mode="Show", ctrl_id="CTRL20", caption="Travel details",
                    condition="my:TravelInvolved = true()",
                    condition_field="TravelInvolved", condition_value="true",
                    controls=["TravelDestination"],
                ),
            ],
            metadata=FormMetadata(
                total_controls=11,
                total_sections=1,
                dynamic_section_count=1,
                repeating_section_count=1,
                conditional_fields=["TravelInvolved"],
            ),
        ),
        messages=[
            AnalysisMessage(severity=MessageSeverity.INFO, message="Analysis complete"),
            AnalysisMessage(
                severity=MessageSeverity.WARNING,
                message="Rule 'ValidateTotal' uses script and was not analyzed",
            ),
        ],
    )


def build_simple_analysis(form_name: str, control_count: int, file_name: Optional[str] = None) -> FormAnalysisResult:
    """A single-view form with control_count text fields, one per row."""
    controls = [
        ControlDefinition(
            name=f"Field{i}", type="TextField", label=f"Field {i}",
            binding=f"my:Field{i}", grid_position=f"{i}A",
        )
        for i in range(1, control_count + 1)
    ]
    return FormAnalysisResult(
        form_name=form_name,
        form_definition=SourceFormDefinition(
            file_name=file_name or f"{form_name}.xsn",
            views=[ViewDefinition(view_name="view1.xsl", controls=controls)],
            data=[DataColumn(column_name=f"Field{i}", type="string") for i in range(1, control_count + 1)],
            metadata=FormMetadata(total_controls=control_count),
        ),
    )


def build_analysis_without_views(form_name: str = "Broken") -> FormAnalysisResult:
    """An analyzer result whose form definition has no views."""
    return FormAnalysisResult(
        form_name=form_name,
        form_definition=SourceFormDefinition(file_name=f"{form_name}.xsn", views=[]),
    )


def build_analysis_without_definition(form_name: str = "Failed") -> FormAnalysisResult:
    """An analyzer result where the analyzer produced no form definition at all."""
    return FormAnalysisResult(
        form_name=form_name,
        messages=[AnalysisMessage(severity=MessageSeverity.ERROR, message="Could not open template")],
    )
