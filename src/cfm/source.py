"""
Analyzer Boundary Model

The structures an external source-format analyzer hands to CFM, one
FormAnalysisResult per source form.

These mirror what the analyzer emits, including its gaps: almost every
field is optional, because the mapper must produce a best-effort canonical
form from whatever arrives. Only a missing form definition or an empty
view list is fatal (see cfm.mapper).

Controls here are a real tree: ControlDefinition.controls holds nested
children (repeating tables, sections). Flattening happens in the mapper.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class MessageSeverity(Enum):
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"


@dataclass
class AnalysisMessage:
    """A diagnostic the analyzer attached to its result."""

    severity: MessageSeverity = MessageSeverity.INFO
    message: str = ""
    details: Optional[str] = None
    source: Optional[str] = None


@dataclass
class SourceDataOption:
    value: Optional[str] = None
    display_text: Optional[str] = None
    is_default: bool = False
    order: int = 0


@dataclass
class ControlDefinition:
    """
    A control as reported by the analyzer.

    Properties:
        name, type, label, binding, grid_position:
            Raw values, any of which may be missing
        is_in_repeating_section:
            Explicit marker; the ONLY thing that decides whether the
            canonical control gets a repeating-section link
        repeating_section_name, repeating_section_binding:
            Copied by value into RepeatingSectionInfo when marked
        properties:
            Arbitrary extra properties (ReadOnly, Required, ...)
        controls:
            Nested child controls of a container
        data_options:
            Static options for choice-like controls
    """

    name: Optional[str] = None
    type: Optional[str] = None
    label: Optional[str] = None
    binding: Optional[str] = None
    grid_position: Optional[str] = None
    is_in_repeating_section: bool = False
    repeating_section_name: Optional[str] = None
    repeating_section_binding: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    controls: List["ControlDefinition"] = field(default_factory=list)
    data_options: List[SourceDataOption] = field(default_factory=list)


@dataclass
class SourceSection:
    name: Optional[str] = None
    type: Optional[str] = None
    ctrl_id: Optional[str] = None
    start_row: int = 0
    end_row: int = 0
    control_ids: List[str] = field(default_factory=list)


@dataclass
class ViewDefinition:
    view_name: Optional[str] = None
    controls: List[ControlDefinition] = field(default_factory=list)
    sections: List[SourceSection] = field(default_factory=list)


@dataclass
class DataColumn:
    """
    A data field from the analyzer's schema inventory.

    The analyzer reports the type token under either `type` or `data_type`;
    `type` wins when both are present.
    """

    column_name: Optional[str] = None
    type: Optional[str] = None
    data_type: Optional[str] = None
    display_name: Optional[str] = None
    repeating_section: Optional[str] = None
    is_repeating: bool = False
    is_conditional: bool = False
    conditional_on_field: Optional[str] = None
    valid_values: List[SourceDataOption] = field(default_factory=list)
    default_value: Optional[str] = None


@dataclass
class SourceDynamicSection:
    mode: Optional[str] = None
    ctrl_id: Optional[str] = None
    caption: Optional[str] = None
    condition: Optional[str] = None
    condition_field: Optional[str] = None
    condition_value: Optional[str] = None
    controls: List[str] = field(default_factory=list)
    is_visible: bool = False


@dataclass
class FormMetadata:
    total_controls: int = 0
    total_sections: int = 0
    dynamic_section_count: int = 0
    repeating_section_count: int = 0
    conditional_fields: List[str] = field(default_factory=list)


@dataclass
class SourceFormDefinition:
    file_name: Optional[str] = None
    views: List[ViewDefinition] = field(default_factory=list)
    data: List[DataColumn] = field(default_factory=list)
    dynamic_sections: List[SourceDynamicSection] = field(default_factory=list)
    metadata: Optional[FormMetadata] = None


@dataclass
class FormAnalysisResult:
    """
    Root of one analyzer result.

    form_definition may be None when the analyzer failed; the mapper
    rejects such results with ValidationError.
    """

    form_name: Optional[str] = None
    form_type: Optional[str] = None
    analyzer_used: Optional[str] = None
    form_definition: Optional[SourceFormDefinition] = None
    messages: List[AnalysisMessage] = field(default_factory=list)

    def warnings(self) -> List[str]:
        return [m.message for m in self.messages if m.severity == MessageSeverity.WARNING]
