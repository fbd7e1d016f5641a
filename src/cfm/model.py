"""
Core Canonical Form Model Objects

Defines the fundamental data structures of the Canonical Form Model.

These are pure data classes representing:
    - Forms (root container)
    - Views (independent control namespaces)
    - Controls (flattened, with index-based container links)
    - Sections, data columns and dynamic sections
    - Metadata (precomputed counts from the analyzer)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about the source analyzer or any target platform
        - Are immutable (frozen, tuple-valued)
        - Are fully serializable
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Tuple, Union

from .taxonomy import CONTAINER_TYPES, ControlType, DEFAULT_TYPE, REPEATING_TYPES


# Open extension property values: the tagged variant string/bool/number/null
PropertyValue = Union[str, bool, int, float, None]


@dataclass(frozen=True)
class DataOption:
    """
    One choice in a control's option list or a column's valid-value list.

    Properties:
        value: Stored value
        display_text: Text shown to the user (defaults to value when mapped)
        is_default: Whether this option is preselected
        order: Ordinal position within the list
    """

    value: str
    display_text: str = ""
    is_default: bool = False
    order: int = 0


@dataclass(frozen=True)
class RepeatingSectionInfo:
    """
    Named link from a control to the repeating section that contains it.

    This is a relation by name, copied by value from the analyzer.
    It is NOT a reference to the container control.
    """

    name: Optional[str] = None
    binding: Optional[str] = None


@dataclass(frozen=True)
class CanonicalControl:
    """
    A single control in a flattened view.

    Properties:
        name:
            Identifier, unique within its view.
            Synthesized ("Control_<n>") when the analyzer left it empty.

        type:
            Canonical ControlType (closed taxonomy)

        source_type:
            Raw type token reported by the analyzer, kept for statistics

        label, binding, grid_position:
            Copied from the analyzer. grid_position looks like "2B"
            (row 2, column B).

        data_options:
            Choice options for DropDown/Choice-like controls

        repeating_section:
            Present only when the analyzer marked the control as living
            inside a repeating section

        parent_index:
            Index of the enclosing container within the same view's
            flattened control sequence, or None for top-level controls

        depth:
            Nesting depth (0 for top-level controls)

        child_count:
            Number of descendants flattened immediately after this control

        properties:
            Open extension map for properties outside the fixed schema,
            held read-only

        is_read_only, is_required:
            Typed flags derived once from the extension properties

    FLATTENING INVARIANT:
        A container is emitted first, immediately followed by its
        child_count descendants in depth-first pre-order.
    """

    name: str
    type: ControlType = DEFAULT_TYPE
    source_type: str = ""
    label: Optional[str] = None
    binding: Optional[str] = None
    grid_position: Optional[str] = None
    data_options: Tuple[DataOption, ...] = ()
    repeating_section: Optional[RepeatingSectionInfo] = None
    parent_index: Optional[int] = None
    depth: int = 0
    child_count: int = 0
    properties: Mapping[str, PropertyValue] = field(default_factory=dict, hash=False)
    is_read_only: bool = False
    is_required: bool = False

    def __post_init__(self):
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def is_container(self) -> bool:
        return self.type in CONTAINER_TYPES

    @property
    def is_repeating_container(self) -> bool:
        return self.type in REPEATING_TYPES

    @property
    def in_repeating_section(self) -> bool:
        return self.repeating_section is not None


@dataclass(frozen=True)
class CanonicalSection:
    """
    Read-only summary of a section reported by the analyzer.

    Properties:
        name: Section name
        type: Section kind ("section", "repeating", "table", ...)
        owner_control_id: Id of the control that owns the section
        start_row, end_row: Grid row markers
        control_count: Number of controls the analyzer placed in it
    """

    name: str
    type: str = ""
    owner_control_id: Optional[str] = None
    start_row: int = 0
    end_row: int = 0
    control_count: int = 0


@dataclass(frozen=True)
class CanonicalView:
    """
    A named view holding an ordered, flattened control sequence.

    Views are independent namespaces: control names are unique within a
    view, not across the form.
    """

    name: str
    controls: Tuple[CanonicalControl, ...] = ()
    sections: Tuple[CanonicalSection, ...] = ()

    def get_control(self, name: str) -> Optional[CanonicalControl]:
        """
        Retrieve a control by name.

        Args:
            name: Control name

        Returns:
            CanonicalControl or None if not found
        """
        for control in self.controls:
            if control.name == name:
                return control
        return None

    def children_of(self, index: int) -> List[CanonicalControl]:
        """Direct children of the control at index."""
        return [c for c in self.descendants_of(index) if c.parent_index == index]

    def descendants_of(self, index: int) -> List[CanonicalControl]:
        """All descendants of the control at index, in pre-order."""
        control = self.controls[index]
        return list(self.controls[index + 1:index + 1 + control.child_count])

    def controls_in_repeating_section(self, section_name: str) -> List[CanonicalControl]:
        """Controls whose repeating-section link names section_name."""
        return [
            c for c in self.controls
            if c.repeating_section is not None and c.repeating_section.name == section_name
        ]


@dataclass(frozen=True)
class CanonicalDataColumn:
    """
    A data field of the form's underlying schema.

    Properties:
        name: Column name
        display_name: Human-readable name (defaults to name)
        type: Canonical ControlType mapped from the source data type
        valid_values: Enumerated valid values, if constrained
        is_repeating: Whether the column lives in a repeating section
        repeating_section: Name of that repeating section, if known
        is_conditional: Whether visibility depends on another field
        conditional_on_field: The field it depends on
        default_value: Default value, if any
    """

    name: str
    display_name: str = ""
    type: ControlType = DEFAULT_TYPE
    valid_values: Tuple[DataOption, ...] = ()
    is_repeating: bool = False
    repeating_section: Optional[str] = None
    is_conditional: bool = False
    conditional_on_field: Optional[str] = None
    default_value: Optional[str] = None


@dataclass(frozen=True)
class DynamicSection:
    """
    A region whose visibility is governed by a condition.

    The condition is carried as an opaque string plus two convenience
    fields. Nothing in CFM evaluates it.
    """

    name: str = ""
    mode: str = ""
    ctrl_id: Optional[str] = None
    caption: Optional[str] = None
    condition: str = ""
    condition_field: str = ""
    condition_value: str = ""
    controls: Tuple[str, ...] = ()
    is_visible: bool = False


@dataclass(frozen=True)
class Metadata:
    """
    Aggregate counts reported by the analyzer.

    Copied by the mapper, never recomputed. These counts are NOT
    guaranteed to match the flattened control sequence.
    """

    total_controls: int = 0
    total_sections: int = 0
    dynamic_section_count: int = 0
    repeating_section_count: int = 0
    conditional_fields: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CanonicalForm:
    """
    Root container for one canonical form.

    This is THE artifact handed to generators.

    ARCHITECTURAL PRINCIPLE:
        Created fresh by the mapper for every source form.
        Never mutated after construction.
        Never shared between batch items.

    Properties:
        id: Stable identifier (the source file name when known)
        name: Display name
        views: One or more views, in source order
        data_columns: Data schema of the form
        dynamic_sections: Conditionally visible regions
        metadata: Analyzer-reported counts
        form_type: Source form type, if reported
        source_warnings: Warning messages the analyzer attached
    """

    id: str
    name: str
    views: Tuple[CanonicalView, ...] = ()
    data_columns: Tuple[CanonicalDataColumn, ...] = ()
    dynamic_sections: Tuple[DynamicSection, ...] = ()
    metadata: Metadata = field(default_factory=Metadata)
    form_type: Optional[str] = None
    source_warnings: Tuple[str, ...] = ()

    def get_view(self, name: str) -> Optional[CanonicalView]:
        for view in self.views:
            if view.name == name:
                return view
        return None

    def get_data_column(self, name: str) -> Optional[CanonicalDataColumn]:
        for column in self.data_columns:
            if column.name == name:
                return column
        return None

    def all_controls(self) -> Iterator[CanonicalControl]:
        """Every control of every view, in view order then flattened order."""
        for view in self.views:
            yield from view.controls

    @property
    def total_flattened_controls(self) -> int:
        return sum(len(view.controls) for view in self.views)
