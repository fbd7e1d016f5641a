"""
Closed control-type taxonomy.

Every canonical control and data column carries a ControlType. Source
tokens are translated here and nowhere else.

ARCHITECTURAL RULE:
    The tables in this module are closed.
    There is no registration API: adding a token is a deliberate
    schema change made by editing this file.
"""

from enum import Enum
from typing import Dict, Optional

from cfm.config import DEFAULT_CONTROL_TYPE


class ControlType(str, Enum):
    """
    Canonical widget/control types.

    Values are the canonical names, so a ControlType compares equal to its
    name string (ControlType.TEXT_FIELD == "TextField").
    """

    # Data entry
    TEXT_FIELD = "TextField"
    TEXT_AREA = "TextArea"
    RICH_TEXT = "RichText"
    NUMBER = "Number"
    DECIMAL = "Decimal"
    CURRENCY = "Currency"
    DATE_PICKER = "DatePicker"
    CHECK_BOX = "CheckBox"
    DROP_DOWN = "DropDown"
    CHOICE = "Choice"
    PEOPLE_PICKER = "PeoplePicker"
    EMAIL = "Email"
    FILE_UPLOAD = "FileUpload"
    SIGNATURE = "Signature"

    # Containers
    REPEATING_TABLE = "RepeatingTable"
    REPEATING_SECTION = "RepeatingSection"
    SECTION = "Section"
    GROUP = "Group"

    # Presentation
    LABEL = "Label"
    BUTTON = "Button"
    IMAGE = "Image"


CONTAINER_TYPES = frozenset({
    ControlType.REPEATING_TABLE,
    ControlType.REPEATING_SECTION,
    ControlType.SECTION,
    ControlType.GROUP,
})

REPEATING_TYPES = frozenset({
    ControlType.REPEATING_TABLE,
    ControlType.REPEATING_SECTION,
})

# Types that hold no user data
PRESENTATION_TYPES = frozenset({
    ControlType.LABEL,
    ControlType.BUTTON,
    ControlType.IMAGE,
})


# Data type tokens (lower-cased) -> canonical type
DATA_TYPE_TABLE: Dict[str, ControlType] = {
    "string": ControlType.TEXT_FIELD,
    "text": ControlType.TEXT_FIELD,
    "int": ControlType.NUMBER,
    "integer": ControlType.NUMBER,
    "wholenumber": ControlType.NUMBER,
    "decimal": ControlType.DECIMAL,
    "float": ControlType.DECIMAL,
    "double": ControlType.DECIMAL,
    "date": ControlType.DATE_PICKER,
    "datetime": ControlType.DATE_PICKER,
    "boolean": ControlType.CHECK_BOX,
    "bool": ControlType.CHECK_BOX,
    "choice": ControlType.DROP_DOWN,
    "multichoice": ControlType.CHOICE,
    "user": ControlType.PEOPLE_PICKER,
    "hyperlink": ControlType.TEXT_FIELD,
    "url": ControlType.TEXT_FIELD,
    "email": ControlType.EMAIL,
    "file": ControlType.FILE_UPLOAD,
    "attachment": ControlType.FILE_UPLOAD,
}

DEFAULT_TYPE = ControlType(DEFAULT_CONTROL_TYPE)

_CANONICAL_BY_LOWER: Dict[str, ControlType] = {t.value.lower(): t for t in ControlType}


def map_type(token: Optional[str]) -> ControlType:
    """
    Map a source data type token to its canonical type.

    Matching is case-insensitive. Empty, missing or unrecognised tokens map
    to TextField.

    Examples:
        map_type("string")  -> TextField
        map_type("INTEGER") -> Number
        map_type("")        -> TextField
    """
    if not token:
        return DEFAULT_TYPE
    return DATA_TYPE_TABLE.get(token.strip().lower(), DEFAULT_TYPE)


def map_control_type(token: Optional[str]) -> ControlType:
    """
    Map a source control type token to its canonical type.

    Analyzers usually emit canonical control names already ("DropDown",
    "RepeatingTable"); those match first. Anything else goes through the
    data type table.
    """
    if not token:
        return DEFAULT_TYPE
    canonical = _CANONICAL_BY_LOWER.get(token.strip().lower())
    if canonical is not None:
        return canonical
    return map_type(token)
