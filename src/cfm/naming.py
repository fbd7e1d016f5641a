"""
Identifier helpers shared by the backends.

Turns free-form form, section and control names into identifiers that are
safe as SQL table/column names or as target-platform variable ids, and
parses analyzer grid positions ("2B" = row 2, column B).
"""

import re
from pathlib import PurePath
from typing import Optional, Tuple

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_NON_WORD = re.compile(r"[^a-zA-Z0-9_]")
_UNDERSCORES = re.compile(r"_+")
_GRID_POSITION = re.compile(r"^(\d+)([A-Z])$")

MAX_TABLE_NAME_LENGTH = 64
MAX_COLUMN_NAME_LENGTH = 128

RESERVED_COLUMN_NAMES = frozenset({
    "user", "date", "time", "table", "index", "key", "primary", "foreign", "references",
})


def _collapse(name: str, pattern: re.Pattern) -> str:
    sanitized = pattern.sub("_", name)
    sanitized = _UNDERSCORES.sub("_", sanitized)
    return sanitized.strip("_")


def sanitize_table_name(name: Optional[str]) -> str:
    """
    Table-safe identifier for a form or section name.

    Drops a file extension, replaces anything non-alphanumeric with "_",
    prefixes "Form_" when the result starts with a digit.

    Examples:
        "Expense Report.xsn" -> "Expense_Report"
        "2024 budget"        -> "Form_2024_budget"
    """
    if not name:
        return "FormTable"

    sanitized = _collapse(PurePath(name).stem, _NON_ALNUM)
    if sanitized and sanitized[0].isdigit():
        sanitized = "Form_" + sanitized
    sanitized = sanitized[:MAX_TABLE_NAME_LENGTH]
    return sanitized or "FormTable"


def sanitize_column_name(name: Optional[str]) -> str:
    """Column-safe identifier; reserved words get a "_Field" suffix."""
    if not name:
        return "Column"

    sanitized = _collapse(name, _NON_ALNUM)
    if sanitized and sanitized[0].isdigit():
        sanitized = "Col_" + sanitized
    if sanitized.lower() in RESERVED_COLUMN_NAMES:
        sanitized += "_Field"
    sanitized = sanitized[:MAX_COLUMN_NAME_LENGTH]
    return sanitized or "Column"


def variable_id(name: Optional[str], prefix: str = "") -> str:
    """
    Lower-case variable identifier for a control name.

    Examples:
        variable_id("First Name", "se_") -> "se_first_name"
        variable_id("1st", "se_")        -> "se_field_1st"
    """
    clean = _collapse(name or "", _NON_WORD).lower()
    if not clean or not clean[0].isalpha():
        clean = f"field_{clean}" if clean else "field"
    return f"{prefix}{clean}"


def parse_grid_position(position: Optional[str]) -> Tuple[int, int]:
    """
    Parse a grid position into (row, column).

    Columns are zero-based letters (A=0). Missing or unparseable positions
    return (0, 0).
    """
    if not position:
        return 0, 0
    match = _GRID_POSITION.match(position.strip())
    if not match:
        return 0, 0
    return int(match.group(1)), ord(match.group(2)) - ord("A")
