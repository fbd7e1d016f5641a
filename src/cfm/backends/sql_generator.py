"""
SQL schema-script generator for canonical forms.

Produces an ordered set of DDL scripts that store a form's data:
    - Main table: system columns + one column per non-repeating data column
    - One child table per repeating section, keyed back to the main table
    - Lookup tables for columns with valid values (validation rules on)
    - A summary view with per-section row counts

Supports multiple dialects, selected by value at construction:
    - SQL_SERVER
    - MYSQL
    - POSTGRESQL

The output is structurally shaped DDL; it is not a complete dialect
implementation.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from cfm.aggregation import collect_statistics
from cfm.config import GenerationOptions
from cfm.exceptions import GenerationError
from cfm.model import CanonicalDataColumn, CanonicalForm
from cfm.naming import sanitize_column_name, sanitize_table_name
from cfm.results import RebuildResult
from cfm.taxonomy import ControlType

logger = logging.getLogger(__name__)

SUMMARY_VIEW_COLUMN_LIMIT = 10


class SqlDialect(Enum):
    """Supported SQL dialects."""
    SQL_SERVER = "sql-server"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"


class ScriptType(Enum):
    TABLE = "table"
    LOOKUP = "lookup"
    VIEW = "view"


@dataclass(frozen=True)
class DialectProfile:
    """Per-dialect spelling of the handful of constructs the scripts use."""
    quote_open: str
    quote_close: str
    schema_prefix: str
    identity_column: str
    uuid_type: str
    uuid_default: str
    timestamp_type: str
    timestamp_default: str
    text_type: str
    short_text_type: str
    bool_type: str
    integer_type: str
    decimal_type: str
    people_type: str
    binary_type: str

    def quote(self, name: str) -> str:
        return f"{self.quote_open}{name}{self.quote_close}"

    def qualified(self, table: str) -> str:
        return f"{self.schema_prefix}{self.quote(table)}"


DIALECT_PROFILES: Dict[SqlDialect, DialectProfile] = {
    SqlDialect.SQL_SERVER: DialectProfile(
        quote_open="[", quote_close="]", schema_prefix="[dbo].",
        identity_column="INT IDENTITY(1,1) PRIMARY KEY",
        uuid_type="UNIQUEIDENTIFIER", uuid_default="DEFAULT NEWID()",
        timestamp_type="DATETIME2", timestamp_default="DEFAULT GETDATE()",
        text_type="NVARCHAR(MAX)", short_text_type="NVARCHAR(255)",
        bool_type="BIT", integer_type="INT", decimal_type="DECIMAL(18,4)",
        people_type="NVARCHAR(500)", binary_type="VARBINARY(MAX)",
    ),
    SqlDialect.MYSQL: DialectProfile(
        quote_open="`", quote_close="`", schema_prefix="",
        identity_column="INT AUTO_INCREMENT PRIMARY KEY",
        uuid_type="CHAR(36)", uuid_default="DEFAULT (UUID())",
        timestamp_type="DATETIME", timestamp_default="DEFAULT CURRENT_TIMESTAMP",
        text_type="TEXT", short_text_type="VARCHAR(255)",
        bool_type="TINYINT(1)", integer_type="INT", decimal_type="DECIMAL(18,4)",
        people_type="VARCHAR(500)", binary_type="LONGBLOB",
    ),
    SqlDialect.POSTGRESQL: DialectProfile(
        quote_open='"', quote_close='"', schema_prefix="",
        identity_column="SERIAL PRIMARY KEY",
        uuid_type="UUID", uuid_default="DEFAULT gen_random_uuid()",
        timestamp_type="TIMESTAMP", timestamp_default="DEFAULT CURRENT_TIMESTAMP",
        text_type="TEXT", short_text_type="VARCHAR(255)",
        bool_type="BOOLEAN", integer_type="INTEGER", decimal_type="NUMERIC(18,4)",
        people_type="VARCHAR(500)", binary_type="BYTEA",
    ),
}


@dataclass(frozen=True)
class SqlScript:
    name: str
    content: str
    type: ScriptType
    execution_order: int
    description: str = ""


def _sql_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class SqlSchemaGenerator:
    """
    Generator producing DDL scripts in one SQL dialect.

    Honours include_validation_rules (lookup tables) and include_comments
    (script header comments). Other switches have no SQL counterpart.
    """

    def __init__(self, dialect: SqlDialect = SqlDialect.SQL_SERVER):
        self.dialect = dialect
        self.profile = DIALECT_PROFILES[dialect]
        self.target = f"sql:{dialect.value}"

    def generate(self, form: CanonicalForm, options: GenerationOptions) -> RebuildResult:
        main_table = sanitize_table_name(form.name)
        scripts = self.build_scripts(form, main_table, options)

        bodies = []
        artifacts = {}
        for script in scripts:
            body = script.content
            if options.include_comments:
                body = f"-- {script.description}\n{body}"
            bodies.append(body)
            artifacts[f"{script.name}.sql"] = body

        output = "\n\n".join(bodies) + "\n"
        logger.debug(f"Generated {len(scripts)} {self.dialect.value} script(s) for {form.id}")

        return RebuildResult(
            success=True,
            target=self.target,
            output_data=output.encode("utf-8"),
            output_path=f"{main_table}_{self.dialect.value}.sql",
            artifacts=artifacts,
            statistics=collect_statistics(form),
        )

    def build_scripts(self, form: CanonicalForm, main_table: str,
                      options: GenerationOptions) -> List[SqlScript]:
        """All scripts for a form, sorted by execution order."""
        sections = self._repeating_sections(form, main_table)

        scripts = [self._main_table(form, main_table)]
        order = 2
        for section, columns in sections.items():
            scripts.append(self._section_table(main_table, section, columns, order))
            order += 1

        if options.include_validation_rules:
            order = 50
            for column in form.data_columns:
                if column.valid_values:
                    scripts.append(self._lookup_table(main_table, column, order))
                    order += 1

        scripts.append(self._summary_view(form, main_table, list(sections)))
        return sorted(scripts, key=lambda s: s.execution_order)

    # -------------------------------------------------------------------------
    # Column helpers
    # -------------------------------------------------------------------------

    def sql_type(self, control_type: ControlType) -> str:
        p = self.profile
        return {
            ControlType.NUMBER: p.integer_type,
            ControlType.DECIMAL: p.decimal_type,
            ControlType.CURRENCY: p.decimal_type,
            ControlType.DATE_PICKER: p.timestamp_type,
            ControlType.CHECK_BOX: p.bool_type,
            ControlType.DROP_DOWN: p.short_text_type,
            ControlType.CHOICE: p.short_text_type,
            ControlType.PEOPLE_PICKER: p.people_type,
            ControlType.FILE_UPLOAD: p.binary_type,
        }.get(control_type, p.text_type)

    def _column_lines(self, columns: List[CanonicalDataColumn]) -> List[str]:
        lines = []
        seen = set()
        for column in columns:
            name = sanitize_column_name(column.name)
            if name in seen:
                continue
            seen.add(name)
            lines.append(f"    {self.profile.quote(name)} {self.sql_type(column.type)} NULL")
        return lines

    def _repeating_sections(self, form: CanonicalForm,
                            main_table: str) -> Dict[str, List[CanonicalDataColumn]]:
        sections: Dict[str, List[CanonicalDataColumn]] = {}
        for column in form.data_columns:
            if column.is_repeating and column.repeating_section:
                sections.setdefault(column.repeating_section, []).append(column)

        table_names: Dict[str, str] = {}
        for section in sections:
            table = f"{main_table}_{sanitize_table_name(section)}"
            if table in table_names:
                raise GenerationError(
                    f"Repeating sections '{table_names[table]}' and '{section}' both map to table {table}"
                )
            table_names[table] = section
        return sections

    # -------------------------------------------------------------------------
    # Scripts
    # -------------------------------------------------------------------------

    def _main_table(self, form: CanonicalForm, table: str) -> SqlScript:
        p = self.profile
        q = p.quote
        lines = [
            f"    {q('Id')} {p.identity_column}",
            f"    {q('FormId')} {p.uuid_type} {p.uuid_default} NOT NULL UNIQUE",
            f"    {q('CreatedDate')} {p.timestamp_type} {p.timestamp_default} NOT NULL",
            f"    {q('ModifiedDate')} {p.timestamp_type} {p.timestamp_default} NOT NULL",
            f"    {q('CreatedBy')} {p.short_text_type}",
            f"    {q('ModifiedBy')} {p.short_text_type}",
            f"    {q('Status')} VARCHAR(50) DEFAULT 'Draft'",
        ]
        lines.extend(self._column_lines([c for c in form.data_columns if not c.is_repeating]))

        content = "\n".join([
            f"CREATE TABLE {p.qualified(table)} (",
            ",\n".join(lines),
            ");",
            "",
            f"CREATE INDEX {q(f'IX_{table}_CreatedDate')} ON {p.qualified(table)} ({q('CreatedDate')});",
            f"CREATE INDEX {q(f'IX_{table}_Status')} ON {p.qualified(table)} ({q('Status')});",
        ])
        return SqlScript(
            name=f"Create_{table}_Table",
            content=content,
            type=ScriptType.TABLE,
            execution_order=1,
            description=f"Main table for form {form.name}",
        )

    def _section_table(self, main_table: str, section: str,
                       columns: List[CanonicalDataColumn], order: int) -> SqlScript:
        p = self.profile
        q = p.quote
        table = f"{main_table}_{sanitize_table_name(section)}"
        lines = [
            f"    {q('Id')} {p.identity_column}",
            f"    {q('ParentFormId')} {p.uuid_type} NOT NULL",
            f"    {q('ItemOrder')} {p.integer_type} NOT NULL DEFAULT 0",
            f"    {q('CreatedDate')} {p.timestamp_type} {p.timestamp_default} NOT NULL",
        ]
        lines.extend(self._column_lines(columns))
        lines.append(
            f"    CONSTRAINT {q(f'FK_{table}')} FOREIGN KEY ({q('ParentFormId')})"
            f" REFERENCES {p.qualified(main_table)} ({q('FormId')}) ON DELETE CASCADE"
        )

        content = "\n".join([
            f"CREATE TABLE {p.qualified(table)} (",
            ",\n".join(lines),
            ");",
            "",
            f"CREATE INDEX {q(f'IX_{table}_ParentFormId')} ON {p.qualified(table)} ({q('ParentFormId')});",
        ])
        return SqlScript(
            name=f"Create_{table}_Table",
            content=content,
            type=ScriptType.TABLE,
            execution_order=order,
            description=f"Repeating section table for {section}",
        )

    def _lookup_table(self, main_table: str, column: CanonicalDataColumn, order: int) -> SqlScript:
        p = self.profile
        q = p.quote
        table = f"{main_table}_{sanitize_column_name(column.name)}_Lookup"
        statements = [
            "\n".join([
                f"CREATE TABLE {p.qualified(table)} (",
                f"    {q('Value')} {p.short_text_type} NOT NULL PRIMARY KEY,",
                f"    {q('DisplayText')} {p.short_text_type} NOT NULL,",
                f"    {q('IsDefault')} {p.bool_type} NOT NULL,",
                f"    {q('SortOrder')} {p.integer_type} NOT NULL",
                ");",
            ])
        ]
        true_value, false_value = ("TRUE", "FALSE") if self.dialect == SqlDialect.POSTGRESQL else ("1", "0")
        for option in sorted(column.valid_values, key=lambda o: o.order):
            statements.append(
                f"INSERT INTO {p.qualified(table)} ({q('Value')}, {q('DisplayText')}, {q('IsDefault')}, {q('SortOrder')}) "
                f"VALUES ({_sql_literal(option.value)}, {_sql_literal(option.display_text)}, "
                f"{true_value if option.is_default else false_value}, {option.order});"
            )

        return SqlScript(
            name=f"Create_{table}",
            content="\n".join(statements),
            type=ScriptType.LOOKUP,
            execution_order=order,
            description=f"Valid values for {column.display_name or column.name}",
        )

    def _summary_view(self, form: CanonicalForm, main_table: str, sections: List[str]) -> SqlScript:
        p = self.profile
        q = p.quote
        view = f"vw_{main_table}_Summary"

        selected = [f"    m.{q(c)}" for c in ("Id", "FormId", "CreatedDate", "ModifiedDate", "Status")]
        key_columns = [c for c in form.data_columns if not c.is_repeating][:SUMMARY_VIEW_COLUMN_LIMIT]
        seen = set()
        for column in key_columns:
            name = sanitize_column_name(column.name)
            if name not in seen:
                seen.add(name)
                selected.append(f"    m.{q(name)}")

        for section in sections:
            section_table = f"{main_table}_{sanitize_table_name(section)}"
            selected.append(
                f"    (SELECT COUNT(*) FROM {p.qualified(section_table)} r "
                f"WHERE r.{q('ParentFormId')} = m.{q('FormId')}) AS {q(sanitize_table_name(section) + 'Count')}"
            )

        content = "\n".join([
            f"CREATE VIEW {p.qualified(view)} AS",
            "SELECT",
            ",\n".join(selected),
            f"FROM {p.qualified(main_table)} m;",
        ])
        return SqlScript(
            name=view,
            content=content,
            type=ScriptType.VIEW,
            execution_order=200,
            description=f"Summary view for {form.name}",
        )
