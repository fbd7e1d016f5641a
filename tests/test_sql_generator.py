"""
Tests for the SQL schema-script generator.

Tests verify:
    - Script set and execution order
    - Main, repeating-section, lookup and summary-view content
    - Dialect-specific quoting and types
    - Option switches (validation rules, comments)
"""

import pytest
from cfm.aggregation import collect_statistics
from cfm.backends.sql_generator import ScriptType, SqlDialect, SqlSchemaGenerator
from cfm.config import GenerationOptions
from cfm.examples import build_expense_report_analysis
from cfm.exceptions import GenerationError
from cfm.mapper import map_to_canonical
from cfm.model import CanonicalDataColumn, CanonicalForm, CanonicalView, DataOption
from cfm.taxonomy import ControlType


def _expense_form() -> CanonicalForm:
    return map_to_canonical(build_expense_report_analysis())


def _sql(dialect=SqlDialect.SQL_SERVER, **options) -> str:
    result = SqlSchemaGenerator(dialect).generate(_expense_form(), GenerationOptions(**options))
    return result.output_data.decode("utf-8")


class TestSqlServerScripts:
    """Test the default SQL Server output for the expense report."""

    def test_result_shape(self):
        """The result names the primary output and every script artifact."""
        result = SqlSchemaGenerator().generate(_expense_form(), GenerationOptions())
        assert result.success
        assert result.target == "sql:sql-server"
        assert result.output_path == "Expense_Report_sql-server.sql"
        assert set(result.artifacts) == {
            "Create_Expense_Report_Table.sql",
            "Create_Expense_Report_ExpenseItems_Table.sql",
            "Create_Expense_Report_Department_Lookup.sql",
            "vw_Expense_Report_Summary.sql",
        }

    def test_execution_order(self):
        """Main table first, section tables, lookups, then the summary view."""
        generator = SqlSchemaGenerator()
        scripts = generator.build_scripts(_expense_form(), "Expense_Report", GenerationOptions())
        assert [s.execution_order for s in scripts] == [1, 2, 50, 200]
        assert [s.type for s in scripts] == [
            ScriptType.TABLE, ScriptType.TABLE, ScriptType.LOOKUP, ScriptType.VIEW,
        ]

        sql = _sql()
        assert sql.index("CREATE TABLE [dbo].[Expense_Report] (") < \
            sql.index("CREATE TABLE [dbo].[Expense_Report_ExpenseItems] (") < \
            sql.index("CREATE VIEW [dbo].[vw_Expense_Report_Summary] AS")

    def test_main_table_columns(self):
        """The main table holds system columns and non-repeating data columns."""
        result = SqlSchemaGenerator().generate(_expense_form(), GenerationOptions())
        main = result.artifacts["Create_Expense_Report_Table.sql"]
        assert "[Id] INT IDENTITY(1,1) PRIMARY KEY" in main
        assert "[FormId] UNIQUEIDENTIFIER DEFAULT NEWID() NOT NULL UNIQUE" in main
        assert "[EmployeeName] NVARCHAR(MAX) NULL" in main
        assert "[TravelInvolved] BIT NULL" in main
        assert "[ItemDate]" not in main

    def test_repeating_section_table(self):
        """Repeating sections get a child table keyed to the main table."""
        result = SqlSchemaGenerator().generate(_expense_form(), GenerationOptions())
        child = result.artifacts["Create_Expense_Report_ExpenseItems_Table.sql"]
        assert "[ParentFormId] UNIQUEIDENTIFIER NOT NULL" in child
        assert "[ItemOrder] INT NOT NULL DEFAULT 0" in child
        assert "[ItemDate] DATETIME2 NULL" in child
        assert "[ItemAmount] DECIMAL(18,4) NULL" in child
        assert "REFERENCES [dbo].[Expense_Report] ([FormId]) ON DELETE CASCADE" in child

    def test_lookup_table(self):
        """Valid values become lookup rows in option order."""
        result = SqlSchemaGenerator().generate(_expense_form(), GenerationOptions())
        lookup = result.artifacts["Create_Expense_Report_Department_Lookup.sql"]
        assert "VALUES ('FIN', 'Finance', 0, 0);" in lookup
        assert "VALUES ('ENG', 'Engineering', 1, 1);" in lookup
        assert lookup.index("'FIN'") < lookup.index("'ENG'") < lookup.index("'OPS'")

    def test_summary_view_counts_sections(self):
        """The summary view counts rows per repeating section."""
        result = SqlSchemaGenerator().generate(_expense_form(), GenerationOptions())
        view = result.artifacts["vw_Expense_Report_Summary.sql"]
        assert "m.[EmployeeName]" in view
        assert "AS [ExpenseItemsCount]" in view

    def test_statistics(self):
        """Statistics are derived from the canonical form."""
        form = _expense_form()
        result = SqlSchemaGenerator().generate(form, GenerationOptions())
        assert result.statistics == collect_statistics(form)
        assert result.statistics.is_consistent()


class TestOptions:
    """Test option switches."""

    def test_no_validation_rules(self):
        """Lookup tables are dropped without validation rules."""
        result = SqlSchemaGenerator().generate(_expense_form(), GenerationOptions(include_validation_rules=False))
        assert not any("Lookup" in name for name in result.artifacts)

    def test_comments(self):
        """Scripts carry a description comment unless switched off."""
        assert _sql().startswith("-- Main table for form Expense Report\n")
        assert "--" not in _sql(include_comments=False)

    def test_generator_is_reusable(self):
        """The same instance produces the same output twice."""
        generator = SqlSchemaGenerator()
        form = _expense_form()
        assert generator.generate(form, GenerationOptions()).output_data == \
            generator.generate(form, GenerationOptions()).output_data


class TestDialects:
    """Test dialect-specific output."""

    def test_mysql(self):
        """MySQL uses backticks, no schema prefix and TINYINT booleans."""
        sql = _sql(SqlDialect.MYSQL)
        assert "CREATE TABLE `Expense_Report` (" in sql
        assert "`TravelInvolved` TINYINT(1) NULL" in sql
        assert "INT AUTO_INCREMENT PRIMARY KEY" in sql
        assert "[" not in sql

    def test_postgresql(self):
        """PostgreSQL uses double quotes and boolean literals."""
        sql = _sql(SqlDialect.POSTGRESQL)
        assert 'CREATE TABLE "Expense_Report" (' in sql
        assert '"TravelInvolved" BOOLEAN NULL' in sql
        assert "VALUES ('ENG', 'Engineering', TRUE, 1);" in sql
        assert "SERIAL PRIMARY KEY" in sql

    def test_output_path_names_dialect(self):
        """The output file name carries the dialect."""
        result = SqlSchemaGenerator(SqlDialect.MYSQL).generate(_expense_form(), GenerationOptions())
        assert result.output_path == "Expense_Report_mysql.sql"
        assert result.target == "sql:mysql"

    @pytest.mark.parametrize("control_type,expected", [
        (ControlType.NUMBER, "INT"),
        (ControlType.CURRENCY, "DECIMAL(18,4)"),
        (ControlType.CHECK_BOX, "BIT"),
        (ControlType.DROP_DOWN, "NVARCHAR(255)"),
        (ControlType.FILE_UPLOAD, "VARBINARY(MAX)"),
        (ControlType.TEXT_AREA, "NVARCHAR(MAX)"),
    ])
    def test_sql_server_types(self, control_type, expected):
        """Control types map to SQL Server column types."""
        assert SqlSchemaGenerator().sql_type(control_type) == expected


class TestEdgeCases:
    """Test unusual forms."""

    def test_quotes_are_escaped(self):
        """Single quotes in values are doubled."""
        form = CanonicalForm(
            id="F", name="Names",
            views=(CanonicalView(name="view1.xsl"),),
            data_columns=(CanonicalDataColumn(name="Surname", valid_values=(DataOption(value="O'Brien"),)),),
        )
        result = SqlSchemaGenerator().generate(form, GenerationOptions())
        assert "'O''Brien'" in result.output_data.decode("utf-8")

    def test_form_without_columns(self):
        """A form without data columns still gets a main table and view."""
        form = CanonicalForm(id="F", name="Empty", views=(CanonicalView(name="view1.xsl"),))
        result = SqlSchemaGenerator().generate(form, GenerationOptions())
        assert result.success
        assert set(result.artifacts) == {"Create_Empty_Table.sql", "vw_Empty_Summary.sql"}

    def test_duplicate_columns_emitted_once(self):
        """Columns that sanitize to the same name appear once."""
        form = CanonicalForm(
            id="F", name="Dup", views=(CanonicalView(name="view1.xsl"),),
            data_columns=(CanonicalDataColumn(name="First Name"), CanonicalDataColumn(name="First_Name")),
        )
        result = SqlSchemaGenerator().generate(form, GenerationOptions())
        assert result.artifacts["Create_Dup_Table.sql"].count("[First_Name]") == 1

    def test_colliding_section_tables(self):
        """Two repeating sections mapping to one table name cannot be generated."""
        form = CanonicalForm(
            id="F", name="Clash", views=(CanonicalView(name="view1.xsl"),),
            data_columns=(
                CanonicalDataColumn(name="A", is_repeating=True, repeating_section="Items A"),
                CanonicalDataColumn(name="B", is_repeating=True, repeating_section="Items_A"),
            ),
        )
        with pytest.raises(GenerationError):
            SqlSchemaGenerator().generate(form, GenerationOptions())
