"""
tests/test_exporters.py
Unit tests for schemaguard.exporters.

Tests cover:
- SQL DDL statement shapes and ordering (tables → indexes → constraints)
- SQL option toggles (comments, drops, existence checks, batch, schema)
- JSON output accepted back by the models
- Markdown / HTML / CSV structure and escaping
- Identical column order across every format
- Artifact naming, MIME types and determinism
- ExportError on unrenderable graphs
"""

from __future__ import annotations

import csv
import io
import json
import xml.etree.ElementTree as ET
from typing import Any, Dict, List

import pytest
from pydantic import ValidationError as PydanticValidationError

from schemaguard.models import Column, ExportFormat, ExportOptions, Project, Table
from schemaguard.exporters import (
    CSV_HEADER,
    ExportArtifact,
    ExportError,
    SchemaExporter,
    coerce_tables,
    export_schema,
    foreign_key_name,
    quote_identifier,
)


def _sql(tables: List[Any], **options: Any) -> str:
    return export_schema(tables, "sql", ExportOptions(**options)).content


# ===========================================================================
# SQL
# ===========================================================================


class TestSqlExport:
    """Tests for SQL Server DDL rendering."""

    def test_create_table_columns(self, project: Project) -> None:
        sql = _sql(project.tables)
        assert "CREATE TABLE [USER] (" in sql
        assert "    [USER_ID] BIGINT IDENTITY(1,1) NOT NULL PRIMARY KEY," in sql
        assert "    [USER_NAME] NVARCHAR(100) NOT NULL," in sql
        assert "    [REG_DT] DATETIME NOT NULL DEFAULT GETDATE()," in sql
        assert "    [UNIT_PRICE] DECIMAL(18,2) NOT NULL," in sql
        assert "    [CHG_DT] DATETIME NULL\n);" in sql

    def test_statement_sections_in_order(self, project: Project) -> None:
        sql = _sql(project.tables)
        last_create = sql.rindex("CREATE TABLE")
        first_index = sql.index("CREATE UNIQUE NONCLUSTERED INDEX")
        first_fk = sql.index("FOREIGN KEY")
        assert sql.index("CREATE TABLE [USER]") < sql.index("CREATE TABLE [ORDER_ITEM]")
        assert last_create < first_index < first_fk

    def test_index_and_foreign_key_statements(self, project: Project) -> None:
        lines = _sql(project.tables).splitlines()
        assert "CREATE UNIQUE NONCLUSTERED INDEX [IDX__USER__EMAIL] ON [USER] ([EMAIL] ASC);" in lines
        assert (
            "ALTER TABLE [ORDER_ITEM] ADD CONSTRAINT [FK__ORDER_ITEM__USER_ID] "
            "FOREIGN KEY ([USER_ID]) REFERENCES [USER] ([USER_ID]);"
        ) in lines

    def test_check_constraints(self, project: Project, order_line_table_dict: Dict[str, Any]) -> None:
        lines = _sql([*project.tables, order_line_table_dict]).splitlines()
        assert "ALTER TABLE [USER] ADD CONSTRAINT [CK_USER_IS_ACTIVE] CHECK ([IS_ACTIVE] IN (0, 1));" in lines
        assert (
            "ALTER TABLE [ORDER_LINE] ADD CONSTRAINT [CK_ORDER_LINE_STATUS] "
            "CHECK ([STATUS] >= 0 AND [STATUS] <= 255);"
        ) in lines

    def test_composite_primary_key(self, order_line_table_dict: Dict[str, Any]) -> None:
        sql = _sql([order_line_table_dict])
        assert (
            "    CONSTRAINT [PK_ORDER_LINE] PRIMARY KEY ([ORDER_LINE_ORDER_ID], [ORDER_LINE_NO])"
            in sql
        )
        assert "NOT NULL PRIMARY KEY" not in sql

    def test_extended_properties(self, code_table_dict: Dict[str, Any]) -> None:
        sql = _sql([code_table_dict])
        assert (
            "EXEC sys.sp_addextendedproperty @name=N'MS_Description', @value=N'공통 코드', "
            "@level0type=N'SCHEMA', @level0name=N'dbo', @level1type=N'TABLE', @level1name=N'CODE';"
        ) in sql
        assert "@level2type=N'COLUMN', @level2name=N'CODE_ID';" in sql

    def test_toggles(self, project: Project) -> None:
        sql = _sql(
            project.tables,
            include_comments=False,
            include_indexes=False,
            include_constraints=False,
        )
        assert "sp_addextendedproperty" not in sql
        assert "CREATE UNIQUE" not in sql
        assert "FOREIGN KEY" not in sql
        assert "CHECK (" not in sql
        assert "CREATE TABLE [ORDER_ITEM]" in sql

    def test_drop_statements_reverse_order(self, project: Project) -> None:
        sql = _sql(project.tables, include_drop_statements=True)
        assert sql.index("DROP TABLE [ORDER_ITEM];") < sql.index("DROP TABLE [USER];")
        assert sql.index("DROP TABLE [USER];") < sql.index("CREATE TABLE")

    def test_existence_checks(self, code_table_dict: Dict[str, Any]) -> None:
        sql = _sql([code_table_dict], include_existence_checks=True, include_drop_statements=True)
        assert "IF OBJECT_ID(N'[CODE]', N'U') IS NOT NULL DROP TABLE [CODE];" in sql
        assert (
            "IF NOT EXISTS (SELECT * FROM sys.objects WHERE object_id = OBJECT_ID(N'[CODE]') "
            "AND type in (N'U'))\nBEGIN\n    CREATE TABLE [CODE] ("
        ) in sql
        assert "\nEND\n" in sql

    def test_batch_script(self, code_table_dict: Dict[str, Any]) -> None:
        sql = _sql([code_table_dict], batch_script=True)
        assert "SET NOCOUNT ON;\nSET XACT_ABORT ON;\nBEGIN TRANSACTION;" in sql
        assert sql.endswith("COMMIT TRANSACTION;\n")

    def test_schema_qualification(self, project: Project) -> None:
        sql = _sql(project.tables, schema_name="sales")
        assert "IF NOT EXISTS (SELECT * FROM sys.schemas WHERE name = 'sales')" in sql
        assert "CREATE TABLE [sales].[USER] (" in sql
        assert "REFERENCES [sales].[USER] ([USER_ID])" in sql
        assert "@level0name=N'sales'" in sql

    def test_dbo_schema_is_not_created(self, code_table_dict: Dict[str, Any]) -> None:
        sql = _sql([code_table_dict], schema_name="dbo")
        assert "sys.schemas" not in sql
        assert "CREATE TABLE [dbo].[CODE] (" in sql

    def test_quoting(self) -> None:
        assert quote_identifier("ODD]NAME") == "[ODD]]NAME]"
        table = Table.model_validate(
            {"name": "T", "description": "O'Brien 테이블", "columns": []}
        )
        assert "@value=N'O''Brien 테이블'" in _sql([table])

    def test_foreign_key_name(self, project: Project) -> None:
        order_item = project.get_table("ORDER_ITEM")
        assert foreign_key_name(order_item, order_item.foreign_keys[0]) == "FK__ORDER_ITEM__USER_ID"


# ===========================================================================
# JSON
# ===========================================================================


class TestJsonExport:
    """Tests for JSON rendering."""

    def test_round_trips_through_models(self, project: Project) -> None:
        payload = json.loads(export_schema(project.tables, "json").content)
        rebuilt = [Table.model_validate(entry) for entry in payload["tables"]]
        assert [t.name for t in rebuilt] == ["USER", "ORDER_ITEM"]
        for original, copy in zip(project.tables, rebuilt):
            assert copy.column_names == original.column_names
            assert [c.sql_type for c in copy.columns] == [c.sql_type for c in original.ordered_columns]
            assert len(copy.indexes) == len(original.indexes)
            assert len(copy.foreign_keys) == len(original.foreign_keys)

    def test_camel_case_keys_and_unicode(self, code_table_dict: Dict[str, Any]) -> None:
        content = export_schema([code_table_dict], "json").content
        assert '"dataType": "INT"' in content
        assert '"primaryKey": true' in content
        assert "공통 코드" in content
        assert content.endswith("\n")

    def test_toggles_drop_sections(self, project: Project) -> None:
        options = ExportOptions(include_indexes=False, include_constraints=False)
        payload = json.loads(export_schema(project.tables, "json", options).content)
        assert "indexes" not in payload["tables"][0]
        assert "foreignKeys" not in payload["tables"][1]


# ===========================================================================
# Markdown / HTML / CSV
# ===========================================================================


class TestDocumentExports:
    """Tests for the documentation formats."""

    def test_markdown_structure(self, project: Project) -> None:
        md = export_schema(project.tables, "markdown").content
        assert md.startswith("# 데이터베이스 스키마 문서\n")
        assert "## 테이블 목록" in md
        assert "| USER | 사용자 정보 | 8 |" in md
        assert "## ORDER_ITEM" in md
        assert "| USER_ID | BIGINT | N | PK | Y |  | 사용자 ID |" in md
        assert "### 인덱스" in md
        assert "| IDX__USER__EMAIL | NONCLUSTERED | Y | EMAIL ASC |" in md
        assert "| FK__ORDER_ITEM__USER_ID | USER_ID | USER(USER_ID) |" in md

    def test_markdown_escapes_pipes(self, code_table_dict: Dict[str, Any]) -> None:
        code_table_dict["columns"][0]["description"] = "코드 || 상세"
        md = export_schema([code_table_dict], "markdown").content
        assert "코드 \\|\\| 상세" in md

    def test_html_is_well_formed(self, project: Project) -> None:
        content = export_schema(project.tables, "html").content
        assert content.startswith("<!DOCTYPE html>")
        root = ET.fromstring(content)
        sections = root.findall("./body/section")
        assert [s.get("id") for s in sections] == ["USER", "ORDER_ITEM"]

    def test_html_escapes_text(self, code_table_dict: Dict[str, Any]) -> None:
        code_table_dict["description"] = "<script>코드</script>"
        content = export_schema([code_table_dict], "html").content
        assert "<script>" not in content
        assert "&lt;script&gt;코드&lt;/script&gt;" in content

    def test_csv_rows(self, project: Project) -> None:
        content = export_schema(project.tables, "csv").content
        rows = list(csv.reader(io.StringIO(content)))
        assert tuple(rows[0]) == CSV_HEADER
        assert len(rows) == 1 + project.total_columns
        assert rows[1] == [
            "USER", "USER_ID", "BIGINT", "", "", "", "false", "true", "true", "사용자 ID",
        ]
        assert rows[3][3] == "255"

    def test_csv_quotes_commas(self, code_table_dict: Dict[str, Any]) -> None:
        code_table_dict["columns"][0]["description"] = "코드, 식별자"
        rows = list(csv.reader(io.StringIO(export_schema([code_table_dict], "csv").content)))
        assert rows[1][-1] == "코드, 식별자"

    def test_nullable_primary_key_is_not_null_everywhere(self, code_table_dict: Dict[str, Any]) -> None:
        code_table_dict["columns"][0]["nullable"] = True
        rows = list(csv.reader(io.StringIO(export_schema([code_table_dict], "csv").content)))
        assert rows[1][:2] == ["CODE", "CODE_ID"]
        assert rows[1][6] == "false", "CSV must agree with SQL on PK nullability"
        assert "[CODE_ID] INT NOT NULL" in export_schema([code_table_dict], "sql").content
        assert "| CODE_ID | INT | N | PK |" in export_schema([code_table_dict], "markdown").content


# ===========================================================================
# Column order consistency
# ===========================================================================


class TestColumnOrder:
    """Every format renders columns in orderIndex order."""

    @pytest.fixture()
    def shuffled_table(self) -> Dict[str, Any]:
        return {
            "name": "SHUFFLED",
            "description": "순서 테스트",
            "columns": [
                {"name": "THIRD_COL", "description": "셋째", "dataType": "INT", "orderIndex": 3},
                {"name": "FIRST_COL", "description": "첫째", "dataType": "INT", "orderIndex": 1},
                {"name": "SECOND_COL", "description": "둘째", "dataType": "INT", "orderIndex": 2},
            ],
        }

    def test_same_order_everywhere(self, shuffled_table: Dict[str, Any]) -> None:
        expected = ["FIRST_COL", "SECOND_COL", "THIRD_COL"]

        sql = export_schema([shuffled_table], "sql").content
        positions = [sql.index(f"[{name}] INT") for name in expected]
        assert positions == sorted(positions)

        payload = json.loads(export_schema([shuffled_table], "json").content)
        assert [c["name"] for c in payload["tables"][0]["columns"]] == expected

        rows = list(csv.reader(io.StringIO(export_schema([shuffled_table], "csv").content)))
        assert [r[1] for r in rows[1:]] == expected

        md = export_schema([shuffled_table], "markdown").content
        positions = [md.index(f"| {name} |") for name in expected]
        assert positions == sorted(positions)

        html_content = export_schema([shuffled_table], "html").content
        positions = [html_content.index(f"<td>{name}</td>") for name in expected]
        assert positions == sorted(positions)


# ===========================================================================
# Artifacts & errors
# ===========================================================================


class TestArtifacts:
    """Tests for ExportArtifact naming and determinism."""

    @pytest.mark.parametrize(
        "fmt, filename, mime",
        [
            ("sql", "schema.sql", "text/sql"),
            ("json", "schema.json", "application/json"),
            ("markdown", "schema.md", "text/markdown"),
            ("html", "schema.html", "text/html"),
            ("csv", "schema.csv", "text/csv"),
        ],
    )
    def test_filename_and_mime(self, code_table: Table, fmt: str, filename: str, mime: str) -> None:
        artifact = export_schema([code_table], fmt)
        assert isinstance(artifact, ExportArtifact)
        assert artifact.filename == filename
        assert artifact.mime_type == mime
        assert artifact.size_bytes >= len(artifact.content)

    def test_timestamp_and_stem(self, code_table: Table) -> None:
        options = ExportOptions(filename_stem="shop", timestamp="20240101_120000")
        artifact = SchemaExporter(options).export([code_table], ExportFormat.MARKDOWN)
        assert artifact.filename == "shop_20240101_120000.md"

    def test_default_format_comes_from_options(self, code_table: Table) -> None:
        artifact = SchemaExporter(ExportOptions(format="csv")).export([code_table])
        assert artifact.mime_type == "text/csv"

    def test_deterministic(self, project: Project) -> None:
        for fmt in ExportFormat:
            first = export_schema(project.tables, fmt)
            second = export_schema(project.tables, fmt)
            assert first.content == second.content
            assert first.sha256 == second.sha256

    def test_export_is_not_gated_on_naming(self, sloppy_table_dict: Dict[str, Any]) -> None:
        sloppy_table_dict["columns"][1]["maxLength"] = 50
        artifact = export_schema([sloppy_table_dict], "sql")
        assert "CREATE TABLE [userInfo] (" in artifact.content

    def test_empty_input(self) -> None:
        assert export_schema([], "json").content == '{\n  "tables": []\n}\n'


class TestExportErrors:
    """Tests for unrenderable inputs."""

    def test_unknown_format(self, code_table: Table) -> None:
        with pytest.raises(ExportError):
            export_schema([code_table], "pdf")

    def test_unknown_data_type_in_mapping(self, code_table_dict: Dict[str, Any]) -> None:
        code_table_dict["columns"][0]["dataType"] = "GEOGRAPHY"
        with pytest.raises(ExportError) as exc_info:
            export_schema([code_table_dict], "sql")
        assert isinstance(exc_info.value, ValueError)
        assert isinstance(exc_info.value.__cause__, PydanticValidationError)

    def test_unknown_data_type_in_model(self) -> None:
        table = Table(
            name="BLOBS",
            columns=[Column.model_construct(name="DATA", data_type="BLOB")],
        )
        with pytest.raises(ExportError, match="BLOB"):
            coerce_tables([table])

    def test_sql_index_with_missing_column(self, code_table_dict: Dict[str, Any]) -> None:
        code_table_dict["indexes"] = [{"name": "IDX__CODE__NOPE", "columns": [{"columnName": "NOPE"}]}]
        with pytest.raises(ExportError, match="NOPE"):
            export_schema([code_table_dict], "sql")

    def test_sql_foreign_key_with_missing_column(self, code_table_dict: Dict[str, Any]) -> None:
        code_table_dict["foreignKeys"] = [
            {"columns": ["NOPE"], "referencedTable": "USER", "referencedColumns": ["USER_ID"]}
        ]
        with pytest.raises(ExportError, match="NOPE"):
            export_schema([code_table_dict], "sql")


# ===========================================================================
# Dangling references outside the emitted DDL
# ===========================================================================


class TestDanglingReferencesDoNotBlock:
    """References that are not rendered never stop an export."""

    @pytest.fixture
    def ghost_index_table(self, code_table_dict: Dict[str, Any]) -> Dict[str, Any]:
        code_table_dict["indexes"] = [{"name": "IDX__CODE__GHOST", "columns": [{"columnName": "GHOST"}]}]
        return code_table_dict

    @pytest.fixture
    def ghost_fk_table(self, code_table_dict: Dict[str, Any]) -> Dict[str, Any]:
        code_table_dict["foreignKeys"] = [
            {"columns": ["GHOST"], "referencedTable": "USER", "referencedColumns": ["USER_ID"]}
        ]
        return code_table_dict

    def test_csv_ignores_index_columns(self, ghost_index_table: Dict[str, Any]) -> None:
        artifact = export_schema([ghost_index_table], "csv", ExportOptions(include_indexes=False))
        assert artifact.content.startswith("table,column,type")
        assert "GHOST" not in artifact.content

    def test_csv_with_indexes_enabled(self, ghost_index_table: Dict[str, Any]) -> None:
        artifact = export_schema([ghost_index_table], "csv")
        assert artifact.filename == "schema.csv"

    def test_sql_with_indexes_off(self, ghost_index_table: Dict[str, Any]) -> None:
        sql = _sql([ghost_index_table], include_indexes=False)
        assert "CREATE TABLE [CODE] (" in sql
        assert "GHOST" not in sql

    def test_sql_with_constraints_off(self, ghost_fk_table: Dict[str, Any]) -> None:
        sql = _sql([ghost_fk_table], include_constraints=False)
        assert "CREATE TABLE [CODE] (" in sql
        assert "FOREIGN KEY" not in sql

    @pytest.mark.parametrize("fmt", ["json", "markdown", "html"])
    def test_document_formats_list_names_verbatim(
        self, ghost_index_table: Dict[str, Any], fmt: str
    ) -> None:
        assert "IDX__CODE__GHOST" in export_schema([ghost_index_table], fmt).content

    def test_unsupported_item_type(self) -> None:
        with pytest.raises(ExportError):
            export_schema(["CODE"], "sql")
