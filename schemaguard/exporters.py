# File: schemaguard/exporters.py
"""
NexaFlow SchemaGuard - Multi-format Schema Exporter
====================================================
Renders one entity graph (a sequence of ``Table``) as SQL Server DDL, JSON,
Markdown, HTML or CSV.

Responsible for:
    1. Coercing plain mappings into validated ``Table`` models.
    2. Rejecting graphs that cannot be rendered with ``ExportError``: unknown
       data types, and in SQL only, emitted index or foreign-key DDL that
       names a column the table lacks.
    3. Producing the artifact text, its filename and its MIME type.

The exporter is a pure function of ``(tables, format, options)``: it never
reads the clock, never touches the file system and never iterates over an
unordered container.  Exporting is *not* gated on naming validation; a
project with findings still renders.

**Performance contract:**
    - All string assembly uses ``List[str]`` + ``"\\n".join()`` pattern.
    - Every format walks ``Table.ordered_columns`` so column order is
      identical across formats.
"""

from __future__ import annotations

import csv
import html
import io
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from schemaguard.models import (
    Column,
    ExportFormat,
    ExportOptions,
    ForeignKey,
    Index,
    MSSQLDataType,
    ReferentialAction,
    Table,
)
from schemaguard.utils import count_lines, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaguard.exporters")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "    "

# format -> (extension, MIME type)
FORMAT_METADATA: Dict[ExportFormat, Tuple[str, str]] = {
    ExportFormat.SQL: ("sql", "text/sql"),
    ExportFormat.JSON: ("json", "application/json"),
    ExportFormat.MARKDOWN: ("md", "text/markdown"),
    ExportFormat.HTML: ("html", "text/html"),
    ExportFormat.CSV: ("csv", "text/csv"),
}

CSV_HEADER: Tuple[str, ...] = (
    "table",
    "column",
    "type",
    "length",
    "precision",
    "scale",
    "nullable",
    "primaryKey",
    "identity",
    "description",
)

# Integer-ish types that get a range CHECK constraint
_CHECK_RANGES: Dict[MSSQLDataType, Tuple[int, int]] = {
    MSSQLDataType.TINYINT: (0, 255),
    MSSQLDataType.SMALLINT: (-32768, 32767),
}

_DEFAULT_SCHEMA: str = "dbo"

TableInput = Union[Table, Mapping[str, Any]]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class ExportError(ValueError):
    """The entity graph cannot be rendered as requested."""


@dataclass(frozen=True, slots=True)
class ExportArtifact:
    """Immutable result of one export: text, suggested filename and MIME type."""

    content: str
    filename: str
    mime_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))

    @property
    def line_count(self) -> int:
        return count_lines(self.content)

    @property
    def sha256(self) -> str:
        return sha256_hex(self.content)


# ---------------------------------------------------------------------------
# Input coercion & structural checks
# ---------------------------------------------------------------------------


def _coerce_table(item: TableInput, position: int) -> Table:
    if isinstance(item, Table):
        return item
    if isinstance(item, Mapping):
        try:
            return Table.model_validate(item)
        except PydanticValidationError as exc:
            raise ExportError(
                f"Table #{position + 1} ({item.get('name', '?')!s}) is malformed: "
                f"{exc.error_count()} validation error(s)"
            ) from exc
    raise ExportError(f"Table #{position + 1} has unsupported type {type(item).__name__}")


def _check_renderable(table: Table) -> None:
    """Reject columns whose data type no renderer can spell."""
    for column in table.columns:
        try:
            MSSQLDataType(column.data_type)
        except ValueError as exc:
            raise ExportError(
                f"Column '{table.name}.{column.name}' has unknown data type "
                f"{column.data_type!r}"
            ) from exc


def coerce_tables(tables: Sequence[TableInput]) -> List[Table]:
    """
    Validate *tables* into renderable ``Table`` models, preserving order.

    Raises:
        ExportError: On a malformed mapping or an unknown data type.
    """
    result: List[Table] = []
    for position, item in enumerate(tables):
        table: Table = _coerce_table(item, position)
        _check_renderable(table)
        result.append(table)
    return result


# ---------------------------------------------------------------------------
# SQL helpers
# ---------------------------------------------------------------------------


def _esc(value: Any) -> str:
    return html.escape("" if value is None else str(value))


def quote_identifier(name: str) -> str:
    """``[name]`` with ``]`` doubled, as SQL Server expects."""
    return "[" + name.replace("]", "]]") + "]"


def _unicode_literal(value: str) -> str:
    return "N'" + value.replace("'", "''") + "'"


def _column_type(column: Column) -> str:
    return MSSQLDataType(column.data_type).render(
        column.max_length, column.precision, column.scale
    )


def foreign_key_name(table: Table, fk: ForeignKey) -> str:
    """Explicit constraint name, else ``FK__{TABLE}__{COL1}__{COL2}``."""
    if fk.name:
        return fk.name
    return f"FK__{table.name}__{'__'.join(fk.columns)}"


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------


class SchemaExporter:
    """
    Stateless renderer configured by ``ExportOptions``.

    Each ``render_*`` method takes already-coerced tables and returns text;
    ``export`` coerces, dispatches on the format and wraps the result in an
    ``ExportArtifact``.
    """

    def __init__(self, options: Optional[ExportOptions] = None) -> None:
        self.options: ExportOptions = options or ExportOptions()
        self._renderers: Dict[ExportFormat, Callable[[List[Table]], str]] = {
            ExportFormat.SQL: self.render_sql,
            ExportFormat.JSON: self.render_json,
            ExportFormat.MARKDOWN: self.render_markdown,
            ExportFormat.HTML: self.render_html,
            ExportFormat.CSV: self.render_csv,
        }

    # -- Entry point ----------------------------------------------------------

    def export(
        self,
        tables: Sequence[TableInput],
        fmt: Optional[Union[ExportFormat, str]] = None,
    ) -> ExportArtifact:
        """
        Render *tables* in *fmt* (defaults to ``options.format``).

        Raises:
            ExportError: On an unknown format or an unrenderable graph.
        """
        try:
            export_format: ExportFormat = ExportFormat(fmt or self.options.format)
        except ValueError as exc:
            raise ExportError(f"Unsupported export format: {fmt!r}") from exc

        coerced: List[Table] = coerce_tables(tables)
        content: str = self._renderers[export_format](coerced)
        extension, mime_type = FORMAT_METADATA[export_format]
        artifact = ExportArtifact(content, self.filename(extension), mime_type)

        logger.info(
            "Exported %d table(s) as %s — %d line(s), %d bytes.",
            len(coerced),
            export_format.value,
            artifact.line_count,
            artifact.size_bytes,
        )
        return artifact

    def filename(self, extension: str) -> str:
        """``{stem}[_{timestamp}].{ext}``; the timestamp is always caller-supplied."""
        stem: str = self.options.filename_stem
        if self.options.timestamp:
            return f"{stem}_{self.options.timestamp}.{extension}"
        return f"{stem}.{extension}"

    # -- SQL ----------------------------------------------------------------

    def _qualified(self, table_name: str) -> str:
        if self.options.schema_name:
            return f"{quote_identifier(self.options.schema_name)}.{quote_identifier(table_name)}"
        return quote_identifier(table_name)

    def _column_definition(self, column: Column, inline_primary_key: bool) -> str:
        parts: List[str] = [quote_identifier(column.name), _column_type(column)]
        if column.identity:
            seed: int = column.identity_seed if column.identity_seed is not None else 1
            increment: int = (
                column.identity_increment if column.identity_increment is not None else 1
            )
            parts.append(f"IDENTITY({seed},{increment})")
        parts.append("NOT NULL" if not column.nullable or column.primary_key else "NULL")
        if column.default_value is not None and column.default_value.strip():
            parts.append(f"DEFAULT {column.default_value.strip()}")
        if inline_primary_key:
            parts.append("PRIMARY KEY")
        return " ".join(parts)

    def _create_table(self, table: Table) -> List[str]:
        primary_keys: List[Column] = table.primary_key_columns
        composite: bool = len(primary_keys) > 1

        definitions: List[str] = [
            _INDENT + self._column_definition(c, c.primary_key and not composite)
            for c in table.ordered_columns
        ]
        if composite:
            key_list: str = ", ".join(quote_identifier(c.name) for c in primary_keys)
            definitions.append(
                f"{_INDENT}CONSTRAINT {quote_identifier('PK_' + table.name)} "
                f"PRIMARY KEY ({key_list})"
            )

        body: List[str] = [f"CREATE TABLE {self._qualified(table.name)} ("]
        body.append(",\n".join(definitions))
        body.append(");")

        if not self.options.include_existence_checks:
            return body

        literal: str = _unicode_literal(self._qualified(table.name))
        wrapped: List[str] = [
            f"IF NOT EXISTS (SELECT * FROM sys.objects WHERE object_id = OBJECT_ID({literal}) AND type in (N'U'))",
            "BEGIN",
        ]
        for chunk in body:
            wrapped.extend(_INDENT + line for line in chunk.split("\n"))
        wrapped.append("END")
        return wrapped

    def _extended_properties(self, table: Table) -> List[str]:
        schema: str = _unicode_literal(self.options.schema_name or _DEFAULT_SCHEMA)
        target: str = (
            f"@level0type=N'SCHEMA', @level0name={schema}, "
            f"@level1type=N'TABLE', @level1name={_unicode_literal(table.name)}"
        )
        lines: List[str] = []
        if table.description:
            lines.append(
                "EXEC sys.sp_addextendedproperty @name=N'MS_Description', "
                f"@value={_unicode_literal(table.description)}, {target};"
            )
        for column in table.ordered_columns:
            if not column.description:
                continue
            lines.append(
                "EXEC sys.sp_addextendedproperty @name=N'MS_Description', "
                f"@value={_unicode_literal(column.description)}, {target}, "
                f"@level2type=N'COLUMN', @level2name={_unicode_literal(column.name)};"
            )
        return lines

    def _create_index(self, table: Table, index: Index) -> str:
        unique: str = "UNIQUE " if index.unique else ""
        columns: str = ", ".join(
            f"{quote_identifier(ic.column_name)} {ic.order}" for ic in index.columns
        )
        return (
            f"CREATE {unique}{index.index_type} INDEX {quote_identifier(index.name)} "
            f"ON {self._qualified(table.name)} ({columns});"
        )

    def _foreign_key(self, table: Table, fk: ForeignKey) -> str:
        local: str = ", ".join(quote_identifier(c) for c in fk.columns)
        remote: str = ", ".join(quote_identifier(c) for c in fk.referenced_columns)
        statement: str = (
            f"ALTER TABLE {self._qualified(table.name)} "
            f"ADD CONSTRAINT {quote_identifier(foreign_key_name(table, fk))} "
            f"FOREIGN KEY ({local}) REFERENCES {self._qualified(fk.referenced_table)} ({remote})"
        )
        if fk.on_delete != ReferentialAction.NO_ACTION.value:
            statement += f" ON DELETE {fk.on_delete}"
        if fk.on_update != ReferentialAction.NO_ACTION.value:
            statement += f" ON UPDATE {fk.on_update}"
        return statement + ";"

    def _check_constraints(self, table: Table) -> List[str]:
        lines: List[str] = []
        for column in table.ordered_columns:
            data_type: MSSQLDataType = MSSQLDataType(column.data_type)
            name: str = quote_identifier(column.name)
            if data_type is MSSQLDataType.BIT:
                condition: str = f"{name} IN (0, 1)"
            elif data_type in _CHECK_RANGES:
                low, high = _CHECK_RANGES[data_type]
                condition = f"{name} >= {low} AND {name} <= {high}"
            else:
                continue
            lines.append(
                f"ALTER TABLE {self._qualified(table.name)} "
                f"ADD CONSTRAINT {quote_identifier(f'CK_{table.name}_{column.name}')} "
                f"CHECK ({condition});"
            )
        return lines

    def _check_emitted_references(self, tables: List[Table]) -> None:
        """Index / FK DDL naming a column the table lacks would never execute."""
        for table in tables:
            if self.options.include_indexes:
                for index in table.indexes:
                    for column_name in index.column_names:
                        if table.get_column(column_name) is None:
                            raise ExportError(
                                f"Index '{index.name}' on '{table.name}' references missing "
                                f"column '{column_name}'"
                            )
            if self.options.include_constraints:
                for fk in table.foreign_keys:
                    for column_name in fk.columns:
                        if table.get_column(column_name) is None:
                            raise ExportError(
                                f"Foreign key on '{table.name}' references missing column "
                                f"'{column_name}'"
                            )

    def render_sql(self, tables: List[Table]) -> str:
        """
        SQL Server DDL: tables, then indexes, then constraints.

        Raises:
            ExportError: If an emitted index or foreign key names a missing column.
        """
        opts: ExportOptions = self.options
        self._check_emitted_references(tables)
        lines: List[str] = [f"-- SchemaGuard DDL: {len(tables)} table(s)", ""]

        if opts.batch_script:
            lines.extend(["SET NOCOUNT ON;", "SET XACT_ABORT ON;", "BEGIN TRANSACTION;", ""])

        if opts.schema_name and opts.schema_name.lower() != _DEFAULT_SCHEMA:
            schema_literal: str = "'" + opts.schema_name.replace("'", "''") + "'"
            lines.extend(
                [
                    f"IF NOT EXISTS (SELECT * FROM sys.schemas WHERE name = {schema_literal})",
                    f"    EXEC('CREATE SCHEMA {quote_identifier(opts.schema_name)}');",
                    "",
                ]
            )

        if opts.include_drop_statements:
            lines.append("-- 기존 테이블 삭제")
            for table in reversed(tables):
                qualified: str = self._qualified(table.name)
                if opts.include_existence_checks:
                    lines.append(
                        f"IF OBJECT_ID({_unicode_literal(qualified)}, N'U') IS NOT NULL "
                        f"DROP TABLE {qualified};"
                    )
                else:
                    lines.append(f"DROP TABLE {qualified};")
            lines.append("")

        for table in tables:
            header: str = f"-- 테이블: {table.name}"
            if opts.include_comments and table.description:
                header += f" - {table.description}"
            lines.append(header)
            lines.extend(self._create_table(table))
            if opts.include_comments:
                lines.extend(self._extended_properties(table))
            lines.append("")

        if opts.include_indexes:
            statements: List[str] = [
                self._create_index(table, index) for table in tables for index in table.indexes
            ]
            if statements:
                lines.append("-- 인덱스")
                lines.extend(statements)
                lines.append("")

        if opts.include_constraints:
            constraints: List[str] = []
            for table in tables:
                constraints.extend(self._foreign_key(table, fk) for fk in table.foreign_keys)
            for table in tables:
                constraints.extend(self._check_constraints(table))
            if constraints:
                lines.append("-- 제약조건")
                lines.extend(constraints)
                lines.append("")

        if opts.batch_script:
            lines.extend(["COMMIT TRANSACTION;", ""])

        return "\n".join(lines)

    # -- JSON ---------------------------------------------------------------

    def table_to_dict(self, table: Table) -> Dict[str, Any]:
        """camelCase mapping that ``Table.model_validate`` accepts back."""
        dump: Dict[str, Any] = {"by_alias": True, "exclude_none": True, "mode": "json"}
        data: Dict[str, Any] = {}
        if table.id is not None:
            data["id"] = table.id
        data["name"] = table.name
        data["description"] = table.description
        data["columns"] = [c.model_dump(**dump) for c in table.ordered_columns]
        if self.options.include_indexes:
            data["indexes"] = [i.model_dump(**dump) for i in table.indexes]
        if self.options.include_constraints:
            data["foreignKeys"] = [fk.model_dump(**dump) for fk in table.foreign_keys]
        return data

    def render_json(self, tables: List[Table]) -> str:
        payload: Dict[str, Any] = {"tables": [self.table_to_dict(t) for t in tables]}
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

    # -- Markdown -------------------------------------------------------------

    @staticmethod
    def _md(value: Any) -> str:
        text: str = "" if value is None else str(value)
        return text.replace("|", "\\|").replace("\r", " ").replace("\n", " ")

    def render_markdown(self, tables: List[Table]) -> str:
        md = self._md
        lines: List[str] = ["# 데이터베이스 스키마 문서", ""]

        lines.extend(["## 테이블 목록", "", "| 테이블명 | 설명 | 컬럼 수 |", "|---|---|---|"])
        for table in tables:
            lines.append(f"| {md(table.name)} | {md(table.description)} | {len(table.columns)} |")
        lines.append("")

        for table in tables:
            lines.append(f"## {md(table.name)}")
            lines.append("")
            if table.description:
                lines.extend([md(table.description), ""])

            lines.append("| 컬럼명 | 데이터 타입 | NULL 허용 | 기본키 | 자동증가 | 기본값 | 설명 |")
            lines.append("|---|---|---|---|---|---|---|")
            for column in table.ordered_columns:
                lines.append(
                    "| "
                    + " | ".join(
                        [
                            md(column.name),
                            md(_column_type(column)),
                            "Y" if column.nullable and not column.primary_key else "N",
                            "PK" if column.primary_key else "",
                            "Y" if column.identity else "",
                            md(column.default_value),
                            md(column.description),
                        ]
                    )
                    + " |"
                )
            lines.append("")

            if self.options.include_indexes and table.indexes:
                lines.extend(["### 인덱스", "", "| 인덱스명 | 유형 | 유니크 | 컬럼 |", "|---|---|---|---|"])
                for index in table.indexes:
                    columns: str = ", ".join(f"{ic.column_name} {ic.order}" for ic in index.columns)
                    lines.append(
                        f"| {md(index.name)} | {index.index_type} | "
                        f"{'Y' if index.unique else 'N'} | {md(columns)} |"
                    )
                lines.append("")

            if self.options.include_constraints and table.foreign_keys:
                lines.extend(["### 외래키", "", "| 제약조건명 | 컬럼 | 참조 |", "|---|---|---|"])
                for fk in table.foreign_keys:
                    target: str = f"{fk.referenced_table}({', '.join(fk.referenced_columns)})"
                    lines.append(
                        f"| {md(foreign_key_name(table, fk))} | "
                        f"{md(', '.join(fk.columns))} | {md(target)} |"
                    )
                lines.append("")

        return "\n".join(lines)

    # -- HTML ---------------------------------------------------------------

    def render_html(self, tables: List[Table]) -> str:
        lines: List[str] = [
            "<!DOCTYPE html>",
            '<html lang="ko">',
            "<head>",
            '<meta charset="utf-8" />',
            "<title>데이터베이스 스키마 문서</title>",
            "<style>",
            "table { border-collapse: collapse; }",
            "th, td { border: 1px solid #ccc; padding: 4px 8px; }",
            "</style>",
            "</head>",
            "<body>",
            "<h1>데이터베이스 스키마 문서</h1>",
        ]

        for table in tables:
            lines.append(f'<section id="{_esc(table.name)}">')
            lines.append(f"<h2>{_esc(table.name)}</h2>")
            if table.description:
                lines.append(f"<p>{_esc(table.description)}</p>")

            lines.append("<table>")
            lines.append(
                "<thead><tr><th>컬럼명</th><th>데이터 타입</th><th>NULL 허용</th>"
                "<th>기본키</th><th>자동증가</th><th>기본값</th><th>설명</th></tr></thead>"
            )
            lines.append("<tbody>")
            for column in table.ordered_columns:
                cells: List[str] = [
                    _esc(column.name),
                    _esc(_column_type(column)),
                    "Y" if column.nullable and not column.primary_key else "N",
                    "PK" if column.primary_key else "",
                    "Y" if column.identity else "",
                    _esc(column.default_value),
                    _esc(column.description),
                ]
                lines.append("<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>")
            lines.append("</tbody>")
            lines.append("</table>")

            if self.options.include_indexes and table.indexes:
                lines.append("<h3>인덱스</h3>")
                lines.append("<ul>")
                for index in table.indexes:
                    unique: str = " UNIQUE" if index.unique else ""
                    lines.append(
                        f"<li>{_esc(index.name)} ({_esc(index.index_type)}{unique}): "
                        f"{_esc(', '.join(index.column_names))}</li>"
                    )
                lines.append("</ul>")

            if self.options.include_constraints and table.foreign_keys:
                lines.append("<h3>외래키</h3>")
                lines.append("<ul>")
                for fk in table.foreign_keys:
                    lines.append(
                        f"<li>{_esc(foreign_key_name(table, fk))}: "
                        f"{_esc(', '.join(fk.columns))} → "
                        f"{_esc(fk.referenced_table)}({_esc(', '.join(fk.referenced_columns))})</li>"
                    )
                lines.append("</ul>")

            lines.append("</section>")

        lines.extend(["</body>", "</html>", ""])
        return "\n".join(lines)

    # -- CSV ----------------------------------------------------------------

    def render_csv(self, tables: List[Table]) -> str:
        buffer: io.StringIO = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for table in tables:
            for column in table.ordered_columns:
                writer.writerow(
                    [
                        table.name,
                        column.name,
                        column.data_type,
                        "" if column.max_length is None else column.max_length,
                        "" if column.precision is None else column.precision,
                        "" if column.scale is None else column.scale,
                        "true" if column.nullable and not column.primary_key else "false",
                        "true" if column.primary_key else "false",
                        "true" if column.identity else "false",
                        column.description,
                    ]
                )
        return buffer.getvalue()


# ---------------------------------------------------------------------------
# Functional façade
# ---------------------------------------------------------------------------


def export_schema(
    tables: Sequence[TableInput],
    fmt: Union[ExportFormat, str],
    options: Optional[ExportOptions] = None,
) -> ExportArtifact:
    """
    Render *tables* as *fmt*.

    Raises:
        ExportError: On an unknown format or an unrenderable graph.
    """
    return SchemaExporter(options).export(tables, fmt)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ExportArtifact",
    "ExportError",
    "SchemaExporter",
    "FORMAT_METADATA",
    "CSV_HEADER",
    "coerce_tables",
    "quote_identifier",
    "foreign_key_name",
    "export_schema",
]

logger.debug("schemaguard.exporters loaded — %d public symbols.", len(__all__))
