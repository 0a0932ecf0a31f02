# File: schemaguard/models.py
"""
NexaFlow SchemaGuard - Core Data Models
========================================
Pydantic V2 models representing an MSSQL schema project (tables, columns,
indexes, foreign keys), the naming rule set that governs it, and the export
options consumed by the exporters.

These models are deliberately *permissive*: structural problems such as a
nullable primary key, a VARCHAR without length or duplicate column names are
reported by ``schemaguard.validators`` / ``schemaguard.project`` as findings,
so the models must still load such entities.  Only values that cannot be
represented at all (unknown data types, malformed regular expressions) are
rejected at construction.

Every field is snake_case in Python and carries a camelCase alias
(``dataType``, ``maxLength``, ``orderIndex`` ...); both spellings are accepted
on input.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaguard.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class CaseConvention(str, Enum):
    """Identifier case conventions a rule set may enforce."""

    UPPER = "UPPER"
    LOWER = "LOWER"
    PASCAL = "PASCAL"
    SNAKE = "SNAKE"


class MSSQLDataType(str, Enum):
    """The closed set of SQL Server column types understood by the engine."""

    # Character
    CHAR = "CHAR"
    VARCHAR = "VARCHAR"
    NCHAR = "NCHAR"
    NVARCHAR = "NVARCHAR"
    TEXT = "TEXT"
    NTEXT = "NTEXT"

    # Integer
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    INT = "INT"
    BIGINT = "BIGINT"

    # Exact / approximate numeric
    DECIMAL = "DECIMAL"
    NUMERIC = "NUMERIC"
    FLOAT = "FLOAT"
    REAL = "REAL"
    MONEY = "MONEY"
    SMALLMONEY = "SMALLMONEY"

    # Date / Time
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    DATETIME2 = "DATETIME2"
    SMALLDATETIME = "SMALLDATETIME"
    DATETIMEOFFSET = "DATETIMEOFFSET"

    # Binary
    BINARY = "BINARY"
    VARBINARY = "VARBINARY"
    IMAGE = "IMAGE"

    # Special
    BIT = "BIT"
    UNIQUEIDENTIFIER = "UNIQUEIDENTIFIER"
    XML = "XML"
    JSON = "JSON"

    @property
    def requires_length(self) -> bool:
        return self in _LENGTH_TYPES

    @property
    def max_length_limit(self) -> Optional[int]:
        """4000 for the N-prefixed (UTF-16) types, 8000 for other length types."""
        if not self.requires_length:
            return None
        return 4000 if self.value.startswith("N") else 8000

    @property
    def requires_precision(self) -> bool:
        return self in _PRECISION_TYPES

    @property
    def is_integer(self) -> bool:
        return self in _INTEGER_TYPES

    @property
    def is_numeric(self) -> bool:
        return self in _NUMERIC_TYPES

    @property
    def is_temporal(self) -> bool:
        return self in _TEMPORAL_TYPES

    @property
    def is_deprecated(self) -> bool:
        return self in _DEPRECATED_TYPES

    @property
    def can_be_primary_key(self) -> bool:
        return self not in _NON_KEY_TYPES

    def render(
        self,
        max_length: Optional[int] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
    ) -> str:
        """
        Render the type as it appears in DDL.

        Examples:
            >>> MSSQLDataType.NVARCHAR.render(100)
            'NVARCHAR(100)'
            >>> MSSQLDataType.DECIMAL.render(precision=18, scale=2)
            'DECIMAL(18,2)'
            >>> MSSQLDataType.INT.render(100)
            'INT'
        """
        if self.requires_length and max_length is not None:
            return f"{self.value}({max_length})"
        if self.requires_precision and precision is not None:
            if scale is not None:
                return f"{self.value}({precision},{scale})"
            return f"{self.value}({precision})"
        return self.value


_LENGTH_TYPES: FrozenSet[MSSQLDataType] = frozenset(
    {
        MSSQLDataType.CHAR,
        MSSQLDataType.VARCHAR,
        MSSQLDataType.NCHAR,
        MSSQLDataType.NVARCHAR,
        MSSQLDataType.BINARY,
        MSSQLDataType.VARBINARY,
    }
)
_PRECISION_TYPES: FrozenSet[MSSQLDataType] = frozenset(
    {MSSQLDataType.DECIMAL, MSSQLDataType.NUMERIC}
)
_INTEGER_TYPES: FrozenSet[MSSQLDataType] = frozenset(
    {
        MSSQLDataType.TINYINT,
        MSSQLDataType.SMALLINT,
        MSSQLDataType.INT,
        MSSQLDataType.BIGINT,
    }
)
_NUMERIC_TYPES: FrozenSet[MSSQLDataType] = _INTEGER_TYPES | frozenset(
    {
        MSSQLDataType.DECIMAL,
        MSSQLDataType.NUMERIC,
        MSSQLDataType.FLOAT,
        MSSQLDataType.REAL,
        MSSQLDataType.MONEY,
        MSSQLDataType.SMALLMONEY,
    }
)
_TEMPORAL_TYPES: FrozenSet[MSSQLDataType] = frozenset(
    {
        MSSQLDataType.DATE,
        MSSQLDataType.DATETIME,
        MSSQLDataType.DATETIME2,
        MSSQLDataType.SMALLDATETIME,
    }
)
_DEPRECATED_TYPES: FrozenSet[MSSQLDataType] = frozenset(
    {MSSQLDataType.TEXT, MSSQLDataType.NTEXT, MSSQLDataType.IMAGE}
)
_NON_KEY_TYPES: FrozenSet[MSSQLDataType] = frozenset(
    {
        MSSQLDataType.TEXT,
        MSSQLDataType.NTEXT,
        MSSQLDataType.IMAGE,
        MSSQLDataType.XML,
    }
)


class IndexType(str, Enum):
    """SQL Server index storage kinds."""

    CLUSTERED = "CLUSTERED"
    NONCLUSTERED = "NONCLUSTERED"


class SortOrder(str, Enum):
    """Per-column sort direction inside an index."""

    ASC = "ASC"
    DESC = "DESC"


class ReferentialAction(str, Enum):
    """Foreign-key ON DELETE / ON UPDATE behaviour."""

    NO_ACTION = "NO ACTION"
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"


class EntityKind(str, Enum):
    """Entity kinds findings and suggestions refer to."""

    TABLE = "TABLE"
    COLUMN = "COLUMN"
    INDEX = "INDEX"


class ExportFormat(str, Enum):
    """Output formats supported by ``schemaguard.exporters``."""

    SQL = "sql"
    JSON = "json"
    MARKDOWN = "markdown"
    HTML = "html"
    CSV = "csv"


# ---------------------------------------------------------------------------
# Mixin: shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

_FROZEN_CONFIG: ConfigDict = ConfigDict(**{**_SHARED_CONFIG, "frozen": True})


# ---------------------------------------------------------------------------
# Naming rules
# ---------------------------------------------------------------------------


class NamingRules(BaseModel):
    """
    Organisation-specific identifier rule set, owned by a ``Project``.

    Immutable: one instance describes the rules of a whole validation pass.
    When no rule is configured (``is_empty``) the validators fall back to the
    default "uppercase-or-PascalCase" convention.

    Patterns are stored as given; a pattern that does not compile surfaces as
    ``RuleConfigurationError`` from the validators, or as a
    ``rule_configuration`` finding in a project report.
    """

    model_config = _FROZEN_CONFIG

    table_pattern: Optional[str] = Field(
        default=None, alias="tablePattern", description="Full-match regex for table names."
    )
    column_pattern: Optional[str] = Field(
        default=None, alias="columnPattern", description="Full-match regex for column names."
    )
    index_pattern: Optional[str] = Field(
        default=None, alias="indexPattern", description="Full-match regex for index names."
    )
    table_prefix: Optional[str] = Field(
        default=None, alias="tablePrefix", description="Required table name prefix."
    )
    table_suffix: Optional[str] = Field(
        default=None, alias="tableSuffix", description="Required table name suffix."
    )
    enforce_case: Optional[CaseConvention] = Field(
        default=None, alias="enforceCase", description="Case convention for identifiers."
    )
    enforce_upper_case: bool = Field(
        default=False,
        alias="enforceUpperCase",
        description="SQL Server uppercase override (wins over enforce_case).",
    )
    enforce_table_column_naming: bool = Field(
        default=False,
        alias="enforceTableColumnNaming",
        description="Rewrite standalone PK names to '{TABLE}_{NAME}'.",
    )
    reserved_words: List[str] = Field(
        default_factory=list,
        alias="reservedWords",
        description="Identifiers that may not be used (case-insensitive).",
    )

    @property
    def is_empty(self) -> bool:
        """True when no rule at all is configured."""
        return not any(
            (
                self.table_pattern,
                self.column_pattern,
                self.index_pattern,
                self.table_prefix,
                self.table_suffix,
                self.enforce_case,
                self.enforce_upper_case,
                self.enforce_table_column_naming,
                self.reserved_words,
            )
        )

    def is_reserved(self, name: str) -> bool:
        upper: str = name.upper()
        return any(word.upper() == upper for word in self.reserved_words)

    def __repr__(self) -> str:
        return f"<NamingRules case={self.enforce_case} upper={self.enforce_upper_case}>"


# ---------------------------------------------------------------------------
# Column / Index / Foreign key
# ---------------------------------------------------------------------------


class Column(BaseModel):
    """
    A single column of a table.

    ``order_index`` is 1-based and defines physical and display order; when
    it is missing, the declaration position is used instead.
    """

    model_config = _SHARED_CONFIG

    id: Optional[str] = Field(default=None, description="Caller-side identifier.")
    name: str = Field(..., description="Column name.")
    description: str = Field(default="", description="Localised (Korean) description.")
    data_type: MSSQLDataType = Field(..., alias="dataType", description="SQL Server type.")
    max_length: Optional[int] = Field(
        default=None, alias="maxLength", description="Length for character / binary types."
    )
    precision: Optional[int] = Field(default=None, description="Precision for DECIMAL / NUMERIC.")
    scale: Optional[int] = Field(default=None, description="Scale for DECIMAL / NUMERIC.")
    nullable: bool = Field(default=True, description="Whether the column allows NULL.")
    primary_key: bool = Field(default=False, alias="primaryKey", description="Part of the PK?")
    identity: bool = Field(default=False, description="IDENTITY column?")
    identity_seed: Optional[int] = Field(default=None, alias="identitySeed")
    identity_increment: Optional[int] = Field(default=None, alias="identityIncrement")
    default_value: Optional[str] = Field(
        default=None, alias="defaultValue", description="Raw SQL default expression."
    )
    order_index: Optional[int] = Field(
        default=None, alias="orderIndex", description="1-based position within the table."
    )

    @property
    def type_enum(self) -> MSSQLDataType:
        return MSSQLDataType(self.data_type)

    @property
    def sql_type(self) -> str:
        return self.type_enum.render(self.max_length, self.precision, self.scale)

    def __repr__(self) -> str:
        flags: str = " PK" if self.primary_key else ""
        return f"<Column {self.name} {self.data_type}{flags}>"


class IndexColumn(BaseModel):
    """Reference to a table column inside an index, with its sort direction."""

    model_config = _SHARED_CONFIG

    column_name: str = Field(..., alias="columnName", description="Referenced column name.")
    order: SortOrder = Field(default=SortOrder.ASC, description="Sort direction.")


class Index(BaseModel):
    """A table index.  Its naming prefix is derived from ``(unique, type)``."""

    model_config = _SHARED_CONFIG

    id: Optional[str] = Field(default=None, description="Caller-side identifier.")
    name: str = Field(..., description="Index name.")
    index_type: IndexType = Field(
        default=IndexType.NONCLUSTERED, alias="type", description="CLUSTERED / NONCLUSTERED."
    )
    unique: bool = Field(default=False, description="UNIQUE index?")
    columns: List[IndexColumn] = Field(default_factory=list, description="Indexed columns.")

    @property
    def column_names(self) -> List[str]:
        return [c.column_name for c in self.columns]

    @property
    def expected_prefix(self) -> str:
        return index_prefix(self.index_type, self.unique)

    def __repr__(self) -> str:
        return f"<Index {self.name} {self.index_type} unique={self.unique}>"


class ForeignKey(BaseModel):
    """A foreign-key relationship from this table's columns to another table."""

    model_config = _SHARED_CONFIG

    name: Optional[str] = Field(default=None, description="Constraint name (derived if empty).")
    columns: List[str] = Field(..., min_length=1, description="Local column names.")
    referenced_table: str = Field(..., alias="referencedTable", min_length=1)
    referenced_columns: List[str] = Field(..., alias="referencedColumns", min_length=1)
    on_delete: ReferentialAction = Field(default=ReferentialAction.NO_ACTION, alias="onDelete")
    on_update: ReferentialAction = Field(default=ReferentialAction.NO_ACTION, alias="onUpdate")


# ---------------------------------------------------------------------------
# Table / Project
# ---------------------------------------------------------------------------


class Table(BaseModel):
    """
    A single table: ordered columns, indexes and outgoing foreign keys.

    Column order is always taken from ``ordered_columns`` (``order_index``
    ascending, ties broken by declaration position) so that every exporter
    renders the same sequence.
    """

    model_config = _SHARED_CONFIG

    id: Optional[str] = Field(default=None, description="Caller-side identifier.")
    name: str = Field(..., description="Table name.")
    description: str = Field(default="", description="Localised (Korean) description.")
    columns: List[Column] = Field(default_factory=list, description="Columns.")
    indexes: List[Index] = Field(default_factory=list, description="Indexes.")
    foreign_keys: List[ForeignKey] = Field(
        default_factory=list, alias="foreignKeys", description="Outgoing foreign keys."
    )

    @property
    def ordered_columns(self) -> List[Column]:
        positioned = [
            (col.order_index if col.order_index is not None else pos + 1, pos, col)
            for pos, col in enumerate(self.columns)
        ]
        positioned.sort(key=lambda item: (item[0], item[1]))
        return [col for _, _, col in positioned]

    @property
    def primary_key_columns(self) -> List[Column]:
        return [c for c in self.ordered_columns if c.primary_key]

    @property
    def has_composite_key(self) -> bool:
        return len(self.primary_key_columns) > 1

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.ordered_columns]

    def get_column(self, name: str) -> Optional[Column]:
        """Case-insensitive column lookup (SQL Server default collation)."""
        wanted: str = name.upper()
        for col in self.columns:
            if col.name.upper() == wanted:
                return col
        return None

    def __repr__(self) -> str:
        return (
            f"<Table {self.name} "
            f"({len(self.columns)} cols, {len(self.indexes)} idx, "
            f"{len(self.foreign_keys)} FKs)>"
        )


class Project(BaseModel):
    """
    The root model: a named collection of tables plus its naming rules.

    ``naming_rules`` may be absent, in which case the default uppercase
    conventions apply.
    """

    model_config = _SHARED_CONFIG

    id: Optional[str] = Field(default=None, description="Caller-side identifier.")
    name: str = Field(default="project", min_length=1, description="Project name.")
    description: str = Field(default="", description="Project description.")
    naming_rules: Optional[NamingRules] = Field(default=None, alias="namingRules")
    tables: List[Table] = Field(default_factory=list, description="All tables.")

    @property
    def table_count(self) -> int:
        return len(self.tables)

    @property
    def total_columns(self) -> int:
        return sum(len(t.columns) for t in self.tables)

    @property
    def total_indexes(self) -> int:
        return sum(len(t.indexes) for t in self.tables)

    @property
    def entity_count(self) -> int:
        return self.table_count + self.total_columns + self.total_indexes

    def get_table(self, name: str) -> Optional[Table]:
        wanted: str = name.upper()
        for table in self.tables:
            if table.name.upper() == wanted:
                return table
        return None

    def __repr__(self) -> str:
        return (
            f"<Project {self.name}: {self.table_count} tables, "
            f"{self.total_columns} columns, {self.total_indexes} indexes>"
        )


# ---------------------------------------------------------------------------
# Export options
# ---------------------------------------------------------------------------


class ExportOptions(BaseModel):
    """
    Settings consumed by ``SchemaExporter``.

    The three ``include_*`` toggles are independent of each other and of the
    output format; the remaining flags only affect SQL output.
    """

    model_config = _SHARED_CONFIG

    format: ExportFormat = Field(default=ExportFormat.SQL, description="Output format.")
    include_comments: bool = Field(default=True, alias="includeComments")
    include_indexes: bool = Field(default=True, alias="includeIndexes")
    include_constraints: bool = Field(default=True, alias="includeConstraints")

    # -- SQL-only flags -----------------------------------------------------
    include_drop_statements: bool = Field(default=False, alias="includeDropStatements")
    include_existence_checks: bool = Field(default=False, alias="includeExistenceChecks")
    batch_script: bool = Field(
        default=False,
        alias="batchScript",
        description="Wrap the script in SET NOCOUNT / XACT_ABORT and a transaction.",
    )
    schema_name: Optional[str] = Field(
        default=None, alias="schemaName", description="Qualify objects as [schema].[table]."
    )

    # -- Artifact naming ----------------------------------------------------
    filename_stem: str = Field(default="schema", min_length=1, alias="filenameStem")
    timestamp: Optional[str] = Field(
        default=None,
        description="Caller-supplied filename suffix; the exporter never reads the clock.",
    )


# ---------------------------------------------------------------------------
# Helpers shared by validators and exporters
# ---------------------------------------------------------------------------

def index_prefix(index_type: str, unique: bool) -> str:
    """
    Naming prefix implied by an index's ``(type, unique)`` pair.

    ``PK__`` for unique clustered, ``CIDX__`` for clustered, ``IDX__``
    otherwise.
    """
    clustered: bool = str(getattr(index_type, "value", index_type)).upper() == "CLUSTERED"
    if clustered and unique:
        return "PK__"
    if clustered:
        return "CIDX__"
    return "IDX__"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CaseConvention",
    "MSSQLDataType",
    "IndexType",
    "SortOrder",
    "ReferentialAction",
    "EntityKind",
    "ExportFormat",
    "NamingRules",
    "Column",
    "IndexColumn",
    "Index",
    "ForeignKey",
    "Table",
    "Project",
    "ExportOptions",
    "index_prefix",
]

logger.debug("schemaguard.models loaded — %d public symbols.", len(__all__))
