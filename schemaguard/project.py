# File: schemaguard/project.py
"""
NexaFlow SchemaGuard - Project Validator
=========================================
Runs the entity validators over every table, column and index of a
``Project`` and adds the project-wide structural checks (system columns,
duplicate names, primary keys, index / foreign-key column references).

Unlike the entity validators, this module **never fails fast**: every
finding is collected into one ``ProjectReport``.  The report is the single
canonical check set; the prefixed message list (``[테이블명] ...``) and the
structured error / warning lists are two views over the same findings.

Usage by downstream modules:
    from schemaguard.project import validate_project
    report = validate_project(project)
    if not report:
        print(report.format_report())
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set

from schemaguard.models import Column, EntityKind, Index, NamingRules, Project, Table
from schemaguard.rules import RuleConfigurationError, ValidationResult, compile_pattern
from schemaguard.validators import (
    SYSTEM_COLUMNS,
    check_default_value,
    check_deprecated_type,
    check_identity,
    check_primary_key_column,
    check_unused_properties,
    missing_system_columns,
    resolve_data_type,
    validate_column_description,
    validate_column_name,
    validate_data_type_properties,
    validate_index_name,
    validate_primary_key_column_name,
    validate_system_columns,
    validate_table_description,
    validate_table_name,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaguard.project")


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------


class Finding:
    """Lightweight structured finding (no Pydantic overhead)."""

    __slots__ = (
        "entity",
        "entity_id",
        "entity_name",
        "table_name",
        "field",
        "rule",
        "label",
        "message",
        "suggestion",
        "expected",
        "actual",
    )

    level: str = "error"

    def __init__(
        self,
        entity: str,
        entity_id: str,
        entity_name: str,
        table_name: str,
        field: str,
        rule: str,
        label: str,
        message: str,
        suggestion: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> None:
        self.entity: str = entity
        self.entity_id: str = entity_id
        self.entity_name: str = entity_name
        self.table_name: str = table_name
        self.field: str = field
        self.rule: str = rule
        self.label: str = label
        self.message: str = message
        self.suggestion: Optional[str] = suggestion
        self.expected: Optional[str] = expected
        self.actual: Optional[str] = actual

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    @property
    def prefixed_message(self) -> str:
        return f"[{self.label}] {self.message}"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.entity_id}.{self.field} ({self.rule}): {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "level": self.level,
            "entity": self.entity,
            "entityId": self.entity_id,
            "entityName": self.entity_name,
            "tableName": self.table_name,
            "field": self.field,
            "rule": self.rule,
            "message": self.message,
        }
        for key, value in (
            ("suggestion", self.suggestion),
            ("expected", self.expected),
            ("actual", self.actual),
        ):
            if value is not None:
                data[key] = value
        return data


class ValidationError(Finding):
    """A finding that makes the project invalid."""

    __slots__ = ()
    level = "error"


class ValidationWarning(Finding):
    """An advisory finding; the project stays valid."""

    __slots__ = ()
    level = "warning"


class NamingViolationError(ValueError):
    """Raised by ``admit_table`` when a table has errors and ``force`` is off."""

    def __init__(self, table_name: str, findings: List[Finding]) -> None:
        self.table_name: str = table_name
        self.findings: List[Finding] = findings
        super().__init__(
            f"Table '{table_name}' violates naming rules "
            f"({len(findings)} error(s)); pass force=True to accept it anyway."
        )


class _EntityRef:
    """Identity of the entity a finding is attached to."""

    __slots__ = ("entity", "entity_id", "entity_name", "table_name")

    def __init__(self, entity: EntityKind, entity_id: str, entity_name: str, table_name: str) -> None:
        self.entity: str = entity.value
        self.entity_id: str = entity_id
        self.entity_name: str = entity_name
        self.table_name: str = table_name

    @classmethod
    def for_table(cls, table: Table) -> "_EntityRef":
        return cls(EntityKind.TABLE, table.id or table.name, table.name, table.name)

    @classmethod
    def for_column(cls, table: Table, column: Column) -> "_EntityRef":
        return cls(
            EntityKind.COLUMN,
            column.id or f"{table.name}.{column.name}",
            column.name,
            table.name,
        )

    @classmethod
    def for_index(cls, table: Table, index: Index) -> "_EntityRef":
        return cls(
            EntityKind.INDEX,
            index.id or f"{table.name}.{index.name}",
            index.name,
            table.name,
        )


# ---------------------------------------------------------------------------
# Compliance score
# ---------------------------------------------------------------------------

ERROR_WEIGHT: int = 2
WARNING_WEIGHT: int = 1
MAX_WEIGHT: int = 100


def compliance_score(error_count: int, warning_count: int) -> int:
    """
    Naming-compliance score in ``0..100``.

    Errors weigh 2, warnings 1, against a fixed ``MAX_WEIGHT`` of 100, so each
    additional finding costs at least one point until the score reaches 0.
    Project size does not dilute the penalty.

    Examples:
        >>> compliance_score(0, 0)
        100
        >>> compliance_score(0, 1)
        99
        >>> compliance_score(1, 0)
        98
    """
    weighted: int = ERROR_WEIGHT * max(error_count, 0) + WARNING_WEIGHT * max(warning_count, 0)
    if weighted == 0:
        return 100
    return max(0, round((1 - weighted / MAX_WEIGHT) * 100))


# ---------------------------------------------------------------------------
# Report container
# ---------------------------------------------------------------------------


class ProjectReport:
    """
    Accumulates ``Finding`` instances for one project (or one table).

    Provides O(1) access to counts and O(n) filtering.
    """

    __slots__ = ("_items", "project_name", "entity_count")

    def __init__(self, project_name: str = "project", entity_count: int = 0) -> None:
        self._items: List[Finding] = []
        self.project_name: str = project_name
        self.entity_count: int = entity_count

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        ref: _EntityRef,
        field: str,
        rule: str,
        label: str,
        message: str,
        suggestion: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> None:
        self._items.append(
            ValidationError(
                ref.entity, ref.entity_id, ref.entity_name, ref.table_name,
                field, rule, label, message, suggestion, expected, actual,
            )
        )

    def add_warning(
        self,
        ref: _EntityRef,
        field: str,
        rule: str,
        label: str,
        message: str,
        suggestion: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> None:
        self._items.append(
            ValidationWarning(
                ref.entity, ref.entity_id, ref.entity_name, ref.table_name,
                field, rule, label, message, suggestion, expected, actual,
            )
        )

    def record(
        self,
        ref: _EntityRef,
        field: str,
        label: str,
        result: ValidationResult,
        warning: bool = False,
        actual: Optional[str] = None,
    ) -> None:
        """Add a finding for *result* if it failed; no-op for a passing result."""
        if result.is_valid:
            return
        add = self.add_warning if warning else self.add_error
        add(
            ref,
            field,
            result.rule or "invalid",
            label,
            result.message,
            suggestion=result.suggestion,
            actual=actual,
        )

    def merge(self, other: "ProjectReport") -> None:
        """Merge another report into this one — O(k) where k = len(other)."""
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[Finding]:
        return [f for f in self._items if f.is_error]

    @property
    def warnings(self) -> List[Finding]:
        return [f for f in self._items if f.is_warning]

    @property
    def all_items(self) -> List[Finding]:
        return list(self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for f in self._items if f.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for f in self._items if f.is_warning)

    @property
    def has_errors(self) -> bool:
        return any(f.is_error for f in self._items)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def messages(self) -> List[str]:
        """Prefixed messages (``[컬럼명] ...``) for every error, in report order."""
        return [f.prefixed_message for f in self._items if f.is_error]

    @property
    def score(self) -> int:
        return compliance_score(self.error_count, self.warning_count)

    def findings_for(self, entity_id: str) -> List[Finding]:
        return [f for f in self._items if f.entity_id == entity_id]

    def by_entity(self) -> Dict[str, List[Finding]]:
        """Findings grouped by ``entity_id``, in first-seen order."""
        grouped: Dict[str, List[Finding]] = {}
        for finding in self._items:
            grouped.setdefault(finding.entity_id, []).append(finding)
        return grouped

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"score {self.score}/100."
        )

    def __repr__(self) -> str:
        return f"<ProjectReport {self.project_name}: {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_warnings: bool = True) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_warnings and item.is_warning:
                continue
            prefix: str = "❌" if item.is_error else "⚠️"
            lines.append(f"  {prefix} {item.entity_id}: {item.prefixed_message}")
            if item.suggestion:
                lines.append(f"       suggestion: {item.suggestion}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": self.project_name,
            "isValid": self.is_valid,
            "score": self.score,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "errors": [f.to_dict() for f in self.errors],
            "warnings": [f.to_dict() for f in self.warnings],
        }


# ---------------------------------------------------------------------------
# Per-entity checks
# ---------------------------------------------------------------------------


def _next_free_name(name: str, taken: Set[str]) -> str:
    n: int = 2
    while f"{name}_{n}".upper() in taken:
        n += 1
    return f"{name}_{n}"


def _check_column(
    report: ProjectReport,
    table: Table,
    column: Column,
    rules: Optional[NamingRules],
) -> None:
    ref: _EntityRef = _EntityRef.for_column(table, column)

    report.record(ref, "name", "컬럼명", validate_column_name(column.name, rules, table.name), actual=column.name)
    if column.primary_key:
        report.record(
            ref,
            "name",
            "PK 컬럼명",
            validate_primary_key_column_name(column.name, table.name, rules),
            actual=column.name,
        )

    description: ValidationResult = validate_column_description(column.description, column.name)
    if not description:
        report.record(ref, "description", "Description", description)
    elif description.suggestion:
        report.add_warning(
            ref, "description", description.rule or "description_format",
            "Description", description.suggestion,
        )

    report.record(
        ref,
        "dataType",
        "데이터 타입",
        validate_data_type_properties(
            column.data_type, column.max_length, column.precision, column.scale
        ),
        actual=str(column.data_type),
    )

    data_type = resolve_data_type(column.data_type)
    if data_type is None:
        return

    report.record(
        ref, "dataType", "데이터 타입",
        check_unused_properties(data_type, column.max_length, column.precision, column.scale),
        warning=True,
    )
    report.record(ref, "dataType", "데이터 타입", check_deprecated_type(data_type), warning=True)

    field, identity = check_identity(
        data_type, column.identity, column.identity_seed, column.identity_increment
    )
    report.record(ref, field, "컬럼", identity)

    field, primary_key = check_primary_key_column(column, data_type)
    report.record(ref, field, "기본키", primary_key)

    report.record(
        ref, "defaultValue", "컬럼",
        check_default_value(data_type, column.default_value),
        warning=True,
        actual=column.default_value,
    )


def _check_index(
    report: ProjectReport,
    table: Table,
    index: Index,
    rules: Optional[NamingRules],
) -> None:
    ref: _EntityRef = _EntityRef.for_index(table, index)

    report.record(
        ref,
        "name",
        "인덱스명",
        validate_index_name(
            index.name, index.index_type, index.unique, table.name, index.column_names, rules
        ),
        actual=index.name,
    )

    if not index.columns:
        report.add_error(
            ref, "columns", "index_columns_required", "인덱스 컬럼",
            "최소 1개 이상의 컬럼을 선택해야 합니다",
        )

    for column_name in index.column_names:
        if table.get_column(column_name) is None:
            report.add_error(
                ref, "columns", "unknown_column", "인덱스 컬럼",
                f"존재하지 않는 컬럼입니다: {column_name}",
                actual=column_name,
            )


def _check_foreign_keys(
    report: ProjectReport,
    table: Table,
    project: Optional[Project],
) -> None:
    ref: _EntityRef = _EntityRef.for_table(table)

    for fk in table.foreign_keys:
        for column_name in fk.columns:
            if table.get_column(column_name) is None:
                report.add_error(
                    ref, "foreignKeys", "unknown_column", "외래키",
                    f"존재하지 않는 컬럼입니다: {column_name}",
                    actual=column_name,
                )

        if len(fk.columns) != len(fk.referenced_columns):
            report.add_error(
                ref, "foreignKeys", "column_count", "외래키",
                "외래키 컬럼 수가 참조 컬럼 수와 일치하지 않습니다",
            )

        # A lone table has no siblings to resolve the reference against
        if project is None:
            continue

        target: Optional[Table] = project.get_table(fk.referenced_table)
        if target is None:
            report.add_error(
                ref, "foreignKeys", "unknown_table", "외래키",
                f"참조 테이블이 존재하지 않습니다: {fk.referenced_table}",
                actual=fk.referenced_table,
            )
            continue

        for column_name in fk.referenced_columns:
            if target.get_column(column_name) is None:
                report.add_error(
                    ref, "foreignKeys", "unknown_column", "외래키",
                    f"참조 컬럼이 존재하지 않습니다: {target.name}.{column_name}",
                    actual=column_name,
                )


def _check_table(
    report: ProjectReport,
    table: Table,
    rules: Optional[NamingRules],
    project: Optional[Project] = None,
) -> None:
    ref: _EntityRef = _EntityRef.for_table(table)

    report.record(ref, "name", "테이블명", validate_table_name(table.name, rules), actual=table.name)
    report.record(
        ref, "description", "Description",
        validate_table_description(table.description, table.name),
    )

    if not table.columns:
        report.add_error(
            ref, "columns", "columns_required", "컬럼",
            "테이블에는 최소 1개 이상의 컬럼이 필요합니다",
        )

    system: ValidationResult = validate_system_columns(table.columns)
    if not system:
        missing: List[str] = missing_system_columns(table.columns)
        report.add_error(
            ref,
            "columns",
            system.rule or "system_columns",
            "시스템 속성",
            system.message,
            suggestion=system.suggestion,
            expected=", ".join(missing or SYSTEM_COLUMNS),
        )

    primary_keys: List[Column] = table.primary_key_columns
    if table.columns and not primary_keys:
        report.add_error(
            ref, "primaryKey", "primary_key_required", "기본키",
            "기본키가 정의되지 않았습니다",
        )
    elif len(primary_keys) > 1:
        report.add_warning(
            ref, "primaryKey", "composite_key", "기본키",
            f"복합 기본키가 사용되었습니다 ({len(primary_keys)}개 컬럼)",
        )

    taken: Set[str] = {c.name.upper() for c in table.columns}
    seen: Set[str] = set()
    for column in table.ordered_columns:
        upper: str = column.name.upper()
        if upper in seen:
            suggestion: str = _next_free_name(column.name, taken)
            taken.add(suggestion.upper())
            report.add_error(
                _EntityRef.for_column(table, column),
                "name", "duplicate_name", "컬럼명",
                f"중복된 컬럼명입니다: {column.name}",
                suggestion=suggestion,
                actual=column.name,
            )
        seen.add(upper)
        _check_column(report, table, column, rules)

    for index in table.indexes:
        _check_index(report, table, index, rules)

    _check_foreign_keys(report, table, project)


# ---------------------------------------------------------------------------
# Rule-set sanity
# ---------------------------------------------------------------------------

_PATTERN_FIELDS: List[str] = ["table_pattern", "column_pattern", "index_pattern"]


def _usable_rules(
    report: ProjectReport,
    project: Project,
) -> Optional[NamingRules]:
    """
    Return the project's rules with any non-compiling pattern removed.

    Each broken pattern becomes one ``rule_configuration`` finding so the rest
    of the project can still be checked.
    """
    rules: Optional[NamingRules] = project.naming_rules
    if rules is None:
        return None

    ref = _EntityRef(EntityKind.TABLE, project.id or project.name, project.name, "")
    broken: Dict[str, Any] = {}
    for field in _PATTERN_FIELDS:
        pattern: Optional[str] = getattr(rules, field)
        if not pattern:
            continue
        try:
            compile_pattern(pattern)
        except RuleConfigurationError as exc:
            report.record(ref, "namingRules", "명명 규칙", exc.to_result())
            broken[field] = None

    if broken:
        return rules.model_copy(update=broken)
    return rules


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def validate_project(project: Project) -> ProjectReport:
    """
    **Full-project validation entry point.**

    Checks every table, column and index against the project's naming rules,
    then the project-wide invariants.  Never fails fast.

    Complexity: O(T + C + I) — linear in total entities.
    """
    logger.info(
        "Starting project validation — %s: %d tables, %d columns, %d indexes",
        project.name,
        project.table_count,
        project.total_columns,
        project.total_indexes,
    )

    report: ProjectReport = ProjectReport(project.name, project.entity_count)
    rules: Optional[NamingRules] = _usable_rules(report, project)

    taken: Set[str] = {t.name.upper() for t in project.tables}
    seen: Set[str] = set()
    for table in project.tables:
        upper: str = table.name.upper()
        if upper in seen:
            suggestion: str = _next_free_name(table.name, taken)
            taken.add(suggestion.upper())
            report.add_error(
                _EntityRef.for_table(table),
                "name", "duplicate_name", "테이블명",
                f"중복된 테이블명입니다: {table.name}",
                suggestion=suggestion,
                actual=table.name,
            )
        seen.add(upper)

        logger.debug("Validating table: %s", table.name)
        _check_table(report, table, rules, project)

    if report.has_errors:
        logger.error(
            "Project validation FAILED with %d error(s). %s",
            report.error_count,
            report.summary(),
        )
    else:
        logger.info("Project validation PASSED. %s", report.summary())
    return report


def collect_findings(project: Project) -> List[Finding]:
    """Every finding of ``validate_project``, errors and warnings interleaved in check order."""
    return validate_project(project).all_items


def validate_project_messages(project: Project) -> List[str]:
    """The aggregated ``[라벨] 메시지`` list (errors only)."""
    return validate_project(project).messages


def admit_table(
    table: Table,
    rules: Optional[NamingRules] = None,
    *,
    force: bool = False,
) -> ProjectReport:
    """
    Gate for collaborators that create or save a single table.

    Returns the table's report.  When it has errors, raises
    ``NamingViolationError`` unless *force* is set, in which case the
    violation is logged and the table is admitted anyway.

    Raises:
        NamingViolationError: On errors without ``force``.
        RuleConfigurationError: If a rule pattern does not compile.
    """
    report: ProjectReport = ProjectReport(
        table.name, 1 + len(table.columns) + len(table.indexes)
    )
    _check_table(report, table, rules)

    if report.has_errors:
        if not force:
            raise NamingViolationError(table.name, report.errors)
        logger.warning(
            "Table '%s' admitted with %d naming error(s) (force=True).",
            table.name,
            report.error_count,
        )
    return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Finding",
    "ValidationError",
    "ValidationWarning",
    "NamingViolationError",
    "ProjectReport",
    "compliance_score",
    "validate_project",
    "collect_findings",
    "validate_project_messages",
    "admit_table",
]

logger.debug("schemaguard.project loaded — %d public symbols.", len(__all__))
