# File: schemaguard/advanced.py
"""
NexaFlow SchemaGuard - Advanced Schema Checks
==============================================
Performance and security advisories layered on top of the naming report.

``validate_advanced`` runs ``validate_project`` and appends one
``ValidationWarning`` per advisory, so the naming verdict (``is_valid``)
never changes; only the warning count and the score do.

Performance advisories (``field`` is the offending table / column attribute):
    - ``performance_no_index``        more than 5 columns and no index
    - ``performance_column_count``    more than 50 columns
    - ``performance_long_string``     VARCHAR / NVARCHAR longer than 4000
    - ``performance_no_clustered``    neither a PK nor a clustered index

Security advisories:
    - ``security_password_type``      password column that is not a string
    - ``security_password_length``    password column shorter than 60
    - ``security_pii_nullable``       nullable EMAIL / PHONE / SSN column
"""

from __future__ import annotations

import logging
from typing import FrozenSet, List, Tuple

from schemaguard.models import Column, IndexType, MSSQLDataType, Project, Table
from schemaguard.project import ProjectReport, _EntityRef, validate_project
from schemaguard.validators import resolve_data_type

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaguard.advanced")

# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

INDEX_ADVISORY_COLUMN_COUNT: int = 5
MAX_RECOMMENDED_COLUMNS: int = 50
LONG_STRING_LENGTH: int = 4000
MIN_PASSWORD_LENGTH: int = 60

_STRING_TYPES: FrozenSet[MSSQLDataType] = frozenset({MSSQLDataType.VARCHAR, MSSQLDataType.NVARCHAR})
_PASSWORD_MARKERS: Tuple[str, ...] = ("PASSWORD", "PWD")
_PII_MARKERS: Tuple[str, ...] = ("EMAIL", "PHONE", "SSN")

PERFORMANCE_LABEL: str = "성능"
SECURITY_LABEL: str = "보안"


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


def _check_performance(report: ProjectReport, table: Table) -> None:
    ref: _EntityRef = _EntityRef.for_table(table)
    column_count: int = len(table.columns)

    if column_count > INDEX_ADVISORY_COLUMN_COUNT and not table.indexes:
        report.add_warning(
            ref, "indexes", "performance_no_index", PERFORMANCE_LABEL,
            f"테이블 '{table.name}'에 인덱스가 없습니다. 성능 저하가 예상됩니다.",
        )

    if column_count > MAX_RECOMMENDED_COLUMNS:
        report.add_warning(
            ref, "columns", "performance_column_count", PERFORMANCE_LABEL,
            f"테이블 '{table.name}'의 컬럼 수가 {column_count}개로 과도합니다. 정규화를 고려하세요.",
            expected=f"<= {MAX_RECOMMENDED_COLUMNS}",
            actual=str(column_count),
        )

    for column in table.ordered_columns:
        if (
            resolve_data_type(column.data_type) in _STRING_TYPES
            and column.max_length is not None
            and column.max_length > LONG_STRING_LENGTH
        ):
            report.add_warning(
                _EntityRef.for_column(table, column), "maxLength", "performance_long_string",
                PERFORMANCE_LABEL,
                f"테이블 '{table.name}'의 컬럼 '{column.name}'의 길이가 "
                f"{column.max_length}로 과도합니다.",
                actual=str(column.max_length),
            )

    has_clustered: bool = any(
        index.index_type == IndexType.CLUSTERED.value for index in table.indexes
    )
    if not has_clustered and not table.primary_key_columns:
        report.add_warning(
            ref, "indexes", "performance_no_clustered", PERFORMANCE_LABEL,
            f"테이블 '{table.name}'에 클러스터드 인덱스나 기본키가 없습니다.",
        )


# ---------------------------------------------------------------------------
# Security
# ---------------------------------------------------------------------------


def _check_column_security(report: ProjectReport, table: Table, column: Column) -> None:
    upper: str = column.name.upper()
    ref: _EntityRef = _EntityRef.for_column(table, column)

    if any(marker in upper for marker in _PASSWORD_MARKERS):
        if resolve_data_type(column.data_type) not in _STRING_TYPES:
            report.add_warning(
                ref, "dataType", "security_password_type", SECURITY_LABEL,
                f"비밀번호 컬럼 '{column.name}'의 데이터 타입이 문자열이 아닙니다.",
                expected="VARCHAR, NVARCHAR",
                actual=str(column.data_type),
            )
        if column.max_length is not None and column.max_length < MIN_PASSWORD_LENGTH:
            report.add_warning(
                ref, "maxLength", "security_password_length", SECURITY_LABEL,
                f"비밀번호 컬럼 '{column.name}'의 길이가 해시된 비밀번호를 저장하기에 "
                f"부족할 수 있습니다.",
                expected=f">= {MIN_PASSWORD_LENGTH}",
                actual=str(column.max_length),
            )

    if column.nullable and any(marker in upper for marker in _PII_MARKERS):
        report.add_warning(
            ref, "nullable", "security_pii_nullable", SECURITY_LABEL,
            f"개인정보 컬럼 '{column.name}'이 NULL을 허용합니다. 데이터 품질을 고려하세요.",
        )


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def check_advanced(report: ProjectReport, project: Project) -> int:
    """Append the advisories for *project* to *report*; return how many were added."""
    before: int = len(report)
    for table in project.tables:
        _check_performance(report, table)
        for column in table.ordered_columns:
            _check_column_security(report, table, column)
    added: int = len(report) - before
    logger.debug("Advanced checks added %d advisory warning(s).", added)
    return added


def validate_advanced(project: Project) -> ProjectReport:
    """
    Naming report plus performance and security advisories.

    The advisories are warnings only, so ``is_valid`` matches
    ``validate_project(project).is_valid``.
    """
    report: ProjectReport = validate_project(project)
    added: int = check_advanced(report, project)
    logger.info(
        "Advanced validation of %s: %d advisory warning(s). %s",
        project.name,
        added,
        report.summary(),
    )
    return report


__all__: List[str] = [
    "INDEX_ADVISORY_COLUMN_COUNT",
    "MAX_RECOMMENDED_COLUMNS",
    "LONG_STRING_LENGTH",
    "MIN_PASSWORD_LENGTH",
    "check_advanced",
    "validate_advanced",
]

logger.debug("schemaguard.advanced loaded — %d public symbols.", len(__all__))
