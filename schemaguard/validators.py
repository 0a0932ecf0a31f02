# File: schemaguard/validators.py
"""
NexaFlow SchemaGuard - Entity Validators
=========================================
Per-entity checks built on ``schemaguard.rules``: table / column / primary
key / index names, localised descriptions, data-type properties, required
system columns and the column-level structural rules (IDENTITY, PK
nullability, default values, deprecated types).

Every public validator returns a single ``ValidationResult`` and is
**fail-fast**: the first failing check wins.  Callers that want every
finding (``schemaguard.project``) run each validator separately.

Suggestions are attached only when they are deterministic *and* pass the
very validator that rejected the original value; candidates that would be
rejected again are dropped rather than offered.

Usage by downstream modules:
    from schemaguard.validators import validate_primary_key_column_name
    result = validate_primary_key_column_name("ID", "USER")
    assert result.suggestion == "USER_ID"
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from schemaguard.models import Column, EntityKind, MSSQLDataType, NamingRules, index_prefix
from schemaguard.rules import (
    RULE_PATTERN,
    RULE_PREFIX,
    RULE_REQUIRED,
    RULE_UPPER_CASE,
    ValidationResult,
    check_affixes,
    check_case,
    check_default_case,
    check_pattern,
    check_upper_case,
    is_standalone_name,
    matches_pattern,
)
from schemaguard.suggestions import generate_index_name, suggest_index_name, suggest_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaguard.validators")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# SQL Server identifier limit (sysname)
MAX_IDENTIFIER_LENGTH: int = 128

MAX_DECIMAL_PRECISION: int = 38

# Audit columns every table must carry, in canonical order
SYSTEM_COLUMNS: Tuple[str, ...] = ("REG_ID", "REG_DT", "CHG_ID", "CHG_DT")
REG_DT_DEFAULT: str = "GETDATE()"

DESCRIPTION_DETAIL_DELIMITER: str = "||"
DESCRIPTION_DETAIL_THRESHOLD: int = 20
DESCRIPTION_FORMAT_HINT: str = (
    '상세 설명이 필요한 경우 "한글명 || 상세설명" 형식을 권장합니다'
)

_HANGUL_RE: re.Pattern[str] = re.compile(r"[가-힣]")
# Generated index names use "__" separators, so UPPER_SNAKE is too strict here
_INDEX_NAME_RE: re.Pattern[str] = re.compile(r"^[A-Z][A-Z0-9_]*$")

_DATE_FUNCTIONS: FrozenSet[str] = frozenset({"GETDATE()", "CURRENT_TIMESTAMP"})
_BIT_LITERALS: FrozenSet[str] = frozenset({"0", "1", "TRUE", "FALSE"})


# ---------------------------------------------------------------------------
# Suggestion verification
# ---------------------------------------------------------------------------


def _first_passing(
    original: str,
    candidates: Iterable[Optional[str]],
    evaluate: Callable[[str], ValidationResult],
) -> Optional[str]:
    """Return the first candidate that differs from *original* and passes *evaluate*."""
    for candidate in candidates:
        if candidate and candidate != original and evaluate(candidate).is_valid:
            return candidate
    return None


# ---------------------------------------------------------------------------
# Identifier evaluation (no suggestions)
# ---------------------------------------------------------------------------


def _evaluate_identifier(
    name: str,
    rules: Optional[NamingRules],
    pattern: Optional[str] = None,
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
) -> ValidationResult:
    if not name or not name.strip():
        return ValidationResult.fail("이름을 입력해주세요", RULE_REQUIRED)

    if rules is None or rules.is_empty:
        result: ValidationResult = check_default_case(name)
        if not result:
            return result
    else:
        if rules.enforce_upper_case:
            result = check_upper_case(name)
        elif rules.enforce_case:
            result = check_case(name, rules.enforce_case)
        else:
            result = ValidationResult.ok("올바른 형식입니다")
        if not result:
            return result

        if pattern:
            result = check_pattern(name, pattern)
            if not result:
                return result

        if prefix or suffix:
            result = check_affixes(name, prefix, suffix)
            if not result:
                return result

        if rules.is_reserved(name):
            return ValidationResult.fail(f"'{name}'은(는) 예약어입니다", "reserved_word")

    if len(name) > MAX_IDENTIFIER_LENGTH:
        return ValidationResult.fail(
            f"이름은 {MAX_IDENTIFIER_LENGTH}자를 초과할 수 없습니다", "max_length"
        )
    return ValidationResult.ok("올바른 형식입니다")


def _evaluate_table_name(name: str, rules: Optional[NamingRules]) -> ValidationResult:
    if rules is None or rules.is_empty:
        return _evaluate_identifier(name, None)
    return _evaluate_identifier(
        name, rules, rules.table_pattern, rules.table_prefix, rules.table_suffix
    )


def _evaluate_column_name(name: str, rules: Optional[NamingRules]) -> ValidationResult:
    if rules is None or rules.is_empty:
        return _evaluate_identifier(name, None)
    return _evaluate_identifier(name, rules, rules.column_pattern)


def _evaluate_primary_key_name(
    name: str,
    table_name: str,
    rules: Optional[NamingRules],
) -> ValidationResult:
    result: ValidationResult = _evaluate_column_name(name, rules)
    if not result:
        return result
    if is_standalone_name(name):
        return ValidationResult.fail("단독명칭은 사용할 수 없습니다", "sql_server_pk_naming")
    if table_name.upper() not in name.upper():
        return ValidationResult.fail(
            "PK 컬럼명은 테이블명을 포함해야 합니다", "pk_table_name"
        )
    return ValidationResult.ok("올바른 PK 컬럼명입니다")


def _evaluate_index_name(
    name: str,
    index_type: str,
    unique: bool,
    table_name: str,
    rules: Optional[NamingRules],
) -> ValidationResult:
    if not name or not name.strip():
        return ValidationResult.fail("인덱스명을 입력해주세요", RULE_REQUIRED)

    if not _INDEX_NAME_RE.match(name):
        return ValidationResult.fail("대문자 형식을 사용해야 합니다", RULE_UPPER_CASE)

    prefix: str = index_prefix(index_type, unique)
    if not name.startswith(prefix):
        kind: str = "클러스터드" if prefix in ("PK__", "CIDX__") else "논클러스터드"
        return ValidationResult.fail(
            f"{kind} 인덱스는 {prefix} 접두사를 사용해야 합니다", RULE_PREFIX
        )

    if table_name.upper() not in name.upper():
        return ValidationResult.fail("인덱스명에 테이블명을 포함해야 합니다", "table_name")

    if rules is not None and rules.index_pattern and not matches_pattern(name, rules.index_pattern):
        return ValidationResult.fail(
            f"이름이 패턴 '{rules.index_pattern}'에 맞지 않습니다", RULE_PATTERN
        )

    if len(name) > MAX_IDENTIFIER_LENGTH:
        return ValidationResult.fail(
            f"이름은 {MAX_IDENTIFIER_LENGTH}자를 초과할 수 없습니다", "max_length"
        )
    return ValidationResult.ok("올바른 인덱스명입니다")


# ---------------------------------------------------------------------------
# Name validators
# ---------------------------------------------------------------------------


def validate_table_name(name: str, rules: Optional[NamingRules] = None) -> ValidationResult:
    """
    Validate a table name.

    Without rules the default uppercase-or-PascalCase convention applies;
    otherwise, in order: case (uppercase override or ``enforce_case``),
    ``table_pattern``, prefix, suffix, reserved words, identifier length.

    Raises:
        RuleConfigurationError: If ``table_pattern`` does not compile.
    """
    result: ValidationResult = _evaluate_table_name(name, rules)
    if result.is_valid or result.rule == RULE_REQUIRED:
        return result
    return result.with_suggestion(
        _first_passing(
            name,
            (suggest_name(name, EntityKind.TABLE, rules), result.suggestion),
            lambda candidate: _evaluate_table_name(candidate, rules),
        )
    )


def validate_column_name(
    name: str,
    rules: Optional[NamingRules] = None,
    table_name: Optional[str] = None,
) -> ValidationResult:
    """
    Validate a column name: case and ``column_pattern`` checks, reserved
    words and identifier length (no affixes).

    Raises:
        RuleConfigurationError: If ``column_pattern`` does not compile.
    """
    result: ValidationResult = _evaluate_column_name(name, rules)
    if result.is_valid or result.rule == RULE_REQUIRED:
        return result
    return result.with_suggestion(
        _first_passing(
            name,
            (suggest_name(name, EntityKind.COLUMN, rules, table_name), result.suggestion),
            lambda candidate: _evaluate_column_name(candidate, rules),
        )
    )


def validate_primary_key_column_name(
    column_name: str,
    table_name: str,
    rules: Optional[NamingRules] = None,
) -> ValidationResult:
    """
    Stricter naming rule for primary-key columns.

    After the ordinary column-name checks, the name must not be a forbidden
    standalone name (``ID, SEQ_NO, HIST_NO, NO, KEY``) and must contain the
    owning table's name (case-insensitive).

    Examples:
        >>> validate_primary_key_column_name("ID", "USER").suggestion
        'USER_ID'
        >>> validate_primary_key_column_name("USER_ID", "USER").is_valid
        True
    """
    result: ValidationResult = _evaluate_primary_key_name(column_name, table_name, rules)
    if result.is_valid or result.rule == RULE_REQUIRED:
        return result

    base: List[str]
    if result.rule == "sql_server_pk_naming":
        base = [f"{table_name}_{column_name}"]
    elif result.rule == "pk_table_name":
        base = [f"{table_name}_ID"]
    else:
        fixed: Optional[str] = validate_column_name(column_name, rules, table_name).suggestion
        base = [c for c in (fixed,) if c]
        base += [f"{table_name}_{c}" for c in list(base)]

    candidates: List[str] = []
    for candidate in base:
        candidates.extend((candidate, candidate.upper()))

    return result.with_suggestion(
        _first_passing(
            column_name,
            candidates,
            lambda candidate: _evaluate_primary_key_name(candidate, table_name, rules),
        )
    )


def validate_index_name(
    index_name: str,
    index_type: str,
    unique: bool,
    table_name: str,
    column_names: Sequence[str] = (),
    rules: Optional[NamingRules] = None,
) -> ValidationResult:
    """
    Validate an index name: uppercase, the ``PK__`` / ``CIDX__`` / ``IDX__``
    prefix implied by ``(unique, type)``, the owning table's name and the
    optional ``index_pattern``.

    The suggestion is always the generated ``{prefix}{TABLE}__{COL}...`` name
    (uppercased); an index without columns gets none.
    """
    result: ValidationResult = _evaluate_index_name(
        index_name, index_type, unique, table_name, rules
    )
    if result.is_valid or result.rule == RULE_REQUIRED:
        return result
    return result.with_suggestion(
        _first_passing(
            index_name,
            (suggest_index_name(table_name, column_names, index_type, unique),),
            lambda candidate: _evaluate_index_name(
                candidate, index_type, unique, table_name, rules
            ),
        )
    )


# ---------------------------------------------------------------------------
# Description validators
# ---------------------------------------------------------------------------


def _evaluate_description(description: Optional[str], name: str, copy_message: str) -> ValidationResult:
    if not description or not description.strip():
        return ValidationResult.fail("Description은 필수입니다", RULE_REQUIRED)
    if description.strip().upper() == (name or "").strip().upper():
        return ValidationResult.fail(copy_message, "description_copy")
    if not _HANGUL_RE.search(description):
        return ValidationResult.fail("한글 설명을 포함해야 합니다", "description_korean")
    return ValidationResult.ok("올바른 Description입니다")


def validate_table_description(description: Optional[str], table_name: str) -> ValidationResult:
    """Description must exist, must not copy the table name, and must contain Hangul."""
    return _evaluate_description(description, table_name, "테이블명을 그대로 복사하지 마세요")


def validate_column_description(description: Optional[str], column_name: str) -> ValidationResult:
    """
    Same rules as ``validate_table_description`` plus a soft rule: a
    description longer than 20 characters without the ``||`` delimiter is
    valid but carries a suggestion to use the ``한글명 || 상세설명`` form.
    """
    result: ValidationResult = _evaluate_description(
        description, column_name, "컬럼명을 그대로 복사하지 마세요"
    )
    if not result or not description:
        return result
    if (
        DESCRIPTION_DETAIL_DELIMITER not in description
        and len(description) > DESCRIPTION_DETAIL_THRESHOLD
    ):
        return ValidationResult(True, result.message, DESCRIPTION_FORMAT_HINT, "description_format")
    return result


# ---------------------------------------------------------------------------
# Data type validators
# ---------------------------------------------------------------------------


def resolve_data_type(data_type: object) -> Optional[MSSQLDataType]:
    """Map an enum member or type name to ``MSSQLDataType``; None when unknown."""
    raw: str = str(getattr(data_type, "value", data_type)).strip().upper()
    try:
        return MSSQLDataType(raw)
    except ValueError:
        return None


def validate_data_type_properties(
    data_type: object,
    max_length: Optional[int] = None,
    precision: Optional[int] = None,
    scale: Optional[int] = None,
) -> ValidationResult:
    """
    Naming-independent check of a type's required properties.

    Length-bearing types need ``0 < max_length <= limit`` (4000 for N-types,
    8000 otherwise); DECIMAL / NUMERIC need ``1 <= precision <= 38`` and, if
    a scale is given, ``0 <= scale <= precision``.  An unknown type yields an
    invalid result rather than an exception.
    """
    dt: Optional[MSSQLDataType] = resolve_data_type(data_type)
    if dt is None:
        return ValidationResult.fail(f"지원하지 않는 데이터 타입입니다: {data_type}", "data_type")

    if dt.requires_length:
        limit: Optional[int] = dt.max_length_limit
        if max_length is None or max_length <= 0:
            return ValidationResult.fail(
                f"{dt.value} 타입은 길이를 지정해야 합니다", "length_required"
            )
        if limit is not None and max_length > limit:
            return ValidationResult.fail(
                f"{dt.value} 타입의 최대 길이는 {limit}입니다", "length_range"
            )

    if dt.requires_precision:
        if precision is None or precision <= 0:
            return ValidationResult.fail(
                f"{dt.value} 타입은 precision을 지정해야 합니다", "precision_required"
            )
        if precision > MAX_DECIMAL_PRECISION:
            return ValidationResult.fail(
                f"precision은 최대 {MAX_DECIMAL_PRECISION}까지 가능합니다", "precision_range"
            )
        if scale is not None and (scale < 0 or scale > precision):
            return ValidationResult.fail(
                "scale은 0 이상이고 precision 이하여야 합니다", "scale_range"
            )

    return ValidationResult.ok("올바른 데이터 타입 속성입니다")


def check_unused_properties(
    data_type: MSSQLDataType,
    max_length: Optional[int] = None,
    precision: Optional[int] = None,
    scale: Optional[int] = None,
) -> ValidationResult:
    """Length / precision set on a type that ignores them (warning-level)."""
    if max_length is not None and not data_type.requires_length:
        return ValidationResult.fail(
            f"{data_type.value} 타입에는 길이가 사용되지 않습니다", "unused_property"
        )
    if (precision is not None or scale is not None) and not data_type.requires_precision:
        return ValidationResult.fail(
            f"{data_type.value} 타입에는 precision/scale이 사용되지 않습니다", "unused_property"
        )
    return ValidationResult.ok("올바른 데이터 타입 속성입니다")


def check_deprecated_type(data_type: MSSQLDataType) -> ValidationResult:
    """TEXT / NTEXT / IMAGE still work but are deprecated (warning-level)."""
    if data_type is MSSQLDataType.IMAGE:
        return ValidationResult.fail("IMAGE 타입은 더 이상 사용되지 않습니다", "deprecated_type")
    if data_type.is_deprecated:
        return ValidationResult.fail(
            f"{data_type.value} 타입은 성능상 권장되지 않습니다", "deprecated_type"
        )
    return ValidationResult.ok("올바른 데이터 타입입니다")


# ---------------------------------------------------------------------------
# Column structural validators
# ---------------------------------------------------------------------------


def check_identity(
    data_type: MSSQLDataType,
    identity: bool,
    seed: Optional[int] = None,
    increment: Optional[int] = None,
) -> Tuple[str, ValidationResult]:
    """
    IDENTITY is only allowed on integer types, with seed / increment >= 1.

    Returns the offending field name together with the result.
    """
    if not identity:
        return "identity", ValidationResult.ok("올바른 IDENTITY 설정입니다")
    if not data_type.is_integer:
        return "identity", ValidationResult.fail(
            "IDENTITY는 정수 타입에서만 사용할 수 있습니다", "identity_type"
        )
    if seed is not None and seed < 1:
        return "identitySeed", ValidationResult.fail(
            "IDENTITY 시작값은 1 이상이어야 합니다", "identity_seed"
        )
    if increment is not None and increment < 1:
        return "identityIncrement", ValidationResult.fail(
            "IDENTITY 증가값은 1 이상이어야 합니다", "identity_increment"
        )
    return "identity", ValidationResult.ok("올바른 IDENTITY 설정입니다")


def check_primary_key_column(column: Column, data_type: MSSQLDataType) -> Tuple[str, ValidationResult]:
    """A PK column must be NOT NULL and of a keyable type."""
    if not column.primary_key:
        return "primaryKey", ValidationResult.ok("올바른 기본키 설정입니다")
    if column.nullable:
        return "nullable", ValidationResult.fail(
            "기본키는 NULL을 허용할 수 없습니다", "pk_nullable"
        )
    if not data_type.can_be_primary_key:
        return "dataType", ValidationResult.fail(
            f"{data_type.value} 타입은 기본키로 사용할 수 없습니다", "pk_data_type"
        )
    return "primaryKey", ValidationResult.ok("올바른 기본키 설정입니다")


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def _is_date_literal(value: str) -> bool:
    try:
        datetime.fromisoformat(value.strip("'"))
    except ValueError:
        return False
    return True


def check_default_value(data_type: MSSQLDataType, default_value: Optional[str]) -> ValidationResult:
    """
    Sanity-check a default expression against its column type (warning-level).

    Numeric types expect a number, date types ``GETDATE()`` /
    ``CURRENT_TIMESTAMP`` or a parseable date, BIT one of 0/1/TRUE/FALSE.
    """
    if default_value is None or not default_value.strip():
        return ValidationResult.ok("기본값이 없습니다")
    value: str = default_value.strip()

    if data_type.is_numeric and not _is_number(value):
        return ValidationResult.fail(
            f"{data_type.value} 타입의 기본값은 숫자여야 합니다", "default_value"
        )
    if data_type.is_temporal and value.upper() not in _DATE_FUNCTIONS and not _is_date_literal(value):
        return ValidationResult.fail(
            f"{data_type.value} 타입의 기본값은 유효한 날짜 또는 함수여야 합니다",
            "default_value",
            REG_DT_DEFAULT,
        )
    if data_type is MSSQLDataType.BIT and value.upper() not in _BIT_LITERALS:
        return ValidationResult.fail(
            "BIT 타입의 기본값은 0, 1, TRUE, FALSE 중 하나여야 합니다", "default_value"
        )
    return ValidationResult.ok("올바른 기본값입니다")


# ---------------------------------------------------------------------------
# System columns
# ---------------------------------------------------------------------------


def missing_system_columns(columns: Sequence[Column]) -> List[str]:
    """Required audit columns absent from *columns*, in canonical order."""
    present = {c.name.upper() for c in columns}
    return [name for name in SYSTEM_COLUMNS if name not in present]


def validate_system_columns(columns: Sequence[Column]) -> ValidationResult:
    """
    Every table carries ``REG_ID, REG_DT, CHG_ID, CHG_DT``; ``REG_DT``
    defaults to ``GETDATE()``.

    The message lists exactly the missing columns.
    """
    missing: List[str] = missing_system_columns(columns)
    if missing:
        return ValidationResult.fail(
            f"시스템 속성 컬럼이 누락되었습니다: {', '.join(missing)}", "system_columns"
        )

    reg_dt: Optional[Column] = next(
        (c for c in columns if c.name.upper() == "REG_DT"), None
    )
    if reg_dt is not None and (reg_dt.default_value or "").strip() != REG_DT_DEFAULT:
        return ValidationResult.fail(
            f"REG_DT 컬럼은 DEFAULT {REG_DT_DEFAULT}를 설정해야 합니다",
            "system_column_default",
            REG_DT_DEFAULT,
        )
    return ValidationResult.ok("시스템 속성 컬럼이 올바르게 설정되었습니다")


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MAX_IDENTIFIER_LENGTH",
    "SYSTEM_COLUMNS",
    "REG_DT_DEFAULT",
    "DESCRIPTION_FORMAT_HINT",
    "validate_table_name",
    "validate_column_name",
    "validate_primary_key_column_name",
    "validate_index_name",
    "generate_index_name",
    "validate_table_description",
    "validate_column_description",
    "resolve_data_type",
    "validate_data_type_properties",
    "check_unused_properties",
    "check_deprecated_type",
    "check_identity",
    "check_primary_key_column",
    "check_default_value",
    "missing_system_columns",
    "validate_system_columns",
]

logger.debug("schemaguard.validators loaded — %d public symbols.", len(__all__))
