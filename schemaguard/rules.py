# File: schemaguard/rules.py
"""
NexaFlow SchemaGuard - Rule Primitives
=======================================
Pure predicate / transform functions operating on a single identifier:
case checks, full-match pattern checks, prefix/suffix checks and the
default "uppercase-or-PascalCase" convention used when a project has no
naming rules of its own.

Every check returns a ``ValidationResult``; an invalid identifier is a normal
outcome, never an exception.  The single exception raised here is
``RuleConfigurationError``, for a rule set whose regular expression does not
compile (a configuration mistake, not bad data).

Usage by downstream modules:
    from schemaguard.rules import check_case, check_pattern
    result = check_case("userName", CaseConvention.SNAKE)
    if not result:
        print(result.message, result.suggestion)
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional

from schemaguard.models import CaseConvention
from schemaguard.utils import to_pascal_case, to_snake_case, to_upper_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaguard.rules")


# ---------------------------------------------------------------------------
# Result type & configuration error
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """
    Atomic outcome of one rule check.

    ``suggestion`` is present only when a deterministic fix exists; the one
    exception is the valid-but-annotated column description, which carries
    formatting advice while ``is_valid`` stays True.  ``rule`` is the machine
    tag of the check that produced the result.
    """

    is_valid: bool
    message: str
    suggestion: Optional[str] = None
    rule: Optional[str] = None

    @classmethod
    def ok(cls, message: str, suggestion: Optional[str] = None) -> "ValidationResult":
        return cls(True, message, suggestion)

    @classmethod
    def fail(
        cls,
        message: str,
        rule: str,
        suggestion: Optional[str] = None,
    ) -> "ValidationResult":
        return cls(False, message, suggestion, rule)

    def with_suggestion(self, suggestion: Optional[str]) -> "ValidationResult":
        return ValidationResult(self.is_valid, self.message, suggestion, self.rule)

    def __bool__(self) -> bool:
        """Truthy when the identifier passed."""
        return self.is_valid

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"isValid": self.is_valid, "message": self.message}
        if self.suggestion is not None:
            data["suggestion"] = self.suggestion
        return data


class RuleConfigurationError(ValueError):
    """A naming rule's regular expression could not be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern: str = pattern
        self.reason: str = reason
        super().__init__(f"Invalid naming rule pattern {pattern!r}: {reason}")

    def to_result(self) -> ValidationResult:
        return ValidationResult.fail(
            f"명명 규칙 설정이 올바르지 않습니다: {self.pattern} ({self.reason})",
            RULE_CONFIGURATION,
        )


# ---------------------------------------------------------------------------
# Rule tags (machine-readable, shared with structured findings)
# ---------------------------------------------------------------------------

RULE_REQUIRED: str = "required"
RULE_CASE: str = "case"
RULE_UPPER_CASE: str = "sql_server_case"
RULE_PATTERN: str = "pattern"
RULE_PREFIX: str = "prefix"
RULE_SUFFIX: str = "suffix"
RULE_CONFIGURATION: str = "rule_configuration"

# ---------------------------------------------------------------------------
# Identifier patterns
# ---------------------------------------------------------------------------

_PASCAL_CASE_RE: re.Pattern[str] = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_SNAKE_CASE_RE: re.Pattern[str] = re.compile(r"^[a-z][a-z0-9_]*$")
_UPPER_SNAKE_CASE_RE: re.Pattern[str] = re.compile(r"^[A-Z][A-Z0-9]*(_[A-Z0-9]+)*$")
_LOWERCASE_RE: re.Pattern[str] = re.compile(r"[a-z]")

# Names that may not stand alone as a primary key column ("ID" → "USER_ID")
FORBIDDEN_STANDALONE_NAMES: FrozenSet[str] = frozenset(
    {"ID", "SEQ_NO", "HIST_NO", "NO", "KEY"}
)


def is_standalone_name(name: str) -> bool:
    return name.upper() in FORBIDDEN_STANDALONE_NAMES


# ---------------------------------------------------------------------------
# Case primitives
# ---------------------------------------------------------------------------


def is_case(name: str, case: str) -> bool:
    """Return True when *name* already follows *case*."""
    convention: CaseConvention = CaseConvention(case)
    if convention is CaseConvention.UPPER:
        return name == name.upper()
    if convention is CaseConvention.LOWER:
        return name == name.lower()
    if convention is CaseConvention.PASCAL:
        return bool(_PASCAL_CASE_RE.match(name))
    return bool(_SNAKE_CASE_RE.match(name))


def convert_case(name: str, case: str) -> str:
    """Convert *name* to *case* with the simple one-way transforms."""
    convention: CaseConvention = CaseConvention(case)
    if convention is CaseConvention.UPPER:
        return name.upper()
    if convention is CaseConvention.LOWER:
        return name.lower()
    if convention is CaseConvention.PASCAL:
        return to_pascal_case(name)
    return to_snake_case(name)


def check_case(name: str, case: str) -> ValidationResult:
    """
    Validate *name* against a case convention.

    The suggestion is the case-converted name, offered only when the
    conversion itself conforms (some inputs, e.g. ``"user name"`` under
    SNAKE, cannot be fixed by conversion alone).
    """
    convention: CaseConvention = CaseConvention(case)
    if is_case(name, convention):
        return ValidationResult.ok("올바른 형식입니다")
    converted: str = convert_case(name, convention)
    return ValidationResult.fail(
        f"이름은 {convention.value} 케이스를 따라야 합니다",
        RULE_CASE,
        converted if converted and is_case(converted, convention) else None,
    )


def check_upper_case(name: str) -> ValidationResult:
    """SQL Server convention: identifiers are written in uppercase."""
    if name == name.upper():
        return ValidationResult.ok("올바른 형식입니다")
    return ValidationResult.fail(
        "이름은 대문자로 작성해야 합니다", RULE_UPPER_CASE, name.upper()
    )


# ---------------------------------------------------------------------------
# Pattern primitives
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """
    Compile a rule pattern once; later checks reuse the cached object.

    Raises:
        RuleConfigurationError: If *pattern* is not a valid regular expression.
    """
    try:
        return re.compile(pattern)
    except re.error as exc:
        logger.error("Naming rule pattern %r does not compile: %s", pattern, exc)
        raise RuleConfigurationError(pattern, str(exc)) from exc


def matches_pattern(name: str, pattern: str) -> bool:
    return compile_pattern(pattern).fullmatch(name) is not None


def check_pattern(name: str, pattern: str) -> ValidationResult:
    """
    Test the *full* identifier against *pattern*.

    Raises:
        RuleConfigurationError: If *pattern* is not a valid regular expression.
    """
    if matches_pattern(name, pattern):
        return ValidationResult.ok("올바른 형식입니다")
    return ValidationResult.fail(
        f"이름이 패턴 '{pattern}'에 맞지 않습니다", RULE_PATTERN
    )


# ---------------------------------------------------------------------------
# Prefix / suffix primitives
# ---------------------------------------------------------------------------


def apply_affixes(name: str, prefix: Optional[str], suffix: Optional[str]) -> str:
    """Minimal concatenation of *prefix* / *suffix* that satisfies both."""
    result: str = name
    if prefix and not result.startswith(prefix):
        result = prefix + result
    if suffix and not result.endswith(suffix):
        result = result + suffix
    return result


def check_affixes(
    name: str,
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
) -> ValidationResult:
    """Check ``startswith(prefix)`` then ``endswith(suffix)``."""
    if prefix and not name.startswith(prefix):
        return ValidationResult.fail(
            f"'{prefix}' 접두사로 시작해야 합니다",
            RULE_PREFIX,
            apply_affixes(name, prefix, suffix),
        )
    if suffix and not name.endswith(suffix):
        return ValidationResult.fail(
            f"'{suffix}' 접미사로 끝나야 합니다",
            RULE_SUFFIX,
            apply_affixes(name, prefix, suffix),
        )
    return ValidationResult.ok("올바른 형식입니다")


# ---------------------------------------------------------------------------
# Default convention (no project-level rules)
# ---------------------------------------------------------------------------


def is_default_case(name: str) -> bool:
    """PascalCase (``OrderItem``) or UPPER_SNAKE_CASE (``ORDER_ITEM``)."""
    return bool(_PASCAL_CASE_RE.match(name) or _UPPER_SNAKE_CASE_RE.match(name))


def check_default_case(name: str) -> ValidationResult:
    """
    The convention applied when a project configures no naming rules.

    Names containing lowercase letters get an UPPER_SNAKE suggestion built by
    splitting lower→upper transitions; the suggestion is dropped when it
    would still fail (e.g. names containing spaces).
    """
    if not name or not name.strip():
        return ValidationResult.fail("이름을 입력해주세요", RULE_REQUIRED)

    if is_default_case(name):
        return ValidationResult.ok("올바른 형식입니다")

    if _LOWERCASE_RE.search(name):
        suggestion: str = to_upper_snake_case(name)
        return ValidationResult.fail(
            "대문자 형식을 사용해야 합니다",
            RULE_UPPER_CASE,
            suggestion if is_default_case(suggestion) else None,
        )

    return ValidationResult.fail(
        "대문자 형식을 사용해야 합니다 (예: USER, ORDER_ITEM)", RULE_UPPER_CASE
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationResult",
    "RuleConfigurationError",
    "RULE_REQUIRED",
    "RULE_CASE",
    "RULE_UPPER_CASE",
    "RULE_PATTERN",
    "RULE_PREFIX",
    "RULE_SUFFIX",
    "RULE_CONFIGURATION",
    "FORBIDDEN_STANDALONE_NAMES",
    "is_standalone_name",
    "is_case",
    "convert_case",
    "check_case",
    "check_upper_case",
    "compile_pattern",
    "matches_pattern",
    "check_pattern",
    "apply_affixes",
    "check_affixes",
    "is_default_case",
    "check_default_case",
]

logger.debug("schemaguard.rules loaded — %d public symbols.", len(__all__))
