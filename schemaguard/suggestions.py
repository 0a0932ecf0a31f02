# File: schemaguard/suggestions.py
"""
NexaFlow SchemaGuard - Suggestion Generator
============================================
Deterministically proposes a corrected identifier for a rejected one.  The
same functions serve single-field feedback (one name at a time) and batch
auto-fix (``collect_renames`` over a whole project report).

Transformation order is fixed:

    1. case conversion (``enforce_upper_case`` wins over ``enforce_case``)
    2. table prefix / suffix insertion            (tables only)
    3. standalone PK name → ``{table}_{name}``     (columns only, opt-in)

Case conversion runs before affix insertion so the affixes are never
re-cased.  Running the generator on its own output returns it unchanged,
except where the case transform itself is lossy.

The engine only *proposes* text; renaming entities is the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Set

from schemaguard.models import EntityKind, NamingRules, index_prefix
from schemaguard.rules import (
    apply_affixes,
    check_default_case,
    convert_case,
    is_standalone_name,
)

if TYPE_CHECKING:
    from schemaguard.project import ProjectReport

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaguard.suggestions")


# ---------------------------------------------------------------------------
# Single-identifier suggestions
# ---------------------------------------------------------------------------


def suggest_name(
    current_name: str,
    entity_kind: str,
    rules: Optional[NamingRules] = None,
    table_name: Optional[str] = None,
) -> str:
    """
    Return the corrected form of *current_name* under *rules*.

    Without rules (or with an empty rule set) the default uppercase
    convention's suggestion is used; a name that already conforms is
    returned unchanged.

    Examples:
        >>> rules = NamingRules(enforce_upper_case=True, enforce_table_column_naming=True)
        >>> suggest_name("id", "COLUMN", rules, table_name="USER")
        'USER_ID'
        >>> suggest_name("order", "TABLE", NamingRules(table_prefix="TB_", enforce_upper_case=True))
        'TB_ORDER'
    """
    kind: EntityKind = EntityKind(entity_kind)

    if rules is None or rules.is_empty:
        return check_default_case(current_name).suggestion or current_name

    suggestion: str = current_name

    # 1. Case conversion
    if rules.enforce_upper_case:
        suggestion = suggestion.upper()
    elif rules.enforce_case:
        suggestion = convert_case(suggestion, rules.enforce_case)

    # 2. Table affixes
    if kind is EntityKind.TABLE:
        suggestion = apply_affixes(suggestion, rules.table_prefix, rules.table_suffix)

    # 3. Standalone primary key names
    if (
        kind is EntityKind.COLUMN
        and rules.enforce_table_column_naming
        and table_name
        and is_standalone_name(suggestion)
    ):
        suggestion = f"{table_name}_{suggestion}"
        if rules.enforce_upper_case:
            suggestion = suggestion.upper()

    return suggestion


def generate_index_name(
    table_name: str,
    column_names: Sequence[str],
    index_type: str,
    unique: bool,
) -> str:
    """
    Build ``{prefix}{table}__{col1}__{col2}...`` for an index.

    Examples:
        >>> generate_index_name("USER", ["USER_ID"], "CLUSTERED", True)
        'PK__USER__USER_ID'
        >>> generate_index_name("USER", ["NAME", "EMAIL"], "NONCLUSTERED", False)
        'IDX__USER__NAME__EMAIL'
    """
    return f"{index_prefix(index_type, unique)}{table_name}__{'__'.join(column_names)}"


def suggest_index_name(
    table_name: str,
    column_names: Sequence[str],
    index_type: str,
    unique: bool,
) -> Optional[str]:
    """Uppercased ``generate_index_name``; None for an index without columns."""
    if not column_names:
        return None
    return generate_index_name(
        table_name.upper(), [c.upper() for c in column_names], index_type, unique
    )


# ---------------------------------------------------------------------------
# Batch auto-fix
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RenameSuggestion:
    """One proposed rename, to be applied (or ignored) by the caller."""

    entity: str
    entity_id: str
    table_name: str
    current_name: str
    suggested_name: str


def collect_renames(report: "ProjectReport") -> List[RenameSuggestion]:
    """
    Turn a project report's name findings into rename proposals.

    At most one proposal per entity (the first finding on its ``name``
    field that carries a suggestion), in report order.
    """
    seen: Set[str] = set()
    renames: List[RenameSuggestion] = []

    for finding in report.errors:
        if finding.field != "name" or not finding.suggestion:
            continue
        if finding.entity_id in seen:
            continue
        seen.add(finding.entity_id)
        renames.append(
            RenameSuggestion(
                entity=finding.entity,
                entity_id=finding.entity_id,
                table_name=finding.table_name,
                current_name=finding.entity_name,
                suggested_name=finding.suggestion,
            )
        )

    logger.debug("collect_renames: %d proposal(s).", len(renames))
    return renames


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "suggest_name",
    "generate_index_name",
    "suggest_index_name",
    "RenameSuggestion",
    "collect_renames",
]

logger.debug("schemaguard.suggestions loaded — %d public symbols.", len(__all__))
