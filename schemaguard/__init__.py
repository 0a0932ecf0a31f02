# File: schemaguard/__init__.py
"""
NexaFlow SchemaGuard — MSSQL Naming Validation & Schema Export
===============================================================

Validates an MSSQL-flavoured schema project (tables, columns, indexes)
against organisation-specific naming rules, proposes deterministic fixes,
and renders the same entity graph as SQL DDL, JSON, Markdown, HTML or CSV.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ project.py     │────▶│ validators.py    │
    │ (cli.py,     │     │ (full report,  │     │ (entity checks)  │
    │  loader.py)  │     │  score, gate)  │     └────────┬─────────┘
    └──────┬───────┘     └────────────────┘              │
           │                                    ┌────────┴─────────┐
           ▼                                    ▼                  ▼
    ┌──────────────┐                     ┌───────────┐     ┌──────────────┐
    │ exporters.py │                     │ rules.py  │     │suggestions.py│
    └──────────────┘                     └───────────┘     └──────────────┘
                         models.py / utils.py underneath everything

Usage::

    # As a library
    from schemaguard import Project, validate_project, export_schema
    report = validate_project(project)
    artifact = export_schema(project.tables, "sql")

    # From the command line
    python -m schemaguard --project project.yaml --format markdown -o ./docs

Public API:
    - validate_project      — Full-project report (never fails fast)
    - validate_advanced     — Naming report plus performance / security advisories
    - validate_table_name … — Single-field entity validators
    - suggest_name          — Deterministic rename proposal
    - export_schema         — Multi-format renderer
    - load_project          — JSON / YAML project loader
"""

from __future__ import annotations

__version__: str = "1.0.0"
__author__: str = "NexaFlow Team"
__license__: str = "MIT"

from schemaguard.models import (
    CaseConvention,
    Column,
    EntityKind,
    ExportFormat,
    ExportOptions,
    ForeignKey,
    Index,
    IndexColumn,
    IndexType,
    MSSQLDataType,
    NamingRules,
    Project,
    ReferentialAction,
    SortOrder,
    Table,
)
from schemaguard.rules import RuleConfigurationError, ValidationResult
from schemaguard.validators import (
    generate_index_name,
    missing_system_columns,
    validate_column_description,
    validate_column_name,
    validate_data_type_properties,
    validate_index_name,
    validate_primary_key_column_name,
    validate_system_columns,
    validate_table_description,
    validate_table_name,
)
from schemaguard.suggestions import (
    RenameSuggestion,
    collect_renames,
    suggest_index_name,
    suggest_name,
)
from schemaguard.project import (
    NamingViolationError,
    ProjectReport,
    ValidationError,
    ValidationWarning,
    admit_table,
    collect_findings,
    compliance_score,
    validate_project,
    validate_project_messages,
)
from schemaguard.advanced import check_advanced, validate_advanced
from schemaguard.exporters import ExportArtifact, ExportError, SchemaExporter, export_schema
from schemaguard.loader import load_project, load_project_file, parse_raw_project
from schemaguard.utils import Timer

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Models
    "CaseConvention",
    "Column",
    "EntityKind",
    "ExportFormat",
    "ExportOptions",
    "ForeignKey",
    "Index",
    "IndexColumn",
    "IndexType",
    "MSSQLDataType",
    "NamingRules",
    "Project",
    "ReferentialAction",
    "SortOrder",
    "Table",
    # Rule primitives
    "RuleConfigurationError",
    "ValidationResult",
    # Entity validators
    "generate_index_name",
    "missing_system_columns",
    "validate_column_description",
    "validate_column_name",
    "validate_data_type_properties",
    "validate_index_name",
    "validate_primary_key_column_name",
    "validate_system_columns",
    "validate_table_description",
    "validate_table_name",
    # Suggestions
    "RenameSuggestion",
    "collect_renames",
    "suggest_index_name",
    "suggest_name",
    # Project validation
    "NamingViolationError",
    "ProjectReport",
    "ValidationError",
    "ValidationWarning",
    "admit_table",
    "collect_findings",
    "compliance_score",
    "validate_project",
    "validate_project_messages",
    # Advanced checks
    "check_advanced",
    "validate_advanced",
    # Export
    "ExportArtifact",
    "ExportError",
    "SchemaExporter",
    "export_schema",
    # Loading
    "load_project",
    "load_project_file",
    "parse_raw_project",
    # Utilities
    "Timer",
]
