# File: schemaguard/cli.py
"""
NexaFlow SchemaGuard - Command-Line Interface
==============================================

Thin ``argparse`` front end over the validation engine and the exporter.

Usage examples::

    # Validate a project and print the report
    python -m schemaguard -p project.yaml --validate-only

    # Export DDL next to a validation report (written even if invalid)
    python -m schemaguard -p project.yaml -f sql -o ./out --batch --drop

    # Markdown documentation to stdout, JSON report for CI
    python -m schemaguard -p project.json -f markdown --json-report

    # Include performance / security advisories
    python -m schemaguard -p project.yaml --validate-only --advanced

Exit codes:
    0 — success
    1 — validation error (unless --force)
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, NoReturn, Optional, Sequence, TextIO

if TYPE_CHECKING:
    from schemaguard.models import ExportOptions, Project
    from schemaguard.project import ProjectReport

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaguard")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root schemaguard logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR (quiet), 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity < 0:
        level = logging.ERROR
    elif verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s", datefmt="%H:%M:%S"
        )
    )

    root_logger: logging.Logger = logging.getLogger("schemaguard")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from schemaguard import __version__
    from schemaguard.models import ExportFormat

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="schemaguard",
        description=(
            "NexaFlow SchemaGuard — MSSQL naming validation and schema export.\n\n"
            "Checks a project definition (JSON/YAML) against its naming rules and "
            "renders it as SQL DDL, JSON, Markdown, HTML or CSV."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -p project.yaml --validate-only\n"
            "  %(prog)s -p project.yaml -f sql -o ./out --batch\n"
            "  %(prog)s -p project.json -f markdown --json-report\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"NexaFlow SchemaGuard v{__version__}",
    )

    parser.add_argument(
        "-p", "--project",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the project definition file (JSON or YAML).",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the project; do not export.",
    )
    mode_group.add_argument(
        "--json-report",
        action="store_true",
        default=False,
        help="Print the validation report as JSON instead of text.",
    )
    mode_group.add_argument(
        "--suggest",
        action="store_true",
        default=False,
        help="List proposed renames for entities with naming errors.",
    )
    mode_group.add_argument(
        "--advanced",
        action="store_true",
        default=False,
        help="Add performance and security advisories (warnings) to the report.",
    )

    # --- Export options ---
    export_group = parser.add_argument_group("export options")
    export_group.add_argument(
        "-f", "--format",
        type=str,
        default=None,
        choices=[f.value for f in ExportFormat],
        help="Output format (defaults to the project file's export.format, else sql).",
    )
    export_group.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="PATH",
        help="Output file or directory. Prints to stdout when omitted.",
    )
    export_group.add_argument(
        "--no-comments",
        action="store_true",
        default=False,
        help="Omit descriptions / MS_Description extended properties.",
    )
    export_group.add_argument(
        "--no-indexes",
        action="store_true",
        default=False,
        help="Omit index statements and sections.",
    )
    export_group.add_argument(
        "--no-constraints",
        action="store_true",
        default=False,
        help="Omit foreign-key and CHECK constraints.",
    )
    export_group.add_argument(
        "--drop",
        action="store_true",
        default=False,
        help="SQL only: emit DROP TABLE statements first.",
    )
    export_group.add_argument(
        "--existence-checks",
        action="store_true",
        default=False,
        help="SQL only: wrap CREATE TABLE in IF NOT EXISTS.",
    )
    export_group.add_argument(
        "--batch",
        action="store_true",
        default=False,
        help="SQL only: wrap the script in a transaction.",
    )
    export_group.add_argument(
        "--schema",
        type=str,
        default=None,
        metavar="NAME",
        help="SQL only: qualify objects with this schema.",
    )
    export_group.add_argument(
        "--timestamp",
        type=str,
        default=None,
        metavar="TEXT",
        help="Suffix appended to the artifact filename.",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
    )
    behaviour_group.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Exit 0 even when validation fails.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Export option override builder
# ---------------------------------------------------------------------------


def _build_export_overrides(args: argparse.Namespace) -> Dict[str, object]:
    """Build an export option override dictionary from CLI arguments."""
    overrides: Dict[str, object] = {}

    if args.format is not None:
        overrides["format"] = args.format
    if args.no_comments:
        overrides["include_comments"] = False
    if args.no_indexes:
        overrides["include_indexes"] = False
    if args.no_constraints:
        overrides["include_constraints"] = False
    if args.drop:
        overrides["include_drop_statements"] = True
    if args.existence_checks:
        overrides["include_existence_checks"] = True
    if args.batch:
        overrides["batch_script"] = True
    if args.schema is not None:
        overrides["schema_name"] = args.schema
    if args.timestamp is not None:
        overrides["timestamp"] = args.timestamp

    return overrides


# ---------------------------------------------------------------------------
# Report printing
# ---------------------------------------------------------------------------


def _print_report(report: ProjectReport, project_path: Path, elapsed: float, stream: TextIO) -> None:
    print(f"\n{'='*50}", file=stream)
    print("  Naming Validation Report", file=stream)
    print(f"{'='*50}", file=stream)
    print(f"  File:     {project_path.name}", file=stream)
    print(f"  Project:  {report.project_name}", file=stream)
    print(f"  Time:     {elapsed:.3f}s", file=stream)
    print(f"  Score:    {report.score}/100", file=stream)
    print(f"  Valid:    {'Yes' if report.is_valid else 'No'}", file=stream)

    if report.errors:
        print(f"\n  Errors ({report.error_count}):", file=stream)
        for err in report.errors:
            print(f"    ✗ {err.entity_id}: {err.prefixed_message}", file=stream)

    if report.warnings:
        print(f"\n  Warnings ({report.warning_count}):", file=stream)
        for warn in report.warnings:
            print(f"    ⚠ {warn.entity_id}: {warn.prefixed_message}", file=stream)

    if report.is_valid and not report.warnings:
        print("\n  ✅ All validations passed!", file=stream)

    print(f"{'='*50}\n", file=stream)


def _print_renames(report: ProjectReport, stream: TextIO) -> None:
    from schemaguard.suggestions import collect_renames

    renames = collect_renames(report)
    if not renames:
        print("  No rename suggestions.", file=stream)
        return
    print(f"  Suggested renames ({len(renames)}):", file=stream)
    for rename in renames:
        print(
            f"    {rename.entity:<6} {rename.current_name} → {rename.suggested_name}"
            f"  ({rename.table_name})",
            file=stream,
        )


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def _resolve_output(output: str, filename: str) -> Path:
    """A directory (existing, or spelled with a trailing slash) receives *filename*."""
    path: Path = Path(output)
    if path.is_dir() or output.endswith(("/", "\\")):
        return path / filename
    return path


def _run_export(project: Project, options: ExportOptions, args: argparse.Namespace) -> int:
    from schemaguard.exporters import ExportArtifact, export_schema
    from schemaguard.models import ExportOptions
    from schemaguard.utils import write_file

    try:
        merged: ExportOptions = ExportOptions.model_validate(
            {**options.model_dump(), **_build_export_overrides(args)}
        )
        artifact: ExportArtifact = export_schema(project.tables, merged.format, merged)
    except ValueError as exc:
        # ExportError and pydantic's ValidationError are both ValueErrors
        logger.error("Export failed: %s", exc)
        return EXIT_EXPORT_ERROR

    if args.output is None:
        sys.stdout.write(artifact.content)
        return EXIT_SUCCESS

    target: Path = _resolve_output(args.output, artifact.filename)
    try:
        written: int = write_file(target, artifact.content)
    except OSError as exc:
        logger.error("Failed to write %s: %s", target, exc)
        return EXIT_EXPORT_ERROR

    logger.info("Wrote %s (%d bytes, sha256=%s).", target, written, artifact.sha256[:12])
    if not args.quiet:
        print(f"  Exported {artifact.mime_type} → {target}", file=sys.stderr)
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def run(args: argparse.Namespace) -> int:
    """Execute a parsed command line and return the exit code."""
    from schemaguard.loader import load_project
    from schemaguard.advanced import validate_advanced
    from schemaguard.project import validate_project
    from schemaguard.utils import Timer

    project_path: Path = Path(args.project).resolve()

    try:
        project, options = load_project(project_path)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load project: %s", exc)
        return EXIT_INPUT_ERROR

    with Timer("validation") as t:
        report = validate_advanced(project) if args.advanced else validate_project(project)

    # Keep stdout clean for the artifact when it is printed there
    exporting_to_stdout: bool = not args.validate_only and args.output is None
    stream: TextIO = sys.stderr if exporting_to_stdout else sys.stdout

    if args.json_report:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), file=stream)
    elif not args.quiet:
        _print_report(report, project_path, t.elapsed, stream)

    if args.suggest:
        _print_renames(report, stream)

    failed: bool = not report.is_valid or (args.fail_on_warnings and bool(report.warnings))

    if not args.validate_only:
        export_code: int = _run_export(project, options, args)
        if export_code != EXIT_SUCCESS:
            return export_code

    if failed and not args.force:
        return EXIT_VALIDATION_ERROR
    if failed:
        logger.warning("Validation failed; continuing because --force was given.")
    return EXIT_SUCCESS


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    verbosity: int = -1 if args.quiet else args.verbose

    _setup_logging(verbosity)

    logger.info("Project: %s", args.project)
    logger.info("Mode:    %s", "validate-only" if args.validate_only else "validate + export")

    exit_code: int = run(args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Completed successfully.")
    else:
        logger.error("Finished with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "run",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("schemaguard.cli loaded — %d public symbols.", len(__all__))
