# File: schemaguard/loader.py
"""
NexaFlow SchemaGuard - Project File Loader
===========================================
Reads a project definition (JSON or YAML) from disk and turns it into a
validated ``Project`` plus the ``ExportOptions`` stored alongside it.

Accepted layouts:

    project:                 # or: the project keys at top level
      name: shop
      namingRules: {...}
      tables: [...]
    export:                  # or: exportOptions
      format: markdown

Everything here raises ``FileNotFoundError`` or ``ValueError``; the CLI maps
those to exit codes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from schemaguard.models import ExportOptions, Project

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaguard.loader")

_EXPORT_KEYS: Tuple[str, ...] = ("export", "exportOptions", "export_options")


# ---------------------------------------------------------------------------
# File readers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_project_file(path: Path) -> Dict[str, Any]:
    """
    Load a project definition file (JSON or YAML), dispatching on extension.

    Files with any other extension are tried as JSON first, then YAML.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Project file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Project path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


# ---------------------------------------------------------------------------
# Model construction
# ---------------------------------------------------------------------------


def parse_raw_project(raw: Dict[str, Any]) -> Tuple[Project, ExportOptions]:
    """
    Parse a raw mapping (from JSON/YAML) into ``(Project, ExportOptions)``.

    The project comes from the ``project`` key, or from the top level when
    it carries ``tables``.  Export options come from ``export`` /
    ``exportOptions`` and default to ``ExportOptions()``.

    Raises:
        ValueError: If no project is found or model validation fails.
    """
    project_data: Optional[Dict[str, Any]] = None
    if isinstance(raw.get("project"), dict):
        project_data = raw["project"]
    elif "tables" in raw:
        project_data = {k: v for k, v in raw.items() if k not in _EXPORT_KEYS}

    if project_data is None:
        raise ValueError(
            "Cannot find project definition in input. "
            "Expected a top-level 'project' mapping or a 'tables' list."
        )

    export_data: Dict[str, Any] = {}
    for key in _EXPORT_KEYS:
        if key in raw:
            if not isinstance(raw[key], dict):
                raise ValueError(f"'{key}' must be a mapping, got {type(raw[key]).__name__}.")
            export_data = raw[key]
            break
    else:
        logger.info("No export options found in input — using defaults.")

    try:
        project: Project = Project.model_validate(project_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Project validation failed: {exc}") from exc

    try:
        options: ExportOptions = ExportOptions.model_validate(export_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Export options validation failed: {exc}") from exc

    logger.debug("Parsed project %r with %d table(s).", project.name, project.table_count)
    return project, options


def load_project(path: Path) -> Tuple[Project, ExportOptions]:
    """``load_project_file`` followed by ``parse_raw_project``."""
    return parse_raw_project(load_project_file(path))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "load_project_file",
    "parse_raw_project",
    "load_project",
]

logger.debug("schemaguard.loader loaded — %d public symbols.", len(__all__))
