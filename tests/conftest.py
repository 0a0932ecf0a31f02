"""
tests/conftest.py
Shared fixtures for the schemaguard test suite.

All fixtures are session-scoped or function-scoped as appropriate.
No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import json
import logging
import pathlib
from typing import Any, Dict, Iterator, List

import pytest
import yaml

from schemaguard.models import NamingRules, Project, Table


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
PROJECT_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "project_example.yaml"


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_schemaguard_logger() -> Iterator[None]:
    """The CLI rewires the 'schemaguard' logger; restore it so caplog keeps working."""
    yield
    root_logger = logging.getLogger("schemaguard")
    root_logger.handlers.clear()
    root_logger.propagate = True
    root_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Raw project data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_project_dict() -> Dict[str, Any]:
    """Load the reference project_example.yaml once per session and return as dict."""
    assert PROJECT_EXAMPLE_PATH.exists(), (
        f"Reference project not found at {PROJECT_EXAMPLE_PATH}. "
        "Make sure project_example.yaml is in the project root."
    )
    with open(PROJECT_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def project_dict(raw_project_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_project_dict)


@pytest.fixture()
def project(project_dict: Dict[str, Any]) -> Project:
    """The reference project as a validated model (no findings at all)."""
    return Project.model_validate(project_dict["project"])


@pytest.fixture()
def project_yaml_path(project_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the project dict to a temporary YAML file and return its path."""
    path = tmp_path / "project.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(project_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def project_json_path(project_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the project dict to a temporary JSON file and return its path."""
    path = tmp_path / "project.json"
    path.write_text(json.dumps(project_dict, ensure_ascii=False), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Minimal / edge-case table fixtures
# ---------------------------------------------------------------------------


def system_column_dicts() -> List[Dict[str, Any]]:
    """The four audit columns every table must carry, correctly configured."""
    return [
        {"name": "REG_ID", "description": "등록자 ID", "dataType": "VARCHAR",
         "maxLength": 25, "nullable": False, "orderIndex": 90},
        {"name": "REG_DT", "description": "등록일시", "dataType": "DATETIME",
         "nullable": False, "defaultValue": "GETDATE()", "orderIndex": 91},
        {"name": "CHG_ID", "description": "수정자 ID", "dataType": "VARCHAR",
         "maxLength": 25, "orderIndex": 92},
        {"name": "CHG_DT", "description": "수정일시", "dataType": "DATETIME",
         "orderIndex": 93},
    ]


@pytest.fixture()
def code_table_dict() -> Dict[str, Any]:
    """Smallest valid table: one primary-key column plus the system columns."""
    return {
        "name": "CODE",
        "description": "공통 코드",
        "columns": [
            {
                "name": "CODE_ID",
                "description": "코드 ID",
                "dataType": "INT",
                "nullable": False,
                "primaryKey": True,
                "orderIndex": 1,
            },
            *system_column_dicts(),
        ],
    }


@pytest.fixture()
def code_table(code_table_dict: Dict[str, Any]) -> Table:
    return Table.model_validate(code_table_dict)


@pytest.fixture()
def order_line_table_dict() -> Dict[str, Any]:
    """A table with a composite primary key and a CHECK-worthy TINYINT column."""
    return {
        "name": "ORDER_LINE",
        "description": "주문 상세",
        "columns": [
            {"name": "ORDER_LINE_ORDER_ID", "description": "주문 ID", "dataType": "BIGINT",
             "nullable": False, "primaryKey": True, "orderIndex": 1},
            {"name": "ORDER_LINE_NO", "description": "주문 순번", "dataType": "INT",
             "nullable": False, "primaryKey": True, "orderIndex": 2},
            {"name": "STATUS", "description": "상태", "dataType": "TINYINT",
             "nullable": False, "defaultValue": "0", "orderIndex": 3},
            *system_column_dicts(),
        ],
    }


@pytest.fixture()
def sloppy_table_dict() -> Dict[str, Any]:
    """A table breaking several rules at once (no system columns, lowercase names)."""
    return {
        "name": "userInfo",
        "description": "userInfo",
        "columns": [
            {"name": "ID", "description": "아이디", "dataType": "INT",
             "nullable": False, "primaryKey": True},
            {"name": "userName", "description": "사용자명", "dataType": "VARCHAR"},
        ],
    }


@pytest.fixture()
def upper_rules() -> NamingRules:
    """SQL Server style rules: uppercase identifiers, table-qualified PK names."""
    return NamingRules(enforce_upper_case=True, enforce_table_column_naming=True)


# ---------------------------------------------------------------------------
# Output directory fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Provide a clean output directory inside tmp_path."""
    out = tmp_path / "export_output"
    out.mkdir(parents=True, exist_ok=True)
    return out
