"""
tests/test_loader_cli.py
Tests for schemaguard.loader and the schemaguard.cli entry point.

Tests cover:
- Loading JSON / YAML project files (and unknown extensions)
- Accepted project layouts and export option keys
- Parse / validation failures surfaced as ValueError
- CLI exit codes for success, validation failure, --force, input and export errors
- CLI output routing (report vs. artifact) and file output
"""

from __future__ import annotations

import json
import pathlib
from typing import Any, Dict, List

import pytest
import yaml

from schemaguard.cli import (
    EXIT_EXPORT_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    cli_main,
)
from schemaguard.loader import load_project, load_project_file, parse_raw_project
from schemaguard.models import ExportOptions, Project


def _run_cli(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(argv)
    return exc_info.value.code


def _write_yaml(path: pathlib.Path, data: Dict[str, Any]) -> pathlib.Path:
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, allow_unicode=True)
    return path


# ===========================================================================
# Loader
# ===========================================================================


class TestLoadProjectFile:
    """Tests for load_project_file."""

    def test_yaml(self, project_yaml_path: pathlib.Path) -> None:
        data = load_project_file(project_yaml_path)
        assert data["project"]["name"] == "shop"

    def test_json(self, project_json_path: pathlib.Path) -> None:
        data = load_project_file(project_json_path)
        assert data["project"]["name"] == "shop"

    def test_unknown_extension_json(self, tmp_path: pathlib.Path, project_dict: Dict[str, Any]) -> None:
        path = tmp_path / "project.txt"
        path.write_text(json.dumps(project_dict), encoding="utf-8")
        assert load_project_file(path)["project"]["name"] == "shop"

    def test_unknown_extension_yaml(self, tmp_path: pathlib.Path, project_dict: Dict[str, Any]) -> None:
        path = _write_yaml(tmp_path / "project.def", project_dict)
        assert load_project_file(path)["project"]["name"] == "shop"

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_project_file(tmp_path / "nope.yaml")

    def test_directory(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ValueError):
            load_project_file(tmp_path)

    def test_invalid_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("project: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_project_file(path)

    def test_invalid_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_project_file(path)

    def test_top_level_must_be_mapping(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_project_file(path)


class TestParseRawProject:
    """Tests for parse_raw_project / load_project."""

    def test_nested_layout(self, project_dict: Dict[str, Any]) -> None:
        project, options = parse_raw_project(project_dict)
        assert isinstance(project, Project)
        assert project.table_count == 2
        assert project.naming_rules is not None
        assert project.naming_rules.enforce_upper_case
        assert options.filename_stem == "shop_schema"

    def test_flat_layout_with_export_options(self, code_table_dict: Dict[str, Any]) -> None:
        raw = {
            "name": "flat",
            "tables": [code_table_dict],
            "exportOptions": {"format": "markdown", "includeIndexes": False},
        }
        project, options = parse_raw_project(raw)
        assert project.name == "flat"
        assert options.format == "markdown"
        assert options.include_indexes is False

    def test_default_export_options(self, code_table_dict: Dict[str, Any]) -> None:
        _, options = parse_raw_project({"tables": [code_table_dict]})
        assert options == ExportOptions()

    def test_missing_project(self) -> None:
        with pytest.raises(ValueError, match="Cannot find project definition"):
            parse_raw_project({"export": {"format": "sql"}})

    def test_invalid_model(self, project_dict: Dict[str, Any]) -> None:
        project_dict["project"]["tables"][0]["columns"][0]["dataType"] = "GEOGRAPHY"
        with pytest.raises(ValueError, match="Project validation failed"):
            parse_raw_project(project_dict)

    def test_invalid_rule_pattern_is_loaded_as_is(self, project_dict: Dict[str, Any]) -> None:
        project_dict["project"]["namingRules"]["tablePattern"] = "["
        project, _ = parse_raw_project(project_dict)
        assert project.naming_rules is not None
        assert project.naming_rules.table_pattern == "["

    def test_export_must_be_mapping(self, project_dict: Dict[str, Any]) -> None:
        project_dict["export"] = "sql"
        with pytest.raises(ValueError, match="must be a mapping"):
            parse_raw_project(project_dict)

    def test_invalid_export_options(self, project_dict: Dict[str, Any]) -> None:
        project_dict["export"] = {"format": "pdf"}
        with pytest.raises(ValueError, match="Export options validation failed"):
            parse_raw_project(project_dict)

    def test_load_project(self, project_yaml_path: pathlib.Path) -> None:
        project, options = load_project(project_yaml_path)
        assert project.get_table("order_item") is not None
        assert options.format == "sql"


# ===========================================================================
# CLI
# ===========================================================================


class TestCli:
    """End-to-end tests for cli_main."""

    def test_validate_only_success(
        self, project_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture
    ) -> None:
        code = _run_cli(["-p", str(project_yaml_path), "--validate-only"])
        assert code == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "Naming Validation Report" in out
        assert "Score:    100/100" in out

    def test_validation_failure(
        self, tmp_path: pathlib.Path, sloppy_table_dict: Dict[str, Any]
    ) -> None:
        path = _write_yaml(tmp_path / "sloppy.yaml", {"tables": [sloppy_table_dict]})
        assert _run_cli(["-p", str(path), "--validate-only", "-q"]) == EXIT_VALIDATION_ERROR

    def test_force(self, tmp_path: pathlib.Path, sloppy_table_dict: Dict[str, Any]) -> None:
        path = _write_yaml(tmp_path / "sloppy.yaml", {"tables": [sloppy_table_dict]})
        assert _run_cli(["-p", str(path), "--validate-only", "--force", "-q"]) == EXIT_SUCCESS

    def test_fail_on_warnings(self, tmp_path: pathlib.Path, project_dict: Dict[str, Any]) -> None:
        project_dict["project"]["tables"][0]["columns"].append(
            {"name": "MEMO", "description": "메모", "dataType": "TEXT", "orderIndex": 20}
        )
        path = _write_yaml(tmp_path / "warn.yaml", project_dict)
        assert _run_cli(["-p", str(path), "--validate-only", "-q"]) == EXIT_SUCCESS
        assert (
            _run_cli(["-p", str(path), "--validate-only", "-q", "--fail-on-warnings"])
            == EXIT_VALIDATION_ERROR
        )

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        assert _run_cli(["-p", str(tmp_path / "nope.yaml"), "-q"]) == EXIT_INPUT_ERROR

    def test_broken_rule_pattern_is_a_validation_failure(
        self,
        tmp_path: pathlib.Path,
        project_dict: Dict[str, Any],
        capsys: pytest.CaptureFixture,
    ) -> None:
        project_dict["project"]["namingRules"]["tablePattern"] = "["
        path = _write_yaml(tmp_path / "rules.yaml", project_dict)
        code = _run_cli(["-p", str(path), "--validate-only", "--json-report"])
        assert code == EXIT_VALIDATION_ERROR
        report = json.loads(capsys.readouterr().out)
        assert [e["rule"] for e in report["errors"]] == ["rule_configuration"]

    def test_json_report(
        self, project_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture
    ) -> None:
        code = _run_cli(["-p", str(project_yaml_path), "--validate-only", "--json-report"])
        assert code == EXIT_SUCCESS
        report = json.loads(capsys.readouterr().out)
        assert report["isValid"] is True
        assert report["score"] == 100
        assert report["project"] == "shop"

    def test_advanced_advisories(
        self,
        tmp_path: pathlib.Path,
        project_dict: Dict[str, Any],
        capsys: pytest.CaptureFixture,
    ) -> None:
        email = project_dict["project"]["tables"][0]["columns"][2]
        assert email["name"] == "EMAIL"
        email["nullable"] = True
        path = _write_yaml(tmp_path / "pii.yaml", project_dict)

        assert _run_cli(["-p", str(path), "--validate-only", "--json-report"]) == EXIT_SUCCESS
        assert json.loads(capsys.readouterr().out)["warningCount"] == 0

        code = _run_cli(["-p", str(path), "--validate-only", "--json-report", "--advanced"])
        assert code == EXIT_SUCCESS
        report = json.loads(capsys.readouterr().out)
        assert [w["rule"] for w in report["warnings"]] == ["security_pii_nullable"]
        assert report["score"] == 99

    def test_suggest(
        self,
        tmp_path: pathlib.Path,
        sloppy_table_dict: Dict[str, Any],
        capsys: pytest.CaptureFixture,
    ) -> None:
        path = _write_yaml(tmp_path / "sloppy.yaml", {"tables": [sloppy_table_dict]})
        _run_cli(["-p", str(path), "--validate-only", "--suggest", "--force"])
        out = capsys.readouterr().out
        assert "Suggested renames" in out
        assert "userInfo → USER_INFO" in out

    def test_artifact_to_stdout_keeps_report_on_stderr(
        self, project_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture
    ) -> None:
        code = _run_cli(["-p", str(project_yaml_path), "-f", "csv"])
        assert code == EXIT_SUCCESS
        captured = capsys.readouterr()
        assert captured.out.startswith("table,column,type")
        assert "Naming Validation Report" in captured.err

    def test_export_to_directory(
        self, project_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run_cli(
            ["-p", str(project_yaml_path), "-f", "markdown", "-o", str(output_dir), "-q"]
        )
        assert code == EXIT_SUCCESS
        written = output_dir / "shop_schema.md"
        assert written.exists()
        assert written.read_text(encoding="utf-8").startswith("# 데이터베이스 스키마 문서")

    def test_export_to_file_with_sql_flags(
        self, project_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        target = output_dir / "nested" / "ddl.sql"
        code = _run_cli(
            [
                "-p", str(project_yaml_path),
                "-o", str(target),
                "--batch", "--drop", "--existence-checks", "--schema", "sales", "--no-comments",
                "-q",
            ]
        )
        assert code == EXIT_SUCCESS
        sql = target.read_text(encoding="utf-8")
        assert "BEGIN TRANSACTION;" in sql
        assert "DROP TABLE [sales].[ORDER_ITEM];" in sql
        assert "CREATE TABLE [sales].[USER] (" in sql
        assert "sp_addextendedproperty" not in sql

    def test_timestamped_filename(
        self, project_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run_cli(
            ["-p", str(project_yaml_path), "-f", "json", "-o", str(output_dir),
             "--timestamp", "20240101", "-q"]
        )
        assert code == EXIT_SUCCESS
        assert (output_dir / "shop_schema_20240101.json").exists()

    def test_export_error(self, tmp_path: pathlib.Path, project_dict: Dict[str, Any]) -> None:
        project_dict["project"]["tables"][0]["indexes"][0]["columns"] = [{"columnName": "NOPE"}]
        path = _write_yaml(tmp_path / "broken.yaml", project_dict)
        assert _run_cli(["-p", str(path), "-q", "--force"]) == EXIT_EXPORT_ERROR

    def test_export_runs_even_when_invalid(
        self,
        tmp_path: pathlib.Path,
        sloppy_table_dict: Dict[str, Any],
        output_dir: pathlib.Path,
    ) -> None:
        path = _write_yaml(tmp_path / "sloppy.yaml", {"tables": [sloppy_table_dict]})
        code = _run_cli(["-p", str(path), "-o", str(output_dir), "-q"])
        assert code == EXIT_VALIDATION_ERROR
        assert (output_dir / "schema.sql").exists()

    def test_version(self, capsys: pytest.CaptureFixture) -> None:
        assert _run_cli(["--version"]) == 0
        assert "SchemaGuard" in capsys.readouterr().out

    def test_project_argument_is_required(self) -> None:
        assert _run_cli([]) == 2
