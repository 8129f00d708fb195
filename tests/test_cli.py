"""Tests for the command-line interface."""

import json

from typer.testing import CliRunner

from casecraft import __version__
from casecraft.cli import app, write_report
from casecraft.core.models import TestRunResult

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_validate_ok(tmp_path):
    path = tmp_path / "case.json"
    path.write_text(json.dumps({
        "name": "Smoke",
        "url": "https://example.test",
        "actions": [{"type": "assert_visible", "selector": "body", "description": "loaded"}],
    }))

    result = runner.invoke(app, ["validate", str(path)])

    assert result.exit_code == 0
    assert "Smoke" in result.stdout


def test_validate_reports_issues(tmp_path):
    path = tmp_path / "case.json"
    path.write_text(json.dumps({"name": "Bad", "url": "https://example.test", "actions": [{"type": "select"}]}))

    result = runner.invoke(app, ["validate", str(path)])

    assert result.exit_code == 1
    assert "Missing value for select action" in result.stdout


def test_parse_without_ai_writes_output(tmp_path):
    instructions = tmp_path / "steps.txt"
    instructions.write_text("Test: Login\nhttps://example.test/login\nClick Login button\n")
    output = tmp_path / "case.json"

    result = runner.invoke(app, ["parse", f"@{instructions}", "--no-ai", "-o", str(output)])

    assert result.exit_code == 0
    data = json.loads(output.read_text())["testCase"]
    assert data["name"] == "Login"
    assert data["actions"][0]["selector"] == "text=Login"


def test_parse_without_values_writes_nothing(tmp_path):
    output = tmp_path / "case.json"

    result = runner.invoke(
        app, ["parse", "https://x.test\nEnter username\nSelect from the grade dropdown", "--no-ai", "-o", str(output)]
    )

    assert result.exit_code == 1
    assert "Missing value for fill action" in result.stdout
    assert not output.exists()


def test_write_report_chooses_format_by_suffix(tmp_path):
    result = TestRunResult(name="Smoke", url="https://example.test")

    write_report(result, tmp_path / "run.html")
    write_report(result, tmp_path / "run.json")

    assert (tmp_path / "run.html").read_text(encoding="utf-8").startswith("<!DOCTYPE html>")
    assert json.loads((tmp_path / "run.json").read_text())["status"] == "passed"
