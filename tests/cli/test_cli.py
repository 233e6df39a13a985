"""Tests for the Typer CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from bgv_system.cli.main import app

runner = CliRunner()


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def fact_files(tmp_path):
    claimed = tmp_path / "claimed.json"
    verified = tmp_path / "verified.json"
    claimed.write_text(json.dumps({"employeeName": "Jane Doe", "salary": "₹10,00,000"}))
    verified.write_text(json.dumps({"employeeName": "jane doe", "salary": "₹11,20,000"}))
    return claimed, verified


def _eml(tmp_path, subject: str) -> str:
    path = tmp_path / "reply.eml"
    path.write_bytes(
        (
            "Message-ID: <reply1@acme.com>\r\n"
            f"Subject: {subject}\r\n"
            "From: hr@acme.com\r\n"
            "Content-Type: text/plain; charset=utf-8\r\n"
            "\r\n"
            "Salary: 12 LPA\r\n"
        ).encode("utf-8")
    )
    return str(path)


# ── Commands ──────────────────────────────────────────────────────────────


class TestCompare:
    def test_panel_output(self, fact_files) -> None:
        claimed, verified = fact_files
        result = runner.invoke(app, ["compare", str(claimed), str(verified)])
        assert result.exit_code == 0
        assert "GREEN" in result.output
        assert "12.0%" in result.output

    def test_json_output(self, fact_files) -> None:
        claimed, verified = fact_files
        result = runner.invoke(app, ["compare", str(claimed), str(verified), "--json"])
        assert result.exit_code == 0
        assert '"riskScore": 20' in result.output

    def test_enterprise_tier(self, fact_files) -> None:
        claimed, verified = fact_files
        result = runner.invoke(app, ["compare", str(claimed), str(verified), "-t", "enterprise"])
        assert result.exit_code == 0
        assert "YELLOW" in result.output

    def test_missing_file(self, tmp_path) -> None:
        missing = str(tmp_path / "missing.json")
        result = runner.invoke(app, ["compare", missing, missing])
        assert result.exit_code == 1


class TestExtract:
    def test_free_text(self, tmp_path) -> None:
        body = tmp_path / "body.txt"
        body.write_text("Designation: Senior Developer\nSalary: 12 LPA\n")
        result = runner.invoke(app, ["extract", str(body)])
        assert result.exit_code == 0
        assert "FREE_TEXT" in result.output
        assert "Senior Developer" in result.output


class TestCorrelate:
    def test_subject_tag(self, tmp_path) -> None:
        eml = _eml(tmp_path, "Re: Employment Verification [Check: CHK_EMP_1]")
        result = runner.invoke(app, ["correlate", eml])
        assert result.exit_code == 0
        assert "CHK_EMP_1" in result.output

    def test_unresolved(self, tmp_path) -> None:
        eml = _eml(tmp_path, "Re: hello")
        result = runner.invoke(app, ["correlate", eml])
        assert result.exit_code == 2

    def test_missing_log(self, tmp_path) -> None:
        eml = _eml(tmp_path, "Re: hello")
        result = runner.invoke(app, ["correlate", eml, "--log", str(tmp_path / "nope.json")])
        assert result.exit_code == 1


class TestStatus:
    def test_status(self) -> None:
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "Reminders" in result.output
