"""Tests for the gst-audit CLI."""

from __future__ import annotations

import io
import json

import pytest
from openpyxl import load_workbook
from typer.testing import CliRunner

from gst_audit import __version__
from gst_audit.cli.app import app
from gst_audit.core.sqlite_conn import SqliteConnection

runner = CliRunner()


@pytest.fixture
def db(tmp_path) -> str:
    return str(tmp_path / "cli.db")


def invoke(*args: str):
    return runner.invoke(app, list(args))


class TestRoot:
    def test_version(self):
        result = invoke("--version")
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_groups(self):
        result = invoke("--help")
        assert result.exit_code == 0
        for group in ("schedule", "keys", "report", "hsn", "db", "serve"):
            assert group in result.output


class TestDbCommands:
    def test_init_and_tables(self, db):
        assert invoke("db", "init", "--database", db).exit_code == 0
        result = invoke("db", "tables", "--database", db)
        assert result.exit_code == 0
        assert "gst_access_keys" in result.output


class TestScheduleCommands:
    def test_set_then_show_json(self, db):
        result = invoke(
            "schedule", "set", "--enabled", "-r", "a@example.com,b@example.com", "--day", "5", "--time", "06:30",
            "--database", db,
        )
        assert result.exit_code == 0, result.output

        shown = invoke("schedule", "show", "--json", "--database", db)
        data = json.loads(shown.output)
        assert data["enabled"] is True
        assert data["recipients"] == ["a@example.com", "b@example.com"]
        assert data["day_of_month"] == 5
        assert data["time_of_day"] == "06:30"
        assert data["next_run"] is not None

    def test_invalid_values_fall_back(self, db):
        invoke("schedule", "set", "--day", "31", "--time", "noon", "--database", db)
        data = json.loads(invoke("schedule", "show", "--json", "--database", db).output)
        assert data["day_of_month"] == 1
        assert data["time_of_day"] == "09:00"

    def test_attempt_when_disabled(self, db):
        result = invoke("schedule", "attempt", "--json", "--database", db)
        assert result.exit_code == 0
        assert json.loads(result.output)["outcome"] == "disabled"

    def test_attempt_bad_timestamp(self, db):
        result = invoke("schedule", "attempt", "--at", "yesterday", "--database", db)
        assert result.exit_code != 0

    def test_reset_requires_confirmation(self, db):
        aborted = runner.invoke(app, ["schedule", "reset", "--database", db], input="n\n")
        assert aborted.exit_code != 0
        assert invoke("schedule", "reset", "--yes", "--database", db).exit_code == 0


class TestKeyCommands:
    def test_show_and_rotate(self, db):
        shown = invoke("keys", "show", "--database", db)
        assert shown.exit_code == 0
        rotated = invoke("keys", "rotate", "--yes", "--database", db)
        assert rotated.exit_code == 0
        assert "Warning" in rotated.output

        history = invoke("keys", "list", "--database", db)
        assert history.exit_code == 0
        assert "True" in history.output and "False" in history.output

    def test_logs_empty(self, db):
        result = invoke("keys", "logs", "--database", db)
        assert result.exit_code == 0
        assert "No items" in result.output


class TestHsnCommands:
    def test_list_and_set(self, db):
        invoke("db", "init", "--database", db)
        conn = SqliteConnection(db)
        conn.execute("INSERT INTO gst_products (product_id, name, status) VALUES (7, 'Tea', 'publish')")
        conn.commit()
        conn.close()

        listed = invoke("hsn", "list", "--database", db)
        assert listed.exit_code == 0
        assert "missing" in listed.output

        assert invoke("hsn", "set", "7", "0902", "--database", db).exit_code == 0
        assert "0902" in invoke("hsn", "list", "--database", db).output

    def test_set_unknown_product_fails(self, db):
        result = invoke("hsn", "set", "99", "0902", "--database", db)
        assert result.exit_code == 1


class TestReportCommands:
    def test_export_to_directory(self, db, tmp_path):
        result = invoke("report", "export", "--period", "2024-02", "--output", str(tmp_path), "--database", db)
        assert result.exit_code == 0, result.output
        path = tmp_path / "gst-audit-export-2024-02.xlsx"
        ws = load_workbook(io.BytesIO(path.read_bytes())).active
        assert ws["A1"].value == "Order Date"

    def test_preview_bad_period(self, db):
        result = invoke("report", "preview", "--period", "2024-00", "--database", db)
        assert result.exit_code == 1

    def test_test_send_invalid_address(self, db):
        result = invoke("report", "test", "nobody", "--database", db)
        assert result.exit_code == 1
