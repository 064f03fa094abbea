"""Tests for actionlog/security/data_export.py — JSON/CSV rendering."""

from __future__ import annotations

import csv
import io
import json
import uuid
from datetime import UTC, datetime

import pytest

from actionlog.models.enums import ActionType, ExportFormat, RiskLevel
from actionlog.schemas.log_entry import LogEntry
from actionlog.schemas.results import LogPage
from actionlog.security.data_export import CSV_HEADERS, export_logs, logs_to_csv, parse_format
from actionlog.security.errors import LogValidationError


def _make_entry(**overrides) -> LogEntry:
    data = {
        "id": uuid.UUID("00000000-0000-0000-0000-000000000001"),
        "created_at": datetime(2026, 5, 4, 9, 30, tzinfo=UTC),
        "user_id": "u-1",
        "user_email": "ada@example.com",
        "user_name": "Ada",
        "user_role": "admin",
        "action_type": ActionType.UPDATE,
        "resource_type": "user",
        "resource_name": "Smith, Jane",
        "http_method": "PATCH",
        "endpoint": "/api/users/1",
        "risk_level": RiskLevel.LOW,
    }
    data.update(overrides)
    return LogEntry(**data)


def _page(entries, total=None) -> LogPage:
    return LogPage(entries=entries, total=len(entries) if total is None else total, limit=50, offset=0)


class TestLogsToCsv:
    def test_header_only_when_empty(self):
        assert logs_to_csv([]) == ",".join(CSV_HEADERS)

    def test_comma_field_is_quoted(self):
        output = logs_to_csv([_make_entry()])
        assert ',"Smith, Jane",' in output

    def test_quotes_are_doubled(self):
        output = logs_to_csv([_make_entry(resource_name='The "Admin" group')])
        assert '"The ""Admin"" group"' in output

    def test_row_shape_and_values(self):
        entry = _make_entry(success=False, changes_summary={"role": {"to": "admin"}})
        rows = list(csv.reader(io.StringIO(logs_to_csv([entry]))))

        assert len(rows) == 2
        row = dict(zip(rows[0], rows[1], strict=True))
        assert row["Resource Name"] == "Smith, Jane"
        assert row["Success"] == "false"
        assert row["Action Type"] == "UPDATE"
        assert row["Risk Level"] == "low"
        assert row["Timestamp"] == "2026-05-04T09:30:00+00:00"
        assert json.loads(row["Changes Summary"]) == {"role": {"to": "admin"}}
        assert row["Error Message"] == ""

    def test_newline_field_stays_in_one_record(self):
        rows = list(csv.reader(io.StringIO(logs_to_csv([_make_entry(error_message="line1\nline2")]))))
        assert len(rows) == 2


class TestExportLogs:
    def test_default_is_json(self):
        result = export_logs(_page([_make_entry()], total=7))
        assert result.format == ExportFormat.JSON
        assert result.data is not None
        assert result.csv_data is None
        assert result.total_records == 7

    def test_json_wire_keeps_null_entry_fields(self):
        wire = export_logs(_page([_make_entry()])).to_wire()
        assert "csvData" not in wire
        [entry] = wire["data"]
        assert entry["resourceId"] is None
        assert entry["errorMessage"] is None

    def test_csv(self):
        result = export_logs(_page([_make_entry()]), "CSV")
        assert result.format == ExportFormat.CSV
        assert result.csv_data.startswith("ID,Timestamp,")
        assert "data" not in result.to_wire()

    def test_unknown_format(self):
        with pytest.raises(LogValidationError):
            parse_format("xml")

    def test_empty_format_is_json(self):
        assert parse_format("") == ExportFormat.JSON
