"""Compliance export — renders a page of system log entries as JSON or CSV.

Usage:
    from actionlog.security.data_export import export_logs

    page = await query_logs(store, filters, limit=1000)
    result = export_logs(page, ExportFormat.CSV)
    result.csv_data
"""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from actionlog.models.enums import ExportFormat
from actionlog.schemas.log_entry import LogEntry
from actionlog.schemas.results import ExportResult, LogPage
from actionlog.security.errors import LogValidationError

logger = logging.getLogger(__name__)


def _fmt(value: Any) -> str:
    """Render a single cell. None becomes empty, booleans lower-case."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def _fmt_json(value: Any) -> str:
    if not value:
        return ""
    return json.dumps(value, default=str)


# (header, getter) per column, in export order
CSV_COLUMNS: tuple[tuple[str, Callable[[LogEntry], str]], ...] = (
    ("ID", lambda e: _fmt(e.id)),
    ("Timestamp", lambda e: _fmt(e.created_at)),
    ("User ID", lambda e: _fmt(e.user_id)),
    ("User Email", lambda e: _fmt(e.user_email)),
    ("User Name", lambda e: _fmt(e.user_name)),
    ("User Role", lambda e: _fmt(e.user_role)),
    ("Action Type", lambda e: _fmt(e.action_type)),
    ("Resource Type", lambda e: _fmt(e.resource_type)),
    ("Resource ID", lambda e: _fmt(e.resource_id)),
    ("Resource Name", lambda e: _fmt(e.resource_name)),
    ("HTTP Method", lambda e: _fmt(e.http_method)),
    ("Endpoint", lambda e: _fmt(e.endpoint)),
    ("Workflow", lambda e: _fmt(e.workflow_name)),
    ("Node", lambda e: _fmt(e.node_name)),
    ("Status Code", lambda e: _fmt(e.status_code)),
    ("Success", lambda e: _fmt(e.success)),
    ("Error Message", lambda e: _fmt(e.error_message)),
    ("Execution Time (ms)", lambda e: _fmt(e.execution_time_ms)),
    ("Request Size", lambda e: _fmt(e.request_size)),
    ("IP Address", lambda e: _fmt(e.ip_address)),
    ("User Agent", lambda e: _fmt(e.user_agent)),
    ("Session ID", lambda e: _fmt(e.session_id)),
    ("Affected Users", lambda e: _fmt(e.affected_users_count or 0)),
    ("Risk Level", lambda e: _fmt(e.risk_level)),
    ("Changes Summary", lambda e: _fmt_json(e.changes_summary)),
)

CSV_HEADERS: tuple[str, ...] = tuple(header for header, _ in CSV_COLUMNS)


def logs_to_csv(entries: list[LogEntry]) -> str:
    """Header row plus one row per entry.

    Cells containing a comma, a quote or a newline are quoted with inner
    quotes doubled; everything else is written bare.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for entry in entries:
        writer.writerow([getter(entry) for _, getter in CSV_COLUMNS])
    return buffer.getvalue().rstrip("\n")


def parse_format(value: ExportFormat | str | None) -> ExportFormat:
    """Resolve the requested format; JSON when unset."""
    if value is None or value == "":
        return ExportFormat.JSON
    try:
        return ExportFormat(value.lower() if isinstance(value, str) else value)
    except ValueError as exc:
        raise LogValidationError(f"Unsupported export format: {value!r}") from exc


def export_logs(page: LogPage, export_format: ExportFormat | str | None = None) -> ExportResult:
    """Render an already-queried page. `total_records` is the filter-match total."""
    fmt = parse_format(export_format)
    exported_at = datetime.now(UTC)

    if fmt == ExportFormat.CSV:
        result = ExportResult(
            format=fmt,
            csv_data=logs_to_csv(page.entries),
            exported_at=exported_at,
            total_records=page.total,
        )
    else:
        result = ExportResult(
            format=fmt,
            data=page.entries,
            exported_at=exported_at,
            total_records=page.total,
        )

    logger.info("Exported %d/%d system log entries as %s", len(page.entries), page.total, fmt.value)
    return result
