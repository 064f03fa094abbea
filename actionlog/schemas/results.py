"""Result shapes returned by the logger's operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from actionlog.models.enums import ExportFormat, RiskLevel
from actionlog.schemas.base import CamelModel
from actionlog.schemas.log_entry import LogEntry


@dataclass
class LogResult:
    """Outcome of a `log` or `intercept` call. Never carries an exception."""

    logged: bool = False
    message: str = ""
    risk_level: RiskLevel | None = None
    execution_time_ms: int | None = None
    timestamp: datetime | None = None
    entry: LogEntry | None = None


class LogPage(CamelModel):
    """One page of query results plus the total match count."""

    entries: list[LogEntry]
    total: int
    limit: int
    offset: int

    @property
    def page(self) -> int:
        """1-based page number of this slice."""
        return self.offset // self.limit + 1

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total

    def to_wire(self) -> dict:
        return {
            "logs": [e.to_wire() for e in self.entries],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "offset": self.offset,
            "hasMore": self.has_more,
        }


class TopUser(CamelModel):
    user_id: str
    user_name: str
    count: int


class TopAction(CamelModel):
    action_type: str
    count: int


class TopResource(CamelModel):
    resource_type: str
    count: int


class LogStats(CamelModel):
    """Exact counters plus breakdowns over the recent window."""

    total_logs: int
    today_logs: int
    failed_actions: int
    high_risk_actions: int
    top_users: list[TopUser]
    top_actions: list[TopAction]
    top_resources: list[TopResource]
    risk_distribution: dict[RiskLevel, int]
    window_size: int


class CleanupResult(CamelModel):
    deleted_count: int
    cutoff_date: datetime
    next_cleanup: datetime


class ExportResult(CamelModel):
    """Rendered export. Exactly one of `data` / `csv_data` is set."""

    format: ExportFormat
    data: list[LogEntry] | None = None
    csv_data: str | None = None
    exported_at: datetime
    total_records: int

    def to_wire(self) -> dict:
        unused = "data" if self.format == ExportFormat.CSV else "csv_data"
        return self.model_dump(mode="json", by_alias=True, exclude={unused})
