"""LogFilters — the operator-facing filter set for query, export and stats.

All filters are optional and ANDed; the free-text search is ORed across
fields. Blank strings always mean "unset" so that values coming straight from
HTML forms or query strings never turn into accidental equality filters.

Usage:
    filters = LogFilters(filterActionType="DELETE", filterSuccess="false")
    filters.matches(entry)  # in-memory evaluation
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import Field, field_validator

from actionlog.models.enums import ActionType, RiskLevel
from actionlog.schemas.base import CamelModel
from actionlog.schemas.log_entry import LogEntry

_TRUE_STRINGS = frozenset({"true"})
_FALSE_STRINGS = frozenset({"false"})


class LogFilters(CamelModel):
    """Filter set accepted by the query engine."""

    user_id: str | None = Field(default=None, alias="filterUserId")
    action_type: ActionType | None = Field(default=None, alias="filterActionType")
    resource_type: str | None = Field(default=None, alias="filterResourceType")
    risk_level: RiskLevel | None = Field(default=None, alias="filterRiskLevel")
    success: bool | None = Field(default=None, alias="filterSuccess")
    date_from: datetime | None = Field(default=None, alias="dateFrom")
    date_to: datetime | None = Field(default=None, alias="dateTo")
    search: str | None = Field(default=None, alias="searchQuery")

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_unset(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("action_type", mode="before")
    @classmethod
    def _upper_action(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("risk_level", "resource_type", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("success", mode="before")
    @classmethod
    def _tri_state(cls, v: Any) -> Any:
        """Accept a bool or the literal strings "true"/"false"."""
        if v is None or isinstance(v, bool):
            return v
        if isinstance(v, str):
            lowered = v.strip().lower()
            if not lowered:
                return None
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        msg = f"filterSuccess must be true, false or empty, got {v!r}"
        raise ValueError(msg)

    @field_validator("date_from", "date_to")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @property
    def is_empty(self) -> bool:
        """True when no filter is set."""
        return all(value is None for value in self.model_dump().values())

    def matches(self, entry: LogEntry) -> bool:
        """Evaluate the filters against a single entry (in-memory stores)."""
        if self.user_id is not None and entry.user_id != self.user_id:
            return False
        if self.action_type is not None and entry.action_type != self.action_type:
            return False
        if self.resource_type is not None and entry.resource_type != self.resource_type:
            return False
        if self.risk_level is not None and entry.risk_level != self.risk_level:
            return False
        if self.success is not None and entry.success is not self.success:
            return False
        if self.date_from is not None and entry.created_at < self.date_from:
            return False
        if self.date_to is not None and entry.created_at > self.date_to:
            return False
        if self.search:
            needle = self.search.casefold()
            return any(needle in value.casefold() for value in _searchable(entry))
        return True


def _searchable(entry: LogEntry) -> list[str]:
    """Text fields the free-text search looks into."""
    values = [
        entry.user_name,
        entry.user_email,
        entry.endpoint,
        entry.resource_name,
        json.dumps(entry.changes_summary, default=str) if entry.changes_summary else None,
        entry.workflow_name,
        entry.node_name,
        entry.resource_type,
    ]
    return [v for v in values if v]
