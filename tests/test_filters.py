"""Tests for LogFilters — coercion of operator input and in-memory matching."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from actionlog.admin.queries import build_filters
from actionlog.models.enums import ActionType, RiskLevel
from actionlog.schemas.filters import LogFilters
from actionlog.schemas.log_entry import LogEntry
from actionlog.security.errors import LogValidationError


def _make_entry(**overrides) -> LogEntry:
    data = {
        "user_id": "u-1",
        "user_email": "ada@example.com",
        "user_name": "Ada Lovelace",
        "user_role": "admin",
        "action_type": ActionType.UPDATE,
        "resource_type": "user",
        "endpoint": "/api/users/1",
        "risk_level": RiskLevel.LOW,
    }
    data.update(overrides)
    return LogEntry(**data)


class TestCoercion:
    def test_empty_success_is_unset(self):
        filters = LogFilters(filterSuccess="")
        assert filters.success is None
        assert filters.is_empty

    def test_success_strings(self):
        assert LogFilters(filterSuccess="TRUE").success is True
        assert LogFilters(filterSuccess="false").success is False

    def test_invalid_success_raises(self):
        with pytest.raises(LogValidationError, match="filterSuccess"):
            build_filters({"filterSuccess": "maybe"})

    def test_blank_strings_are_unset(self):
        filters = LogFilters(filterUserId="", filterActionType="  ", searchQuery="")
        assert filters.is_empty

    def test_case_normalization(self):
        filters = LogFilters(filterActionType="delete", filterRiskLevel="HIGH", filterResourceType="User")
        assert filters.action_type == ActionType.DELETE
        assert filters.risk_level == RiskLevel.HIGH
        assert filters.resource_type == "user"

    def test_naive_dates_are_utc(self):
        filters = LogFilters(dateFrom=datetime(2026, 1, 1))
        assert filters.date_from.tzinfo is UTC

    def test_unknown_action_raises(self):
        with pytest.raises(LogValidationError):
            build_filters(filterActionType="EXPLODE")

    def test_snake_case_keywords(self):
        filters = build_filters(user_id="u-2", success=False)
        assert filters.user_id == "u-2"
        assert filters.success is False


class TestMatches:
    def test_empty_matches_everything(self):
        assert LogFilters().matches(_make_entry())

    def test_and_semantics(self):
        filters = LogFilters(filterUserId="u-1", filterActionType="DELETE")
        assert not filters.matches(_make_entry())
        assert filters.matches(_make_entry(action_type=ActionType.DELETE))

    def test_success_false(self):
        filters = LogFilters(filterSuccess="false")
        assert filters.matches(_make_entry(success=False))
        assert not filters.matches(_make_entry(success=True))

    def test_date_range_inclusive(self):
        at = datetime(2026, 3, 1, 12, tzinfo=UTC)
        entry = _make_entry(created_at=at)
        assert LogFilters(dateFrom=at, dateTo=at).matches(entry)
        assert not LogFilters(dateFrom=at + timedelta(seconds=1)).matches(entry)

    def test_search_is_case_insensitive(self):
        assert LogFilters(searchQuery="LOVELACE").matches(_make_entry())

    def test_search_covers_changes_summary(self):
        entry = _make_entry(changes_summary={"role": {"to": "auditor"}})
        assert LogFilters(searchQuery="auditor").matches(entry)
        assert not LogFilters(searchQuery="nowhere").matches(entry)
