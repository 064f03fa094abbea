"""Tests for actionlog/admin/queries.py — query engine and statistics."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from actionlog.admin.queries import get_log_stats, normalize_pagination, query_logs
from actionlog.db.memory import InMemoryLogStore
from actionlog.models.enums import ActionType, RiskLevel
from actionlog.schemas.log_entry import LogEntry
from actionlog.security.errors import LogStorageError, LogValidationError

# ── Helpers ──────────────────────────────────────────────────────────

_NOW = datetime.now(UTC)


def _make_entry(minutes_ago: int = 0, **overrides) -> LogEntry:
    data = {
        "created_at": _NOW - timedelta(minutes=minutes_ago),
        "user_id": "u-1",
        "user_email": "ada@example.com",
        "user_name": "Ada",
        "user_role": "admin",
        "action_type": ActionType.UPDATE,
        "resource_type": "profile",
        "endpoint": "/api/profile",
        "risk_level": RiskLevel.LOW,
    }
    data.update(overrides)
    return LogEntry(**data)


def _make_store() -> InMemoryLogStore:
    """25 DELETE entries and 5 others, newest first by index."""
    entries = [
        _make_entry(minutes_ago=i, action_type=ActionType.DELETE, resource_type="user", risk_level=RiskLevel.HIGH)
        for i in range(25)
    ]
    entries += [_make_entry(minutes_ago=100 + i) for i in range(5)]
    return InMemoryLogStore(entries)


# ── Pagination ───────────────────────────────────────────────────────


class TestNormalizePagination:
    def test_defaults(self):
        assert normalize_pagination(None, None) == (50, 0)

    def test_non_positive_limit_falls_back(self):
        assert normalize_pagination(0, 0) == (50, 0)
        assert normalize_pagination(-3, 0) == (50, 0)

    def test_cap(self):
        assert normalize_pagination(5000, 0) == (1000, 0)

    def test_negative_offset_raises(self):
        with pytest.raises(LogValidationError):
            normalize_pagination(10, -1)


# ── Query ────────────────────────────────────────────────────────────


class TestQueryLogs:
    @pytest.mark.asyncio
    async def test_filter_by_action_type(self):
        page = await query_logs(_make_store(), {"filterActionType": "DELETE"}, limit=10, offset=0)
        assert len(page.entries) == 10
        assert page.total == 25
        assert page.has_more is True
        assert page.page == 1

    @pytest.mark.asyncio
    async def test_newest_first(self):
        page = await query_logs(_make_store(), None, limit=30)
        stamps = [e.created_at for e in page.entries]
        assert stamps == sorted(stamps, reverse=True)

    @pytest.mark.asyncio
    async def test_offset(self):
        page = await query_logs(_make_store(), {"filterActionType": "DELETE"}, limit=10, offset=20)
        assert len(page.entries) == 5
        assert page.page == 3
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_empty_success_filter_is_ignored(self):
        page = await query_logs(_make_store(), {"filterSuccess": ""}, limit=100)
        assert page.total == 30

    @pytest.mark.asyncio
    async def test_wire_shape(self):
        page = await query_logs(_make_store(), None, limit=2)
        wire = page.to_wire()
        assert set(wire) == {"logs", "total", "page", "limit", "offset", "hasMore"}
        assert "userId" in wire["logs"][0]
        assert wire["logs"][0]["riskLevel"] == "high"

    @pytest.mark.asyncio
    async def test_store_failure_is_storage_error(self):
        store = AsyncMock()
        store.query.side_effect = RuntimeError("connection reset")
        with pytest.raises(LogStorageError, match="connection reset"):
            await query_logs(store, None)


# ── Statistics ───────────────────────────────────────────────────────


class TestGetLogStats:
    @pytest.mark.asyncio
    async def test_counters(self):
        store = InMemoryLogStore([
            _make_entry(success=False),
            _make_entry(risk_level=RiskLevel.HIGH),
            _make_entry(risk_level=RiskLevel.CRITICAL),
            _make_entry(minutes_ago=60 * 24 * 3),
        ])
        stats = await get_log_stats(store)
        assert stats.total_logs == 4
        assert stats.failed_actions == 1
        assert stats.high_risk_actions == 1
        assert stats.today_logs >= 3

    @pytest.mark.asyncio
    async def test_risk_distribution_has_all_levels(self):
        stats = await get_log_stats(InMemoryLogStore([_make_entry()]))
        assert stats.risk_distribution == {
            RiskLevel.LOW: 1,
            RiskLevel.MEDIUM: 0,
            RiskLevel.HIGH: 0,
            RiskLevel.CRITICAL: 0,
        }

    @pytest.mark.asyncio
    async def test_breakdowns_use_window(self):
        stats = await get_log_stats(_make_store(), window=10)
        assert stats.total_logs == 30
        assert stats.window_size == 10
        assert stats.top_actions[0].action_type == "DELETE"
        assert stats.top_actions[0].count == 10
        assert len(stats.top_actions) == 1

    @pytest.mark.asyncio
    async def test_top_users_ties_keep_newest_first(self):
        store = InMemoryLogStore([
            _make_entry(minutes_ago=3, user_id="u-old", user_name="Old"),
            _make_entry(minutes_ago=1, user_id="u-new", user_name="New"),
            _make_entry(minutes_ago=2, user_id="u-mid", user_name="Mid"),
        ])
        stats = await get_log_stats(store)
        assert [u.user_id for u in stats.top_users] == ["u-new", "u-mid", "u-old"]

    @pytest.mark.asyncio
    async def test_top_lists_capped_at_ten(self):
        store = InMemoryLogStore([_make_entry(minutes_ago=i, user_id=f"u-{i}") for i in range(15)])
        stats = await get_log_stats(store)
        assert len(stats.top_users) == 10

    @pytest.mark.asyncio
    async def test_wire_keys(self):
        wire = (await get_log_stats(InMemoryLogStore())).to_wire()
        assert wire["totalLogs"] == 0
        assert wire["riskDistribution"] == {"low": 0, "medium": 0, "high": 0, "critical": 0}
