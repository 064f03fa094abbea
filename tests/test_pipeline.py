"""Tests for the write pipeline and the diagnostics channel."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from actionlog.admin.diagnostics import DiagnosticsChannel
from actionlog.db.memory import InMemoryLogStore
from actionlog.models.enums import ActionType, RiskLevel
from actionlog.schemas.diagnostics import DiagnosticEvent, DiagnosticKind
from actionlog.schemas.log_entry import LogEntry
from actionlog.security.pipeline import WritePipeline


def _make_entry() -> LogEntry:
    return LogEntry(
        user_id="u-1",
        user_email="ada@example.com",
        user_name="Ada",
        user_role="admin",
        action_type=ActionType.DELETE,
        resource_type="user",
        endpoint="/api/users/1",
        risk_level=RiskLevel.HIGH,
    )


class TestWritePipeline:
    @pytest.mark.asyncio
    async def test_dispatch_does_not_wait(self):
        store = InMemoryLogStore()
        pipeline = WritePipeline(store, DiagnosticsChannel())

        task = pipeline.dispatch(_make_entry())
        assert pipeline.pending == 1
        assert not task.done()

        await pipeline.drain()
        assert pipeline.pending == 0
        assert len(store.entries) == 1
        assert store.entries[0].id is not None

    @pytest.mark.asyncio
    async def test_failed_insert_goes_to_diagnostics(self):
        store = AsyncMock()
        store.insert.side_effect = RuntimeError("disk full")
        channel = DiagnosticsChannel()
        pipeline = WritePipeline(store, channel)

        pipeline.dispatch(_make_entry())
        await pipeline.drain()

        events = channel.recent(DiagnosticKind.WRITE_FAILED)
        assert len(events) == 1
        assert events[0].message == "disk full"
        assert events[0].error_type == "RuntimeError"
        assert events[0].data["endpoint"] == "/api/users/1"

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_other_writes(self):
        store = InMemoryLogStore()
        store.insert = AsyncMock(side_effect=[RuntimeError("boom"), None])
        channel = DiagnosticsChannel()
        pipeline = WritePipeline(store, channel)

        pipeline.dispatch(_make_entry())
        pipeline.dispatch(_make_entry())
        await pipeline.drain()

        assert store.insert.await_count == 2
        assert len(channel.recent(DiagnosticKind.WRITE_FAILED)) == 1


class TestDiagnosticsChannel:
    def _event(self, kind=DiagnosticKind.INTERCEPT_FAILED):
        return DiagnosticEvent(kind=kind, message="x")

    def test_buffer_is_bounded(self):
        channel = DiagnosticsChannel(buffer_size=2)
        for _ in range(3):
            channel.report(self._event())
        assert len(channel.recent()) == 2

    def test_kind_filtered_subscriber(self):
        channel = DiagnosticsChannel()
        handler = MagicMock()
        channel.subscribe(handler, kinds=[DiagnosticKind.WRITE_FAILED])

        channel.report(self._event(DiagnosticKind.INTERCEPT_FAILED))
        channel.report(self._event(DiagnosticKind.WRITE_FAILED))

        assert handler.call_count == 1

    def test_failing_handler_is_isolated(self):
        channel = DiagnosticsChannel()
        bad = MagicMock(side_effect=ValueError("handler bug"))
        good = MagicMock()
        channel.subscribe(bad)
        channel.subscribe(good)

        channel.report(self._event())

        good.assert_called_once()

    def test_unsubscribe_and_clear(self):
        channel = DiagnosticsChannel()
        handler = MagicMock()
        channel.subscribe(handler)
        channel.unsubscribe(handler)
        channel.report(self._event())
        handler.assert_not_called()

        channel.clear()
        assert channel.recent() == []

    def test_from_exception(self):
        event = DiagnosticEvent.from_exception(
            DiagnosticKind.WRITE_FAILED, KeyError("k"), source_module="tests", endpoint="/x"
        )
        assert event.error_type == "KeyError"
        assert event.data == {"endpoint": "/x"}
