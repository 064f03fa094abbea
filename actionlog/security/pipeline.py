"""Async write pipeline — persists entries without blocking the caller.

`dispatch()` spawns one task per entry and returns at once. Delivery is
at-most-once: a failed insert is reported on the diagnostics channel and the
entry is dropped. There is no retry queue and no ordering guarantee between
dispatch order and insert order; `created_at` (set by the builder) is the
only ordering anchor.

The pipeline keeps a reference to each in-flight task so the event loop does
not garbage-collect it, and so shutdown can `drain()` outstanding writes.
"""

from __future__ import annotations

import asyncio
import logging

from actionlog.admin.diagnostics import DiagnosticsChannel, diagnostics
from actionlog.db.store import LogStore
from actionlog.schemas.diagnostics import DiagnosticEvent, DiagnosticKind
from actionlog.schemas.log_entry import LogEntry

logger = logging.getLogger(__name__)


class WritePipeline:
    """Fire-and-forget dispatcher in front of a LogStore."""

    def __init__(self, store: LogStore, channel: DiagnosticsChannel | None = None) -> None:
        self._store = store
        self._channel = channel or diagnostics
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Writes spawned but not finished yet."""
        return len(self._tasks)

    def dispatch(self, entry: LogEntry) -> asyncio.Task[None]:
        """Spawn the insert and return immediately.

        Must be called from a running event loop. Nobody on the request path
        awaits the returned task.
        """
        task = asyncio.create_task(
            self._write(entry),
            name=f"actionlog-write-{entry.action_type.value}-{entry.resource_type}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every in-flight write. Used at shutdown and in tests."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _write(self, entry: LogEntry) -> None:
        try:
            await self._store.insert(entry)
        except Exception as exc:
            logger.exception(
                "Dropping log entry after failed insert: %s %s (user=%s)",
                entry.action_type.value,
                entry.endpoint,
                entry.user_id,
            )
            self._channel.report(DiagnosticEvent.from_exception(
                DiagnosticKind.WRITE_FAILED,
                exc,
                source_module="security.pipeline",
                action_type=entry.action_type.value,
                resource_type=entry.resource_type,
                endpoint=entry.endpoint,
                user_id=entry.user_id,
            ))
