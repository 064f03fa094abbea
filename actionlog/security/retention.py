"""Log retention enforcement — age-based deletion of system log entries.

One policy row governs cleanup:
- retention_days (default 3 years): informational soft threshold
- archive_days (default 5 years): entries at or beyond this age are deleted

The policy is created with defaults on the first cleanup if it does not
exist. Cleanup is idempotent: running it twice deletes nothing the second
time. Overlapping runs are not excluded; deletes are per-row idempotent and
the later `last_cleanup` write wins.

Wired into the FastAPI lifespan via `run_retention_loop` when
ACTIONLOG_CLEANUP_ENABLED is set.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from actionlog.admin.diagnostics import DiagnosticsChannel, diagnostics
from actionlog.config import ActionLogSettings, settings
from actionlog.db.store import LogStore
from actionlog.schemas.diagnostics import DiagnosticEvent, DiagnosticKind
from actionlog.schemas.results import CleanupResult
from actionlog.schemas.retention import RetentionPolicy
from actionlog.security.errors import ActionLogError, LogStorageError

logger = logging.getLogger(__name__)


class RetentionManager:
    """Applies the retention policy to a LogStore."""

    def __init__(
        self,
        store: LogStore,
        config: ActionLogSettings | None = None,
        channel: DiagnosticsChannel | None = None,
    ) -> None:
        self._store = store
        self._config = config or settings.actionlog
        self._channel = channel or diagnostics

    @property
    def interval(self) -> timedelta:
        return timedelta(hours=self._config.cleanup_interval_hours)

    async def load_policy(self) -> RetentionPolicy:
        """Return the singleton policy, creating it with defaults if absent."""
        policy = await self._store.get_retention_policy()
        if policy is None:
            policy = await self._store.create_retention_policy(
                RetentionPolicy(
                    retention_days=self._config.retention_days,
                    archive_days=self._config.archive_days,
                )
            )
        return policy

    async def cleanup(self) -> CleanupResult:
        """Delete entries older than archive_days and stamp last_cleanup."""
        try:
            policy = await self.load_policy()
            now = datetime.now(UTC)
            cutoff = now - timedelta(days=policy.archive_days)

            deleted = await self._store.delete_older_than(cutoff)
            if policy.id is not None:
                await self._store.record_cleanup(policy.id, now)
        except ActionLogError:
            raise
        except Exception as exc:
            logger.exception("Retention cleanup failed")
            self._channel.report(DiagnosticEvent.from_exception(
                DiagnosticKind.CLEANUP_FAILED, exc, source_module="security.retention"
            ))
            raise LogStorageError(f"Retention cleanup failed: {exc}") from exc

        result = CleanupResult(
            deleted_count=deleted,
            cutoff_date=cutoff,
            next_cleanup=now + self.interval,
        )
        self._channel.report(DiagnosticEvent(
            kind=DiagnosticKind.CLEANUP_COMPLETED,
            message=f"Deleted {deleted} entries older than {cutoff.date()}",
            data={"deleted_count": deleted, "cutoff_date": cutoff.isoformat()},
            source_module="security.retention",
        ))
        logger.info("Retention cleanup complete: deleted=%d cutoff=%s", deleted, cutoff.date())
        return result


async def run_retention_loop(manager: RetentionManager, interval: timedelta | None = None) -> None:
    """Background task: run cleanup every `interval` until cancelled.

    A failed tick is logged and the loop keeps going.
    """
    period = (interval or manager.interval).total_seconds()
    logger.info("Retention loop started (every %.0fs)", period)
    while True:
        try:
            await manager.cleanup()
        except asyncio.CancelledError:
            logger.info("Retention loop shutting down")
            raise
        except Exception:
            logger.exception("Scheduled retention cleanup failed")
        await asyncio.sleep(period)
