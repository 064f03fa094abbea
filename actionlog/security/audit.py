"""SystemActionLogger — one object wiring builder, pipeline, interceptor,
queries, retention and export around a single LogStore.

Usage:
    from actionlog.security.audit import get_action_logger

    audit = get_action_logger()
    await audit.log(
        http_method="DELETE",
        endpoint="/api/users/42",
        auth_result=auth,
        outcome=Outcome(status_code=204),
    )
    page = await audit.query({"filterActionType": "DELETE"}, limit=20)

Write-side calls (`log`, `intercept`) never raise and return a LogResult.
Operator calls (`query`, `get_stats`, `export`, `cleanup`) raise
LogValidationError / LogStorageError.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from actionlog.admin import queries
from actionlog.admin.diagnostics import DiagnosticsChannel, diagnostics
from actionlog.config import ActionLogSettings, settings
from actionlog.db.store import LogStore
from actionlog.models.enums import ActionType, ExportFormat, InterceptPhase, RiskLevel
from actionlog.schemas.auth import AuthResult
from actionlog.schemas.filters import LogFilters
from actionlog.schemas.intercept import InterceptContext, LogOverrides, Outcome
from actionlog.schemas.results import CleanupResult, ExportResult, LogPage, LogResult, LogStats
from actionlog.security.builder import LogEntryBuilder
from actionlog.security.data_export import export_logs, parse_format
from actionlog.security.interceptor import RequestInterceptor
from actionlog.security.pipeline import WritePipeline
from actionlog.security.retention import RetentionManager

logger = logging.getLogger(__name__)


class SystemActionLogger:
    """Facade over the action log for workflows and the admin API."""

    def __init__(
        self,
        store: LogStore,
        config: ActionLogSettings | None = None,
        channel: DiagnosticsChannel | None = None,
    ) -> None:
        self.store = store
        self.config = config or settings.actionlog
        self.channel = channel or diagnostics

        self.builder = LogEntryBuilder(self.config)
        self.pipeline = WritePipeline(store, self.channel)
        self.interceptor = RequestInterceptor(self.builder, self.pipeline, self.config, self.channel)
        self.retention = RetentionManager(store, self.config, self.channel)

    # ── Write side ───────────────────────────────────────────────────

    async def intercept(
        self,
        phase: InterceptPhase | str,
        context: InterceptContext,
        outcome: Outcome | None = None,
    ) -> LogResult:
        return await self.interceptor.intercept(phase, context, outcome)

    async def log(
        self,
        *,
        http_method: str = "POST",
        endpoint: str = "unknown",
        auth_result: AuthResult | None = None,
        user_id: str | None = None,
        user_email: str | None = None,
        user_name: str | None = None,
        user_role: str | None = None,
        action_type: ActionType | str | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        resource_name: str | None = None,
        risk_level: RiskLevel | str | None = None,
        affected_users_count: int | None = None,
        changes_summary: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        client_host: str | None = None,
        workflow_name: str | None = None,
        node_name: str | None = None,
        session_id: str | None = None,
        outcome: Outcome | None = None,
    ) -> LogResult:
        """Record one action directly, outside a start/complete pair.

        Explicit fields win over inference. Subject to the same skip rule as
        the interceptor, so a GET is never logged.
        """
        try:
            overrides = LogOverrides(
                action_type=action_type,
                resource_type=resource_type,
                resource_id=resource_id,
                resource_name=resource_name,
                risk_level=risk_level,
                affected_users_count=affected_users_count,
                changes_summary=changes_summary,
            )
        except ValueError as exc:
            logger.warning("Rejected log call with invalid overrides: %s", exc)
            return LogResult(logged=False, message=f"Invalid log fields: {exc}")

        context = InterceptContext(
            method=http_method,
            path=endpoint,
            body=body,
            headers=headers or {},
            client_host=client_host,
            auth_result=auth_result,
            workflow_name=workflow_name,
            node_name=node_name or "system-action-logger",
            session_id=session_id,
            user_id=user_id,
            user_email=user_email,
            user_name=user_name,
            user_role=user_role,
            overrides=overrides,
        )
        return await self.interceptor.complete(context, outcome)

    # ── Operator side ────────────────────────────────────────────────

    async def query(
        self,
        filters: LogFilters | dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> LogPage:
        return await queries.query_logs(self.store, filters, limit, offset)

    async def get_stats(self, window: int | None = None) -> LogStats:
        return await queries.get_log_stats(self.store, window or self.config.stats_window)

    async def cleanup(self) -> CleanupResult:
        return await self.retention.cleanup()

    async def export(
        self,
        filters: LogFilters | dict[str, Any] | None = None,
        export_format: ExportFormat | str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> ExportResult:
        """Query with the usual filters and render the page.

        Without an explicit limit the export takes the largest allowed page.
        """
        fmt = parse_format(export_format)
        page = await self.query(filters, limit or self.config.max_page_size, offset)
        return export_logs(page, fmt)

    async def drain(self) -> None:
        """Wait for in-flight writes (shutdown hook)."""
        await self.pipeline.drain()


@lru_cache
def get_action_logger() -> SystemActionLogger:
    """Process-wide logger bound to the PostgreSQL store."""
    from actionlog.db.engine import async_session_factory
    from actionlog.db.store import SqlAlchemyLogStore

    return SystemActionLogger(SqlAlchemyLogStore(async_session_factory))
