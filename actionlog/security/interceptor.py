"""Request interceptor — two-phase hook called by the workflow engine.

Usage in a workflow:
    ctx = InterceptContext(method="DELETE", path="/api/users/42", auth_result=auth)
    await interceptor.intercept(InterceptPhase.START, ctx)
    ...  # run the action
    await interceptor.intercept(InterceptPhase.COMPLETE, ctx, Outcome(status_code=200))

The start phase stores a monotonic timestamp on the context. The complete
phase resolves the actor, builds the entry and dispatches the write. Only
mutating verbs are eligible and infrastructure paths are never logged.

Never raises: any failure is reported on the diagnostics channel and
returned as `logged=False`. The audited action has already happened and its
outcome must not depend on the audit trail.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime

from actionlog.admin.diagnostics import DiagnosticsChannel, diagnostics
from actionlog.config import ActionLogSettings, settings
from actionlog.models.enums import InterceptPhase
from actionlog.schemas.diagnostics import DiagnosticEvent, DiagnosticKind
from actionlog.schemas.intercept import ActorInfo, InterceptContext, Outcome, RequestInfo
from actionlog.schemas.results import LogResult
from actionlog.security.builder import LogEntryBuilder
from actionlog.security.pipeline import WritePipeline

logger = logging.getLogger(__name__)

MUTATING_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def is_tracked_endpoint(endpoint: str | None, skip_patterns: list[str]) -> bool:
    """False for health/metrics/ping/status style paths."""
    path = endpoint or ""
    return not any(pattern in path for pattern in skip_patterns)


def elapsed_ms(started_at: float | None) -> int | None:
    """Milliseconds since a monotonic start marker, or None without one."""
    if started_at is None:
        return None
    return max(0, int((time.monotonic() - started_at) * 1000))


class RequestInterceptor:
    """Captures per-request timing and context and feeds builder + pipeline."""

    def __init__(
        self,
        builder: LogEntryBuilder,
        pipeline: WritePipeline,
        config: ActionLogSettings | None = None,
        channel: DiagnosticsChannel | None = None,
    ) -> None:
        self._builder = builder
        self._pipeline = pipeline
        self._config = config or settings.actionlog
        self._channel = channel or diagnostics

    # ── Public API ───────────────────────────────────────────────────

    async def intercept(
        self,
        phase: InterceptPhase | str,
        context: InterceptContext,
        outcome: Outcome | None = None,
    ) -> LogResult:
        """Run one phase. Always returns; never raises."""
        try:
            phase = InterceptPhase(phase)
            skip_reason = self._skip_reason(context)
            if skip_reason is not None:
                return LogResult(logged=False, message=skip_reason)

            if phase == InterceptPhase.START:
                context.started_at = time.monotonic()
                return LogResult(logged=False, message="Start phase - timing recorded")

            return self._complete(context, outcome or Outcome())
        except Exception as exc:
            path = getattr(context, "path", None)
            logger.exception("Request interceptor error (phase=%s path=%s)", phase, path)
            self._channel.report(DiagnosticEvent.from_exception(
                DiagnosticKind.INTERCEPT_FAILED,
                exc,
                source_module="security.interceptor",
                phase=str(getattr(phase, "value", phase)),
                method=getattr(context, "method", None),
                path=path,
            ))
            return LogResult(logged=False, message=f"Interceptor error: {exc}")

    async def start(self, context: InterceptContext) -> LogResult:
        return await self.intercept(InterceptPhase.START, context)

    async def complete(self, context: InterceptContext, outcome: Outcome | None = None) -> LogResult:
        return await self.intercept(InterceptPhase.COMPLETE, context, outcome)

    # ── Internals ────────────────────────────────────────────────────

    def _skip_reason(self, context: InterceptContext) -> str | None:
        if context.skip_logging:
            return "Logging skipped"
        if (context.method or "").upper() not in MUTATING_METHODS:
            return "Request method not logged"
        if not is_tracked_endpoint(context.path, self._config.skip_path_patterns):
            return "Endpoint not tracked"
        return None

    def resolve_actor(self, context: InterceptContext) -> ActorInfo:
        """Explicit context fields, then the authenticated user, then the system identity."""
        auth = context.auth_result
        auth_user = auth.user if auth is not None and auth.is_authenticated else None
        system = self._builder.system_actor()

        user_id = context.user_id or (auth_user.id if auth_user else None)
        if user_id is None and auth is not None and auth.is_authenticated:
            logger.warning("Falling back to system user despite authentication being present (path=%s)", context.path)

        return ActorInfo(
            user_id=user_id or system.user_id,
            email=context.user_email or (auth_user.email if auth_user else None) or system.email,
            name=context.user_name or (auth_user.name if auth_user else None) or system.name,
            role=context.user_role or (auth_user.role if auth_user else None) or system.role,
        )

    def _complete(self, context: InterceptContext, outcome: Outcome) -> LogResult:
        session_id = context.session_id
        if session_id is None and context.auth_result is not None and context.auth_result.session is not None:
            session_id = context.auth_result.session.id

        request = RequestInfo(
            method=(context.method or "UNKNOWN").upper(),
            endpoint=context.path or "unknown",
            body=context.body,
            headers=context.headers,
            client_host=context.client_host,
            workflow_name=context.workflow_name or "unknown-workflow",
            node_name=context.node_name or "request-interceptor",
            session_id=session_id,
        )
        execution_time_ms = elapsed_ms(context.started_at)

        entry = self._builder.build(
            self.resolve_actor(context),
            request,
            outcome,
            context.overrides,
            execution_time_ms=execution_time_ms,
        )
        self._pipeline.dispatch(entry)

        return LogResult(
            logged=True,
            message="Request logged successfully",
            risk_level=entry.risk_level,
            execution_time_ms=execution_time_ms,
            timestamp=datetime.now(UTC),
            entry=entry,
        )
