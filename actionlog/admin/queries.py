"""Operator-facing read operations over the action log.

Shared by the admin HTTP router and by the SystemActionLogger facade.
All functions take the LogStore explicitly and raise LogValidationError /
LogStorageError instead of swallowing failures: silent failure here would
hide data-integrity problems from the operator.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import ValidationError

from actionlog.config import settings
from actionlog.db.store import LogStore
from actionlog.models.enums import RiskLevel
from actionlog.schemas.filters import LogFilters
from actionlog.schemas.log_entry import LogEntry
from actionlog.schemas.results import LogPage, LogStats, TopAction, TopResource, TopUser
from actionlog.security.errors import ActionLogError, LogStorageError, LogValidationError

logger = logging.getLogger(__name__)

TOP_N = 10

T = TypeVar("T")


def build_filters(filters: LogFilters | dict[str, Any] | None = None, **raw: Any) -> LogFilters:
    """Coerce caller input into LogFilters, raising LogValidationError on bad values.

    Accepts an existing LogFilters, a dict, or keyword arguments using either
    the snake_case names or the camelCase wire names (`filterSuccess`, ...).
    """
    if isinstance(filters, LogFilters) and not raw:
        return filters
    data: dict[str, Any] = {}
    if isinstance(filters, LogFilters):
        data.update(filters.model_dump(exclude_none=True))
    elif filters:
        data.update(filters)
    data.update(raw)
    try:
        return LogFilters.model_validate(data)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise LogValidationError(f"Invalid log filters: {details}") from exc


def normalize_pagination(limit: int | None, offset: int | None) -> tuple[int, int]:
    """Apply the default page size, the hard cap and offset validation."""
    cfg = settings.actionlog
    if limit is None or limit <= 0:
        limit = cfg.default_page_size
    limit = min(limit, cfg.max_page_size)
    if offset is None:
        offset = 0
    if offset < 0:
        raise LogValidationError(f"offset must be >= 0, got {offset}")
    return limit, offset


async def _guard(operation: str, awaitable: Awaitable[T]) -> T:
    """Await a store call, turning unexpected failures into LogStorageError."""
    try:
        return await awaitable
    except ActionLogError:
        raise
    except Exception as exc:
        logger.exception("System log %s failed", operation)
        raise LogStorageError(f"System log {operation} failed: {exc}") from exc


# ── Query ────────────────────────────────────────────────────────────


async def query_logs(
    store: LogStore,
    filters: LogFilters | dict[str, Any] | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> LogPage:
    """Filtered page of entries, newest first, plus the total match count."""
    parsed = build_filters(filters)
    limit, offset = normalize_pagination(limit, offset)

    entries = await _guard("query", store.query(parsed, limit, offset))
    total = await _guard("count", store.count(parsed))

    logger.debug("System log query: %d/%d entries (limit=%d offset=%d)", len(entries), total, limit, offset)
    return LogPage(entries=entries, total=total, limit=limit, offset=offset)


# ── Statistics ───────────────────────────────────────────────────────


def _today_start() -> datetime:
    return datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0)


def top_users(entries: list[LogEntry], n: int = TOP_N) -> list[TopUser]:
    """Most active actors, keyed by (user id, user name)."""
    counts = Counter((e.user_id, e.user_name) for e in entries)
    return [
        TopUser(user_id=user_id, user_name=user_name, count=count)
        for (user_id, user_name), count in counts.most_common(n)
    ]


def top_actions(entries: list[LogEntry], n: int = TOP_N) -> list[TopAction]:
    counts = Counter(e.action_type.value for e in entries)
    return [TopAction(action_type=action, count=count) for action, count in counts.most_common(n)]


def top_resources(entries: list[LogEntry], n: int = TOP_N) -> list[TopResource]:
    counts = Counter(e.resource_type for e in entries)
    return [TopResource(resource_type=resource, count=count) for resource, count in counts.most_common(n)]


def risk_distribution(entries: list[LogEntry]) -> dict[RiskLevel, int]:
    """Count per risk level; every level is present even when zero."""
    distribution = {level: 0 for level in RiskLevel}
    for entry in entries:
        distribution[entry.risk_level] += 1
    return distribution


async def get_log_stats(store: LogStore, window: int | None = None) -> LogStats:
    """Exact counters over the whole store plus breakdowns over a recent window.

    The breakdowns (top users/actions/resources, risk distribution) only look
    at the `window` most recent entries (settings.actionlog.stats_window,
    1000 by default) rather than the full table. This bounds the cost of the
    call on large tables; counts in the breakdowns are therefore relative to
    the window, not to `total_logs`.

    Top lists are ordered by descending count; ties keep first-seen order,
    which is newest first because the window is read newest first.
    """
    window = window or settings.actionlog.stats_window

    total = await _guard("stats", store.count(None))
    today = await _guard("stats", store.count(LogFilters(date_from=_today_start())))
    failed = await _guard("stats", store.count(LogFilters(success=False)))
    high_risk = await _guard("stats", store.count(LogFilters(risk_level=RiskLevel.HIGH)))

    recent = await _guard("stats", store.query(LogFilters(), window, 0))

    return LogStats(
        total_logs=total,
        today_logs=today,
        failed_actions=failed,
        high_risk_actions=high_risk,
        top_users=top_users(recent),
        top_actions=top_actions(recent),
        top_resources=top_resources(recent),
        risk_distribution=risk_distribution(recent),
        window_size=len(recent),
    )
