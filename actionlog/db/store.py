"""Log store — the storage interface the logger is written against.

The logger never talks to a global database handle. It receives a LogStore,
so tests (and single-process tools) can substitute InMemoryLogStore from
`actionlog.db.memory` without touching process-wide state.

SqlAlchemyLogStore is the production implementation on top of the async
session factory in `actionlog.db.engine`.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import ColumnElement, String, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.expression import cast

from actionlog.models.retention import LogRetentionPolicy
from actionlog.models.system_log import SystemLog
from actionlog.schemas.filters import LogFilters
from actionlog.schemas.log_entry import LogEntry
from actionlog.schemas.retention import RetentionPolicy

logger = logging.getLogger(__name__)


class LogStore(Protocol):
    """Operations the logger needs from persistent storage."""

    async def insert(self, entry: LogEntry) -> LogEntry:
        """Persist an entry and return it with its store-assigned id."""
        ...

    async def query(self, filters: LogFilters, limit: int, offset: int) -> list[LogEntry]:
        """Matching entries, newest first."""
        ...

    async def count(self, filters: LogFilters | None = None) -> int:
        """Number of matching entries (all entries when filters is None)."""
        ...

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete entries with created_at <= cutoff. Returns the number deleted."""
        ...

    async def get_retention_policy(self) -> RetentionPolicy | None: ...

    async def create_retention_policy(self, policy: RetentionPolicy) -> RetentionPolicy: ...

    async def record_cleanup(self, policy_id: uuid.UUID, at: datetime) -> None: ...


# ── SQLAlchemy implementation ────────────────────────────────────────


def _columns(row: Any) -> dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def _row_to_entry(row: SystemLog) -> LogEntry:
    return LogEntry.model_validate(_columns(row))


def _row_to_policy(row: LogRetentionPolicy) -> RetentionPolicy:
    data = _columns(row)
    return RetentionPolicy(
        id=data["id"],
        retention_days=data["retention_days"],
        archive_days=data["archive_days"],
        last_cleanup=data["last_cleanup"],
    )


def filter_conditions(filters: LogFilters | None) -> list[ColumnElement[bool]]:
    """Translate LogFilters into SQL WHERE conditions (ANDed by the caller)."""
    if filters is None or filters.is_empty:
        return []

    conditions: list[ColumnElement[bool]] = []
    if filters.user_id is not None:
        conditions.append(SystemLog.user_id == filters.user_id)
    if filters.action_type is not None:
        conditions.append(SystemLog.action_type == filters.action_type.value)
    if filters.resource_type is not None:
        conditions.append(SystemLog.resource_type == filters.resource_type)
    if filters.risk_level is not None:
        conditions.append(SystemLog.risk_level == filters.risk_level.value)
    if filters.success is not None:
        conditions.append(SystemLog.success == filters.success)
    if filters.date_from is not None:
        conditions.append(SystemLog.created_at >= filters.date_from)
    if filters.date_to is not None:
        conditions.append(SystemLog.created_at <= filters.date_to)
    if filters.search:
        # `%` and `_` in operator input are literal, as in LogFilters.matches()
        term = filters.search
        conditions.append(
            or_(
                SystemLog.user_name.icontains(term, autoescape=True),
                SystemLog.user_email.icontains(term, autoescape=True),
                SystemLog.endpoint.icontains(term, autoescape=True),
                SystemLog.resource_name.icontains(term, autoescape=True),
                cast(SystemLog.changes_summary, String).icontains(term, autoescape=True),
                SystemLog.workflow_name.icontains(term, autoescape=True),
                SystemLog.node_name.icontains(term, autoescape=True),
                SystemLog.resource_type.icontains(term, autoescape=True),
            )
        )
    return conditions


class SqlAlchemyLogStore:
    """LogStore backed by the system_logs / log_retention_policy tables.

    Each operation opens its own short-lived session, so the store is safe to
    share between concurrent tasks.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, entry: LogEntry) -> LogEntry:
        data = entry.model_dump(exclude={"id"})
        data["action_type"] = entry.action_type.value
        data["risk_level"] = entry.risk_level.value
        row = SystemLog(**data)
        async with self._session_factory() as db:
            db.add(row)
            await db.commit()
        return entry.model_copy(update={"id": row.id})

    async def query(self, filters: LogFilters, limit: int, offset: int) -> list[LogEntry]:
        stmt = (
            select(SystemLog)
            .where(*filter_conditions(filters))
            .order_by(SystemLog.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        async with self._session_factory() as db:
            result = await db.execute(stmt)
            rows = result.scalars().all()
        return [_row_to_entry(row) for row in rows]

    async def count(self, filters: LogFilters | None = None) -> int:
        stmt = select(func.count(SystemLog.id)).where(*filter_conditions(filters))
        async with self._session_factory() as db:
            result = await db.execute(stmt)
            return result.scalar() or 0

    async def delete_older_than(self, cutoff: datetime) -> int:
        async with self._session_factory() as db:
            result = await db.execute(delete(SystemLog).where(SystemLog.created_at <= cutoff))
            await db.commit()
        count = result.rowcount  # type: ignore[attr-defined]
        if count > 0:
            logger.info("Deleted %d system log entries (cutoff=%s)", count, cutoff.date())
        return count

    async def get_retention_policy(self) -> RetentionPolicy | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(LogRetentionPolicy).order_by(LogRetentionPolicy.created_at).limit(1)
            )
            row = result.scalars().first()
        return _row_to_policy(row) if row is not None else None

    async def create_retention_policy(self, policy: RetentionPolicy) -> RetentionPolicy:
        row = LogRetentionPolicy(
            retention_days=policy.retention_days,
            archive_days=policy.archive_days,
            last_cleanup=policy.last_cleanup,
        )
        async with self._session_factory() as db:
            db.add(row)
            await db.commit()
        logger.info(
            "Created default retention policy (retention=%dd, archive=%dd)",
            policy.retention_days,
            policy.archive_days,
        )
        return policy.model_copy(update={"id": row.id})

    async def record_cleanup(self, policy_id: uuid.UUID, at: datetime) -> None:
        async with self._session_factory() as db:
            await db.execute(
                update(LogRetentionPolicy)
                .where(LogRetentionPolicy.id == policy_id)
                .values(last_cleanup=at)
            )
            await db.commit()
