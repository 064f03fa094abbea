"""In-memory LogStore for tests and single-process tooling.

Same contract as SqlAlchemyLogStore; filters are evaluated with
LogFilters.matches(). Not shared between instances.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from actionlog.schemas.filters import LogFilters
from actionlog.schemas.log_entry import LogEntry
from actionlog.schemas.retention import RetentionPolicy


class InMemoryLogStore:
    """List-backed store."""

    def __init__(self, entries: list[LogEntry] | None = None) -> None:
        self._entries: list[LogEntry] = []
        self._policy: RetentionPolicy | None = None
        for entry in entries or []:
            self._entries.append(self._assign_id(entry))

    @staticmethod
    def _assign_id(entry: LogEntry) -> LogEntry:
        return entry if entry.id is not None else entry.model_copy(update={"id": uuid.uuid4()})

    @property
    def entries(self) -> list[LogEntry]:
        """Snapshot of stored entries in insert order."""
        return list(self._entries)

    @property
    def policy(self) -> RetentionPolicy | None:
        return self._policy

    async def insert(self, entry: LogEntry) -> LogEntry:
        stored = self._assign_id(entry)
        self._entries.append(stored)
        return stored

    async def query(self, filters: LogFilters, limit: int, offset: int) -> list[LogEntry]:
        matched = [e for e in self._entries if filters.matches(e)]
        matched.sort(key=lambda e: e.created_at, reverse=True)
        return matched[offset:offset + limit]

    async def count(self, filters: LogFilters | None = None) -> int:
        if filters is None or filters.is_empty:
            return len(self._entries)
        return sum(1 for e in self._entries if filters.matches(e))

    async def delete_older_than(self, cutoff: datetime) -> int:
        kept = [e for e in self._entries if e.created_at > cutoff]
        deleted = len(self._entries) - len(kept)
        self._entries = kept
        return deleted

    async def get_retention_policy(self) -> RetentionPolicy | None:
        return self._policy

    async def create_retention_policy(self, policy: RetentionPolicy) -> RetentionPolicy:
        self._policy = policy.model_copy(update={"id": policy.id or uuid.uuid4()})
        return self._policy

    async def record_cleanup(self, policy_id: uuid.UUID, at: datetime) -> None:
        if self._policy is not None and self._policy.id == policy_id:
            self._policy = self._policy.model_copy(update={"last_cleanup": at})
