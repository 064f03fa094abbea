"""LogRetentionPolicy model — singleton row governing cleanup thresholds."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from actionlog.models.base import Base, TimestampMixin


class LogRetentionPolicy(TimestampMixin, Base):
    """Retention thresholds. At most one live row, created lazily on first cleanup."""

    __tablename__ = "log_retention_policy"

    retention_days: Mapped[int] = mapped_column(Integer, nullable=False, default=1095)
    archive_days: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1825, comment="Entries older than this are deleted"
    )
    last_cleanup: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<LogRetentionPolicy archive={self.archive_days}d last={self.last_cleanup}>"
