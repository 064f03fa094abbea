"""SystemLog model — the append-only admin action trail.

One row per mutating admin action. Rows are never updated; the only delete
path is the retention cleanup age rule.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from actionlog.models.base import Base, CreatedMixin


class SystemLog(CreatedMixin, Base):
    """Immutable audit entry for a single admin action."""

    __tablename__ = "system_logs"
    __table_args__ = (
        Index("idx_system_logs_user_id_created", "user_id", "created_at"),
        Index("idx_system_logs_resource_type_created", "resource_type", "created_at"),
        Index("idx_system_logs_action_type_created", "action_type", "created_at"),
        Index("idx_system_logs_created_at", "created_at"),
        Index("idx_system_logs_risk_level", "risk_level", "created_at"),
        Index("idx_system_logs_endpoint_method", "endpoint", "http_method", "created_at"),
        Index("idx_system_logs_success_created", "success", "created_at"),
    )

    # Who
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, comment="User ID or 'system'")
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False, comment="Snapshot at time of action")
    user_role: Mapped[str] = mapped_column(String(50), nullable=False, comment="Role at time of action")

    # What
    action_type: Mapped[str] = mapped_column(String(20), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(100))
    resource_name: Mapped[str | None] = mapped_column(String(255))

    # Where
    http_method: Mapped[str] = mapped_column(String(10), nullable=False)
    endpoint: Mapped[str] = mapped_column(String(500), nullable=False)
    workflow_name: Mapped[str | None] = mapped_column(String(200))
    node_name: Mapped[str | None] = mapped_column(String(200))
    request_size: Mapped[int | None] = mapped_column(Integer, comment="Payload size in bytes")

    # Outcome
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    error_message: Mapped[str | None] = mapped_column(Text)
    execution_time_ms: Mapped[int | None] = mapped_column(Integer)

    # Context
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False)
    user_agent: Mapped[str | None] = mapped_column(String(500))
    session_id: Mapped[str | None] = mapped_column(String(100))
    affected_users_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Governance
    changes_summary: Mapped[dict[str, Any] | None] = mapped_column(JSONB)
    compliance_flags: Mapped[list[str] | None] = mapped_column(JSONB)
    risk_level: Mapped[str] = mapped_column(String(10), nullable=False, default="low")

    def __repr__(self) -> str:
        return f"<SystemLog {self.action_type} {self.resource_type} by={self.user_id} risk={self.risk_level}>"
