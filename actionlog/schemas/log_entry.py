"""LogEntry schema — the record produced by the builder and persisted by the store.

Immutable once created. The store assigns `id`; everything else, including
`created_at` and `risk_level`, is fixed at build time.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from actionlog.models.enums import COMPLIANCE_FLAGS, ActionType, RiskLevel
from actionlog.schemas.base import CamelModel


class LogEntry(CamelModel):
    """One admin action, attributed to an actor and classified by risk."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    id: uuid.UUID | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Actor
    user_id: str
    user_email: str
    user_name: str
    user_role: str

    # Action & target
    action_type: ActionType
    resource_type: str
    resource_id: str | None = None
    resource_name: str | None = None

    # Request
    http_method: str = "UNKNOWN"
    endpoint: str = "unknown"
    workflow_name: str | None = None
    node_name: str | None = None
    request_size: int | None = None

    # Outcome
    status_code: int = 200
    success: bool = True
    error_message: str | None = None
    execution_time_ms: int | None = None

    # Context
    ip_address: str = "unknown"
    user_agent: str | None = None
    session_id: str | None = None
    affected_users_count: int = 0

    # Governance
    changes_summary: dict[str, Any] | None = None
    compliance_flags: list[str] = Field(default_factory=lambda: list(COMPLIANCE_FLAGS))
    risk_level: RiskLevel

    @field_validator("compliance_flags", mode="before")
    @classmethod
    def _flags_default(cls, v: Any) -> Any:
        return list(COMPLIANCE_FLAGS) if v is None else v

    @field_validator("affected_users_count", mode="before")
    @classmethod
    def _count_default(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("created_at")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return v.replace(tzinfo=UTC) if v.tzinfo is None else v
