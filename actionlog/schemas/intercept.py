"""Inputs of the log entry builder and the request interceptor.

`InterceptContext` is the one mutable object here: the workflow engine keeps
one per in-flight request and the interceptor stores the start marker on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from actionlog.models.enums import ActionType, RiskLevel
from actionlog.schemas.auth import AuthResult


class ActorInfo(BaseModel):
    """Resolved actor identity (system sentinel already applied)."""

    user_id: str
    email: str
    name: str
    role: str


class RequestInfo(BaseModel):
    """Request metadata captured by the interceptor or passed to `log`."""

    method: str = "UNKNOWN"
    endpoint: str = "unknown"
    body: dict[str, Any] | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    client_host: str | None = None
    workflow_name: str | None = None
    node_name: str | None = None
    session_id: str | None = None
    request_size: int | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class Outcome(BaseModel):
    """How the audited action ended."""

    status_code: int = 200
    success: bool = True
    error_message: str | None = None
    response_data: dict[str, Any] | None = None
    previous: dict[str, Any] | None = Field(
        default=None, description="Prior values of changed fields, for `from` in the summary"
    )


class LogOverrides(BaseModel):
    """Explicit values that replace inference."""

    action_type: ActionType | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    resource_name: str | None = None
    risk_level: RiskLevel | None = None
    affected_users_count: int | None = None
    changes_summary: dict[str, Any] | None = None


@dataclass
class InterceptContext:
    """Per-request context handed to both interceptor phases.

    Actor fields set here win over the auth result.
    """

    method: str = "UNKNOWN"
    path: str = "unknown"
    body: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    client_host: str | None = None
    auth_result: AuthResult | None = None
    workflow_name: str | None = None
    node_name: str | None = None
    session_id: str | None = None

    user_id: str | None = None
    user_email: str | None = None
    user_name: str | None = None
    user_role: str | None = None

    skip_logging: bool = False
    overrides: LogOverrides | None = None

    # Monotonic start marker, set by the start phase
    started_at: float | None = None
