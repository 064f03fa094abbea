"""DiagnosticEvent schema — what the logger reports instead of raising.

Interception and write failures are swallowed on the request path; each one
becomes a DiagnosticEvent on the local diagnostics channel.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class DiagnosticKind(str, Enum):
    """All diagnostic kinds reported by the logger."""

    INTERCEPT_FAILED = "intercept.failed"
    WRITE_FAILED = "write.failed"
    CLEANUP_COMPLETED = "retention.cleanup_completed"
    CLEANUP_FAILED = "retention.cleanup_failed"


class DiagnosticEvent(BaseModel):
    """A single swallowed failure or maintenance notice. Immutable once created."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    kind: DiagnosticKind
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    message: str
    error_type: str | None = Field(default=None, description="Exception class name, if any")
    data: dict[str, Any] = Field(default_factory=dict)
    source_module: str | None = Field(default=None, description="Module that reported this event")

    model_config = {"frozen": True}

    @classmethod
    def from_exception(
        cls,
        kind: DiagnosticKind,
        exc: BaseException,
        *,
        source_module: str | None = None,
        **data: Any,
    ) -> DiagnosticEvent:
        return cls(
            kind=kind,
            message=str(exc) or exc.__class__.__name__,
            error_type=exc.__class__.__name__,
            data=data,
            source_module=source_module,
        )
