"""SQLAlchemy ORM models for the action log.

Import all models here so Alembic and Base.metadata.create_all() discover them.
"""

from __future__ import annotations

from actionlog.models.base import Base
from actionlog.models.enums import (
    COMPLIANCE_FLAGS,
    ActionType,
    ExportFormat,
    InterceptPhase,
    ResourceType,
    RiskLevel,
)
from actionlog.models.retention import LogRetentionPolicy
from actionlog.models.system_log import SystemLog

__all__ = [
    "COMPLIANCE_FLAGS",
    "ActionType",
    "Base",
    "ExportFormat",
    "InterceptPhase",
    "LogRetentionPolicy",
    "ResourceType",
    "RiskLevel",
    "SystemLog",
]
