"""Domain enums used across SQLAlchemy models and Pydantic schemas.

All enums use str mixin for JSON serialization and plain VARCHAR storage.
"""

from __future__ import annotations

from enum import Enum


class ActionType(str, Enum):
    """What the actor did."""

    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    REGISTER = "REGISTER"
    BULK_UPDATE = "BULK_UPDATE"
    BULK_DELETE = "BULK_DELETE"


class ResourceType(str, Enum):
    """Known resource types. The column itself is open-ended."""

    USER = "user"
    PROFILE = "profile"
    SETTINGS = "settings"
    ROLE = "role"
    AUTH = "auth"
    SECURITY = "security"
    SYSTEM = "system"


class RiskLevel(str, Enum):
    """Coarse severity of a logged action."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ExportFormat(str, Enum):
    """Supported export renderings."""

    JSON = "json"
    CSV = "csv"


class InterceptPhase(str, Enum):
    """Request lifecycle phase passed by the workflow engine."""

    START = "start"
    COMPLETE = "complete"


# The fixed tag set attached to every entry
COMPLIANCE_FLAGS: tuple[str, ...] = ("audit_trail", "blame_tracking", "enterprise_logging")
