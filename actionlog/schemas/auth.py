"""AuthResult — identity context handed over by the external auth verifier.

Read-only. Accepts both snake_case and the verifier's camelCase keys
(`isAuthenticated`, `expiresAt`).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict

from actionlog.schemas.base import CamelModel


class AuthUser(CamelModel):
    """The authenticated actor."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    email: str | None = None
    name: str | None = None
    role: str | None = None


class AuthSession(CamelModel):
    """The session the actor authenticated with."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    expires_at: datetime | None = None


class AuthResult(CamelModel):
    """Verifier output for one request."""

    model_config = ConfigDict(frozen=True)

    is_authenticated: bool = False
    user: AuthUser | None = None
    session: AuthSession | None = None
