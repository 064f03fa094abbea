"""RetentionPolicy schema — store-independent view of the singleton policy row."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import ConfigDict

from actionlog.schemas.base import CamelModel


class RetentionPolicy(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID | None = None
    retention_days: int = 1095
    archive_days: int = 1825
    last_cleanup: datetime | None = None
