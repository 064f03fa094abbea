"""Typed errors for operator-facing operations (query, stats, export, cleanup).

Logging itself never raises; these exist so that operator calls fail loudly
with a status classification the HTTP layer can map directly.
"""

from __future__ import annotations


class ActionLogError(Exception):
    """Base class. `status_code` classifies the failure for the HTTP layer."""

    status_code = 500
    code = "action_log_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class LogValidationError(ActionLogError):
    """The caller supplied an invalid filter, pagination or format."""

    status_code = 400
    code = "validation_error"


class LogStorageError(ActionLogError):
    """The store failed while serving an operator request."""

    status_code = 500
    code = "storage_error"
