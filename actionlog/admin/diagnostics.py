"""Diagnostics channel — where swallowed logger failures go.

Interception and write failures never reach the caller. They are reported
here instead: kept in a bounded in-memory buffer for operators and tests,
logged, and fanned out to any registered subscriber.

Usage:
    # Report from anywhere:
    from actionlog.admin.diagnostics import diagnostics

    diagnostics.report(DiagnosticEvent.from_exception(DiagnosticKind.WRITE_FAILED, exc))

    # Register a subscriber at startup:
    diagnostics.subscribe(my_handler)  # def my_handler(event: DiagnosticEvent) -> None
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

from actionlog.config import settings
from actionlog.schemas.diagnostics import DiagnosticEvent, DiagnosticKind

logger = logging.getLogger(__name__)

# Type alias for diagnostic handler functions
DiagnosticHandler = Callable[[DiagnosticEvent], None]


def _name(handler: DiagnosticHandler) -> str:
    return getattr(handler, "__name__", repr(handler))


class DiagnosticsChannel:
    """Synchronous fan-out with per-handler error isolation."""

    def __init__(self, buffer_size: int = 200) -> None:
        self._handlers: list[DiagnosticHandler] = []
        self._type_handlers: dict[DiagnosticKind, list[DiagnosticHandler]] = {}
        self._recent: deque[DiagnosticEvent] = deque(maxlen=buffer_size)

    # ── Public API ───────────────────────────────────────────────────

    def subscribe(self, handler: DiagnosticHandler, kinds: list[DiagnosticKind] | None = None) -> None:
        """Register a handler.

        Args:
            handler: Function that accepts a DiagnosticEvent.
            kinds: If provided, handler only receives these kinds.
                   If None, handler receives ALL events.
        """
        if kinds is None:
            self._handlers.append(handler)
            logger.info("Registered global diagnostics subscriber: %s", _name(handler))
        else:
            for kind in kinds:
                self._type_handlers.setdefault(kind, []).append(handler)
            logger.info(
                "Registered diagnostics subscriber %s for kinds: %s",
                _name(handler),
                [k.value for k in kinds],
            )

    def unsubscribe(self, handler: DiagnosticHandler) -> None:
        """Remove a previously registered handler."""
        if handler in self._handlers:
            self._handlers.remove(handler)
        for handlers in self._type_handlers.values():
            if handler in handlers:
                handlers.remove(handler)

    def report(self, event: DiagnosticEvent) -> None:
        """Record an event and notify subscribers. Never raises."""
        self._recent.append(event)
        if event.kind in (DiagnosticKind.INTERCEPT_FAILED, DiagnosticKind.WRITE_FAILED):
            logger.warning(
                "Diagnostic %s from %s: %s (%s)",
                event.kind.value,
                event.source_module,
                event.message,
                event.error_type,
            )
        else:
            logger.info("Diagnostic %s: %s", event.kind.value, event.message)

        handlers = list(self._handlers) + self._type_handlers.get(event.kind, [])
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Diagnostics handler %s failed for %s", _name(handler), event.kind.value)

    def recent(self, kind: DiagnosticKind | None = None) -> list[DiagnosticEvent]:
        """Buffered events, oldest first, optionally of a single kind."""
        if kind is None:
            return list(self._recent)
        return [e for e in self._recent if e.kind == kind]

    def clear(self) -> None:
        self._recent.clear()


# Module-level singleton
diagnostics = DiagnosticsChannel(settings.actionlog.diagnostics_buffer_size)
