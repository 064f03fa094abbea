"""Admin log API — FastAPI JSON router over the SystemActionLogger.

Query parameters keep the camelCase names operators already use
(`filterActionType`, `filterSuccess`, `dateFrom`, ...). All routes require
HTTP Basic Auth via the verify_admin dependency.
"""
# ruff: noqa: B008

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from actionlog.admin.auth import verify_admin
from actionlog.admin.queries import build_filters
from actionlog.models.enums import ExportFormat
from actionlog.schemas.filters import LogFilters
from actionlog.security.audit import SystemActionLogger, get_action_logger
from actionlog.security.errors import ActionLogError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/logs", tags=["admin"])


def get_logger() -> SystemActionLogger:
    """Dependency — overridden in tests with an in-memory logger."""
    return get_action_logger()


def log_filters(
    filter_user_id: str | None = Query(None, alias="filterUserId"),
    filter_action_type: str | None = Query(None, alias="filterActionType"),
    filter_resource_type: str | None = Query(None, alias="filterResourceType"),
    filter_risk_level: str | None = Query(None, alias="filterRiskLevel"),
    filter_success: str | None = Query(None, alias="filterSuccess"),
    date_from: str | None = Query(None, alias="dateFrom"),
    date_to: str | None = Query(None, alias="dateTo"),
    search_query: str | None = Query(None, alias="searchQuery"),
) -> LogFilters:
    """Collect the filter query parameters into LogFilters."""
    raw: dict[str, Any] = {
        "filterUserId": filter_user_id,
        "filterActionType": filter_action_type,
        "filterResourceType": filter_resource_type,
        "filterRiskLevel": filter_risk_level,
        "filterSuccess": filter_success,
        "dateFrom": date_from,
        "dateTo": date_to,
        "searchQuery": search_query,
    }
    return build_filters({k: v for k, v in raw.items() if v is not None})


# ── Routes ───────────────────────────────────────────────────────────


@router.get("")
async def list_logs(
    filters: LogFilters = Depends(log_filters),
    limit: int | None = Query(None),
    offset: int | None = Query(None),
    audit: SystemActionLogger = Depends(get_logger),
    admin: str = Depends(verify_admin),
) -> JSONResponse:
    """Filtered, paginated log entries, newest first."""
    page = await audit.query(filters, limit, offset)
    return JSONResponse(page.to_wire())


@router.get("/stats")
async def log_stats(
    audit: SystemActionLogger = Depends(get_logger),
    admin: str = Depends(verify_admin),
) -> JSONResponse:
    """Counters and recent-window breakdowns."""
    stats = await audit.get_stats()
    return JSONResponse(stats.to_wire())


@router.get("/export")
async def export_log_entries(
    filters: LogFilters = Depends(log_filters),
    export_format: str | None = Query(None, alias="exportFormat"),
    limit: int | None = Query(None),
    offset: int | None = Query(None),
    download: bool = Query(False),
    audit: SystemActionLogger = Depends(get_logger),
    admin: str = Depends(verify_admin),
) -> Response:
    """Export matching entries as JSON, or CSV text inside the JSON body.

    With `download=true` a CSV export is served as a `text/csv` attachment.
    """
    result = await audit.export(filters, export_format, limit, offset)
    logger.info("Admin %s exported %d log entries as %s", admin, result.total_records, result.format.value)

    if download and result.format == ExportFormat.CSV:
        filename = f"system-logs-{result.exported_at:%Y%m%d-%H%M%S}.csv"
        return Response(
            content=result.csv_data or "",
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return JSONResponse(result.to_wire())


@router.post("/cleanup")
async def run_cleanup(
    audit: SystemActionLogger = Depends(get_logger),
    admin: str = Depends(verify_admin),
) -> JSONResponse:
    """Apply the retention policy now."""
    result = await audit.cleanup()
    logger.info("Admin %s ran retention cleanup: deleted=%d", admin, result.deleted_count)
    return JSONResponse(result.to_wire())


# ── Error mapping ────────────────────────────────────────────────────


async def action_log_error_handler(request: Request, exc: ActionLogError) -> JSONResponse:
    """Map typed operator errors to `{"error": {"message", "code"}}`."""
    if exc.status_code >= 500:
        logger.error("Admin log request failed: %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        {"error": {"message": exc.message, "code": exc.code}},
        status_code=exc.status_code,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ActionLogError, action_log_error_handler)  # type: ignore[arg-type]
