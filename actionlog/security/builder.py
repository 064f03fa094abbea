"""Log entry builder — turns raw call context into a persistable LogEntry.

Everything that can be inferred is inferred here: action type from the HTTP
method, resource type from the endpoint, resource id/name from the path and
payloads, the changes summary from an allow-list of sensitive fields, and
finally the risk level. Inference helpers are pure functions so they can be
tested without a store.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import UTC, datetime
from typing import Any

from actionlog.config import ActionLogSettings, settings
from actionlog.models.enums import COMPLIANCE_FLAGS, ActionType, ResourceType
from actionlog.schemas.intercept import ActorInfo, LogOverrides, Outcome, RequestInfo
from actionlog.schemas.log_entry import LogEntry
from actionlog.security.risk import assess_risk

logger = logging.getLogger(__name__)

ACTION_BY_METHOD: dict[str, ActionType] = {
    "POST": ActionType.CREATE,
    "PUT": ActionType.UPDATE,
    "PATCH": ActionType.UPDATE,
    "DELETE": ActionType.DELETE,
}

# Order matters: first fragment contained in the endpoint wins
RESOURCE_BY_PATH: tuple[tuple[str, ResourceType], ...] = (
    ("/user", ResourceType.USER),
    ("/profile", ResourceType.PROFILE),
    ("/setting", ResourceType.SETTINGS),
    ("/role", ResourceType.ROLE),
    ("/auth", ResourceType.AUTH),
    ("/security", ResourceType.SECURITY),
)

TRACKED_FIELDS: tuple[str, ...] = ("name", "email", "role", "status", "permissions", "settings")
RESOURCE_ID_KEYS: tuple[str, ...] = ("id", "userId", "resourceId")
RESOURCE_NAME_KEYS: tuple[str, ...] = ("name", "title", "email")
BULK_IDS_KEY = "userIds"

_ID_SEGMENT = re.compile(r"/([a-f0-9-]{36}|\d+)(?:/|$)", re.IGNORECASE)


# ── Inference helpers ────────────────────────────────────────────────


def infer_action_type(http_method: str | None) -> ActionType:
    """POST→CREATE, PUT/PATCH→UPDATE, DELETE→DELETE, anything else→UPDATE."""
    return ACTION_BY_METHOD.get((http_method or "").upper(), ActionType.UPDATE)


def infer_resource_type(endpoint: str | None) -> str:
    """Match the endpoint against the ordered path table; default `system`."""
    path = (endpoint or "").lower()
    for fragment, resource in RESOURCE_BY_PATH:
        if fragment in path:
            return resource.value
    return ResourceType.SYSTEM.value


def extract_resource_id(endpoint: str | None, body: dict[str, Any] | None) -> str | None:
    """UUID or numeric path segment first, then an identifier in the payload."""
    match = _ID_SEGMENT.search(endpoint or "")
    if match:
        return match.group(1)
    for key in RESOURCE_ID_KEYS:
        value = (body or {}).get(key)
        if value not in (None, ""):
            return str(value)
    return None


def extract_resource_name(
    body: dict[str, Any] | None,
    response: dict[str, Any] | None,
) -> str | None:
    """First human-readable label found in the payload, then in the response."""
    for source in (body, response):
        for key in RESOURCE_NAME_KEYS:
            value = (source or {}).get(key)
            if isinstance(value, str) and value:
                return value
    return None


def extract_changes_summary(
    body: dict[str, Any] | None,
    previous: dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    """Summarize sensitive field changes and bulk operations. None when empty."""
    if not body:
        return None

    changes: dict[str, Any] = {}
    for field_name in TRACKED_FIELDS:
        if field_name in body and body[field_name] is not None:
            change: dict[str, Any] = {"to": body[field_name]}
            if previous and previous.get(field_name) is not None:
                change["from"] = previous[field_name]
            changes[field_name] = change

    user_ids = body.get(BULK_IDS_KEY)
    if isinstance(user_ids, list):
        changes["bulkOperation"] = {
            "type": body.get("action") or "update",
            "affectedUsers": len(user_ids),
            "userIds": user_ids,
        }

    return changes or None


def count_affected_users(
    body: dict[str, Any] | None,
    response: dict[str, Any] | None,
) -> int:
    """Blast radius of the action, from the payload or the response."""
    body = body or {}
    response = response or {}
    if isinstance(body.get(BULK_IDS_KEY), list):
        return len(body[BULK_IDS_KEY])
    affected = response.get("affectedCount")
    if isinstance(affected, int) and not isinstance(affected, bool):
        return affected
    if body.get("userId") or response.get("userId"):
        return 1
    return 0


def payload_size(body: dict[str, Any] | None) -> int | None:
    """Size of the JSON-encoded payload in bytes."""
    if body is None:
        return None
    return len(json.dumps(body, default=str).encode("utf-8"))


def client_ip(headers: dict[str, str], client_host: str | None) -> str:
    lowered = {k.lower(): v for k, v in headers.items()}
    return lowered.get("x-forwarded-for") or lowered.get("x-real-ip") or client_host or "unknown"


def client_user_agent(headers: dict[str, str]) -> str:
    lowered = {k.lower(): v for k, v in headers.items()}
    return lowered.get("user-agent") or "unknown"


# ── Builder ──────────────────────────────────────────────────────────


class LogEntryBuilder:
    """Builds LogEntry records. Stateless apart from the configured system identity."""

    def __init__(self, config: ActionLogSettings | None = None) -> None:
        self._config = config or settings.actionlog

    def system_actor(self) -> ActorInfo:
        """Sentinel identity used when no authenticated actor exists."""
        return ActorInfo(
            user_id=self._config.system_user_id,
            email=self._config.system_user_email,
            name=self._config.system_user_name,
            role=self._config.system_user_role,
        )

    def build(
        self,
        actor: ActorInfo | None,
        request: RequestInfo,
        outcome: Outcome | None = None,
        overrides: LogOverrides | None = None,
        execution_time_ms: int | None = None,
    ) -> LogEntry:
        """Assemble the entry and assign its risk level exactly once."""
        actor = actor or self.system_actor()
        outcome = outcome or Outcome()
        overrides = overrides or LogOverrides()
        body = request.body
        response = outcome.response_data

        action_type = overrides.action_type or infer_action_type(request.method)
        resource_type = (overrides.resource_type or infer_resource_type(request.endpoint)).lower()

        previous = outcome.previous
        if previous is None and response and isinstance(response.get("previous"), dict):
            previous = response["previous"]

        changes = overrides.changes_summary
        if changes is None:
            changes = extract_changes_summary(body, previous)

        affected = overrides.affected_users_count
        if affected is None:
            affected = count_affected_users(body, response)

        risk_level = overrides.risk_level or assess_risk(action_type, resource_type, affected)

        entry = LogEntry(
            created_at=datetime.now(UTC),
            user_id=actor.user_id,
            user_email=actor.email,
            user_name=actor.name,
            user_role=actor.role,
            action_type=action_type,
            resource_type=resource_type,
            resource_id=overrides.resource_id or extract_resource_id(request.endpoint, body),
            resource_name=overrides.resource_name or extract_resource_name(body, response),
            http_method=(request.method or "UNKNOWN").upper(),
            endpoint=request.endpoint or "unknown",
            workflow_name=request.workflow_name,
            node_name=request.node_name,
            request_size=request.request_size if request.request_size is not None else payload_size(body),
            status_code=outcome.status_code,
            success=outcome.success,
            error_message=outcome.error_message,
            execution_time_ms=execution_time_ms,
            ip_address=request.ip_address or client_ip(request.headers, request.client_host),
            user_agent=request.user_agent or client_user_agent(request.headers),
            session_id=request.session_id,
            affected_users_count=affected,
            changes_summary=changes,
            compliance_flags=list(COMPLIANCE_FLAGS),
            risk_level=risk_level,
        )
        logger.debug(
            "Built log entry: %s %s by=%s risk=%s",
            entry.action_type.value,
            entry.resource_type,
            entry.user_id,
            entry.risk_level.value,
        )
        return entry
