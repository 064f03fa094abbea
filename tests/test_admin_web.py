"""Tests for the admin log API.

Covers:
- HTTP Basic Auth (401 without creds, 401 wrong password, 503 unconfigured)
- Query, stats, export and cleanup routes against an in-memory store
- Error mapping to {"error": {"message", "code"}}
"""

from __future__ import annotations

import base64
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from actionlog.admin.diagnostics import DiagnosticsChannel
from actionlog.admin.web import get_logger, register_error_handlers, router
from actionlog.config import ActionLogSettings
from actionlog.db.memory import InMemoryLogStore
from actionlog.models.enums import ActionType, RiskLevel
from actionlog.schemas.log_entry import LogEntry
from actionlog.security.audit import SystemActionLogger

# ── Helpers ──────────────────────────────────────────────────────────


def _make_auth_header(username: str = "admin", password: str = "testpass123") -> dict[str, str]:
    """Build HTTP Basic Auth header."""
    credentials = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {credentials}"}


def _make_entry(days_ago: int = 0, **overrides) -> LogEntry:
    data = {
        "created_at": datetime.now(UTC) - timedelta(days=days_ago),
        "user_id": "u-1",
        "user_email": "ada@example.com",
        "user_name": "Ada",
        "user_role": "admin",
        "action_type": ActionType.UPDATE,
        "resource_type": "profile",
        "endpoint": "/api/profile",
        "risk_level": RiskLevel.LOW,
    }
    data.update(overrides)
    return LogEntry(**data)


@pytest.fixture
def mock_settings():
    """Patch settings to use test password."""
    with patch("actionlog.admin.auth.settings") as mock:
        mock.security.admin_web_password = "testpass123"
        yield mock


@pytest.fixture
def store():
    entries = [
        _make_entry(action_type=ActionType.DELETE, resource_type="user", risk_level=RiskLevel.HIGH,
                    resource_name="Smith, Jane"),
        _make_entry(success=False),
        _make_entry(days_ago=4000),
    ]
    return InMemoryLogStore(entries)


@pytest.fixture
def client(mock_settings, store):
    """Create test client with the logger bound to an in-memory store."""
    audit = SystemActionLogger(store, ActionLogSettings(), DiagnosticsChannel())

    test_app = FastAPI()
    test_app.include_router(router)
    register_error_handlers(test_app)
    test_app.dependency_overrides[get_logger] = lambda: audit
    return TestClient(test_app)


class TestAuth:
    def test_401_without_credentials(self, client):
        resp = client.get("/admin/logs")
        assert resp.status_code == 401

    def test_401_wrong_password(self, client):
        resp = client.get("/admin/logs", headers=_make_auth_header(password="wrong"))
        assert resp.status_code == 401

    def test_200_correct_credentials(self, client):
        resp = client.get("/admin/logs", headers=_make_auth_header())
        assert resp.status_code == 200

    def test_503_when_password_unset(self, client, mock_settings):
        mock_settings.security.admin_web_password = ""
        resp = client.get("/admin/logs", headers=_make_auth_header())
        assert resp.status_code == 503


class TestListLogs:
    def test_all(self, client):
        body = client.get("/admin/logs", headers=_make_auth_header()).json()
        assert body["total"] == 3
        assert body["hasMore"] is False
        assert len(body["logs"]) == 3

    def test_filters(self, client):
        resp = client.get(
            "/admin/logs",
            params={"filterActionType": "delete", "filterSuccess": ""},
            headers=_make_auth_header(),
        )
        body = resp.json()
        assert body["total"] == 1
        assert body["logs"][0]["resourceName"] == "Smith, Jane"

    def test_pagination(self, client):
        body = client.get("/admin/logs", params={"limit": 1, "offset": 1}, headers=_make_auth_header()).json()
        assert len(body["logs"]) == 1
        assert body["page"] == 2
        assert body["hasMore"] is True

    def test_invalid_success_is_400(self, client):
        resp = client.get("/admin/logs", params={"filterSuccess": "maybe"}, headers=_make_auth_header())
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_negative_offset_is_400(self, client):
        resp = client.get("/admin/logs", params={"offset": -1}, headers=_make_auth_header())
        assert resp.status_code == 400


class TestStats:
    def test_stats(self, client):
        body = client.get("/admin/logs/stats", headers=_make_auth_header()).json()
        assert body["totalLogs"] == 3
        assert body["failedActions"] == 1
        assert body["highRiskActions"] == 1
        assert body["riskDistribution"]["high"] == 1


class TestExport:
    def test_json_default(self, client):
        body = client.get("/admin/logs/export", headers=_make_auth_header()).json()
        assert body["format"] == "json"
        assert body["totalRecords"] == 3
        assert len(body["data"]) == 3

    def test_csv(self, client):
        resp = client.get(
            "/admin/logs/export",
            params={"exportFormat": "csv", "filterActionType": "DELETE"},
            headers=_make_auth_header(),
        )
        body = resp.json()
        assert body["format"] == "csv"
        assert '"Smith, Jane"' in body["csvData"]

    def test_csv_download(self, client):
        resp = client.get(
            "/admin/logs/export",
            params={"exportFormat": "csv", "download": "true"},
            headers=_make_auth_header(),
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "attachment" in resp.headers["content-disposition"]

    def test_unknown_format(self, client):
        resp = client.get("/admin/logs/export", params={"exportFormat": "xml"}, headers=_make_auth_header())
        assert resp.status_code == 400


class TestCleanup:
    def test_cleanup(self, client, store):
        body = client.post("/admin/logs/cleanup", headers=_make_auth_header()).json()
        assert body["deletedCount"] == 1
        assert "nextCleanup" in body
        assert len(store.entries) == 2
