"""HTTP surface tests with the entry store replaced by in-memory fakes."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from focuslog import db, repositories
from focuslog.clock import get_now
from focuslog.main import app
from focuslog.stats import ComputationError

from conftest import NOW

HEADERS = {"X-Backend-Token": "test-secret", "X-User-Email": "Ana@Example.com"}


def _focus_row(entry_id, days_ago, status="ACHIEVED", mood="calm", title=None):
    stamp = (NOW - timedelta(days=days_ago)).isoformat()
    return {
        "id": entry_id,
        "owner_id": "ana@example.com",
        "title": title or f"Focus {entry_id}",
        "status": status,
        "mood": mood,
        "notes": "",
        "entry_date": stamp,
        "image": None,
        "created_at": stamp,
        "updated_at": stamp,
    }


def _decision_row(entry_id, days_ago, category="GENERAL"):
    stamp = (NOW - timedelta(days=days_ago)).isoformat()
    return {
        "id": entry_id,
        "owner_id": "ana@example.com",
        "title": f"Decision {entry_id}",
        "reason": "because",
        "category": category,
        "entry_date": stamp,
        "image": None,
        "created_at": stamp,
        "updated_at": stamp,
    }


@pytest.fixture
def client():
    app.dependency_overrides[get_now] = lambda: NOW
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def live_client():
    """Client that runs the app lifespan against the temporary SQLite database."""
    app.dependency_overrides[get_now] = lambda: NOW
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def store(monkeypatch):
    """Patch the repository functions used by the stats routes."""
    data = {
        "focus": [_focus_row(f"f{i}", i) for i in range(3)],
        "decisions": [_decision_row(f"d{i}", i, "HEALTH") for i in range(3)],
        "calls": [],
    }

    async def list_focus_entries(owner_id):
        data["calls"].append(("focus", owner_id))
        return data["focus"]

    async def list_decision_entries(owner_id):
        return data["decisions"]

    async def list_recent_focus(owner_id, limit):
        data["calls"].append(("recent_focus", owner_id, limit))
        return data["focus"][:limit]

    async def list_recent_decisions(owner_id, limit):
        return data["decisions"][:limit]

    monkeypatch.setattr(repositories, "list_focus_entries", list_focus_entries)
    monkeypatch.setattr(repositories, "list_decision_entries", list_decision_entries)
    monkeypatch.setattr(repositories, "list_recent_focus", list_recent_focus)
    monkeypatch.setattr(repositories, "list_recent_decisions", list_recent_decisions)
    return data


class TestAuth:

    def test_blank_email_is_missing(self, client, store):
        resp = client.get("/v1/insights", headers={"X-Backend-Token": "test-secret", "X-User-Email": "   "})
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Missing user email"}

    def test_health_is_open(self, client):
        assert client.get("/health").json() == {"ok": True}

    def test_bad_token(self, client, store):
        resp = client.get("/v1/insights", headers={"X-Backend-Token": "nope", "X-User-Email": "a@b.c"})
        assert resp.status_code == 401

    def test_missing_email(self, client, store):
        resp = client.get("/v1/insights", headers={"X-Backend-Token": "test-secret"})
        assert resp.status_code == 401

    def test_allow_list(self, client, store, monkeypatch):
        from focuslog.settings import reset_settings

        monkeypatch.setenv("ALLOWED_EMAILS", "someone@example.com")
        reset_settings()
        resp = client.get("/v1/insights", headers=HEADERS)
        assert resp.status_code == 403


class TestStatsRoutes:

    def test_insights(self, client, store):
        resp = client.get("/v1/insights", headers=HEADERS)
        assert resp.status_code == 200
        items = resp.json()["items"]
        assert items[0] == {
            "kind": "trend",
            "message": "You're building momentum with a 3-day streak!",
            "details": "You're just days away from forming a solid habit. Don't break the chain!",
        }
        assert ("recent_focus", "ana@example.com", 30) in store["calls"]

    def test_insights_fallback_for_new_user(self, client, store):
        store["focus"] = []
        store["decisions"] = []
        resp = client.get("/v1/insights", headers=HEADERS)
        assert resp.json()["items"] == [
            {
                "kind": "recommendation",
                "message": "Start building your data!",
                "details": "Log your daily focus and decisions to unlock personalized insights.",
            }
        ]

    def test_insights_store_failure(self, client, monkeypatch):
        async def broken(owner_id, limit):
            raise OperationalError("SELECT", {}, Exception("db down"))

        monkeypatch.setattr(repositories, "list_recent_focus", broken)
        monkeypatch.setattr(repositories, "list_recent_decisions", broken)
        resp = client.get("/v1/insights", headers=HEADERS)
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Failed to generate insights"}

    def test_dashboard(self, client, store):
        resp = client.get("/v1/dashboard", headers=HEADERS)
        assert resp.status_code == 200
        body = resp.json()
        assert body["current_streak"] == 3
        assert body["total_decisions"] == 3
        assert body["focus_completion_rate"] == 100
        assert body["category_breakdown"] == [{"category": "HEALTH", "count": 3}]

    def test_history(self, client, store):
        resp = client.get("/v1/history", headers=HEADERS)
        assert resp.status_code == 200
        body = resp.json()
        assert [row["completed"] for row in body["weekly_data"]][-3:] == [1, 1, 1]
        assert len(body["monthly_data"]) == 4
        assert body["stats"]["weekly_completion"] == 100

    def test_export_csv(self, client, store):
        resp = client.get("/v1/export.csv", headers=HEADERS)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "focuslog-export-2026-10-19.csv" in resp.headers["content-disposition"]
        assert resp.text.splitlines()[0] == "type,date,title,status,mood,notes,category,reason"

    def test_export_json(self, client, store):
        body = client.get("/v1/export", headers=HEADERS).json()
        assert body["stats"]["total_focuses"] == 3
        assert body["stats"]["category_counts"] == {"HEALTH": 3}


class TestEntryRoutes:

    def test_create_focus(self, client, monkeypatch):
        captured = {}

        async def create_focus(owner_id, payload):
            captured.update(payload, owner_id=owner_id)
            return _focus_row("new", 0, status=payload["status"], title=payload["title"])

        monkeypatch.setattr(repositories, "create_focus", create_focus)
        resp = client.post("/v1/focus", headers=HEADERS, json={"title": "Write tests", "mood": "keen"})
        assert resp.status_code == 201
        assert resp.json()["title"] == "Write tests"
        assert captured["owner_id"] == "ana@example.com"
        assert captured["status"] == "PENDING"

    def test_create_focus_rejects_unknown_status(self, client):
        resp = client.post("/v1/focus", headers=HEADERS, json={"title": "x", "status": "DONE"})
        assert resp.status_code == 422

    def test_create_focus_value_error_is_400(self, client, monkeypatch):
        async def create_focus(owner_id, payload):
            raise ValueError("Title cannot be empty")

        monkeypatch.setattr(repositories, "create_focus", create_focus)
        resp = client.post("/v1/focus", headers=HEADERS, json={"title": " "})
        assert resp.status_code == 400

    def test_patch_requires_changes(self, client):
        resp = client.patch("/v1/focus/abc", headers=HEADERS, json={})
        assert resp.status_code == 400

    def test_missing_focus_is_404(self, client, monkeypatch):
        async def get_focus(owner_id, entry_id):
            return {}

        monkeypatch.setattr(repositories, "get_focus", get_focus)
        assert client.get("/v1/focus/missing", headers=HEADERS).status_code == 404

    def test_delete_decision(self, client, monkeypatch):
        async def delete_decision(owner_id, entry_id):
            return entry_id == "d1"

        monkeypatch.setattr(repositories, "delete_decision", delete_decision)
        assert client.delete("/v1/decisions/d1", headers=HEADERS).json() == {"ok": True}
        assert client.delete("/v1/decisions/d2", headers=HEADERS).status_code == 404

    def test_archive_caps_limit(self, client, monkeypatch):
        captured = {}

        async def archive_focus(owner_id, **kwargs):
            captured.update(kwargs)
            return {
                "items": [_focus_row("f1", 0)],
                "pagination": {"page": 1, "limit": 100, "total": 1, "total_pages": 1, "has_next": False, "has_prev": False},
            }

        monkeypatch.setattr(repositories, "archive_focus", archive_focus)
        resp = client.get("/v1/focus?limit=500&status=ACHIEVED&sort_order=asc", headers=HEADERS)
        assert resp.status_code == 200
        assert captured["limit"] == 100
        assert captured["status"] == "ACHIEVED"
        assert captured["sort_order"] == "asc"

    def test_computation_error_is_422(self, client, store, monkeypatch):
        from focuslog.routes import insights

        def broken(focus, decisions, now):
            raise ComputationError("now must be a date or datetime")

        monkeypatch.setattr(insights, "generate_insights", broken)
        resp = client.get("/v1/insights", headers=HEADERS)
        assert resp.status_code == 422
        assert resp.json() == {"detail": "now must be a date or datetime"}


def test_lifespan_creates_tables_and_disposes_engine():
    with TestClient(app) as test_client:
        assert db._engine is not None
        resp = test_client.get("/v1/focus", headers=HEADERS)
        assert resp.status_code == 200
        assert resp.json()["items"] == []
    assert db._engine is None


class TestNullPatches:

    @pytest.mark.parametrize("field", ["status", "date"])
    def test_focus_null_is_rejected(self, live_client, field):
        created = live_client.post(
            "/v1/focus",
            headers=HEADERS,
            json={"title": "Ship it", "status": "ACHIEVED", "date": "2026-10-01T09:00:00"},
        ).json()
        resp = live_client.patch(f"/v1/focus/{created['id']}", headers=HEADERS, json={field: None})
        assert resp.status_code == 400
        assert resp.json() == {"detail": f"{field} cannot be null"}
        stored = live_client.get(f"/v1/focus/{created['id']}", headers=HEADERS).json()
        assert stored["status"] == "ACHIEVED"
        assert stored["entry_date"] == "2026-10-01T09:00:00+00:00"

    @pytest.mark.parametrize("field", ["category", "date"])
    def test_decision_null_is_rejected(self, live_client, field):
        created = live_client.post(
            "/v1/decisions",
            headers=HEADERS,
            json={"title": "Move", "category": "CAREER", "date": "2026-10-01T09:00:00"},
        ).json()
        resp = live_client.patch(f"/v1/decisions/{created['id']}", headers=HEADERS, json={field: None})
        assert resp.status_code == 400
        stored = live_client.get(f"/v1/decisions/{created['id']}", headers=HEADERS).json()
        assert stored["category"] == "CAREER"
        assert stored["entry_date"] == "2026-10-01T09:00:00+00:00"

    def test_focus_status_change_still_applies(self, live_client):
        created = live_client.post("/v1/focus", headers=HEADERS, json={"title": "Ship it"}).json()
        resp = live_client.patch(f"/v1/focus/{created['id']}", headers=HEADERS, json={"status": "ACHIEVED"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "ACHIEVED"
        assert resp.json()["owner_id"] == "ana@example.com"
