"""End-to-end tests for the HTTP API."""

import csv
import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from questionnaire_api.api.responses import get_questionnaire_service
from questionnaire_api.config import (
    DashboardConfig,
    MonitoringConfig,
    SqliteStorageConfig,
    StackConfig,
)
from questionnaire_api.core.errors import StoreError
from questionnaire_api.core.responses import QuestionnaireService
from questionnaire_api.main import create_app
from questionnaire_api.storage.database import DatabaseManager


@pytest.fixture
def app_config(tmp_path):
    return StackConfig(
        storage=SqliteStorageConfig(db_path=str(tmp_path / "responses.db")),
        dashboard=DashboardConfig(
            admin_page=tmp_path / "admin-dashboard.html",
            static_dir=tmp_path / "public",
        ),
        monitoring=MonitoringConfig(enable_metrics=False),
    )


@pytest.fixture
def client(app_config):
    with TestClient(create_app(app_config)) as client:
        yield client


def submit(client, **body):
    return client.post("/api/submit-questionnaire", json=body)


def test_submit_get_delete_flow(client):
    created = submit(client, firstName="Ana", email="a@x.com")
    assert created.status_code == 200
    assert created.json() == {
        "success": True,
        "responseId": 1,
        "message": "Response saved successfully",
    }

    fetched = client.get("/api/responses/1")
    assert fetched.status_code == 200
    body = fetched.json()
    assert body["success"] is True
    assert body["response"]["id"] == 1
    assert body["response"]["first_name"] == "Ana"
    assert body["response"]["email"] == "a@x.com"
    assert body["response"]["question_1"] is None
    assert body["response"]["submitted_at"]

    deleted = client.delete("/api/responses/1")
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True

    gone = client.get("/api/responses/1")
    assert gone.status_code == 404
    assert gone.json() == {"success": False, "message": "Response not found"}

    again = client.delete("/api/responses/1")
    assert again.status_code == 404


def test_submit_captures_client_details(client):
    response = client.post(
        "/api/submit-questionnaire",
        json={"firstName": "Ana", "email": "a@x.com", "question3": "Weekly"},
        headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1", "User-Agent": "survey/1.0"},
    )
    response_id = response.json()["responseId"]

    stored = client.get(f"/api/responses/{response_id}").json()["response"]
    assert stored["ip_address"] == "203.0.113.5"
    assert stored["user_agent"] == "survey/1.0"
    assert stored["question_3"] == "Weekly"


@pytest.mark.parametrize(
    "body",
    [
        {"email": "a@x.com"},
        {"firstName": "Ana"},
        {"firstName": "", "email": "a@x.com"},
        {"firstName": "Ana", "email": "   "},
        {},
    ],
)
def test_submit_missing_fields_is_rejected(client, body):
    response = client.post("/api/submit-questionnaire", json=body)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert client.get("/api/responses").json()["count"] == 0


def test_submit_malformed_json_is_rejected(client):
    response = client.post(
        "/api/submit-questionnaire",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_submit_form_encoded(client):
    response = client.post(
        "/api/submit-questionnaire",
        data={"firstName": "Ana", "email": "ana@example.com", "question2": "Yes"},
    )

    assert response.status_code == 200
    response_id = response.json()["responseId"]

    stored = client.get(f"/api/responses/{response_id}").json()["response"]
    assert stored["first_name"] == "Ana"
    assert stored["email"] == "ana@example.com"
    assert stored["question_1"] is None
    assert stored["question_2"] == "Yes"


def test_submit_form_encoded_missing_email_is_rejected(client):
    response = client.post("/api/submit-questionnaire", data={"firstName": "Ana"})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert client.get("/api/responses").json()["count"] == 0


def test_list_returns_newest_first(client):
    for name in ("Ana", "Ben", "Cleo"):
        submit(client, firstName=name, email=f"{name.lower()}@x.com")

    body = client.get("/api/responses").json()

    assert body["success"] is True
    assert body["count"] == 3
    assert [r["first_name"] for r in body["responses"]] == ["Cleo", "Ben", "Ana"]


def test_get_non_numeric_id_is_not_found(client):
    assert client.get("/api/responses/abc").status_code == 404
    assert client.delete("/api/responses/abc").status_code == 404
    assert client.get("/api/responses/99999999999999999999").status_code == 404
    assert client.delete("/api/responses/99999999999999999999").status_code == 404


def test_search(client):
    submit(client, firstName="Ana", email="ana@example.com")
    submit(client, firstName="Ben", email="ben@other.org")

    hits = client.get("/api/search", params={"query": "EXAMPLE"}).json()
    assert hits["success"] is True
    assert hits["count"] == 1
    assert hits["results"][0]["first_name"] == "Ana"

    misses = client.get("/api/search", params={"query": "nobody"})
    assert misses.status_code == 200
    assert misses.json() == {"success": True, "count": 0, "results": []}


def test_search_requires_query(client):
    response = client.get("/api/search")

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Search query is required"}


def test_stats(client):
    submit(client, firstName="Ana", email="a@x.com")
    submit(client, firstName="Ana", email="a@x.com")
    submit(client, firstName="Ben", email="b@x.com")

    body = client.get("/api/stats").json()

    assert body["success"] is True
    assert body["stats"]["total"] == 3
    assert body["stats"]["today"] == 3
    assert body["stats"]["uniqueEmails"] == 2
    assert "daily" not in body["stats"]


def test_stats_daily_breakdown(client):
    submit(client, firstName="Ana", email="a@x.com")

    stats = client.get("/api/stats", params={"daily": "true"}).json()["stats"]
    submitted_at = client.get("/api/responses/1").json()["response"]["submitted_at"]

    assert stats["daily"] == [{"date": submitted_at[:10], "count": 1}]


def test_export_csv_matches_listing(client):
    submit(client, firstName="Ana", email="a@x.com", question1='Say "hi", please')
    submit(client, firstName="Ben", email="b@x.com", question5="Later")

    export = client.get("/api/export/csv")
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert export.headers["content-disposition"] == "attachment; filename=responses.csv"

    rows = list(csv.reader(io.StringIO(export.text)))
    header, data = rows[0], rows[1:]
    assert header[0] == "ID"
    assert len(header) == 11

    listing = client.get("/api/responses").json()["responses"]
    assert len(data) == len(listing)
    for record in listing:
        expected = [
            "" if record[key] is None else str(record[key])
            for key in (
                "id",
                "first_name",
                "email",
                "question_1",
                "question_2",
                "question_3",
                "question_4",
                "question_5",
                "submitted_at",
                "ip_address",
                "user_agent",
            )
        ]
        assert data.count(expected) == 1


def test_root_descriptor(client):
    body = client.get("/").json()

    assert body["success"] is True
    assert body["version"] == "1.0.0"
    assert body["endpoints"]["submit"] == "POST /api/submit-questionnaire"


def test_admin_dashboard_served(client, app_config):
    app_config.dashboard.admin_page.write_text("<h1>Dashboard</h1>")

    response = client.get("/admin")

    assert response.status_code == 200
    assert "<h1>Dashboard</h1>" in response.text


def test_admin_dashboard_missing(client):
    response = client.get("/admin")

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("text/html")
    assert "Admin dashboard not found" in response.text
    assert "responses.db" in response.text


def test_unknown_route(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_health_and_request_id(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "ok"}
    assert response.headers["x-request-id"]


def test_store_error_is_500(client):
    class BrokenService:
        async def list_responses(self):
            raise StoreError("Failed to fetch responses")

    client.app.dependency_overrides[get_questionnaire_service] = BrokenService

    response = client.get("/api/responses")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to fetch responses"}


def test_submit_store_failure_is_500_and_saves_nothing(client):
    failing_manager = MagicMock(spec=DatabaseManager)
    mock_session = AsyncMock()
    mock_session.add = MagicMock()
    mock_session.flush = AsyncMock(
        side_effect=OperationalError("INSERT", {}, Exception("database is locked"))
    )
    mock_session_context_manager = MagicMock()
    mock_session_context_manager.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session_context_manager.__aexit__ = AsyncMock(return_value=None)
    failing_manager.session.return_value = mock_session_context_manager

    client.app.dependency_overrides[get_questionnaire_service] = lambda: (
        QuestionnaireService(failing_manager)
    )
    response = submit(client, firstName="Ana", email="a@x.com")
    client.app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to save response"}
    assert client.get("/api/responses").json()["count"] == 0


def test_unhandled_error_is_generic_500(app_config):
    class BrokenService:
        async def list_responses(self):
            raise RuntimeError("boom")

    app = create_app(app_config)
    app.dependency_overrides[get_questionnaire_service] = BrokenService

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/responses")
        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}

        # The server keeps answering afterwards
        assert client.get("/").status_code == 200


def test_static_files_served(app_config):
    app_config.dashboard.static_dir.mkdir()
    (app_config.dashboard.static_dir / "questionnaire.html").write_text("<form></form>")

    with TestClient(create_app(app_config)) as client:
        assert client.get("/questionnaire.html").text == "<form></form>"
        assert client.get("/api/responses").status_code == 200


def test_metrics_endpoint(app_config):
    app_config.monitoring.enable_metrics = True

    with TestClient(create_app(app_config)) as client:
        client.get("/api/responses")
        metrics = client.get("/metrics")

    assert metrics.status_code == 200
    assert "questionnaire_api_http_requests_total" in metrics.text
