import pytest
from fastapi.testclient import TestClient

from app.core.config import AppSettings
from app.core.errors import AuthenticationError
from app.main import create_app

HTML = {"Accept": "text/html"}
WEBHOOK_SECRET = "hook-secret"


@pytest.fixture()
def app(sql_backend, hub):
    settings = AppSettings(
        WEBHOOK_SECRET=WEBHOOK_SECRET,
        DIVISIONS="A,B,C,D,E,F,G,H",
        APP_SECRET="test-secret",
    )
    return create_app(settings, backend=sql_backend, hub=hub, seed=False)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def _login(client, email, password):
    return client.post(
        "/login",
        data={"email": email, "password": password, "next": "/"},
        follow_redirects=False,
    )


def _token(client, email, password):
    response = client.post("/api/v1/auth/sign-in", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def test_health_reports_backend(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "backend": "sql"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Request-ID" in response.headers


def test_dashboard_requires_login(client):
    response = client.get("/", headers=HTML, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"].startswith("/login")


def test_bad_login_shows_friendly_error(client):
    response = _login(client, "divisionA@drdo.gov.in", "wrong")

    assert response.status_code == 401
    assert "Invalid email or password. Please check your credentials." in response.text


def test_personnel_dashboard(client, app):
    response = _login(client, "divisionA@drdo.gov.in", "divA123")
    assert response.status_code == 302
    assert response.headers["location"] == "/"

    page = client.get("/", headers=HTML)

    assert page.status_code == 200
    assert "Division A Control Panel" in page.text
    assert "DIVISION A PERSONNEL" in page.text
    assert "NVIDIA RTX 4090 GPU" in page.text
    assert "Spectrum Analyzer" not in page.text
    assert ">Edit</button>" in page.text
    assert ">Delete</button>" not in page.text
    assert "Pending Requests" in page.text
    assert len(app.state.registry) == 1


def test_scientist_dashboard_has_no_row_controls(client):
    _login(client, "ananya.gupta@drdo.gov.in", "sci123")

    page = client.get("/", headers=HTML)

    assert "Division A Research Access" in page.text
    assert ">Edit</button>" not in page.text
    assert ">Delete</button>" not in page.text
    assert "Pending Requests" not in page.text
    assert "<th>Actions</th>" not in page.text


def test_admin_can_preview_other_views(client):
    _login(client, "admin@drdo.gov.in", "admin123")

    admin_page = client.get("/", headers=HTML)
    scientist_page = client.get("/?view=scientist", headers=HTML)

    assert "Administrator Dashboard" in admin_page.text
    assert "DIV H" in admin_page.text
    assert ">Delete</button>" in admin_page.text
    assert "Research Access" in scientist_page.text
    assert ">Delete</button>" not in scientist_page.text


def test_logout_releases_the_dashboard(client, app, hub):
    _login(client, "divisionB@drdo.gov.in", "divB123")
    client.get("/", headers=HTML)
    assert hub.subscription_count == 3

    response = client.get("/logout", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/login"
    assert len(app.state.registry) == 0
    assert hub.subscription_count == 0
    assert client.get("/", headers=HTML, follow_redirects=False).status_code == 302


def test_rejected_session_token_releases_the_dashboard(client, app, hub, sql_backend, monkeypatch):
    _login(client, "divisionA@drdo.gov.in", "divA123")
    client.get("/", headers=HTML)
    assert len(app.state.registry) == 1
    assert hub.subscription_count == 3

    async def expired(access_token):
        raise AuthenticationError("Token expired", status_code=401)

    monkeypatch.setattr(sql_backend, "get_profile", expired)
    response = client.get("/", headers=HTML, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"].startswith("/login")
    assert len(app.state.registry) == 0
    assert hub.subscription_count == 0


def test_logging_activity_from_the_form_shows_up_live(client):
    _login(client, "divisionC@drdo.gov.in", "divC123")
    client.get("/", headers=HTML)

    response = client.post("/activity", data={"action": "Counted cameras", "view": "division"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/?view=division"

    assert "Counted cameras" in client.get("/", headers=HTML).text


def test_api_requires_bearer_or_session(client):
    response = client.get("/api/v1/inventory")

    assert response.status_code == 401
    assert response.json()["code"] == "http_error"


def test_api_sign_in_rejects_bad_credentials(client):
    response = client.post("/api/v1/auth/sign-in", json={"email": "admin@drdo.gov.in", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["code"] == "authentication_failed"


def test_api_stats_scoping(client):
    token = _token(client, "divisionB@drdo.gov.in", "divB123")
    headers = {"Authorization": f"Bearer {token}"}

    own = client.get("/api/v1/stats", headers=headers)
    forbidden = client.get("/api/v1/stats", params={"division": "all"}, headers=headers)

    assert own.status_code == 200
    assert own.json() == [
        {
            "division": "B",
            "totalItems": 3,
            "totalQuantity": 15,
            "activeItems": 2,
            "maintenanceItems": 1,
            "overdueCalibrations": 0,
            "dueCalibrations": 1,
        }
    ]
    assert forbidden.status_code == 403


def test_api_admin_stats_for_all_divisions(client):
    token = _token(client, "admin@drdo.gov.in", "admin123")

    response = client.get("/api/v1/stats", params={"division": "all"}, headers={"Authorization": f"Bearer {token}"})

    body = response.json()
    assert [row["division"] for row in body] == list("ABCDEFGH")
    assert sum(row["totalItems"] for row in body) == 10
    division_d = body[3]
    assert division_d["totalItems"] == 4
    assert division_d["activeItems"] == 3
    assert division_d["maintenanceItems"] == 0
    assert body[7]["totalItems"] == 0


def test_api_dashboard_and_view(client):
    token = _token(client, "ananya.gupta@drdo.gov.in", "sci123")
    headers = {"Authorization": f"Bearer {token}"}

    snapshot = client.get("/api/v1/dashboard", headers=headers).json()
    view = client.get("/api/v1/view", headers=headers).json()

    assert snapshot["view"]["role"] == "scientist"
    assert snapshot["requests"] == []
    assert {item["division_id"] for item in snapshot["inventory"]} == {"A"}
    assert view["can_edit"] is False and view["can_delete"] is False


def test_api_log_activity_validates_and_creates(client):
    token = _token(client, "divisionD@drdo.gov.in", "divD123")
    headers = {"Authorization": f"Bearer {token}"}

    created = client.post("/api/v1/activity", json={"action": "Retired plotter"}, headers=headers)
    invalid = client.post("/api/v1/activity", json={"action": ""}, headers=headers)

    assert created.status_code == 201
    assert created.json()["division_id"] == "D"
    assert invalid.status_code == 422
    assert invalid.json()["code"] == "validation_error"


def test_webhook_requires_secret_and_fans_out(client, hub):
    seen = []

    async def on_change(change):
        seen.append(change.type)

    hub.subscribe("inventory_items", on_change)
    payload = {"type": "UPDATE", "table": "inventory_items", "record": {"id": "x"}}

    rejected = client.post("/api/v1/hooks/changes", json=payload, headers={"X-Webhook-Secret": "wrong"})
    accepted = client.post("/api/v1/hooks/changes", json=payload, headers={"X-Webhook-Secret": WEBHOOK_SECRET})

    assert rejected.status_code == 401
    assert accepted.status_code == 202
    assert accepted.json() == {"delivered": 1}
    assert len(seen) == 1


def test_webhook_disabled_without_secret(sql_backend, hub):
    app = create_app(AppSettings(WEBHOOK_SECRET=""), backend=sql_backend, hub=hub, seed=False)
    with TestClient(app) as client:
        response = client.post("/api/v1/hooks/changes", json={"type": "INSERT", "table": "requests"})

    assert response.status_code == 404
