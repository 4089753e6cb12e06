from fastapi.testclient import TestClient
from billflow.main import app
from billflow.db.session import SessionLocal
from billflow.db.models import UserState
from billflow.db.store import TenantStore
import uuid

client = TestClient(app)

def tenant_headers():
    return {"Remote-User": f"user-{uuid.uuid4().hex[:8]}"}

def test_health_reports_tenant():
    response = client.get("/api/health", headers={"Remote-User": "alice"})
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["user"] == "alice"
    assert isinstance(data["ts"], int)

def test_health_falls_back_to_local():
    response = client.get("/api/health")
    assert response.json()["user"] == "local"

def test_tenant_header_precedence():
    headers = {"X-Forwarded-User": "forwarded", "X-Authentik-Username": "authentik"}
    assert client.get("/api/health", headers=headers).json()["user"] == "authentik"

    headers["Remote-User"] = "authelia"
    assert client.get("/api/health", headers=headers).json()["user"] == "authelia"

def test_people_round_trip_for_local_tenant():
    people = [{"name": "Alice"}]
    response = client.put("/api/state", json={"people": people})
    assert response.status_code == 200
    assert response.json() == {"ok": True}

    state = client.get("/api/state").json()
    assert state["people"] == people

def test_put_state_overwrites_keys():
    headers = tenant_headers()
    client.put("/api/state", json={"people": [], "settings": {"currency": "USD"}}, headers=headers)
    client.put("/api/state", json={"settings": {"currency": "EUR"}}, headers=headers)

    state = client.get("/api/state", headers=headers).json()
    assert state == {"people": [], "settings": {"currency": "EUR"}}

def test_patch_single_key():
    headers = tenant_headers()
    response = client.patch("/api/state/theme", json={"accent": "#ff8800"}, headers=headers)
    assert response.status_code == 200

    response = client.patch("/api/state/count", json=3, headers=headers)
    assert response.status_code == 200

    state = client.get("/api/state", headers=headers).json()
    assert state == {"theme": {"accent": "#ff8800"}, "count": 3}

def test_put_state_rejects_non_object_body():
    headers = tenant_headers()
    response = client.put("/api/state", json=[1, 2, 3], headers=headers)
    assert response.status_code == 400
    assert "detail" in response.json()
    assert client.get("/api/state", headers=headers).json() == {}

def test_tenants_are_isolated():
    first, second = tenant_headers(), tenant_headers()
    client.put("/api/state", json={"people": [{"name": "Bob"}]}, headers=first)

    assert client.get("/api/state", headers=second).json() == {}
    assert client.get("/api/state", headers=first).json() == {"people": [{"name": "Bob"}]}

def test_corrupt_setting_is_skipped():
    headers = tenant_headers()
    tenant = headers["Remote-User"]
    client.put("/api/state", json={"people": []}, headers=headers)

    db = SessionLocal()
    try:
        db.add(UserState(user_id=tenant, key="legacy", value="{not json", updated_at=0))
        db.commit()
    finally:
        db.close()

    response = client.get("/api/state", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"people": []}

def test_unexpected_failure_returns_json_500(monkeypatch):
    def broken_list_all(self, tenant):
        raise RuntimeError("disk went away")

    monkeypatch.setattr(TenantStore, "list_all", broken_list_all)
    quiet_client = TestClient(app, raise_server_exceptions=False)

    response = quiet_client.get("/api/state", headers=tenant_headers())
    assert response.status_code == 500
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"detail": "Internal server error"}
    assert "disk went away" not in response.text
