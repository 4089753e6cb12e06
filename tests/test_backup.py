from fastapi.testclient import TestClient
from billflow.main import app
from billflow.core.errors import InvalidMonthKey
from billflow.db.session import SessionLocal
from billflow.db.store import TenantStore
import pytest
import uuid

client = TestClient(app)

def tenant_headers():
    return {"Remote-User": f"user-{uuid.uuid4().hex[:8]}"}

def test_export_contains_state_and_months():
    headers = tenant_headers()
    tenant = headers["Remote-User"]
    client.put("/api/state", json={"people": [{"name": "Alice"}]}, headers=headers)
    client.put("/api/months/2025-01", json={"total": 120}, headers=headers)

    response = client.get("/api/export", headers=headers)
    assert response.status_code == 200

    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment;")
    assert f"billflow-backup-{tenant}-" in disposition

    data = response.json()
    assert data["user"] == tenant
    assert data["exportedAt"].endswith("Z")
    assert data["state"] == {"people": [{"name": "Alice"}]}
    assert data["monthly"] == {"2025-01": {"total": 120}}

def test_import_replays_export_into_other_tenant():
    source, target = tenant_headers(), tenant_headers()
    client.put("/api/state", json={"people": [{"name": "Dana"}], "settings": {"split": "even"}}, headers=source)
    client.put("/api/months/2024-12", json={"bills": []}, headers=source)

    exported = client.get("/api/export", headers=source).json()
    response = client.post("/api/import", json=exported, headers=target)
    assert response.status_code == 200

    assert client.get("/api/state", headers=target).json() == exported["state"]
    assert client.get("/api/months", headers=target).json() == exported["monthly"]

def test_failed_import_leaves_prior_state_intact():
    headers = tenant_headers()
    client.put("/api/state", json={"people": [{"name": "Original"}]}, headers=headers)
    client.put("/api/months/2025-06", json={"v": 1}, headers=headers)

    payload = {
        "state": {"people": [{"name": "Replaced"}], "extra": True},
        "monthly": {"2025-06": {"v": 2}, "June": {"v": 3}},
    }
    response = client.post("/api/import", json=payload, headers=headers)
    assert response.status_code == 400

    assert client.get("/api/state", headers=headers).json() == {"people": [{"name": "Original"}]}
    assert client.get("/api/months", headers=headers).json() == {"2025-06": {"v": 1}}

def test_import_with_only_state():
    headers = tenant_headers()
    response = client.post("/api/import", json={"state": {"people": []}}, headers=headers)
    assert response.status_code == 200
    assert client.get("/api/state", headers=headers).json() == {"people": []}
    assert client.get("/api/months", headers=headers).json() == {}

def test_store_set_many_rolls_back():
    tenant = f"store-{uuid.uuid4().hex[:8]}"
    db = SessionLocal()
    try:
        store = TenantStore(db)
        store.set(tenant, "people", ["kept"])

        with pytest.raises(InvalidMonthKey):
            store.set_many(tenant, settings={"people": ["lost"]}, monthly={"2025-13x": {}})

        assert store.get(tenant, "people") == ["kept"]
        assert store.list_months(tenant) == {}
    finally:
        db.close()

def test_store_set_month_validates_key():
    tenant = f"store-{uuid.uuid4().hex[:8]}"
    db = SessionLocal()
    try:
        store = TenantStore(db)
        with pytest.raises(InvalidMonthKey):
            store.set_month(tenant, "2025/01", {"x": 1})
        assert store.get_month(tenant, "2025/01") is None

        store.set_month(tenant, "2025-01", {"x": 1})
        assert store.get_month(tenant, "2025-01") == {"x": 1}
    finally:
        db.close()
