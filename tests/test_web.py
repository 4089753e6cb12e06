from fastapi.testclient import TestClient
from billflow.main import app
from billflow.core.config import settings
from pathlib import Path

client = TestClient(app)

def install_frontend():
    root = Path(settings.STATIC_DIR)
    root.mkdir(parents=True, exist_ok=True)
    (root / "index.html").write_text("<html><body>BillFlow</body></html>")
    (root / "app.js").write_text("console.log('billflow');")

def test_static_asset_is_served():
    install_frontend()
    response = client.get("/app.js")
    assert response.status_code == 200
    assert "billflow" in response.text
    assert "max-age=3600" in response.headers["cache-control"]

def test_client_routes_fall_back_to_index():
    install_frontend()
    for path in ("/", "/settings/email", "/months/2025-01"):
        response = client.get(path)
        assert response.status_code == 200
        assert "BillFlow" in response.text

def test_unknown_api_path_is_not_the_frontend():
    install_frontend()
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}
