import base64

import pytest
from fastapi.testclient import TestClient

from drawshare import main
from drawshare.main import app
from drawshare.service import get_image_sharer
from drawshare.utils import get_settings
from tests.fakes import expired_token, header_only_png, other_error


@pytest.fixture
def client(sharer):
    app.dependency_overrides[get_image_sharer] = lambda: sharer
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_upload_returns_direct_url(client, backend, png_bytes, png_data_uri):
    response = client.post("/api/upload", json={"image": png_data_uri})

    assert response.status_code == 200
    url = response.json()["url"]
    assert url == "https://www.dropbox.com/s/id0/drawing-1700000000000.png?dl=1"
    assert backend.fetch(url) == png_bytes


def test_upload_reuses_existing_link(client, backend, png_data_uri):
    backend.links["/drawings/drawing-1700000000000.png"] = [
        "https://www.dropbox.com/s/existing/drawing-1700000000000.png?dl=0"
    ]

    response = client.post("/api/upload", json={"image": png_data_uri})

    assert response.status_code == 200
    assert response.json() == {
        "url": "https://www.dropbox.com/s/existing/drawing-1700000000000.png?dl=1"
    }


def test_missing_image(client, backend):
    response = client.post("/api/upload", json={})

    assert response.status_code == 400
    assert response.json() == {
        "error": {"code": "missing_image", "message": "Image data is missing."}
    }
    assert backend.calls == []


def test_invalid_image_makes_no_remote_call(client, backend):
    response = client.post("/api/upload", json={"image": "not-a-data-uri"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_image"
    assert backend.calls == []


def test_body_is_not_json(client, backend):
    response = client.post(
        "/api/upload", content=b"image=abc", headers={"Content-Type": "text/plain"}
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_request"
    assert backend.calls == []


def test_upload_failure(client, backend, png_data_uri):
    backend.fail("write", other_error())

    response = client.post("/api/upload", json={"image": png_data_uri})

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "upload_failed"
    assert backend.count("create_public_link") == 0


def test_link_failure(client, backend, png_data_uri):
    backend.fail("create_public_link", other_error(400))

    response = client.post("/api/upload", json={"image": png_data_uri})

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "link_failed"


def test_auth_failure(client, backend, png_data_uri):
    backend.fail("write", expired_token(), expired_token())

    response = client.post("/api/upload", json={"image": png_data_uri})

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "auth_failed"
    assert backend.count("exchange_refresh_token") == 1


def test_get_not_allowed(client):
    response = client.get("/api/upload")

    assert response.status_code == 405
    assert response.json()["error"]["code"] == "http_error"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_huge_declared_dimensions_rejected(client, backend):
    image = "data:image/png;base64," + base64.b64encode(header_only_png(30000, 30000)).decode()

    response = client.post("/api/upload", json={"image": image})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "image_too_large"
    assert backend.calls == []


def test_run_serves_app_with_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))

    main.run()

    settings = get_settings()
    assert calls == [((app,), {"host": settings.host, "port": settings.port})]
