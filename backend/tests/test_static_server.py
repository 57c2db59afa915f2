import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from config import make_static_config
from static_server import setup_static_serving


def make_client(config) -> TestClient:
    client = TestClient(build_app(config))
    del client.headers["accept-encoding"]
    return client


def build_app(config) -> FastAPI:
    app = FastAPI()

    @app.get("/api/health")
    async def health_check():
        return {"status": "healthy"}

    setup_static_serving(app, config)
    return app


def test_setup_serves_documents(site):
    client = make_client(make_static_config(root=str(site), html5=True))
    assert client.get("/docs/guide.txt").text == "guide"
    assert client.get("/api/health").json() == {"status": "healthy"}
    assert client.get("/some/route").text == "<h1>home</h1>"


def test_setup_skips_missing_root(tmp_path, caplog):
    missing = tmp_path / "nope"
    with caplog.at_level(logging.WARNING, logger="static_server"):
        app = build_app(make_static_config(root=str(missing)))
    assert "does not exist" in caplog.text

    client = TestClient(app)
    assert client.get("/index.html").status_code == 404
    assert client.get("/api/health").status_code == 200


def test_setup_reads_environment(site, monkeypatch):
    monkeypatch.setenv("STATIC_ROOT", str(site))
    monkeypatch.setenv("STATIC_PREFIX", "/assets")
    client = make_client(None)
    assert client.get("/assets/docs/guide.txt").text == "guide"
    assert client.get("/docs/guide.txt").status_code == 404


def test_main_app_health():
    from main import app

    response = TestClient(app).get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
