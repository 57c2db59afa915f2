from pathlib import Path

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from config import make_static_config
from middleware import PrecompressedStaticMiddleware


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A document root with plain, gzip and brotli files."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_text("<h1>home</h1>")
    (root / "index.html.br").write_bytes(b"br:index")
    (root / "app.js").write_text("console.log('app');")
    (root / "app.js.br").write_bytes(b"br:app")
    (root / "app.js.gz").write_bytes(b"gz:app")
    (root / "style.css").write_text("body { color: red; }")
    (root / "style.css.gz").write_bytes(b"gz:style")

    docs = root / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<h1>docs</h1>")
    (docs / "guide.txt").write_text("guide")

    (root / "empty").mkdir()

    # Outside the root; must never be reachable
    (tmp_path / "secret.txt").write_text("secret")
    return root


def build_app(**options) -> FastAPI:
    app = FastAPI()

    @app.get("/api/ping")
    async def ping():
        return {"pong": True}

    @app.get("/api/missing")
    async def missing():
        raise HTTPException(status_code=404, detail="Item not found")

    @app.get("/api/broken")
    async def broken():
        raise HTTPException(status_code=503, detail="Unavailable")

    app.add_middleware(PrecompressedStaticMiddleware, config=make_static_config(**options))
    return app


@pytest.fixture
def make_client(site):
    def _make_client(**options) -> TestClient:
        options.setdefault("root", str(site))
        client = TestClient(build_app(**options))
        # httpx sends "gzip, deflate" by default; tests opt in explicitly
        del client.headers["accept-encoding"]
        return client

    return _make_client


@pytest.fixture
def client(make_client):
    return make_client()


def fetch_raw(client: TestClient, path: str, accept_encoding: str | None = None) -> tuple:
    """GET `path` without letting httpx decode the body."""
    headers = {"accept-encoding": accept_encoding} if accept_encoding is not None else {}
    with client.stream("GET", path, headers=headers) as response:
        body = b"".join(response.iter_raw())
    return response, body
