import mongomock
from fastapi.testclient import TestClient

from config import Settings
from conftest import SECRET, FakeMedia
from database import Database
from main import create_app


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.text == "Gadget Galaxy is running"


def test_diagnostics(client, db):
    db.products.insert_one({"title": "Phone X"})
    body = client.get("/test").json()
    assert body["backend"] == "✅ Running"
    assert body["database"] == "✅ Connected & Working"
    assert body["database_name"] == "gadget_galaxy_test"
    assert "products" in body["collections"]


def test_diagnostics_reports_injected_settings(db, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = Settings(token_secret=SECRET, database_url="mongodb://db.internal:27017")
    app = create_app(settings=settings, database=db, media=FakeMedia())
    with TestClient(app) as client:
        assert client.get("/test").json()["database_url"] == "✅ Set"

    app = create_app(settings=Settings(token_secret=SECRET), database=db, media=FakeMedia())
    with TestClient(app) as client:
        assert client.get("/test").json()["database_url"] == "❌ Not Set"


def test_missing_token_secret_rejects_guarded_routes(monkeypatch):
    monkeypatch.delenv("ACCESS_TOKEN_SECRET", raising=False)
    database = Database(mongomock.MongoClient(), "gadget_galaxy_test")
    app = create_app(settings=Settings(), database=database, media=FakeMedia())
    with TestClient(app) as client:
        resp = client.get("/users", headers={"Authorization": "Bearer abc.def.ghi"})
    assert resp.status_code == 401
    assert resp.json() == {"error": True, "message": "unauthorized access"}


def test_cors_allows_any_origin(client):
    resp = client.get("/", headers={"Origin": "https://shop.example.com"})
    assert resp.headers["access-control-allow-origin"] in ("*", "https://shop.example.com")


def test_settings_defaults(monkeypatch):
    for name in ("DATABASE_URL", "DATABASE_NAME", "TOKEN_EXPIRES_DAYS", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.database_url == "mongodb://localhost:27017"
    assert settings.database_name == "gadget_galaxy"
    assert settings.token_expires_days == 30
    assert settings.port == 8000
    assert settings.log_level == "INFO"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_NAME", "shop")
    monkeypatch.setenv("TOKEN_EXPIRES_DAYS", "7")
    monkeypatch.setenv("PORT", "not-a-port")
    settings = Settings()
    assert settings.database_name == "shop"
    assert settings.token_expires_days == 7
    assert settings.port == 8000
