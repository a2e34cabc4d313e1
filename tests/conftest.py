from datetime import datetime, timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import TokenService
from config import Settings
from database import Database
from media import MediaUploadError
from main import create_app

SECRET = "test-secret"
BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


class FakeMedia:
    def __init__(self, fail=False):
        self.fail = fail
        self.received = []

    def upload_many(self, files):
        files = list(files)
        if self.fail:
            raise MediaUploadError("host down")
        self.received.extend(files)
        return [f"https://cdn.example.com/{name}" for name, _, _ in files]


@pytest.fixture
def db():
    return Database(mongomock.MongoClient(), "gadget_galaxy_test")


@pytest.fixture
def tokens():
    return TokenService(SECRET)


@pytest.fixture
def media():
    return FakeMedia()


@pytest.fixture
def client(db, tokens, media):
    app = create_app(settings=Settings(token_secret=SECRET), database=db, tokens=tokens, media=media)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(tokens):
    return {"Authorization": f"Bearer {tokens.issue({'email': 'admin@example.com'})}"}


def make_product(minutes, **fields):
    doc = {
        "title": f"Product {minutes}",
        "category": "Phones",
        "type": "Phone",
        "brand": "Acme",
        "sellingPrice": 100.0,
        "createdAt": BASE_TIME + timedelta(minutes=minutes),
    }
    doc.update(fields)
    return doc
