"""Shared pytest configuration and fixtures for all tests."""

import mongomock
import pytest
from fastapi.testclient import TestClient

from src.infrastructure.config import get_settings
from src.infrastructure.persistence import ReviewStore
from src.web.app import create_app

ADMIN_PASSWORD = "hunter2"
ADMIN_TOKEN = "test-token"
MEDIA_BASE = "https://media.example.com"


class FakeOEmbed:
    """Stands in for OEmbedClient; records lookups."""

    def __init__(self, meta=None):
        self.meta = meta
        self.calls = []

    def fetch(self, video_url):
        self.calls.append(video_url)
        return self.meta


@pytest.fixture(autouse=True)
def env(monkeypatch):
    """Deterministic settings for every test."""
    monkeypatch.delenv("MONGODB_URI", raising=False)
    monkeypatch.setenv("MONGODB_DB", "reviews_test")
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("ADMIN_TOKEN", ADMIN_TOKEN)
    monkeypatch.setenv("MEDIA_BASE_URL", MEDIA_BASE + "/")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    return ReviewStore(get_settings().mongo, client=mongomock.MongoClient())


@pytest.fixture
def oembed():
    return FakeOEmbed()


@pytest.fixture
def client(store, oembed):
    app = create_app(store=store, oembed=oembed)
    # https so the Secure session cookie is sent back
    with TestClient(app, base_url="https://testserver", follow_redirects=False) as c:
        yield c


@pytest.fixture
def admin_client(client):
    response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


def review_payload(**overrides) -> dict:
    payload = {
        "title": "Vitamin C Serum",
        "platform": "tiktok",
        "productImage": "/img/serum.jpg",
        "price": "฿299",
        "rating": "4.5",
        "tags": ["skincare", "budget"],
        "aliases": ["vit c"],
        "publishedAt": "2024-05-01T00:00:00Z",
        "reviewUrl": "https://www.tiktok.com/@reviewer/video/111",
        "affiliateUrl": "https://shopee.co.th/serum",
        "pros": ["cheap"],
        "cons": ["sticky"],
    }
    payload.update(overrides)
    return payload
