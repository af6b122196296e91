"""Shared fixtures: a seeded fake gateway and an API client wired to it."""

import pytest
from httpx import ASGITransport, AsyncClient

from catalog.config import settings
from catalog.dependencies import get_image_loader
from catalog.main import app
from catalog.services.gateway import get_gateway
from catalog.utils.auth import hash_admin_password
from fakes import FakeGateway, FakeImageLoader, FakeStorage, make_item

ADMIN_PASSWORD = "karvat-admin"
ADMIN_HASH = hash_admin_password(ADMIN_PASSWORD, rounds=4)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def gateway(storage):
    """Three published items (out of position order) and one draft."""
    return FakeGateway(
        storage,
        items=[
            make_item("chef", 2, paths=["items/chef-1.jpg", "items/chef-2.jpg", "items/chef-3.jpg"]),
            make_item("bowie", 1, paths=["items/bowie.jpg"], whatsapp_message="nesta faca bowie"),
            make_item("legacy", 3, image_path="items/legacy.jpg", image_paths=[]),
            make_item("draft", 0, published=False, paths=["items/draft.jpg"]),
        ],
    )


@pytest.fixture
def loader():
    return FakeImageLoader()


@pytest.fixture
def admin_headers():
    return {"X-CMS-Password": ADMIN_PASSWORD}


@pytest.fixture
async def client(gateway, loader, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", ADMIN_HASH)
    monkeypatch.setattr(settings, "GALLERY_FADE_DELAY_MS", 0)
    monkeypatch.setattr(settings, "GALLERY_SETTLE_DELAY_MS", 0)
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_image_loader] = lambda: loader

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.gallery_sessions.close_all()
