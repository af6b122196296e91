import pytest

from catalog.config import settings
from catalog.errors import GatewayReadError

NEW_ITEM = {
    "title": "Faca Santoku",
    "description": "Lâmina de aço inox",
    "price_cents": "32000",
    "position": "5",
    "published": "true",
}


def image(name="photo.jpg"):
    return ("files", (name, b"\xff\xd8fake-jpeg", "image/jpeg"))


async def test_missing_password_is_rejected(client):
    response = await client.get("/api/cms/items")
    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "Missing password"


async def test_wrong_password_is_rejected(client):
    response = await client.get("/api/cms/items", headers={"X-CMS-Password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "Invalid password"


async def test_unconfigured_password_hash(client, admin_headers, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", "")
    response = await client.get("/api/cms/items", headers=admin_headers)
    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "Authentication not configured"


async def test_snapshot_includes_drafts(client, admin_headers):
    response = await client.get("/api/cms/items", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert [item["id"] for item in body["items"]] == ["draft", "bowie", "chef", "legacy"]
    assert body["settings"]["whatsapp_number"] == "+55 41 99999-9999"


async def test_create_item_uploads_and_returns_snapshot(client, admin_headers, storage):
    response = await client.post(
        "/api/cms/items",
        data=NEW_ITEM,
        files=[image("a.jpg"), image("b.jpg")],
        headers=admin_headers,
    )

    assert response.status_code == 201
    created = next(item for item in response.json()["items"] if item["title"] == "Faca Santoku")
    assert created["price_cents"] == 32000
    assert created["position"] == 5
    assert created["published"] is True
    assert len(created["image_paths"]) == 2
    assert created["image_path"] == created["image_paths"][0]
    assert len(storage.uploads) == 2


async def test_create_item_without_images(client, admin_headers, storage):
    response = await client.post("/api/cms/items", data=NEW_ITEM, headers=admin_headers)

    assert response.status_code == 201
    assert storage.calls == 0


@pytest.mark.parametrize(
    "published, expected",
    [
        (None, False),
        ("false", False),
        (["false", "true"], True),
        (["false"], False),
        ("on", True),
    ],
)
async def test_create_reads_last_published_value(client, admin_headers, published, expected):
    data = {key: value for key, value in NEW_ITEM.items() if key != "published"}
    if published is not None:
        data["published"] = published

    response = await client.post("/api/cms/items", data=data, headers=admin_headers)

    assert response.status_code == 201
    created = next(item for item in response.json()["items"] if item["title"] == "Faca Santoku")
    assert created["published"] is expected


@pytest.mark.parametrize("missing", ["title", "description", "price_cents"])
async def test_create_requires_fields(client, admin_headers, storage, gateway, missing):
    data = {k: v for k, v in NEW_ITEM.items() if k != missing}

    response = await client.post("/api/cms/items", data=data, files=[image()], headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {
        "error": "Validation error",
        "message": "Preencha todos os campos obrigatórios",
    }
    assert storage.calls == 0
    assert gateway.writes == 0


async def test_create_rejects_eleven_files(client, admin_headers, storage):
    files = [image(f"{i}.jpg") for i in range(11)]

    response = await client.post("/api/cms/items", data=NEW_ITEM, files=files, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Máximo de 10 imagens por item"
    assert storage.calls == 0


async def test_create_rejects_non_image(client, admin_headers, storage):
    files = [image(), ("files", ("notes.pdf", b"%PDF-1.4", "application/pdf"))]

    response = await client.post("/api/cms/items", data=NEW_ITEM, files=files, headers=admin_headers)

    assert response.status_code == 400
    assert storage.calls == 0


async def test_failed_upload_saves_nothing(client, admin_headers, storage, gateway):
    storage.fail_on = {2}
    before = dict(gateway.items)

    response = await client.post(
        "/api/cms/items",
        data=NEW_ITEM,
        files=[image("a.jpg"), image("b.jpg"), image("c.jpg")],
        headers=admin_headers,
    )

    assert response.status_code == 502
    assert response.json()["error"] == "Image upload failed"
    assert gateway.items == before
    assert gateway.writes == 0


async def test_edit_appends_images_and_keeps_unsent_fields(client, admin_headers, gateway):
    response = await client.put(
        "/api/cms/items/chef",
        data={"title": "Faca Chef 10"},
        files=[image("new.jpg")],
        headers=admin_headers,
    )

    assert response.status_code == 200
    chef = gateway.items["chef"]
    assert chef.title == "Faca Chef 10"
    assert chef.description == "Descrição da faca chef"
    assert chef.image_paths[:3] == ["items/chef-1.jpg", "items/chef-2.jpg", "items/chef-3.jpg"]
    assert chef.image_paths[3].endswith("-new.jpg")


async def test_edit_over_limit_counts_existing_images(client, admin_headers, gateway, storage):
    files = [image(f"{i}.jpg") for i in range(8)]

    response = await client.put("/api/cms/items/chef", data={}, files=files, headers=admin_headers)

    assert response.status_code == 400
    assert storage.calls == 0
    assert len(gateway.items["chef"].image_paths) == 3


async def test_edit_upgrades_legacy_item(client, admin_headers, gateway):
    response = await client.put("/api/cms/items/legacy", data={"price_cents": "100"}, headers=admin_headers)

    assert response.status_code == 200
    legacy = gateway.items["legacy"]
    assert legacy.image_paths == ["items/legacy.jpg"]
    assert legacy.price_cents == 100


async def test_edit_unchecked_box_unpublishes(client, admin_headers, gateway):
    response = await client.put(
        "/api/cms/items/chef",
        data={"title": "Faca Chef", "published": ["false"]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert gateway.items["chef"].published is False


async def test_edit_without_published_keeps_flag(client, admin_headers, gateway):
    response = await client.put("/api/cms/items/draft", data={"title": "Rascunho novo"}, headers=admin_headers)

    assert response.status_code == 200
    assert gateway.items["draft"].published is False
    assert gateway.items["draft"].title == "Rascunho novo"


async def test_edit_missing_item(client, admin_headers):
    response = await client.put("/api/cms/items/ghost", data=NEW_ITEM, headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Item ghost does not exist"


async def test_toggle_published(client, admin_headers, gateway):
    response = await client.patch("/api/cms/items/draft/published", headers=admin_headers)

    assert response.status_code == 200
    draft = next(item for item in response.json()["items"] if item["id"] == "draft")
    assert draft["published"] is True
    assert gateway.items["draft"].published is True


async def test_delete_item_leaves_storage_alone(client, admin_headers, gateway, storage):
    response = await client.delete("/api/cms/items/bowie", headers=admin_headers)

    assert response.status_code == 200
    assert "bowie" not in [item["id"] for item in response.json()["items"]]
    assert "bowie" not in gateway.items
    assert storage.calls == 0


async def test_delete_missing_item(client, admin_headers):
    response = await client.delete("/api/cms/items/ghost", headers=admin_headers)
    assert response.status_code == 404


async def test_write_failure_is_reported(client, admin_headers, gateway):
    gateway.fail_writes = True

    response = await client.patch("/api/cms/items/chef/published", headers=admin_headers)

    assert response.status_code == 502
    assert response.json()["error"] == "Failed to save changes"


async def test_update_settings(client, admin_headers, gateway):
    response = await client.put(
        "/api/cms/settings",
        json={"whatsapp_number": " 5541988887777 ", "whatsapp_message": "Oi, tudo bem?"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["settings"]["whatsapp_number"] == "5541988887777"
    assert gateway.site_settings.whatsapp_message == "Oi, tudo bem?"


async def test_update_settings_requires_number(client, admin_headers):
    response = await client.put("/api/cms/settings", json={"whatsapp_message": "Oi"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"


async def test_snapshot_after_mutation_survives_read_failure(client, admin_headers, gateway):
    async def failing_snapshot():
        raise GatewayReadError("down")

    gateway.snapshot = failing_snapshot

    response = await client.patch("/api/cms/items/chef/published", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"items": [], "settings": None}
