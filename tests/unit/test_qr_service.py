# tests/unit/test_qr_service.py
# Record lifecycle: create / get / list / update / delete

import asyncio
import json
import os
from datetime import timedelta

import pytest

from qrgate.constants import (
    DEFAULT_COLOR_DARK,
    DEFAULT_COLOR_LIGHT,
    DEFAULT_LOGO_RADIUS,
    DEFAULT_LOGO_SIZE_PERCENT,
    DEFAULT_NAME,
    DEFAULT_SIZE,
)
from qrgate.middleware.error_handler import NotFoundError, NotPersistableError, ValidationFailedError
from qrgate.schemas.qr import QRCreate, QRKind, QRUpdate
from qrgate.services.qr_service import QRService


def _draft(**overrides) -> QRCreate:
    data = {"kind": "dynamic", "name": "x", "content": "https://example.com"}
    data.update(overrides)
    return QRCreate(**data)


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self, service, store, clock):
        record = await service.create(_draft())

        assert record.id
        assert record.kind == QRKind.DYNAMIC
        assert record.created_at == clock.now
        assert record.updated_at == clock.now
        assert [r.id for r in await store.load_all()] == [record.id]

    @pytest.mark.asyncio
    async def test_create_applies_style_defaults(self, service):
        record = await service.create(_draft())

        assert record.color_dark == DEFAULT_COLOR_DARK
        assert record.color_light == DEFAULT_COLOR_LIGHT
        assert record.size == DEFAULT_SIZE
        assert record.logo_data_url == ""
        assert record.logo_size_percent == DEFAULT_LOGO_SIZE_PERCENT
        assert record.logo_radius == DEFAULT_LOGO_RADIUS

    @pytest.mark.asyncio
    async def test_create_keeps_explicit_zero_radius(self, service):
        record = await service.create(_draft(logoRadius=0, logoSizePercent=5))

        assert record.logo_radius == 0
        assert record.logo_size_percent == 5

    @pytest.mark.asyncio
    async def test_blank_name_defaults(self, service):
        record = await service.create(_draft(name="   "))
        assert record.name == DEFAULT_NAME

    @pytest.mark.asyncio
    async def test_name_is_trimmed(self, service):
        record = await service.create(_draft(name="  poster  "))
        assert record.name == "poster"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", ["static", None, "foo", "Dynamic"])
    async def test_non_dynamic_is_not_persistable(self, service, store, kind):
        with pytest.raises(NotPersistableError):
            await service.create(_draft(kind=kind))

        assert await store.load_all() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   "])
    async def test_empty_content_fails_validation(self, service, store, content):
        with pytest.raises(ValidationFailedError):
            await service.create(_draft(content=content))

        assert await store.load_all() == []

    @pytest.mark.asyncio
    async def test_ids_are_unique_even_if_factory_repeats(self, store, clock):
        ids = iter(["dup", "dup", "fresh"])
        service = QRService(store, clock=clock, id_factory=lambda: next(ids))

        first = await service.create(_draft())
        second = await service.create(_draft())

        assert first.id == "dup"
        assert second.id == "fresh"


class TestReadAndList:

    @pytest.mark.asyncio
    async def test_list_is_most_recent_first(self, service, clock):
        a = await service.create(_draft(name="A"))
        clock.advance(seconds=1)
        b = await service.create(_draft(name="B"))

        listed = await service.list_all()

        assert [r.id for r in listed] == [b.id, a.id]

    @pytest.mark.asyncio
    async def test_get_returns_record(self, service):
        created = await service.create(_draft())
        assert await service.get(created.id) == created

    @pytest.mark.asyncio
    async def test_get_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            await service.get("missing")


class TestUpdate:

    @pytest.mark.asyncio
    async def test_content_only_update_preserves_everything_else(self, service, clock):
        created = await service.create(_draft(colorDark="#112233", size=420, logoRadius=3))
        clock.advance(minutes=5)

        updated = await service.update(created.id, QRUpdate(content="hello world"))

        assert updated.content == "hello world"
        assert updated.id == created.id
        assert updated.created_at == created.created_at
        assert updated.color_dark == "#112233"
        assert updated.size == 420
        assert updated.logo_radius == 3
        assert updated.name == created.name
        assert updated.updated_at > created.updated_at

    @pytest.mark.asyncio
    async def test_updated_at_increases_when_clock_stands_still(self, service):
        created = await service.create(_draft())

        updated = await service.update(created.id, QRUpdate(name="renamed"))

        assert updated.updated_at == created.updated_at + timedelta(microseconds=1)

    @pytest.mark.asyncio
    async def test_update_is_persisted(self, service, store):
        created = await service.create(_draft())
        await service.update(created.id, QRUpdate(content="stored"))

        (loaded,) = await store.load_all()
        assert loaded.content == "stored"

    @pytest.mark.asyncio
    async def test_null_keeps_value_but_clears_expiry(self, service, clock):
        created = await service.create(_draft(expiresAt=(clock.now + timedelta(days=1)).isoformat()))
        assert created.expires_at is not None

        updated = await service.update(
            created.id, QRUpdate.model_validate({"content": None, "expiresAt": None})
        )

        assert updated.content == created.content
        assert updated.expires_at is None

    @pytest.mark.asyncio
    async def test_omitted_expiry_is_kept(self, service, clock):
        expires = clock.now + timedelta(days=1)
        created = await service.create(_draft(expiresAt=expires.isoformat()))

        updated = await service.update(created.id, QRUpdate(name="other"))

        assert updated.expires_at == expires

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, service, store):
        created = await service.create(_draft())

        with pytest.raises(ValidationFailedError):
            await service.update(created.id, QRUpdate(content=""))

        (loaded,) = await store.load_all()
        assert loaded.content == created.content

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, service):
        created = await service.create(_draft())

        with pytest.raises(ValidationFailedError):
            await service.update(created.id, QRUpdate(name="  "))

    @pytest.mark.asyncio
    async def test_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            await service.update("missing", QRUpdate(content="x"))

    @pytest.mark.asyncio
    async def test_concurrent_updates_in_one_process_do_not_lose_writes(self, service):
        a = await service.create(_draft(name="A"))
        b = await service.create(_draft(name="B"))

        await asyncio.gather(
            service.update(a.id, QRUpdate(content="a2")),
            service.update(b.id, QRUpdate(content="b2")),
        )

        contents = {r.id: r.content for r in await service.list_all()}
        assert contents == {a.id: "a2", b.id: "b2"}


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_removes_record(self, service):
        created = await service.create(_draft())

        await service.delete(created.id)

        assert await service.list_all() == []
        with pytest.raises(NotFoundError):
            await service.get(created.id)

    @pytest.mark.asyncio
    async def test_delete_twice_reports_not_found(self, service):
        created = await service.create(_draft())
        await service.delete(created.id)

        with pytest.raises(NotFoundError):
            await service.delete(created.id)


class TestExistingFileContents:

    @pytest.mark.asyncio
    async def test_unrelated_create_keeps_older_and_unreadable_entries(self, service, store):
        legacy = {
            "id": "legacy", "name": "old", "type": "dynamic", "content": "https://example.com",
            "expiresAt": None, "colorDark": "#0f172a", "colorLight": "#ffffff", "size": 300,
            "logoDataUrl": "", "logoSizePercent": 20, "logoRadius": 12,
            "createdAt": "2024-01-01T00:00:00.000Z", "updatedAt": "2024-01-01T00:00:00.000Z",
        }
        broken = {"id": "broken", "note": "missing required fields"}
        os.makedirs(os.path.dirname(store.path), exist_ok=True)
        with open(store.path, "w", encoding="utf-8") as f:
            json.dump([legacy, broken], f)

        created = await service.create(_draft())

        with open(store.path, encoding="utf-8") as f:
            on_disk = json.load(f)
        assert [item["id"] for item in on_disk] == [created.id, "legacy", "broken"]
        assert on_disk[1]["size"] == 300
        assert on_disk[2] == broken
