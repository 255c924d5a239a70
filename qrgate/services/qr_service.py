# qrgate/services/qr_service.py

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from qrgate.constants import (
    DEFAULT_COLOR_DARK,
    DEFAULT_COLOR_LIGHT,
    DEFAULT_LOGO_RADIUS,
    DEFAULT_LOGO_SIZE_PERCENT,
    DEFAULT_NAME,
    DEFAULT_SIZE,
)
from qrgate.middleware.error_handler import NotFoundError, NotPersistableError, ValidationFailedError
from qrgate.observability.logger import log_info
from qrgate.observability.metrics import RECORD_OPERATIONS
from qrgate.repositories.record_store import RecordStore
from qrgate.schemas.qr import QRCreate, QRKind, QRRecord, QRUpdate


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _require_content(content: Optional[str]) -> str:
    if not content or not content.strip():
        raise ValidationFailedError("content is required", details={"field": "content"})
    return content


class QRService:
    """
    Lifecycle of dynamic QR records: create, get, list, update, delete.

    Every mutation is a load-modify-save cycle over the whole collection.
    The lock serializes those cycles inside this process only; two processes
    sharing one store can still lose updates (last write wins).
    """

    def __init__(
        self,
        store: RecordStore,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_id,
    ):
        self._store = store
        self._clock = clock
        self._new_id = id_factory
        self._lock = asyncio.Lock()

    async def create(self, draft: QRCreate) -> QRRecord:
        """Persist a new dynamic record; static drafts are rejected."""
        if draft.kind != QRKind.DYNAMIC:
            raise NotPersistableError(kind=draft.kind)
        content = _require_content(draft.content)

        async with self._lock:
            records = await self._store.load_all()
            now = self._clock()
            record = QRRecord(
                id=self._fresh_id({r.id for r in records}),
                name=(draft.name or "").strip() or DEFAULT_NAME,
                kind=QRKind.DYNAMIC,
                content=content,
                expires_at=draft.expires_at,
                color_dark=draft.color_dark or DEFAULT_COLOR_DARK,
                color_light=draft.color_light or DEFAULT_COLOR_LIGHT,
                size=draft.size or DEFAULT_SIZE,
                logo_data_url=draft.logo_data_url or "",
                logo_size_percent=(
                    draft.logo_size_percent if draft.logo_size_percent is not None else DEFAULT_LOGO_SIZE_PERCENT
                ),
                logo_radius=draft.logo_radius if draft.logo_radius is not None else DEFAULT_LOGO_RADIUS,
                created_at=now,
                updated_at=now,
            )
            records.insert(0, record)
            await self._store.save_all(records)

        RECORD_OPERATIONS.labels("create").inc()
        log_info(f"QRService: created id={record.id}")
        return record

    async def get(self, record_id: str) -> QRRecord:
        records = await self._store.load_all()
        return records[self._index_of(records, record_id)]

    async def list_all(self) -> list[QRRecord]:
        """All dynamic records, most recently created first."""
        records = await self._store.load_all()
        return [r for r in records if r.kind == QRKind.DYNAMIC]

    async def update(self, record_id: str, patch: QRUpdate) -> QRRecord:
        """
        Merge the fields present in ``patch`` over the stored record.

        An explicit null clears expiresAt; null for any other field keeps
        the stored value. id, kind and createdAt never change.
        """
        changes = {}
        for field in patch.model_fields_set:
            value = getattr(patch, field)
            if value is None and field != "expires_at":
                continue
            changes[field] = value

        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationFailedError("name must not be empty", details={"field": "name"})
        if "content" in changes:
            _require_content(changes["content"])

        async with self._lock:
            records = await self._store.load_all()
            idx = self._index_of(records, record_id)
            current = records[idx]
            now = self._clock()
            # updatedAt must move forward even when the clock does not
            if now <= current.updated_at:
                now = current.updated_at + timedelta(microseconds=1)
            updated = current.model_copy(update={**changes, "updated_at": now})
            _require_content(updated.content)
            records[idx] = updated
            await self._store.save_all(records)

        RECORD_OPERATIONS.labels("update").inc()
        log_info(f"QRService: updated id={record_id} fields={sorted(changes)}")
        return updated

    async def delete(self, record_id: str) -> None:
        async with self._lock:
            records = await self._store.load_all()
            idx = self._index_of(records, record_id)
            del records[idx]
            await self._store.save_all(records)

        RECORD_OPERATIONS.labels("delete").inc()
        log_info(f"QRService: deleted id={record_id}")

    # --- Helpers (private) ---

    @staticmethod
    def _index_of(records: list[QRRecord], record_id: str) -> int:
        for idx, record in enumerate(records):
            if record.id == record_id and record.kind == QRKind.DYNAMIC:
                return idx
        raise NotFoundError(record_id)

    def _fresh_id(self, taken: set[str]) -> str:
        record_id = self._new_id()
        while record_id in taken:
            record_id = self._new_id()
        return record_id
