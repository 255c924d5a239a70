# qrgate/services/resolver.py
# Turns a dynamic code id into its current destination

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable

from qrgate.middleware.error_handler import (
    AppError,
    EmptyContentError,
    ExpiredError,
    NotFoundError,
)
from qrgate.observability.metrics import RESOLUTIONS
from qrgate.repositories.record_store import RecordStore
from qrgate.services.qr_service import utcnow

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def looks_like_url(value: str) -> bool:
    """Absolute http(s) URL check; the scheme is case-insensitive."""
    if not value:
        return False
    return bool(_URL_RE.match(value.strip()))


class ResolveKind(str, Enum):
    REDIRECT = "redirect"
    TEXT = "text"


@dataclass(frozen=True)
class Resolution:
    kind: ResolveKind
    value: str  # redirect target or literal text


class QRResolver:
    """
    Resolution order: lookup, expiry, empty content, then URL vs text.

    Failures raise NotFoundError (404), ExpiredError (410) or
    EmptyContentError (400). Expiry is only read here; the record is
    never altered or removed.
    """

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = utcnow):
        self._store = store
        self._clock = clock

    async def resolve(self, record_id: str) -> Resolution:
        try:
            resolution = await self._resolve(record_id)
        except AppError as e:
            RESOLUTIONS.labels(e.error_code.lower()).inc()
            logger.info("resolve failed", extra={"id": record_id, "outcome": e.error_code})
            raise
        RESOLUTIONS.labels(resolution.kind.value).inc()
        logger.info("resolved", extra={"id": record_id, "outcome": resolution.kind.value})
        return resolution

    async def _resolve(self, record_id: str) -> Resolution:
        records = await self._store.load_all()
        record = next((r for r in records if r.id == record_id), None)
        if record is None:
            raise NotFoundError(record_id)
        if record.is_expired(self._clock()):
            raise ExpiredError(record_id)
        if not record.content:
            raise EmptyContentError(record_id)
        if looks_like_url(record.content):
            return Resolution(ResolveKind.REDIRECT, record.content.strip())
        return Resolution(ResolveKind.TEXT, record.content)
