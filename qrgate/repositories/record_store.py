# qrgate/repositories/record_store.py
# Storage contract for the QR record collection

from __future__ import annotations

from abc import ABC, abstractmethod

from qrgate.schemas.qr import QRRecord


class RecordStore(ABC):
    """
    Whole-collection persistence for QR records.

    The collection is loaded and saved in one piece; order is preserved
    (most recent first by convention). Implementations raise StorageError
    when the backing medium cannot be read or written.
    """

    @abstractmethod
    async def load_all(self) -> list[QRRecord]:
        ...

    @abstractmethod
    async def save_all(self, records: list[QRRecord]) -> None:
        ...

    async def ping(self) -> None:
        """Cheap readiness probe; raises StorageError when unavailable."""
        await self.load_all()
