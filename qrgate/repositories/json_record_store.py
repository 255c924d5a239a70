# qrgate/repositories/json_record_store.py
# Flat JSON file backend for the QR record collection

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from typing import Any

from pydantic import ValidationError

from qrgate.middleware.error_handler import StorageError
from qrgate.repositories.record_store import RecordStore
from qrgate.schemas.qr import QRRecord

logger = logging.getLogger(__name__)


class JsonRecordStore(RecordStore):
    """
    Keeps every record in a single JSON array on disk.

    A missing file is created as ``[]``. A file that is not a JSON array is
    logged, reset to ``[]`` and read as empty. Entries that do not parse as a
    record are left out of ``load_all`` but written back unchanged by
    ``save_all``. Writes go through a temp file and ``os.replace`` so readers
    never see a half-written collection.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        # raw entries from the last read that are not valid records
        self._unreadable: list[Any] = []

    # --- Public API ---

    async def load_all(self) -> list[QRRecord]:
        return await asyncio.to_thread(self._load_sync)

    async def save_all(self, records: list[QRRecord]) -> None:
        payload = [r.model_dump(mode="json", by_alias=True) for r in records]
        ids = {r.id for r in records}
        kept = [
            item for item in self._unreadable
            if not (isinstance(item, dict) and item.get("id") in ids)
        ]
        await asyncio.to_thread(self._write_sync, payload + kept)
        logger.info("Write success", extra={"file": self.path, "count": len(payload), "kept_raw": len(kept)})

    # --- Helpers (private) ---

    def _ensure_file(self) -> None:
        directory = os.path.dirname(self.path)
        try:
            if not os.path.isdir(directory):
                os.makedirs(directory, exist_ok=True)
                logger.info("Created data directory", extra={"file": self.path})
            if not os.path.exists(self.path):
                self._write_sync([])
                logger.info("Initialized data file with empty array", extra={"file": self.path})
        except OSError as e:
            logger.error("Data file init failed", extra={"file": self.path, "error": str(e)})
            raise StorageError("Could not initialize data file", details={"file": self.path}) from e

    def _load_sync(self) -> list[QRRecord]:
        self._ensure_file()
        try:
            with open(self.path, "rb") as f:
                raw = f.read()
        except OSError as e:
            logger.error("Read failed", extra={"file": self.path, "error": str(e)})
            raise StorageError("Could not read data file", details={"file": self.path}) from e

        try:
            parsed: Any = json.loads(raw.decode("utf-8") or "[]")
            if not isinstance(parsed, list):
                raise ValueError(f"expected a JSON array, got {type(parsed).__name__}")
        except ValueError as e:
            logger.error("JSON parse failed, resetting file", extra={"file": self.path, "error": str(e)})
            self._write_sync([])
            self._unreadable = []
            return []

        records: list[QRRecord] = []
        unreadable: list[Any] = []
        for index, item in enumerate(parsed):
            try:
                records.append(QRRecord.model_validate(item))
            except ValidationError as e:
                unreadable.append(item)
                logger.warning(
                    "Unreadable record kept on disk",
                    extra={"file": self.path, "index": index, "error": str(e)},
                )
        self._unreadable = unreadable
        logger.info("Read success", extra={"file": self.path, "count": len(records)})
        return records

    def _write_sync(self, payload: list[Any]) -> None:
        directory = os.path.dirname(self.path)
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".qr-codes-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            logger.error("Write failed", extra={"file": self.path, "count": len(payload), "error": str(e)})
            raise StorageError("Could not write data file", details={"file": self.path}) from e
