# qrgate/repositories/sql_record_store.py
# SQLAlchemy backend for the QR record collection

from __future__ import annotations

import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from qrgate.db.base import create_session_factory, get_session, metadata
from qrgate.middleware.error_handler import StorageError
from qrgate.models.qr_records_table import qr_records
from qrgate.repositories.record_store import RecordStore
from qrgate.schemas.qr import QRRecord

logger = logging.getLogger(__name__)

_COLUMNS = [c.name for c in qr_records.columns if c.name != "position"]


def _to_row(position: int, record: QRRecord) -> dict:
    row = record.model_dump(include=set(_COLUMNS))
    row["kind"] = record.kind.value
    row["position"] = position
    return row


class SqlRecordStore(RecordStore):
    """Stores the collection in the qr_records table; save_all rewrites it in one transaction."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._sessions = create_session_factory(engine)

    async def init_schema(self) -> None:
        """Create the table if it does not exist."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except SQLAlchemyError as e:
            logger.error("Schema init failed", extra={"error": str(e)})
            raise StorageError("Could not initialize database schema") from e

    async def load_all(self) -> list[QRRecord]:
        try:
            async with get_session(self._sessions) as session:
                result = await session.execute(
                    select(*[qr_records.c[name] for name in _COLUMNS]).order_by(qr_records.c.position)
                )
                rows = result.mappings().all()
        except SQLAlchemyError as e:
            logger.error("Read failed", extra={"error": str(e)})
            raise StorageError("Could not read records from database") from e

        records = [QRRecord.model_validate(dict(row)) for row in rows]
        logger.info("Read success", extra={"count": len(records)})
        return records

    async def save_all(self, records: list[QRRecord]) -> None:
        values = [_to_row(position, record) for position, record in enumerate(records)]
        try:
            async with get_session(self._sessions) as session:
                async with session.begin():
                    await session.execute(delete(qr_records))
                    if values:
                        await session.execute(insert(qr_records), values)
        except SQLAlchemyError as e:
            logger.error("Write failed", extra={"count": len(values), "error": str(e)})
            raise StorageError("Could not write records to database") from e
        logger.info("Write success", extra={"count": len(values)})

    async def dispose(self) -> None:
        await self._engine.dispose()
