# tests/integration/conftest.py
# Pytest fixtures to start PostgreSQL via TestContainers.
# - Provides the connection URL and a SqlRecordStore bound to a clean table per test.
# - Skips the module when Docker is not reachable.

from typing import Iterator

import pytest
import pytest_asyncio
from sqlalchemy import delete

from qrgate.db.base import create_engine
from qrgate.models.qr_records_table import qr_records
from qrgate.repositories.sql_record_store import SqlRecordStore


@pytest.fixture(scope="session")
def postgres_url() -> Iterator[str]:
    from testcontainers.postgres import PostgresContainer

    try:
        container = PostgresContainer("postgres:16-alpine")
        container.start()
    except Exception as e:  # docker daemon missing or unreachable
        pytest.skip(f"PostgreSQL container unavailable: {e}")
    try:
        yield container.get_connection_url()
    finally:
        container.stop()


@pytest_asyncio.fixture
async def sql_store(postgres_url: str):
    store = SqlRecordStore(create_engine(postgres_url))
    await store.init_schema()
    async with store._engine.begin() as conn:
        await conn.execute(delete(qr_records))
    yield store
    await store.dispose()
