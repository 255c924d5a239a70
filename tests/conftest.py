# tests/conftest.py
# Shared fixtures: isolated settings, a JSON store under tmp_path, a controllable clock

from datetime import datetime, timedelta, timezone

import pytest

from qrgate.config import Settings
from qrgate.repositories.json_record_store import JsonRecordStore
from qrgate.services.qr_service import QRService
from qrgate.services.resolver import QRResolver


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        STORAGE_BACKEND="json",
        DATA_FILE=str(tmp_path / "data" / "qr-codes.json"),
        LOGS_PATH=str(tmp_path / "logs"),
        PUBLIC_BASE_URL="https://qr.example.test",
    )


@pytest.fixture
def store(settings):
    return JsonRecordStore(settings.DATA_FILE)


@pytest.fixture
def service(store, clock):
    return QRService(store, clock=clock)


@pytest.fixture
def resolver(store, clock):
    return QRResolver(store, clock=clock)
