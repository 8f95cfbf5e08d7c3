import pytest
from fastapi.testclient import TestClient

from routine_admin.main import app
from routine_admin.api.routine import get_routine_storage
from routine_admin.services.storage import MemStorage


def routine_payload(**overrides) -> dict:
    payload = {
        "name": "Nightly Backup",
        "description": "Full database backup",
        "frequencyType": "hour",
        "frequencyValue": 1,
        "startTime": "02:00",
        "duration": 2,
        "durationUnit": "hour",
        "isActive": True,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def payload_factory():
    return routine_payload


@pytest.fixture
def storage() -> MemStorage:
    return MemStorage()


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_routine_storage] = lambda: storage
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
