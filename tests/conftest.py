import pytest
from fastapi.testclient import TestClient

from emr_api.app.db import get_person_store
from emr_api.app.main import app
from emr_api.app.stores.memory import InMemoryPersonStore
from person_data import seed_store


@pytest.fixture
def store():
    store = InMemoryPersonStore()
    seed_store(store)
    return store


@pytest.fixture
def client(store):
    app.dependency_overrides[get_person_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
