import itertools

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.database import init_db, make_session_factory
from app.dependencies import get_store
from app.main import app
from app.services.record_store import RecordStore

DATABASES = ["customers", "inventory", "orders", "employees"]


@pytest.fixture
def tmp_data(tmp_path):
    data_path = tmp_path / "DocumentForms"
    data_path.mkdir()
    return data_path


@pytest.fixture
def store(tmp_data):
    db_path = tmp_data / "db.sqlite"
    init_db(db_path)
    return RecordStore(
        make_session_factory(db_path),
        databases=DATABASES,
        public_base_url="http://testserver",
    )


@pytest.fixture
def ticking_clock():
    """Deterministic clock: every call is one second after the previous one."""
    counter = itertools.count()

    def clock():
        return f"2024-03-01T10:{next(counter):02d}:00.000000Z"

    return clock


@pytest.fixture
def client(tmp_data, store):
    original_data_path = settings.data_path
    settings.data_path = tmp_data
    app.dependency_overrides[get_store] = lambda: store
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()
    settings.data_path = original_data_path
