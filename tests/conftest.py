import pytest
from fastapi.testclient import TestClient

from cycle_login.core.config import Settings
from cycle_login.core.security import AdminClaim, create_dev_token
from cycle_login.main import create_app
from cycle_login.stores import JsonFileRecordStore, MemoryRecordStore, SqlRecordStore
from tests.factories import DEV_PIN


@pytest.fixture
def settings(tmp_path):
    return Settings(
        store_backend="memory",
        data_dir=tmp_path / "data",
        dev_pin=DEV_PIN,
        secret_key="test-secret",
        _env_file=None,
    )


@pytest.fixture
def claim():
    return AdminClaim(subject="test")


@pytest.fixture(params=["memory", "file", "sql"])
async def store(request, tmp_path):
    if request.param == "memory":
        s = MemoryRecordStore()
    elif request.param == "file":
        s = JsonFileRecordStore(tmp_path / "data")
    else:
        s = SqlRecordStore(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
        await s.init_schema()
    yield s
    await s.close()


@pytest.fixture
def memory_store():
    return MemoryRecordStore()


@pytest.fixture
def client(settings, memory_store):
    with TestClient(create_app(settings, store=memory_store)) as c:
        yield c


@pytest.fixture
def admin_headers(settings):
    return {"Authorization": f"Bearer {create_dev_token(settings)}"}
