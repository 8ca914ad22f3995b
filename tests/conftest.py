import pytest

from restaurant_ops.config import reset_settings
from restaurant_ops.storage.database import DatabaseManager


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep a developer's DEFAULT_RESTAURANT_ID out of tests."""
    monkeypatch.delenv("DEFAULT_RESTAURANT_ID", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def tmp_data_dir(tmp_path):
    """Provide a temporary data directory for tests that touch the filesystem."""
    return tmp_path / "data"


@pytest.fixture
async def db():
    """In-memory SQLite database with schema applied."""
    manager = DatabaseManager(":memory:")
    await manager.initialize()
    yield manager
    await manager.close()
