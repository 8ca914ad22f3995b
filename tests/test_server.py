import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
from fastmcp import Client

from restaurant_ops.booking.slot_lock import SlotLockRegistry
from restaurant_ops.config import reset_settings
from restaurant_ops.server import (
    _reset_db,
    _reset_slot_locks,
    app_lifespan,
    get_db,
    get_slot_locks,
    initialize,
    mcp,
    resolve_restaurant_id,
    setup_logging,
)


class TestSetupLogging:
    """Test setup_logging configuration."""

    def setup_method(self):
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()

    def teardown_method(self):
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()

    def test_sets_root_logger_level(self, tmp_path):
        setup_logging("DEBUG", tmp_path)
        assert logging.getLogger().level == logging.DEBUG

    def test_creates_console_handler(self, tmp_path):
        setup_logging("INFO", tmp_path)
        root = logging.getLogger()
        stream_handlers = [h for h in root.handlers if type(h) is logging.StreamHandler]
        assert len(stream_handlers) == 1

    def test_creates_file_handler(self, tmp_path):
        setup_logging("INFO", tmp_path)
        root = logging.getLogger()
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1

    def test_creates_log_directory(self, tmp_path):
        log_dir = tmp_path / "logs"
        assert not log_dir.exists()
        setup_logging("INFO", tmp_path)
        assert log_dir.exists()

    def test_log_file_path(self, tmp_path):
        setup_logging("INFO", tmp_path)
        root = logging.getLogger()
        file_handler = next(
            h for h in root.handlers if isinstance(h, RotatingFileHandler)
        )
        assert Path(file_handler.baseFilename) == tmp_path / "logs" / "server.log"

    def test_no_duplicate_handlers_on_second_call(self, tmp_path):
        setup_logging("INFO", tmp_path)
        setup_logging("INFO", tmp_path)
        root = logging.getLogger()
        stream_handlers = [h for h in root.handlers if type(h) is logging.StreamHandler]
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(stream_handlers) == 1
        assert len(file_handlers) == 1

    def test_invalid_log_level_falls_back_to_info(self, tmp_path):
        setup_logging("INVALID_LEVEL", tmp_path)
        assert logging.getLogger().level == logging.INFO


def _clear_root_handlers() -> None:
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()


class TestInitialize:
    """Test the initialize function."""

    def setup_method(self):
        reset_settings()
        _clear_root_handlers()

    def teardown_method(self):
        reset_settings()
        _clear_root_handlers()
        _reset_db()
        _reset_slot_locks()

    def test_returns_mcp_instance(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        result = initialize()
        assert result is mcp

    def test_creates_data_dir(self, tmp_path, monkeypatch):
        data_dir = tmp_path / "new_data"
        monkeypatch.setenv("DATA_DIR", str(data_dir))
        initialize()
        assert data_dir.exists()

    def test_creates_logs_subdir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        initialize()
        assert (tmp_path / "logs").exists()

    def test_configures_logging(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        initialize()
        root = logging.getLogger()
        assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)

    async def test_registers_tools(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        initialize()
        async with Client(mcp) as client:
            names = {tool.name for tool in await client.list_tools()}
        assert {
            "make_reservation",
            "check_availability",
            "create_restaurant",
            "show_menu",
            "chat_analytics",
        } <= names


class TestAppLifespan:
    """Test the async database lifecycle."""

    def setup_method(self):
        reset_settings()
        _reset_db()
        _reset_slot_locks()

    def teardown_method(self):
        reset_settings()
        _reset_db()
        _reset_slot_locks()

    async def test_lifespan_initializes_and_closes_db(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        import restaurant_ops.server as server_module

        async with app_lifespan(mcp) as result:
            assert result["db"] is not None
            assert server_module._db is not None

        assert server_module._db is None

    async def test_lifespan_creates_db_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))

        async with app_lifespan(mcp):
            assert (tmp_path / "restaurant_ops.db").exists()

    async def test_lifespan_shares_slot_locks(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))

        async with app_lifespan(mcp) as result:
            assert result["slot_locks"] is get_slot_locks()

    async def test_lifespan_drops_slot_locks_on_exit(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        import restaurant_ops.server as server_module

        async with app_lifespan(mcp):
            pass

        assert server_module._slot_locks is None


class TestGetDb:
    """Test the get_db accessor."""

    def setup_method(self):
        _reset_db()

    def teardown_method(self):
        _reset_db()
        reset_settings()

    def test_get_db_raises_when_not_initialized(self):
        with pytest.raises(RuntimeError, match="Database not initialized"):
            get_db()

    async def test_get_db_returns_manager_during_lifespan(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))

        async with app_lifespan(mcp):
            db = get_db()
            assert db.connection is not None


class TestGetSlotLocks:
    """Test the process-wide slot lock registry."""

    def setup_method(self):
        _reset_slot_locks()

    def teardown_method(self):
        _reset_slot_locks()

    def test_returns_single_registry(self):
        first = get_slot_locks()
        assert isinstance(first, SlotLockRegistry)
        assert get_slot_locks() is first

    def test_uses_configured_timeout(self, monkeypatch):
        monkeypatch.setenv("SLOT_LOCK_TIMEOUT_SECONDS", "0.25")
        assert get_slot_locks().timeout == 0.25

    def test_reset_builds_new_registry(self):
        first = get_slot_locks()
        _reset_slot_locks()
        assert get_slot_locks() is not first


class TestResolveRestaurantId:
    def test_explicit_id_wins(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_RESTAURANT_ID", "rest_default")
        assert resolve_restaurant_id("rest_given") == "rest_given"

    def test_falls_back_to_default(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_RESTAURANT_ID", "rest_default")
        assert resolve_restaurant_id(None) == "rest_default"

    def test_none_without_default(self):
        assert resolve_restaurant_id(None) is None


class TestResetDb:
    """Test the _reset_db helper."""

    def test_reset_db_clears_reference(self):
        import restaurant_ops.server as server_module

        server_module._db = "sentinel"  # type: ignore[assignment]
        _reset_db()
        assert server_module._db is None
