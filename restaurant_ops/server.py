import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastmcp import FastMCP

from restaurant_ops.booking.slot_lock import SlotLockRegistry
from restaurant_ops.storage.database import DatabaseManager

logger = logging.getLogger(__name__)

_db: DatabaseManager | None = None
_slot_locks: SlotLockRegistry | None = None


def get_db() -> DatabaseManager:
    """Get the current DatabaseManager instance. Raises if not initialized."""
    if _db is None:
        raise RuntimeError("Database not initialized. Server lifespan has not started.")
    return _db


def get_slot_locks() -> SlotLockRegistry:
    """Return the process-wide slot lock registry, creating it on first use.

    Every reservation write in the process must go through this one
    registry; two registries would not exclude each other.
    """
    global _slot_locks  # noqa: PLW0603
    if _slot_locks is None:
        from restaurant_ops.config import get_settings

        _slot_locks = SlotLockRegistry(timeout=get_settings().slot_lock_timeout_seconds)
    return _slot_locks


def resolve_restaurant_id(restaurant_id: str | None) -> str | None:
    """Fall back to the configured default restaurant when none is given."""
    if restaurant_id:
        return restaurant_id
    from restaurant_ops.config import get_settings

    return get_settings().default_restaurant_id


def _reset_db() -> None:
    """Clear the module-level DB reference. Used in tests."""
    global _db  # noqa: PLW0603
    _db = None


def _reset_slot_locks() -> None:
    """Drop the slot lock registry. Used in tests."""
    global _slot_locks  # noqa: PLW0603
    _slot_locks = None


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """Manage async resources (database, slot locks) for the server lifecycle."""
    global _db  # noqa: PLW0603
    from restaurant_ops.config import get_settings

    settings = get_settings()
    _db = DatabaseManager(settings.db_path)
    await _db.initialize()
    logger.info("Database initialized at %s", settings.db_path)

    try:
        yield {"db": _db, "slot_locks": get_slot_locks()}
    finally:
        await _db.close()
        _db = None
        _reset_slot_locks()
        logger.info("Database closed")


mcp = FastMCP("restaurant-ops", lifespan=app_lifespan)


def setup_logging(log_level: str, data_dir: Path) -> None:
    """Configure logging with file rotation and console output.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        data_dir: Base data directory; logs go to data_dir/logs/server.log.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Exact type check so FileHandler subclasses don't count as console
    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    log_dir = data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    if not any(isinstance(h, RotatingFileHandler) for h in root_logger.handlers):
        file_handler = RotatingFileHandler(
            log_dir / "server.log",
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def initialize() -> FastMCP:
    """Set up directories, logging, and register tools. Returns the MCP server."""
    from restaurant_ops.config import get_settings

    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(settings.log_level, settings.data_dir)

    from restaurant_ops.tools.chat import register_chat_tools
    from restaurant_ops.tools.menu import register_menu_tools
    from restaurant_ops.tools.reservations import register_reservation_tools
    from restaurant_ops.tools.restaurants import register_restaurant_tools

    register_restaurant_tools(mcp)
    register_reservation_tools(mcp)
    register_menu_tools(mcp)
    register_chat_tools(mcp)

    logger.info("Restaurant operations MCP server initialized")
    return mcp
