import asyncio
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any
from uuid import uuid4

import aiosqlite

from restaurant_ops.models.chat import ChatConversation
from restaurant_ops.models.enums import ACTIVE_STATUSES, AIModel, MessageIntent
from restaurant_ops.models.menu import MenuFilters, MenuItem, MenuItemCreate, MenuItemUpdate
from restaurant_ops.models.reservation import (
    Reservation,
    ReservationCreate,
    ReservationFilters,
    ReservationStatus,
)
from restaurant_ops.models.restaurant import (
    Restaurant,
    RestaurantCreate,
    RestaurantSettings,
    RestaurantUpdate,
    SettingsUpdate,
)
from restaurant_ops.storage.filters import (
    AnyOf,
    Filter,
    any_of,
    compile_filters,
    compile_order,
    eq,
    gte,
    ilike,
    in_,
    lte,
    not_overlaps,
    overlaps,
    to_db_value,
)
from restaurant_ops.storage.resilience import (
    InvalidQueryError,
    RecordNotFoundError,
    StoreFailure,
    classify_store_error,
    resilient_write,
)

logger = logging.getLogger(__name__)

_NOW = "strftime('%Y-%m-%d %H:%M:%f', 'now')"

_TABLE_COLUMNS: dict[str, frozenset[str]] = {
    "restaurants": frozenset({
        "id", "name", "business_type", "total_seats", "address", "phone",
        "email", "website", "parking_info", "accessibility_info",
        "operating_hours", "created_at", "updated_at",
    }),
    "restaurant_settings": frozenset({
        "id", "restaurant_id", "advance_booking_days", "min_party_size",
        "max_party_size", "slot_duration_minutes", "booking_interval_minutes",
        "send_sms_confirmation", "send_email_confirmation", "send_reminder",
        "reminder_hours_before", "cancellation_hours_before",
        "custom_messages", "created_at", "updated_at",
    }),
    "reservations": frozenset({
        "id", "restaurant_id", "reservation_date", "reservation_time",
        "party_size", "guest_name", "guest_phone", "guest_email",
        "special_requests", "status", "confirmation_sent", "reminder_sent",
        "created_at", "updated_at",
    }),
    "menu_items": frozenset({
        "id", "restaurant_id", "category", "subcategory", "name",
        "description", "price", "image_url", "is_available", "allergens",
        "dietary_tags", "sort_order", "created_at", "updated_at",
    }),
    "chat_conversations": frozenset({
        "id", "restaurant_id", "session_id", "user_message", "bot_response",
        "model_used", "intent", "created_at",
    }),
}

_JSON_COLUMNS: dict[str, frozenset[str]] = {
    "restaurants": frozenset({"operating_hours"}),
    "restaurant_settings": frozenset({"custom_messages"}),
    "menu_items": frozenset({"allergens", "dietary_tags"}),
}

_BOOL_COLUMNS: dict[str, frozenset[str]] = {
    "restaurant_settings": frozenset({
        "send_sms_confirmation", "send_email_confirmation", "send_reminder",
    }),
    "reservations": frozenset({"confirmation_sent", "reminder_sent"}),
    "menu_items": frozenset({"is_available"}),
}


def _as_list(value: str | list[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


class DatabaseManager:
    """Async SQLite record store with typed repository methods.

    All SQL in the application lives in this class. The generic
    ``insert`` / ``update`` / ``delete`` / ``get`` / ``query`` methods form
    the record store contract; the typed methods below them accept and
    return Pydantic models.

    Writes are serialised through one lock so that a statement and its
    commit (or rollback) never interleave with another coroutine's write on
    the shared connection.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = str(db_path)
        self.connection: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open connection, enable WAL mode and foreign keys, execute schema."""
        self.connection = await aiosqlite.connect(self.db_path)
        self.connection.row_factory = aiosqlite.Row
        schema_path = Path(__file__).parent / "schema.sql"
        schema_sql = schema_path.read_text()
        await self.connection.executescript(schema_sql)
        await self.connection.execute("PRAGMA journal_mode=WAL")
        await self.connection.execute("PRAGMA foreign_keys=ON")
        await self.connection.commit()
        logger.info("Database initialized at %s", self.db_path)

    async def close(self) -> None:
        """Close the database connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None

    async def __aenter__(self) -> "DatabaseManager":
        await self.initialize()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        await self.close()

    # ── Raw SQL ───────────────────────────────────────────────────────────

    @resilient_write
    async def execute(self, sql: str, params: tuple | list = ()) -> aiosqlite.Cursor:
        """Execute a single write statement and commit. Rolls back on error."""
        assert self.connection is not None
        async with self._write_lock:
            try:
                cursor = await self.connection.execute(sql, params)
                await self.connection.commit()
            except aiosqlite.Error as exc:
                await self.connection.rollback()
                error = classify_store_error(exc)
                logger.error("Write failed (%s): %s", type(error).__name__, exc)
                raise error from exc
        return cursor

    async def fetch_one(self, sql: str, params: tuple | list = ()) -> dict | None:
        """Execute a query and return a single row as a dict, or None."""
        assert self.connection is not None
        try:
            cursor = await self.connection.execute(sql, params)
            row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            logger.exception("Read failed: %s", sql)
            raise StoreFailure(str(exc)) from exc
        if row is None:
            return None
        return dict(row)

    async def fetch_all(self, sql: str, params: tuple | list = ()) -> list[dict]:
        """Execute a query and return all rows as list of dicts."""
        assert self.connection is not None
        try:
            cursor = await self.connection.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            logger.exception("Read failed: %s", sql)
            raise StoreFailure(str(exc)) from exc
        return [dict(r) for r in rows]

    # ── Record Store ──────────────────────────────────────────────────────

    def _columns(self, table: str) -> frozenset[str]:
        try:
            return _TABLE_COLUMNS[table]
        except KeyError:
            raise InvalidQueryError(f"Unknown table '{table}'") from None

    def _decode_row(self, table: str, row: dict) -> dict:
        for col in _JSON_COLUMNS.get(table, ()):
            if col in row and row[col] is not None:
                row[col] = json.loads(row[col])
        for col in _BOOL_COLUMNS.get(table, ()):
            if col in row and row[col] is not None:
                row[col] = bool(row[col])
        return row

    async def insert(self, table: str, record: dict[str, Any]) -> dict:
        """Insert *record* into *table* and return the stored row.

        An ``id`` is generated when the record does not carry one.

        Raises:
            ConstraintError: On NOT NULL / CHECK / UNIQUE / FK violations.
            InvalidQueryError: On unknown table or columns.
        """
        columns = self._columns(table)
        record = {"id": str(uuid4()), **record}
        unknown = set(record) - columns
        if unknown:
            raise InvalidQueryError(f"Unknown columns for {table}: {sorted(unknown)}")
        names = list(record)
        sql = (
            f"INSERT INTO {table} ({', '.join(names)}) "
            f"VALUES ({', '.join('?' for _ in names)})"
        )
        await self.execute(sql, [to_db_value(record[n]) for n in names])
        stored = await self.get(table, record["id"])
        assert stored is not None
        return stored

    async def update(
        self,
        table: str,
        record_id: str,
        patch: dict[str, Any],
        key_column: str = "id",
    ) -> dict:
        """Apply *patch* to the record whose *key_column* equals *record_id*.

        Raises:
            RecordNotFoundError: If no record matches.
            ConstraintError: If the patch violates a constraint.
        """
        columns = self._columns(table)
        unknown = (set(patch) | {key_column}) - columns
        if unknown:
            raise InvalidQueryError(f"Unknown columns for {table}: {sorted(unknown)}")
        assignments = [f"{name} = ?" for name in patch]
        params = [to_db_value(v) for v in patch.values()]
        if "updated_at" in columns and "updated_at" not in patch:
            assignments.append(f"updated_at = {_NOW}")
        if not assignments:
            existing = await self.get(table, record_id, key_column=key_column)
            if existing is None:
                raise RecordNotFoundError(table, record_id)
            return existing
        cursor = await self.execute(
            f"UPDATE {table} SET {', '.join(assignments)} WHERE {key_column} = ?",
            [*params, record_id],
        )
        if cursor.rowcount == 0:
            raise RecordNotFoundError(table, record_id)
        stored = await self.get(table, record_id, key_column=key_column)
        assert stored is not None
        return stored

    async def delete(self, table: str, record_id: str) -> bool:
        """Delete a record by id. Returns True if a row was removed."""
        self._columns(table)
        cursor = await self.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
        return cursor.rowcount > 0

    async def get(self, table: str, record_id: str, key_column: str = "id") -> dict | None:
        columns = self._columns(table)
        if key_column not in columns:
            raise InvalidQueryError(f"Unknown column '{key_column}'")
        row = await self.fetch_one(
            f"SELECT * FROM {table} WHERE {key_column} = ?", (record_id,)
        )
        if row is None:
            return None
        return self._decode_row(table, row)

    async def query(
        self,
        table: str,
        filters: Sequence[Filter | AnyOf] = (),
        order_by: Sequence[str] = (),
    ) -> list[dict]:
        """Return rows of *table* matching all *filters*, in *order_by* order."""
        columns = self._columns(table)
        where, params = compile_filters(filters, columns)
        order = compile_order(order_by, columns)
        rows = await self.fetch_all(
            f"SELECT * FROM {table} WHERE {where} ORDER BY {order}", params
        )
        return [self._decode_row(table, r) for r in rows]

    # ── Restaurants ───────────────────────────────────────────────────────

    async def create_restaurant(self, data: RestaurantCreate) -> Restaurant:
        row = await self.insert("restaurants", data.model_dump(mode="json"))
        return Restaurant(**row)

    async def get_restaurant(self, restaurant_id: str) -> Restaurant | None:
        row = await self.get("restaurants", restaurant_id)
        if not row:
            return None
        return Restaurant(**row)

    async def list_restaurants(self) -> list[Restaurant]:
        rows = await self.query("restaurants", order_by=["name"])
        return [Restaurant(**r) for r in rows]

    async def update_restaurant(
        self, restaurant_id: str, patch: RestaurantUpdate
    ) -> Restaurant:
        row = await self.update(
            "restaurants", restaurant_id, patch.model_dump(mode="json", exclude_unset=True)
        )
        return Restaurant(**row)

    async def delete_restaurant(self, restaurant_id: str) -> bool:
        return await self.delete("restaurants", restaurant_id)

    # ── Restaurant Settings ───────────────────────────────────────────────

    async def create_default_settings(self, restaurant_id: str) -> RestaurantSettings:
        defaults = RestaurantSettings(restaurant_id=restaurant_id)
        row = await self.insert(
            "restaurant_settings",
            defaults.model_dump(
                mode="json", exclude={"id", "created_at", "updated_at"}
            ),
        )
        return RestaurantSettings(**row)

    async def get_restaurant_settings(self, restaurant_id: str) -> RestaurantSettings | None:
        row = await self.get(
            "restaurant_settings", restaurant_id, key_column="restaurant_id"
        )
        if not row:
            return None
        return RestaurantSettings(**row)

    async def update_restaurant_settings(
        self, restaurant_id: str, patch: SettingsUpdate
    ) -> RestaurantSettings:
        row = await self.update(
            "restaurant_settings",
            restaurant_id,
            patch.model_dump(mode="json", exclude_unset=True),
            key_column="restaurant_id",
        )
        return RestaurantSettings(**row)

    # ── Reservations ──────────────────────────────────────────────────────

    async def create_reservation(
        self,
        data: ReservationCreate,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
    ) -> Reservation:
        row = await self.insert(
            "reservations", {**data.model_dump(mode="json"), "status": status}
        )
        return Reservation(**row)

    async def get_reservation(self, reservation_id: str) -> Reservation | None:
        row = await self.get("reservations", reservation_id)
        if not row:
            return None
        return Reservation(**row)

    async def list_reservations(self, filters: ReservationFilters) -> list[Reservation]:
        clauses: list[Filter | AnyOf] = []
        if filters.restaurant_id:
            clauses.append(eq("restaurant_id", filters.restaurant_id))
        if filters.date:
            clauses.append(eq("reservation_date", filters.date))
        if filters.date_from:
            clauses.append(gte("reservation_date", filters.date_from))
        if filters.date_to:
            clauses.append(lte("reservation_date", filters.date_to))
        if filters.status:
            if isinstance(filters.status, list):
                clauses.append(in_("status", filters.status))
            else:
                clauses.append(eq("status", filters.status))
        if filters.guest_phone:
            clauses.append(eq("guest_phone", filters.guest_phone))
        if filters.guest_name:
            clauses.append(ilike("guest_name", filters.guest_name))
        rows = await self.query(
            "reservations", clauses, order_by=["reservation_date", "reservation_time"]
        )
        return [Reservation(**r) for r in rows]

    async def active_reservations_for_slot(
        self, restaurant_id: str, date: str, time: str
    ) -> list[Reservation]:
        """Reservations whose party size currently counts against the slot."""
        rows = await self.query(
            "reservations",
            [
                eq("restaurant_id", restaurant_id),
                eq("reservation_date", date),
                eq("reservation_time", time),
                in_("status", sorted(ACTIVE_STATUSES)),
            ],
        )
        return [Reservation(**r) for r in rows]

    async def update_reservation(
        self, reservation_id: str, patch: dict[str, Any]
    ) -> Reservation:
        row = await self.update("reservations", reservation_id, patch)
        return Reservation(**row)

    # ── Menu Items ────────────────────────────────────────────────────────

    async def create_menu_item(self, data: MenuItemCreate) -> MenuItem:
        row = await self.insert("menu_items", data.model_dump(mode="json"))
        return MenuItem(**row)

    async def get_menu_item(self, item_id: str) -> MenuItem | None:
        row = await self.get("menu_items", item_id)
        if not row:
            return None
        return MenuItem(**row)

    async def list_menu_items(self, filters: MenuFilters) -> list[MenuItem]:
        clauses: list[Filter | AnyOf] = [eq("restaurant_id", filters.restaurant_id)]
        if filters.category:
            if isinstance(filters.category, list):
                clauses.append(in_("category", filters.category))
            else:
                clauses.append(eq("category", filters.category))
        if filters.is_available is not None:
            clauses.append(eq("is_available", filters.is_available))
        tags = _as_list(filters.dietary_tag)
        if tags:
            clauses.append(overlaps("dietary_tags", tags))
        allergens = _as_list(filters.exclude_allergen)
        if allergens:
            clauses.append(not_overlaps("allergens", allergens))
        if filters.search:
            clauses.append(
                any_of(ilike("name", filters.search), ilike("description", filters.search))
            )
        rows = await self.query(
            "menu_items", clauses, order_by=["category", "sort_order", "name"]
        )
        return [MenuItem(**r) for r in rows]

    async def update_menu_item(self, item_id: str, patch: MenuItemUpdate) -> MenuItem:
        row = await self.update(
            "menu_items", item_id, patch.model_dump(mode="json", exclude_unset=True)
        )
        return MenuItem(**row)

    async def delete_menu_item(self, item_id: str) -> bool:
        return await self.delete("menu_items", item_id)

    # ── Chat Conversations ────────────────────────────────────────────────

    async def log_conversation(
        self,
        restaurant_id: str,
        user_message: str,
        bot_response: str,
        session_id: str | None = None,
        model_used: AIModel | None = None,
        intent: MessageIntent | None = None,
    ) -> ChatConversation:
        row = await self.insert(
            "chat_conversations",
            {
                "restaurant_id": restaurant_id,
                "session_id": session_id,
                "user_message": user_message,
                "bot_response": bot_response,
                "model_used": model_used,
                "intent": intent,
            },
        )
        return ChatConversation(**row)

    async def list_conversations(
        self,
        restaurant_id: str | None = None,
        session_id: str | None = None,
    ) -> list[ChatConversation]:
        clauses: list[Filter | AnyOf] = []
        if restaurant_id:
            clauses.append(eq("restaurant_id", restaurant_id))
        if session_id:
            clauses.append(eq("session_id", session_id))
        rows = await self.query("chat_conversations", clauses, order_by=["created_at"])
        return [ChatConversation(**r) for r in rows]
