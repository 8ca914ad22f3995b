import pytest

from restaurant_ops.booking.availability import (
    AvailabilityChecker,
    validate_date,
    validate_party_size,
    validate_time,
)
from restaurant_ops.booking.errors import InvalidInputError, RestaurantNotFoundError
from restaurant_ops.models.enums import ReservationStatus
from restaurant_ops.storage.database import DatabaseManager
from tests.factories import SLOT_DATE, SLOT_TIME, make_reservation_create, make_restaurant_create


class TestValidators:
    @pytest.mark.parametrize("value", ["2025-11-22", "2024-02-29"])
    def test_valid_dates(self, value):
        assert validate_date(value) == value

    @pytest.mark.parametrize("value", ["2025-02-30", "22/11/2025", "2025-1-5", "", "tomorrow"])
    def test_invalid_dates(self, value):
        with pytest.raises(InvalidInputError):
            validate_date(value)

    @pytest.mark.parametrize("value", ["00:00", "19:00", "23:59"])
    def test_valid_times(self, value):
        assert validate_time(value) == value

    @pytest.mark.parametrize("value", ["24:00", "7:00", "19:60", "7 PM", ""])
    def test_invalid_times(self, value):
        with pytest.raises(InvalidInputError):
            validate_time(value)

    @pytest.mark.parametrize("value", [0, -1, True])
    def test_invalid_party_sizes(self, value):
        with pytest.raises(InvalidInputError):
            validate_party_size(value)


class TestAvailabilityChecker:
    async def _restaurant(self, db: DatabaseManager, seats: int | None = 10) -> str:
        r = await db.create_restaurant(make_restaurant_create(total_seats=seats))
        return r.id

    async def test_capacity(self, db: DatabaseManager):
        rid = await self._restaurant(db, 25)
        assert await AvailabilityChecker(db).get_capacity(rid) == 25

    async def test_null_capacity_is_zero(self, db: DatabaseManager):
        rid = await self._restaurant(db, None)
        assert await AvailabilityChecker(db).get_capacity(rid) == 0

    async def test_unknown_restaurant(self, db: DatabaseManager):
        with pytest.raises(RestaurantNotFoundError):
            await AvailabilityChecker(db).check("missing", SLOT_DATE, SLOT_TIME, 2)

    async def test_empty_slot_available(self, db: DatabaseManager):
        rid = await self._restaurant(db)
        result = await AvailabilityChecker(db).check(rid, SLOT_DATE, SLOT_TIME, 10)
        assert result.available is True
        assert result.current_bookings == 0
        assert result.total_seats == 10
        assert result.reason is None

    async def test_exact_fit_available(self, db: DatabaseManager):
        rid = await self._restaurant(db)
        await db.create_reservation(make_reservation_create(restaurant_id=rid, party_size=6))
        result = await AvailabilityChecker(db).check(rid, SLOT_DATE, SLOT_TIME, 4)
        assert result.available is True
        assert result.current_bookings + 4 == 10

    async def test_over_capacity_reports_remaining(self, db: DatabaseManager):
        rid = await self._restaurant(db)
        await db.create_reservation(make_reservation_create(restaurant_id=rid, party_size=6))
        result = await AvailabilityChecker(db).check(rid, SLOT_DATE, SLOT_TIME, 5)
        assert result.available is False
        assert result.reason == "Not enough seats available. 4 seats remaining."

    async def test_zero_capacity_never_available(self, db: DatabaseManager):
        rid = await self._restaurant(db, 0)
        result = await AvailabilityChecker(db).check(rid, SLOT_DATE, SLOT_TIME, 1)
        assert result.available is False
        assert "0 seats remaining" in (result.reason or "")

    async def test_inactive_reservations_do_not_count(self, db: DatabaseManager):
        rid = await self._restaurant(db)
        for status in ("cancelled", "completed", "no-show"):
            await db.create_reservation(
                make_reservation_create(restaurant_id=rid, party_size=8),
                status=ReservationStatus(status),
            )
        result = await AvailabilityChecker(db).check(rid, SLOT_DATE, SLOT_TIME, 10)
        assert result.available is True

    async def test_pending_counts(self, db: DatabaseManager):
        rid = await self._restaurant(db)
        await db.create_reservation(
            make_reservation_create(restaurant_id=rid, party_size=8),
            status=ReservationStatus.PENDING,
        )
        result = await AvailabilityChecker(db).check(rid, SLOT_DATE, SLOT_TIME, 3)
        assert result.available is False

    async def test_other_slots_do_not_count(self, db: DatabaseManager):
        rid = await self._restaurant(db)
        await db.create_reservation(make_reservation_create(
            restaurant_id=rid, party_size=10, reservation_time="20:00",
        ))
        await db.create_reservation(make_reservation_create(
            restaurant_id=rid, party_size=10, reservation_date="2025-11-23",
        ))
        result = await AvailabilityChecker(db).check(rid, SLOT_DATE, SLOT_TIME, 10)
        assert result.available is True

    async def test_exclude_reservation_id(self, db: DatabaseManager):
        rid = await self._restaurant(db)
        own = await db.create_reservation(
            make_reservation_create(restaurant_id=rid, party_size=6)
        )
        checker = AvailabilityChecker(db)
        without = await checker.check(rid, SLOT_DATE, SLOT_TIME, 8)
        assert without.available is False
        excluding = await checker.check(
            rid, SLOT_DATE, SLOT_TIME, 8, exclude_reservation_id=own.id
        )
        assert excluding.available is True
        assert excluding.current_bookings == 0

    async def test_invalid_input_rejected_before_lookup(self, db: DatabaseManager):
        checker = AvailabilityChecker(db)
        with pytest.raises(InvalidInputError):
            await checker.check("missing", SLOT_DATE, SLOT_TIME, 0)
        with pytest.raises(InvalidInputError):
            await checker.check("missing", "2025-13-01", SLOT_TIME, 2)
