"""Seat-capacity lookups and slot availability checks."""

import logging
import re
from datetime import date as date_type

from restaurant_ops.booking.errors import InvalidInputError, RestaurantNotFoundError
from restaurant_ops.models.reservation import AvailabilityResult
from restaurant_ops.storage.database import DatabaseManager

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"([01]\d|2[0-3]):[0-5]\d")


def validate_date(value: str) -> str:
    """Return *value* if it is a real calendar date in YYYY-MM-DD form.

    Raises:
        InvalidInputError: Otherwise.
    """
    try:
        parsed = date_type.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid date '{value}', expected YYYY-MM-DD") from None
    if parsed.isoformat() != value:
        raise InvalidInputError(f"Invalid date '{value}', expected YYYY-MM-DD")
    return value


def validate_time(value: str) -> str:
    """Return *value* if it is a 24-hour HH:MM time.

    Raises:
        InvalidInputError: Otherwise.
    """
    if not isinstance(value, str) or not _TIME_RE.fullmatch(value):
        raise InvalidInputError(f"Invalid time '{value}', expected HH:MM (24-hour)")
    return value


def validate_party_size(value: int) -> int:
    """Return *value* if it is a positive integer party size.

    Raises:
        InvalidInputError: Otherwise, including for booleans.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInputError(f"Party size must be a positive integer, got {value!r}")
    return value


class AvailabilityChecker:
    """Answers "can a party of N sit at this restaurant at this date/time?".

    Reads are lock-free and advisory: a result may be stale by the time a
    booking is written, which is why the workflow re-checks under the slot
    lock.

    Args:
        db: Record store holding restaurants and reservations.
    """

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    async def get_capacity(self, restaurant_id: str) -> int:
        """Return the restaurant's total seat count (0 when unset).

        Raises:
            RestaurantNotFoundError: If the restaurant does not exist.
        """
        restaurant = await self.db.get_restaurant(restaurant_id)
        if restaurant is None:
            raise RestaurantNotFoundError(restaurant_id)
        return restaurant.total_seats or 0

    async def booked_seats(
        self,
        restaurant_id: str,
        date: str,
        time: str,
        exclude_reservation_id: str | None = None,
    ) -> int:
        """Sum of active party sizes in the slot, optionally ignoring one reservation."""
        reservations = await self.db.active_reservations_for_slot(restaurant_id, date, time)
        return sum(
            r.party_size for r in reservations if r.id != exclude_reservation_id
        )

    async def check(
        self,
        restaurant_id: str,
        date: str,
        time: str,
        party_size: int,
        exclude_reservation_id: str | None = None,
    ) -> AvailabilityResult:
        """Check whether *party_size* more guests fit in the slot.

        Args:
            restaurant_id: Restaurant to check.
            date: Reservation date, YYYY-MM-DD.
            time: Reservation time, HH:MM.
            party_size: Number of guests to seat.
            exclude_reservation_id: Reservation whose current seats should not
                be counted (used when moving or resizing that reservation).

        Raises:
            InvalidInputError: On a malformed date/time or non-positive party size.
            RestaurantNotFoundError: If the restaurant does not exist.
        """
        validate_party_size(party_size)
        validate_date(date)
        validate_time(time)

        total_seats = await self.get_capacity(restaurant_id)
        current = await self.booked_seats(
            restaurant_id, date, time, exclude_reservation_id=exclude_reservation_id
        )

        if current + party_size > total_seats:
            remaining = total_seats - current
            if remaining < 0:
                logger.error(
                    "Slot %s %s %s is oversold: %d booked of %d seats",
                    restaurant_id, date, time, current, total_seats,
                )
            return AvailabilityResult(
                available=False,
                current_bookings=current,
                total_seats=total_seats,
                reason=f"Not enough seats available. {remaining} seats remaining.",
            )

        return AvailabilityResult(
            available=True,
            current_bookings=current,
            total_seats=total_seats,
        )
