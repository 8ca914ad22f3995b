"""Restaurant profile, settings and operating-hours helpers."""

import asyncio
import logging
import re
from datetime import date, datetime

from restaurant_ops.booking.availability import validate_time
from restaurant_ops.booking.errors import InvalidInputError
from restaurant_ops.models.enums import Weekday
from restaurant_ops.models.restaurant import (
    DaySchedule,
    Restaurant,
    RestaurantCreate,
    RestaurantSettings,
    RestaurantUpdate,
)
from restaurant_ops.storage.database import DatabaseManager
from restaurant_ops.storage.resilience import StoreError

logger = logging.getLogger(__name__)

# date.weekday() index → Weekday (Monday = 0)
_WEEKDAYS: list[Weekday] = list(Weekday)


def _validate_profile(
    total_seats: int | None, hours: dict[Weekday, DaySchedule] | None
) -> None:
    if total_seats is not None and total_seats < 0:
        raise InvalidInputError(f"Total seats cannot be negative, got {total_seats}")
    for schedule in (hours or {}).values():
        if not schedule.closed:
            validate_time(schedule.open)
            validate_time(schedule.close)


async def create_restaurant(db: DatabaseManager, data: RestaurantCreate) -> Restaurant:
    """Create a restaurant together with its default settings row.

    A failure to create the settings is logged but does not undo the
    restaurant; ``get_or_create_settings`` fills the gap on first read.
    """
    _validate_profile(data.total_seats, data.operating_hours)
    restaurant = await db.create_restaurant(data)
    try:
        await db.create_default_settings(restaurant.id)
    except StoreError:
        logger.exception("Could not create default settings for %s", restaurant.id)
    logger.info("Created restaurant %s (%s)", restaurant.name, restaurant.id)
    return restaurant


async def update_restaurant(
    db: DatabaseManager, restaurant_id: str, patch: RestaurantUpdate
) -> Restaurant:
    _validate_profile(patch.total_seats, patch.operating_hours)
    return await db.update_restaurant(restaurant_id, patch)


async def get_or_create_settings(
    db: DatabaseManager, restaurant_id: str
) -> RestaurantSettings:
    settings = await db.get_restaurant_settings(restaurant_id)
    if settings is None:
        settings = await db.create_default_settings(restaurant_id)
    return settings


async def get_restaurant_with_settings(
    db: DatabaseManager, restaurant_id: str
) -> tuple[Restaurant | None, RestaurantSettings | None]:
    """Fetch a restaurant and its settings concurrently."""
    restaurant, settings = await asyncio.gather(
        db.get_restaurant(restaurant_id),
        db.get_restaurant_settings(restaurant_id),
    )
    return restaurant, settings


def hours_for(restaurant: Restaurant, on: date) -> DaySchedule:
    """Return the schedule for *on*'s weekday. Days without hours are closed."""
    weekday = _WEEKDAYS[on.weekday()]
    return restaurant.operating_hours.get(weekday, DaySchedule(closed=True))


def todays_hours(restaurant: Restaurant) -> DaySchedule:
    return hours_for(restaurant, date.today())


def is_restaurant_open(restaurant: Restaurant, at: datetime) -> bool:
    """True if *at* falls within that day's opening hours (inclusive)."""
    schedule = hours_for(restaurant, at.date())
    if schedule.closed:
        return False
    current = at.strftime("%H:%M")
    return schedule.open <= current <= schedule.close


def format_address(restaurant: Restaurant) -> str:
    if not restaurant.address:
        return "Address not available"
    return restaurant.address


def format_phone(phone: str | None) -> str:
    """Format US phone numbers for display; anything else is returned as-is."""
    if not phone:
        return "Phone not available"

    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits[0] == "1":
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    return phone
