import logging
from datetime import datetime

from fastmcp import FastMCP

from restaurant_ops.catalog import restaurants as catalog
from restaurant_ops.models.enums import BusinessType, Weekday
from restaurant_ops.models.restaurant import (
    DaySchedule,
    Restaurant,
    RestaurantCreate,
    RestaurantSettings,
    RestaurantUpdate,
    SettingsUpdate,
)
from restaurant_ops.server import get_db, resolve_restaurant_id
from restaurant_ops.tools.date_utils import format_time
from restaurant_ops.tools.error_messages import NO_RESTAURANT_MESSAGE, safe_tool_wrapper

logger = logging.getLogger(__name__)


def _format_hours(schedule: DaySchedule) -> str:
    if schedule.closed:
        return "Closed"
    return f"{format_time(schedule.open)} - {format_time(schedule.close)}"


def _format_restaurant(restaurant: Restaurant, now: datetime | None = None) -> str:
    now = now or datetime.now()
    open_now = catalog.is_restaurant_open(restaurant, now)
    lines = [
        f"{restaurant.name} ({restaurant.business_type})",
        f"ID: {restaurant.id}",
        f"Address: {catalog.format_address(restaurant)}",
        f"Phone: {catalog.format_phone(restaurant.phone)}",
        f"Seats: {restaurant.total_seats if restaurant.total_seats is not None else 'not set'}",
        f"Today: {_format_hours(catalog.hours_for(restaurant, now.date()))}"
        f" ({'open now' if open_now else 'closed now'})",
    ]
    if restaurant.email:
        lines.append(f"Email: {restaurant.email}")
    if restaurant.website:
        lines.append(f"Website: {restaurant.website}")
    if restaurant.parking_info:
        lines.append(f"Parking: {restaurant.parking_info}")
    if restaurant.accessibility_info:
        lines.append(f"Accessibility: {restaurant.accessibility_info}")
    if restaurant.operating_hours:
        lines.append("Hours:")
        for day in Weekday:
            schedule = restaurant.operating_hours.get(day)
            label = _format_hours(schedule) if schedule else "Closed"
            lines.append(f"  {day.capitalize()}: {label}")
    return "\n".join(lines)


def _format_settings(settings: RestaurantSettings) -> str:
    msgs = settings.custom_messages
    return "\n".join([
        f"Settings for restaurant {settings.restaurant_id}:",
        f"  Advance booking: {settings.advance_booking_days} days",
        f"  Party size: {settings.min_party_size}-{settings.max_party_size}",
        f"  Slot duration: {settings.slot_duration_minutes} min, "
        f"interval {settings.booking_interval_minutes} min",
        f"  SMS confirmation: {'on' if settings.send_sms_confirmation else 'off'}",
        f"  Email confirmation: {'on' if settings.send_email_confirmation else 'off'}",
        f"  Reminder: {'on' if settings.send_reminder else 'off'}"
        f" ({settings.reminder_hours_before}h before)",
        f"  Cancellation cutoff: {settings.cancellation_hours_before}h before",
        f"  Welcome message: {msgs.welcome}",
    ])


def register_restaurant_tools(mcp: FastMCP) -> None:
    """Register restaurant profile and settings tools on the MCP server."""

    @mcp.tool
    async def create_restaurant(
        name: str,
        total_seats: int | None = None,
        address: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        website: str | None = None,
        parking_info: str | None = None,
        accessibility_info: str | None = None,
        business_type: BusinessType = BusinessType.RESTAURANT,
        operating_hours: dict[Weekday, DaySchedule] | None = None,
    ) -> str:
        """Register a new restaurant with default booking settings.

        Args:
            name: Restaurant name.
            total_seats: Seating capacity shared by every reservation slot.
            address: Street address.
            phone: Contact phone.
            email: Contact email.
            website: Website URL.
            parking_info: Parking notes for guests.
            accessibility_info: Accessibility notes for guests.
            business_type: restaurant, real-estate, medical, salon or other.
            operating_hours: Per weekday {"open": "11:00", "close": "22:00",
                "closed": false}. Days left out are treated as closed.

        Returns:
            Confirmation with the new restaurant ID.
        """

        async def _create() -> str:
            restaurant = await catalog.create_restaurant(
                get_db(),
                RestaurantCreate(
                    name=name,
                    total_seats=total_seats,
                    address=address,
                    phone=phone,
                    email=email,
                    website=website,
                    parking_info=parking_info,
                    accessibility_info=accessibility_info,
                    business_type=business_type,
                    operating_hours=operating_hours or {},
                ),
            )
            return f"Created restaurant '{restaurant.name}' (ID: {restaurant.id})."

        return await safe_tool_wrapper(_create)

    @mcp.tool
    async def get_restaurant_info(restaurant_id: str | None = None) -> str:
        """Show a restaurant's contact details, capacity and opening hours.

        Args:
            restaurant_id: Restaurant (defaults to the configured one).

        Returns:
            The restaurant profile, including whether it is open now.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE

        async def _info() -> str:
            restaurant = await get_db().get_restaurant(rid)
            if restaurant is None:
                return f"Restaurant '{rid}' was not found."
            return _format_restaurant(restaurant)

        return await safe_tool_wrapper(_info)

    @mcp.tool
    async def list_restaurants() -> str:
        """List all restaurants.

        Returns:
            Numbered list of restaurants with their IDs.
        """

        async def _list() -> str:
            restaurants = await get_db().list_restaurants()
            if not restaurants:
                return "No restaurants yet."
            lines = ["Restaurants:"]
            for i, r in enumerate(restaurants, 1):
                seats = f", {r.total_seats} seats" if r.total_seats is not None else ""
                lines.append(f"{i}. {r.name} (ID: {r.id}{seats})")
            return "\n".join(lines)

        return await safe_tool_wrapper(_list)

    @mcp.tool
    async def update_restaurant(
        restaurant_id: str,
        name: str | None = None,
        total_seats: int | None = None,
        address: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        website: str | None = None,
        parking_info: str | None = None,
        accessibility_info: str | None = None,
        operating_hours: dict[Weekday, DaySchedule] | None = None,
    ) -> str:
        """Update a restaurant's profile. Only the given fields change.

        Args:
            restaurant_id: Restaurant to update.
            name: New name.
            total_seats: New seating capacity.
            address: New address.
            phone: New phone.
            email: New email.
            website: New website.
            parking_info: New parking notes.
            accessibility_info: New accessibility notes.
            operating_hours: Replacement weekly schedule.

        Returns:
            Confirmation of the update.
        """
        fields = {
            "name": name,
            "total_seats": total_seats,
            "address": address,
            "phone": phone,
            "email": email,
            "website": website,
            "parking_info": parking_info,
            "accessibility_info": accessibility_info,
            "operating_hours": operating_hours,
        }
        patch = RestaurantUpdate(**{k: v for k, v in fields.items() if v is not None})

        async def _update() -> str:
            restaurant = await catalog.update_restaurant(get_db(), restaurant_id, patch)
            return f"Updated restaurant '{restaurant.name}'."

        return await safe_tool_wrapper(_update)

    @mcp.tool
    async def delete_restaurant(restaurant_id: str) -> str:
        """Delete a restaurant together with its settings, reservations,
        menu and chat history.

        Args:
            restaurant_id: Restaurant to delete.

        Returns:
            Confirmation of the deletion.
        """

        async def _delete() -> str:
            deleted = await get_db().delete_restaurant(restaurant_id)
            if not deleted:
                return f"Restaurant '{restaurant_id}' was not found."
            logger.info("Deleted restaurant %s", restaurant_id)
            return f"Deleted restaurant '{restaurant_id}'."

        return await safe_tool_wrapper(_delete)

    @mcp.tool
    async def get_restaurant_settings(restaurant_id: str | None = None) -> str:
        """Show a restaurant's booking and notification settings.

        Args:
            restaurant_id: Restaurant (defaults to the configured one).

        Returns:
            The current settings.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE

        async def _get() -> str:
            db = get_db()
            if await db.get_restaurant(rid) is None:
                return f"Restaurant '{rid}' was not found."
            settings = await catalog.get_or_create_settings(db, rid)
            return _format_settings(settings)

        return await safe_tool_wrapper(_get)

    @mcp.tool
    async def update_restaurant_settings(restaurant_id: str, changes: SettingsUpdate) -> str:
        """Update a restaurant's booking and notification settings.

        Args:
            restaurant_id: Restaurant to update.
            changes: Only the settings to change, e.g. {"max_party_size": 12}.

        Returns:
            The updated settings.
        """

        async def _update() -> str:
            db = get_db()
            if await db.get_restaurant(restaurant_id) is None:
                return f"Restaurant '{restaurant_id}' was not found."
            current = await catalog.get_or_create_settings(db, restaurant_id)
            min_size = current.min_party_size
            if changes.min_party_size is not None:
                min_size = changes.min_party_size
            max_size = current.max_party_size
            if changes.max_party_size is not None:
                max_size = changes.max_party_size
            if min_size > max_size:
                return (
                    f"Minimum party size ({min_size}) cannot exceed "
                    f"maximum party size ({max_size})."
                )
            settings = await db.update_restaurant_settings(restaurant_id, changes)
            return _format_settings(settings)

        return await safe_tool_wrapper(_update)
