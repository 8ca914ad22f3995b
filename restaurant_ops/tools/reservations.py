import logging

from fastmcp import FastMCP

from restaurant_ops.booking.workflow import ReservationWorkflow
from restaurant_ops.models.enums import ReservationStatus
from restaurant_ops.models.reservation import (
    Reservation,
    ReservationCreate,
    ReservationFilters,
    ReservationUpdate,
)
from restaurant_ops.server import get_db, get_slot_locks, resolve_restaurant_id
from restaurant_ops.tools.date_utils import format_time, parse_date, parse_time
from restaurant_ops.tools.error_messages import NO_RESTAURANT_MESSAGE, safe_tool_wrapper

logger = logging.getLogger(__name__)


def _workflow() -> ReservationWorkflow:
    return ReservationWorkflow(get_db(), get_slot_locks())


def _format_reservation(r: Reservation) -> str:
    line = (
        f"{r.guest_name}, party of {r.party_size}, "
        f"{r.reservation_date} at {format_time(r.reservation_time)} "
        f"[{r.status}] (ID: {r.id})"
    )
    if r.special_requests:
        line += f"\n   Requests: {r.special_requests}"
    return line


def _parse_statuses(text: str) -> list[ReservationStatus]:
    return [ReservationStatus(s.strip().lower()) for s in text.split(",") if s.strip()]


def register_reservation_tools(mcp: FastMCP) -> None:
    """Register reservation booking and reporting tools on the MCP server."""

    @mcp.tool
    async def check_availability(
        date: str,
        time: str,
        party_size: int = 2,
        restaurant_id: str | None = None,
    ) -> str:
        """Check whether a party can be seated at a given date and time.
        This is a quick look only; seats are not held until a reservation
        is made.

        Args:
            date: Reservation date, e.g. "2025-11-22", "Saturday", "Nov 22".
            time: Reservation time, "19:00" or "7 PM".
            party_size: Number of guests.
            restaurant_id: Restaurant to check (defaults to the configured one).

        Returns:
            Whether the slot is available and how many seats remain.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE
        try:
            parsed_date = parse_date(date)
            parsed_time = parse_time(time)
        except ValueError as exc:
            return str(exc)

        async def _check() -> str:
            result = await _workflow().check_availability(
                rid, parsed_date, parsed_time, party_size
            )
            when = f"{parsed_date} at {format_time(parsed_time)}"
            if result.available:
                return (
                    f"Available: a table for {party_size} on {when}. "
                    f"{result.remaining_seats} seats currently free."
                )
            return f"Not available for {party_size} on {when}. {result.reason}"

        return await safe_tool_wrapper(_check)

    @mcp.tool
    async def make_reservation(
        guest_name: str,
        guest_phone: str,
        date: str,
        time: str,
        party_size: int = 2,
        guest_email: str | None = None,
        special_requests: str | None = None,
        restaurant_id: str | None = None,
    ) -> str:
        """Book a table. The booking is confirmed immediately if enough
        seats are free in that slot.

        Args:
            guest_name: Name the reservation is under.
            guest_phone: Contact phone number.
            date: Reservation date, e.g. "2025-11-22", "tomorrow".
            time: Reservation time, "19:00" or "7 PM".
            party_size: Number of guests.
            guest_email: Optional contact email.
            special_requests: E.g. "window seat", "birthday".
            restaurant_id: Restaurant to book (defaults to the configured one).

        Returns:
            Confirmation with the reservation ID, or why it could not be booked.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE
        try:
            parsed_date = parse_date(date)
            parsed_time = parse_time(time)
        except ValueError as exc:
            return str(exc)

        async def _book() -> str:
            db = get_db()
            reservation = await _workflow().create(
                ReservationCreate(
                    restaurant_id=rid,
                    reservation_date=parsed_date,
                    reservation_time=parsed_time,
                    party_size=party_size,
                    guest_name=guest_name,
                    guest_phone=guest_phone,
                    guest_email=guest_email,
                    special_requests=special_requests,
                )
            )
            lines = [
                f"Reservation confirmed for {reservation.guest_name}, "
                f"party of {reservation.party_size} on {reservation.reservation_date} "
                f"at {format_time(reservation.reservation_time)}.",
                f"Reservation ID: {reservation.id}",
            ]
            settings = await db.get_restaurant_settings(rid)
            if settings:
                lines.append(settings.custom_messages.reservation_confirmed)
            return "\n".join(lines)

        return await safe_tool_wrapper(_book)

    @mcp.tool
    async def update_reservation(
        reservation_id: str,
        date: str | None = None,
        time: str | None = None,
        party_size: int | None = None,
        guest_name: str | None = None,
        guest_phone: str | None = None,
        guest_email: str | None = None,
        special_requests: str | None = None,
        status: str | None = None,
    ) -> str:
        """Change a reservation. Moving it or changing the party size is
        re-checked against the seats available in the new slot.

        Args:
            reservation_id: ID of the reservation.
            date: New date.
            time: New time.
            party_size: New number of guests.
            guest_name: New name.
            guest_phone: New phone.
            guest_email: New email.
            special_requests: New requests.
            status: New status: pending, confirmed, cancelled, completed, no-show.

        Returns:
            The updated reservation, or why the change was rejected.
        """
        fields: dict = {
            "party_size": party_size,
            "guest_name": guest_name,
            "guest_phone": guest_phone,
            "guest_email": guest_email,
            "special_requests": special_requests,
        }
        try:
            if date is not None:
                fields["reservation_date"] = parse_date(date)
            if time is not None:
                fields["reservation_time"] = parse_time(time)
            if status is not None:
                fields["status"] = ReservationStatus(status.strip().lower())
        except ValueError as exc:
            return f"Invalid value: {exc}"

        patch = ReservationUpdate(**{k: v for k, v in fields.items() if v is not None})

        async def _update() -> str:
            reservation = await _workflow().update(reservation_id, patch)
            return f"Reservation updated: {_format_reservation(reservation)}"

        return await safe_tool_wrapper(_update)

    @mcp.tool
    async def cancel_reservation(reservation_id: str) -> str:
        """Cancel a reservation and release its seats.

        Args:
            reservation_id: ID of the reservation.

        Returns:
            Confirmation of the cancellation.
        """

        async def _cancel() -> str:
            reservation = await _workflow().cancel(reservation_id)
            return (
                f"Reservation {reservation.id} for {reservation.guest_name} "
                f"on {reservation.reservation_date} at "
                f"{format_time(reservation.reservation_time)} is cancelled."
            )

        return await safe_tool_wrapper(_cancel)

    @mcp.tool
    async def list_reservations(
        restaurant_id: str | None = None,
        date: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
        status: str | None = None,
        guest_phone: str | None = None,
        guest_name: str | None = None,
    ) -> str:
        """List reservations matching the given filters.

        Args:
            restaurant_id: Restaurant (defaults to the configured one).
            date: Exact date.
            date_from: Earliest date (inclusive).
            date_to: Latest date (inclusive).
            status: One status or a comma-separated list, e.g. "confirmed,pending".
            guest_phone: Exact guest phone number.
            guest_name: Part of the guest's name.

        Returns:
            Numbered list of reservations ordered by date and time.
        """
        try:
            filters = ReservationFilters(
                restaurant_id=resolve_restaurant_id(restaurant_id),
                date=parse_date(date) if date else None,
                date_from=parse_date(date_from) if date_from else None,
                date_to=parse_date(date_to) if date_to else None,
                status=_parse_statuses(status) if status else None,
                guest_phone=guest_phone,
                guest_name=guest_name,
            )
        except ValueError as exc:
            return f"Invalid filter: {exc}"

        async def _list() -> str:
            reservations = await _workflow().list_reservations(filters)
            if not reservations:
                return "No reservations found."
            lines = [f"{len(reservations)} reservation(s):"]
            for i, r in enumerate(reservations, 1):
                lines.append(f"{i}. {_format_reservation(r)}")
            return "\n".join(lines)

        return await safe_tool_wrapper(_list)

    @mcp.tool
    async def todays_reservations(restaurant_id: str | None = None) -> str:
        """Show today's pending and confirmed reservations.

        Args:
            restaurant_id: Restaurant (defaults to the configured one).

        Returns:
            Today's bookings with a total guest count.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE

        async def _today() -> str:
            reservations = await _workflow().todays(rid)
            if not reservations:
                return "No reservations today."
            guests = sum(r.party_size for r in reservations)
            lines = [f"Today: {len(reservations)} reservation(s), {guests} guests"]
            for r in reservations:
                lines.append(
                    f"  {format_time(r.reservation_time)}  {r.guest_name} "
                    f"({r.party_size}) [{r.status}]"
                )
            return "\n".join(lines)

        return await safe_tool_wrapper(_today)

    @mcp.tool
    async def reservation_summary(
        restaurant_id: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> str:
        """Summarise reservations by status for a date range.

        Args:
            restaurant_id: Restaurant (defaults to the configured one).
            date_from: Earliest date (inclusive).
            date_to: Latest date (inclusive).

        Returns:
            Counts of confirmed, cancelled, completed and no-show bookings.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE
        try:
            start = parse_date(date_from) if date_from else None
            end = parse_date(date_to) if date_to else None
        except ValueError as exc:
            return str(exc)

        async def _summary() -> str:
            s = await _workflow().summarize(rid, start, end)
            return "\n".join([
                f"Total reservations: {s.total_reservations}",
                f"Confirmed: {s.confirmed}",
                f"Cancelled: {s.cancelled}",
                f"Completed: {s.completed}",
                f"No-shows: {s.no_shows}",
                f"Total guests: {s.total_guests}",
            ])

        return await safe_tool_wrapper(_summary)
