"""Reservation lifecycle: create, update, cancel and summarise bookings.

Every write that can add seats to a slot runs its availability check and
its insert/update inside the slot's lock, so two concurrent bookings can
never both pass the check against the same free seats.

Status lifecycle::

    pending ─→ confirmed ─→ cancelled | completed | no-show

Only ``pending`` and ``confirmed`` reservations hold seats. The three
outcome states are terminal.
"""

import logging
from datetime import date as date_type
from typing import Any

from restaurant_ops.booking.availability import (
    AvailabilityChecker,
    validate_date,
    validate_party_size,
    validate_time,
)
from restaurant_ops.booking.errors import (
    InvalidInputError,
    ReservationNotFoundError,
    SlotBusyError,
    SlotUnavailableError,
)
from restaurant_ops.booking.slot_lock import SlotKey, SlotLockRegistry
from restaurant_ops.models.enums import ACTIVE_STATUSES, ReservationStatus
from restaurant_ops.models.reservation import (
    AvailabilityResult,
    Reservation,
    ReservationCreate,
    ReservationFilters,
    ReservationSummary,
    ReservationUpdate,
)
from restaurant_ops.storage.database import DatabaseManager
from restaurant_ops.storage.resilience import RecordNotFoundError

logger = logging.getLogger(__name__)

_TERMINAL: frozenset[ReservationStatus] = frozenset()

ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
        ReservationStatus.COMPLETED,
        ReservationStatus.NO_SHOW,
    }),
    ReservationStatus.CONFIRMED: frozenset({
        ReservationStatus.CANCELLED,
        ReservationStatus.COMPLETED,
        ReservationStatus.NO_SHOW,
    }),
    ReservationStatus.CANCELLED: _TERMINAL,
    ReservationStatus.COMPLETED: _TERMINAL,
    ReservationStatus.NO_SHOW: _TERMINAL,
}

# Fields a patch may explicitly clear
_NULLABLE_FIELDS = {"guest_email", "special_requests"}

_CAPACITY_FIELDS = frozenset({"reservation_date", "reservation_time", "party_size"})

# Times a write re-reads and re-locks a reservation that moved under it
_LOCK_ATTEMPTS = 3


def _slot_of(reservation: Reservation) -> SlotKey:
    return SlotKey(
        reservation.restaurant_id,
        reservation.reservation_date,
        reservation.reservation_time,
    )


def _target_slot(reservation: Reservation, changes: dict[str, Any]) -> SlotKey:
    return SlotKey(
        reservation.restaurant_id,
        changes.get("reservation_date", reservation.reservation_date),
        changes.get("reservation_time", reservation.reservation_time),
    )


def _slots_for(reservation: Reservation, changes: dict[str, Any]) -> set[SlotKey]:
    """The slot a reservation occupies and the one *changes* would move it to."""
    return {_slot_of(reservation), _target_slot(reservation, changes)}


def _require_text(field: str, value: str) -> None:
    if not value or not value.strip():
        raise InvalidInputError(f"{field} is required")


class ReservationWorkflow:
    """Orchestrates availability checks and reservation writes.

    Args:
        db: Record store for restaurants and reservations.
        locks: Shared per-slot lock registry. One registry must be shared by
            every workflow in the process for the capacity guarantee to hold.
    """

    def __init__(
        self, db: DatabaseManager, locks: SlotLockRegistry | None = None
    ) -> None:
        self.db = db
        self.locks = locks if locks is not None else SlotLockRegistry()
        self.checker = AvailabilityChecker(db)

    async def check_availability(
        self,
        restaurant_id: str,
        date: str,
        time: str,
        party_size: int,
        exclude_reservation_id: str | None = None,
    ) -> AvailabilityResult:
        """Advisory, lock-free availability lookup."""
        return await self.checker.check(
            restaurant_id, date, time, party_size,
            exclude_reservation_id=exclude_reservation_id,
        )

    # ── Create ────────────────────────────────────────────────────────────

    async def create(self, data: ReservationCreate) -> Reservation:
        """Book a new reservation with status ``confirmed``.

        Raises:
            InvalidInputError: On malformed input.
            RestaurantNotFoundError: If the restaurant does not exist.
            SlotUnavailableError: If the slot lacks seats for the party.
            SlotBusyError: If the slot lock could not be acquired in time.
        """
        validate_party_size(data.party_size)
        validate_date(data.reservation_date)
        validate_time(data.reservation_time)
        _require_text("Guest name", data.guest_name)
        _require_text("Guest phone", data.guest_phone)

        slot = SlotKey(data.restaurant_id, data.reservation_date, data.reservation_time)
        async with self.locks.hold(slot):
            result = await self.checker.check(
                data.restaurant_id,
                data.reservation_date,
                data.reservation_time,
                data.party_size,
            )
            if not result.available:
                raise SlotUnavailableError(
                    result.reason or "Reservation not available",
                    result.remaining_seats,
                )
            reservation = await self.db.create_reservation(
                data, status=ReservationStatus.CONFIRMED
            )

        logger.info(
            "Reservation %s confirmed: %d guests at %s",
            reservation.id, reservation.party_size, slot,
        )
        return reservation

    # ── Read ──────────────────────────────────────────────────────────────

    async def get(self, reservation_id: str) -> Reservation:
        """Raises ReservationNotFoundError if absent."""
        reservation = await self.db.get_reservation(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    async def list_reservations(self, filters: ReservationFilters) -> list[Reservation]:
        for value in (filters.date, filters.date_from, filters.date_to):
            if value:
                validate_date(value)
        return await self.db.list_reservations(filters)

    async def todays(
        self, restaurant_id: str, today: date_type | None = None
    ) -> list[Reservation]:
        """Active reservations for *today* (defaults to the local date)."""
        today = today or date_type.today()
        return await self.db.list_reservations(
            ReservationFilters(
                restaurant_id=restaurant_id,
                date=today.isoformat(),
                status=[ReservationStatus.CONFIRMED, ReservationStatus.PENDING],
            )
        )

    # ── Update ────────────────────────────────────────────────────────────

    def _clean_changes(self, patch: ReservationUpdate) -> dict[str, Any]:
        changes = patch.model_dump(exclude_unset=True)
        return {
            k: v for k, v in changes.items()
            if v is not None or k in _NULLABLE_FIELDS
        }

    def _validate_changes(self, current: Reservation, changes: dict[str, Any]) -> None:
        if "reservation_date" in changes:
            validate_date(changes["reservation_date"])
        if "reservation_time" in changes:
            validate_time(changes["reservation_time"])
        if "party_size" in changes:
            validate_party_size(changes["party_size"])
        if "guest_name" in changes:
            _require_text("Guest name", changes["guest_name"])
        if "guest_phone" in changes:
            _require_text("Guest phone", changes["guest_phone"])

        new_status = changes.get("status")
        if new_status is not None and new_status != current.status:
            if new_status not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidInputError(
                    f"Cannot change a {current.status} reservation to {new_status}"
                )

    async def update(self, reservation_id: str, patch: ReservationUpdate) -> Reservation:
        """Apply *patch* to a reservation.

        Patches that change the date, time or party size of an active
        reservation are re-validated against the target slot as if the
        reservation were being created there, not counting its own current
        seats. Status changes are made under the reservation's slot lock so
        they cannot interleave with a cancel or a move. Contact details and
        notes are written directly.

        Raises:
            ReservationNotFoundError: If the reservation does not exist.
            InvalidInputError: On malformed values or an illegal status change.
            SlotUnavailableError: If the target slot lacks seats.
            SlotBusyError: If the slot locks could not be acquired in time, or
                the reservation kept moving while waiting for them.
        """
        changes = self._clean_changes(patch)
        current = await self.get(reservation_id)
        self._validate_changes(current, changes)

        if not changes:
            return current

        if not patch.touches_slot() and "status" not in changes:
            return await self._write(reservation_id, changes)

        for _ in range(_LOCK_ATTEMPTS):
            held = _slots_for(current, changes)
            async with self.locks.hold(*held):
                # The record may have moved while we waited; only proceed
                # when the locks we hold still cover both of its slots.
                current = await self.get(reservation_id)
                if _slots_for(current, changes) <= held:
                    return await self._apply_locked(current, changes)
            logger.info(
                "Reservation %s moved while waiting for its slot lock, retrying",
                reservation_id,
            )
        raise SlotBusyError(
            f"Reservation {reservation_id} is being changed concurrently, please try again"
        )

    async def _apply_locked(
        self, current: Reservation, changes: dict[str, Any]
    ) -> Reservation:
        """Validate and write *changes*. Caller holds the locks for both slots."""
        self._validate_changes(current, changes)
        target = _target_slot(current, changes)
        status = changes.get("status", current.status)
        if status in ACTIVE_STATUSES and _CAPACITY_FIELDS & changes.keys():
            result = await self.checker.check(
                current.restaurant_id,
                target.date,
                target.time,
                changes.get("party_size", current.party_size),
                exclude_reservation_id=current.id,
            )
            if not result.available:
                raise SlotUnavailableError(
                    result.reason or "New time slot not available",
                    result.remaining_seats,
                )
        updated = await self._write(current.id, changes)
        if target != _slot_of(current) or "party_size" in changes:
            logger.info("Reservation %s moved/resized to %s", current.id, target)
        return updated

    async def _write(self, reservation_id: str, changes: dict[str, Any]) -> Reservation:
        try:
            return await self.db.update_reservation(reservation_id, changes)
        except RecordNotFoundError:
            raise ReservationNotFoundError(reservation_id) from None

    # ── Cancel ────────────────────────────────────────────────────────────

    async def cancel(self, reservation_id: str) -> Reservation:
        """Mark a reservation cancelled, releasing its seats.

        Idempotent: cancelling an already-cancelled reservation returns it
        unchanged. The write happens under the reservation's slot lock so a
        concurrent update cannot validate a status change against a record
        that is about to be cancelled.

        Raises:
            ReservationNotFoundError: If the reservation does not exist.
            SlotBusyError: If the slot lock could not be acquired in time.
        """
        current = await self.get(reservation_id)
        for _ in range(_LOCK_ATTEMPTS):
            if current.status == ReservationStatus.CANCELLED:
                return current
            slot = _slot_of(current)
            async with self.locks.hold(slot):
                current = await self.get(reservation_id)
                if current.status == ReservationStatus.CANCELLED:
                    return current
                if _slot_of(current) == slot:
                    cancelled = await self._write(
                        reservation_id, {"status": ReservationStatus.CANCELLED}
                    )
                    logger.info(
                        "Reservation %s cancelled (was %s)", reservation_id, current.status
                    )
                    return cancelled
        raise SlotBusyError(
            f"Reservation {reservation_id} is being changed concurrently, please try again"
        )

    # ── Summary ───────────────────────────────────────────────────────────

    async def summarize(
        self,
        restaurant_id: str,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> ReservationSummary:
        """Count reservations by status bucket and total guests."""
        reservations = await self.list_reservations(
            ReservationFilters(
                restaurant_id=restaurant_id, date_from=date_from, date_to=date_to
            )
        )
        summary = ReservationSummary(total_reservations=len(reservations))
        for r in reservations:
            summary.total_guests += r.party_size
            if r.status in ACTIVE_STATUSES:
                summary.confirmed += 1
            elif r.status == ReservationStatus.CANCELLED:
                summary.cancelled += 1
            elif r.status == ReservationStatus.COMPLETED:
                summary.completed += 1
            elif r.status == ReservationStatus.NO_SHOW:
                summary.no_shows += 1
        return summary
