from datetime import datetime

from pydantic import BaseModel, ConfigDict

from restaurant_ops.models.enums import ReservationStatus


class Reservation(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    restaurant_id: str
    reservation_date: str
    reservation_time: str
    party_size: int
    guest_name: str
    guest_phone: str
    guest_email: str | None = None
    special_requests: str | None = None
    status: ReservationStatus = ReservationStatus.CONFIRMED
    confirmation_sent: bool = False
    reminder_sent: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReservationCreate(BaseModel):
    restaurant_id: str
    reservation_date: str
    reservation_time: str
    party_size: int
    guest_name: str
    guest_phone: str
    guest_email: str | None = None
    special_requests: str | None = None


class ReservationUpdate(BaseModel):
    reservation_date: str | None = None
    reservation_time: str | None = None
    party_size: int | None = None
    guest_name: str | None = None
    guest_phone: str | None = None
    guest_email: str | None = None
    special_requests: str | None = None
    status: ReservationStatus | None = None

    def touches_slot(self) -> bool:
        """True when the patch changes anything that affects seat capacity."""
        return (
            self.reservation_date is not None
            or self.reservation_time is not None
            or self.party_size is not None
        )


class ReservationFilters(BaseModel):
    restaurant_id: str | None = None
    date: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    status: ReservationStatus | list[ReservationStatus] | None = None
    guest_phone: str | None = None
    guest_name: str | None = None


class AvailabilityResult(BaseModel):
    available: bool
    current_bookings: int
    total_seats: int
    reason: str | None = None

    @property
    def remaining_seats(self) -> int:
        return self.total_seats - self.current_bookings


class ReservationSummary(BaseModel):
    total_reservations: int = 0
    confirmed: int = 0
    cancelled: int = 0
    completed: int = 0
    no_shows: int = 0
    total_guests: int = 0
