"""Typed failures of the reservation workflow."""


class ReservationError(Exception):
    """Base class for reservation workflow errors."""


class InvalidInputError(ReservationError):
    """Malformed date/time, non-positive party size, or illegal status change."""


class NotFoundError(ReservationError):
    """A referenced restaurant or reservation does not exist."""


class RestaurantNotFoundError(NotFoundError):
    def __init__(self, restaurant_id: str) -> None:
        super().__init__(f"Restaurant {restaurant_id} not found")
        self.restaurant_id = restaurant_id


class ReservationNotFoundError(NotFoundError):
    def __init__(self, reservation_id: str) -> None:
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


class SlotUnavailableError(ReservationError):
    """The slot does not have enough free seats for the party."""

    def __init__(self, reason: str, remaining_seats: int) -> None:
        super().__init__(reason)
        self.reason = reason
        self.remaining_seats = remaining_seats


class SlotBusyError(ReservationError):
    """The slot lock could not be acquired within the timeout."""
