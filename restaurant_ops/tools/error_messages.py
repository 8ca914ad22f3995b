"""User-friendly error messages and safe tool wrapper."""

import logging

from restaurant_ops.booking.errors import (
    InvalidInputError,
    ReservationNotFoundError,
    RestaurantNotFoundError,
    SlotBusyError,
    SlotUnavailableError,
)
from restaurant_ops.storage.resilience import (
    ConstraintError,
    InvalidQueryError,
    RecordNotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)

NO_RESTAURANT_MESSAGE = (
    "No restaurant specified. Pass restaurant_id or set DEFAULT_RESTAURANT_ID."
)


def get_user_message(error: Exception, context: dict | None = None) -> str:
    """Map an exception to a user-friendly message.

    Args:
        error: The exception to translate.
        context: Optional dict with extra info (e.g. {"restaurant": "Luigi's"}).

    Returns:
        A human-readable error message.
    """
    restaurant = (context or {}).get("restaurant", "the restaurant")

    if isinstance(error, SlotUnavailableError):
        return f"Sorry, that time is fully booked at {restaurant}. {error.reason}"
    if isinstance(error, SlotBusyError):
        return (
            "That time slot is being booked by someone else right now. "
            "Please try again in a moment."
        )
    if isinstance(error, RestaurantNotFoundError):
        return f"Restaurant '{error.restaurant_id}' was not found."
    if isinstance(error, ReservationNotFoundError):
        return f"Reservation '{error.reservation_id}' was not found."
    if isinstance(error, InvalidInputError):
        return f"Invalid request: {error}"
    if isinstance(error, RecordNotFoundError):
        return f"No {error.table.replace('_', ' ')} record with id '{error.record_id}'."
    if isinstance(error, ConstraintError):
        return f"The change was rejected because it conflicts with existing data: {error}"
    if isinstance(error, InvalidQueryError):
        return f"Invalid query: {error}"
    if isinstance(error, StoreError):
        return "The database is temporarily unavailable. Please try again shortly."
    return "Something went wrong. Please try again or contact support."


async def safe_tool_wrapper(
    func,  # type: ignore[no-untyped-def]
    *args: object,
    context: dict | None = None,
    **kwargs: object,
) -> str:
    """Call an async function, catching errors and returning friendly messages.

    Domain errors are expected outcomes and are logged at INFO; anything else
    is logged with its traceback.

    Args:
        func: Async callable to invoke.
        *args: Positional arguments for *func*.
        context: Optional context dict for error messages.
        **kwargs: Keyword arguments for *func*.

    Returns:
        The function's return value on success, or a user-friendly error string.
    """
    try:
        return await func(*args, **kwargs)
    except (InvalidInputError, SlotUnavailableError, SlotBusyError,
            RestaurantNotFoundError, ReservationNotFoundError,
            RecordNotFoundError, ConstraintError) as exc:
        logger.info("Tool %s rejected request: %s", func.__name__, exc)
        return get_user_message(exc, context)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Tool error in %s", func.__name__)
        return get_user_message(exc, context)
