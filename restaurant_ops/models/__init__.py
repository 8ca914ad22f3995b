from restaurant_ops.models.chat import (
    ChatAnalytics,
    ChatConversation,
    ChatMessage,
    ChatSession,
)
from restaurant_ops.models.enums import (
    ACTIVE_STATUSES,
    AIModel,
    Allergen,
    BusinessType,
    DietaryTag,
    MenuCategory,
    MessageIntent,
    MessageRole,
    ReservationStatus,
    Weekday,
)
from restaurant_ops.models.menu import (
    MenuFilters,
    MenuItem,
    MenuItemCreate,
    MenuItemUpdate,
    MenuSection,
    ReorderResult,
    SortOrderUpdate,
)
from restaurant_ops.models.reservation import (
    AvailabilityResult,
    Reservation,
    ReservationCreate,
    ReservationFilters,
    ReservationSummary,
    ReservationUpdate,
)
from restaurant_ops.models.restaurant import (
    CustomMessages,
    DaySchedule,
    Restaurant,
    RestaurantCreate,
    RestaurantSettings,
    RestaurantUpdate,
    SettingsUpdate,
)

__all__ = [
    "ACTIVE_STATUSES",
    "AIModel",
    "Allergen",
    "AvailabilityResult",
    "BusinessType",
    "ChatAnalytics",
    "ChatConversation",
    "ChatMessage",
    "ChatSession",
    "CustomMessages",
    "DaySchedule",
    "DietaryTag",
    "MenuCategory",
    "MenuFilters",
    "MenuItem",
    "MenuItemCreate",
    "MenuItemUpdate",
    "MenuSection",
    "MessageIntent",
    "MessageRole",
    "ReorderResult",
    "Reservation",
    "ReservationCreate",
    "ReservationFilters",
    "ReservationStatus",
    "ReservationSummary",
    "ReservationUpdate",
    "Restaurant",
    "RestaurantCreate",
    "RestaurantSettings",
    "RestaurantUpdate",
    "SettingsUpdate",
    "SortOrderUpdate",
    "Weekday",
]
