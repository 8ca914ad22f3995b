from enum import StrEnum


class ReservationStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no-show"


# Statuses whose party size counts against a slot's seat capacity
ACTIVE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


class BusinessType(StrEnum):
    RESTAURANT = "restaurant"
    REAL_ESTATE = "real-estate"
    MEDICAL = "medical"
    SALON = "salon"
    OTHER = "other"


class Weekday(StrEnum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class MenuCategory(StrEnum):
    APPETIZER = "appetizer"
    MAIN = "main"
    DESSERT = "dessert"
    DRINK = "drink"
    SPECIAL = "special"
    OTHER = "other"


class Allergen(StrEnum):
    DAIRY = "dairy"
    EGGS = "eggs"
    FISH = "fish"
    SHELLFISH = "shellfish"
    NUTS = "nuts"
    PEANUTS = "peanuts"
    WHEAT = "wheat"
    GLUTEN = "gluten"
    SOY = "soy"
    SESAME = "sesame"


class DietaryTag(StrEnum):
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    GLUTEN_FREE = "gluten-free"
    DAIRY_FREE = "dairy-free"
    NUT_FREE = "nut-free"
    HALAL = "halal"
    KOSHER = "kosher"
    ORGANIC = "organic"
    LOW_CARB = "low-carb"
    KETO = "keto"


class MessageIntent(StrEnum):
    GREETING = "greeting"
    MENU_INQUIRY = "menu_inquiry"
    RESERVATION = "reservation"
    HOURS = "hours"
    LOCATION = "location"
    PARKING = "parking"
    DIETARY = "dietary"
    CANCEL_RESERVATION = "cancel_reservation"
    MODIFY_RESERVATION = "modify_reservation"
    OTHER = "other"
    UNKNOWN = "unknown"


class AIModel(StrEnum):
    GPT_4 = "gpt-4"
    GPT_4_TURBO = "gpt-4-turbo"
    GPT_35_TURBO = "gpt-3.5-turbo"
    CLAUDE_SONNET_4 = "claude-sonnet-4"
    CLAUDE_OPUS_4 = "claude-opus-4"
    CLAUDE_HAIKU_4 = "claude-haiku-4"


class MessageRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


CATEGORY_DISPLAY_NAMES: dict[MenuCategory, str] = {
    MenuCategory.APPETIZER: "Appetizers",
    MenuCategory.MAIN: "Main Courses",
    MenuCategory.DESSERT: "Desserts",
    MenuCategory.DRINK: "Drinks",
    MenuCategory.SPECIAL: "Specials",
    MenuCategory.OTHER: "Other",
}

ALLERGEN_DISPLAY_NAMES: dict[Allergen, str] = {
    Allergen.DAIRY: "Dairy",
    Allergen.EGGS: "Eggs",
    Allergen.FISH: "Fish",
    Allergen.SHELLFISH: "Shellfish",
    Allergen.NUTS: "Tree Nuts",
    Allergen.PEANUTS: "Peanuts",
    Allergen.WHEAT: "Wheat",
    Allergen.GLUTEN: "Gluten",
    Allergen.SOY: "Soy",
    Allergen.SESAME: "Sesame",
}

DIETARY_TAG_DISPLAY_NAMES: dict[DietaryTag, str] = {
    DietaryTag.VEGETARIAN: "Vegetarian",
    DietaryTag.VEGAN: "Vegan",
    DietaryTag.GLUTEN_FREE: "Gluten-Free",
    DietaryTag.DAIRY_FREE: "Dairy-Free",
    DietaryTag.NUT_FREE: "Nut-Free",
    DietaryTag.HALAL: "Halal",
    DietaryTag.KOSHER: "Kosher",
    DietaryTag.ORGANIC: "Organic",
    DietaryTag.LOW_CARB: "Low-Carb",
    DietaryTag.KETO: "Keto",
}
