from datetime import datetime

from pydantic import BaseModel, ConfigDict


class MenuItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    restaurant_id: str
    category: str
    subcategory: str | None = None
    name: str
    description: str | None = None
    price: float
    image_url: str | None = None
    is_available: bool = True
    allergens: list[str] = []
    dietary_tags: list[str] = []
    sort_order: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MenuItemCreate(BaseModel):
    restaurant_id: str
    category: str
    subcategory: str | None = None
    name: str
    description: str | None = None
    price: float
    image_url: str | None = None
    is_available: bool = True
    allergens: list[str] = []
    dietary_tags: list[str] = []
    sort_order: int = 0


class MenuItemUpdate(BaseModel):
    category: str | None = None
    subcategory: str | None = None
    name: str | None = None
    description: str | None = None
    price: float | None = None
    image_url: str | None = None
    is_available: bool | None = None
    allergens: list[str] | None = None
    dietary_tags: list[str] | None = None
    sort_order: int | None = None


class MenuFilters(BaseModel):
    restaurant_id: str
    category: str | list[str] | None = None
    dietary_tag: str | list[str] | None = None
    exclude_allergen: str | list[str] | None = None
    is_available: bool | None = None
    search: str | None = None


class MenuSection(BaseModel):
    category: str
    category_display: str
    items: list[MenuItem]


class SortOrderUpdate(BaseModel):
    id: str
    sort_order: int


class ReorderResult(BaseModel):
    success: bool
    updated: list[str] = []
    failed: dict[str, str] = {}
