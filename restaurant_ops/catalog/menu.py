"""Menu queries for the chatbot and dashboard, plus bulk reordering."""

import asyncio
import logging
from collections.abc import Sequence

from restaurant_ops.models.enums import CATEGORY_DISPLAY_NAMES, MenuCategory
from restaurant_ops.models.menu import (
    MenuFilters,
    MenuItem,
    MenuItemUpdate,
    MenuSection,
    ReorderResult,
    SortOrderUpdate,
)
from restaurant_ops.storage.database import DatabaseManager
from restaurant_ops.storage.resilience import RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)


def category_display_name(category: str) -> str:
    """Human-readable name for a category; unknown categories pass through."""
    try:
        return CATEGORY_DISPLAY_NAMES[MenuCategory(category)]
    except ValueError:
        return category


def group_by_category(items: Sequence[MenuItem]) -> list[MenuSection]:
    """Group items into sections, keeping the order categories first appear."""
    grouped: dict[str, list[MenuItem]] = {}
    for item in items:
        grouped.setdefault(item.category, []).append(item)
    return [
        MenuSection(
            category=category,
            category_display=category_display_name(category),
            items=section_items,
        )
        for category, section_items in grouped.items()
    ]


async def menu_by_category(
    db: DatabaseManager, restaurant_id: str, only_available: bool = True
) -> list[MenuSection]:
    items = await db.list_menu_items(
        MenuFilters(
            restaurant_id=restaurant_id,
            is_available=True if only_available else None,
        )
    )
    return group_by_category(items)


async def search_menu(
    db: DatabaseManager, restaurant_id: str, query: str
) -> list[MenuItem]:
    """Available items whose name or description contains *query*."""
    return await db.list_menu_items(
        MenuFilters(restaurant_id=restaurant_id, search=query, is_available=True)
    )


async def menu_for_dietary_requirement(
    db: DatabaseManager,
    restaurant_id: str,
    dietary_tag: str,
    exclude_allergens: list[str] | None = None,
) -> list[MenuItem]:
    """Available items tagged *dietary_tag* and free of *exclude_allergens*."""
    return await db.list_menu_items(
        MenuFilters(
            restaurant_id=restaurant_id,
            dietary_tag=dietary_tag,
            exclude_allergen=exclude_allergens or None,
            is_available=True,
        )
    )


async def toggle_availability(
    db: DatabaseManager, item_id: str, is_available: bool
) -> MenuItem:
    return await db.update_menu_item(item_id, MenuItemUpdate(is_available=is_available))


async def reorder_menu_items(
    db: DatabaseManager, updates: Sequence[SortOrderUpdate]
) -> ReorderResult:
    """Write new sort orders for several items at once.

    Each write is dispatched as its own task and succeeds or fails on its
    own. There is no rollback: after a partial failure the successful items
    keep their new position.
    """
    outcomes = await asyncio.gather(
        *(
            db.update("menu_items", u.id, {"sort_order": u.sort_order})
            for u in updates
        ),
        return_exceptions=True,
    )

    result = ReorderResult(success=True)
    for update, outcome in zip(updates, outcomes, strict=True):
        if isinstance(outcome, RecordNotFoundError):
            result.failed[update.id] = "Menu item not found"
        elif isinstance(outcome, StoreError):
            result.failed[update.id] = str(outcome)
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            result.updated.append(update.id)

    if result.failed:
        result.success = False
        logger.warning(
            "Reorder finished with %d of %d writes failed",
            len(result.failed), len(updates),
        )
    return result
