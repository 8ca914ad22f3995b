import logging

from fastmcp import FastMCP

from restaurant_ops.catalog import menu as catalog
from restaurant_ops.models.enums import (
    ALLERGEN_DISPLAY_NAMES,
    DIETARY_TAG_DISPLAY_NAMES,
)
from restaurant_ops.models.menu import (
    MenuItem,
    MenuItemCreate,
    MenuItemUpdate,
    SortOrderUpdate,
)
from restaurant_ops.server import get_db, resolve_restaurant_id
from restaurant_ops.tools.error_messages import NO_RESTAURANT_MESSAGE, safe_tool_wrapper

logger = logging.getLogger(__name__)


def _split(text: str | None) -> list[str]:
    if not text:
        return []
    return [t.strip().lower() for t in text.split(",") if t.strip()]


def _label(value: str, names: dict) -> str:
    return names.get(value, value)


def _format_item(item: MenuItem) -> str:
    line = f"{item.name} ${item.price:.2f}"
    if not item.is_available:
        line += " (unavailable)"
    if item.description:
        line += f"\n     {item.description}"
    if item.dietary_tags:
        tags = ", ".join(_label(t, DIETARY_TAG_DISPLAY_NAMES) for t in item.dietary_tags)
        line += f"\n     {tags}"
    if item.allergens:
        allergens = ", ".join(_label(a, ALLERGEN_DISPLAY_NAMES) for a in item.allergens)
        line += f"\n     Contains: {allergens}"
    return line


def register_menu_tools(mcp: FastMCP) -> None:
    """Register menu management and lookup tools on the MCP server."""

    @mcp.tool
    async def add_menu_item(
        name: str,
        category: str,
        price: float,
        restaurant_id: str | None = None,
        description: str | None = None,
        subcategory: str | None = None,
        allergens: str | None = None,
        dietary_tags: str | None = None,
        is_available: bool = True,
        sort_order: int = 0,
    ) -> str:
        """Add a dish or drink to a restaurant's menu.

        Args:
            name: Item name.
            category: appetizer, main, dessert, drink, special or other.
            price: Price in the restaurant's currency.
            restaurant_id: Restaurant (defaults to the configured one).
            description: Short description.
            subcategory: Optional finer grouping, e.g. "pasta".
            allergens: Comma-separated, e.g. "dairy, gluten".
            dietary_tags: Comma-separated, e.g. "vegetarian, gluten-free".
            is_available: Whether guests can order it now.
            sort_order: Position within its category (lower comes first).

        Returns:
            Confirmation with the new item ID.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE
        if price < 0:
            return "Price cannot be negative."

        async def _add() -> str:
            item = await get_db().create_menu_item(
                MenuItemCreate(
                    restaurant_id=rid,
                    name=name,
                    category=category.strip().lower(),
                    price=price,
                    description=description,
                    subcategory=subcategory,
                    allergens=_split(allergens),
                    dietary_tags=_split(dietary_tags),
                    is_available=is_available,
                    sort_order=sort_order,
                )
            )
            return (
                f"Added '{item.name}' to {catalog.category_display_name(item.category)} "
                f"(ID: {item.id})."
            )

        return await safe_tool_wrapper(_add)

    @mcp.tool
    async def update_menu_item(
        item_id: str,
        name: str | None = None,
        category: str | None = None,
        price: float | None = None,
        description: str | None = None,
        allergens: str | None = None,
        dietary_tags: str | None = None,
        sort_order: int | None = None,
    ) -> str:
        """Edit a menu item. Only the given fields change.

        Args:
            item_id: ID of the menu item.
            name: New name.
            category: New category.
            price: New price.
            description: New description.
            allergens: Replacement comma-separated allergen list.
            dietary_tags: Replacement comma-separated dietary tags.
            sort_order: New position within its category.

        Returns:
            Confirmation of the update.
        """
        if price is not None and price < 0:
            return "Price cannot be negative."
        fields: dict = {
            "name": name,
            "category": category.strip().lower() if category else None,
            "price": price,
            "description": description,
            "allergens": _split(allergens) if allergens is not None else None,
            "dietary_tags": _split(dietary_tags) if dietary_tags is not None else None,
            "sort_order": sort_order,
        }
        patch = MenuItemUpdate(**{k: v for k, v in fields.items() if v is not None})

        async def _update() -> str:
            item = await get_db().update_menu_item(item_id, patch)
            return f"Updated '{item.name}'."

        return await safe_tool_wrapper(_update)

    @mcp.tool
    async def delete_menu_item(item_id: str) -> str:
        """Remove an item from the menu permanently.

        Args:
            item_id: ID of the menu item.

        Returns:
            Confirmation of the deletion.
        """

        async def _delete() -> str:
            if not await get_db().delete_menu_item(item_id):
                return f"Menu item '{item_id}' was not found."
            return f"Deleted menu item '{item_id}'."

        return await safe_tool_wrapper(_delete)

    @mcp.tool
    async def toggle_menu_item(item_id: str, is_available: bool) -> str:
        """Mark a menu item as available or sold out.

        Args:
            item_id: ID of the menu item.
            is_available: True to offer it again, False to hide it from guests.

        Returns:
            The item's new availability.
        """

        async def _toggle() -> str:
            item = await catalog.toggle_availability(get_db(), item_id, is_available)
            state = "available" if item.is_available else "unavailable"
            return f"'{item.name}' is now {state}."

        return await safe_tool_wrapper(_toggle)

    @mcp.tool
    async def show_menu(
        restaurant_id: str | None = None, include_unavailable: bool = False
    ) -> str:
        """Show the menu grouped by category.

        Args:
            restaurant_id: Restaurant (defaults to the configured one).
            include_unavailable: Also list items that are currently sold out.

        Returns:
            The menu, section by section.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE

        async def _show() -> str:
            db = get_db()
            sections = await catalog.menu_by_category(
                db, rid, only_available=not include_unavailable
            )
            if not sections:
                return "The menu is empty."
            settings = await db.get_restaurant_settings(rid)
            lines: list[str] = []
            if settings:
                lines.append(settings.custom_messages.menu_intro)
            for section in sections:
                lines.append(f"\n{section.category_display}")
                for item in section.items:
                    lines.append(f"  - {_format_item(item)}")
            return "\n".join(lines).strip()

        return await safe_tool_wrapper(_show)

    @mcp.tool
    async def search_menu(query: str, restaurant_id: str | None = None) -> str:
        """Find available menu items by name or description.

        Args:
            query: Text to look for, e.g. "salmon".
            restaurant_id: Restaurant (defaults to the configured one).

        Returns:
            Matching items.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE

        async def _search() -> str:
            items = await catalog.search_menu(get_db(), rid, query)
            if not items:
                return f"No menu items match '{query}'."
            lines = [f"Items matching '{query}':"]
            lines.extend(f"  - {_format_item(item)}" for item in items)
            return "\n".join(lines)

        return await safe_tool_wrapper(_search)

    @mcp.tool
    async def dietary_options(
        dietary_tag: str,
        exclude_allergens: str | None = None,
        restaurant_id: str | None = None,
    ) -> str:
        """Find available items suitable for a dietary requirement.

        Args:
            dietary_tag: e.g. "vegan", "gluten-free", "halal".
            exclude_allergens: Comma-separated allergens to avoid, e.g. "nuts, dairy".
            restaurant_id: Restaurant (defaults to the configured one).

        Returns:
            Matching items, or a note that none fit.
        """
        rid = resolve_restaurant_id(restaurant_id)
        if not rid:
            return NO_RESTAURANT_MESSAGE
        tag = dietary_tag.strip().lower()
        avoid = _split(exclude_allergens)

        async def _options() -> str:
            items = await catalog.menu_for_dietary_requirement(get_db(), rid, tag, avoid)
            label = _label(tag, DIETARY_TAG_DISPLAY_NAMES)
            if not items:
                return f"No {label} options found."
            lines = [f"{label} options:"]
            lines.extend(f"  - {_format_item(item)}" for item in items)
            return "\n".join(lines)

        return await safe_tool_wrapper(_options)

    @mcp.tool
    async def reorder_menu(order: list[SortOrderUpdate]) -> str:
        """Set the display position of several menu items at once.
        Items are updated independently; one failure does not undo the others.

        Args:
            order: List of {"id": ..., "sort_order": ...} pairs.

        Returns:
            How many items moved and which ones failed.
        """

        async def _reorder() -> str:
            result = await catalog.reorder_menu_items(get_db(), order)
            if result.success:
                return f"Reordered {len(result.updated)} menu item(s)."
            lines = [
                f"Reordered {len(result.updated)} of {len(order)} menu item(s). Failed:"
            ]
            lines.extend(f"  {item_id}: {msg}" for item_id, msg in result.failed.items())
            return "\n".join(lines)

        return await safe_tool_wrapper(_reorder)
