"""The closed set of Satisfactory items, generated from items.json."""

import json
import os
from enum import Enum

_DATA_DIR = os.path.dirname(os.path.abspath(__file__))

with open(os.path.join(_DATA_DIR, "items.json"), "r", encoding="utf-8") as f:
    _ITEMS: dict[str, str] = json.load(f)

# Member names are the UPPER_SNAKE keys of items.json, values are display names
Item = Enum("Item", _ITEMS, module=__name__, qualname="Item")
Item.__doc__ = "a Satisfactory item, identified by its display name"


def item_name(item: Item) -> str:
    """Get the display name of an item.

    Args:
        item: the item

    Returns:
        display name such as "Iron Ore"
    """
    return item.value


def item_by_name(name: str) -> Item:
    """Resolve a display name (or member name) to an Item.

    Precondition:
        name is a non-empty string

    Postcondition:
        returns the Item whose display name or member name equals name

    Args:
        name: display name such as "Iron Ore", or member name such as "IRON_ORE"

    Returns:
        matching Item

    Raises:
        KeyError: if no item has that name
    """
    try:
        return Item(name)
    except ValueError:
        pass
    try:
        return Item[name]
    except KeyError as exc:
        raise KeyError(f"Unknown item name: {name}") from exc


def all_items() -> list[Item]:
    """Get every item in declaration order."""
    return list(Item)
