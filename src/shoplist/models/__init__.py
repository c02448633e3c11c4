"""Pydantic models defining the cached entities."""

from shoplist.models.entities import (
    ID_MAX,
    ID_MIN,
    INVALID_ID,
    Product,
    ShoppingList,
    Unit,
)

__all__ = [
    "ID_MAX",
    "ID_MIN",
    "INVALID_ID",
    "Product",
    "ShoppingList",
    "Unit",
]
