"""Entity value types held by the store."""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, Field

INVALID_ID = -1
"""Reserved id meaning "no id" or "no reference" (0xFFFFFFFF as a signed 32-bit value)."""

ID_MIN = -(2**31)
ID_MAX = 2**31 - 1


class Unit(BaseModel):
    """Measurement unit such as "kg" or "l"."""

    id: int = Field(default=INVALID_ID)
    text: str


class Product(BaseModel):
    """Product that can be placed on shopping lists."""

    id: int = Field(default=INVALID_ID)
    title: str
    default_value: float = Field(default=1.0, description="Quantity used when adding to a list.")
    unit_id: int = Field(default=INVALID_ID, description="Referenced unit, INVALID_ID for none.")

    @property
    def has_unit(self) -> bool:
        return self.unit_id != INVALID_ID


class ShoppingList(BaseModel):
    """Named list mapping product ids to quantities."""

    id: int = Field(default=INVALID_ID)
    title: str
    entries: Dict[int, float] = Field(default_factory=dict)


__all__ = ["INVALID_ID", "ID_MIN", "ID_MAX", "Unit", "Product", "ShoppingList"]
