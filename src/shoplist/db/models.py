"""SQLAlchemy models representing the shoplist persistence tables."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Float, ForeignKey, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

SCHEMA_VERSION = 1


class Base(DeclarativeBase):
    """Declarative base class for shoplist ORM models."""


class UnitORM(Base):
    """Measurement unit referenced by products."""

    __tablename__ = "Units"
    __table_args__ = {"sqlite_with_rowid": False}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)


class ProductORM(Base):
    """Product row; ``unit_id`` is NULL when the product has no unit."""

    __tablename__ = "Products"
    __table_args__ = {"sqlite_with_rowid": False}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    defaultvalue: Mapped[float] = mapped_column(Float, nullable=False)
    unit_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("Units.id", ondelete="CASCADE", onupdate="RESTRICT"),
        nullable=True,
    )


class ShoppingListORM(Base):
    """Shopping list header row."""

    __tablename__ = "ShoppingLists"
    __table_args__ = {"sqlite_with_rowid": False}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)


class ProductInShoppingListORM(Base):
    """Quantity of one product on one shopping list."""

    __tablename__ = "ProductsInShoppingLists"
    __table_args__ = {"sqlite_with_rowid": False}

    shoppinglist_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ShoppingLists.id", ondelete="CASCADE", onupdate="RESTRICT"),
        primary_key=True,
        autoincrement=False,
    )
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("Products.id", ondelete="CASCADE", onupdate="RESTRICT"),
        primary_key=True,
        autoincrement=False,
    )
    value: Mapped[float] = mapped_column(Float, nullable=False)


__all__ = [
    "SCHEMA_VERSION",
    "Base",
    "UnitORM",
    "ProductORM",
    "ShoppingListORM",
    "ProductInShoppingListORM",
]
