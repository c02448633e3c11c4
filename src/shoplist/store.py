"""In-memory entity cache mirrored to the shoplist database."""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, TypeVar

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.expression import Executable

from shoplist.config import get_settings
from shoplist.db.models import ProductInShoppingListORM, ProductORM, ShoppingListORM, UnitORM
from shoplist.db.repository import Database, open_database
from shoplist.errors import IdSpaceExhaustedError, InvalidArgumentError
from shoplist.models import ID_MAX, ID_MIN, INVALID_ID, Product, ShoppingList, Unit

logger = logging.getLogger(__name__)

_units = UnitORM.__table__
_products = ProductORM.__table__
_lists = ShoppingListORM.__table__
_list_items = ProductInShoppingListORM.__table__

EntityT = TypeVar("EntityT", Unit, Product, ShoppingList)


def generate_id(
    existing: Iterable[Unit | Product | ShoppingList],
    *,
    rng: Optional[random.Random] = None,
    max_attempts: int = 10_000,
) -> int:
    """
    Draw a random signed 32-bit id that is neither INVALID_ID nor used by ``existing``.

    Raises IdSpaceExhaustedError after ``max_attempts`` collisions.
    """
    generator = rng or random.Random(time.monotonic_ns())
    taken = {entity.id for entity in existing}
    for _ in range(max_attempts):
        candidate = generator.randint(ID_MIN, ID_MAX)
        if candidate == INVALID_ID or candidate in taken:
            continue
        return candidate
    raise IdSpaceExhaustedError(
        f"No free id found after {max_attempts} attempts ({len(taken)} ids in use)"
    )


def _require(value: object, message: str) -> None:
    if value is None:
        raise InvalidArgumentError(message)


def _find_index(entities: Sequence[EntityT], entity_id: int) -> Optional[int]:
    for index, entity in enumerate(entities):
        if entity.id == entity_id:
            return index
    return None


class EntityStore:
    """
    Cache of units, products and shopping lists kept consistent with a database.

    Mutators write to the database first and only then touch the in-memory mirror,
    so a failed write leaves the cache unchanged. Every getter hands out deep copies.
    Instances are not thread-safe.
    """

    def __init__(
        self,
        *,
        max_id_attempts: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._units: List[Unit] = []
        self._products: List[Product] = []
        self._lists: List[ShoppingList] = []
        self._loaded = False
        self._owned_db: Optional[Database] = None
        self._max_id_attempts = (
            get_settings().id_max_attempts if max_id_attempts is None else max_id_attempts
        )
        self._rng = rng or random.Random(time.monotonic_ns())

    # ------------------------------------------------------------------ lifecycle
    @property
    def loaded(self) -> bool:
        return self._loaded

    def open(self, location: Path | str, name: Optional[str] = None) -> Database:
        """Open (or create) a database file, load it and keep the handle for ``close``."""

        db = open_database(location, name)
        try:
            self.load(db)
        except Exception:
            db.close()
            raise
        if self._owned_db is not None:
            self._owned_db.close()
        self._owned_db = db
        return db

    def close(self) -> None:
        """Close the handle opened by ``open`` and drop the cached entities."""

        if self._owned_db is not None:
            self._owned_db.close()
            self._owned_db = None
        self._units = []
        self._products = []
        self._lists = []
        self._loaded = False

    def __enter__(self) -> "EntityStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def load(self, db: Database) -> Database:
        """Replace the in-memory collections with the database contents."""

        _require(db, "Database handle must not be None.")

        with db.session_scope() as session:
            units = [
                Unit(id=row.id, text=row.title)
                for row in session.execute(select(UnitORM)).scalars()
            ]
            products = [
                Product(
                    id=row.id,
                    title=row.title,
                    default_value=row.defaultvalue,
                    unit_id=INVALID_ID if row.unit_id is None else row.unit_id,
                )
                for row in session.execute(select(ProductORM)).scalars()
            ]
            lists = {
                row.id: ShoppingList(id=row.id, title=row.title)
                for row in session.execute(select(ShoppingListORM)).scalars()
            }
            items = session.execute(
                select(ProductInShoppingListORM).order_by(
                    ProductInShoppingListORM.shoppinglist_id,
                    ProductInShoppingListORM.product_id,
                )
            ).scalars()
            for item in items:
                owner = lists.get(item.shoppinglist_id)
                if owner is not None:
                    owner.entries[item.product_id] = item.value

        self._units = units
        self._products = products
        self._lists = list(lists.values())
        self._loaded = True
        logger.info(
            "Loaded %s unit(s), %s product(s), %s list(s) from %s",
            len(units),
            len(products),
            len(self._lists),
            db.path,
        )
        return db

    # ------------------------------------------------------------------ helpers
    def _next_id(self, existing: Iterable[Unit | Product | ShoppingList]) -> int:
        return generate_id(existing, rng=self._rng, max_attempts=self._max_id_attempts)

    def _persist(
        self,
        db: Database,
        statement: Executable,
        action: str,
        entity: str,
        entity_id: int,
    ) -> Optional[int]:
        """Run one statement in its own transaction; return the rowcount or None on failure."""

        try:
            with db.session_scope() as session:
                return session.execute(statement).rowcount
        except (SQLAlchemyError, OverflowError) as exc:
            logger.warning(
                "Failed to %s %s %s: %s",
                action,
                entity,
                entity_id,
                exc,
                extra={"entity": entity, "entity_id": entity_id},
            )
            return None

    # ------------------------------------------------------------------ create
    def create_unit(self, text: str, db: Database) -> Optional[Unit]:
        """Create and register a unit. Returns None if the database insert failed."""

        if text is None or db is None:
            raise InvalidArgumentError("Unit text and database handle must not be None.")

        unit = Unit(id=self._next_id(self._units), text=text)
        statement = insert(_units).values(id=unit.id, title=unit.text)
        if self._persist(db, statement, "insert", "unit", unit.id) != 1:
            return None

        self._units.append(unit)
        logger.debug("Created unit %s (%s)", unit.id, unit.text)
        return unit.model_copy(deep=True)

    def create_product(
        self,
        title: str,
        default_value: float,
        unit_id: int,
        db: Database,
    ) -> Optional[Product]:
        """
        Create and register a product.

        ``unit_id`` may be INVALID_ID for a product without unit. Returns None if the
        database insert failed, e.g. because ``unit_id`` references no stored unit.
        """
        if title is None or db is None:
            raise InvalidArgumentError("Title and database handle must not be None.")

        product = Product(
            id=self._next_id(self._products),
            title=title,
            default_value=default_value,
            unit_id=unit_id,
        )
        statement = insert(_products).values(
            id=product.id,
            title=product.title,
            defaultvalue=product.default_value,
            unit_id=None if unit_id == INVALID_ID else unit_id,
        )
        if self._persist(db, statement, "insert", "product", product.id) != 1:
            return None

        self._products.append(product)
        logger.debug("Created product %s (%s)", product.id, product.title)
        return product.model_copy(deep=True)

    def create_shopping_list(self, title: str, db: Database) -> Optional[ShoppingList]:
        """Create and register an empty shopping list. Returns None if saving failed."""

        if title is None or db is None:
            raise InvalidArgumentError("Title and database handle must not be None.")

        shopping_list = ShoppingList(id=self._next_id(self._lists), title=title)
        statement = insert(_lists).values(id=shopping_list.id, title=shopping_list.title)
        if self._persist(db, statement, "insert", "shopping list", shopping_list.id) != 1:
            return None

        self._lists.append(shopping_list)
        logger.debug("Created shopping list %s (%s)", shopping_list.id, shopping_list.title)
        return shopping_list.model_copy(deep=True)

    # ------------------------------------------------------------------ read
    def get_all_units(self) -> List[Unit]:
        return [unit.model_copy(deep=True) for unit in self._units]

    def get_all_products(self) -> List[Product]:
        return [product.model_copy(deep=True) for product in self._products]

    def get_all_shopping_lists(self) -> List[ShoppingList]:
        return [shopping_list.model_copy(deep=True) for shopping_list in self._lists]

    @staticmethod
    def _get_by_id(entities: Sequence[EntityT], entity_id: int) -> Optional[EntityT]:
        if entity_id == INVALID_ID:
            return None
        index = _find_index(entities, entity_id)
        if index is None:
            return None
        return entities[index].model_copy(deep=True)

    def get_unit_by_id(self, unit_id: int) -> Optional[Unit]:
        return self._get_by_id(self._units, unit_id)

    def get_product_by_id(self, product_id: int) -> Optional[Product]:
        return self._get_by_id(self._products, product_id)

    def get_shopping_list_by_id(self, list_id: int) -> Optional[ShoppingList]:
        return self._get_by_id(self._lists, list_id)

    def get_count_of_shopping_lists(self) -> int:
        return len(self._lists)

    # ------------------------------------------------------------------ update
    def update_unit(self, unit: Unit, db: Database) -> bool:
        """Persist a changed unit. Returns False if it is unknown or the write failed."""

        if db is None or unit is None or unit.text is None:
            raise InvalidArgumentError("Unit, its text and the database handle must not be None.")

        index = _find_index(self._units, unit.id)
        if index is None:
            return False

        statement = update(_units).where(_units.c.id == unit.id).values(title=unit.text)
        if not self._persist(db, statement, "update", "unit", unit.id):
            return False

        self._units[index] = unit.model_copy(deep=True)
        logger.debug("Updated unit %s", unit.id)
        return True

    def update_product(self, product: Product, db: Database) -> bool:
        """Persist a changed product. Returns False if it is unknown or the write failed."""

        if db is None or product is None or product.title is None:
            raise InvalidArgumentError(
                "Product, its title and the database handle must not be None."
            )

        index = _find_index(self._products, product.id)
        if index is None:
            return False

        statement = (
            update(_products)
            .where(_products.c.id == product.id)
            .values(
                title=product.title,
                defaultvalue=product.default_value,
                unit_id=None if product.unit_id == INVALID_ID else product.unit_id,
            )
        )
        if not self._persist(db, statement, "update", "product", product.id):
            return False

        self._products[index] = product.model_copy(deep=True)
        logger.debug("Updated product %s", product.id)
        return True

    def update_shopping_list(self, shopping_list: ShoppingList, db: Database) -> bool:
        """
        Persist a changed list title and replace all of its entries in one transaction.

        Returns False (leaving the cache untouched) if the list is unknown, the title
        update touched no row, or any entry could not be written.
        """
        if (
            db is None
            or shopping_list is None
            or shopping_list.title is None
            or shopping_list.entries is None
        ):
            raise InvalidArgumentError(
                "Shopping list, its title, its entries and the database handle must not be None."
            )

        index = _find_index(self._lists, shopping_list.id)
        if index is None:
            return False

        list_id = shopping_list.id
        rows = [
            {"shoppinglist_id": list_id, "product_id": int(product_id), "value": float(value)}
            for product_id, value in shopping_list.entries.items()
        ]
        try:
            with db.session_scope() as session:
                renamed = session.execute(
                    update(_lists).where(_lists.c.id == list_id).values(title=shopping_list.title)
                )
                if renamed.rowcount == 0:
                    logger.warning("Shopping list %s vanished from the database", list_id)
                    return False
                session.execute(delete(_list_items).where(_list_items.c.shoppinglist_id == list_id))
                if rows:
                    session.execute(insert(_list_items), rows)
        except (SQLAlchemyError, OverflowError) as exc:
            logger.warning(
                "Failed to update shopping list %s: %s",
                list_id,
                exc,
                extra={"entity": "shopping list", "entity_id": list_id},
            )
            return False

        self._lists[index] = shopping_list.model_copy(deep=True)
        logger.debug("Updated shopping list %s with %s entries", list_id, len(rows))
        return True

    # ------------------------------------------------------------------ delete
    def _drop_products(self, product_ids: set[int]) -> None:
        if not product_ids:
            return
        self._products = [p for p in self._products if p.id not in product_ids]
        for shopping_list in self._lists:
            for product_id in product_ids:
                shopping_list.entries.pop(product_id, None)

    def delete_unit(self, unit: Optional[Unit], db: Database) -> None:
        """Delete a unit together with every product that references it."""

        if db is None:
            raise InvalidArgumentError("Database must be an open and writable handle.")
        if unit is None:
            return

        statement = delete(_units).where(_units.c.id == unit.id)
        if self._persist(db, statement, "delete", "unit", unit.id) is None:
            return

        dependents = {p.id for p in self._products if p.unit_id == unit.id}
        self._drop_products(dependents)
        self._units = [u for u in self._units if u.id != unit.id]
        logger.debug("Deleted unit %s and %s dependent product(s)", unit.id, len(dependents))

    def delete_product(self, product: Optional[Product], db: Database) -> None:
        """Delete a product and remove it from every shopping list."""

        if db is None:
            raise InvalidArgumentError("Database must be an open and writable handle.")
        if product is None:
            return

        statement = delete(_products).where(_products.c.id == product.id)
        if self._persist(db, statement, "delete", "product", product.id) is None:
            return

        self._drop_products({product.id})
        logger.debug("Deleted product %s", product.id)

    def delete_shopping_list(self, shopping_list: Optional[ShoppingList], db: Database) -> None:
        """Delete a shopping list and its entries."""

        if db is None:
            raise InvalidArgumentError("Database must be an open and writable handle.")
        if shopping_list is None:
            return

        statement = delete(_lists).where(_lists.c.id == shopping_list.id)
        if self._persist(db, statement, "delete", "shopping list", shopping_list.id) is None:
            return

        self._lists = [lst for lst in self._lists if lst.id != shopping_list.id]
        logger.debug("Deleted shopping list %s", shopping_list.id)


__all__ = ["EntityStore", "generate_id"]
