"""Command-line interface for shoplist."""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, NoReturn, Optional, Tuple

import typer

from shoplist.config import get_settings
from shoplist.db.repository import Database
from shoplist.logging_utils import configure_logging
from shoplist.models import INVALID_ID
from shoplist.store import EntityStore

app = typer.Typer(help="Manage units, products and shopping lists stored in SQLite.")

DB_OPTION = typer.Option(None, "--db", help="Database file (defaults to SHOPLIST_DATABASE_PATH).")


@app.callback()
def _setup() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)


@contextmanager
def _open_store(db_path: Optional[Path]) -> Generator[Tuple[EntityStore, Database], None, None]:
    store = EntityStore()
    db = store.open(db_path or get_settings().database_path)
    try:
        yield store, db
    finally:
        store.close()


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command()
def summary(db_path: Optional[Path] = DB_OPTION) -> None:
    """Print how many entities are stored."""

    with _open_store(db_path) as (store, _):
        typer.echo(f"units: {len(store.get_all_units())}")
        typer.echo(f"products: {len(store.get_all_products())}")
        typer.echo(f"lists: {store.get_count_of_shopping_lists()}")


@app.command()
def units(db_path: Optional[Path] = DB_OPTION) -> None:
    """List all units."""

    with _open_store(db_path) as (store, _):
        for unit in store.get_all_units():
            typer.echo(f"{unit.id}\t{unit.text}")


@app.command()
def products(db_path: Optional[Path] = DB_OPTION) -> None:
    """List all products with their default quantity and unit."""

    with _open_store(db_path) as (store, _):
        for product in store.get_all_products():
            unit = store.get_unit_by_id(product.unit_id)
            unit_text = unit.text if unit is not None else ""
            typer.echo(f"{product.id}\t{product.title}\t{product.default_value:g}\t{unit_text}")


@app.command("lists")
def list_shopping_lists(db_path: Optional[Path] = DB_OPTION) -> None:
    """List all shopping lists with their entry count."""

    with _open_store(db_path) as (store, _):
        for shopping_list in store.get_all_shopping_lists():
            typer.echo(f"{shopping_list.id}\t{shopping_list.title}\t{len(shopping_list.entries)}")


@app.command("add-unit")
def add_unit(text: str, db_path: Optional[Path] = DB_OPTION) -> None:
    """Create a unit such as "kg"."""

    with _open_store(db_path) as (store, db):
        unit = store.create_unit(text, db)
        if unit is None:
            _fail(f"Could not save unit '{text}'.")
        typer.echo(unit.id)


@app.command("add-product")
def add_product(
    title: str,
    default_value: float = typer.Option(1.0, "--default-value", help="Quantity used by set-entry."),
    unit_id: int = typer.Option(INVALID_ID, "--unit-id", help="Unit id; omit for no unit."),
    db_path: Optional[Path] = DB_OPTION,
) -> None:
    """Create a product."""

    with _open_store(db_path) as (store, db):
        if unit_id != INVALID_ID and store.get_unit_by_id(unit_id) is None:
            _fail(f"Unit {unit_id} not found.")
        product = store.create_product(title, default_value, unit_id, db)
        if product is None:
            _fail(f"Could not save product '{title}'.")
        typer.echo(product.id)


@app.command("add-list")
def add_list(title: str, db_path: Optional[Path] = DB_OPTION) -> None:
    """Create an empty shopping list."""

    with _open_store(db_path) as (store, db):
        shopping_list = store.create_shopping_list(title, db)
        if shopping_list is None:
            _fail(f"Could not save list '{title}'.")
        typer.echo(shopping_list.id)


@app.command("set-entry")
def set_entry(
    list_id: int = typer.Option(..., "--list-id"),
    product_id: int = typer.Option(..., "--product-id"),
    quantity: Optional[float] = typer.Option(
        None, "--quantity", help="Defaults to the product's default value."
    ),
    db_path: Optional[Path] = DB_OPTION,
) -> None:
    """Put a product on a list or change its quantity."""

    with _open_store(db_path) as (store, db):
        shopping_list = store.get_shopping_list_by_id(list_id)
        if shopping_list is None:
            _fail(f"List {list_id} not found.")
        product = store.get_product_by_id(product_id)
        if product is None:
            _fail(f"Product {product_id} not found.")
        shopping_list.entries[product.id] = quantity if quantity is not None else product.default_value
        if not store.update_shopping_list(shopping_list, db):
            _fail(f"Could not update list {list_id}.")
        typer.echo(f"{product.title}: {shopping_list.entries[product.id]:g}")


@app.command("remove-entry")
def remove_entry(
    list_id: int = typer.Option(..., "--list-id"),
    product_id: int = typer.Option(..., "--product-id"),
    db_path: Optional[Path] = DB_OPTION,
) -> None:
    """Take a product off a list."""

    with _open_store(db_path) as (store, db):
        shopping_list = store.get_shopping_list_by_id(list_id)
        if shopping_list is None:
            _fail(f"List {list_id} not found.")
        if shopping_list.entries.pop(product_id, None) is None:
            _fail(f"Product {product_id} is not on list {list_id}.")
        if not store.update_shopping_list(shopping_list, db):
            _fail(f"Could not update list {list_id}.")


@app.command("show-list")
def show_list(
    list_id: int = typer.Option(..., "--list-id"),
    as_json: bool = typer.Option(False, "--json", help="Emit the list as JSON."),
    db_path: Optional[Path] = DB_OPTION,
) -> None:
    """Print the entries of a list."""

    with _open_store(db_path) as (store, _):
        shopping_list = store.get_shopping_list_by_id(list_id)
        if shopping_list is None:
            _fail(f"List {list_id} not found.")

        if as_json:
            typer.echo(json.dumps(shopping_list.model_dump(mode="json"), sort_keys=True))
            return

        typer.echo(shopping_list.title)
        for product_id, quantity in shopping_list.entries.items():
            product = store.get_product_by_id(product_id)
            title = product.title if product is not None else f"#{product_id}"
            unit = store.get_unit_by_id(product.unit_id) if product is not None else None
            suffix = f" {unit.text}" if unit is not None else ""
            typer.echo(f"  {title}: {quantity:g}{suffix}")


@app.command("delete-unit")
def delete_unit(unit_id: int = typer.Option(..., "--unit-id"), db_path: Optional[Path] = DB_OPTION) -> None:
    """Delete a unit and every product using it."""

    with _open_store(db_path) as (store, db):
        unit = store.get_unit_by_id(unit_id)
        if unit is None:
            _fail(f"Unit {unit_id} not found.")
        store.delete_unit(unit, db)


@app.command("delete-product")
def delete_product(
    product_id: int = typer.Option(..., "--product-id"), db_path: Optional[Path] = DB_OPTION
) -> None:
    """Delete a product and remove it from all lists."""

    with _open_store(db_path) as (store, db):
        product = store.get_product_by_id(product_id)
        if product is None:
            _fail(f"Product {product_id} not found.")
        store.delete_product(product, db)


@app.command("delete-list")
def delete_list(list_id: int = typer.Option(..., "--list-id"), db_path: Optional[Path] = DB_OPTION) -> None:
    """Delete a shopping list."""

    with _open_store(db_path) as (store, db):
        shopping_list = store.get_shopping_list_by_id(list_id)
        if shopping_list is None:
            _fail(f"List {list_id} not found.")
        store.delete_shopping_list(shopping_list, db)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the ``shoplist`` console script."""
    app(prog_name="shoplist", args=argv)


if __name__ == "__main__":
    main()
