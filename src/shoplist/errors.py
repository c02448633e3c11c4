"""Exceptions raised by the shoplist package."""

from __future__ import annotations


class ShoplistError(Exception):
    """Base class for shoplist errors."""


class InvalidArgumentError(ShoplistError, ValueError):
    """A required argument was missing or malformed."""


class IdSpaceExhaustedError(ShoplistError, RuntimeError):
    """No free id could be drawn within the configured number of attempts."""


class SchemaVersionError(ShoplistError, RuntimeError):
    """The database file carries a schema version this package cannot read."""


__all__ = [
    "ShoplistError",
    "InvalidArgumentError",
    "IdSpaceExhaustedError",
    "SchemaVersionError",
]
