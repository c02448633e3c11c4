"""
Shoplist entity cache package.

The package keeps units, products and shopping lists mirrored between memory and a
SQLite database and exposes create/read/update/delete helpers on top of them.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
