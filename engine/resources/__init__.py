"""
Resource loading.

Exports:
- Database: jsonschema-validated static data
"""

from engine.resources.database import Database, DEFAULT_CATEGORIES

__all__ = ["Database", "DEFAULT_CATEGORIES"]
