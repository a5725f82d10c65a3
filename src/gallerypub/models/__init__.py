"""
Models module for gallerypub.

This module contains data models and schemas:
- ImageRecord: Data class for per-image metadata rows
- Database schema and DatabaseManager for the DuckDB metadata store
"""

from .database import DatabaseManager, get_database_manager
from .image_record import ImageRecord
from .schema import get_schema_statements, validate_schema_compatibility

__all__ = [
    "ImageRecord",
    "DatabaseManager",
    "get_database_manager",
    "get_schema_statements",
    "validate_schema_compatibility",
]
