"""
Database schema definitions for gallerypub.

This module contains the SQL that creates the image records table.
"""

IMAGES_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS images (
    id TEXT PRIMARY KEY,
    filename TEXT NOT NULL,
    ref TEXT NOT NULL,
    gallery TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

IMAGES_TABLE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_images_gallery ON images(gallery);",
    "CREATE INDEX IF NOT EXISTS idx_images_ref ON images(ref);",
]

REQUIRED_COLUMNS = {"id", "filename", "ref", "gallery", "created_at"}


def get_schema_statements() -> list[str]:
    """
    Get all database schema creation statements.

    Returns:
        List of SQL statements to create tables and indexes
    """
    return [IMAGES_TABLE_SCHEMA] + IMAGES_TABLE_INDEXES


def validate_schema_compatibility() -> bool:
    """
    Check that every ImageRecord field has a column in the schema.

    Returns:
        True if schema is compatible, False otherwise
    """
    schema_lower = IMAGES_TABLE_SCHEMA.lower()
    return all(column in schema_lower for column in REQUIRED_COLUMNS)
