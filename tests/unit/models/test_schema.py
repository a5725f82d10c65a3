"""
Unit tests for schema module.
"""

from gallerypub.models.schema import IMAGES_TABLE_SCHEMA, get_schema_statements, validate_schema_compatibility


def test_schema_statements_start_with_table():
    statements = get_schema_statements()

    assert statements[0] == IMAGES_TABLE_SCHEMA
    assert all("images" in statement for statement in statements)


def test_schema_is_compatible():
    assert validate_schema_compatibility() is True
