"""
Metadata service for gallery image records.

Each published image gets one row in the ``images`` table of a DuckDB file.
Rows are only ever inserted or deleted in bulk by gallery name: publishing a
gallery again first removes every row it wrote last time.

Usage:
    with MetadataService("gallery.duckdb") as service:
        service.delete_many("summer-2025")
        service.insert_one(ImageRecord.create_new("attie-001-3fa9c.webp", "3fa9c", "summer-2025"))
"""

from datetime import UTC, datetime
from typing import Any

import duckdb

from ..config import get_metadata_db_path
from ..errors import DatabaseError, ValidationError
from ..logging_config import get_logger
from ..models.database import DatabaseManager, get_database_manager
from ..models.image_record import ImageRecord

logger = get_logger(__name__)

RECORD_COLUMNS = "id, filename, ref, gallery, created_at"


def _to_naive_utc(value: datetime) -> datetime:
    """DuckDB TIMESTAMP columns hold naive values; store them as UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class MetadataService:
    """
    Document-store style access to image records backed by DuckDB.

    Attributes:
        db_path: DuckDB database file
    """

    def __init__(self, db_path: str | None = None):
        """
        Initialize the metadata service.

        Args:
            db_path: DuckDB file (defaults to GALLERY_DB_PATH)
        """
        self.db_path = db_path or get_metadata_db_path()
        self._db_manager: DatabaseManager | None = None

        logger.info("metadata_service_initialized", db_path=self.db_path)

    @property
    def db_manager(self) -> DatabaseManager:
        """Get database manager, opening the database on first use."""
        if self._db_manager is None:
            try:
                self._db_manager = get_database_manager(self.db_path)
            except (duckdb.Error, RuntimeError, OSError) as e:
                raise DatabaseError(
                    f"Failed to open metadata database '{self.db_path}': {e}",
                    code="database_open_failed",
                    details={"db_path": self.db_path},
                    original_exception=e,
                ) from e
        return self._db_manager

    def close(self) -> None:
        """Close the underlying connection."""
        if self._db_manager is not None:
            self._db_manager.close()
            self._db_manager = None

    def __enter__(self) -> "MetadataService":
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    def _execute(self, operation: str, query: str, parameters: list[Any] | None = None) -> list[tuple]:
        try:
            return self.db_manager.execute_query(query, parameters)
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to {operation.replace('_', ' ')}: {e}",
                code=f"{operation}_failed",
                details={"operation": operation, "db_path": self.db_path},
                original_exception=e,
            ) from e

    def delete_many(self, gallery: str) -> int:
        """
        Delete every record of a gallery.

        Args:
            gallery: Gallery name

        Returns:
            int: Number of deleted records

        Raises:
            DatabaseError: If the deletion fails
        """
        rows = self._execute("delete_records", "DELETE FROM images WHERE gallery = ? RETURNING id", [gallery])

        logger.info("gallery_records_deleted", gallery=gallery, deleted=len(rows))
        return len(rows)

    def insert_one(self, record: ImageRecord) -> None:
        """
        Insert one image record.

        Raises:
            ValidationError: If the record is invalid
            DatabaseError: If the insert fails
        """
        if not record.validate():
            raise ValidationError(
                f"Invalid image record for '{record.filename}'",
                code="invalid_image_record",
                details=record.to_dict(),
            )

        self._execute(
            "insert_record",
            f"INSERT INTO images ({RECORD_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
            [record.id, record.filename, record.ref, record.gallery, _to_naive_utc(record.created_at)],
        )
        logger.debug("image_record_inserted", gallery=record.gallery, filename=record.filename, ref=record.ref)

    def count(self, gallery: str) -> int:
        """Count the records of a gallery."""
        rows = self._execute("count_records", "SELECT COUNT(*) FROM images WHERE gallery = ?", [gallery])
        return int(rows[0][0])

    def list_records(self, gallery: str) -> list[ImageRecord]:
        """
        Get a gallery's records ordered by filename.

        Returns:
            list[ImageRecord]: Records of the gallery
        """
        rows = self._execute(
            "list_records",
            f"SELECT {RECORD_COLUMNS} FROM images WHERE gallery = ? ORDER BY filename",
            [gallery],
        )
        return [self._row_to_record(row) for row in rows]

    def find_by_ref(self, ref: str) -> ImageRecord | None:
        """
        Look up an image by its reference code.

        Codes are random and not guaranteed unique; the most recent match wins.
        """
        rows = self._execute(
            "find_record",
            f"SELECT {RECORD_COLUMNS} FROM images WHERE ref = ? ORDER BY created_at DESC LIMIT 1",
            [ref],
        )
        return self._row_to_record(rows[0]) if rows else None

    @staticmethod
    def _row_to_record(row: tuple) -> ImageRecord:
        return ImageRecord.from_dict(dict(zip(["id", "filename", "ref", "gallery", "created_at"], row)))


def get_metadata_service(db_path: str | None = None) -> MetadataService:
    """
    Create a metadata service for the configured database.

    Args:
        db_path: DuckDB file (defaults to GALLERY_DB_PATH)

    Returns:
        MetadataService instance
    """
    return MetadataService(db_path=db_path)
