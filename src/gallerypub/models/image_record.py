"""
Image record model for gallerypub.

An ImageRecord is the metadata row written once per published image. It is
never updated; a gallery's records are deleted in bulk before the gallery is
published again.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

REFERENCE_CODE_PATTERN = re.compile(r"^[0-9a-f]{5}$")


@dataclass
class ImageRecord:
    """
    Metadata for one published image.

    ``ref`` is the reference code stamped on the image; it joins the record
    to the picture a visitor is looking at.
    """

    id: str
    filename: str
    ref: str
    gallery: str
    created_at: datetime

    @classmethod
    def create_new(cls, filename: str, ref: str, gallery: str, created_at: datetime | None = None) -> "ImageRecord":
        """
        Create a new ImageRecord with a generated ID and current timestamp.

        Args:
            filename: Name of the published file (e.g. ``attie-001-3fa9c.webp``)
            ref: Reference code of the image
            gallery: Gallery the image belongs to
            created_at: Creation time (defaults to now, UTC)

        Returns:
            New ImageRecord instance
        """
        return cls(
            id=str(uuid.uuid4()),
            filename=filename,
            ref=ref,
            gallery=gallery,
            created_at=created_at or datetime.now(UTC),
        )

    def to_dict(self) -> dict:
        """Convert the record to a dictionary for storage."""
        return {
            "id": self.id,
            "filename": self.filename,
            "ref": self.ref,
            "gallery": self.gallery,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImageRecord":
        """
        Create an ImageRecord from a dictionary (e.g., a database row).

        Args:
            data: Dictionary containing record fields

        Returns:
            ImageRecord instance
        """
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return cls(
            id=data["id"],
            filename=data["filename"],
            ref=data["ref"],
            gallery=data["gallery"],
            created_at=created_at,
        )

    def validate(self) -> bool:
        """
        Validate the record.

        Returns:
            True if valid, False otherwise
        """
        if not self.id or not self.filename or not self.gallery:
            return False

        if not self.ref or not REFERENCE_CODE_PATTERN.match(self.ref):
            return False

        return True
