"""
Unit tests for ImageRecord model.
"""

from datetime import UTC, datetime

from gallerypub.models.image_record import ImageRecord


class TestImageRecord:
    """Test cases for ImageRecord class."""

    def test_create_new(self):
        created_at = datetime(2025, 2, 14, 19, 30, 0)

        record = ImageRecord.create_new("attie-001-3fa9c.webp", "3fa9c", "senior-night", created_at=created_at)

        assert record.filename == "attie-001-3fa9c.webp"
        assert record.ref == "3fa9c"
        assert record.gallery == "senior-night"
        assert record.created_at == created_at
        assert len(record.id) == 36  # UUID4 length

    def test_create_new_with_defaults(self):
        before_creation = datetime.now(UTC)

        record = ImageRecord.create_new("a.webp", "3fa9c", "g")

        assert before_creation <= record.created_at <= datetime.now(UTC)

    def test_ids_are_unique(self):
        assert ImageRecord.create_new("a.webp", "3fa9c", "g").id != ImageRecord.create_new("a.webp", "3fa9c", "g").id

    def test_to_dict(self):
        record = ImageRecord(
            id="id-1", filename="a.webp", ref="3fa9c", gallery="g", created_at=datetime(2025, 1, 1, 12, 0, 0)
        )

        assert record.to_dict() == {
            "id": "id-1",
            "filename": "a.webp",
            "ref": "3fa9c",
            "gallery": "g",
            "created_at": "2025-01-01T12:00:00",
        }

    def test_from_dict_with_string_timestamp(self):
        record = ImageRecord.from_dict(
            {"id": "id-1", "filename": "a.webp", "ref": "3fa9c", "gallery": "g", "created_at": "2025-01-01T12:00:00"}
        )

        assert record.created_at == datetime(2025, 1, 1, 12, 0, 0)

    def test_from_dict_with_datetime(self):
        created_at = datetime(2025, 1, 1, 12, 0, 0)

        record = ImageRecord.from_dict(
            {"id": "id-1", "filename": "a.webp", "ref": "3fa9c", "gallery": "g", "created_at": created_at}
        )

        assert record.created_at is created_at

    def test_validate(self):
        assert ImageRecord.create_new("a.webp", "3fa9c", "g").validate() is True

    def test_validate_rejects_bad_reference_codes(self):
        for ref in ("", "3FA9C", "3fa9", "3fa9cc", "ghijk"):
            assert ImageRecord.create_new("a.webp", ref, "g").validate() is False

    def test_validate_requires_filename_and_gallery(self):
        assert ImageRecord.create_new("", "3fa9c", "g").validate() is False
        assert ImageRecord.create_new("a.webp", "3fa9c", "").validate() is False
