"""
Unit tests for configuration management.
"""

from pathlib import Path

import pytest

from gallerypub.config import (
    Config,
    GalleryConfig,
    get_metadata_db_path,
    get_thumbnail_max_size,
    get_watermark_font_size,
    validate_storage_settings,
)
from gallerypub.errors import ConfigurationError, ValidationError


class TestConfig:
    """Test cases for Config class."""

    def test_get_default(self, monkeypatch):
        monkeypatch.delenv("GALLERY_TEST_VALUE", raising=False)

        assert Config().get("GALLERY_TEST_VALUE", "fallback") == "fallback"

    def test_get_casts(self, monkeypatch):
        monkeypatch.setenv("GALLERY_TEST_INT", "42")
        monkeypatch.setenv("GALLERY_TEST_BOOL", "yes")

        config = Config()

        assert config.get("GALLERY_TEST_INT", cast_type=int) == 42
        assert config.get("GALLERY_TEST_BOOL", cast_type=bool) is True

    def test_failed_cast_returns_default(self, monkeypatch):
        monkeypatch.setenv("GALLERY_TEST_INT", "many")

        assert Config().get("GALLERY_TEST_INT", 7, int) == 7

    def test_empty_value_counts_as_unset(self, monkeypatch):
        monkeypatch.setenv("GALLERY_TEST_VALUE", "")

        assert Config().get("GALLERY_TEST_VALUE", "fallback") == "fallback"

    def test_values_are_cached(self, monkeypatch):
        monkeypatch.setenv("GALLERY_TEST_VALUE", "first")
        config = Config()
        config.get("GALLERY_TEST_VALUE")

        monkeypatch.setenv("GALLERY_TEST_VALUE", "second")

        assert config.get("GALLERY_TEST_VALUE") == "first"
        config.clear_cache()
        assert config.get("GALLERY_TEST_VALUE") == "second"

    def test_get_required_missing(self, monkeypatch):
        monkeypatch.delenv("GALLERY_TEST_VALUE", raising=False)

        with pytest.raises(ConfigurationError, match="Required configuration 'GALLERY_TEST_VALUE' not found"):
            Config().get_required("GALLERY_TEST_VALUE")

    def test_getters(self, monkeypatch):
        monkeypatch.setenv("GALLERY_DB_PATH", "/data/gallery.duckdb")
        monkeypatch.setenv("WATERMARK_FONT_SIZE", "48")
        monkeypatch.delenv("THUMBNAIL_MAX_SIZE", raising=False)

        assert get_metadata_db_path() == "/data/gallery.duckdb"
        assert get_watermark_font_size() == 48
        assert get_thumbnail_max_size() is None

    def test_validate_storage_settings(self, storage_env):
        validate_storage_settings()

    def test_validate_storage_settings_missing(self, monkeypatch):
        monkeypatch.delenv("GCS_BUCKET", raising=False)
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "test-project")

        with pytest.raises(ConfigurationError, match="missing: GCS_BUCKET") as exc_info:
            validate_storage_settings()

        assert exc_info.value.details == {"missing": ["GCS_BUCKET"]}


class TestGalleryConfig:
    """Test cases for GalleryConfig."""

    def test_defaults(self, tmp_path: Path):
        config = GalleryConfig(source_path=str(tmp_path), gallery_name="senior-night")

        assert config.source_path == tmp_path
        assert config.thumbnails_path == tmp_path / "thumbnails"
        assert config.output_path == tmp_path
        assert config.with_watermark is True
        assert config.with_metadata_store is True
        assert config.extensions == (".png", ".jpg", ".jpeg")
        assert config.blob_prefix == "galleries/senior-night/"

    def test_thumbnails_default_inside_output(self, tmp_path: Path):
        config = GalleryConfig(source_path=tmp_path / "src", gallery_name="g", output_path=tmp_path / "site")

        assert config.thumbnails_path == tmp_path / "site" / "thumbnails"

    def test_extensions_are_normalised(self, tmp_path: Path):
        config = GalleryConfig(source_path=tmp_path, gallery_name="g", extensions=("PNG", ".JPG"))

        assert config.extensions == (".png", ".jpg")

    def test_validate(self, tmp_path: Path):
        GalleryConfig(source_path=tmp_path, gallery_name="dwest-basketball-2025").validate()

    @pytest.mark.parametrize("name", ["", "a/b", "../up", "-leading", "with space"])
    def test_invalid_gallery_names(self, tmp_path: Path, name):
        with pytest.raises(ValidationError, match="Invalid gallery name"):
            GalleryConfig(source_path=tmp_path, gallery_name=name).validate()

    def test_missing_source_directory(self, tmp_path: Path):
        with pytest.raises(ValidationError, match="Source directory not found"):
            GalleryConfig(source_path=tmp_path / "missing", gallery_name="g").validate()

    def test_webp_sources_rejected(self, tmp_path: Path):
        with pytest.raises(ValidationError, match="WEBP"):
            GalleryConfig(source_path=tmp_path, gallery_name="g", extensions=(".webp",)).validate()

    @pytest.mark.parametrize("thumbnails", [".", ".."])
    def test_thumbnails_path_must_not_contain_other_directories(self, tmp_path: Path, thumbnails):
        source = tmp_path / "site"
        source.mkdir()

        config = GalleryConfig(source_path=source, gallery_name="g", thumbnails_path=source / thumbnails)

        with pytest.raises(ValidationError) as exc_info:
            config.validate()

        assert exc_info.value.code == "invalid_thumbnails_path"

    def test_thumbnails_path_outside_output(self, tmp_path: Path):
        config = GalleryConfig(source_path=tmp_path, gallery_name="g", thumbnails_path=tmp_path.parent / "elsewhere")

        with pytest.raises(ValidationError, match="must be inside the output directory") as exc_info:
            config.validate()

        assert exc_info.value.code == "invalid_thumbnails_path"

    def test_nested_thumbnails_path(self, tmp_path: Path):
        GalleryConfig(source_path=tmp_path, gallery_name="g", thumbnails_path=tmp_path / "thumbs" / "small").validate()
