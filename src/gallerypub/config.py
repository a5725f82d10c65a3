"""Configuration management for gallerypub.

Runtime settings (bucket, project, font, thumbnail options) come from
environment variables, which the CLI may first load from a ``.env`` file.
The per-run choices (which folder, which gallery, which features) live in
:class:`GalleryConfig` and are passed explicitly to the publisher.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigurationError, ValidationError
from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_EXTENSIONS = (".png", ".jpg", ".jpeg")

# Gallery names end up in object keys and metadata rows
GALLERY_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class Config:
    """Centralized configuration management using environment variables."""

    def __init__(self):
        """Initialize configuration."""
        self._cache = {}

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Get configuration value from environment variables.

        Args:
            key: Configuration key
            default: Default value if not found
            cast_type: Type to cast the value to (str, int, bool, float)

        Returns:
            Configuration value cast to the specified type
        """
        cache_key = f"{key}:{cast_type.__name__}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        value = os.getenv(key)

        # Empty strings count as unset
        if value is None or value == "":
            value = default

        if value is not None:
            try:
                if cast_type is bool:
                    if isinstance(value, str):
                        value = value.lower() in ("true", "1", "yes", "on")  # type: ignore[assignment]
                    else:
                        value = bool(value)  # type: ignore[assignment]
                elif cast_type is not str:
                    value = cast_type(value)
            except (ValueError, TypeError) as e:
                logger.warning("config_cast_failed", key=key, cast_type=cast_type.__name__, error=str(e))
                value = default

        self._cache[cache_key] = value
        return value

    def get_required(self, key: str, cast_type: type = str) -> Any:
        """Get required configuration value.

        Args:
            key: Configuration key
            cast_type: Type to cast the value to

        Returns:
            Configuration value

        Raises:
            ConfigurationError: If the required configuration is not found
        """
        value = self.get(key, cast_type=cast_type)
        if value is None:
            raise ConfigurationError(
                f"Required configuration '{key}' not found",
                details={"key": key},
            )
        return value

    def clear_cache(self):
        """Clear configuration cache."""
        self._cache.clear()


_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_env(key: str, default: Any = None, cast_type: type = str) -> Any:
    """Get environment variable with type casting."""
    return get_config().get(key, default, cast_type)


def get_required_env(key: str, cast_type: type = str) -> Any:
    """Get required environment variable.

    Raises:
        ConfigurationError: If the required environment variable is not found
    """
    return get_config().get_required(key, cast_type)


def get_project_id() -> str:
    """Get Google Cloud project ID."""
    return str(get_required_env("GOOGLE_CLOUD_PROJECT"))


def get_gcs_bucket() -> str:
    """Get the bucket galleries are published to."""
    return str(get_required_env("GCS_BUCKET"))


def get_gcs_region() -> str:
    """Get the location used when the bucket has to be created."""
    return str(get_env("GCS_REGION", "asia-northeast1"))


def get_metadata_db_path() -> str:
    """Get the DuckDB file holding image records."""
    return str(get_env("GALLERY_DB_PATH", "gallery.duckdb"))


def get_watermark_font() -> str:
    return str(get_env("WATERMARK_FONT", "DejaVuSans-Bold.ttf"))


def get_watermark_font_size() -> int:
    return int(get_env("WATERMARK_FONT_SIZE", 36, int))


def get_watermark_margin() -> int:
    return int(get_env("WATERMARK_MARGIN", 20, int))


def get_thumbnail_max_size() -> int | None:
    """Get the optional thumbnail downscale limit; None keeps the full crop."""
    return get_env("THUMBNAIL_MAX_SIZE", None, int)


def get_thumbnail_quality() -> int:
    return int(get_env("THUMBNAIL_QUALITY", 80, int))


def validate_storage_settings() -> None:
    """Fail fast when the object storage settings are missing.

    Raises:
        ConfigurationError: If GCS_BUCKET or GOOGLE_CLOUD_PROJECT is unset
    """
    missing = [key for key in ("GCS_BUCKET", "GOOGLE_CLOUD_PROJECT") if get_env(key) is None]
    if missing:
        raise ConfigurationError(
            f"Object storage is not configured, missing: {', '.join(missing)}",
            details={"missing": missing},
        )


@dataclass
class GalleryConfig:
    """Everything one publishing run needs to know about its gallery."""

    source_path: Path
    gallery_name: str
    thumbnails_path: Path | None = None
    output_path: Path | None = None
    with_watermark: bool = True
    with_metadata_store: bool = True
    filename_prefix: str | None = None
    extensions: tuple[str, ...] = field(default=DEFAULT_EXTENSIONS)
    delete_sources: bool = True
    watermark_thumbnail: bool = False

    def __post_init__(self) -> None:
        self.source_path = Path(self.source_path)
        if self.output_path is None:
            self.output_path = self.source_path
        else:
            self.output_path = Path(self.output_path)
        # Thumbnails live inside the uploaded tree
        if self.thumbnails_path is None:
            self.thumbnails_path = self.output_path / "thumbnails"
        else:
            self.thumbnails_path = Path(self.thumbnails_path)
        self.extensions = tuple(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in self.extensions)

    @property
    def blob_prefix(self) -> str:
        """Object storage prefix owned by this gallery."""
        return f"galleries/{self.gallery_name}/"

    def validate(self) -> None:
        """
        Check the run configuration before anything is touched.

        Raises:
            ValidationError: If the gallery name, the source directory or the
                thumbnail directory is unusable
        """
        if not self.gallery_name or not GALLERY_NAME_PATTERN.match(self.gallery_name):
            raise ValidationError(
                f"Invalid gallery name '{self.gallery_name}'",
                code="invalid_gallery_name",
                details={"gallery_name": self.gallery_name},
            )

        if not self.source_path.is_dir():
            raise ValidationError(
                f"Source directory not found: {self.source_path}",
                code="source_directory_missing",
                details={"source_path": str(self.source_path)},
            )

        if ".webp" in self.extensions:
            # Annotated originals are written as .webp next to the sources
            raise ValidationError(
                "WEBP cannot be used as a source extension",
                code="invalid_extension_filter",
                details={"extensions": list(self.extensions)},
            )

        thumbnails = Path(self.thumbnails_path).resolve()
        source = self.source_path.resolve()
        output = Path(self.output_path).resolve()

        # The thumbnail directory is emptied on every run
        if source.is_relative_to(thumbnails) or output.is_relative_to(thumbnails):
            raise ValidationError(
                f"Thumbnail directory {self.thumbnails_path} would contain the source or output directory",
                code="invalid_thumbnails_path",
                details={
                    "thumbnails_path": str(self.thumbnails_path),
                    "source_path": str(self.source_path),
                    "output_path": str(self.output_path),
                },
            )

        if not thumbnails.is_relative_to(output):
            raise ValidationError(
                f"Thumbnail directory {self.thumbnails_path} must be inside the output directory {self.output_path}",
                code="invalid_thumbnails_path",
                details={"thumbnails_path": str(self.thumbnails_path), "output_path": str(self.output_path)},
            )
