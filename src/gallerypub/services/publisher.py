"""Gallery publishing pipeline.

One run publishes one gallery, strictly in this order:

1. check the run and storage configuration
2. list the source images (fatal if there are none)
3. empty the thumbnail directory, remove earlier annotated originals and purge
   the gallery's metadata rows
4. process every image, record it and delete its source file
5. replace everything under ``galleries/<gallery>/`` in object storage

Any error aborts the run where it happened; nothing is retried.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import cast

from ..config import GalleryConfig, validate_storage_settings
from ..errors import NoImagesFoundError
from ..logging_config import get_logger, log_context, log_performance
from ..models.image_record import ImageRecord
from .image_processor import NUMBERED_OUTPUT_PATTERN, GalleryImageProcessor, ProcessedImage
from .metadata import MetadataService, get_metadata_service
from .storage import StorageService, get_storage_service

logger = get_logger(__name__)


@dataclass
class PublishResult:
    """Summary of a publishing run."""

    gallery: str
    images: list[ProcessedImage] = field(default_factory=list)
    source_files: list[Path] = field(default_factory=list)
    records_deleted: int = 0
    outputs_deleted: int = 0
    blobs_deleted: list[str] = field(default_factory=list)
    blobs_uploaded: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def processed_count(self) -> int:
        return len(self.images)


class GalleryPublisher:
    """Publishes a local folder of images as a gallery."""

    def __init__(
        self,
        config: GalleryConfig,
        storage_service: StorageService | None = None,
        metadata_service: MetadataService | None = None,
        image_processor: GalleryImageProcessor | None = None,
    ) -> None:
        """
        Args:
            config: Run configuration
            storage_service: Object storage adapter (created from the environment when omitted)
            metadata_service: Metadata store adapter (created from the environment when omitted
                and the metadata store is enabled)
            image_processor: Image processor (built from the config when omitted)
        """
        self.config = config
        self._storage_service = storage_service
        self._metadata_service = metadata_service
        self.image_processor = image_processor or GalleryImageProcessor(
            with_watermark=config.with_watermark,
            watermark_thumbnail=config.watermark_thumbnail,
            filename_prefix=config.filename_prefix,
        )

    @property
    def storage_service(self) -> StorageService:
        if self._storage_service is None:
            self._storage_service = get_storage_service()
        return self._storage_service

    @property
    def metadata_service(self) -> MetadataService:
        if self._metadata_service is None:
            self._metadata_service = get_metadata_service()
        return self._metadata_service

    def close(self) -> None:
        """Release the metadata store connection if one was opened."""
        if self._metadata_service is not None:
            self._metadata_service.close()

    def find_source_images(self) -> list[Path]:
        """
        List the images to publish: top-level files with an accepted extension, by name.
        """
        return sorted(
            path
            for path in self.config.source_path.iterdir()
            if path.is_file() and path.suffix.lower() in self.config.extensions
        )

    def clear_thumbnails(self) -> int:
        """
        Delete every file below the thumbnail directory, creating it if needed.

        Returns:
            int: Number of deleted files
        """
        thumbnails_path = cast(Path, self.config.thumbnails_path)
        thumbnails_path.mkdir(parents=True, exist_ok=True)

        deleted = 0
        for path in thumbnails_path.rglob("*"):
            if path.is_file():
                path.unlink()
                deleted += 1

        logger.debug("thumbnails_cleared", path=str(thumbnails_path), deleted=deleted)
        return deleted

    def clear_previous_outputs(self) -> int:
        """
        Delete annotated originals left in the output directory by earlier runs.

        Only top-level files named like numbered outputs (``[prefix-]NNN-ref.webp``)
        are removed.

        Returns:
            int: Number of deleted files
        """
        output_path = cast(Path, self.config.output_path)
        if not output_path.is_dir():
            return 0

        deleted = 0
        for path in output_path.iterdir():
            if path.is_file() and NUMBERED_OUTPUT_PATTERN.match(path.name):
                path.unlink()
                deleted += 1

        logger.debug("previous_outputs_cleared", path=str(output_path), deleted=deleted)
        return deleted

    def publish(self, dry_run: bool = False) -> PublishResult:
        """
        Run the whole pipeline for the configured gallery.

        Args:
            dry_run: Only list the files that would be processed

        Returns:
            PublishResult: What was processed, deleted and uploaded

        Raises:
            ConfigurationError: If storage settings are missing
            ValidationError: If the run configuration is invalid
            NoImagesFoundError: If the source directory holds no images
            ImageProcessingError: If an image cannot be processed
            StorageError: If object storage fails
            DatabaseError: If the metadata store fails
        """
        start_time = datetime.now()
        config = self.config
        config.validate()
        if not dry_run and self._storage_service is None:
            validate_storage_settings()

        result = PublishResult(gallery=config.gallery_name, dry_run=dry_run)
        result.source_files = self.find_source_images()

        if not result.source_files:
            raise NoImagesFoundError(
                f"No images found in {config.source_path}",
                details={"source_path": str(config.source_path), "extensions": list(config.extensions)},
            )

        with log_context(logger, gallery=config.gallery_name) as log:
            log.info("publish_started", source=str(config.source_path), images=len(result.source_files))

            if dry_run:
                for path in result.source_files:
                    log.info("dry_run_candidate", file=str(path))
                return result

            self.clear_thumbnails()
            result.outputs_deleted = self.clear_previous_outputs()

            if config.with_metadata_store:
                result.records_deleted = self.metadata_service.delete_many(config.gallery_name)

            for sequence_number, source in enumerate(result.source_files, start=1):
                processed = self.image_processor.process(
                    source,
                    config.thumbnails_path,
                    sequence_number=sequence_number,
                    output_dir=config.output_path,
                )
                result.images.append(processed)

                if config.with_metadata_store:
                    self.metadata_service.insert_one(
                        ImageRecord.create_new(
                            filename=processed.filename,
                            ref=processed.reference_code,
                            gallery=config.gallery_name,
                        )
                    )

                if config.delete_sources:
                    source.unlink()

            self.storage_service.ensure_bucket_exists()
            result.blobs_deleted = self.storage_service.purge_gallery(config.gallery_name)
            # Kept sources stay local when they share the output directory
            result.blobs_uploaded = self.storage_service.upload_folder(
                config.output_path,
                config.gallery_name,
                exclude_suffixes=() if config.delete_sources else config.extensions,
            )

            duration = (datetime.now() - start_time).total_seconds()
            log_performance("publish_gallery", duration, gallery=config.gallery_name, images=result.processed_count)
            log.info(
                "publish_completed",
                images=result.processed_count,
                records_deleted=result.records_deleted,
                outputs_deleted=result.outputs_deleted,
                blobs_deleted=len(result.blobs_deleted),
                blobs_uploaded=len(result.blobs_uploaded),
            )

        return result
