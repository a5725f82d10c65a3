"""
Services module for gallerypub.

- GalleryImageProcessor: reference code stamping and square thumbnails
- StorageService: Google Cloud Storage operations
- MetadataService: DuckDB image records
- GalleryPublisher: the publishing pipeline tying them together
"""

from .image_processor import (
    GalleryImageProcessor,
    ProcessedImage,
    SquareCrop,
    compute_square_crop,
    generate_reference_code,
)
from .metadata import MetadataService, get_metadata_service
from .publisher import GalleryPublisher, PublishResult
from .storage import StorageService, gallery_blob_name, get_storage_service

__all__ = [
    "GalleryImageProcessor",
    "ProcessedImage",
    "SquareCrop",
    "compute_square_crop",
    "generate_reference_code",
    "MetadataService",
    "get_metadata_service",
    "GalleryPublisher",
    "PublishResult",
    "StorageService",
    "gallery_blob_name",
    "get_storage_service",
]
