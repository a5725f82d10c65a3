"""Storage service for Google Cloud Storage operations."""

from pathlib import Path, PurePosixPath

from google.api_core.exceptions import PreconditionFailed
from google.cloud import storage  # type: ignore[attr-defined]
from google.cloud.exceptions import GoogleCloudError, NotFound

from ..config import get_gcs_bucket, get_gcs_region, get_project_id
from ..errors import StorageError
from ..logging_config import get_logger

logger = get_logger(__name__)

GALLERY_ROOT = "galleries"

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".gif": "image/gif",
    ".json": "application/json",
    ".txt": "text/plain",
}


def gallery_prefix(gallery: str) -> str:
    """Object prefix owned by a gallery, always ending in a slash."""
    return f"{GALLERY_ROOT}/{gallery}/"


def gallery_blob_name(gallery: str, relative_path: str | Path) -> str:
    """
    Build the object name of a file published in a gallery.

    Args:
        gallery: Gallery name
        relative_path: File path relative to the published folder

    Returns:
        str: ``galleries/<gallery>/<relative path with forward slashes>``
    """
    parts = PurePosixPath(str(relative_path).replace("\\", "/")).parts
    if not parts or ".." in parts or parts[0] == "/":
        raise StorageError(
            f"Invalid relative path for gallery object: '{relative_path}'",
            code="invalid_blob_path",
            details={"gallery": gallery, "relative_path": str(relative_path)},
        )
    return gallery_prefix(gallery) + "/".join(parts)


class StorageService:
    """Service for Google Cloud Storage operations."""

    def __init__(
        self, bucket_name: str | None = None, project_id: str | None = None, region: str | None = None
    ) -> None:
        """
        Initialize the storage service.

        Args:
            bucket_name: GCS bucket name (defaults to GCS_BUCKET environment variable)
            project_id: GCP project ID (defaults to GOOGLE_CLOUD_PROJECT environment variable)
            region: Location used if the bucket has to be created (defaults to GCS_REGION)

        Raises:
            ConfigurationError: If the bucket or project is not configured
            StorageError: If the client cannot be created
        """
        self.bucket_name = bucket_name or get_gcs_bucket()
        self.project_id = project_id or get_project_id()
        self.region = region or get_gcs_region()

        try:
            self.client = storage.Client(project=self.project_id)
            self.bucket = self.client.bucket(self.bucket_name)
            logger.info(
                "storage_service_initialized",
                bucket=self.bucket_name,
                project_id=self.project_id,
                region=self.region,
            )
        except Exception as e:
            raise StorageError(f"Failed to initialize GCS client: {e}", original_exception=e) from e

    def ensure_bucket_exists(self) -> bool:
        """
        Make sure the configured bucket exists, creating it when missing.

        Returns:
            bool: True if the bucket was created, False if it already existed

        Raises:
            StorageError: If the bucket cannot be checked or created
        """
        try:
            if self.bucket.exists():
                return False

            self.bucket = self.client.create_bucket(self.bucket, location=self.region)
            logger.info("bucket_created", bucket=self.bucket_name, region=self.region)
            return True

        except GoogleCloudError as e:
            raise StorageError(
                f"Failed to ensure bucket '{self.bucket_name}' exists: {e}", original_exception=e
            ) from e

    def list_blobs(self, prefix: str) -> list[str]:
        """
        List object names under a prefix.

        Args:
            prefix: Object name prefix

        Returns:
            list[str]: Object names

        Raises:
            StorageError: If listing fails
        """
        try:
            names = [blob.name for blob in self.client.list_blobs(self.bucket, prefix=prefix)]
            logger.debug("blobs_listed", prefix=prefix, count=len(names))
            return names

        except GoogleCloudError as e:
            raise StorageError(f"Failed to list objects under '{prefix}': {e}", original_exception=e) from e

    def delete_blob(self, name: str) -> None:
        """
        Delete one object. A missing object is not an error.

        Raises:
            StorageError: If deletion fails
        """
        try:
            self.bucket.blob(name).delete()
            logger.info("blob_deleted", blob=name)

        except NotFound:
            logger.warning("blob_not_found_for_deletion", blob=name)
        except GoogleCloudError as e:
            raise StorageError(f"Failed to delete '{name}': {e}", original_exception=e) from e

    def upload_blob(self, name: str, content: bytes | str | Path, overwrite: bool = True) -> None:
        """
        Upload an object from bytes or from a local file.

        Args:
            name: Object name
            content: Raw bytes, or the path of a local file
            overwrite: Replace an existing object; when False an existing object is left alone

        Raises:
            StorageError: If the upload fails, or the object exists and overwrite is False
        """
        blob = self.bucket.blob(name)
        content_type = self._get_content_type(name)
        # Generation 0 only matches when no live object exists
        precondition = {} if overwrite else {"if_generation_match": 0}

        try:
            if isinstance(content, bytes):
                blob.upload_from_string(content, content_type=content_type, **precondition)
                size = len(content)
            else:
                with open(content, "rb") as file_obj:
                    blob.upload_from_file(file_obj, content_type=content_type, **precondition)
                size = Path(content).stat().st_size

            logger.info("blob_uploaded", blob=name, size=size, content_type=content_type)

        except PreconditionFailed as e:
            raise StorageError(
                f"Object '{name}' already exists and overwrite is disabled",
                code="blob_exists",
                details={"blob": name},
                original_exception=e,
            ) from e
        except GoogleCloudError as e:
            raise StorageError(f"Failed to upload '{name}': {e}", original_exception=e) from e
        except OSError as e:
            raise StorageError(f"Failed to read '{content}' for upload: {e}", original_exception=e) from e

    def purge_gallery(self, gallery: str) -> list[str]:
        """
        Delete every object published under a gallery.

        Returns:
            list[str]: Names of the deleted objects
        """
        names = self.list_blobs(gallery_prefix(gallery))
        for name in names:
            self.delete_blob(name)

        logger.info("gallery_purged", gallery=gallery, deleted=len(names))
        return names

    def upload_folder(
        self, folder: str | Path, gallery: str, exclude_suffixes: tuple[str, ...] = ()
    ) -> list[str]:
        """
        Upload every file below a folder into a gallery.

        Args:
            folder: Local folder; subdirectories are included
            gallery: Gallery name
            exclude_suffixes: Lowercase file extensions that are not uploaded

        Returns:
            list[str]: Names of the uploaded objects
        """
        folder = Path(folder)
        uploaded = []

        files = (p for p in folder.rglob("*") if p.is_file() and p.suffix.lower() not in exclude_suffixes)
        for path in sorted(files):
            name = gallery_blob_name(gallery, path.relative_to(folder).as_posix())
            self.upload_blob(name, path, overwrite=True)
            uploaded.append(name)

        logger.info("gallery_uploaded", gallery=gallery, folder=str(folder), uploaded=len(uploaded))
        return uploaded

    def _get_content_type(self, filename: str) -> str:
        """Determine content type from the file extension."""
        return CONTENT_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")


_storage_service: StorageService | None = None


def get_storage_service(bucket_name: str | None = None, project_id: str | None = None) -> StorageService:
    """
    Get the global storage service instance.

    Args:
        bucket_name: GCS bucket name (optional, uses environment variable if not provided)
        project_id: GCP project ID (optional, uses environment variable if not provided)

    Returns:
        StorageService: Global storage service instance
    """
    global _storage_service

    if _storage_service is None:
        _storage_service = StorageService(bucket_name=bucket_name, project_id=project_id)

    return _storage_service
