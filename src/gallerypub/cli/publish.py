import os
import sys

from dotenv import load_dotenv
from invoke import Collection, Context, Exit, Program, task

from gallerypub import __version__
from gallerypub.config import GalleryConfig, get_config
from gallerypub.errors import GalleryError
from gallerypub.logging_config import configure_structured_logging, get_logger
from gallerypub.services.publisher import GalleryPublisher

logger = get_logger(__name__)


@task
def publish(
    c: Context,
    directory: str,
    gallery: str,
    thumbnails: str | None = None,
    output: str | None = None,
    prefix: str | None = None,
    no_watermark: bool = False,
    no_metadata: bool = False,
    keep_sources: bool = False,
    env_file: str = ".env",
    dry_run: bool = False,
):
    """
    Publish a folder of images as a gallery.

    Args:
        c (Context): Invoke context.
        directory (str): Folder holding the source images.
        gallery (str): Gallery name; objects go under galleries/<gallery>/.
        thumbnails (str): Thumbnail folder. Default is <directory>/thumbnails.
        output (str): Folder for annotated originals and the upload root. Default is <directory>.
        prefix (str): Prefix for published filenames, e.g. 'attie'.
        no_watermark (bool): Do not stamp the reference code on the originals.
        no_metadata (bool): Do not write image records to the metadata store.
        keep_sources (bool): Keep source files after processing.
        env_file (str): Path to the environment file. Default is '.env'.
        dry_run (bool): List the files that would be published and stop.
    """
    if os.path.exists(env_file):
        load_dotenv(dotenv_path=env_file)
        get_config().clear_cache()
    configure_structured_logging()

    if not os.path.exists(env_file):
        logger.warning("env_file_not_found", env_file=env_file)

    config = GalleryConfig(
        source_path=directory,
        gallery_name=gallery,
        thumbnails_path=thumbnails,
        output_path=output,
        with_watermark=not no_watermark,
        with_metadata_store=not no_metadata,
        filename_prefix=prefix,
        delete_sources=not keep_sources,
    )

    publisher = GalleryPublisher(config)
    try:
        result = publisher.publish(dry_run=dry_run)
    except GalleryError as e:
        raise Exit(f"Publishing gallery '{gallery}' failed: {e}", code=1) from e
    finally:
        publisher.close()

    if dry_run:
        print("\n--- Dry Run Mode: Files to be published ---")
        for path in result.source_files:
            print(f"- {path}")
        print("--- End of Dry Run ---")
        return

    print(
        f"\nGallery '{gallery}' published. Images: {result.processed_count}, "
        f"uploaded: {len(result.blobs_uploaded)}, replaced: {len(result.blobs_deleted)}"
    )


namespace = Collection.from_module(sys.modules[__name__])
program = Program(namespace=namespace, version=__version__, name="gallery-publish")
