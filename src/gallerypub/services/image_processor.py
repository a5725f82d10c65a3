"""Image processing service for gallerypub.

Turns one source picture into the two files a gallery publishes: the full
size image with its reference code stamped in the bottom-right corner, and a
centered square thumbnail. Both are written as WEBP.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener  # type: ignore[import-untyped]

from ..config import (
    get_thumbnail_max_size,
    get_thumbnail_quality,
    get_watermark_font,
    get_watermark_font_size,
    get_watermark_margin,
)
from ..errors import ImageProcessingError, ValidationError
from ..logging_config import get_logger, log_performance

# HEIC sources from phones open like any other format
register_heif_opener()

logger = get_logger(__name__)

REFERENCE_CODE_LENGTH = 5
OUTPUT_EXTENSION = ".webp"
ORIGINAL_WEBP_QUALITY = 90

# Names written by process() when numbering is on: [prefix-]NNN-ref.webp
NUMBERED_OUTPUT_PATTERN = re.compile(r"^(?:.+-)?\d{3,}-[0-9a-f]{5}\.webp$")

# Outline copies drawn 1px up, down, left and right of the white text
OUTLINE_OFFSETS = ((0, -1), (0, 1), (-1, 0), (1, 0))
OUTLINE_COLOR = "black"
TEXT_COLOR = "white"


@dataclass(frozen=True)
class SquareCrop:
    """Centered square region of an image."""

    left: int
    top: int
    side: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        """Crop box in Pillow's (left, upper, right, lower) order."""
        return (self.left, self.top, self.left + self.side, self.top + self.side)


@dataclass
class ProcessedImage:
    """Result of processing one source image."""

    source_path: Path
    original_path: Path
    thumbnail_path: Path
    reference_code: str
    width: int
    height: int

    @property
    def filename(self) -> str:
        return self.original_path.name


def generate_reference_code() -> str:
    """
    Generate a fresh reference code.

    Returns:
        str: 5 lowercase hexadecimal characters
    """
    return uuid.uuid4().hex[:REFERENCE_CODE_LENGTH]


def compute_square_crop(width: int, height: int) -> SquareCrop:
    """
    Compute the centered square crop of a width x height image.

    Args:
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        SquareCrop: side = min(width, height), origin floored to whole pixels

    Raises:
        ValidationError: If either dimension is not positive
    """
    if width <= 0 or height <= 0:
        raise ValidationError(
            f"Cannot crop an image of size {width}x{height}",
            code="invalid_image_size",
            details={"width": width, "height": height},
        )

    side = min(width, height)
    return SquareCrop(left=(width - side) // 2, top=(height - side) // 2, side=side)


def build_output_filename(
    reference_code: str,
    sequence_number: int | None = None,
    prefix: str | None = None,
    stem: str | None = None,
) -> str:
    """
    Build the published filename for an image.

    With a sequence number the name is ``[prefix-]NNN-ref.webp``; without one
    the source stem is kept: ``[prefix-]stem-ref.webp``.
    """
    if sequence_number is not None:
        base = f"{sequence_number:03d}-{reference_code}"
    elif stem:
        base = f"{stem}-{reference_code}"
    else:
        base = reference_code

    if prefix:
        base = f"{prefix}-{base}"

    return f"{base}{OUTPUT_EXTENSION}"


class GalleryImageProcessor:
    """Service producing annotated originals and square thumbnails."""

    def __init__(
        self,
        with_watermark: bool = True,
        watermark_thumbnail: bool = False,
        filename_prefix: str | None = None,
        font_path: str | None = None,
        font_size: int | None = None,
        margin: int | None = None,
        thumbnail_max_size: int | None = None,
        thumbnail_quality: int | None = None,
    ) -> None:
        """
        Initialize the image processor.

        Unset options fall back to the WATERMARK_* and THUMBNAIL_* environment
        variables.

        Args:
            with_watermark: Stamp the reference code onto the full size image
            watermark_thumbnail: Crop the thumbnail from the stamped image instead of the clean one
            filename_prefix: Prefix for output filenames
            font_path: TrueType font used for the reference code
            font_size: Font size in pixels
            margin: Distance of the text from the right and bottom edges
            thumbnail_max_size: Downscale thumbnails to at most this many pixels per side
            thumbnail_quality: WEBP quality for thumbnails (1-100)
        """
        self.with_watermark = with_watermark
        self.watermark_thumbnail = watermark_thumbnail
        self.filename_prefix = filename_prefix
        self.font_path = font_path or get_watermark_font()
        self.font_size = font_size or get_watermark_font_size()
        self.margin = get_watermark_margin() if margin is None else margin
        self.thumbnail_max_size = thumbnail_max_size or get_thumbnail_max_size()
        self.thumbnail_quality = thumbnail_quality or get_thumbnail_quality()
        self._font: ImageFont.FreeTypeFont | ImageFont.ImageFont | None = None

    @property
    def font(self) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        """Watermark font, loaded on first use."""
        if self._font is None:
            try:
                self._font = ImageFont.truetype(self.font_path, self.font_size)
            except OSError:
                logger.warning("watermark_font_not_found", font_path=self.font_path, fallback="pillow_default")
                self._font = ImageFont.load_default(size=self.font_size)
        return self._font

    def compute_watermark_position(self, canvas_size: tuple[int, int], text: str) -> tuple[int, int]:
        """
        Compute where the reference code is drawn.

        The text's measured bounding box sits ``margin`` pixels from the right
        and bottom edges. On canvases too small for that the position is
        clamped to (0, 0) and the text is clipped at the far edges.

        Args:
            canvas_size: Image size as (width, height)
            text: Text to be drawn

        Returns:
            tuple: Draw origin as (x, y)
        """
        width, height = canvas_size
        measure = ImageDraw.Draw(Image.new("L", (1, 1)))
        left, top, right, bottom = measure.textbbox((0, 0), text, font=self.font)
        text_width = right - left
        text_height = bottom - top

        x = width - text_width - self.margin - left
        y = height - text_height - self.margin - top

        if x < 0 or y < 0:
            logger.debug(
                "watermark_position_clamped",
                canvas_size=canvas_size,
                text_size=(text_width, text_height),
                position=(x, y),
            )

        return (max(0, x), max(0, y))

    def annotate(self, image: Image.Image, reference_code: str) -> None:
        """
        Stamp the reference code onto the image in place.

        Four black copies offset by one pixel form an outline so the white
        text stays legible on any background.
        """
        x, y = self.compute_watermark_position(image.size, reference_code)
        draw = ImageDraw.Draw(image)

        for dx, dy in OUTLINE_OFFSETS:
            draw.text((x + dx, y + dy), reference_code, font=self.font, fill=OUTLINE_COLOR)

        draw.text((x, y), reference_code, font=self.font, fill=TEXT_COLOR)

    def load_image(self, source_path: Path) -> Image.Image:
        """
        Decode a source image into memory.

        The file handle is closed before returning; EXIF orientation is applied
        and the mode normalised to RGB or RGBA for WEBP output.

        Raises:
            ImageProcessingError: If the file cannot be read or decoded
        """
        try:
            with Image.open(source_path) as opened:
                opened.load()
                image = ImageOps.exif_transpose(opened)
        except (UnidentifiedImageError, OSError) as e:
            raise ImageProcessingError(
                f"Failed to decode image '{source_path}': {e}",
                code="image_decode_failed",
                details={"source_path": str(source_path)},
                original_exception=e,
            ) from e

        if image.mode not in ("RGB", "RGBA"):
            has_alpha = "A" in image.mode or "transparency" in image.info
            image = image.convert("RGBA" if has_alpha else "RGB")

        return image

    def make_thumbnail(self, image: Image.Image) -> Image.Image:
        """Crop the centered square and apply the optional downscale."""
        crop = compute_square_crop(image.width, image.height)
        thumbnail = image.crop(crop.box)

        if self.thumbnail_max_size and crop.side > self.thumbnail_max_size:
            size = (self.thumbnail_max_size, self.thumbnail_max_size)
            thumbnail = thumbnail.resize(size, Image.Resampling.LANCZOS)

        return thumbnail

    def process(
        self,
        source_path: str | Path,
        thumbnail_dir: str | Path,
        sequence_number: int | None = None,
        output_dir: str | Path | None = None,
    ) -> ProcessedImage:
        """
        Process one source image.

        Args:
            source_path: Image to publish
            thumbnail_dir: Directory the thumbnail is written to
            sequence_number: Position of the image in the gallery, used in the filename
            output_dir: Directory for the annotated original (defaults to the source's directory)

        Returns:
            ProcessedImage: Output paths and the reference code

        Raises:
            ImageProcessingError: If the image cannot be decoded or the outputs cannot be written
        """
        start_time = datetime.now()
        source_path = Path(source_path)
        thumbnail_dir = Path(thumbnail_dir)
        output_dir = Path(output_dir) if output_dir is not None else source_path.parent

        reference_code = generate_reference_code()
        filename = build_output_filename(
            reference_code,
            sequence_number=sequence_number,
            prefix=self.filename_prefix,
            stem=source_path.stem,
        )
        original_path = output_dir / filename
        thumbnail_path = thumbnail_dir / filename

        image = self.load_image(source_path)
        thumbnail: Image.Image | None = None
        try:
            width, height = image.size

            if not self.watermark_thumbnail:
                thumbnail = self.make_thumbnail(image)

            if self.with_watermark:
                self.annotate(image, reference_code)

            if thumbnail is None:
                thumbnail = self.make_thumbnail(image)

            try:
                output_dir.mkdir(parents=True, exist_ok=True)
                thumbnail_dir.mkdir(parents=True, exist_ok=True)
                image.save(original_path, format="WEBP", quality=ORIGINAL_WEBP_QUALITY)
                thumbnail.save(thumbnail_path, format="WEBP", quality=self.thumbnail_quality)
            except OSError as e:
                raise ImageProcessingError(
                    f"Failed to write outputs for '{source_path.name}': {e}",
                    code="image_write_failed",
                    details={
                        "source_path": str(source_path),
                        "original_path": str(original_path),
                        "thumbnail_path": str(thumbnail_path),
                    },
                    original_exception=e,
                ) from e
        finally:
            image.close()
            if thumbnail is not None:
                thumbnail.close()

        duration = (datetime.now() - start_time).total_seconds()
        log_performance(
            "process_image",
            duration,
            filename=filename,
            width=width,
            height=height,
            watermarked=self.with_watermark,
        )
        logger.info(
            "image_processed",
            source=str(source_path),
            original=str(original_path),
            thumbnail=str(thumbnail_path),
            reference_code=reference_code,
        )

        return ProcessedImage(
            source_path=source_path,
            original_path=original_path,
            thumbnail_path=thumbnail_path,
            reference_code=reference_code,
            width=width,
            height=height,
        )
