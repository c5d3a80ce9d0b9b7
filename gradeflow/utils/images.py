from PIL import Image, ExifTags, UnidentifiedImageError
from pathlib import Path
from typing import Union
import base64
import io
import logging

from gradeflow.services.llm.base import InlineImage

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_SUFFIXES = ['.png', '.jpg', '.jpeg', '.gif', '.webp']


class WorksheetImageError(ValueError):
    """Raised when a worksheet image cannot be read."""
    pass


def is_image_file(path: Union[str, Path]) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_IMAGE_SUFFIXES


def fix_image_orientation(image: Image.Image) -> Image.Image:
    """Fix image orientation based on EXIF data."""
    try:
        exif = image.getexif()
        orientation_tag = next(
            (tag_id for tag_id, name in ExifTags.TAGS.items() if name == "Orientation"),
            None
        )
        value = exif.get(orientation_tag) if orientation_tag is not None else None

        if value == 3:
            image = image.rotate(180, expand=True)
        elif value == 6:
            image = image.rotate(270, expand=True)
        elif value == 8:
            image = image.rotate(90, expand=True)

        if value in (3, 6, 8):
            logger.debug(f"Applied orientation correction: {value}")
    except (AttributeError, TypeError, KeyError) as e:
        logger.debug(f"Could not read EXIF orientation: {e}")

    return image


def resize_image(image: Image.Image, max_size: int = 2048) -> Image.Image:
    width, height = image.size

    if width <= max_size and height <= max_size:
        return image

    scale = min(max_size / width, max_size / height)
    new_width = int(width * scale)
    new_height = int(height * scale)

    return image.resize((new_width, new_height), Image.Resampling.LANCZOS)


def convert_to_rgb(image: Image.Image) -> Image.Image:
    if image.mode != 'RGB':
        return image.convert('RGB')
    return image


def encode_worksheet_image(
    image_path: Union[str, Path],
    max_size: int = 2048,
    quality: int = 90
) -> InlineImage:
    """
    Load a worksheet scan and encode it as an inline JPEG request part.

    Args:
        image_path: Path to the scanned worksheet
        max_size: Longest allowed side in pixels
        quality: JPEG quality

    Returns:
        InlineImage with base64 data

    Raises:
        WorksheetImageError: If the file is missing or not a readable image
    """
    image_path = Path(image_path)

    try:
        with Image.open(image_path) as img:
            img = fix_image_orientation(img)
            img = resize_image(img, max_size=max_size)
            img = convert_to_rgb(img)

            buffer = io.BytesIO()
            img.save(buffer, 'JPEG', quality=quality, optimize=True)
    except (FileNotFoundError, UnidentifiedImageError, OSError) as e:
        raise WorksheetImageError(f"Cannot read worksheet image {image_path}: {e}") from e

    data = base64.b64encode(buffer.getvalue()).decode("ascii")
    logger.debug(f"Encoded {image_path.name} ({len(data)} base64 chars)")

    return InlineImage(mime_type="image/jpeg", data=data)
