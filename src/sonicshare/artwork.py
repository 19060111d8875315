"""Cover art validation using Pillow."""

import io
import logging
from dataclasses import replace

from PIL import Image, UnidentifiedImageError

from sonicshare.errors import ValidationError
from sonicshare.models import MediaFile

logger = logging.getLogger(__name__)


def inspect_cover(file: MediaFile) -> MediaFile:
    """Check that a blob is a readable image and tag it with its MIME type.

    Args:
        file: Candidate cover image.

    Returns:
        The same file with `content_type` set from the detected image format.

    Raises:
        ValidationError: If Pillow cannot identify the bytes as an image.
    """
    try:
        with Image.open(io.BytesIO(file.data)) as img:
            image_format = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValidationError(f"Please select a valid image file ({file.filename})") from e

    content_type = Image.MIME.get(image_format or "", file.content_type)
    logger.debug(f"Cover {file.filename}: {image_format} ({content_type})")
    return replace(file, content_type=content_type)
