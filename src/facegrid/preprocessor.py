"""Source photo validation.

The photo is read once and the same bytes are sent with every generation
request, so it is checked up front, before any cost is shown.
"""

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from facegrid.errors import SourcePhotoError
from facegrid.logging import get_logger

logger = get_logger("preprocessor")

# The generation service cannot decode these.
UNSUPPORTED_SUFFIXES = frozenset({".heic", ".heif"})
MIN_PHOTO_SIZE = 64


def load_source_photo(path: str | Path) -> bytes:
    """Read and validate the source photo.

    Args:
        path: Photo file (JPEG, PNG or WebP).

    Returns:
        The raw file bytes.

    Raises:
        SourcePhotoError: If the file is missing, HEIC/HEIF, not decodable,
            or smaller than 64x64.
    """
    photo = Path(path)
    if not photo.is_file():
        raise SourcePhotoError(f"Source photo not found: {photo}")
    if photo.suffix.lower() in UNSUPPORTED_SUFFIXES:
        raise SourcePhotoError(
            f"HEIC/HEIF photos are not supported, convert {photo.name} to JPEG first"
        )

    data = photo.read_bytes()
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            width, height = img.size
            fmt = img.format
    except (UnidentifiedImageError, OSError) as exc:
        raise SourcePhotoError(f"Cannot decode source photo {photo}: {exc}") from exc

    if width < MIN_PHOTO_SIZE or height < MIN_PHOTO_SIZE:
        raise SourcePhotoError(
            f"Source photo too small: {width}x{height} "
            f"(minimum {MIN_PHOTO_SIZE}x{MIN_PHOTO_SIZE})"
        )

    logger.debug("Source photo %s: %s %dx%d, %d bytes", photo, fmt, width, height, len(data))
    return data
