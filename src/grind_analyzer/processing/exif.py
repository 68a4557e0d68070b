"""EXIF metadata extraction for auto-calibration."""

import io
import logging
import math

from PIL import Image
from PIL.ExifTags import TAGS

logger = logging.getLogger(__name__)

RECOGNIZED_TAGS = ("Model", "Make", "FocalLength", "FocalLengthIn35mmFilm", "SubjectDistance")

EXIF_IFD_POINTER = 0x8769


def _normalize(value):
    """Turn EXIF rationals and byte strings into plain Python values."""
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if isinstance(value, str):
        value = value.strip("\x00 ").strip()
        return value or None
    if hasattr(value, "numerator") and hasattr(value, "denominator"):
        if value.denominator == 0:
            return None
        value = value.numerator / value.denominator
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def read_exif(data: bytes) -> dict:
    """
    Read the calibration-relevant EXIF tags from raw image bytes.

    Args:
        data: Encoded image file contents

    Returns:
        Mapping of recognized tag names to values; empty when the image carries no
        EXIF data or cannot be parsed
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            exif = img.getexif()
            raw = dict(exif.items())
            raw.update(exif.get_ifd(EXIF_IFD_POINTER).items())
    except Exception as e:  # any unreadable metadata degrades to no metadata
        logger.warning("Could not parse EXIF metadata: %s", e)
        return {}

    result = {}
    for tag_id, value in raw.items():
        name = TAGS.get(tag_id, tag_id)
        if name not in RECOGNIZED_TAGS:
            continue
        normalized = _normalize(value)
        if normalized is not None:
            result[name] = normalized

    logger.debug("EXIF tags found: %s", sorted(result))
    return result
