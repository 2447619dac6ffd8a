"""Helpers for data URLs and image geometry."""

import base64
import binascii
import io
import logging
import re

from PIL import Image, UnidentifiedImageError

from property_stage.domain.generation import SUPPORTED_ASPECT_RATIOS

logger = logging.getLogger(__name__)

DEFAULT_ASPECT_RATIO = "4:3"

_DATA_URL_PREFIX = re.compile(r"^data:(image/[a-z0-9.+-]+);base64,", re.IGNORECASE)


def split_data_url(image: str) -> tuple[str, str]:
    """Strip a data-URI prefix and return ``(base64_payload, mime_type)``.

    Bare base64 input has its MIME type sniffed from the file signature.
    """
    match = _DATA_URL_PREFIX.match(image)
    if match is None:
        payload = image.strip()
        try:
            header = base64.b64decode(payload[:32])
        except binascii.Error:
            return payload, "image/jpeg"
        return payload, detect_mime_type(header)
    mime_type = match.group(1).lower()
    if mime_type == "image/jpg":
        mime_type = "image/jpeg"
    return image[match.end() :].strip(), mime_type


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def snap_aspect_ratio(width: int, height: int) -> str:
    """Snap a width/height pair to the nearest supported aspect ratio."""
    if width <= 0 or height <= 0:
        return DEFAULT_ASPECT_RATIO
    ratio = width / height
    best_label, _ = min(SUPPORTED_ASPECT_RATIOS, key=lambda item: abs(item[1] - ratio))
    return best_label


def detect_aspect_ratio(image: str) -> str:
    """Return the supported aspect ratio closest to an encoded image's shape."""
    payload, _ = split_data_url(image)
    try:
        raw = base64.b64decode(payload, validate=True)
        with Image.open(io.BytesIO(raw)) as decoded:
            width, height = decoded.size
    except (binascii.Error, UnidentifiedImageError, OSError, ValueError):
        logger.warning("Could not read image dimensions; using %s", DEFAULT_ASPECT_RATIO)
        return DEFAULT_ASPECT_RATIO
    return snap_aspect_ratio(width, height)
