"""
Image ingest for recipe and step uploads.

Every upload is decoded with Pillow, shrunk to a bounded width, flattened to
RGB and re-encoded as JPEG, so stored files never carry the client's original
bytes. Files are written under CONTENT_DIR/<target>/ and addressed by the
reference path /images/<target>/<name>.
"""

import logging
import os
import secrets
import time
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from recipe_share.core.config import settings

logger = logging.getLogger(__name__)

RECIPE_IMAGES = "recipe"
STEP_IMAGES = "recipestep"
TARGETS = (RECIPE_IMAGES, STEP_IMAGES)

URL_PREFIX = "/images"

ALLOWED_FORMATS = {'JPEG', 'PNG', 'GIF', 'WEBP', 'BMP'}


class ImageValidationError(Exception):
    """Raised when an upload is not an image we can store."""
    pass


def target_dir(target: str) -> str:
    if target not in TARGETS:
        raise ValueError(f"Unknown image target '{target}'")
    return os.path.join(settings.CONTENT_DIR, target)


def generate_filename() -> str:
    # Millisecond timestamp plus random suffix: concurrent uploads never collide.
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}.jpg"


def normalize_image(data: bytes) -> bytes:
    """
    Validate and re-encode raw upload bytes.

    Returns JPEG bytes no wider than IMAGE_MAX_WIDTH at IMAGE_QUALITY.
    Raises ImageValidationError for empty, oversized or undecodable input.
    """
    if not data:
        raise ImageValidationError("Uploaded file is empty")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise ImageValidationError(
            f"Image too large: {len(data)} bytes (max {settings.MAX_UPLOAD_BYTES})"
        )

    try:
        img = Image.open(BytesIO(data))
        img.verify()
        # verify() leaves the image unusable; open it again to decode.
        img = Image.open(BytesIO(data))
        img.load()
    except Image.DecompressionBombError:
        raise ImageValidationError("Image appears to be a decompression bomb")
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ImageValidationError(f"Invalid or corrupted image: {e}")

    if img.format not in ALLOWED_FORMATS:
        raise ImageValidationError(
            f"Invalid image format: {img.format}. Allowed formats: {', '.join(sorted(ALLOWED_FORMATS))}"
        )

    width, height = img.size
    if width > settings.IMAGE_MAX_WIDTH:
        new_height = max(1, round(height * settings.IMAGE_MAX_WIDTH / width))
        img = img.resize((settings.IMAGE_MAX_WIDTH, new_height), Image.Resampling.LANCZOS)

    if img.mode in ('RGBA', 'LA', 'P'):
        img = img.convert('RGBA')
        background = Image.new('RGB', img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        img = background
    elif img.mode != 'RGB':
        img = img.convert('RGB')

    out = BytesIO()
    img.save(out, 'JPEG', quality=settings.IMAGE_QUALITY, optimize=True)
    return out.getvalue()


def ingest_image(data: bytes, target: str) -> str:
    """
    Normalize an upload and store it. Returns the reference path, e.g.
    /images/recipe/1718000000000-123456789.jpg
    """
    directory = target_dir(target)
    encoded = normalize_image(data)

    os.makedirs(directory, exist_ok=True)
    filename = generate_filename()
    path = os.path.join(directory, filename)
    with open(path, "wb") as fh:
        fh.write(encoded)

    logger.info(f"Stored {target} image {filename} ({len(encoded)} bytes)")
    return f"{URL_PREFIX}/{target}/{filename}"


def image_path(image_url: str, target: str) -> str:
    # Only the basename is trusted; a reference can never escape its directory.
    return os.path.join(target_dir(target), os.path.basename(image_url))


def remove_image(image_url: str, target: str) -> bool:
    """
    Best-effort delete of a stored image. Failures are logged, never raised.
    """
    if not image_url:
        return False
    path = image_path(image_url, target)
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.warning(f"Image {path} already missing")
        return False
    except OSError as e:
        logger.warning(f"Error deleting image {path}: {e}")
        return False
    logger.debug(f"Deleted image {path}")
    return True
