"""
Resume photo processing - validate and recompress to a 200x200 JPEG
"""
import io

from PIL import Image, ImageOps, UnidentifiedImageError

from tailorcv.app.core.config import PHOTO_JPEG_QUALITY, PHOTO_MAX_BYTES, PHOTO_MIME_TYPES, PHOTO_SIZE_PX
from tailorcv.app.core.exceptions import InvalidInput, UnsupportedFileType


def validate_photo(content: bytes, mime_type: str | None) -> None:
    if (mime_type or "").lower() not in PHOTO_MIME_TYPES:
        raise UnsupportedFileType("Photo must be a JPEG, PNG, WebP or GIF image.")
    if not content:
        raise InvalidInput("Photo is empty.")
    if len(content) > PHOTO_MAX_BYTES:
        raise InvalidInput("Image must be less than 5MB.")


def process_photo(content: bytes, mime_type: str | None) -> bytes:
    """Center-crop and resize to PHOTO_SIZE_PX square, re-encoded as JPEG."""
    validate_photo(content, mime_type)
    try:
        with Image.open(io.BytesIO(content)) as img:
            img = ImageOps.exif_transpose(img)
            img = img.convert("RGB")
            img = ImageOps.fit(img, (PHOTO_SIZE_PX, PHOTO_SIZE_PX), Image.Resampling.LANCZOS)
            out = io.BytesIO()
            img.save(out, format="JPEG", quality=PHOTO_JPEG_QUALITY)
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidInput("Photo could not be read as an image.") from e
    return out.getvalue()
