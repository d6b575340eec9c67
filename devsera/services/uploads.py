"""Uploaded image checks (size, type, decodability) shared by checkout and admin uploads."""
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from devsera.core.config import settings, upload_max_bytes

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}
_PIL_FORMATS = {"JPEG": "jpg", "PNG": "png", "WEBP": "webp", "GIF": "gif"}


def image_extension(content: bytes) -> str | None:
    """Extension for the decoded image format, None when Pillow cannot read it."""
    try:
        with Image.open(BytesIO(content)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None
    return _PIL_FORMATS.get(fmt or "")


def validate_image(content: bytes | None, content_type: str | None, label: str = "Payment screenshot") -> tuple[str | None, list[str]]:
    """(extension, errors). Content type is checked first, then the bytes themselves."""
    if not content:
        return None, [f"{label} is required"]
    errors: list[str] = []
    if len(content) > upload_max_bytes():
        errors.append(f"{label} must be under {settings.upload_max_mb}MB")
    ctype = (content_type or "").split(";")[0].strip().lower()
    if ctype and ctype not in ALLOWED_IMAGE_TYPES:
        errors.append(f"{label} must be a JPEG, PNG, WebP or GIF image")
        return None, errors
    ext = image_extension(content)
    if ext is None:
        errors.append(f"{label} is not a valid image")
    return ext, errors
