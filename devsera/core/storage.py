"""Object storage: buckets are directories below STORAGE_DIR, served under STORAGE_PUBLIC_URL."""
import logging
from pathlib import Path

from .config import settings

log = logging.getLogger("devsera.storage")

PRODUCT_IMAGES_BUCKET = "product-images"
ORDER_FILES_BUCKET = "order-files"


class StorageError(Exception):
    pass


def _root() -> Path:
    return Path(settings.storage_dir)


def _safe_path(bucket: str, path: str) -> Path:
    base = (_root() / bucket).resolve()
    target = (base / path.lstrip("/")).resolve()
    if base not in target.parents:
        raise StorageError(f"Invalid storage path: {path}")
    return target


def upload(bucket: str, path: str, content: bytes, upsert: bool = True) -> str:
    """Writes content to bucket/path and returns the stored path."""
    target = _safe_path(bucket, path)
    if target.exists() and not upsert:
        raise StorageError(f"Object already exists: {bucket}/{path}")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError as e:
        log.warning("Storage upload failed bucket=%s path=%s: %s", bucket, path, e)
        raise StorageError(f"Upload failed: {e}") from e
    return path


def get_public_url(bucket: str, path: str) -> str:
    return f"{settings.storage_public_url}/{bucket}/{path.lstrip('/')}"


def resolve(bucket: str, path: str) -> Path | None:
    """Local file for a stored object, None if it does not exist."""
    try:
        target = _safe_path(bucket, path)
    except StorageError:
        return None
    return target if target.is_file() else None


def remove(bucket: str, path: str) -> bool:
    target = resolve(bucket, path)
    if target is None:
        return False
    try:
        target.unlink()
    except OSError as e:
        log.warning("Storage remove failed bucket=%s path=%s: %s", bucket, path, e)
        return False
    return True


def path_from_public_url(bucket: str, url: str | None) -> str | None:
    """Object path inside bucket for a URL built by get_public_url, None for anything else."""
    prefix = get_public_url(bucket, "")
    if not url or not url.startswith(prefix):
        return None
    return url[len(prefix):] or None


def remove_public_url(bucket: str, url: str | None) -> bool:
    path = path_from_public_url(bucket, url)
    return remove(bucket, path) if path else False
