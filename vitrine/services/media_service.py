"""Local storage for uploaded images, served back under /uploads."""

import re
import time
from pathlib import Path
from typing import Optional

DEFAULT_IMAGE_MIME = "image/png"
DEFAULT_EXTENSION = ".png"
IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
}
UPLOADS_ROUTE = "/uploads"

_SAFE_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,8}$")


def normalize_image_mime(mime_type: Optional[str]) -> str:
    """Non-image content types are treated as PNG rather than rejected."""
    mime = (mime_type or "").split(";")[0].strip().lower()
    return mime if mime.startswith("image/") else DEFAULT_IMAGE_MIME


def guess_image_extension(mime_type: Optional[str]) -> str:
    return IMAGE_EXTENSIONS.get((mime_type or "").lower(), DEFAULT_EXTENSION)


def extension_from_filename(filename: Optional[str]) -> str:
    suffix = Path(filename or "").suffix.lower()
    return suffix if _SAFE_EXTENSION_RE.match(suffix) else DEFAULT_EXTENSION


def store_image(image_bytes: bytes, upload_dir: str, extension: str, prefix: str = "") -> Path:
    """Write the bytes under a nanosecond-timestamp name and return the path."""
    target_dir = Path(upload_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    target_path = target_dir / f"{prefix}{time.time_ns()}{extension}"
    target_path.write_bytes(image_bytes)
    return target_path


def public_upload_url(filename: str, base_url: str = "") -> str:
    return f"{(base_url or '').rstrip('/')}{UPLOADS_ROUTE}/{filename}"
