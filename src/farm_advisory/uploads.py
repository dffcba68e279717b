"""Local blob storage for crop images uploaded ahead of a pipeline run."""

import logging
import re
import time
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "crops"
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class UploadError(Exception):
    """Raised when an upload cannot be stored."""


class InvalidUploadError(UploadError):
    """Raised when the upload itself is unacceptable (empty, too large, bad name)."""


class BlobStore(Protocol):
    def save(self, filename: str, data: bytes) -> str:
        """Store ``data`` and return its object path."""
        ...


def object_name(filename: str, timestamp_ms: int | None = None) -> str:
    """Return the name-addressed object path ``crops/<timestamp>_<name>``."""

    base = Path(filename.replace("\\", "/")).name
    safe = _UNSAFE_NAME_CHARS.sub("_", base).strip("._")
    if not safe:
        raise InvalidUploadError(f"Invalid upload filename '{filename}'")
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    return f"{UPLOAD_PREFIX}/{stamp}_{safe}"


class LocalBlobStore:
    """Writes uploads under a root directory served as static files."""

    def __init__(self, root: Path, *, max_bytes: int = 10 * 1024 * 1024) -> None:
        self.root = root
        self._max_bytes = max_bytes

    def save(self, filename: str, data: bytes) -> str:
        if not data:
            raise InvalidUploadError("Upload body is empty")
        if len(data) > self._max_bytes:
            raise InvalidUploadError(f"Upload exceeds {self._max_bytes} bytes")

        name = object_name(filename)
        path = self.root / name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            logger.warning("Failed to store upload %s: %s", name, exc)
            raise UploadError(f"Unable to store upload: {exc}") from exc

        logger.info("Stored upload %s (%d bytes)", name, len(data))
        return name
