"""Local filesystem storage for uploaded PDF blobs."""

import logging
import os
import tempfile
import time
import uuid
from pathlib import Path

from fastapi import Request

logger = logging.getLogger(__name__)

# Records store blob locations as "<prefix>/<stored name>".
PATH_PREFIX = "uploads"
TEMP_PREFIX = ".upload-"
TEMP_SUFFIX = ".part"
# Filesystem limit on a single path component, in bytes.
NAME_MAX = 255


class BlobStore:
    """A single flat directory of uploaded files.

    Files are first written to a hidden temporary name and only moved to
    their final name with :meth:`promote`, so a crash between the two steps
    never leaves a file that looks like a committed upload.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def ensure_root(self) -> None:
        """Create the storage directory if it does not exist yet."""
        self.root.mkdir(parents=True, exist_ok=True)

    def new_name(self, filename: str) -> str:
        """Return a unique stored name for an uploaded file.

        Format: ``<epoch-millis>-<token>-<original basename>``.
        """
        millis = int(time.time() * 1000)
        token = uuid.uuid4().hex[:12]
        basename = Path(filename.replace("\\", "/")).name or "document.pdf"
        prefix = f"{millis}-{token}-"
        return prefix + _truncate(basename, NAME_MAX - len(prefix))

    def relative_path(self, name: str) -> str:
        return f"{PATH_PREFIX}/{name}"

    def name_of(self, filepath: str) -> str:
        """Stored name for a record's ``filepath``."""
        return Path(filepath).name

    def resolve(self, filepath: str) -> Path:
        """Absolute on-disk path for a record's ``filepath``."""
        return self.root / self.name_of(filepath)

    def write_temp(self, data: bytes) -> Path:
        """Write ``data`` to a hidden temporary file inside the root."""
        self.ensure_root()
        fd, tmp = tempfile.mkstemp(dir=self.root, prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except OSError:
            self.discard(Path(tmp))
            raise
        return Path(tmp)

    def promote(self, temp_path: Path, name: str) -> Path:
        """Atomically move a temporary file to its final stored name."""
        final = self.root / name
        os.replace(temp_path, final)
        logger.info("Stored blob %s (%d bytes)", final, final.stat().st_size)
        return final

    def discard(self, temp_path: Path) -> None:
        temp_path.unlink(missing_ok=True)

    def exists(self, filepath: str) -> bool:
        return self.resolve(filepath).is_file()

    def remove(self, filepath: str) -> bool:
        """Delete a blob. Returns False if it was already gone."""
        path = self.resolve(filepath)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Blob already missing: %s", path)
            return False
        logger.info("Removed blob %s", path)
        return True

    def stored_names(self) -> list[str]:
        """Names of all committed blobs, skipping in-flight temporary files."""
        if not self.root.is_dir():
            return []
        return sorted(
            p.name
            for p in self.root.iterdir()
            if p.is_file() and not p.name.startswith(TEMP_PREFIX)
        )


def get_blob_store(request: Request) -> BlobStore:
    """FastAPI dependency returning the blob store built at startup."""
    return request.app.state.blob_store


def _truncate(basename: str, limit: int) -> str:
    """Shorten ``basename`` to at most ``limit`` UTF-8 bytes, keeping its suffix."""
    if len(basename.encode("utf-8")) <= limit:
        return basename
    suffix = Path(basename).suffix
    if len(suffix.encode("utf-8")) > limit // 2:
        suffix = ""
    budget = limit - len(suffix.encode("utf-8"))
    stem = basename[: len(basename) - len(suffix)] if suffix else basename
    stem = stem.encode("utf-8")[:budget].decode("utf-8", errors="ignore")
    return stem + suffix
