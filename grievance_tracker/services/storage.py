"""Local-directory storage for grievance attachments."""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

# Copy chunk size for streaming uploads to disk.
_CHUNK_BYTES = 1024 * 1024


class StorageError(Exception):
    """Raised when a file cannot be written, located or removed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class FileTooLargeError(StorageError):
    """Raised when a stream exceeds the configured byte limit; the partial file is removed."""

    def __init__(self, original_name: str, max_bytes: int) -> None:
        self.original_name = original_name
        self.max_bytes = max_bytes
        super().__init__(f"File '{original_name}' exceeds the {max_bytes} byte limit.")


@dataclass(frozen=True)
class StoredFile:
    """Result of a successful save: generated name, on-disk location and byte size."""

    filename: str
    location: Path
    size: int


def _extension(original_name: str) -> str:
    return Path(original_name or "").suffix.lower()


class LocalFileStorage:
    """Stores each file under a generated unique name inside root."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def locate(self, filename: str) -> Path:
        """Return the path for a stored filename. Names must not escape root."""
        if not filename or "/" in filename or "\\" in filename or filename in (".", ".."):
            raise StorageError(f"Invalid stored filename: {filename!r}")
        return self.root / filename

    def exists(self, filename: str) -> bool:
        try:
            return self.locate(filename).is_file()
        except StorageError:
            return False

    def save(
        self,
        stream: BinaryIO,
        original_name: str,
        max_bytes: int | None = None,
    ) -> StoredFile:
        """Copy stream into a new uniquely named file and return its metadata."""
        self._ensure_root()
        filename = f"{uuid.uuid4().hex}{_extension(original_name)}"
        location = self.locate(filename)
        size = 0
        try:
            with open(location, "wb") as out:
                while True:
                    chunk = stream.read(_CHUNK_BYTES)
                    if not chunk:
                        break
                    size += len(chunk)
                    if max_bytes is not None and size > max_bytes:
                        raise FileTooLargeError(original_name, max_bytes)
                    out.write(chunk)
        except FileTooLargeError:
            location.unlink(missing_ok=True)
            raise
        except OSError as e:
            location.unlink(missing_ok=True)
            raise StorageError(f"Could not store '{original_name}': {e}") from e
        logger.debug("Stored upload", extra={"stored_filename": filename, "size": size})
        return StoredFile(filename=filename, location=location, size=size)

    def delete(self, filename: str) -> None:
        """Remove a stored file. A file that is already gone is not an error."""
        try:
            self.locate(filename).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not remove '{filename}': {e}") from e

