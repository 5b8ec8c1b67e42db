"""File storage collaborator for uploaded images and payment proofs."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol

from cookschool.storage.exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """An uploaded file held in memory.

    Attributes:
        filename: Client-supplied file name.
        content_type: Client-supplied MIME type.
        content: Raw bytes.
    """

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        """Size in bytes."""
        return len(self.content)


class FileStorage(Protocol):
    """Storage backend addressed by relative, slash-separated paths."""

    def save(self, directory: str, file: UploadedFile) -> str:
        """Store a file under ``directory`` and return its relative path."""
        ...

    def delete(self, path: str) -> None:
        """Remove a stored file. Missing files are ignored."""
        ...

    def exists(self, path: str) -> bool:
        """Check whether a stored file exists."""
        ...


class LocalFileStorage:
    """FileStorage writing under a base directory on the local disk.

    Stored names are random so that two uploads of ``receipt.jpg`` never
    overwrite each other; only the original extension is kept.
    """

    def __init__(self, base_dir: Path | str) -> None:
        self.base_dir = Path(base_dir)

    def save(self, directory: str, file: UploadedFile) -> str:
        """Write a file under ``directory``.

        Args:
            directory: Relative directory, e.g. ``payments/proofs``.
            file: The uploaded file.

        Returns:
            Relative path of the stored file.

        Raises:
            StorageError: If the file cannot be written.
        """
        suffix = PurePosixPath(file.filename).suffix.lower()
        relative = f"{directory.strip('/')}/{uuid.uuid4().hex}{suffix}"
        target = self._resolve(relative)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(file.content)
        except OSError as e:
            logger.error("Failed to store %s: %s", relative, e)
            raise StorageError(f"Failed to store file '{file.filename}'") from e

        logger.info("Stored %s (%d bytes)", relative, file.size)
        return relative

    def delete(self, path: str) -> None:
        """Remove a stored file.

        Raises:
            StorageError: If the file exists but cannot be removed.
        """
        try:
            self._resolve(path).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete file '{path}'") from e
        logger.info("Deleted %s", path)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def _resolve(self, relative: str) -> Path:
        target = (self.base_dir / relative).resolve()
        if not target.is_relative_to(self.base_dir.resolve()):
            raise StorageError(f"Path '{relative}' escapes the storage directory")
        return target


IMAGE_TYPES = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
}


def validate_image(file: UploadedFile, max_bytes: int, label: str = "image") -> list[str]:
    """Check that an upload is a non-empty jpeg or png of bounded size.

    Returns:
        Error messages; empty when the file is acceptable.
    """
    errors = []
    extensions = IMAGE_TYPES.get(file.content_type.lower())
    if extensions is None or not file.filename.lower().endswith(extensions):
        errors.append(f"The {label} must be a file of type: jpeg, png, jpg.")
    if file.size == 0:
        errors.append(f"The {label} must not be empty.")
    elif file.size > max_bytes:
        errors.append(f"The {label} must not be greater than {max_bytes // 1024} kilobytes.")
    return errors
