"""Storage package - Where uploaded files live."""

from cookschool.storage.exceptions import StorageError
from cookschool.storage.files import (
    IMAGE_TYPES,
    FileStorage,
    LocalFileStorage,
    UploadedFile,
    validate_image,
)

__all__ = [
    "IMAGE_TYPES",
    "FileStorage",
    "LocalFileStorage",
    "StorageError",
    "UploadedFile",
    "validate_image",
]
