"""Adapting multipart uploads to the storage layer."""

from fastapi import UploadFile

from cookschool.storage import UploadedFile


def read_upload(upload: UploadFile, max_bytes: int) -> UploadedFile:
    """Read at most ``max_bytes + 1`` bytes of an upload into memory."""
    content = upload.file.read(max_bytes + 1)
    upload.file.seek(0)
    return UploadedFile(
        filename=upload.filename or "",
        content_type=upload.content_type or "",
        content=content,
    )
