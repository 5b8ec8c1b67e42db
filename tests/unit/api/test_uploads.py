"""Unit tests for reading multipart uploads."""

from io import BytesIO

import pytest
from fastapi import UploadFile
from fastapi.datastructures import Headers

from cookschool.api.uploads import read_upload
from cookschool.storage import validate_image

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _upload(content: bytes) -> UploadFile:
    return UploadFile(
        file=BytesIO(content),
        filename="receipt.png",
        headers=Headers({"content-type": "image/png"}),
    )


@pytest.mark.unit
class TestReadUpload:
    """Tests for read_upload."""

    def test_reads_small_file_whole(self) -> None:
        """Files within the limit are read completely."""
        upload = read_upload(_upload(PNG_BYTES), max_bytes=1024)

        assert upload.content == PNG_BYTES
        assert upload.filename == "receipt.png"
        assert upload.content_type == "image/png"

    def test_stops_one_byte_past_limit(self) -> None:
        """Oversized files are cut at limit + 1 and still fail validation."""
        upload = read_upload(_upload(PNG_BYTES + b"\x00" * 4096), max_bytes=2048)

        assert upload.size == 2049
        assert validate_image(upload, 2048) == ["The image must not be greater than 2 kilobytes."]

    def test_rewinds_the_file(self) -> None:
        """The underlying file can be read again afterwards."""
        source = _upload(PNG_BYTES)

        read_upload(source, max_bytes=1024)

        assert source.file.read() == PNG_BYTES
