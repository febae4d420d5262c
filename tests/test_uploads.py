"""上传读取与大小上限的单元测试。"""

import asyncio
import io

import pytest
from starlette.datastructures import UploadFile

from app.packages.drive.api.v1.endpoints.files import read_upload_content
from app.packages.drive.core.exceptions import InvalidInput
from app.packages.drive.utils.size_utils import format_size


class _CountingStream(io.BytesIO):
    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.requested = []

    def read(self, size: int = -1) -> bytes:
        self.requested.append(size)
        return super().read(size)


def test_read_without_declared_size_stops_after_limit():
    stream = _CountingStream(b"x" * 10_000)
    upload = UploadFile(file=stream, filename="big.bin")

    with pytest.raises(InvalidInput) as exc_info:
        asyncio.run(read_upload_content(upload, 8))

    assert stream.requested == [9]
    assert exc_info.value.message == "File exceeds the maximum size of 8 bytes"


def test_read_within_limit_returns_content():
    upload = UploadFile(file=io.BytesIO(b"12345678"), filename="ok.bin")

    assert asyncio.run(read_upload_content(upload, 8)) == b"12345678"


def test_declared_size_rejected_without_reading():
    stream = _CountingStream(b"x" * 100)
    upload = UploadFile(file=stream, filename="big.bin", size=100)

    with pytest.raises(InvalidInput):
        asyncio.run(read_upload_content(upload, 10))
    assert stream.requested == []


def test_format_size():
    assert format_size(0) == "0 bytes"
    assert format_size(1023) == "1023 bytes"
    assert format_size(1536) == "1.5KB"
    assert format_size(100 * 1024 * 1024) == "100MB"
    assert format_size(5 * 1024 ** 3) == "5GB"
