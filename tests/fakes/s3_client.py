"""Fake boto3 S3 client covering the calls S3Provider makes."""

import io
from collections.abc import Iterator
from typing import Any, BinaryIO

from botocore.exceptions import ClientError


class FakeStreamingBody:
    def __init__(self, data: bytes) -> None:
        self._data = data

    def iter_chunks(self, chunk_size: int = 1024) -> Iterator[bytes]:
        for i in range(0, len(self._data), chunk_size):
            yield self._data[i : i + chunk_size]


class FakeS3Client:
    """In-memory bucket store.

    Attributes:
        objects: (bucket, key) -> bytes
        uploads: (bucket, key) for every successful upload_fileobj call
        upload_error: Raised by upload_fileobj instead of storing, when set
    """

    def __init__(self, upload_error: Exception | None = None) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.uploads: list[tuple[str, str]] = []
        self.upload_error = upload_error

    def list_objects_v2(self, Bucket: str, Prefix: str, MaxKeys: int = 1000) -> dict[str, Any]:
        keys = sorted(
            key for bucket, key in self.objects if bucket == Bucket and key.startswith(Prefix)
        )
        contents = [{"Key": key} for key in keys[:MaxKeys]]
        response: dict[str, Any] = {"KeyCount": len(contents)}
        if contents:
            response["Contents"] = contents
        return response

    def upload_fileobj(self, Fileobj: BinaryIO, Bucket: str, Key: str) -> None:
        if self.upload_error is not None:
            raise self.upload_error
        buffer = io.BytesIO()
        while chunk := Fileobj.read(8192):
            buffer.write(chunk)
        self.objects[(Bucket, Key)] = buffer.getvalue()
        self.uploads.append((Bucket, Key))

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": Key}}, "GetObject")
        return {"Body": FakeStreamingBody(self.objects[(Bucket, Key)])}
