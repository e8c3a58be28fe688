"""S3 storage provider: objects keyed <cid>/<file_name> in a bucket."""

import logging
import tempfile
from collections.abc import Iterable, Iterator
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from carti.core.errors import StorageUnavailable
from carti.core.storage.abc import StorageProvider

logger = logging.getLogger(__name__)

# Stage uploads in memory up to this size before spilling to disk
SPOOL_LIMIT = 16 * 1024 * 1024


class S3Provider(StorageProvider):
    """Stores bundles in an S3 bucket.

    Credentials and region come from the standard boto3 configuration chain.
    Pass client to reuse an existing client (tests pass a fake).

    botocore errors (missing credentials, denied access, unknown bucket) are
    raised as StorageUnavailable.
    """

    def __init__(self, bucket: str, client: Any = None, endpoint_url: str | None = None) -> None:
        self.bucket = bucket
        if client is None:
            client = boto3.client("s3", endpoint_url=endpoint_url)
        self._client = client

    def _find_key(self, cid: str) -> str | None:
        try:
            response = self._client.list_objects_v2(
                Bucket=self.bucket, Prefix=f"{cid}/", MaxKeys=1
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailable(f"s3://{self.bucket}", str(e)) from e
        contents = response.get("Contents", [])
        if not contents:
            return None
        return contents[0]["Key"]

    def exists(self, cid: str) -> bool:
        return self._find_key(cid) is not None

    def put(self, cid: str, file_name: str, chunks: Iterable[bytes]) -> None:
        key = f"{cid}/{file_name}"
        logger.debug("Uploading %s to s3://%s/%s", cid, self.bucket, key)
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_LIMIT) as staged:
            for chunk in chunks:
                staged.write(chunk)
            staged.seek(0)
            try:
                self._client.upload_fileobj(staged, self.bucket, key)
            except (BotoCoreError, ClientError) as e:
                raise StorageUnavailable(f"s3://{self.bucket}/{key}", str(e)) from e

    def get(self, cid: str) -> Iterator[bytes]:
        key = self._find_key(cid)
        if key is None:
            raise FileNotFoundError(f"No content stored for {cid} in s3://{self.bucket}")
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            raise FileNotFoundError(f"Could not read s3://{self.bucket}/{key}: {e}") from e
        yield from response["Body"].iter_chunks()

    def location(self, cid: str) -> str:
        key = self._find_key(cid)
        if key is None:
            return f"s3://{self.bucket}/{cid}"
        return f"s3://{self.bucket}/{key}"
