"""Object storage backends for processed images."""
import asyncio
import logging
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

from shared.config import settings

logger = logging.getLogger(__name__)


class ObjectExistsError(Exception):
    """Raised when an upload would overwrite an existing key."""


class S3ObjectStorage:
    """S3-compatible storage (AWS S3, Cloudflare R2)."""

    def __init__(
        self,
        bucket: str = None,
        public_url: str = None,
        endpoint_url: str = None,
        access_key_id: str = None,
        secret_access_key: str = None,
        client=None,
    ):
        self.bucket = bucket or settings.s3_bucket_name
        self.public_url = (public_url or settings.s3_public_url).rstrip("/")
        self.client = client or boto3.client(
            "s3",
            region_name="auto",
            endpoint_url=endpoint_url or settings.s3_endpoint_url,
            aws_access_key_id=access_key_id or settings.s3_access_key_id,
            aws_secret_access_key=secret_access_key or settings.s3_secret_access_key,
        )

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store `data` under a new `key` and return its public URL."""
        await asyncio.to_thread(self._put, key, data, content_type)
        return f"{self.public_url}/{key}"

    def _put(self, key: str, data: bytes, content_type: str) -> None:
        if self._exists(key):
            raise ObjectExistsError(f"Object {key} already exists in {self.bucket}")
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        logger.info(f"Uploaded {len(data)} bytes to s3://{self.bucket}/{key}")

    def _exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise


class LocalFileStorage:
    """Filesystem storage served as static files under a URL prefix."""

    def __init__(self, upload_dir: str = None, url_prefix: str = None):
        self.upload_dir = Path(upload_dir or settings.local_upload_dir)
        self.url_prefix = (url_prefix or settings.local_upload_url_prefix).rstrip("/")

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Write `data` to a new file named `key` and return its URL."""
        await asyncio.to_thread(self._write, key, data)
        return f"{self.url_prefix}/{key}"

    def _write(self, key: str, data: bytes) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.upload_dir / key
        # "xb" refuses to overwrite
        try:
            with open(path, "xb") as f:
                f.write(data)
        except FileExistsError as e:
            raise ObjectExistsError(f"File {path} already exists") from e
        logger.info(f"Saved {len(data)} bytes to {path}")


def get_storage():
    """Storage backend selected by settings."""
    if settings.storage_backend == "local":
        return LocalFileStorage()
    return S3ObjectStorage()
