"""Blob storage for avatar files — local filesystem or S3.

Learn: The rest of the app only sees the FileStorage protocol: upload a
key, delete a key, turn a key into a public URL. The database stores keys
(relative paths), never absolute URLs, so moving buckets or CDNs only
changes configuration.

boto3 is synchronous, and so is file I/O; both run in a worker thread so
the event loop is never blocked.
"""

import asyncio
from pathlib import Path
from typing import Protocol

import structlog

from tasktrack.config import Settings

logger = structlog.get_logger()


def avatar_key(user_id, kind: str) -> str:
    """Storage key for one avatar rendition of a user."""
    return f"users/{user_id}/avatar/avatar_{kind}.jpg"


class FileStorage(Protocol):
    async def upload(self, key: str, data: bytes, content_type: str) -> None: ...

    async def delete(self, key: str) -> None: ...

    def url(self, key: str) -> str: ...


class LocalFileStorage:
    """Stores files under a directory, served from base_url."""

    def __init__(self, root: str | Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValueError(f"Storage key escapes root: {key}")
        return path

    async def upload(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._path(key).unlink, missing_ok=True)

    def url(self, key: str) -> str:
        return f"{self.base_url}/{key}"


class S3FileStorage:
    """Stores files in an S3 bucket as public-read objects."""

    def __init__(self, bucket: str, region: str = "us-east-1", client=None):
        if client is None:
            import boto3

            client = boto3.client("s3", region_name=region)
        self.client = client
        self.bucket = bucket
        self.region = region

    async def upload(self, key: str, data: bytes, content_type: str) -> None:
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            ACL="public-read",
        )

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(
            self.client.delete_object, Bucket=self.bucket, Key=key
        )

    def url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


def build_storage(settings: Settings) -> FileStorage:
    """Pick the storage backend from configuration."""
    if settings.storage_backend == "s3":
        logger.info("storage.s3", bucket=settings.s3_bucket, region=settings.s3_region)
        return S3FileStorage(settings.s3_bucket, settings.s3_region)
    return LocalFileStorage(settings.storage_root, settings.storage_base_url)
