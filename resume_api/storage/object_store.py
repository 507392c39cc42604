"""S3-compatible object storage for portfolio files.

``ObjectStore`` is the interface the services depend on. ``S3ObjectStore``
talks to MinIO, Cloudflare R2 or AWS S3 through boto3; its calls block, so
each one runs in a worker thread.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from resume_api.config import Settings, get_settings
from resume_api.exceptions import ObjectStoreError

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024


class ObjectStore(ABC):
    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its retrieval URL."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def presigned_get_url(self, key: str, ttl_seconds: int) -> str:
        ...

    @abstractmethod
    async def get_stream(self, key: str) -> tuple[AsyncIterator[bytes], Optional[str]]:
        """Return an async byte iterator over the object and its stored content type."""


class S3ObjectStore(ObjectStore):
    def __init__(self, settings: Settings):
        self.bucket = settings.s3_bucket
        self.endpoint_url = settings.s3_endpoint_url or None
        self.public_base_url = settings.s3_public_base_url
        self._bucket_ready = False
        self.client = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=settings.s3_access_key_id or None,
            aws_secret_access_key=settings.s3_secret_access_key or None,
            config=Config(signature_version="s3v4"),
            region_name=settings.s3_region,
        )

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code not in ("404", "NoSuchBucket", "NotFound"):
                raise
            logger.info("Bucket %s not found, creating it", self.bucket)
            self.client.create_bucket(Bucket=self.bucket)
        self._bucket_ready = True

    def _object_url(self, key: str) -> str:
        base = self.public_base_url or f"{self.endpoint_url or 'https://s3.amazonaws.com'}/{self.bucket}"
        return f"{base.rstrip('/')}/{quote(key)}"

    def _put(self, key: str, data: bytes, content_type: str) -> str:
        self._ensure_bucket()
        self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        return self._object_url(key)

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            return await asyncio.to_thread(self._put, key, data, content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error("Object upload failed: key=%s error=%s", key, e)
            raise ObjectStoreError(f"Failed to store {key}", cause=e) from e

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(f"Failed to delete {key}", cause=e) from e

    async def presigned_get_url(self, key: str, ttl_seconds: int) -> str:
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(f"Failed to presign {key}", cause=e) from e

    async def get_stream(self, key: str) -> tuple[AsyncIterator[bytes], Optional[str]]:
        try:
            obj = await asyncio.to_thread(self.client.get_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(f"Failed to read {key}", cause=e) from e

        body = obj["Body"]

        async def _iter() -> AsyncIterator[bytes]:
            try:
                while True:
                    chunk = await asyncio.to_thread(body.read, STREAM_CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
            finally:
                body.close()

        return _iter(), obj.get("ContentType")


_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
    """FastAPI dependency; one boto3 client per process."""
    global _store
    if _store is None:
        _store = S3ObjectStore(get_settings())
    return _store
