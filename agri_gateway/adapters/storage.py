"""
Storage backends for staged input audio and generated speech.

LocalStorage writes under `upload_path` and returns a URL below
`public_base_url` (served by the app's /uploads mount). S3Storage uploads to a
bucket and returns the public virtual-hosted URL, which is also what Amazon
Transcribe reads staged audio from.
"""

import asyncio
import os
import uuid
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from agri_gateway.adapters.base import StorageBackend
from agri_gateway.config import get_settings
from agri_gateway.core.logging import get_logger
from agri_gateway.errors import StorageError

logger = get_logger(__name__)


def _object_name(extension: str) -> str:
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return f"{uuid.uuid4().hex}{extension.lower()}"


class LocalStorage(StorageBackend):
    def __init__(self, base_path: Optional[str] = None, public_base_url: Optional[str] = None) -> None:
        settings = get_settings()
        self._base_path = base_path if base_path is not None else settings.upload_path
        self._public_base_url = (
            public_base_url if public_base_url is not None else settings.public_base_url
        ).rstrip("/")
        os.makedirs(self._base_path, exist_ok=True)
        logger.info("Local storage initialised", extra={"base_path": self._base_path})

    async def save(self, data: bytes, content_type: str, extension: str, subdirectory: str) -> str:
        name = _object_name(extension)
        key = f"{subdirectory}/{name}"
        try:
            await asyncio.to_thread(self._write, subdirectory, name, data)
        except OSError as exc:
            raise StorageError(key, cause=exc) from exc

        logger.debug("Stored object locally", extra={"key": key, "bytes": len(data), "content_type": content_type})
        return f"{self._public_base_url}/{key}"

    def _write(self, subdirectory: str, name: str, data: bytes) -> None:
        target_dir = os.path.join(self._base_path, subdirectory)
        os.makedirs(target_dir, exist_ok=True)
        with open(os.path.join(target_dir, name), "wb") as fh:
            fh.write(data)


class S3Storage(StorageBackend):
    def __init__(
        self,
        bucket_name: Optional[str] = None,
        region: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        settings = get_settings()
        self._bucket = bucket_name or settings.s3_bucket_name
        self._region = region or settings.aws_region
        self._client = client or boto3.client(
            "s3",
            region_name=self._region,
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
        )
        logger.info("S3 storage initialised", extra={"bucket": self._bucket, "region": self._region})

    async def save(self, data: bytes, content_type: str, extension: str, subdirectory: str) -> str:
        key = f"{subdirectory}/{_object_name(extension)}"
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(key, cause=exc) from exc

        logger.debug("Uploaded object to S3", extra={"key": key, "bytes": len(data)})
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"
