import io
import logging
import os
import time
import urllib.request
import uuid
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import BinaryIO
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from gamestore.core.config import settings
from gamestore.core.errors import MediaUploadError

log = logging.getLogger("gamestore.media")

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".webp"}


def unique_name(original: str, prefix: str = "") -> str:
    ext = os.path.splitext(original)[1].lower()
    stamp = int(time.time() * 1000)
    rnd = uuid.uuid4().hex[:8]
    base = f"{prefix}_" if prefix else ""
    return f"{base}{stamp}_{rnd}{ext}"


class MediaStore(ABC):
    @abstractmethod
    async def upload(self, stream: BinaryIO, filename: str, folder: str) -> str:
        """Store the stream under folder/filename and return its public URL."""


class S3MediaStore(MediaStore):
    def __init__(self, bucket: str, region: str, base_url: str | None = None):
        self.bucket = bucket
        self.region = region
        self.base_url = base_url or f"https://{bucket}.s3.{region}.amazonaws.com"
        self.s3 = boto3.client("s3", region_name=region)

    async def upload(self, stream: BinaryIO, filename: str, folder: str) -> str:
        key = f"{folder}/{filename}"
        try:
            await run_in_threadpool(self.s3.upload_fileobj, stream, self.bucket, key)
        except (BotoCoreError, ClientError) as e:
            log.error("Upload of %s to s3://%s failed: %s", key, self.bucket, e)
            raise MediaUploadError() from e
        return f"{self.base_url.rstrip('/')}/{key}"


@lru_cache
def get_media_store() -> MediaStore:
    if not settings.S3_BUCKET:
        raise MediaUploadError("Media storage is not configured.")
    return S3MediaStore(settings.S3_BUCKET, settings.AWS_REGION, settings.MEDIA_BASE_URL)


def _fetch(url: str) -> bytes:
    request = urllib.request.Request(url, headers={"User-Agent": "gamestore/1.0"})
    with urllib.request.urlopen(request, timeout=30) as response:
        return response.read()

async def mirror_url(store: MediaStore, url: str, folder: str) -> str:
    """Download a remote file and re-host it in the media store."""
    original = os.path.basename(urlparse(url).path) or "file"
    try:
        data = await run_in_threadpool(_fetch, url)
    except OSError as e:
        raise MediaUploadError(f"Could not download {url}.") from e
    return await store.upload(io.BytesIO(data), unique_name(original), folder)


def get_optional_media_store() -> MediaStore | None:
    return get_media_store() if settings.S3_BUCKET else None
