# api/storage_api.py
# -*- coding: utf-8 -*-
"""
Blob store for compressed share images on a Google Cloud Storage bucket
(Firebase Storage buckets are plain GCS buckets).
Objects live under STORAGE_PREFIX and carry a `delete-after` metadata value
(epoch milliseconds) read by delete_expired().
"""

import asyncio
import logging
import time
from datetime import timedelta
from typing import Any, Optional
from google.cloud import storage
from config import STORAGE_BUCKET, FIREBASE_PROJECT_ID, STORAGE_PREFIX, STORAGE_URL_TTL_HOURS, STORAGE_SIGNED_URLS
from services.errors import UploadError

logger = logging.getLogger(__name__)

DELETE_AFTER_KEY = "delete-after"


# ================================== GcsBlobStore: Upload/delete on a GCS bucket ==================================
class GcsBlobStore:

    def __init__(
        self,
        bucket_name: str = STORAGE_BUCKET,
        client: Any = None,
        prefix: str = STORAGE_PREFIX,
        ttl_hours: int = STORAGE_URL_TTL_HOURS,
        signed_urls: bool = STORAGE_SIGNED_URLS,
    ):
        if not bucket_name:
            raise ValueError("Bucket not configured")
        self.bucket_name = bucket_name
        self.prefix = prefix
        self.ttl_seconds = ttl_hours * 60 * 60
        self.signed_urls = signed_urls
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = storage.Client(project=FIREBASE_PROJECT_ID)
        return self._client

    def _bucket(self):
        return self.client.bucket(self.bucket_name)

    def object_name(self, filename: str) -> str:
        return f"{self.prefix}{filename}"

    def _upload_sync(self, data: bytes, filename: str) -> str:
        blob = self._bucket().blob(self.object_name(filename))
        blob.cache_control = f"public, max-age={self.ttl_seconds}"
        blob.metadata = {DELETE_AFTER_KEY: str(int((time.time() + self.ttl_seconds) * 1000))}
        blob.upload_from_string(data, content_type="image/jpeg")
        if self.signed_urls:
            return blob.generate_signed_url(version="v4", expiration=timedelta(seconds=self.ttl_seconds), method="GET")
        blob.make_public()
        return blob.public_url

    async def upload(self, data: bytes, filename: str) -> str:
        start_time = time.time()
        try:
            url = await asyncio.to_thread(self._upload_sync, data, filename)
        except Exception as e:
            logger.error(f"Ошибка загрузки {filename} в gs://{self.bucket_name}: {e}")
            raise UploadError(f"upload of {filename} failed: {e}") from e
        logger.info(f"Uploaded {filename} ({len(data)} bytes) in {time.time() - start_time:.3f}s")
        return url

    def _delete_sync(self, filename: str) -> None:
        self._bucket().blob(self.object_name(filename)).delete()

    async def delete(self, filename: str) -> bool:
        try:
            await asyncio.to_thread(self._delete_sync, filename)
            return True
        except Exception as e:
            logger.warning(f"Не удалось удалить {filename}: {e}")
            return False

    def _delete_expired_sync(self, now_ms: int) -> int:
        deleted = 0
        for blob in self.client.list_blobs(self.bucket_name, prefix=self.prefix):
            delete_after = (blob.metadata or {}).get(DELETE_AFTER_KEY)
            if not delete_after:
                continue
            try:
                expired = now_ms > int(delete_after)
            except ValueError:
                logger.warning(f"Bad {DELETE_AFTER_KEY} on {blob.name}: {delete_after}")
                continue
            if expired:
                blob.delete()
                deleted += 1
        return deleted

    async def delete_expired(self, now_ms: Optional[int] = None) -> int:
        current_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        deleted = await asyncio.to_thread(self._delete_expired_sync, current_ms)
        logger.info(f"Cleaned up {deleted} expired images from gs://{self.bucket_name}/{self.prefix}")
        return deleted
# ================================== GcsBlobStore end ==================================

# api/storage_api.py end
