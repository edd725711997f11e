# services/artifacts.py
# -*- coding: utf-8 -*-
"""
In-process cache of generated images and their lazily published URLs.
ensure_uploaded() is single-flight per key: concurrent callers share one
upload task; a failed upload is not remembered, so the next call retries.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class ImageArtifact:
    original: bytes
    compressed: bytes
    filename: str
    public_url: Optional[str] = None


# ================================== ImageArtifactCache: Artifacts with single-flight upload ==================================
class ImageArtifactCache:

    def __init__(self, blob_store: Optional[Any] = None):
        self.blob_store = blob_store
        self._artifacts: Dict[str, ImageArtifact] = {}
        self._inflight: Dict[str, asyncio.Task] = {}

    def put(self, key: str, original: bytes, compressed: bytes, filename: str) -> ImageArtifact:
        artifact = ImageArtifact(original=original, compressed=compressed, filename=filename)
        self._artifacts[key] = artifact
        logger.debug(f"Artifact cached: {key} ({len(original)} -> {len(compressed)} bytes, {filename})")
        return artifact

    def get(self, key: str) -> Optional[ImageArtifact]:
        return self._artifacts.get(key)

    def size(self) -> int:
        return len(self._artifacts)

    async def discard(self, key: str) -> bool:
        """Drops the artifact and deletes its hosted object, if it has one."""
        artifact = self._artifacts.pop(key, None)
        if artifact is None or not artifact.public_url or self.blob_store is None:
            return False
        deleted = await self.blob_store.delete(artifact.filename)
        logger.info(f"Artifact {key} discarded, hosted object {'deleted' if deleted else 'left for expiry cleanup'}.")
        return deleted

    async def _upload(self, key: str, artifact: ImageArtifact) -> Optional[str]:
        try:
            url = await self.blob_store.upload(artifact.compressed, artifact.filename)
        except Exception as e:
            logger.warning(f"Upload failed for artifact {key}: {e}")
            return None
        if not url:
            logger.warning(f"Upload for artifact {key} returned no URL.")
            return None
        if artifact.public_url is None:
            artifact.public_url = url
        logger.info(f"Artifact {key} uploaded: {artifact.public_url}")
        return artifact.public_url

    def _clear_inflight(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def ensure_uploaded(self, key: str) -> Optional[str]:
        artifact = self._artifacts.get(key)
        if artifact is None:
            logger.debug(f"ensure_uploaded: unknown artifact {key}")
            return None
        if artifact.public_url:
            return artifact.public_url
        if self.blob_store is None:
            logger.warning(f"No blob store configured, artifact {key} stays local.")
            return None
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._upload(key, artifact))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._clear_inflight(k, t))
        return await asyncio.shield(task)
# ================================== ImageArtifactCache end ==================================

# services/artifacts.py end
