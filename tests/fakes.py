# tests/fakes.py
# -*- coding: utf-8 -*-
import asyncio
import io
from datetime import date
from typing import List, Optional

from PIL import Image

from services.errors import UploadError


class ManualClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class ManualDay:
    def __init__(self, day: date = date(2026, 10, 19)):
        self.day = day

    def __call__(self) -> date:
        return self.day


class FakeBlobStore:
    def __init__(self, fail_times: int = 0, gate: Optional[asyncio.Event] = None):
        self.calls: List[str] = []
        self.fail_times = fail_times
        self.gate = gate
        self.cleanups = 0
        self.deleted: List[str] = []

    async def upload(self, data: bytes, filename: str) -> str:
        self.calls.append(filename)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise UploadError("bucket unavailable")
        return f"https://storage.example/temp-images/{filename}"

    async def delete(self, filename: str) -> bool:
        self.deleted.append(filename)
        return True

    async def delete_expired(self) -> int:
        self.cleanups += 1
        return 0


def make_png(width: int = 64, height: int = 48, color=(40, 200, 90)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()
