# tests/conftest.py
# -*- coding: utf-8 -*-
import os

import pytest

os.environ.setdefault("CARD_SERVER_URL", "")
os.environ.setdefault("REQUIRED_CHANNEL_ID", "")
os.environ.setdefault("STORAGE_BUCKET", "")
os.environ.setdefault("FIREBASE_PROJECT_ID", "")

from services.admission import AdmissionController
from services.artifacts import ImageArtifactCache
from services.points import PointsLedger
from services.sessions import SessionRegistry
from services.sharing import SharingCoordinator
from tests.fakes import FakeBlobStore, ManualClock, ManualDay, make_png


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def today():
    return ManualDay()


@pytest.fixture
def sessions(clock):
    return SessionRegistry(clock=clock)


@pytest.fixture
def admission(sessions, clock, today):
    return AdmissionController(sessions, daily_limit=10, cooldown_seconds=30, clock=clock, today=today)


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def artifacts(blob_store):
    return ImageArtifactCache(blob_store=blob_store)


@pytest.fixture
def points():
    return PointsLedger()


@pytest.fixture
def sharing(artifacts, points):
    return SharingCoordinator(artifacts, points, card_server_url=None, text_budget=250, attribution="@PEPEGOTAVOICE")


@pytest.fixture
def png_bytes():
    return make_png()
