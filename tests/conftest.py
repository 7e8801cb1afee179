from __future__ import annotations

import pytest

from galleryflow.cache.gallery_cache import GalleryCache
from galleryflow.cache.session_storage import InMemorySessionStorage
from tests.mocks.gallery import FakeClock


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for name in (
        "GALLERY_INITIAL_BATCH_SIZE",
        "GALLERY_SECOND_BATCH_DELAY_MS",
        "GALLERY_CACHE_EXPIRY_MS",
        "GALLERY_LOG_LEVEL",
        "IMAGEKIT_PRIVATE_KEY",
        "IMAGEKIT_URL_ENDPOINT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> InMemorySessionStorage:
    return InMemorySessionStorage()


@pytest.fixture
def cache(storage: InMemorySessionStorage, clock: FakeClock) -> GalleryCache:
    return GalleryCache(storage, ttl_ms=300_000, clock=clock)
