"""Tests for :class:`RandomSelector` bounds, verification and fallbacks."""

from __future__ import annotations

import random

import pytest

from galleryflow.cache.gallery_cache import GalleryCache
from galleryflow.domain.models import ImageMetadata, ImageRange, ImageRatio, ImageRecord
from galleryflow.exceptions import DiscoveryError, RangeDetectionError
from galleryflow.selection.random_selector import MIN_HEURISTIC_BOUND, RandomSelector
from tests.mocks.gallery import FakeDiscovery, make_config, make_records

pytestmark = pytest.mark.unit


def _make_selector(
    discovery: FakeDiscovery, cache: GalleryCache, *, seed: int = 7, **overrides
) -> RandomSelector:
    return RandomSelector(discovery, cache, make_config(**overrides), rng=random.Random(seed))


@pytest.mark.asyncio
async def test_missing_targets_fall_back_to_loaded_image(cache: GalleryCache) -> None:
    cache.cache_range(ImageRange(max=2))
    discovery = FakeDiscovery(population=2, missing={2})
    selector = _make_selector(discovery, cache)
    images = [ImageRecord(id="1", src="/1.jpg"), ImageRecord(id="2", src="/2.jpg")]

    selection = await selector.select(images, 0)

    assert selection is not None
    assert selection.index == 1
    assert selection.record is None
    assert selection.images == images
    assert discovery.probes == [2, 2, 2, 2, 2]


@pytest.mark.asyncio
async def test_verified_draw_is_appended(cache: GalleryCache) -> None:
    cache.cache_range(ImageRange(max=50))
    discovery = FakeDiscovery(population=50)
    selector = _make_selector(discovery, cache)
    images = make_records(2)

    selection = await selector.select(images, 0)

    assert selection.record is not None
    assert selection.record.src != "/1.jpg"
    assert selection.population == 50
    assert selection.images[selection.index] == selection.record
    assert len(images) == 2
    if selection.record.src == "/2.jpg":
        assert selection.index == 1
    else:
        assert selection.index == 2
        assert len(selection.images) == 3


@pytest.mark.asyncio
async def test_draw_of_loaded_image_reuses_its_index(cache: GalleryCache) -> None:
    cache.cache_range(ImageRange(max=2))
    discovery = FakeDiscovery(population=2)
    selector = _make_selector(discovery, cache)
    images = make_records(2)

    selection = await selector.select(images, 0)

    assert selection.index == 1
    assert len(selection.images) == 2
    assert discovery.probes == [2]


@pytest.mark.asyncio
async def test_never_selects_the_current_population_index(cache: GalleryCache) -> None:
    cache.cache_range(ImageRange(max=3))
    discovery = FakeDiscovery(population=3)
    selector = _make_selector(discovery, cache, seed=11)
    images = make_records(3)

    for _ in range(30):
        selection = await selector.select(images, 1)
        assert selection.images[selection.index].src != "/2.jpg"


@pytest.mark.asyncio
async def test_range_is_detected_once_and_cached(cache: GalleryCache) -> None:
    discovery = FakeDiscovery(population=10)
    selector = _make_selector(discovery, cache)

    await selector.select(make_records(3), 0)
    await selector.select(make_records(3), 0)

    assert discovery.range_calls == 1
    assert cache.get_cached_range() == ImageRange(max=10)


@pytest.mark.asyncio
async def test_failed_detection_uses_uncached_heuristic_bound(cache: GalleryCache) -> None:
    discovery = FakeDiscovery(population=1_000, range_error=RangeDetectionError("offline"))
    selector = _make_selector(discovery, cache)

    selection = await selector.select(make_records(3), 0)

    assert selection.population is None
    assert all(1 <= number <= MIN_HEURISTIC_BOUND for number in discovery.probes)
    assert cache.get_cached_range() is None


@pytest.mark.asyncio
async def test_failed_detection_is_not_retried_within_the_session(cache: GalleryCache) -> None:
    discovery = FakeDiscovery(
        population=3, missing={2, 3}, range_error=RangeDetectionError("offline")
    )
    selector = _make_selector(discovery, cache, max_selection_retries=5)

    first = await selector.select(make_records(3), 0)
    second = await selector.select(make_records(3), 0)

    assert len(discovery.probes) == 10
    assert first.record is None and second.record is None
    assert discovery.range_calls == 1


@pytest.mark.asyncio
async def test_heuristic_bound_scales_with_loaded_images(cache: GalleryCache) -> None:
    discovery = FakeDiscovery(range_error=RangeDetectionError("offline"))
    selector = _make_selector(discovery, cache)

    assert await selector.resolve_bound(80) == 160
    assert await selector.resolve_bound(10) == MIN_HEURISTIC_BOUND
    assert discovery.range_calls == 1


@pytest.mark.asyncio
async def test_empty_list_selects_nothing(cache: GalleryCache) -> None:
    discovery = FakeDiscovery()
    selector = _make_selector(discovery, cache)

    assert await selector.select([], 0) is None
    assert discovery.probes == []


@pytest.mark.asyncio
async def test_single_image_population_selects_nothing(cache: GalleryCache) -> None:
    cache.cache_range(ImageRange(max=1))
    selector = _make_selector(FakeDiscovery(population=1), cache)

    assert await selector.select(make_records(1), 0) is None


@pytest.mark.asyncio
async def test_slow_probe_counts_as_missing(cache: GalleryCache) -> None:
    cache.cache_range(ImageRange(max=2))
    discovery = FakeDiscovery(population=2, probe_delay=0.2)
    selector = _make_selector(discovery, cache, image_exist_timeout_ms=10, max_selection_retries=2)

    selection = await selector.select(make_records(2), 0)

    assert selection.index == 1
    assert selection.record is None


@pytest.mark.asyncio
async def test_probe_errors_count_as_missing(cache: GalleryCache) -> None:
    cache.cache_range(ImageRange(max=5))
    discovery = FakeDiscovery(population=5, probe_error=DiscoveryError("reset"))
    selector = _make_selector(discovery, cache, max_selection_retries=3)

    selection = await selector.select(make_records(3), 0)

    assert selection.record is None
    assert selection.index in (1, 2)
    assert len(discovery.probes) == 3


@pytest.mark.asyncio
async def test_unexpected_errors_degrade_to_fallback(cache: GalleryCache) -> None:
    cache.cache_range(ImageRange(max=5))
    discovery = FakeDiscovery(population=5, probe_error=RuntimeError("boom"))
    selector = _make_selector(discovery, cache)

    selection = await selector.select(make_records(2), 0)

    assert selection.index == 1
    assert selection.record is None


@pytest.mark.asyncio
async def test_build_record_uses_metadata_when_available(cache: GalleryCache) -> None:
    discovery = FakeDiscovery(
        metadata={
            "/4.jpg": ImageMetadata(
                title="4", ratio=ImageRatio.LANDSCAPE, file_name="4.jpg", file_type="jpg"
            )
        }
    )
    selector = _make_selector(discovery, cache)

    with_metadata = await selector.build_record(4)
    without_metadata = await selector.build_record(9)

    assert with_metadata == ImageRecord(
        id="4", src="/4.jpg", file_name="4.jpg", ratio=ImageRatio.LANDSCAPE, title="4"
    )
    assert without_metadata.ratio is ImageRatio.WIDE
    assert without_metadata.file_name == "9.jpg"
    assert without_metadata.id == "9"
