"""Uniform random selection over the true image population.

The population size is unknown up front, so the bound comes from the session
cache or, once per session, from the discovery range detector. A drawn index
is verified with a time-bounded existence probe before it is shown; missing
targets restart the selection within a fixed retry budget. When randomisation
cannot produce a verified target the selector falls back to another image of
the already-loaded list.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Sequence

from ..cache.gallery_cache import GalleryCache
from ..config import GalleryConfig
from ..discovery.base import DiscoveryService
from ..domain.images import (
    add_image,
    extract_image_filename,
    extract_image_number,
    fallback_index,
    file_stem,
    generate_random_number,
)
from ..domain.models import ImageRecord, RandomSelection
from ..exceptions import DiscoveryError

# bound used when range detection fails: max(MIN_HEURISTIC_BOUND, 2 * loaded)
MIN_HEURISTIC_BOUND = 100


class RandomSelector:
    def __init__(
        self,
        discovery: DiscoveryService,
        cache: GalleryCache,
        config: GalleryConfig,
        *,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._discovery = discovery
        self._cache = cache
        self._config = config
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger(__name__)
        self._detection_failed = False

    async def select(
        self, images: Sequence[ImageRecord], current_index: int
    ) -> RandomSelection | None:
        """Pick a random image other than the current one.

        Returns ``None`` when nothing can be selected; unexpected failures
        degrade to the loaded-list fallback.
        """
        if not images:
            return None
        try:
            return await self._select(images, current_index)
        except Exception:
            self._logger.exception(
                "gallery.random.failed",
                extra={"loaded": len(images), "current_index": current_index},
            )
            return self.fallback(images, current_index)

    async def resolve_bound(self, loaded_count: int) -> int:
        bound, _ = await self._resolve_bound(loaded_count)
        return bound

    def fallback(
        self,
        images: Sequence[ImageRecord],
        current_index: int,
        population: int | None = None,
    ) -> RandomSelection | None:
        index = fallback_index(images, current_index, rng=self._rng)
        if index is None:
            return None
        self._logger.info("gallery.random.fallback", extra={"index": index})
        return RandomSelection(index=index, images=list(images), population=population)

    async def build_record(self, number: int) -> ImageRecord:
        src = self._discovery.path_for(number)
        try:
            metadata = await self._discovery.image_metadata(src)
        except Exception as exc:
            self._logger.debug("gallery.random.metadata_failed", extra={"src": src, "error": repr(exc)})
            metadata = None
        if metadata is None:
            stub = ImageRecord(id=str(number), src=src)
            file_name = extract_image_filename(stub) or f"{number}.jpg"
            return ImageRecord(
                id=str(number),
                src=src,
                file_name=file_name,
                ratio=self._config.default_image_ratio,
                title=file_stem(file_name),
            )
        return ImageRecord(
            id=str(number),
            src=src,
            file_name=metadata.file_name,
            ratio=metadata.ratio,
            title=metadata.title,
        )

    async def _select(
        self, images: Sequence[ImageRecord], current_index: int
    ) -> RandomSelection | None:
        config = self._config
        current = images[current_index] if 0 <= current_index < len(images) else None
        excluded = extract_image_number(current) if current is not None else None
        bound, detected = await self._resolve_bound(len(images))
        if bound < 1:
            self._logger.warning("gallery.random.empty_range", extra={"bound": bound})
            return None
        # only a cached or detected bound describes the real population
        population = bound if detected else None

        for attempt in range(1, config.max_selection_retries + 1):
            number = generate_random_number(
                bound, excluded, config.max_random_attempts, rng=self._rng
            )
            if number is None:
                self._logger.info(
                    "gallery.random.draws_exhausted",
                    extra={"bound": bound, "excluded": excluded},
                )
                return self.fallback(images, current_index, population)

            if await self._exists(number):
                record = await self.build_record(number)
                updated, index = add_image(images, record)
                self._logger.info(
                    "gallery.random.selected",
                    extra={"number": number, "index": index, "attempt": attempt},
                )
                return RandomSelection(index=index, images=updated, record=record, population=population)

            self._logger.info(
                "gallery.random.missing_target",
                extra={"number": number, "attempt": attempt},
            )

        self._logger.warning(
            "gallery.random.retries_exhausted",
            extra={"retries": config.max_selection_retries},
        )
        return self.fallback(images, current_index, population)

    async def _resolve_bound(self, loaded_count: int) -> tuple[int, bool]:
        """Return the draw bound and whether it came from the cache or the detector.

        The detector runs at most once per session: a success is cached and a
        failure is remembered, after which the loaded-count heuristic is used.
        """
        cached = self._cache.get_cached_range()
        if cached is not None:
            return cached.max, True
        heuristic = max(MIN_HEURISTIC_BOUND, 2 * loaded_count)
        if self._detection_failed:
            return heuristic, False
        try:
            detected = await self._discovery.detect_range()
        except Exception as exc:
            self._detection_failed = True
            self._logger.warning(
                "gallery.random.range_fallback",
                extra={"error": str(exc), "bound": heuristic},
            )
            return heuristic, False
        self._cache.cache_range(detected)
        self._logger.info("gallery.random.range_detected", extra={"max": detected.max})
        return detected.max, True

    async def _exists(self, number: int) -> bool:
        timeout_ms = self._config.image_exist_timeout_ms
        try:
            return await asyncio.wait_for(
                self._discovery.probe_exists(number, timeout_ms),
                self._config.image_exist_timeout_seconds,
            )
        except (asyncio.TimeoutError, DiscoveryError):
            return False


__all__ = ["MIN_HEURISTIC_BOUND", "RandomSelector"]
