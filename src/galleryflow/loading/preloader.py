"""Best-effort warming of images around the cursor."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol, Sequence

import httpx

from ..config import GalleryConfig
from ..domain.models import ImageRecord

logger = logging.getLogger(__name__)


def compute_preload_window(current_index: int, length: int, window_size: int) -> list[int]:
    """Return indices to warm, highest priority first.

    Current, next and previous come first, followed by symmetric pairs at
    offsets ``2..window_size`` (previous side first). Indices wrap around the
    list; on short lists an index keeps only its first position.
    """
    if length <= 0:
        return []
    indices = [
        current_index % length,
        (current_index + 1) % length,
        (current_index - 1) % length,
    ]
    for offset in range(2, window_size + 1):
        indices.append((current_index - offset) % length)
        indices.append((current_index + offset) % length)
    return list(dict.fromkeys(indices))


class ImageFetcher(Protocol):
    async def fetch(self, src: str) -> bool:
        """Fetch ``src`` so later loads hit a warm cache; report success."""


@dataclass(slots=True)
class WarmedImages:
    """Sources that have been fetched successfully during this process."""

    _loaded: set[str] = field(default_factory=set)

    def mark_loaded(self, src: str) -> None:
        self._loaded.add(src)

    def is_loaded(self, src: str) -> bool:
        return src in self._loaded

    def __len__(self) -> int:
        return len(self._loaded)


warmed_images = WarmedImages()


@dataclass(slots=True)
class HttpImageFetcher:
    """Warm images by downloading them once over HTTP."""

    timeout_seconds: float = 5.0
    registry: WarmedImages = field(default_factory=lambda: warmed_images)
    log: logging.Logger = field(default_factory=lambda: logger)

    async def fetch(self, src: str) -> bool:
        if self.registry.is_loaded(src):
            return True
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(src)
        except httpx.HTTPError as exc:
            self.log.debug("gallery.preload.fetch_failed", extra={"src": src, "error": repr(exc)})
            return False
        if not 200 <= response.status_code < 300:
            return False
        self.registry.mark_loaded(src)
        return True


class Preloader:
    """Keep the neighbourhood of the cursor warm.

    Two warming paths run on every cursor change: the top entries of the
    priority window are fetched right away, and the immediate neighbours are
    fetched again after ``preload_delay_ms``. The delayed path is cancelled and
    rescheduled whenever the cursor moves before it fires.
    """

    def __init__(
        self,
        fetcher: ImageFetcher,
        config: GalleryConfig,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self._neighbor_timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[object]] = set()
        self.visible_indices: list[int] = []

    def update(self, current_index: int, images: Sequence[ImageRecord]) -> list[int]:
        """Recompute the window for a new cursor and start both warming paths."""
        self.visible_indices = compute_preload_window(
            current_index, len(images), self._config.preload_count
        )
        if images and self.visible_indices:
            self._spawn(self.warm_window(current_index, images))
        self.schedule_neighbors(current_index, images)
        return self.visible_indices

    async def warm_window(self, current_index: int, images: Sequence[ImageRecord]) -> list[bool]:
        window = compute_preload_window(current_index, len(images), self._config.preload_count)
        top = window[: self._config.preload_fetch_count]
        return list(await asyncio.gather(*(self.warm(images[index].src) for index in top)))

    def schedule_neighbors(self, current_index: int, images: Sequence[ImageRecord]) -> None:
        self.cancel_neighbors()
        if not images:
            return
        length = len(images)
        sources = [
            images[(current_index - 1) % length].src,
            images[(current_index + 1) % length].src,
        ]
        loop = asyncio.get_running_loop()

        def fire() -> None:
            self._neighbor_timer = None
            for src in sources:
                self._spawn(self.warm(src))

        self._neighbor_timer = loop.call_later(self._config.preload_delay_seconds, fire)

    async def warm(self, src: str) -> bool:
        try:
            return await self._fetcher.fetch(src)
        except Exception as exc:
            self._logger.debug("gallery.preload.failed", extra={"src": src, "error": repr(exc)})
            return False

    def cancel_neighbors(self) -> None:
        if self._neighbor_timer is not None:
            self._neighbor_timer.cancel()
            self._neighbor_timer = None

    def cancel(self) -> None:
        self.cancel_neighbors()

    @property
    def neighbor_warm_pending(self) -> bool:
        return self._neighbor_timer is not None

    async def drain(self) -> None:
        """Wait for warming requests that are already in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coroutine) -> None:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


__all__ = [
    "HttpImageFetcher",
    "ImageFetcher",
    "Preloader",
    "WarmedImages",
    "compute_preload_window",
    "warmed_images",
]
