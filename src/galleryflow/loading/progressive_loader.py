"""Progressive batch loader.

One activation runs up to three stages:

* ``initial`` fetches a small batch immediately for the first paint;
* ``expand`` fires ``second_batch_delay_ms`` after activation start;
* ``finalize`` fires ``final_batch_delay_ms`` after activation start.

A stage publishes only when its batch is strictly longer than what the
controller currently holds, so the visible list never shrinks and a slow
earlier stage cannot clobber a later one. Failures are logged and leave the
previously published batch in place.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from ..cache.gallery_cache import GalleryCache
from ..config import GalleryConfig
from ..discovery.base import DiscoveryService
from ..domain.models import ImageRecord

Publish = Callable[[list[ImageRecord]], None]
HeldLength = Callable[[], int]
Fetch = Callable[[int], Awaitable[list[ImageRecord]]]


@dataclass(slots=True)
class _ScheduledStage:
    name: str
    handle: asyncio.TimerHandle | None = None
    done: asyncio.Future[None] | None = None
    fired: bool = False


@dataclass(slots=True)
class LoadActivation:
    """Handle for one loader activation.

    ``dispose()`` cancels stages whose timer has not fired yet; stages that
    already started finish on their own.
    """

    _stages: list[_ScheduledStage] = field(default_factory=list)
    _tasks: set[asyncio.Task[None]] = field(default_factory=set)
    disposed: bool = False

    def schedule(
        self,
        name: str,
        when: float,
        run: Callable[[], Awaitable[None]],
    ) -> None:
        loop = asyncio.get_running_loop()
        stage = _ScheduledStage(name=name, done=loop.create_future())

        def fire() -> None:
            stage.fired = True
            task = loop.create_task(run())
            self._tasks.add(task)
            task.add_done_callback(lambda finished: self._finish(stage, finished))

        stage.handle = loop.call_at(when, fire)
        self._stages.append(stage)

    def dispose(self) -> None:
        self.disposed = True
        for stage in self._stages:
            if stage.fired or stage.handle is None:
                continue
            stage.handle.cancel()
            _resolve(stage.done)

    @property
    def pending(self) -> list[str]:
        """Names of stages that are scheduled but have not fired yet."""
        return [
            stage.name
            for stage in self._stages
            if not stage.fired and stage.done is not None and not stage.done.done()
        ]

    async def drain(self) -> None:
        """Wait until every scheduled stage either completed or was cancelled."""
        futures = [stage.done for stage in self._stages if stage.done is not None]
        if futures:
            await asyncio.gather(*futures)

    def _finish(self, stage: _ScheduledStage, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        _resolve(stage.done)


def _resolve(future: asyncio.Future[None] | None) -> None:
    if future is not None and not future.done():
        future.set_result(None)


class ProgressiveLoader:
    """Fetch increasingly larger batches and publish them monotonically."""

    def __init__(
        self,
        discovery: DiscoveryService,
        cache: GalleryCache,
        config: GalleryConfig,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._discovery = discovery
        self._cache = cache
        self._config = config
        self._logger = logger or logging.getLogger(__name__)

    async def activate(self, publish: Publish, held_length: HeldLength) -> LoadActivation:
        """Start loading; returns once the first paint (cache or initial batch) is done."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        activation = LoadActivation()

        if held_length() > 0:
            self._logger.debug("gallery.loader.skip", extra={"held": held_length()})
            return activation

        cached = self._cache.get_cached_images()
        if cached:
            self._logger.info("gallery.loader.cache_hit", extra={"count": len(cached)})
            publish(cached)
            return activation

        config = self._config
        activation.schedule(
            "expand",
            started + config.second_batch_delay_seconds,
            lambda: self._run_stage(
                "expand", config.second_batch_size, self._discovery.list_up_to, publish, held_length
            ),
        )
        activation.schedule(
            "finalize",
            started + config.final_batch_delay_seconds,
            lambda: self._run_stage(
                "finalize", config.final_batch_size, self._discovery.list_up_to, publish, held_length
            ),
        )
        await self._run_stage(
            "initial", config.initial_batch_size, self._discovery.list_initial, publish, held_length
        )
        return activation

    async def load_all(self, publish: Publish, held_length: HeldLength) -> list[ImageRecord] | None:
        """Load the full listing, falling back to range detection when listing fails."""
        try:
            images = await self._discovery.list_all()
        except Exception as exc:
            self._logger.warning("gallery.loader.list_all_failed", extra={"error": str(exc)})
            try:
                images = await self._discovery.list_all_via_range_detection()
            except Exception:
                self._logger.exception("gallery.loader.range_listing_failed")
                return None
        self._publish_if_larger("all", images, publish, held_length)
        return images

    async def _run_stage(
        self,
        stage: str,
        size: int,
        fetch: Fetch,
        publish: Publish,
        held_length: HeldLength,
    ) -> None:
        try:
            batch = await fetch(size)
        except Exception:
            self._logger.exception("gallery.loader.stage.failed", extra={"stage": stage, "size": size})
            return
        self._publish_if_larger(stage, batch, publish, held_length)

    def _publish_if_larger(
        self,
        stage: str,
        batch: list[ImageRecord],
        publish: Publish,
        held_length: HeldLength,
    ) -> bool:
        held = held_length()
        if len(batch) <= held:
            self._logger.info(
                "gallery.loader.stage.skipped",
                extra={"stage": stage, "batch": len(batch), "held": held},
            )
            return False
        publish(batch)
        self._cache.cache_images(batch)
        self._logger.info(
            "gallery.loader.stage.published",
            extra={"stage": stage, "batch": len(batch), "held": held},
        )
        return True


__all__ = ["LoadActivation", "ProgressiveLoader"]
