"""Gallery controller: the single owner of mutable gallery state.

The loader, selector and preloader receive values and hand results back; the
controller merges them into :class:`GalleryState`. ``images`` only grows
(deduplicated by ``src``) so indices handed to the rendering layer stay
valid while batches and random draws arrive.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import GalleryConfig
from ..domain.images import find_image_index, merge_images
from ..domain.models import GalleryState, ImageRecord, RandomSelection
from ..exceptions import NavigationUnavailableError
from ..loading.preloader import Preloader, compute_preload_window
from ..loading.progressive_loader import LoadActivation, ProgressiveLoader
from ..selection.completion import CompletionLatch
from ..selection.random_selector import RandomSelector


class GalleryController:
    def __init__(
        self,
        loader: ProgressiveLoader,
        selector: RandomSelector,
        preloader: Preloader,
        config: GalleryConfig,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loader = loader
        self._selector = selector
        self._preloader = preloader
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self.state = GalleryState()
        self._activation: LoadActivation | None = None
        self._activating = False
        self._completion_timer: asyncio.TimerHandle | None = None
        self._release_timer: asyncio.TimerHandle | None = None
        self._warm_tasks: set[asyncio.Task[bool]] = set()

    # --- read side ---

    @property
    def images(self) -> list[ImageRecord]:
        return list(self.state.images)

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @property
    def loading(self) -> bool:
        return self.state.loading

    @property
    def shuffle_loading(self) -> bool:
        return self.state.shuffle_loading

    @property
    def total_available(self) -> int:
        """Detected population size; may exceed the number of materialised images."""
        return self.state.total_available

    @property
    def visible_indices(self) -> list[int]:
        return list(self._preloader.visible_indices)

    @property
    def activation(self) -> LoadActivation | None:
        return self._activation

    @property
    def can_navigate(self) -> bool:
        state = self.state
        return bool(state.images) and not state.transitioning and not state.shuffle_loading

    # --- loading ---

    async def activate(self) -> LoadActivation | None:
        """Trigger progressive loading once; later calls are no-ops.

        After a failed first batch the activation may still have stages
        waiting on timers; those keep the load going, so a repeated call
        returns them instead of starting over.
        """
        if self.state.has_loaded or self._activating:
            return self._activation
        previous = self._activation
        if previous is not None and previous.pending:
            return previous
        self._activating = True
        self.state.loading = True
        try:
            if previous is not None:
                previous.dispose()
            self._activation = await self._loader.activate(self._publish, self._held_length)
        finally:
            self._activating = False
            self.state.loading = False
        return self._activation

    async def load_all(self) -> int:
        """Load the full listing; returns the number of images now held."""
        self.state.loading = True
        try:
            listed = await self._loader.load_all(self._publish, self._held_length)
        finally:
            self.state.loading = False
        if listed is not None:
            self.state.total_available = max(len(listed), len(self.state.images))
        return len(self.state.images)

    def dispose(self) -> None:
        if self._activation is not None:
            self._activation.dispose()
        self._preloader.cancel()
        self._cancel_shuffle_timers()
        self.state.shuffle_loading = False

    # --- navigation ---

    def next(self) -> int:
        return self._move(1)

    def prev(self) -> int:
        return self._move(-1)

    def open(self, index: int) -> int:
        if not 0 <= index < len(self.state.images):
            raise IndexError(f"image index {index} is out of range")
        self._set_cursor(index)
        return index

    def begin_transition(self) -> None:
        self.state.transitioning = True

    def end_transition(self) -> None:
        self.state.transitioning = False

    # --- random selection ---

    async def random_image(self) -> int | None:
        """Jump to a random image; ``None`` means nothing could be selected."""
        state = self.state
        if state.shuffle_loading or not state.images:
            return None
        state.shuffle_loading = True
        try:
            selection = await self._selector.select(state.images, state.current_index)
        except BaseException:
            self._release_shuffle()
            raise
        if selection is None:
            self._release_shuffle()
            return None

        index = self._apply_selection(selection)
        if selection.record is None:
            self._release_shuffle()
        else:
            self._complete_when_warm(selection.record)
        return index

    # --- internals ---

    def _held_length(self) -> int:
        return len(self.state.images)

    def _publish(self, batch: list[ImageRecord]) -> None:
        state = self.state
        was_empty = not state.images
        state.images = merge_images(state.images, batch)
        state.has_loaded = state.has_loaded or bool(state.images)
        state.total_available = max(state.total_available, len(state.images))
        if was_empty and state.images:
            state.current_index = 0
            self._preloader.update(0, state.images)
        else:
            self._preloader.visible_indices = compute_preload_window(
                state.current_index, len(state.images), self._config.preload_count
            )

    def _move(self, step: int) -> int:
        state = self.state
        if not state.images:
            raise NavigationUnavailableError("no images loaded")
        if state.transitioning or state.shuffle_loading:
            raise NavigationUnavailableError(
                "navigation is disabled while a transition or shuffle is in flight"
            )
        index = (state.current_index + step) % len(state.images)
        self._set_cursor(index)
        return index

    def _set_cursor(self, index: int) -> None:
        self.state.current_index = index
        self._preloader.update(index, self.state.images)

    def _apply_selection(self, selection: RandomSelection) -> int:
        state = self.state
        chosen = selection.images[selection.index]
        state.images = merge_images(state.images, selection.images)
        index = find_image_index(state.images, chosen.src)
        if selection.population is not None:
            state.total_available = max(selection.population, len(state.images))
        else:
            state.total_available = max(state.total_available, len(state.images))
        self._set_cursor(index)
        return index

    def _complete_when_warm(self, record: ImageRecord) -> None:
        """Release the shuffle lock once the chosen image is warm or a timer elapses."""
        loop = asyncio.get_running_loop()
        latch = CompletionLatch(self._schedule_release)
        self._completion_timer = loop.call_later(
            self._config.image_exist_timeout_seconds, latch.fire
        )
        task = loop.create_task(self._preloader.warm(record.src))
        self._warm_tasks.add(task)
        task.add_done_callback(self._warm_tasks.discard)
        task.add_done_callback(latch.fire)

    def _schedule_release(self) -> None:
        if self._completion_timer is not None:
            self._completion_timer.cancel()
            self._completion_timer = None
        loop = asyncio.get_running_loop()
        self._release_timer = loop.call_later(
            self._config.shuffle_complete_delay_seconds, self._release_shuffle
        )

    def _release_shuffle(self) -> None:
        self._cancel_shuffle_timers()
        self.state.shuffle_loading = False

    def _cancel_shuffle_timers(self) -> None:
        for timer in (self._completion_timer, self._release_timer):
            if timer is not None:
                timer.cancel()
        self._completion_timer = None
        self._release_timer = None


__all__ = ["GalleryController"]
