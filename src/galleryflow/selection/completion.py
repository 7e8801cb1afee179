"""Single-fire completion latch."""

from __future__ import annotations

from typing import Callable


class CompletionLatch:
    """Run ``callback`` for the first caller of :meth:`fire` only.

    Several completion sources may race (a timer and a load callback); the
    first one wins and later calls are ignored.
    """

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def fire(self, *_: object) -> bool:
        if self._fired:
            return False
        self._fired = True
        self._callback()
        return True


__all__ = ["CompletionLatch"]
