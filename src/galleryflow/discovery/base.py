"""Interface of the image discovery collaborator.

The gallery core never implements discovery itself; it calls a service that
lists images, estimates and detects the numbered population and probes single
population addresses. Every call may fail or be slow; callers treat failures
as degradations, never as fatal errors.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..domain.models import ImageMetadata, ImageRange, ImageRecord


@runtime_checkable
class DiscoveryService(Protocol):
    async def list_initial(self, count: int) -> list[ImageRecord]:
        """Return up to ``count`` images as fast as possible."""

    async def list_up_to(self, count: int) -> list[ImageRecord]:
        """Return the first ``count`` images of the listing."""

    async def list_all(self) -> list[ImageRecord]:
        """Return every image of the listing."""

    async def list_all_via_range_detection(self) -> list[ImageRecord]:
        """Detect the population range and return every existing image in it."""

    async def estimate_count(self) -> int:
        """Return a cheap estimate of the population size."""

    async def detect_range(self) -> ImageRange:
        """Return the exact population bounds; raises on failure."""

    async def probe_exists(self, index: int, timeout_ms: int) -> bool:
        """Return whether population ``index`` resolves within ``timeout_ms``."""

    async def image_metadata(self, address: str) -> ImageMetadata | None:
        """Return title/ratio details for ``address`` or ``None`` if unknown."""

    def path_for(self, index: int) -> str:
        """Return the address (used as ``src``) of population ``index``."""


__all__ = ["DiscoveryService"]
