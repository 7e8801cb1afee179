"""ImageKit backed discovery service.

Two discovery strategies are supported:

* the List Files API (``GET /v1/files`` with the private key as basic-auth
  username) which returns files with any name and type;
* numeric probing of the ``<path_prefix><n>.jpg`` population through the
  public delivery endpoint, used when the API is not configured or fails.

Probes request a 10px wide rendition so existence checks stay cheap; the
same bytes are decoded with Pillow to derive the aspect ratio bucket.
"""

from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from PIL import Image

from ..config import ImageKitConfig
from ..domain.images import file_extension, file_stem, is_image_file, ratio_for_dimensions
from ..domain.models import ImageMetadata, ImageRange, ImageRatio, ImageRecord
from ..exceptions import DiscoveryError, RangeDetectionError

logger = logging.getLogger(__name__)

PROBE_TRANSFORMATION = "tr=q-20,f-webp,w-10"
PLACEHOLDER_TRANSFORMATION = "tr=q-20,f-webp,w-30,bl-10"

DISCOVERY_PROBE_TIMEOUT = 0.8
RANGE_PROBE_TIMEOUT = 1.5
RANGE_DOUBLING_START = 1_000
RANGE_DOUBLING_TIMEOUT = 1.5
RANGE_BISECT_TIMEOUT = 1.0
SAMPLE_INTERVAL = 50
SAMPLE_LIMIT = 2_000
SAMPLE_TIMEOUT = 0.8
SAMPLE_MAX_GAPS = 3
FALLBACK_DISCOVERY_LIMIT = 500


@dataclass(slots=True)
class ImageKitDiscovery:
    """Discover gallery images stored in an ImageKit media library."""

    config: ImageKitConfig
    log: logging.Logger = field(default_factory=lambda: logger)

    # --- addressing ---

    def population_path(self, index: int) -> str:
        return f"{self.config.path_prefix}{index}.jpg"

    def path_for(self, index: int) -> str:
        return f"{self.config.url_endpoint}{self.population_path(index)}"

    # --- listings ---

    async def list_initial(self, count: int) -> list[ImageRecord]:
        return await self.list_up_to(count)

    async def list_up_to(self, count: int) -> list[ImageRecord]:
        if self.config.private_key:
            try:
                return await self._list_api_images(limit=count)
            except DiscoveryError as exc:
                self.log.warning(
                    "imagekit.list.api_failed",
                    extra={"count": count, "error": str(exc)},
                )
        return await self.discover_numbered(count)

    async def list_all(self) -> list[ImageRecord]:
        if not self.config.private_key:
            raise DiscoveryError("IMAGEKIT_PRIVATE_KEY is not set")
        return await self._list_api_images(limit=None)

    async def list_all_via_range_detection(self) -> list[ImageRecord]:
        try:
            image_range = await self.detect_range()
        except DiscoveryError as exc:
            self.log.warning(
                "imagekit.range.fallback",
                extra={"error": str(exc), "limit": FALLBACK_DISCOVERY_LIMIT},
            )
            return await self.discover_numbered(FALLBACK_DISCOVERY_LIMIT)
        return await self.list_range(image_range.min, image_range.max)

    async def list_range(self, start: int, end: int) -> list[ImageRecord]:
        """Probe ``start..end`` in concurrent batches and keep existing images."""
        images: list[ImageRecord] = []
        batch_size = self.config.range_batch_size
        for batch_start in range(start, end + 1, batch_size):
            numbers = range(batch_start, min(batch_start + batch_size, end + 1))
            contents = await asyncio.gather(
                *(self._probe(self.path_for(number), RANGE_PROBE_TIMEOUT) for number in numbers)
            )
            for number, content in zip(numbers, contents):
                if content is not None:
                    images.append(self._numbered_record(number, content))
        self.log.info(
            "imagekit.range.loaded",
            extra={"start": start, "end": end, "found": len(images)},
        )
        return images

    async def discover_numbered(self, limit: int) -> list[ImageRecord]:
        """Probe ``1..limit`` sequentially until too many consecutive misses."""
        images: list[ImageRecord] = []
        failures = 0
        for number in range(1, limit + 1):
            if failures >= self.config.max_consecutive_failures:
                break
            content = await self._probe(self.path_for(number), DISCOVERY_PROBE_TIMEOUT)
            if content is None:
                failures += 1
                continue
            failures = 0
            images.append(self._numbered_record(number, content))
        self.log.info(
            "imagekit.numbered.discovered",
            extra={"limit": limit, "found": len(images)},
        )
        return images

    # --- population bounds ---

    async def estimate_count(self) -> int:
        max_found = 0
        gaps = 0
        for number in range(SAMPLE_INTERVAL, SAMPLE_LIMIT + 1, SAMPLE_INTERVAL):
            if await self._exists(number, SAMPLE_TIMEOUT):
                max_found = number
                gaps = 0
                continue
            gaps += 1
            if gaps >= SAMPLE_MAX_GAPS:
                break
        estimate = max_found + SAMPLE_INTERVAL * 2
        self.log.info("imagekit.estimate", extra={"last_found": max_found, "estimate": estimate})
        return estimate

    async def detect_range(self) -> ImageRange:
        """Grow the bound by doubling, then bisect for the exact maximum."""
        max_range = self.config.max_range
        max_found = 0
        high = RANGE_DOUBLING_START
        while high <= max_range:
            if not await self._exists(high, RANGE_DOUBLING_TIMEOUT):
                break
            max_found = high
            high *= 2

        low = max_found
        high = min(high, max_range)
        while low < high:
            mid = (low + high + 1) // 2
            if await self._exists(mid, RANGE_BISECT_TIMEOUT):
                low = mid
                max_found = mid
            else:
                high = mid - 1

        if max_found < 1:
            raise RangeDetectionError("no population image found")
        self.log.info("imagekit.range.detected", extra={"max": max_found})
        return ImageRange(max=max_found)

    async def probe_exists(self, index: int, timeout_ms: int) -> bool:
        return await self._exists(index, timeout_ms / 1000)

    # --- metadata ---

    async def image_metadata(self, address: str) -> ImageMetadata | None:
        url = _with_transformation(address, PLACEHOLDER_TRANSFORMATION)
        content = await self._fetch(url, RANGE_PROBE_TIMEOUT)
        ratio = _ratio_from_content(content)
        if ratio is None:
            return None
        file_name = address.rsplit("/", 1)[-1].split("?", 1)[0] or "Unknown"
        return ImageMetadata(
            title=file_stem(file_name),
            ratio=ratio,
            file_name=file_name,
            file_type=file_extension(file_name),
        )

    # --- internals ---

    async def _exists(self, index: int, timeout: float) -> bool:
        return await self._probe(self.path_for(index), timeout) is not None

    async def _probe(self, address: str, timeout: float) -> bytes | None:
        return await self._fetch(_with_transformation(address, PROBE_TRANSFORMATION), timeout)

    async def _fetch(self, url: str, timeout: float) -> bytes | None:
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await asyncio.wait_for(client.get(url), timeout)
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            self.log.debug("imagekit.fetch.failed", extra={"url": url, "error": repr(exc)})
            return None
        if not 200 <= response.status_code < 300:
            return None
        return response.content

    async def _list_api_images(self, *, limit: int | None) -> list[ImageRecord]:
        files = await self._list_files(limit=limit)
        images = [
            self._listed_record(item)
            for item in files
            if item.get("type", "file") == "file" and is_image_file(str(item.get("name", "")))
        ]
        self.log.info(
            "imagekit.list.loaded",
            extra={"files": len(files), "images": len(images), "limit": limit},
        )
        return images if limit is None else images[:limit]

    async def _list_files(self, *, limit: int | None) -> list[dict[str, Any]]:
        page_size = self.config.list_page_size
        collected: list[dict[str, Any]] = []
        skip = 0
        while True:
            page = await self._list_page(skip=skip, limit=page_size)
            collected.extend(page)
            if len(page) < page_size:
                break
            if limit is not None and len(collected) >= limit:
                break
            skip += page_size
            if skip > self.config.list_max_skip:
                self.log.warning(
                    "imagekit.list.pagination_capped",
                    extra={"skip": skip, "collected": len(collected)},
                )
                break
        return collected

    async def _list_page(self, *, skip: int, limit: int) -> list[dict[str, Any]]:
        params = {
            "path": self.config.path_prefix,
            "limit": str(limit),
            "skip": str(skip),
            "sort": "ASC_NAME",
        }
        try:
            async with httpx.AsyncClient(timeout=self.config.request_timeout_seconds) as client:
                response = await client.get(
                    self.config.api_endpoint,
                    params=params,
                    auth=(self.config.private_key, ""),
                )
        except httpx.HTTPError as exc:
            raise DiscoveryError(f"ImageKit list files request failed: {exc}") from exc
        if response.status_code != 200:
            raise DiscoveryError(f"ImageKit list files failed with status {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise DiscoveryError("ImageKit list files returned invalid JSON") from exc
        return body if isinstance(body, list) else []

    def _numbered_record(self, number: int, content: bytes | None) -> ImageRecord:
        return ImageRecord(
            id=str(number),
            src=self.path_for(number),
            file_name=f"{number}.jpg",
            ratio=_ratio_from_content(content) or ImageRatio.PORTRAIT,
            title=str(number),
            file_path=self.population_path(number),
        )

    @staticmethod
    def _listed_record(item: dict[str, Any]) -> ImageRecord:
        name = str(item.get("name", ""))
        width = item.get("width")
        height = item.get("height")
        return ImageRecord(
            id=str(item.get("fileId", name)),
            src=str(item.get("url", "")),
            file_name=name or None,
            ratio=ratio_for_dimensions(width, height),
            title=file_stem(name),
            width=width,
            height=height,
            file_path=item.get("filePath"),
        )


def _with_transformation(address: str, transformation: str) -> str:
    separator = "&" if "?" in address else "?"
    return f"{address}{separator}{transformation}"


def _ratio_from_content(content: bytes | None) -> ImageRatio | None:
    if not content:
        return None
    try:
        with Image.open(io.BytesIO(content)) as image:
            width, height = image.size
    except (OSError, ValueError):
        return None
    return ratio_for_dimensions(width, height)


__all__ = ["ImageKitDiscovery"]
