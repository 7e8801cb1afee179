"""Time-bounded session cache for the image listing and population range."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from pydantic import ValidationError

from ..domain.models import ImageRange, ImageRecord
from .schemas import (
    CACHE_SCHEMA_VERSION,
    ImageListingPayload,
    ImageRangePayload,
    ImageRecordPayload,
)
from .session_storage import SessionStorage

IMAGES_KEY = "gallery-images"
TIMESTAMP_KEY = "gallery-cache-timestamp"
IMAGE_RANGE_KEY = "imagekit_range"
CACHE_EXPIRY_MS = 5 * 60 * 1000


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


class CorruptCacheEntry(ValueError):
    """Raised internally when a cached payload cannot be decoded."""


class GalleryCache:
    """Session cache with a TTL on the image listing.

    The listing (``gallery-images`` + ``gallery-cache-timestamp``) expires after
    ``ttl_ms``; an expired or undecodable listing is deleted on the read that
    detects it. The range (``imagekit_range``) has no TTL and stays valid for
    the whole session once written. Storage failures never reach callers:
    reads report a miss and writes are dropped.
    """

    def __init__(
        self,
        storage: SessionStorage,
        *,
        ttl_ms: int = CACHE_EXPIRY_MS,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if ttl_ms < 0:
            raise ValueError("ttl_ms must be non-negative")
        self._storage = storage
        self._ttl_ms = ttl_ms
        self._clock = clock or _default_clock
        self._logger = logger or logging.getLogger(__name__)

    # --- raw key/value contract ---

    def get(self, key: str) -> str | None:
        """Return the raw value for ``key``; the listing key honours the TTL."""
        if key == IMAGES_KEY and self._listing_expired():
            return None
        return self._read(key)

    def set(self, key: str, value: str) -> bool:
        """Store ``value``; returns ``False`` when the storage rejected the write."""
        try:
            self._storage.set_item(key, value)
        except Exception as exc:
            self._logger.warning(
                "gallery.cache.write_failed",
                extra={"key": key, "error": str(exc)},
            )
            return False
        return True

    def clear(self, key: str) -> None:
        try:
            self._storage.remove_item(key)
        except Exception as exc:
            self._logger.warning(
                "gallery.cache.clear_failed",
                extra={"key": key, "error": str(exc)},
            )

    # --- image listing ---

    def get_cached_images(self) -> list[ImageRecord] | None:
        raw = self.get(IMAGES_KEY)
        if raw is None:
            return None
        try:
            payload = ImageListingPayload.model_validate_json(raw)
            _ensure_version(payload.version)
        except (ValidationError, CorruptCacheEntry) as exc:
            self._logger.warning(
                "gallery.cache.images_corrupt",
                extra={"error": str(exc)},
            )
            self.clear_image_cache()
            return None
        return [item.to_record() for item in payload.images]

    def cache_images(self, images: Sequence[ImageRecord]) -> None:
        payload = ImageListingPayload(
            version=CACHE_SCHEMA_VERSION,
            images=[ImageRecordPayload.from_record(image) for image in images],
        )
        # the timestamp must never outlive the payload it dates
        if not self.set(IMAGES_KEY, payload.model_dump_json()):
            self.clear_image_cache()
            return
        if not self.set(TIMESTAMP_KEY, str(self._now_ms())):
            self.clear_image_cache()

    def clear_image_cache(self) -> None:
        self.clear(IMAGES_KEY)
        self.clear(TIMESTAMP_KEY)

    # --- population range ---

    def get_cached_range(self) -> ImageRange | None:
        raw = self._read(IMAGE_RANGE_KEY)
        if raw is None:
            return None
        try:
            payload = ImageRangePayload.model_validate_json(raw)
            _ensure_version(payload.version)
        except (ValidationError, CorruptCacheEntry) as exc:
            self._logger.warning(
                "gallery.cache.range_corrupt",
                extra={"error": str(exc)},
            )
            self.clear_range_cache()
            return None
        return payload.to_range()

    def cache_range(self, image_range: ImageRange) -> None:
        self.set(IMAGE_RANGE_KEY, ImageRangePayload.from_range(image_range).model_dump_json())

    def clear_range_cache(self) -> None:
        self.clear(IMAGE_RANGE_KEY)

    # --- internals ---

    def _read(self, key: str) -> str | None:
        try:
            return self._storage.get_item(key)
        except Exception as exc:
            self._logger.warning(
                "gallery.cache.read_failed",
                extra={"key": key, "error": str(exc)},
            )
            return None

    def _listing_expired(self) -> bool:
        """Check the listing timestamp, purging the listing when stale or unreadable."""
        if self._read(IMAGES_KEY) is None:
            return True
        raw_timestamp = self._read(TIMESTAMP_KEY)
        if raw_timestamp is None:
            self._logger.warning("gallery.cache.timestamp_missing")
            self.clear_image_cache()
            return True
        try:
            stored_at = int(raw_timestamp)
        except ValueError:
            self._logger.warning(
                "gallery.cache.timestamp_corrupt",
                extra={"value": raw_timestamp},
            )
            self.clear_image_cache()
            return True
        age_ms = self._now_ms() - stored_at
        if age_ms >= self._ttl_ms:
            self._logger.info(
                "gallery.cache.images_expired",
                extra={"age_ms": age_ms, "ttl_ms": self._ttl_ms},
            )
            self.clear_image_cache()
            return True
        return False

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)


def _ensure_version(version: int) -> None:
    if version != CACHE_SCHEMA_VERSION:
        raise CorruptCacheEntry(
            f"cached schema version {version} does not match {CACHE_SCHEMA_VERSION}"
        )


__all__ = [
    "CACHE_EXPIRY_MS",
    "GalleryCache",
    "IMAGES_KEY",
    "IMAGE_RANGE_KEY",
    "TIMESTAMP_KEY",
]
