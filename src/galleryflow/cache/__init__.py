"""Session cache for image listings and the detected population range."""

from .gallery_cache import (
    CACHE_EXPIRY_MS,
    IMAGE_RANGE_KEY,
    IMAGES_KEY,
    TIMESTAMP_KEY,
    GalleryCache,
)
from .session_storage import InMemorySessionStorage, SessionStorage

__all__ = [
    "CACHE_EXPIRY_MS",
    "GalleryCache",
    "IMAGES_KEY",
    "IMAGE_RANGE_KEY",
    "InMemorySessionStorage",
    "SessionStorage",
    "TIMESTAMP_KEY",
]
