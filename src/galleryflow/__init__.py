"""galleryflow: progressive loading, TTL caching and random selection for image galleries."""

from .cache import GalleryCache, InMemorySessionStorage
from .config import AppConfig, GalleryConfig, ImageKitConfig, load_config
from .domain import ImageRange, ImageRatio, ImageRecord
from .gallery import GalleryController, build_gallery_controller

__all__ = [
    "AppConfig",
    "GalleryCache",
    "GalleryConfig",
    "GalleryController",
    "ImageKitConfig",
    "ImageRange",
    "ImageRatio",
    "ImageRecord",
    "InMemorySessionStorage",
    "build_gallery_controller",
    "load_config",
]
