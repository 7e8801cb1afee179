"""Domain models and pure helpers for image records."""

from .models import (
    GalleryState,
    ImageMetadata,
    ImageRange,
    ImageRatio,
    ImageRecord,
    RandomSelection,
)

__all__ = [
    "GalleryState",
    "ImageMetadata",
    "ImageRange",
    "ImageRatio",
    "ImageRecord",
    "RandomSelection",
]
