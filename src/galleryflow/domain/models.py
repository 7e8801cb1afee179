"""Domain models for the gallery subsystem.

Image records are immutable value objects keyed by ``src``. The gallery
state is the only mutable structure and is owned by the controller; every
other component receives and returns plain values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ImageRatio(str, Enum):
    """Aspect ratio buckets understood by the rendering layer."""

    WIDE = "16:9"
    LANDSCAPE = "3:2"
    PORTRAIT = "2:3"


@dataclass(frozen=True, slots=True)
class ImageRecord:
    """A single displayable image; ``src`` is the identity key."""

    id: str
    src: str
    file_name: str | None = None
    ratio: ImageRatio = ImageRatio.PORTRAIT
    title: str | None = None
    width: int | None = None
    height: int | None = None
    file_path: str | None = None


@dataclass(frozen=True, slots=True)
class ImageRange:
    """Upper bound of the dense 1-based image population."""

    max: int
    min: int = 1


@dataclass(frozen=True, slots=True)
class ImageMetadata:
    title: str
    ratio: ImageRatio
    file_name: str
    file_type: str


@dataclass(frozen=True, slots=True)
class RandomSelection:
    """Outcome of a random draw: the navigable index and the updated list.

    ``record`` is set only when the draw produced a verified population image;
    fallback selections over the already-loaded list leave it ``None``.
    """

    index: int
    images: list[ImageRecord]
    record: ImageRecord | None = None
    population: int | None = None


@dataclass(slots=True)
class GalleryState:
    """Mutable state owned exclusively by :class:`GalleryController`."""

    images: list[ImageRecord] = field(default_factory=list)
    current_index: int = 0
    loading: bool = True
    shuffle_loading: bool = False
    transitioning: bool = False
    has_loaded: bool = False
    total_available: int = 0


__all__ = [
    "GalleryState",
    "ImageMetadata",
    "ImageRange",
    "ImageRatio",
    "ImageRecord",
    "RandomSelection",
]
