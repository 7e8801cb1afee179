"""Pure helpers over image records and the numbered population."""

from __future__ import annotations

import random
import re
from typing import Iterable, Sequence

from .models import ImageRatio, ImageRecord

IMAGE_EXTENSIONS = (
    "jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "tiff", "ico", "heic", "heif",
)

_POPULATION_SRC = re.compile(
    r"/(\d+)\.(?:" + "|".join(IMAGE_EXTENSIONS) + r")",
    re.IGNORECASE,
)

# width / height at or above this is treated as landscape
LANDSCAPE_THRESHOLD = 1.5


def extract_image_number(image: ImageRecord) -> int | None:
    """Return the population index encoded in ``image.src`` (``/<n>.<ext>``)."""
    match = _POPULATION_SRC.search(image.src)
    return int(match.group(1)) if match else None


def extract_image_filename(image: ImageRecord) -> str | None:
    if image.file_name:
        return image.file_name
    last = image.src.rsplit("/", 1)[-1]
    name = last.split("?", 1)[0]
    return name or None


def file_extension(filename: str) -> str:
    parts = filename.split(".")
    return parts[-1] if len(parts) > 1 else ""


def file_stem(filename: str) -> str:
    parts = filename.split(".")
    if len(parts) > 1:
        parts.pop()
    return ".".join(parts)


def is_image_file(filename: str) -> bool:
    return file_extension(filename).lower() in IMAGE_EXTENSIONS


def ratio_for_dimensions(
    width: int | None,
    height: int | None,
    *,
    default: ImageRatio = ImageRatio.PORTRAIT,
) -> ImageRatio:
    if not width or not height:
        return default
    return ImageRatio.LANDSCAPE if width / height >= LANDSCAPE_THRESHOLD else ImageRatio.PORTRAIT


def find_image_index(images: Sequence[ImageRecord], src: str) -> int:
    for index, image in enumerate(images):
        if image.src == src:
            return index
    return -1


def add_image(
    images: Sequence[ImageRecord], record: ImageRecord
) -> tuple[list[ImageRecord], int]:
    """Insert ``record`` unless its ``src`` is already present.

    Returns the resulting list and the index of the record in it. When the
    ``src`` already exists the entries come back unchanged along with the
    existing index.
    """
    existing = find_image_index(images, record.src)
    if existing != -1:
        return list(images), existing
    updated = [*images, record]
    return updated, len(updated) - 1


def merge_images(
    existing: Sequence[ImageRecord], incoming: Iterable[ImageRecord]
) -> list[ImageRecord]:
    """Append records from ``incoming`` whose ``src`` is not yet known."""
    merged = list(existing)
    seen = {image.src for image in merged}
    for image in incoming:
        if image.src in seen:
            continue
        seen.add(image.src)
        merged.append(image)
    return merged


def generate_random_number(
    bound: int,
    exclude: int | None,
    max_attempts: int,
    *,
    rng: random.Random | None = None,
) -> int | None:
    """Draw uniformly from ``[1, bound]`` avoiding ``exclude``.

    At most ``max_attempts`` samples are taken; ``None`` signals exhaustion.
    """
    if bound < 1:
        return None
    source = rng or random
    for _ in range(max_attempts):
        candidate = source.randint(1, bound)
        if candidate != exclude:
            return candidate
    return None


def fallback_index(
    images: Sequence[ImageRecord],
    current_index: int,
    *,
    rng: random.Random | None = None,
) -> int | None:
    """Pick a loaded index other than ``current_index`` (``None`` if impossible)."""
    if len(images) <= 1:
        return None
    candidates = [index for index in range(len(images)) if index != current_index]
    return (rng or random).choice(candidates)


__all__ = [
    "IMAGE_EXTENSIONS",
    "add_image",
    "extract_image_filename",
    "extract_image_number",
    "fallback_index",
    "file_extension",
    "file_stem",
    "find_image_index",
    "generate_random_number",
    "is_image_file",
    "merge_images",
    "ratio_for_dimensions",
]
