"""Versioned payload schemas for cached gallery data."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import ImageRange, ImageRatio, ImageRecord

CACHE_SCHEMA_VERSION = 1


class ImageRecordPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    src: str
    file_name: str | None = None
    ratio: ImageRatio = ImageRatio.PORTRAIT
    title: str | None = None
    width: int | None = None
    height: int | None = None
    file_path: str | None = None

    @classmethod
    def from_record(cls, record: ImageRecord) -> "ImageRecordPayload":
        return cls(
            id=record.id,
            src=record.src,
            file_name=record.file_name,
            ratio=record.ratio,
            title=record.title,
            width=record.width,
            height=record.height,
            file_path=record.file_path,
        )

    def to_record(self) -> ImageRecord:
        return ImageRecord(
            id=self.id,
            src=self.src,
            file_name=self.file_name,
            ratio=self.ratio,
            title=self.title,
            width=self.width,
            height=self.height,
            file_path=self.file_path,
        )


class ImageListingPayload(BaseModel):
    """Serialized image listing stored under ``gallery-images``."""

    version: int = CACHE_SCHEMA_VERSION
    images: list[ImageRecordPayload] = Field(default_factory=list)


class ImageRangePayload(BaseModel):
    """Serialized population range stored under ``imagekit_range``."""

    version: int = CACHE_SCHEMA_VERSION
    max: int = Field(ge=1)
    min: int = Field(default=1, ge=1)

    @classmethod
    def from_range(cls, image_range: ImageRange) -> "ImageRangePayload":
        return cls(max=image_range.max, min=image_range.min)

    def to_range(self) -> ImageRange:
        return ImageRange(max=self.max, min=self.min)


__all__ = [
    "CACHE_SCHEMA_VERSION",
    "ImageListingPayload",
    "ImageRangePayload",
    "ImageRecordPayload",
]
