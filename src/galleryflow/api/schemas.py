"""Response models for the gallery HTTP surface."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ..domain.models import ImageRatio, ImageRecord


class ImageRecordOut(BaseModel):
    id: str
    src: str
    file_name: str | None = None
    ratio: ImageRatio
    title: str | None = None
    width: int | None = None
    height: int | None = None

    @classmethod
    def from_record(cls, record: ImageRecord) -> "ImageRecordOut":
        return cls(
            id=record.id,
            src=record.src,
            file_name=record.file_name,
            ratio=record.ratio,
            title=record.title,
            width=record.width,
            height=record.height,
        )


class GalleryStateOut(BaseModel):
    images: list[ImageRecordOut] = Field(default_factory=list)
    current_index: int
    loading: bool
    shuffle_loading: bool
    total_available: int
    visible_indices: list[int] = Field(default_factory=list)


class CursorOut(BaseModel):
    status: Literal["ok"] = "ok"
    current_index: int
    image: ImageRecordOut


class RandomOut(BaseModel):
    status: Literal["ok", "unavailable"]
    current_index: int | None = None
    image: ImageRecordOut | None = None
    total_available: int


class LoadAllOut(BaseModel):
    status: Literal["ok"] = "ok"
    count: int
    total_available: int


__all__ = [
    "CursorOut",
    "GalleryStateOut",
    "ImageRecordOut",
    "LoadAllOut",
    "RandomOut",
]
