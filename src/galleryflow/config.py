"""Configuration for the gallery subsystem.

Every tunable is overridable through the environment: ``GALLERY_*`` for the
loading/selection/caching knobs and ``IMAGEKIT_*`` for the discovery
transport. Durations are declared in milliseconds to match the values the
rendering layer already speaks; the ``*_seconds`` helpers feed the scheduler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.models import ImageRatio


class GalleryConfig(BaseSettings):
    """Static tunables for loading, caching, preloading and shuffling."""

    model_config = SettingsConfigDict(env_prefix="GALLERY_")

    initial_batch_size: int = Field(
        default=5,
        ge=1,
        description="Size of the immediate batch used for the first paint.",
    )
    second_batch_size: int = Field(
        default=25,
        ge=1,
        description="Size of the expand batch.",
    )
    final_batch_size: int = Field(
        default=100,
        ge=1,
        description="Size of the finalize batch.",
    )
    second_batch_delay_ms: int = Field(
        default=1_000,
        ge=0,
        description="Delay from activation start before the expand stage fires.",
    )
    final_batch_delay_ms: int = Field(
        default=3_000,
        ge=0,
        description="Delay from activation start before the finalize stage fires.",
    )
    preload_count: int = Field(
        default=3,
        ge=1,
        description="Preload window size (offsets 2..preload_count are secondary).",
    )
    preload_fetch_count: int = Field(
        default=3,
        ge=0,
        description="How many indices of the preload window are fetched eagerly.",
    )
    preload_delay_ms: int = Field(
        default=200,
        ge=0,
        description="Delay before warming the immediate neighbours after a cursor change.",
    )
    preload_request_timeout_ms: int = Field(
        default=5_000,
        ge=1,
        description="Timeout applied to a single warming request.",
    )
    cache_expiry_ms: int = Field(
        default=5 * 60 * 1000,
        ge=0,
        description="TTL for the cached image listing.",
    )
    max_random_attempts: int = Field(
        default=20,
        ge=1,
        description="Maximum draws per selection before falling back to loaded images.",
    )
    max_selection_retries: int = Field(
        default=5,
        ge=1,
        description="How many times a selection restarts after a missing target.",
    )
    image_exist_timeout_ms: int = Field(
        default=2_000,
        ge=1,
        description="Upper bound for a single existence probe.",
    )
    shuffle_complete_delay_ms: int = Field(
        default=100,
        ge=0,
        description="Delay between shuffle completion and releasing the shuffle lock.",
    )
    default_image_ratio: ImageRatio = Field(
        default=ImageRatio.WIDE,
        description="Ratio assigned to records built from a bare population index.",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Level applied to the gallery loggers when the app is built.",
    )

    @property
    def second_batch_delay_seconds(self) -> float:
        return self.second_batch_delay_ms / 1000

    @property
    def final_batch_delay_seconds(self) -> float:
        return self.final_batch_delay_ms / 1000

    @property
    def preload_delay_seconds(self) -> float:
        return self.preload_delay_ms / 1000

    @property
    def preload_request_timeout_seconds(self) -> float:
        return self.preload_request_timeout_ms / 1000

    @property
    def image_exist_timeout_seconds(self) -> float:
        return self.image_exist_timeout_ms / 1000

    @property
    def shuffle_complete_delay_seconds(self) -> float:
        return self.shuffle_complete_delay_ms / 1000


class ImageKitConfig(BaseSettings):
    """Connection settings for the ImageKit discovery service."""

    model_config = SettingsConfigDict(env_prefix="IMAGEKIT_")

    url_endpoint: str = Field(
        default="",
        description="Public delivery endpoint, e.g. https://ik.imagekit.io/<id>.",
    )
    path_prefix: str = Field(
        default="/AP/",
        description="Folder holding the numbered population (``<prefix><n>.jpg``).",
    )
    private_key: str = Field(
        default="",
        description="Private API key used as the basic-auth username for the listing API.",
    )
    api_endpoint: str = Field(
        default="https://api.imagekit.io/v1/files",
        description="List Files API endpoint.",
    )
    max_range: int = Field(
        default=10_000,
        ge=1,
        description="Hard upper bound explored by range detection.",
    )
    list_page_size: int = Field(
        default=1_000,
        ge=1,
        description="Page size for the List Files API.",
    )
    list_max_skip: int = Field(
        default=10_000,
        ge=0,
        description="Pagination stops once this many files have been skipped.",
    )
    max_consecutive_failures: int = Field(
        default=12,
        ge=1,
        description="Numeric discovery stops after this many consecutive misses.",
    )
    range_batch_size: int = Field(
        default=6,
        ge=1,
        description="How many population indices are probed concurrently per batch.",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for listing API requests.",
    )


@dataclass(slots=True)
class AppConfig:
    gallery: GalleryConfig
    imagekit: ImageKitConfig


def load_config() -> AppConfig:
    """Load configuration from the environment."""
    return AppConfig(gallery=GalleryConfig(), imagekit=ImageKitConfig())


__all__ = ["AppConfig", "GalleryConfig", "ImageKitConfig", "load_config"]
