"""Domain level exceptions for the gallery subsystem."""

from __future__ import annotations

__all__ = [
    "GalleryError",
    "DiscoveryError",
    "RangeDetectionError",
    "CacheStorageError",
    "StorageQuotaExceededError",
    "NavigationUnavailableError",
]


class GalleryError(Exception):
    """Base class for gallery specific errors."""


class DiscoveryError(GalleryError):
    """Raised when the discovery service cannot list or probe images."""


class RangeDetectionError(DiscoveryError):
    """Raised when the population bounds could not be detected."""


class CacheStorageError(GalleryError):
    """Base class for session storage failures."""


class StorageQuotaExceededError(CacheStorageError):
    """Raised when a write would exceed the session storage quota."""


class NavigationUnavailableError(GalleryError):
    """Raised when a navigation intent cannot be applied right now."""
