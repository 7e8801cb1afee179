"""Discovery collaborators supplying image listings and population bounds."""

from .base import DiscoveryService
from .imagekit import ImageKitDiscovery

__all__ = ["DiscoveryService", "ImageKitDiscovery"]
