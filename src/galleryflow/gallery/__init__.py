"""Gallery controller composing loading, preloading and random selection."""

from .controller import GalleryController
from .factory import build_gallery_controller

__all__ = ["GalleryController", "build_gallery_controller"]
