"""HTTP surface exposing the gallery controller."""

from .gallery_router import build_gallery_router

__all__ = ["build_gallery_router"]
