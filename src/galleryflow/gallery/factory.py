"""Wiring helpers building a controller from configuration."""

from __future__ import annotations

from ..cache.gallery_cache import GalleryCache
from ..cache.session_storage import SessionStorage
from ..config import GalleryConfig
from ..discovery.base import DiscoveryService
from ..loading.preloader import HttpImageFetcher, ImageFetcher, Preloader
from ..loading.progressive_loader import ProgressiveLoader
from ..selection.random_selector import RandomSelector
from .controller import GalleryController


def build_gallery_controller(
    config: GalleryConfig,
    *,
    storage: SessionStorage,
    discovery: DiscoveryService,
    fetcher: ImageFetcher | None = None,
) -> GalleryController:
    """Compose cache, loader, selector and preloader into a controller.

    ``storage`` is the session store shared by every controller of the
    session, so remounted controllers reuse cached listings and ranges.
    """
    cache = GalleryCache(storage, ttl_ms=config.cache_expiry_ms)
    image_fetcher = fetcher or HttpImageFetcher(timeout_seconds=config.preload_request_timeout_seconds)
    return GalleryController(
        loader=ProgressiveLoader(discovery, cache, config),
        selector=RandomSelector(discovery, cache, config),
        preloader=Preloader(image_fetcher, config),
        config=config,
    )


__all__ = ["build_gallery_controller"]
