"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from .api.gallery_router import build_gallery_router
from .cache.session_storage import InMemorySessionStorage, SessionStorage
from .config import AppConfig, load_config
from .discovery.base import DiscoveryService
from .discovery.imagekit import ImageKitDiscovery
from .gallery.factory import build_gallery_controller
from .loading.preloader import ImageFetcher
from .logging import configure_logging

logger = logging.getLogger(__name__)


def create_app(
    config: AppConfig | None = None,
    *,
    storage: SessionStorage | None = None,
    discovery: DiscoveryService | None = None,
    fetcher: ImageFetcher | None = None,
) -> FastAPI:
    """Build the FastAPI instance with a controller wired to the session cache."""
    cfg = config or load_config()
    configure_logging(cfg.gallery.log_level)
    controller = build_gallery_controller(
        cfg.gallery,
        storage=storage or InMemorySessionStorage(),
        discovery=discovery or ImageKitDiscovery(cfg.imagekit),
        fetcher=fetcher,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # First paint is served from the initial batch; later stages stay on timers.
        await controller.activate()
        logger.info(
            "gallery.app.ready",
            extra={"images": len(controller.images), "loading": controller.loading},
        )
        try:
            yield
        finally:
            controller.dispose()
            logger.info("gallery.app.shutdown")

    app = FastAPI(title="galleryflow", lifespan=lifespan)
    app.state.gallery_controller = controller
    app.include_router(build_gallery_router(controller))
    return app
