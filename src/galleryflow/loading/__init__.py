"""Progressive loading and cursor-driven preloading."""

from .preloader import (
    HttpImageFetcher,
    ImageFetcher,
    Preloader,
    WarmedImages,
    compute_preload_window,
)
from .progressive_loader import LoadActivation, ProgressiveLoader

__all__ = [
    "HttpImageFetcher",
    "ImageFetcher",
    "LoadActivation",
    "Preloader",
    "ProgressiveLoader",
    "WarmedImages",
    "compute_preload_window",
]
