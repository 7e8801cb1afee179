"""Run the gallery API with uvicorn: ``python -m galleryflow``."""

from __future__ import annotations

import argparse

import uvicorn

from .config import load_config
from .main import create_app


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the gallery API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()
    config = load_config()
    uvicorn.run(
        create_app(config),
        host=args.host,
        port=args.port,
        log_level=config.gallery.log_level.lower(),
    )


if __name__ == "__main__":
    main()
