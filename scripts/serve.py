#!/usr/bin/env python3
"""Run the Predios API with uvicorn.

Usage:
    python scripts/serve.py                      # memory store on :8000
    python scripts/serve.py --store rest --port 9000
"""

from __future__ import annotations

import argparse

import uvicorn

from predios.core.config import Settings, StoreConfig
from predios.web.app import create_app


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the Predios parcel API.")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")
    parser.add_argument(
        "--store",
        choices=["memory", "rest"],
        default=None,
        help="Store provider; overrides PREDIOS_STORE_PROVIDER.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = Settings()
    if args.store:
        store = settings.store.model_dump()
        store["provider"] = args.store
        settings.store = StoreConfig(**store)
    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
