#!/usr/bin/env python3
"""
Server entry point.
"""

import argparse

import structlog
import uvicorn

from .api import create_app, setup_logging
from .config import get_settings

logger = structlog.get_logger()


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Treasury reconciliation API server")
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to run the server on")
    args = parser.parse_args()

    setup_logging(settings)
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.reports_dir.mkdir(parents=True, exist_ok=True)

    logger.info("Starting treasury reconciliation API", host=args.host, port=args.port)
    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
