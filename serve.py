#!/usr/bin/env python3
"""
Property Lifecycle Engine - API Server

Run this script to start the engine's HTTP API.

Usage:
    python serve.py [--port PORT] [--host HOST] [--reload]

Example:
    python serve.py --port 8080
"""

import argparse

import uvicorn

from property_engine.config import settings


def main():
    parser = argparse.ArgumentParser(
        description="Property Lifecycle Engine - API Server"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=settings.port,
        help=f"Port to listen on (default: {settings.port})"
    )
    parser.add_argument(
        "--host", "-H",
        type=str,
        default=settings.host,
        help=f"Host to bind to (default: {settings.host})"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes"
    )

    args = parser.parse_args()

    uvicorn.run(
        "web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
