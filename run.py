#!/usr/bin/env python
"""Script to run the Health Records Report Service."""

import argparse
import uvicorn

from healthrecords.config import settings


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Run the Health Records Report Service")

    parser.add_argument(
        "--host",
        type=str,
        default=settings.API_HOST,
        help=f"Host to bind to (default: {settings.API_HOST})"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.API_PORT,
        help=f"Port to bind to (default: {settings.API_PORT})"
    )

    parser.add_argument(
        "--env",
        type=str,
        choices=["development", "production"],
        default=settings.ENV,
        help=f"Environment to run in (default: {settings.ENV})"
    )

    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload (development only)"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes (ignored with auto-reload)"
    )

    return parser.parse_args()


def main():
    """Run the application."""
    args = parse_args()

    reload = args.reload or args.env == "development"

    print("Starting Health Records Report Service...")
    print(f"Environment: {args.env}")
    print(f"Host: {args.host}")
    print(f"Port: {args.port}")
    print(f"Auto-reload: {'enabled' if reload else 'disabled'}")
    print(f"Signing endpoint: {settings.SIGNED_URL_ENDPOINT}")
    print(f"DC service: {settings.DC_API_BASE_URL}")
    print()

    uvicorn.run(
        "healthrecords.main:app",
        host=args.host,
        port=args.port,
        reload=reload,
        workers=None if reload else args.workers
    )


if __name__ == "__main__":
    main()
