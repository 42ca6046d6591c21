#!/usr/bin/env python
"""Script to create a sample .env file."""

import os
import argparse
from pathlib import Path


def main():
    """Create a sample .env file."""
    parser = argparse.ArgumentParser(description="Create a sample .env file")
    parser.add_argument("--output", "-o", help="Output file path", default=".env")
    parser.add_argument("--force", "-f", action="store_true", help="Overwrite existing file")
    parser.add_argument("--production", action="store_true", help="Write production defaults")
    args = parser.parse_args()

    if os.path.exists(args.output) and not args.force:
        print(f"Error: File '{args.output}' already exists. Use --force to overwrite.")
        return 1

    env = "production" if args.production else "development"
    env_content = f"""# Application settings
APP_NAME=HealthRecordsReportService
ENV={env}
DEBUG={'False' if args.production else 'True'}
LOG_LEVEL=INFO
LOG_DIR={Path.cwd() / "logs"}

# API settings
API_HOST=0.0.0.0
API_PORT=8000
CORS_ORIGINS=*

# Database settings
MONGODB_URL=mongodb://localhost:27017
MONGODB_DB=health_records

# Diagnostic center service
DC_API_BASE_URL=https://diagnostic.omerald.com

# File signing service
SIGNED_URL_ENDPOINT=http://localhost:3000/api/upload/getSignedUrl
SIGNED_URL_EXPIRES_IN=3600

# Outbound HTTP
HTTP_TIMEOUT_SECONDS=10

# Report viewer
EMBEDDED_VIEWER_ENABLED=False
"""

    with open(args.output, "w") as f:
        f.write(env_content)

    print(f"Created sample .env file at '{args.output}'")
    print("Point SIGNED_URL_ENDPOINT at your file signing service before starting.")
    return 0


if __name__ == "__main__":
    exit(main())
