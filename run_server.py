#!/usr/bin/env python
"""
Server Entry Point

Starts the Sales Engine API with uvicorn. Host, port, reload and log level
come from API_HOST, API_PORT, DEBUG and LOG_LEVEL; the flags below override
them for one run.
Usage:
    python run_server.py --dev
    APP_ENV=production API_PORT=9000 python run_server.py

Data sources are read from SALES_DATA_* environment variables, e.g.
    SALES_DATA_MERCHANTS=./data/merchants.csv
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from sales_engine.config import get_settings
from sales_engine.serving.server import serve


if __name__ == "__main__":
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Sales Engine API Server")
    parser.add_argument("--dev", action="store_true", help="Auto-reload on source changes")
    parser.add_argument("--host", default=None, help=f"Bind address (default: {settings.api_host})")
    parser.add_argument("--port", type=int, default=None, help=f"Port (default: {settings.api_port})")
    args = parser.parse_args()

    print(f"Starting Sales Engine API ({settings.app_env})...")
    serve(
        settings=settings,
        host=args.host,
        port=args.port,
        reload=True if args.dev else None,
    )
