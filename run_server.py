#!/usr/bin/env python
"""
Server Entry Point

Starts the Sales Analytics API under Uvicorn.
Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py
"""

import argparse
import os


def run_dev_server(port: int):
    """Run development server with auto-reload."""
    import uvicorn

    uvicorn.run(
        "sales_analytics.main:app",
        host="0.0.0.0",
        port=port,
        reload=True,
        reload_dirs=["sales_analytics"],
        log_level="debug",
        access_log=True,
    )


def run_prod_server(port: int):
    """Run production server with Uvicorn workers."""
    import uvicorn

    uvicorn.run(
        "sales_analytics.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=port,
        workers=int(os.getenv("API_WORKERS", 4)),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        access_log=True,
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
        date_header=True,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sales Analytics API Server")
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Run in development mode with auto-reload"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("API_PORT", 3000)),
        help="Port to run on (default: 3000)"
    )

    args = parser.parse_args()

    if args.dev:
        run_dev_server(args.port)
    else:
        run_prod_server(args.port)
