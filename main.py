#!/usr/bin/env python3
"""
ItemVault -- multi-tenant item records with token-based, role-gated access.

Usage:
  python main.py
  python main.py --port 9000
  python main.py --host 0.0.0.0 --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY       JWT signing key, at least 32 characters. Required unless DEBUG=true.
  ADMIN_USERNAME   Bootstrap admin account (default "admin").
  ADMIN_PASSWORD   Bootstrap admin password. Required unless DEBUG=true.
  FRONTEND_ORIGINS Comma-separated CORS origins, or "*".
  HOST / PORT      Listen address (default 127.0.0.1:8080).
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="ItemVault API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default=settings.host, help=f"Listen address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Listen port (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
