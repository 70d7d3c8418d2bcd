from __future__ import annotations

import argparse
import sys

import uvicorn

from backend.mapproxy.core.config import get_settings


def parse_args(argv: list[str]) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Serve normalized Lands map markers and live players over HTTP.")
    parser.add_argument("--host", default=settings.host, help="Bind address (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=settings.port, help="Listening port (default: PORT or 3000)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    return parser.parse_args(argv)


def main() -> int:
    args = parse_args(sys.argv[1:])
    settings = get_settings()
    uvicorn.run(
        "backend.mapproxy.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
