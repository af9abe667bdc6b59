"""Run the reference recording server.

Usage::

    python -m pygeorec.server --host 127.0.0.1 --port 8787
"""

from __future__ import annotations

import argparse
import logging

from aiohttp import web

from pygeorec.server.app import create_app
from pygeorec.server.store import PositionStore


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="GeoGuessr recorder reference server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8787)
    parser.add_argument("--radius", type=float, default=50.0, help="server-side dedup radius in meters")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable DEBUG logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    web.run_app(create_app(PositionStore(radius_m=args.radius)), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
