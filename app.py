#!/usr/bin/env python3
"""
Sports Arena scorekeeping desk.
Serves the scoring arenas, live scoreboard and history pages in front of
the Sports Arena backend, and relays its push events to browsers.
"""

import argparse
import asyncio
import logging
import os
from pathlib import Path

from sports_arena import ArenaSystem


async def main():
    """Main function with command line interface."""

    parser = argparse.ArgumentParser(
        description="Sports Arena scorekeeping desk",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("WEB_PORT", "8080")),
        help="Web interface port (env: WEB_PORT)"
    )
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "0.0.0.0"),
        help="Host to bind the web server to (env: HOST)"
    )
    parser.add_argument(
        "--config",
        default=os.getenv("CONFIG_PATH", "arena_config.json"),
        help="Configuration file path (env: CONFIG_PATH)"
    )
    parser.add_argument(
        "--backend-url",
        default=os.getenv("BACKEND_URL"),
        help="Sports Arena backend base URL (env: BACKEND_URL)"
    )
    parser.add_argument(
        "--session-db",
        default=os.getenv("SESSION_DB"),
        help="SQLite session database path (env: SESSION_DB)"
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (env: LOG_LEVEL)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config_path = Path(args.config)

    if config_path.exists() and not config_path.is_file():
        print(f"Error: {args.config} exists but is not a file")
        return

    system = ArenaSystem(
        host=args.host,
        port=args.port,
        config_path=args.config,
        backend_url=args.backend_url,
        session_db=args.session_db,
    )

    await system.run()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nServer interrupted")
