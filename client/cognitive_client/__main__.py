import argparse
import asyncio
import logging
import sys
from pathlib import Path
from urllib.parse import urlsplit

from cognitive_client.api import DEFAULT_BASE_URL, CognitiveAPI
from cognitive_client.local_store import DEFAULT_STORAGE_DIR, LocalStore
from cognitive_client.shell import AppContext, start_puzzle
from cognitive_client.tracker import EventTracker


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Start a Cognitive Mirrors session from the terminal.")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="API base URL, including /api")
    parser.add_argument("--storage-dir", type=Path, default=DEFAULT_STORAGE_DIR, help="Local storage directory")
    parser.add_argument("--puzzle", default="ego_labyrinth", help="Puzzle type to start")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    parts = urlsplit(args.base_url)
    store = LocalStore(origin=f"{parts.scheme}://{parts.netloc}", storage_dir=args.storage_dir)

    async with CognitiveAPI(args.base_url) as api:
        tracker = EventTracker(api)
        ctx = AppContext(api=api, store=store, tracker=tracker, puzzle_type=args.puzzle)
        try:
            if not await start_puzzle(ctx, args.puzzle):
                return 1
        finally:
            await tracker.aclose()
    return 0


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
