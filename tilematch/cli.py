"""
Tilematch CLI - Command-line interface for the engine.

Usage:
    tilematch serve [--host H] [--port P]    Run the HTTP API
    tilematch deal [--pairs N] [--seed S]    Print a freshly shuffled grid
"""

import argparse
import logging
import math
import random
import sys

from .config import get_config
from .errors import DeckConfigurationError

logger = logging.getLogger(__name__)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tilematch - Concentration puzzle engine",
        prog="tilematch",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    deal_parser = subparsers.add_parser("deal", help="Print a shuffled grid")
    deal_parser.add_argument("--pairs", type=int, default=None, help="Number of pairs")
    deal_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    deal_parser.add_argument("--columns", type=int, default=4, help="Grid width")

    args = parser.parse_args()

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "deal":
        cmd_deal(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    from .api import create_app

    app = create_app(config=get_config())
    logger.info("Serving on %s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)


def cmd_deal(args):
    """Deal a deck and print it as a grid."""
    from .engine_core import generate_deck

    pairs = args.pairs if args.pairs is not None else get_config().pair_count
    rng = random.Random(args.seed) if args.seed is not None else None

    try:
        tiles = generate_deck(pairs, rng=rng)
    except DeckConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    columns = max(1, args.columns)
    width = max(len(t.symbol) for t in tiles)
    for row in range(math.ceil(len(tiles) / columns)):
        cells = tiles[row * columns:(row + 1) * columns]
        print("  ".join(t.symbol.ljust(width) for t in cells))


if __name__ == "__main__":
    main()
