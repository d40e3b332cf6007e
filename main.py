#!/usr/bin/env python3
"""
Hanger - Main Entrypoint

Loads configuration, restores the marketplace store from its snapshot and
provisions the default admin account. The interactive menu is a separate
front end; this entrypoint prepares (and reports on) the data it uses.

USAGE:
    python main.py --config config/config.yaml
    python main.py --config config/config.yaml --summary
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from hanger.app import Marketplace
from hanger.config import load_config
from hanger.recovery import LoadStatus
from hanger.state.errors import PersistenceFailure


def main(argv=None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Hanger - second-hand marketplace backend",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '--config',
        type=str,
        default='config/config.yaml',
        help='Path to config file (default: config/config.yaml)'
    )
    parser.add_argument(
        '--summary',
        action='store_true',
        help='Print the store summary as JSON after bootstrap'
    )

    args = parser.parse_args(argv)

    config_path = Path(args.config)
    try:
        config = load_config(config_path.parent)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    market = Marketplace(config)

    try:
        report = market.bootstrap()
    except PersistenceFailure as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 1

    if args.summary:
        print(json.dumps({"load": report.to_dict(), "store": market.summary()}, indent=2, ensure_ascii=False))

    return 1 if report.status == LoadStatus.FAILED else 0


if __name__ == "__main__":
    sys.exit(main())
