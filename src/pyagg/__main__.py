"""Run an aggregator: ``python -m pyagg [PORT] [--data-dir DIR]``.

Unset options fall back to ``PYAGG_*`` environment variables, then to
the defaults in :class:`pyagg.config.AggregatorConfig`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from pyagg.config import AggregatorConfig
from pyagg.exceptions import AggConfigError
from pyagg.server import run
from pyagg.store.policy import RetentionPolicy


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pyagg", description="Run the reading aggregation server.")
    parser.add_argument("port", nargs="?", type=int, help="TCP port (default 4567)")
    parser.add_argument("--host", help="Interface to bind")
    parser.add_argument("--data-dir", type=Path, help="Directory for the main store file and staging")
    parser.add_argument("--max-records", type=int, help="Maximum retained records")
    parser.add_argument("--expiry", type=float, dest="expiry_seconds", help="Seconds before a silent source is evicted")
    parser.add_argument(
        "--retention",
        choices=[policy.value for policy in RetentionPolicy],
        help="Record retention policy",
    )
    parser.add_argument("--no-persist", action="store_true", help="Keep everything in memory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.port is not None:
        overrides["port"] = args.port
    if args.host:
        overrides["host"] = args.host
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    if args.max_records is not None:
        overrides["max_records"] = args.max_records
    if args.expiry_seconds is not None:
        overrides["expiry_seconds"] = args.expiry_seconds
    if args.retention:
        overrides["retention"] = RetentionPolicy(args.retention)
    if args.no_persist:
        overrides["persist"] = False

    try:
        config = AggregatorConfig.from_env(**overrides)
    except AggConfigError as exc:
        print(f"pyagg: {exc}", file=sys.stderr)
        return 2

    run(config)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
