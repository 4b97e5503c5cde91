"""Command line entrypoint: ``python -m econ_data_sync ACTION DATASET``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence

from .admin import AdminAction, AdminResult, Dataset
from .client import EconDataSync
from .config import EconDataSyncConfig
from .core.errors import AdminAuthError, ConfigurationError

EXIT_FAILED = 1
EXIT_AUTH = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="econ-data-sync",
        description="Sync inflation and income data into the configured database.",
    )
    parser.add_argument("action", choices=[a.value for a in AdminAction])
    parser.add_argument("dataset", choices=[d.value for d in Dataset])
    parser.add_argument(
        "--secret",
        default=None,
        help="admin secret; defaults to $ADMIN_PASSWORD",
    )
    parser.add_argument("--log-level", default="INFO")
    return parser


async def _run(config: EconDataSyncConfig, action: str, dataset: str, secret: str | None) -> AdminResult:
    async with EconDataSync(config=config) as client:
        return await client.run_admin_action(action, dataset, secret)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    try:
        config = EconDataSyncConfig.from_env()
    except ValueError as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return EXIT_FAILED
    secret = args.secret if args.secret is not None else os.environ.get("ADMIN_PASSWORD")
    try:
        result = asyncio.run(_run(config, args.action, args.dataset, secret))
    except AdminAuthError as exc:
        print(f"not authorized: {exc}", file=sys.stderr)
        return EXIT_AUTH
    except ConfigurationError as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return EXIT_FAILED
    print(result.message)
    for key, value in result.details.items():
        print(f"  {key}: {value}")
    return 0 if result.success else EXIT_FAILED


__all__ = [
    "build_parser",
    "main",
]


if __name__ == "__main__":
    raise SystemExit(main())
