"""Argument and logging setup shared by the CLI entry points."""

from __future__ import annotations

import argparse
import logging

__all__ = ["add_settings_arguments", "cli_overrides", "configure_logging"]


def add_settings_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the configuration overrides both entry points accept."""
    parser.add_argument("--base-url", default=None, help="Backend base URL.")
    parser.add_argument("--token", default=None, help="Backend bearer token.")
    parser.add_argument(
        "--batch-size", type=int, default=None, help="Blobs per upload batch."
    )
    parser.add_argument(
        "--max-lines-per-blob",
        type=int,
        default=None,
        help="Split files longer than this many lines.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log progress at INFO level."
    )


def cli_overrides(args: argparse.Namespace) -> dict[str, object]:
    return {
        "base_url": args.base_url,
        "token": args.token,
        "batch_size": args.batch_size,
        "max_lines_per_blob": args.max_lines_per_blob,
    }


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
