"""CLI entry point: incrementally index a project against the context backend."""

from __future__ import annotations

import argparse
import sys

from ace_context.config import ConfigError, load_settings
from ace_context.presentation.arguments import (
    add_settings_arguments,
    cli_overrides,
    configure_logging,
)
from ace_context.presentation.index_cli import print_index_result, run_indexing_cli


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Upload new or changed project files to the context backend.",
    )
    parser.add_argument("project", help="Project root to index.")
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar while uploading batches.",
    )
    add_settings_arguments(parser)
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_settings(cli_overrides(args))
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    result = run_indexing_cli(args.project, settings, show_progress=args.progress)
    print_index_result(result)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
