"""CLI entry point: search a project's code context with a natural-language query."""

from __future__ import annotations

import argparse
import sys

from ace_context.config import ConfigError, load_settings
from ace_context.presentation.arguments import (
    add_settings_arguments,
    cli_overrides,
    configure_logging,
)
from ace_context.presentation.search_cli import print_search_result, search_context_tool


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Re-index a project and query the context backend.",
    )
    parser.add_argument("query", help="What to look for, in natural language.")
    parser.add_argument(
        "--project",
        default=None,
        help="Project root (default: ACE_CONTEXT_DEFAULT_PROJECT).",
    )
    add_settings_arguments(parser)
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_settings(cli_overrides(args))
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    text = search_context_tool(
        {"query": args.query, "project_root_path": args.project}, settings
    )
    print_search_result(text)
    return 1 if text.startswith("Error:") else 0


if __name__ == "__main__":
    sys.exit(main())
