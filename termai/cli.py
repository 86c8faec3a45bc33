#!/usr/bin/env python3
"""
CLI for termai.

Every command runs inside an AppContext, so failures are routed through the
error manager: UserErrors are shown with their resolution, anything else is
treated as fatal.
"""

import sys
import argparse
from typing import List, Optional

import yaml

from termai.context import AppContext
from termai.core import (
    ErrorLevel,
    UserError,
    configure_logging,
    format_user_facing,
    load_settings,
)


class TermaiCLI:
    """Command implementations; each returns a process exit code."""

    def __init__(self, ctx: AppContext):
        self.ctx = ctx

    def run_check(self, verbose: bool = False) -> int:
        """Authenticate and test the connection to the AI service."""
        if verbose:
            print("Checking authentication and AI service connection...")
        self.ctx.ready()
        client = self.ctx.ai.get_client()
        print(f"✅ Connected to {client.base_url} (model: {client.model})")
        return 0

    def show_config(self) -> int:
        """Print the effective error handling settings as YAML."""
        data = self.ctx.manager.settings.model_dump()
        print(yaml.safe_dump(data, sort_keys=True), end="")
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termai",
        description="termai command line interface",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Verify credentials and connectivity
  termai check

  # Show effective error handling settings
  termai --config termai.yaml config
        """,
    )
    parser.add_argument("--config", dest="config_path", help="YAML settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("check", help="Check authentication and AI service connection")
    subparsers.add_parser("config", help="Show effective error handling settings")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        settings = load_settings(args.config_path)
    except UserError as e:
        print(format_user_facing(e), file=sys.stderr)
        return 1

    configure_logging("DEBUG" if args.verbose else settings.log_level, settings.log_format)

    with AppContext.create(settings) as ctx:
        cli = TermaiCLI(ctx)
        try:
            if args.command == "check":
                return cli.run_check(args.verbose)
            if args.command == "config":
                return cli.show_config()
        except UserError as e:
            ctx.manager.handle_error(e, level=ErrorLevel.INFORMATIONAL, category=e.category)
            print(format_user_facing(e), file=sys.stderr)
            return 1
        except Exception as e:
            ctx.manager.handle_fatal_error(e)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
