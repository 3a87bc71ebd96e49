#!/usr/bin/env python3
"""
ledgerd CLI - run the wallet ledger worker and manage its database.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    serve        Process JSON request envelopes (stdin or --input file)
    wallets      Inspect wallets
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli serve < requests.jsonl
    python -m cli wallets list --user 42
"""

import sys
import argparse
from cli import migrate, serve, wallets
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging, get_logger


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="ledgerd - Wallet and transaction ledger worker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    serve.setup_parser(subparsers)
    wallets.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if hasattr(args, "func"):
        try:
            config = load_config()
            setup_logging(config)

            if args.command == "migrate":
                # Migrate commands need db_manager for raw database operations
                args.func(args, DatabaseManager(config))
            else:
                args.func(args, Services(config))
        except Exception as e:
            get_logger().error(f"Error: {e}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
