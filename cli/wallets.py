#!/usr/bin/env python3

from logger import get_logger

logger = get_logger()


def cmd_list(args, services):
    """List a user's wallets with their subwallets and balances."""
    wallets = services.wallets.get_wallets(args.user)

    if not wallets:
        logger.info(f"No wallets found for user {args.user}.")
        return

    logger.info(f"\nWallets of {args.user}:")
    logger.info("=" * 80)
    for wallet in wallets:
        logger.info(f"{wallet.name} [{wallet.id}] {wallet.balance} {wallet.currency}")
        for child in wallet.children:
            logger.info(f"  └─ {child.name} [{child.id}] {child.balance} {child.currency}")

    logger.info(f"\nTotal top-level wallets: {len(wallets)}")


def setup_parser(subparsers):
    """Setup wallets subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "wallets",
        help="Inspect wallets",
        description="Inspect users' wallets",
    )

    wallets_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available wallet commands",
        dest="subcommand",
        required=True,
    )

    list_parser = wallets_subparsers.add_parser(
        "list", help="List a user's wallets"
    )
    list_parser.add_argument("--user", required=True, help="User id")
    list_parser.set_defaults(func=cmd_list)
