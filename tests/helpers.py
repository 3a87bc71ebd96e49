"""Helper utilities for tests."""

from datetime import date
from decimal import Decimal
from pathlib import Path
import sqlite3


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        conn.executescript(migration_file.read_text())

    conn.commit()


def make_wallet(services, user_id="user-1", name="Checking", currency="USD", parent=None):
    """Create a wallet (linked to ``parent`` when given) straight through the services."""
    wallet = services.wallets.create(
        user_id, name, 0, currency, parent.id if parent else None
    )
    if parent is not None:
        services.wallets.add_child(parent.id, wallet.id)
    return wallet


def add_transaction(services, wallet, amount, category_id, on=date(2024, 3, 15), concept="Coffee"):
    return services.transactions.create(
        wallet.user_id, wallet.id, concept, Decimal(str(amount)), on, category_id
    )


def balance(services, wallet) -> Decimal:
    return services.wallets.find(wallet.id).balance
