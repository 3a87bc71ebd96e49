"""Transaction service for database operations.

Inserting, editing or deleting a transaction always updates the balance of
the wallet it references through ``WalletService``.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from logger import get_logger
from models.category import Category, CategoryType
from models.money import from_cents, to_cents
from models.transaction import Transaction

logger = get_logger()

# "No wallet filter" in get_all()
ALL_WALLETS = "-1"

# SQL Query Constants
_TRANSACTION_SELECT_FIELDS = """t.id, t.user_id, t.wallet_id, t.concept, t.amount_cents,
       t.transaction_date, t.transfer_id, t.exclude_from_report, t.created_at,
       c.id AS category_id, c.user_id AS category_user_id,
       c.parent_id AS category_parent_id, c.name AS category_name,
       c.type AS category_type"""

_TRANSACTION_FROM = "transactions t JOIN categories c ON c.id = t.category_id"

_TRANSACTION_INSERT_FIELDS = """id, user_id, wallet_id, category_id, concept, amount_cents,
    transaction_date, transfer_id, exclude_from_report, created_at"""

# Automatically generate placeholders from field count
_TRANSACTION_INSERT_PLACEHOLDERS = (
    f"({', '.join(['?'] * len(_TRANSACTION_INSERT_FIELDS.split(',')))})"
)

# Keys accepted by update() and the column each one writes
_UPDATE_COLUMNS = {
    "wallet_id": "wallet_id",
    "category": "category_id",
    "concept": "concept",
    "amount": "amount_cents",
    "transaction_date": "transaction_date",
    "exclude_from_report": "exclude_from_report",
    "transfer_id": "transfer_id",
}

# Fields a transfer half cannot change, since its partner mirrors it
TRANSFER_IMMUTABLE_FIELDS = ("category", "wallet_id")


def month_range(datamonth: Optional[str], today: Optional[date] = None) -> Tuple[date, date]:
    """Get the [start, end) dates of the month encoded as ``YYYYMM``.

    Missing or malformed values fall back to the current month.

    Args:
        datamonth: Six digit year-month string, e.g. "202402".
        today: Reference date for the fallback (defaults to today).

    Returns:
        Tuple of the first day of the month and the first day of the next.
    """
    year = month = None
    if isinstance(datamonth, str) and len(datamonth) == 6 and datamonth.isdigit():
        year, month = int(datamonth[:4]), int(datamonth[4:])
        if not 1 <= month <= 12 or year < 1:
            year = month = None

    if year is None:
        today = today or date.today()
        year, month = today.year, today.month

    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db_manager, wallets, categories):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
            wallets: WalletService that owns the running balances.
            categories: CategoryService used to resolve categories.
        """
        self.db_manager = db_manager
        self.wallets = wallets
        self.categories = categories

    def create(
        self,
        user_id: str,
        wallet_id: str,
        concept: str,
        amount: Decimal,
        transaction_date: date,
        category_id: str,
        exclude_from_report: Optional[bool] = None,
    ) -> Transaction:
        """Create a transaction and apply it to its wallet's balance.

        Args:
            user_id: Owner of the transaction.
            wallet_id: Wallet the transaction belongs to.
            concept: Description.
            amount: Amount; stored as its absolute value, the sign comes from
                the category type.
            transaction_date: Date of the transaction.
            category_id: Category ID.
            exclude_from_report: Optional flag to leave it out of reports.

        Returns:
            The created Transaction with its category populated.

        Raises:
            LookupError: If the category does not exist.
        """
        category = self.categories.find(category_id)
        if category is None:
            raise LookupError(f"Category {category_id} not found")

        transaction = Transaction(
            id=uuid.uuid4().hex,
            user_id=user_id,
            wallet_id=wallet_id,
            category=category,
            concept=concept,
            amount=abs(Decimal(amount)).quantize(Decimal("0.01")),
            transaction_date=transaction_date,
            created_at=datetime.now(timezone.utc),
            exclude_from_report=exclude_from_report,
        )

        with self.db_manager.connect() as conn:
            conn.execute(
                f"""
                INSERT INTO transactions ({_TRANSACTION_INSERT_FIELDS})
                VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
                """,
                (
                    transaction.id,
                    transaction.user_id,
                    transaction.wallet_id,
                    category.id,
                    transaction.concept,
                    to_cents(transaction.amount),
                    transaction.transaction_date.isoformat(),
                    None,
                    _flag_to_db(exclude_from_report),
                    transaction.created_at.isoformat(),
                ),
            )
            conn.commit()

        self.wallets.update_amount(wallet_id, transaction.amount, category.type)

        return transaction

    def find(self, transaction_id: str) -> Optional[Transaction]:
        """Get a single transaction by ID, with its category populated.

        Args:
            transaction_id: The transaction ID.

        Returns:
            Transaction object if found, None otherwise.
        """
        if not transaction_id:
            return None

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM {_TRANSACTION_FROM}
                WHERE t.id = ?
                """,
                (transaction_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_transaction(row)
            return None

    def delete(self, transaction_id: str) -> List[Transaction]:
        """Delete a transaction and undo its effect on the wallet balance.

        If it is half of a transfer, the partner transaction is deleted too.

        Returns:
            The deleted transactions (the requested one first).
        """
        deleted = []

        transaction = self._delete_one(transaction_id)
        if transaction is None:
            return deleted
        deleted.append(transaction)

        if transaction.transfer_id:
            partner = self._delete_one(transaction.transfer_id)
            if partner is not None:
                deleted.append(partner)

        return deleted

    def delete_all(self, wallet_id: str) -> int:
        """Delete every transaction of a wallet without touching balances.

        Returns:
            Number of deleted transactions.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE wallet_id = ?", (wallet_id,)
            )
            conn.commit()
            return cursor.rowcount

    def delete_user(self, user_id: str) -> int:
        """Delete every transaction of a user without touching balances.

        Returns:
            Number of deleted transactions.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE user_id = ?", (user_id,)
            )
            conn.commit()
            return cursor.rowcount

    def get_all(
        self, wallet_id: str, user_id: str, datamonth: Optional[str] = None
    ) -> List[Transaction]:
        """Get a user's transactions for one calendar month.

        Args:
            wallet_id: Wallet to list; its subwallets' transactions are
                included. "-1" lists every wallet of the user.
            user_id: Owner of the transactions.
            datamonth: Month as ``YYYYMM``; invalid or missing means the
                current month.

        Returns:
            List of Transaction objects ordered by date (newest first).
        """
        start, end = month_range(datamonth)

        query = f"""
            SELECT {_TRANSACTION_SELECT_FIELDS}
            FROM {_TRANSACTION_FROM}
            WHERE t.user_id = ?
              AND t.transaction_date >= ? AND t.transaction_date < ?
        """
        params = [user_id, start.isoformat(), end.isoformat()]

        if wallet_id != ALL_WALLETS:
            wallet = self.wallets.find(wallet_id)
            lookup = [wallet_id] + (wallet.child_ids if wallet else [])
            placeholders = ", ".join(["?"] * len(lookup))
            query += f" AND t.wallet_id IN ({placeholders})"
            params.extend(lookup)

        query += " ORDER BY t.transaction_date DESC, t.rowid DESC"

        with self.db_manager.connect() as conn:
            cursor = conn.execute(query, params)
            rows = cursor.fetchall()

            return [self._row_to_transaction(row) for row in rows]

    def migrate_to_parent(self, wallet_id: str) -> None:
        """Move every transaction of a subwallet to its parent.

        The parent's balance already includes these transactions, so it is
        left alone; the subwallet's own balance is brought to zero without
        propagating.
        """
        wallet = self.wallets.find(wallet_id)
        if wallet is None or wallet.parent_id is None:
            return

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "UPDATE transactions SET wallet_id = ? WHERE wallet_id = ?",
                (wallet.parent_id, wallet_id),
            )
            conn.commit()
            moved = cursor.rowcount

        self.wallets.update_amount(
            wallet_id, wallet.balance, CategoryType.EXPENSE, unlinked=True
        )
        logger.debug(
            f"Moved {moved} transaction(s) from wallet {wallet_id} to {wallet.parent_id}"
        )

    def update(self, old: Transaction, contents: dict) -> dict:
        """Apply changes to a transaction and rebalance the affected wallets.

        For a transfer half, ``category`` and ``wallet_id`` are ignored and the
        remaining changes are mirrored on the partner. If the partner no longer
        exists the transfer link is removed instead.

        Args:
            old: The transaction as currently stored.
            contents: Changed fields, keyed as in ``_UPDATE_COLUMNS``.

        Returns:
            Dict with "old" and "new" lists of Transactions (partner first,
            then the edited transaction).

        Raises:
            ValueError: If ``contents`` has unsupported keys.
        """
        invalid_fields = set(contents) - set(_UPDATE_COLUMNS)
        if invalid_fields:
            raise ValueError(f"Unsupported field names: {invalid_fields}")

        changes = dict(contents)
        unlink_transfer = False
        old_transactions = []
        new_transactions = []

        if old.transfer_id:
            partner = self.find(old.transfer_id)

            if partner is None:
                unlink_transfer = True
            else:
                for field in TRANSFER_IMMUTABLE_FIELDS:
                    changes.pop(field, None)

                partner_changes = {
                    k: v for k, v in changes.items() if k != "transfer_id"
                }
                self._write(partner.id, partner_changes)
                new_partner = self.find(partner.id)
                self._rebalance(partner, new_partner)

                old_transactions.append(partner)
                new_transactions.append(new_partner)

        self._write(old.id, changes, unset_transfer=unlink_transfer)
        response = self.find(old.id)
        self._rebalance(old, response)

        old_transactions.append(old)
        new_transactions.append(response)

        return {"old": old_transactions, "new": new_transactions}

    def _rebalance(self, before: Transaction, after: Transaction) -> None:
        """Replace ``before``'s balance contribution with ``after``'s."""
        if before.wallet_id == after.wallet_id:
            delta = after.signed_amount - before.signed_amount
            if delta:
                self.wallets.adjust_balance(after.wallet_id, delta)
            return

        self.wallets.adjust_balance(before.wallet_id, -before.signed_amount)
        self.wallets.adjust_balance(after.wallet_id, after.signed_amount)

    def _write(self, transaction_id: str, changes: dict, unset_transfer: bool = False) -> None:
        assignments = []
        params = []
        for field, value in changes.items():
            if field == "amount":
                value = to_cents(abs(Decimal(value)))
            elif field == "transaction_date":
                value = value.isoformat()
            elif field == "exclude_from_report":
                value = _flag_to_db(value)
            assignments.append(f"{_UPDATE_COLUMNS[field]} = ?")
            params.append(value)

        if unset_transfer:
            assignments.append("transfer_id = NULL")

        if not assignments:
            return

        with self.db_manager.connect() as conn:
            conn.execute(
                f"UPDATE transactions SET {', '.join(assignments)} WHERE id = ?",
                (*params, transaction_id),
            )
            conn.commit()

    def _delete_one(self, transaction_id: str) -> Optional[Transaction]:
        transaction = self.find(transaction_id)
        if transaction is None:
            return None

        with self.db_manager.connect() as conn:
            conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
            conn.commit()

        self.wallets.update_amount(
            transaction.wallet_id, -transaction.amount, transaction.category.type
        )
        return transaction

    def _row_to_transaction(self, row) -> Transaction:
        """Convert a database row to a Transaction object."""
        category = Category(
            id=row["category_id"],
            user_id=row["category_user_id"],
            parent_id=row["category_parent_id"],
            name=row["category_name"],
            type=CategoryType(row["category_type"]),
        )
        flag = row["exclude_from_report"]
        return Transaction(
            id=row["id"],
            user_id=row["user_id"],
            wallet_id=row["wallet_id"],
            category=category,
            concept=row["concept"],
            amount=from_cents(row["amount_cents"]),
            transaction_date=date.fromisoformat(row["transaction_date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            transfer_id=row["transfer_id"],
            exclude_from_report=None if flag is None else bool(flag),
        )


def _flag_to_db(value: Optional[bool]) -> Optional[int]:
    return None if value is None else int(bool(value))
