"""Wallet service for database operations.

Every change to a wallet's balance goes through ``adjust_balance``, which
also carries the change up to the parent wallet so that a parent's balance
always includes its subwallets.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from errors import HierarchyError
from logger import get_logger
from models.category import CategoryType
from models.money import from_cents, to_cents
from models.wallet import Wallet

logger = get_logger()

_WALLET_SELECT_FIELDS = (
    "id, user_id, name, currency, icon_id, balance_cents, parent_id, created_at"
)
_CHILD_SELECT_FIELDS = ", ".join(
    "w." + field.strip() for field in _WALLET_SELECT_FIELDS.split(",")
)

# Fields that may be changed through update(); the balance never is.
_UPDATABLE_FIELDS = {"name", "currency", "icon_id"}


class WalletService:
    """Service for managing wallets and their running balances."""

    def __init__(self, db_manager, transactions=None):
        """Initialize the wallet service.

        Args:
            db_manager: Database manager instance for database operations.
            transactions: TransactionService used when deleting wallets. The
                services container wires it after both services exist.
        """
        self.db_manager = db_manager
        self.transactions = transactions

    def create(
        self,
        user_id: str,
        name: str,
        icon_id: int,
        currency: str,
        parent_id: Optional[str] = None,
    ) -> Wallet:
        """Create a new wallet with a zero balance.

        Callers are expected to have validated ownership, name and currency.
        The only check made here is the nesting limit: a subwallet's parent
        must itself be a top-level wallet.

        Args:
            user_id: Owner of the wallet.
            name: Display name.
            icon_id: Frontend icon identifier.
            currency: 3-letter currency code.
            parent_id: Optional parent wallet ID.

        Returns:
            The created Wallet.

        Raises:
            HierarchyError: If the parent is missing or is itself a subwallet.
        """
        if parent_id is not None:
            parent = self.find(parent_id)
            if parent is None:
                raise HierarchyError(f"Parent wallet {parent_id} not found")
            if not parent.is_root:
                raise HierarchyError(
                    f"Wallet {parent_id} is a subwallet and cannot have subwallets"
                )

        wallet = Wallet(
            id=uuid.uuid4().hex,
            user_id=user_id,
            name=name,
            currency=currency,
            icon_id=icon_id,
            balance=Decimal("0.00"),
            parent_id=parent_id,
            created_at=datetime.now(timezone.utc),
        )

        with self.db_manager.connect() as conn:
            conn.execute(
                f"INSERT INTO wallets ({_WALLET_SELECT_FIELDS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    wallet.id,
                    wallet.user_id,
                    wallet.name,
                    wallet.currency,
                    wallet.icon_id,
                    0,
                    wallet.parent_id,
                    wallet.created_at.isoformat(),
                ),
            )
            conn.commit()

        return wallet

    def add_child(self, parent_id: str, child_id: str) -> None:
        """Append a subwallet to its parent's child list."""
        with self.db_manager.connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO wallet_children (parent_id, child_id) VALUES (?, ?)",
                (parent_id, child_id),
            )
            conn.commit()

    def remove_child(self, parent_id: str, child_id: str) -> None:
        """Remove a subwallet from its parent's child list."""
        with self.db_manager.connect() as conn:
            conn.execute(
                "DELETE FROM wallet_children WHERE parent_id = ? AND child_id = ?",
                (parent_id, child_id),
            )
            conn.commit()

    def find(self, wallet_id: str) -> Optional[Wallet]:
        """Get a single wallet by ID.

        Args:
            wallet_id: The wallet ID to find.

        Returns:
            Wallet object (with child_ids, children not populated) if found,
            None otherwise.
        """
        if not wallet_id:
            return None

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_WALLET_SELECT_FIELDS} FROM wallets WHERE id = ?",
                (wallet_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return self._row_to_wallet(row, self._child_ids(conn, row["id"]))

    def find_by_name(self, user_id: str, name: str) -> Optional[Wallet]:
        """Get a user's wallet by its exact name, at any nesting level."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_WALLET_SELECT_FIELDS}
                FROM wallets
                WHERE user_id = ? AND name = ?
                ORDER BY rowid
                LIMIT 1
                """,
                (user_id, name),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return self._row_to_wallet(row, self._child_ids(conn, row["id"]))

    def find_children(self, wallet_id: str) -> List[Wallet]:
        """Get the subwallets of a wallet, in the order they were linked."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_CHILD_SELECT_FIELDS}
                FROM wallet_children c
                JOIN wallets w ON w.id = c.child_id
                WHERE c.parent_id = ?
                ORDER BY c.position
                """,
                (wallet_id,),
            )
            return [self._row_to_wallet(row, []) for row in cursor.fetchall()]

    def get_wallets(self, user_id: str) -> List[Wallet]:
        """Get a user's top-level wallets with their subwallets populated.

        Subwallets are only reachable through their parent's ``children``.

        Returns:
            List of Wallet objects ordered by creation time.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_WALLET_SELECT_FIELDS}
                FROM wallets
                WHERE user_id = ? AND parent_id IS NULL
                ORDER BY rowid
                """,
                (user_id,),
            )
            rows = cursor.fetchall()

        wallets = []
        for row in rows:
            children = self.find_children(row["id"])
            wallet = self._row_to_wallet(row, [child.id for child in children])
            wallet.children = children
            wallets.append(wallet)

        return wallets

    def update(self, wallet_id: str, content: dict) -> Optional[Wallet]:
        """Update a wallet's name, currency and/or icon.

        Any balance ("money"/"balance") or other field in ``content`` is
        dropped before writing.

        Returns:
            The updated Wallet, or None if it does not exist.
        """
        cleaned = {k: v for k, v in content.items() if k in _UPDATABLE_FIELDS}

        if cleaned:
            set_clause = ", ".join(f"{field} = ?" for field in cleaned)
            with self.db_manager.connect() as conn:
                conn.execute(
                    f"UPDATE wallets SET {set_clause} WHERE id = ?",
                    (*cleaned.values(), wallet_id),
                )
                conn.commit()

        return self.find(wallet_id)

    def adjust_balance(
        self, wallet_id: str, delta: Decimal, propagate: bool = True
    ) -> Optional[Wallet]:
        """Add a signed amount to a wallet's balance.

        The increment is a single UPDATE statement. When ``propagate`` is set
        and the wallet has a parent, the same delta is applied to the parent.

        Returns:
            The wallet after the increment, or None if it does not exist.
        """
        cents = to_cents(delta)
        if cents == 0:
            return self.find(wallet_id)

        with self.db_manager.connect() as conn:
            conn.execute(
                "UPDATE wallets SET balance_cents = balance_cents + ? WHERE id = ?",
                (cents, wallet_id),
            )
            conn.commit()

        wallet = self.find(wallet_id)
        if wallet is None:
            logger.warning(f"Balance change for missing wallet {wallet_id} ignored")
            return None

        logger.debug(f"Wallet {wallet_id} balance {delta:+} -> {wallet.balance}")

        if propagate and wallet.parent_id is not None:
            with self.db_manager.connect() as conn:
                conn.execute(
                    "UPDATE wallets SET balance_cents = balance_cents + ? WHERE id = ?",
                    (cents, wallet.parent_id),
                )
                conn.commit()
            logger.debug(f"Parent wallet {wallet.parent_id} balance {delta:+}")

        return wallet

    def update_amount(
        self,
        wallet_id: str,
        amount: Decimal,
        category_type: CategoryType,
        unlinked: bool = False,
    ) -> Optional[Wallet]:
        """Apply an income (+amount) or expense (-amount) to a wallet.

        Args:
            wallet_id: Wallet to change.
            amount: Amount as recorded on the transaction.
            category_type: Income or Expense.
            unlinked: If True, leave the parent wallet untouched.
        """
        delta = Decimal(amount) * CategoryType(category_type).sign
        return self.adjust_balance(wallet_id, delta, propagate=not unlinked)

    def delete(self, wallet_id: str) -> Optional[Wallet]:
        """Delete a wallet, its subwallets and their transactions.

        A subwallet's own transactions are first moved to its parent, whose
        balance already includes them. Subwallets of the deleted wallet are
        removed together with their transactions.

        Returns:
            The wallet as it was when removed, or None if it did not exist.
        """
        wallet = self.find(wallet_id)
        if wallet is None:
            return None

        self.transactions.migrate_to_parent(wallet_id)

        for child in self.find_children(wallet_id):
            removed = self.transactions.delete_all(child.id)
            self._delete_record(child.id)
            logger.debug(
                f"Deleted subwallet {child.id} with {removed} transaction(s)"
            )

        removed = self.transactions.delete_all(wallet_id)

        if wallet.parent_id is not None:
            self.remove_child(wallet.parent_id, wallet_id)

        deleted = self.find(wallet_id)
        self._delete_record(wallet_id)
        logger.debug(f"Deleted wallet {wallet_id} with {removed} transaction(s)")

        return deleted

    def discard(self, wallet_id: str) -> None:
        """Remove a wallet that was created but never handed out.

        Unlike ``delete`` nothing is moved to the parent: the wallet's own
        transactions are dropped along with it.
        """
        wallet = self.find(wallet_id)
        if wallet is None:
            return

        self.transactions.delete_all(wallet_id)
        if wallet.parent_id is not None:
            self.remove_child(wallet.parent_id, wallet_id)
        self._delete_record(wallet_id)
        logger.info(f"Discarded wallet {wallet_id}")

    def _delete_record(self, wallet_id: str) -> None:
        with self.db_manager.connect() as conn:
            conn.execute("DELETE FROM wallet_children WHERE parent_id = ?", (wallet_id,))
            conn.execute("DELETE FROM wallets WHERE id = ?", (wallet_id,))
            conn.commit()

    @staticmethod
    def _child_ids(conn, wallet_id: str) -> List[str]:
        cursor = conn.execute(
            "SELECT child_id FROM wallet_children WHERE parent_id = ? ORDER BY position",
            (wallet_id,),
        )
        return [row["child_id"] for row in cursor.fetchall()]

    @staticmethod
    def _row_to_wallet(row, child_ids: List[str]) -> Wallet:
        """Convert a database row to a Wallet object."""
        return Wallet(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            currency=row["currency"],
            icon_id=row["icon_id"],
            balance=from_cents(row["balance_cents"]),
            parent_id=row["parent_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            child_ids=child_ids,
        )
