from tests.helpers import add_transaction, make_wallet
from validation.guards import transaction_ownership, wallet_lineage, wallet_ownership
from validation.results import FieldError


class TestWalletOwnership:
    """Tests for wallet_ownership()."""

    def test_owner(self, services):
        wallet = make_wallet(services)

        result = wallet_ownership(services.wallets, "user-1", wallet.id)

        assert result.valid
        assert result.value.id == wallet.id

    def test_other_user(self, services):
        wallet = make_wallet(services)

        result = wallet_ownership(services.wallets, "user-2", wallet.id)

        assert result.errors == {"wallet": FieldError.NOT_OWNER}
        # The fetched wallet is still handed back
        assert result.value.id == wallet.id

    def test_missing_wallet_or_user(self, services):
        wallet = make_wallet(services)

        assert not wallet_ownership(services.wallets, "user-1", "missing").valid
        assert not wallet_ownership(services.wallets, None, wallet.id).valid
        assert not wallet_ownership(services.wallets, "", wallet.id).valid


class TestTransactionOwnership:
    """Tests for transaction_ownership()."""

    def test_owner(self, services, basic):
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 5, basic["in"])

        result = transaction_ownership(services.transactions, "user-1", transaction.id)

        assert result.valid
        assert result.value.id == transaction.id

    def test_other_user(self, services, basic):
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 5, basic["in"])

        result = transaction_ownership(services.transactions, "user-2", transaction.id)

        assert result.errors == {"transaction": FieldError.NOT_TRANSACTION_OWNER}

    def test_missing(self, services):
        assert not transaction_ownership(services.transactions, "user-1", "missing").valid


class TestWalletLineage:
    """Tests for wallet_lineage()."""

    def test_no_parent_defaults_to_sentinel(self, services):
        for raw in (None, "", "   ", "-1"):
            result = wallet_lineage(services.wallets, "user-1", raw)
            assert result.valid
            assert result.value == "-1"

    def test_owned_top_level_parent(self, services):
        parent = make_wallet(services)

        result = wallet_lineage(services.wallets, "user-1", f" {parent.id} ")

        assert result.valid
        assert result.value == parent.id

    def test_parent_of_other_user(self, services):
        parent = make_wallet(services, user_id="user-2")

        result = wallet_lineage(services.wallets, "user-1", parent.id)

        assert result.errors == {"parent_id": FieldError.PARENT_NOT_OWNED}

    def test_missing_parent(self, services):
        result = wallet_lineage(services.wallets, "user-1", "missing")

        assert result.errors == {"parent_id": FieldError.PARENT_NOT_OWNED}

    def test_depth_exceeded(self, services):
        parent = make_wallet(services, name="Parent")
        child = make_wallet(services, name="Child", parent=parent)

        result = wallet_lineage(services.wallets, "user-1", child.id)

        assert result.errors == {"parent_id": FieldError.DEPTH_EXCEEDED}
