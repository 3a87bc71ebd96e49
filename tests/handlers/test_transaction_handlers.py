from decimal import Decimal

from models.category import CategoryType
from tests.helpers import add_transaction, balance, make_wallet
from validation.results import FieldError


def request(processor, message_type, **payload):
    return processor.process({"type": message_type, "payload": payload})


def add(processor, wallet, category_id, amount=20, **extra):
    payload = dict(
        user_id=wallet.user_id,
        wallet_id=wallet.id,
        category={"_id": category_id},
        amount=amount,
        concept="Groceries",
        transactionDate="2024-03-05",
    )
    payload.update(extra)
    return request(processor, "add-Transaction", **payload)


class TestAddTransaction:
    """Tests for add-Transaction."""

    def test_add_expense(self, processor, services, basic):
        wallet = make_wallet(services)

        response = add(processor, wallet, basic["out"], amount="19.999")

        assert response["status"] == 200
        transaction = response["payload"]
        assert transaction["amount"] == 20.0
        assert transaction["concept"] == "Groceries"
        assert transaction["transactionDate"] == "2024-03-05"
        assert transaction["category"]["_id"] == basic["out"]
        assert "transfer_id" not in transaction
        assert balance(services, wallet) == Decimal("-20.00")

    def test_category_as_plain_id(self, processor, services, basic):
        wallet = make_wallet(services)

        response = add(processor, wallet, None, category=basic["in"])

        assert response["status"] == 200
        assert balance(services, wallet) == Decimal("20.00")

    def test_subwallet_transaction_moves_parent(self, processor, services, basic):
        parent = make_wallet(services, name="P")
        child = make_wallet(services, name="C", parent=parent)

        add(processor, child, basic["in"], amount=12)

        assert balance(services, child) == Decimal("12.00")
        assert balance(services, parent) == Decimal("12.00")

    def test_reports_every_field_error(self, processor, services):
        """Test every invalid field is reported and nothing is written."""
        wallet = make_wallet(services)

        response = add(
            processor, wallet, "missing", amount="abc", concept="", transactionDate="2021-02-29"
        )

        assert response["status"] == 422
        assert response["payload"]["details"] == {
            "category": FieldError.CATEGORY_NOT_FOUND,
            "amount": FieldError.AMOUNT_NOT_NUMBER,
            "date": FieldError.INVALID_DATE,
            "concept": FieldError.EMPTY_CONCEPT,
        }
        assert services.transactions.get_all("-1", "user-1", "202403") == []
        assert balance(services, wallet) == Decimal("0.00")

    def test_amount_too_large(self, processor, services, basic):
        wallet = make_wallet(services)

        response = add(processor, wallet, basic["in"], amount="1e30")

        assert response["status"] == 422
        assert response["payload"]["details"] == {"amount": FieldError.AMOUNT_NOT_NUMBER}
        assert balance(services, wallet) == Decimal("0.00")

    def test_foreign_wallet(self, processor, services, basic):
        wallet = make_wallet(services, user_id="user-2")

        response = add(processor, wallet, basic["in"], user_id="user-1")

        assert response["status"] == 403
        assert balance(services, wallet) == Decimal("0.00")


class TestEditTransaction:
    """Tests for edit-Transaction."""

    def test_edit_amount(self, processor, services, basic):
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 50, basic["in"])

        response = request(
            processor, "edit-Transaction", user_id="user-1", _id=transaction.id, amount=80
        )

        assert response["status"] == 200
        assert response["payload"]["amount"] == 80.0
        assert balance(services, wallet) == Decimal("80.00")

    def test_no_change(self, processor, services, basic):
        """Test resubmitting the stored values changes nothing."""
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 50, basic["in"], concept="Salary")

        response = request(
            processor,
            "edit-Transaction",
            user_id="user-1",
            _id=transaction.id,
            wallet_id=wallet.id,
            amount="50.00",
            concept=" Salary ",
            category={"_id": basic["in"]},
            transactionDate="2024-03-15",
        )

        assert response["status"] == 204
        assert response["payload"] is None
        assert balance(services, wallet) == Decimal("50.00")

    def test_negative_amount_is_same_magnitude(self, processor, services, basic):
        """Test resubmitting the stored amount with a minus sign changes nothing."""
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 5, basic["out"])

        response = request(
            processor, "edit-Transaction", user_id="user-1", _id=transaction.id, amount="-5"
        )

        assert response["status"] == 204
        assert balance(services, wallet) == Decimal("-5.00")

    def test_change_wallet_and_category(self, processor, services, basic):
        source = make_wallet(services, name="A")
        target = make_wallet(services, name="B")
        transaction = add_transaction(services, source, 10, basic["in"])

        response = request(
            processor,
            "edit-Transaction",
            user_id="user-1",
            _id=transaction.id,
            wallet_id=target.id,
            category={"_id": basic["out"]},
        )

        assert response["payload"]["wallet_id"] == target.id
        assert balance(services, source) == Decimal("0.00")
        assert balance(services, target) == Decimal("-10.00")

    def test_change_to_foreign_wallet(self, processor, services, basic):
        wallet = make_wallet(services)
        foreign = make_wallet(services, user_id="user-2", name="Theirs")
        transaction = add_transaction(services, wallet, 10, basic["in"])

        response = request(
            processor, "edit-Transaction", user_id="user-1", _id=transaction.id, wallet_id=foreign.id
        )

        assert response["status"] == 403
        assert services.transactions.find(transaction.id).wallet_id == wallet.id

    def test_invalid_changed_fields(self, processor, services, basic):
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 10, basic["in"])

        response = request(
            processor,
            "edit-Transaction",
            user_id="user-1",
            _id=transaction.id,
            concept="  ",
            transactionDate="2024-13-01",
        )

        assert response["status"] == 422
        assert set(response["payload"]["details"]) == {"concept", "date"}

    def test_others_category_rejected(self, processor, services, basic):
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 10, basic["in"])
        private = services.categories.create("user-2", "Secret", CategoryType.EXPENSE)

        response = request(
            processor, "edit-Transaction", user_id="user-1", _id=transaction.id, category=private.id
        )

        assert response["payload"]["details"] == {"category": FieldError.CATEGORY_NOT_OWNED}

    def test_edit_transfer_leg_mirrors_partner(self, processor, services):
        source = make_wallet(services, name="A")
        target = make_wallet(services, name="B")
        out_leg, in_leg = request(
            processor, "transfer-Wallet", user_id="user-1", from_id=source.id, to_id=target.id,
            amount=30, concept="Move", transactionDate="2024-03-10",
        )["payload"]

        response = request(
            processor, "edit-Transaction", user_id="user-1", _id=in_leg["_id"], amount=40
        )

        assert response["payload"]["_id"] == in_leg["_id"]
        assert services.transactions.find(out_leg["_id"]).amount == Decimal("40.00")
        assert balance(services, source) == Decimal("-40.00")
        assert balance(services, target) == Decimal("40.00")

    def test_not_owner(self, processor, services, basic):
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 10, basic["in"])

        response = request(
            processor, "edit-Transaction", user_id="user-2", _id=transaction.id, amount=1
        )

        assert response["status"] == 403
        assert response["payload"]["details"] == {"transaction": FieldError.NOT_TRANSACTION_OWNER}


class TestDeleteTransaction:
    """Tests for delete-Transaction."""

    def test_delete(self, processor, services, basic):
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 10, basic["out"])

        response = request(processor, "delete-Transaction", user_id="user-1", _id=transaction.id)

        assert [t["_id"] for t in response["payload"]] == [transaction.id]
        assert balance(services, wallet) == Decimal("0.00")

    def test_delete_not_owner(self, processor, services, basic):
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 10, basic["out"])

        response = request(processor, "delete-Transaction", user_id="user-2", _id=transaction.id)

        assert response["status"] == 403
        assert services.transactions.find(transaction.id) is not None


class TestGetTransactions:
    """Tests for get-Transaction and get-Transactions."""

    def test_get_transaction(self, processor, services, basic):
        wallet = make_wallet(services)
        transaction = add_transaction(services, wallet, 10, basic["out"])

        response = request(processor, "get-Transaction", user_id="user-1", _id=transaction.id)

        assert response["payload"]["_id"] == transaction.id
        assert response["payload"]["category"]["type"] == "Expense"

    def test_get_all_wallets(self, processor, services, basic):
        first = make_wallet(services, name="First")
        second = make_wallet(services, name="Second")
        add_transaction(services, first, 1, basic["in"])
        add_transaction(services, second, 2, basic["in"])

        response = request(
            processor, "get-Transactions", user_id="user-1", _id="-1", datamonth="202403"
        )

        assert response["status"] == 200
        assert len(response["payload"]) == 2

    def test_get_parent_includes_children(self, processor, services, basic):
        parent = make_wallet(services, name="P")
        child = make_wallet(services, name="C", parent=parent)
        sibling = make_wallet(services, name="S")
        add_transaction(services, parent, 1, basic["in"])
        add_transaction(services, child, 2, basic["in"])
        add_transaction(services, sibling, 3, basic["in"])

        response = request(
            processor, "get-Transactions", user_id="user-1", _id=parent.id, datamonth="202403"
        )

        assert sorted(t["wallet_id"] for t in response["payload"]) == sorted([parent.id, child.id])

    def test_get_foreign_wallet(self, processor, services):
        wallet = make_wallet(services, user_id="user-2")

        response = request(
            processor, "get-Transactions", user_id="user-1", _id=wallet.id, datamonth="202403"
        )

        assert response["status"] == 403
