"""Application tests for store transactions: verified commits, relative withdrawals, retries."""

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.catalogue.product import Product
from ordering.checkout.errors import TransactionConflict, TransientCheckoutError
from ordering.checkout.transaction import StoreTransaction, run_in_transaction
from protean import current_domain
from protean.exceptions import ValidationError


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock_quantity


def _withdraw(product_id, units):
    def work(txn):
        txn.withdraw_stock(product_id, units, "ORD-20260101-TEST")

    run_in_transaction(work)


class TestCommit:
    def test_staged_aggregate_is_persisted_with_bumped_revision(self):
        txn = StoreTransaction()
        txn.add(ShoppingCart.create("cust-001"))
        txn.commit()

        cart = current_domain.repository_for(ShoppingCart).get("cust-001")
        assert cart.revision == 1
        assert txn.committed

    def test_registered_product_starts_at_revision_one(self, register):
        register("A")
        assert current_domain.repository_for(Product).get("A").revision == 1

    def test_commit_twice_rejected(self):
        txn = StoreTransaction()
        txn.commit()
        with pytest.raises(RuntimeError):
            txn.commit()

    def test_read_only_commit_writes_nothing(self, register):
        register("A")
        txn = StoreTransaction()
        txn.get(Product, "A")
        txn.commit()

        assert current_domain.repository_for(Product).get("A").revision == 1

    def test_find_missing_returns_none(self):
        assert StoreTransaction().find(Product, "ghost") is None


class TestConflicts:
    def test_changed_read_conflicts(self, register):
        register("A", stock_quantity=10)

        txn = StoreTransaction()
        txn.get(Product, "A")
        txn.add(ShoppingCart.create("cust-001"))

        _withdraw("A", 1)

        with pytest.raises(TransactionConflict):
            txn.commit()
        assert current_domain.repository_for(ShoppingCart)._dao.query.all().items == []

    def test_record_appearing_after_read_conflicts(self):
        txn = StoreTransaction()
        assert txn.find(ShoppingCart, "cust-001") is None
        txn.add(ShoppingCart.create("cust-001"))

        run_in_transaction(lambda other: other.add(ShoppingCart.create("cust-001")))

        with pytest.raises(TransactionConflict):
            txn.commit()


class TestWithdrawals:
    def test_withdrawals_are_relative(self, register):
        register("A", stock_quantity=10)

        txn = StoreTransaction()
        txn.withdraw_stock("A", 3, "ORD-20260101-AAAA")

        _withdraw("A", 2)
        txn.commit()

        assert _stock("A") == 5

    def test_withdrawals_for_same_product_accumulate(self, register):
        register("A", stock_quantity=10)

        txn = StoreTransaction()
        txn.withdraw_stock("A", 3, "ORD-20260101-AAAA")
        txn.withdraw_stock("A", 4, "ORD-20260101-AAAA")
        txn.commit()

        assert _stock("A") == 3

    def test_withdrawal_below_zero_conflicts(self, register):
        register("A", stock_quantity=4)

        txn = StoreTransaction()
        txn.withdraw_stock("A", 5, "ORD-20260101-AAAA")
        with pytest.raises(TransactionConflict):
            txn.commit()

        assert _stock("A") == 4

    def test_withdrawal_from_missing_product_conflicts(self):
        txn = StoreTransaction()
        txn.withdraw_stock("ghost", 1, "ORD-20260101-AAAA")
        with pytest.raises(TransactionConflict):
            txn.commit()

    def test_failed_withdrawal_writes_nothing_else(self, register):
        register("A", stock_quantity=10)
        register("B", stock_quantity=1)

        txn = StoreTransaction()
        txn.withdraw_stock("A", 2, "ORD-20260101-AAAA")
        txn.withdraw_stock("B", 2, "ORD-20260101-AAAA")
        txn.add(ShoppingCart.create("cust-001"))
        with pytest.raises(TransactionConflict):
            txn.commit()

        assert _stock("A") == 10
        assert _stock("B") == 1
        assert current_domain.repository_for(ShoppingCart)._dao.query.all().items == []


class TestRunInTransaction:
    def test_returns_work_result(self):
        assert run_in_transaction(lambda txn: "done") == "done"

    def test_retries_after_conflict(self, register):
        register("A", stock_quantity=10)
        attempts = []

        def work(txn):
            product = txn.get(Product, "A")
            attempts.append(product.stock_quantity)
            if len(attempts) == 1:
                _withdraw("A", 1)
            txn.withdraw_stock("A", 2, "ORD-20260101-AAAA")

        run_in_transaction(work)

        assert attempts == [10, 9]
        assert _stock("A") == 7

    def test_gives_up_after_max_attempts(self, register):
        register("A", stock_quantity=10)
        attempts = []

        def work(txn):
            attempts.append(txn.get(Product, "A").stock_quantity)
            _withdraw("A", 1)
            txn.add(ShoppingCart.create("cust-001"))

        with pytest.raises(TransientCheckoutError) as exc_info:
            run_in_transaction(work, max_attempts=3)

        assert exc_info.value.attempts == 3
        assert exc_info.value.code == "CHECKOUT_RETRY"
        assert len(attempts) == 3
        assert current_domain.repository_for(ShoppingCart)._dao.query.all().items == []

    def test_attempt_budget_from_settings(self, register, monkeypatch):
        from ordering.config import settings

        monkeypatch.setenv("CHECKOUT_MAX_ATTEMPTS", "2")
        settings.cache_clear()
        register("A", stock_quantity=10)
        attempts = []

        def work(txn):
            attempts.append(txn.get(Product, "A"))
            _withdraw("A", 1)

        with pytest.raises(TransientCheckoutError):
            run_in_transaction(work)
        assert len(attempts) == 2

    def test_errors_from_work_propagate_without_retry(self):
        attempts = []

        def work(txn):
            attempts.append(1)
            txn.add(ShoppingCart.create("cust-001"))
            raise ValidationError({"cart": ["nope"]})

        with pytest.raises(ValidationError):
            run_in_transaction(work)

        assert attempts == [1]
        assert current_domain.repository_for(ShoppingCart)._dao.query.all().items == []
