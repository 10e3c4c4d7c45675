# Overview: Pytest coverage for manual withdrawals and the movement ledger under both backends.

from datetime import datetime

import pytest

from meatpack.errors import InsufficientStockError, NotFoundError, ValidationError
from meatpack.records import MOVEMENT_INBOUND, MOVEMENT_OUTBOUND, STATUS_FULFILLED
from meatpack.services.inventory_service import WITHDRAWAL_REASONS

from tests.conftest import make_order

REASON = WITHDRAWAL_REASONS[0]


class TestWithdraw:

    def test_withdraw_everything(self, stocked):
        """
        SCENARIO: withdraw 5 kg of a product holding exactly 5 kg
        EXPECTED: quantity 0, one outbound entry without an order id
        """
        entry = stocked.inventory.withdraw(3, 5, REASON)

        assert stocked.products.get(3).quantity == 0
        assert entry.id is not None
        assert entry.type == MOVEMENT_OUTBOUND
        assert entry.quantity == 5
        assert entry.reason == REASON
        assert entry.order_id is None
        assert stocked.movements.get_history(3) == [entry]

    def test_withdraw_from_empty_stock(self, stocked):
        """
        SCENARIO: withdraw 0.01 kg of a product holding 0 kg
        EXPECTED: InsufficientStockError, nothing written
        """
        with pytest.raises(InsufficientStockError) as excinfo:
            stocked.inventory.withdraw(2, 0.01, REASON)

        assert excinfo.value.product_code == 2
        assert excinfo.value.requested == 0.01
        assert excinfo.value.available == 0
        assert stocked.products.get(2).quantity == 0
        assert stocked.movements.all() == []

    def test_fractional_withdrawals_do_not_drift(self, stocked):
        for _ in range(3):
            stocked.inventory.withdraw(1, 0.1, REASON)
        assert stocked.products.get(1).quantity == 9.7

        stocked.inventory.withdraw(1, 9.7, REASON)
        assert stocked.products.get(1).quantity == 0

    def test_custom_reason_accepted(self, stocked):
        entry = stocked.inventory.withdraw(1, 1, "Degustação na loja")
        assert entry.reason == "Degustação na loja"

    @pytest.mark.parametrize("quantity, reason", [(0, REASON), (-1, REASON), (1, "  ")])
    def test_validation(self, stocked, quantity, reason):
        with pytest.raises(ValidationError):
            stocked.inventory.withdraw(1, quantity, reason)
        assert stocked.products.get(1).quantity == 10

    def test_sub_gram_withdrawal_rejected(self, stocked):
        """
        SCENARIO: withdraw 0.0004 kg from a product with no stock
        EXPECTED: ValidationError; the amount rounds to 0 g and nothing is logged
        """
        with pytest.raises(ValidationError):
            stocked.inventory.withdraw(2, 0.0004, REASON)
        with pytest.raises(ValidationError):
            stocked.inventory.withdraw_many([(1, 1, REASON), (2, 0.0004, REASON)])
        assert stocked.products.get(1).quantity == 10
        assert stocked.movements.all() == []

    def test_unknown_product(self, stocked):
        with pytest.raises(NotFoundError):
            stocked.inventory.withdraw(99, 1, REASON)
        assert stocked.movements.all() == []


class TestWithdrawMany:

    def test_all_applied(self, stocked):
        entries = stocked.inventory.withdraw_many([
            (1, 2, WITHDRAWAL_REASONS[0]),
            (3, 1.5, WITHDRAWAL_REASONS[3]),
        ])
        assert [e.product_code for e in entries] == [1, 3]
        assert stocked.products.get(1).quantity == 8
        assert stocked.products.get(3).quantity == 3.5

    def test_none_applied_when_one_fails(self, stocked):
        """
        SCENARIO: second of three withdrawals exceeds stock
        EXPECTED: InsufficientStockError; first withdrawal rolled back too
        """
        with pytest.raises(InsufficientStockError):
            stocked.inventory.withdraw_many([
                (1, 2, REASON),
                (3, 6, REASON),
                (1, 1, REASON),
            ])
        assert stocked.products.get(1).quantity == 10
        assert stocked.products.get(3).quantity == 5
        assert stocked.movements.all() == []

    def test_same_product_cumulative(self, stocked):
        with pytest.raises(InsufficientStockError):
            stocked.inventory.withdraw_many([(3, 3, REASON), (3, 3, REASON)])
        assert stocked.products.get(3).quantity == 5


class TestMovementHistory:

    def test_history_newest_first(self, stocked):
        order_id = stocked.orders.add(make_order([(1, 5, 80.0)], date=datetime(2024, 1, 2)))
        stocked.orders.set_status(order_id, STATUS_FULFILLED)
        stocked.inventory.withdraw(1, 2, REASON)
        stocked.inventory.withdraw(1, 1, WITHDRAWAL_REASONS[1])

        history = stocked.movements.get_history(1)
        assert [(e.type, e.quantity) for e in history] == [
            (MOVEMENT_OUTBOUND, 1),
            (MOVEMENT_OUTBOUND, 2),
            (MOVEMENT_INBOUND, 5),
        ]
        assert history[0].id > history[1].id > history[2].id
        assert all(a.date >= b.date for a, b in zip(history, history[1:]))

    def test_history_only_for_requested_product(self, stocked):
        stocked.inventory.withdraw(1, 1, REASON)
        stocked.inventory.withdraw(3, 1, REASON)
        assert [e.product_code for e in stocked.movements.get_history(3)] == [3]
        assert stocked.movements.get_history(2) == []

    def test_history_survives_product_deletion(self, stocked):
        stocked.inventory.withdraw(3, 1, REASON)
        stocked.products.delete(3)
        assert len(stocked.movements.get_history(3)) == 1
