# Overview: Inventory consistency engine; order fulfillment and manual withdrawals.

from __future__ import annotations

import logging

from ..errors import InsufficientStockError, InvalidTransitionError, NotFoundError
from ..records import (
    MOVEMENT_INBOUND,
    MOVEMENT_OUTBOUND,
    STATUS_FULFILLED,
    StockMovement,
)
from ..storage.base import MOVEMENTS, ORDERS, PRODUCTS
from ..time_utils import utcnow
from ..validation import require_quantity, require_text

"""
Meatpack Inventory Invariants (authoritative)

Inventory model:
- Quantity on hand is a stored field on the product, kept in step with an
  append-only movement ledger. Every change made here writes both.
- On-hand quantity may never go negative through a withdrawal.

Fulfillment (aguardando -> entregue, terminal), one unit of work:
1. every line item, in order: quantity += item.quantity, last_delivery = order.date
2. every line item: inbound ledger entry "Entrada via pedido #<id>" with order_id
3. order status = entregue
Any failure (missing product, storage error) rolls back all three steps.

Withdrawal, one unit of work:
1. conditional decrement; InsufficientStockError if quantity > on hand
2. outbound ledger entry without order_id

Time semantics:
- Ledger entries are dated when the engine runs (utcnow, UTC-naive).
- last_delivery carries the order's own date, not the fulfillment time.
"""

logger = logging.getLogger(__name__)

# Reasons offered by the withdrawal form; withdraw() accepts any non-blank text.
WITHDRAWAL_REASONS = (
    "Preparo para a área de vendas",
    "Troca com fornecedor por avaria",
    "Troca com fornecedor por erro na entrega",
    "Reservado para cliente",
)


def fulfillment_reason(order_id: int) -> str:
    return f"Entrada via pedido #{order_id}"


class InventoryEngine:

    def __init__(self, backend):
        self._backend = backend

    def _fulfill_order_inner(self, order_id: int):
        """Core fulfillment without the unit of work. Caller holds all three collections."""
        orders = self._backend.orders
        products = self._backend.products
        movements = self._backend.movements

        order = orders.get(order_id, for_update=True)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        if order.status == STATUS_FULFILLED:
            raise InvalidTransitionError(f"Order {order_id} was already delivered")

        for item in order.items:
            if products.get(item.product_code) is None:
                raise NotFoundError(
                    f"Product {item.product_code} on order {order_id} no longer exists"
                )
            products.adjust_quantity(
                item.product_code,
                item.quantity,
                last_delivery=order.date,
            )

        now = utcnow()
        reason = fulfillment_reason(order_id)
        for item in order.items:
            movements.append(StockMovement(
                product_code=item.product_code,
                type=MOVEMENT_INBOUND,
                quantity=item.quantity,
                reason=reason,
                date=now,
                order_id=order_id,
            ))

        orders.set_status(order_id, STATUS_FULFILLED)
        order.status = STATUS_FULFILLED
        return order

    def fulfill_order(self, order_id: int):
        """
        Move an awaiting order to entregue, receiving its items into stock.

        Raises NotFoundError (unknown order or product) and
        InvalidTransitionError (already delivered). Returns the updated order.
        """
        order = self._backend.run_in_transaction(
            lambda: self._fulfill_order_inner(order_id),
            MOVEMENTS, ORDERS, PRODUCTS,
        )
        logger.info("Order %s delivered: %d item(s) received", order_id, len(order.items))
        return order

    def _withdraw_inner(self, product_code: int, quantity: float, reason: str) -> StockMovement:
        products = self._backend.products

        product = products.get(product_code)
        if product is None:
            raise NotFoundError(f"Product {product_code} not found")

        remaining = products.adjust_quantity(product_code, -quantity)
        if remaining is None:
            raise InsufficientStockError(product_code, quantity, product.quantity)

        return self._backend.movements.append(StockMovement(
            product_code=product_code,
            type=MOVEMENT_OUTBOUND,
            quantity=quantity,
            reason=reason,
            date=utcnow(),
        ))

    def withdraw(self, product_code: int, quantity: float, reason: str) -> StockMovement:
        """
        Take stock out of a product and record why.

        Raises ValidationError (quantity <= 0, blank reason), NotFoundError and
        InsufficientStockError. Nothing is written when any is raised.
        """
        quantity = require_quantity(quantity, "quantity")
        reason = require_text(reason, "reason")

        entry = self._backend.run_in_transaction(
            lambda: self._withdraw_inner(product_code, quantity, reason),
            MOVEMENTS, PRODUCTS,
        )
        logger.info("Withdrew %s kg of product %s (%s)", quantity, product_code, reason)
        return entry

    def withdraw_many(self, items) -> list[StockMovement]:
        """
        Several withdrawals as one unit: all are applied or none is.

        items: iterable of (product_code, quantity, reason).
        """
        cleaned = [
            (code, require_quantity(quantity, "quantity"), require_text(reason, "reason"))
            for code, quantity, reason in items
        ]

        def _op():
            return [self._withdraw_inner(code, quantity, reason) for code, quantity, reason in cleaned]

        entries = self._backend.run_in_transaction(_op, MOVEMENTS, PRODUCTS)
        logger.info("Registered %d withdrawal(s)", len(entries))
        return entries
