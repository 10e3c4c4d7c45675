# Overview: Purchase orders; creation, listing and the status/invoice toggles.

from __future__ import annotations

import logging

from ..errors import InvalidTransitionError, NotFoundError, ValidationError
from ..records import ORDER_STATUSES, STATUS_AWAITING, STATUS_FULFILLED, Order, OrderItem
from ..storage.base import ORDERS
from ..time_utils import normalize_datetime, utcnow
from ..validation import require_non_negative, require_quantity, require_text

logger = logging.getLogger(__name__)


class OrderRepository:
    """
    Orders are immutable after creation except for status and invoice flag.

    The status change to entregue is delegated to the inventory engine so the
    stock increment, ledger entries and status flip commit together.
    """

    def __init__(self, backend, inventory):
        self._backend = backend
        self._inventory = inventory

    def _clean(self, order: Order) -> Order:
        supplier = require_text(order.supplier, "supplier")
        if order.status != STATUS_AWAITING:
            raise ValidationError("New orders must start as aguardando")
        if not order.items:
            raise ValidationError("An order needs at least one item")
        try:
            date = normalize_datetime(order.date) or utcnow()
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        items = [
            OrderItem(
                product_code=item.product_code,
                quantity=require_quantity(item.quantity, "item quantity"),
                unit_price=require_non_negative(item.unit_price, "item unit_price"),
            )
            for item in order.items
        ]
        return Order(
            supplier=supplier,
            items=items,
            date=date,
            delivery_time=order.delivery_time or None,
            status=STATUS_AWAITING,
            invoice_received=bool(order.invoice_received),
        )

    def add(self, order: Order) -> int:
        """
        Persist header and items together and return the new id (max+1).

        Raises ValidationError for a bad order and NotFoundError when an item
        names a product that does not exist.
        """
        clean = self._clean(order)

        def _op():
            for item in clean.items:
                if self._backend.products.get(item.product_code) is None:
                    raise NotFoundError(f"Product {item.product_code} not found")
            return self._backend.orders.insert(clean)

        order_id = self._backend.run_in_transaction(_op, ORDERS)
        logger.info("Order %s placed with %s (%d item(s))", order_id, clean.supplier, len(clean.items))
        return order_id

    def list(self) -> list[Order]:
        return self._backend.orders.all()

    def list_by_status(self, status: str) -> list[Order]:
        if status not in ORDER_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(ORDER_STATUSES)}")
        return [order for order in self.list() if order.status == status]

    def get(self, order_id: int) -> Order:
        order = self._backend.orders.get(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def set_status(self, order_id: int, status: str) -> Order:
        """
        aguardando -> entregue runs fulfillment; aguardando -> aguardando is a
        no-op; leaving entregue raises InvalidTransitionError.
        """
        if status not in ORDER_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(ORDER_STATUSES)}")

        if status == STATUS_FULFILLED:
            return self._inventory.fulfill_order(order_id)

        order = self.get(order_id)
        if order.status == STATUS_FULFILLED:
            raise InvalidTransitionError(f"Order {order_id} was already delivered")
        return order

    def set_invoice_received(self, order_id: int, received: bool) -> None:
        def _op():
            if not self._backend.orders.set_invoice_received(order_id, received):
                raise NotFoundError(f"Order {order_id} not found")

        self._backend.run_in_transaction(_op, ORDERS)
