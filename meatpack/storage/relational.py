# Overview: Relational backend (SQLite or any SQLAlchemy engine via Flask-SQLAlchemy).

from __future__ import annotations

import functools
import logging
import threading
from datetime import datetime

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import StorageFault
from ..extensions import db
from ..models import ClientModel, OrderItemModel, OrderModel, ProductModel, StockMovementModel
from ..records import Client, Order, OrderItem, Product, StockMovement
from ..validation import description_key
from .base import ClientStore, MovementStore, OrderStore, ProductStore, StorageBackend
from .concurrency import DEFAULT_RETRY_ON, lock_for_update, run_with_retry

"""
Relational backend invariants

- Requires an active Flask app context (db.session is app-context scoped).
- One commit per top-level run_in_transaction; nested calls join it.
- Quantity changes are single conditional UPDATE statements; the WHERE
  clause rejects a withdrawal the row cannot cover, so two concurrent
  withdrawals never overdraw even though SQLite ignores FOR UPDATE.
- Write methods raise raw SQLAlchemy errors so run_with_retry can see lock
  failures; read methods translate them into StorageFault.
"""

logger = logging.getLogger(__name__)

# Gram precision; keeps 0.1 + 0.2 from surfacing as 0.30000000000000004
QUANTITY_DECIMALS = 3

# Several writers racing for the same max+1 code can each lose more than once
RETRY_ATTEMPTS = 5


def _query(*entities):
    # Other sessions may have committed since these rows were loaded
    return db.session.query(*entities).populate_existing()


def _read_errors(method):
    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise StorageFault(f"Relational read failed: {exc}") from exc
    return wrapper


class RelationalClientStore(ClientStore):

    @_read_errors
    def find_by_email(self, email: str) -> Client | None:
        row = _query(ClientModel).filter_by(email=email).first()
        return row.to_record() if row else None

    @_read_errors
    def find_by_email_or_cpf(self, email: str, cpf: str) -> Client | None:
        row = (
            _query(ClientModel)
            .filter((ClientModel.email == email) | (ClientModel.cpf == cpf))
            .first()
        )
        return row.to_record() if row else None

    def insert(self, client: Client) -> None:
        db.session.add(ClientModel.from_record(client))
        db.session.flush()

    @_read_errors
    def all(self) -> list[Client]:
        rows = _query(ClientModel).order_by(ClientModel.id.asc()).all()
        return [row.to_record() for row in rows]


class RelationalProductStore(ProductStore):

    @_read_errors
    def get(self, code: int) -> Product | None:
        row = db.session.get(ProductModel, code, populate_existing=True)
        return row.to_record() if row else None

    @_read_errors
    def all(self) -> list[Product]:
        rows = _query(ProductModel).order_by(ProductModel.code.asc()).all()
        return [row.to_record() for row in rows]

    @_read_errors
    def find_by_code_or_description(self, code: int, description: str) -> Product | None:
        by_code = db.session.get(ProductModel, code, populate_existing=True)
        if by_code is not None:
            return by_code.to_record()
        return self.find_by_description(description)

    @_read_errors
    def find_by_description(self, description: str) -> Product | None:
        row = (
            _query(ProductModel)
            .filter_by(description_key=description_key(description))
            .first()
        )
        return row.to_record() if row else None

    @_read_errors
    def max_code(self) -> int:
        return int(db.session.query(func.coalesce(func.max(ProductModel.code), 0)).scalar() or 0)

    def insert(self, product: Product) -> None:
        db.session.add(ProductModel(
            code=product.code,
            description=product.description,
            description_key=description_key(product.description),
            quantity=product.quantity,
            category=product.category,
            unit_price=product.unit_price,
            supplier=product.supplier,
            last_delivery=product.last_delivery,
        ))
        db.session.flush()

    def replace(self, product: Product) -> bool:
        row = db.session.get(ProductModel, product.code, populate_existing=True)
        if row is None:
            return False
        row.description = product.description
        row.description_key = description_key(product.description)
        row.quantity = product.quantity
        row.category = product.category
        row.unit_price = product.unit_price
        row.supplier = product.supplier
        row.last_delivery = product.last_delivery
        db.session.flush()
        return True

    def set_last_delivery(self, code: int, date: datetime | None) -> bool:
        result = db.session.execute(
            update(ProductModel)
            .where(ProductModel.code == code)
            .values(last_delivery=date)
        )
        return result.rowcount > 0

    def delete(self, code: int) -> bool:
        row = db.session.get(ProductModel, code, populate_existing=True)
        if row is None:
            return False
        db.session.delete(row)
        db.session.flush()
        return True

    def adjust_quantity(
        self,
        code: int,
        delta: float,
        *,
        last_delivery: datetime | None = None,
    ) -> float | None:
        values = {"quantity": func.round(ProductModel.quantity + delta, QUANTITY_DECIMALS)}
        if last_delivery is not None:
            values["last_delivery"] = last_delivery

        stmt = update(ProductModel).where(ProductModel.code == code)
        if delta < 0:
            stmt = stmt.where(ProductModel.quantity >= -delta)
        result = db.session.execute(stmt.values(**values).execution_options(synchronize_session=False))
        if result.rowcount == 0:
            return None

        # Bulk UPDATE bypasses the identity map; reload the row we just changed
        row = db.session.get(ProductModel, code, populate_existing=True)
        return row.quantity

    @_read_errors
    def suppliers(self) -> list[str]:
        rows = (
            db.session.query(ProductModel.supplier)
            .filter(ProductModel.supplier != "")
            .distinct()
            .all()
        )
        return sorted({supplier for (supplier,) in rows}, key=str.casefold)

    def register_supplier(self, name: str) -> None:
        # Derived from products.supplier; nothing to store separately
        return None


class RelationalOrderStore(OrderStore):

    def insert(self, order: Order) -> int:
        header = OrderModel(
            date=order.date,
            delivery_time=order.delivery_time,
            status=order.status,
            supplier=order.supplier,
            invoice_received=order.invoice_received,
        )
        db.session.add(header)
        db.session.flush()  # assigns header.id

        for item in order.items:
            db.session.add(OrderItemModel(
                order_id=header.id,
                product_code=item.product_code,
                quantity=item.quantity,
                unit_price=item.unit_price,
            ))
        db.session.flush()
        return header.id

    @staticmethod
    def _group(rows) -> list[Order]:
        # Rows arrive sorted by order id then item id; one pass rebuilds orders
        orders: dict[int, Order] = {}
        for header, item in rows:
            order = orders.get(header.id)
            if order is None:
                order = Order(
                    id=header.id,
                    date=header.date,
                    delivery_time=header.delivery_time,
                    status=header.status,
                    supplier=header.supplier,
                    invoice_received=bool(header.invoice_received),
                    items=[],
                )
                orders[header.id] = order
            if item is not None:
                order.items.append(OrderItem(
                    product_code=item.product_code,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                ))
        return list(orders.values())

    def _joined(self):
        return (
            _query(OrderModel, OrderItemModel)
            .outerjoin(OrderItemModel, OrderItemModel.order_id == OrderModel.id)
            .order_by(OrderModel.id.asc(), OrderItemModel.id.asc())
        )

    @_read_errors
    def all(self) -> list[Order]:
        return self._group(self._joined().all())

    @_read_errors
    def get(self, order_id: int, *, for_update: bool = False) -> Order | None:
        if for_update:
            lock_for_update(_query(OrderModel).filter_by(id=order_id)).first()
        orders = self._group(self._joined().filter(OrderModel.id == order_id).all())
        return orders[0] if orders else None

    def set_status(self, order_id: int, status: str) -> bool:
        result = db.session.execute(
            update(OrderModel).where(OrderModel.id == order_id).values(status=status)
        )
        return result.rowcount > 0

    def set_invoice_received(self, order_id: int, received: bool) -> bool:
        result = db.session.execute(
            update(OrderModel).where(OrderModel.id == order_id).values(invoice_received=bool(received))
        )
        return result.rowcount > 0


class RelationalMovementStore(MovementStore):

    def append(self, movement: StockMovement) -> StockMovement:
        row = StockMovementModel(
            product_code=movement.product_code,
            date=movement.date,
            type=movement.type,
            quantity=movement.quantity,
            reason=movement.reason,
            order_id=movement.order_id,
        )
        db.session.add(row)
        db.session.flush()
        return row.to_record()

    @_read_errors
    def history(self, product_code: int) -> list[StockMovement]:
        rows = (
            _query(StockMovementModel)
            .filter_by(product_code=product_code)
            .order_by(StockMovementModel.date.desc(), StockMovementModel.id.desc())
            .all()
        )
        return [row.to_record() for row in rows]

    @_read_errors
    def all(self) -> list[StockMovement]:
        rows = _query(StockMovementModel).order_by(StockMovementModel.id.asc()).all()
        return [row.to_record() for row in rows]


class RelationalBackend(StorageBackend):
    name = "relational"

    def __init__(self):
        self.clients = RelationalClientStore()
        self.products = RelationalProductStore()
        self.orders = RelationalOrderStore()
        self.movements = RelationalMovementStore()
        self._state = threading.local()

    def ensure_schema(self) -> None:
        # Import models so create_all sees every table
        from .. import models  # noqa: F401

        try:
            db.create_all()
        except SQLAlchemyError as exc:
            raise StorageFault(f"Could not create relational schema: {exc}") from exc
        logger.info("Relational schema ready (%s)", db.engine.url.render_as_string(hide_password=True))

    def run_in_transaction(self, fn, *collections):
        if getattr(self._state, "depth", 0):
            return fn()

        def _op():
            self._state.depth = 1
            try:
                result = fn()
                db.session.commit()
                return result
            except BaseException:
                db.session.rollback()
                raise
            finally:
                self._state.depth = 0

        try:
            # A unique-key clash usually means a concurrent writer took the same
            # max+1 code; re-running re-reads and resolves it or raises DuplicateError
            return run_with_retry(
                _op,
                attempts=RETRY_ATTEMPTS,
                retry_on=DEFAULT_RETRY_ON + (IntegrityError,),
            )
        except SQLAlchemyError as exc:
            logger.exception("Relational unit of work failed")
            raise StorageFault(f"Relational write failed: {exc}") from exc
