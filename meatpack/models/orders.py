from __future__ import annotations

from ..extensions import db


class OrderModel(db.Model):
    """
    Purchase order header.

    LIFECYCLE:
    1. aguardando: created, waiting for the supplier's delivery
    2. entregue: delivered; stock was incremented and ledgered (terminal)

    IMMUTABLE: only status and invoice_received change after creation.

    The id is SQLite's rowid (no AUTOINCREMENT keyword), which is exactly
    max(id)+1, or 1 for an empty table.
    """
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, nullable=False)
    delivery_time = db.Column(db.String(16), nullable=True)
    status = db.Column(db.String(16), nullable=False, index=True)
    supplier = db.Column(db.String(255), nullable=False)
    invoice_received = db.Column(db.Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<OrderModel id={self.id} status={self.status!r} supplier={self.supplier!r}>"


class OrderItemModel(db.Model):
    """
    Order line. Created in the same transaction as its header, never mutated.

    unit_price is the price snapshot taken when the order was placed and is
    independent of the product's current price.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_code = db.Column(db.Integer, db.ForeignKey("products.code"), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
