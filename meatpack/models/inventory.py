from __future__ import annotations

from ..extensions import db
from ..records import Product, StockMovement


class ProductModel(db.Model):
    """
    Product master data, keyed by the business code.

    CODE DESIGN DECISION:
    The code is the primary key and is caller-visible (printed on labels,
    typed on the order form), so it is not an autoincrement surrogate.
    Repositories assign max+1 when the caller leaves it blank.

    DESCRIPTION UNIQUENESS:
    description_key holds the casefolded, whitespace-collapsed description
    and carries the unique constraint. SQLite's LOWER() only folds ASCII,
    which would let "SUÍNA" and "suína" coexist.

    QUANTITY:
    Kilograms on hand. Mutated only through conditional UPDATEs issued by
    the relational product store so concurrent withdrawals cannot overdraw.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("description_key", name="uq_products_description_key"),
        db.Index("ix_products_supplier", "supplier"),
    )

    code = db.Column(db.Integer, primary_key=True, autoincrement=False)
    description = db.Column(db.String(255), nullable=False)
    description_key = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=0)
    category = db.Column(db.String(16), nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    supplier = db.Column(db.String(255), nullable=False)
    last_delivery = db.Column(db.DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<ProductModel code={self.code} description={self.description!r} quantity={self.quantity}>"

    def to_record(self) -> Product:
        return Product(
            code=self.code,
            description=self.description,
            quantity=self.quantity,
            category=self.category,
            unit_price=self.unit_price,
            supplier=self.supplier,
            last_delivery=self.last_delivery,
        )


class StockMovementModel(db.Model):
    """
    Stock movement ledger.

    Append-only: rows are inserted by the inventory engine and never updated
    or deleted. product_code and order_id are plain references; deleting a
    product leaves its history in place.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_movements_product_date", "product_code", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_code = db.Column(db.Integer, db.ForeignKey("products.code"), nullable=False)
    date = db.Column(db.DateTime, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    reason = db.Column(db.String(255), nullable=False)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)

    def to_record(self) -> StockMovement:
        return StockMovement(
            id=self.id,
            product_code=self.product_code,
            date=self.date,
            type=self.type,
            quantity=self.quantity,
            reason=self.reason,
            order_id=self.order_id,
        )
