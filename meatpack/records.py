from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .time_utils import parse_iso_datetime, to_iso

"""
Backend-independent records returned by every repository.

Both storage backends read and write these; the relational backend maps them
to SQLAlchemy models, the flat backend to the dicts produced by to_dict().
Stored string values (categories, statuses, movement types) are kept as the
mobile app wrote them so existing data stays readable.
"""

# Product categories
CATEGORY_BEEF = "Bovina"
CATEGORY_PORK = "Suína"
CATEGORY_POULTRY = "Aves"
CATEGORY_OTHER = "Outros"
CATEGORIES = (CATEGORY_BEEF, CATEGORY_PORK, CATEGORY_POULTRY, CATEGORY_OTHER)

# Order statuses
STATUS_AWAITING = "aguardando"
STATUS_FULFILLED = "entregue"
ORDER_STATUSES = (STATUS_AWAITING, STATUS_FULFILLED)

# Stock movement types
MOVEMENT_INBOUND = "entrada"
MOVEMENT_OUTBOUND = "saida"
MOVEMENT_TYPES = (MOVEMENT_INBOUND, MOVEMENT_OUTBOUND)


@dataclass
class Address:
    street: str = ""
    number: str = ""
    district: str = ""
    municipality: str = ""

    def to_dict(self) -> dict:
        return {
            "street": self.street,
            "number": self.number,
            "district": self.district,
            "municipality": self.municipality,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "Address":
        data = data or {}
        return cls(
            street=data.get("street", ""),
            number=data.get("number", ""),
            district=data.get("district", ""),
            municipality=data.get("municipality", ""),
        )


@dataclass
class Client:
    nickname: str
    password: str
    full_name: str
    cpf: str
    email: str
    phone: str = ""
    address: Address = field(default_factory=Address)
    accepts_terms: bool = False
    verified: bool = False

    def to_dict(self) -> dict:
        return {
            "nickname": self.nickname,
            "password": self.password,
            "full_name": self.full_name,
            "address": self.address.to_dict(),
            "cpf": self.cpf,
            "email": self.email,
            "phone": self.phone,
            "accepts_terms": self.accepts_terms,
            "verified": self.verified,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Client":
        return cls(
            nickname=data["nickname"],
            password=data["password"],
            full_name=data["full_name"],
            address=Address.from_dict(data.get("address")),
            cpf=data["cpf"],
            email=data["email"],
            phone=data.get("phone", ""),
            accepts_terms=bool(data.get("accepts_terms", False)),
            verified=bool(data.get("verified", False)),
        )


@dataclass
class Product:
    """
    A stocked item. Quantities are kilograms and may be fractional.

    code=None (or 0) on add asks the repository to assign max+1.
    """
    description: str
    quantity: float
    category: str
    unit_price: float
    supplier: str
    code: int | None = None
    last_delivery: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "description": self.description,
            "quantity": self.quantity,
            "category": self.category,
            "unit_price": self.unit_price,
            "supplier": self.supplier,
            "last_delivery": to_iso(self.last_delivery),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            code=data["code"],
            description=data["description"],
            quantity=data["quantity"],
            category=data["category"],
            unit_price=data["unit_price"],
            supplier=data["supplier"],
            last_delivery=parse_iso_datetime(data.get("last_delivery")),
        )


@dataclass
class OrderItem:
    """Line item; unit_price is the price agreed when the order was placed."""
    product_code: int
    quantity: float
    unit_price: float

    def to_dict(self) -> dict:
        return {
            "product_code": self.product_code,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OrderItem":
        return cls(
            product_code=data["product_code"],
            quantity=data["quantity"],
            unit_price=data["unit_price"],
        )


@dataclass
class Order:
    supplier: str
    items: list[OrderItem]
    date: datetime | None = None
    delivery_time: str | None = None
    status: str = STATUS_AWAITING
    invoice_received: bool = False
    id: int | None = None

    @property
    def total(self) -> float:
        return round(sum(item.quantity * item.unit_price for item in self.items), 2)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso(self.date),
            "delivery_time": self.delivery_time,
            "items": [item.to_dict() for item in self.items],
            "status": self.status,
            "supplier": self.supplier,
            "invoice_received": self.invoice_received,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Order":
        return cls(
            id=data["id"],
            date=parse_iso_datetime(data.get("date")),
            delivery_time=data.get("delivery_time"),
            items=[OrderItem.from_dict(item) for item in data.get("items", [])],
            status=data["status"],
            supplier=data["supplier"],
            invoice_received=bool(data.get("invoice_received", False)),
        )


@dataclass
class StockMovement:
    """Append-only ledger entry. order_id is set only for fulfillment entries."""
    product_code: int
    type: str
    quantity: float
    reason: str
    date: datetime
    order_id: int | None = None
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_code": self.product_code,
            "date": to_iso(self.date),
            "type": self.type,
            "quantity": self.quantity,
            "reason": self.reason,
            "order_id": self.order_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StockMovement":
        return cls(
            id=data["id"],
            product_code=data["product_code"],
            date=parse_iso_datetime(data["date"]),
            type=data["type"],
            quantity=data["quantity"],
            reason=data["reason"],
            order_id=data.get("order_id"),
        )
