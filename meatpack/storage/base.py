# Overview: Storage contract implemented once per backend (relational and flat).

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, TypeVar

from ..records import Client, Order, Product, StockMovement

"""
Storage Contract (authoritative)

Repositories and the inventory engine talk to storage only through a
StorageBackend and its four collection stores. Nothing above this seam knows
which backend is active.

Units of work:
- Every write runs inside backend.run_in_transaction(fn, *collections).
  The collections named are the ones fn writes; the flat backend locks them
  (in a fixed order) for the duration, the relational backend ignores them.
- fn either returns normally and all its writes become visible together, or
  raises and none of them do.
- Calling run_in_transaction from inside fn joins the running unit; the inner
  call may only name collections the outer call already holds.
- Read methods may be called anywhere. Inside a unit they see the unit's own
  pending writes.

Store methods return records from meatpack.records, never backend objects.
"""

CLIENTS = "clients"
PRODUCTS = "products"
ORDERS = "orders"
SUPPLIERS = "suppliers"
MOVEMENTS = "movements"

COLLECTIONS = (CLIENTS, PRODUCTS, ORDERS, SUPPLIERS, MOVEMENTS)

T = TypeVar("T")


class ClientStore(ABC):

    @abstractmethod
    def find_by_email(self, email: str) -> Client | None:
        """Exact match on an already-normalized email."""

    @abstractmethod
    def find_by_email_or_cpf(self, email: str, cpf: str) -> Client | None:
        ...

    @abstractmethod
    def insert(self, client: Client) -> None:
        ...

    @abstractmethod
    def all(self) -> list[Client]:
        ...


class ProductStore(ABC):

    @abstractmethod
    def get(self, code: int) -> Product | None:
        ...

    @abstractmethod
    def all(self) -> list[Product]:
        """All products ordered by code."""

    @abstractmethod
    def find_by_code_or_description(self, code: int, description: str) -> Product | None:
        """
        Conflict lookup for registration.

        A product with the same code wins over one with the same description
        (compared with validation.description_key).
        """

    @abstractmethod
    def find_by_description(self, description: str) -> Product | None:
        ...

    @abstractmethod
    def max_code(self) -> int:
        """Highest code in use, 0 when empty."""

    @abstractmethod
    def insert(self, product: Product) -> None:
        ...

    @abstractmethod
    def replace(self, product: Product) -> bool:
        """Full replace by code. False when the code does not exist."""

    @abstractmethod
    def set_last_delivery(self, code: int, date: datetime | None) -> bool:
        ...

    @abstractmethod
    def delete(self, code: int) -> bool:
        ...

    @abstractmethod
    def adjust_quantity(
        self,
        code: int,
        delta: float,
        *,
        last_delivery: datetime | None = None,
    ) -> float | None:
        """
        Add delta (may be negative) to the quantity on hand.

        Returns the new quantity, or None when the change would drive the
        quantity below zero; nothing is written in that case. The check and
        the write are one atomic step. Raises nothing for an unknown code;
        callers look the product up first.
        """

    @abstractmethod
    def suppliers(self) -> list[str]:
        """Distinct supplier names, sorted case-insensitively."""

    @abstractmethod
    def register_supplier(self, name: str) -> None:
        ...


class OrderStore(ABC):

    @abstractmethod
    def insert(self, order: Order) -> int:
        """Persist header and items as one unit; returns the assigned id (max+1)."""

    @abstractmethod
    def all(self) -> list[Order]:
        """Full orders (header + items) ordered by id."""

    @abstractmethod
    def get(self, order_id: int, *, for_update: bool = False) -> Order | None:
        ...

    @abstractmethod
    def set_status(self, order_id: int, status: str) -> bool:
        ...

    @abstractmethod
    def set_invoice_received(self, order_id: int, received: bool) -> bool:
        ...


class MovementStore(ABC):

    @abstractmethod
    def append(self, movement: StockMovement) -> StockMovement:
        """Insert and return the entry with its assigned id."""

    @abstractmethod
    def history(self, product_code: int) -> list[StockMovement]:
        """Entries for one product, newest date first, then highest id first."""

    @abstractmethod
    def all(self) -> list[StockMovement]:
        ...


class StorageBackend(ABC):
    """One storage engine behind the repositories (strategy)."""

    name: str = ""

    clients: ClientStore
    products: ProductStore
    orders: OrderStore
    movements: MovementStore

    @abstractmethod
    def ensure_schema(self) -> None:
        """Idempotent. Raises StorageFault when the engine cannot be prepared."""

    @abstractmethod
    def run_in_transaction(self, fn: Callable[[], T], *collections: str) -> T:
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
