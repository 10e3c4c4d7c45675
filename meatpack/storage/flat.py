# Overview: Flat backend storing each collection as one JSON blob under a fixed key.

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from ..errors import StorageFault
from ..records import Client, Order, Product, StockMovement
from ..time_utils import to_iso
from ..validation import description_key
from .base import (
    CLIENTS,
    MOVEMENTS,
    ORDERS,
    PRODUCTS,
    SUPPLIERS,
    ClientStore,
    MovementStore,
    OrderStore,
    ProductStore,
    StorageBackend,
)

"""
Flat backend invariants

- One blob per collection; a blob is rewritten whole on every change.
- A unit of work holds the locks of the collections it names, acquired in
  sorted order so two units can never wait on each other.
- Inside a unit, loaded blobs are cached and writes stay in memory until the
  unit ends; then every dirty blob is written. If one write fails the blobs
  already written are put back to their previous contents.
- Blob files are replaced atomically (temp file + os.replace), so a reader
  never sees a half-written blob.
"""

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    CLIENTS: "MEATPACK_CLIENTS_V2",
    PRODUCTS: "MEATPACK_PRODUCTS_V2",
    ORDERS: "MEATPACK_ORDERS_V2",
    SUPPLIERS: "MEATPACK_SUPPLIERS_V2",
    MOVEMENTS: "MEATPACK_MOVEMENTS_V2",
}


class KeyValueStore:
    """Directory of `<key>.json` files; values are UTF-8 JSON text."""

    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def ensure(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageFault(f"Cannot create flat store at {self.directory}: {exc}") from exc

    def get_raw(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.error("Could not read %s: %s", path, exc)
            raise StorageFault(f"Cannot read {key}: {exc}") from exc

    def set_raw(self, key: str, text: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            logger.error("Could not write %s: %s", path, exc)
            raise StorageFault(f"Cannot write {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StorageFault(f"Cannot delete {key}: {exc}") from exc

    def get(self, key: str):
        raw = self.get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.error("Blob %s is not valid JSON: %s", key, exc)
            raise StorageFault(f"Corrupt blob {key}: {exc}") from exc

    def set(self, key: str, value) -> None:
        self.set_raw(key, json.dumps(value, ensure_ascii=False))


class _Unit:
    def __init__(self, held):
        self.held = frozenset(held)
        self.cache: dict[str, list] = {}
        self.dirty: set[str] = set()


class FlatClientStore(ClientStore):

    def __init__(self, backend: "FlatBackend"):
        self._backend = backend

    def _rows(self) -> list[dict]:
        return self._backend.load(CLIENTS)

    def find_by_email(self, email: str) -> Client | None:
        for row in self._rows():
            if row["email"] == email:
                return Client.from_dict(row)
        return None

    def find_by_email_or_cpf(self, email: str, cpf: str) -> Client | None:
        for row in self._rows():
            if row["email"] == email or row["cpf"] == cpf:
                return Client.from_dict(row)
        return None

    def insert(self, client: Client) -> None:
        rows = self._rows()
        rows.append(client.to_dict())
        self._backend.save(CLIENTS, rows)

    def all(self) -> list[Client]:
        return [Client.from_dict(row) for row in self._rows()]


class FlatProductStore(ProductStore):

    def __init__(self, backend: "FlatBackend"):
        self._backend = backend

    def _rows(self) -> list[dict]:
        return self._backend.load(PRODUCTS)

    def _find(self, rows: list[dict], code: int) -> dict | None:
        for row in rows:
            if row["code"] == code:
                return row
        return None

    def get(self, code: int) -> Product | None:
        row = self._find(self._rows(), code)
        return Product.from_dict(row) if row else None

    def all(self) -> list[Product]:
        rows = sorted(self._rows(), key=lambda row: row["code"])
        return [Product.from_dict(row) for row in rows]

    def find_by_code_or_description(self, code: int, description: str) -> Product | None:
        found = self.get(code)
        if found is not None:
            return found
        return self.find_by_description(description)

    def find_by_description(self, description: str) -> Product | None:
        wanted = description_key(description)
        for row in self._rows():
            if description_key(row["description"]) == wanted:
                return Product.from_dict(row)
        return None

    def max_code(self) -> int:
        return max((row["code"] for row in self._rows()), default=0)

    def insert(self, product: Product) -> None:
        rows = self._rows()
        rows.append(product.to_dict())
        self._backend.save(PRODUCTS, rows)

    def replace(self, product: Product) -> bool:
        rows = self._rows()
        for index, row in enumerate(rows):
            if row["code"] == product.code:
                rows[index] = product.to_dict()
                self._backend.save(PRODUCTS, rows)
                return True
        return False

    def set_last_delivery(self, code, date) -> bool:
        rows = self._rows()
        row = self._find(rows, code)
        if row is None:
            return False
        row["last_delivery"] = to_iso(date)
        self._backend.save(PRODUCTS, rows)
        return True

    def delete(self, code: int) -> bool:
        rows = self._rows()
        kept = [row for row in rows if row["code"] != code]
        if len(kept) == len(rows):
            return False
        self._backend.save(PRODUCTS, kept)
        return True

    def adjust_quantity(self, code, delta, *, last_delivery=None):
        rows = self._rows()
        row = self._find(rows, code)
        if row is None:
            return None
        current = float(row["quantity"])
        if delta < 0 and current < -delta:
            return None
        row["quantity"] = round(current + delta, 3)
        if last_delivery is not None:
            row["last_delivery"] = to_iso(last_delivery)
        self._backend.save(PRODUCTS, rows)
        return row["quantity"]

    def suppliers(self) -> list[str]:
        return sorted(set(self._backend.load(SUPPLIERS)), key=str.casefold)

    def register_supplier(self, name: str) -> None:
        names = self._backend.load(SUPPLIERS)
        if name not in names:
            names.append(name)
            self._backend.save(SUPPLIERS, names)


class FlatOrderStore(OrderStore):

    def __init__(self, backend: "FlatBackend"):
        self._backend = backend

    def _rows(self) -> list[dict]:
        return self._backend.load(ORDERS)

    def insert(self, order: Order) -> int:
        rows = self._rows()
        order_id = max((row["id"] for row in rows), default=0) + 1
        data = order.to_dict()
        data["id"] = order_id
        rows.append(data)
        self._backend.save(ORDERS, rows)
        return order_id

    def all(self) -> list[Order]:
        rows = sorted(self._rows(), key=lambda row: row["id"])
        return [Order.from_dict(row) for row in rows]

    def get(self, order_id: int, *, for_update: bool = False) -> Order | None:
        # for_update is implied: writers already hold the orders lock
        for row in self._rows():
            if row["id"] == order_id:
                return Order.from_dict(row)
        return None

    def _set(self, order_id: int, field: str, value) -> bool:
        rows = self._rows()
        for row in rows:
            if row["id"] == order_id:
                row[field] = value
                self._backend.save(ORDERS, rows)
                return True
        return False

    def set_status(self, order_id: int, status: str) -> bool:
        return self._set(order_id, "status", status)

    def set_invoice_received(self, order_id: int, received: bool) -> bool:
        return self._set(order_id, "invoice_received", bool(received))


class FlatMovementStore(MovementStore):

    def __init__(self, backend: "FlatBackend"):
        self._backend = backend

    def _rows(self) -> list[dict]:
        return self._backend.load(MOVEMENTS)

    def append(self, movement: StockMovement) -> StockMovement:
        rows = self._rows()
        data = movement.to_dict()
        data["id"] = max((row["id"] for row in rows), default=0) + 1
        rows.append(data)
        self._backend.save(MOVEMENTS, rows)
        return StockMovement.from_dict(data)

    def history(self, product_code: int) -> list[StockMovement]:
        entries = [
            StockMovement.from_dict(row)
            for row in self._rows()
            if row["product_code"] == product_code
        ]
        entries.sort(key=lambda entry: (entry.date, entry.id), reverse=True)
        return entries

    def all(self) -> list[StockMovement]:
        rows = sorted(self._rows(), key=lambda row: row["id"])
        return [StockMovement.from_dict(row) for row in rows]


class FlatBackend(StorageBackend):
    name = "flat"

    def __init__(self, kv: KeyValueStore):
        self.kv = kv
        self._locks = {collection: threading.RLock() for collection in STORAGE_KEYS}
        self._local = threading.local()

        self.clients = FlatClientStore(self)
        self.products = FlatProductStore(self)
        self.orders = FlatOrderStore(self)
        self.movements = FlatMovementStore(self)

    def ensure_schema(self) -> None:
        self.kv.ensure()
        logger.info("Flat store ready (%s)", self.kv.directory)

    # -- blob access ---------------------------------------------------

    def _unit(self) -> _Unit | None:
        return getattr(self._local, "unit", None)

    def load(self, collection: str) -> list:
        """
        Current contents of one collection.

        Inside a unit holding the collection the same list object is returned
        on every call, so callers mutate it and hand it back to save().
        """
        unit = self._unit()
        if unit is not None and collection in unit.held:
            if collection not in unit.cache:
                unit.cache[collection] = self.kv.get(STORAGE_KEYS[collection]) or []
            return unit.cache[collection]
        return self.kv.get(STORAGE_KEYS[collection]) or []

    def save(self, collection: str, rows: list) -> None:
        unit = self._unit()
        if unit is None:
            raise RuntimeError(f"write to {collection!r} outside run_in_transaction")
        if collection not in unit.held:
            raise RuntimeError(f"write to {collection!r} without holding its lock")
        unit.cache[collection] = rows
        unit.dirty.add(collection)

    # -- units of work -------------------------------------------------

    def run_in_transaction(self, fn, *collections):
        unit = self._unit()
        if unit is not None:
            missing = set(collections) - unit.held
            if missing:
                raise RuntimeError(f"nested unit asks for collections not held: {sorted(missing)}")
            return fn()

        unknown = set(collections) - set(self._locks)
        if unknown:
            raise ValueError(f"unknown collections: {sorted(unknown)}")

        ordered = sorted(set(collections))
        for collection in ordered:
            self._locks[collection].acquire()
        try:
            unit = _Unit(ordered)
            self._local.unit = unit
            try:
                result = fn()
                self._flush(unit)
                return result
            finally:
                self._local.unit = None
        finally:
            for collection in reversed(ordered):
                self._locks[collection].release()

    def _flush(self, unit: _Unit) -> None:
        written: list[tuple[str, str | None]] = []
        try:
            for collection in sorted(unit.dirty):
                key = STORAGE_KEYS[collection]
                previous = self.kv.get_raw(key)
                self.kv.set(key, unit.cache[collection])
                written.append((key, previous))
        except StorageFault:
            logger.error("Flat unit of work failed; restoring %d blob(s)", len(written))
            for key, previous in reversed(written):
                if previous is None:
                    self.kv.delete(key)
                else:
                    self.kv.set_raw(key, previous)
            raise
