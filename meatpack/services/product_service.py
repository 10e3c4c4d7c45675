# Overview: Product registration, lookup, search and edits.

from __future__ import annotations

import dataclasses
import logging

from ..errors import DuplicateError, NotFoundError, ValidationError
from ..records import CATEGORIES, Product
from ..storage.base import PRODUCTS, SUPPLIERS
from ..time_utils import normalize_datetime
from ..validation import require_non_negative, require_text

logger = logging.getLogger(__name__)

"""
Product Repository

IDENTITY:
- code is the caller-visible key; 0 or None on add means "assign max+1".
- description is unique under description_key (casefold + collapsed spaces).

QUANTITY:
- Stored rounded to 3 decimals (grams).
- Direct edits through update() may set any non-negative quantity; changes
  that must be audited go through the inventory engine instead.

Every product write also records its supplier name in the registry used for
autocomplete.
"""


def _coerce_code(code) -> int | None:
    if code is None:
        return None
    if isinstance(code, bool) or not isinstance(code, int) or code < 0:
        raise ValidationError("code must be a positive integer")
    return code or None


def _clean(product: Product) -> Product:
    """Validated, normalized copy. Raises ValidationError."""
    description = require_text(product.description, "description")
    if product.category not in CATEGORIES:
        raise ValidationError(f"category must be one of {', '.join(CATEGORIES)}")
    quantity = round(require_non_negative(product.quantity, "quantity"), 3)
    unit_price = require_non_negative(product.unit_price, "unit_price")
    try:
        last_delivery = normalize_datetime(product.last_delivery)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    return Product(
        code=_coerce_code(product.code),
        description=description,
        quantity=quantity,
        category=product.category,
        unit_price=unit_price,
        supplier=(product.supplier or "").strip(),
        last_delivery=last_delivery,
    )


class ProductRepository:

    def __init__(self, backend):
        self._backend = backend

    @property
    def _store(self):
        return self._backend.products

    def add(self, product: Product) -> int:
        """
        Register a product and return its code.

        Raises ValidationError for bad fields and DuplicateError when the
        code or the description (any casing) is already taken.
        """
        clean = _clean(product)

        def _op():
            # Runs again on retry; the auto code must be re-read every time
            if clean.code is None:
                existing = self._store.find_by_description(clean.description)
                record = dataclasses.replace(clean, code=self._store.max_code() + 1)
            else:
                existing = self._store.find_by_code_or_description(clean.code, clean.description)
                record = clean
            if existing is not None:
                if existing.code == record.code:
                    raise DuplicateError(f"Product code {record.code} already exists")
                raise DuplicateError(f"Product '{existing.description}' already exists")

            self._store.insert(record)
            if record.supplier:
                self._store.register_supplier(record.supplier)
            return record.code

        code = self._backend.run_in_transaction(_op, PRODUCTS, SUPPLIERS)
        logger.info("Registered product %s (%s)", code, clean.description)
        return code

    def get(self, code: int) -> Product:
        product = self._store.get(code)
        if product is None:
            raise NotFoundError(f"Product {code} not found")
        return product

    def get_all(self) -> list[Product]:
        return self._store.all()

    def search(self, query: str | None) -> list[Product]:
        """Case-insensitive substring match over code, description, supplier and category."""
        needle = (query or "").strip().lower()
        if not needle:
            return self.get_all()
        return [
            product
            for product in self._store.all()
            if needle in str(product.code).lower()
            or needle in product.description.lower()
            or needle in product.supplier.lower()
            or needle in product.category.lower()
        ]

    def update(self, product: Product) -> Product:
        """Full replace by code. Raises NotFoundError, ValidationError, DuplicateError."""
        if product.code is None:
            raise ValidationError("code is required to update a product")
        clean = _clean(product)

        def _op():
            if self._store.get(clean.code) is None:
                raise NotFoundError(f"Product {clean.code} not found")
            clash = self._store.find_by_description(clean.description)
            if clash is not None and clash.code != clean.code:
                raise DuplicateError(f"Product '{clash.description}' already exists")

            self._store.replace(clean)
            if clean.supplier:
                self._store.register_supplier(clean.supplier)
            return clean

        return self._backend.run_in_transaction(_op, PRODUCTS, SUPPLIERS)

    def update_last_delivery(self, code: int, date) -> None:
        try:
            when = normalize_datetime(date)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        def _op():
            if not self._store.set_last_delivery(code, when):
                raise NotFoundError(f"Product {code} not found")

        self._backend.run_in_transaction(_op, PRODUCTS)

    def delete(self, code: int) -> None:
        """
        Delete by code.

        No reference check: order items and ledger entries keep pointing at
        the removed code. The flat backend also keeps the supplier name in its
        registry; the relational one derives suppliers from current products.
        """
        def _op():
            if not self._store.delete(code):
                raise NotFoundError(f"Product {code} not found")

        self._backend.run_in_transaction(_op, PRODUCTS)
        logger.info("Deleted product %s", code)

    def get_suppliers(self) -> list[str]:
        return self._store.suppliers()

    def next_code(self) -> int:
        return self._store.max_code() + 1

