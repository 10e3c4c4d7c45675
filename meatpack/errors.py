# Overview: Error taxonomy shared by repositories, the inventory engine and both backends.

"""
Every failure a caller can see is a MeatpackError subclass.

- ValidationError / DuplicateError are raised before any write happens.
- InsufficientStockError and InvalidTransitionError leave stored state untouched.
- StorageFault wraps backend I/O failures; the original exception is chained.
"""


class MeatpackError(Exception):
    """Base class for persistence-layer failures."""


class ValidationError(MeatpackError, ValueError):
    """Input failed a validation rule (password strength, CPF checksum, ...)."""


class DuplicateError(MeatpackError):
    """Uniqueness violation (email, CPF, product code or description)."""


class AuthError(MeatpackError):
    """Login failed. The message never says which credential was wrong."""


class NotFoundError(MeatpackError, LookupError):
    """An operation referenced an order or product that does not exist."""


class InsufficientStockError(MeatpackError):
    """A withdrawal asked for more than the quantity on hand."""

    def __init__(self, product_code: int, requested: float, available: float):
        super().__init__(
            f"Insufficient stock for product {product_code}: "
            f"requested {requested}, available {available}"
        )
        self.product_code = product_code
        self.requested = requested
        self.available = available


class InvalidTransitionError(MeatpackError):
    """Order status change not allowed from the current status."""


class StorageFault(MeatpackError):
    """Unrecoverable backend failure (disk, permissions, corrupt data)."""
