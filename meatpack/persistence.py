# Overview: Facade bundling the repositories and the inventory engine for one backend.

from __future__ import annotations

from flask import current_app

from .services.client_service import ClientRepository
from .services.inventory_service import InventoryEngine
from .services.movement_service import MovementRepository
from .services.order_service import OrderRepository
from .services.product_service import ProductRepository
from .storage.base import StorageBackend

EXTENSION_KEY = "meatpack"


class Persistence:
    """Everything callers use. Built once by create_app and stored on the app."""

    def __init__(self, backend: StorageBackend, *, bcrypt_rounds: int = 12):
        self.backend = backend
        self.inventory = InventoryEngine(backend)
        self.clients = ClientRepository(backend, bcrypt_rounds=bcrypt_rounds)
        self.products = ProductRepository(backend)
        self.orders = OrderRepository(backend, self.inventory)
        self.movements = MovementRepository(backend)

    @property
    def backend_name(self) -> str:
        return self.backend.name

    def ensure_schema(self) -> None:
        self.backend.ensure_schema()


def get_persistence(app=None) -> Persistence:
    app = app or current_app
    return app.extensions[EXTENSION_KEY]
