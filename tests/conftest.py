"""
Pytest fixtures for meatpack tests.

Every fixture built on `app` runs twice: once against the relational backend
(an SQLite file in tmp_path) and once against the flat backend (a JSON blob
directory in tmp_path).
"""

from datetime import datetime

import pytest

from meatpack import create_app, get_persistence
from meatpack.extensions import db
from meatpack.records import (
    CATEGORY_BEEF,
    CATEGORY_POULTRY,
    CATEGORY_PORK,
    Address,
    Client,
    Order,
    OrderItem,
    Product,
)

BACKENDS = ["relational", "flat"]

VALID_CPF = "529.982.247-25"
OTHER_VALID_CPF = "111.444.777-35"
VALID_PASSWORD = "Abc123!@"


def make_config(tmp_path, backend):
    return {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'meatpack.sqlite3'}",
        "MEATPACK_STORAGE_BACKEND": backend,
        "MEATPACK_FLAT_STORE_DIR": str(tmp_path / "flat_store"),
        "BCRYPT_ROUNDS": 4,
    }


@pytest.fixture(params=BACKENDS)
def backend_name(request):
    return request.param


@pytest.fixture(scope='function')
def app(tmp_path, backend_name):
    """Create application for testing against one backend."""
    app = create_app(make_config(tmp_path, backend_name))

    with app.app_context():
        yield app
        db.session.remove()
        if backend_name == "relational":
            db.engine.dispose()


@pytest.fixture(scope='function')
def persistence(app):
    return get_persistence(app)


def make_client(**overrides) -> Client:
    data = dict(
        nickname="joao",
        password=VALID_PASSWORD,
        full_name="João da Silva",
        address=Address(street="Rua das Flores", number="12", district="Centro", municipality="Campinas"),
        cpf=VALID_CPF,
        email="joao@example.com",
        phone="19 99999-0000",
        accepts_terms=True,
    )
    data.update(overrides)
    return Client(**data)


def make_product(**overrides) -> Product:
    data = dict(
        description="Picanha",
        quantity=10,
        category=CATEGORY_BEEF,
        unit_price=89.9,
        supplier="Frigorífico Boi Bom",
    )
    data.update(overrides)
    return Product(**data)


def make_order(items, **overrides) -> Order:
    data = dict(
        supplier="Frigorífico Boi Bom",
        items=[OrderItem(product_code=code, quantity=qty, unit_price=price) for code, qty, price in items],
        date=datetime(2024, 5, 10, 8, 30),
        delivery_time="08:30",
    )
    data.update(overrides)
    return Order(**data)


@pytest.fixture(scope='function')
def stocked(persistence):
    """
    Three products: 1 Picanha (10 kg, Bovina), 2 Frango (0 kg, Aves),
    3 Costela (5 kg, Suína).
    """
    products = persistence.products
    products.add(make_product(code=1, description="Picanha", quantity=10))
    products.add(make_product(
        code=2, description="Peito de frango", quantity=0,
        category=CATEGORY_POULTRY, unit_price=18.75, supplier="Avícola Campo Verde",
    ))
    products.add(make_product(
        code=3, description="Costela suína", quantity=5,
        category=CATEGORY_PORK, unit_price=32.0, supplier="Granja São José",
    ))
    return persistence
