# Overview: Flask CLI commands for bootstrap, inspection and stock maintenance.

# meatpack/cli.py
# Commands Legend:
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "meatpack:create_app()".
# - Use: python -m flask meatpack <command> [options]
#
# Bootstrap:
# - python -m flask meatpack init
#   Ensure the schema (or flat store directory) and print the active backend.
# - python -m flask meatpack seed
#   Register a few sample products; existing ones are skipped.
#
# Inspection:
# - python -m flask meatpack dump-clients
# - python -m flask meatpack dump-products
# - python -m flask meatpack dump-orders [--status aguardando]
# - python -m flask meatpack history 3
#   Stock movements of product 3, newest first.
#
# Stock:
# - python -m flask meatpack withdraw 3 2.5 "Reservado para cliente"
# - python -m flask meatpack fulfill 12
#   Mark order 12 delivered and receive its items into stock.
#
# Relational schema migrations stay under: python -m flask db <command>

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import DuplicateError, MeatpackError
from .formatting import format_currency, format_quantity
from .persistence import get_persistence
from .records import (
    CATEGORY_BEEF,
    CATEGORY_OTHER,
    CATEGORY_POULTRY,
    CATEGORY_PORK,
    MOVEMENT_INBOUND,
    ORDER_STATUSES,
    Product,
)
from .services.inventory_service import WITHDRAWAL_REASONS

SAMPLE_PRODUCTS = [
    ("Picanha", CATEGORY_BEEF, 89.90, "Frigorífico Boi Bom"),
    ("Alcatra", CATEGORY_BEEF, 54.50, "Frigorífico Boi Bom"),
    ("Costela suína", CATEGORY_PORK, 32.00, "Granja São José"),
    ("Peito de frango", CATEGORY_POULTRY, 18.75, "Avícola Campo Verde"),
    ("Linguiça toscana", CATEGORY_OTHER, 24.90, "Granja São José"),
]


def _fail(exc: MeatpackError):
    raise click.ClickException(str(exc)) from exc


@click.group('meatpack')
def meatpack_group():
    """Inventory bootstrap and inspection commands."""


@meatpack_group.command('init')
@with_appcontext
def init_store():
    """Ensure the storage schema and report which backend is active."""
    persistence = get_persistence()
    try:
        persistence.ensure_schema()
    except MeatpackError as exc:
        _fail(exc)
    click.echo(f"PASS Storage ready (backend: {persistence.backend_name})")


@meatpack_group.command('seed')
@with_appcontext
def seed():
    """Register sample products with zero stock."""
    products = get_persistence().products
    for description, category, price, supplier in SAMPLE_PRODUCTS:
        try:
            code = products.add(Product(
                description=description,
                quantity=0,
                category=category,
                unit_price=price,
                supplier=supplier,
            ))
        except DuplicateError:
            click.echo(f"WARN  Product '{description}' already exists, skipping...")
            continue
        except MeatpackError as exc:
            _fail(exc)
        click.echo(f"PASS Created product {code}: {description}")


@meatpack_group.command('dump-clients')
@with_appcontext
def dump_clients():
    """List registered clients (passwords are never printed)."""
    try:
        clients = get_persistence().clients.all()
    except MeatpackError as exc:
        _fail(exc)

    if not clients:
        click.echo("No clients registered.")
        return
    for client in clients:
        verified = "verified" if client.verified else "unverified"
        click.echo(f"{client.email}  {client.nickname}  {client.full_name}  cpf={client.cpf}  {verified}")


@meatpack_group.command('dump-products')
@with_appcontext
def dump_products():
    """List products with stock on hand and stock value."""
    try:
        products = get_persistence().products.get_all()
    except MeatpackError as exc:
        _fail(exc)

    if not products:
        click.echo("No products registered.")
        return
    for p in products:
        value = format_currency(p.quantity * p.unit_price)
        last = p.last_delivery.date().isoformat() if p.last_delivery else "-"
        click.echo(
            f"{p.code:>5}  {p.description:<30} {p.category:<8} "
            f"{format_quantity(p.quantity):>10} kg  R$ {format_currency(p.unit_price):>9}  "
            f"R$ {value:>10}  {p.supplier}  last={last}"
        )


@meatpack_group.command('dump-orders')
@click.option('--status', type=click.Choice(ORDER_STATUSES), default=None, help='Filter by status')
@with_appcontext
def dump_orders(status):
    """List orders with their items."""
    orders_repo = get_persistence().orders
    try:
        orders = orders_repo.list_by_status(status) if status else orders_repo.list()
    except MeatpackError as exc:
        _fail(exc)

    if not orders:
        click.echo("No orders found.")
        return
    for order in orders:
        invoice = "invoice received" if order.invoice_received else "no invoice"
        click.echo(
            f"#{order.id}  {order.date:%Y-%m-%d}  {order.supplier}  {order.status}  "
            f"{invoice}  total R$ {format_currency(order.total)}"
        )
        for item in order.items:
            click.echo(
                f"    product {item.product_code}: {format_quantity(item.quantity)} kg "
                f"x R$ {format_currency(item.unit_price)}"
            )


@meatpack_group.command('history')
@click.argument('code', type=int)
@with_appcontext
def history(code):
    """Stock movements of one product, newest first."""
    try:
        entries = get_persistence().movements.get_history(code)
    except MeatpackError as exc:
        _fail(exc)

    if not entries:
        click.echo(f"No movements for product {code}.")
        return
    for entry in entries:
        sign = "+" if entry.type == MOVEMENT_INBOUND else "-"
        click.echo(
            f"{entry.date:%Y-%m-%d %H:%M}  {entry.type:<7} {sign}{format_quantity(entry.quantity)} kg  "
            f"{entry.reason}"
        )


@meatpack_group.command('withdraw')
@click.argument('code', type=int)
@click.argument('quantity', type=float)
@click.argument('reason')
@with_appcontext
def withdraw(code, quantity, reason):
    """Take QUANTITY kg of product CODE out of stock."""
    if reason not in WITHDRAWAL_REASONS:
        current_app.logger.info("Withdrawal with a custom reason: %s", reason)
    try:
        entry = get_persistence().inventory.withdraw(code, quantity, reason)
    except MeatpackError as exc:
        _fail(exc)
    click.echo(f"PASS Withdrew {format_quantity(entry.quantity)} kg of product {code} (movement {entry.id})")


@meatpack_group.command('fulfill')
@click.argument('order_id', type=int)
@with_appcontext
def fulfill(order_id):
    """Mark ORDER_ID delivered and receive its items into stock."""
    try:
        order = get_persistence().inventory.fulfill_order(order_id)
    except MeatpackError as exc:
        _fail(exc)
    click.echo(f"PASS Order #{order.id} delivered ({len(order.items)} item(s) received)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(meatpack_group)
