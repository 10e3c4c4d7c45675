# meatpack/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate
from .persistence import get_persistence


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .persistence import EXTENSION_KEY, Persistence
    from .storage import build_backend, ensure_schema, select_backend

    kind = select_backend(app.config)
    backend = build_backend(kind, app)
    app.logger.info("Storage backend: %s", kind)

    # Schema failures are fatal; StorageFault propagates to the caller
    with app.app_context():
        ensure_schema(backend)

    app.extensions[EXTENSION_KEY] = Persistence(
        backend,
        bcrypt_rounds=int(app.config.get("BCRYPT_ROUNDS", 12)),
    )

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app


__all__ = ["create_app", "get_persistence"]
