# Overview: Backend selection and construction.

from __future__ import annotations

import importlib.util
import logging
import os
import sys

from .base import COLLECTIONS, StorageBackend

logger = logging.getLogger(__name__)

RELATIONAL = "relational"
FLAT = "flat"
AUTO = "auto"

# Platforms without a usable embedded SQL engine
FLAT_ONLY_PLATFORMS = frozenset({"web", "emscripten", "wasi"})


def _sqlite_available() -> bool:
    return importlib.util.find_spec("sqlite3") is not None


def select_backend(config) -> str:
    """
    Decide which backend to use for this process.

    A forced MEATPACK_STORAGE_BACKEND ("relational" or "flat") wins. Otherwise
    web-like platforms get the flat backend and everything else gets the
    relational one, falling back to flat when sqlite3 cannot be imported.
    """
    forced = (config.get("MEATPACK_STORAGE_BACKEND") or AUTO).strip().lower()
    if forced in (RELATIONAL, FLAT):
        return forced
    if forced != AUTO:
        logger.warning("Unknown MEATPACK_STORAGE_BACKEND %r; choosing automatically", forced)

    platform = (config.get("MEATPACK_PLATFORM") or sys.platform).lower()
    if platform in FLAT_ONLY_PLATFORMS:
        return FLAT
    if not _sqlite_available():
        logger.warning("sqlite3 is unavailable; using the flat backend")
        return FLAT
    return RELATIONAL


def build_backend(kind: str, app) -> StorageBackend:
    if kind == RELATIONAL:
        from .relational import RelationalBackend

        return RelationalBackend()
    if kind == FLAT:
        from .flat import FlatBackend, KeyValueStore

        directory = app.config.get("MEATPACK_FLAT_STORE_DIR") or "flat_store"
        if not os.path.isabs(directory):
            directory = os.path.join(app.instance_path, directory)
        return FlatBackend(KeyValueStore(directory))
    raise ValueError(f"unknown storage backend: {kind!r}")


def ensure_schema(backend: StorageBackend) -> None:
    """Prepare tables or the blob directory. Safe to call on every start."""
    backend.ensure_schema()


__all__ = [
    "AUTO",
    "COLLECTIONS",
    "FLAT",
    "RELATIONAL",
    "StorageBackend",
    "build_backend",
    "ensure_schema",
    "select_backend",
]
