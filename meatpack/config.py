# meatpack/config.py
from __future__ import annotations
import os


class Config:
    # SQLite DB stored next to the process unless DATABASE_URL points elsewhere
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///meatpack.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Writers wait on a locked SQLite file instead of failing immediately
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 15}}

    # "auto" picks relational when the platform has sqlite3, flat otherwise.
    MEATPACK_STORAGE_BACKEND = os.environ.get("MEATPACK_STORAGE_BACKEND", "auto")

    # Relative paths resolve against the Flask instance folder
    MEATPACK_FLAT_STORE_DIR = os.environ.get("MEATPACK_FLAT_STORE_DIR", "flat_store")

    # Overrides sys.platform for backend selection ("web" forces the flat store)
    MEATPACK_PLATFORM = os.environ.get("MEATPACK_PLATFORM")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
