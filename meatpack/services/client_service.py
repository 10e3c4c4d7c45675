# Overview: Client signup and login on top of the active storage backend.

"""
Client Repository

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Strength rule checked before hashing, on the trimmed password
- Login failure never says whether the email or the password was wrong

Email is stored trimmed and lowercased and CPF as bare digits, so both
uniqueness checks are case- and punctuation-insensitive.
"""

import logging

import bcrypt

from ..errors import AuthError, DuplicateError
from ..records import Client
from ..storage.base import CLIENTS
from ..validation import (
    normalize_cpf,
    normalize_email,
    normalize_password,
    require_text,
    validate_cpf,
    validate_password_strength,
)

logger = logging.getLogger(__name__)


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is timing-safe; a malformed stored hash is a mismatch."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


class ClientRepository:

    def __init__(self, backend, *, bcrypt_rounds: int = 12):
        self._backend = backend
        self._rounds = bcrypt_rounds

    def add(self, client: Client) -> Client:
        """
        Register a client.

        Raises ValidationError (password rule, CPF checksum, blank email) or
        DuplicateError (email or CPF already registered). Nothing is written
        when either is raised.
        """
        email = require_text(normalize_email(client.email), "email")
        password = normalize_password(client.password)
        validate_password_strength(password)
        validate_cpf(client.cpf)
        cpf = normalize_cpf(client.cpf)

        stored = Client(
            nickname=client.nickname,
            password=hash_password(password, self._rounds),
            full_name=client.full_name,
            address=client.address,
            cpf=cpf,
            email=email,
            phone=client.phone,
            accepts_terms=client.accepts_terms,
            verified=client.verified,
        )

        def _op():
            existing = self._backend.clients.find_by_email_or_cpf(email, cpf)
            if existing is not None:
                if existing.email == email:
                    raise DuplicateError("Email already registered")
                raise DuplicateError("CPF already registered")
            self._backend.clients.insert(stored)
            return stored

        result = self._backend.run_in_transaction(_op, CLIENTS)
        logger.info("Registered client %s", email)
        return result

    def login(self, email: str, password: str) -> Client:
        normalized = normalize_email(email)
        client = self._backend.clients.find_by_email(normalized) if normalized else None
        if client is None or not verify_password(normalize_password(password), client.password):
            raise AuthError("invalid credentials")
        return client

    def all(self) -> list[Client]:
        return self._backend.clients.all()
