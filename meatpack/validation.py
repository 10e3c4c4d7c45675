from __future__ import annotations

import re

from .errors import ValidationError

"""
Validation utilities consumed by the repositories.

Pure functions: no storage access, no side effects. Each validate_* raises
ValidationError with a user-presentable message; each normalize_* returns the
canonical form used for storage and comparison.
"""

# Symbols accepted by the password rule; no other punctuation is allowed.
PASSWORD_SYMBOLS = "@$!%*?&"

_PASSWORD_ALLOWED = re.compile(r"^[A-Za-z\d@$!%*?&]+$")
_NON_DIGITS = re.compile(r"[^\d]")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def normalize_password(password: str | None) -> str:
    return (password or "").strip()


def description_key(description: str | None) -> str:
    """Comparison key for product descriptions (unicode-aware, case-insensitive)."""
    return " ".join((description or "").split()).casefold()


def normalize_cpf(cpf: str | None) -> str:
    """Strip punctuation ("529.982.247-25" -> "52998224725")."""
    return _NON_DIGITS.sub("", cpf or "")


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one symbol from @$!%*?&
    - Only letters, digits and those symbols

    Raises ValidationError if requirements not met.
    """
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")

    if not re.search(r"[A-Z]", password):
        raise ValidationError("Password must contain at least one uppercase letter")

    if not re.search(r"[a-z]", password):
        raise ValidationError("Password must contain at least one lowercase letter")

    if not re.search(r"\d", password):
        raise ValidationError("Password must contain at least one digit")

    if not any(ch in PASSWORD_SYMBOLS for ch in password):
        raise ValidationError(f"Password must contain at least one of {PASSWORD_SYMBOLS}")

    if not _PASSWORD_ALLOWED.match(password):
        raise ValidationError(f"Password may only contain letters, digits and {PASSWORD_SYMBOLS}")


def _cpf_check_digit(digits: str) -> int:
    # Weights run from len+1 down to 2
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    remainder = 11 - (total % 11)
    return 0 if remainder in (10, 11) else remainder


def is_valid_cpf(cpf: str | None) -> bool:
    digits = normalize_cpf(cpf)

    if len(digits) != 11:
        return False

    # 000.000.000-00, 111.111.111-11, ... pass the arithmetic but are not issued
    if digits == digits[0] * 11:
        return False

    if _cpf_check_digit(digits[:9]) != int(digits[9]):
        return False

    return _cpf_check_digit(digits[:10]) == int(digits[10])


def validate_cpf(cpf: str | None) -> None:
    if not is_valid_cpf(cpf):
        raise ValidationError("Invalid CPF")


def require_text(value: str | None, field: str) -> str:
    """Strip and require a non-blank string."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def require_non_negative(value, field: str) -> float:
    """Coerce to float and reject negatives, NaN and booleans."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if number != number or number < 0:
        raise ValidationError(f"{field} must be zero or greater")
    return number


def require_positive(value, field: str) -> float:
    number = require_non_negative(value, field)
    if number == 0:
        raise ValidationError(f"{field} must be greater than zero")
    return number


def require_quantity(value, field: str) -> float:
    """Positive quantity rounded to the gram; sub-gram amounts round to zero and fail."""
    return require_positive(round(require_non_negative(value, field), 3), field)
