from __future__ import annotations

import math


def format_currency(value) -> str:
    """Two decimals; None, NaN and non-numbers render as 0.00."""
    if isinstance(value, bool):
        return "0.00"
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "0.00"
    if math.isnan(number):
        return "0.00"
    return f"{number:.2f}"


def format_quantity(value) -> str:
    """Kilograms to gram precision without trailing zeros ("5", "0.25")."""
    if value is None:
        return "0"
    text = f"{float(value):.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text
