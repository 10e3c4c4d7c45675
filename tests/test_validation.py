# Overview: Pytest coverage for the pure validation and formatting helpers.

import math

import pytest

from meatpack.errors import ValidationError
from meatpack.formatting import format_currency, format_quantity
from meatpack.validation import (
    description_key,
    is_valid_cpf,
    normalize_cpf,
    normalize_email,
    normalize_password,
    require_non_negative,
    require_positive,
    require_quantity,
    require_text,
    validate_cpf,
    validate_password_strength,
)


class TestCpf:
    """CPF checksum (two mod-11 check digits)."""

    @pytest.mark.parametrize("cpf", ["529.982.247-25", "52998224725", "111.444.777-35"])
    def test_valid(self, cpf):
        assert is_valid_cpf(cpf)

    @pytest.mark.parametrize("cpf", [
        "111.111.111-11",   # all digits equal
        "000.000.000-00",
        "529.982.247-24",   # wrong second check digit
        "529.982.247-15",   # wrong first check digit
        "5299822472",       # too short
        "529982247250",     # too long
        "",
        None,
    ])
    def test_invalid(self, cpf):
        assert not is_valid_cpf(cpf)

    def test_validate_raises(self):
        with pytest.raises(ValidationError):
            validate_cpf("111.111.111-11")

    def test_normalize_strips_punctuation(self):
        assert normalize_cpf(" 529.982.247-25 ") == "52998224725"


class TestPassword:

    def test_strong_password_passes(self):
        validate_password_strength("Abc123!@")

    @pytest.mark.parametrize("password, fragment", [
        ("abc123", "8 characters"),
        ("abcdefg1!", "uppercase"),
        ("ABCDEFG1!", "lowercase"),
        ("Abcdefgh!", "digit"),
        ("Abcdefg12", "@$!%*?&"),
        ("Abc123!@#", "only contain"),
        ("Abc 123!@", "only contain"),
    ])
    def test_weak_passwords_fail(self, password, fragment):
        """
        SCENARIO: each rule broken on its own
        EXPECTED: ValidationError naming that rule
        """
        with pytest.raises(ValidationError) as excinfo:
            validate_password_strength(password)
        assert fragment in str(excinfo.value)


class TestNormalization:

    def test_email_trimmed_and_lowercased(self):
        assert normalize_email("  Joao@Example.COM ") == "joao@example.com"
        assert normalize_email(None) == ""

    def test_password_trimmed(self):
        assert normalize_password("  Abc123!@\n") == "Abc123!@"

    def test_description_key_is_unicode_case_insensitive(self):
        assert description_key("COSTELA  SUÍNA") == description_key("costela suína")
        assert description_key("Picanha") != description_key("Picanha Premium")


class TestRequire:

    def test_require_text(self):
        assert require_text("  Boi Bom ", "supplier") == "Boi Bom"
        with pytest.raises(ValidationError, match="supplier is required"):
            require_text("   ", "supplier")

    @pytest.mark.parametrize("value", [-0.001, "abc", None, True, math.nan])
    def test_require_non_negative_rejects(self, value):
        with pytest.raises(ValidationError):
            require_non_negative(value, "quantity")

    def test_require_non_negative_accepts_zero_and_numeric_text(self):
        assert require_non_negative(0, "quantity") == 0.0
        assert require_non_negative("2.5", "quantity") == 2.5

    def test_require_positive_rejects_zero(self):
        with pytest.raises(ValidationError, match="greater than zero"):
            require_positive(0, "quantity")

    def test_require_quantity_rounds_before_checking(self):
        assert require_quantity(0.0019, "quantity") == 0.002
        with pytest.raises(ValidationError, match="greater than zero"):
            require_quantity(0.0004, "quantity")
        with pytest.raises(ValidationError):
            require_quantity(True, "quantity")


class TestFormatting:

    def test_format_currency(self):
        assert format_currency(12.5) == "12.50"
        assert format_currency(None) == "0.00"
        assert format_currency(math.nan) == "0.00"
        assert format_currency("x") == "0.00"

    def test_format_quantity(self):
        assert format_quantity(5) == "5"
        assert format_quantity(0.25) == "0.25"
        assert format_quantity(0.1 + 0.2) == "0.3"
        assert format_quantity(None) == "0"
        assert format_quantity(0) == "0"
