# Overview: Pytest coverage for client signup and login under both backends.

"""
Client Repository Tests

Covers:
1. Signup normalizes email/CPF and stores a bcrypt hash, never the password
2. Email (any casing) and CPF (any punctuation) are unique
3. Validation failures write nothing
4. Login failure messages never reveal which credential was wrong
"""

import pytest

from meatpack.errors import AuthError, DuplicateError, ValidationError

from tests.conftest import OTHER_VALID_CPF, VALID_PASSWORD, make_client


class TestSignup:

    def test_add_normalizes_and_hashes(self, persistence):
        stored = persistence.clients.add(make_client(
            email="  Joao@Example.COM ",
            cpf="529.982.247-25",
            password=f"  {VALID_PASSWORD}  ",
        ))

        assert stored.email == "joao@example.com"
        assert stored.cpf == "52998224725"
        assert stored.password != VALID_PASSWORD
        assert stored.password.startswith("$2")

        [saved] = persistence.clients.all()
        assert saved.email == "joao@example.com"
        assert saved.address.municipality == "Campinas"
        assert saved.accepts_terms is True
        assert saved.verified is False

    def test_duplicate_email_any_case(self, persistence):
        """
        SCENARIO: second signup reuses the email with different casing
        EXPECTED: DuplicateError, still one client stored
        """
        persistence.clients.add(make_client())
        with pytest.raises(DuplicateError, match="Email"):
            persistence.clients.add(make_client(email="JOAO@example.com", cpf=OTHER_VALID_CPF))
        assert len(persistence.clients.all()) == 1

    def test_duplicate_cpf_any_punctuation(self, persistence):
        persistence.clients.add(make_client())
        with pytest.raises(DuplicateError, match="CPF"):
            persistence.clients.add(make_client(email="maria@example.com", cpf="52998224725"))
        assert len(persistence.clients.all()) == 1

    def test_two_distinct_clients(self, persistence):
        persistence.clients.add(make_client())
        persistence.clients.add(make_client(email="maria@example.com", cpf=OTHER_VALID_CPF))
        assert [c.email for c in persistence.clients.all()] == ["joao@example.com", "maria@example.com"]

    @pytest.mark.parametrize("overrides", [
        {"password": "abc123"},
        {"cpf": "111.111.111-11"},
        {"email": "   "},
    ])
    def test_validation_failure_writes_nothing(self, persistence, overrides):
        with pytest.raises(ValidationError):
            persistence.clients.add(make_client(**overrides))
        assert persistence.clients.all() == []


class TestLogin:

    def test_login_with_normalized_credentials(self, persistence):
        persistence.clients.add(make_client())
        client = persistence.clients.login(" JOAO@example.com ", f" {VALID_PASSWORD} ")
        assert client.nickname == "joao"
        assert client.cpf == "52998224725"

    def test_wrong_password_and_unknown_email_look_the_same(self, persistence):
        persistence.clients.add(make_client())

        with pytest.raises(AuthError) as wrong_password:
            persistence.clients.login("joao@example.com", "Wrong123!@")
        with pytest.raises(AuthError) as unknown_email:
            persistence.clients.login("nobody@example.com", VALID_PASSWORD)

        assert str(wrong_password.value) == "invalid credentials"
        assert str(unknown_email.value) == str(wrong_password.value)

    def test_blank_email_fails(self, persistence):
        with pytest.raises(AuthError):
            persistence.clients.login("", VALID_PASSWORD)
