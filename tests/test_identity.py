"""Tests for sign-up and sign-in."""

import pytest

from expense_tracker.auth import AuthenticationError, IdentityService
from expense_tracker.services.storage import create_memory_backend
from expense_tracker.validation import ValidationError


@pytest.fixture
def identity():
    return IdentityService(create_memory_backend().users, rounds=4)


class TestIdentityService:
    """Tests for the bcrypt-backed identity service."""

    async def test_sign_up_then_sign_in(self, identity):
        created = await identity.sign_up("Alice@Example.com", "correct horse")
        session = await identity.sign_in("alice@example.com", "correct horse")
        assert session.user_id == created.user_id
        assert session.email == "alice@example.com"

    async def test_password_is_hashed(self, identity):
        await identity.sign_up("alice@example.com", "correct horse")
        account = await identity._users.get_user_by_email("alice@example.com")
        assert account.password_hash != "correct horse"
        assert account.password_hash.startswith("$2")

    async def test_wrong_password(self, identity):
        await identity.sign_up("alice@example.com", "correct horse")
        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            await identity.sign_in("alice@example.com", "wrong horse")

    async def test_unknown_email(self, identity):
        with pytest.raises(AuthenticationError):
            await identity.sign_in("nobody@example.com", "whatever")

    async def test_blank_credentials(self, identity):
        with pytest.raises(AuthenticationError):
            await identity.sign_in("", "")

    async def test_duplicate_email(self, identity):
        await identity.sign_up("alice@example.com", "correct horse")
        with pytest.raises(AuthenticationError):
            await identity.sign_up("ALICE@example.com", "another one")

    async def test_short_password_rejected(self, identity):
        with pytest.raises(ValidationError, match="at least 6"):
            await identity.sign_up("alice@example.com", "abc")

    async def test_sessions_are_distinct_users(self, identity):
        alice = await identity.sign_up("alice@example.com", "correct horse")
        bob = await identity.sign_up("bob@example.com", "battery staple")
        assert alice.user_id != bob.user_id
