# =============================================================================
# BARANGAY AUTH SERVICE - SECURITY TESTS
# =============================================================================
# File: tests/test_security.py
# Description: Unit tests for password hashing, JWTs and password rules
# =============================================================================

from datetime import timedelta

import pytest
from jose import jwt
from passlib.context import CryptContext

from barangay_auth.core.exceptions import (
    InvalidTokenError,
    TokenExpiredError,
    PasswordValidationError,
)
from barangay_auth.core.security import (
    PasswordManager,
    JWTManager,
    PasswordValidator,
    hash_opaque,
    generate_session_id,
)


SECRET = "unit-test-secret-that-is-long-enough-0123456789"


class TestPasswordManager:
    """Test suite for PasswordManager."""

    def test_hash_password_argon2(self):
        pm = PasswordManager(algorithm="argon2")
        hashed = pm.hash_password("TestPassword123!")

        assert hashed.startswith("$argon2")
        assert hashed != "TestPassword123!"

    def test_verify_password_correct(self):
        pm = PasswordManager(algorithm="argon2")
        hashed = pm.hash_password("TestPassword123!")

        assert pm.verify_password("TestPassword123!", hashed) is True

    def test_verify_password_incorrect(self):
        pm = PasswordManager(algorithm="argon2")
        hashed = pm.hash_password("TestPassword123!")

        assert pm.verify_password("WrongPassword456!", hashed) is False

    def test_same_password_different_hashes(self):
        pm = PasswordManager(algorithm="argon2")

        assert pm.hash_password("Same1234!") != pm.hash_password("Same1234!")

    def test_legacy_bcrypt_hash_verifies_and_needs_rehash(self):
        legacy = CryptContext(schemes=["bcrypt"], bcrypt__rounds=4).hash("Legacy123!")
        pm = PasswordManager(algorithm="argon2")

        assert pm.verify_password("Legacy123!", legacy) is True
        assert pm.verify_password("legacy123!", legacy) is False
        assert pm.needs_rehash(legacy) is True

    def test_current_argon2_hash_needs_no_rehash(self):
        pm = PasswordManager(algorithm="argon2")

        assert pm.needs_rehash(pm.hash_password("Current123!")) is False

    @pytest.mark.parametrize("stored", ["", "plaintext", "$argon2id$garbage"])
    def test_unknown_or_corrupt_hash_fails(self, stored):
        pm = PasswordManager(algorithm="argon2")

        assert pm.verify_password("Anything1!", stored) is False


class TestJWTManager:
    """Test suite for JWTManager."""

    @pytest.fixture
    def manager(self) -> JWTManager:
        return JWTManager(secret_key=SECRET, algorithm="HS256")

    def test_access_token_claims(self, manager: JWTManager):
        token = manager.issue_access_token("user-1", "resident", "session-1")
        payload = manager.verify_token(token, "access")

        assert payload.sub == "user-1"
        assert payload.role == "resident"
        assert payload.sid == "session-1"
        assert payload.type == "access"
        assert payload.jti
        assert payload.exp > payload.iat

    def test_default_lifetimes(self, manager: JWTManager):
        access = manager.verify_token(manager.issue_access_token("u", "admin"), "access")
        refresh = manager.verify_token(manager.issue_refresh_token("u"), "refresh")

        assert access.exp - access.iat == timedelta(hours=24)
        assert refresh.exp - refresh.iat == timedelta(days=7)
        assert refresh.role is None

    def test_every_token_is_unique(self, manager: JWTManager):
        first = manager.issue_access_token("u", "admin", "s")
        second = manager.issue_access_token("u", "admin", "s")

        assert first != second

    def test_refresh_token_rejected_as_access(self, manager: JWTManager):
        refresh = manager.issue_refresh_token("user-1", "session-1")

        with pytest.raises(InvalidTokenError):
            manager.verify_token(refresh, "access")

    def test_access_token_rejected_as_refresh(self, manager: JWTManager):
        access = manager.issue_access_token("user-1", "resident")

        with pytest.raises(InvalidTokenError):
            manager.verify_token(access, "refresh")

    def test_expired_token(self):
        manager = JWTManager(
            secret_key=SECRET,
            access_token_expire=timedelta(seconds=-1),
        )
        token = manager.issue_access_token("user-1", "resident")

        with pytest.raises(TokenExpiredError):
            manager.verify_token(token, "access")

    def test_wrong_signature(self, manager: JWTManager):
        other = JWTManager(secret_key="another-secret-that-is-long-enough-0123456789")
        token = other.issue_access_token("user-1", "resident")

        with pytest.raises(InvalidTokenError) as exc_info:
            manager.verify_token(token, "access")
        assert not isinstance(exc_info.value, TokenExpiredError)

    def test_garbage_token(self, manager: JWTManager):
        with pytest.raises(InvalidTokenError):
            manager.verify_token("not-a-jwt", "access")

    def test_missing_subject(self, manager: JWTManager):
        token = jwt.encode({"type": "access", "exp": 9999999999}, SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            manager.verify_token(token, "access")


class TestPasswordValidator:
    """Test suite for password strength rules."""

    def test_strong_password(self):
        is_valid, errors = PasswordValidator.validate("SecurePass1!")

        assert is_valid is True
        assert errors == []

    def test_reports_every_violation_in_order(self):
        is_valid, errors = PasswordValidator.validate("abc")

        assert is_valid is False
        assert errors == [
            "Password must be at least 8 characters long",
            "Password must contain at least one uppercase letter",
            "Password must contain at least one number",
            "Password must contain at least one special character (!@#$%^&*)",
        ]

    def test_special_character_set_is_fixed(self):
        # '?' is not in the accepted set
        is_valid, errors = PasswordValidator.validate("SecurePass1?")

        assert is_valid is False
        assert errors == ["Password must contain at least one special character (!@#$%^&*)"]

    @pytest.mark.parametrize(
        "password, message",
        [
            ("Ábcdefg1!", "Password must contain at least one uppercase letter"),
            ("ABCDEFGé1!", "Password must contain at least one lowercase letter"),
            ("Abcdefg²!", "Password must contain at least one number"),
            ("Abcdefg١!", "Password must contain at least one number"),
        ],
    )
    def test_character_classes_are_ascii_only(self, password, message):
        is_valid, errors = PasswordValidator.validate(password)

        assert is_valid is False
        assert errors == [message]

    def test_ensure_valid_raises_with_first_message(self):
        with pytest.raises(PasswordValidationError) as exc_info:
            PasswordValidator.ensure_valid("short")

        assert exc_info.value.message == "Password must be at least 8 characters long"
        assert exc_info.value.status_code == 400


class TestUtilities:

    def test_hash_opaque_is_stable_sha256(self):
        digest = hash_opaque("token")

        assert digest == hash_opaque("token")
        assert len(digest) == 64
        assert digest != hash_opaque("token2")

    def test_session_ids_are_unique(self):
        assert generate_session_id() != generate_session_id()
