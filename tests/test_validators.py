# =============================================================================
# BARANGAY AUTH SERVICE - VALIDATOR TESTS
# =============================================================================
# File: tests/test_validators.py
# Description: Unit tests for registration field rules and helpers
# =============================================================================

from datetime import date

import pytest

from barangay_auth.core.exceptions import (
    ValidationError,
    MissingFieldError,
    ConsentRequiredError,
)
from barangay_auth.utils.helpers import mask_email, redact_sensitive, truncate_string
from barangay_auth.utils.validators import (
    require_fields,
    require_consent,
    validate_username,
    validate_email,
    validate_phone,
    validate_age,
    calculate_age,
)


TODAY = date(2024, 6, 15)


class TestRequiredFields:

    def test_lists_every_missing_field_in_order(self):
        with pytest.raises(MissingFieldError) as exc_info:
            require_fields(
                {"firstName": "Juan", "lastName": "  ", "email": None},
                ["firstName", "lastName", "purok", "email"],
            )

        assert exc_info.value.fields == ["lastName", "purok", "email"]
        assert exc_info.value.status_code == 400

    def test_all_present(self):
        require_fields({"a": "x", "b": "y"}, ["a", "b"])

    @pytest.mark.parametrize(
        "terms, privacy",
        [(False, True), (True, False), (None, True), ("true", True)],
    )
    def test_consent_must_be_exactly_true(self, terms, privacy):
        with pytest.raises(ConsentRequiredError):
            require_consent(terms, privacy)

    def test_consent_given(self):
        require_consent(True, True)


class TestUsername:

    @pytest.mark.parametrize("username", ["abc", "juan_dela_cruz", "A1_b2", "x" * 20])
    def test_valid(self, username):
        validate_username(username)

    @pytest.mark.parametrize("username", ["ab", "x" * 21])
    def test_length(self, username):
        with pytest.raises(ValidationError, match="between 3 and 20"):
            validate_username(username)

    @pytest.mark.parametrize("username", ["juan-cruz", "juan.cruz", "juan cruz", "ñino", "juan\n"])
    def test_charset(self, username):
        with pytest.raises(ValidationError, match="letters, numbers, and underscores"):
            validate_username(username)


class TestEmail:

    @pytest.mark.parametrize("email", ["juan@example.com", "a.b+c@sub.example.ph"])
    def test_valid(self, email):
        validate_email(email)

    @pytest.mark.parametrize(
        "email",
        ["juan", "juan@example", "juan @example.com", "@example.com", "juan@example.com\n"],
    )
    def test_invalid(self, email):
        with pytest.raises(ValidationError, match="Invalid email format"):
            validate_email(email)


class TestPhone:

    @pytest.mark.parametrize(
        "phone, digits",
        [
            ("09171234567", "09171234567"),
            ("+639171234567", "639171234567"),
            ("0917 123 4567", "09171234567"),
            ("+63 917-123-4567", "639171234567"),
        ],
    )
    def test_valid(self, phone, digits):
        assert validate_phone(phone) == digits

    @pytest.mark.parametrize("phone", ["0917123456", "091712345678", "19171234567", "phone"])
    def test_invalid(self, phone):
        with pytest.raises(ValidationError, match="Invalid phone number format"):
            validate_phone(phone)


class TestAge:

    def test_birthday_not_yet_reached(self):
        assert calculate_age(date(2000, 6, 16), TODAY) == 23
        assert calculate_age(date(2000, 6, 15), TODAY) == 24

    def test_exactly_sixteen_today(self):
        assert validate_age("2008-06-15", today=TODAY) == date(2008, 6, 15)

    def test_sixteen_tomorrow(self):
        with pytest.raises(ValidationError, match="at least 16"):
            validate_age("2008-06-16", today=TODAY)

    def test_ninety_accepted(self):
        # 90 years and 364 days
        validate_age("1933-06-16", today=TODAY)

    def test_ninety_one_rejected(self):
        with pytest.raises(ValidationError, match="cannot exceed 90"):
            validate_age("1933-06-15", today=TODAY)

    def test_future_date(self):
        with pytest.raises(ValidationError, match="future"):
            validate_age("2030-01-01", today=TODAY)

    def test_iso_timestamp_accepted(self):
        assert validate_age("1995-06-15T00:00:00", today=TODAY) == date(1995, 6, 15)

    def test_garbage(self):
        with pytest.raises(ValidationError, match="Invalid date format"):
            validate_age("15/06/1995", today=TODAY)


class TestHelpers:

    def test_redact_sensitive_nested(self):
        redacted = redact_sensitive({
            "username": "juan",
            "password": "SecurePass1!",
            "tokens": [{"refreshToken": "abc", "note": "ok"}],
            "access_token": "xyz",
        })

        assert redacted == {
            "username": "juan",
            "password": "[REDACTED]",
            "tokens": [{"refreshToken": "[REDACTED]", "note": "ok"}],
            "access_token": "[REDACTED]",
        }

    def test_truncate_string(self):
        assert truncate_string("a" * 10, 5) == "aa..."
        assert truncate_string("short", 10) == "short"
        assert truncate_string(None) is None

    def test_mask_email(self):
        masked = mask_email("juan@example.com")

        assert masked.endswith("@example.com")
        assert "juan" not in masked
