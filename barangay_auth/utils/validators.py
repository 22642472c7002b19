# =============================================================================
# BARANGAY AUTH SERVICE - FIELD VALIDATORS
# =============================================================================
# File: utils/validators.py
# Description: Registration field rules (presence, consent, username, email,
#              phone and age) raising the service's ValidationError family
# =============================================================================

from typing import Any, Iterable, Mapping, Optional
from datetime import date, datetime
import re

from barangay_auth.core.exceptions import (
    ValidationError,
    MissingFieldError,
    ConsentRequiredError,
)


USERNAME_PATTERN = re.compile(r"[a-zA-Z0-9_]+")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"(09|639)\d{9}")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
MIN_AGE = 16
MAX_AGE = 90


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(data: Mapping[str, Any], fields: Iterable[str]) -> None:
    """
    Ensure every named field is present and non-blank.

    Raises:
        MissingFieldError: Listing every missing field, in the given order
    """
    missing = [name for name in fields if _is_blank(data.get(name))]
    if missing:
        raise MissingFieldError(missing)


def require_consent(accepted_terms: Optional[bool], accepted_privacy: Optional[bool]) -> None:
    """
    Raises:
        ConsentRequiredError: Unless both flags are exactly True
    """
    if accepted_terms is not True or accepted_privacy is not True:
        raise ConsentRequiredError()


def validate_username(username: str) -> None:
    """
    Rules:
        - 3-20 characters
        - Letters, digits and underscores only
    """
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            "Username must be between 3 and 20 characters",
            error_code="INVALID_USERNAME",
        )
    if not USERNAME_PATTERN.fullmatch(username):
        raise ValidationError(
            "Username can only contain letters, numbers, and underscores",
            error_code="INVALID_USERNAME",
        )


def validate_email(email: str) -> None:
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError("Invalid email format", error_code="INVALID_EMAIL")


def normalize_phone(phone: str) -> str:
    """Strip everything but digits."""
    return re.sub(r"\D", "", phone)


def validate_phone(phone: str) -> str:
    """
    Accepts 09XXXXXXXXX or +639XXXXXXXXX, ignoring spaces and punctuation.

    Returns:
        str: The digits-only phone number
    """
    digits = normalize_phone(phone)
    if not PHONE_PATTERN.fullmatch(digits):
        raise ValidationError(
            "Invalid phone number format. Use 09XXXXXXXXX or +639XXXXXXXXX",
            error_code="INVALID_PHONE",
        )
    return digits


def parse_date_of_birth(value: str) -> date:
    """
    Parse an ISO date ("2001-05-17"); a full ISO timestamp is also accepted.

    Raises:
        ValidationError: If the value is not a date
    """
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        pass
    try:
        return datetime.fromisoformat(value).date()
    except (TypeError, ValueError):
        raise ValidationError("Invalid date format", error_code="INVALID_DATE")


def calculate_age(date_of_birth: date, today: date) -> int:
    """Whole years, reduced by one until this year's birthday has passed."""
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def validate_age(date_of_birth: str, today: Optional[date] = None) -> date:
    """
    Age must be 16-90 inclusive.

    Returns:
        date: The parsed date of birth
    """
    dob = parse_date_of_birth(date_of_birth)
    today = today or date.today()

    if dob > today:
        raise ValidationError(
            "Date of birth cannot be in the future",
            error_code="INVALID_DATE_OF_BIRTH",
        )

    age = calculate_age(dob, today)
    if age < MIN_AGE:
        raise ValidationError("Must be at least 16 years old", error_code="AGE_RESTRICTION")
    if age > MAX_AGE:
        raise ValidationError("Age cannot exceed 90 years", error_code="AGE_RESTRICTION")

    return dob
