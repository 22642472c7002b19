# =============================================================================
# BARANGAY AUTH SERVICE - UTILITIES
# =============================================================================
# File: utils/helpers.py
# Description: Common utility functions used across the application
# =============================================================================

from typing import Optional, Any
from datetime import datetime, timezone
import json


SENSITIVE_KEYS = frozenset({
    "password",
    "newpassword",
    "currentpassword",
    "token",
    "accesstoken",
    "refreshtoken",
    "secret",
})


def utc_now() -> datetime:
    """
    Get current UTC timestamp.

    Returns:
        datetime: Current UTC time with timezone info
    """
    return datetime.now(timezone.utc)


def mask_email(email: str) -> str:
    """
    Mask email address for display/logging.

    Example: juan@example.com -> j***@example.com
    """
    if "@" not in email:
        return email

    local, domain = email.split("@", 1)
    return f"{local[:1]}***@{domain}"


def mask_identifier(identifier: str) -> str:
    """Mask a username or email for log lines."""
    if "@" in identifier:
        return mask_email(identifier)
    if len(identifier) <= 2:
        return "***"
    return f"{identifier[:2]}***"


def truncate_string(value: Optional[str], max_length: int = 500, suffix: str = "...") -> Optional[str]:
    """
    Truncate string to maximum length.

    Args:
        value: String to truncate (None passes through)
        max_length: Maximum length
        suffix: Suffix to add when truncated
    """
    if value is None or len(value) <= max_length:
        return value
    return value[:max_length - len(suffix)] + suffix


def redact_sensitive(value: Any) -> Any:
    """
    Recursively replace secrets in a JSON-like structure with "[REDACTED]".

    Keys are compared case-insensitively with underscores removed, so
    "refresh_token" and "refreshToken" are both caught.
    """
    if isinstance(value, dict):
        return {
            k: "[REDACTED]"
            if isinstance(k, str) and k.replace("_", "").lower() in SENSITIVE_KEYS
            else redact_sensitive(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [redact_sensitive(v) for v in value]
    return value


def safe_json_loads(value: Optional[bytes | str], default: Any = None) -> Any:
    """
    Safely parse JSON.

    Returns:
        Parsed value or default
    """
    if not value:
        return default
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
        return default
