# =============================================================================
# UTILS MODULE INITIALIZATION
# =============================================================================
# File: utils/__init__.py
# Description: Utils module exports
# =============================================================================

from barangay_auth.utils.helpers import (
    utc_now,
    mask_email,
    mask_identifier,
    truncate_string,
    redact_sensitive,
    safe_json_loads,
)
from barangay_auth.utils.validators import (
    require_fields,
    require_consent,
    validate_username,
    validate_email,
    validate_phone,
    validate_age,
    calculate_age,
)

__all__ = [
    "utc_now",
    "mask_email",
    "mask_identifier",
    "truncate_string",
    "redact_sensitive",
    "safe_json_loads",
    "require_fields",
    "require_consent",
    "validate_username",
    "validate_email",
    "validate_phone",
    "validate_age",
    "calculate_age",
]
