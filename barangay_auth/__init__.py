# =============================================================================
# BARANGAY AUTH SERVICE
# =============================================================================
# File: __init__.py
# Description: Resident registration, admin approval and JWT login service
# =============================================================================

__version__ = "1.0.0"
