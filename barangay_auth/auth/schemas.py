# =============================================================================
# BARANGAY AUTH SERVICE - AUTH SCHEMAS
# =============================================================================
# File: auth/schemas.py
# Description: Pydantic models for request/response validation
#              JSON keys are camelCase on the wire, snake_case in Python
# =============================================================================

from typing import Optional, List, Any, Dict
from datetime import datetime, date

from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel


# =============================================================================
# BASE SCHEMAS
# =============================================================================

class BaseSchema(BaseModel):
    """Base schema with common configuration."""
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SuccessResponse(BaseSchema):
    """Every successful response carries success=true."""
    success: bool = True


class MessageResponse(SuccessResponse):
    message: str


# =============================================================================
# REGISTRATION SCHEMAS
# =============================================================================

class RegisterRequest(BaseSchema):
    """
    Registration form.

    Every field is optional at the schema level so the service can report
    all missing fields at once instead of failing on the first.
    """
    # Passwords keep surrounding whitespace
    model_config = ConfigDict(str_strip_whitespace=False)

    first_name: Optional[str] = Field(None, examples=["Juan"])
    last_name: Optional[str] = Field(None, examples=["Dela Cruz"])
    date_of_birth: Optional[str] = Field(None, description="ISO date", examples=["1995-06-15"])
    purok: Optional[str] = Field(None, examples=["Purok 3"])
    phone_number: Optional[str] = Field(None, examples=["09171234567"])
    username: Optional[str] = Field(None, examples=["juan"])
    email: Optional[str] = Field(None, examples=["juan@example.com"])
    password: Optional[str] = Field(None, examples=["SecurePass1!"])
    accepted_terms: Optional[bool] = None
    accepted_privacy: Optional[bool] = None


class RegisterResponse(MessageResponse):
    message: str = "Registration successful. Your account is pending admin approval."
    reference_id: str
    email: str
    status: str


class AvailabilityResponse(SuccessResponse):
    available: bool


class RegistrationStatusResponse(SuccessResponse):
    status: str
    email: str
    reference_id: str
    created_at: datetime
    verified_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


# =============================================================================
# AUTHENTICATION SCHEMAS
# =============================================================================

class LoginRequest(BaseSchema):
    """
    Login form. ``username`` accepts either the username or the email.
    """
    model_config = ConfigDict(str_strip_whitespace=False)

    username: Optional[str] = Field(None, examples=["juan"])
    password: Optional[str] = Field(None, examples=["SecurePass1!"])
    remember_me: bool = False


class LoginUser(BaseSchema):
    id: str
    username: str
    email: str
    role: str


class LoginResponse(SuccessResponse):
    message: str = "Login successful"
    access_token: str
    refresh_token: str
    user: LoginUser


class RefreshRequest(BaseSchema):
    refresh_token: Optional[str] = None


class RefreshResponse(SuccessResponse):
    access_token: str


# =============================================================================
# PROFILE SCHEMAS
# =============================================================================

class UserProfile(BaseSchema):
    """Public profile of an account (excludes credentials)."""
    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    status: str


class MeResponse(SuccessResponse):
    user: UserProfile


# =============================================================================
# ADMIN SCHEMAS
# =============================================================================

class PendingUser(BaseSchema):
    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    phone_number: Optional[str] = None
    purok: Optional[str] = None
    role: str
    created_at: datetime


class PendingListResponse(SuccessResponse):
    users: List[PendingUser] = Field(default_factory=list)
    total: int = 0


class RejectRequest(BaseSchema):
    reason: Optional[str] = Field(None, max_length=1000)


class StatusChangeResponse(MessageResponse):
    user: UserProfile


class AuditEntry(BaseSchema):
    id: str
    user_id: Optional[str] = None
    action_type: str
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class AuditSnapshotResponse(SuccessResponse):
    entries: List[AuditEntry] = Field(default_factory=list)
    total: int = 0
