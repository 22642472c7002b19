# =============================================================================
# BARANGAY AUTH SERVICE - SESSION MODELS
# =============================================================================
# File: session/models.py
# Description: Pydantic models for client context and session listings
# =============================================================================

from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ClientContext(BaseModel):
    """Where a request came from; recorded on sessions, attempts and audit rows."""
    model_config = ConfigDict(frozen=True)

    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client User-Agent header")


class SessionInfo(BaseModel):
    """Session information for API responses."""
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(..., description="Session identifier")
    user_id: str = Field(..., description="Account UUID")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client User-Agent")
    remember_me: bool = Field(False, description="Remember-me flag as submitted")
    created_at: datetime = Field(..., description="Session creation time")
    expires_at: datetime = Field(..., description="Session expiration time")


class SessionList(BaseModel):
    """List of sessions for API response."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    sessions: List[SessionInfo] = Field(default_factory=list)
    total: int = Field(0, description="Total number of sessions")
