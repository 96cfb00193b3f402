"""
Pydantic schemas for request/response validation.

This module contains:
- Request models for message create/update bodies
- Response models for API responses

JSON fields use camelCase (organizationId, isActive, ...); Python attributes
stay snake_case.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# Pydantic Request Models
# =============================================================================

class CreateMessageRequest(BaseModel):
    """
    Body of POST /organizations/{organizationId}/messages.

    Length and presence rules are enforced by the message logic, not here,
    so that violations come back as a field-error map.
    """
    title: Optional[str] = Field(None, description="Message title, unique per organization")
    content: Optional[str] = Field(None, description="Message body")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "title": "Quarterly update",
                    "content": "Numbers are in, see the shared drive.",
                }
            ]
        },
    )


class UpdateMessageRequest(CreateMessageRequest):
    """Body of PUT /organizations/{organizationId}/messages/{id}."""
    is_active: bool = Field(True, description="Whether the message stays active")


# =============================================================================
# Pydantic Response Models
# =============================================================================

class MessageResponse(BaseModel):
    """A stored message as returned by the API."""
    id: UUID
    organization_id: UUID
    title: str
    content: str
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,  # Allow creating from ORM objects
    )

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """SQLite drops the offset on read; stored values are always UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ErrorResponse(BaseModel):
    """Response model for conflict/not-found/unexpected responses."""
    message: str = Field(..., description="Error description")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
