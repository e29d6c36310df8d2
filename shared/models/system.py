"""
Pydantic Models for Registered AI Systems

An AISystem is the subject of compliance tracking. Systems are created by
explicit registration and are never soft-deleted. The aggregation core
treats them as read-only input.

BOUNDARY RULES:

  - name and organization must be non-empty after stripping whitespace
  - department, owner_email and description are optional
  - risk_category is one of the four EU AI Act tiers
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from .risk import RiskLevel


class SystemRegistration(BaseModel):
    """Fields supplied when registering a new AI system."""

    name: str = Field(
        ...,
        max_length=255,
        description="Human-readable system name. Required, non-empty."
    )
    risk_category: RiskLevel = Field(
        default=RiskLevel.HIGH,
        description="EU AI Act risk tier for this system."
    )
    organization: str = Field(
        ...,
        max_length=255,
        description="Organization that operates the system. Required, non-empty."
    )
    description: Optional[str] = Field(
        default=None,
        description="Free-text description of what the system does."
    )
    department: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Owning department within the organization."
    )
    owner_email: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Contact email of the accountable owner."
    )

    @field_validator("name", "organization")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        """Strip surrounding whitespace and reject empty values."""
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("description", "department", "owner_email")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty optional form fields as missing."""
        if v is None:
            return None
        v = v.strip()
        return v or None


class AISystem(SystemRegistration):
    """A registered AI system."""

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Stable system identifier."
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the system was registered."
    )
