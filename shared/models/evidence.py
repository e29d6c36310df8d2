"""
Pydantic Models for Evidence Metadata

Evidence files prove that a requirement has been met. The files themselves
live in an external blob store reached through signed URLs; this module
only describes the metadata kept alongside a requirement mapping.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


ALLOWED_EVIDENCE_TYPES = ("pdf", "png", "jpg", "jpeg", "xlsx", "docx", "csv")
MAX_EVIDENCE_SIZE = 25 * 1024 * 1024  # 25MB


class EvidenceStatus(str, Enum):
    """Freshness of an evidence item, derived from its expiration date."""

    CURRENT = "current"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    ARCHIVED = "archived"


def file_extension(file_name: str) -> str:
    """Lower-cased extension of a file name, or '' when there is none."""
    if "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[1].lower()


class EvidenceUpload(BaseModel):
    """Metadata supplied when attaching evidence to a requirement mapping."""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., ge=0, le=MAX_EVIDENCE_SIZE)
    description: Optional[str] = None
    expiration_date: Optional[date] = None
    uploaded_by: Optional[str] = None
    storage_url: Optional[str] = Field(
        default=None,
        description="Signed URL of the blob in the external store. Opaque here."
    )

    @field_validator("file_name")
    @classmethod
    def check_file_type(cls, v: str) -> str:
        if file_extension(v) not in ALLOWED_EVIDENCE_TYPES:
            raise ValueError(
                f"Invalid file type. Allowed: {', '.join(ALLOWED_EVIDENCE_TYPES)}"
            )
        return v

    @property
    def file_type(self) -> str:
        return file_extension(self.file_name)


class Evidence(BaseModel):
    """An evidence item attached to one requirement mapping."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    mapping_id: str
    file_name: str
    file_type: str
    file_size: int
    description: Optional[str] = None
    expiration_date: Optional[date] = None
    uploaded_by: Optional[str] = None
    storage_url: Optional[str] = None
    archived: bool = False
    created_at: datetime = Field(default_factory=datetime.now)

    def status_on(self, today: date, warning_days: int = 30) -> EvidenceStatus:
        """Derive the evidence status as of the given day."""
        if self.archived:
            return EvidenceStatus.ARCHIVED
        if self.expiration_date is None:
            return EvidenceStatus.CURRENT
        if self.expiration_date < today:
            return EvidenceStatus.EXPIRED
        if self.expiration_date <= today + timedelta(days=warning_days):
            return EvidenceStatus.EXPIRING_SOON
        return EvidenceStatus.CURRENT
