"""
API Request/Response Models

Pydantic models for the FastAPI endpoints. Domain models from
shared.models are returned directly where their shape already fits.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from shared.models import (
    ComplianceSnapshot,
    EvidenceStatus,
    MappingStatus,
)


class StatusUpdateRequest(BaseModel):
    """Request model for PATCH /api/requirements/{mapping_id}"""

    status: MappingStatus
    notes: Optional[str] = Field(
        None,
        description="New notes. Omit to keep the existing notes."
    )
    updated_by: Optional[str] = None


class AssignRequirementsResponse(BaseModel):
    """Response model for POST /api/systems/{id}/requirements/assign"""

    system_id: str
    assigned: int = Field(..., description="Mappings created by this call")
    total_requirements: int = Field(..., description="Mappings the system now has")


class BatchComplianceRequest(BaseModel):
    """Request model for POST /api/compliance/batch"""

    system_ids: list[str] = Field(..., max_length=500)


class BatchComplianceResponse(BaseModel):
    """Response model for POST /api/compliance/batch"""

    snapshots: dict[str, ComplianceSnapshot]
    unknown_system_ids: list[str] = Field(default_factory=list)


class EvidenceResponse(BaseModel):
    """A single evidence item with its derived status"""

    id: str
    mapping_id: str
    file_name: str
    file_type: str
    file_size: int
    status: EvidenceStatus
    description: Optional[str] = None
    expiration_date: Optional[date] = None
    uploaded_by: Optional[str] = None
    storage_url: Optional[str] = None
    created_at: datetime


class EvidenceListResponse(BaseModel):
    """Response model for GET /api/requirements/{mapping_id}/evidence"""

    items: list[EvidenceResponse]
