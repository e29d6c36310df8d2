"""
Pydantic Models for Requirement Mappings

A RequirementMapping links one AI system to one catalogue requirement and
carries its own compliance status. Mappings are the unit the aggregation
core counts.

STATUS VALUES:

  - NOT_STARTED: no work recorded yet (initial state)
  - IN_PROGRESS: work under way, not yet met
  - COMPLETED: requirement met (the only status that counts as compliant)
  - NON_COMPLIANT: requirement assessed and not met
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class MappingStatus(str, Enum):
    """Compliance status of a single requirement mapping."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    NON_COMPLIANT = "non_compliant"


class RequirementMapping(BaseModel):
    """
    One requirement tracked for one AI system.

    The requirement fields (article, title, description) are copied from
    the catalogue entry at assignment time so a mapping can be searched and
    displayed on its own.
    """

    mapping_id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique mapping identifier. Immutable once created."
    )
    system_id: str = Field(
        description="The AI system this mapping belongs to."
    )
    requirement_id: str = Field(
        description="Catalogue requirement identifier, e.g. 'REQ-ART9'."
    )
    article: str = Field(
        description="Article code, e.g. 'Art. 9'."
    )
    title: str = Field(
        description="Short requirement title, e.g. 'Risk Management System'."
    )
    description: str = Field(
        default="",
        description="What the requirement obliges the provider or deployer to do."
    )
    status: MappingStatus = Field(
        default=MappingStatus.NOT_STARTED,
        description="Current compliance status. Exactly one value at any time."
    )
    notes: Optional[str] = Field(
        default=None,
        description="Free-text notes. Mutable, no length limit."
    )
    updated_at: datetime = Field(
        default_factory=datetime.now,
        description="Timestamp of the last status or notes change."
    )
    updated_by: Optional[str] = Field(
        default=None,
        description="Email of whoever made the last change."
    )

    def apply_update(
        self,
        status: MappingStatus,
        notes: Optional[str] = None,
        updated_by: Optional[str] = None,
    ) -> "RequirementMapping":
        """Return a copy with the new status (and notes, when given)."""
        changes = {"status": status, "updated_at": datetime.now()}
        if notes is not None:
            changes["notes"] = notes
        if updated_by is not None:
            changes["updated_by"] = updated_by
        return self.model_copy(update=changes)
