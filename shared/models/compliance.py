"""
Pydantic Models for Compliance Metrics

These models hold the derived metrics produced by the aggregation core.
They are never stored; every request recomputes them from the current
requirement mappings.

INVARIANTS:

  - status_breakdown has an entry for each of the four statuses
  - status_breakdown values sum to total_requirements
  - compliance percentages stay within 0-100
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field, computed_field, model_validator

from .mappings import MappingStatus


def empty_breakdown() -> Dict[str, int]:
    """Return a status breakdown with every status at zero."""
    return {status.value: 0 for status in MappingStatus}


class ComplianceSnapshot(BaseModel):
    """
    Compliance metrics for a single AI system.

    The computed requirements_* fields mirror the per-status counts so API
    consumers can read them without indexing the breakdown.
    """

    system_id: Optional[str] = Field(
        default=None,
        description="The system these metrics describe, when known."
    )
    total_requirements: int = Field(
        default=0,
        ge=0,
        description="Number of requirement mappings for the system."
    )
    status_breakdown: Dict[str, int] = Field(
        default_factory=empty_breakdown,
        description="Count of mappings per status value."
    )
    compliance_percentage: float = Field(
        default=0.0,
        ge=0.0,
        le=100.0,
        description="Share of mappings that are completed, rounded to one decimal."
    )

    @model_validator(mode="after")
    def check_breakdown(self) -> "ComplianceSnapshot":
        """Fill missing statuses with zero and check the counts add up."""
        unknown = set(self.status_breakdown) - {s.value for s in MappingStatus}
        if unknown:
            raise ValueError(f"Unknown statuses in breakdown: {sorted(unknown)}")
        for status in MappingStatus:
            self.status_breakdown.setdefault(status.value, 0)
        counted = sum(self.status_breakdown.values())
        if counted != self.total_requirements:
            raise ValueError(
                f"status_breakdown sums to {counted}, "
                f"expected total_requirements={self.total_requirements}"
            )
        return self

    def count(self, status: MappingStatus) -> int:
        """Number of mappings with the given status."""
        return self.status_breakdown.get(MappingStatus(status).value, 0)

    @computed_field
    @property
    def requirements_completed(self) -> int:
        return self.count(MappingStatus.COMPLETED)

    @computed_field
    @property
    def requirements_in_progress(self) -> int:
        return self.count(MappingStatus.IN_PROGRESS)

    @computed_field
    @property
    def requirements_not_started(self) -> int:
        return self.count(MappingStatus.NOT_STARTED)

    @computed_field
    @property
    def requirements_non_compliant(self) -> int:
        return self.count(MappingStatus.NON_COMPLIANT)


class PortfolioSnapshot(BaseModel):
    """
    Compliance metrics across every monitored AI system.

    overall_compliance_percentage is requirement-weighted: it is computed
    from summed completed/total counts, so a system with 50 requirements
    weighs 25 times as much as one with 2.
    """

    total_systems: int = Field(
        default=0,
        ge=0,
        description="Number of systems in the portfolio, including ones with no requirements."
    )
    total_requirements: int = Field(
        default=0,
        ge=0,
        description="Requirement mappings summed across all systems."
    )
    completed_requirements: int = Field(
        default=0,
        ge=0,
        description="Completed mappings summed across all systems."
    )
    overall_compliance_percentage: float = Field(
        default=0.0,
        ge=0.0,
        le=100.0,
        description="completed_requirements / total_requirements * 100, one decimal."
    )
    status_breakdown: Dict[str, int] = Field(
        default_factory=empty_breakdown,
        description="Count of mappings per status value across all systems."
    )
    systems_without_requirements: int = Field(
        default=0,
        ge=0,
        description="Systems that have no requirement mappings yet."
    )
    systems_unavailable: int = Field(
        default=0,
        ge=0,
        description="Systems whose requirements could not be fetched; excluded from the weighted figures."
    )
