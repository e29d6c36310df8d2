"""
WatchGraph Shared Pydantic Models

This package contains all Pydantic models used across WatchGraph.
Models are organized by purpose:

  - risk.py: EU AI Act risk tiers
  - system.py: Registered AI systems
  - mappings.py: Requirement mappings and their status
  - compliance.py: Derived compliance metrics
  - evidence.py: Evidence metadata

Usage:
    from shared.models import (
        AISystem, RiskLevel,
        MappingStatus, RequirementMapping,
        ComplianceSnapshot, PortfolioSnapshot,
    )
"""

# Risk tiers
from .risk import RiskLevel

# Systems
from .system import (
    AISystem,
    SystemRegistration,
)

# Requirement mappings
from .mappings import (
    MappingStatus,
    RequirementMapping,
)

# Compliance metrics
from .compliance import (
    ComplianceSnapshot,
    PortfolioSnapshot,
    empty_breakdown,
)

# Evidence
from .evidence import (
    ALLOWED_EVIDENCE_TYPES,
    MAX_EVIDENCE_SIZE,
    Evidence,
    EvidenceStatus,
    EvidenceUpload,
)

__all__ = [
    # Risk
    "RiskLevel",
    # Systems
    "AISystem",
    "SystemRegistration",
    # Mappings
    "MappingStatus",
    "RequirementMapping",
    # Compliance
    "ComplianceSnapshot",
    "PortfolioSnapshot",
    "empty_breakdown",
    # Evidence
    "ALLOWED_EVIDENCE_TYPES",
    "MAX_EVIDENCE_SIZE",
    "Evidence",
    "EvidenceStatus",
    "EvidenceUpload",
]
