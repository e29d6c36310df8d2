"""
WatchGraph Web API Package

FastAPI service and async client for WatchGraph.

Usage:
    # Start the server
    uvicorn api.main:app --reload

    # Or via entry point
    watchgraph-api
"""

from api.main import app
from api.store import ComplianceStore, compliance_store
from api.client import PortfolioView, WatchGraphAPIError, WatchGraphClient
from api.session import AuthSession, NotAuthenticatedError, TokenGrant
from api.models import (
    AssignRequirementsResponse,
    BatchComplianceRequest,
    BatchComplianceResponse,
    EvidenceListResponse,
    EvidenceResponse,
    StatusUpdateRequest,
)

__all__ = [
    "app",
    "compliance_store",
    "ComplianceStore",
    "PortfolioView",
    "WatchGraphAPIError",
    "WatchGraphClient",
    "AuthSession",
    "NotAuthenticatedError",
    "TokenGrant",
    "AssignRequirementsResponse",
    "BatchComplianceRequest",
    "BatchComplianceResponse",
    "EvidenceListResponse",
    "EvidenceResponse",
    "StatusUpdateRequest",
]
