"""
WatchGraph FastAPI Application

API server for continuous AI compliance monitoring under the EU AI Act.
Provides endpoints for:
  - Registering AI systems and assigning catalogue requirements
  - Updating requirement status and notes
  - Searching a system's requirements
  - Per-system, batched and portfolio compliance metrics
  - Evidence metadata per requirement
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from aggregation import (
    STATUS_FILTER_ALL,
    InvalidStatusError,
    compute_many_compliance,
    compute_portfolio_compliance,
    compute_system_compliance,
    filter_mappings,
)
from api.config import CORS_ORIGINS, EVIDENCE_EXPIRY_WARNING_DAYS, HOST, LOG_LEVEL, PORT
from api.models import (
    AssignRequirementsResponse,
    BatchComplianceRequest,
    BatchComplianceResponse,
    EvidenceListResponse,
    EvidenceResponse,
    StatusUpdateRequest,
)
from api.store import ComplianceStore, compliance_store
from shared.models import (
    AISystem,
    ComplianceSnapshot,
    Evidence,
    EvidenceUpload,
    PortfolioSnapshot,
    RequirementMapping,
    SystemRegistration,
)

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("watchgraph.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("Starting WatchGraph API server")
    yield
    logger.info("Shutting down WatchGraph API server")


# Create FastAPI app
app = FastAPI(
    title="WatchGraph API",
    description="Continuous AI Compliance Monitoring",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> ComplianceStore:
    """Dependency returning the store the endpoints operate on."""
    return compliance_store


@app.exception_handler(InvalidStatusError)
async def invalid_status_handler(request: Request, exc: InvalidStatusError):
    logger.warning(f"Rejected request with invalid status: {exc}")
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "status": str(exc.status), "mapping_id": exc.mapping_id},
    )


async def _require_system(store: ComplianceStore, system_id: str) -> AISystem:
    system = await store.get_system(system_id)
    if not system:
        raise HTTPException(status_code=404, detail=f"System {system_id} not found")
    return system


async def _require_mapping(store: ComplianceStore, mapping_id: str) -> RequirementMapping:
    mapping = await store.get_mapping(mapping_id)
    if not mapping:
        raise HTTPException(status_code=404, detail=f"Requirement mapping {mapping_id} not found")
    return mapping


def _evidence_response(item: Evidence) -> EvidenceResponse:
    return EvidenceResponse(
        status=item.status_on(date.today(), EVIDENCE_EXPIRY_WARNING_DAYS),
        **item.model_dump(exclude={"archived"}),
    )


# ============================================================================
# Dashboard
# ============================================================================

@app.get("/api/dashboard/stats", response_model=PortfolioSnapshot)
async def get_dashboard_stats(store: ComplianceStore = Depends(get_store)):
    """
    Portfolio-level compliance across all registered systems.

    The overall percentage is requirement-weighted: completed mappings
    summed across systems over all mappings summed across systems.
    """
    systems = await store.list_systems()
    system_ids = [s.id for s in systems]
    mappings = await store.mappings_for_systems(system_ids)
    snapshots = compute_many_compliance(system_ids, mappings)
    return compute_portfolio_compliance(snapshots, total_systems=len(systems))


# ============================================================================
# Systems
# ============================================================================

@app.get("/api/systems", response_model=list[AISystem])
async def list_systems(store: ComplianceStore = Depends(get_store)):
    return await store.list_systems()


@app.post("/api/systems", response_model=AISystem, status_code=201)
async def register_system(
    registration: SystemRegistration,
    store: ComplianceStore = Depends(get_store),
):
    """
    Register a new AI system.

    The system starts with no requirements. Call
    POST /api/systems/{id}/requirements/assign to map the catalogue
    requirements for its risk category.
    """
    return await store.register_system(registration)


@app.get("/api/systems/{system_id}", response_model=AISystem)
async def get_system(system_id: str, store: ComplianceStore = Depends(get_store)):
    return await _require_system(store, system_id)


@app.get("/api/systems/{system_id}/requirements", response_model=list[RequirementMapping])
async def get_system_requirements(
    system_id: str,
    q: str = Query("", max_length=200, description="Case-insensitive text search"),
    status: str = Query(STATUS_FILTER_ALL, description="Status filter or 'all'"),
    store: ComplianceStore = Depends(get_store),
):
    """
    List a system's requirement mappings.

    Filtered by status (or 'all') AND free-text query over title,
    article and description.
    """
    await _require_system(store, system_id)
    mappings = await store.list_mappings(system_id)
    return filter_mappings(mappings, query=q, status=status)


@app.post(
    "/api/systems/{system_id}/requirements/assign",
    response_model=AssignRequirementsResponse,
)
async def assign_requirements(system_id: str, store: ComplianceStore = Depends(get_store)):
    """Map catalogue requirements for the system's risk category. Idempotent."""
    created = await store.assign_requirements(system_id)
    if created is None:
        raise HTTPException(status_code=404, detail=f"System {system_id} not found")
    mappings = await store.list_mappings(system_id)
    return AssignRequirementsResponse(
        system_id=system_id,
        assigned=created,
        total_requirements=len(mappings),
    )


@app.get("/api/systems/{system_id}/compliance", response_model=ComplianceSnapshot)
async def get_system_compliance(system_id: str, store: ComplianceStore = Depends(get_store)):
    await _require_system(store, system_id)
    mappings = await store.list_mappings(system_id)
    return compute_system_compliance(mappings, system_id=system_id)


@app.post("/api/compliance/batch", response_model=BatchComplianceResponse)
async def batch_compliance(
    request: BatchComplianceRequest,
    store: ComplianceStore = Depends(get_store),
):
    """
    Compliance snapshots for several systems in one call.

    Unknown system ids are reported rather than failing the batch.
    """
    known = []
    unknown = []
    for system_id in dict.fromkeys(request.system_ids):
        if await store.get_system(system_id):
            known.append(system_id)
        else:
            unknown.append(system_id)

    mappings = await store.mappings_for_systems(known)
    return BatchComplianceResponse(
        snapshots=compute_many_compliance(known, mappings),
        unknown_system_ids=unknown,
    )


# ============================================================================
# Requirement mappings
# ============================================================================

@app.get("/api/requirements/{mapping_id}", response_model=RequirementMapping)
async def get_requirement(mapping_id: str, store: ComplianceStore = Depends(get_store)):
    return await _require_mapping(store, mapping_id)


@app.patch("/api/requirements/{mapping_id}", response_model=RequirementMapping)
async def update_requirement_status(
    mapping_id: str,
    update: StatusUpdateRequest,
    store: ComplianceStore = Depends(get_store),
):
    """Update a requirement's status, and its notes when provided."""
    updated = await store.update_mapping(
        mapping_id,
        update.status,
        notes=update.notes,
        updated_by=update.updated_by,
    )
    if not updated:
        raise HTTPException(status_code=404, detail=f"Requirement mapping {mapping_id} not found")
    return updated


# ============================================================================
# Evidence
# ============================================================================

@app.get("/api/requirements/{mapping_id}/evidence", response_model=EvidenceListResponse)
async def list_evidence(mapping_id: str, store: ComplianceStore = Depends(get_store)):
    await _require_mapping(store, mapping_id)
    items = await store.list_evidence(mapping_id)
    return EvidenceListResponse(items=[_evidence_response(e) for e in items])


@app.post(
    "/api/requirements/{mapping_id}/evidence",
    response_model=EvidenceResponse,
    status_code=201,
)
async def add_evidence(
    mapping_id: str,
    upload: EvidenceUpload,
    store: ComplianceStore = Depends(get_store),
):
    """
    Attach evidence metadata to a requirement.

    The file itself is uploaded to the external blob store; pass its
    signed URL as storage_url.
    """
    item = await store.add_evidence(mapping_id, upload)
    if not item:
        raise HTTPException(status_code=404, detail=f"Requirement mapping {mapping_id} not found")
    return _evidence_response(item)


@app.post("/api/evidence/{evidence_id}/archive", response_model=EvidenceResponse)
async def archive_evidence(evidence_id: str, store: ComplianceStore = Depends(get_store)):
    """Archive superseded evidence. Archiving is idempotent."""
    item = await store.archive_evidence(evidence_id)
    if not item:
        raise HTTPException(status_code=404, detail=f"Evidence {evidence_id} not found")
    return _evidence_response(item)


@app.delete("/api/evidence/{evidence_id}", status_code=204)
async def delete_evidence(evidence_id: str, store: ComplianceStore = Depends(get_store)):
    if not await store.delete_evidence(evidence_id):
        raise HTTPException(status_code=404, detail=f"Evidence {evidence_id} not found")
    return Response(status_code=204)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


# ============================================================================
# Entry Point
# ============================================================================

def main():
    """Run the API server"""
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=HOST,
        port=PORT,
        log_level=LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
