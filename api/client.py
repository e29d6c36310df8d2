"""
WatchGraph API Client

Async client for the WatchGraph API. Used by dashboards, scripts and the
MCP server. Credentials are supplied through an explicit AuthSession
rather than global state.

The portfolio view fans out one requirements request per system. A
failing or malformed per-system response degrades that one system to an
empty snapshot and never fails the whole view.

Usage:
    async with WatchGraphClient(session=session) as client:
        view = await client.fetch_portfolio()
        print(view.portfolio.overall_compliance_percentage)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from aggregation import (
    InvalidStatusError,
    compute_portfolio_compliance,
    compute_system_compliance,
)
from api.config import API_URL, REQUEST_TIMEOUT
from api.models import EvidenceResponse
from api.session import AuthSession
from shared.models import (
    AISystem,
    ComplianceSnapshot,
    MappingStatus,
    PortfolioSnapshot,
    RequirementMapping,
    SystemRegistration,
)

logger = logging.getLogger(__name__)


class WatchGraphAPIError(Exception):
    """The API answered with a non-success status code."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API error {status_code}: {detail}")


@dataclass
class PortfolioView:
    """Everything a portfolio dashboard needs, fetched in one go"""

    systems: list[AISystem]
    snapshots: dict[str, ComplianceSnapshot]
    portfolio: PortfolioSnapshot
    failed_system_ids: list[str] = field(default_factory=list)


class WatchGraphClient:
    """Async HTTP client for the WatchGraph API."""

    def __init__(
        self,
        base_url: str = API_URL,
        session: Optional[AuthSession] = None,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "WatchGraphClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _headers(self) -> dict[str, str]:
        if self.session is None:
            return {"Content-Type": "application/json"}
        return await self.session.auth_headers()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._http.request(method, path, headers=await self._headers(), **kwargs)
        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            detail = body.get("detail", body) if isinstance(body, dict) else body
            raise WatchGraphAPIError(response.status_code, str(detail))
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise WatchGraphAPIError(
                response.status_code, f"Malformed JSON response from {path}"
            ) from None

    # ------------------------------------------------------------------
    # Systems
    # ------------------------------------------------------------------

    async def list_systems(self) -> list[AISystem]:
        data = await self._request("GET", "/api/systems")
        return [AISystem.model_validate(item) for item in data]

    async def get_system(self, system_id: str) -> AISystem:
        return AISystem.model_validate(await self._request("GET", f"/api/systems/{system_id}"))

    async def register_system(self, registration: SystemRegistration) -> AISystem:
        data = await self._request(
            "POST", "/api/systems", json=registration.model_dump(mode="json")
        )
        return AISystem.model_validate(data)

    async def assign_requirements(self, system_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/api/systems/{system_id}/requirements/assign")

    # ------------------------------------------------------------------
    # Requirements and compliance
    # ------------------------------------------------------------------

    async def get_system_requirements(
        self,
        system_id: str,
        query: str = "",
        status: str = "all",
    ) -> list[dict[str, Any]]:
        """
        Fetch a system's requirement records.

        Records are returned as decoded JSON so that a malformed status
        reaches the aggregator and raises InvalidStatusError there.
        """
        params = {}
        if query:
            params["q"] = query
        if status != "all":
            params["status"] = status
        return await self._request(
            "GET", f"/api/systems/{system_id}/requirements", params=params
        )

    async def get_system_compliance(self, system_id: str) -> ComplianceSnapshot:
        data = await self._request("GET", f"/api/systems/{system_id}/compliance")
        return ComplianceSnapshot.model_validate(data)

    async def get_many_compliance(self, system_ids: list[str]) -> dict[str, ComplianceSnapshot]:
        """Batched compliance lookup. Unknown ids are left out of the result."""
        data = await self._request(
            "POST", "/api/compliance/batch", json={"system_ids": system_ids}
        )
        return {
            system_id: ComplianceSnapshot.model_validate(snapshot)
            for system_id, snapshot in data["snapshots"].items()
        }

    async def get_dashboard_stats(self) -> PortfolioSnapshot:
        return PortfolioSnapshot.model_validate(await self._request("GET", "/api/dashboard/stats"))

    async def update_requirement_status(
        self,
        mapping_id: str,
        status: MappingStatus,
        notes: Optional[str] = None,
    ) -> RequirementMapping:
        payload: dict[str, Any] = {"status": MappingStatus(status).value}
        if notes is not None:
            payload["notes"] = notes
        if self.session is not None and self.session.email:
            payload["updated_by"] = self.session.email
        data = await self._request("PATCH", f"/api/requirements/{mapping_id}", json=payload)
        return RequirementMapping.model_validate(data)

    async def list_evidence(self, mapping_id: str) -> list[EvidenceResponse]:
        data = await self._request("GET", f"/api/requirements/{mapping_id}/evidence")
        return [EvidenceResponse.model_validate(item) for item in data.get("items", [])]

    async def archive_evidence(self, evidence_id: str) -> EvidenceResponse:
        data = await self._request("POST", f"/api/evidence/{evidence_id}/archive")
        return EvidenceResponse.model_validate(data)

    # ------------------------------------------------------------------
    # Portfolio
    # ------------------------------------------------------------------

    async def _system_snapshot(self, system_id: str) -> ComplianceSnapshot:
        records = await self.get_system_requirements(system_id)
        if not isinstance(records, list):
            raise WatchGraphAPIError(
                200, f"Expected a list of requirements for system {system_id}"
            )
        return compute_system_compliance(records, system_id=system_id)

    async def fetch_portfolio(self) -> PortfolioView:
        """
        Fetch all systems and compute their compliance concurrently.

        A system whose requirements cannot be fetched, or whose records
        carry an invalid status, is shown with an empty snapshot and listed
        in failed_system_ids. Failing to list the systems themselves still
        raises.
        """
        systems = await self.list_systems()
        results = await asyncio.gather(
            *(self._system_snapshot(s.id) for s in systems),
            return_exceptions=True,
        )

        snapshots: dict[str, ComplianceSnapshot] = {}
        failed: list[str] = []
        for system, result in zip(systems, results):
            if isinstance(result, (httpx.HTTPError, WatchGraphAPIError, InvalidStatusError)):
                logger.warning(f"Compliance unavailable for system {system.id}: {result}")
                failed.append(system.id)
                snapshots[system.id] = ComplianceSnapshot(system_id=system.id)
            elif isinstance(result, BaseException):
                raise result
            else:
                snapshots[system.id] = result

        # Failed systems are excluded from the weighted figures, not counted as 0%
        counted = {sid: snap for sid, snap in snapshots.items() if sid not in failed}
        portfolio = compute_portfolio_compliance(
            counted, total_systems=len(systems), failed_systems=len(failed)
        )
        return PortfolioView(
            systems=systems,
            snapshots=snapshots,
            portfolio=portfolio,
            failed_system_ids=failed,
        )
