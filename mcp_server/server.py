"""
WatchGraph MCP Server

This is the Model Context Protocol server that lets agents read compliance
data from a running WatchGraph API. It provides 4 tools:

TOOLS:
  1. get_system_compliance - Compliance snapshot for one AI system
  2. get_portfolio_compliance - Weighted compliance across all systems
  3. search_requirements - Search a system's requirements by text and status
  4. get_catalogue_requirements - Catalogue entries for a risk level

Metrics are computed by the aggregation package from the requirement
records the API returns, so agents see the same numbers as the dashboard.

Usage:
    # Run as MCP server
    python -m mcp_server.server

    # Or import for testing
    from mcp_server.server import mcp
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx
from fastmcp import FastMCP

from aggregation import (
    InvalidStatusError,
    compute_system_compliance,
    filter_mappings,
)
from api.client import WatchGraphAPIError, WatchGraphClient
from api.config import API_URL
from shared.catalogue import requirements_for_risk_level
from shared.models import RiskLevel

# Configure logging
logger = logging.getLogger(__name__)

# Errors that are reported back to the agent instead of raised
TOOL_ERRORS = (WatchGraphAPIError, httpx.HTTPError, InvalidStatusError)

# Create FastMCP server
mcp = FastMCP(
    name="watchgraph",
    instructions="WatchGraph compliance server - EU AI Act requirement tracking for AI systems",
)


@asynccontextmanager
async def _client_scope(client: Optional[WatchGraphClient]) -> AsyncIterator[WatchGraphClient]:
    """Use the given client, or open one against WATCHGRAPH_API_URL."""
    if client is not None:
        yield client
        return
    async with WatchGraphClient(base_url=API_URL) as owned:
        yield owned


# =============================================================================
# Tool 1: get_system_compliance
# =============================================================================

async def get_system_compliance_impl(
    system_id: str,
    client: Optional[WatchGraphClient] = None,
) -> Dict[str, Any]:
    """
    Compute the compliance snapshot of one AI system.

    Returns:
        Dictionary with:
            - system_id, system_name, risk_category
            - total_requirements: int
            - status_breakdown: {status: count}
            - compliance_percentage: float (0-100, one decimal)
            - error: str (only when the lookup failed)
    """
    try:
        async with _client_scope(client) as api:
            system = await api.get_system(system_id)
            records = await api.get_system_requirements(system_id)
            snapshot = compute_system_compliance(records, system_id=system_id)
    except TOOL_ERRORS as e:
        logger.warning(f"get_system_compliance failed for {system_id}: {e}")
        return {"system_id": system_id, "error": str(e)}

    return {
        "system_id": system_id,
        "system_name": system.name,
        "risk_category": system.risk_category.value,
        **snapshot.model_dump(mode="json", exclude={"system_id"}),
    }


@mcp.tool()
async def get_system_compliance(system_id: str) -> Dict[str, Any]:
    """Get the compliance snapshot for one AI system."""
    return await get_system_compliance_impl(system_id)


# =============================================================================
# Tool 2: get_portfolio_compliance
# =============================================================================

async def get_portfolio_compliance_impl(
    client: Optional[WatchGraphClient] = None,
) -> Dict[str, Any]:
    """
    Compute requirement-weighted compliance across all systems.

    Systems whose requirements could not be fetched are listed under
    failed_system_ids and left out of the weighted figures.

    Returns:
        Dictionary with:
            - portfolio: PortfolioSnapshot fields
            - systems: list of {id, name, risk_category, compliance_percentage,
              total_requirements}
            - failed_system_ids: list of str
    """
    try:
        async with _client_scope(client) as api:
            view = await api.fetch_portfolio()
    except TOOL_ERRORS as e:
        logger.warning(f"get_portfolio_compliance failed: {e}")
        return {"portfolio": None, "systems": [], "failed_system_ids": [], "error": str(e)}

    systems = []
    for system in view.systems:
        snapshot = view.snapshots[system.id]
        systems.append({
            "id": system.id,
            "name": system.name,
            "risk_category": system.risk_category.value,
            "compliance_percentage": snapshot.compliance_percentage,
            "total_requirements": snapshot.total_requirements,
        })

    return {
        "portfolio": view.portfolio.model_dump(mode="json"),
        "systems": systems,
        "failed_system_ids": view.failed_system_ids,
    }


@mcp.tool()
async def get_portfolio_compliance() -> Dict[str, Any]:
    """Get requirement-weighted compliance across all AI systems."""
    return await get_portfolio_compliance_impl()


# =============================================================================
# Tool 3: search_requirements
# =============================================================================

async def search_requirements_impl(
    system_id: str,
    query: str = "",
    status: str = "all",
    client: Optional[WatchGraphClient] = None,
) -> Dict[str, Any]:
    """
    Search a system's requirements.

    A requirement matches when its status equals the filter (or the filter
    is "all") and the query appears, case-insensitively, in its title,
    article or description.

    Returns:
        Dictionary with:
            - results: list of {mapping_id, article, title, status, notes}
            - total_matches: int
            - query, status: echoed back
    """
    try:
        async with _client_scope(client) as api:
            records = await api.get_system_requirements(system_id)
        matches = filter_mappings(records, query=query, status=status)
    except TOOL_ERRORS as e:
        return {
            "results": [],
            "total_matches": 0,
            "query": query,
            "status": status,
            "error": str(e),
        }

    results = [
        {
            "mapping_id": rec.get("mapping_id"),
            "article": rec.get("article"),
            "title": rec.get("title"),
            "status": rec.get("status"),
            "notes": rec.get("notes"),
        }
        for rec in matches
    ]
    return {
        "results": results,
        "total_matches": len(results),
        "query": query,
        "status": status,
    }


@mcp.tool()
async def search_requirements(
    system_id: str,
    query: str = "",
    status: str = "all",
) -> Dict[str, Any]:
    """Search a system's requirements by text and status."""
    return await search_requirements_impl(system_id, query, status)


# =============================================================================
# Tool 4: get_catalogue_requirements
# =============================================================================

def get_catalogue_requirements_impl(risk_level: str) -> Dict[str, Any]:
    """
    List the catalogue requirements assigned to systems of a risk level.

    Returns:
        Dictionary with risk_level, prohibited,
        requires_chapter_iii_compliance, requirements (list of
        {requirement_id, article, title, description}) and total. An
        unknown risk level returns an error entry and an empty list.
    """
    try:
        level = RiskLevel(risk_level.lower())
    except ValueError:
        return {
            "risk_level": risk_level,
            "requirements": [],
            "total": 0,
            "error": f"Unknown risk level: {risk_level}",
        }

    requirements = [
        {
            "requirement_id": req.requirement_id,
            "article": req.article,
            "title": req.title,
            "description": req.description,
        }
        for req in requirements_for_risk_level(level)
    ]
    return {
        "risk_level": level.value,
        "prohibited": level.is_prohibited,
        "requires_chapter_iii_compliance": level.requires_chapter_iii_compliance,
        "requirements": requirements,
        "total": len(requirements),
    }


@mcp.tool()
def get_catalogue_requirements(risk_level: str) -> Dict[str, Any]:
    """List the EU AI Act requirements that apply to a risk level."""
    return get_catalogue_requirements_impl(risk_level)


def main():
    """Run the MCP server"""
    mcp.run()


# =============================================================================
# Main entry point
# =============================================================================

if __name__ == "__main__":
    main()
