"""
Unit Tests for the WatchGraph MCP Server

This module tests all 4 MCP tools through their implementation functions:
1. get_system_compliance - Snapshot for one system
2. get_portfolio_compliance - Weighted compliance across systems
3. search_requirements - Text and status search
4. get_catalogue_requirements - Catalogue lookup by risk level

The API is replaced by httpx.MockTransport, so no server is needed.
Tests cover:
- Valid inputs produce expected outputs
- Invalid statuses and API failures are returned as error entries
- Return value structure matches documentation
"""

import httpx
import pytest

import mcp_server.server as server_module
from api.client import WatchGraphClient

get_system_compliance_impl = server_module.get_system_compliance_impl
get_portfolio_compliance_impl = server_module.get_portfolio_compliance_impl
search_requirements_impl = server_module.search_requirements_impl
get_catalogue_requirements_impl = server_module.get_catalogue_requirements_impl


SYSTEM = {"id": "sys-1", "name": "Triage", "organization": "Hospital", "risk_category": "high"}


def api_handler(requirements):
    """Serve one system with the given requirement records."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/systems":
            return httpx.Response(200, json=[SYSTEM])
        if path == "/api/systems/sys-1":
            return httpx.Response(200, json=SYSTEM)
        if path == "/api/systems/sys-1/requirements":
            return httpx.Response(200, json=requirements)
        return httpx.Response(404, json={"detail": f"System {path.split('/')[3]} not found"})

    return handler


@pytest.fixture
def mcp_client(raw_records):
    return WatchGraphClient(
        base_url="http://watchgraph.test",
        transport=httpx.MockTransport(api_handler(raw_records)),
    )


@pytest.fixture
def broken_client(raw_records):
    records = [dict(r) for r in raw_records]
    records[1]["status"] = "archived"
    return WatchGraphClient(
        base_url="http://watchgraph.test",
        transport=httpx.MockTransport(api_handler(records)),
    )


# =============================================================================
# Tool registration
# =============================================================================

class TestToolRegistration:
    """The four tools are exposed by the server module."""

    def test_tools_defined(self):
        for name in (
            "get_system_compliance",
            "get_portfolio_compliance",
            "search_requirements",
            "get_catalogue_requirements",
        ):
            assert hasattr(server_module, name)

    def test_server_name(self):
        assert server_module.mcp.name == "watchgraph"


# =============================================================================
# Test Tool 1: get_system_compliance
# =============================================================================

class TestGetSystemCompliance:
    """Tests for the get_system_compliance MCP tool."""

    @pytest.mark.asyncio
    async def test_snapshot(self, mcp_client):
        result = await get_system_compliance_impl("sys-1", client=mcp_client)

        assert result["system_id"] == "sys-1"
        assert result["system_name"] == "Triage"
        assert result["risk_category"] == "high"
        assert result["total_requirements"] == 4
        assert result["compliance_percentage"] == 25.0
        assert result["status_breakdown"] == {
            "not_started": 1, "in_progress": 1, "completed": 1, "non_compliant": 1,
        }
        assert "error" not in result

    @pytest.mark.asyncio
    async def test_unknown_system(self, mcp_client):
        result = await get_system_compliance_impl("ghost", client=mcp_client)

        assert result["system_id"] == "ghost"
        assert "not found" in result["error"]

    @pytest.mark.asyncio
    async def test_invalid_status_reported(self, broken_client):
        result = await get_system_compliance_impl("sys-1", client=broken_client)

        assert "archived" in result["error"]
        assert "m-2" in result["error"]


# =============================================================================
# Test Tool 2: get_portfolio_compliance
# =============================================================================

class TestGetPortfolioCompliance:
    """Tests for the get_portfolio_compliance MCP tool."""

    @pytest.mark.asyncio
    async def test_portfolio(self, mcp_client):
        result = await get_portfolio_compliance_impl(client=mcp_client)

        assert result["portfolio"]["total_systems"] == 1
        assert result["portfolio"]["overall_compliance_percentage"] == 25.0
        assert result["systems"] == [{
            "id": "sys-1",
            "name": "Triage",
            "risk_category": "high",
            "compliance_percentage": 25.0,
            "total_requirements": 4,
        }]
        assert result["failed_system_ids"] == []

    @pytest.mark.asyncio
    async def test_degraded_system(self, broken_client):
        result = await get_portfolio_compliance_impl(client=broken_client)

        assert result["failed_system_ids"] == ["sys-1"]
        assert result["portfolio"]["total_requirements"] == 0
        assert result["portfolio"]["systems_unavailable"] == 1
        assert result["portfolio"]["systems_without_requirements"] == 0
        assert result["systems"][0]["compliance_percentage"] == 0.0

    @pytest.mark.asyncio
    async def test_api_down(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = WatchGraphClient(
            base_url="http://watchgraph.test", transport=httpx.MockTransport(handler)
        )
        result = await get_portfolio_compliance_impl(client=client)

        assert result["portfolio"] is None
        assert result["systems"] == []
        assert "error" in result


# =============================================================================
# Test Tool 3: search_requirements
# =============================================================================

class TestSearchRequirements:
    """Tests for the search_requirements MCP tool."""

    @pytest.mark.asyncio
    async def test_search_all(self, mcp_client):
        result = await search_requirements_impl("sys-1", client=mcp_client)

        assert result["total_matches"] == 4
        assert result["query"] == ""
        assert result["status"] == "all"

    @pytest.mark.asyncio
    async def test_search_by_text(self, mcp_client):
        result = await search_requirements_impl("sys-1", query="OVERSIGHT", client=mcp_client)

        assert result["total_matches"] == 1
        assert result["results"][0] == {
            "mapping_id": "m-3",
            "article": "Art. 14",
            "title": "Human Oversight",
            "status": "non_compliant",
            "notes": None,
        }

    @pytest.mark.asyncio
    async def test_search_by_status(self, mcp_client):
        result = await search_requirements_impl("sys-1", status="in_progress", client=mcp_client)
        assert [r["mapping_id"] for r in result["results"]] == ["m-2"]

    @pytest.mark.asyncio
    async def test_text_and_status_combined(self, mcp_client):
        result = await search_requirements_impl(
            "sys-1", query="governance", status="completed", client=mcp_client
        )
        assert result["total_matches"] == 0

    @pytest.mark.asyncio
    async def test_invalid_status_filter(self, mcp_client):
        result = await search_requirements_impl("sys-1", status="archived", client=mcp_client)

        assert result["results"] == []
        assert "archived" in result["error"]

    @pytest.mark.asyncio
    async def test_unknown_system(self, mcp_client):
        result = await search_requirements_impl("ghost", client=mcp_client)
        assert result["total_matches"] == 0
        assert "error" in result


# =============================================================================
# Test Tool 4: get_catalogue_requirements
# =============================================================================

class TestGetCatalogueRequirements:
    """Tests for the get_catalogue_requirements MCP tool."""

    def test_high_risk(self):
        result = get_catalogue_requirements_impl("high")

        assert result["risk_level"] == "high"
        assert result["total"] == len(result["requirements"])
        articles = [r["article"] for r in result["requirements"]]
        assert "Art. 9" in articles
        assert "Art. 14" in articles

    def test_case_insensitive(self):
        assert get_catalogue_requirements_impl("LIMITED")["risk_level"] == "limited"

    def test_requirement_structure(self):
        req = get_catalogue_requirements_impl("minimal")["requirements"][0]
        assert set(req) == {"requirement_id", "article", "title", "description"}

    def test_unknown_level(self):
        result = get_catalogue_requirements_impl("severe")

        assert result["requirements"] == []
        assert result["total"] == 0
        assert "severe" in result["error"]

    @pytest.mark.parametrize("level,prohibited,chapter_iii", [
        ("unacceptable", True, False),
        ("high", False, True),
        ("limited", False, False),
        ("minimal", False, False),
    ])
    def test_tier_obligations(self, level, prohibited, chapter_iii):
        result = get_catalogue_requirements_impl(level)

        assert result["prohibited"] is prohibited
        assert result["requires_chapter_iii_compliance"] is chapter_iii


# =============================================================================
# Client scope
# =============================================================================

class TestClientScope:
    """Tools open their own client against the configured API URL."""

    @pytest.mark.asyncio
    async def test_uses_configured_url(self, monkeypatch):
        monkeypatch.setattr(server_module, "API_URL", "http://configured.test:9000")

        async with server_module._client_scope(None) as client:
            assert str(client._http.base_url).startswith("http://configured.test:9000")

    @pytest.mark.asyncio
    async def test_given_client_used_as_is(self, mcp_client):
        async with server_module._client_scope(mcp_client) as client:
            assert client is mcp_client
