"""
WatchGraph MCP Server

This package provides the Model Context Protocol server that exposes
WatchGraph compliance data to agents.

The MCP server provides 4 tools:
  1. get_system_compliance - Compliance snapshot for one AI system
  2. get_portfolio_compliance - Weighted compliance across all systems
  3. search_requirements - Search a system's requirements
  4. get_catalogue_requirements - Catalogue entries for a risk level

Usage:
    # Run as MCP server
    python -m mcp_server.server
"""

from .server import (
    get_catalogue_requirements,
    get_portfolio_compliance,
    get_system_compliance,
    mcp,
    search_requirements,
)

__all__ = [
    "mcp",
    "get_system_compliance",
    "get_portfolio_compliance",
    "search_requirements",
    "get_catalogue_requirements",
]
