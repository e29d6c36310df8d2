"""
WatchGraph Configuration

This is the SINGLE source of truth for runtime settings. Values come from
environment variables (a .env file is loaded if present) with defaults
suitable for local development.

Usage:
    from api.config import API_URL, REQUEST_TIMEOUT
"""

import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# ============================================================================
# API Server
# ============================================================================

HOST = os.getenv("WATCHGRAPH_HOST", "0.0.0.0")
PORT = int(os.getenv("WATCHGRAPH_PORT", "8001"))
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ============================================================================
# API Client
# ============================================================================

API_URL = os.getenv("WATCHGRAPH_API_URL", "http://localhost:8001")
REQUEST_TIMEOUT = float(os.getenv("WATCHGRAPH_REQUEST_TIMEOUT", "10"))

# Refresh access tokens this many seconds before they expire
TOKEN_REFRESH_SKEW = int(os.getenv("WATCHGRAPH_TOKEN_REFRESH_SKEW", "60"))

# ============================================================================
# Evidence
# ============================================================================

EVIDENCE_EXPIRY_WARNING_DAYS = int(os.getenv("EVIDENCE_EXPIRY_WARNING_DAYS", "30"))
