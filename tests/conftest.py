"""
WatchGraph Test Configuration

Shared pytest fixtures and configuration for all tests.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


# =============================================================================
# Environment Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires running services)"
    )


@pytest.fixture(scope="session")
def project_root_path():
    """Return the project root path."""
    return project_root


# =============================================================================
# Fixtures: Requirement records
# =============================================================================

def make_mapping(status="not_started", system_id="sys-1", **overrides):
    """Build a RequirementMapping with sensible defaults."""
    from shared.models import RequirementMapping

    fields = {
        "system_id": system_id,
        "requirement_id": "REQ-ART9",
        "article": "Art. 9",
        "title": "Risk Management System",
        "description": "Establish a risk management system.",
        "status": status,
    }
    fields.update(overrides)
    return RequirementMapping(**fields)


@pytest.fixture
def mapping_factory():
    """Factory fixture for RequirementMapping instances."""
    return make_mapping


@pytest.fixture
def filter_example_mappings():
    """The two-requirement set used for search/filter behavior."""
    return [
        make_mapping(
            status="completed",
            requirement_id="REQ-ART9",
            article="Art. 9",
            title="Risk Management System",
            description="Establish, implement and maintain a risk management system.",
        ),
        make_mapping(
            status="not_started",
            requirement_id="REQ-ART10",
            article="Art. 10",
            title="Data Governance",
            description="Training data shall be subject to data management practices.",
        ),
    ]


@pytest.fixture
def raw_records():
    """Requirement records as decoded from API JSON."""
    return [
        {"mapping_id": "m-1", "system_id": "sys-1", "status": "completed",
         "title": "Risk Management System", "article": "Art. 9", "description": ""},
        {"mapping_id": "m-2", "system_id": "sys-1", "status": "in_progress",
         "title": "Data Governance", "article": "Art. 10", "description": ""},
        {"mapping_id": "m-3", "system_id": "sys-1", "status": "non_compliant",
         "title": "Human Oversight", "article": "Art. 14", "description": ""},
        {"mapping_id": "m-4", "system_id": "sys-1", "status": "not_started",
         "title": "Record-Keeping", "article": "Art. 12", "description": ""},
    ]


# =============================================================================
# Fixtures: API
# =============================================================================

@pytest.fixture
def store():
    """A fresh, empty in-memory store."""
    from api.store import ComplianceStore
    return ComplianceStore()


@pytest.fixture
def api_client(store):
    """FastAPI test client bound to a fresh store."""
    from fastapi.testclient import TestClient
    from api.main import app, get_store

    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_registration():
    """Registration payload for a high-risk system."""
    return {
        "name": "Hospital Triage System",
        "risk_category": "high",
        "organization": "St. Example Hospital",
        "department": "Emergency Medicine",
        "owner_email": "owner@example.org",
        "description": "Prioritizes emergency room patients.",
    }


# =============================================================================
# Fixtures: Auth
# =============================================================================

class FakeIdentityProvider:
    """Identity provider double that records calls."""

    def __init__(self, lifetime=timedelta(hours=1)):
        self.lifetime = lifetime
        self.sign_ins = 0
        self.refreshes = 0
        self.sign_outs = []
        self.fail_refresh = False

    async def sign_in(self, email, password):
        from api.session import TokenGrant
        self.sign_ins += 1
        return TokenGrant(
            access_token=f"access-{self.sign_ins}",
            expires_at=datetime.now() + self.lifetime,
            refresh_token="refresh-token",
        )

    async def refresh(self, refresh_token):
        from api.session import TokenGrant
        if self.fail_refresh:
            raise RuntimeError("refresh rejected")
        self.refreshes += 1
        return TokenGrant(
            access_token=f"refreshed-{self.refreshes}",
            expires_at=datetime.now() + timedelta(hours=1),
        )

    async def sign_out(self, access_token):
        self.sign_outs.append(access_token)


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def provider_factory():
    """Build identity providers with a custom token lifetime."""
    return FakeIdentityProvider
