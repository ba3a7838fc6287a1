"""Pytest fixtures and configuration for Partner Portal PDF service tests."""

import os
import pytest
from typing import Any, Dict, Generator
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("GEMINI_API_KEY", "gemini-test")
os.environ.setdefault("AI_DRAFTING_ENABLED", "false")
os.environ.setdefault("DEBUG", "true")

from partner_portal.models import DraftResult, ProposalDocument  # noqa: E402


# ===========================================
# Sample Data Fixtures
# ===========================================

@pytest.fixture
def minimal_proposal_data() -> Dict[str, Any]:
    """The smallest complete proposal: one entry per section."""
    return {
        "id": "prop_0000abc123",
        "title": "Pilot",
        "client": "Acme",
        "createdAt": "2025-01-15T10:30:00Z",
        "currency": "USD",
        "content": {
            "executiveSummary": "Short pilot.",
            "projectScope": ["Build MVP"],
            "timeline": [
                {"period": "Week 1", "title": "Build", "description": "Build it"}
            ],
            "investment": [
                {"name": "Dev", "description": "Dev work", "amount": 5000}
            ],
            "deliverables": ["Working demo"],
            "technologyStack": {
                "frontend": "React",
                "backend": "Node",
                "infrastructure": "AWS"
            },
            "termsAndConditions": ["Net 30"]
        }
    }


@pytest.fixture
def minimal_document(minimal_proposal_data) -> ProposalDocument:
    """Minimal proposal as a validated document."""
    return ProposalDocument.model_validate(minimal_proposal_data)


@pytest.fixture
def long_timeline_document(minimal_proposal_data) -> ProposalDocument:
    """Proposal with 40 timeline phases of roughly three lines each."""
    description = (
        "Workshops with business stakeholders to confirm requirements, followed by "
        "configuration of the platform, integration with the client's existing systems, "
        "iterative user acceptance testing and a written summary of outcomes for review."
    )
    data = dict(minimal_proposal_data)
    data["content"] = dict(data["content"])
    data["content"]["timeline"] = [
        {"period": f"Week {i}", "title": f"Phase {i}", "description": description}
        for i in range(1, 41)
    ]
    return ProposalDocument.model_validate(data)


@pytest.fixture
def proposal_row(minimal_proposal_data) -> Dict[str, Any]:
    """Sample proposals table row from Supabase."""
    content = minimal_proposal_data["content"]
    return {
        "id": minimal_proposal_data["id"],
        "partner_id": "partner_1",
        "title": "Pilot",
        "client_name": "Acme",
        "status": "approved",
        "currency": "USD",
        "executive_summary": content["executiveSummary"],
        "project_scope": content["projectScope"],
        "timeline_phases": content["timeline"],
        "investment_items": content["investment"],
        "deliverables": content["deliverables"],
        "technology_stack": content["technologyStack"],
        "terms_and_conditions": content["termsAndConditions"],
        "created_at": minimal_proposal_data["createdAt"],
    }


# ===========================================
# Fake Drafters
# ===========================================

class FailingDrafter:
    """Drafter whose call always raises."""

    def __init__(self):
        self.calls = 0

    async def draft(self, document):
        self.calls += 1
        raise RuntimeError("Gemini unavailable")


class ErrDrafter:
    """Drafter that reports failure through its result."""

    async def draft(self, document):
        return DraftResult.err("Invalid document structure returned from AI")


class AlteringDrafter:
    """Drafter that rewrites prose and also tampers with investment lines."""

    async def draft(self, document):
        content = document.content
        altered = content.model_copy(update={
            "executive_summary": "A transformative pilot for Acme.",
            "investment": [
                item.model_copy(update={
                    "name": "Renamed",
                    "amount": 1,
                    "description": "Expanded description"
                })
                for item in content.investment
            ],
        })
        return DraftResult.ok(altered)


@pytest.fixture
def failing_drafter() -> FailingDrafter:
    return FailingDrafter()


@pytest.fixture
def err_drafter() -> ErrDrafter:
    return ErrDrafter()


@pytest.fixture
def altering_drafter() -> AlteringDrafter:
    return AlteringDrafter()


# ===========================================
# Mock Fixtures
# ===========================================

@pytest.fixture
def mock_repository(proposal_row):
    """Mock proposal store returning the sample row."""
    with patch(
        "partner_portal.core.database.proposal_repository.get_proposal_row",
        new_callable=AsyncMock
    ) as mock:
        mock.return_value = proposal_row
        yield mock


# ===========================================
# Client Fixtures
# ===========================================

@pytest.fixture
def client(mock_repository) -> Generator[TestClient, None, None]:
    """Test client with the proposal store mocked and drafting disabled."""
    from partner_portal.main import app
    from partner_portal.api.proposals import get_drafting_service

    app.dependency_overrides[get_drafting_service] = lambda: None
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ===========================================
# Pytest Configuration
# ===========================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
