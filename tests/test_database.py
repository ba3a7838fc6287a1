"""Tests for the Supabase proposal store."""

import asyncio
from unittest.mock import MagicMock

import pytest

from partner_portal.core.database import (
    ProposalRepository,
    has_content,
    row_to_document,
)


@pytest.fixture
def supabase_client(proposal_row) -> MagicMock:
    """Mock Supabase client whose query chain returns the sample row."""
    client = MagicMock()
    query = client.table.return_value.select.return_value
    query.eq.return_value = query
    query.limit.return_value.execute.return_value = MagicMock(data=[proposal_row])
    return client


@pytest.fixture
def repository(supabase_client) -> ProposalRepository:
    repo = ProposalRepository()
    repo._client = supabase_client
    return repo


class TestRowMapping:
    """Tests for row_to_document and has_content."""

    def test_row_to_document(self, proposal_row, minimal_document):
        document = row_to_document(proposal_row)

        assert document.id == "prop_0000abc123"
        assert document.client == "Acme"
        assert document.content == minimal_document.content

    def test_defaults_for_missing_columns(self, proposal_row):
        row = {
            **proposal_row,
            "title": None,
            "currency": None,
            "technology_stack": None,
            "deliverables": None,
        }

        document = row_to_document(row)

        assert document.title == "Untitled Proposal"
        assert document.currency == "USD"
        assert document.content.technology_stack.frontend == ""
        assert document.content.deliverables == []

    @pytest.mark.parametrize("summary, expected", [
        ("Short pilot.", True),
        ("", False),
        ("   ", False),
        (None, False),
    ])
    def test_has_content(self, proposal_row, summary, expected):
        assert has_content({**proposal_row, "executive_summary": summary}) is expected


class TestProposalRepository:
    """Tests for ProposalRepository queries."""

    def test_get_proposal_row(self, repository, supabase_client, proposal_row):
        row = asyncio.run(repository.get_proposal_row("prop_0000abc123"))

        assert row == proposal_row
        supabase_client.table.assert_called_once_with("proposals")
        query = supabase_client.table.return_value.select.return_value
        query.eq.assert_called_once_with("id", "prop_0000abc123")

    def test_partner_scope(self, repository, supabase_client):
        asyncio.run(repository.get_proposal_row("prop_0000abc123", partner_id="partner_1"))

        query = supabase_client.table.return_value.select.return_value
        assert [c.args for c in query.eq.call_args_list] == [
            ("id", "prop_0000abc123"),
            ("partner_id", "partner_1"),
        ]

    def test_missing_row(self, repository, supabase_client):
        query = supabase_client.table.return_value.select.return_value
        query.limit.return_value.execute.return_value = MagicMock(data=[])

        assert asyncio.run(repository.get_proposal_row("missing")) is None
        assert asyncio.run(repository.get_proposal("missing")) is None

    def test_get_proposal_skips_rows_without_content(self, repository, supabase_client, proposal_row):
        query = supabase_client.table.return_value.select.return_value
        query.limit.return_value.execute.return_value = MagicMock(
            data=[{**proposal_row, "executive_summary": ""}]
        )

        assert asyncio.run(repository.get_proposal("prop_0000abc123")) is None

    def test_get_proposal(self, repository, minimal_document):
        document = asyncio.run(repository.get_proposal("prop_0000abc123"))

        assert document.reference_code == "PROP-ABC123"
        assert document.content == minimal_document.content

    def test_missing_credentials(self, monkeypatch):
        from partner_portal.core.config import Settings

        monkeypatch.setattr(
            "partner_portal.core.database.get_settings",
            lambda: Settings(SUPABASE_URL="", SUPABASE_KEY="")
        )

        with pytest.raises(ValueError, match="Supabase credentials"):
            ProposalRepository().client
