"""Tests for proposal export API endpoints."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from partner_portal.api.proposals import EXPORT_FAILED_MESSAGE, get_drafting_service
from partner_portal.pdf.layout import PDFGenerationError


class TestExportPdf:
    """Tests for GET /api/proposals/{proposal_id}/export-pdf."""

    def test_export_success(self, client: TestClient, mock_repository):
        """Returns the PDF as an attachment named after the proposal."""
        response = client.get("/api/proposals/prop_0000abc123/export-pdf")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert (
            response.headers["content-disposition"]
            == 'attachment; filename="Proposal-ABC123-Pilot.pdf"'
        )
        assert int(response.headers["content-length"]) == len(response.content)
        assert response.content.startswith(b"%PDF")
        mock_repository.assert_awaited_once_with("prop_0000abc123", None)

    def test_export_scoped_to_partner(self, client: TestClient, mock_repository):
        response = client.get(
            "/api/proposals/prop_0000abc123/export-pdf",
            params={"partner_id": "partner_1"}
        )

        assert response.status_code == 200
        mock_repository.assert_awaited_once_with("prop_0000abc123", "partner_1")

    def test_export_not_found(self, client: TestClient, mock_repository):
        mock_repository.return_value = None

        response = client.get("/api/proposals/missing/export-pdf")

        assert response.status_code == 404
        assert "missing" in response.json()["detail"]

    def test_export_without_generated_content(self, client: TestClient, mock_repository, proposal_row):
        mock_repository.return_value = {**proposal_row, "executive_summary": None}

        response = client.get("/api/proposals/prop_0000abc123/export-pdf")

        assert response.status_code == 409

    def test_export_failure_hides_details(self, client: TestClient):
        """Output failures return a generic message."""
        with patch(
            "partner_portal.services.proposal_export.ProposalComposer.generate",
            new_callable=AsyncMock
        ) as mock_generate:
            mock_generate.side_effect = PDFGenerationError("disk full at /tmp/x")

            response = client.get("/api/proposals/prop_0000abc123/export-pdf")

        assert response.status_code == 500
        assert response.json()["detail"] == EXPORT_FAILED_MESSAGE

    def test_store_failure_hides_details(self, client: TestClient, mock_repository):
        mock_repository.side_effect = RuntimeError("connection reset")

        response = client.get("/api/proposals/prop_0000abc123/export-pdf")

        assert response.status_code == 500
        assert response.json()["detail"] == EXPORT_FAILED_MESSAGE

    def test_drafting_failure_still_exports(self, client: TestClient, failing_drafter):
        """A failing drafter never fails the export."""
        from partner_portal.main import app

        app.dependency_overrides[get_drafting_service] = lambda: failing_drafter

        response = client.get(
            "/api/proposals/prop_0000abc123/export-pdf",
            params={"ai_drafting": "true"}
        )

        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")
        assert failing_drafter.calls == 1

    def test_drafting_disabled_by_query(self, client: TestClient, failing_drafter):
        from partner_portal.main import app

        app.dependency_overrides[get_drafting_service] = lambda: failing_drafter

        response = client.get(
            "/api/proposals/prop_0000abc123/export-pdf",
            params={"ai_drafting": "false"}
        )

        assert response.status_code == 200
        assert failing_drafter.calls == 0


class TestRenderPdf:
    """Tests for POST /api/proposals/render-pdf."""

    def test_render_success(self, client: TestClient, minimal_proposal_data):
        response = client.post("/api/proposals/render-pdf", json=minimal_proposal_data)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "Proposal-ABC123-Pilot.pdf" in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_render_legacy_string_entries(self, client: TestClient, minimal_proposal_data):
        minimal_proposal_data["content"]["investment"] = ["Setup fee"]

        response = client.post("/api/proposals/render-pdf", json=minimal_proposal_data)

        assert response.status_code == 200

    def test_render_missing_section(self, client: TestClient, minimal_proposal_data):
        del minimal_proposal_data["content"]["executiveSummary"]

        response = client.post("/api/proposals/render-pdf", json=minimal_proposal_data)

        assert response.status_code == 422

    def test_render_invalid_currency(self, client: TestClient, minimal_proposal_data):
        minimal_proposal_data["currency"] = "DOLLARS"

        response = client.post("/api/proposals/render-pdf", json=minimal_proposal_data)

        assert response.status_code == 422


class TestRootEndpoints:
    """Tests for root-level endpoints."""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "partner-portal-pdf"}

    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "Partner Portal PDF Service"
        assert "export_pdf" in data["endpoints"]["proposals"]
