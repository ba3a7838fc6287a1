"""Proposal export service - loads proposals and renders them to PDF."""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from partner_portal.core.config import get_settings
from partner_portal.core.database import (
    ProposalRepository,
    has_content,
    proposal_repository,
    row_to_document,
)
from partner_portal.models import ProposalDocument
from partner_portal.pdf.composer import ProposalComposer

logger = logging.getLogger(__name__)


class ProposalNotFoundError(Exception):
    """No proposal with the given id is visible to the caller."""


class ProposalNotReadyError(Exception):
    """The proposal exists but has no generated content yet."""


class ExportedPDF(BaseModel):
    """A rendered proposal ready to be sent to the client."""
    filename: str = Field(..., description="Download filename")
    content: bytes = Field(..., description="PDF bytes")


class ProposalExportService:
    """
    Orchestrates PDF export for stored or freshly generated proposals.

    The drafting timeout from settings is applied here; the composer
    itself never bounds the drafting call.
    """

    def __init__(self, repository: Optional[ProposalRepository] = None):
        """Initialize service."""
        self._repository = repository
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def repository(self) -> ProposalRepository:
        return self._repository or proposal_repository

    async def export_pdf(
        self,
        proposal_id: str,
        partner_id: Optional[str] = None,
        drafter: Optional["DocumentDraftingService"] = None,
        use_ai_drafting: Optional[bool] = None
    ) -> ExportedPDF:
        """
        Export a stored proposal.

        Raises:
            ProposalNotFoundError: Unknown id, or not owned by ``partner_id``
            ProposalNotReadyError: Content has not been generated yet
            PDFGenerationError: The document could not be written out
        """
        row = await self.repository.get_proposal_row(proposal_id, partner_id)
        if row is None:
            raise ProposalNotFoundError(proposal_id)
        if not has_content(row):
            raise ProposalNotReadyError(proposal_id)

        logger.info(f"Starting PDF generation for proposal: {proposal_id}")
        return await self.render(row_to_document(row), drafter, use_ai_drafting)

    async def render(
        self,
        document: ProposalDocument,
        drafter: Optional["DocumentDraftingService"] = None,
        use_ai_drafting: Optional[bool] = None
    ) -> ExportedPDF:
        """Render a proposal document, drafting first when enabled."""
        enabled = self.settings.AI_DRAFTING_ENABLED if use_ai_drafting is None else use_ai_drafting
        if enabled and drafter is not None:
            logger.info("AI drafting enabled - will analyze and enhance document")

        composer = ProposalComposer(drafter=drafter)
        content = await composer.generate(
            document,
            use_ai_drafting=enabled,
            return_bytes=True,
            timeout=self.settings.AI_DRAFTING_TIMEOUT
        )
        return ExportedPDF(filename=document.export_filename, content=content)


# Forward reference
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from partner_portal.integrations.drafting import DocumentDraftingService

# Singleton instance
proposal_export_service = ProposalExportService()
