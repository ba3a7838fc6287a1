"""Proposal API Routes - PDF export endpoints."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from partner_portal.integrations.drafting import DocumentDraftingService
from partner_portal.models import ProposalDocument
from partner_portal.services.proposal_export import (
    ExportedPDF,
    ProposalNotFoundError,
    ProposalNotReadyError,
    proposal_export_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proposals", tags=["proposals"])

EXPORT_FAILED_MESSAGE = "Failed to export PDF. Please try again."


def get_drafting_service(request: Request) -> Optional[DocumentDraftingService]:
    """Drafting client created in the application lifespan."""
    return getattr(request.app.state, "drafting_service", None)


def _pdf_response(exported: ExportedPDF) -> Response:
    return Response(
        content=exported.content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{exported.filename}"',
            "Content-Length": str(len(exported.content)),
        },
    )


# ===========================================
# Stored Proposal Export
# ===========================================

@router.get(
    "/{proposal_id}/export-pdf",
    summary="Export Proposal as PDF",
    response_class=Response
)
async def export_proposal_pdf(
    proposal_id: str,
    ai_drafting: Optional[bool] = None,
    partner_id: Optional[str] = None,
    drafter: Optional[DocumentDraftingService] = Depends(get_drafting_service)
) -> Response:
    """
    Generate a watermarked PDF for a stored proposal.

    Drafting defaults to the AI_DRAFTING_ENABLED setting; a drafting
    failure never fails the export.
    """
    try:
        exported = await proposal_export_service.export_pdf(
            proposal_id,
            partner_id=partner_id,
            drafter=drafter,
            use_ai_drafting=ai_drafting
        )
    except ProposalNotFoundError:
        raise HTTPException(status_code=404, detail=f"Proposal not found: {proposal_id}")
    except ProposalNotReadyError:
        raise HTTPException(
            status_code=409,
            detail="Proposal content has not been generated yet"
        )
    except Exception as e:
        logger.error(f"PDF export error for {proposal_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=EXPORT_FAILED_MESSAGE)

    logger.info(f"Returning PDF {exported.filename} ({len(exported.content)} bytes)")
    return _pdf_response(exported)


# ===========================================
# Unsaved Proposal Export
# ===========================================

@router.post(
    "/render-pdf",
    summary="Render Proposal Document as PDF",
    response_class=Response
)
async def render_proposal_pdf(
    document: ProposalDocument,
    ai_drafting: Optional[bool] = None,
    drafter: Optional[DocumentDraftingService] = Depends(get_drafting_service)
) -> Response:
    """Render a proposal supplied in the request body, e.g. fresh from generation."""
    try:
        exported = await proposal_export_service.render(
            document,
            drafter=drafter,
            use_ai_drafting=ai_drafting
        )
    except Exception as e:
        logger.error(f"PDF render error for {document.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=EXPORT_FAILED_MESSAGE)

    return _pdf_response(exported)
