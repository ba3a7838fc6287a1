"""Services module - Business logic orchestration."""

from partner_portal.services.proposal_export import (
    ExportedPDF,
    ProposalExportService,
    ProposalNotFoundError,
    ProposalNotReadyError,
    proposal_export_service,
)

__all__ = [
    "ExportedPDF",
    "ProposalExportService",
    "ProposalNotFoundError",
    "ProposalNotReadyError",
    "proposal_export_service",
]
