"""Integrations module - External service connectors."""

from partner_portal.integrations.drafting import (
    DocumentDraftingService,
    DraftingError,
    build_proposal_text,
    parse_drafted_content,
)

__all__ = [
    "DocumentDraftingService",
    "DraftingError",
    "build_proposal_text",
    "parse_drafted_content",
]
