"""Supabase proposal store for the Partner Portal PDF service."""

import logging
from typing import Any, Dict, Optional
from supabase import create_client, Client
from supabase.lib.client_options import ClientOptions

from partner_portal.core.config import get_settings
from partner_portal.models import ProposalDocument

logger = logging.getLogger(__name__)

PROPOSAL_COLUMNS = ",".join([
    "id",
    "partner_id",
    "title",
    "client_name",
    "status",
    "currency",
    "executive_summary",
    "project_scope",
    "timeline_phases",
    "investment_items",
    "deliverables",
    "technology_stack",
    "terms_and_conditions",
    "created_at",
])


def has_content(row: Dict[str, Any]) -> bool:
    """Whether a proposal row carries generated content."""
    return bool((row.get("executive_summary") or "").strip())


def row_to_document(row: Dict[str, Any]) -> ProposalDocument:
    """Map a ``proposals`` row onto a ProposalDocument."""
    return ProposalDocument(
        id=str(row["id"]),
        title=row.get("title") or "Untitled Proposal",
        client=row.get("client_name") or "",
        created_at=row["created_at"],
        currency=row.get("currency") or "USD",
        content={
            "executiveSummary": row.get("executive_summary") or "",
            "projectScope": row.get("project_scope") or [],
            "timeline": row.get("timeline_phases") or [],
            "investment": row.get("investment_items") or [],
            "deliverables": row.get("deliverables") or [],
            "technologyStack": row.get("technology_stack") or {
                "frontend": "",
                "backend": "",
                "infrastructure": "",
            },
            "termsAndConditions": row.get("terms_and_conditions") or [],
        },
    )


class ProposalRepository:
    """
    Read access to the proposals table.

    Uses the sync Supabase client behind an async interface for
    consistency with the rest of the application.
    """

    TABLE_NAME = "proposals"

    def __init__(self):
        """Initialize repository."""
        self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        """Lazy initialization of Supabase client."""
        if self._client is None:
            settings = get_settings()
            if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
                raise ValueError("Supabase credentials not configured")

            self._client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_KEY,
                options=ClientOptions(
                    postgrest_client_timeout=30,
                    storage_client_timeout=30
                )
            )
            logger.info("Supabase client initialized")
        return self._client

    async def get_proposal_row(
        self,
        proposal_id: str,
        partner_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch a raw proposal row.

        Args:
            proposal_id: Proposal ID
            partner_id: Restrict to proposals owned by this partner

        Returns:
            Row dict or None if not found
        """
        query = (
            self.client.table(self.TABLE_NAME)
            .select(PROPOSAL_COLUMNS)
            .eq("id", proposal_id)
        )
        if partner_id:
            query = query.eq("partner_id", partner_id)

        response = query.limit(1).execute()

        if response.data:
            return response.data[0]

        logger.warning(f"Proposal not found: {proposal_id}")
        return None

    async def get_proposal(
        self,
        proposal_id: str,
        partner_id: Optional[str] = None
    ) -> Optional[ProposalDocument]:
        """Fetch a proposal with generated content, or None."""
        row = await self.get_proposal_row(proposal_id, partner_id)
        if row is None or not has_content(row):
            return None
        return row_to_document(row)


# Singleton instance
proposal_repository = ProposalRepository()
