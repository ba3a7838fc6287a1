"""API module - HTTP routes."""

from partner_portal.api.proposals import router as proposals_router

__all__ = ["proposals_router"]
