"""Core module - Configuration and proposal store."""

from partner_portal.core.config import get_settings, Settings
from partner_portal.core.database import ProposalRepository, proposal_repository

__all__ = [
    "get_settings",
    "Settings",
    "ProposalRepository",
    "proposal_repository",
]
