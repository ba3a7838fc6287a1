"""Models package - proposal content and result models."""

from partner_portal.models.proposal import (
    ScopeItem,
    TimelinePhase,
    InvestmentItem,
    Deliverable,
    TechnologyStack,
    ProposalContent,
    ProposalDocument,
)
from partner_portal.models.results import DraftResult

__all__ = [
    # Content sections
    "ScopeItem",
    "TimelinePhase",
    "InvestmentItem",
    "Deliverable",
    "TechnologyStack",
    # Proposal models
    "ProposalContent",
    "ProposalDocument",
    # Result models
    "DraftResult",
]
