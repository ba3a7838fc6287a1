"""Result models for best-effort collaborator calls."""

from typing import Optional
from pydantic import BaseModel, Field

from partner_portal.models.proposal import ProposalContent


class DraftResult(BaseModel):
    """Outcome of a drafting pass: Ok(content) or Err(reason)."""
    success: bool = Field(..., description="Whether drafting produced usable content")
    content: Optional[ProposalContent] = Field(
        None,
        description="Drafted content when successful"
    )
    error: Optional[str] = Field(None, description="Failure reason")

    @classmethod
    def ok(cls, content: ProposalContent) -> "DraftResult":
        return cls(success=True, content=content)

    @classmethod
    def err(cls, reason: str) -> "DraftResult":
        return cls(success=False, error=reason)
