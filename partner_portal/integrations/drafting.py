"""Gemini document drafting integration.

Rewrites proposal prose into executive-grade copy before PDF export.
Monetary amounts and line item names are never taken from the model.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from partner_portal.core.config import Settings, get_settings
from partner_portal.models import DraftResult, ProposalContent, ProposalDocument

logger = logging.getLogger(__name__)

# Below this relative change the rewrite is considered cosmetic
MIN_SUMMARY_CHANGE = 0.15

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")

DRAFTING_INSTRUCTIONS = """You are a world-class business proposal writer with 20+ years of experience creating winning proposals for Fortune 500 companies. Transform the proposal below into a polished, compelling document that would impress C-level executives.

Rewrite every section substantially; do not just rephrase:
1. Executive Summary: 2-3 paragraphs opening with the opportunity, stating the value proposition and ROI, highlighting differentiators and ending with a call to action.
2. Project Scope: make each item specific, measurable and action-oriented; explain what is delivered, why it matters and its business impact.
3. Timeline: keep each period exactly; give each phase a professional title and describe activities, deliverables and success criteria.
4. Investment Breakdown: rewrite descriptions to explain the value of each item. Keep every name and amount EXACTLY as provided.
5. Deliverables: make each deliverable specific and value-focused.
6. Technology Stack: explain why each technology was chosen and how it supports the solution.
7. Terms and Conditions: clear, professional contract language that protects both parties.

Requirements:
- DO NOT change any monetary amounts, numbers, dates or technical specifications
- DO NOT add or remove items in any section
- Use executive-level business language throughout

Return ONLY a JSON object (no markdown, no code blocks) with exactly these keys:
{
  "executiveSummary": "string",
  "projectScope": ["string"],
  "timeline": [{"period": "string", "title": "string", "description": "string"}],
  "investment": [{"name": "string", "description": "string", "amount": 0}],
  "deliverables": ["string"],
  "technologyStack": {"frontend": "string", "backend": "string", "infrastructure": "string"},
  "termsAndConditions": ["string"]
}"""


class DraftingError(Exception):
    """Raised internally when a drafting call cannot produce usable content."""


def build_proposal_text(document: ProposalDocument) -> str:
    """Render the proposal as plain text for the drafting prompt."""
    content = document.content
    currency = document.currency

    scope = "\n".join(
        f"{idx}. {item.title}" + (f" - {item.description}" if item.description else "")
        for idx, item in enumerate(content.project_scope, 1)
    )
    timeline = "\n\n".join(
        f"- {phase.period}: {phase.title}\n  {phase.description}"
        for phase in content.timeline
    )
    investment = "\n\n".join(
        f"- {item.name}: {currency} {item.amount}\n  {item.description}"
        for item in content.investment
    )
    deliverables = "\n".join(
        f"{idx}. {item.title}" + (f" - {item.description}" if item.description else "")
        for idx, item in enumerate(content.deliverables, 1)
    )
    terms = "\n".join(
        f"{idx}. {term}" for idx, term in enumerate(content.terms_and_conditions, 1)
    )
    stack = content.technology_stack

    return f"""PROPOSAL TITLE: {document.title}
CLIENT: {document.client}
CURRENCY: {currency}

EXECUTIVE SUMMARY:
{content.executive_summary}

PROJECT SCOPE:
{scope}

PROJECT TIMELINE:
{timeline}

INVESTMENT BREAKDOWN:
{investment}

DELIVERABLES:
{deliverables}

TECHNOLOGY STACK:
- Frontend: {stack.frontend}
- Backend: {stack.backend}
- Infrastructure: {stack.infrastructure}

TERMS AND CONDITIONS:
{terms}
"""


def parse_drafted_content(raw_text: str) -> ProposalContent:
    """
    Parse the model's JSON reply into ProposalContent.

    Raises:
        DraftingError: If the reply is not valid JSON or misses required sections
    """
    cleaned = _FENCE_RE.sub("", raw_text.strip())

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise DraftingError(
            f"Failed to parse AI response. The AI may have returned invalid JSON: {e}"
        ) from e

    if (
        not isinstance(data, dict)
        or not data.get("executiveSummary")
        or not isinstance(data.get("projectScope"), list)
    ):
        raise DraftingError("Invalid document structure returned from AI")

    try:
        return ProposalContent.model_validate(data)
    except ValidationError as e:
        raise DraftingError(f"Drafted content failed validation: {e}") from e


class DocumentDraftingService:
    """
    Client for the Gemini generateContent API.

    Constructed explicitly (usually through ``from_settings``) and closed
    with ``aclose``. The HTTP client has no timeout of its own; callers
    bound the call.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-pro",
        api_url: str = "https://generativelanguage.googleapis.com/v1beta",
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self.model = model
        self.api_url = api_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=None)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "DocumentDraftingService":
        settings = settings or get_settings()
        return cls(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            api_url=settings.GEMINI_API_URL
        )

    def is_available(self) -> bool:
        """Check if the drafting service is configured."""
        return bool(self.api_key)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def draft(self, document: ProposalDocument) -> DraftResult:
        """
        Produce an executive-grade rewrite of the proposal content.

        Args:
            document: Proposal whose content should be rewritten

        Returns:
            DraftResult.ok with drafted content (original investment names and
            amounts re-applied), or DraftResult.err with the failure reason
        """
        try:
            raw_text = await self._generate(
                f"{DRAFTING_INSTRUCTIONS}\n\nOriginal Proposal Content:\n"
                f"{build_proposal_text(document)}\n\nReturn ONLY the JSON object, nothing else."
            )
            drafted = parse_drafted_content(raw_text).with_investment_of(document.content)
        except DraftingError as e:
            logger.error(f"Document drafting error: {e}")
            return DraftResult.err(str(e))
        except httpx.TimeoutException:
            logger.error("Gemini API timeout")
            return DraftResult.err("Gemini API timeout")
        except httpx.HTTPError as e:
            logger.error(f"Gemini API request failed: {e}")
            return DraftResult.err(f"Gemini API request failed: {e}")

        self._log_comparison(document.content, drafted)
        return DraftResult.ok(drafted)

    async def _generate(self, prompt: str) -> str:
        if not self.api_key:
            raise DraftingError("Google Gemini API key not configured")

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.7,
                "responseMimeType": "application/json",
            },
        }
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json"
        }

        logger.info(f"Drafting with model: {self.model}")
        response = await self._client.post(
            f"{self.api_url}/models/{self.model}:generateContent",
            json=payload,
            headers=headers
        )

        if response.status_code != 200:
            raise DraftingError(
                f"Gemini API error: {response.status_code} - {response.text[:500]}"
            )

        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise DraftingError(f"Unexpected Gemini response shape: {e}") from e

        return "".join(part.get("text", "") for part in parts)

    @staticmethod
    def _log_comparison(original: ProposalContent, drafted: ProposalContent) -> None:
        before = len(original.executive_summary)
        after = len(drafted.executive_summary)
        change = abs(after - before) / before if before else 1.0

        logger.info(
            f"Document drafting completed: executive summary {before} -> {after} chars "
            f"({change * 100:.1f}% change)"
        )
        if change < MIN_SUMMARY_CHANGE:
            logger.warning(
                "Executive summary change is minimal (<15%); "
                "the AI may not have made substantial improvements"
            )
