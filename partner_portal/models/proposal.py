"""Proposal content models."""

import re
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Any, Dict, List, Optional
from babel.numbers import get_currency_precision
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator


def minor_unit_amount(amount: Any, currency: str) -> Decimal:
    """Round an amount to the currency's minor unit (cents for USD, none for JPY)."""
    exponent = Decimal(1).scaleb(-get_currency_precision(currency))
    return Decimal(str(amount)).quantize(exponent, rounding=ROUND_HALF_EVEN)


def _stringify(value: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Coerce the given keys of a mapping to strings, leaving None alone."""
    return {
        **value,
        **{
            key: str(value[key])
            for key in keys
            if value.get(key) is not None and not isinstance(value[key], str)
        }
    }


def _titled_entry(value: Any, *text_keys: str) -> Any:
    """Normalise a legacy string or unknown entry into a {title, ...} mapping."""
    if isinstance(value, BaseModel):
        return value
    if isinstance(value, str):
        return {"title": value}
    if isinstance(value, dict):
        if value.get("title") is not None:
            return _stringify(value, "title", *text_keys)
        if value.get("name") is not None:
            return _stringify({**value, "title": value["name"]}, "title", *text_keys)
    # Anything else degrades to a title-only entry
    return {"title": str(value)}


class ScopeItem(BaseModel):
    """One Project Scope entry. Plain strings become title-only items."""
    title: str = Field(..., description="Scope item title")
    description: Optional[str] = Field(None, description="Optional detail under the title")

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        return _titled_entry(value, "description")


class Deliverable(BaseModel):
    """One Deliverables entry."""
    icon: Optional[str] = Field(None, description="Icon name used by the web view")
    title: str = Field(..., description="Deliverable title")
    description: Optional[str] = Field(None, description="Optional deliverable detail")

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        return _titled_entry(value, "description", "icon")


class TimelinePhase(BaseModel):
    """One Project Timeline phase. Order is chronological."""
    period: str = Field("", description="Display period, e.g. 'Week 1-2'")
    title: str = Field(..., description="Phase title")
    description: str = Field("", description="Phase description")

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"title": value}
        if isinstance(value, BaseModel):
            return value
        if isinstance(value, dict):
            if value.get("title") is None:
                value = {**value, "title": value.get("name") or ""}
            return _stringify(value, "period", "title", "description")
        return {"title": str(value)}

    @field_validator("period", "description", mode="before")
    @classmethod
    def _none_text(cls, value: Any) -> Any:
        return value if value is not None else ""


class InvestmentItem(BaseModel):
    """One priced line in the Investment Breakdown."""
    name: str = Field(..., description="Line item name")
    description: str = Field("", description="What the amount covers")
    amount: float = Field(0, ge=0, description="Amount in the proposal currency")

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value
        if isinstance(value, dict):
            if value.get("name") is None:
                if value.get("title") is None:
                    # Nothing to call the line by; degrade to a name-only line
                    return {"name": str(value)}
                value = {**value, "name": value["title"]}
            return _stringify(value, "name", "description")
        return {"name": str(value)}

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: Any) -> Any:
        return value if value is not None else ""

    def displayed_amount(self, currency: str) -> Decimal:
        """The amount as printed: rounded once to the currency's minor unit."""
        return minor_unit_amount(self.amount, currency)


class TechnologyStack(BaseModel):
    """Fixed three-slot technology record."""
    frontend: str = Field("", description="Frontend technologies")
    backend: str = Field("", description="Backend technologies")
    infrastructure: str = Field("", description="Infrastructure and hosting")

    class Config:
        frozen = True

    @field_validator("frontend", "backend", "infrastructure", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


class ProposalContent(BaseModel):
    """The seven content sections of a proposal."""
    executive_summary: str = Field(
        ...,
        alias="executiveSummary",
        description="Executive summary paragraph"
    )
    project_scope: List[ScopeItem] = Field(
        ...,
        alias="projectScope",
        description="Scope items"
    )
    timeline: List[TimelinePhase] = Field(
        ...,
        description="Ordered timeline phases"
    )
    investment: List[InvestmentItem] = Field(
        ...,
        description="Priced line items"
    )
    deliverables: List[Deliverable] = Field(
        ...,
        description="Deliverables"
    )
    technology_stack: TechnologyStack = Field(
        ...,
        alias="technologyStack",
        description="Frontend/backend/infrastructure"
    )
    terms_and_conditions: List[str] = Field(
        ...,
        alias="termsAndConditions",
        description="Contract terms"
    )

    class Config:
        frozen = True
        populate_by_name = True

    @field_validator("executive_summary")
    @classmethod
    def _summary_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("executiveSummary must not be empty")
        return value

    @field_validator("terms_and_conditions", mode="before")
    @classmethod
    def _terms_as_text(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [term if isinstance(term, str) else str(term) for term in value]
        return value

    def subtotal(self, currency: str) -> Decimal:
        """Sum of the line item amounts exactly as they are displayed."""
        return sum(
            (item.displayed_amount(currency) for item in self.investment),
            minor_unit_amount(0, currency)
        )

    def tax(self, currency: str) -> Decimal:
        """Tax is not calculated; always rendered as zero."""
        return minor_unit_amount(0, currency)

    def total(self, currency: str) -> Decimal:
        return self.subtotal(currency) + self.tax(currency)

    def with_investment_of(self, original: "ProposalContent") -> "ProposalContent":
        """
        Return a copy whose investment lines carry the original names and amounts.

        Descriptions are taken from this content where a line exists at the same
        index; lines missing here fall back to the original line unchanged.
        """
        items = []
        for idx, source in enumerate(original.investment):
            if idx < len(self.investment):
                items.append(
                    self.investment[idx].model_copy(
                        update={"name": source.name, "amount": source.amount}
                    )
                )
            else:
                items.append(source)
        return self.model_copy(update={"investment": items})


class ProposalDocument(BaseModel):
    """A proposal ready for export: identity, client, currency and content."""
    id: str = Field(..., min_length=1, description="Proposal identifier")
    title: str = Field(..., description="Proposal title")
    client: str = Field(
        ...,
        validation_alias=AliasChoices("client", "client_name", "clientName"),
        description="Client name"
    )
    created_at: datetime = Field(
        ...,
        validation_alias=AliasChoices("createdAt", "created_at"),
        description="Creation timestamp"
    )
    currency: str = Field("USD", pattern=r"^[A-Za-z]{3}$", description="ISO currency code")
    content: ProposalContent

    class Config:
        frozen = True

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()

    @property
    def short_id(self) -> str:
        return self.id[-6:].upper()

    @property
    def reference_code(self) -> str:
        """Display reference, e.g. PROP-A1B2C3."""
        return f"PROP-{self.short_id}"

    @property
    def export_filename(self) -> str:
        """Download filename derived from the id and a sanitised title."""
        safe_title = re.sub(r"[^A-Za-z0-9]", "_", self.title)[:50]
        return f"Proposal-{self.short_id}-{safe_title}.pdf"
