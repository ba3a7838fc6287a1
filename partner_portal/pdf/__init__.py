"""PDF module - layout engine and proposal composer."""

from partner_portal.pdf.layout import PDFGenerator, PDFGenerationError, PageInfo
from partner_portal.pdf.composer import ProposalComposer, CompanyProfile, OfficeAddress
from partner_portal.pdf.formatting import format_currency, format_long_date

__all__ = [
    "PDFGenerator",
    "PDFGenerationError",
    "PageInfo",
    "ProposalComposer",
    "CompanyProfile",
    "OfficeAddress",
    "format_currency",
    "format_long_date",
]
