"""Proposal document composer.

Lays out a ProposalDocument section by section on a PDFGenerator:
header band, title, the seven content sections in fixed order, the office
footer and a final watermark pass over every page.
"""

import asyncio
import logging
import os
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from partner_portal.core.config import get_settings
from partner_portal.models import DraftResult, ProposalContent, ProposalDocument
from partner_portal.pdf.formatting import format_currency, format_long_date
from partner_portal.pdf.layout import PDFGenerationError, PDFGenerator

logger = logging.getLogger(__name__)

BRAND_COLOR = (0, 100, 200)
BOX_COLOR = (248, 249, 250)
BODY_COLOR = (60, 60, 60)
MUTED_COLOR = (100, 100, 100)
RULE_COLOR = (200, 200, 200)

HEADER_BOTTOM = 62
GUTTER = 6


class OfficeAddress(BaseModel):
    """One office block in the footer."""
    name: str
    lines: List[str] = Field(default_factory=list)


class CompanyProfile(BaseModel):
    """Issuing company identity printed on every proposal."""
    name: str = "Neural Arc"
    wordmark: str = "NEURAL ARC"
    tagline: str = "Helium AI Platform"
    offices: List[OfficeAddress] = Field(
        default_factory=lambda: [
            OfficeAddress(
                name="Neural Arc Inc.",
                lines=["2261 Market Street, Suite 4000", "San Francisco, CA 94114", "United States"]
            ),
            OfficeAddress(
                name="Neural Arc Technologies Pvt. Ltd.",
                lines=["Baner Road, Baner", "Pune, Maharashtra 411045", "India"]
            ),
        ]
    )


class ProposalComposer:
    """
    Builds the proposal PDF.

    Each call to ``compose`` owns a fresh PDFGenerator, so one composer can
    serve concurrent exports. The optional drafter is any object with an
    ``async draft(document) -> DraftResult`` method.
    """

    def __init__(
        self,
        drafter: Optional["DocumentDraftingService"] = None,
        company: Optional[CompanyProfile] = None,
        watermark_text: Optional[str] = None,
        locale: Optional[str] = None,
        output_dir: Optional[str] = None,
        invariant: bool = False
    ):
        self.drafter = drafter
        self.company = company or CompanyProfile()
        self._watermark_text = watermark_text
        self._locale = locale
        self._output_dir = output_dir
        self._invariant = invariant
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def watermark_text(self) -> str:
        return self._watermark_text or self.settings.WATERMARK_TEXT

    @property
    def locale(self) -> str:
        return self._locale or self.settings.CURRENCY_LOCALE

    @property
    def output_dir(self) -> str:
        return self._output_dir or self.settings.PDF_OUTPUT_DIR

    # ===========================================
    # Drafting
    # ===========================================

    async def prepare_content(
        self,
        document: ProposalDocument,
        use_ai_drafting: bool = False,
        timeout: Optional[float] = None
    ) -> ProposalContent:
        """
        Run the optional drafting pass.

        Drafting is best-effort: any failure, including a timeout, is logged
        and the original content is returned. Investment names and amounts
        always come from the original content.

        Args:
            document: Proposal to draft
            use_ai_drafting: Whether drafting is requested
            timeout: Seconds to wait for the drafter, None to wait indefinitely

        Returns:
            Content to lay out
        """
        original = document.content
        if not use_ai_drafting or self.drafter is None:
            return original

        logger.info(f"AI drafting started for proposal {document.id}")

        try:
            if timeout is not None:
                result = await asyncio.wait_for(self.drafter.draft(document), timeout)
            else:
                result = await self.drafter.draft(document)
        except asyncio.TimeoutError:
            result = DraftResult.err(f"Drafting timed out after {timeout}s")
        except Exception as e:
            result = DraftResult.err(f"{type(e).__name__}: {e}")

        if not result.success or result.content is None:
            logger.warning(
                f"AI drafting failed for proposal {document.id}, "
                f"using original content: {result.error}"
            )
            return original

        logger.info(f"AI drafting completed for proposal {document.id}")
        return result.content.with_investment_of(original)

    # ===========================================
    # Composition
    # ===========================================

    def compose(
        self,
        document: ProposalDocument,
        content: Optional[ProposalContent] = None
    ) -> PDFGenerator:
        """
        Lay out the full document and return the engine, ready for output.

        Args:
            document: Proposal identity and original content
            content: Content to render instead of ``document.content``
        """
        content = content or document.content

        pdf = PDFGenerator("p", "mm", "a4", invariant=self._invariant)
        pdf.set_metadata(title=document.title, author=self.company.name)
        pdf.add_watermark(self.watermark_text)

        self._draw_header(pdf, document)
        self._draw_title(pdf, document)

        sections = (
            ("Executive Summary", self._draw_executive_summary),
            ("Project Scope", self._draw_scope),
            ("Project Timeline", self._draw_timeline),
            ("Investment Breakdown", self._draw_investment),
            ("Deliverables", self._draw_deliverables),
            ("Technology Stack", self._draw_technology_stack),
            ("Terms and Conditions", self._draw_terms),
        )
        for title, draw in sections:
            pdf.add_heading(title, 1, BRAND_COLOR)
            draw(pdf, content, document.currency)

        self._draw_footer(pdf)

        # Page 1 is never stamped by page breaks
        for page_number in range(1, pdf.get_page_count() + 1):
            pdf.set_page(page_number)
            pdf.add_watermark(self.watermark_text)

        return pdf

    async def generate(
        self,
        document: ProposalDocument,
        *,
        use_ai_drafting: bool = False,
        filename: Optional[str] = None,
        return_bytes: bool = False,
        timeout: Optional[float] = None
    ) -> Union[bytes, str]:
        """
        Draft (optionally), compose and output the proposal.

        Returns:
            PDF bytes when ``return_bytes`` is set, otherwise the saved file path

        Raises:
            PDFGenerationError: If the document cannot be written out
        """
        content = await self.prepare_content(document, use_ai_drafting, timeout)
        # Layout and rendering are CPU-bound; keep them off the event loop
        pdf = await asyncio.to_thread(self.compose, document, content)

        if return_bytes:
            data = await asyncio.to_thread(pdf.get_bytes)
            logger.info(
                f"Generated PDF for {document.reference_code}: "
                f"{pdf.get_page_count()} pages, {len(data)} bytes"
            )
            return data

        path = os.path.join(self.output_dir, filename or document.export_filename)
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        except OSError as e:
            raise PDFGenerationError(f"Cannot create output directory for {path}: {e}") from e
        return await asyncio.to_thread(pdf.save, path)

    # ===========================================
    # Header, title and footer
    # ===========================================

    def _draw_header(self, pdf: PDFGenerator, document: ProposalDocument) -> None:
        info = pdf.get_page_info()
        right = info.width - info.margin

        pdf.add_text(
            self.company.wordmark, x=info.margin, y=32,
            font_size=22, font_style="bold", color=BRAND_COLOR
        )
        pdf.add_text(
            self.company.tagline, x=info.margin, y=38,
            font_size=9, color=MUTED_COLOR
        )

        pdf.add_text("Proposal Date", x=right, y=26, font_size=10, font_style="bold", align="right")
        pdf.add_text(
            format_long_date(document.created_at, self.locale), x=right, y=31,
            font_size=10, color=MUTED_COLOR, align="right"
        )
        pdf.add_text("Proposal ID", x=right, y=38, font_size=10, font_style="bold", align="right")
        pdf.add_text(
            document.reference_code, x=right, y=43,
            font_size=10, color=MUTED_COLOR, align="right"
        )

        pdf.set_y_position(49)
        pdf.add_line(color=RULE_COLOR, width=0.6)
        pdf.set_y_position(HEADER_BOTTOM)

    def _draw_title(self, pdf: PDFGenerator, document: ProposalDocument) -> None:
        pdf.add_text(document.title, font_size=24, font_style="bold")
        pdf.add_spacing(2)
        pdf.add_text(f"Prepared for {document.client}", font_size=11, color=MUTED_COLOR)
        pdf.add_spacing(8)

    def _draw_footer(self, pdf: PDFGenerator) -> None:
        info = pdf.get_page_info()
        pdf.check_page_break(40)
        pdf.add_spacing(6)
        pdf.add_line(color=RULE_COLOR, width=0.5)

        top = pdf.get_y_position()
        column_width = info.content_width / 2
        bottom = top
        for idx, office in enumerate(self.company.offices[:2]):
            x = info.margin + idx * column_width
            y = pdf.add_text(
                office.name, x=x, y=top, font_size=10, font_style="bold",
                max_width=column_width - 4
            )
            for line in office.lines:
                y = pdf.add_text(
                    line, x=x, y=y + 0.5, font_size=9, color=MUTED_COLOR,
                    max_width=column_width - 4
                )
            bottom = max(bottom, y)
        pdf.set_y_position(bottom)

    # ===========================================
    # Sections
    # ===========================================

    def _draw_executive_summary(self, pdf: PDFGenerator, content: ProposalContent, currency: str) -> None:
        pdf.add_text(content.executive_summary, font_size=11, color=BODY_COLOR)
        pdf.add_spacing(10)

    def _draw_scope(self, pdf: PDFGenerator, content: ProposalContent, currency: str) -> None:
        for item in content.project_scope:
            pdf.add_list_item(item.title, item.description)
        pdf.add_spacing(4)

    def _draw_timeline(self, pdf: PDFGenerator, content: ProposalContent, currency: str) -> None:
        info = pdf.get_page_info()
        text_x = info.margin + 6
        text_width = info.content_width - 6

        for phase in content.timeline:
            desc_lines = pdf.split_text(phase.description, text_width, 10)
            block = (
                pdf.line_height(10) + 2
                + pdf.line_height(12) + 1.5
                + len(desc_lines) * pdf.line_height(10) + 8
            )
            # The border bar starts 8 above the phase baseline
            if pdf.check_page_break(block + 8):
                pdf.add_spacing(8)

            y = pdf.get_y_position()
            pdf.draw_line(info.margin + 1, y - 8, info.margin + 1, y + 18, color=BRAND_COLOR, width=1.2)

            pdf.add_text(
                phase.period, x=text_x, font_size=10, font_style="bold",
                color=BRAND_COLOR, max_width=text_width
            )
            pdf.add_spacing(2)
            pdf.add_text(phase.title, x=text_x, font_size=12, font_style="bold", max_width=text_width)
            pdf.add_spacing(1.5)
            pdf.add_text(phase.description, x=text_x, font_size=10, color=MUTED_COLOR, max_width=text_width)
            pdf.add_spacing(8)

    def _draw_investment(self, pdf: PDFGenerator, content: ProposalContent, currency: str) -> None:
        info = pdf.get_page_info()
        right = info.width - info.margin
        text_width = info.content_width - 55

        for item in content.investment:
            name_lines = pdf.split_text(item.name, text_width, 12, font_style="bold")
            desc_lines = pdf.split_text(item.description, text_width, 10) if item.description else []

            name_offset = 8
            desc_offset = name_offset + len(name_lines) * pdf.line_height(12) + 1
            end_offset = (
                desc_offset + len(desc_lines) * pdf.line_height(10)
                if desc_lines else desc_offset - 1
            )
            box_height = end_offset + 3

            pdf.check_page_break(box_height + 4)
            y = pdf.get_y_position()

            pdf.add_box(info.margin, y, info.content_width, box_height, color=BOX_COLOR, radius=3)
            pdf.add_text(
                item.name, x=info.margin + 5, y=y + name_offset,
                font_size=12, font_style="bold", max_width=text_width
            )
            pdf.add_text(
                format_currency(item.displayed_amount(currency), currency, self.locale),
                x=right - 5, y=y + name_offset,
                font_size=12, font_style="bold", align="right"
            )
            if desc_lines:
                pdf.add_text(
                    item.description, x=info.margin + 5, y=y + desc_offset,
                    font_size=10, color=MUTED_COLOR, max_width=text_width
                )
            pdf.set_y_position(y + box_height + 4)

        # Rule, two rows, total line and trailing gap
        pdf.check_page_break(44)
        pdf.add_spacing(2)
        pdf.add_line(color=RULE_COLOR, width=0.6)

        rows = (
            ("Subtotal", content.subtotal(currency), "bold", (0, 0, 0)),
            ("Tax", content.tax(currency), "normal", MUTED_COLOR),
        )
        for label, value, style, color in rows:
            y = pdf.get_y_position()
            pdf.add_text(label, x=info.margin, y=y, font_size=11, font_style=style, color=color)
            pdf.add_text(
                format_currency(value, currency, self.locale), x=right, y=y,
                font_size=11, font_style=style, color=color, align="right"
            )
            pdf.add_spacing(7)

        y = pdf.get_y_position() - 2
        pdf.draw_line(info.margin, y, right, y, color=RULE_COLOR, width=0.3)
        pdf.add_spacing(6)

        y = pdf.get_y_position()
        pdf.add_text("Total", x=info.margin, y=y, font_size=16, font_style="bold")
        pdf.add_text(
            format_currency(content.total(currency), currency, self.locale), x=right, y=y,
            font_size=16, font_style="bold", align="right"
        )
        pdf.add_spacing(14)

    def _draw_deliverables(self, pdf: PDFGenerator, content: ProposalContent, currency: str) -> None:
        info = pdf.get_page_info()
        column_width = (info.content_width - GUTTER) / 2
        text_width = column_width - 14

        items = content.deliverables
        for start in range(0, len(items), 2):
            cells = []
            for deliverable in items[start:start + 2]:
                title_lines = pdf.split_text(deliverable.title, text_width, 11, font_style="bold")
                desc_lines = (
                    pdf.split_text(deliverable.description, text_width, 9.5)
                    if deliverable.description else []
                )
                height = 8 + len(title_lines) * pdf.line_height(11) + 3
                if desc_lines:
                    height += 1 + len(desc_lines) * pdf.line_height(9.5)
                cells.append((deliverable, height))

            row_height = max(height for _, height in cells)
            pdf.check_page_break(row_height + 5)
            y = pdf.get_y_position()

            for column, (deliverable, _) in enumerate(cells):
                x = info.margin + column * (column_width + GUTTER)
                pdf.add_box(x, y, column_width, row_height, color=BOX_COLOR, radius=3)
                pdf.draw_checkmark(x + 4, y + 8, size=11)
                end = pdf.add_text(
                    deliverable.title, x=x + 10, y=y + 8,
                    font_size=11, font_style="bold", max_width=text_width
                )
                if deliverable.description:
                    pdf.add_text(
                        deliverable.description, x=x + 10, y=end + 1,
                        font_size=9.5, color=MUTED_COLOR, max_width=text_width
                    )

            pdf.set_y_position(y + row_height + 5)

        pdf.add_spacing(4)

    def _draw_technology_stack(self, pdf: PDFGenerator, content: ProposalContent, currency: str) -> None:
        info = pdf.get_page_info()
        column_width = (info.content_width - 2 * GUTTER) / 3
        text_width = column_width - 10
        stack = content.technology_stack

        columns = [
            ("Frontend", stack.frontend),
            ("Backend", stack.backend),
            ("Infrastructure", stack.infrastructure),
        ]
        body_offset = 8 + pdf.line_height(12) + 1
        longest = max(len(pdf.split_text(body, text_width, 9.5)) for _, body in columns)
        height = body_offset + longest * pdf.line_height(9.5) + 3

        pdf.check_page_break(height + 8)
        y = pdf.get_y_position()

        for idx, (label, body) in enumerate(columns):
            x = info.margin + idx * (column_width + GUTTER)
            pdf.add_box(x, y, column_width, height, color=BOX_COLOR, radius=3)
            pdf.add_text(label, x=x + 5, y=y + 8, font_size=12, font_style="bold", max_width=text_width)
            pdf.add_text(body, x=x + 5, y=y + body_offset, font_size=9.5, color=MUTED_COLOR, max_width=text_width)

        pdf.set_y_position(y + height + 8)

    def _draw_terms(self, pdf: PDFGenerator, content: ProposalContent, currency: str) -> None:
        info = pdf.get_page_info()
        text_x = info.margin + 7
        text_width = info.content_width - 7

        for term in content.terms_and_conditions:
            lines = pdf.split_text(term, text_width, 10)
            pdf.check_page_break(len(lines) * pdf.line_height(10) + 4)
            pdf.draw_checkmark(info.margin, pdf.get_y_position(), size=11)
            pdf.add_text(term, x=text_x, font_size=10, color=BODY_COLOR, max_width=text_width)
            pdf.add_spacing(3)


# Forward reference
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from partner_portal.integrations.drafting import DocumentDraftingService
