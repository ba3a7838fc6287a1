"""Page layout engine for programmatic PDF documents.

Drawing calls are recorded per page as simple commands and rendered to a
reportlab canvas only when the document is saved or exported. Keeping the
pages around lets callers go back to an earlier page (``set_page``), which
the watermark pass relies on.

Coordinates use the engine unit (millimetres by default) with the origin at
the top-left corner of the page; y grows downwards.
"""

import base64
import io
import logging
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field
from reportlab.lib.pagesizes import A4, LETTER, landscape, portrait
from reportlab.lib.units import inch, mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

PAGE_FORMATS = {
    "a4": A4,
    "letter": LETTER,
}

# Size of one engine unit in PDF points
UNITS = {
    "mm": mm,
    "pt": 1.0,
    "in": inch,
    "px": 0.75,
}

FONTS = {
    "helvetica": {
        "normal": "Helvetica",
        "bold": "Helvetica-Bold",
        "italic": "Helvetica-Oblique",
        "bolditalic": "Helvetica-BoldOblique",
    },
    "times": {
        "normal": "Times-Roman",
        "bold": "Times-Bold",
        "italic": "Times-Italic",
        "bolditalic": "Times-BoldItalic",
    },
    "courier": {
        "normal": "Courier",
        "bold": "Courier-Bold",
        "italic": "Courier-Oblique",
        "bolditalic": "Courier-BoldOblique",
    },
}

# "4" is the heavy check mark in the ZapfDingbats encoding
CHECKMARK_FONT = "ZapfDingbats"
CHECKMARK_GLYPH = "4"

DEFAULT_WATERMARK_TEXT = "CONFIDENTIAL"
WATERMARK_OPACITY = 0.5


class PDFGenerationError(Exception):
    """Raised when the document cannot be written out."""


class TextCommand(BaseModel):
    """A single line of text drawn at a baseline position."""
    kind: Literal["text"] = "text"
    text: str
    x: float
    y: float
    font_name: str
    font_size: float
    color: RGB
    align: Literal["left", "center", "right"] = "left"


class LineCommand(BaseModel):
    """A straight stroked line."""
    kind: Literal["line"] = "line"
    x1: float
    y1: float
    x2: float
    y2: float
    color: RGB
    width: float


class BoxCommand(BaseModel):
    """A filled, optionally rounded rectangle. ``y`` is its top edge."""
    kind: Literal["box"] = "box"
    x: float
    y: float
    width: float
    height: float
    color: RGB
    radius: float


class Watermark(BaseModel):
    """Rotated text centred on a page."""
    text: str = DEFAULT_WATERMARK_TEXT
    font_size: float = 72
    color: RGB = (220, 220, 220)
    angle: float = 45


Command = Union[TextCommand, LineCommand, BoxCommand]


class PageLayout(BaseModel):
    """Everything drawn on one page. A page holds at most one watermark."""
    number: int = Field(..., description="1-based page number")
    commands: List[Command] = Field(default_factory=list)
    watermark: Optional[Watermark] = None

    def texts(self) -> List[TextCommand]:
        return [c for c in self.commands if isinstance(c, TextCommand)]

    def boxes(self) -> List[BoxCommand]:
        return [c for c in self.commands if isinstance(c, BoxCommand)]


class PageInfo(BaseModel):
    """Page geometry in engine units."""
    width: float
    height: float
    margin: float
    content_width: float


class PDFGenerator:
    """
    Stateful page-layout utility.

    Owns the cursor (``y`` position), page geometry and page list for a
    single document. Page 1 is not watermarked on creation; the caller is
    responsible for it. Pages opened by ``check_page_break`` carry the
    watermark automatically.

    One instance composes exactly one document and must not be shared.
    """

    LINE_HEIGHT_FACTOR = 0.4

    def __init__(
        self,
        orientation: str = "p",
        unit: str = "mm",
        page_format: str = "a4",
        margin: float = 25,
        invariant: bool = False
    ):
        """
        Open a new document with one empty page.

        Args:
            orientation: "p"/"portrait" or "l"/"landscape"
            unit: Engine unit for every coordinate ("mm", "pt", "in", "px")
            page_format: "a4" or "letter"
            margin: Page margin in engine units
            invariant: Produce byte-reproducible output (fixed timestamps and ids)
        """
        if unit not in UNITS:
            raise ValueError(f"Unsupported unit: {unit}")
        if page_format.lower() not in PAGE_FORMATS:
            raise ValueError(f"Unsupported page format: {page_format}")

        size = PAGE_FORMATS[page_format.lower()]
        size = landscape(size) if orientation.lower() in ("l", "landscape") else portrait(size)

        self._scale = UNITS[unit]
        self._invariant = invariant
        self._title: Optional[str] = None
        self._author: Optional[str] = None

        self.page_width = round(size[0] / self._scale, 3)
        self.page_height = round(size[1] / self._scale, 3)
        self.margin = margin
        self.content_width = self.page_width - 2 * self.margin

        self._pages: List[PageLayout] = [PageLayout(number=1)]
        self._current = 0
        self._y = self.margin
        self._watermark = Watermark()

    # ===========================================
    # Pagination
    # ===========================================

    @property
    def pages(self) -> Tuple[PageLayout, ...]:
        """Pages drawn so far, in order."""
        return tuple(self._pages)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def get_page_count(self) -> int:
        return len(self._pages)

    def set_page(self, page_number: int) -> None:
        """Make an existing page (1-based) the target of later drawing calls."""
        if not 1 <= page_number <= len(self._pages):
            raise ValueError(
                f"Page {page_number} out of range (document has {len(self._pages)})"
            )
        self._current = page_number - 1

    def check_page_break(self, required_height: float) -> bool:
        """
        Start a new page when ``required_height`` does not fit below the cursor.

        Returns:
            True if a page break was inserted
        """
        if self._y + required_height <= self.page_height - self.margin:
            return False

        # A fresh page cannot fit the block either; keep drawing here
        if self._y <= self.margin and self._current == len(self._pages) - 1:
            return False

        self._pages.append(PageLayout(number=len(self._pages) + 1))
        self._current = len(self._pages) - 1
        self._y = self.margin
        self.add_watermark()
        return True

    def add_watermark(
        self,
        text: Optional[str] = None,
        font_size: Optional[float] = None,
        color: Optional[RGB] = None,
        angle: Optional[float] = None
    ) -> None:
        """
        Stamp rotated, low-contrast text across the centre of the current page.

        Re-stamping a page replaces its watermark. Omitted options keep the
        last watermark's values, and the result becomes the default for pages
        opened afterwards. The cursor does not move.
        """
        last = self._watermark
        watermark = Watermark(
            text=text if text is not None else last.text,
            font_size=font_size if font_size is not None else last.font_size,
            color=color if color is not None else last.color,
            angle=angle if angle is not None else last.angle
        )
        self._watermark = watermark
        self._pages[self._current].watermark = watermark

    # ===========================================
    # Text
    # ===========================================

    def font_name(self, font: str = "helvetica", font_style: str = "normal") -> str:
        try:
            return FONTS[font][font_style]
        except KeyError:
            raise ValueError(f"Unsupported font: {font} {font_style}")

    def split_text(
        self,
        text: str,
        max_width: Optional[float] = None,
        font_size: float = 11,
        font: str = "helvetica",
        font_style: str = "normal"
    ) -> List[str]:
        """Word-wrap ``text`` to ``max_width`` engine units (default: content width)."""
        width = self.content_width if max_width is None else max_width
        return simpleSplit(
            text,
            self.font_name(font, font_style),
            font_size,
            width * self._scale
        )

    def line_height(self, font_size: float) -> float:
        """Approximate line advance for a font size."""
        return font_size * self.LINE_HEIGHT_FACTOR

    def add_text(
        self,
        text: str,
        x: Optional[float] = None,
        y: Optional[float] = None,
        font_size: float = 11,
        font: str = "helvetica",
        font_style: str = "normal",
        color: RGB = (0, 0, 0),
        align: str = "left",
        max_width: Optional[float] = None
    ) -> float:
        """
        Draw word-wrapped text.

        Without ``y`` the text flows from the cursor, breaking pages as
        needed, and the cursor ends up below the last line. With ``y`` the
        text is drawn at that position and the cursor is left alone.

        Returns:
            The y coordinate reached after the last line
        """
        x_pos = self.margin if x is None else x
        font_name = self.font_name(font, font_style)
        lines = self.split_text(text, max_width, font_size, font, font_style)
        step = self.line_height(font_size)

        if y is not None:
            y_pos = y
            for line in lines:
                self._draw_text(line, x_pos, y_pos, font_name, font_size, color, align)
                y_pos += step
            return y_pos

        for line in lines:
            self.check_page_break(step)
            self._draw_text(line, x_pos, self._y, font_name, font_size, color, align)
            self._y += step
        return self._y

    def add_heading(
        self,
        text: str,
        level: int = 1,
        underline_color: Optional[RGB] = None
    ) -> None:
        """Bold heading (18/14/12pt by level) with an optional coloured rule."""
        sizes = {1: 18, 2: 14, 3: 12}
        if level not in sizes:
            raise ValueError(f"Heading level must be 1-3, got {level}")

        self.check_page_break(20)

        self._draw_text(
            text, self.margin, self._y,
            self.font_name("helvetica", "bold"), sizes[level], (0, 0, 0), "left"
        )
        self._y += 8 if level == 1 else 6

        if underline_color:
            self.draw_line(
                self.margin, self._y, self.page_width - self.margin, self._y,
                color=underline_color, width=0.6
            )
            self._y += 4

        self._y += 8

    def add_section(
        self,
        title: str,
        content: str,
        title_size: float = 18,
        content_size: float = 11
    ) -> None:
        """Title, blue rule and a wrapped body paragraph."""
        self.check_page_break(25)

        self._draw_text(
            title, self.margin, self._y,
            self.font_name("helvetica", "bold"), title_size, (0, 0, 0), "left"
        )
        self._y += 8
        self.draw_line(
            self.margin, self._y, self.page_width - self.margin, self._y,
            color=(0, 100, 200), width=0.6
        )
        self._y += 12

        body_font = self.font_name()
        for line in self.split_text(content, font_size=content_size):
            self.check_page_break(8)
            self._draw_text(line, self.margin, self._y, body_font, content_size, (60, 60, 60), "left")
            self._y += 7
        self._y += 10

    def add_list_item(
        self,
        text: str,
        description: Optional[str] = None,
        font_size: float = 11,
        spacing: float = 6
    ) -> None:
        """Checkmark, bold title and an indented, wrapped description."""
        indent = 6
        title_lines = self.split_text(
            text, self.content_width - indent, font_size, font_style="bold"
        ) or [""]
        desc_lines = (
            self.split_text(description, self.content_width - 12, font_size)
            if description else []
        )
        title_step = font_size * 0.5
        estimated = (len(title_lines) - 1) * title_step + 7 + (len(desc_lines) + 1) * spacing
        self.check_page_break(max(20, estimated))

        self.draw_checkmark(self.margin, self._y)

        bold = self.font_name("helvetica", "bold")
        for idx, line in enumerate(title_lines):
            if idx:
                self.check_page_break(title_step)
            self._draw_text(line, self.margin + indent, self._y, bold, font_size, (0, 0, 0), "left")
            self._y += 7 if idx == len(title_lines) - 1 else title_step

        normal = self.font_name()
        for line in desc_lines:
            self.check_page_break(spacing)
            self._draw_text(line, self.margin + indent, self._y, normal, font_size, (80, 80, 80), "left")
            self._y += spacing

        self._y += spacing

    # ===========================================
    # Shapes
    # ===========================================

    def add_line(self, color: RGB = (200, 200, 200), width: float = 0.5) -> None:
        """Horizontal rule across the content width at the cursor."""
        self.check_page_break(8)
        self.draw_line(
            self.margin, self._y, self.page_width - self.margin, self._y,
            color=color, width=width
        )
        self._y += 8

    def draw_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        color: RGB = (200, 200, 200),
        width: float = 0.5
    ) -> None:
        """Line between two explicit points. The cursor does not move."""
        self._pages[self._current].commands.append(
            LineCommand(x1=x1, y1=y1, x2=x2, y2=y2, color=color, width=width)
        )

    def add_box(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        color: RGB = (248, 249, 250),
        radius: float = 2
    ) -> None:
        """Filled (rounded) rectangle with its top-left corner at (x, y)."""
        self._pages[self._current].commands.append(
            BoxCommand(x=x, y=y, width=width, height=height, color=color, radius=radius)
        )

    def draw_checkmark(
        self,
        x: float,
        y: float,
        color: RGB = (0, 150, 100),
        size: float = 12
    ) -> None:
        """Check mark glyph with its baseline at (x, y)."""
        self._draw_text(CHECKMARK_GLYPH, x, y, CHECKMARK_FONT, size, color, "left")

    # ===========================================
    # Cursor
    # ===========================================

    def add_spacing(self, amount: float) -> None:
        self._y += amount

    def get_y_position(self) -> float:
        return self._y

    def set_y_position(self, y: float) -> None:
        self._y = y

    def get_page_info(self) -> PageInfo:
        return PageInfo(
            width=self.page_width,
            height=self.page_height,
            margin=self.margin,
            content_width=self.content_width
        )

    def set_metadata(self, title: Optional[str] = None, author: Optional[str] = None) -> None:
        """Document properties written into the PDF info dictionary."""
        self._title = title
        self._author = author

    # ===========================================
    # Output
    # ===========================================

    def save(self, filename: str) -> str:
        """Write the document to ``filename`` and return the path."""
        try:
            self._render(filename)
        except Exception as e:
            raise PDFGenerationError(f"Failed to write PDF to {filename}: {e}") from e
        logger.info(f"Saved PDF: {filename} ({self.page_count} pages)")
        return filename

    def get_bytes(self) -> bytes:
        """Return the document as an in-memory PDF byte string."""
        buffer = io.BytesIO()
        try:
            self._render(buffer)
        except Exception as e:
            raise PDFGenerationError(f"Failed to render PDF: {e}") from e
        return buffer.getvalue()

    def get_data_url(self) -> str:
        """Return the document as a base64 ``data:`` URL."""
        encoded = base64.b64encode(self.get_bytes()).decode("ascii")
        return f"data:application/pdf;base64,{encoded}"

    # ===========================================
    # Rendering
    # ===========================================

    def _draw_text(
        self,
        text: str,
        x: float,
        y: float,
        font_name: str,
        font_size: float,
        color: RGB,
        align: str
    ) -> None:
        self._pages[self._current].commands.append(
            TextCommand(
                text=text, x=x, y=y, font_name=font_name,
                font_size=font_size, color=color, align=align
            )
        )

    def _render(self, target) -> None:
        s = self._scale
        pdf = canvas.Canvas(
            target,
            pagesize=(self.page_width * s, self.page_height * s),
            invariant=self._invariant
        )
        if self._title:
            pdf.setTitle(self._title)
        if self._author:
            pdf.setAuthor(self._author)

        for page in self._pages:
            for command in page.commands:
                if isinstance(command, TextCommand):
                    self._render_text(pdf, command)
                elif isinstance(command, LineCommand):
                    self._render_line(pdf, command)
                else:
                    self._render_box(pdf, command)
            if page.watermark:
                self._render_watermark(pdf, page.watermark)
            pdf.showPage()

        pdf.save()

    def _to_pdf_y(self, y: float) -> float:
        return (self.page_height - y) * self._scale

    @staticmethod
    def _fill(pdf: canvas.Canvas, color: RGB) -> None:
        pdf.setFillColorRGB(color[0] / 255, color[1] / 255, color[2] / 255)

    def _render_text(self, pdf: canvas.Canvas, command: TextCommand) -> None:
        pdf.setFont(command.font_name, command.font_size)
        self._fill(pdf, command.color)
        x = command.x * self._scale
        y = self._to_pdf_y(command.y)
        if command.align == "right":
            pdf.drawRightString(x, y, command.text)
        elif command.align == "center":
            pdf.drawCentredString(x, y, command.text)
        else:
            pdf.drawString(x, y, command.text)

    def _render_line(self, pdf: canvas.Canvas, command: LineCommand) -> None:
        r, g, b = command.color
        pdf.setStrokeColorRGB(r / 255, g / 255, b / 255)
        pdf.setLineWidth(command.width * self._scale)
        pdf.line(
            command.x1 * self._scale, self._to_pdf_y(command.y1),
            command.x2 * self._scale, self._to_pdf_y(command.y2)
        )

    def _render_box(self, pdf: canvas.Canvas, command: BoxCommand) -> None:
        s = self._scale
        self._fill(pdf, command.color)
        x = command.x * s
        y = self._to_pdf_y(command.y + command.height)
        if command.radius > 0:
            pdf.roundRect(x, y, command.width * s, command.height * s, command.radius * s, stroke=0, fill=1)
        else:
            pdf.rect(x, y, command.width * s, command.height * s, stroke=0, fill=1)

    def _render_watermark(self, pdf: canvas.Canvas, watermark: Watermark) -> None:
        pdf.saveState()
        self._fill(pdf, watermark.color)
        pdf.setFillAlpha(WATERMARK_OPACITY)
        pdf.setFont("Helvetica-Bold", watermark.font_size)
        pdf.translate(self.page_width * self._scale / 2, self.page_height * self._scale / 2)
        pdf.rotate(watermark.angle)
        # Shift down so the text is vertically centred on the page
        pdf.drawCentredString(0, -watermark.font_size * 0.35, watermark.text)
        pdf.restoreState()
