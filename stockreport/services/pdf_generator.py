"""PDF generator using ReportLab.

Replays a Document's draw commands onto a ReportLab canvas. Documents are laid
out top-down in millimetres; the canvas works bottom-up in points, so every
coordinate is flipped against the page height and scaled by ``mm``.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Union

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas as pdfcanvas

from stockreport.domain.document import (
    Color,
    Document,
    DrawRect,
    DrawText,
    Page,
    ReportColors,
)
from stockreport.domain.formatting import Alignment

logger = logging.getLogger(__name__)


# =============================================================================
# FONTS
# =============================================================================

FONTS = {
    (False, False): "Helvetica",
    (True, False): "Helvetica-Bold",
    (False, True): "Helvetica-Oblique",
    (True, True): "Helvetica-BoldOblique",
}


def font_name(bold: bool, italic: bool) -> str:
    """Standard Helvetica face for the given weight and slant."""
    return FONTS[(bold, italic)]


def to_color(rgb: Color) -> colors.Color:
    """Convert a 0-255 RGB tuple to a ReportLab color."""
    red, green, blue = rgb
    return colors.Color(red / 255, green / 255, blue / 255)


# =============================================================================
# PDF GENERATOR
# =============================================================================

class ReportPDFGenerator:
    """Draw a Document onto PDF pages."""

    def __init__(self, page_numbers: bool = True, margin: float = 15):
        """Initialize the PDF generator.

        Args:
            page_numbers: Whether to stamp "Page X of N" on every page
            margin: Right and bottom inset of the page number, in mm
        """
        self.page_numbers = page_numbers
        self.margin = margin

    def generate(self, document: Document, output: Union[Path, str, BinaryIO]) -> None:
        """Write the document as a PDF.

        Args:
            document: Laid-out document
            output: Output file path or binary file object
        """
        if isinstance(output, Path):
            output = str(output)

        page_size = (document.page_width * mm, document.page_height * mm)
        pdf = pdfcanvas.Canvas(output, pagesize=page_size)
        pdf.setTitle(document.title)

        pages = document.pages or [Page(index=0)]
        for page in pages:
            self._draw_page(pdf, document, page, len(pages))
            pdf.showPage()

        pdf.save()
        logger.debug(f"Rendered '{document.title}' to PDF: {len(pages)} pages")

    def _draw_page(self, pdf, document: Document, page: Page, page_count: int) -> None:
        for command in page.commands:
            if isinstance(command, DrawRect):
                self._draw_rect(pdf, document, command)
            else:
                self._draw_text(pdf, document, command)

        if self.page_numbers:
            self._draw_page_number(pdf, document, page.index, page_count)

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def _flip(self, document: Document, y: float) -> float:
        return (document.page_height - y) * mm

    def _draw_rect(self, pdf, document: Document, rect: DrawRect) -> None:
        if rect.fill is None and rect.stroke is None:
            return

        pdf.saveState()
        if rect.fill is not None:
            pdf.setFillColor(to_color(rect.fill))
        if rect.stroke is not None:
            pdf.setStrokeColor(to_color(rect.stroke))
            pdf.setLineWidth(0.5)

        x = rect.x * mm
        # Bottom-left corner on the canvas
        y = self._flip(document, rect.y + rect.height)
        width = rect.width * mm
        height = rect.height * mm
        fill = 1 if rect.fill is not None else 0
        stroke = 1 if rect.stroke is not None else 0

        if rect.radius:
            pdf.roundRect(x, y, width, height, rect.radius * mm, fill=fill, stroke=stroke)
        else:
            pdf.rect(x, y, width, height, fill=fill, stroke=stroke)
        pdf.restoreState()

    def _draw_text(self, pdf, document: Document, text: DrawText) -> None:
        if not text.text:
            return

        pdf.setFont(font_name(text.bold, text.italic), text.font_size)
        pdf.setFillColor(to_color(text.color))

        x = text.x * mm
        y = self._flip(document, text.y)
        if text.align == Alignment.RIGHT:
            pdf.drawRightString(x, y, text.text)
        elif text.align == Alignment.CENTER:
            pdf.drawCentredString(x, y, text.text)
        else:
            pdf.drawString(x, y, text.text)

    def _draw_page_number(self, pdf, document: Document, index: int, page_count: int) -> None:
        pdf.setFont("Helvetica", 8)
        pdf.setFillColor(to_color(ReportColors.MUTED))
        pdf.drawRightString(
            (document.page_width - self.margin) * mm,
            (self.margin - 7) * mm,
            f"Page {index + 1} of {page_count}",
        )

