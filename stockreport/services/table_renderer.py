"""Table renderer: draws one section onto a Document.

Layout follows the printed stock reports: a title once, a header band on
every page the section touches, shaded rows, and a bold total row.
"""

import logging
from decimal import Decimal
from typing import Optional

from stockreport.domain.document import (
    Document,
    DrawRect,
    DrawRole,
    DrawText,
    ReportColors,
    SectionResult,
)
from stockreport.domain.formatting import Alignment, ColumnKind, ellipsize, format_currency
from stockreport.domain.models import ResolvedColumn, Row, Section
from stockreport.domain.settings import ReportSettings
from stockreport.services.pagination import PageCursor

logger = logging.getLogger(__name__)


class TableRenderer:
    """Renders sections into a Document, one call per section."""

    def __init__(self, document: Document, settings: Optional[ReportSettings] = None):
        """Initialize table renderer.

        Args:
            document: Document receiving the draw commands
            settings: Report settings (defaults if omitted)
        """
        self.document = document
        self.settings = settings or ReportSettings()
        self.page = self.settings.page
        self.fmt = self.settings.format

    def render(self, section: Section, cursor: PageCursor) -> tuple[PageCursor, Decimal]:
        """Render one section starting at the cursor.

        Args:
            section: Section to draw
            cursor: Cursor positioned where the section may start

        Returns:
            (cursor after the section, section total)
        """
        layout = self._column_layout(section)
        headers = 0

        # Keep the title with its header and first row
        cursor, _ = cursor.ensure_space(
            self.page.title_height + self.page.header_height + self.page.row_height
        )
        first_page = cursor.page_index

        cursor = self._draw_title(section.title, cursor, DrawRole.TITLE)
        cursor = self._draw_header(layout, cursor)
        headers += 1

        total = Decimal("0")

        if section.is_empty:
            cursor, broke = cursor.ensure_space(self.page.row_height)
            if broke:
                cursor = self._redraw_after_break(section, layout, cursor)
                headers += 1
            cursor = self._draw_placeholder(section, layout, cursor)
        else:
            for index, row in enumerate(section.rows):
                cursor, broke = cursor.ensure_space(self.page.row_height)
                if broke:
                    logger.debug(
                        f"Section '{section.title}' continues on page {cursor.page_index} "
                        f"at row {index}"
                    )
                    cursor = self._redraw_after_break(section, layout, cursor)
                    headers += 1
                cursor = self._draw_row(row, index, layout, cursor)
                total += section.total_value(row)

            if section.total_key is not None:
                cursor, broke = cursor.ensure_space(self.page.total_row_height)
                if broke:
                    cursor = self._redraw_after_break(section, layout, cursor)
                    headers += 1
                cursor = self._draw_total(section, total, cursor)

        self.document.section_results.append(SectionResult(
            title=section.title,
            kind=section.kind,
            total=total,
            row_count=len(section.rows),
            first_page=first_page,
            last_page=cursor.page_index,
            header_count=headers,
        ))

        return cursor.advance(self.page.section_gap), total

    # =========================================================================
    # LAYOUT
    # =========================================================================

    def _column_layout(self, section: Section) -> list[tuple[ResolvedColumn, float, float]]:
        """Compute (column, x, width) for every column.

        Columns wider in total than the content area are scaled down to fit.
        """
        declared = sum(column.spec.width for column in section.resolved)
        scale = min(1.0, self.page.content_width / declared)

        layout = []
        x = self.page.margin
        for column in section.resolved:
            width = column.spec.width * scale
            layout.append((column, x, width))
            x += width
        return layout

    def _text_x(self, x: float, width: float, alignment: Alignment) -> float:
        padding = self.fmt.cell_padding
        if alignment == Alignment.RIGHT:
            return x + width - padding
        if alignment == Alignment.CENTER:
            return x + width / 2
        return x + padding

    def _band(
        self,
        cursor: PageCursor,
        height: float,
        role: DrawRole,
        fill,
        stroke,
        row_index: Optional[int] = None,
    ) -> None:
        self.document.draw(cursor.page_index, DrawRect(
            x=self.page.margin,
            y=cursor.current_y,
            width=self.page.content_width,
            height=height,
            role=role,
            fill=fill,
            stroke=stroke,
            radius=2,
            row_index=row_index,
        ))

    # =========================================================================
    # DRAWING
    # =========================================================================

    def _draw_title(self, text: str, cursor: PageCursor, role: DrawRole) -> PageCursor:
        self.document.draw(cursor.page_index, DrawText(
            text=text,
            x=self.page.margin,
            y=cursor.current_y + 7,
            role=role,
            font_size=14,
            bold=True,
            color=ReportColors.ACCENT,
        ))
        return cursor.advance(self.page.title_height)

    def _draw_header(self, layout, cursor: PageCursor) -> PageCursor:
        band_height = self.page.header_height - 2
        self._band(
            cursor, band_height, DrawRole.HEADER,
            ReportColors.HEADER_BG, ReportColors.HEADER_BORDER,
        )
        for column, x, width in layout:
            self.document.draw(cursor.page_index, DrawText(
                text=ellipsize(column.spec.label, width, self.fmt),
                x=self._text_x(x, width, column.alignment),
                y=cursor.current_y + 7,
                role=DrawRole.HEADER,
                bold=True,
                color=ReportColors.HEADER_TEXT,
                align=column.alignment,
            ))
        return cursor.advance(self.page.header_height)

    def _redraw_after_break(self, section: Section, layout, cursor: PageCursor) -> PageCursor:
        """Continuation caption (if configured) and the column header again."""
        suffix = self.fmt.continuation_suffix
        if suffix:
            cursor = self._draw_title(f"{section.title}{suffix}", cursor, DrawRole.CONTINUATION)
        return self._draw_header(layout, cursor)

    def _draw_row(self, row: Row, index: int, layout, cursor: PageCursor) -> PageCursor:
        band_height = self.page.row_height - 2
        self._band(
            cursor, band_height, DrawRole.ROW,
            ReportColors.ROW_SHADES[index % 2], ReportColors.ROW_BORDER,
            row_index=index,
        )
        for column, x, width in layout:
            text = column.text(row, self.fmt)
            if column.spec.kind == ColumnKind.TEXT:
                text = ellipsize(text, width, self.fmt)
            self.document.draw(cursor.page_index, DrawText(
                text=text,
                x=self._text_x(x, width, column.alignment),
                y=cursor.current_y + 7,
                role=DrawRole.ROW,
                align=column.alignment,
                row_index=index,
            ))
        return cursor.advance(self.page.row_height)

    def _draw_placeholder(self, section: Section, layout, cursor: PageCursor) -> PageCursor:
        band_height = self.page.row_height - 2
        self._band(
            cursor, band_height, DrawRole.PLACEHOLDER,
            ReportColors.ROW_SHADES[0], ReportColors.ROW_BORDER,
            row_index=0,
        )
        primary = section.primary_column
        for column, x, width in layout:
            if column is not primary:
                continue
            self.document.draw(cursor.page_index, DrawText(
                text=self.fmt.placeholder_text,
                x=self._text_x(x, width, Alignment.LEFT),
                y=cursor.current_y + 7,
                role=DrawRole.PLACEHOLDER,
                italic=True,
                color=ReportColors.MUTED,
                row_index=0,
            ))
        return cursor.advance(self.page.row_height)

    def _draw_total(self, section: Section, total: Decimal, cursor: PageCursor) -> PageCursor:
        top = cursor.advance(5)
        self.document.draw(top.page_index, DrawRect(
            x=self.page.margin,
            y=top.current_y - 2,
            width=self.page.content_width,
            height=self.page.total_row_height - 5,
            role=DrawRole.TOTAL,
            fill=ReportColors.TOTAL_BG,
            stroke=ReportColors.TOTAL_BORDER,
            radius=2,
        ))

        column = section.total_column
        if column is not None:
            amount = column.formatter(total, self.fmt)
        else:
            amount = format_currency(total, self.fmt)

        self.document.draw(top.page_index, DrawText(
            text=f"TOTAL {section.title.upper()}:",
            x=self.page.margin + 10,
            y=top.current_y + 8,
            role=DrawRole.TOTAL,
            font_size=11,
            bold=True,
        ))
        self.document.draw(top.page_index, DrawText(
            text=amount,
            x=self.page.width - self.page.margin - 10,
            y=top.current_y + 8,
            role=DrawRole.TOTAL,
            font_size=11,
            bold=True,
            color=ReportColors.ACCENT,
            align=Alignment.RIGHT,
        ))
        return cursor.advance(self.page.total_row_height)
