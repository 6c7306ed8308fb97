"""Summary aggregator: combines section totals into the net figure.

The net total is the configured minuend total minus every configured
subtrahend total. With default settings:

    net_total = total_sales - total_returns - total_bottles

Damages are listed in the summary but never subtracted unless the settings
say so.
"""

import logging
from decimal import Decimal
from typing import Mapping, Optional

from stockreport.domain.document import (
    Document,
    DrawRect,
    DrawRole,
    DrawText,
    ReportColors,
    Summary,
    SummaryLine,
)
from stockreport.domain.formatting import Alignment, format_currency
from stockreport.domain.models import SectionKind
from stockreport.domain.settings import ReportSettings
from stockreport.services.pagination import PageCursor

logger = logging.getLogger(__name__)


class SummaryAggregator:
    """Builds and draws the cross-section summary block."""

    # Contributors in display order
    LINE_LABELS = {
        SectionKind.SALES: "Total Sales",
        SectionKind.RETURNS: "Total Returns",
        SectionKind.BOTTLES: "Total Bottles",
        SectionKind.DAMAGES: "Total Damages",
    }

    def __init__(self, settings: Optional[ReportSettings] = None):
        """Initialize summary aggregator.

        Args:
            settings: Report settings (defaults if omitted)
        """
        self.settings = settings or ReportSettings()

    def net_total(self, totals: Mapping[SectionKind, Decimal]) -> Decimal:
        """Apply the configured net total formula.

        Example:
            >>> aggregator = SummaryAggregator()
            >>> aggregator.net_total({SectionKind.SALES: Decimal(20),
            ...                       SectionKind.RETURNS: Decimal(5),
            ...                       SectionKind.BOTTLES: Decimal(3),
            ...                       SectionKind.DAMAGES: Decimal(100)})
            Decimal('12')
        """
        formula = self.settings.net_total
        net = totals.get(SectionKind(formula.minuend), Decimal("0"))
        for kind in formula.subtrahends:
            net -= totals.get(SectionKind(kind), Decimal("0"))
        return net

    def aggregate(
        self,
        totals: Mapping[SectionKind, Decimal],
        row_counts: Optional[Mapping[Optional[SectionKind], int]] = None,
    ) -> Summary:
        """Combine per-section totals into a Summary.

        Args:
            totals: Total per section kind (missing kinds count as zero)
            row_counts: Rows per section kind, with None for sections that
                have no kind; when omitted, a section counts as empty if its
                total is zero

        Returns:
            Summary with one line per non-zero contributor and the net total
        """
        totals = {kind: totals.get(kind, Decimal("0")) for kind in self.LINE_LABELS}

        if row_counts is None:
            is_empty = all(amount == 0 for amount in totals.values())
        else:
            is_empty = all(count == 0 for count in row_counts.values())

        lines = ()
        if not is_empty:
            lines = tuple(
                SummaryLine(label, totals[kind])
                for kind, label in self.LINE_LABELS.items()
                if totals[kind] != 0
            )

        return Summary(
            totals=totals,
            lines=lines,
            net_total=self.net_total(totals),
            is_empty=is_empty,
        )

    def block_height(self, summary: Summary) -> float:
        """Concrete height of the summary block for this data."""
        page = self.settings.page
        line_count = 1 if summary.is_empty else len(summary.lines) + 1
        return page.summary_title_height + line_count * page.summary_line_height + page.summary_padding

    def render(self, summary: Summary, cursor: PageCursor, document: Document) -> PageCursor:
        """Draw the summary block, breaking the page first if it does not fit.

        Returns:
            Cursor below the block
        """
        page = self.settings.page
        fmt = self.settings.format
        height = self.block_height(summary)

        cursor, _ = cursor.ensure_space(height)
        page_index = cursor.page_index

        def draw(command) -> None:
            document.draw(page_index, command)

        draw(DrawRect(
            x=page.margin,
            y=cursor.current_y,
            width=page.content_width,
            height=height,
            role=DrawRole.SUMMARY,
            fill=ReportColors.TOTAL_BG,
            stroke=ReportColors.TOTAL_BORDER,
            radius=2,
        ))
        draw(DrawText(
            text="SUMMARY",
            x=page.margin + 10,
            y=cursor.current_y + 8,
            role=DrawRole.SUMMARY,
            font_size=12,
            bold=True,
            color=ReportColors.ACCENT,
        ))

        y = cursor.current_y + page.summary_title_height
        left = page.margin + 10
        right = page.width - page.margin - 10

        if summary.is_empty:
            draw(DrawText(
                text=fmt.empty_summary_text,
                x=left,
                y=y + 5,
                role=DrawRole.SUMMARY,
                italic=True,
                color=ReportColors.MUTED,
            ))
            return cursor.advance(height)

        for line in summary.lines:
            draw(DrawText(text=f"{line.label}:", x=left, y=y + 5, role=DrawRole.SUMMARY))
            draw(DrawText(
                text=format_currency(line.amount, fmt),
                x=right,
                y=y + 5,
                role=DrawRole.SUMMARY,
                align=Alignment.RIGHT,
            ))
            y += page.summary_line_height

        draw(DrawText(
            text="NET TOTAL:",
            x=left,
            y=y + 5,
            role=DrawRole.SUMMARY,
            font_size=11,
            bold=True,
        ))
        draw(DrawText(
            text=format_currency(summary.net_total, fmt),
            x=right,
            y=y + 5,
            role=DrawRole.SUMMARY,
            font_size=11,
            bold=True,
            color=ReportColors.ACCENT,
            align=Alignment.RIGHT,
        ))

        logger.debug(f"Summary drawn on page {cursor.page_index}: net {summary.net_total}")
        return cursor.advance(height)
