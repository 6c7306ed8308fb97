"""Report builder service for paged documents and grouped workbooks.

One builder drives both output paths:
- print: sections rendered in order onto a Document, then the summary block
- spreadsheet: rows grouped by category with subtotals onto a Workbook
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from stockreport.domain.document import (
    Document,
    DrawRect,
    DrawRole,
    DrawText,
    ReportColors,
    Sheet,
    Workbook,
)
from stockreport.domain.formatting import (
    SPREADSHEET_FORMATS,
    Alignment,
    ColumnKind,
    format_currency,
)
from stockreport.domain.models import ColumnSpec, Row, Section, SectionKind
from stockreport.domain.settings import ReportSettings
from stockreport.services.grouping import (
    aggregate,
    extended_value,
    grand_total,
    group_rows,
    single_group,
)
from stockreport.services.pagination import PageCursor
from stockreport.services.summary import SummaryAggregator
from stockreport.services.table_renderer import TableRenderer

logger = logging.getLogger(__name__)

RowLike = Union[Row, Mapping[str, Any]]
Period = Union[date, tuple[date, date], str, None]


@dataclass(frozen=True, slots=True)
class SectionTemplate:
    """Standard title, columns and total column for a section kind."""

    title: str
    columns: tuple[ColumnSpec, ...]
    total_key: Optional[str] = None


def _movement_columns(value_label: str) -> tuple[ColumnSpec, ...]:
    """Columns shared by the damage and return sections."""
    return (
        ColumnSpec("category", "CATEGORY", 30),
        ColumnSpec("product", "PRODUCT", 35),
        ColumnSpec("quantity", "QTY", 15, ColumnKind.INTEGER),
        ColumnSpec("reason", "REASON", 40),
        ColumnSpec("date", "DATE", 25, ColumnKind.DATE),
        ColumnSpec("value", value_label, 35, ColumnKind.CURRENCY),
    )


STANDARD_SECTIONS: dict[SectionKind, SectionTemplate] = {
    SectionKind.SALES: SectionTemplate(
        title="SALES DETAILS",
        columns=(
            ColumnSpec("category", "CATEGORY", 45),
            ColumnSpec("product", "PRODUCT", 55),
            ColumnSpec("quantity", "QTY", 20, ColumnKind.INTEGER),
            ColumnSpec("unit_price", "PRICE", 30, ColumnKind.CURRENCY),
            ColumnSpec("value", "TOTAL", 30, ColumnKind.CURRENCY),
        ),
        total_key="value",
    ),
    SectionKind.DAMAGES: SectionTemplate(
        title="DAMAGE REPORTS",
        columns=_movement_columns("LOSS"),
        total_key="value",
    ),
    SectionKind.RETURNS: SectionTemplate(
        title="RETURN REPORTS",
        columns=_movement_columns("VALUE"),
        total_key="value",
    ),
    SectionKind.BOTTLES: SectionTemplate(
        title="BOTTLES",
        columns=(
            ColumnSpec("item_type", "TYPE", 40),
            ColumnSpec("unit", "UNIT", 25),
            ColumnSpec("quantity", "QTY", 20, ColumnKind.INTEGER),
            ColumnSpec("unit_price", "PRICE", 30, ColumnKind.CURRENCY),
            ColumnSpec("date", "DATE", 30, ColumnKind.DATE),
            ColumnSpec("value", "VALUE", 35, ColumnKind.CURRENCY),
        ),
        total_key="value",
    ),
    SectionKind.STOCK: SectionTemplate(
        title="STOCK",
        columns=(
            ColumnSpec("product", "PRODUCT", 100),
            ColumnSpec("quantity", "STOCK", 35, ColumnKind.INTEGER),
            ColumnSpec("unit_price", "PRICE", 45, ColumnKind.CURRENCY),
        ),
    ),
}

STOCK_SHEET_HEADER = ["Product Name", "Stock", "Price", "Total Value"]
STOCK_SHEET_WIDTHS = [40, 12, 15, 15]
STOCK_SHEET_FORMATS = [None, "0", "#,##0.00", "#,##0.00"]


def coerce_rows(rows: Iterable[RowLike]) -> tuple[Row, ...]:
    """Accept Row objects or plain mappings."""
    return tuple(row if isinstance(row, Row) else Row.from_mapping(row) for row in rows)


class ReportBuilder:
    """Builder for stock, sales and movement reports.

    Produces finished Document/Workbook objects; writing them to disk is the
    export service's job.
    """

    ALL_CATEGORIES = "All Categories"

    def __init__(self, settings: Optional[ReportSettings] = None):
        """Initialize report builder.

        Args:
            settings: Report settings (defaults if omitted)
        """
        self.settings = settings or ReportSettings()
        self.aggregator = SummaryAggregator(self.settings)

    # =========================================================================
    # SECTIONS
    # =========================================================================

    def standard_section(
        self,
        kind: SectionKind,
        rows: Iterable[RowLike],
        title: Optional[str] = None,
    ) -> Section:
        """Build a section with the standard columns for its kind."""
        template = STANDARD_SECTIONS[kind]
        return Section(
            title=title or template.title,
            rows=coerce_rows(rows),
            columns=template.columns,
            total_key=template.total_key,
            kind=kind,
        )

    # =========================================================================
    # PRINT PATH
    # =========================================================================

    def build_document(
        self,
        title: str,
        sections: Sequence[Section],
        subtitle: Optional[str] = None,
        include_summary: bool = True,
        generated_at: Optional[datetime] = None,
    ) -> Document:
        """Render sections in order onto a new Document.

        Args:
            title: Banner title
            sections: Sections in print order
            subtitle: Banner subtitle (report period etc.)
            include_summary: Draw the cross-section summary block
            generated_at: Timestamp for the footer (defaults to now)

        Returns:
            Finished Document. Any failure propagates; nothing partial is
            returned.
        """
        document, cursor = self._start_document(title, subtitle, generated_at)
        cursor = self._render_sections(document, sections, cursor, include_summary)
        return self._finish_document(document, len(sections))

    def _start_document(
        self,
        title: str,
        subtitle: Optional[str],
        generated_at: Optional[datetime],
    ) -> tuple[Document, PageCursor]:
        page = self.settings.page
        document = Document(
            title=title,
            page_width=page.width,
            page_height=page.height,
            generated_at=generated_at or datetime.now(),
        )
        self._draw_banner(document, title, subtitle)
        return document, PageCursor.from_settings(page)

    def _render_sections(
        self,
        document: Document,
        sections: Sequence[Section],
        cursor: PageCursor,
        include_summary: bool,
    ) -> PageCursor:
        renderer = TableRenderer(document, self.settings)

        totals: dict[SectionKind, Decimal] = defaultdict(Decimal)
        # Sections without a kind are counted under None
        row_counts: dict[Optional[SectionKind], int] = defaultdict(int)

        for section in sections:
            cursor, total = renderer.render(section, cursor)
            row_counts[section.kind] += len(section.rows)
            if section.kind is not None:
                totals[section.kind] += total

        if include_summary:
            summary = self.aggregator.aggregate(totals, row_counts)
            cursor = self.aggregator.render(summary, cursor, document)
            document.summary = summary

        return cursor

    def _finish_document(self, document: Document, section_count: int) -> Document:
        self._draw_footer(document)
        logger.info(
            f"Built document '{document.title}': {section_count} sections, "
            f"{document.page_count} pages"
        )
        return document

    def build_sales_report(
        self,
        sales: Iterable[RowLike],
        damages: Iterable[RowLike] = (),
        returns: Iterable[RowLike] = (),
        bottles: Iterable[RowLike] = (),
        period: Period = None,
        generated_at: Optional[datetime] = None,
    ) -> Document:
        """Standard sales and inventory report with its four sections."""
        sections = [
            self.standard_section(SectionKind.SALES, sales),
            self.standard_section(SectionKind.DAMAGES, damages),
            self.standard_section(SectionKind.RETURNS, returns),
            self.standard_section(SectionKind.BOTTLES, bottles),
        ]

        subtitle = None
        if period is not None:
            subtitle = f"Report Period: {self.format_period(period)}"

        return self.build_document(
            "SALES AND INVENTORY REPORT",
            sections,
            subtitle=subtitle,
            generated_at=generated_at,
        )

    def build_category_stock_document(
        self,
        category_name: str,
        rows: Iterable[RowLike],
        generated_at: Optional[datetime] = None,
    ) -> Document:
        """Stock listing for one category with a products/stock/value block."""
        generated_at = generated_at or datetime.now()
        section = self.standard_section(SectionKind.STOCK, rows, title=category_name.upper())

        document, cursor = self._start_document(
            f"CATEGORY STOCK REPORT: {category_name.upper()}",
            f"Generated on: {generated_at.strftime(self.settings.format.period_format)}",
            generated_at,
        )
        cursor = self._render_sections(document, [section], cursor, include_summary=False)
        self._draw_stock_block(document, section.rows, cursor)
        return self._finish_document(document, 1)

    def format_period(self, period: Period) -> str:
        """Human readable report period."""
        fmt = self.settings.format.period_format
        if isinstance(period, tuple):
            start, end = period
            if start == end:
                return start.strftime(fmt)
            return f"{start.strftime(fmt)} to {end.strftime(fmt)}"
        if isinstance(period, date):
            return period.strftime(fmt)
        return str(period)

    def _draw_banner(self, document: Document, title: str, subtitle: Optional[str]) -> None:
        page = self.settings.page
        document.draw(0, DrawRect(
            x=0, y=0, width=page.width, height=page.banner_height,
            role=DrawRole.BANNER, fill=ReportColors.ACCENT,
        ))
        document.draw(0, DrawText(
            text=title, x=page.width / 2, y=25, role=DrawRole.BANNER,
            font_size=22 if len(title) <= 32 else 16, bold=True,
            color=ReportColors.WHITE, align=Alignment.CENTER,
        ))
        if subtitle:
            document.draw(0, DrawText(
                text=subtitle, x=page.width / 2, y=33, role=DrawRole.BANNER,
                font_size=12, color=ReportColors.WHITE, align=Alignment.CENTER,
            ))

    def _draw_footer(self, document: Document) -> None:
        page = self.settings.page
        stamp = document.generated_at.strftime(self.settings.format.timestamp_format)
        document.draw(document.page_count - 1, DrawText(
            text=f"Generated on {stamp}",
            x=page.width / 2,
            y=page.height - page.footer_offset,
            role=DrawRole.FOOTER,
            font_size=8,
            italic=True,
            color=ReportColors.MUTED,
            align=Alignment.CENTER,
        ))

    def _draw_stock_block(self, document: Document, rows: Sequence[Row], cursor: PageCursor) -> PageCursor:
        page = self.settings.page
        fmt = self.settings.format
        totals = aggregate(rows)

        line = page.summary_line_height
        height = 3 * line + 2 * page.summary_padding
        cursor, _ = cursor.ensure_space(height)

        document.draw(cursor.page_index, DrawRect(
            x=page.margin, y=cursor.current_y, width=page.content_width, height=height,
            role=DrawRole.SUMMARY, fill=ReportColors.TOTAL_BG,
            stroke=ReportColors.TOTAL_BORDER, radius=2,
        ))

        entries = [
            ("Total Products:", str(totals.count), ReportColors.TEXT),
            ("Total Stock:", str(totals.quantity), ReportColors.TEXT),
            ("Total Value:", format_currency(totals.value, fmt), ReportColors.ACCENT),
        ]
        y = cursor.current_y + page.summary_padding + 5
        for label, amount, color in entries:
            document.draw(cursor.page_index, DrawText(
                text=label, x=page.margin + 10, y=y, role=DrawRole.SUMMARY, bold=True,
            ))
            document.draw(cursor.page_index, DrawText(
                text=amount, x=page.width - page.margin - 10, y=y, role=DrawRole.SUMMARY,
                bold=True, color=color, align=Alignment.RIGHT,
            ))
            y += line

        return cursor.advance(height)

    # =========================================================================
    # SPREADSHEET PATH
    # =========================================================================

    def build_stock_workbook(
        self,
        category_name: str,
        rows: Iterable[RowLike],
        generated_at: Optional[datetime] = None,
    ) -> Workbook:
        """Stock workbook; "All Categories" groups rows with subtotals.

        Args:
            category_name: Category exported, or ALL_CATEGORIES
            rows: Product rows (product, quantity = current stock, unit_price)
            generated_at: Timestamp written under the title

        Returns:
            Workbook with a single sheet
        """
        rows = coerce_rows(rows)
        stamp = (generated_at or datetime.now()).strftime(self.settings.format.timestamp_format)
        workbook = Workbook()

        if category_name == self.ALL_CATEGORIES:
            sheet = workbook.add_sheet("Stock Report", STOCK_SHEET_WIDTHS)
            sheet.add_row(["Stock Report - All Categories"], bold=True)
            sheet.add_row(["Generated on", stamp], bold=True)
            sheet.add_row([])

            groups = group_rows(rows)
            for group in groups:
                sheet.add_row([f"Category: {group.key}"], bold=True)
                sheet.add_row(STOCK_SHEET_HEADER, bold=True)
                self._add_stock_rows(sheet, group.rows)
                sheet.add_row(
                    [f"Subtotal ({group.key})", group.subtotal_quantity, "", group.subtotal_value],
                    bold=True,
                    formats=STOCK_SHEET_FORMATS,
                )
                sheet.add_row([])
                sheet.add_row([])

            totals = grand_total(groups)
            sheet.add_row(["GRAND TOTAL", "", "", ""], bold=True)
        else:
            sheet = workbook.add_sheet(category_name, STOCK_SHEET_WIDTHS)
            sheet.add_row([f"Stock Report - {category_name}"], bold=True)
            sheet.add_row(["Generated on", stamp], bold=True)
            sheet.add_row([])
            sheet.add_row(STOCK_SHEET_HEADER, bold=True)

            group = single_group(rows, key=category_name)
            self._add_stock_rows(sheet, group.rows)
            sheet.add_row([])
            totals = grand_total([group])

        sheet.add_row(["Total Products", totals.count], bold=True, formats=STOCK_SHEET_FORMATS)
        sheet.add_row(["Total Stock", totals.quantity], bold=True, formats=STOCK_SHEET_FORMATS)
        sheet.add_row(["Total Value", "", "", totals.value], bold=True, formats=STOCK_SHEET_FORMATS)

        logger.info(f"Built stock workbook for '{category_name}': {totals.count} products")
        return workbook

    def _add_stock_rows(self, sheet: Sheet, rows: Sequence[Row]) -> None:
        for row in rows:
            sheet.add_row(
                [row.product or "", row.quantity, row.unit_price, row.extended_value],
                formats=STOCK_SHEET_FORMATS,
            )

    def build_report_workbook(
        self,
        sections: Sequence[Section],
        generated_at: Optional[datetime] = None,
    ) -> Workbook:
        """One sheet per section, rows grouped by category with subtotals.

        Sections without a category column are exported as a single group.
        """
        stamp = (generated_at or datetime.now()).strftime(self.settings.format.timestamp_format)
        workbook = Workbook()

        for section in sections:
            widths = [max(10, round(column.spec.width / 2)) for column in section.resolved]
            sheet = workbook.add_sheet(section.title, widths)
            sheet.add_row([section.title], bold=True)
            sheet.add_row(["Generated on", stamp], bold=True)
            sheet.add_row([])

            if section.is_empty:
                sheet.add_row([self.settings.format.placeholder_text])
                continue

            self._add_section_groups(sheet, section)

        logger.info(f"Built report workbook: {len(workbook.sheets)} sheets")
        return workbook

    def _add_section_groups(self, sheet: Sheet, section: Section) -> None:
        labels = [column.spec.label for column in section.resolved]
        formats = [SPREADSHEET_FORMATS[column.spec.kind] for column in section.resolved]
        keys = [column.key for column in section.resolved]

        value_of = section.total_value if section.total_key else extended_value
        value_index = keys.index(section.total_key) if section.total_key in keys else None
        quantity_index = keys.index("quantity") if "quantity" in keys else None

        if "category" in keys:
            groups = group_rows(section.rows, value_of=value_of)
        else:
            groups = [single_group(section.rows, value_of=value_of)]

        def totals_row(label: str, quantity: int, value: Decimal) -> list[Any]:
            cells: list[Any] = [""] * len(keys)
            cells[0] = label
            if quantity_index is not None and quantity_index > 0:
                cells[quantity_index] = quantity
            if value_index is not None and value_index > 0:
                cells[value_index] = value
            return cells

        for group in groups:
            if group.show_header:
                sheet.add_row([f"Category: {group.key}"], bold=True)
            sheet.add_row(labels, bold=True)
            for row in group.rows:
                sheet.add_row([self._sheet_value(column, row) for column in section.resolved], formats=formats)
            if group.show_header:
                sheet.add_row(
                    totals_row(f"Subtotal ({group.key})", group.subtotal_quantity, group.subtotal_value),
                    bold=True,
                    formats=formats,
                )
            sheet.add_row([])

        totals = grand_total(groups)
        sheet.add_row(totals_row("GRAND TOTAL", totals.quantity, totals.value), bold=True, formats=formats)

    def _sheet_value(self, column, row: Row) -> Any:
        """Raw cell value; text stays untruncated."""
        value = column.raw(row)
        if column.spec.kind == ColumnKind.TEXT:
            return "" if value is None else str(value)
        return value
