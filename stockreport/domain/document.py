"""Finished report artifacts handed to a sink.

A Document is a list of pages holding abstract draw commands in top-down
millimetre coordinates. A Workbook is a list of sheets holding cell matrices.
Neither knows anything about PDF or XLSX encoding.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Optional, Union

from stockreport.domain.formatting import Alignment
from stockreport.domain.models import SectionKind


Color = tuple[int, int, int]


class ReportColors:
    """Report palette as RGB tuples."""

    ACCENT = (59, 130, 246)  # Blue-500
    WHITE = (255, 255, 255)
    TEXT = (15, 23, 42)  # Slate-900
    HEADER_TEXT = (30, 41, 59)  # Slate-800
    MUTED = (100, 116, 139)  # Slate-500

    HEADER_BG = (248, 250, 252)
    HEADER_BORDER = (209, 213, 219)
    ROW_BASE = WHITE
    ROW_ALT = (248, 250, 252)
    ROW_BORDER = (226, 232, 240)
    TOTAL_BG = (241, 245, 249)  # Slate-100
    TOTAL_BORDER = (203, 213, 225)  # Slate-300

    # Row shading by absolute row index parity
    ROW_SHADES = (ROW_BASE, ROW_ALT)


class DrawRole(Enum):
    """What a draw command belongs to."""

    BANNER = "banner"
    TITLE = "title"
    CONTINUATION = "continuation"
    HEADER = "header"
    ROW = "row"
    PLACEHOLDER = "placeholder"
    TOTAL = "total"
    SUMMARY = "summary"
    FOOTER = "footer"


@dataclass(frozen=True, slots=True)
class DrawText:
    """Text anchored at a baseline point; align decides which end x marks."""

    text: str
    x: float
    y: float
    role: DrawRole
    font_size: float = 10
    bold: bool = False
    italic: bool = False
    color: Color = ReportColors.TEXT
    align: Alignment = Alignment.LEFT
    row_index: Optional[int] = None


@dataclass(frozen=True, slots=True)
class DrawRect:
    """Rectangle given by its top-left corner and size."""

    x: float
    y: float
    width: float
    height: float
    role: DrawRole
    fill: Optional[Color] = None
    stroke: Optional[Color] = None
    radius: float = 0
    row_index: Optional[int] = None


DrawCommand = Union[DrawText, DrawRect]


@dataclass
class Page:
    """One page of draw commands."""

    index: int
    commands: list[DrawCommand] = field(default_factory=list)

    def texts(self, role: Optional[DrawRole] = None) -> list[DrawText]:
        return [
            c for c in self.commands
            if isinstance(c, DrawText) and (role is None or c.role == role)
        ]

    def rects(self, role: Optional[DrawRole] = None) -> list[DrawRect]:
        return [
            c for c in self.commands
            if isinstance(c, DrawRect) and (role is None or c.role == role)
        ]


@dataclass(frozen=True, slots=True)
class SectionResult:
    """What rendering one section produced."""

    title: str
    kind: Optional[SectionKind]
    total: Decimal
    row_count: int
    first_page: int
    last_page: int
    header_count: int

    @property
    def pages_spanned(self) -> int:
        return self.last_page - self.first_page + 1


@dataclass(frozen=True, slots=True)
class SummaryLine:
    label: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class Summary:
    """Cross-section totals and the net figure derived from them."""

    totals: dict[SectionKind, Decimal]
    lines: tuple[SummaryLine, ...]
    net_total: Decimal
    is_empty: bool


@dataclass
class Document:
    """Paged draw commands for the print path."""

    title: str
    page_width: float
    page_height: float
    generated_at: datetime = field(default_factory=datetime.now)
    pages: list[Page] = field(default_factory=list)
    section_results: list[SectionResult] = field(default_factory=list)
    summary: Optional[Summary] = None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page(self, index: int) -> Page:
        """Get a page, creating it (and any before it) on first use."""
        while len(self.pages) <= index:
            self.pages.append(Page(index=len(self.pages)))
        return self.pages[index]

    def draw(self, page_index: int, command: DrawCommand) -> None:
        self.page(page_index).commands.append(command)

    def commands(self, role: Optional[DrawRole] = None) -> Iterator[tuple[int, DrawCommand]]:
        """Iterate (page index, command) over the whole document."""
        for page in self.pages:
            for command in page.commands:
                if role is None or command.role == role:
                    yield page.index, command

    def section(self, title: str) -> SectionResult:
        """Look up a rendered section by title.

        Raises:
            KeyError: If no section with that title was rendered
        """
        for result in self.section_results:
            if result.title == title:
                return result
        raise KeyError(title)


# =============================================================================
# WORKBOOK
# =============================================================================

SHEET_NAME_LIMIT = 31
INVALID_SHEET_CHARS = set('[]:*?/\\')


@dataclass(frozen=True, slots=True)
class Cell:
    """One spreadsheet cell; value None leaves the cell blank."""

    value: Any = None
    bold: bool = False
    number_format: Optional[str] = None


@dataclass
class Sheet:
    """A named matrix of cells."""

    name: str
    column_widths: list[float] = field(default_factory=list)
    rows: list[list[Cell]] = field(default_factory=list)

    def add_row(
        self,
        values: Optional[list[Any]] = None,
        bold: bool = False,
        formats: Optional[list[Optional[str]]] = None,
    ) -> list[Cell]:
        """Append a row of plain values (or ready Cells).

        Args:
            values: Cell values; an empty list adds a spacer row
            bold: Whether every cell in the row is bold
            formats: Optional number format per column
        """
        cells = []
        for i, value in enumerate(values or []):
            if isinstance(value, Cell):
                cells.append(value)
                continue
            number_format = None
            if formats and i < len(formats) and value not in (None, ""):
                number_format = formats[i]
            cells.append(Cell(value=value, bold=bold, number_format=number_format))
        self.rows.append(cells)
        return cells

    def values(self) -> list[list[Any]]:
        """Plain values, row by row."""
        return [[cell.value for cell in row] for row in self.rows]

    def find_row(self, first_value: Any) -> Optional[list[Cell]]:
        """First row whose first cell holds the given value."""
        for row in self.rows:
            if row and row[0].value == first_value:
                return row
        return None


@dataclass
class Workbook:
    """Sheets for the spreadsheet path."""

    sheets: list[Sheet] = field(default_factory=list)

    def add_sheet(self, name: str, column_widths: Optional[list[float]] = None) -> Sheet:
        """Add a sheet, cleaning and de-duplicating the name."""
        sheet = Sheet(name=self._unique_name(name), column_widths=list(column_widths or []))
        self.sheets.append(sheet)
        return sheet

    def sheet(self, name: str) -> Sheet:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        raise KeyError(name)

    def _unique_name(self, name: str) -> str:
        cleaned = "".join("_" if ch in INVALID_SHEET_CHARS else ch for ch in name).strip()
        cleaned = (cleaned or "Sheet")[:SHEET_NAME_LIMIT]

        taken = {sheet.name for sheet in self.sheets}
        candidate = cleaned
        counter = 2
        while candidate in taken:
            suffix = f" ({counter})"
            candidate = cleaned[:SHEET_NAME_LIMIT - len(suffix)] + suffix
            counter += 1
        return candidate
