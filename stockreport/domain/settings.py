"""Report settings with Pydantic validation.

Settings are stored as JSON and validated using Pydantic models. All
lengths are millimetres on a top-down page (y grows towards the bottom edge).
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


SECTION_KIND_PATTERN = "^(sales|damages|returns|bottles|stock)$"


class PageSettings(BaseModel):
    """Page geometry and the fixed render height of every layout element."""

    width: float = Field(default=210.0, gt=0)  # A4
    height: float = Field(default=297.0, gt=0)
    margin: float = Field(default=15.0, ge=0)  # Left and right
    top_margin: float = Field(default=20.0, ge=0)
    bottom_margin: float = Field(default=20.0, ge=0)

    # First page starts below the report banner
    banner_height: float = Field(default=40.0, ge=0)
    first_page_start: float = Field(default=55.0, ge=0)

    title_height: float = Field(default=10.0, gt=0)
    header_height: float = Field(default=12.0, gt=0)
    row_height: float = Field(default=12.0, gt=0)
    total_row_height: float = Field(default=20.0, gt=0)
    section_gap: float = Field(default=8.0, ge=0)

    summary_title_height: float = Field(default=12.0, gt=0)
    summary_line_height: float = Field(default=8.0, gt=0)
    summary_padding: float = Field(default=6.0, ge=0)

    footer_offset: float = Field(default=10.0, ge=0)

    model_config = {"validate_assignment": True}

    @property
    def content_width(self) -> float:
        """Width available between the left and right margins."""
        return self.width - 2 * self.margin

    @property
    def usable_height(self) -> float:
        """Height available between the top and bottom margins."""
        return self.height - self.top_margin - self.bottom_margin

    @model_validator(mode="after")
    def _check_geometry(self) -> "PageSettings":
        if self.usable_height <= 0:
            raise ValueError("Margins leave no room on the page")

        if self.content_width <= 0:
            raise ValueError("Side margins leave no room on the page")

        limit = self.height - self.bottom_margin
        if not self.top_margin <= self.first_page_start <= limit:
            raise ValueError("first_page_start must lie between the page margins")

        # A continuation caption, a header and the tallest row must fit on a fresh page
        block = self.title_height + self.header_height + max(
            self.row_height, self.total_row_height
        )
        if block > self.usable_height:
            raise ValueError("Element heights exceed the usable page height")

        return self


class FormatSettings(BaseModel):
    """Locale and text formatting rules shared by the print and spreadsheet paths."""

    currency_prefix: str = "Rs "
    date_format: str = "%d %b %Y"
    period_format: str = "%B %d, %Y"
    timestamp_format: str = "%d %b %Y %H:%M"

    # Print truncation uses an average glyph width instead of font metrics
    char_width: float = Field(default=2.0, gt=0)
    cell_padding: float = Field(default=3.0, ge=0)
    ellipsis: str = "..."

    placeholder_text: str = "No data found"
    empty_summary_text: str = "No data available"
    continuation_suffix: Optional[str] = " (continued)"

    model_config = {"validate_assignment": True}


class NetTotalSettings(BaseModel):
    """Net total formula: minuend total minus every subtrahend total.

    Damages are tracked and displayed but not subtracted by default.
    """

    minuend: str = Field(default="sales", pattern=SECTION_KIND_PATTERN)
    subtrahends: list[str] = Field(default_factory=lambda: ["returns", "bottles"])

    model_config = {"validate_assignment": True}

    @field_validator("subtrahends")
    @classmethod
    def _check_subtrahends(cls, value: list[str]) -> list[str]:
        allowed = {"sales", "damages", "returns", "bottles", "stock"}
        unknown = [kind for kind in value if kind not in allowed]
        if unknown:
            raise ValueError(f"Unknown section kinds: {unknown}")
        if len(set(value)) != len(value):
            raise ValueError("Subtrahends must not repeat")
        return value


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    model_config = {"validate_assignment": True}


class ReportSettings(BaseModel):
    """Report generation settings with validation.

    Example:
        >>> settings = ReportSettings()
        >>> settings.format.currency_prefix = "$"
        >>> settings.net_total.subtrahends = ["returns"]
    """

    page: PageSettings = Field(default_factory=PageSettings)
    format: FormatSettings = Field(default_factory=FormatSettings)
    net_total: NetTotalSettings = Field(default_factory=NetTotalSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {
        "validate_assignment": True,
        "extra": "forbid",
    }
