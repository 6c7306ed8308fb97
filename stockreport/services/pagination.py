"""Page cursor and page-break policy.

The cursor is an immutable value: every operation returns a new cursor, and
callers thread it forward through the render calls.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from stockreport.domain.settings import PageSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PageCursor:
    """Vertical position on the current page (top-down, millimetres)."""

    current_y: float
    page_height: float
    top_margin: float
    bottom_margin: float
    page_index: int = 0

    def __post_init__(self) -> None:
        """Validate cursor geometry."""
        if self.top_margin + self.bottom_margin >= self.page_height:
            raise ValueError("Margins leave no room on the page")
        if self.current_y < self.top_margin:
            raise ValueError("Cursor cannot start above the top margin")
        if self.page_index < 0:
            raise ValueError("Page index cannot be negative")

    @classmethod
    def from_settings(cls, page: PageSettings, start_y: Optional[float] = None) -> "PageCursor":
        """Create a cursor on the first page.

        Args:
            page: Page geometry
            start_y: Starting position; defaults to just below the banner
        """
        return cls(
            current_y=page.first_page_start if start_y is None else start_y,
            page_height=page.height,
            top_margin=page.top_margin,
            bottom_margin=page.bottom_margin,
        )

    @property
    def limit(self) -> float:
        """Lowest position content may reach on a page."""
        return self.page_height - self.bottom_margin

    @property
    def remaining(self) -> float:
        return self.limit - self.current_y

    @property
    def at_page_top(self) -> bool:
        return self.current_y == self.top_margin

    def fits(self, required_height: float) -> bool:
        return self.current_y + required_height <= self.limit

    def ensure_space(self, required_height: float) -> tuple["PageCursor", bool]:
        """Make sure an element of the given height fits on the current page.

        Args:
            required_height: Fixed render height of the next element

        Returns:
            (cursor, broke) where broke is True when a new page was started;
            the caller must then redraw the current section's column header.
        """
        if self.fits(required_height):
            return self, False

        if self.at_page_top:
            # A fresh page is as good as it gets
            logger.warning(
                f"Element of height {required_height:.1f}mm does not fit an empty page"
            )
            return self, False

        return self.break_page(), True

    def break_page(self) -> "PageCursor":
        """Start a new page with the cursor at the top margin."""
        logger.debug(f"Page break: page {self.page_index} -> {self.page_index + 1}")
        return replace(self, current_y=self.top_margin, page_index=self.page_index + 1)

    def advance(self, height: float) -> "PageCursor":
        """Move down after drawing an element."""
        return replace(self, current_y=self.current_y + height)
