"""Tests for the page cursor."""

import pytest
from stockreport.domain.settings import PageSettings
from stockreport.services.pagination import PageCursor


@pytest.fixture
def cursor():
    return PageCursor(current_y=20, page_height=100, top_margin=20, bottom_margin=20)


class TestPageCursor:
    """Tests for PageCursor."""

    def test_from_settings_starts_below_banner(self):
        """The first page starts below the banner."""
        cursor = PageCursor.from_settings(PageSettings())

        assert cursor.current_y == 55
        assert cursor.page_index == 0
        assert cursor.limit == 277

    def test_fits_up_to_limit(self, cursor):
        """An element ending exactly on the limit fits."""
        assert cursor.fits(60)
        assert not cursor.fits(60.5)

    def test_ensure_space_without_break(self, cursor):
        """Enough room leaves the cursor where it is."""
        moved = cursor.advance(30)
        result, broke = moved.ensure_space(20)

        assert not broke
        assert result is moved

    def test_ensure_space_breaks_page(self, cursor):
        """Not enough room starts a new page at the top margin."""
        moved = cursor.advance(50)
        result, broke = moved.ensure_space(20)

        assert broke
        assert result.page_index == 1
        assert result.current_y == 20

    def test_oversized_element_on_fresh_page(self, cursor):
        """A fresh page never breaks again, whatever the element height."""
        result, broke = cursor.ensure_space(500)

        assert not broke
        assert result.page_index == 0

    def test_cursor_is_immutable(self, cursor):
        """Operations return new cursors."""
        moved = cursor.advance(10)

        assert cursor.current_y == 20
        assert moved.current_y == 30
        assert moved.remaining == 50

    def test_invalid_geometry_raises_error(self):
        """Margins must leave room and the cursor must start inside them."""
        with pytest.raises(ValueError):
            PageCursor(current_y=20, page_height=40, top_margin=20, bottom_margin=20)
        with pytest.raises(ValueError):
            PageCursor(current_y=5, page_height=100, top_margin=20, bottom_margin=20)
