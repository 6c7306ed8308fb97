"""Pytest fixtures and configuration."""

import pytest
from datetime import date, datetime
from decimal import Decimal
from stockreport.domain.models import Row
from stockreport.domain.settings import ReportSettings


@pytest.fixture
def make_row():
    """Factory fixture for creating test rows."""

    def _make(**kwargs):
        defaults = {
            "category": "Soft Drinks",
            "product": "Cola 500ml",
            "quantity": 1,
            "unit_price": Decimal("10.00"),
            "entry_date": date(2024, 3, 1),
        }
        defaults.update(kwargs)
        return Row(**defaults)

    return _make


@pytest.fixture
def sample_rows(make_row):
    """Fixture providing the category grouping example rows."""
    return [
        make_row(category="A", product="Apple", quantity=1, unit_price=Decimal("10")),
        make_row(category="B", product="Banana", quantity=2, unit_price=Decimal("5")),
        make_row(category="A", product="Apricot", quantity=3, unit_price=Decimal("10")),
    ]


@pytest.fixture
def many_rows(make_row):
    """Fixture providing enough rows to span several pages."""
    return [
        make_row(product=f"Item {i:03d}", quantity=i % 7 + 1, unit_price=Decimal("2.50"))
        for i in range(60)
    ]


@pytest.fixture
def settings():
    """Default report settings."""
    return ReportSettings()


@pytest.fixture
def generated_at():
    """Fixed build timestamp."""
    return datetime(2024, 3, 1, 9, 30)
