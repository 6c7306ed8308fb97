"""Unit tests for domain models."""

import pytest
from datetime import date
from decimal import Decimal
from stockreport.domain.formatting import Alignment, ColumnKind, format_currency
from stockreport.domain.models import (
    ColumnSpec,
    Row,
    Section,
    SectionKind,
    Totals,
)
from stockreport.domain.settings import FormatSettings


class TestRow:
    """Tests for Row model."""

    def test_missing_fields_default(self):
        """Missing numbers read as zero and text as empty."""
        row = Row()

        assert row.quantity == 0
        assert row.unit_price == Decimal("0")
        assert row.value == Decimal("0")
        assert row.category is None

    def test_extended_value(self, make_row):
        """Extended value is quantity times unit price."""
        row = make_row(quantity=3, unit_price=Decimal("2.50"))

        assert row.extended_value == Decimal("7.50")
        assert row.value == Decimal("7.50")

    def test_revenue_overrides_extended_value(self, make_row):
        """Explicit revenue wins over quantity x price."""
        row = make_row(quantity=3, unit_price=Decimal("2.50"), revenue=Decimal("5"))

        assert row.value == Decimal("5")
        assert row.extended_value == Decimal("7.50")

    def test_numbers_are_normalised(self):
        """Floats and ints become Decimals, None quantity becomes zero."""
        row = Row(quantity=None, unit_price=1.1, revenue=4)

        assert row.quantity == 0
        assert row.unit_price == Decimal("1.1")
        assert row.revenue == Decimal("4")

    def test_negative_quantity_raises_error(self):
        """Quantities cannot be negative."""
        with pytest.raises(ValueError, match="Quantity cannot be negative"):
            Row(quantity=-1)

    def test_fractional_quantity_raises_error(self):
        """Quantities are whole numbers."""
        with pytest.raises(ValueError, match="whole number"):
            Row(quantity=2.9)
        with pytest.raises(ValueError, match="whole number"):
            Row.from_mapping({"quantity": "2.5", "price": 10})

    def test_integral_quantity_accepted(self):
        """Whole-valued floats, strings and Decimals become ints."""
        assert Row(quantity=3.0).quantity == 3
        assert Row(quantity=Decimal("3")).quantity == 3
        assert Row(quantity="4").quantity == 4

    def test_non_numeric_price_raises_error(self):
        with pytest.raises(ValueError, match="Not a number"):
            Row(unit_price="abc")

    def test_negative_price_raises_error(self):
        """Prices cannot be negative."""
        with pytest.raises(ValueError, match="Unit price cannot be negative"):
            Row(unit_price=Decimal("-0.01"))

    def test_row_immutability(self, make_row):
        """Rows are frozen."""
        row = make_row()

        with pytest.raises(AttributeError):
            row.quantity = 5

    def test_from_mapping_aliases(self):
        """Backend column names are accepted as aliases."""
        row = Row.from_mapping({
            "category_name": "Juice",
            "product_name": "Mango",
            "current_stock": 4,
            "price": "12.50",
            "sale_date": "2024-03-05T10:15:00",
        })

        assert row.category == "Juice"
        assert row.product == "Mango"
        assert row.quantity == 4
        assert row.unit_price == Decimal("12.50")
        assert row.entry_date == date(2024, 3, 5)

    def test_from_mapping_prefers_canonical_names(self):
        """Canonical field names win over aliases; blanks fall through."""
        row = Row.from_mapping({
            "category": "",
            "category_name": "Water",
            "quantity": 2,
            "current_stock": 9,
            "type": "Glass",
            "operation_type": "return",
        })

        assert row.category == "Water"
        assert row.quantity == 2
        assert row.item_type == "Glass"
        assert row.operation == "return"


class TestColumnSpec:
    """Tests for ColumnSpec model."""

    def test_unknown_key_raises_error(self):
        """Column keys must name a row field."""
        with pytest.raises(ValueError, match="Unknown column key"):
            ColumnSpec("colour", "COLOUR", 20)

    def test_width_must_be_positive(self):
        """Column widths must be positive."""
        with pytest.raises(ValueError, match="width must be positive"):
            ColumnSpec("product", "PRODUCT", 0)


class TestSection:
    """Tests for Section model."""

    def test_columns_resolved_at_construction(self, make_row):
        """Formatters and alignments are bound when the section is built."""
        section = Section(
            title="SALES",
            rows=[make_row()],
            columns=[
                ColumnSpec("product", "PRODUCT", 50),
                ColumnSpec("quantity", "QTY", 20, ColumnKind.INTEGER),
                ColumnSpec("unit_price", "PRICE", 30, ColumnKind.CURRENCY, Alignment.CENTER),
            ],
        )

        product, quantity, price = section.resolved
        assert product.alignment == Alignment.LEFT
        assert quantity.alignment == Alignment.RIGHT  # Default table
        assert price.alignment == Alignment.CENTER  # Explicit wins
        assert price.formatter is format_currency

    def test_rows_and_columns_are_tuples(self, make_row):
        """Input lists are frozen into tuples."""
        rows = [make_row()]
        section = Section("SALES", rows, [ColumnSpec("product", "PRODUCT", 50)])
        rows.append(make_row())

        assert isinstance(section.rows, tuple)
        assert len(section.rows) == 1

    def test_empty_title_raises_error(self):
        """Sections need a title."""
        with pytest.raises(ValueError, match="title cannot be empty"):
            Section("  ", (), (ColumnSpec("product", "PRODUCT", 50),))

    def test_no_columns_raises_error(self):
        """Sections need at least one column."""
        with pytest.raises(ValueError, match="at least one column"):
            Section("SALES", (), ())

    def test_total_key_must_be_numeric(self):
        """A text field cannot be totalled."""
        with pytest.raises(ValueError, match="Total key must be numeric"):
            Section("SALES", (), (ColumnSpec("product", "PRODUCT", 50),), total_key="product")

    def test_primary_column_is_first_text_column(self):
        """Placeholder column is the first text column."""
        section = Section(
            "BOTTLES",
            (),
            (
                ColumnSpec("quantity", "QTY", 20, ColumnKind.INTEGER),
                ColumnSpec("item_type", "TYPE", 40),
            ),
            kind=SectionKind.BOTTLES,
        )

        assert section.is_empty
        assert section.primary_column.key == "item_type"

    def test_total_value_uses_total_key(self, make_row):
        """Row contribution comes from the total key field."""
        section = Section(
            "SALES",
            (),
            (ColumnSpec("value", "TOTAL", 30, ColumnKind.CURRENCY),),
            total_key="value",
        )
        row = make_row(quantity=2, unit_price=Decimal("10"))

        assert section.total_value(row) == Decimal("20")
        assert section.total_column.key == "value"

    def test_text_uses_resolved_formatter(self, make_row):
        """Column text goes through the kind's formatter."""
        section = Section(
            "SALES",
            (),
            (
                ColumnSpec("unit_price", "PRICE", 30, ColumnKind.CURRENCY),
                ColumnSpec("date", "DATE", 30, ColumnKind.DATE),
            ),
        )
        price, when = section.resolved
        row = make_row(unit_price=Decimal("3.5"), entry_date=date(2024, 1, 9))

        assert price.text(row, FormatSettings()) == "Rs 3.50"
        assert when.text(row, FormatSettings()) == "09 Jan 2024"


class TestTotals:
    """Tests for Totals model."""

    def test_addition(self):
        """Totals add field by field."""
        total = Totals(1, 2, Decimal("3")) + Totals(4, 5, Decimal("6"))

        assert total == Totals(5, 7, Decimal("9"))
