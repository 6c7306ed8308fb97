"""Column formatting rules.

Maps each semantic column kind to one formatter and one spreadsheet number
format. Formatters take the raw field value and the active FormatSettings and
return display text; they never look at other row fields.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Callable, Optional

from stockreport.domain.settings import FormatSettings


class ColumnKind(Enum):
    """Semantic kind of a column."""

    TEXT = "text"
    INTEGER = "integer"
    CURRENCY = "currency"
    DATE = "date"


class Alignment(Enum):
    """Horizontal alignment of a cell."""

    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


Formatter = Callable[[Any, FormatSettings], str]

CENTS = Decimal("0.01")

# Consulted only when a column spec leaves alignment unset
DEFAULT_ALIGNMENTS: dict[str, Alignment] = {
    "quantity": Alignment.RIGHT,
    "unit_price": Alignment.RIGHT,
    "value": Alignment.RIGHT,
    "extended_value": Alignment.RIGHT,
    "revenue": Alignment.RIGHT,
}

# Spreadsheet number formats per kind (None = leave cell unformatted)
SPREADSHEET_FORMATS: dict[ColumnKind, Optional[str]] = {
    ColumnKind.TEXT: None,
    ColumnKind.INTEGER: "0",
    ColumnKind.CURRENCY: "#,##0.00",
    ColumnKind.DATE: "yyyy-mm-dd",
}


def to_decimal(value: Any) -> Decimal:
    """Coerce a numeric-ish value to Decimal; missing values become zero.

    Raises:
        ValueError: If the value is not a number
    """
    if value is None or value == "":
        return Decimal("0")
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, float):
            amount = Decimal(str(value))
        else:
            amount = Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not a number: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"Not a number: {value!r}")
    return amount


def format_currency(value: Any, settings: FormatSettings) -> str:
    """Currency prefix plus two fixed decimals, no thousands grouping."""
    amount = to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
    return f"{settings.currency_prefix}{amount:.2f}"


def format_integer(value: Any, settings: FormatSettings) -> str:
    """Plain decimal digits, no separators."""
    if value is None or value == "":
        return "0"
    return str(int(value))


def format_date(value: Any, settings: FormatSettings) -> str:
    """Calendar date in the configured locale format, without time."""
    if not value:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    elif isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return value.strftime(settings.date_format)


def format_text(value: Any, settings: FormatSettings) -> str:
    """Verbatim string."""
    if value is None:
        return ""
    return str(value)


FORMATTERS: dict[ColumnKind, Formatter] = {
    ColumnKind.TEXT: format_text,
    ColumnKind.INTEGER: format_integer,
    ColumnKind.CURRENCY: format_currency,
    ColumnKind.DATE: format_date,
}


def resolve_formatter(kind: ColumnKind) -> Formatter:
    """Look up the formatter for a column kind.

    Raises:
        ValueError: If no formatter is registered for the kind
    """
    try:
        return FORMATTERS[kind]
    except KeyError:
        raise ValueError(f"No formatter for column kind: {kind!r}") from None


def default_alignment(key: str) -> Alignment:
    """Alignment for a column that does not declare one."""
    return DEFAULT_ALIGNMENTS.get(key, Alignment.LEFT)


def ellipsize(text: str, width: float, settings: FormatSettings) -> str:
    """Shorten text so it fits a print column of the given width (mm)."""
    available = width - 2 * settings.cell_padding
    max_chars = int(available / settings.char_width)
    if len(text) <= max_chars:
        return text

    keep = max_chars - len(settings.ellipsis)
    if keep <= 0:
        return settings.ellipsis[:max(max_chars, 0)]
    return text[:keep].rstrip() + settings.ellipsis
