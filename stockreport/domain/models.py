"""Domain models for stock report generation.

Rows, column specs, sections and groups are immutable (frozen dataclasses);
the report code derives display and aggregate values from them but never
changes caller-owned data.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from stockreport.domain.formatting import (
    Alignment,
    ColumnKind,
    Formatter,
    default_alignment,
    resolve_formatter,
    to_decimal,
)
from stockreport.domain.settings import FormatSettings


class SectionKind(Enum):
    """Kind of report section; drives standard columns and the net total."""

    SALES = "sales"
    DAMAGES = "damages"
    RETURNS = "returns"
    BOTTLES = "bottles"
    STOCK = "stock"


@dataclass(frozen=True, slots=True)
class Row:
    """One already-shaped record handed over by the surrounding application.

    Every field is optional. Missing numbers read as zero and missing text
    as an empty string.
    """

    category: Optional[str] = None
    product: Optional[str] = None
    quantity: int = 0
    unit_price: Decimal = Decimal("0")
    revenue: Optional[Decimal] = None  # Explicit value; overrides quantity x price
    entry_date: Optional[date] = None
    reason: Optional[str] = None
    item_type: Optional[str] = None  # Bottle type and similar discriminators
    unit: Optional[str] = None
    operation: Optional[str] = None

    def __post_init__(self) -> None:
        """Normalise absent numbers and validate ranges."""
        quantity = to_decimal(self.quantity)
        if quantity != quantity.to_integral_value():
            raise ValueError(f"Quantity must be a whole number: {self.quantity!r}")
        quantity = int(quantity)
        unit_price = to_decimal(self.unit_price)
        revenue = None if self.revenue is None else to_decimal(self.revenue)

        if quantity < 0:
            raise ValueError("Quantity cannot be negative")
        if unit_price < 0:
            raise ValueError("Unit price cannot be negative")

        object.__setattr__(self, "quantity", quantity)
        object.__setattr__(self, "unit_price", unit_price)
        object.__setattr__(self, "revenue", revenue)

    @property
    def extended_value(self) -> Decimal:
        """Quantity times unit price."""
        return self.quantity * self.unit_price

    @property
    def value(self) -> Decimal:
        """Explicit revenue when given, otherwise quantity times unit price."""
        if self.revenue is not None:
            return self.revenue
        return self.extended_value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Row":
        """Build a row from a loosely shaped record.

        Accepts the backend's column names as aliases (``category_name``,
        ``product_name``, ``sale_date``/``damage_date``/``return_date``,
        ``price``, ``current_stock``, ``type``, ``operation_type``).

        Example:
            >>> Row.from_mapping({"category_name": "Soda", "quantity": 2, "price": 10})
            Row(category='Soda', product=None, quantity=2, ...)
        """

        def pick(*names: str) -> Any:
            for name in names:
                value = data.get(name)
                if value is not None and value != "":
                    return value
            return None

        row_date = pick("date", "sale_date", "damage_date", "return_date", "display_date")
        if isinstance(row_date, str):
            row_date = date.fromisoformat(row_date[:10])
        elif isinstance(row_date, datetime):
            row_date = row_date.date()

        return cls(
            category=pick("category", "category_name"),
            product=pick("product", "product_name", "name"),
            quantity=pick("quantity", "current_stock") or 0,
            unit_price=pick("unit_price", "price") or Decimal("0"),
            revenue=pick("revenue", "total_value", "total_price"),
            entry_date=row_date,
            reason=pick("reason"),
            item_type=pick("item_type", "type"),
            unit=pick("unit"),
            operation=pick("operation", "operation_type"),
        )


# Field accessors available to column specs, keyed by column key
ROW_FIELDS: dict[str, Callable[[Row], Any]] = {
    "category": lambda row: row.category or "",
    "product": lambda row: row.product or "",
    "quantity": lambda row: row.quantity,
    "unit_price": lambda row: row.unit_price,
    "revenue": lambda row: row.revenue if row.revenue is not None else Decimal("0"),
    "value": lambda row: row.value,
    "extended_value": lambda row: row.extended_value,
    "date": lambda row: row.entry_date,
    "reason": lambda row: row.reason or "",
    "item_type": lambda row: row.item_type or "",
    "unit": lambda row: row.unit or "",
    "operation": lambda row: row.operation or "",
}

NUMERIC_FIELDS = frozenset({"quantity", "unit_price", "revenue", "value", "extended_value"})


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """Static description of one printed/exported column.

    Attributes:
        key: Row field shown in the column (see ROW_FIELDS)
        label: Header text
        width: Print width in millimetres
        kind: Semantic kind selecting the formatter
        alignment: Explicit alignment; None falls back to the default table
    """

    key: str
    label: str
    width: float
    kind: ColumnKind = ColumnKind.TEXT
    alignment: Optional[Alignment] = None

    def __post_init__(self) -> None:
        """Validate column spec."""
        if self.key not in ROW_FIELDS:
            raise ValueError(f"Unknown column key: {self.key}")
        if self.width <= 0:
            raise ValueError("Column width must be positive")


@dataclass(frozen=True, slots=True)
class ResolvedColumn:
    """Column spec bound to its accessor, formatter and effective alignment."""

    spec: ColumnSpec
    accessor: Callable[[Row], Any]
    formatter: Formatter
    alignment: Alignment

    @classmethod
    def resolve(cls, spec: ColumnSpec) -> "ResolvedColumn":
        return cls(
            spec=spec,
            accessor=ROW_FIELDS[spec.key],
            formatter=resolve_formatter(spec.kind),
            alignment=spec.alignment or default_alignment(spec.key),
        )

    @property
    def key(self) -> str:
        return self.spec.key

    def raw(self, row: Row) -> Any:
        return self.accessor(row)

    def text(self, row: Row, settings: FormatSettings) -> str:
        return self.formatter(self.accessor(row), settings)


@dataclass(frozen=True, slots=True)
class Section:
    """A titled group of rows sharing one column schema.

    Formatters and alignments are resolved once here, so a section that
    constructs successfully can always be rendered.
    """

    title: str
    rows: tuple[Row, ...]
    columns: tuple[ColumnSpec, ...]
    total_key: Optional[str] = None
    kind: Optional[SectionKind] = None
    resolved: tuple[ResolvedColumn, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Freeze inputs and resolve every column."""
        object.__setattr__(self, "rows", tuple(self.rows))
        object.__setattr__(self, "columns", tuple(self.columns))

        if not self.title.strip():
            raise ValueError("Section title cannot be empty")
        if not self.columns:
            raise ValueError("Section needs at least one column")
        if self.total_key is not None and self.total_key not in NUMERIC_FIELDS:
            raise ValueError(f"Total key must be numeric: {self.total_key}")

        object.__setattr__(
            self, "resolved", tuple(ResolvedColumn.resolve(spec) for spec in self.columns)
        )

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def primary_column(self) -> ResolvedColumn:
        """First text column (the placeholder goes there), else the first column."""
        for column in self.resolved:
            if column.spec.kind == ColumnKind.TEXT:
                return column
        return self.resolved[0]

    @property
    def total_column(self) -> Optional[ResolvedColumn]:
        """Column displaying the total key, if the section shows one."""
        for column in self.resolved:
            if column.key == self.total_key:
                return column
        return None

    def total_value(self, row: Row) -> Decimal:
        """Contribution of one row to the section total."""
        if self.total_key is None:
            return Decimal("0")
        return to_decimal(ROW_FIELDS[self.total_key](row))


@dataclass(frozen=True, slots=True)
class Group:
    """Rows sharing one grouping key, with their subtotals."""

    key: str
    rows: tuple[Row, ...]
    subtotal_quantity: int
    subtotal_value: Decimal
    show_header: bool = True

    @property
    def count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True, slots=True)
class Totals:
    """Row count, quantity and value aggregated over some rows."""

    count: int = 0
    quantity: int = 0
    value: Decimal = Decimal("0")

    def __add__(self, other: "Totals") -> "Totals":
        return Totals(
            count=self.count + other.count,
            quantity=self.quantity + other.quantity,
            value=self.value + other.value,
        )
