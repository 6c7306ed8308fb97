"""Grouping and subtotal engine for the spreadsheet path.

Rows are partitioned by a key (category by default), groups come out sorted
by key, and the grand total over the groups always equals the same aggregate
taken directly over the ungrouped rows.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Callable, Iterable, Optional

from stockreport.domain.models import Group, Row, Totals

UNCATEGORIZED = "Uncategorized"

KeyFunc = Callable[[Row], Optional[str]]
ValueFunc = Callable[[Row], Decimal]


def category_key(row: Row) -> Optional[str]:
    """Default grouping key: the row's category."""
    return row.category


def extended_value(row: Row) -> Decimal:
    """Default group value: quantity times unit price."""
    return row.extended_value


def _normalise_key(key: Optional[str]) -> str:
    if key is None:
        return UNCATEGORIZED
    key = str(key)
    return key if key.strip() else UNCATEGORIZED


def _make_group(key: str, rows: list[Row], value_of: ValueFunc, show_header: bool = True) -> Group:
    return Group(
        key=key,
        rows=tuple(rows),
        subtotal_quantity=sum(row.quantity for row in rows),
        subtotal_value=sum((value_of(row) for row in rows), Decimal("0")),
        show_header=show_header,
    )


def group_rows(
    rows: Iterable[Row],
    key_of: Optional[KeyFunc] = None,
    value_of: Optional[ValueFunc] = None,
) -> list[Group]:
    """Partition rows into groups ordered by key.

    Args:
        rows: Rows to partition (never mutated)
        key_of: Grouping key per row; None or blank keys go to "Uncategorized"
        value_of: Value per row for subtotals (default quantity x unit price)

    Returns:
        Groups sorted by key (plain string order); rows keep their input
        order inside each group

    Example:
        >>> groups = group_rows(rows)
        >>> [g.key for g in groups]
        ['A', 'B']
    """
    key_of = key_of or category_key
    value_of = value_of or extended_value

    buckets: dict[str, list[Row]] = defaultdict(list)
    for row in rows:
        buckets[_normalise_key(key_of(row))].append(row)

    return [_make_group(key, buckets[key], value_of) for key in sorted(buckets)]


def single_group(
    rows: Iterable[Row],
    key: str = "",
    value_of: Optional[ValueFunc] = None,
) -> Group:
    """Treat the whole row set as one implicit group without a header."""
    return _make_group(key, list(rows), value_of or extended_value, show_header=False)


def grand_total(groups: Iterable[Group]) -> Totals:
    """Sum of every group's subtotals."""
    total = Totals()
    for group in groups:
        total += Totals(
            count=group.count,
            quantity=group.subtotal_quantity,
            value=group.subtotal_value,
        )
    return total


def aggregate(rows: Iterable[Row], value_of: Optional[ValueFunc] = None) -> Totals:
    """Same aggregate as grand_total, computed directly over the rows."""
    value_of = value_of or extended_value
    count = 0
    quantity = 0
    value = Decimal("0")
    for row in rows:
        count += 1
        quantity += row.quantity
        value += value_of(row)
    return Totals(count=count, quantity=quantity, value=value)
