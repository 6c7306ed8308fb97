#!/usr/bin/env python
"""Stock report command-line entry point.

Reads a JSON report payload, builds the Document or Workbook and writes it to
the output directory under a dated file name.

Payload shapes:
    {"title": "...", "period": "2024-03-01" | ["2024-03-01", "2024-03-31"],
     "sections": [{"kind": "sales", "title": "...", "rows": [...]}, ...]}

    {"category": "All Categories", "products": [...]}
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any, Optional

from stockreport.domain.models import SectionKind
from stockreport.domain.settings import ReportSettings
from stockreport.services.export import ExportError, ExportService, Report
from stockreport.services.report_builder import Period, ReportBuilder
from stockreport.state.persistence import SettingsStore

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "SALES AND INVENTORY REPORT"


def configure_logging(settings: ReportSettings) -> None:
    """Configure the root logger from the logging settings."""
    logging.basicConfig(
        level=settings.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_period(value: Any) -> Period:
    """Turn a JSON period (ISO date or [start, end]) into a report period."""
    if value is None:
        return None
    if isinstance(value, list):
        if len(value) != 2:
            raise ValueError("Period range needs exactly a start and an end date")
        start, end = (date.fromisoformat(item) for item in value)
        return (start, end)
    return date.fromisoformat(value)


def load_payload(path: Path) -> dict[str, Any]:
    """Read the report payload.

    Raises:
        ValueError: If the file is not a JSON object
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Report payload must be a JSON object")
    return data


def build_report(payload: dict[str, Any], format: str, builder: ReportBuilder) -> tuple[Report, str]:
    """Build the report a payload describes.

    Args:
        payload: Parsed JSON payload
        format: Target format; 'pdf' builds a Document, anything else a Workbook
        builder: Report builder

    Returns:
        (report, file name stem)
    """
    if "products" in payload:
        category = payload.get("category") or builder.ALL_CATEGORIES
        products = payload["products"]
        if format == "pdf":
            report = builder.build_category_stock_document(category, products)
        else:
            report = builder.build_stock_workbook(category, products)
        return report, "stock_report"

    if "sections" not in payload:
        raise ValueError("Payload needs either 'sections' or 'products'")

    sections = [
        builder.standard_section(
            SectionKind(entry["kind"]),
            entry.get("rows", []),
            title=entry.get("title"),
        )
        for entry in payload["sections"]
    ]

    if format != "pdf":
        return builder.build_report_workbook(sections), "sales_report"

    subtitle = None
    period = parse_period(payload.get("period"))
    if period is not None:
        subtitle = f"Report Period: {builder.format_period(period)}"

    document = builder.build_document(
        payload.get("title") or DEFAULT_TITLE,
        sections,
        subtitle=subtitle,
    )
    return document, "sales_report"


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    service = ExportService()

    parser = argparse.ArgumentParser(description="Stock and sales report generator")
    parser.add_argument(
        "report",
        type=Path,
        help="Path to the JSON report payload",
    )
    parser.add_argument(
        "--format",
        choices=service.get_supported_formats(),
        default="pdf",
        help="Output format",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=Path("."),
        help="Output directory",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        help="Path to a JSON settings file (defaults to ~/.stockreport_settings.json)",
    )
    parser.add_argument(
        "--stem",
        help="File name stem (defaults to sales_report or stock_report)",
    )

    args = parser.parse_args(argv)

    settings = SettingsStore(args.settings).load()
    configure_logging(settings)

    try:
        payload = load_payload(args.report)
        report, stem = build_report(payload, args.format, ReportBuilder(settings))
        path = service.save(report, args.out, args.stem or stem, args.format)
    except ExportError as e:
        logger.error(f"Export failed: {e}")
        return 1
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Could not build report from {args.report}: {e}")
        return 1

    print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
