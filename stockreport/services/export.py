"""Export service for writing finished reports to files."""

import csv
import logging
import os
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Optional, Union

from openpyxl import Workbook as XLSXWorkbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from stockreport.domain.document import Document, Workbook
from stockreport.services.pdf_generator import ReportPDFGenerator

logger = logging.getLogger(__name__)

Report = Union[Document, Workbook]


class ExportError(Exception):
    """Raised when a report could not be written to its destination."""


class ExportStrategy(ABC):
    """Abstract base class for export strategies."""

    # Report type this strategy accepts
    report_type: type = Document

    @abstractmethod
    def export(self, report: Report, output_path: Path) -> None:
        """Write the report to a file.

        Args:
            report: Document or Workbook to write
            output_path: Path to output file
        """
        pass

    @abstractmethod
    def get_extension(self) -> str:
        """Get file extension for this format.

        Returns:
            File extension (e.g., "pdf", "xlsx", "csv")
        """
        pass

    def write(self, report: Report, output_path: Path) -> Path:
        """Export through a temporary file, replacing output_path on success.

        On failure the temporary file is removed and the destination is left
        untouched.

        Raises:
            ExportError: If the destination cannot be created or the export fails
        """
        tmp_path = None
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                dir=output_path.parent,
                prefix=f".{output_path.stem}_",
                suffix=f".{self.get_extension()}",
                delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)

            self.export(report, tmp_path)
            os.replace(tmp_path, output_path)
        except Exception as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            logger.error(f"Failed to write {output_path.name}: {e}")
            raise ExportError(f"Could not write {output_path}") from e

        return output_path


class PDFExporter(ExportStrategy):
    """Export documents to PDF using ReportLab."""

    report_type = Document

    def __init__(self, generator: Optional[ReportPDFGenerator] = None):
        """Initialize PDF exporter.

        Args:
            generator: PDF generator (default one if omitted)
        """
        self.generator = generator or ReportPDFGenerator()

    def export(self, report: Document, output_path: Path) -> None:
        """Export a document to a PDF file."""
        self.generator.generate(report, output_path)

    def get_extension(self) -> str:
        """Get file extension for PDF format."""
        return "pdf"


class XLSXExporter(ExportStrategy):
    """Export workbooks to Excel using openpyxl."""

    report_type = Workbook

    BOLD = Font(bold=True)

    def export(self, report: Workbook, output_path: Path) -> None:
        """Export a workbook to an XLSX file.

        Every sheet keeps its cell values, bold flags, number formats and
        column widths.
        """
        book = XLSXWorkbook()
        default_sheet = book.active

        for sheet in report.sheets:
            ws = book.create_sheet(title=sheet.name)

            for row_number, cells in enumerate(sheet.rows, start=1):
                for column_number, cell in enumerate(cells, start=1):
                    if cell.value is None:
                        continue
                    target = ws.cell(row=row_number, column=column_number, value=cell.value)
                    if cell.bold:
                        target.font = self.BOLD
                    if cell.number_format:
                        target.number_format = cell.number_format

            for i, width in enumerate(sheet.column_widths, start=1):
                ws.column_dimensions[get_column_letter(i)].width = width

        # Keep openpyxl's default sheet only if the workbook is empty
        if report.sheets:
            book.remove(default_sheet)

        book.save(output_path)

    def get_extension(self) -> str:
        """Get file extension for Excel format."""
        return "xlsx"


class CSVExporter(ExportStrategy):
    """Export the first sheet of a workbook to CSV."""

    report_type = Workbook

    def export(self, report: Workbook, output_path: Path) -> None:
        """Export a workbook's first sheet to a CSV file."""
        rows = report.sheets[0].values() if report.sheets else []

        with output_path.open('w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            for values in rows:
                writer.writerow([self._csv_value(value) for value in values])

    def _csv_value(self, value: Any) -> str:
        if value is None:
            return ''
        if isinstance(value, Decimal):
            return f'{value:.2f}'
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return str(value)

    def get_extension(self) -> str:
        """Get file extension for CSV format."""
        return "csv"


class ExportService:
    """Service for exporting reports to various formats.

    Provides a facade over different export strategies.

    Example:
        >>> service = ExportService()
        >>> service.save(document, Path("out"), "sales_report", "pdf",
        ...              today=date(2024, 3, 1))
        PosixPath('out/sales_report_2024-03-01.pdf')
    """

    def __init__(self):
        """Initialize export service."""
        # Available exporters
        self.exporters: dict[str, ExportStrategy] = {
            'pdf': PDFExporter(),
            'xlsx': XLSXExporter(),
            'csv': CSVExporter(),
        }

    def get_supported_formats(self) -> list[str]:
        """Get list of supported export formats.

        Returns:
            List of format names
        """
        return list(self.exporters.keys())

    def artifact_name(self, stem: str, extension: str, today: Optional[date] = None) -> str:
        """File name for an export: ``<stem>_<YYYY-MM-DD>.<ext>``.

        Raises:
            ValueError: If the stem is blank
        """
        if not stem or not stem.strip():
            raise ValueError("File name stem cannot be empty")
        today = today or date.today()
        return f"{stem.strip()}_{today.isoformat()}.{extension}"

    def save(
        self,
        report: Report,
        directory: Path,
        stem: str,
        format: str,
        today: Optional[date] = None,
    ) -> Path:
        """Write a report into a directory under a dated file name.

        Args:
            report: Document (pdf) or Workbook (xlsx, csv)
            directory: Target directory (created if missing)
            stem: File name stem, e.g. "sales_report"
            format: Export format ('pdf', 'xlsx', 'csv')
            today: Date stamped into the name (defaults to today)

        Returns:
            Path of the written file

        Raises:
            ValueError: If the format is unsupported or does not fit the report
            ExportError: If writing fails
        """
        if format not in self.exporters:
            raise ValueError(f"Unsupported format: {format}")

        exporter = self.exporters[format]
        if not isinstance(report, exporter.report_type):
            raise ValueError(
                f"Format '{format}' needs a {exporter.report_type.__name__}, "
                f"got {type(report).__name__}"
            )

        output_path = Path(directory) / self.artifact_name(stem, exporter.get_extension(), today)
        exporter.write(report, output_path)

        logger.info(f"Exported {format} report to {output_path}")
        return output_path
