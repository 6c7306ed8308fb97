"""Tests for the export service and its sinks."""

import pytest
from datetime import date
from decimal import Decimal

from openpyxl import load_workbook

from stockreport.domain.document import Workbook
from stockreport.services.export import (
    CSVExporter,
    ExportError,
    ExportService,
    ExportStrategy,
    PDFExporter,
    XLSXExporter,
)
from stockreport.services.report_builder import ReportBuilder

TODAY = date(2024, 3, 1)


@pytest.fixture
def service():
    return ExportService()


@pytest.fixture
def document(sample_rows, generated_at):
    return ReportBuilder().build_sales_report(sample_rows, generated_at=generated_at)


@pytest.fixture
def workbook(sample_rows, generated_at):
    return ReportBuilder().build_stock_workbook(ReportBuilder.ALL_CATEGORIES, sample_rows, generated_at)


class FailingExporter(ExportStrategy):
    """Writes part of a file, then fails."""

    report_type = Workbook

    def export(self, report, output_path):
        output_path.write_text("partial")
        raise OSError("disk full")

    def get_extension(self):
        return "xlsx"


class TestArtifactName:
    """Tests for export file naming."""

    def test_dated_name(self, service):
        assert service.artifact_name("sales_report", "pdf", TODAY) == "sales_report_2024-03-01.pdf"

    def test_blank_stem_rejected(self, service):
        with pytest.raises(ValueError, match="stem cannot be empty"):
            service.artifact_name("  ", "pdf", TODAY)

    def test_supported_formats(self, service):
        assert service.get_supported_formats() == ["pdf", "xlsx", "csv"]


class TestExportService:
    """Tests for ExportService.save."""

    def test_save_pdf(self, service, document, tmp_path):
        path = service.save(document, tmp_path, "sales_report", "pdf", today=TODAY)

        assert path == tmp_path / "sales_report_2024-03-01.pdf"
        assert path.read_bytes().startswith(b"%PDF")

    def test_save_xlsx(self, service, workbook, tmp_path):
        path = service.save(workbook, tmp_path, "stock_report", "xlsx", today=TODAY)

        book = load_workbook(path)
        assert book.sheetnames == ["Stock Report"]
        ws = book["Stock Report"]
        cells = {row[0].value: row for row in ws.iter_rows() if row[0].value}
        assert cells["Subtotal (A)"][1].value == 4
        assert cells["Subtotal (A)"][0].font.bold
        assert cells["Total Value"][3].value == 50
        assert cells["Total Value"][3].number_format == "#,##0.00"
        assert ws.column_dimensions["A"].width == 40

    def test_save_csv_first_sheet(self, service, workbook, tmp_path):
        path = service.save(workbook, tmp_path, "stock_report", "csv", today=TODAY)

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "Stock Report - All Categories"
        assert "Subtotal (A),4,,40.00" in lines

    def test_save_creates_directory(self, service, workbook, tmp_path):
        target = tmp_path / "exports" / "march"
        path = service.save(workbook, target, "stock_report", "csv", today=TODAY)

        assert path.parent == target
        assert path.exists()

    def test_unsupported_format(self, service, workbook, tmp_path):
        with pytest.raises(ValueError, match="Unsupported format"):
            service.save(workbook, tmp_path, "stock_report", "markdown")

    def test_report_type_must_match_format(self, service, document, workbook, tmp_path):
        with pytest.raises(ValueError, match="needs a Workbook"):
            service.save(document, tmp_path, "sales_report", "xlsx")
        with pytest.raises(ValueError, match="needs a Document"):
            service.save(workbook, tmp_path, "stock_report", "pdf")

    def test_failing_sink_leaves_nothing_behind(self, service, workbook, tmp_path):
        """A failed write removes its temporary file and keeps the old artifact."""
        service.exporters["xlsx"] = FailingExporter()
        existing = tmp_path / "stock_report_2024-03-01.xlsx"
        existing.write_text("previous export")

        with pytest.raises(ExportError) as excinfo:
            service.save(workbook, tmp_path, "stock_report", "xlsx", today=TODAY)

        assert isinstance(excinfo.value.__cause__, OSError)
        assert existing.read_text() == "previous export"
        assert [p.name for p in tmp_path.iterdir()] == [existing.name]

    def test_failure_is_logged(self, service, workbook, tmp_path, caplog):
        service.exporters["xlsx"] = FailingExporter()

        with pytest.raises(ExportError):
            service.save(workbook, tmp_path, "stock_report", "xlsx", today=TODAY)

        assert "disk full" in caplog.text

    def test_unusable_directory_raises_export_error(self, service, workbook, tmp_path, caplog):
        """A target directory that cannot be created is reported as ExportError."""
        blocked = tmp_path / "blocked"
        blocked.write_text("not a directory")

        with pytest.raises(ExportError) as excinfo:
            service.save(workbook, blocked / "sub", "stock_report", "csv", today=TODAY)

        assert isinstance(excinfo.value.__cause__, OSError)
        assert "Failed to write stock_report_2024-03-01.csv" in caplog.text
        assert [p.name for p in tmp_path.iterdir()] == ["blocked"]


class TestExporters:
    """Tests for individual export strategies."""

    def test_extensions(self):
        assert PDFExporter().get_extension() == "pdf"
        assert XLSXExporter().get_extension() == "xlsx"
        assert CSVExporter().get_extension() == "csv"

    def test_empty_workbook_to_xlsx(self, tmp_path):
        output = tmp_path / "empty.xlsx"
        XLSXExporter().export(Workbook(), output)

        assert len(load_workbook(output).sheetnames) == 1

    def test_csv_values(self, tmp_path):
        workbook = Workbook()
        sheet = workbook.add_sheet("Sales")
        sheet.add_row(["Cola", 2, Decimal("3.5"), date(2024, 3, 1), None])
        output = tmp_path / "sales.csv"

        CSVExporter().export(workbook, output)

        assert output.read_text(encoding="utf-8").strip() == "Cola,2,3.50,2024-03-01,"

    def test_multi_page_pdf(self, many_rows, generated_at, tmp_path):
        document = ReportBuilder().build_sales_report(many_rows, generated_at=generated_at)
        output = tmp_path / "long.pdf"

        PDFExporter().export(document, output)

        content = output.read_bytes()
        assert document.page_count > 1
        pages = content.count(b"/Type /Page") - content.count(b"/Type /Pages")
        assert pages == document.page_count
