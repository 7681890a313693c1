import io
from datetime import datetime
from unittest.mock import MagicMock, patch

import openpyxl
import pytest

from packages.statement_import.errors import StatementValidationError
from packages.statement_import.file_reader import detect_kind, read_rows


def _workbook_bytes(build) -> bytes:
    wb = openpyxl.Workbook()
    build(wb)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


class TestDetectKind:
    @pytest.mark.parametrize(
        "file_name, mimetype, expected",
        [
            ("extracto.csv", "application/octet-stream", "csv"),
            ("EXTRACTO.XLSX", "", "excel"),
            ("legacy.xls", "text/plain", "excel"),
            # extension wins over mimetype
            ("export.csv", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "csv"),
            ("download", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "excel"),
            ("download", "text/csv", "csv"),
            ("download", "text/plain", "csv"),
            ("download", "application/octet-stream", "csv"),
            (None, None, "csv"),
        ],
    )
    def test_detection(self, file_name, mimetype, expected):
        assert detect_kind(file_name, mimetype) == expected


class TestReadCsv:
    def test_bom_blank_lines_and_trimming(self):
        content = (
            "\ufeffFecha,Descripcion,Valor\n"
            "2024-03-01,  Pago  ,100000\n"
            "\n"
            "2024-03-02,Compra,-50000\n"
        ).encode("utf-8")

        rows = read_rows(content, "extracto.csv", "text/csv")

        assert rows == [
            {"Fecha": "2024-03-01", "Descripcion": "Pago", "Valor": "100000"},
            {"Fecha": "2024-03-02", "Descripcion": "Compra", "Valor": "-50000"},
        ]

    def test_ragged_rows_are_kept(self):
        content = (
            "Fecha,Descripcion,Valor\n"
            "2024-03-01,Pago,100000,unexpected\n"
            "2024-03-02,Compra\n"
        ).encode("utf-8")

        rows = read_rows(content, "extracto.csv")

        assert rows[0] == {"Fecha": "2024-03-01", "Descripcion": "Pago", "Valor": "100000"}
        assert rows[1] == {"Fecha": "2024-03-02", "Descripcion": "Compra", "Valor": None}

    def test_quoted_locale_amounts_survive(self):
        content = 'Date,Amount\n2024-03-01,"1.234,56"\n'.encode("utf-8")

        rows = read_rows(content, "statement.csv")

        assert rows == [{"Date": "2024-03-01", "Amount": "1.234,56"}]

    def test_empty_cells_become_none(self):
        content = b"Date,Description,Amount\n2024-03-01,,10\n"

        rows = read_rows(content, "statement.csv")

        assert rows[0]["Description"] is None

    def test_header_only_has_no_rows(self):
        assert read_rows(b"Id,Nombre\n", "people.csv") == []

    def test_empty_text_has_no_rows(self):
        assert read_rows(b"\n\n", "empty.csv") == []

    def test_invalid_utf8_rejected(self):
        with pytest.raises(StatementValidationError):
            read_rows(b"Fecha,Valor\n\xff\xfe,\x81\n", "latin.csv")


class TestReadExcel:
    def test_first_sheet_only_in_display_form(self):
        def build(wb):
            ws = wb.active
            ws.title = "Movimientos"
            ws.append(["Fecha", "Descripción", "Valor", "Saldo"])
            ws.append([datetime(2024, 3, 1), "Pago", 100000, 150000.0])
            ws.append([None, None, None, None])
            ws.append(["2024-03-02", "Compra", -50000.5, 99999.5])
            other = wb.create_sheet("Resumen")
            other.append(["Fecha", "Valor"])
            other.append(["2024-12-31", 1])

        rows = read_rows(_workbook_bytes(build), "extracto.xlsx")

        assert rows == [
            {"Fecha": "2024-03-01", "Descripción": "Pago", "Valor": "100000", "Saldo": "150000"},
            {"Fecha": "2024-03-02", "Descripción": "Compra", "Valor": "-50000.5", "Saldo": "99999.5"},
        ]

    def test_detected_by_mimetype(self):
        def build(wb):
            ws = wb.active
            ws.append(["Date", "Amount"])
            ws.append(["2024-01-15", 12.5])

        rows = read_rows(
            _workbook_bytes(build),
            "download",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

        assert rows == [{"Date": "2024-01-15", "Amount": "12.5"}]

    def test_empty_sheet_has_no_rows(self):
        rows = read_rows(_workbook_bytes(lambda wb: None), "empty.xlsx")
        assert rows == []

    @patch("packages.statement_import.file_reader.pd.ExcelFile")
    def test_workbook_without_sheets_rejected(self, mock_excel_file):
        workbook = MagicMock()
        workbook.sheet_names = []
        workbook.__enter__.return_value = workbook
        workbook.__exit__.return_value = False
        mock_excel_file.return_value = workbook

        with pytest.raises(StatementValidationError, match="no sheets"):
            read_rows(b"PK\x03\x04fake", "empty.xlsx")

    def test_garbage_bytes_rejected(self):
        with pytest.raises(StatementValidationError):
            read_rows(b"definitely not a workbook", "broken.xlsx")
