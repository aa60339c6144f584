import csv
import io
from datetime import datetime, timezone

import openpyxl

from modules.report.export import csv_escape, to_csv, to_xlsx, date_cell


def test_csv_escape_quotes_commas_and_round_trips():
    value = "O'Brien, Gold Ltd"
    escaped = csv_escape(value)
    assert escaped == '"O\'Brien, Gold Ltd"'
    assert next(csv.reader(io.StringIO(escaped))) == [value]


def test_csv_escape_doubles_inner_quotes():
    assert csv_escape('Say "gold"') == '"Say ""gold"""'
    assert csv_escape("line\nbreak") == '"line\nbreak"'


def test_csv_escape_plain_values():
    assert csv_escape(None) == ""
    assert csv_escape("Acme") == "Acme"
    assert csv_escape(3) == "3"
    assert csv_escape(2.5) == "2.50"


def test_to_csv_parses_back():
    text = to_csv(["Exporter", "NetGold_g"], [["A, B", 10.0], ["C", 2.346]])
    rows = list(csv.reader(io.StringIO(text)))
    assert rows == [["Exporter", "NetGold_g"], ["A, B", "10.00"], ["C", "2.35"]]


def test_to_xlsx_writes_header_and_rows():
    stamp = datetime(2025, 3, 5, 9, 30, tzinfo=timezone.utc)
    content = to_xlsx(["Date", "Exporter", "Value"], [[stamp, "Acme", 12.346]], title="report")
    wb = openpyxl.load_workbook(io.BytesIO(content))
    ws = wb.active
    assert ws.title == "report"
    assert [c.value for c in ws[1]] == ["Date", "Exporter", "Value"]
    assert ws[1][0].font.bold
    assert ws["B2"].value == "Acme"
    assert ws["C2"].value == 12.35
    assert ws["A2"].value == datetime(2025, 3, 5, 9, 30)


def test_date_cell():
    assert date_cell(datetime(2025, 3, 5, 9, 30)) == "2025-03-05"
    assert date_cell(None) == "-"
