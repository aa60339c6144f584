"""
Report Module - Export Formats
================================
CSV (quoted where a field holds a comma, quote or newline; inner quotes
doubled) and Excel workbooks via openpyxl.
"""

import io
from datetime import date, datetime
from typing import Iterable, Sequence

import openpyxl
from openpyxl.styles import Font

_NEEDS_QUOTES = (",", '"', "\n", "\r")


def csv_escape(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        text = value.isoformat()
    elif isinstance(value, float):
        text = f"{value:.2f}"
    else:
        text = str(value)
    if any(ch in text for ch in _NEEDS_QUOTES):
        return '"' + text.replace('"', '""') + '"'
    return text


def to_csv(headers: Sequence[str], rows: Iterable[Sequence]) -> str:
    lines = [",".join(csv_escape(h) for h in headers)]
    for row in rows:
        lines.append(",".join(csv_escape(v) for v in row))
    return "\n".join(lines) + "\n"


def _cell(value):
    # Excel has no timezone support
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    if isinstance(value, float):
        return round(value, 2)
    return value


def to_xlsx(headers: Sequence[str], rows: Iterable[Sequence], title: str = "Report") -> bytes:
    """Single-sheet workbook with a bold header row."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title[:31]

    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append([_cell(v) for v in row])

    for column, header in zip(ws.columns, headers):
        width = max([len(str(header))] + [len(str(c.value)) for c in column if c.value is not None])
        ws.column_dimensions[column[0].column_letter].width = min(width + 2, 50)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def file_stamp(moment: datetime = None) -> str:
    """Timestamp fragment for download file names."""
    moment = moment or datetime.now()
    return moment.strftime("%Y%m%d-%H%M%S")


def date_cell(value) -> str:
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    return value or "-"
