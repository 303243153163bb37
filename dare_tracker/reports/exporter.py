"""
Report Exporter

Serializes report records into downloadable files. A column manifest picks
and orders the columns, applies per-cell formatters and supplies the header
titles. CSV is written with the csv module, Excel through pandas' ExcelWriter
on the xlsxwriter engine.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

import io
import re
import csv
import json
import logging
from dataclasses import dataclass
from datetime import datetime, date
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Sequence

import pandas as pd

from ..exceptions import UnsupportedFormat

logger = logging.getLogger(__name__)


class ExportFormat(str, Enum):
    """Supported export formats"""
    EXCEL = "excel"
    CSV = "csv"
    JSON = "json"


FILE_EXTENSIONS = {
    ExportFormat.EXCEL: "xlsx",
    ExportFormat.CSV: "csv",
    ExportFormat.JSON: "json",
}

MEDIA_TYPES = {
    ExportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.CSV: "text/csv; charset=utf-8",
    ExportFormat.JSON: "application/json",
}

# Excel limits sheet names to 31 characters
MAX_SHEET_NAME_LENGTH = 31


@dataclass(frozen=True)
class ColumnSpec:
    """One column of an export manifest"""
    key: str
    title: str
    formatter: Optional[Callable[[Any], Any]] = None


@dataclass
class ExportFile:
    """A serialized export ready to be sent as a download"""
    content: bytes
    filename: str
    media_type: str
    row_count: int

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


def parse_format(value: Any) -> ExportFormat:
    """
    Resolve a requested export format.

    Raises:
        UnsupportedFormat: for anything outside ExportFormat
    """
    if isinstance(value, ExportFormat):
        return value
    if isinstance(value, str):
        try:
            return ExportFormat(value.strip().lower())
        except ValueError:
            pass
    raise UnsupportedFormat(value, [f.value for f in ExportFormat])


def sanitise_filename(name: str) -> str:
    """Reduce a report name to a safe download filename stem"""
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "-", (name or "").strip())
    cleaned = cleaned.strip("-.")
    return cleaned or "report"


def build_filename(report_name: str, export_format: ExportFormat,
                   timestamp: Optional[datetime] = None) -> str:
    """Compose '<report-name>[_<timestamp>].<ext>'"""
    stem = sanitise_filename(report_name)
    if timestamp is not None:
        stem = f"{stem}_{timestamp.strftime('%Y%m%d_%H%M%S')}"
    return f"{stem}.{FILE_EXTENSIONS[export_format]}"


def format_cell(record: Mapping[str, Any], column: ColumnSpec) -> Any:
    """Project one cell: missing or null renders empty, formatter applied"""
    value = record.get(column.key)
    if column.formatter is not None:
        try:
            value = column.formatter(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Formatter for column '{column.key}' failed on {value!r}: {e}")
    if value is None:
        return ""
    return value


def build_rows(records: Sequence[Mapping[str, Any]], columns: Sequence[ColumnSpec]) -> List[List[Any]]:
    """Project records into rows in manifest order"""
    return [[format_cell(record, column) for column in columns] for record in records]


def _plain(value: Any) -> Any:
    """Convert cell values to something every writer understands"""
    if isinstance(value, datetime):
        return value.isoformat(sep=' ')
    if isinstance(value, date):
        return value.isoformat()
    return value


def _write_csv(headers: List[str], rows: List[List[Any]]) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    writer.writerows([[_plain(cell) for cell in row] for row in rows])
    return output.getvalue().encode('utf-8')


def _write_excel(headers: List[str], rows: List[List[Any]], sheet_name: str) -> bytes:
    excel_buffer = io.BytesIO()
    df = pd.DataFrame([[_plain(cell) for cell in row] for row in rows], columns=headers)
    # Cell text stays text: no formulas or hyperlinks from user-entered values
    writer_options = {'strings_to_formulas': False, 'strings_to_urls': False}
    with pd.ExcelWriter(excel_buffer, engine='xlsxwriter', engine_kwargs={'options': writer_options}) as writer:
        df.to_excel(writer, sheet_name=sheet_name[:MAX_SHEET_NAME_LENGTH] or "Report", index=False)
    return excel_buffer.getvalue()


def _write_json(headers: List[str], rows: List[List[Any]]) -> bytes:
    payload = [dict(zip(headers, row)) for row in rows]
    return json.dumps(payload, default=str, ensure_ascii=False, indent=2).encode('utf-8')


def export_records(
    records: Sequence[Mapping[str, Any]],
    columns: Sequence[ColumnSpec],
    export_format: Any,
    report_name: str,
    sheet_name: Optional[str] = None,
    timestamp: Optional[datetime] = None
) -> ExportFile:
    """
    Serialize records to the requested format.

    Args:
        records: Records to export, in output order
        columns: Column manifest (key, title, formatter)
        export_format: ExportFormat or its string value
        report_name: Logical report name used for the filename
        sheet_name: Excel sheet name (defaults to the report name)
        timestamp: Optional timestamp appended to the filename

    Returns:
        ExportFile with the bytes, filename and media type. An empty record
        set produces a header-only file.

    Raises:
        UnsupportedFormat: if the format is not supported
    """
    export_format = parse_format(export_format)
    headers = [column.title for column in columns]
    rows = build_rows(records, columns)

    if export_format == ExportFormat.CSV:
        content = _write_csv(headers, rows)
    elif export_format == ExportFormat.EXCEL:
        content = _write_excel(headers, rows, sheet_name or report_name)
    else:
        content = _write_json(headers, rows)

    filename = build_filename(report_name, export_format, timestamp)
    logger.info(f"Exported {len(rows)} rows as {export_format.value} ({len(content)} bytes) -> {filename}")

    return ExportFile(
        content=content,
        filename=filename,
        media_type=MEDIA_TYPES[export_format],
        row_count=len(rows)
    )
