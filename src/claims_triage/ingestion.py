"""Tabular file ingestion for claims extracts.

Turns an uploaded XLSX or CSV file into an ordered list of rows keyed by the
header row. Only the first worksheet of a workbook is read.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

RawRow = Dict[str, Any]

XLSX_EXTENSIONS = {".xlsx", ".xlsm"}
CSV_EXTENSIONS = {".csv"}
SUPPORTED_EXTENSIONS = XLSX_EXTENSIONS | CSV_EXTENSIONS


class TabularDecodeError(Exception):
    """Raised when an upload cannot be turned into header-keyed rows."""
    pass


class FileNotSupportedError(TabularDecodeError):
    """Raised when the file extension is not a supported tabular format."""
    pass


def decode_rows(data: bytes, filename: str) -> List[RawRow]:
    """Decode an uploaded file into header-keyed rows.

    Args:
        data: Raw file bytes
        filename: Original filename (extension selects the decoder)

    Returns:
        Rows in file order. Empty cells are left out of each row, and rows
        with no values at all are skipped.

    Raises:
        FileNotSupportedError: Extension is not .xlsx/.xlsm/.csv
        TabularDecodeError: Empty file, no header row, no non-empty header,
            or the content cannot be parsed
    """
    suffix = Path(filename).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise FileNotSupportedError(
            f"Unsupported file type '{suffix or filename}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    if not data:
        raise TabularDecodeError("File is empty or contains no readable data.")

    if suffix in XLSX_EXTENSIONS:
        table = _read_xlsx(data)
    else:
        table = _read_csv(data)

    rows = _rows_from_table(table)
    logger.info(f"Decoded {len(rows)} rows from {filename}")
    return rows


def decode_file(path: Path) -> List[RawRow]:
    """Read a file from disk and decode it (see ``decode_rows``)."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise TabularDecodeError(f"An error occurred while reading the file: {e}") from e
    return decode_rows(data, path.name)


def _read_xlsx(data: bytes) -> Iterable[Sequence[Any]]:
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as e:
        raise TabularDecodeError("Failed to parse the XLSX file.") from e

    try:
        if not workbook.worksheets:
            raise TabularDecodeError("File is empty or contains no readable data.")
        sheet = workbook.worksheets[0]
        return [tuple(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_csv(data: bytes) -> Iterable[Sequence[Any]]:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise TabularDecodeError("Failed to decode the CSV file as UTF-8.") from e

    try:
        return list(csv.reader(io.StringIO(text)))
    except csv.Error as e:
        raise TabularDecodeError(f"Failed to parse the CSV file: {e}") from e


def _clean_header(value: Any) -> Optional[str]:
    if value is None:
        return None
    header = str(value).strip()
    return header or None


def _is_empty_cell(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _rows_from_table(table: Iterable[Sequence[Any]]) -> List[RawRow]:
    iterator = iter(table)
    header_row = next(iterator, None)
    if not header_row:
        raise TabularDecodeError("File is empty or contains no readable data.")

    # Each header stays paired with its own column; blank header cells drop
    # their column entirely.
    columns = [
        (index, header)
        for index, header in ((i, _clean_header(v)) for i, v in enumerate(header_row))
        if header is not None
    ]
    if not columns:
        raise TabularDecodeError("Could not detect any valid column headers in the first row.")

    rows: List[RawRow] = []
    for values in iterator:
        row: RawRow = {}
        for index, header in columns:
            if index < len(values) and not _is_empty_cell(values[index]):
                row[header] = values[index]
        if row:
            rows.append(row)
    return rows
