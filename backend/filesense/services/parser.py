"""
Uploaded spreadsheet parsing: CSV, XLSX and XLS into row mappings.

The first sheet of a workbook is read and its first line is the header,
so the rows match what a browser-side sheet-to-JSON conversion produces.
"""
import logging
import math
from datetime import date, datetime, time
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from fastapi import UploadFile
from openpyxl import load_workbook

from filesense.core.config import get_settings
from filesense.core.errors import (
    FileEmptyError,
    FileParseError,
    FileTooLargeError,
    InvalidFileTypeError,
)
from filesense.core.performance import track_performance
from filesense.core.sanitization import sanitize_filename, sanitize_for_logging, validate_column_name

logger = logging.getLogger(__name__)

# Allowed file extensions
ALLOWED_EXTENSIONS = {'.csv', '.xlsx', '.xls'}

# MIME type mapping for validation
MIME_TYPE_MAP = {
    'text/csv': '.csv',
    'application/vnd.ms-excel': '.xls',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet': '.xlsx',
}

DANGEROUS_MIME_TYPES = {
    'application/x-executable',
    'application/x-sharedlib',
    'application/x-msdownload',
    'text/html',
    'application/javascript',
}


def read_first_sheet_unmerged(contents: bytes) -> Optional[pd.DataFrame]:
    """
    Read the first worksheet with openpyxl, filling merged ranges with the
    value of their top-left cell.

    Returns None if openpyxl cannot read the workbook, so the caller can fall
    back to pandas.
    """
    try:
        wb = load_workbook(BytesIO(contents), data_only=True)
        ws = wb.worksheets[0]

        merged_ranges = list(ws.merged_cells.ranges)
        for merged_range in merged_ranges:
            top_left_value = ws.cell(merged_range.min_row, merged_range.min_col).value
            ws.unmerge_cells(str(merged_range))
            for row in range(merged_range.min_row, merged_range.max_row + 1):
                for col in range(merged_range.min_col, merged_range.max_col + 1):
                    ws.cell(row, col, top_left_value)

        if merged_ranges:
            logger.info(f"Unmerged {len(merged_ranges)} cell ranges in sheet '{ws.title}'")

        values = list(ws.values)
    except Exception as e:
        logger.warning(f"openpyxl parsing failed, falling back to pandas: {e}")
        return None

    if not values:
        return pd.DataFrame()

    header, *body = values
    columns = _header_names(header)
    return pd.DataFrame(body, columns=columns)


def _header_names(header) -> List[str]:
    """Header cells as strings; blank cells get positional names."""
    names = []
    for position, cell in enumerate(header):
        if cell is None or (isinstance(cell, str) and not cell.strip()):
            names.append(f"__EMPTY_{position}")
        else:
            names.append(str(cell))
    return unique_names(names)


def unique_names(names: List[str]) -> List[str]:
    """Suffix repeated names with _1, _2, ... skipping names already taken."""
    taken = set(names)
    seen = set()
    result = []
    for name in names:
        if name in seen:
            suffix = 1
            while f"{name}_{suffix}" in taken:
                suffix += 1
            name = f"{name}_{suffix}"
            taken.add(name)
        seen.add(name)
        result.append(name)
    return result


def validate_file_extension(filename: Optional[str], language: Optional[str] = None) -> str:
    """Return the lowercase extension, or raise InvalidFileTypeError."""
    if not filename:
        raise InvalidFileTypeError(language=language)

    file_ext = Path(filename).suffix.lower()

    if file_ext not in ALLOWED_EXTENSIONS:
        logger.warning(f"Rejected file extension: {sanitize_for_logging(file_ext) or '(none)'}")
        raise InvalidFileTypeError(language=language)

    return file_ext


def validate_mime_type(content_type: Optional[str], file_ext: str, language: Optional[str] = None) -> None:
    """
    Reject MIME types that are never spreadsheets.

    A MIME type that merely disagrees with the extension is only logged,
    since browsers report CSV under several types.
    """
    if not content_type:
        return

    expected_ext = MIME_TYPE_MAP.get(content_type.lower())
    if expected_ext and expected_ext != file_ext:
        logger.warning(f"MIME type {content_type} doesn't match extension {file_ext}")

    if content_type.lower() in DANGEROUS_MIME_TYPES:
        raise InvalidFileTypeError(language=language)


def _read_csv(contents: bytes) -> pd.DataFrame:
    # Read every cell as text; the profiler does its own numeric coercion
    options = dict(dtype=str, keep_default_na=False, skip_blank_lines=True)
    try:
        return pd.read_csv(BytesIO(contents), **options)
    except UnicodeDecodeError:
        return pd.read_csv(BytesIO(contents), encoding='latin1', **options)


def _read_excel(contents: bytes, file_ext: str) -> pd.DataFrame:
    df = None
    if file_ext == '.xlsx':
        df = read_first_sheet_unmerged(contents)
    if df is None:
        df = pd.read_excel(BytesIO(contents), sheet_name=0)
    return df


@track_performance("parse_file")
async def parse_file(file: UploadFile, language: Optional[str] = None) -> pd.DataFrame:
    """
    Parse an uploaded file into a DataFrame.

    Raises:
        InvalidFileTypeError: unsupported extension or dangerous MIME type
        FileTooLargeError: more than max_file_size_mb bytes
        FileEmptyError: zero bytes, or no data rows
        FileParseError: the bytes could not be read as CSV/Excel
    """
    settings = get_settings()
    file_ext = validate_file_extension(file.filename, language)
    validate_mime_type(file.content_type, file_ext, language)

    contents = await file.read()

    if len(contents) > settings.max_file_size_bytes:
        raise FileTooLargeError(language=language)
    if len(contents) == 0:
        raise FileEmptyError(language=language)

    try:
        if file_ext == '.csv':
            df = _read_csv(contents)
        else:
            df = _read_excel(contents, file_ext)
    except pd.errors.EmptyDataError as e:
        raise FileEmptyError(language=language) from e
    except Exception as e:
        logger.error(f"Error parsing file {sanitize_for_logging(file.filename)}: {e}", exc_info=True)
        raise FileParseError(language=language) from e

    safe_filename = sanitize_filename(file.filename)
    logger.info(f"Successfully parsed file: {sanitize_for_logging(safe_filename)}, shape: {df.shape}")
    return df


def validate_file_content(df: pd.DataFrame, filename: str, language: Optional[str] = None) -> None:
    """
    Check row/column counts, header names and cell sizes against the limits.

    Raises:
        FileParseError: with a detail message naming the violated limit
    """
    settings = get_settings()

    if len(df) > settings.max_file_rows:
        raise FileParseError(
            f"File contains too many rows ({len(df):,}). Maximum allowed: {settings.max_file_rows:,} rows.",
            language=language,
        )

    if len(df.columns) > settings.max_file_columns:
        raise FileParseError(
            f"File contains too many columns ({len(df.columns)}). Maximum allowed: {settings.max_file_columns} columns.",
            language=language,
        )

    for col in df.columns:
        if not validate_column_name(str(col)):
            raise FileParseError(f"Invalid column name: '{sanitize_for_logging(str(col), 100)}'.", language=language)

    for position, col in enumerate(df.columns):
        column = df.iloc[:, position]
        if column.dtype == 'object' or pd.api.types.is_string_dtype(column.dtype):
            max_length = column.astype(str).str.len().max()
            if pd.notna(max_length) and max_length > settings.max_cell_size_bytes:
                raise FileParseError(
                    f"Column '{sanitize_for_logging(str(col), 100)}' has values larger than {settings.max_cell_size_bytes} bytes.",
                    language=language,
                )

    logger.debug(f"Validated content of {sanitize_for_logging(filename)}: {df.shape}")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NaT:
        return True
    return isinstance(value, str) and not value.strip()


def clean_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """Drop rows and columns with no data and collapse whitespace in headers."""
    blank = df.apply(lambda column: column.map(_is_blank))
    df = df.loc[~blank.all(axis=1), ~blank.all(axis=0)]

    def sanitize_column_name(col):
        if isinstance(col, str):
            col = col.replace('\n', ' ').replace('\r', ' ')
            col = ' '.join(col.split())
        return col

    df = df.copy()
    # collapsing whitespace can make two headers equal
    df.columns = unique_names([str(sanitize_column_name(col)) for col in df.columns])
    return df.reset_index(drop=True)


def to_json_scalar(value: Any) -> Any:
    """
    Cell value as a JSON-safe scalar.

    Empty cells (None, NaN, NaT, "") become None. Other strings pass through
    unchanged, whitespace-only ones included, so the profiler applies the same
    missing rule to uploads as to rows posted to /api/analyze.
    """
    if value is None or value is pd.NaT or (isinstance(value, str) and not value):
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (pd.Timestamp, datetime, date, time)):
        return value.isoformat()
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        # numpy scalar
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def dataframe_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Convert a parsed sheet into row mappings.

    Every row carries every header, with None for empty cells, so the
    profiler sees all columns regardless of which cells the first row fills.
    """
    columns = [str(col) for col in df.columns]
    return [
        {column: to_json_scalar(value) for column, value in zip(columns, row)}
        for row in df.itertuples(index=False, name=None)
    ]
