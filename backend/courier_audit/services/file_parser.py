"""
File parsing services - turn invoice exports into a raw string grid.
"""
import re
from pathlib import Path
from typing import Any, List

import pandas as pd

from courier_audit.schemas.shipment import RawRow
from courier_audit.services.header_locator import find_header_row

Grid = List[List[str]]

_NUMERIC_CELL_RE = re.compile(r"^[\d.,₹$-]+$")
_LONG_NUMBER_RE = re.compile(r"\d{5,}")
_MULTI_SPACE_RE = re.compile(r"\s{2,}")

# Quality gate for text extracted from PDFs
MIN_TEXT_ROWS = 3
MIN_NUMERIC_LINE_RATIO = 0.04


def infer_file_type(filename: str) -> str:
    """Infer file type from extension."""
    ext = Path(filename).suffix.lower()
    if ext == ".xlsx" or ext == ".xls":
        return "xlsx"
    elif ext == ".csv":
        return "csv"
    else:
        return ext.lstrip(".")


def _frame_to_grid(df: pd.DataFrame) -> Grid:
    df = df.fillna("")
    return [["" if v is None else str(v).strip() for v in row] for row in df.itertuples(index=False, name=None)]


def read_grid(file_path: str, file_type: str) -> Grid:
    """
    Read a file into a 2-D grid of strings with no header assumptions.

    Excel workbooks use the first non-empty sheet. Raises ValueError for
    unsupported, empty or undecodable files.
    """
    if file_type == "xlsx":
        excel_file = pd.ExcelFile(file_path)
        for sheet_name in excel_file.sheet_names:
            df = pd.read_excel(file_path, sheet_name=sheet_name, header=None, dtype=str)
            if not df.dropna(how="all").empty:
                return _frame_to_grid(df.dropna(how="all"))
        raise ValueError("No data found in Excel file")
    elif file_type == "csv":
        # Try different encodings
        for encoding in ["utf-8", "latin-1", "cp1252"]:
            try:
                df = pd.read_csv(
                    file_path,
                    encoding=encoding,
                    header=None,
                    dtype=str,
                    keep_default_na=False,
                    skip_blank_lines=True,
                    # Title rows above the header are shorter than data rows
                    names=range(_max_columns(file_path, encoding)),
                    engine="python",
                )
            except UnicodeDecodeError:
                continue
            except pd.errors.EmptyDataError:
                raise ValueError("CSV file is empty")
            grid = [row for row in _frame_to_grid(df) if any(row)]
            if not grid:
                raise ValueError("CSV file is empty")
            return grid
        raise ValueError("Could not decode CSV file")
    else:
        raise ValueError(f"Unsupported file type: {file_type}")


def _max_columns(file_path: str, encoding: str) -> int:
    widest = 1
    with open(file_path, "r", encoding=encoding, newline="") as fh:
        for line in fh:
            widest = max(widest, line.count(",") + 1)
    return widest


def split_text_line(line: str) -> List[str]:
    """Split a PDF text line into cells by tabs (2+) or runs of 2+ spaces."""
    if line.count("\t") >= 2:
        return [c.strip() for c in line.split("\t")]
    return [c.strip() for c in _MULTI_SPACE_RE.split(line) if c.strip()]


def parse_text_table(text: str) -> List[RawRow]:
    """
    Parse tabular rows out of raw PDF text.

    Rows below the detected header with fewer than two cells, or that look
    like sub-headers (no numeric cell and fewer than three cells), are skipped.
    """
    lines = [line.strip() for line in re.split(r"\r?\n", text or "")]
    lines = [line for line in lines if line]
    if not lines:
        return []

    grid = [split_text_line(line) for line in lines]
    header_idx = find_header_row(grid)
    header_cells = grid[header_idx]
    if len(header_cells) < 2:
        return []

    rows: List[RawRow] = []
    for cells in grid[header_idx + 1:]:
        if len(cells) < 2:
            continue
        numeric_count = sum(1 for c in cells if _NUMERIC_CELL_RE.match(c))
        if numeric_count == 0 and len(cells) < 3:
            continue
        row: RawRow = {}
        for idx, header in enumerate(header_cells):
            if header:
                row[header] = cells[idx] if idx < len(cells) else ""
        rows.append(row)
    return rows


def is_good_quality(rows: List[Any], text: str) -> bool:
    """
    Whether text-extracted rows look like real invoice data.

    Scanned PDFs yield few lines with long numbers (AWBs, pincodes); those
    should go to the AI extractor instead.
    """
    if len(rows) < MIN_TEXT_ROWS:
        return False
    lines = [line for line in re.split(r"\r?\n", text or "") if line.strip()]
    if not lines:
        return False
    numeric_lines = sum(1 for line in lines if _LONG_NUMBER_RE.search(line))
    return numeric_lines / len(lines) >= MIN_NUMERIC_LINE_RATIO
