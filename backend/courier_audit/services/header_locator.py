"""
Header row detection for invoice exports that carry title/meta rows above the
real column headers.

Example - a Delhivery report often looks like:
    row 0: "Report Generated: Jan 2024"
    row 1: "Account: XYZ Corp"
    row 2: "AWB No.", "Zone", "Weight", ...   <- header row (index 2)
    row 3+: data
"""
import logging
from typing import Any, List, Optional, Sequence

from courier_audit.config.mapping_loader import get_header_keywords
from courier_audit.schemas.shipment import RawRow

logger = logging.getLogger(__name__)

# Only the top of a file is scanned for headers
MAX_SCAN_ROWS = 10
# A row matching this many keywords is taken as the header immediately
STRONG_HEADER_MATCHES = 4

DEFAULT_HEADER_KEYWORDS = [
    "awb", "zone", "weight", "amount", "type", "order",
    "pincode", "date", "cod", "shipment", "invoice", "billed",
    "actual", "freight", "tracking",
]


def _cell_text(cell: Any) -> str:
    if cell is None:
        return ""
    return str(cell).strip()


def count_header_keywords(row: Sequence[Any], keywords: Optional[List[str]] = None) -> int:
    """Number of distinct keywords found as a substring of any cell."""
    vocabulary = keywords or get_header_keywords() or DEFAULT_HEADER_KEYWORDS
    cells_lower = [_cell_text(c).lower() for c in row]
    return sum(1 for kw in vocabulary if any(kw in cell for cell in cells_lower))


def find_header_row(rows: Sequence[Sequence[Any]], keywords: Optional[List[str]] = None) -> int:
    """
    Return the 0-based index of the most header-like row among the first
    MAX_SCAN_ROWS rows, defaulting to 0 when nothing stands out.

    Rows with fewer than two non-empty cells are ignored. Ties go to the
    earlier row.
    """
    best_index = 0
    best_matches = 0

    for idx, row in enumerate(list(rows)[:MAX_SCAN_ROWS]):
        if not row:
            continue
        non_empty = [c for c in row if _cell_text(c)]
        if len(non_empty) < 2:
            continue

        match_count = count_header_keywords(row, keywords)
        if match_count > best_matches:
            best_matches = match_count
            best_index = idx

        if match_count >= STRONG_HEADER_MATCHES:
            break

    return best_index


def unique_headers(headers: List[str]) -> List[str]:
    used = set()
    result = []
    for header in headers:
        if not header:
            result.append(header)
            continue
        name = header
        suffix = 1
        while name in used:
            suffix += 1
            name = f"{header}_{suffix}"
        if name != header:
            logger.warning("Duplicate header %r renamed to %r", header, name)
        used.add(name)
        result.append(name)
    return result


def rows_from_grid(grid: Sequence[Sequence[Any]], header_index: Optional[int] = None) -> List[RawRow]:
    """
    Project the data rows below the header row into raw header -> value dicts.

    Blank header cells are skipped; fully empty data rows are dropped. Short
    rows are padded with "". A repeated header name gets a numeric suffix
    ("Amount", "Amount_2") so no column is overwritten.
    """
    if not grid:
        return []
    if header_index is None:
        header_index = find_header_row(grid)

    headers = unique_headers([_cell_text(c) for c in grid[header_index]])
    rows: List[RawRow] = []
    for cells in grid[header_index + 1:]:
        if not any(_cell_text(c) for c in cells):
            continue
        row: RawRow = {}
        for col_idx, header in enumerate(headers):
            if not header:
                continue
            value = cells[col_idx] if col_idx < len(cells) else ""
            row[header] = "" if value is None else value
        rows.append(row)
    return rows
