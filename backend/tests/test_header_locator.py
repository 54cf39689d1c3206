from courier_audit.services.header_locator import (
    count_header_keywords,
    find_header_row,
    rows_from_grid,
    unique_headers,
)


def test_header_below_metadata_rows():
    grid = [
        ["Report Generated: Jan 2024"],
        ["Account: XYZ Corp", ""],
        ["AWB No.", "Zone", "Weight"],
        ["1234567890", "A", "1.0"],
    ]
    assert find_header_row(grid) == 2


def test_metadata_row_with_fewer_keywords_loses():
    grid = [
        ["Invoice Date", "Jan 2024"],
        ["AWB No.", "Billed Zone", "Billed Weight", "Total Amount"],
        ["1234567890", "A", "1.0", "45"],
    ]
    assert find_header_row(grid) == 1


def test_tie_prefers_earlier_row():
    grid = [
        ["foo", "bar"],
        ["zone", "x"],
        ["weight", "y"],
    ]
    assert find_header_row(grid) == 1


def test_strong_row_stops_scan():
    grid = [
        ["AWB", "Zone", "Weight", "Amount"],
        ["AWB", "Billed Zone", "Actual Weight", "Amount", "Order Type", "COD"],
    ]
    assert find_header_row(grid) == 0


def test_defaults_to_zero_when_nothing_matches():
    assert find_header_row([["a", "b"], ["c", "d"]]) == 0
    assert find_header_row([]) == 0


def test_only_first_ten_rows_are_scanned():
    grid = [["x", "y"]] * 12 + [["AWB", "Zone", "Weight", "Amount"]]
    assert find_header_row(grid) == 0


def test_keywords_counted_once_per_row():
    assert count_header_keywords(["Billed Weight", "Actual Weight"]) == 3


def test_rows_from_grid_uses_header_row():
    grid = [
        ["Courier invoice"],
        ["AWB No.", "Zone", "", "Amount"],
        ["X1", "A", "ignored", "45"],
        ["", "", "", ""],
        ["X2", "B"],
    ]
    rows = rows_from_grid(grid)
    assert rows == [
        {"AWB No.": "X1", "Zone": "A", "Amount": "45"},
        {"AWB No.": "X2", "Zone": "B", "Amount": ""},
    ]


def test_duplicate_headers_keep_every_column():
    grid = [
        ["AWB", "Amount", "Amount", "Amount_2"],
        ["X1", "40", "5", "1"],
    ]
    assert unique_headers(["AWB", "Amount", "Amount", ""]) == ["AWB", "Amount", "Amount_2", ""]
    assert rows_from_grid(grid, 0) == [{"AWB": "X1", "Amount": "40", "Amount_2": "5", "Amount_2_2": "1"}]
