from __future__ import annotations

from dataclasses import dataclass

from maintlog.models.records import RawRow

"""CSV parsing for published spreadsheet exports.

The export is human-edited data, so the parser is forgiving and purely
mechanical: it never raises, it only tokenizes.

Rules:
- ``"`` toggles quoted mode; inside quotes ``""`` is a literal quote
- ``,`` and line breaks only delimit outside quotes
- ``\\r\\n`` is one terminator; a lone ``\\r`` or ``\\n`` also ends a row
- every value is trimmed; rows whose cells are all empty are dropped
- a final row without a trailing newline is still flushed
- the first retained row is the header; data rows are padded with "" or
  truncated to the header length
"""

__all__ = [
    "SheetData",
    "parse_csv_rows",
    "parse_csv",
    "read_sheet",
]

QUOTE = '"'
DELIMITER = ","
BOM = "\ufeff"


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[RawRow]


def _flush_row(rows: list[list[str]], row: list[str]) -> None:
    if any(cell != "" for cell in row):
        rows.append(row)


def parse_csv_rows(text: str) -> list[list[str]]:
    """Tokenize CSV text into trimmed cell lists, blank rows removed."""
    if text.startswith(BOM):
        text = text[1:]
    rows: list[list[str]] = []
    row: list[str] = []
    buf: list[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    while i < n:
        char = text[i]
        next_char = text[i + 1] if i + 1 < n else ""

        if char == QUOTE:
            if in_quotes and next_char == QUOTE:
                buf.append(QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == DELIMITER and not in_quotes:
            row.append("".join(buf).strip())
            buf = []
        elif char in "\r\n" and not in_quotes:
            if char == "\r" and next_char == "\n":
                i += 1
            row.append("".join(buf).strip())
            _flush_row(rows, row)
            row = []
            buf = []
        else:
            buf.append(char)
        i += 1

    if buf or row:
        row.append("".join(buf).strip())
        _flush_row(rows, row)

    return rows


def _to_records(header: list[str], data: list[list[str]]) -> list[RawRow]:
    records: list[RawRow] = []
    for cells in data:
        record: RawRow = {}
        for idx, name in enumerate(header):
            # duplicate header names: later column wins
            record[name] = cells[idx] if idx < len(cells) else ""
        records.append(record)
    return records


def parse_csv(text: str) -> list[RawRow]:
    """Parse CSV text into header-keyed rows.

    Returns:
        One dict per retained data row; empty list when there is no header
    """
    rows = parse_csv_rows(text)
    if not rows:
        return []
    header = [h.strip() for h in rows[0]]
    return _to_records(header, rows[1:])


def read_sheet(text: str, sheet_name: str) -> SheetData:
    """Parse CSV text keeping the header order for previews."""
    rows = parse_csv_rows(text)
    if not rows:
        return SheetData(sheet_name=sheet_name, columns=[], rows=[])
    header = [h.strip() for h in rows[0]]
    return SheetData(sheet_name=sheet_name, columns=header, rows=_to_records(header, rows[1:]))
