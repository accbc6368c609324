from __future__ import annotations

from collections.abc import Iterable, Mapping

"""Alias-based field lookup.

Column headers in the sheets are typed by hand and drift over time
("Khoa/Phòng", "Khoa", "Đơn vị" ...). A logical field is therefore looked up
through an ordered alias list instead of a fixed header name.
"""

__all__ = [
    "resolve",
    "find_key",
]


def _norm(name: str) -> str:
    return name.strip().lower()


def find_key(row: Mapping[str, str], alias: str) -> str | None:
    """Return the first header in ``row`` equal to ``alias`` ignoring case/padding."""
    wanted = _norm(alias)
    for key in row:
        if _norm(key) == wanted:
            return key
    return None


def resolve(row: Mapping[str, str], aliases: Iterable[str]) -> str:
    """Return the trimmed value of the first alias with a non-empty cell.

    Alias order is priority order. Never raises; returns "" when nothing
    matches.
    """
    for alias in aliases:
        key = find_key(row, alias)
        if key is None:
            continue
        value = row[key]
        if value is None:
            continue
        text = str(value).strip()
        if text != "":
            return text
    return ""
