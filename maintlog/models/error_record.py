from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for degraded reads.

Reads never raise to the caller: a failed sheet fetch becomes an empty sheet,
an unparseable date becomes "now". Each such degradation is captured as an
ErrorRecord so the CLI can persist it as JSON Lines next to the console log.

row=-1 is the sentinel for sheet-level problems where no row applies.
"""

__all__ = [
    "ErrorRecord",
    "FETCH_FAILED",
    "DATE_PARSE",
]

FETCH_FAILED = "FETCH_FAILED"
DATE_PARSE = "DATE_PARSE"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        sheet: Sheet (tab) name the problem was found in
        row: 0-based data row index. -1 when the whole sheet is affected
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str
    sheet: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # dataclass -> dict keeps the key set fixed
        return json.dumps(asdict(self), ensure_ascii=False)
