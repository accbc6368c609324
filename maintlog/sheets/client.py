from __future__ import annotations

import json
import logging
from typing import Any

import requests

from maintlog.logging.error_log import ErrorLogBuffer
from maintlog.models.config_models import AppConfig
from maintlog.models.error_record import FETCH_FAILED, ErrorRecord
from maintlog.models.records import RawRow
from maintlog.sheets.csv_parser import SheetData, parse_csv, read_sheet

"""HTTP access to the remote spreadsheet.

Reads go through the published CSV export (one GET per sheet), writes go to
the spreadsheet's script endpoint (one POST with a JSON body). Neither path
retries. Read failures are swallowed into an empty sheet; write failures are
reported as False.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "EXPORT_URL_TEMPLATE",
    "SheetClient",
]

EXPORT_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/gviz/tq"


class SheetClient:
    """Thin wrapper around a ``requests.Session`` bound to one spreadsheet."""

    def __init__(
        self,
        config: AppConfig,
        session: requests.Session | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.error_log = error_log

    def export_url(self) -> str:
        return EXPORT_URL_TEMPLATE.format(spreadsheet_id=self.config.spreadsheet_id)

    def _record(self, sheet: str, row: int, error_type: str, message: str) -> None:
        if self.error_log is not None:
            self.error_log.append(ErrorRecord.create(sheet, row, error_type, message))

    def fetch_csv(self, sheet: str) -> str:
        """GET the CSV export of one sheet.

        Raises:
            requests.RequestException: on network errors or non-2xx status
        """
        response = self.session.get(
            self.export_url(),
            params={"tqx": "out:csv", "sheet": sheet},
            timeout=self.config.request_timeout,
        )
        response.raise_for_status()
        # the export does not always declare a charset and may start with a BOM
        response.encoding = "utf-8-sig"
        return response.text

    def fetch_sheet(self, sheet: str) -> list[RawRow]:
        """Fetch and parse one sheet; any transport failure yields []."""
        try:
            text = self.fetch_csv(sheet)
        except requests.RequestException as e:
            logger.error(f"fetch sheet {sheet}: {e}")
            self._record(sheet, -1, FETCH_FAILED, str(e))
            return []
        rows = parse_csv(text)
        logger.debug(f"fetch sheet {sheet}: {len(rows)} rows")
        return rows

    def fetch_sheet_data(self, sheet: str) -> SheetData:
        """Fetch one sheet keeping its header order (raises on transport errors)."""
        return read_sheet(self.fetch_csv(sheet), sheet)

    def submit_report(self, payload: dict[str, Any]) -> bool:
        """POST a report payload to the script endpoint.

        Success is judged on the HTTP status only; the body is not read.
        """
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        try:
            response = self.session.post(
                self.config.script_url,
                data=body,
                headers={"Content-Type": "text/plain;charset=utf-8"},
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            logger.error(f"submit report: {e}")
            return False
        if not response.ok:
            logger.error(f"submit report: HTTP {response.status_code}")
        return bool(response.ok)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> SheetClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
