from __future__ import annotations

import sys
import threading
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display for sheet fetches with tqdm (TTY only).

In non-TTY environments (CI, pipes) the bar is disabled so the labeled log
lines stay clean. Completion callbacks arrive from worker threads.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """One progress bar ticking once per finished sheet fetch."""

    def __init__(self, total_sheets: int, *, description: str = "Loading sheets") -> None:
        self.total_sheets = total_sheets
        self.description = description
        self.finished: list[str] = []
        self.failed: list[str] = []
        self._lock = threading.Lock()

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_sheets,
                desc=description,
                unit="sheet",
                leave=False,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def finish_sheet(self, sheet_name: str, success: bool = True) -> None:
        """Record one finished fetch.

        Args:
            sheet_name: Name of the sheet that completed
            success: False when the fetch raised
        """
        with self._lock:
            self.finished.append(sheet_name)
            if not success:
                self.failed.append(sheet_name)
            if self.enabled and self.pbar is not None:
                self.pbar.set_postfix(last=sheet_name)
                self.pbar.update(1)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
