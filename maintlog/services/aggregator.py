from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from ..models.error_record import DATE_PARSE, ErrorRecord
from ..models.records import AppData, Equipment, EquipmentType, HistoryRecord, RawRow
from ..sheets.client import SheetClient
from ..sheets.mapper import DateFailureHook, map_equipment_sheet, map_history, map_users
from .progress import ProgressTracker

"""Data aggregation: one read of every sheet into a single AppData.

All sheet fetches are issued at once and joined; mapping happens after the
join. Failure policy is fail-together: if any fetch task raises, the whole
result collapses to empty collections. Transport errors never reach here;
SheetClient turns them into empty sheets.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "EQUIPMENT_SHEETS",
    "fetch_history",
    "load_all",
]

# concatenation order of the merged equipment list
EQUIPMENT_SHEETS: tuple[EquipmentType, ...] = (EquipmentType.ML, EquipmentType.MNU, EquipmentType.TL)


def _date_failure_hook(client: SheetClient) -> DateFailureHook | None:
    error_log = client.error_log
    if error_log is None:
        return None
    sheet = client.config.history_sheet

    def hook(index: int, raw: str) -> None:
        error_log.append(ErrorRecord.create(sheet, index, DATE_PARSE, f"unparseable date {raw!r}"))

    return hook


def fetch_history(client: SheetClient) -> list[HistoryRecord]:
    """Fetch and map the activity log, most recent first.

    A bad date only degrades that row's timestamp.
    """
    rows = client.fetch_sheet(client.config.history_sheet)
    return map_history(rows, client.config.aliases, on_date_failure=_date_failure_hook(client))


ACCOUNTS_TASK = "accounts"
HISTORY_TASK = "history"


def _tasks(client: SheetClient) -> dict[str, Callable[[], Any]]:
    """Fetch tasks keyed by role: a type code, ``accounts`` or ``history``."""
    tasks: dict[str, Callable[[], Any]] = {}
    for type_ in EQUIPMENT_SHEETS:
        tasks[type_.code] = lambda code=type_.code: client.fetch_sheet(code)
    tasks[ACCOUNTS_TASK] = lambda: client.fetch_sheet(client.config.accounts_sheet)
    tasks[HISTORY_TASK] = lambda: fetch_history(client)
    return tasks


def load_all(client: SheetClient, progress: ProgressTracker | None = None) -> AppData:
    """Load equipment, accounts and history concurrently.

    Args:
        client: Sheet client used for every fetch
        progress: Optional tracker notified as each fetch completes

    Returns:
        AppData with equipment in ML, MNU, TL order, or AppData.empty() when
        any fetch failed
    """
    tasks = _tasks(client)
    sheet_names = {ACCOUNTS_TASK: client.config.accounts_sheet, HISTORY_TASK: client.config.history_sheet}
    futures: dict[str, Future[Any]] = {}
    with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="sheet") as executor:
        for name, fn in tasks.items():
            future = executor.submit(fn)
            if progress is not None:
                future.add_done_callback(
                    lambda f, n=sheet_names.get(name, name): progress.finish_sheet(n, success=f.exception() is None)
                )
            futures[name] = future
    # executor exit waits for every outstanding fetch

    try:
        results = {name: future.result() for name, future in futures.items()}
        aliases = client.config.aliases
        equipments: list[Equipment] = []
        for type_ in EQUIPMENT_SHEETS:
            rows: list[RawRow] = results[type_.code]
            equipments.extend(map_equipment_sheet(rows, type_, aliases))
        users = map_users(results[ACCOUNTS_TASK], aliases)
        history: list[HistoryRecord] = results[HISTORY_TASK]
    except Exception as e:
        logger.error(f"load all: {e}", exc_info=True)
        return AppData.empty()

    logger.debug(f"load all: equipments={len(equipments)} users={len(users)} history={len(history)}")
    return AppData(equipments=equipments, users=users, history=history)
