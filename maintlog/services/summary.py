from __future__ import annotations

from collections.abc import Iterable

import pandas as pd

from ..models.load_result import LoadSummary
from ..models.records import Equipment, EquipmentType, HistoryRecord, MachineStatus

"""Summary rendering: the SUMMARY line and tabular views for the CLI.

SUMMARY line format:
    SUMMARY equipments={n} ml={a} mnu={b} tl={c} users={u} history={h}
    incidents={i} elapsed_sec={s}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.2f}".rstrip("0").rstrip(".")


def render_summary_line(summary: LoadSummary) -> str:
    """Render the SUMMARY line for a finished sync.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2025, 5, 21, 8, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2025, 5, 21, 8, 0, 2, tzinfo=timezone.utc)
        >>> s = LoadSummary({"ML": 3, "MNU": 1, "TL": 0}, users=2, history=5,
        ...                 incidents=1, start_time=start, end_time=end)
        >>> render_summary_line(s)
        'SUMMARY equipments=4 ml=3 mnu=1 tl=0 users=2 history=5 incidents=1 elapsed_sec=2'
    """
    per_type = " ".join(
        f"{code.lower()}={summary.equipment_by_type.get(code, 0)}" for code in (t.code for t in EquipmentType)
    )
    return (
        f"SUMMARY equipments={summary.equipments} "
        f"{per_type} "
        f"users={summary.users} "
        f"history={summary.history} "
        f"incidents={summary.incidents} "
        f"elapsed_sec={_format_seconds(summary.elapsed_seconds)}"
    )


def status_table(equipments: Iterable[Equipment]) -> pd.DataFrame:
    """Equipment counts per type (rows) and status (columns), with totals."""
    frame = pd.DataFrame(
        [{"type": e.type.code, "status": e.status.value} for e in equipments],
        columns=["type", "status"],
    )
    index = [t.code for t in EquipmentType]
    columns = [s.value for s in MachineStatus]
    if frame.empty:
        table = pd.DataFrame(0, index=index, columns=columns)
    else:
        table = pd.crosstab(frame["type"], frame["status"]).reindex(
            index=index, columns=columns, fill_value=0
        )
    table["Tổng"] = table.sum(axis=1)
    table.index.name = None
    table.columns.name = None
    return table.astype(int)


def equipment_frame(equipments: Iterable[Equipment]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "id": e.id,
                "area": e.area,
                "department": e.department,
                "room": e.room,
                "brand": e.brand,
                "model": e.model,
                "status": e.status.value,
            }
            for e in equipments
        ],
        columns=["id", "area", "department", "room", "brand", "model", "status"],
    )


def history_frame(records: Iterable[HistoryRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "time": r.timestamp.strftime("%Y-%m-%d %H:%M"),
                "machine": r.machine_id,
                "type": r.type.value,
                "status": r.status,
                "performer": r.performer,
                "notes": r.notes,
            }
            for r in records
        ],
        columns=["time", "machine", "type", "status", "performer", "notes"],
    )
