from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .records import AppData, EquipmentType

"""Load summary model: counts for the SUMMARY line after a sync."""


@dataclass(frozen=True)
class LoadSummary:
    """Aggregated counts of one ``load_all`` call."""
    equipment_by_type: dict[str, int]  # type code -> count, ML/MNU/TL order
    users: int
    history: int
    incidents: int  # incident records within the leader window
    start_time: datetime
    end_time: datetime
    failed_sheets: tuple[str, ...] = ()  # sheets that could not be fetched

    @property
    def equipments(self) -> int:
        return sum(self.equipment_by_type.values())

    @property
    def elapsed_seconds(self) -> float:
        return max((self.end_time - self.start_time).total_seconds(), 0.0)

    @staticmethod
    def from_data(
        data: AppData,
        start_time: datetime,
        end_time: datetime,
        incidents: int = 0,
        failed_sheets: list[str] | None = None,
    ) -> LoadSummary:
        counts = {t.code: 0 for t in EquipmentType}
        for e in data.equipments:
            counts[e.type.code] += 1
        return LoadSummary(
            equipment_by_type=counts,
            users=len(data.users),
            history=len(data.history),
            incidents=incidents,
            start_time=start_time,
            end_time=end_time,
            failed_sheets=tuple(failed_sheets or ()),
        )
