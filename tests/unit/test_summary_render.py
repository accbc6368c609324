from __future__ import annotations

import re
from datetime import datetime, timezone

from maintlog.models.load_result import LoadSummary
from maintlog.models.records import (
    AppData,
    Equipment,
    EquipmentKey,
    EquipmentType,
    HistoryRecord,
    MachineStatus,
    RecordType,
)
from maintlog.services.summary import (
    equipment_frame,
    history_frame,
    render_summary_line,
    status_table,
)

"""Unit tests for the summary rendering service."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+equipments=([0-9]+)\s+ml=([0-9]+)\s+mnu=([0-9]+)\s+tl=([0-9]+)\s+"
    r"users=([0-9]+)\s+history=([0-9]+)\s+incidents=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)$"
)

START = datetime(2025, 5, 21, 8, 0, 0, tzinfo=timezone.utc)


def _eq(type_: EquipmentType, raw: str, status: MachineStatus = MachineStatus.NORMAL) -> Equipment:
    return Equipment(key=EquipmentKey.of(type_, raw), status=status)


def test_render_summary_line_counts():
    data = AppData(
        equipments=[_eq(EquipmentType.ML, "1"), _eq(EquipmentType.ML, "2"), _eq(EquipmentType.TL, "1")],
        users=[],
        history=[],
    )
    end = datetime(2025, 5, 21, 8, 0, 1, 500000, tzinfo=timezone.utc)
    line = render_summary_line(LoadSummary.from_data(data, START, end, incidents=0))

    match = SUMMARY_PATTERN.match(line)
    assert match, line
    assert match.groups() == ("3", "2", "0", "1", "0", "0", "0", "1.5")


def test_render_summary_line_empty_read():
    line = render_summary_line(LoadSummary.from_data(AppData.empty(), START, START))
    assert line == "SUMMARY equipments=0 ml=0 mnu=0 tl=0 users=0 history=0 incidents=0 elapsed_sec=0"


def test_small_elapsed_has_no_exponent():
    end = datetime(2025, 5, 21, 8, 0, 0, 1000, tzinfo=timezone.utc)
    line = render_summary_line(LoadSummary.from_data(AppData.empty(), START, end))
    assert line.endswith("elapsed_sec=0.001")


def test_status_table_counts_per_type_and_status():
    table = status_table([
        _eq(EquipmentType.ML, "1"),
        _eq(EquipmentType.ML, "2", MachineStatus.BROKEN),
        _eq(EquipmentType.MNU, "1", MachineStatus.WARNING),
    ])
    assert list(table.index) == ["ML", "MNU", "TL"]
    assert list(table.columns) == ["Bình thường", "Cần chú ý", "Hỏng", "Tổng"]
    assert table.loc["ML", "Hỏng"] == 1
    assert table.loc["ML", "Tổng"] == 2
    assert table.loc["MNU", "Cần chú ý"] == 1
    assert table.loc["TL", "Tổng"] == 0


def test_status_table_empty():
    table = status_table([])
    assert table.values.sum() == 0
    assert table.shape == (3, 4)


def test_frames_have_fixed_columns():
    assert list(equipment_frame([]).columns) == ["id", "area", "department", "room", "brand", "model", "status"]
    rec = HistoryRecord(id="SHEET-0-1", machine_id="138", type=RecordType.INCIDENT, timestamp=START, status="Hỏng")
    frame = history_frame([rec])
    assert frame.loc[0, "time"] == "2025-05-21 08:00"
    assert frame.loc[0, "type"] == "Sự cố"
