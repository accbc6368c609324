from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any

"""Configuration dataclasses.

AppConfig holds the remote endpoints and sheet names; FieldAliases holds the
ordered column-header spellings accepted for each logical field. Both are
built by ``maintlog.config.loader`` from YAML, falling back to the defaults
below for anything the file leaves out.
"""

DEFAULT_SPREADSHEET_ID = "1XgFRd4_EZmSEFdtLhAWx3Doim4C3PPMRBWLBHjf8g2E"
DEFAULT_SCRIPT_URL = (
    "https://script.google.com/macros/s/"
    "AKfycbzoMz0zYPaFEqRogNl6BX5ut_DpBDEX00ZLLOGJ1c-GRIxG4djHLyGMzqaQHGaczJY/exec"
)
DEFAULT_DRIVE_FOLDER_URL = "https://drive.google.com/drive/folders/1I_BfAxXX-5UrkMTf8CWFr2Dd4gM9EKo_"

HISTORY_SHEET = "NHAT_KY_THIET_BI"
ACCOUNTS_SHEET = "tk"


def _aliases(*names: str) -> tuple[str, ...]:
    return tuple(names)


@dataclass(frozen=True)
class FieldAliases:
    """Ordered alias lists per logical field. Earlier aliases win."""
    # equipment sheets (ML / MNU / TL)
    equipment_id: tuple[str, ...] = _aliases("Máy số", "MTS 2025", "MTS QT 2025", "MTS", "ID", "STT")
    area: tuple[str, ...] = _aliases("Khu vực", "Vị trí", "Khu Vực", "Khu vuc")
    department: tuple[str, ...] = _aliases("Khoa/Phòng", "Khoa", "Đơn vị", "Bộ phận", "Khoa/Phong")
    room: tuple[str, ...] = _aliases("Phòng", "Số phòng", "Phong")
    brand: tuple[str, ...] = _aliases("Hiệu", "Brand", "Hieu", "Hieu may")
    model: tuple[str, ...] = _aliases("Model", "Model may")
    condition: tuple[str, ...] = _aliases("Tình trạng", "Tinh trang")
    # row filter per type code: rows resolving to "" here are not equipment
    equipment_filter: dict[str, tuple[str, ...]] = field(hash=False, default_factory=lambda: {
        "ML": _aliases("Máy số", "MTS 2025", "MTS", "STT"),
        "MNU": _aliases("Máy số", "MTS QT 2025", "MTS", "STT"),
        "TL": _aliases("Máy số", "MTS QT 2025", "MTS", "STT"),
    })
    # activity log sheet
    date: tuple[str, ...] = _aliases("Ngày", "Ngay")
    time: tuple[str, ...] = _aliases("Giờ", "Gio", "Time")
    report_type: tuple[str, ...] = _aliases("Loại báo cáo", "Loai bao cao", "Loại BC")
    history_machine: tuple[str, ...] = _aliases("Máy số", "May so", "MTS", "MTS 2025", "MTS QT 2025", "STT")
    photo: tuple[str, ...] = _aliases("Link Ảnh Thực Tế", "Link Anh Thuc Te", "Ảnh", "Photo")
    notes: tuple[str, ...] = _aliases("GHI CHÚ", "Ghi chú", "Note")
    performer: tuple[str, ...] = _aliases("KTV thực hiện", "KTV")
    # accounts sheet
    username: tuple[str, ...] = _aliases("tk")
    password: tuple[str, ...] = _aliases("mk")
    full_name: tuple[str, ...] = _aliases("Ten")
    role: tuple[str, ...] = _aliases("role")
    user_department: tuple[str, ...] = _aliases("donvi")

    def filter_for(self, type_code: str) -> tuple[str, ...]:
        return self.equipment_filter.get(type_code, self.equipment_id)

    def with_overrides(self, overrides: dict[str, Any]) -> FieldAliases:
        """Return a copy with alias lists replaced from a config mapping.

        Unknown keys are ignored here; the JSON schema rejects them earlier.
        """
        known = {f.name for f in fields(self)}
        changes: dict[str, Any] = {}
        for name, value in overrides.items():
            if name not in known:
                continue
            if name == "equipment_filter":
                merged = dict(self.equipment_filter)
                merged.update({str(k).upper(): tuple(v) for k, v in value.items()})
                changes[name] = merged
            else:
                changes[name] = tuple(value)
        return replace(self, **changes)


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    spreadsheet_id: str = DEFAULT_SPREADSHEET_ID
    script_url: str = DEFAULT_SCRIPT_URL
    drive_folder_url: str = DEFAULT_DRIVE_FOLDER_URL
    history_sheet: str = HISTORY_SHEET
    accounts_sheet: str = ACCOUNTS_SHEET
    request_timeout: float | None = None  # None: transport default
    session_file: str = ".maintlog/session.json"
    aliases: FieldAliases = field(default_factory=FieldAliases)
