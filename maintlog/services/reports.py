from __future__ import annotations

import base64
import mimetypes
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from ..models.config_models import DEFAULT_DRIVE_FOLDER_URL, HISTORY_SHEET
from ..models.records import Equipment, User

"""Report submission payloads.

The script endpoint appends ``data`` as one row of the activity-log sheet,
so its keys are the destination column headers verbatim. Photos travel as a
single base64 data URL in ``photoData``.
"""

__all__ = [
    "FormType",
    "REPORT_LABELS",
    "format_sheet_date",
    "format_sheet_time",
    "build_report_payload",
    "encode_photo",
    "NOTES_FORM_FIELD",
    "success_message",
    "FAILURE_MESSAGE",
]


class FormType(Enum):
    CHECKIN = "CHECKIN"
    INCIDENT = "INCIDENT"


REPORT_LABELS = {
    FormType.CHECKIN: "Kiểm tra hằng ngày",
    FormType.INCIDENT: "Báo cáo sự cố",
}

NOTES_FORM_FIELD = "GHI CHÚ"

FAILURE_MESSAGE = "Lỗi khi gửi dữ liệu lên máy chủ."


def success_message(form_type: FormType) -> str:
    if form_type is FormType.INCIDENT:
        return "Đã gửi báo cáo sự cố thành công!"
    return "Gửi dữ liệu kiểm tra thành công!"


def format_sheet_date(now: datetime) -> str:
    """vi-VN short date: day/month/year without zero padding."""
    return f"{now.day}/{now.month}/{now.year}"


def format_sheet_time(now: datetime) -> str:
    return now.strftime("%H:%M")


def build_report_payload(
    form_type: FormType,
    equipment: Equipment,
    user: User,
    form_data: dict[str, str] | None = None,
    photo_data: str | None = None,
    now: datetime | None = None,
    sheet: str = HISTORY_SHEET,
    drive_folder_url: str = DEFAULT_DRIVE_FOLDER_URL,
) -> dict[str, Any]:
    """Assemble the POST body for one check-in or incident report.

    Free-form ``form_data`` fields are merged after the equipment columns and
    can override them; technician, notes and folder columns always win.
    """
    form_data = dict(form_data or {})
    now = now or datetime.now()
    data: dict[str, str] = {
        "Ngày": format_sheet_date(now),
        "Giờ": format_sheet_time(now),
        "Loại báo cáo": REPORT_LABELS[form_type],
        # the sheet stores the raw number, not the namespaced id
        "Máy số": equipment.raw_id,
        "Loại máy": equipment.type.value,
        "Khu vực": equipment.area,
        "Khoa/Phòng": equipment.department,
        "Phòng": equipment.room,
    }
    data.update(form_data)
    data.update({
        "KTV thực hiện": user.full_name,
        "Đơn vị KTV": user.department,
        "Ghi chú": form_data.get(NOTES_FORM_FIELD, ""),
        "Link Folder Drive": drive_folder_url,
    })
    return {
        "sheet": sheet,
        "photoData": photo_data,
        "notifyManagers": form_type is FormType.INCIDENT,
        "data": data,
    }


def encode_photo(path: Path) -> str:
    """Read an image file into a ``data:<mime>;base64,...`` string."""
    mime, _ = mimetypes.guess_type(path.name)
    payload = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime or 'image/jpeg'};base64,{payload}"
