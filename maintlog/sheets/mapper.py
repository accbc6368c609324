from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime

from maintlog.models.config_models import FieldAliases
from maintlog.models.records import (
    NOT_AVAILABLE,
    Equipment,
    EquipmentKey,
    EquipmentType,
    HistoryRecord,
    MachineStatus,
    RawRow,
    RecordType,
    User,
    UserRole,
)
from maintlog.sheets.fields import resolve

"""Row -> record mapping.

Turns header-keyed rows from the equipment, activity-log and accounts sheets
into typed records. Missing or malformed cells degrade to defaults ("N/A",
"now", NORMAL ...); nothing here raises on bad data.

Keyword matching is plain lower-cased substring containment on the text as
typed. Vietnamese diacritics are not normalized, so a condition written with
decomposed accents will not match and falls back to NORMAL.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "BROKEN_KEYWORD",
    "WARNING_KEYWORD",
    "INCIDENT_KEYWORD",
    "has_identifier",
    "derive_status",
    "derive_record_type",
    "parse_timestamp",
    "to_equipment",
    "to_history_record",
    "to_user",
    "map_equipment_sheet",
    "map_history",
    "map_users",
]

BROKEN_KEYWORD = "hỏng"
WARNING_KEYWORD = "chú ý"
INCIDENT_KEYWORD = "sự cố"

DEFAULT_TIME = "00:00"
DEFAULT_HISTORY_STATUS = "Đã kiểm tra"
DEFAULT_PASSWORD = "123"
DEFAULT_FULL_NAME = "Người dùng"

_DEFAULT_ALIASES = FieldAliases()

# Called with (row_index, raw_date) when a history date cannot be parsed.
DateFailureHook = Callable[[int, str], None]


def _or_na(value: str) -> str:
    return value or NOT_AVAILABLE


def has_identifier(row: RawRow, type_: EquipmentType, aliases: FieldAliases = _DEFAULT_ALIASES) -> bool:
    """True when the row carries a machine number for this equipment type."""
    return resolve(row, aliases.filter_for(type_.code)) != ""


def derive_status(condition: str) -> MachineStatus:
    text = condition.lower()
    if BROKEN_KEYWORD in text:
        return MachineStatus.BROKEN
    if WARNING_KEYWORD in text:
        return MachineStatus.WARNING
    return MachineStatus.NORMAL


def derive_record_type(report_type: str) -> RecordType:
    if INCIDENT_KEYWORD in report_type.lower():
        return RecordType.INCIDENT
    return RecordType.CHECK


def _now() -> datetime:
    return datetime.now().astimezone()


def _iso_date(date_text: str) -> str:
    parts = date_text.split("/")
    if len(parts) == 3:
        day, month, year = parts
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    return date_text


def _iso_time(time_text: str) -> str:
    # "8:30" -> "08:30"; ISO parsing wants two-digit hours
    hour, sep, rest = time_text.partition(":")
    if sep and hour.isdigit() and len(hour) == 1:
        return f"0{hour}:{rest}"
    return time_text


def try_parse_timestamp(date_text: str, time_text: str = "") -> datetime | None:
    """Parse a ``D/M/Y`` date plus ``HH:MM`` time as local time.

    Returns:
        Timezone-aware datetime, or None when the text cannot be parsed
    """
    if not date_text:
        return None
    stamp = f"{_iso_date(date_text.strip())}T{_iso_time(time_text.strip() or DEFAULT_TIME)}"
    try:
        parsed = datetime.fromisoformat(stamp)
    except ValueError:
        return None
    # naive -> local wall clock; explicit offsets are kept
    return parsed.astimezone()


def parse_timestamp(date_text: str, time_text: str = "", now: datetime | None = None) -> datetime:
    """Like ``try_parse_timestamp`` but falls back to ``now`` instead of None."""
    parsed = try_parse_timestamp(date_text, time_text)
    if parsed is not None:
        return parsed
    return now if now is not None else _now()


def to_equipment(row: RawRow, type_: EquipmentType, aliases: FieldAliases = _DEFAULT_ALIASES) -> Equipment:
    raw_id = resolve(row, aliases.equipment_id) or NOT_AVAILABLE
    return Equipment(
        key=EquipmentKey.of(type_, raw_id),
        area=_or_na(resolve(row, aliases.area)),
        department=_or_na(resolve(row, aliases.department)),
        room=_or_na(resolve(row, aliases.room)),
        brand=_or_na(resolve(row, aliases.brand)),
        model=_or_na(resolve(row, aliases.model)),
        status=derive_status(resolve(row, aliases.condition)),
        details=dict(row),
    )


def to_history_record(
    row: RawRow,
    index: int,
    aliases: FieldAliases = _DEFAULT_ALIASES,
    captured_at: int | None = None,
    on_date_failure: DateFailureHook | None = None,
) -> HistoryRecord:
    """Map one activity-log row.

    Args:
        row: Header-keyed row
        index: Position of the row in the sheet (0-based, source order)
        aliases: Alias tables
        captured_at: Epoch milliseconds used in the synthetic id
        on_date_failure: Optional hook notified when the date falls back to now
    """
    date_text = resolve(row, aliases.date)
    time_text = resolve(row, aliases.time)
    report_type = resolve(row, aliases.report_type)
    machine = resolve(row, aliases.history_machine)
    photo = resolve(row, aliases.photo)

    timestamp = try_parse_timestamp(date_text, time_text)
    if timestamp is None:
        if date_text:
            logger.warning(f"history row {index}: unparseable date {date_text!r}, using now")
            if on_date_failure is not None:
                on_date_failure(index, date_text)
        timestamp = _now()

    stamp = captured_at if captured_at is not None else int(time.time() * 1000)
    return HistoryRecord(
        id=f"SHEET-{index}-{stamp}",
        machine_id=machine or NOT_AVAILABLE,
        type=derive_record_type(report_type),
        timestamp=timestamp,
        status=report_type or DEFAULT_HISTORY_STATUS,
        notes=resolve(row, aliases.notes),
        performer=resolve(row, aliases.performer),
        photo_url=photo or None,
        details=dict(row),
    )


def to_user(row: RawRow, aliases: FieldAliases = _DEFAULT_ALIASES) -> User:
    role_text = resolve(row, aliases.role)
    role = UserRole.from_label(role_text) if role_text else None
    if role is None:
        if role_text:
            logger.debug(f"unknown role {role_text!r}, defaulting to {UserRole.NHAN_VIEN.value}")
        role = UserRole.NHAN_VIEN
    return User(
        username=resolve(row, aliases.username),
        password=resolve(row, aliases.password) or DEFAULT_PASSWORD,
        full_name=resolve(row, aliases.full_name) or DEFAULT_FULL_NAME,
        role=role,
        department=_or_na(resolve(row, aliases.user_department)),
    )


def map_equipment_sheet(
    rows: list[RawRow], type_: EquipmentType, aliases: FieldAliases = _DEFAULT_ALIASES
) -> list[Equipment]:
    """Filter out rows without a machine number, then map the rest in order."""
    return [to_equipment(r, type_, aliases) for r in rows if has_identifier(r, type_, aliases)]


def map_history(
    rows: list[RawRow],
    aliases: FieldAliases = _DEFAULT_ALIASES,
    on_date_failure: DateFailureHook | None = None,
) -> list[HistoryRecord]:
    """Map activity-log rows, most recent (last appended) first."""
    captured_at = int(time.time() * 1000)
    records = [
        to_history_record(r, i, aliases, captured_at=captured_at, on_date_failure=on_date_failure)
        for i, r in enumerate(rows)
    ]
    records.reverse()
    return records


def map_users(rows: list[RawRow], aliases: FieldAliases = _DEFAULT_ALIASES) -> list[User]:
    return [to_user(r, aliases) for r in rows]
