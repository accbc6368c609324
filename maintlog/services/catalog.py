from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta

from ..models.records import (
    NOT_AVAILABLE,
    Equipment,
    EquipmentType,
    HistoryRecord,
    MachineStatus,
    User,
    UserRole,
)

"""Read-side helpers over an AppData snapshot.

Equipment browsing (filters, search, area/department choices), leader
checks, login lookup and photo link rewriting. Everything is a pure function
of the records passed in.
"""

__all__ = [
    "LEADER_ROLES",
    "NEW_INCIDENT_WINDOW_HOURS",
    "is_leader",
    "authenticate",
    "new_incident_count",
    "records_since",
    "recent_incidents",
    "filter_equipment",
    "available_areas",
    "available_departments",
    "area_for_department",
    "find_equipment",
    "direct_photo_url",
    "thumbnail_url",
]

LEADER_ROLES = frozenset({UserRole.TO_TRUONG, UserRole.NHOM_TRUONG, UserRole.GIAM_SAT})
NEW_INCIDENT_WINDOW_HOURS = 12

DRIVE_ID_PATTERN = re.compile(r"/(?:file/d/|open\?id=|id=)([\w-]+)")
DIRECT_VIEW_TEMPLATE = "https://lh3.googleusercontent.com/u/0/d/{file_id}=w{width}"
IMAGE_COLUMN_HINTS = ("ảnh", "link", "hình")


def is_leader(role: UserRole) -> bool:
    return role in LEADER_ROLES


def authenticate(users: Iterable[User], username: str, password: str) -> User | None:
    """Plaintext credential check, compared verbatim."""
    if not username:
        return None
    for user in users:
        if user.username == username and user.password == password:
            return user
    return None


def records_since(
    history: Iterable[HistoryRecord], now: datetime | None = None, hours: float = NEW_INCIDENT_WINDOW_HOURS
) -> list[HistoryRecord]:
    """Records strictly newer than ``now - hours``, order kept."""
    now = now or datetime.now().astimezone()
    threshold = now - timedelta(hours=hours)
    return [r for r in history if r.timestamp > threshold]


def recent_incidents(
    history: Iterable[HistoryRecord], now: datetime | None = None, hours: float = NEW_INCIDENT_WINDOW_HOURS
) -> list[HistoryRecord]:
    return [r for r in records_since(history, now=now, hours=hours) if r.is_incident]


def new_incident_count(
    history: Iterable[HistoryRecord], now: datetime | None = None, hours: float = NEW_INCIDENT_WINDOW_HOURS
) -> int:
    return len(recent_incidents(history, now=now, hours=hours))


def _matches_search(item: Equipment, needle: str) -> bool:
    haystack = (item.raw_id, item.id, item.room, item.area, item.department)
    return any(needle in (value or "").lower() for value in haystack)


def filter_equipment(
    items: Iterable[Equipment],
    type_: EquipmentType | None = None,
    status: MachineStatus | None = None,
    area: str | None = None,
    department: str | None = None,
    search: str = "",
) -> list[Equipment]:
    """Filter equipment; None means "all" for every criterion.

    ``search`` is a case-insensitive substring over the raw number, the full
    id, room, area and department.
    """
    needle = search.strip().lower()
    result = []
    for item in items:
        if type_ is not None and item.type is not type_:
            continue
        if status is not None and item.status is not status:
            continue
        if area is not None and item.area.strip() != area.strip():
            continue
        if department is not None and item.department.strip() != department.strip():
            continue
        if needle and not _matches_search(item, needle):
            continue
        result.append(item)
    return result


def _distinct(values: Iterable[str]) -> list[str]:
    cleaned = {v.strip() for v in values}
    cleaned.discard("")
    cleaned.discard(NOT_AVAILABLE)
    return sorted(cleaned)


def available_areas(items: Iterable[Equipment], type_: EquipmentType) -> list[str]:
    return _distinct(e.area for e in items if e.type is type_)


def available_departments(
    items: Iterable[Equipment], type_: EquipmentType, area: str | None = None
) -> list[str]:
    return _distinct(
        e.department
        for e in items
        if e.type is type_ and (area is None or e.area.strip() == area.strip())
    )


def area_for_department(items: Iterable[Equipment], type_: EquipmentType, department: str) -> str | None:
    """Area of the first machine in ``department``; used to sync the area filter."""
    for e in items:
        if e.type is type_ and e.department.strip() == department.strip():
            return e.area.strip()
    return None


def find_equipment(items: Iterable[Equipment], equipment_id: str) -> Equipment | None:
    """Exact lookup by namespaced id (``MNU-138``)."""
    for e in items:
        if e.id == equipment_id:
            return e
    return None


def direct_photo_url(url: str | None, width: int = 1600) -> str | None:
    """Rewrite a Drive share link into a direct image URL.

    Non-Drive ``http`` links pass through; anything else yields None.
    """
    if not url or not isinstance(url, str):
        return None
    match = DRIVE_ID_PATTERN.search(url)
    if match:
        return DIRECT_VIEW_TEMPLATE.format(file_id=match.group(1), width=width)
    return url if url.startswith("http") else None


def thumbnail_url(details: Mapping[str, str], width: int = 200) -> str | None:
    for key, value in details.items():
        name = key.lower()
        if any(h in name for h in IMAGE_COLUMN_HINTS) and value and str(value).startswith("http"):
            return direct_photo_url(str(value), width=width)
    return None
