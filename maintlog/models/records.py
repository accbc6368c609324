from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

"""Domain records for the maintenance log.

Every record here is a value object rebuilt from the spreadsheet on each
fetch. Enum values carry the Vietnamese labels used in the sheets and in the
write payload, so ``EquipmentType.ML.value`` is what lands in ``Loại máy``.
"""

__all__ = [
    "RawRow",
    "EquipmentType",
    "MachineStatus",
    "RecordType",
    "UserRole",
    "EquipmentKey",
    "Equipment",
    "HistoryRecord",
    "User",
    "AppData",
]

RawRow = dict[str, str]

NOT_AVAILABLE = "N/A"


class EquipmentType(Enum):
    """Equipment categories; one spreadsheet tab each."""
    ML = "Máy Lạnh"
    MNU = "Máy Nước Uống"
    TL = "Tủ Lạnh"

    @property
    def code(self) -> str:
        """Short typeCode used as sheet name and identifier namespace."""
        return self.name

    @classmethod
    def from_code(cls, code: str) -> EquipmentType:
        try:
            return cls[code.strip().upper()]
        except KeyError as e:
            raise ValueError(f"unknown equipment type code: {code!r}") from e


class MachineStatus(Enum):
    NORMAL = "Bình thường"
    WARNING = "Cần chú ý"
    BROKEN = "Hỏng"


class RecordType(Enum):
    CHECK = "Kiểm tra"
    INCIDENT = "Sự cố"


class UserRole(Enum):
    TO_TRUONG = "Tổ trưởng"
    NHOM_TRUONG = "Nhóm trưởng"
    GIAM_SAT = "Giám sát"
    NHAN_VIEN = "Nhân viên"

    @classmethod
    def from_label(cls, label: str) -> UserRole | None:
        """Match either the sheet label (``Tổ trưởng``) or the member name."""
        text = label.strip()
        for role in cls:
            if text == role.value or text.upper() == role.name:
                return role
        return None


@dataclass(frozen=True, order=True)
class EquipmentKey:
    """Composite identity of a machine: category + raw spreadsheet number.

    Two sheets may reuse the same machine number; the type tag keeps them
    apart (``ML-1`` vs ``TL-1``).
    """
    type_code: str
    raw: str

    def __post_init__(self) -> None:
        if self.type_code not in EquipmentType.__members__:
            raise ValueError(f"unknown equipment type code: {self.type_code!r}")

    @property
    def type(self) -> EquipmentType:
        return EquipmentType[self.type_code]

    @classmethod
    def of(cls, type_: EquipmentType, raw: str) -> EquipmentKey:
        return cls(type_code=type_.code, raw=raw)

    @classmethod
    def parse(cls, text: str) -> EquipmentKey:
        """Parse ``"MNU-138"`` back into a key.

        Only the first ``-`` separates the namespace; raw identifiers such as
        ``DC42818/19-0009`` keep their own dashes.
        """
        prefix, sep, raw = text.strip().partition("-")
        if not sep or prefix.upper() not in EquipmentType.__members__:
            raise ValueError(f"not a namespaced equipment id: {text!r}")
        return cls(type_code=prefix.upper(), raw=raw)

    def __str__(self) -> str:
        return f"{self.type_code}-{self.raw}"


@dataclass(frozen=True)
class Equipment:
    key: EquipmentKey
    area: str = NOT_AVAILABLE
    department: str = NOT_AVAILABLE
    room: str = NOT_AVAILABLE
    brand: str = NOT_AVAILABLE
    model: str = NOT_AVAILABLE
    status: MachineStatus = MachineStatus.NORMAL
    details: RawRow = field(default_factory=dict)

    @property
    def id(self) -> str:
        return str(self.key)

    @property
    def type(self) -> EquipmentType:
        return self.key.type

    @property
    def raw_id(self) -> str:
        return self.key.raw


@dataclass(frozen=True)
class HistoryRecord:
    """One row of the activity log sheet.

    ``machine_id`` is the raw number without the type namespace; it does not
    equal ``Equipment.id``.
    """
    id: str
    machine_id: str
    type: RecordType
    timestamp: datetime
    status: str
    notes: str = ""
    performer: str = ""
    photo_url: str | None = None
    details: RawRow = field(default_factory=dict)

    @property
    def is_incident(self) -> bool:
        return self.type is RecordType.INCIDENT


@dataclass(frozen=True)
class User:
    username: str
    password: str
    full_name: str
    role: UserRole
    department: str = NOT_AVAILABLE

    @property
    def id(self) -> str:
        return self.username


@dataclass(frozen=True)
class AppData:
    """Unified dataset assembled from all sheets in one read."""
    equipments: list[Equipment] = field(default_factory=list)
    users: list[User] = field(default_factory=list)
    history: list[HistoryRecord] = field(default_factory=list)

    @classmethod
    def empty(cls) -> AppData:
        return cls()

    def is_empty(self) -> bool:
        return not (self.equipments or self.users or self.history)
