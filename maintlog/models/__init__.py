"""Domain models for the maintenance log.

Records are value objects rebuilt from the spreadsheet on every read; the
config models describe endpoints and the column alias tables.
"""

from .config_models import AppConfig, FieldAliases
from .error_record import ErrorRecord
from .load_result import LoadSummary
from .records import (
    AppData,
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

__all__ = [
    # Configuration models
    "AppConfig",
    "FieldAliases",
    # Records
    "AppData",
    "Equipment",
    "EquipmentKey",
    "EquipmentType",
    "HistoryRecord",
    "MachineStatus",
    "RawRow",
    "RecordType",
    "User",
    "UserRole",
    # Reporting
    "ErrorRecord",
    "LoadSummary",
]
