"""
ドメイン層

人物コレクション・予約カレンダー・営業時間の検証ロジックを提供します。
"""

from .models import Schedule, Person, Appointment
from .entity_store import EntityStore, DuplicateEntityError, PersonNotFoundError
from .calendar import Calendar
from .operating_hours import OperatingHours

__all__ = [
    "Schedule",
    "Person",
    "Appointment",
    "EntityStore",
    "DuplicateEntityError",
    "PersonNotFoundError",
    "Calendar",
    "OperatingHours",
]
