"""
営業時間

予約が許容される時間帯を表す不変値と、その検証ロジックを提供します。
"""

from typing import Iterable
from datetime import time
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .models import Appointment


DEFAULT_OPENING_TIME = time(9, 0)
DEFAULT_CLOSING_TIME = time(18, 0)


class OperatingHours(BaseModel):
    """
    営業時間（不変値）

    opening < closing を構築時に保証します。変更は新しいインスタンスへの
    置き換えでのみ行います。
    """

    model_config = ConfigDict(frozen=True)

    opening: time = Field(default=DEFAULT_OPENING_TIME, description="開店時刻")
    closing: time = Field(default=DEFAULT_CLOSING_TIME, description="閉店時刻")

    @model_validator(mode="after")
    def validate_window(self) -> "OperatingHours":
        """
        時間帯の妥当性チェック

        Raises:
            ValueError: opening >= closing の場合
        """
        if self.opening >= self.closing:
            raise ValueError(
                f"開店時刻は閉店時刻より前である必要があります: {self.opening} >= {self.closing}"
            )
        return self

    def is_within_operating_hours(self, appointment: Appointment) -> bool:
        """
        予約が営業時間内に収まるか

        日をまたぐ予約は常に営業時間外として扱います。
        """
        if appointment.start.date() != appointment.end.date():
            return False
        return (
            self.opening <= appointment.start.time()
            and appointment.end.time() <= self.closing
        )

    def is_calendar_valid(self, appointments: Iterable[Appointment]) -> bool:
        """全予約が営業時間内に収まれば True（空の場合も True）"""
        return all(self.is_within_operating_hours(a) for a in appointments)

    def __str__(self) -> str:
        return f"{self.opening:%H:%M}-{self.closing:%H:%M}"
