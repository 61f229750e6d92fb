"""
データモデル定義

このモジュールは record_keeper のドメイン層のデータモデルを定義します:
- Schedule: 人物が保持する予約枠（開始・終了日時）
- Person: 管理対象の人物レコード
- Appointment: カレンダー上の予約（EntityStore のハンドルで人物を参照）
"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Schedule(BaseModel):
    """
    人物に紐づく予約枠

    開始日時が終了日時より前であることを保証します。
    """

    model_config = ConfigDict(frozen=True)

    start: datetime = Field(..., description="開始日時")
    end: datetime = Field(..., description="終了日時")

    @model_validator(mode="after")
    def validate_interval(self) -> "Schedule":
        if self.start >= self.end:
            raise ValueError(
                f"開始日時は終了日時より前である必要があります: {self.start} >= {self.end}"
            )
        return self


class Person(BaseModel):
    """
    管理対象の人物レコード

    同一性は物理的な同一性ではなく、同値述語 (is_same_person) で判定します。
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="表示名")
    phone: Optional[str] = Field(default=None, description="電話番号")
    email: Optional[str] = Field(default=None, description="メールアドレス")
    tags: List[str] = Field(default_factory=list, description="タグ一覧")
    schedule: Optional[Schedule] = Field(default=None, description="予約枠")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """
        表示名の空文字チェック

        Raises:
            ValueError: 空白のみの名前が渡された場合
        """
        v = v.strip()
        if not v:
            raise ValueError("名前は空にできません")
        return v

    @property
    def has_schedule(self) -> bool:
        """予約枠を保持しているか"""
        return self.schedule is not None

    def is_same_person(self, other: "Person") -> bool:
        """
        既定の同値述語

        名前の大文字・小文字を区別せずに比較します。
        """
        return other is not None and self.name.casefold() == other.name.casefold()


class Appointment(BaseModel):
    """
    カレンダー上の予約

    person_id は EntityStore が払い出したハンドルで、Person への弱参照として機能します。
    """

    model_config = ConfigDict(frozen=True)

    person_id: int = Field(..., description="EntityStore 上の人物ハンドル")
    start: datetime = Field(..., description="開始日時")
    end: datetime = Field(..., description="終了日時")

    @model_validator(mode="after")
    def validate_interval(self) -> "Appointment":
        if self.start >= self.end:
            raise ValueError(
                f"開始日時は終了日時より前である必要があります: {self.start} >= {self.end}"
            )
        return self

    @classmethod
    def from_schedule(cls, person_id: int, schedule: Schedule) -> "Appointment":
        return cls(person_id=person_id, start=schedule.start, end=schedule.end)
