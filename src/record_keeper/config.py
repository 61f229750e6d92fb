"""
設定

ModelManager の挙動（バックアップ方針・保持件数・既定の営業時間）を定義します。
環境変数からの読み込みにも対応します。
"""

import os
from enum import Enum
from typing import ClassVar, Mapping, Optional
from pathlib import Path
from datetime import time
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.operating_hours import DEFAULT_CLOSING_TIME, DEFAULT_OPENING_TIME


class BackupPolicy(str, Enum):
    """自動バックアップの発火方針"""
    NONE = "none"
    ON_DELETE = "on_delete"
    ON_EVERY_MUTATION = "on_every_mutation"


class ModelManagerConfig(BaseModel):
    """
    ModelManager 設定

    Attributes:
        backup_dir: バックアップ保存ディレクトリ
        backup_policy: 自動バックアップの発火方針
        max_backups: 自動バックアップ後に保持する件数（None の場合は削除しない）
        opening_time: 既定の開店時刻
        closing_time: 既定の閉店時刻
    """

    backup_dir: Path = Field(default=Path("backups"), description="バックアップ保存ディレクトリ")
    backup_policy: BackupPolicy = Field(default=BackupPolicy.ON_DELETE, description="自動バックアップ方針")
    max_backups: Optional[int] = Field(default=None, description="保持件数")
    opening_time: time = Field(default=DEFAULT_OPENING_TIME, description="既定の開店時刻")
    closing_time: time = Field(default=DEFAULT_CLOSING_TIME, description="既定の閉店時刻")

    ENV_PREFIX: ClassVar[str] = "RECORD_KEEPER_"

    @field_validator("max_backups")
    @classmethod
    def validate_max_backups(cls, v: Optional[int]) -> Optional[int]:
        """
        保持件数の負値チェック

        Raises:
            ValueError: 負の値が渡された場合
        """
        if v is not None and v < 0:
            raise ValueError(f"max_backups は負の値にできません: {v}")
        return v

    @model_validator(mode="after")
    def validate_operating_hours(self) -> "ModelManagerConfig":
        if self.opening_time >= self.closing_time:
            raise ValueError(
                f"開店時刻は閉店時刻より前である必要があります: {self.opening_time} >= {self.closing_time}"
            )
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ModelManagerConfig":
        """
        環境変数から設定を読み込み

        RECORD_KEEPER_BACKUP_DIR, RECORD_KEEPER_BACKUP_POLICY, RECORD_KEEPER_MAX_BACKUPS,
        RECORD_KEEPER_OPENING_TIME, RECORD_KEEPER_CLOSING_TIME を参照します。
        未設定・空文字の項目は既定値を使用します。

        Raises:
            ValidationError: 値が不正な場合
        """
        environ = os.environ if environ is None else environ
        fields = {
            "backup_dir": "BACKUP_DIR",
            "backup_policy": "BACKUP_POLICY",
            "max_backups": "MAX_BACKUPS",
            "opening_time": "OPENING_TIME",
            "closing_time": "CLOSING_TIME",
        }
        values = {}
        for field_name, suffix in fields.items():
            raw = environ.get(cls.ENV_PREFIX + suffix, "").strip()
            if raw:
                values[field_name] = raw

        return cls(**values)
