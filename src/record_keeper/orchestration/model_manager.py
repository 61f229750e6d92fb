"""モデル管理サービス"""

from typing import Callable, Iterable, List, Optional
from pathlib import Path
from datetime import time
import logging
from pydantic import ValidationError

from ..config import BackupPolicy, ModelManagerConfig
from ..domain.calendar import Calendar
from ..domain.entity_store import (
    DuplicateEntityError,
    EntityStore,
    PersonNotFoundError,
    SamePersonPredicate,
)
from ..domain.models import Appointment, Person
from ..domain.operating_hours import OperatingHours
from ..infrastructure.backup_manager import BackupManager, BackupWriteError
from ..infrastructure.storage import Storage, UninitializedStorageError


PersonPredicate = Callable[[Person], bool]


def show_all_persons(person: Person) -> bool:
    """全件表示用の述語"""
    return True


class ModelManager:
    """
    インメモリモデル全体のオーケストレーション

    Responsibilities:
    - 人物の追加・削除・置換と、予約カレンダーの同期
    - 営業時間の検証付き置換
    - 変更操作に伴う自動バックアップと手動バックアップ・リストア

    自動バックアップの失敗はログ記録のみで、変更操作自体は巻き戻しません。
    """

    def __init__(
        self,
        persons: Iterable[Person] = (),
        storage: Optional[Storage] = None,
        config: Optional[ModelManagerConfig] = None,
        backup_manager: Optional[BackupManager] = None,
        same_person: SamePersonPredicate = Person.is_same_person
    ):
        """
        ModelManager を初期化

        Args:
            persons: 初期データ
            storage: 永続化コラボレーター（None の場合はバックアップ不可）
            config: 設定（None の場合は既定値）
            backup_manager: バックアップマネージャー。None かつ storage がある場合は
                            config.backup_dir を使用して生成。
            same_person: 人物の同値述語
        """
        self.config = config or ModelManagerConfig()
        self.storage = storage
        if backup_manager is None and storage is not None:
            backup_manager = BackupManager(self.config.backup_dir)
        self.backup_manager = backup_manager
        self.store = EntityStore(persons, same_person)
        self.calendar = Calendar(self.store)
        self._operating_hours = OperatingHours(
            opening=self.config.opening_time,
            closing=self.config.closing_time
        )
        self._filter_predicate: PersonPredicate = show_all_persons
        self.logger = logging.getLogger(__name__)

    # ---- 人物コレクション ----

    def has_person(self, person: Person) -> bool:
        return self.store.has_person(person)

    def get_person_list(self) -> List[Person]:
        return self.store.persons()

    def reset_data(self, persons: Iterable[Person]) -> None:
        """
        コレクション全体を置換し、カレンダーを再構築

        Raises:
            DuplicateEntityError: persons に同値な人物が含まれる場合（状態は変更しない）
        """
        self.store.reset_data(persons)
        self.calendar.set_appointments()

    def add_person(self, person: Person) -> None:
        """
        人物を追加

        Raises:
            DuplicateEntityError: 同値な人物が既に存在する場合（状態は変更しない）
        """
        self.store.add_person(person)
        self.calendar.add_appointment(person)
        self.update_filtered_person_list(show_all_persons)
        if self.config.backup_policy == BackupPolicy.ON_EVERY_MUTATION:
            self._auto_backup(None)

    def delete_person(self, target: Person) -> None:
        """
        人物を削除

        削除前に "delete_<表示名>" のバックアップを作成します（方針が none 以外の場合）。
        カレンダーのエントリを先に削除し、その後 store から削除します。

        Raises:
            PersonNotFoundError: target が存在しない場合
        """
        if not self.store.has_person(target):
            raise PersonNotFoundError(target)
        if self.config.backup_policy != BackupPolicy.NONE:
            self._auto_backup(f"delete_{target.name}")
        self.calendar.delete_appointment(target)
        self.store.remove_person(target)

    def set_person(self, target: Person, edited: Person) -> None:
        """
        target を edited で置換し、予約を再導出

        Raises:
            PersonNotFoundError: target が存在しない場合
            DuplicateEntityError: edited が他の人物と同値な場合
        """
        self.store.set_person(target, edited)
        self.calendar.set_appointment(target, edited)
        if self.config.backup_policy == BackupPolicy.ON_EVERY_MUTATION:
            self._auto_backup(None)

    # ---- 絞り込み表示 ----

    def list_persons(self, predicate: Optional[PersonPredicate] = None) -> List[Person]:
        """
        述語に一致する人物のスナップショット

        Returns:
            List[Person]: 呼び出し時点で再計算した一覧
        """
        return [p for p in self.store if predicate is None or predicate(p)]

    def update_filtered_person_list(self, predicate: PersonPredicate) -> None:
        self._filter_predicate = predicate

    def get_filtered_person_list(self) -> List[Person]:
        return self.list_persons(self._filter_predicate)

    # ---- カレンダー・営業時間 ----

    def get_calendar(self) -> Calendar:
        return self.calendar

    def has_appointment(self, person: Person) -> bool:
        return self.calendar.has_appointment(person)

    def get_operating_hours(self) -> OperatingHours:
        return self._operating_hours

    def set_operating_hours(self, opening: time, closing: time) -> bool:
        """
        営業時間を検証付きで置換

        Returns:
            bool: 置換した場合 True。opening >= closing、または既存の予約が
                  新しい営業時間外になる場合は False（状態は変更しない）
        """
        try:
            candidate = OperatingHours(opening=opening, closing=closing)
        except ValidationError:
            self.logger.warning(f"Rejected malformed operating hours: {opening}-{closing}")
            return False

        if not candidate.is_calendar_valid(self.calendar.get_appointments()):
            self.logger.warning(
                f"Rejected operating hours {candidate}: existing appointments fall outside"
            )
            return False

        self._operating_hours = candidate
        self.logger.info(f"Operating hours set to {candidate}")
        return True

    def appointment_within_operating_hours(self, appointment: Appointment) -> bool:
        return self._operating_hours.is_within_operating_hours(appointment)

    # ---- バックアップ・リストア ----

    def get_storage(self) -> Optional[Storage]:
        return self.storage

    def backup_data(self, label: Optional[str] = None) -> Path:
        """
        手動バックアップを作成

        Args:
            label: バックアップ名。空の場合は "manual-backup_<タイムスタンプ>"

        Returns:
            Path: 作成したバックアップのパス

        Raises:
            UninitializedStorageError: storage が未設定の場合
            BackupWriteError: 保存またはコピーに失敗した場合
        """
        self._require_storage("create manual backup")
        if not label or not label.strip():
            label = f"manual-backup_{self.backup_manager.timestamp()}"

        try:
            path = self._write_snapshot(label)
        except BackupWriteError as e:
            self.logger.error(f"Manual backup failed: {str(e)}", exc_info=True)
            raise

        self.logger.info(f"Manual backup created: {path.name}", extra={"label": label})
        return path

    def list_backups(self) -> List[Path]:
        """
        Raises:
            UninitializedStorageError: storage が未設定の場合
        """
        self._require_storage("list backups")
        return self.backup_manager.list_backups()

    def clean_old_backups(self, max_backups: int) -> List[Path]:
        """
        最新 max_backups 件を残して古いバックアップを削除

        Raises:
            UninitializedStorageError: storage が未設定の場合
            ValueError: max_backups が負の場合
            BackupWriteError: 削除に失敗した場合
        """
        self._require_storage("clean old backups")
        self.logger.info(f"Cleaning old backups, keeping the latest {max_backups} backups.")
        return self.backup_manager.clean_old_backups(max_backups)

    def restore_data(self, name: str) -> Path:
        """
        バックアップから主ファイルとインメモリ状態を復元

        バックアップの内容を読み込めることを確認してから主ファイルを置き換えます。

        Returns:
            Path: 使用したバックアップのパス

        Raises:
            UninitializedStorageError: storage が未設定の場合
            BackupWriteError: バックアップが存在しない・読み込めない・書き戻せない場合
        """
        self._require_storage("restore backup")
        backup = self.backup_manager.find_backup(name)

        try:
            persons = self.storage.load(backup)
            candidate = EntityStore(persons, self.store.same_person)
        except (OSError, ValueError, TypeError, DuplicateEntityError) as e:
            self.logger.error(f"Backup is unreadable: {backup.name}", exc_info=True)
            raise BackupWriteError(
                f"Backup is unreadable: {backup.name}: {e}", path=backup, label=name
            ) from e

        self.backup_manager.restore_backup(backup.name, self.storage.get_primary_file_path())
        self.reset_data(candidate.persons())
        self.logger.info(f"Restored {len(candidate)} persons from {backup.name}")
        return backup

    def _require_storage(self, operation: str) -> None:
        if self.storage is None or self.backup_manager is None:
            raise UninitializedStorageError(operation)

    def _write_snapshot(self, label: Optional[str]) -> Path:
        """
        現在の状態を主ファイルに保存し、そのコピーをバックアップとして書き出す

        Raises:
            BackupWriteError: 保存またはコピーに失敗した場合
        """
        primary_path = self.storage.get_primary_file_path()
        try:
            self.storage.save(self.store.persons(), primary_path)
        except OSError as e:
            raise BackupWriteError(
                f"Failed to save current state: {e}", path=primary_path, label=label
            ) from e
        return self.backup_manager.trigger_backup(primary_path, label)

    def _auto_backup(self, label: Optional[str]) -> Optional[Path]:
        """
        自動バックアップ（best-effort）

        失敗時はログ記録のみで None を返します。
        """
        try:
            self._require_storage("create automatic backup")
            path = self._write_snapshot(label)
            if self.config.max_backups is not None:
                self.backup_manager.clean_old_backups(self.config.max_backups)
        except (UninitializedStorageError, BackupWriteError) as e:
            self.logger.warning(f"Automatic backup failed: {str(e)}", extra={"label": label})
            return None

        self.logger.info(f"Automatic backup created: {path.name}", extra={"label": label})
        return path
