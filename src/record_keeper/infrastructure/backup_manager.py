"""
バックアップマネージャー

主ファイルの時点コピーをバックアップディレクトリに書き出し、
保持件数を超えた古いバックアップを削除します。
"""

import logging
import os
import shutil
import threading
from typing import Callable, List, Optional
from pathlib import Path
from datetime import datetime


class BackupWriteError(Exception):
    """
    バックアップ書き込み例外

    バックアップの作成・削除・リストア時の I/O エラーを表します。
    元の OSError は __cause__ に保持されます。
    """

    def __init__(
        self,
        message: str,
        path: Optional[Path] = None,
        label: Optional[str] = None,
    ):
        """
        Args:
            message: エラーメッセージ
            path: エラーが発生したファイルのパス
            label: 対象バックアップのラベル
        """
        super().__init__(message)
        self.path = path
        self.label = label


class BackupManager:
    """
    バックアップの作成と保持件数管理

    バックアップディレクトリはフラットなファイル群で、ディレクトリ一覧と
    更新時刻のみをインデックスとして扱います（マニフェストなし）。

    書き込みは隠し一時ファイルへ行ってからリネームするため、書き込み途中の
    ファイルが一覧・削除の対象になることはありません。
    """

    DEFAULT_BACKUP_DIR = Path("backups")
    TEMP_SUFFIX = ".tmp"

    def __init__(
        self,
        backup_dir: Optional[Path] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        BackupManager を初期化

        Args:
            backup_dir: バックアップ保存ディレクトリ。None の場合は "backups" を使用。
            clock: 現在時刻の取得関数（テスト用）
        """
        self.backup_dir = Path(backup_dir) if backup_dir else self.DEFAULT_BACKUP_DIR
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock or datetime.now
        self._lock = threading.RLock()
        self.logger = logging.getLogger(__name__)

    def timestamp(self) -> str:
        """
        辞書順でソート可能なタイムスタンプ

        Returns:
            str: yyyy-MM-dd_HH-mm-ss-SSS 形式（ミリ秒まで）
        """
        now = self._clock()
        return now.strftime("%Y-%m-%d_%H-%M-%S-") + f"{now.microsecond // 1000:03d}"

    def trigger_backup(self, source_path: Path, label: Optional[str] = None) -> Path:
        """
        source_path のコピーをバックアップとして書き出す

        Args:
            source_path: コピー元ファイル
            label: バックアップ名。None または空の場合はタイムスタンプを使用。

        Returns:
            Path: 作成したバックアップのパス

        Raises:
            BackupWriteError: コピー元が存在しない、または書き込みに失敗した場合

        Note:
            - ファイル名は "<ラベル><コピー元の拡張子>"（例: delete_Alice.json）。
              拡張子を除いた部分がラベル (delete_<名前>, manual-backup_<タイムスタンプ>,
              タイムスタンプ) と一致します
            - 同名のバックアップが既に存在する場合は上書きします
            - ファイル名として扱えないラベル（NUL 文字など）は BackupWriteError になります
        """
        source_path = Path(source_path)
        name = self._sanitize_label(label) if label and label.strip() else self.timestamp()
        target = self.backup_dir / f"{name}{source_path.suffix}"
        temp = self.backup_dir / f".{target.name}{self.TEMP_SUFFIX}"

        with self._lock:
            if not source_path.is_file():
                raise BackupWriteError(
                    f"Backup source not found: {source_path}", path=source_path, label=name
                )
            try:
                self.backup_dir.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source_path, temp)
                os.replace(temp, target)
            except (OSError, ValueError) as e:
                self._discard(temp)
                raise BackupWriteError(
                    f"Failed to write backup {target.name}: {e}", path=target, label=name
                ) from e

        self.logger.info(
            f"Backup written: {target.name}",
            extra={"label": name, "backup_path": str(target)}
        )
        return target

    def list_backups(self) -> List[Path]:
        """
        バックアップ一覧

        Returns:
            List[Path]: 更新時刻の新しい順（同時刻はファイル名の降順）
        """
        with self._lock:
            return self._list_backups()

    def clean_old_backups(self, max_backups: int) -> List[Path]:
        """
        新しい順に max_backups 件を残し、それ以外を削除

        Args:
            max_backups: 保持件数（0 の場合はすべて削除）

        Returns:
            List[Path]: 削除したバックアップのパス

        Raises:
            ValueError: max_backups が負の場合
            BackupWriteError: 一覧取得または削除に失敗した場合
        """
        if max_backups < 0:
            raise ValueError(f"max_backups must be non-negative: {max_backups}")

        # 一覧取得から削除までを同一ロック内で行う
        with self._lock:
            try:
                stale = self._list_backups()[max_backups:]
                for path in stale:
                    path.unlink(missing_ok=True)
            except OSError as e:
                raise BackupWriteError(f"Failed to clean old backups: {e}") from e

        self.logger.info(
            f"Cleaned old backups, keeping the latest {max_backups}",
            extra={"max_backups": max_backups, "deleted_count": len(stale)}
        )
        return stale

    def restore_backup(self, name: str, target_path: Path) -> Path:
        """
        バックアップを target_path に書き戻す

        Args:
            name: バックアップのファイル名または拡張子を除いた名前
            target_path: 書き戻し先（主ファイル）

        Returns:
            Path: 使用したバックアップのパス

        Raises:
            BackupWriteError: バックアップが存在しない、または書き込みに失敗した場合
        """
        target_path = Path(target_path)
        with self._lock:
            backup = self._find_backup(name)

            temp = target_path.parent / f".{target_path.name}{self.TEMP_SUFFIX}"
            try:
                target_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(backup, temp)
                os.replace(temp, target_path)
            except (OSError, ValueError) as e:
                self._discard(temp)
                raise BackupWriteError(
                    f"Failed to restore backup {backup.name}: {e}", path=backup, label=name
                ) from e

        self.logger.info(
            f"Backup restored: {backup.name}",
            extra={"label": name, "backup_path": str(backup)}
        )
        return backup

    def find_backup(self, name: str) -> Path:
        """
        名前からバックアップを検索

        Args:
            name: ファイル名または拡張子を除いた名前

        Raises:
            BackupWriteError: 該当するバックアップが存在しない場合
        """
        with self._lock:
            return self._find_backup(name)

    def _find_backup(self, name: str) -> Path:
        matches = [p for p in self._list_backups() if name in (p.name, p.stem)]
        if not matches:
            raise BackupWriteError(f"Backup not found: {name}", label=name)
        return matches[0]

    def _list_backups(self) -> List[Path]:
        if not self.backup_dir.exists():
            return []
        backups = [
            p for p in self.backup_dir.iterdir()
            if p.is_file() and not p.name.startswith(".")
        ]
        return sorted(
            backups,
            key=lambda p: (p.stat().st_mtime_ns, p.name),
            reverse=True
        )

    def _sanitize_label(self, label: str) -> str:
        """パス区切り文字を含むラベルをファイル名として安全な形に変換"""
        name = label.strip()
        for sep in {"/", "\\", os.sep}:
            name = name.replace(sep, "_")
        return name.lstrip(".") or self.timestamp()

    def _discard(self, temp: Path) -> None:
        try:
            temp.unlink(missing_ok=True)
        except (OSError, ValueError):
            self.logger.warning(f"Failed to remove temporary file: {temp}")
