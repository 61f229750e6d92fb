"""
インフラストラクチャ層

主ファイルの永続化コラボレーターとバックアップ管理を提供します。
"""

from .storage import Storage, JsonStorage, UninitializedStorageError
from .backup_manager import BackupManager, BackupWriteError

__all__ = [
    "Storage",
    "JsonStorage",
    "UninitializedStorageError",
    "BackupManager",
    "BackupWriteError",
]
