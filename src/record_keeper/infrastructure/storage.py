"""
永続化コラボレーター

主ファイルのパス提供と保存・読み込みを担う Storage インターフェースと、
JSON ファイルによる参照実装を提供します。
"""

import json
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional
from pathlib import Path

from ..domain.models import Person


class UninitializedStorageError(Exception):
    """
    Storage 未設定例外

    Storage が設定されていない状態でバックアップ・リストア操作を行った場合に送出されます。
    """

    def __init__(self, operation: str):
        super().__init__(f"Storage is not initialized: cannot {operation}")
        self.operation = operation


class Storage(ABC):
    """
    主ファイル永続化の抽象インターフェース

    コア部分はこの狭い契約にのみ依存します。
    """

    @abstractmethod
    def get_primary_file_path(self) -> Path:
        """主ファイルのパスを返す"""
        pass

    @abstractmethod
    def save(self, persons: Iterable[Person], path: Optional[Path] = None) -> None:
        """
        人物コレクションを保存

        Args:
            persons: 保存する人物
            path: 保存先（None の場合は主ファイル）

        Raises:
            OSError: 書き込みに失敗した場合
        """
        pass

    @abstractmethod
    def load(self, path: Optional[Path] = None) -> List[Person]:
        """
        人物コレクションを読み込み

        Raises:
            OSError: 読み込みに失敗した場合
        """
        pass


class JsonStorage(Storage):
    """
    JSON ファイルによる Storage 実装

    人物の配列を JSON として保存します。
    """

    DEFAULT_FILE_PATH = Path("data") / "records.json"

    def __init__(self, file_path: Optional[Path] = None):
        """
        Args:
            file_path: 主ファイルのパス。None の場合は "data/records.json" を使用。
        """
        self.file_path = Path(file_path) if file_path else self.DEFAULT_FILE_PATH

    def get_primary_file_path(self) -> Path:
        return self.file_path

    def load(self, path: Optional[Path] = None) -> List[Person]:
        """
        Returns:
            List[Person]: 保存済みの人物（ファイルが存在しない場合は空リスト）

        Raises:
            json.JSONDecodeError: JSON パースに失敗した場合
            ValueError: JSON が人物オブジェクトの配列でない場合
        """
        source = Path(path) if path else self.file_path
        if not source.exists():
            return []

        with open(source, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise ValueError(f"Expected a JSON array of person objects: {source}")
        return [Person(**item) for item in data]

    def save(self, persons: Iterable[Person], path: Optional[Path] = None) -> None:
        """
        Note:
            - ensure_ascii=False で非 ASCII 文字をそのまま保存
            - 親ディレクトリは自動作成
        """
        target = Path(path) if path else self.file_path
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json_data = [person.model_dump(mode="json") for person in persons]
            json.dump(json_data, f, ensure_ascii=False, indent=2)
