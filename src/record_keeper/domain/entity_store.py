"""
人物コレクション

同値述語によって重複を排除する、人物レコードのインメモリコレクションです。
"""

from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from .models import Person


class DuplicateEntityError(Exception):
    """
    重複エンティティ例外

    同値な人物が既に登録されている場合に送出されます。
    """

    def __init__(self, person: Person):
        super().__init__(f"Person already exists: {person.name}")
        self.person = person


class PersonNotFoundError(Exception):
    """対象の人物が登録されていない場合に送出されます。"""

    def __init__(self, person: Person):
        super().__init__(f"Person not found: {person.name}")
        self.person = person


SamePersonPredicate = Callable[[Person, Person], bool]


class EntityStore:
    """
    重複チェック付き人物コレクション

    各人物には登録時に整数ハンドルを払い出します。ハンドルは置換 (set_person) 後も
    維持され、削除後は再利用されません。Calendar はこのハンドルで人物を参照します。
    """

    def __init__(
        self,
        persons: Iterable[Person] = (),
        same_person: SamePersonPredicate = Person.is_same_person
    ):
        """
        Args:
            persons: 初期データ
            same_person: 同値述語（既定は名前の一致）

        Raises:
            DuplicateEntityError: 初期データに同値な人物が含まれる場合
        """
        self._same_person = same_person
        self._persons: Dict[int, Person] = {}
        self._next_handle = 0
        self.reset_data(persons)

    def __len__(self) -> int:
        return len(self._persons)

    def __iter__(self) -> Iterator[Person]:
        return iter(list(self._persons.values()))

    @property
    def same_person(self) -> SamePersonPredicate:
        """同値述語"""
        return self._same_person

    def has_person(self, person: Person) -> bool:
        """同値な人物が存在すれば True"""
        return self.handle_of(person) is not None

    def handle_of(self, person: Person) -> Optional[int]:
        """同値な人物のハンドルを返す（存在しない場合は None）"""
        for handle, stored in self._persons.items():
            if self._same_person(stored, person):
                return handle
        return None

    def get(self, handle: int) -> Person:
        """
        ハンドルから人物を取得

        Raises:
            KeyError: ハンドルが無効な場合
        """
        return self._persons[handle]

    def items(self) -> List[Tuple[int, Person]]:
        """(ハンドル, 人物) のリスト（登録順）"""
        return list(self._persons.items())

    def persons(self) -> List[Person]:
        return list(self._persons.values())

    def add_person(self, person: Person) -> int:
        """
        人物を追加

        Returns:
            int: 払い出したハンドル

        Raises:
            DuplicateEntityError: 同値な人物が既に存在する場合
        """
        if self.has_person(person):
            raise DuplicateEntityError(person)
        handle = self._next_handle
        self._next_handle += 1
        self._persons[handle] = person
        return handle

    def remove_person(self, person: Person) -> int:
        """
        人物を削除

        Returns:
            int: 削除した人物のハンドル

        Raises:
            PersonNotFoundError: 人物が存在しない場合
        """
        handle = self.handle_of(person)
        if handle is None:
            raise PersonNotFoundError(person)
        del self._persons[handle]
        return handle

    def set_person(self, target: Person, edited: Person) -> int:
        """
        target を edited で置換（ハンドルは維持）

        Raises:
            PersonNotFoundError: target が存在しない場合
            DuplicateEntityError: edited が target 以外の人物と同値な場合
        """
        handle = self.handle_of(target)
        if handle is None:
            raise PersonNotFoundError(target)
        for other_handle, stored in self._persons.items():
            if other_handle != handle and self._same_person(stored, edited):
                raise DuplicateEntityError(edited)
        self._persons[handle] = edited
        return handle

    def reset_data(self, persons: Iterable[Person]) -> None:
        """
        コレクション全体を置換

        重複が含まれる場合は例外を送出し、既存データは変更しません。
        """
        persons = list(persons)
        for i, person in enumerate(persons):
            for other in persons[:i]:
                if self._same_person(other, person):
                    raise DuplicateEntityError(person)
        start = self._next_handle
        self._persons = {start + i: person for i, person in enumerate(persons)}
        self._next_handle = start + len(persons)
