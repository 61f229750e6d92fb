"""
予約カレンダー

EntityStore から派生する、人物と予約の 1:1 インデックスです。
"""

from typing import Dict, Optional, Tuple

from .entity_store import EntityStore
from .models import Appointment, Person


class Calendar:
    """
    人物ハンドル → 予約 のマッピング

    エントリは EntityStore の変更と同期してのみ追加・削除されます。
    キーは常に EntityStore 上に存在するハンドルです。
    """

    def __init__(self, store: EntityStore):
        """
        Calendar を初期化し、store を走査してインデックスを構築

        Args:
            store: 参照元の人物コレクション
        """
        self._store = store
        self._appointments: Dict[int, Appointment] = {}
        self.set_appointments()

    def __len__(self) -> int:
        return len(self._appointments)

    def set_appointments(self) -> None:
        """store 全体からインデックスを再構築"""
        self._appointments = {
            handle: Appointment.from_schedule(handle, person.schedule)
            for handle, person in self._store.items()
            if person.schedule is not None
        }

    def add_appointment(self, person: Person) -> None:
        """
        追加済みの人物の予約を登録

        Preconditions: person は store に登録済み
        """
        handle = self._store.handle_of(person)
        if handle is None or person.schedule is None:
            return
        self._appointments[handle] = Appointment.from_schedule(handle, person.schedule)

    def delete_appointment(self, person: Person) -> None:
        """
        人物の予約を削除

        Preconditions: person は store からまだ削除されていない
        """
        handle = self._store.handle_of(person)
        if handle is not None:
            self._appointments.pop(handle, None)

    def set_appointment(self, target: Person, edited: Person) -> None:
        """
        置換後の人物から予約を再導出（旧予約は破棄）

        Preconditions: store 上で target は edited に置換済み
        """
        handle = self._store.handle_of(edited)
        if handle is None:
            return
        self._appointments.pop(handle, None)
        if edited.schedule is not None:
            self._appointments[handle] = Appointment.from_schedule(handle, edited.schedule)

    def has_appointment(self, person: Person) -> bool:
        handle = self._store.handle_of(person)
        return handle is not None and handle in self._appointments

    def get_appointment(self, person: Person) -> Optional[Appointment]:
        handle = self._store.handle_of(person)
        if handle is None:
            return None
        return self._appointments.get(handle)

    def get_appointments(self) -> Tuple[Appointment, ...]:
        """
        現在の予約のスナップショット

        Returns:
            Tuple[Appointment, ...]: 開始日時順（同時刻はハンドル順）の不変シーケンス
        """
        return tuple(
            sorted(self._appointments.values(), key=lambda a: (a.start, a.person_id))
        )
