"""Calendar のユニットテスト"""

import pytest
from datetime import datetime

from src.record_keeper.domain.calendar import Calendar
from src.record_keeper.domain.entity_store import EntityStore
from src.record_keeper.domain.models import Person, Schedule


def make_person(name, start_hour=None, end_hour=None, day=5):
    schedule = None
    if start_hour is not None:
        schedule = Schedule(
            start=datetime(2026, 1, day, start_hour, 0),
            end=datetime(2026, 1, day, end_hour, 0)
        )
    return Person(name=name, schedule=schedule)


class TestCalendar:
    """Calendar のテストケース"""

    @pytest.fixture
    def store(self):
        return EntityStore([make_person("Alice", 13, 14), make_person("Bob")])

    @pytest.fixture
    def calendar(self, store):
        return Calendar(store)

    def test_calendar_built_from_store(self, calendar):
        """初期化時に store を走査して予約を登録すること"""
        assert len(calendar) == 1
        assert calendar.has_appointment(make_person("Alice"))
        assert not calendar.has_appointment(make_person("Bob"))

    def test_add_appointment(self, store, calendar):
        """予約枠を持つ人物の追加で予約が登録されること"""
        carol = make_person("Carol", 9, 10)
        store.add_person(carol)

        calendar.add_appointment(carol)

        assert calendar.has_appointment(carol)
        assert calendar.get_appointment(carol).person_id == store.handle_of(carol)

    def test_add_person_without_schedule(self, store, calendar):
        """予約枠を持たない人物は予約が登録されないこと"""
        dave = make_person("Dave")
        store.add_person(dave)

        calendar.add_appointment(dave)

        assert not calendar.has_appointment(dave)
        assert len(calendar) == 1

    def test_delete_appointment(self, store, calendar):
        """人物の予約を削除できること"""
        alice = make_person("Alice")

        calendar.delete_appointment(alice)
        store.remove_person(alice)

        assert len(calendar) == 0
        assert calendar.get_appointment(alice) is None

    def test_set_appointment_replaces_old(self, store, calendar):
        """置換後の人物から予約が再導出されること"""
        old = store.get(store.handle_of(make_person("Alice")))
        edited = make_person("Alice", 15, 16)
        store.set_person(old, edited)

        calendar.set_appointment(old, edited)

        appointments = calendar.get_appointments()
        assert len(appointments) == 1
        assert appointments[0].start.hour == 15

    def test_set_appointment_removes_schedule(self, store, calendar):
        """予約枠を外した置換で予約が削除されること"""
        old = store.get(store.handle_of(make_person("Alice")))
        edited = make_person("Alice")
        store.set_person(old, edited)

        calendar.set_appointment(old, edited)

        assert not calendar.has_appointment(edited)

    def test_get_appointments_sorted_by_start(self, store, calendar):
        """予約は開始日時順で返されること"""
        carol = make_person("Carol", 9, 10)
        store.add_person(carol)
        calendar.add_appointment(carol)

        starts = [a.start.hour for a in calendar.get_appointments()]

        assert starts == [9, 13]

    def test_get_appointments_is_a_snapshot(self, store, calendar):
        """取得したスナップショットは以降の変更の影響を受けないこと"""
        snapshot = calendar.get_appointments()
        carol = make_person("Carol", 9, 10)
        store.add_person(carol)
        calendar.add_appointment(carol)

        assert isinstance(snapshot, tuple)
        assert len(snapshot) == 1
        assert len(calendar.get_appointments()) == 2

    def test_set_appointments_rebuilds_from_store(self, store, calendar):
        """store の一括置換後に再構築できること"""
        store.reset_data([make_person("Eve", 10, 11), make_person("Frank", 11, 12)])

        calendar.set_appointments()

        assert len(calendar) == 2
        assert not calendar.has_appointment(make_person("Alice"))
        assert calendar.has_appointment(make_person("Eve"))
