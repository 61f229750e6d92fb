"""EntityStore のユニットテスト"""

import pytest

from src.record_keeper.domain.entity_store import (
    EntityStore,
    DuplicateEntityError,
    PersonNotFoundError,
)
from src.record_keeper.domain.models import Person


class TestEntityStore:
    """EntityStore のテストケース"""

    @pytest.fixture
    def store(self):
        return EntityStore([Person(name="Alice"), Person(name="Bob")])

    def test_initial_persons_are_present(self, store):
        """初期データが登録されていること"""
        assert len(store) == 2
        assert store.has_person(Person(name="Alice"))
        assert store.has_person(Person(name="bob"))

    def test_initial_duplicates_raise_error(self):
        """初期データに重複があればエラー"""
        with pytest.raises(DuplicateEntityError):
            EntityStore([Person(name="Alice"), Person(name="ALICE")])

    def test_add_person(self, store):
        """人物を追加するとハンドルが払い出されること"""
        handle = store.add_person(Person(name="Carol"))

        assert store.has_person(Person(name="Carol"))
        assert store.get(handle).name == "Carol"

    def test_add_duplicate_person_raises_error(self, store):
        """同値な人物の追加はエラーで、状態は変わらないこと"""
        with pytest.raises(DuplicateEntityError) as exc_info:
            store.add_person(Person(name="alice", phone="999"))

        assert exc_info.value.person.name == "alice"
        assert len(store) == 2
        assert store.persons()[0].phone is None

    def test_remove_person(self, store):
        """人物を削除できること"""
        handle = store.handle_of(Person(name="Alice"))

        removed = store.remove_person(Person(name="Alice"))

        assert removed == handle
        assert not store.has_person(Person(name="Alice"))
        assert handle not in dict(store.items())

    def test_remove_missing_person_raises_error(self, store):
        """存在しない人物の削除はエラー"""
        with pytest.raises(PersonNotFoundError):
            store.remove_person(Person(name="Zed"))

    def test_set_person_keeps_handle(self, store):
        """置換後もハンドルが維持されること"""
        handle = store.handle_of(Person(name="Alice"))

        store.set_person(Person(name="Alice"), Person(name="Alicia"))

        assert store.handle_of(Person(name="Alicia")) == handle
        assert not store.has_person(Person(name="Alice"))

    def test_set_person_to_same_identity(self, store):
        """同一人物の属性変更は許可されること"""
        store.set_person(Person(name="Alice"), Person(name="Alice", phone="123"))

        assert store.get(store.handle_of(Person(name="Alice"))).phone == "123"

    def test_set_person_to_other_identity_raises_error(self, store):
        """他の人物と同値になる置換はエラー"""
        with pytest.raises(DuplicateEntityError):
            store.set_person(Person(name="Alice"), Person(name="Bob"))

        assert store.has_person(Person(name="Alice"))

    def test_set_missing_person_raises_error(self, store):
        with pytest.raises(PersonNotFoundError):
            store.set_person(Person(name="Zed"), Person(name="Zoe"))

    def test_handles_are_not_reused(self, store):
        """削除されたハンドルが再利用されないこと"""
        old_handle = store.remove_person(Person(name="Bob"))

        new_handle = store.add_person(Person(name="Bob"))

        assert new_handle != old_handle

    def test_custom_equivalence_predicate(self):
        """呼び出し側が指定した同値述語で重複判定されること"""
        store = EntityStore(same_person=lambda a, b: a.phone == b.phone)
        store.add_person(Person(name="Alice", phone="111"))

        with pytest.raises(DuplicateEntityError):
            store.add_person(Person(name="Bob", phone="111"))

        assert store.has_person(Person(name="Anyone", phone="111"))

    def test_reset_data_with_duplicates_keeps_state(self, store):
        """重複を含む置換はエラーで、既存データは変更しないこと"""
        with pytest.raises(DuplicateEntityError):
            store.reset_data([Person(name="Carol"), Person(name="carol")])

        assert len(store) == 2
        assert store.has_person(Person(name="Alice"))

    def test_iteration_returns_copy(self, store):
        """反復中に変更しても影響を受けないこと"""
        for person in store:
            store.remove_person(person)

        assert len(store) == 0
