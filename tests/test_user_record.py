"""Tests for the UserRecord model."""

from dataclasses import FrozenInstanceError, replace

import pytest

from mastermaint.models.constants import DEFAULT_NEW_AGE, Gender
from mastermaint.models.user_record import UserRecord, sort_by_id


class TestUserRecord:
    """Tests for UserRecord construction and flags."""

    def test_frozen(self):
        """Records cannot be changed in place."""
        record = UserRecord(1, "山田太郎")
        with pytest.raises(FrozenInstanceError):
            record.name = "other"  # type: ignore[misc]

    def test_replace_creates_new_object(self):
        """replace() leaves the original untouched."""
        record = UserRecord(1, "山田太郎", 30)
        older = replace(record, age=31)
        assert record.age == 30
        assert older.age == 31
        assert older is not record

    def test_new_record_defaults(self):
        """Records from the add action carry the default values."""
        record = UserRecord.new(3)
        assert record.id == 3
        assert record.name == "新規ユーザー_3"
        assert record.age == DEFAULT_NEW_AGE
        assert record.gender is Gender.UNSET
        assert record.address == ""
        assert record.is_new is True
        assert record.is_deleted is False

    def test_is_purged(self):
        """Only a new record that is also deleted counts as purged."""
        new = UserRecord.new(3)
        assert not new.is_purged
        assert replace(new, is_deleted=True).is_purged
        assert not UserRecord(1, is_deleted=True).is_purged


class TestFromMapping:
    """Tests for building records from loosely-typed rows."""

    def test_csv_row(self):
        """String values from a CSV row are coerced to field types."""
        record = UserRecord.from_mapping(
            {
                "id": "5",
                "name": "高橋健太",
                "age": "28",
                "gender": "男性",
                "address": "神奈川県横浜市",
                "is_deleted": "0",
            }
        )
        assert record == UserRecord(5, "高橋健太", 28, Gender.MALE, "神奈川県横浜市")

    def test_camel_case_flags(self):
        """isNew / isDeleted keys are accepted."""
        record = UserRecord.from_mapping({"id": 9, "isNew": True, "isDeleted": "true"})
        assert record.is_new is True
        assert record.is_deleted is True

    def test_bad_values_fall_back(self):
        """Unreadable age and gender fall back instead of failing."""
        record = UserRecord.from_mapping({"id": "1", "age": "abc", "gender": "?"})
        assert record.age == 0
        assert record.gender is Gender.UNSET
        assert record.name == ""

    def test_to_dict_flattens_gender(self):
        """to_dict() exposes the gender display string."""
        data = UserRecord(1, "山田太郎", 30, Gender.MALE).to_dict()
        assert data["gender"] == "男性"
        assert data["id"] == 1
        assert data["is_new"] is False


def test_sort_by_id():
    """sort_by_id() orders records ascending by id."""
    records = [UserRecord(3), UserRecord(1), UserRecord(2)]
    assert [r.id for r in sort_by_id(records)] == [1, 2, 3]
