"""Data model for the master maintenance grid.

Contains the UserRecord frozen dataclass and helpers for building records
from loaded data and for new rows.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass

from .coercion import coerce_bool, coerce_gender, coerce_int, coerce_text
from .constants import (
    DEFAULT_NEW_AGE,
    DEFAULT_NEW_GENDER,
    NEW_RECORD_NAME_PREFIX,
    Gender,
)


@dataclass(frozen=True)
class UserRecord:
    """Immutable user record in a tab's collection.

    Being frozen, new instances must be created for any change using
    dataclasses.replace(). The edit buffer relies on this: a buffered record
    that is still the same object as the one captured for a commit has not
    been edited since.

    Usage:
        record = UserRecord(id=1, name="山田太郎", age=30, gender=Gender.MALE)
        older = replace(record, age=31)
    """

    # --- Identity ---
    id: int

    # --- Content (user-editable) ---
    name: str = ""
    age: int = 0
    gender: Gender = Gender.UNSET
    address: str = ""

    # --- Edit state ---
    is_new: bool = False
    is_deleted: bool = False

    @property
    def is_purged(self) -> bool:
        """True for a new record deleted before it was ever committed.

        Purged records are never shown and never persisted.
        """
        return self.is_new and self.is_deleted

    @classmethod
    def new(cls, record_id: int) -> UserRecord:
        """Create a default record for the "add record" action."""
        return cls(
            id=record_id,
            name=f"{NEW_RECORD_NAME_PREFIX}{record_id}",
            age=DEFAULT_NEW_AGE,
            gender=DEFAULT_NEW_GENDER,
            address="",
            is_new=True,
            is_deleted=False,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> UserRecord:
        """Build a record from a loosely-typed mapping (CSV row, JSON object).

        Accepts both snake_case keys and camelCase JSON keys (isNew / isDeleted).
        """
        return cls(
            id=coerce_int(data.get("id")),
            name=coerce_text(data.get("name")),
            age=coerce_int(data.get("age")),
            gender=coerce_gender(data.get("gender")),
            address=coerce_text(data.get("address")),
            is_new=coerce_bool(data.get("is_new", data.get("isNew", False))),
            is_deleted=coerce_bool(data.get("is_deleted", data.get("isDeleted", False))),
        )

    def to_dict(self) -> dict[str, object]:
        """Plain dict with the gender flattened to its display string."""
        data = asdict(self)
        data["gender"] = self.gender.value
        return data


def sort_by_id(records) -> list[UserRecord]:
    """Return records ordered ascending by id (the display order)."""
    return sorted(records, key=lambda r: r.id)
