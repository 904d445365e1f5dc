"""Exception types raised by the edit-buffer and commit engine."""

from __future__ import annotations


class MasterMaintError(Exception):
    """Base class for all mastermaint errors."""


class LoadFailure(MasterMaintError):
    """The persistence collaborator failed to fetch records."""


class SaveFailure(MasterMaintError):
    """The persistence collaborator failed to save a tab's records."""

    def __init__(self, tab_id: str, message: str = ""):
        self.tab_id = tab_id
        super().__init__(message or f"Failed to save {tab_id}")


class UnknownTabError(MasterMaintError, KeyError):
    """A tab id outside the configured tab enumeration was used."""

    def __init__(self, tab_id: str):
        self.tab_id = tab_id
        super().__init__(tab_id)

    def __str__(self) -> str:
        return f"Unknown tab: {self.tab_id!r}"


class RecordNotFoundError(MasterMaintError, KeyError):
    """A record id is not present in a tab's edit buffer."""

    def __init__(self, tab_id: str, record_id: int):
        self.tab_id = tab_id
        self.record_id = record_id
        super().__init__(record_id)

    def __str__(self) -> str:
        return f"Record {self.record_id} not found in {self.tab_id!r}"


class InvalidFieldError(MasterMaintError, ValueError):
    """A field name that cannot be edited was passed to mutate()."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Field is not editable: {field_name!r}")
