"""Tab-scoped edit buffers with snapshot/buffer architecture.

Each tab keeps two layers:
- snapshot: Last collection known to be durably committed (the truth)
- buffer: Working copy the user edits (the intent)

Key behaviors:
- Records are immutable, so an edit replaces the buffered object. A buffered
  record that is still the snapshot's (or a captured commit's) object has not
  been touched since.
- The dirty flag is explicit and tab-local: any mutation sets it, only load,
  discard or a successful commit clears it.
- New records deleted before their first commit ("purged") are hidden from
  the view and never persisted.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field, replace

from ..debug_trace import logger
from ..errors import RecordNotFoundError
from ..models.coercion import coerce_field_value
from ..models.user_record import UserRecord, sort_by_id
from .id_allocator import IdAllocator

StoreObserver = Callable[["EditBufferStore", str], None]


@dataclass
class TabBuffer:
    """Snapshot and edit buffer for a single tab.

    Attributes:
        snapshot: Committed records keyed by id.
        buffer: Edited records keyed by id (superset of snapshot ids).
        dirty: True once the buffer diverges from the snapshot.
        generation: Bumped on every change to the buffer, so a commit can
            tell whether edits landed while it was in flight.
        loaded: True once load() has run for the tab.
    """

    snapshot: dict[int, UserRecord] = field(default_factory=dict)
    buffer: dict[int, UserRecord] = field(default_factory=dict)
    dirty: bool = False
    generation: int = 0
    loaded: bool = False

    def __repr__(self) -> str:
        return (
            f"TabBuffer({len(self.snapshot)} committed, {len(self.buffer)} buffered, "
            f"dirty={self.dirty})"
        )


@dataclass(frozen=True)
class CommitSet:
    """Records captured from a tab's buffer at the moment a commit starts.

    Attributes:
        tab_id: Tab being committed.
        records: Buffered records minus purged ones, ascending by id.
        generation: Buffer generation at capture time.
    """

    tab_id: str
    records: tuple[UserRecord, ...]
    generation: int

    def by_id(self) -> dict[int, UserRecord]:
        return {record.id: record for record in self.records}


class VisibleRecords:
    """Read-only, restartable view of a tab's displayable records.

    Every iteration re-reads the store's current buffer, so the view never
    goes stale and can be iterated any number of times. Records are ordered
    ascending by id and purged records are excluded.
    """

    def __init__(self, store: EditBufferStore, tab_id: str):
        self._store = store
        self._tab_id = tab_id

    def _records(self) -> list[UserRecord]:
        buffer = self._store._buffer_for(self._tab_id)
        return sort_by_id(record for record in buffer.values() if not record.is_purged)

    def __iter__(self) -> Iterator[UserRecord]:
        return iter(self._records())

    def __len__(self) -> int:
        buffer = self._store._buffer_for(self._tab_id)
        return sum(1 for record in buffer.values() if not record.is_purged)

    def __getitem__(self, index: int) -> UserRecord:
        return self._records()[index]

    def ids(self) -> list[int]:
        """Ids in display order."""
        return [record.id for record in self._records()]

    def __repr__(self) -> str:
        return f"VisibleRecords({self._tab_id!r}, {len(self)} records)"


class EditBufferStore:
    """Central per-tab store of committed snapshots and edit buffers.

    Exclusively owns every tab's snapshot and buffer; other components read
    through its queries and change state only through its operations.

    Usage:
        store = EditBufferStore(IdAllocator())
        store.load("tabA", records)

        store.mutate("tabA", 1, "age", "31")
        new_id = store.add_record("tabA")
        store.mark_deleted("tabA", new_id)

        for record in store.visible_records("tabA"):
            ...
    """

    def __init__(self, id_allocator: IdAllocator | None = None):
        """Initialize the store.

        Args:
            id_allocator: Allocator for new record ids (a default one is
                created when omitted)
        """
        self._id_allocator = id_allocator or IdAllocator()
        self._tabs: dict[str, TabBuffer] = {}

        # Observer callbacks - called with (store, tab_id) after every change
        self._observers: list[StoreObserver] = []

    @property
    def id_allocator(self) -> IdAllocator:
        return self._id_allocator

    # --- Internal helpers ---

    def _state(self, tab_id: str) -> TabBuffer:
        """Get (creating on first use) the state for a tab."""
        state = self._tabs.get(tab_id)
        if state is None:
            state = TabBuffer()
            self._tabs[tab_id] = state
        return state

    def _buffer_for(self, tab_id: str) -> dict[int, UserRecord]:
        state = self._tabs.get(tab_id)
        return state.buffer if state else {}

    def _require(self, tab_id: str, record_id: int) -> tuple[TabBuffer, UserRecord]:
        state = self._tabs.get(tab_id)
        if state is None or record_id not in state.buffer:
            raise RecordNotFoundError(tab_id, record_id)
        return state, state.buffer[record_id]

    def _touch(self, tab_id: str, state: TabBuffer) -> None:
        """Record that the buffer changed and notify observers."""
        state.dirty = True
        state.generation += 1
        self._notify_observers(tab_id)

    def _notify_observers(self, tab_id: str) -> None:
        """Notify all observers that a tab changed."""
        for callback in list(self._observers):
            try:
                callback(self, tab_id)
            except Exception:
                # One broken observer must not stop the others
                logger.exception("Store observer %r failed for %s", callback, tab_id)

    # --- Loading ---

    def load(self, tab_id: str, records: Iterable[UserRecord]) -> None:
        """Initialize a tab's snapshot and buffer from loaded records.

        Loaded records are committed by definition, so any is_new flag is
        cleared. The dirty flag is reset and the id allocator seeded.

        Args:
            tab_id: Tab to (re)load
            records: Records supplied by the persistence collaborator
        """
        snapshot: dict[int, UserRecord] = {}
        for record in records:
            if record.is_new:
                record = replace(record, is_new=False)
            if record.id in snapshot:
                logger.warning("Duplicate id %s loaded for %s; keeping the last one", record.id, tab_id)
            snapshot[record.id] = record

        state = self._state(tab_id)
        state.snapshot = snapshot
        state.buffer = dict(snapshot)
        state.dirty = False
        state.generation += 1
        state.loaded = True

        next_id = self._id_allocator.seed(tab_id, snapshot.keys())
        logger.debug("Loaded %d records into %s (next id %d)", len(snapshot), tab_id, next_id)
        self._notify_observers(tab_id)

    # --- Mutations ---

    def mutate(self, tab_id: str, record_id: int, field_name: str, value: object) -> UserRecord:
        """Replace one field of a buffered record.

        The value is coerced to the field's type and never rejected; for
        example a non-numeric age becomes 0.

        Args:
            tab_id: Tab holding the record
            record_id: Id of the buffered record
            field_name: One of name, age, gender, address, is_deleted
            value: Raw new value

        Returns:
            The new buffered record.

        Raises:
            RecordNotFoundError: If the id is not in the tab's buffer.
            InvalidFieldError: If field_name is not editable.
        """
        state, current = self._require(tab_id, record_id)
        coerced = coerce_field_value(field_name, value)

        updated = replace(current, **{field_name: coerced})
        state.buffer[record_id] = updated
        self._touch(tab_id, state)
        return updated

    def add_record(self, tab_id: str) -> int:
        """Append a new default record to a tab's buffer.

        Returns:
            The id allocated for the new record.
        """
        state = self._state(tab_id)
        record_id = self._id_allocator.next(tab_id)
        state.buffer[record_id] = UserRecord.new(record_id)
        logger.debug("Added record %d to %s", record_id, tab_id)
        self._touch(tab_id, state)
        return record_id

    def mark_deleted(self, tab_id: str, record_id: int) -> None:
        """Soft-delete a record. It stays in the buffer until commit."""
        self.mutate(tab_id, record_id, "is_deleted", True)

    def restore(self, tab_id: str, record_id: int) -> None:
        """Undo a soft delete."""
        self.mutate(tab_id, record_id, "is_deleted", False)

    def toggle_deleted(self, tab_id: str, record_id: int) -> bool:
        """Flip a record's deleted flag.

        Returns:
            The new is_deleted value.
        """
        _, current = self._require(tab_id, record_id)
        new_value = not current.is_deleted
        self.mutate(tab_id, record_id, "is_deleted", new_value)
        return new_value

    def discard(self, tab_id: str) -> None:
        """Throw away a tab's unsaved edits, resetting the buffer to the snapshot.

        Ids issued for discarded new records are not handed out again.
        """
        state = self._state(tab_id)
        if not state.dirty:
            return
        state.buffer = dict(state.snapshot)
        state.dirty = False
        state.generation += 1
        logger.debug("Discarded edits in %s", tab_id)
        self._notify_observers(tab_id)

    # --- Commit support ---

    def capture_commit_set(self, tab_id: str) -> CommitSet:
        """Freeze the records a commit of this tab should persist.

        Purged records (new and deleted) are left out.
        """
        state = self._state(tab_id)
        records = tuple(sort_by_id(r for r in state.buffer.values() if not r.is_purged))
        return CommitSet(tab_id=tab_id, records=records, generation=state.generation)

    def reconcile(self, commit_set: CommitSet, persisted: Iterable[UserRecord]) -> dict[int, UserRecord]:
        """Promote a successful commit to the tab's new snapshot.

        The snapshot is replaced wholesale by the persisted records (with
        is_new cleared). The buffer is realigned to the new snapshot:
        - records untouched since capture take the persisted version
        - records edited while the commit was in flight keep the edit, even
          when persistence did not keep the sent version
        - purged records are dropped
        - records added while in flight stay in the buffer

        The tab is clean afterwards unless the buffer changed during the commit.

        Args:
            commit_set: What was captured when the commit started
            persisted: Records returned by the persistence collaborator

        Returns:
            The new snapshot.
        """
        tab_id = commit_set.tab_id
        state = self._state(tab_id)
        captured = commit_set.by_id()

        snapshot: dict[int, UserRecord] = {}
        for record in persisted:
            snapshot[record.id] = replace(record, is_new=False) if record.is_new else record

        buffer: dict[int, UserRecord] = {}
        for record_id, committed in snapshot.items():
            current = state.buffer.get(record_id)
            if current is not None and current is not captured.get(record_id):
                # Edited while in flight: keep the edit on top of the new snapshot
                buffer[record_id] = replace(current, is_new=False) if current.is_new else current
            else:
                buffer[record_id] = committed

        for record_id, current in state.buffer.items():
            if record_id in snapshot or current.is_purged:
                continue
            if record_id in captured:
                if current is captured[record_id]:
                    # Sent but not kept by persistence
                    continue
                # Dropped by persistence but edited while in flight
                current = replace(current, is_new=False) if current.is_new else current
            buffer[record_id] = current

        state.snapshot = snapshot
        state.buffer = buffer
        state.dirty = state.generation != commit_set.generation
        logger.debug(
            "Reconciled %s: %d committed, dirty=%s", tab_id, len(snapshot), state.dirty
        )
        self._notify_observers(tab_id)
        return dict(snapshot)

    # --- Queries ---

    def visible_records(self, tab_id: str) -> VisibleRecords:
        """Displayable records of a tab, ascending by id, purged ones excluded."""
        return VisibleRecords(self, tab_id)

    def is_dirty(self, tab_id: str) -> bool:
        state = self._tabs.get(tab_id)
        return state.dirty if state else False

    def is_loaded(self, tab_id: str) -> bool:
        state = self._tabs.get(tab_id)
        return state.loaded if state else False

    def dirty_tabs(self) -> list[str]:
        """Ids of all tabs with unsaved changes."""
        return [tab_id for tab_id, state in self._tabs.items() if state.dirty]

    def get_record(self, tab_id: str, record_id: int) -> UserRecord | None:
        """Get the buffered record, or None."""
        return self._buffer_for(tab_id).get(record_id)

    def get_snapshot_record(self, tab_id: str, record_id: int) -> UserRecord | None:
        """Get the committed record, or None."""
        state = self._tabs.get(tab_id)
        return state.snapshot.get(record_id) if state else None

    def snapshot(self, tab_id: str) -> list[UserRecord]:
        """Committed records of a tab, ascending by id."""
        state = self._tabs.get(tab_id)
        return sort_by_id(state.snapshot.values()) if state else []

    def is_field_dirty(self, tab_id: str, record_id: int, field_name: str) -> bool:
        """Check if a buffered field differs from its committed value.

        New records have no committed value, so every field counts as dirty.
        """
        current = self.get_record(tab_id, record_id)
        if current is None:
            return False
        committed = self.get_snapshot_record(tab_id, record_id)
        if committed is None:
            return True
        return getattr(current, field_name) != getattr(committed, field_name)

    # --- Observers ---

    def add_observer(self, callback: StoreObserver) -> None:
        """Add observer callback."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: StoreObserver) -> None:
        """Remove observer callback."""
        if callback in self._observers:
            self._observers.remove(callback)
