"""Tab session controller: the single owner of "which tab is active".

TabSessionController wires the edit-buffer store, commit coordinator and
navigation guard together for one editor window. Views call its methods for
every user action and read display state back through it; they never touch
the store's buffers directly.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Protocol

from ..data.commit_coordinator import CommitCoordinator, CommitResult, CommitStatus
from ..data.edit_buffer_store import EditBufferStore, VisibleRecords
from ..data.id_allocator import IdAllocator
from ..debug_trace import logger, perf_timer
from ..errors import LoadFailure, UnknownTabError
from ..models.constants import (
    DEFAULT_TABS,
    PENDING_NOTICE_TITLE,
    RECORD_ADDED_MESSAGE,
    RECORD_DELETED_MESSAGE,
    RECORD_RESTORED_MESSAGE,
    SAVE_FAILURE_MESSAGE,
    SAVE_FAILURE_TITLE,
    SAVE_SUCCESS_TITLE,
    TabDefinition,
    tab_display_name,
)
from .navigation_guard import Confirmation, NavigationGuard, SwitchOutcome

if TYPE_CHECKING:
    from ..data.data_source import Persistence
    from ..models.user_record import UserRecord

SessionObserver = Callable[["TabSessionController", "str | None"], None]


class Notifier(Protocol):
    """Shows informational and error messages to the user."""

    def info(self, title: str, message: str) -> None: ...

    def error(self, title: str, message: str) -> None: ...


class TabSessionController:
    """Composes the editing engine for a fixed set of tabs.

    Owns one EditBufferStore (all tabs' buffers) and injects it into the
    commit coordinator and navigation guard. Actions without an explicit
    tab_id apply to the active tab.

    Usage:
        session = TabSessionController(persistence, confirmation, notifier)
        await session.load_all()

        new_id = session.add_record()
        session.mutate(new_id, "name", "Alice")
        await session.commit()

        outcome = await session.request_switch("tabB")
    """

    def __init__(
        self,
        persistence: Persistence,
        confirmation: Confirmation,
        notifier: Notifier | None = None,
        tabs: Sequence[TabDefinition] = DEFAULT_TABS,
        id_allocator: IdAllocator | None = None,
    ):
        """Initialize the controller.

        Args:
            persistence: Collaborator that loads and saves records
            confirmation: Collaborator asked before leaving a dirty tab
            notifier: Collaborator that reports save results and reminds
                that added or deleted records are not saved yet (optional)
            tabs: Fixed tab enumeration; the first one starts active
            id_allocator: Allocator for new record ids
        """
        if not tabs:
            raise ValueError("At least one tab is required")

        self._tabs: tuple[TabDefinition, ...] = tuple(tabs)
        self._tab_ids = {tab.id for tab in self._tabs}
        self._persistence = persistence
        self._notifier = notifier

        self._store = EditBufferStore(id_allocator or IdAllocator())
        self._coordinator = CommitCoordinator(
            self._store, persistence, on_saving_changed=self._notify_observers
        )
        self._guard = NavigationGuard(self._store, confirmation)

        self._active_tab: str = self._tabs[0].id
        self._loading = False
        self.load_error: LoadFailure | None = None

        # Observer callbacks - called with (controller, tab_id or None)
        self._observers: list[SessionObserver] = []
        self._store.add_observer(lambda _store, tab_id: self._notify_observers(tab_id))

    # --- Components ---

    @property
    def store(self) -> EditBufferStore:
        return self._store

    @property
    def coordinator(self) -> CommitCoordinator:
        return self._coordinator

    @property
    def guard(self) -> NavigationGuard:
        return self._guard

    # --- Tabs ---

    @property
    def tabs(self) -> tuple[TabDefinition, ...]:
        return self._tabs

    @property
    def active_tab(self) -> str:
        """Id of the active tab."""
        return self._active_tab

    def _resolve(self, tab_id: str | None) -> str:
        if tab_id is None:
            return self._active_tab
        if tab_id not in self._tab_ids:
            raise UnknownTabError(tab_id)
        return tab_id

    async def request_switch(self, tab_id: str) -> SwitchOutcome:
        """Ask to make another tab active.

        Leaving a dirty tab needs the user's confirmation; the dirty tab's
        buffer is kept either way.

        Raises:
            UnknownTabError: If tab_id is not one of the configured tabs.
        """
        target = self._resolve(tab_id)
        outcome = await self._guard.request_switch(self._active_tab, target)
        if outcome is SwitchOutcome.SWITCHED and target != self._active_tab:
            logger.debug("Active tab %s -> %s", self._active_tab, target)
            self._active_tab = target
            self._notify_observers(None)
        return outcome

    # --- Loading ---

    @property
    def loading(self) -> bool:
        """True while the initial fetch is in flight."""
        return self._loading

    async def load_all(self) -> bool:
        """Fetch every tab's records and load them into the store.

        A failure is logged and leaves the tabs empty; there is no retry.

        Returns:
            True if the records were loaded.
        """
        self._loading = True
        self.load_error = None
        self._notify_observers(None)
        try:
            with perf_timer("fetch_all"):
                data = await self._persistence.fetch_all()
        except Exception as exc:
            logger.exception("Loading records failed")
            self.load_error = LoadFailure(str(exc) or type(exc).__name__)
            self.load_error.__cause__ = exc
            return False
        else:
            for tab_id in set(data) - self._tab_ids:
                logger.warning("Ignoring records for unknown tab %r", tab_id)

            # Loading stays set until every tab is filled
            for tab in self._tabs:
                self._store.load(tab.id, data.get(tab.id, ()))
            return True
        finally:
            self._loading = False
            self._notify_observers(None)

    # --- Editing (active tab unless tab_id is given) ---

    def _notify_pending(self, message: str) -> None:
        if self._notifier is not None:
            self._notifier.info(PENDING_NOTICE_TITLE, message)

    def add_record(self, tab_id: str | None = None) -> int:
        """Add a new default record and remind that it is not saved yet.

        Returns:
            The new record's id.
        """
        record_id = self._store.add_record(self._resolve(tab_id))
        self._notify_pending(RECORD_ADDED_MESSAGE)
        return record_id

    def mutate(
        self, record_id: int, field_name: str, value: object, tab_id: str | None = None
    ) -> UserRecord:
        """Change one field of a buffered record."""
        return self._store.mutate(self._resolve(tab_id), record_id, field_name, value)

    def mark_deleted(self, record_id: int, tab_id: str | None = None) -> None:
        self._store.mark_deleted(self._resolve(tab_id), record_id)

    def restore(self, record_id: int, tab_id: str | None = None) -> None:
        self._store.restore(self._resolve(tab_id), record_id)

    def toggle_deleted(self, record_id: int, tab_id: str | None = None) -> bool:
        """Flip a record's deleted flag. Returns the new value."""
        deleted = self._store.toggle_deleted(self._resolve(tab_id), record_id)
        template = RECORD_DELETED_MESSAGE if deleted else RECORD_RESTORED_MESSAGE
        self._notify_pending(template.format(record_id=record_id))
        return deleted

    def discard(self, tab_id: str | None = None) -> None:
        """Drop unsaved edits of a tab."""
        self._store.discard(self._resolve(tab_id))

    async def commit(self, tab_id: str | None = None) -> CommitResult:
        """Save a tab and report the result through the notifier."""
        target = self._resolve(tab_id)
        result = await self._coordinator.commit(target)

        if self._notifier is not None:
            if result.status is CommitStatus.SAVED:
                self._notifier.info(
                    SAVE_SUCCESS_TITLE, f"{tab_display_name(target)} のデータを保存しました"
                )
            elif result.status is CommitStatus.FAILED:
                self._notifier.error(SAVE_FAILURE_TITLE, SAVE_FAILURE_MESSAGE)
        return result

    # --- Display projection ---

    def visible_records(self, tab_id: str | None = None) -> VisibleRecords:
        return self._store.visible_records(self._resolve(tab_id))

    def is_dirty(self, tab_id: str | None = None) -> bool:
        return self._store.is_dirty(self._resolve(tab_id))

    def is_saving(self, tab_id: str | None = None) -> bool:
        return self._coordinator.is_saving(self._resolve(tab_id))

    def get_record(self, record_id: int, tab_id: str | None = None) -> UserRecord | None:
        return self._store.get_record(self._resolve(tab_id), record_id)

    def dirty_tabs(self) -> list[str]:
        """Ids of tabs with unsaved changes, in tab order."""
        dirty = set(self._store.dirty_tabs())
        return [tab.id for tab in self._tabs if tab.id in dirty]

    def has_unsaved_changes(self) -> bool:
        return bool(self.dirty_tabs())

    # --- Observers ---

    def _notify_observers(self, tab_id: str | None) -> None:
        """Notify all observers of a change (tab_id None means session-wide)."""
        for callback in list(self._observers):
            try:
                callback(self, tab_id)
            except Exception:
                logger.exception("Session observer %r failed", callback)

    def add_observer(self, callback: SessionObserver) -> None:
        """Add observer callback."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: SessionObserver) -> None:
        """Remove observer callback."""
        if callback in self._observers:
            self._observers.remove(callback)
