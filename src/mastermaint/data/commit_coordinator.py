"""Save driver for a tab's edit buffer.

CommitCoordinator captures what a tab's buffer should persist, awaits the
persistence collaborator, and hands the result back to the store. At most one
commit per tab is in flight; a second request for the same tab is rejected
rather than queued.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..debug_trace import logger, perf_timer
from ..errors import SaveFailure

if TYPE_CHECKING:
    from ..models.user_record import UserRecord
    from .data_source import Persistence
    from .edit_buffer_store import EditBufferStore


class CommitStatus(Enum):
    """How a commit request ended."""

    SAVED = "saved"
    REJECTED = "rejected"  # Another commit for the tab was still in flight
    FAILED = "failed"


@dataclass(frozen=True)
class CommitResult:
    """Outcome of CommitCoordinator.commit().

    Attributes:
        tab_id: Tab the commit was requested for.
        status: SAVED, REJECTED or FAILED.
        records: New snapshot ascending by id (SAVED only).
        error: The failure (FAILED only); its __cause__ is the collaborator's
            original exception.
    """

    tab_id: str
    status: CommitStatus
    records: tuple[UserRecord, ...] = field(default=())
    error: SaveFailure | None = None

    @property
    def ok(self) -> bool:
        return self.status is CommitStatus.SAVED

    def __repr__(self) -> str:
        return f"CommitResult({self.tab_id!r}, {self.status.value}, {len(self.records)} records)"


class CommitCoordinator:
    """Drives saves of tab buffers through the persistence collaborator.

    Usage:
        coordinator = CommitCoordinator(store, persistence)
        result = await coordinator.commit("tabA")
        if not result.ok:
            ...
    """

    def __init__(
        self,
        store: EditBufferStore,
        persistence: Persistence,
        on_saving_changed: Callable[[str], None] | None = None,
    ):
        """Initialize the coordinator.

        Args:
            store: Store owning the tab buffers
            persistence: Collaborator that durably saves records
            on_saving_changed: Called with the tab id whenever its saving
                flag is set or cleared
        """
        self._store = store
        self._persistence = persistence
        self._on_saving_changed = on_saving_changed
        self._in_flight: set[str] = set()

    def _set_saving(self, tab_id: str, saving: bool) -> None:
        if saving:
            self._in_flight.add(tab_id)
        else:
            self._in_flight.discard(tab_id)
        if self._on_saving_changed:
            self._on_saving_changed(tab_id)

    def is_saving(self, tab_id: str) -> bool:
        """Check if a commit for the tab is in flight."""
        return tab_id in self._in_flight

    @property
    def saving_tabs(self) -> frozenset[str]:
        """Tabs with a commit in flight."""
        return frozenset(self._in_flight)

    async def commit(self, tab_id: str) -> CommitResult:
        """Persist a tab's buffer and promote it to the tab's snapshot.

        The commit set is captured before the first await: edits made while
        the save is in flight are not part of it and leave the tab dirty.
        On failure the tab's snapshot, buffer and dirty flag are untouched.

        Args:
            tab_id: Tab to commit

        Returns:
            CommitResult describing the outcome.
        """
        if tab_id in self._in_flight:
            logger.debug("Commit of %s rejected: already saving", tab_id)
            return CommitResult(tab_id, CommitStatus.REJECTED)

        commit_set = self._store.capture_commit_set(tab_id)
        self._set_saving(tab_id, True)
        try:
            with perf_timer(f"commit {tab_id}", row_count=len(commit_set.records)):
                persisted = await self._persistence.save_batch(tab_id, list(commit_set.records))
        except Exception as exc:
            logger.exception("Saving %s failed", tab_id)
            error = SaveFailure(tab_id, str(exc))
            error.__cause__ = exc
            return CommitResult(tab_id, CommitStatus.FAILED, error=error)
        finally:
            self._set_saving(tab_id, False)

        snapshot = self._store.reconcile(commit_set, persisted)
        logger.info("Committed %d records for %s", len(snapshot), tab_id)
        return CommitResult(
            tab_id,
            CommitStatus.SAVED,
            records=tuple(snapshot[key] for key in sorted(snapshot)),
        )
