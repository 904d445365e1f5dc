"""Per-tab identity generator for records created in the editor."""

from __future__ import annotations

from collections.abc import Iterable

from ..models.constants import MIN_BOOTSTRAP_ID


class IdAllocator:
    """Monotonic id counter, one per tab.

    Ids are never reused: next() advances the counter even when the record
    it was issued for is later discarded without being committed, and
    re-seeding a tab never moves its counter backwards.

    Usage:
        allocator = IdAllocator()
        allocator.seed("tabA", [1, 2])
        allocator.next("tabA")  # 3
        allocator.next("tabA")  # 4

        allocator = IdAllocator(min_bootstrap_id=100)
        allocator.seed("tabA", [1, 2])
        allocator.next("tabA")  # 100
    """

    def __init__(self, min_bootstrap_id: int = MIN_BOOTSTRAP_ID):
        """Initialize the allocator.

        Args:
            min_bootstrap_id: Floor for the first id handed out on any tab.
        """
        self._min_bootstrap_id = min_bootstrap_id
        self._next: dict[str, int] = {}

    @property
    def min_bootstrap_id(self) -> int:
        return self._min_bootstrap_id

    def seed(self, tab_id: str, existing_ids: Iterable[int]) -> int:
        """Initialize a tab's counter from the ids present at load time.

        The counter becomes max(existing ids) + 1, floored at the bootstrap
        value and at whatever the tab's counter already was.

        Args:
            tab_id: Tab being loaded
            existing_ids: Ids of the records loaded for that tab

        Returns:
            The next id that will be issued for the tab.
        """
        max_id = max(existing_ids, default=0)
        candidate = max(max_id + 1, self._min_bootstrap_id)
        self._next[tab_id] = max(candidate, self._next.get(tab_id, 0))
        return self._next[tab_id]

    def peek(self, tab_id: str) -> int:
        """Return the id next() would issue, without advancing."""
        return self._next.get(tab_id, self._min_bootstrap_id)

    def next(self, tab_id: str) -> int:
        """Issue the next id for a tab and advance its counter."""
        issued = self.peek(tab_id)
        self._next[tab_id] = issued + 1
        return issued
