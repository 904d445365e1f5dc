"""Unsaved-work guard for tab switches.

Each switch request is a one-step state machine, Pending -> Switched or
Aborted. A clean source tab switches immediately; a dirty one asks the
Confirmation collaborator exactly once. The guard only decides: changing the
active tab is left to TabSessionController.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from ..debug_trace import logger
from ..models.constants import UNSAVED_SWITCH_MESSAGE, UNSAVED_SWITCH_TITLE

if TYPE_CHECKING:
    from ..data.edit_buffer_store import EditBufferStore


class ConfirmResult(Enum):
    """Answer from a Confirmation collaborator."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class SwitchOutcome(Enum):
    """Terminal state of a switch request."""

    SWITCHED = "switched"
    ABORTED = "aborted"


class Confirmation(Protocol):
    """Asks the user a yes/no question.

    May answer synchronously or return an awaitable; either way it must
    resolve exactly once per call.
    """

    def ask(self, title: str, message: str) -> ConfirmResult | Awaitable[ConfirmResult]: ...


class NavigationGuard:
    """Decides whether leaving a tab is allowed.

    Usage:
        guard = NavigationGuard(store, confirmation)
        outcome = await guard.request_switch("tabA", "tabB")
        if outcome is SwitchOutcome.SWITCHED:
            ...
    """

    def __init__(
        self,
        store: EditBufferStore,
        confirmation: Confirmation,
        title: str = UNSAVED_SWITCH_TITLE,
        message: str = UNSAVED_SWITCH_MESSAGE,
    ):
        """Initialize the guard.

        Args:
            store: Store whose dirty flags are consulted
            confirmation: Collaborator asked before leaving a dirty tab
            title: Prompt title
            message: Prompt text
        """
        self._store = store
        self._confirmation = confirmation
        self._title = title
        self._message = message

    async def _ask(self) -> ConfirmResult:
        answer = self._confirmation.ask(self._title, self._message)
        if inspect.isawaitable(answer):
            answer = await answer
        return answer

    async def request_switch(self, from_tab: str | None, to_tab: str) -> SwitchOutcome:
        """Decide a switch from one tab to another.

        Leaving a dirty tab keeps its buffer as-is: nothing is discarded, so
        returning later shows the same unsaved edits.

        Args:
            from_tab: Currently active tab (None before any tab is active)
            to_tab: Requested tab

        Returns:
            SwitchOutcome.SWITCHED if the switch may proceed, else ABORTED.
        """
        if from_tab is None or from_tab == to_tab:
            return SwitchOutcome.SWITCHED

        if not self._store.is_dirty(from_tab):
            return SwitchOutcome.SWITCHED

        answer = await self._ask()
        if answer is ConfirmResult.CONFIRMED:
            logger.debug("Leaving dirty %s for %s (confirmed)", from_tab, to_tab)
            return SwitchOutcome.SWITCHED

        logger.debug("Switch %s -> %s aborted", from_tab, to_tab)
        return SwitchOutcome.ABORTED
