"""Service layer for tab sessions.

This package contains the services that sit between the views and the
edit-buffer store. They decide what a user action means for the active tab
and keep UI concerns out of the store.

Services:
- NavigationGuard: Confirms before leaving a tab with unsaved changes
- TabSessionController: Owns the active tab and routes every action to the
  store, commit coordinator and guard
"""

from .navigation_guard import ConfirmResult, Confirmation, NavigationGuard, SwitchOutcome
from .tab_session import Notifier, TabSessionController

__all__ = [
    "ConfirmResult",
    "Confirmation",
    "NavigationGuard",
    "Notifier",
    "SwitchOutcome",
    "TabSessionController",
]
