"""Row of toggle buttons selecting the active tab.

Unlike ttk.Notebook, clicking a button does not change the selection by
itself: the owner is asked through on_tab_requested and calls set_active()
once the switch is approved.
"""

from __future__ import annotations

import tkinter as tk
from collections.abc import Callable, Sequence
from tkinter import ttk

from ..models.constants import TabDefinition

ACTIVE_STYLE = "ActiveTab.TButton"
INACTIVE_STYLE = "TButton"

# Marker appended to the label of a tab with unsaved changes
DIRTY_MARKER = " *"


class TabBar(ttk.Frame):
    """Horizontal tab selector with per-tab dirty markers."""

    def _setup_styles(self) -> None:
        style = ttk.Style(self)
        style.configure(ACTIVE_STYLE, font=("TkDefaultFont", 10, "bold"), relief=tk.SUNKEN)

    def _label_for(self, tab: TabDefinition) -> str:
        text = f"タブ {tab.label}"
        if tab.id in self._dirty:
            text += DIRTY_MARKER
        return text

    def _on_click(self, tab_id: str) -> None:
        if tab_id == self._active_tab:
            return
        if self.on_tab_requested:
            self.on_tab_requested(tab_id)

    def _create_widgets(self) -> None:
        for tab in self._tabs:
            button = ttk.Button(
                self,
                text=self._label_for(tab),
                style=INACTIVE_STYLE,
                command=lambda tab_id=tab.id: self._on_click(tab_id),
            )
            button.pack(side=tk.LEFT, padx=(0, 2))
            self._buttons[tab.id] = button

    def __init__(
        self,
        parent: tk.Widget,
        tabs: Sequence[TabDefinition],
        on_tab_requested: Callable[[str], None] | None = None,
    ):
        """Initialize the tab bar.

        Args:
            parent: Parent widget
            tabs: Tabs to show, in display order
            on_tab_requested: Called with a tab id when its button is clicked
        """
        super().__init__(parent)

        self._tabs = tuple(tabs)
        self.on_tab_requested = on_tab_requested
        self._buttons: dict[str, ttk.Button] = {}
        self._active_tab: str | None = None
        self._dirty: set[str] = set()

        self._setup_styles()
        self._create_widgets()

    @property
    def active_tab(self) -> str | None:
        return self._active_tab

    def set_active(self, tab_id: str) -> None:
        """Highlight the button of the active tab."""
        self._active_tab = tab_id
        for key, button in self._buttons.items():
            button.configure(style=ACTIVE_STYLE if key == tab_id else INACTIVE_STYLE)

    def set_dirty_tabs(self, tab_ids) -> None:
        """Mark tabs holding unsaved changes."""
        dirty = set(tab_ids)
        if dirty == self._dirty:
            return
        self._dirty = dirty
        for tab in self._tabs:
            self._buttons[tab.id].configure(text=self._label_for(tab))
