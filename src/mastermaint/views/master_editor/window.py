"""Main frame of the master maintenance editor.

Lays out the tab bar, the header buttons and the record grid, and turns
button clicks into TabSessionController calls. Async actions (switching
tabs, saving) are submitted to the AsyncPump.
"""

from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import TYPE_CHECKING

from ...debug_trace import logger
from ...models.constants import LOAD_FAILURE_MESSAGE, tab_display_name
from ...widgets.tab_bar import TabBar
from .panel import RecordSheetPanel

if TYPE_CHECKING:
    from ...services.tab_session import TabSessionController
    from ..async_pump import AsyncPump

SAVE_BUTTON_TEXT = "全て保存"
SAVING_BUTTON_TEXT = "保存中..."


class MasterEditorWindow(ttk.Frame):
    """Editor frame for a TabSessionController.

    Features:
    - Tab bar: one button per tab, marked "*" while the tab has unsaved edits
    - Header: add, delete/restore, discard and save for the active tab
    - Grid: RecordSheetPanel showing the active tab
    - Footer: loading, error and record count status
    """

    def _create_widgets(self) -> None:
        self.tab_bar = TabBar(self, self.controller.tabs, on_tab_requested=self._on_tab_requested)
        self.tab_bar.pack(fill=tk.X, padx=5, pady=(5, 0))

        header = ttk.Frame(self)
        header.pack(fill=tk.X, padx=5, pady=(5, 0))

        self.title_label = ttk.Label(header, text="", font=("TkDefaultFont", 11, "bold"))
        self.title_label.pack(side=tk.LEFT)

        self.save_button = ttk.Button(
            header, text=SAVE_BUTTON_TEXT, command=self._on_save_clicked, width=10
        )
        self.save_button.pack(side=tk.RIGHT, padx=(5, 0))

        self.discard_button = ttk.Button(
            header, text="変更を破棄", command=self._on_discard_clicked, width=10
        )
        self.discard_button.pack(side=tk.RIGHT, padx=(5, 0))

        self.delete_button = ttk.Button(
            header, text="削除・復元", command=self._on_delete_clicked, width=10
        )
        self.delete_button.pack(side=tk.RIGHT, padx=(5, 0))

        self.add_button = ttk.Button(header, text="新規追加", command=self._on_add_clicked, width=10)
        self.add_button.pack(side=tk.RIGHT, padx=(5, 0))

        self.panel = RecordSheetPanel(self, self.controller)
        self.panel.pack(fill=tk.BOTH, expand=True)

        footer = ttk.Frame(self)
        footer.pack(fill=tk.X, padx=5, pady=(0, 5))

        self.status_label = ttk.Label(footer, text="")
        self.status_label.pack(side=tk.LEFT)

    def _update_buttons(self) -> None:
        """Enable or disable header buttons for the active tab's state."""
        controller = self.controller
        saving = controller.is_saving()
        busy = controller.loading

        self.save_button.configure(text=SAVING_BUTTON_TEXT if saving else SAVE_BUTTON_TEXT)
        if saving or busy or not controller.is_dirty():
            self.save_button.state(["disabled"])
        else:
            self.save_button.state(["!disabled"])

        if saving or busy or not controller.is_dirty():
            self.discard_button.state(["disabled"])
        else:
            self.discard_button.state(["!disabled"])

        for button in (self.add_button, self.delete_button):
            button.state(["disabled"] if busy else ["!disabled"])

    def _update_status(self) -> None:
        controller = self.controller
        if controller.loading:
            text = "読み込み中..."
        elif controller.load_error is not None:
            text = LOAD_FAILURE_MESSAGE
        else:
            text = f"{len(controller.visible_records())} 件"
            if controller.is_dirty():
                text += " (未保存の変更あり)"
        self.status_label.config(text=text)

    def _on_session_changed(self, _controller, tab_id: str | None) -> None:
        """Re-render after any change to the session or the active tab."""
        active = self.controller.active_tab
        if tab_id is not None and tab_id != active:
            # Another tab changed in the background (e.g. its save finished)
            self.tab_bar.set_dirty_tabs(self.controller.dirty_tabs())
            return
        self.refresh()

    def _on_tab_requested(self, tab_id: str) -> None:
        self.pump.submit(self.controller.request_switch(tab_id))

    def _on_add_clicked(self) -> None:
        new_id = self.controller.add_record()
        self.panel.select_record(new_id)

    def _on_delete_clicked(self) -> None:
        record_id = self.panel.get_selected_record_id()
        if record_id is None:
            logger.debug("Delete/restore clicked without a selected row")
            return
        self.controller.toggle_deleted(record_id)

    def _on_discard_clicked(self) -> None:
        self.controller.discard()

    def _on_save_clicked(self) -> None:
        self.pump.submit(self.controller.commit())

    def __init__(self, parent: tk.Misc, controller: TabSessionController, pump: AsyncPump):
        """Initialize the editor frame.

        Args:
            parent: Parent widget (usually the Tk root)
            controller: Session to display and edit
            pump: Runs the session's coroutines
        """
        super().__init__(parent)

        self.controller = controller
        self.pump = pump

        self._create_widgets()
        self.controller.add_observer(self._on_session_changed)
        self.bind("<Destroy>", self._on_destroy)
        self.refresh()

    def _on_destroy(self, event) -> None:
        if event.widget is self:
            self.controller.remove_observer(self._on_session_changed)

    def refresh(self) -> None:
        """Re-render everything for the active tab."""
        active = self.controller.active_tab
        self.tab_bar.set_active(active)
        self.tab_bar.set_dirty_tabs(self.controller.dirty_tabs())
        self.title_label.config(text=f"{tab_display_name(active)} データ一覧")

        if self.panel.tab_id != active:
            self.panel.show_tab(active)
        else:
            self.panel.refresh()

        self._update_buttons()
        self._update_status()
