"""Grid panel showing the records of one tab.

Uses tksheet for table display. The panel holds no record state of its own:
it renders TabSessionController.visible_records() and forwards every cell
edit to TabSessionController.mutate().
"""

from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import TYPE_CHECKING

from tksheet import Sheet, num2alpha

from ...debug_trace import logger
from ...errors import RecordNotFoundError
from ...models.constants import GENDER_CHOICES

if TYPE_CHECKING:
    from ...models.user_record import UserRecord
    from ...services.tab_session import TabSessionController

# Column indices
COL_ID = 0
COL_NAME = 1
COL_AGE = 2
COL_GENDER = 3
COL_ADDRESS = 4
COL_STATUS = 5

HEADERS = ["ID", "名前", "年齢", "性別", "住所", "状態"]
NUM_COLUMNS = len(HEADERS)

# Record field edited through each editable column
COLUMN_FIELDS = {
    COL_NAME: "name",
    COL_AGE: "age",
    COL_GENDER: "gender",
    COL_ADDRESS: "address",
}

STATUS_NEW = "新規"
STATUS_DELETED = "削除済"

COLOR_DELETED_BG = "#e0e0e0"
COLOR_DELETED_FG = "#9e9e9e"
COLOR_DIRTY_BG = "#fff3cd"
COLOR_NEW_BG = "#e3f2e1"


def record_to_row(record: UserRecord) -> list:
    """Build the display row for a record."""
    if record.is_deleted:
        status = STATUS_DELETED
    elif record.is_new:
        status = STATUS_NEW
    else:
        status = ""
    return [
        record.id,
        record.name,
        record.age,
        record.gender.value,
        record.address,
        status,
    ]


class RecordSheetPanel(ttk.Frame):
    """Panel for editing the records of the active tab.

    Displays rows with columns: ID, Name, Age, Gender, Address, Status.
    ID and Status are read-only. Deleted rows are greyed out and reject
    edits until restored. Changed cells are highlighted until committed.
    """

    def _apply_row_styling(self, row_idx: int, record: UserRecord) -> None:
        """Apply highlights for a single row."""
        if record.is_deleted:
            for col in range(NUM_COLUMNS):
                self.sheet.highlight_cells(
                    row=row_idx, column=col, bg=COLOR_DELETED_BG, fg=COLOR_DELETED_FG
                )
            self.sheet.highlight_cells(row=row_idx, bg=COLOR_DELETED_BG, canvas="row_index")
            return

        if record.is_new:
            self.sheet.highlight_cells(row=row_idx, bg=COLOR_NEW_BG, canvas="row_index")

        for col, field_name in COLUMN_FIELDS.items():
            if self.controller.store.is_field_dirty(self._tab_id, record.id, field_name):
                self.sheet.highlight_cells(row=row_idx, column=col, bg=COLOR_DIRTY_BG)

    def _populate_sheet(self) -> None:
        """Populate sheet with the visible records of the shown tab."""
        self._suppress_notifications = True
        try:
            records = list(self.controller.visible_records(self._tab_id))
            self._row_ids = [record.id for record in records]

            data = [record_to_row(record) for record in records]
            self.sheet.set_sheet_data(data, reset_col_positions=False)
            self.sheet.set_index_data([str(i + 1) for i in range(len(records))])

            self.sheet.dehighlight_all()
            for row_idx, record in enumerate(records):
                self._apply_row_styling(row_idx, record)
        finally:
            self._suppress_notifications = False

    def _record_at(self, row_idx: int) -> UserRecord | None:
        if row_idx >= len(self._row_ids):
            return None
        return self.controller.get_record(self._row_ids[row_idx], tab_id=self._tab_id)

    def _validate_edit(self, event):
        """Reject edits of deleted rows and read-only columns.

        Returns:
            The value to store, or None to cancel the edit
        """
        column = getattr(event, "column", None)
        if column not in COLUMN_FIELDS:
            return None

        record = self._record_at(getattr(event, "row", len(self._row_ids)))
        if record is None or record.is_deleted:
            return None

        return event.value

    def _on_sheet_modified(self, event) -> None:
        """Forward cell edits to the session."""
        if self._suppress_notifications:
            return

        cells = getattr(event, "cells", None)
        if not cells:
            return

        table_cells = cells.get("table", {})
        if not table_cells:
            return

        # Resolve all edits first; the first mutate() re-renders the sheet.
        edits = []
        for (row_idx, col), _old_value in table_cells.items():
            field_name = COLUMN_FIELDS.get(col)
            if field_name is None or row_idx >= len(self._row_ids):
                continue
            edits.append((self._row_ids[row_idx], field_name, self.sheet.get_cell_data(row_idx, col)))

        for record_id, field_name, new_value in edits:
            try:
                self.controller.mutate(record_id, field_name, new_value, tab_id=self._tab_id)
            except RecordNotFoundError:
                logger.warning("Edit of vanished record %s on %s ignored", record_id, self._tab_id)

        # Show coerced values (e.g. "abc" -> 0) even when nothing changed
        self._populate_sheet()

    def _create_widgets(self) -> None:
        """Create all panel widgets."""
        self.sheet = Sheet(
            self,
            headers=HEADERS,
            show_row_index=True,
            height=400,
            width=800,
        )
        self.sheet.pack(fill=tk.BOTH, expand=True, padx=5, pady=5)

        # Enable standard bindings
        self.sheet.enable_bindings()

        # Rows are added and removed through the header buttons only
        self.sheet.disable_bindings(
            "row_drag_and_drop",
            "column_drag_and_drop",
            "rc_select_column",
            "rc_insert_column",
            "rc_delete_column",
            "rc_insert_row",
            "rc_delete_row",
            "sort_cells",
            "sort_row",
            "sort_column",
            "sort_rows",
            "sort_columns",
        )

        self.sheet.set_column_widths([60, 180, 60, 90, 280, 70])
        self.sheet.row_index(40)

        self.sheet.readonly_columns([COL_ID, COL_STATUS])
        self.sheet.dropdown(num2alpha(COL_GENDER), values=list(GENDER_CHOICES))

        self.sheet.edit_validation(self._validate_edit)
        self.sheet.bind("<<SheetModified>>", self._on_sheet_modified)

    def __init__(self, parent: tk.Widget, controller: TabSessionController):
        """Initialize the panel.

        Args:
            parent: Parent widget
            controller: Session the panel renders and edits
        """
        super().__init__(parent)

        self.controller = controller
        self._tab_id = controller.active_tab
        self._row_ids: list[int] = []
        self._suppress_notifications = False

        self._create_widgets()
        self._populate_sheet()

    @property
    def tab_id(self) -> str:
        """Id of the tab currently shown."""
        return self._tab_id

    def show_tab(self, tab_id: str) -> None:
        """Render another tab's records."""
        self._tab_id = tab_id
        self._populate_sheet()

    def refresh(self) -> None:
        """Re-render the shown tab from the session."""
        self._populate_sheet()
        self.sheet.set_refresh_timer()

    def get_selected_record_id(self) -> int | None:
        """Get the id of the record in the selected row, if any.

        Checks both row selection and cell selection.
        """
        selected_rows = list(self.sheet.get_selected_rows())
        if selected_rows:
            row_idx = selected_rows[0]
        else:
            selected_cells = list(self.sheet.get_selected_cells())
            if not selected_cells:
                return None
            row_idx = selected_cells[0][0]  # (row, col) tuple

        if row_idx >= len(self._row_ids):
            return None
        return self._row_ids[row_idx]

    def select_record(self, record_id: int) -> None:
        """Scroll to and select a record's row."""
        if record_id not in self._row_ids:
            return
        row_idx = self._row_ids.index(record_id)
        self.sheet.see(row_idx, COL_NAME)
        self.sheet.select_row(row_idx)
