"""Master editor views package.

MasterEditorWindow (window.py) is the editor frame: a TabBar over a header
of action buttons and a RecordSheetPanel (panel.py) grid.

Header Buttons (active tab)
===========================

+-------------+-------------------------------------+
| Button      | Action                              |
+-------------+-------------------------------------+
| 新規追加    | add_record(), select the new row    |
| 削除・復元  | toggle_deleted() on the selected row |
| 変更を破棄  | discard()                           |
| 全て保存    | commit() via the AsyncPump          |
+-------------+-------------------------------------+
"""

from .panel import RecordSheetPanel
from .window import MasterEditorWindow

__all__ = ["MasterEditorWindow", "RecordSheetPanel"]
