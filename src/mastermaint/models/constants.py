# ==============================================================================
# Tab Configuration
# ==============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TabDefinition:
    """A fixed tab in the master maintenance window."""

    id: str
    label: str


DEFAULT_TABS: tuple[TabDefinition, ...] = (
    TabDefinition("tabA", "A"),
    TabDefinition("tabB", "B"),
    TabDefinition("tabC", "C"),
    TabDefinition("tabD", "D"),
)


# ==============================================================================
# Record Configuration
# ==============================================================================


class Gender(str, Enum):
    """Gender choices offered by the grid's dropdown."""

    MALE = "男性"
    FEMALE = "女性"
    OTHER = "その他"
    UNSET = "未設定"


GENDER_CHOICES: tuple[str, ...] = tuple(g.value for g in Gender)

# Floor for the first id handed out on a tab, whatever the loaded ids are
MIN_BOOTSTRAP_ID = 1

# Floor used by the desktop application so new rows stand apart from loaded ids
APP_BOOTSTRAP_ID = 100

# Defaults for records created by "add record"
DEFAULT_NEW_AGE = 20
DEFAULT_NEW_GENDER = Gender.UNSET
NEW_RECORD_NAME_PREFIX = "新規ユーザー_"

# Value stored when a numeric field receives non-numeric input
NUMERIC_FALLBACK = 0

# Fields a user may change through EditBufferStore.mutate()
EDITABLE_FIELDS: frozenset[str] = frozenset({"name", "age", "gender", "address", "is_deleted"})


# ==============================================================================
# User-facing Messages
# ==============================================================================

UNSAVED_SWITCH_TITLE = "未保存の変更"
UNSAVED_SWITCH_MESSAGE = "変更内容が保存されていません。保存せずに移動しますか？"

UNSAVED_CLOSE_TITLE = "未保存の変更"
UNSAVED_CLOSE_MESSAGE = "保存されていない変更があります。保存せずに終了しますか？"

SAVE_SUCCESS_TITLE = "保存完了"
SAVE_FAILURE_TITLE = "保存エラー"
SAVE_FAILURE_MESSAGE = "データの保存に失敗しました"

LOAD_FAILURE_MESSAGE = "データの取得に失敗しました"

# Reminders that buffered edits are not persisted yet
PENDING_NOTICE_TITLE = "お知らせ"
RECORD_ADDED_MESSAGE = "新しいレコードを追加しました（保存するまで反映されません）"
RECORD_DELETED_MESSAGE = "ID: {record_id} を削除しました（保存するまで反映されません）"
RECORD_RESTORED_MESSAGE = "ID: {record_id} の削除を解除しました（保存するまで反映されません）"


def tab_display_name(tab_id: str) -> str:
    """Format a tab id for messages, e.g. "tabA" -> "タブ A"."""
    return tab_id.replace("tab", "タブ ", 1)
