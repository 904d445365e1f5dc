"""Tests for TabSessionController, including the end-to-end editing scenarios."""

import asyncio
from unittest.mock import MagicMock, call

import pytest
import pytest_asyncio

from mastermaint.data.commit_coordinator import CommitStatus
from mastermaint.data.data_source import MockPersistence
from mastermaint.data.id_allocator import IdAllocator
from mastermaint.errors import LoadFailure, UnknownTabError
from mastermaint.models.constants import (
    PENDING_NOTICE_TITLE,
    RECORD_ADDED_MESSAGE,
    SAVE_FAILURE_MESSAGE,
    SAVE_FAILURE_TITLE,
    SAVE_SUCCESS_TITLE,
    Gender,
    TabDefinition,
)
from mastermaint.models.user_record import UserRecord
from mastermaint.services.navigation_guard import ConfirmResult, SwitchOutcome
from mastermaint.services.tab_session import TabSessionController


def make_data():
    return {
        "tabA": [
            UserRecord(1, "山田太郎", 30, Gender.MALE, "東京都新宿区"),
            UserRecord(2, "佐藤花子", 25, Gender.FEMALE, "東京都渋谷区"),
        ],
        "tabB": [
            UserRecord(3, "鈴木一郎", 42, Gender.MALE, "大阪府大阪市"),
            UserRecord(4, "田中美咲", 35, Gender.FEMALE, "京都府京都市"),
        ],
    }


class FakeConfirmation:
    """Confirmation that answers synchronously and counts prompts."""

    def __init__(self, answer=ConfirmResult.CONFIRMED):
        self.answer = answer
        self.calls = 0

    def ask(self, title, message):
        self.calls += 1
        return self.answer


class BrokenPersistence(MockPersistence):
    """Mock persistence that cannot load or save."""

    def __init__(self):
        super().__init__({}, load_delay=0, save_delay=0)

    async def fetch_all(self):
        raise ConnectionError("server unreachable")

    async def save_batch(self, tab_id, records):
        raise ConnectionError("server unreachable")


class GatedPersistence(MockPersistence):
    """Mock persistence whose saves wait until released."""

    def __init__(self, data):
        super().__init__(data, load_delay=0, save_delay=0)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def save_batch(self, tab_id, records):
        self.started.set()
        await self.release.wait()
        return await super().save_batch(tab_id, records)


def make_session(persistence=None, answer=ConfirmResult.CONFIRMED, notifier=None):
    persistence = persistence or MockPersistence(make_data(), load_delay=0, save_delay=0)
    confirmation = FakeConfirmation(answer)
    session = TabSessionController(persistence, confirmation, notifier=notifier)
    return session, confirmation, persistence


@pytest_asyncio.fixture
async def loaded():
    """A loaded session on tab A, with its confirmation and persistence."""
    session, confirmation, persistence = make_session()
    assert await session.load_all()
    return session, confirmation, persistence


class TestLoad:
    """Tests for load_all()."""

    @pytest.mark.asyncio
    async def test_load_populates_tabs(self):
        """Every configured tab is loaded; tabs without data are empty."""
        session, _, _ = make_session()
        assert session.active_tab == "tabA"

        assert await session.load_all() is True

        assert session.visible_records("tabA").ids() == [1, 2]
        assert session.visible_records("tabB").ids() == [3, 4]
        assert len(session.visible_records("tabC")) == 0
        assert session.store.is_loaded("tabD")
        assert not session.has_unsaved_changes()
        assert session.load_error is None

    @pytest.mark.asyncio
    async def test_loading_flag(self):
        """Observers see loading set during the fetch and cleared after."""
        session, _, _ = make_session()
        states = []
        session.add_observer(lambda c, tab_id: states.append(c.loading))

        await session.load_all()

        assert states[0] is True
        assert not session.loading

    @pytest.mark.asyncio
    async def test_loading_cleared_after_tabs_filled(self):
        """Once observers see loading cleared, the tabs already hold their records."""
        session, _, _ = make_session()
        seen = []
        session.add_observer(
            lambda c, tab_id: seen.append((c.loading, len(c.visible_records("tabA"))))
        )

        await session.load_all()

        assert seen[-1] == (False, 2)
        assert all(count == 2 for loading, count in seen if not loading)

    @pytest.mark.asyncio
    async def test_load_failure(self):
        """A failed fetch is reported, not raised, and leaves tabs empty."""
        session, _, _ = make_session(BrokenPersistence())

        assert await session.load_all() is False

        assert isinstance(session.load_error, LoadFailure)
        assert isinstance(session.load_error.__cause__, ConnectionError)
        assert not session.loading
        assert len(session.visible_records("tabA")) == 0

    @pytest.mark.asyncio
    async def test_unknown_tabs_in_data_ignored(self):
        """Records for tabs outside the enumeration are skipped."""
        data = make_data()
        data["tabZ"] = [UserRecord(99)]
        session, _, _ = make_session(MockPersistence(data, load_delay=0, save_delay=0))

        assert await session.load_all()

        with pytest.raises(UnknownTabError):
            session.visible_records("tabZ")

    def test_requires_tabs(self):
        """A session needs at least one tab."""
        with pytest.raises(ValueError):
            TabSessionController(MockPersistence({}), FakeConfirmation(), tabs=())


class TestScenarios:
    """End-to-end editing scenarios."""

    @pytest.mark.asyncio
    async def test_add_delete_commit(self, loaded):
        """Add, delete before commit, commit: only the original records persist."""
        session, _, persistence = loaded

        new_id = session.add_record()
        assert new_id == 3
        assert len(session.visible_records()) == 3
        assert session.is_dirty()

        session.mark_deleted(new_id)
        assert len(session.visible_records()) == 2
        assert session.is_dirty()

        result = await session.commit()

        assert result.status is CommitStatus.SAVED
        assert persistence.save_history == [("tabA", make_data()["tabA"])]
        assert not session.is_dirty()

    @pytest.mark.asyncio
    async def test_non_numeric_age(self, loaded):
        """Typing a non-numeric age on tab B stores 0."""
        session, _, _ = loaded
        assert await session.request_switch("tabB") is SwitchOutcome.SWITCHED

        session.mutate(3, "age", "abc")

        assert session.get_record(3).age == 0
        assert session.is_dirty("tabB")

    @pytest.mark.asyncio
    async def test_dirty_switch_cancelled(self):
        """Cancelling the prompt leaves the active tab and its buffer untouched."""
        session, confirmation, _ = make_session(answer=ConfirmResult.CANCELLED)
        await session.load_all()
        session.mutate(1, "name", "unsaved")

        outcome = await session.request_switch("tabB")

        assert outcome is SwitchOutcome.ABORTED
        assert confirmation.calls == 1
        assert session.active_tab == "tabA"
        assert session.get_record(1).name == "unsaved"
        assert session.is_dirty("tabA")

    @pytest.mark.asyncio
    async def test_dirty_switch_confirmed_and_back(self, loaded):
        """Edits are still there after leaving and returning to a tab."""
        session, confirmation, _ = loaded
        session.mutate(2, "address", "名古屋市")

        assert await session.request_switch("tabB") is SwitchOutcome.SWITCHED
        assert session.active_tab == "tabB"

        # tab B is clean, so coming back does not ask again
        assert await session.request_switch("tabA") is SwitchOutcome.SWITCHED
        assert confirmation.calls == 1
        assert session.get_record(2).address == "名古屋市"
        assert session.is_dirty()


class TestEditing:
    """Tests for editing actions routed to the active tab."""

    @pytest.mark.asyncio
    async def test_actions_follow_active_tab(self, loaded):
        """Actions without tab_id apply to the active tab."""
        session, _, _ = loaded
        await session.request_switch("tabB")

        new_id = session.add_record()

        assert new_id == 5
        assert session.get_record(new_id, tab_id="tabB") is not None
        assert session.get_record(new_id, tab_id="tabA") is None

    @pytest.mark.asyncio
    async def test_explicit_tab_id(self, loaded):
        """Actions can target an inactive tab."""
        session, _, _ = loaded
        session.mutate(3, "name", "x", tab_id="tabB")
        assert session.is_dirty("tabB")
        assert not session.is_dirty("tabA")

    @pytest.mark.asyncio
    async def test_unknown_tab_raises(self, loaded):
        """Tab ids outside the enumeration are rejected."""
        session, _, _ = loaded
        with pytest.raises(UnknownTabError):
            session.mutate(1, "name", "x", tab_id="tabZ")
        with pytest.raises(KeyError):
            await session.request_switch("tabZ")

    @pytest.mark.asyncio
    async def test_toggle_and_restore(self, loaded):
        session, _, _ = loaded
        assert session.toggle_deleted(1) is True
        session.restore(1)
        assert not session.get_record(1).is_deleted
        assert session.is_dirty()

    @pytest.mark.asyncio
    async def test_add_reminds_not_saved(self):
        """Adding a record tells the user it is kept only until saved."""
        notifier = MagicMock()
        session, _, persistence = make_session(notifier=notifier)
        await session.load_all()

        session.add_record()

        notifier.info.assert_called_once_with(PENDING_NOTICE_TITLE, RECORD_ADDED_MESSAGE)
        assert persistence.save_history == []

    @pytest.mark.asyncio
    async def test_toggle_reminds_not_saved(self):
        """Deleting and restoring each name the record in their notice."""
        notifier = MagicMock()
        session, _, _ = make_session(notifier=notifier)
        await session.load_all()

        session.toggle_deleted(2)
        session.toggle_deleted(2)

        assert notifier.info.call_args_list == [
            call(PENDING_NOTICE_TITLE, "ID: 2 を削除しました（保存するまで反映されません）"),
            call(PENDING_NOTICE_TITLE, "ID: 2 の削除を解除しました（保存するまで反映されません）"),
        ]
        notifier.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_actions_do_not_remind(self):
        """Field edits and explicit delete or restore raise no notice."""
        notifier = MagicMock()
        session, _, _ = make_session(notifier=notifier)
        await session.load_all()

        session.mutate(1, "name", "x")
        session.mark_deleted(1)
        session.restore(1)

        notifier.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_discard(self, loaded):
        """Discard drops the active tab's edits only."""
        session, _, _ = loaded
        session.mutate(1, "name", "x")
        session.mutate(3, "name", "y", tab_id="tabB")

        session.discard()

        assert not session.is_dirty("tabA")
        assert session.is_dirty("tabB")
        assert session.get_record(1).name == "山田太郎"

    @pytest.mark.asyncio
    async def test_dirty_tabs_in_tab_order(self, loaded):
        session, _, _ = loaded
        session.mutate(3, "name", "y", tab_id="tabB")
        session.mutate(1, "name", "x")
        assert session.dirty_tabs() == ["tabA", "tabB"]
        assert session.has_unsaved_changes()

    @pytest.mark.asyncio
    async def test_custom_tabs_and_allocator(self):
        """Tabs and the id floor are configurable."""
        tabs = (TabDefinition("tabA", "A"),)
        session = TabSessionController(
            MockPersistence(make_data(), load_delay=0, save_delay=0),
            FakeConfirmation(),
            tabs=tabs,
            id_allocator=IdAllocator(100),
        )
        await session.load_all()

        assert session.tabs == tabs
        assert session.add_record() == 100


class TestCommit:
    """Tests for commits through the session."""

    @pytest.mark.asyncio
    async def test_success_notifies(self):
        notifier = MagicMock()
        session, _, _ = make_session(notifier=notifier)
        await session.load_all()
        session.mutate(1, "age", 31)

        await session.commit()

        notifier.info.assert_called_once_with(SAVE_SUCCESS_TITLE, "タブ A のデータを保存しました")
        notifier.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_notifies_and_keeps_edits(self):
        notifier = MagicMock()
        persistence = BrokenPersistence()
        session = TabSessionController(persistence, FakeConfirmation(), notifier=notifier)
        session.store.load("tabA", make_data()["tabA"])
        session.mutate(1, "age", 31)

        result = await session.commit()

        assert result.status is CommitStatus.FAILED
        notifier.error.assert_called_once_with(SAVE_FAILURE_TITLE, SAVE_FAILURE_MESSAGE)
        notifier.info.assert_not_called()
        assert session.is_dirty()
        assert session.get_record(1).age == 31

    @pytest.mark.asyncio
    async def test_switch_during_commit(self):
        """Switching tabs while a commit is in flight is allowed."""
        persistence = GatedPersistence(make_data())
        session, confirmation, _ = make_session(persistence)
        await session.load_all()
        session.mutate(1, "age", 31)

        task = asyncio.create_task(session.commit())
        await persistence.started.wait()
        assert session.is_saving()

        assert await session.request_switch("tabB") is SwitchOutcome.SWITCHED
        assert confirmation.calls == 1

        persistence.release.set()
        result = await task

        assert result.ok
        assert session.active_tab == "tabB"
        assert not session.is_dirty("tabA")
        assert not session.is_saving("tabA")

    @pytest.mark.asyncio
    async def test_saving_changes_notify_observers(self):
        """Observers hear about the saving flag for the committed tab."""
        session, _, _ = make_session()
        await session.load_all()
        seen = []
        session.add_observer(lambda c, tab_id: seen.append((tab_id, c.is_saving("tabA"))))

        await session.commit()

        assert ("tabA", True) in seen
        assert seen[-1] == ("tabA", False)
