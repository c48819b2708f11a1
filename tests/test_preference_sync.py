"""
Tests for PreferenceSynchronizer

Covers the load/apply/save state machine: no save on load, echo
suppression, late and stale loads, the pending-load guard, identity
resets and save failures.
"""
import pytest
from unittest.mock import Mock, patch

from domain import FilterOption, PreferenceKey, SyncPhase, ViewMode, ViewPreferences
from services.preference_store import PreferenceStore
from services.preference_sync import PreferenceSynchronizer, get_preference_synchronizer

KEY = PreferenceKey("turkey")
REQUIRED = ("extPick",)
DEFAULTS = ViewPreferences(sort=("extPick",), categories=("cat-1", "cat-2"), types=("type-1",))


@pytest.fixture
def store():
    mock_store = Mock(spec=PreferenceStore)
    mock_store.load.return_value = None
    mock_store.save.return_value = True
    return mock_store


@pytest.fixture
def sync(store):
    return PreferenceSynchronizer(store, KEY, DEFAULTS, required_sort=REQUIRED)


class TestLoading:
    def test_starts_uninitialized_with_defaults(self, sync):
        assert sync.phase is SyncPhase.UNINITIALIZED
        assert sync.is_loading
        assert sync.preferences == DEFAULTS

    def test_mount_without_stored_applies_defaults_without_saving(self, sync, store):
        assert sync.mount()

        assert sync.phase is SyncPhase.SYNCED
        assert sync.preferences == DEFAULTS
        store.load.assert_called_once_with(KEY, base=DEFAULTS)
        store.save.assert_not_called()

    def test_mount_applies_stored_preferences_without_saving(self, sync, store):
        store.load.return_value = DEFAULTS.with_group_mode(True)

        sync.mount()

        assert sync.preferences.group_mode is True
        store.save.assert_not_called()

    def test_loaded_sort_gets_required_fields(self, sync, store):
        store.load.return_value = DEFAULTS.merged({"sort": ["denomination"]})

        sync.mount()

        assert sync.preferences.sort == ("denomination", "extPick")

    def test_mount_is_idempotent(self, sync, store):
        sync.mount()
        assert not sync.mount()
        store.load.assert_called_once()

    def test_load_error_applies_defaults(self, sync, store):
        store.load.side_effect = RuntimeError("backend down")

        assert sync.mount()
        assert sync.preferences == DEFAULTS
        assert sync.phase is SyncPhase.SYNCED

    def test_duplicate_load_not_issued_while_pending(self, sync):
        assert sync.begin_load() == KEY
        assert sync.is_load_pending()
        assert sync.begin_load() is None

        sync.receive_loaded(KEY, None)
        assert not sync.is_load_pending()

    def test_late_load_after_user_change_is_dropped(self, sync, store):
        key = sync.begin_load()
        sync.set_group_mode(True)

        assert sync.phase is SyncPhase.SYNCED
        assert not sync.receive_loaded(key, DEFAULTS.with_view_mode(ViewMode.LIST))
        assert sync.preferences.group_mode is True
        assert sync.preferences.view_mode is ViewMode.GRID

    def test_stale_key_load_is_dropped(self, sync):
        old_key = sync.begin_load()
        sync.reset(PreferenceKey("turkey", user_id="u-1"))

        assert not sync.receive_loaded(old_key, DEFAULTS.with_group_mode(True))
        assert sync.phase is SyncPhase.UNINITIALIZED
        assert sync.preferences.group_mode is False


class TestEchoSuppression:
    def test_subscriber_writes_during_apply_are_not_saved(self, sync, store):
        store.load.return_value = DEFAULTS.with_group_mode(True)
        seen = []

        def echo(prefs):
            seen.append(prefs.group_mode)
            # a widget bound to the state pushes the value straight back
            sync.update({"group_mode": prefs.group_mode, "search": "echo"})

        sync.subscribe(echo)
        sync.mount()

        assert seen == [True]
        assert sync.preferences.search == ""
        assert not sync.applying_remote
        store.save.assert_not_called()

    def test_flag_cleared_after_apply(self, sync, store):
        sync.mount()
        assert not sync.applying_remote

        assert sync.set_group_mode(True)
        store.save.assert_called_once()


class TestUserChanges:
    def test_change_is_optimistic_and_saved(self, sync, store):
        sync.mount()
        assert sync.set_view_mode(ViewMode.LIST)

        assert sync.preferences.view_mode is ViewMode.LIST
        saved_key, payload = store.save.call_args[0]
        assert saved_key == KEY
        assert payload["view_mode"] == "list"
        assert payload["sort"] == ["extPick"]

    def test_noop_change_does_not_save(self, sync, store):
        sync.mount()
        assert not sync.set_group_mode(False)
        store.save.assert_not_called()

    def test_required_sort_cannot_be_removed(self, sync, store):
        sync.mount()
        sync.toggle_sort_field("faceValue", True)
        sync.toggle_sort_field("extPick", False)

        assert sync.preferences.sort == ("faceValue", "extPick")

    def test_update_keeps_required_sort(self, sync):
        sync.mount()
        sync.set_sort(["year"])
        assert sync.preferences.sort == ("year", "extPick")

        sync.update({"sort": []})
        assert sync.preferences.sort == ("extPick",)

    def test_selection_never_emptied(self, sync):
        sync.mount()
        sync.update({"categories": []})
        assert sync.preferences.categories == ("cat-1", "cat-2")

        options = [FilterOption("cat-1", "A"), FilterOption("cat-2", "B")]
        sync.select_all_categories(options, False)
        assert sync.preferences.categories == ("cat-1",)

        sync.toggle_category("cat-1", False)
        assert sync.preferences.categories == ("cat-1",)

    def test_invalid_change_rejected(self, sync, store):
        sync.mount()
        assert not sync.update({"group_mode": "yes"})
        store.save.assert_not_called()

    def test_save_failure_keeps_local_state_and_retries_on_next_change(self, sync, store):
        sync.mount()
        store.save.return_value = False

        sync.set_group_mode(True)
        assert sync.preferences.group_mode is True

        store.save.return_value = True
        sync.set_search("lira")
        assert store.save.call_count == 2
        assert store.save.call_args[0][1]["group_mode"] is True

    def test_save_exception_is_swallowed(self, sync, store):
        sync.mount()
        store.save.side_effect = ConnectionError("backend down")

        assert sync.set_group_mode(True)
        assert sync.preferences.group_mode is True

    def test_subscribers_notified_and_unsubscribed(self, sync):
        sync.mount()
        listener = Mock()
        unsubscribe = sync.subscribe(listener)

        sync.set_group_mode(True)
        listener.assert_called_once_with(sync.preferences)

        unsubscribe()
        sync.set_group_mode(False)
        listener.assert_called_once()

    def test_failing_subscriber_does_not_block_change(self, sync, store):
        sync.mount()
        sync.subscribe(Mock(side_effect=RuntimeError("widget gone")))

        assert sync.set_group_mode(True)
        store.save.assert_called_once()


class TestReset:
    def test_reset_loads_again_for_new_key(self, sync, store):
        sync.mount()
        sync.set_group_mode(True)

        user_key = PreferenceKey("turkey", user_id="u-1")
        sync.reset(user_key)

        assert sync.phase is SyncPhase.UNINITIALIZED
        assert sync.preferences == DEFAULTS

        store.load.return_value = DEFAULTS.with_view_mode(ViewMode.LIST)
        sync.mount()
        store.load.assert_called_with(user_key, base=DEFAULTS)
        assert sync.preferences.view_mode is ViewMode.LIST


class TestRegistryAccessor:
    def test_reuses_one_synchronizer_per_context(self, store):
        session = {}

        with patch("state.service_registry._store", side_effect=lambda s: session):
            first = get_preference_synchronizer("turkey", None, DEFAULTS, store=store)
            again = get_preference_synchronizer("turkey", None, DEFAULTS, store=store)
            signed_in = get_preference_synchronizer("turkey", "u-1", DEFAULTS, store=store)

        assert first is again is signed_in
        assert signed_in.key == PreferenceKey("turkey", "u-1")
