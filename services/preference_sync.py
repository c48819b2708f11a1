"""
Preference Synchronizer

Owns the in-memory ViewPreferences of one page context and keeps it in step
with the PreferenceStore.

State machine (per key):

    UNINITIALIZED --load result / None--> SYNCED   (apply, no save)
    UNINITIALIZED --user change---------> SYNCED   (apply, save; late load dropped)
    SYNCED        --user change---------> SYNCED   (apply, save if changed)
    any           --reset(new key)------> UNINITIALIZED

Applying a loaded snapshot notifies subscribers exactly like a user edit
would. While it runs, `applying_remote` is raised and any change that
subscribers push back is treated as an echo: the flag is consumed and the
change dropped, so loading never triggers a save.

Load results are applied only while UNINITIALIZED and only for the current
key; anything else is a stale response and is dropped.
"""

from typing import Any, Callable, Mapping, Optional, Sequence
import logging

from domain import (
    FilterOption,
    PreferenceKey,
    PreferenceRecord,
    SyncPhase,
    ViewMode,
    ViewPreferences,
    normalize_sort,
    required_sort_fields,
)
from logging_config import setup_logging
from services.preference_store import PreferenceStore

logger = setup_logging(__name__, log_file="preference_sync.log")

Subscriber = Callable[[ViewPreferences], None]


class PreferenceSynchronizer:
    """
    Mediates between the page and the PreferenceStore for one key.

    Example:
        sync = PreferenceSynchronizer(store, PreferenceKey("country-1"), defaults,
                                      required_sort=("extPick",))
        sync.mount()                      # loads once, applies, never saves
        sync.set_group_mode(True)         # optimistic update + save
        sync.preferences.group_mode       # True
    """

    def __init__(
        self,
        store: PreferenceStore,
        key: PreferenceKey,
        defaults: Optional[ViewPreferences] = None,
        required_sort: Sequence[str] = (),
        logger_instance: Optional[logging.Logger] = None,
    ):
        self._store = store
        self._key = key
        self._required_sort: tuple[str, ...] = tuple(required_sort)
        self._defaults = self._normalized(defaults or ViewPreferences())
        self._logger = logger_instance or logger

        self._phase = SyncPhase.UNINITIALIZED
        self._preferences = self._defaults
        self._last_saved: Optional[ViewPreferences] = None
        self._applying_remote = False
        self._pending_loads: set[PreferenceKey] = set()
        self._subscribers: list[Subscriber] = []

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def key(self) -> PreferenceKey:
        return self._key

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def preferences(self) -> ViewPreferences:
        return self._preferences

    @property
    def defaults(self) -> ViewPreferences:
        return self._defaults

    @property
    def required_sort(self) -> tuple[str, ...]:
        return self._required_sort

    @property
    def applying_remote(self) -> bool:
        return self._applying_remote

    @property
    def is_loading(self) -> bool:
        return self._phase is SyncPhase.UNINITIALIZED

    def is_load_pending(self, key: Optional[PreferenceKey] = None) -> bool:
        return (key or self._key) in self._pending_loads

    def record(self) -> PreferenceRecord:
        """Current in-memory snapshot as a PreferenceRecord."""
        return PreferenceRecord(key=self._key, preferences=self._preferences, tier=self._key.tier)

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for applied changes; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._preferences)
            except Exception as e:
                self._logger.error(f"Preference subscriber failed: {e}")

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def begin_load(self) -> Optional[PreferenceKey]:
        """
        Mark a load as in flight for the current key.

        Returns:
            The key to load, or None when no load should be issued (already
            synced, or a load for this key is already pending)
        """
        if self._phase is not SyncPhase.UNINITIALIZED:
            return None
        if self._key in self._pending_loads:
            self._logger.debug(f"Load already pending for {self._key.storage_key}")
            return None
        self._pending_loads.add(self._key)
        return self._key

    def mount(self) -> bool:
        """
        Load and apply the stored snapshot once.

        Safe to call on every rerun: after the first successful apply it
        does nothing.

        Returns:
            True if a snapshot (stored or default) was applied by this call
        """
        key = self.begin_load()
        if key is None:
            return False
        try:
            loaded = self._store.load(key, base=self._defaults)
        except Exception as e:
            self._logger.error(f"Preference load raised for {key.storage_key}: {e}")
            loaded = None
        return self.receive_loaded(key, loaded)

    def receive_loaded(self, key: PreferenceKey, loaded: Optional[ViewPreferences]) -> bool:
        """
        Apply a completed load.

        Args:
            key: The key the load was issued for
            loaded: Stored snapshot, or None to apply defaults

        Returns:
            True if applied, False if dropped as stale
        """
        self._pending_loads.discard(key)
        if key != self._key:
            self._logger.debug(f"Dropping load for stale key {key.storage_key}")
            return False
        if self._phase is not SyncPhase.UNINITIALIZED:
            self._logger.debug(f"Dropping late load for {key.storage_key}; already synced")
            return False

        snapshot = self._normalized(loaded) if loaded is not None else self._defaults
        self._apply_remote(snapshot)
        self._last_saved = snapshot
        self._phase = SyncPhase.SYNCED
        self._logger.info(
            f"Applied {'stored' if loaded is not None else 'default'} preferences for {key.storage_key}"
        )
        return True

    def _apply_remote(self, snapshot: ViewPreferences) -> None:
        self._applying_remote = True
        try:
            self._preferences = snapshot
            self._notify()
        finally:
            self._applying_remote = False

    # -------------------------------------------------------------------------
    # Identity / options
    # -------------------------------------------------------------------------

    def reset(self, key: PreferenceKey, defaults: Optional[ViewPreferences] = None) -> None:
        """
        Switch to a new key (login/logout, other country).

        In-flight saves for the old key are left alone; in-flight loads for
        it are dropped when they arrive.
        """
        if defaults is not None:
            self._defaults = self._normalized(defaults)
        self._logger.info(f"Resetting preferences from {self._key.storage_key} to {key.storage_key}")
        self._key = key
        self._phase = SyncPhase.UNINITIALIZED
        self._preferences = self._defaults
        self._last_saved = None
        self._applying_remote = False

    def set_required_sort(self, required_sort: Sequence[str]) -> None:
        """Replace the required sort fields and re-apply them to current state."""
        self._required_sort = tuple(required_sort)
        self._defaults = self._normalized(self._defaults)
        self._preferences = self._normalized(self._preferences)

    def _normalized(self, preferences: ViewPreferences) -> ViewPreferences:
        return preferences.with_sort(preferences.sort, self._required_sort)

    # -------------------------------------------------------------------------
    # User changes
    # -------------------------------------------------------------------------

    def update(self, changes: Mapping[str, Any]) -> bool:
        """
        Apply a user-initiated change.

        Returns:
            True if state changed; False for echoes, invalid or no-op changes
        """
        if self._applying_remote:
            self._applying_remote = False
            self._logger.debug(f"Dropping echoed change {sorted(changes)} while applying loaded preferences")
            return False

        try:
            candidate = self._preferences.merged(changes)
        except (TypeError, ValueError) as e:
            self._logger.error(f"Rejected preference change {dict(changes)}: {e}")
            return False
        return self._commit(candidate)

    def _commit(self, candidate: ViewPreferences) -> bool:
        candidate = self._guarded(self._preferences, self._normalized(candidate))
        if candidate == self._preferences:
            return False

        self._preferences = candidate
        if self._phase is SyncPhase.UNINITIALIZED:
            # the user's edit wins over any load still in flight
            self._phase = SyncPhase.SYNCED
        self._notify()
        self._save(candidate)
        return True

    @staticmethod
    def _guarded(previous: ViewPreferences, candidate: ViewPreferences) -> ViewPreferences:
        """Keep a non-empty category/type selection from becoming empty."""
        guarded = {}
        if previous.categories and not candidate.categories:
            guarded["categories"] = previous.categories
        if previous.types and not candidate.types:
            guarded["types"] = previous.types
        return candidate.merged(guarded) if guarded else candidate

    def _save(self, snapshot: ViewPreferences) -> None:
        if self._last_saved is not None and not self._last_saved.changed_fields(snapshot):
            return
        payload = snapshot.to_dict()
        try:
            saved = self._store.save(self._key, payload)
        except Exception as e:
            self._logger.error(f"Preference save raised for {self._key.storage_key}: {e}")
            saved = False
        if saved:
            self._last_saved = snapshot
        else:
            self._logger.warning(f"Preferences for {self._key.storage_key} kept in memory only")

    # -------------------------------------------------------------------------
    # User actions
    # -------------------------------------------------------------------------

    def set_view_mode(self, view_mode: ViewMode) -> bool:
        if self._applying_remote:
            return self.update({"view_mode": view_mode})
        return self._commit(self._preferences.with_view_mode(view_mode))

    def set_group_mode(self, group_mode: bool) -> bool:
        if self._applying_remote:
            return self.update({"group_mode": group_mode})
        return self._commit(self._preferences.with_group_mode(group_mode))

    def set_search(self, search: str) -> bool:
        return self.update({"search": search or ""})

    def set_sort(self, sort: Sequence[str]) -> bool:
        return self.update({"sort": normalize_sort(sort, self._required_sort)})

    def toggle_sort_field(self, field_name: str, enabled: bool) -> bool:
        if self._applying_remote:
            return self.update({})
        return self._commit(self._preferences.with_sort_field(field_name, enabled, self._required_sort))

    def toggle_category(self, category_id: str, selected: bool) -> bool:
        if self._applying_remote:
            return self.update({})
        return self._commit(self._preferences.with_category(category_id, selected))

    def toggle_type(self, type_id: str, selected: bool) -> bool:
        if self._applying_remote:
            return self.update({})
        return self._commit(self._preferences.with_type(type_id, selected))

    def select_all_categories(self, options: Sequence[FilterOption], selected: bool) -> bool:
        if self._applying_remote:
            return self.update({})
        return self._commit(self._preferences.with_all_categories(options, selected))

    def select_all_types(self, options: Sequence[FilterOption], selected: bool) -> bool:
        if self._applying_remote:
            return self.update({})
        return self._commit(self._preferences.with_all_types(options, selected))


# =============================================================================
# Session-scoped accessor for Streamlit pages
# =============================================================================

def get_preference_synchronizer(
    context_id: str,
    user_id: Optional[str],
    defaults: ViewPreferences,
    sort_options: Sequence = (),
    store: Optional[PreferenceStore] = None,
) -> PreferenceSynchronizer:
    """
    The one synchronizer for `context_id` in this browser session.

    A change of signed-in user resets the existing synchronizer to the new
    key instead of creating a second one.
    """
    from state import get_service

    key = PreferenceKey(context_id=context_id, user_id=user_id)
    required = required_sort_fields(sort_options)

    def _factory() -> PreferenceSynchronizer:
        if store is not None:
            preference_store = store
        else:
            from config import DatabaseConfig
            from repositories.preference_repo import PreferenceRepository

            preference_store = PreferenceStore(
                repository=PreferenceRepository(DatabaseConfig()),
                sort_options=sort_options,
            )
        return PreferenceSynchronizer(preference_store, key, defaults, required_sort=required)

    sync = get_service("preference_sync", _factory, context_key=context_id)
    if sync.key != key:
        sync.reset(key, defaults)
    return sync
