"""
Preference Store

Loads and saves ViewPreferences for a PreferenceKey, choosing the storage
tier from the key:

    authenticated user  -> durable tier (user_filter_preferences row)
    no user             -> ephemeral tier (browser-session storage per country)

There is no fallback from the durable tier to the ephemeral one.

Failure semantics:
- load() never raises: backend errors and malformed values are logged and
  reported as "nothing stored" (None), so the caller applies defaults
- save() never raises: failures are logged and reported as False; the caller
  does not retry and keeps its optimistic state
"""

from typing import Any, Mapping, Optional, Sequence
import logging

from domain import (
    PreferenceKey,
    SortOption,
    StorageTier,
    ViewMode,
    ViewPreferences,
    sort_fields_to_ids,
    sort_ids_to_fields,
)
from logging_config import setup_logging
from state.session_storage import SessionStorage

logger = setup_logging(__name__, log_file="preference_store.log")


def view_mode_key(context_id: str) -> str:
    return f"viewMode-{context_id}"


def group_mode_key(context_id: str) -> str:
    return f"groupMode-{context_id}"


def filters_key(context_id: str) -> str:
    return f"filters-{context_id}"


_FILTER_FIELDS = ("sort", "categories", "types", "search")


class PreferenceStore:
    """
    Tiered preference persistence.

    Sort fields are stored durably as option ids; the store maps them to and
    from field keys with the sort options of the current country.

    Example:
        store = PreferenceStore(repository=PreferenceRepository(DatabaseConfig()),
                                session=SessionStorage(),
                                sort_options=options)
        prefs = store.load(PreferenceKey("country-1", user_id="u-7"), base=defaults)
        store.save(key, {"group_mode": True})
    """

    def __init__(
        self,
        repository=None,
        session: Optional[SessionStorage] = None,
        sort_options: Sequence[SortOption] = (),
        logger_instance: Optional[logging.Logger] = None,
    ):
        self._repository = repository
        self._session = session or SessionStorage()
        self._sort_options: tuple[SortOption, ...] = tuple(sort_options)
        self._logger = logger_instance or logger

    @property
    def sort_options(self) -> tuple[SortOption, ...]:
        return self._sort_options

    def set_sort_options(self, sort_options: Sequence[SortOption]) -> None:
        self._sort_options = tuple(sort_options)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def load(self, key: PreferenceKey, base: Optional[ViewPreferences] = None) -> Optional[ViewPreferences]:
        """
        Stored preferences for `key`, merged over `base`.

        Args:
            key: Whose preferences, for which context
            base: Values for fields the tier does not store (defaults)

        Returns:
            ViewPreferences, or None when nothing is stored or loading failed
        """
        try:
            if key.tier is StorageTier.DURABLE:
                stored = self._load_durable(key)
            else:
                stored = self._load_ephemeral(key)
        except Exception as e:
            self._logger.error(f"Failed to load preferences for {key.storage_key}: {e}")
            return None

        if not stored:
            self._logger.debug(f"No stored preferences for {key.storage_key}")
            return None

        try:
            return ViewPreferences.from_dict(stored, base=base)
        except (TypeError, ValueError) as e:
            self._logger.warning(f"Malformed stored preferences for {key.storage_key}: {e}")
            return None

    def save(self, key: PreferenceKey, partial: Mapping[str, Any]) -> bool:
        """
        Merge `partial` into the stored preferences for `key`.

        Only fields present in `partial` are written.

        Returns:
            True on success, False if the write failed
        """
        try:
            coerced = ViewPreferences.coerce_partial(partial)
        except (TypeError, ValueError) as e:
            self._logger.error(f"Refusing to save malformed preferences for {key.storage_key}: {e}")
            return False
        if not coerced:
            return True

        try:
            if key.tier is StorageTier.DURABLE:
                self._save_durable(key, coerced)
            else:
                self._save_ephemeral(key, coerced)
        except Exception as e:
            self._logger.error(f"Failed to save preferences for {key.storage_key}: {e}")
            return False
        return True

    # -------------------------------------------------------------------------
    # Durable tier
    # -------------------------------------------------------------------------

    def _require_repository(self):
        if self._repository is None:
            raise RuntimeError("Durable preference tier is not configured")
        return self._repository

    def _load_durable(self, key: PreferenceKey) -> Optional[dict[str, Any]]:
        row = self._require_repository().fetch(key.user_id, key.context_id)
        if row is None:
            return None

        stored: dict[str, Any] = {}
        if row.get("selected_categories") is not None:
            stored["categories"] = list(row["selected_categories"])
        if row.get("selected_types") is not None:
            stored["types"] = list(row["selected_types"])
        if row.get("selected_sort_options") is not None:
            stored["sort"] = list(sort_ids_to_fields(row["selected_sort_options"], self._sort_options))
        if isinstance(row.get("group_mode"), bool):
            stored["group_mode"] = row["group_mode"]
        if row.get("view_mode"):
            try:
                stored["view_mode"] = ViewMode.from_string(row["view_mode"])
            except ValueError:
                self._logger.warning(f"Ignoring unknown stored view mode {row['view_mode']!r}")
        return stored

    def _save_durable(self, key: PreferenceKey, coerced: Mapping[str, Any]) -> None:
        columns: dict[str, Any] = {}
        if "categories" in coerced:
            columns["selected_categories"] = list(coerced["categories"])
        if "types" in coerced:
            columns["selected_types"] = list(coerced["types"])
        if "sort" in coerced:
            columns["selected_sort_options"] = list(sort_fields_to_ids(coerced["sort"], self._sort_options))
        if "group_mode" in coerced:
            columns["group_mode"] = coerced["group_mode"]
        if "view_mode" in coerced:
            columns["view_mode"] = coerced["view_mode"].value
        # search is session-only
        if columns:
            self._require_repository().save(key.user_id, key.context_id, columns)

    # -------------------------------------------------------------------------
    # Ephemeral tier
    # -------------------------------------------------------------------------

    def _load_ephemeral(self, key: PreferenceKey) -> Optional[dict[str, Any]]:
        context = key.context_id
        stored: dict[str, Any] = {}

        view_mode = self._session.get_json(view_mode_key(context))
        if view_mode is not None:
            try:
                stored["view_mode"] = ViewMode.from_string(view_mode)
            except ValueError:
                self._logger.warning(f"Ignoring unknown session view mode {view_mode!r}")

        group_mode = self._session.get_json(group_mode_key(context))
        if isinstance(group_mode, bool):
            stored["group_mode"] = group_mode
        elif group_mode is not None:
            self._logger.warning(f"Ignoring non-boolean session group mode {group_mode!r}")

        filters = self._session.get_json(filters_key(context))
        if isinstance(filters, dict):
            for name in _FILTER_FIELDS:
                if name in filters:
                    stored[name] = filters[name]
        elif filters is not None:
            self._logger.warning(f"Ignoring malformed session filters for {context}")

        return stored or None

    def _save_ephemeral(self, key: PreferenceKey, coerced: Mapping[str, Any]) -> None:
        context = key.context_id
        if "view_mode" in coerced:
            self._session.set_json(view_mode_key(context), coerced["view_mode"].value)
        if "group_mode" in coerced:
            self._session.set_json(group_mode_key(context), coerced["group_mode"])

        filter_changes = {name: coerced[name] for name in _FILTER_FIELDS if name in coerced}
        if filter_changes:
            current = self._session.get_json(filters_key(context), default={})
            if not isinstance(current, dict):
                current = {}
            for name, value in filter_changes.items():
                current[name] = list(value) if isinstance(value, tuple) else value
            self._session.set_json(filters_key(context), current)
