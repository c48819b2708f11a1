"""
Session Storage

Browser-session storage for the ephemeral preference tier and the dialog
memento. Backed by Streamlit's session state, which lives exactly as long as
the browser session, and stores JSON-encoded strings the way browser
sessionStorage does.

Tests and CLI code pass a plain dict instead of st.session_state.
"""

import json
from typing import Any, MutableMapping, Optional

from logging_config import setup_logging

logger = setup_logging(__name__, log_file="session_storage.log")

_MISSING = object()


def _default_backing() -> MutableMapping:
    import streamlit as st

    return st.session_state


class SessionStorage:
    """
    Key/value storage with JSON-encoded values.

    Malformed stored values are treated as absent: get_json() logs a
    warning and returns the default instead of raising.

    Example:
        storage = SessionStorage()
        storage.set_json("groupMode-123", True)
        storage.get_json("groupMode-123", default=False)  # True
    """

    def __init__(self, backing: Optional[MutableMapping] = None, prefix: str = "sessionStorage:"):
        self._backing = backing
        self._prefix = prefix

    @property
    def backing(self) -> MutableMapping:
        if self._backing is None:
            self._backing = _default_backing()
        return self._backing

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get_item(self, key: str) -> Optional[str]:
        """Raw stored string, or None."""
        value = self.backing.get(self._key(key))
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        self.backing[self._key(key)] = str(value)

    def remove_item(self, key: str) -> None:
        self.backing.pop(self._key(key), None)

    def has_item(self, key: str) -> bool:
        return self._key(key) in self.backing

    def get_json(self, key: str, default: Any = None) -> Any:
        """
        Decode a JSON value.

        Args:
            key: Storage key
            default: Returned when the key is absent or the value is malformed

        Returns:
            The decoded value or `default`
        """
        raw = self.backing.get(self._key(key), _MISSING)
        if raw is _MISSING or raw is None:
            return default
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Ignoring malformed session value for '{key}': {e}")
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.backing[self._key(key)] = json.dumps(value)

    def keys(self) -> list[str]:
        return [k[len(self._prefix):] for k in list(self.backing.keys())
                if isinstance(k, str) and k.startswith(self._prefix)]

    def clear(self) -> None:
        for key in self.keys():
            self.remove_item(key)


def ss_init(defaults: dict[str, Any], store: Optional[MutableMapping] = None) -> None:
    """Seed widget/session keys that do not exist yet."""
    target = store if store is not None else _default_backing()
    for key, default in defaults.items():
        target.setdefault(key, default)


def ss_get(key: str, default: Any = None, store: Optional[MutableMapping] = None) -> Any:
    """Session value for `key`, or `default` when absent or None."""
    source = store if store is not None else _default_backing()
    value = source.get(key)
    return default if value is None else value
