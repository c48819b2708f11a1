"""
Service Registry

Session-scoped singletons for services, keyed optionally by page context.

A page for one country must reuse one PreferenceSynchronizer and one
NavigationMemory across Streamlit reruns rather than creating competing
instances, so context-bound services are stored under
"{service_name}_{context_key}".
"""

from typing import Callable, MutableMapping, Optional, TypeVar

T = TypeVar('T')

_REGISTRY_PREFIX = "service:"


def _store(store: Optional[MutableMapping]) -> MutableMapping:
    if store is not None:
        return store
    import streamlit as st

    return st.session_state


def _service_key(service_name: str, context_key: Optional[str] = None) -> str:
    if context_key:
        return f"{_REGISTRY_PREFIX}{service_name}_{context_key}"
    return f"{_REGISTRY_PREFIX}{service_name}"


def get_service(
    service_name: str,
    factory: Callable[[], T],
    context_key: Optional[str] = None,
    store: Optional[MutableMapping] = None,
) -> T:
    """Return the registered instance, creating it with `factory` on first use.

    Example:
        sync = get_service("preference_sync", lambda: PreferenceSynchronizer(...),
                           context_key=country_id)
    """
    target = _store(store)
    key = _service_key(service_name, context_key)
    if key not in target:
        target[key] = factory()
    return target[key]


def register_service(
    service_name: str,
    instance: T,
    context_key: Optional[str] = None,
    store: Optional[MutableMapping] = None,
) -> T:
    """Register a pre-built instance, replacing any existing one."""
    _store(store)[_service_key(service_name, context_key)] = instance
    return instance


def has_service(service_name: str, context_key: Optional[str] = None,
                store: Optional[MutableMapping] = None) -> bool:
    return _service_key(service_name, context_key) in _store(store)


def clear_services(*service_names: str, context_key: Optional[str] = None,
                   store: Optional[MutableMapping] = None) -> None:
    """Drop services so they are re-created on next access."""
    target = _store(store)
    for name in service_names:
        target.pop(_service_key(name, context_key), None)


def clear_context(context_key: str, store: Optional[MutableMapping] = None) -> None:
    """Drop every service registered for one page context."""
    target = _store(store)
    suffix = f"_{context_key}"
    for key in [k for k in list(target.keys())
                if isinstance(k, str) and k.startswith(_REGISTRY_PREFIX) and k.endswith(suffix)]:
        target.pop(key, None)
