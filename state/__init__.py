"""
State Management Module

Session-scoped state for the Streamlit presentation layer:
- SessionStorage: JSON values in browser-session storage (ephemeral tier,
  dialog memento)
- Service registry: per-session, optionally per-context singletons

Usage:
    from state import SessionStorage, get_service
"""

from state.session_storage import SessionStorage, ss_get, ss_init
from state.service_registry import (
    get_service,
    register_service,
    clear_services,
    clear_context,
    has_service,
)

__all__ = [
    'SessionStorage',
    'ss_get',
    'ss_init',
    'get_service',
    'register_service',
    'clear_services',
    'clear_context',
    'has_service',
]
