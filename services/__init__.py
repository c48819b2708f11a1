"""
Services Package

Business logic for the catalog browser, free of Streamlit widgets.

Each service module follows these principles:
1. Single Responsibility - one concern per service
2. Dependency Injection - stores and storages passed in, not created
3. Pure where possible - sorting, filtering and grouping have no I/O

Available Services:
- SortEngine: ordering by a list of sort field keys
- Grouping: category / sultan buckets with variant clusters
- Filters: search, category and type selection
- PreferenceStore: tiered load/save of ViewPreferences
- PreferenceSynchronizer: in-memory preferences kept in step with the store
- NavigationMemory: reopen a cluster dialog after visiting a detail page
"""

# -----------------------------------------------------------------------------
# Sorting / grouping / filtering
# -----------------------------------------------------------------------------
from services.sort_service import (
    AuxTables,
    SortEngine,
    DEFAULT_COMPARATORS,
    configure_collation,
    order_entries,
)
from services.grouping_service import (
    GroupingService,
    build_groups,
    mix_items,
    find_cluster,
    find_entries_by_ids,
    flatten_entries,
    count_display_items,
)
from services.filter_service import filter_entries, normalize_type

# -----------------------------------------------------------------------------
# Preferences
# -----------------------------------------------------------------------------
from services.preference_store import PreferenceStore
from services.preference_sync import PreferenceSynchronizer, get_preference_synchronizer

# -----------------------------------------------------------------------------
# Navigation
# -----------------------------------------------------------------------------
from services.navigation_memory import (
    NavigationMemory,
    ReopenTarget,
    resolve_reopen_target,
    restore_dialog,
)

__all__ = [
    # Sorting
    'AuxTables',
    'SortEngine',
    'DEFAULT_COMPARATORS',
    'configure_collation',
    'order_entries',

    # Grouping
    'GroupingService',
    'build_groups',
    'mix_items',
    'find_cluster',
    'find_entries_by_ids',
    'flatten_entries',
    'count_display_items',

    # Filtering
    'filter_entries',
    'normalize_type',

    # Preferences
    'PreferenceStore',
    'PreferenceSynchronizer',
    'get_preference_synchronizer',

    # Navigation
    'NavigationMemory',
    'ReopenTarget',
    'resolve_reopen_target',
    'restore_dialog',
]
