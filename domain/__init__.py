"""
Domain Models Package

Core domain models for the catalog browsing engine.

Key Components:
- Enums: ViewMode, ItemKind, StorageTier, SyncPhase
- Models: CatalogEntry, SingleItem, VariantCluster, SultanBucket, CategoryBucket
- Preferences: ViewPreferences, SortOption, FilterOption, PreferenceKey, PreferenceRecord
- Navigation: DialogMemento
"""

from domain.enums import ViewMode, ItemKind, StorageTier, SyncPhase
from domain.models import (
    PLACEHOLDER_IMAGE,
    CatalogEntry,
    SingleItem,
    VariantCluster,
    DisplayItem,
    SultanBucket,
    CategoryBucket,
    derive_base_catalog_number,
)
from domain.preferences import (
    ViewPreferences,
    SortOption,
    FilterOption,
    PreferenceKey,
    PreferenceRecord,
    normalize_sort,
    required_sort_fields,
    sort_ids_to_fields,
    sort_fields_to_ids,
)
from domain.navigation import DialogMemento

__all__ = [
    # Enums
    "ViewMode",
    "ItemKind",
    "StorageTier",
    "SyncPhase",
    # Models
    "PLACEHOLDER_IMAGE",
    "CatalogEntry",
    "SingleItem",
    "VariantCluster",
    "DisplayItem",
    "SultanBucket",
    "CategoryBucket",
    "derive_base_catalog_number",
    # Preferences
    "ViewPreferences",
    "SortOption",
    "FilterOption",
    "PreferenceKey",
    "PreferenceRecord",
    "normalize_sort",
    "required_sort_fields",
    "sort_ids_to_fields",
    "sort_fields_to_ids",
    # Navigation
    "DialogMemento",
]
