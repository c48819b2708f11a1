"""
Repository Layer Package

Repository classes that encapsulate all database access.

Key Components:
- BaseRepository: Foundation class with read_df() and missing-schema recovery
- CatalogRepository: Catalog rows plus category, type and sort option definitions
- PreferenceRepository: Durable per-user view preferences
"""

from repositories.base import BaseRepository
from repositories.catalog_repo import (
    CatalogRepository,
    get_catalog_repository,
    fetch_entries_cached,
    fetch_options_cached,
    invalidate_catalog_caches,
)
from repositories.preference_repo import PreferenceRepository

__all__ = [
    "BaseRepository",
    "CatalogRepository",
    "get_catalog_repository",
    "fetch_entries_cached",
    "fetch_options_cached",
    "invalidate_catalog_caches",
    "PreferenceRepository",
]
