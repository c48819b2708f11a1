"""
UI Formatting Utilities

Helper functions for consistent display text across the catalog pages.

Design Principles:
- Pure functions with no side effects
- Use domain enums (ViewMode, ItemKind) for business logic
- Return simple types (str, list) for flexibility
"""

from typing import Optional

from domain import CatalogEntry, ItemKind, VariantCluster, ViewMode
from domain.models import PLACEHOLDER_IMAGE


def format_entry_title(entry: CatalogEntry) -> str:
    """
    One-line title for a catalog entry.

    Args:
        entry: Entry to describe

    Returns:
        e.g. "P101a · 1 Lira (1914)"
    """
    parts = [entry.catalog_number or "?"]
    if entry.denomination:
        parts.append(entry.denomination)
    title = " · ".join(parts)
    if entry.year:
        title = f"{title} ({entry.year})"
    return title


def format_cluster_caption(cluster: VariantCluster) -> str:
    """Caption shown under a cluster tile, e.g. "P101 · 3 variants"."""
    return f"{cluster.base_catalog_number} · {cluster.count} variants"


def format_item_kind_badge(kind: ItemKind) -> Optional[str]:
    """Badge text for non-listed entries; listed entries get no badge."""
    if kind is ItemKind.UNLISTED_BANKNOTE:
        return "Unlisted"
    if kind is ItemKind.WISHLIST:
        return "Wishlist"
    return None


def get_image_url(entry: CatalogEntry, placeholder: str = PLACEHOLDER_IMAGE) -> str:
    """First usable image of an entry, or the placeholder."""
    return entry.display_image or placeholder


def get_view_mode_options() -> list[str]:
    return [mode.display_name for mode in ViewMode]


def view_mode_from_label(label: Optional[str], default: ViewMode = ViewMode.GRID) -> ViewMode:
    """Map a segmented-control label back to a ViewMode."""
    for mode in ViewMode:
        if mode.display_name == label:
            return mode
    return default


def grid_columns(view_mode: ViewMode, wide: int = 4) -> int:
    """Number of Streamlit columns per row for a view mode."""
    return wide if view_mode is ViewMode.GRID else 1
