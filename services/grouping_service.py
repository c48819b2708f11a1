"""
Grouping Service

Turns an already-sorted list of CatalogEntry objects into the nested display
structure:

    CategoryBucket
      -> items: SingleItem | VariantCluster            (flat)
      -> sultan_buckets: SultanBucket -> items          (sultan mode)

Design Principles:
1. Pure functions - no I/O, no state; same input gives the same layout
2. Order preservation - buckets and members follow the input order
3. No singleton clusters - a base catalog number with one entry is a SingleItem
"""

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from domain import (
    CatalogEntry,
    CategoryBucket,
    DisplayItem,
    SingleItem,
    SultanBucket,
    VariantCluster,
    ViewPreferences,
)
from logging_config import setup_logging
from services.sort_service import casefold_ranks

logger = setup_logging(__name__, log_file="grouping_service.log")

FALLBACK_CATEGORY = "Uncategorized"
UNKNOWN_SULTAN = "Unknown"


# =============================================================================
# Core grouping functions
# =============================================================================

def mix_items(entries: Sequence[CatalogEntry], group_mode: bool) -> tuple[DisplayItem, ...]:
    """
    Build the mixed single/cluster list for one category or sultan bucket.

    With group_mode off every entry is a SingleItem. With group_mode on,
    listed entries sharing a base catalog number become one VariantCluster
    placed where its first member appears; unlisted and wishlist entries,
    and entries without a base catalog number, stay SingleItems.

    Args:
        entries: Entries in sort order
        group_mode: Whether variant clustering is enabled

    Returns:
        Tuple of display items in display order
    """
    if not group_mode:
        return tuple(SingleItem(entry) for entry in entries)

    # Each slot is either an entry shown alone or the key of a cluster bucket
    slots: list[tuple[str, object]] = []
    buckets: dict[str, list[CatalogEntry]] = {}

    for entry in entries:
        if not entry.is_clusterable:
            slots.append(("single", entry))
            continue
        key = entry.base_catalog_number
        if key not in buckets:
            buckets[key] = []
            slots.append(("bucket", key))
        buckets[key].append(entry)

    result: list[DisplayItem] = []
    for tag, value in slots:
        if tag == "single":
            result.append(SingleItem(value))
            continue
        members = buckets[value]
        if len(members) == 1:
            result.append(SingleItem(members[0]))
        else:
            result.append(VariantCluster(base_catalog_number=value, members=tuple(members)))
    return tuple(result)


def _partition(
    entries: Iterable[CatalogEntry],
    key_of,
    order: Optional[Mapping[str, int]] = None,
) -> list[tuple[str, list[CatalogEntry]]]:
    """Split entries by key, first-seen order, then by `order` rank if given."""
    parts: dict[str, list[CatalogEntry]] = {}
    for entry in entries:
        parts.setdefault(key_of(entry), []).append(entry)
    ordered = list(parts.items())
    if order:
        ranks = casefold_ranks(order)
        missing = len(ranks) + len(ordered)
        # sorted() is stable, so unranked keys keep their first-seen order
        ordered.sort(key=lambda kv: ranks.get(kv[0].casefold(), missing))
    return ordered


def build_groups(
    entries: Sequence[CatalogEntry],
    group_mode: bool = False,
    sultan_mode: bool = False,
    category_order: Optional[Mapping[str, int]] = None,
    sultan_order: Optional[Mapping[str, int]] = None,
    fallback_category: str = FALLBACK_CATEGORY,
    unknown_sultan: str = UNKNOWN_SULTAN,
) -> list[CategoryBucket]:
    """
    Group sorted entries into category buckets.

    Args:
        entries: Entries already ordered by the sort service
        group_mode: Cluster variants sharing a base catalog number
        sultan_mode: Sub-group each category by sultan
        category_order: Optional category name -> display order
        sultan_order: Optional sultan name -> display order
        fallback_category: Bucket for entries without a category
        unknown_sultan: Sub-bucket for entries without a sultan

    Returns:
        List of CategoryBucket; empty input gives an empty list
    """
    if not entries:
        return []

    buckets: list[CategoryBucket] = []
    for category, category_entries in _partition(
        entries, lambda e: e.category_key or fallback_category, category_order
    ):
        if not sultan_mode:
            buckets.append(CategoryBucket(
                category_key=category,
                items=mix_items(category_entries, group_mode),
            ))
            continue

        sultan_buckets = tuple(
            SultanBucket(sultan_key=sultan, items=mix_items(sultan_entries, group_mode))
            for sultan, sultan_entries in _partition(
                category_entries, lambda e: e.sultan_key or unknown_sultan, sultan_order
            )
        )
        buckets.append(CategoryBucket(category_key=category, sultan_buckets=sultan_buckets))

    logger.debug(
        f"Built {len(buckets)} category buckets from {len(entries)} entries "
        f"(group_mode={group_mode}, sultan_mode={sultan_mode})"
    )
    return buckets


# =============================================================================
# Lookups over grouping output
# =============================================================================

def iter_clusters(buckets: Iterable[CategoryBucket]) -> Iterable[VariantCluster]:
    for bucket in buckets:
        for item in bucket.all_items:
            if isinstance(item, VariantCluster):
                yield item


def find_cluster(buckets: Iterable[CategoryBucket], group_key: str) -> Optional[VariantCluster]:
    """Cluster whose base catalog number equals `group_key`, if present."""
    for cluster in iter_clusters(buckets):
        if cluster.base_catalog_number == group_key:
            return cluster
    return None


def find_entries_by_ids(buckets: Iterable[CategoryBucket], entry_ids: Iterable[str]) -> tuple[CatalogEntry, ...]:
    """
    Entries of the first category that contains any of `entry_ids`.

    Entries are returned in display order.
    """
    wanted = set(entry_ids)
    if not wanted:
        return ()
    for bucket in buckets:
        matches = tuple(entry for entry in bucket.entries if entry.id in wanted)
        if matches:
            return matches
    return ()


def flatten_entries(buckets: Iterable[CategoryBucket]) -> list[CatalogEntry]:
    """All entries in display order."""
    return [entry for bucket in buckets for entry in bucket.entries]


def count_display_items(buckets: Iterable[CategoryBucket]) -> int:
    return sum(len(bucket.all_items) for bucket in buckets)


# =============================================================================
# Grouping Service
# =============================================================================

@dataclass
class GroupingService:
    """
    Settings-aware wrapper around build_groups().

    Holds the labels and display-order tables for one page context so the
    page only has to pass entries and the current preferences.

    Example:
        service = GroupingService.create_default(category_order={"Issued Notes": 1})
        buckets = service.build(sorted_entries, preferences)
    """
    category_order: Mapping[str, int] = field(default_factory=dict)
    sultan_order: Mapping[str, int] = field(default_factory=dict)
    fallback_category: str = FALLBACK_CATEGORY
    unknown_sultan: str = UNKNOWN_SULTAN
    placeholder_image: str = "/placeholder.svg"

    @classmethod
    def create_default(
        cls,
        category_order: Optional[Mapping[str, int]] = None,
        sultan_order: Optional[Mapping[str, int]] = None,
    ) -> "GroupingService":
        """Factory reading labels and the default sultan order from settings.toml."""
        from settings_service import SettingsService

        settings = SettingsService()
        if sultan_order is None:
            sultan_order = {name: i for i, name in enumerate(settings.default_sultan_order)}
        return cls(
            category_order=dict(category_order or {}),
            sultan_order=dict(sultan_order),
            fallback_category=settings.fallback_category,
            unknown_sultan=settings.unknown_sultan,
            placeholder_image=settings.placeholder_image,
        )

    def build(self, entries: Sequence[CatalogEntry], preferences: ViewPreferences) -> list[CategoryBucket]:
        return build_groups(
            entries,
            group_mode=preferences.group_mode,
            sultan_mode=preferences.sultan_mode,
            category_order=self.category_order,
            sultan_order=self.sultan_order,
            fallback_category=self.fallback_category,
            unknown_sultan=self.unknown_sultan,
        )
