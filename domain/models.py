"""
Domain Models

Dataclasses for catalog records and the nested display structure built from
them: CategoryBucket -> (SultanBucket ->) SingleItem | VariantCluster.

Design Principles:
1. Immutability (frozen=True) - entries do not change within a grouping pass
2. Factory methods - clean construction from DataFrame rows and dicts
3. Tagged variants - SingleItem and VariantCluster both carry a `kind` tag so
   consumers can dispatch on it without duck typing
"""

import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Optional, Union

import pandas as pd

from domain.enums import ItemKind
from domain.converters import safe_int, safe_optional_str, safe_str, safe_str_list


# Type aliases for clarity
EntryID = str
CatalogNumber = str

PLACEHOLDER_IMAGE = "/placeholder.svg"

_VARIANT_SUFFIX = re.compile(r"[A-Za-z].*$")
_LEADING_PREFIX = re.compile(r"^[^0-9]*")


def derive_base_catalog_number(catalog_number: Optional[str]) -> Optional[CatalogNumber]:
    """
    Strip the trailing variant letters from a catalog number.

    A non-numeric series prefix is kept ("P101a" -> "P101"); everything from
    the first letter after the numeric part is dropped ("21Aa" -> "21",
    "101b" -> "101").

    Args:
        catalog_number: Raw catalog number from the record source

    Returns:
        The base catalog number, or None when nothing usable remains
    """
    text = safe_str(catalog_number)
    if not text:
        return None
    prefix = _LEADING_PREFIX.match(text).group(0)
    remainder = text[len(prefix):]
    if not remainder:
        return prefix or None
    base = prefix + _VARIANT_SUFFIX.sub("", remainder)
    return base or None


# =============================================================================
# CatalogEntry - one catalog/collection record
# =============================================================================

@dataclass(frozen=True)
class CatalogEntry:
    """
    A catalog or collection record, normalized at fetch time.

    Attributes:
        id: Unique identifier of the record
        catalog_number: Full catalog number including variant letters ("P101a")
        base_catalog_number: Clustering key derived from catalog_number
        category_key: Category name used for the top-level buckets
        sultan_key: Optional sultan name used for sub-buckets
        item_kind: listed / unlistedBanknote / wishlist
        category_id: Category option id (filtering)
        type_id: Type option id (filtering)
        type_name: Type name, e.g. "Issued Notes" (filtering)
        denomination: Face value text, e.g. "5 Kurush" (sorting)
        year: Issue year text (sorting)
        created_at: ISO timestamp of creation (sorting by newest)
        image_urls: Image references; the first one is the display image
        payload: Everything else the rendering layer needs
    """
    id: EntryID
    catalog_number: str = ""
    base_catalog_number: Optional[CatalogNumber] = None
    category_key: str = ""
    sultan_key: Optional[str] = None
    item_kind: ItemKind = ItemKind.LISTED
    category_id: str = ""
    type_id: str = ""
    type_name: str = ""
    denomination: str = ""
    year: str = ""
    created_at: str = ""
    image_urls: tuple[str, ...] = ()
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CatalogEntry":
        """
        Build an entry from a raw row (dict or pandas Series).

        Accepts both the database column names and the camelCase names used
        by the record source. Columns that are not mapped to a field stay
        available in `payload`.

        Args:
            record: A mapping of column name to value

        Returns:
            A new CatalogEntry instance
        """
        def pick(*names, default=None):
            for name in names:
                if name in record:
                    value = record.get(name)
                    if value is not None and not (isinstance(value, float) and pd.isna(value)):
                        return value
            return default

        catalog_number = safe_str(pick("extended_pick_number", "extendedPickNumber",
                                       "catalog_number", "catalogId"))
        return cls(
            id=safe_str(pick("id")),
            catalog_number=catalog_number,
            base_catalog_number=derive_base_catalog_number(catalog_number),
            category_key=safe_str(pick("category", "series")),
            sultan_key=safe_optional_str(pick("sultan_name", "sultanName", "sultan")),
            item_kind=ItemKind.from_string(pick("item_kind", "kind")),
            category_id=safe_str(pick("category_id", "categoryId")),
            type_id=safe_str(pick("type_id", "typeId")),
            type_name=safe_str(pick("type", "type_name")),
            denomination=safe_str(pick("denomination", "face_value")),
            year=safe_str(pick("year", "gregorian_year")),
            created_at=safe_str(pick("created_at", "createdAt")),
            image_urls=tuple(safe_str_list(pick("image_urls", "imageUrls"))),
            payload=dict(record),
        )

    @classmethod
    def from_dataframe_row(cls, row: pd.Series) -> "CatalogEntry":
        """Factory method to create a CatalogEntry from a DataFrame row."""
        return cls.from_record(row.to_dict())

    @property
    def display_image(self) -> str:
        """First image reference, or "" when the record has none."""
        return self.image_urls[0] if self.image_urls else ""

    @property
    def is_clusterable(self) -> bool:
        """True if this entry may join a VariantCluster."""
        return self.item_kind.is_clusterable and bool(self.base_catalog_number)

    @property
    def numeric_year(self) -> int:
        return safe_int(self.year)

    def searchable_text(self) -> list[str]:
        """String values matched by the free-text search."""
        values = [
            self.catalog_number,
            self.category_key,
            self.sultan_key or "",
            self.type_name,
            self.denomination,
            self.year,
        ]
        values.extend(v for v in self.payload.values() if isinstance(v, str))
        return [v for v in values if v]


# =============================================================================
# Display items - tagged union consumed by rendering
# =============================================================================

@dataclass(frozen=True)
class SingleItem:
    """One entry shown on its own."""
    entry: CatalogEntry
    kind: ClassVar[str] = "single"

    @property
    def entry_ids(self) -> tuple[EntryID, ...]:
        return (self.entry.id,)


@dataclass(frozen=True)
class VariantCluster:
    """
    Two or more listed entries sharing a base catalog number.

    Members keep the sort order of the input list.
    """
    base_catalog_number: CatalogNumber
    members: tuple[CatalogEntry, ...]
    kind: ClassVar[str] = "cluster"

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def key(self) -> str:
        return f"group-{self.base_catalog_number}"

    @property
    def entry_ids(self) -> tuple[EntryID, ...]:
        return tuple(member.id for member in self.members)

    def representative(self, placeholder: str = PLACEHOLDER_IMAGE) -> CatalogEntry:
        """
        Member whose image represents the cluster.

        The first member with a real display image wins; otherwise the first
        member is used.
        """
        for member in self.members:
            image = member.display_image
            if image and image != placeholder:
                return member
        return self.members[0]

    def display_image(self, placeholder: str = PLACEHOLDER_IMAGE) -> str:
        image = self.representative(placeholder).display_image
        return image or placeholder


DisplayItem = Union[SingleItem, VariantCluster]


# =============================================================================
# Buckets
# =============================================================================

@dataclass(frozen=True)
class SultanBucket:
    """Items of one sultan inside a category."""
    sultan_key: str
    items: tuple[DisplayItem, ...]
    label: str = ""

    @property
    def display_label(self) -> str:
        return self.label or self.sultan_key


@dataclass(frozen=True)
class CategoryBucket:
    """
    Items of one category.

    Exactly one representation is populated: `items` (flat) or
    `sultan_buckets` (sub-grouped by sultan).
    """
    category_key: str
    items: tuple[DisplayItem, ...] = ()
    sultan_buckets: Optional[tuple[SultanBucket, ...]] = None
    label: str = ""

    @property
    def display_label(self) -> str:
        return self.label or self.category_key

    @property
    def has_sultan_groups(self) -> bool:
        return self.sultan_buckets is not None

    @property
    def all_items(self) -> tuple[DisplayItem, ...]:
        """Display items in order, regardless of representation."""
        if self.sultan_buckets is None:
            return self.items
        return tuple(item for bucket in self.sultan_buckets for item in bucket.items)

    @property
    def entries(self) -> tuple[CatalogEntry, ...]:
        """Underlying entries in display order."""
        result: list[CatalogEntry] = []
        for item in self.all_items:
            if isinstance(item, VariantCluster):
                result.extend(item.members)
            else:
                result.append(item.entry)
        return tuple(result)
