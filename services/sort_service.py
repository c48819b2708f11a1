"""Sort service for catalog entries.

Orders a flat list of CatalogEntry objects by an ordered list of sort field
keys. Each key maps to a comparator; keys are applied left to right as
tie-break levels and entries equal on every key keep their input order
(Python's sort is stable).

Comparator kinds:
    - numeric (year, face value)
    - collation (sultan, category names) using locale.strcoll on casefolded text;
      configure_collation() sets LC_COLLATE, and under the C locale this is
      plain code point order
    - lookup-table rank (currency display order, sultan order, category order)

Unknown keys are skipped so a stale stored preference never breaks a page.

Example:
    >>> engine = SortEngine()
    >>> ordered = engine.order(entries, ["faceValue", "extPick"], AuxTables.from_currencies(rows))
"""

from __future__ import annotations

import locale
import re
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property, cmp_to_key
from typing import Callable, Iterable, Mapping, Optional, Sequence

from domain import CatalogEntry
from logging_config import setup_logging

logger = setup_logging(__name__, log_file="sort_service.log")

# Rank given to values missing from a lookup table
UNRANKED = 999

_PICK_PATTERN = re.compile(r"^(\D*)(\d+)([A-Za-z]*)(\d*)")
_NUMBER_PATTERN = re.compile(r"\d+(?:\.\d+)?")


# ============================================================================
# Lookup tables
# ============================================================================


@dataclass(frozen=True)
class AuxTables:
    """Lookup tables used by rank-based comparators.

    Attributes:
        currency_order: lowercased currency name -> display order
        sultan_order: sultan name -> display order (matched ignoring case)
        category_order: category name -> display order (matched ignoring case)
    """
    currency_order: Mapping[str, int] = field(default_factory=dict)
    sultan_order: Mapping[str, int] = field(default_factory=dict)
    category_order: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def from_currencies(cls, currencies: Iterable[Mapping], **kwargs) -> AuxTables:
        """Build tables from currency rows carrying `name` and `display_order`."""
        order = {
            str(row["name"]).strip().lower(): int(row.get("display_order", UNRANKED))
            for row in currencies
            if row.get("name")
        }
        return cls(currency_order=order, **kwargs)

    def currency_of(self, denomination: str) -> Optional[str]:
        """Name of the known currency mentioned in a denomination, if any.

        Longer names win so "new lira" is not read as "lira".
        """
        text = denomination.lower()
        for name in sorted(self.currency_order, key=len, reverse=True):
            if name and name in text:
                return name
        return None

    @cached_property
    def sultan_ranks(self) -> dict[str, int]:
        return casefold_ranks(self.sultan_order)

    @cached_property
    def category_ranks(self) -> dict[str, int]:
        return casefold_ranks(self.category_order)


def casefold_ranks(order: Mapping[str, int]) -> dict[str, int]:
    """Rank table keyed by casefolded name, so "Abdulaziz" finds "AbdulAziz"."""
    return {str(name).casefold(): rank for name, rank in order.items()}


# ============================================================================
# Parsing helpers
# ============================================================================


def parse_catalog_number(value: str) -> tuple[str, int, str, int]:
    """Split a catalog number into (prefix, number, letters, suffix).

    Examples:
        >>> parse_catalog_number("P101a")
        ('P', 101, 'a', 0)
        >>> parse_catalog_number("21Aa3")
        ('', 21, 'Aa', 3)
        >>> parse_catalog_number("")
        ('', 0, '', 0)
    """
    match = _PICK_PATTERN.match(value or "")
    if not match:
        return (value or "", 0, "", 0)
    prefix, number, letters, suffix = match.groups()
    return (prefix, int(number), letters, int(suffix) if suffix else 0)


def parse_face_value(denomination: str) -> float:
    """First number in a denomination string ("0.25 Lira" -> 0.25), else 0."""
    match = _NUMBER_PATTERN.search(denomination or "")
    return float(match.group(0)) if match else 0.0


def _timestamp(value: str) -> float:
    if not value:
        return 0.0
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def configure_collation(locale_name: str = "") -> bool:
    """Set LC_COLLATE for collate().

    An empty name takes the locale from the environment (LANG / LC_ALL).
    When the locale is unavailable the process keeps its current one; under
    C / POSIX strcoll() compares code points.

    Returns:
        True if the locale was applied
    """
    try:
        applied = locale.setlocale(locale.LC_COLLATE, locale_name)
    except locale.Error as e:
        logger.warning(f"Collation locale '{locale_name}' unavailable, keeping code point order: {e}")
        return False
    logger.debug(f"Collation locale set to {applied}")
    return True


def collate(a: str, b: str) -> int:
    """Locale-aware comparison, case-insensitive first and exact second."""
    result = locale.strcoll(a.casefold(), b.casefold())
    if result == 0:
        result = locale.strcoll(a, b)
    return _sign(result)


def _rank_then_collate(a: str, b: str, table: Mapping[str, int]) -> int:
    """Compare by rank in a casefolded table, then by collation."""
    if table:
        result = table.get(a.casefold(), UNRANKED) - table.get(b.casefold(), UNRANKED)
        if result:
            return _sign(result)
    return collate(a, b)


# ============================================================================
# Comparators
# ============================================================================

Comparator = Callable[[CatalogEntry, CatalogEntry, AuxTables], int]


def compare_catalog_number(a: CatalogEntry, b: CatalogEntry, aux: AuxTables) -> int:
    pa = parse_catalog_number(a.catalog_number)
    pb = parse_catalog_number(b.catalog_number)
    result = collate(pa[0], pb[0])
    if result:
        return result
    if pa[1] != pb[1]:
        return _sign(pa[1] - pb[1])
    result = collate(pa[2], pb[2])
    if result:
        return result
    return _sign(pa[3] - pb[3])


def compare_face_value(a: CatalogEntry, b: CatalogEntry, aux: AuxTables) -> int:
    currency_a = aux.currency_of(a.denomination)
    currency_b = aux.currency_of(b.denomination)
    if currency_a is not None and currency_b is not None:
        result = aux.currency_order[currency_a] - aux.currency_order[currency_b]
        if result:
            return _sign(result)
    elif currency_a is not None:
        return -1
    elif currency_b is not None:
        return 1
    return _sign(parse_face_value(a.denomination) - parse_face_value(b.denomination))


def compare_currency(a: CatalogEntry, b: CatalogEntry, aux: AuxTables) -> int:
    currency_a = aux.currency_of(a.denomination)
    currency_b = aux.currency_of(b.denomination)
    rank_a = aux.currency_order.get(currency_a, UNRANKED) if currency_a else UNRANKED
    rank_b = aux.currency_order.get(currency_b, UNRANKED) if currency_b else UNRANKED
    return _sign(rank_a - rank_b)


def compare_sultan(a: CatalogEntry, b: CatalogEntry, aux: AuxTables) -> int:
    return _rank_then_collate(a.sultan_key or "", b.sultan_key or "", aux.sultan_ranks)


def compare_category(a: CatalogEntry, b: CatalogEntry, aux: AuxTables) -> int:
    return _rank_then_collate(a.category_key, b.category_key, aux.category_ranks)


def compare_year(a: CatalogEntry, b: CatalogEntry, aux: AuxTables) -> int:
    return _sign(a.numeric_year - b.numeric_year)


def compare_newest(a: CatalogEntry, b: CatalogEntry, aux: AuxTables) -> int:
    # newest first
    return _sign(_timestamp(b.created_at) - _timestamp(a.created_at))


DEFAULT_COMPARATORS: dict[str, Comparator] = {
    "extPick": compare_catalog_number,
    "faceValue": compare_face_value,
    "denomination": compare_face_value,
    "currency": compare_currency,
    "sultan": compare_sultan,
    "category": compare_category,
    "year": compare_year,
    "newest": compare_newest,
}


# ============================================================================
# Sort Engine
# ============================================================================


class SortEngine:
    """Orders entries by a list of sort field keys.

    The engine does not add required fields itself; callers pass the
    effective sort list from ViewPreferences.
    """

    def __init__(self, comparators: Optional[Mapping[str, Comparator]] = None):
        self._comparators: dict[str, Comparator] = dict(comparators or DEFAULT_COMPARATORS)

    def register(self, field_name: str, comparator: Comparator) -> None:
        """Add or replace the comparator for a sort field key."""
        self._comparators[field_name] = comparator

    def known_fields(self) -> tuple[str, ...]:
        return tuple(self._comparators)

    def order(
        self,
        entries: Sequence[CatalogEntry],
        sort_fields: Sequence[str],
        aux: Optional[AuxTables] = None,
    ) -> list[CatalogEntry]:
        """Return a new list of entries ordered by `sort_fields`.

        Args:
            entries: Entries in source order
            sort_fields: Field keys, most significant first
            aux: Lookup tables for rank comparators

        Returns:
            Ordered copy of `entries`; the input is not mutated
        """
        if not entries:
            return []
        aux = aux or AuxTables()

        active: list[Comparator] = []
        for field_name in sort_fields:
            comparator = self._comparators.get(field_name)
            if comparator is None:
                logger.debug(f"Skipping unknown sort field '{field_name}'")
                continue
            active.append(comparator)

        if not active:
            return list(entries)

        def compare(a: CatalogEntry, b: CatalogEntry) -> int:
            for comparator in active:
                result = comparator(a, b, aux)
                if result:
                    return result
            return 0

        return sorted(entries, key=cmp_to_key(compare))


def order_entries(
    entries: Sequence[CatalogEntry],
    sort_fields: Sequence[str],
    aux: Optional[AuxTables] = None,
) -> list[CatalogEntry]:
    """Module-level convenience wrapper around a default SortEngine."""
    return _DEFAULT_ENGINE.order(entries, sort_fields, aux)


_DEFAULT_ENGINE = SortEngine()
