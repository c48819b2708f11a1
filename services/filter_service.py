"""Filter service.

Applies the search / category / type parts of ViewPreferences to a list of
entries before they are sorted and grouped.

An empty category or type selection means "no restriction".
"""

from typing import Sequence

from domain import CatalogEntry, FilterOption, ViewPreferences


# Substring -> canonical type name, checked in order
_TYPE_ALIASES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("issued",), "issued notes"),
    (("specimen",), "specimens"),
    (("cancelled", "annule"), "cancelled & annule"),
    (("trial",), "trial note"),
    (("error",), "error banknote"),
    (("counterfeit",), "counterfeit banknote"),
    (("emergency",), "emergency note"),
    (("check", "bond"), "check & bond notes"),
)


def normalize_type(type_name: str) -> str:
    """
    Canonical form of a type name so "Issued Note" matches "Issued Notes".

    Examples:
        >>> normalize_type("Issued Note")
        'issued notes'
        >>> normalize_type("Annule")
        'cancelled & annule'
        >>> normalize_type("Specimen")
        'specimens'
    """
    lowered = (type_name or "").lower()
    if lowered == "issue":
        return "issued notes"
    for needles, canonical in _TYPE_ALIASES:
        if any(needle in lowered for needle in needles):
            return canonical
    return lowered


def matches_search(entry: CatalogEntry, search: str) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(needle in value.lower() for value in entry.searchable_text())


def matches_categories(entry: CatalogEntry, selected: Sequence[str], options: Sequence[FilterOption]) -> bool:
    if not selected:
        return True
    if entry.category_id and entry.category_id in selected:
        return True
    names = {opt.name for opt in options if opt.id in selected}
    return bool(entry.category_key) and entry.category_key in names


def matches_types(entry: CatalogEntry, selected: Sequence[str], options: Sequence[FilterOption]) -> bool:
    if not selected:
        return True
    if entry.type_id and entry.type_id in selected:
        return True
    if not entry.type_name:
        return False
    wanted = {normalize_type(opt.name) for opt in options if opt.id in selected}
    return normalize_type(entry.type_name) in wanted


def filter_entries(
    entries: Sequence[CatalogEntry],
    preferences: ViewPreferences,
    category_options: Sequence[FilterOption] = (),
    type_options: Sequence[FilterOption] = (),
) -> list[CatalogEntry]:
    """
    Entries matching the search text, selected categories and selected types.

    Input order is preserved.
    """
    return [
        entry for entry in entries
        if matches_search(entry, preferences.search)
        and matches_categories(entry, preferences.categories, category_options)
        and matches_types(entry, preferences.types, type_options)
    ]
