"""
Preference Models

ViewPreferences and the option definitions that constrain it.

Invariants enforced here rather than in the UI:
- `sort` always ends with every required sort field, in option order
- `categories` / `types`, once non-empty, never become empty through a
  removal (removing the last remaining id is a no-op)
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from domain.enums import StorageTier, ViewMode


PREFERENCE_FIELDS = ("view_mode", "group_mode", "sort", "categories", "types", "search")


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return tuple(seen)


# =============================================================================
# Option definitions (supplied by the sort/filter option source)
# =============================================================================

@dataclass(frozen=True)
class SortOption:
    """
    A sort option offered for a country.

    Attributes:
        id: Option id as stored in the durable preference record
        name: Display name
        field_name: Sort field key understood by the sort service
        is_required: Required fields are always applied and cannot be removed
        display_order: Position in the option list
    """
    id: str
    name: str
    field_name: str
    is_required: bool = False
    display_order: int = 0


@dataclass(frozen=True)
class FilterOption:
    """A category or type filter option."""
    id: str
    name: str
    display_order: int = 0


def required_sort_fields(sort_options: Sequence[SortOption]) -> tuple[str, ...]:
    """Field keys of the required options, in option order."""
    return _unique(opt.field_name for opt in sort_options if opt.is_required)


def normalize_sort(sort: Iterable[str], required: Sequence[str]) -> tuple[str, ...]:
    """
    Deduplicate a sort list and make sure the required fields are present.

    Required fields that are missing are appended at the end; fields that
    are already present keep their position.

    Examples:
        >>> normalize_sort(["denomination"], ["extPick"])
        ('denomination', 'extPick')
        >>> normalize_sort(["extPick", "sultan", "sultan"], ["extPick"])
        ('extPick', 'sultan')
    """
    result = list(_unique(sort))
    for field_name in required:
        if field_name not in result:
            result.append(field_name)
    return tuple(result)


def sort_ids_to_fields(option_ids: Iterable[str], sort_options: Sequence[SortOption]) -> tuple[str, ...]:
    """Map stored sort option ids to field keys; unknown ids are dropped."""
    by_id = {opt.id: opt.field_name for opt in sort_options}
    return _unique(by_id[opt_id] for opt_id in option_ids if opt_id in by_id)


def sort_fields_to_ids(fields: Iterable[str], sort_options: Sequence[SortOption]) -> tuple[str, ...]:
    """Map sort field keys to option ids; fields without an option are dropped."""
    by_field = {opt.field_name: opt.id for opt in sort_options}
    return _unique(by_field[name] for name in fields if name in by_field)


# =============================================================================
# ViewPreferences
# =============================================================================

@dataclass(frozen=True)
class ViewPreferences:
    """
    The view preferences of one catalog/collection page.

    All mutators return a new instance; the reactive copy is owned by the
    PreferenceSynchronizer.
    """
    view_mode: ViewMode = ViewMode.GRID
    group_mode: bool = False
    sort: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    types: tuple[str, ...] = ()
    search: str = ""

    @classmethod
    def defaults(
        cls,
        categories: Sequence[FilterOption] = (),
        types: Sequence[FilterOption] = (),
        sort_options: Sequence[SortOption] = (),
        view_mode: ViewMode = ViewMode.GRID,
        group_mode: bool = False,
        fallback_sort: Sequence[str] = ("extPick",),
        type_keyword: str = "issued",
    ) -> "ViewPreferences":
        """
        Built-in defaults applied when nothing is stored.

        Every category is selected; types are limited to those whose name
        contains `type_keyword` (all types when none matches); sort is the
        required fields, or `fallback_sort` when no option is required.
        """
        keyword = type_keyword.lower()
        default_types = [t.id for t in types if keyword and keyword in t.name.lower()]
        if not default_types:
            default_types = [t.id for t in types]
        required = required_sort_fields(sort_options)
        return cls(
            view_mode=view_mode,
            group_mode=group_mode,
            sort=required if required else _unique(fallback_sort),
            categories=_unique(c.id for c in categories),
            types=_unique(default_types),
            search="",
        )

    # -------------------------------------------------------------------------
    # Serialization / merging
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "view_mode": self.view_mode.value,
            "group_mode": self.group_mode,
            "sort": list(self.sort),
            "categories": list(self.categories),
            "types": list(self.types),
            "search": self.search,
        }

    @staticmethod
    def coerce_partial(partial: Mapping[str, Any]) -> dict[str, Any]:
        """
        Validate and convert a partial mapping to typed field values.

        Unknown keys are ignored; list-like values become tuples, view modes
        become ViewMode. Raises ValueError/TypeError on values that cannot
        be converted.
        """
        coerced: dict[str, Any] = {}
        for key, value in partial.items():
            if key not in PREFERENCE_FIELDS:
                continue
            if key == "view_mode":
                coerced[key] = value if isinstance(value, ViewMode) else ViewMode.from_string(value)
            elif key == "group_mode":
                if not isinstance(value, bool):
                    raise TypeError(f"group_mode must be a bool, got {type(value).__name__}")
                coerced[key] = value
            elif key == "search":
                coerced[key] = "" if value is None else str(value)
            else:
                if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
                    raise TypeError(f"{key} must be a list of ids, got {type(value).__name__}")
                coerced[key] = _unique(str(v) for v in value)
        return coerced

    def merged(self, partial: Mapping[str, Any]) -> "ViewPreferences":
        """Return a copy with the fields present in `partial` replaced."""
        coerced = self.coerce_partial(partial)
        if not coerced:
            return self
        return replace(self, **coerced)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base: Optional["ViewPreferences"] = None) -> "ViewPreferences":
        return (base or cls()).merged(data)

    def changed_fields(self, other: "ViewPreferences") -> dict[str, Any]:
        """Fields of `other` that differ from self, in to_dict() form."""
        mine = self.to_dict()
        theirs = other.to_dict()
        return {key: theirs[key] for key in PREFERENCE_FIELDS if mine[key] != theirs[key]}

    # -------------------------------------------------------------------------
    # Sort
    # -------------------------------------------------------------------------

    def with_sort(self, sort: Iterable[str], required: Sequence[str]) -> "ViewPreferences":
        return replace(self, sort=normalize_sort(sort, required))

    def with_sort_field(self, field_name: str, enabled: bool, required: Sequence[str]) -> "ViewPreferences":
        """
        Toggle one sort field.

        Enabled fields are placed after the user's other optional fields and
        before the required fields. Required fields cannot be disabled.
        """
        optional = [f for f in self.sort if f not in required and f != field_name]
        if enabled and field_name not in required:
            optional.append(field_name)
        return replace(self, sort=normalize_sort(optional, required))

    # -------------------------------------------------------------------------
    # Categories / types
    # -------------------------------------------------------------------------

    def with_category(self, category_id: str, selected: bool) -> "ViewPreferences":
        return replace(self, categories=_toggle(self.categories, category_id, selected))

    def with_type(self, type_id: str, selected: bool) -> "ViewPreferences":
        return replace(self, types=_toggle(self.types, type_id, selected))

    def with_all_categories(self, options: Sequence[FilterOption], selected: bool) -> "ViewPreferences":
        if selected:
            return replace(self, categories=_unique(o.id for o in options))
        return replace(self, categories=self.categories[:1])

    def with_all_types(self, options: Sequence[FilterOption], selected: bool) -> "ViewPreferences":
        if selected:
            return replace(self, types=_unique(o.id for o in options))
        return replace(self, types=self.types[:1])

    def with_search(self, search: str) -> "ViewPreferences":
        return replace(self, search=search or "")

    def with_view_mode(self, view_mode: ViewMode) -> "ViewPreferences":
        return replace(self, view_mode=view_mode)

    def with_group_mode(self, group_mode: bool) -> "ViewPreferences":
        return replace(self, group_mode=bool(group_mode))

    @property
    def sultan_mode(self) -> bool:
        """Sultan sub-groups are shown whenever sorting by sultan."""
        return "sultan" in self.sort


def _toggle(current: tuple[str, ...], item_id: str, selected: bool) -> tuple[str, ...]:
    if selected:
        return _unique((*current, item_id))
    if item_id not in current:
        return current
    if len(current) == 1:
        # never reduce a non-empty selection to nothing
        return current
    return tuple(i for i in current if i != item_id)


# =============================================================================
# Keys and records
# =============================================================================

@dataclass(frozen=True)
class PreferenceKey:
    """
    Identifies whose preferences for which context.

    With a user id the durable tier is used; without one, the ephemeral
    tier keyed by context (country) is used.
    """
    context_id: str
    user_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def tier(self) -> StorageTier:
        return StorageTier.DURABLE if self.is_authenticated else StorageTier.EPHEMERAL

    @property
    def storage_key(self) -> str:
        if self.is_authenticated:
            return f"{self.user_id}-{self.context_id}"
        return f"session-{self.context_id}"


@dataclass(frozen=True)
class PreferenceRecord:
    """A preference snapshot together with where it lives."""
    key: PreferenceKey
    preferences: ViewPreferences
    tier: StorageTier
    updated_at: datetime = field(default_factory=datetime.now)
