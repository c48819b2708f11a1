"""
Domain Enums

Enumerations for categorical data used throughout the browsing engine.
These replace magic strings ("grid", "wishlist", ...) and provide type safety.
"""

from enum import Enum, auto


class ViewMode(Enum):
    """
    Card layout for the catalog/collection page.

    The string values are what the persistence backends store.
    """
    GRID = "grid"
    LIST = "list"

    @classmethod
    def from_string(cls, value: str) -> "ViewMode":
        """
        Parse a stored view mode string.

        Args:
            value: "grid" or "list" (case-insensitive)

        Returns:
            Matching ViewMode

        Raises:
            ValueError: If the string is not a known view mode
        """
        normalized = str(value).strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise ValueError(f"Unknown view mode: {value!r}")

    @property
    def display_name(self) -> str:
        return {
            ViewMode.GRID: "Grid",
            ViewMode.LIST: "List",
        }[self]


class ItemKind(Enum):
    """
    What a catalog/collection record represents.

    Only LISTED entries take part in variant clustering; unlisted banknotes
    and wishlist entries are always shown on their own.
    """
    LISTED = "listed"
    UNLISTED_BANKNOTE = "unlistedBanknote"
    WISHLIST = "wishlist"

    @classmethod
    def from_string(cls, value: str | None) -> "ItemKind":
        """Parse a kind tag from a raw row; unknown or empty tags mean LISTED."""
        if not value:
            return cls.LISTED
        normalized = str(value).strip().lower().replace("_", "")
        for kind in cls:
            if kind.value.lower() == normalized:
                return kind
        if normalized in ("unlisted", "unlistedbanknote"):
            return cls.UNLISTED_BANKNOTE
        return cls.LISTED

    @property
    def is_clusterable(self) -> bool:
        return self is ItemKind.LISTED


class StorageTier(Enum):
    """
    Where a preference snapshot lives.

    - MEMORY: reactive state of the open page
    - EPHEMERAL: browser-session storage, used without an authenticated user
    - DURABLE: per-user-per-country database row
    """
    MEMORY = auto()
    EPHEMERAL = auto()
    DURABLE = auto()

    @property
    def display_name(self) -> str:
        return {
            StorageTier.MEMORY: "Page state",
            StorageTier.EPHEMERAL: "Session",
            StorageTier.DURABLE: "Account",
        }[self]


class SyncPhase(Enum):
    """Phases of the preference synchronizer state machine."""
    UNINITIALIZED = auto()
    SYNCED = auto()
