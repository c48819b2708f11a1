"""
Navigation Models

DialogMemento records which cluster dialog was open when the user left the
page for a child (detail) page.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from domain.enums import ViewMode


@dataclass(frozen=True)
class DialogMemento:
    """
    Snapshot of an open cluster dialog.

    Attributes:
        is_open: Whether the dialog was open when remembered
        group_key: Base catalog number of the opened cluster
        member_ids: Entry ids shown in the dialog at that moment
        context_key: Page context (country) the dialog belongs to
        view_mode: Layout used inside the dialog
    """
    is_open: bool
    group_key: str
    member_ids: tuple[str, ...]
    context_key: str
    view_mode: ViewMode = ViewMode.GRID

    def to_dict(self) -> dict[str, Any]:
        return {
            "isOpen": self.is_open,
            "baseNumber": self.group_key,
            "itemIds": list(self.member_ids),
            "countryId": self.context_key,
            "viewMode": self.view_mode.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DialogMemento":
        """
        Rebuild a memento from its stored form.

        Raises:
            KeyError / TypeError / ValueError: on malformed data
        """
        member_ids = data["itemIds"]
        if isinstance(member_ids, str) or not isinstance(member_ids, (list, tuple)):
            raise TypeError("itemIds must be a list")
        return cls(
            is_open=bool(data.get("isOpen", True)),
            group_key=str(data["baseNumber"]),
            member_ids=tuple(str(i) for i in member_ids),
            context_key=str(data["countryId"]),
            view_mode=ViewMode.from_string(data.get("viewMode", ViewMode.GRID.value)),
        )
