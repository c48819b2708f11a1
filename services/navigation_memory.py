"""
Navigation Memory

Remembers which cluster dialog was open when the user navigated to a detail
page, so the page can reopen it once on return.

Flow:
    open cluster dialog   -> open_cluster() / remember()
    close dialog by user  -> forget() (button) or forget_dismissed_dialog()
                             (X, Esc, click outside)
    click a member        -> mark_navigating_to_detail()
    page reruns on return -> restore_dialog(): consume() once, re-derive the
                             cluster from the current grouping output, reopen

The memento is stored in browser-session storage under
"banknote-dialog-{context_key}" and read at most once per return.
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging

from domain import CategoryBucket, DialogMemento, VariantCluster, ViewMode
from logging_config import setup_logging
from services.grouping_service import find_cluster, find_entries_by_ids
from state.session_storage import SessionStorage

logger = setup_logging(__name__, log_file="navigation_memory.log")

RETURNING_FLAG_KEY = "banknote-returning-from-detail"
DETAIL_ID_KEY = "banknote-detail-id"
ACTIVE_DIALOG_KEY = "banknote-dialog-active"


def memento_key(context_key: str) -> str:
    return f"banknote-dialog-{context_key}"


class NavigationMemory:
    """
    Per-context dialog memento with consume-once semantics.

    Example:
        memory = NavigationMemory("country-1")
        memory.open_cluster(cluster, ViewMode.GRID)
        memory.consume()   # DialogMemento
        memory.consume()   # None
    """

    def __init__(
        self,
        context_key: str,
        storage: Optional[SessionStorage] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self._context_key = context_key
        self._storage = storage or SessionStorage()
        self._logger = logger_instance or logger

    @property
    def context_key(self) -> str:
        return self._context_key

    @property
    def storage_key(self) -> str:
        return memento_key(self._context_key)

    # -------------------------------------------------------------------------
    # Memento
    # -------------------------------------------------------------------------

    def remember(self, memento: DialogMemento) -> None:
        """Store `memento`, replacing any previous one for this context."""
        self._storage.set_json(self.storage_key, memento.to_dict())
        self._storage.set_item(ACTIVE_DIALOG_KEY, self._context_key)
        self._logger.debug(f"Remembered dialog {memento.group_key} for {self._context_key}")

    def open_cluster(self, cluster: VariantCluster, view_mode: ViewMode = ViewMode.GRID) -> DialogMemento:
        memento = DialogMemento(
            is_open=True,
            group_key=cluster.base_catalog_number,
            member_ids=cluster.entry_ids,
            context_key=self._context_key,
            view_mode=view_mode,
        )
        self.remember(memento)
        return memento

    def peek(self) -> Optional[DialogMemento]:
        """Stored memento without clearing it; malformed values read as None."""
        data = self._storage.get_json(self.storage_key)
        if data is None:
            return None
        try:
            return DialogMemento.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            self._logger.warning(f"Discarding malformed dialog memento for {self._context_key}: {e}")
            return None

    def consume(self) -> Optional[DialogMemento]:
        """Return the stored memento and clear it, whether or not it was usable."""
        memento = self.peek()
        self.forget()
        return memento

    def forget(self) -> None:
        self._storage.remove_item(self.storage_key)
        if self._storage.get_item(ACTIVE_DIALOG_KEY) == self._context_key:
            self._storage.remove_item(ACTIVE_DIALOG_KEY)

    # -------------------------------------------------------------------------
    # Return-from-detail signal
    # -------------------------------------------------------------------------

    def mark_navigating_to_detail(self, entry_id: str) -> None:
        self._storage.set_item(RETURNING_FLAG_KEY, "true")
        self._storage.set_item(DETAIL_ID_KEY, str(entry_id))

    def is_returning_from_detail(self) -> bool:
        return self._storage.get_item(RETURNING_FLAG_KEY) == "true"

    def detail_entry_id(self) -> Optional[str]:
        return self._storage.get_item(DETAIL_ID_KEY)

    def clear_returning_flag(self) -> None:
        self._storage.remove_item(RETURNING_FLAG_KEY)
        self._storage.remove_item(DETAIL_ID_KEY)


def forget_dismissed_dialog(storage: Optional[SessionStorage] = None) -> None:
    """
    Forget the memento of the dialog that was last opened.

    Used as the dialog's dismiss callback, which Streamlit calls without
    arguments, so the context comes from storage rather than from a
    NavigationMemory instance.
    """
    storage = storage if storage is not None else SessionStorage()
    context_key = storage.get_item(ACTIVE_DIALOG_KEY)
    if context_key:
        NavigationMemory(context_key, storage=storage).forget()
        logger.debug(f"Dialog dismissed; forgot memento for {context_key}")


# =============================================================================
# Reopen resolution
# =============================================================================

@dataclass(frozen=True)
class ReopenTarget:
    """Cluster to reopen and the view mode it was shown with."""
    cluster: VariantCluster
    view_mode: ViewMode


def resolve_reopen_target(
    memento: Optional[DialogMemento],
    buckets: Sequence[CategoryBucket],
    group_mode: bool,
    context_key: str,
) -> Optional[ReopenTarget]:
    """
    Find the cluster a memento refers to in the current grouping output.

    The group key is matched first. When grouping is off there are no
    clusters, so the remembered member ids are matched against the flat
    entries instead; two or more matches form an ad-hoc cluster.

    Returns:
        ReopenTarget, or None when nothing matches
    """
    if memento is None or not memento.is_open:
        return None
    if memento.context_key != context_key:
        logger.debug(f"Ignoring memento for {memento.context_key}; current context is {context_key}")
        return None

    cluster = find_cluster(buckets, memento.group_key)
    if cluster is not None:
        return ReopenTarget(cluster=cluster, view_mode=memento.view_mode)

    if not group_mode:
        members = find_entries_by_ids(buckets, memento.member_ids)
        if len(members) >= 2:
            return ReopenTarget(
                cluster=VariantCluster(base_catalog_number=memento.group_key, members=members),
                view_mode=memento.view_mode,
            )

    logger.debug(f"No current group matches memento {memento.group_key}; discarding")
    return None


def restore_dialog(
    memory: NavigationMemory,
    buckets: Sequence[CategoryBucket],
    group_mode: bool,
    returning: Optional[bool] = None,
) -> Optional[ReopenTarget]:
    """
    Single reopen attempt for a return from the detail page.

    The memento and the returning flag are cleared whatever the outcome, so
    later reruns do not reopen the dialog again. The dialog is reopened only
    when the detail view was entered from one of its members; a detail opened
    from the main listing leaves it closed. A successful reopen is remembered
    afresh, since the dialog is open again.

    Args:
        memory: NavigationMemory of the current context
        buckets: Current grouping output
        group_mode: Current group mode
        returning: Return signal from the host; defaults to the stored flag
    """
    if returning is None:
        returning = memory.is_returning_from_detail()
    if not returning:
        return None

    memento = memory.consume()
    detail_id = memory.detail_entry_id()
    memory.clear_returning_flag()
    if memento is not None and detail_id not in memento.member_ids:
        # the detail view was opened from the listing, not from this dialog
        logger.debug(f"Detail {detail_id} is not a member of {memento.group_key}; not reopening")
        return None
    target = resolve_reopen_target(memento, buckets, group_mode, memory.context_key)
    if target is not None:
        memory.open_cluster(target.cluster, target.view_mode)
        logger.info(f"Reopening dialog {target.cluster.base_catalog_number} for {memory.context_key}")
    return target
