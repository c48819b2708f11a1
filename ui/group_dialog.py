"""
Group Dialog

Modal listing the members of a VariantCluster, plus the tiles that open it.

Opening a cluster records a DialogMemento. Closing the dialog forgets it,
whether through its Close button or by dismissing it (X, Esc, click
outside). Following a member to its detail view marks the return so the
page can reopen the dialog once.
"""

import streamlit as st

from domain import CatalogEntry, SingleItem, VariantCluster, ViewMode
from services.navigation_memory import NavigationMemory, forget_dismissed_dialog
from ui.formatters import (
    format_cluster_caption,
    format_entry_title,
    format_item_kind_badge,
    get_image_url,
    grid_columns,
)

DETAIL_QUERY_PARAM = "detail"


def open_detail(memory: NavigationMemory, entry: CatalogEntry) -> None:
    """Leave the listing for an entry's detail view."""
    memory.mark_navigating_to_detail(entry.id)
    st.query_params[DETAIL_QUERY_PARAM] = entry.id


def render_entry_card(entry: CatalogEntry, memory: NavigationMemory, key_prefix: str) -> None:
    with st.container(border=True):
        st.image(get_image_url(entry), use_container_width=True)
        st.markdown(f"**{format_entry_title(entry)}**")
        badge = format_item_kind_badge(entry.item_kind)
        if badge:
            st.caption(badge)
        if st.button("Details", key=f"{key_prefix}_detail_{entry.id}"):
            open_detail(memory, entry)
            st.rerun()


@st.dialog("Variants", width="large", on_dismiss=forget_dismissed_dialog)
def show_group_dialog(cluster: VariantCluster, memory: NavigationMemory, view_mode: ViewMode) -> None:
    st.subheader(format_cluster_caption(cluster))
    columns = grid_columns(view_mode, wide=3)
    for start in range(0, cluster.count, columns):
        row = st.columns(columns)
        for col, entry in zip(row, cluster.members[start:start + columns]):
            with col:
                render_entry_card(entry, memory, key_prefix=f"dlg_{cluster.key}")

    if st.button("Close", key=f"dlg_close_{cluster.key}"):
        memory.forget()
        st.rerun()


def render_cluster_tile(cluster: VariantCluster, memory: NavigationMemory, view_mode: ViewMode) -> None:
    with st.container(border=True):
        st.image(cluster.display_image(), use_container_width=True)
        st.markdown(f"**{format_cluster_caption(cluster)}**")
        if st.button("Show variants", key=f"open_{cluster.key}"):
            memory.open_cluster(cluster, view_mode)
            show_group_dialog(cluster, memory, view_mode)


def render_item(item, memory: NavigationMemory, view_mode: ViewMode) -> None:
    """Render a SingleItem or VariantCluster tile."""
    if isinstance(item, VariantCluster):
        render_cluster_tile(item, memory, view_mode)
    elif isinstance(item, SingleItem):
        render_entry_card(item.entry, memory, key_prefix="item")
