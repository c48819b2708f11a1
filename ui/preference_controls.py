"""
Preference Controls

Sidebar widgets bound to a PreferenceSynchronizer.

Widget values are seeded from the synchronizer on every run and pushed back
through on_change callbacks, so the synchronizer stays the single owner of
the preferences and a loaded snapshot shows up in the widgets immediately.
"""

from typing import Sequence

import streamlit as st

from domain import FilterOption, SortOption, ViewPreferences
from services.preference_sync import PreferenceSynchronizer
from ui.formatters import get_view_mode_options, view_mode_from_label


def _widget_key(sync: PreferenceSynchronizer, name: str) -> str:
    return f"pref_{name}_{sync.key.context_id}"


def _seed(key: str, value) -> None:
    st.session_state[key] = value


def _names_to_ids(names: Sequence[str], options: Sequence[FilterOption]) -> list[str]:
    by_name = {opt.name: opt.id for opt in options}
    return [by_name[name] for name in names if name in by_name]


def _ids_to_names(ids: Sequence[str], options: Sequence[FilterOption]) -> list[str]:
    by_id = {opt.id: opt.name for opt in options}
    return [by_id[i] for i in ids if i in by_id]


def render_view_controls(sync: PreferenceSynchronizer) -> None:
    """Layout, grouping and search."""
    prefs = sync.preferences
    view_key = _widget_key(sync, "view_mode")
    group_key = _widget_key(sync, "group_mode")
    search_key = _widget_key(sync, "search")

    _seed(view_key, prefs.view_mode.display_name)
    _seed(group_key, prefs.group_mode)
    _seed(search_key, prefs.search)

    def _on_view_mode():
        label = st.session_state.get(view_key)
        # segmented_control returns None when the active segment is clicked again
        if label:
            sync.set_view_mode(view_mode_from_label(label))

    st.sidebar.segmented_control(
        "Layout",
        options=get_view_mode_options(),
        key=view_key,
        on_change=_on_view_mode,
    )
    st.sidebar.toggle(
        "Group variants",
        key=group_key,
        help="Show notes sharing a catalog number (P101a, P101b, ...) as one group",
        on_change=lambda: sync.set_group_mode(bool(st.session_state.get(group_key))),
    )
    st.sidebar.text_input(
        "Search",
        key=search_key,
        placeholder="Catalog number, denomination, sultan...",
        on_change=lambda: sync.set_search(st.session_state.get(search_key, "")),
    )


def render_sort_controls(sync: PreferenceSynchronizer, sort_options: Sequence[SortOption]) -> None:
    """One checkbox per sort option; required options are shown checked and disabled."""
    if not sort_options:
        return
    prefs = sync.preferences
    st.sidebar.subheader("Sort")
    for option in sort_options:
        key = _widget_key(sync, f"sort_{option.id}")
        _seed(key, option.field_name in prefs.sort)

        def _on_toggle(option=option, key=key):
            sync.toggle_sort_field(option.field_name, bool(st.session_state.get(key)))

        st.sidebar.checkbox(
            option.name,
            key=key,
            disabled=option.is_required,
            help="Always applied" if option.is_required else None,
            on_change=_on_toggle,
        )


def _render_selection(
    sync: PreferenceSynchronizer,
    label: str,
    name: str,
    options: Sequence[FilterOption],
    selected_ids: Sequence[str],
    apply_ids,
    select_all,
) -> None:
    if not options:
        return
    key = _widget_key(sync, name)
    _seed(key, _ids_to_names(selected_ids, options))

    st.sidebar.multiselect(
        label,
        options=[opt.name for opt in options],
        key=key,
        on_change=lambda: apply_ids(_names_to_ids(st.session_state.get(key, []), options)),
    )
    col1, col2 = st.sidebar.columns(2)
    with col1:
        st.button("Select all", key=f"{key}_all", on_click=select_all, args=(options, True),
                  use_container_width=True)
    with col2:
        st.button("Clear", key=f"{key}_none", on_click=select_all, args=(options, False),
                  use_container_width=True)


def render_filter_controls(
    sync: PreferenceSynchronizer,
    category_options: Sequence[FilterOption],
    type_options: Sequence[FilterOption],
) -> None:
    """Category and type selection with select-all / clear buttons."""
    prefs = sync.preferences
    st.sidebar.subheader("Filters")
    _render_selection(
        sync, "Categories", "categories", category_options, prefs.categories,
        lambda ids: sync.update({"categories": ids}), sync.select_all_categories,
    )
    _render_selection(
        sync, "Types", "types", type_options, prefs.types,
        lambda ids: sync.update({"types": ids}), sync.select_all_types,
    )


def render_preference_controls(
    sync: PreferenceSynchronizer,
    category_options: Sequence[FilterOption],
    type_options: Sequence[FilterOption],
    sort_options: Sequence[SortOption],
) -> ViewPreferences:
    """Render every preference widget and return the preferences to render with."""
    st.sidebar.header("View")
    render_view_controls(sync)
    render_sort_controls(sync, sort_options)
    render_filter_controls(sync, category_options, type_options)

    if sync.is_loading:
        st.sidebar.caption("Loading saved preferences...")
    elif sync.key.is_authenticated:
        st.sidebar.caption("Preferences are saved to your account")
    else:
        st.sidebar.caption("Preferences are kept for this browser session")
    return sync.preferences
