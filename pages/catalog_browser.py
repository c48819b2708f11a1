"""
Catalog Browser Page

Browses the banknote catalog of one country with the user's view
preferences: filter, sort, group into category / sultan buckets with
variant clusters, and reopen the variant dialog after visiting a detail
view.

Query parameters:
    country      - country id (defaults to [catalog].default_country_id)
    detail       - entry id whose detail view is shown
    from_detail  - set to "1" by the detail view's back button
"""

from typing import Optional

import streamlit as st

from domain import CatalogEntry, CategoryBucket, ViewMode, ViewPreferences
from logging_config import setup_logging
from repositories import fetch_entries_cached, fetch_options_cached
from services import (
    AuxTables,
    GroupingService,
    NavigationMemory,
    configure_collation,
    count_display_items,
    filter_entries,
    get_preference_synchronizer,
    order_entries,
    restore_dialog,
)
from settings_service import SettingsService
from state import get_service, ss_get
from ui import (
    format_entry_title,
    get_image_url,
    grid_columns,
    render_item,
    render_preference_controls,
    show_group_dialog,
)
from ui.group_dialog import DETAIL_QUERY_PARAM

logger = setup_logging(__name__, log_file="catalog_browser.log")

RETURN_QUERY_PARAM = "from_detail"


def get_country_id(settings: SettingsService) -> str:
    return st.query_params.get("country", settings.default_country_id)


def get_user_id() -> Optional[str]:
    # set by the sign-in flow; None for anonymous visitors
    return ss_get("user_id")


def build_defaults(settings: SettingsService, options: dict) -> ViewPreferences:
    try:
        view_mode = ViewMode.from_string(settings.default_view_mode)
    except ValueError:
        logger.warning(f"Unknown default_view_mode {settings.default_view_mode!r}; using grid")
        view_mode = ViewMode.GRID
    return ViewPreferences.defaults(
        categories=options["categories"],
        types=options["types"],
        sort_options=options["sort_options"],
        view_mode=view_mode,
        group_mode=settings.default_group_mode,
        fallback_sort=settings.fallback_sort_fields,
        type_keyword=settings.default_type_keyword,
    )


def render_buckets(buckets: list[CategoryBucket], memory: NavigationMemory, view_mode: ViewMode) -> None:
    columns = grid_columns(view_mode)

    def _render_items(items) -> None:
        for start in range(0, len(items), columns):
            row = st.columns(columns)
            for col, item in zip(row, items[start:start + columns]):
                with col:
                    render_item(item, memory, view_mode)

    for bucket in buckets:
        st.header(bucket.display_label)
        if bucket.has_sultan_groups:
            for sultan_bucket in bucket.sultan_buckets:
                st.subheader(sultan_bucket.display_label)
                _render_items(sultan_bucket.items)
        else:
            _render_items(bucket.items)


def render_detail(entry: CatalogEntry) -> None:
    """Minimal detail view; the back button signals the return to the listing."""
    if st.button("← Back to catalog"):
        del st.query_params[DETAIL_QUERY_PARAM]
        st.query_params[RETURN_QUERY_PARAM] = "1"
        st.rerun()
    st.title(format_entry_title(entry))
    for url in entry.image_urls or (get_image_url(entry),):
        st.image(url)
    st.write(f"Category: {entry.category_key or '-'}")
    if entry.sultan_key:
        st.write(f"Sultan: {entry.sultan_key}")
    if entry.type_name:
        st.write(f"Type: {entry.type_name}")


def main():
    settings = SettingsService()
    if not ss_get("collation_configured"):
        configure_collation(settings.collation_locale)
        st.session_state["collation_configured"] = True

    country_id = get_country_id(settings)
    if not country_id:
        st.error("No country selected.")
        return

    options = fetch_options_cached(country_id)
    entries = fetch_entries_cached(country_id)

    detail_id = st.query_params.get(DETAIL_QUERY_PARAM)
    if detail_id:
        entry = next((e for e in entries if e.id == detail_id), None)
        if entry is not None:
            render_detail(entry)
            return
        logger.warning(f"Unknown detail id {detail_id}; showing catalog")
        del st.query_params[DETAIL_QUERY_PARAM]

    sync = get_preference_synchronizer(
        country_id,
        get_user_id(),
        build_defaults(settings, options),
        sort_options=options["sort_options"],
    )
    sync.mount()

    st.title("Banknote Catalog")
    prefs = render_preference_controls(
        sync, options["categories"], options["types"], options["sort_options"]
    )

    filtered = filter_entries(entries, prefs, options["categories"], options["types"])
    category_order = {opt.name: opt.display_order for opt in options["categories"]}
    sultan_order = options["sultan_order"] or None
    aux = AuxTables.from_currencies(
        options["currencies"],
        sultan_order=sultan_order or {},
        category_order=category_order,
    )
    ordered = order_entries(filtered, prefs.sort, aux)
    grouping = get_service(
        "grouping_service",
        lambda: GroupingService.create_default(category_order=category_order, sultan_order=sultan_order),
        context_key=country_id,
    )
    buckets = grouping.build(ordered, prefs)

    memory = get_service("navigation_memory", lambda: NavigationMemory(country_id), context_key=country_id)
    returning = st.query_params.get(RETURN_QUERY_PARAM) == "1"
    if returning:
        del st.query_params[RETURN_QUERY_PARAM]
    target = restore_dialog(memory, buckets, prefs.group_mode, returning=returning or None)

    st.caption(f"{len(filtered)} of {len(entries)} notes · {count_display_items(buckets)} items shown")
    if not buckets:
        st.info("No notes match the selected filters.")
    render_buckets(buckets, memory, prefs.view_mode)

    if target is not None:
        show_group_dialog(target.cluster, memory, target.view_mode)


if __name__ == "__main__":
    main()
