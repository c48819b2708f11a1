"""
Tests for the UI formatting helpers.
"""
from domain import ItemKind, VariantCluster, ViewMode
from ui.formatters import (
    format_cluster_caption,
    format_entry_title,
    format_item_kind_badge,
    get_image_url,
    grid_columns,
    view_mode_from_label,
)
from conftest import make_entry


def test_entry_title():
    entry = make_entry("1", "P101a", denomination="1 Lira", year="1914")
    assert format_entry_title(entry) == "P101a · 1 Lira (1914)"
    assert format_entry_title(make_entry("2", "")) == "?"


def test_cluster_caption():
    cluster = VariantCluster("P101", (make_entry("1", "P101a"), make_entry("2", "P101b")))
    assert format_cluster_caption(cluster) == "P101 · 2 variants"


def test_item_kind_badge():
    assert format_item_kind_badge(ItemKind.LISTED) is None
    assert format_item_kind_badge(ItemKind.WISHLIST) == "Wishlist"
    assert format_item_kind_badge(ItemKind.UNLISTED_BANKNOTE) == "Unlisted"


def test_image_url_falls_back_to_placeholder():
    assert get_image_url(make_entry("1", "P1")) == "/placeholder.svg"
    assert get_image_url(make_entry("2", "P2", image_urls=("x.jpg",))) == "x.jpg"


def test_view_mode_labels():
    assert view_mode_from_label("List") is ViewMode.LIST
    assert view_mode_from_label(None) is ViewMode.GRID
    assert grid_columns(ViewMode.LIST) == 1
    assert grid_columns(ViewMode.GRID) == 4
