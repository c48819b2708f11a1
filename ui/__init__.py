"""
UI Package

Presentation layer components for Streamlit pages.
Contains formatting utilities, preference widgets and the variant dialog.

This package separates UI-specific concerns from business logic,
keeping page files focused on layout and user interaction.
"""

from ui.formatters import (
    format_entry_title,
    format_cluster_caption,
    format_item_kind_badge,
    get_image_url,
    get_view_mode_options,
    view_mode_from_label,
    grid_columns,
)
from ui.preference_controls import render_preference_controls
from ui.group_dialog import (
    open_detail,
    render_item,
    show_group_dialog,
)

__all__ = [
    # Formatters
    "format_entry_title",
    "format_cluster_caption",
    "format_item_kind_badge",
    "get_image_url",
    "get_view_mode_options",
    "view_mode_from_label",
    "grid_columns",
    # Preference widgets
    "render_preference_controls",
    # Variant dialog
    "open_detail",
    "render_item",
    "show_group_dialog",
]
