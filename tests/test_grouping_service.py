"""
Tests for the grouping service: variant clusters, category and sultan
buckets, and lookups over the grouping output.
"""
import pytest
from unittest.mock import patch

from domain import ItemKind, SingleItem, VariantCluster, ViewPreferences
from services.grouping_service import (
    GroupingService,
    build_groups,
    count_display_items,
    find_cluster,
    find_entries_by_ids,
    flatten_entries,
    mix_items,
)
from conftest import make_entry


class TestBuildGroups:
    def test_end_to_end_p101_example(self, p101_entries):
        buckets = build_groups(p101_entries, group_mode=True)

        assert len(buckets) == 1
        bucket = buckets[0]
        assert bucket.category_key == "Issued Notes"
        assert len(bucket.items) == 2

        cluster, single = bucket.items
        assert isinstance(cluster, VariantCluster)
        assert cluster.base_catalog_number == "P101"
        assert cluster.count == 3
        assert [m.catalog_number for m in cluster.members] == ["P101a", "P101b", "P101c"]
        assert isinstance(single, SingleItem)
        assert single.entry.catalog_number == "P102"

    def test_group_mode_off_gives_only_singles(self, p101_entries):
        buckets = build_groups(p101_entries, group_mode=False)

        assert all(isinstance(item, SingleItem) for item in buckets[0].items)
        assert [item.entry.id for item in buckets[0].items] == ["1", "2", "3", "4"]

    def test_no_singleton_clusters(self):
        entries = [make_entry("1", "P101a"), make_entry("2", "P102a")]
        items = mix_items(entries, group_mode=True)

        assert all(isinstance(item, SingleItem) for item in items)

    def test_unlisted_and_wishlist_never_cluster(self):
        entries = [
            make_entry("1", "P101a"),
            make_entry("2", "P101b", kind=ItemKind.UNLISTED_BANKNOTE),
            make_entry("3", "P101c", kind=ItemKind.WISHLIST),
            make_entry("4", "P101d"),
        ]
        items = mix_items(entries, group_mode=True)

        assert [type(item).__name__ for item in items] == ["VariantCluster", "SingleItem", "SingleItem"]
        assert items[0].entry_ids == ("1", "4")

    def test_entries_without_base_number_stay_single(self):
        entries = [make_entry("1", ""), make_entry("2", "")]
        items = mix_items(entries, group_mode=True)
        assert len(items) == 2

    def test_cluster_placed_at_first_member(self):
        entries = [
            make_entry("1", "P5"),
            make_entry("2", "P101a"),
            make_entry("3", "P6"),
            make_entry("4", "P101b"),
        ]
        items = mix_items(entries, group_mode=True)

        assert [item.entry_ids for item in items] == [("1",), ("2", "4"), ("3",)]

    def test_every_entry_appears_once(self, p101_entries):
        extra = p101_entries + [make_entry("5", "P103a", category="Specimens")]
        for group_mode in (True, False):
            for sultan_mode in (True, False):
                buckets = build_groups(extra, group_mode=group_mode, sultan_mode=sultan_mode)
                assert sorted(e.id for e in flatten_entries(buckets)) == ["1", "2", "3", "4", "5"]

    def test_toggle_group_mode_round_trips(self, p101_entries):
        flat = build_groups(p101_entries, group_mode=False)
        grouped = build_groups(p101_entries, group_mode=True)

        assert flatten_entries(flat) == flatten_entries(grouped)
        assert build_groups(p101_entries, group_mode=False) == flat

    def test_missing_category_goes_to_fallback_bucket(self):
        entries = [make_entry("1", "P1", category=""), make_entry("2", "P2", category="Issued Notes")]
        buckets = build_groups(entries, fallback_category="Other")

        assert [b.category_key for b in buckets] == ["Other", "Issued Notes"]

    def test_category_order(self):
        entries = [make_entry("1", "P1", category="B"), make_entry("2", "P2", category="A")]
        buckets = build_groups(entries, category_order={"A": 1, "B": 2})

        assert [b.category_key for b in buckets] == ["A", "B"]

    def test_unranked_categories_keep_first_seen_order(self):
        entries = [
            make_entry("1", "P1", category="Z"),
            make_entry("2", "P2", category="Y"),
            make_entry("3", "P3", category="A"),
        ]
        buckets = build_groups(entries, category_order={"A": 1})

        assert [b.category_key for b in buckets] == ["A", "Z", "Y"]

    def test_sultan_mode_sub_groups(self):
        entries = [
            make_entry("1", "P101a", sultan="Murad"),
            make_entry("2", "P101b", sultan="Murad"),
            make_entry("3", "P7", sultan="AbdulAziz"),
            make_entry("4", "P8"),
        ]
        buckets = build_groups(
            entries, group_mode=True, sultan_mode=True,
            sultan_order={"AbdulAziz": 1, "Murad": 2},
        )

        bucket = buckets[0]
        assert bucket.has_sultan_groups
        assert bucket.items == ()
        assert [s.sultan_key for s in bucket.sultan_buckets] == ["AbdulAziz", "Murad", "Unknown"]
        murad = bucket.sultan_buckets[1]
        assert isinstance(murad.items[0], VariantCluster)
        assert murad.items[0].count == 2

    def test_sultan_mode_without_sultans_uses_one_implicit_bucket(self):
        entries = [
            make_entry("1", "P101a"),
            make_entry("2", "P7"),
            make_entry("3", "P101b"),
            make_entry("4", "P9"),
        ]
        buckets = build_groups(entries, group_mode=False, sultan_mode=True)

        assert len(buckets) == 1
        sultan_buckets = buckets[0].sultan_buckets
        assert len(sultan_buckets) == 1
        assert sultan_buckets[0].sultan_key == "Unknown"
        assert [item.entry.id for item in sultan_buckets[0].items] == ["1", "2", "3", "4"]

    def test_sultan_order_ignores_case(self):
        entries = [
            make_entry("1", "P1", sultan="Murad"),
            make_entry("2", "P2", sultan="Abdulaziz"),
        ]
        buckets = build_groups(
            entries, sultan_mode=True,
            sultan_order={"AbdulAziz": 1, "Murad": 2},
        )

        assert [s.sultan_key for s in buckets[0].sultan_buckets] == ["Abdulaziz", "Murad"]

    def test_empty_input(self):
        assert build_groups([], group_mode=True) == []


class TestLookups:
    def test_find_cluster(self, p101_entries):
        buckets = build_groups(p101_entries, group_mode=True)

        assert find_cluster(buckets, "P101").count == 3
        assert find_cluster(buckets, "P102") is None

    def test_find_entries_by_ids_first_category_only(self):
        entries = [
            make_entry("1", "P1", category="A"),
            make_entry("2", "P2", category="B"),
            make_entry("3", "P3", category="A"),
        ]
        buckets = build_groups(entries)

        assert [e.id for e in find_entries_by_ids(buckets, ["3", "2", "1"])] == ["1", "3"]
        assert find_entries_by_ids(buckets, []) == ()

    def test_count_display_items(self, p101_entries):
        assert count_display_items(build_groups(p101_entries, group_mode=True)) == 2
        assert count_display_items(build_groups(p101_entries, group_mode=False)) == 4


class TestGroupingService:
    def test_build_uses_preference_modes(self, p101_entries):
        service = GroupingService()
        prefs = ViewPreferences(group_mode=True, sort=("sultan", "extPick"))

        buckets = service.build(p101_entries, prefs)

        assert buckets[0].has_sultan_groups
        assert buckets[0].sultan_buckets[0].sultan_key == "Unknown"

    def test_create_default_reads_settings(self):
        with patch("settings_service.SettingsService") as mock_settings:
            settings = mock_settings.return_value
            settings.default_sultan_order = ["AbdulMecid", "AbdulAziz"]
            settings.fallback_category = "Misc"
            settings.unknown_sultan = "?"
            settings.placeholder_image = "/img.svg"

            service = GroupingService.create_default(category_order={"A": 1})

        assert service.sultan_order == {"AbdulMecid": 0, "AbdulAziz": 1}
        assert service.fallback_category == "Misc"
        assert service.unknown_sultan == "?"
        assert service.category_order == {"A": 1}
