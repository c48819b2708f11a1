"""
Tests for PreferenceRepository against a real sqlite file.
"""
import pytest
from sqlalchemy import func, select

from repositories.preference_repo import PreferenceRepository, user_filter_preferences


@pytest.fixture
def repo(sqlite_db):
    return PreferenceRepository(sqlite_db)


def _row_count(sqlite_db) -> int:
    with sqlite_db.engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(user_filter_preferences)).scalar()


class TestPreferenceRepository:
    def test_fetch_creates_schema_and_returns_none(self, repo):
        assert repo.fetch("u-1", "turkey") is None

    def test_save_inserts_with_defaults(self, repo):
        assert repo.save("u-1", "turkey", {"group_mode": True})

        row = repo.fetch("u-1", "turkey")
        assert row["group_mode"] is True
        assert row["selected_categories"] == []
        assert row["view_mode"] is None
        assert row["created_at"] is not None

    def test_save_merges_into_existing_row(self, repo, sqlite_db):
        repo.save("u-1", "turkey", {"selected_categories": ["cat-1"], "view_mode": "list"})
        repo.save("u-1", "turkey", {"selected_sort_options": ["so-face", "so-pick"]})

        row = repo.fetch("u-1", "turkey")
        assert row["selected_categories"] == ["cat-1"]
        assert row["view_mode"] == "list"
        assert row["selected_sort_options"] == ["so-face", "so-pick"]
        assert _row_count(sqlite_db) == 1

    def test_rows_are_per_user_and_country(self, repo, sqlite_db):
        repo.save("u-1", "turkey", {"group_mode": True})
        repo.save("u-1", "egypt", {"group_mode": False})
        repo.save("u-2", "turkey", {"group_mode": False})

        assert repo.fetch("u-1", "turkey")["group_mode"] is True
        assert repo.fetch("u-2", "turkey")["group_mode"] is False
        assert _row_count(sqlite_db) == 3

    def test_save_evicts_cache(self, repo):
        repo.save("u-1", "turkey", {"view_mode": "grid"})
        assert repo.fetch("u-1", "turkey")["view_mode"] == "grid"

        repo.save("u-1", "turkey", {"view_mode": "list"})
        assert repo.fetch("u-1", "turkey")["view_mode"] == "list"

    def test_fetch_returns_copies(self, repo):
        repo.save("u-1", "turkey", {"view_mode": "grid"})
        row = repo.fetch("u-1", "turkey")
        row["view_mode"] = "mutated"

        assert repo.fetch("u-1", "turkey")["view_mode"] == "grid"

    def test_unknown_columns_rejected(self, repo):
        with pytest.raises(ValueError, match="Unknown preference columns"):
            repo.save("u-1", "turkey", {"search": "lira"})
