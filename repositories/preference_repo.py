"""
Preference Repository

Durable tier of the preference store: one row per (user_id, country_id) in
the user_filter_preferences table.

Design Principles:
1. Merge writes - only the columns passed to save() are written
2. Read cache - rows are cached per (user, country) and evicted on save
3. Errors propagate - the PreferenceStore decides what a failure means
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    JSON,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    insert,
    select,
    update,
)

from logging_config import setup_logging
from repositories.base import BaseRepository

logger = setup_logging(__name__, log_file="preference_repo.log")

metadata = MetaData()

user_filter_preferences = Table(
    "user_filter_preferences",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(64), nullable=False, index=True),
    Column("country_id", String(64), nullable=False),
    Column("selected_categories", JSON, nullable=False, default=list),
    Column("selected_types", JSON, nullable=False, default=list),
    Column("selected_sort_options", JSON, nullable=False, default=list),
    Column("group_mode", Boolean, nullable=True),
    Column("view_mode", String(16), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("user_id", "country_id", name="uq_user_country"),
)

# Columns a caller may write through save()
WRITABLE_COLUMNS = (
    "selected_categories",
    "selected_types",
    "selected_sort_options",
    "group_mode",
    "view_mode",
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PreferenceRepository(BaseRepository):
    """
    Reads and upserts rows of user_filter_preferences.

    Example:
        repo = PreferenceRepository(DatabaseConfig())
        repo.save("user-1", "country-9", {"group_mode": True})
        repo.fetch("user-1", "country-9")["group_mode"]  # True
    """

    def __init__(self, db, logger_instance=None):
        super().__init__(db, logger_instance or logger)
        self._cache: dict[tuple[str, str], dict[str, Any]] = {}

    def ensure_schema(self) -> None:
        metadata.create_all(self.engine, tables=[user_filter_preferences])

    def clear_cache(self) -> None:
        self._cache.clear()

    def fetch(self, user_id: str, country_id: str) -> Optional[dict[str, Any]]:
        """
        Stored row for a user and country.

        Returns:
            Row as a dict, or None when no row exists
        """
        cache_key = (user_id, country_id)
        if cache_key in self._cache:
            return dict(self._cache[cache_key])

        query = select(user_filter_preferences).where(
            user_filter_preferences.c.user_id == user_id,
            user_filter_preferences.c.country_id == country_id,
        )

        def _read():
            with self.engine.connect() as conn:
                return conn.execute(query).mappings().first()

        row = self.run_with_schema(_read)

        if row is None:
            return None
        data = dict(row)
        self._cache[cache_key] = data
        return dict(data)

    def save(self, user_id: str, country_id: str, fields: Mapping[str, Any]) -> bool:
        """
        Merge `fields` into the row for a user and country.

        Updates the existing row (only the given columns) or inserts a new
        one with empty defaults for the rest.

        Raises:
            ValueError: If `fields` contains a column that is not writable
        """
        unknown = set(fields) - set(WRITABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown preference columns: {sorted(unknown)}")

        now = _utc_now()
        existing = self.fetch(user_id, country_id)

        def _write() -> None:
            with self.engine.begin() as conn:
                if existing:
                    conn.execute(
                        update(user_filter_preferences)
                        .where(user_filter_preferences.c.id == existing["id"])
                        .values(**dict(fields), updated_at=now)
                    )
                    return
                values = {
                    "selected_categories": [],
                    "selected_types": [],
                    "selected_sort_options": [],
                    "group_mode": None,
                    "view_mode": None,
                }
                values.update(fields)
                conn.execute(
                    insert(user_filter_preferences).values(
                        id=str(uuid.uuid4()),
                        user_id=user_id,
                        country_id=country_id,
                        created_at=now,
                        updated_at=now,
                        **values,
                    )
                )

        self.run_with_schema(_write)

        self._cache.pop((user_id, country_id), None)
        self._logger.info(f"Saved preferences for user={user_id} country={country_id}: {sorted(fields)}")
        return True
