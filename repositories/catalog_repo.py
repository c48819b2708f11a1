"""
Catalog Repository

Record source and sort/filter option source for one country: catalog rows,
category/type definitions, sort options, currencies and the sultan order.

Design Principles:
1. Single Responsibility - only data access; grouping and sorting live in services
2. Cached Functions - module-level @st.cache_data wrappers (Streamlit can't hash `self`)
3. Targeted Invalidation - invalidate_catalog_caches() clears only these caches
4. BaseRepository - read_df() with schema recovery
"""

from typing import Optional
import logging
import time

import pandas as pd
import streamlit as st
from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, select

from config import DatabaseConfig
from domain import CatalogEntry, FilterOption, SortOption
from domain.converters import safe_int, safe_str
from logging_config import setup_logging
from repositories.base import BaseRepository

logger = setup_logging(__name__, log_file="catalog_repo.log")

metadata = MetaData()

banknotes = Table(
    "banknotes",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("country_id", String(64), nullable=False, index=True),
    Column("extended_pick_number", String(32)),
    Column("category", String(128)),
    Column("category_id", String(64)),
    Column("sultan_name", String(128)),
    Column("type", String(128)),
    Column("type_id", String(64)),
    Column("denomination", String(128)),
    Column("year", String(16)),
    Column("image_urls", Text),
    Column("item_kind", String(32)),
    Column("created_at", String(40)),
)

category_definitions = Table(
    "banknote_category_definitions",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("country_id", String(64), nullable=False, index=True),
    Column("name", String(128), nullable=False),
    Column("display_order", Integer, default=0),
)

type_definitions = Table(
    "banknote_type_definitions",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("country_id", String(64), nullable=False, index=True),
    Column("name", String(128), nullable=False),
    Column("display_order", Integer, default=0),
)

sort_options = Table(
    "banknote_sort_options",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("country_id", String(64), nullable=False, index=True),
    Column("name", String(128), nullable=False),
    Column("field_name", String(64), nullable=False),
    Column("is_required", Boolean, default=False),
    Column("display_order", Integer, default=0),
)

currencies = Table(
    "currencies",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("country_id", String(64), nullable=False, index=True),
    Column("name", String(64), nullable=False),
    Column("display_order", Integer, default=0),
)

sultan_order = Table(
    "sultan_order",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("country_id", String(64), nullable=False, index=True),
    Column("name", String(128), nullable=False),
    Column("display_order", Integer, default=0),
)


class CatalogRepository(BaseRepository):
    """
    Reads catalog rows and option definitions for a country.

    Example:
        repo = CatalogRepository(DatabaseConfig())
        entries = repo.get_entries("country-1")
        options = repo.get_sort_options("country-1")
    """

    def __init__(self, db, logger_instance: Optional[logging.Logger] = None):
        super().__init__(db, logger_instance or logger)

    def ensure_schema(self) -> None:
        metadata.create_all(self.engine)

    def get_entries(self, country_id: str) -> list[CatalogEntry]:
        """Catalog entries of a country in storage order."""
        start = time.perf_counter()
        query = select(banknotes).where(banknotes.c.country_id == country_id)
        df = self.read_df(query)
        entries = [CatalogEntry.from_dataframe_row(row) for _, row in df.iterrows()]
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        self._logger.info(f"TIME get_entries({country_id}) = {elapsed} ms ({len(entries)} rows)")
        return entries

    def _read_options(self, table: Table, country_id: str) -> pd.DataFrame:
        query = (
            select(table)
            .where(table.c.country_id == country_id)
            .order_by(table.c.display_order)
        )
        return self.read_df(query)

    def get_category_options(self, country_id: str) -> list[FilterOption]:
        df = self._read_options(category_definitions, country_id)
        return [
            FilterOption(id=safe_str(row["id"]), name=safe_str(row["name"]),
                         display_order=safe_int(row["display_order"]))
            for _, row in df.iterrows()
        ]

    def get_type_options(self, country_id: str) -> list[FilterOption]:
        df = self._read_options(type_definitions, country_id)
        return [
            FilterOption(id=safe_str(row["id"]), name=safe_str(row["name"]),
                         display_order=safe_int(row["display_order"]))
            for _, row in df.iterrows()
        ]

    def get_sort_options(self, country_id: str) -> list[SortOption]:
        df = self._read_options(sort_options, country_id)
        return [
            SortOption(
                id=safe_str(row["id"]),
                name=safe_str(row["name"]),
                field_name=safe_str(row["field_name"]),
                is_required=bool(row["is_required"]) if not pd.isna(row["is_required"]) else False,
                display_order=safe_int(row["display_order"]),
            )
            for _, row in df.iterrows()
        ]

    def get_currencies(self, country_id: str) -> list[dict]:
        df = self._read_options(currencies, country_id)
        return [
            {"name": safe_str(row["name"]), "display_order": safe_int(row["display_order"])}
            for _, row in df.iterrows()
        ]

    def get_sultan_order(self, country_id: str) -> dict[str, int]:
        df = self._read_options(sultan_order, country_id)
        return {safe_str(row["name"]): safe_int(row["display_order"]) for _, row in df.iterrows()}

    def get_category_order(self, country_id: str) -> dict[str, int]:
        return {opt.name: opt.display_order for opt in self.get_category_options(country_id)}


# =============================================================================
# Cached accessors for Streamlit pages
# =============================================================================

def get_catalog_repository() -> CatalogRepository:
    """Session-scoped CatalogRepository for the configured database."""
    from state import get_service

    return get_service("catalog_repository", lambda: CatalogRepository(DatabaseConfig()))


@st.cache_data(ttl=600, show_spinner=False)
def fetch_entries_cached(country_id: str) -> list[CatalogEntry]:
    return get_catalog_repository().get_entries(country_id)


@st.cache_data(ttl=3600, show_spinner=False)
def fetch_options_cached(country_id: str) -> dict:
    """Category, type and sort options plus lookup tables for one country."""
    repo = get_catalog_repository()
    return {
        "categories": repo.get_category_options(country_id),
        "types": repo.get_type_options(country_id),
        "sort_options": repo.get_sort_options(country_id),
        "currencies": repo.get_currencies(country_id),
        "sultan_order": repo.get_sultan_order(country_id),
    }


def invalidate_catalog_caches() -> None:
    fetch_entries_cached.clear()
    fetch_options_cached.clear()
