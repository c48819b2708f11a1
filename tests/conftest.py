"""
Pytest configuration file for the catalog browser project.
This file sets up the Python path so tests can import modules from the project root.
"""
import sys
import types
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from domain import CatalogEntry, FilterOption, ItemKind, SortOption, derive_base_catalog_number  # noqa: E402
from state.session_storage import SessionStorage  # noqa: E402


def make_entry(
    entry_id: str,
    catalog_number: str = "",
    category: str = "Issued Notes",
    sultan: str | None = None,
    kind: ItemKind = ItemKind.LISTED,
    **kwargs,
) -> CatalogEntry:
    """Build a CatalogEntry the way the catalog repository would."""
    return CatalogEntry(
        id=entry_id,
        catalog_number=catalog_number,
        base_catalog_number=derive_base_catalog_number(catalog_number),
        category_key=category,
        sultan_key=sultan,
        item_kind=kind,
        **kwargs,
    )


@pytest.fixture
def entry_factory():
    return make_entry


@pytest.fixture
def p101_entries():
    """P101a, P101b, P101c and P102, all Issued Notes."""
    return [
        make_entry("1", "P101a"),
        make_entry("2", "P101b"),
        make_entry("3", "P101c"),
        make_entry("4", "P102"),
    ]


@pytest.fixture
def session_backing():
    return {}


@pytest.fixture
def session_storage(session_backing):
    return SessionStorage(backing=session_backing)


@pytest.fixture
def sort_options():
    return [
        SortOption(id="so-pick", name="Catalog number", field_name="extPick", is_required=True, display_order=1),
        SortOption(id="so-face", name="Face value", field_name="faceValue", display_order=2),
        SortOption(id="so-sultan", name="Sultan", field_name="sultan", display_order=3),
        SortOption(id="so-year", name="Year", field_name="year", display_order=4),
    ]


@pytest.fixture
def category_options():
    return [
        FilterOption(id="cat-1", name="Issued Notes", display_order=1),
        FilterOption(id="cat-2", name="Ottoman Empire", display_order=2),
    ]


@pytest.fixture
def type_options():
    return [
        FilterOption(id="type-1", name="Issued Notes", display_order=1),
        FilterOption(id="type-2", name="Specimen", display_order=2),
        FilterOption(id="type-3", name="Error Banknote", display_order=3),
    ]


@pytest.fixture
def sqlite_db(tmp_path):
    """Stand-in for DatabaseConfig backed by a sqlite file in tmp_path."""
    from sqlalchemy import create_engine

    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}")
    yield types.SimpleNamespace(alias="test_db", path=str(tmp_path / "test.db"), engine=engine)
    engine.dispose()
