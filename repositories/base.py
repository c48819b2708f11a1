"""
Base Repository

Foundation for all repository classes. Every database operation goes through
run_with_schema(), which recovers from a missing schema by creating it and
retrying once; read_df() builds on it for DataFrame reads.

Design Principles:
1. Dependency Injection - receives a DatabaseConfig (anything with `.engine`)
2. Schema Recovery - "no such table" triggers ensure_schema() + one retry
3. Consistent interface - all repositories inherit this pattern
"""

from typing import Any, Callable, Mapping, Optional, TypeVar
import logging
import pandas as pd

from logging_config import setup_logging

logger = setup_logging(__name__)

T = TypeVar("T")


class BaseRepository:
    """
    Base class for repository implementations.

    Attributes:
        db: DatabaseConfig (or any object exposing a SQLAlchemy `engine`)
    """

    def __init__(self, db, logger_instance: Optional[logging.Logger] = None):
        self.db = db
        self._logger = logger_instance or logger

    @property
    def engine(self):
        return self.db.engine

    def ensure_schema(self) -> None:
        """Create the tables this repository needs. Subclasses override."""

    def run_with_schema(self, operation: Callable[[], T], *, create_missing_schema: bool = True) -> T:
        """Run a database operation, creating the schema once if it is missing.

        Args:
            operation: Zero-argument callable doing the database work
            create_missing_schema: If False, missing-table errors are re-raised

        Returns:
            Whatever `operation` returns
        """
        try:
            return operation()
        except Exception as e:
            msg = str(e).lower()
            if create_missing_schema and "no such table" in msg:
                self._logger.error(f"Missing table ('{msg}'); creating schema and retrying")
                self.ensure_schema()
                return operation()
            raise

    def read_df(
        self,
        query: Any,
        params: Mapping[str, Any] | None = None,
        *,
        create_missing_schema: bool = True,
    ) -> pd.DataFrame:
        """Execute a read-only query and return a DataFrame.

        Args:
            query: SQL string or SQLAlchemy selectable
            params: Optional query parameters
            create_missing_schema: If False, re-raise missing-table errors

        Returns:
            DataFrame with query results
        """

        def _run() -> pd.DataFrame:
            with self.engine.connect() as conn:
                return pd.read_sql_query(query, conn, params=params)

        return self.run_with_schema(_run, create_missing_schema=create_missing_schema)
