"""
Tests for BaseRepository

Tests the foundation repository class with:
- Successful reads via read_df()
- Missing-schema recovery (ensure_schema + one retry)
- Other errors are re-raised
- Recovery can be disabled
"""
import pytest
import pandas as pd
from unittest.mock import Mock, patch, PropertyMock

from repositories.base import BaseRepository


class TestBaseRepository:
    """Test cases for BaseRepository.read_df() and run_with_schema()"""

    def _make_repo(self, engine=None):
        """Helper to create a BaseRepository with mock DatabaseConfig."""
        mock_db = Mock()
        mock_db.alias = "test_db"

        if engine is not None:
            type(mock_db).engine = PropertyMock(return_value=engine)

        repo = BaseRepository(mock_db)
        repo.ensure_schema = Mock()
        return repo, mock_db

    def _mock_engine(self):
        """Create a mock engine whose connect() works as a context manager."""
        mock_conn = Mock()
        mock_conn.__enter__ = Mock(return_value=mock_conn)
        mock_conn.__exit__ = Mock(return_value=None)

        mock_engine = Mock()
        mock_engine.connect.return_value = mock_conn
        return mock_engine, mock_conn

    def test_read_df_success(self):
        """Test that read_df returns data from the engine on success."""
        expected = pd.DataFrame({'id': [1, 2], 'name': ['a', 'b']})
        mock_engine, _ = self._mock_engine()
        repo, _ = self._make_repo(engine=mock_engine)

        with patch('pandas.read_sql_query', return_value=expected) as mock_read:
            result = repo.read_df("SELECT * FROM test")

            assert isinstance(result, pd.DataFrame)
            assert len(result) == 2
            mock_read.assert_called_once()
            repo.ensure_schema.assert_not_called()

    def test_read_df_no_such_table_creates_schema_and_retries(self):
        """Test that 'no such table' error triggers ensure_schema + retry."""
        expected = pd.DataFrame({'id': [1]})
        mock_engine, _ = self._mock_engine()
        repo, _ = self._make_repo(engine=mock_engine)

        call_count = 0

        def side_effect(*args, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise Exception("no such table: banknotes")
            return expected

        with patch('pandas.read_sql_query', side_effect=side_effect):
            result = repo.read_df("SELECT * FROM banknotes")

            assert isinstance(result, pd.DataFrame)
            assert call_count == 2
            repo.ensure_schema.assert_called_once()

    def test_read_df_other_error_raises(self):
        """Test that errors other than a missing table are re-raised."""
        mock_engine, _ = self._mock_engine()
        repo, _ = self._make_repo(engine=mock_engine)

        with patch('pandas.read_sql_query', side_effect=ConnectionError("disk I/O error")):
            with pytest.raises(ConnectionError, match="disk I/O error"):
                repo.read_df("SELECT * FROM test")

            repo.ensure_schema.assert_not_called()

    def test_read_df_no_recovery_when_disabled(self):
        """Test that schema creation is skipped when create_missing_schema=False."""
        mock_engine, _ = self._mock_engine()
        repo, _ = self._make_repo(engine=mock_engine)

        with patch('pandas.read_sql_query', side_effect=Exception("no such table: banknotes")):
            with pytest.raises(Exception, match="no such table"):
                repo.read_df("SELECT * FROM banknotes", create_missing_schema=False)

            repo.ensure_schema.assert_not_called()

    def test_retry_failure_propagates(self):
        """A second failure after creating the schema is not swallowed."""
        repo, _ = self._make_repo()
        operation = Mock(side_effect=Exception("no such table: banknotes"))

        with pytest.raises(Exception, match="no such table"):
            repo.run_with_schema(operation)

        assert operation.call_count == 2
        repo.ensure_schema.assert_called_once()

    def test_read_df_passes_params(self):
        """Test that params are forwarded to read_sql_query."""
        expected = pd.DataFrame({'id': [1]})
        mock_engine, _ = self._mock_engine()
        repo, _ = self._make_repo(engine=mock_engine)

        with patch('pandas.read_sql_query', return_value=expected) as mock_read:
            repo.read_df("SELECT * FROM test WHERE id = :id",
                         params={"id": 42})

            call_kwargs = mock_read.call_args
            assert call_kwargs[1]['params'] == {"id": 42}

    def test_db_attribute_accessible(self):
        """Test that the db attribute is publicly accessible."""
        mock_db = Mock()
        mock_db.alias = "test_db"
        repo = BaseRepository(mock_db)
        assert repo.db is mock_db


if __name__ == "__main__":
    pytest.main([__file__])
