"""
================================================================================
DARE YIW Tracker - Database Module Unit Tests
================================================================================
DARE YIW Tracker Team
DARE Youth in Work Programme

Description:
    Unit tests for the dare_tracker.database module: connection pooling,
    schema creation, record loading and standardized query results.

Test Coverage:
    - DatabaseConnectionPool: reuse, stats, temporary connections, CASEFOLD()
    - DatabaseManager: schema objects, raw queries, table stats
    - TableRepository: record and DataFrame inserts
    - Error Handling: failed queries and inserts return QueryResult errors

================================================================================
"""
import pytest
import pandas as pd

from dare_tracker.database import DatabaseManager, DatabaseConnectionPool, QueryResult
from dare_tracker.database_schema import FEASIBILITY_SCORE_COLUMNS


class TestDatabaseConnectionPool:
    """Test database connection pool functionality"""

    def test_connections_are_reused(self, temp_dir):
        pool = DatabaseConnectionPool(temp_dir / "pool.db", max_connections=2)

        with pool.get_connection() as conn:
            first = conn
        with pool.get_connection() as conn:
            assert conn is first

        assert pool.get_pool_stats() == {
            'pool_size': 1, 'created_connections': 1, 'max_connections': 2, 'in_use': 0
        }
        pool.close_all()

    def test_exhausted_pool_hands_out_temporary_connection(self, temp_dir):
        pool = DatabaseConnectionPool(temp_dir / "pool.db", max_connections=1)

        with pool.get_connection() as outer:
            with pool.get_connection() as inner:
                assert inner is not outer
                assert inner.execute("SELECT 1").fetchone()[0] == 1

        assert pool.get_pool_stats()['created_connections'] == 1
        pool.close_all()

    def test_casefold_function_registered(self, temp_dir):
        pool = DatabaseConnectionPool(temp_dir / "pool.db")
        with pool.get_connection() as conn:
            row = conn.execute("SELECT CASEFOLD('ÉLODIE Straße'), CASEFOLD(NULL), CASEFOLD(3)").fetchone()

        assert tuple(row) == ('élodie strasse', None, 3)
        pool.close_all()

    def test_errors_propagate(self, temp_dir):
        pool = DatabaseConnectionPool(temp_dir / "pool.db")
        with pytest.raises(Exception):
            with pool.get_connection() as conn:
                conn.execute("SELECT * FROM nowhere")
        pool.close_all()


class TestDatabaseManager:
    """Test schema creation and queries"""

    def test_schema_objects_exist(self, db_manager):
        result = db_manager.execute_query(
            "SELECT name FROM sqlite_master WHERE type IN ('table', 'view')"
        )
        names = {row['name'] for row in result.data}

        assert {'youth_profiles', 'business_profiles', 'business_tracking',
                'feasibility_assessments', 'mentors', 'feasibility_assessment_listing'} <= names

    def test_schema_is_idempotent(self, db_manager):
        db_manager.initialize_database()
        assert db_manager.get_repository('mentors').exists()

    def test_assessment_table_has_every_score_column(self, db_manager):
        result = db_manager.execute_query("PRAGMA table_info(feasibility_assessments)")
        columns = {row['name'] for row in result.data}
        assert set(FEASIBILITY_SCORE_COLUMNS) <= columns

    def test_failed_query_returns_error_result(self, db_manager):
        result = db_manager.execute_query("SELECT * FROM missing_table")

        assert isinstance(result, QueryResult)
        assert result.success is False
        assert 'missing_table' in result.error_message

    def test_table_stats(self, seeded_db):
        stats = seeded_db.get_table_stats()

        assert stats['youth_profiles'] == {'exists': True, 'row_count': 13}
        assert stats['mentors']['row_count'] == 3


class TestTableRepository:
    """Test record loading"""

    def test_insert_records(self, db_manager):
        repo = db_manager.get_repository('mentors')
        result = repo.insert_records([
            {'name': 'Grace Adjei', 'assigned_district': 'Bekwai'},
            {'name': 'Ibrahim Yakubu', 'assigned_district': 'Gushegu'},
        ])

        assert result.success
        assert result.row_count == 2
        assert repo.count() == 2

    def test_insert_empty_dataframe(self, db_manager):
        result = db_manager.get_repository('mentors').insert_dataframe(pd.DataFrame())
        assert result.success
        assert result.row_count == 0

    def test_insert_unknown_column_fails_cleanly(self, db_manager):
        result = db_manager.get_repository('mentors').insert_records([{'favourite_colour': 'blue'}])

        assert result.success is False
        assert result.error_message.startswith('Insert failed')

    def test_repository_is_cached(self, db_manager):
        assert db_manager.get_repository('mentors') is db_manager.get_repository('mentors')
