"""
Database Layer

SQLite database layer with a thread-safe connection pool, standardized query
results and a manager that owns schema creation and record loading. The
report engine only ever reads through this layer.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

import sqlite3
import logging
import threading
import time
from pathlib import Path
from typing import List, Dict, Any, Optional, Union, Tuple
from contextlib import contextmanager
from datetime import datetime, date
from dataclasses import dataclass, field

import pandas as pd

from .config import config

# Register datetime adapters for Python 3.12+ compatibility
sqlite3.register_adapter(datetime, lambda dt: dt.isoformat(sep=' '))
sqlite3.register_adapter(date, lambda d: d.isoformat())
sqlite3.register_adapter(pd.Timestamp, lambda ts: ts.isoformat(sep=' '))


def casefold(value):
    """SQL CASEFOLD(): Unicode case folding for text, other values unchanged"""
    return value.casefold() if isinstance(value, str) else value


@dataclass
class QueryResult:
    """Standardized query result with metadata"""
    success: bool
    data: Optional[Union[List[Dict], pd.DataFrame]] = None
    row_count: int = 0
    columns: List[str] = field(default_factory=list)
    execution_time_ms: float = 0.0
    error_message: Optional[str] = None


class DatabaseConnectionPool:
    """Thread-safe SQLite connection pool"""

    def __init__(self, db_path: Path, max_connections: int = 10, timeout: float = 30.0):
        self.db_path = Path(db_path)
        self.max_connections = max_connections
        self.timeout = timeout
        self._pool: List[sqlite3.Connection] = []
        self._pool_lock = threading.Lock()
        self._created_connections = 0
        self.logger = logging.getLogger(self.__class__.__name__)

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _create_connection(self) -> sqlite3.Connection:
        """Create a new configured database connection"""
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.timeout,
            check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        # SQLite's LOWER() only folds ASCII; keyword search needs full Unicode folding
        conn.create_function("CASEFOLD", 1, casefold, deterministic=True)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute(f"PRAGMA journal_mode = {config.database.journal_mode}")
        conn.execute("PRAGMA synchronous = NORMAL")
        conn.execute("PRAGMA temp_store = MEMORY")
        return conn

    @contextmanager
    def get_connection(self):
        """Get a connection from the pool, returning it on exit"""
        conn = None
        temp_connection = False
        try:
            with self._pool_lock:
                if self._pool:
                    conn = self._pool.pop()
                elif self._created_connections < self.max_connections:
                    conn = self._create_connection()
                    self._created_connections += 1

            if conn is None:
                # Pool exhausted, hand out a temporary connection
                conn = self._create_connection()
                temp_connection = True

            yield conn

        except Exception as e:
            self.logger.error(f"Database error: {e}")
            if conn is not None:
                try:
                    conn.rollback()
                except sqlite3.Error as rollback_error:
                    self.logger.warning(f"Rollback failed: {rollback_error}")
            raise
        finally:
            if conn is not None:
                if temp_connection:
                    conn.close()
                else:
                    with self._pool_lock:
                        if len(self._pool) < self.max_connections:
                            self._pool.append(conn)
                        else:
                            conn.close()
                            self._created_connections -= 1

    def close_all(self):
        """Close all connections in the pool"""
        with self._pool_lock:
            for conn in self._pool:
                try:
                    conn.close()
                except sqlite3.Error as e:
                    self.logger.warning(f"Error closing connection: {e}")
            self._pool.clear()
            self._created_connections = 0

    def get_pool_stats(self) -> Dict[str, int]:
        """Get connection pool statistics for monitoring"""
        with self._pool_lock:
            return {
                'pool_size': len(self._pool),
                'created_connections': self._created_connections,
                'max_connections': self.max_connections,
                'in_use': self._created_connections - len(self._pool)
            }


class TableRepository:
    """Row access for a single table"""

    def __init__(self, connection_pool: DatabaseConnectionPool, table_name: str):
        self.pool = connection_pool
        self.table_name = table_name
        self.logger = logging.getLogger(f"{self.__class__.__name__}[{table_name}]")

    def count(self) -> int:
        """Get total record count"""
        with self.pool.get_connection() as conn:
            row = conn.execute(f"SELECT COUNT(*) FROM {self.table_name}").fetchone()
        return row[0] if row else 0

    def exists(self) -> bool:
        """Check if the table or view exists"""
        with self.pool.get_connection() as conn:
            row = conn.execute(
                "SELECT name FROM sqlite_master WHERE type IN ('table', 'view') AND name = ?",
                (self.table_name,)
            ).fetchone()
        return row is not None

    def insert_dataframe(self, df: pd.DataFrame) -> QueryResult:
        """Append DataFrame rows to the table"""
        if df.empty:
            return QueryResult(success=True, row_count=0)

        start_time = time.time()
        try:
            with self.pool.get_connection() as conn:
                df.to_sql(
                    self.table_name,
                    conn,
                    if_exists='append',
                    index=False,
                    method='multi',
                    # Stay under SQLite's bound-variable limit
                    chunksize=max(1, 900 // max(1, len(df.columns)))
                )
                conn.commit()
        except Exception as e:
            error_msg = f"Insert failed: {e}"
            self.logger.error(error_msg)
            return QueryResult(
                success=False,
                error_message=error_msg,
                execution_time_ms=(time.time() - start_time) * 1000
            )

        execution_time = (time.time() - start_time) * 1000
        self.logger.info(f"Inserted {len(df)} records into {self.table_name}")
        return QueryResult(
            success=True,
            row_count=len(df),
            columns=df.columns.tolist(),
            execution_time_ms=execution_time
        )

    def insert_records(self, records: List[Dict[str, Any]]) -> QueryResult:
        """Append plain record dicts to the table"""
        return self.insert_dataframe(pd.DataFrame.from_records(records))


class DatabaseManager:
    """
    Main database manager.

    Owns the connection pool, creates the schema on start-up and hands out
    per-table repositories for loading data.
    """

    def __init__(self, db_path: Path = None):
        self.db_path = Path(db_path or config.database.path)
        self.pool = DatabaseConnectionPool(
            self.db_path,
            max_connections=config.database.max_connections,
            timeout=config.database.connection_timeout
        )
        self.logger = logging.getLogger(self.__class__.__name__)
        self._table_repos: Dict[str, TableRepository] = {}

        self.initialize_database()

    def get_repository(self, table_name: str) -> TableRepository:
        """Get repository for a specific table"""
        if table_name not in self._table_repos:
            self._table_repos[table_name] = TableRepository(self.pool, table_name)
        return self._table_repos[table_name]

    def initialize_database(self):
        """Initialize database schema"""
        from .database_schema import get_schema_sql

        statement_count = 0
        with self.pool.get_connection() as conn:
            for statement in get_schema_sql().split(';'):
                statement = statement.strip()
                if not statement:
                    continue
                try:
                    conn.execute(statement)
                    statement_count += 1
                except sqlite3.OperationalError as stmt_error:
                    if "already exists" in str(stmt_error).lower():
                        self.logger.debug(f"Skipping existing object: {stmt_error}")
                        continue
                    self.logger.error(f"Error executing statement: {statement[:200]}")
                    raise
            conn.commit()
        self.logger.info(f"Database schema initialized ({statement_count} statements executed)")

    def execute_query(self, query: str, params: Optional[Tuple] = None) -> QueryResult:
        """Execute a raw read query with standardized result handling"""
        start_time = time.time()
        try:
            with self.pool.get_connection() as conn:
                cursor = conn.execute(query, params or ())
                columns = [desc[0] for desc in cursor.description] if cursor.description else []
                data = [dict(zip(columns, row)) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            error_msg = f"Query failed: {e}"
            self.logger.error(error_msg)
            return QueryResult(
                success=False,
                error_message=error_msg,
                execution_time_ms=(time.time() - start_time) * 1000
            )

        return QueryResult(
            success=True,
            data=data,
            row_count=len(data),
            columns=columns,
            execution_time_ms=(time.time() - start_time) * 1000
        )

    def get_table_stats(self) -> Dict[str, Dict[str, Any]]:
        """Row counts for each tracker table"""
        stats = {}
        for table_name in ('youth_profiles', 'business_profiles', 'business_tracking',
                           'mentors', 'feasibility_assessments'):
            repo = self.get_repository(table_name)
            exists = repo.exists()
            stats[table_name] = {
                'exists': exists,
                'row_count': repo.count() if exists else 0
            }
        return stats

    def close(self):
        """Close all database connections"""
        self.pool.close_all()
        self.logger.info("Database manager closed - all connections released")


_db_manager: Optional[DatabaseManager] = None
_db_manager_lock = threading.Lock()


def get_database_manager() -> DatabaseManager:
    """Get the global database manager instance, creating it on first use"""
    global _db_manager
    with _db_manager_lock:
        if _db_manager is None:
            _db_manager = DatabaseManager()
        return _db_manager


def reset_database_manager():
    """Close and forget the global database manager"""
    global _db_manager
    with _db_manager_lock:
        if _db_manager is not None:
            _db_manager.close()
        _db_manager = None
