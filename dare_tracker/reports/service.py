"""
Report Service (Data Access Layer)

Data access layer for report queries. Executes translated StoreQuery objects
against the pooled SQLite connection and returns one page of rows with the
total count. Every database error is logged here and surfaced as a single
DataAccessFailure.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

import sqlite3
import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple, Sequence
from contextlib import contextmanager

from ..exceptions import DataAccessFailure
from .query import StoreQuery, build_select_sql, build_count_sql

logger = logging.getLogger(__name__)


@dataclass
class StorePage:
    """Rows of one fetch plus the total across all pages"""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    total: Optional[int] = None


class ReportService:
    """Base service for executing report queries"""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    @contextmanager
    def get_connection(self):
        """Get database connection from pool"""
        with self.db_manager.pool.get_connection() as conn:
            yield conn

    def execute_query(self, query: str, params: List[Any] = None) -> List[Tuple]:
        """
        Execute a query and return results.

        Args:
            query: SQL query string
            params: Query parameters

        Returns:
            List of result rows

        Raises:
            DataAccessFailure: if the database rejects the query
        """
        params = params or []
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(query, params)
                return cursor.fetchall()
        except sqlite3.Error as e:
            logger.error(f"Report query failed: {e}")
            raise DataAccessFailure(str(e)) from e

    def execute_single(self, query: str, params: List[Any] = None) -> Optional[Tuple]:
        """Execute query and return the first row, None when there is none"""
        params = params or []
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(query, params)
                return cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Report query failed: {e}")
            raise DataAccessFailure(str(e)) from e

    def fetch(self, query: StoreQuery) -> StorePage:
        """
        Fetch the rows selected by a store query.

        Both statements run on one pooled connection so the page and the
        total see the same data.

        Raises:
            DataAccessFailure: on any database error
        """
        select_sql, select_params = build_select_sql(query)
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(select_sql, select_params)
                columns = [desc[0] for desc in cursor.description] if cursor.description else []
                rows = [dict(zip(columns, row)) for row in cursor.fetchall()]

                total = None
                if query.include_total:
                    count_sql, count_params = build_count_sql(query)
                    count_row = conn.execute(count_sql, count_params).fetchone()
                    total = count_row[0] if count_row else 0
        except sqlite3.Error as e:
            logger.error(f"Fetch from {query.table} failed: {e}")
            raise DataAccessFailure(str(e), table=query.table) from e

        logger.debug(f"Fetched {len(rows)} rows from {query.table} (total={total})")
        return StorePage(rows=rows, total=total)

    def count(self, query: StoreQuery) -> int:
        """
        Number of rows a store query matches, ignoring its offset and limit.

        Raises:
            DataAccessFailure: on any database error
        """
        count_sql, count_params = build_count_sql(query)
        row = self.execute_single(count_sql, count_params)
        return row[0] if row else 0

    def distinct_values(self, table: str, column: str, base_conditions: Sequence[str] = ()) -> List[Any]:
        """Sorted distinct non-blank values of a column"""
        conditions = list(base_conditions) + [f"{column} IS NOT NULL", f"TRIM(CAST({column} AS TEXT)) != ''"]
        query = f"SELECT DISTINCT {column} FROM {table} WHERE {' AND '.join(conditions)} ORDER BY {column}"
        return [row[0] for row in self.execute_query(query)]

    def latest_revenue(self, business_ids: Sequence[int]) -> Dict[int, Any]:
        """
        Most recent tracked revenue per business.

        Returns:
            Dictionary of business id to actual_revenue of its latest
            tracking record; businesses without tracking are absent
        """
        latest: Dict[int, Any] = {}
        business_ids = list(business_ids)
        # Stay under SQLite's bound-variable limit
        for start in range(0, len(business_ids), 500):
            chunk = business_ids[start:start + 500]
            placeholders = ", ".join("?" for _ in chunk)
            query = f"""
                SELECT business_id, actual_revenue
                FROM business_tracking
                WHERE business_id IN ({placeholders})
                ORDER BY business_id, COALESCE(tracking_date, '') DESC, id DESC
            """
            for business_id, revenue in self.execute_query(query, chunk):
                latest.setdefault(business_id, revenue)
        return latest

    def tracking_revenue(self) -> List[Tuple]:
        """(tracking_date, actual_revenue) for every tracking record with a date"""
        query = """
            SELECT tracking_date, actual_revenue
            FROM business_tracking
            WHERE tracking_date IS NOT NULL
            ORDER BY tracking_date
        """
        return self.execute_query(query)
