"""
Database operations for the user service.

This module handles SQLite connections, schema setup and query execution.
"""

from .sqlite import (
    get_conn,
    init_schema,
    _describe_table_sqlite,
    _execute_query_with_conn,
    _execute_write,
)

__all__ = [
    "get_conn",
    "init_schema",
    "_describe_table_sqlite",
    "_execute_query_with_conn",
    "_execute_write",
]
