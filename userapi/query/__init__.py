"""
Query building module for the user service.

This module provides SQL query generation from predicate maps.
"""

from .builder import (
    build_where_clause_and_params,
    build_select_from_search,
    SearchModel,
    SelectBuildResult,
)

__all__ = [
    "build_where_clause_and_params",
    "build_select_from_search",
    "SearchModel",
    "SelectBuildResult",
]
