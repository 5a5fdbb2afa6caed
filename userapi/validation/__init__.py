"""
Validation module for the user service.

This module provides input validation for queries, columns, filters and form fields.
"""

from .rules import (
    _to_snake,
    _assert_sorts_allowed,
    _check_filters,
    _cap_page_size,
)
from .fields import (
    ValidationResult,
    validate_email,
    validate_required,
    validate_length,
)

__all__ = [
    "_to_snake",
    "_assert_sorts_allowed",
    "_check_filters",
    "_cap_page_size",
    "ValidationResult",
    "validate_email",
    "validate_required",
    "validate_length",
]
