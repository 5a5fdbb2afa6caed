"""
Filter system for the user service.

This package renders filter descriptors into OData-like `filter` expressions,
parses those expressions back, and translates them into query predicates.
"""

from .models import (
    FilterOperator,
    LogicalOperator,
    ValueKind,
    FilterDescriptor,
    SearchRequest,
    SEARCH_SCHEMA,
    value_kind,
    parse_search_request_json,
)
from .serializer import (
    format_datetime,
    format_filter_value,
    filter_to_expression,
    build_filter_expression,
    build_filter_query_params,
    build_single_filter_query_param,
    build_filter_query_string,
)
from .tokenizer import tokenize
from .parser import (
    ParseDiagnostic,
    ParseResult,
    FilterSyntaxError,
    parse_value,
    parse_filter_expression,
    parse_filter_groups,
    parse_filter_expression_with_diagnostics,
    parse_filter_query_result,
    parse_filter_query_params,
)
from .translator import (
    Predicate,
    PredicateKind,
    PredicateMap,
    translate_filter,
    translate_filters,
    translate_groups,
    parse_filters_from_query,
)

__all__ = [
    "FilterOperator",
    "LogicalOperator",
    "ValueKind",
    "FilterDescriptor",
    "SearchRequest",
    "SEARCH_SCHEMA",
    "value_kind",
    "parse_search_request_json",
    "format_datetime",
    "format_filter_value",
    "filter_to_expression",
    "build_filter_expression",
    "build_filter_query_params",
    "build_single_filter_query_param",
    "build_filter_query_string",
    "tokenize",
    "ParseDiagnostic",
    "ParseResult",
    "FilterSyntaxError",
    "parse_value",
    "parse_filter_expression",
    "parse_filter_groups",
    "parse_filter_expression_with_diagnostics",
    "parse_filter_query_result",
    "parse_filter_query_params",
    "Predicate",
    "PredicateKind",
    "PredicateMap",
    "translate_filter",
    "translate_filters",
    "translate_groups",
    "parse_filters_from_query",
]
