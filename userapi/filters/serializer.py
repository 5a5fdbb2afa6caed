"""
Render filter descriptors into the OData-like `filter` query parameter.

    >>> build_filter_expression([FilterDescriptor("status", FilterOperator.EQ, "active")])
    'status eq active'
"""
from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Union
from urllib.parse import quote

from .models import (
    DEFAULT_LOGICAL_OPERATOR,
    ARRAY_OPERATORS,
    NULL_CHECK_OPERATORS,
    FilterDescriptor,
    FilterOperator,
    LogicalOperator,
)
from .parser import _NUMBER_RE

_QUOTE_TRIGGERS = (" ", "'", '"', "@", "(", ")")
_ARRAY_QUOTE_TRIGGERS = (" ", "'", '"', ",", "(", ")")
_KEYWORDS = {"null", "true", "false"}
# characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _quote(value: str) -> str:
    """
    Single-quote a string, doubling internal single quotes.
    """
    return "'" + value.replace("'", "''") + "'"


def format_datetime(value: Union[date, datetime]) -> str:
    """
    ISO-8601 text for dates. Datetimes are normalised to UTC with millisecond
    precision and a 'Z' suffix; naive datetimes are taken to already be UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat(timespec="milliseconds") + "Z"
    return value.isoformat()


def _needs_quotes(value: str, triggers) -> bool:
    # bare text that would parse back as something other than this string
    if value == "" or value in _KEYWORDS or _NUMBER_RE.match(value):
        return True
    return any(ch in value for ch in triggers)


def _format_array_item(item: Any) -> str:
    if isinstance(item, str):
        return _quote(item) if _needs_quotes(item, _ARRAY_QUOTE_TRIGGERS) else item
    return _format_scalar(item)


def _format_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return format_datetime(value)
    if isinstance(value, str):
        return _quote(value) if _needs_quotes(value, _QUOTE_TRIGGERS) else value
    return str(value)


def format_filter_value(value: Any) -> str:
    """
    OData text for an atomic or array filter value. Never fails.
    """
    if isinstance(value, (list, tuple)):
        return "(" + ", ".join(_format_array_item(v) for v in value) + ")"
    return _format_scalar(value)


def filter_to_expression(descriptor: FilterDescriptor) -> str:
    """
    "<prop> <operator> <value>", or "<prop> <operator>" for the null checks.
    """
    op = FilterOperator(descriptor.operator)
    if op in NULL_CHECK_OPERATORS:
        return f"{descriptor.prop} {op.value}"
    if op in ARRAY_OPERATORS and not isinstance(descriptor.value, (list, tuple)):
        # a lone scalar still goes out as a one-element list
        return f"{descriptor.prop} {op.value} {format_filter_value([descriptor.value])}"
    return f"{descriptor.prop} {op.value} {format_filter_value(descriptor.value)}"


def build_filter_expression(
    filters: Iterable[FilterDescriptor],
    logical_operator: Union[LogicalOperator, str] = DEFAULT_LOGICAL_OPERATOR,
) -> str:
    joiner = LogicalOperator(logical_operator).value
    return f" {joiner} ".join(filter_to_expression(f) for f in filters)


def build_filter_query_params(
    filters: Iterable[FilterDescriptor],
    logical_operator: Union[LogicalOperator, str] = DEFAULT_LOGICAL_OPERATOR,
) -> Dict[str, str]:
    """
    {"filter": "<expression>"}, or {} when there is nothing to filter on.
    """
    expression = build_filter_expression(filters, logical_operator)
    if not expression:
        return {}
    return {"filter": expression}


def build_single_filter_query_param(prop: str, operator: FilterOperator, value: Any = None) -> Dict[str, str]:
    return build_filter_query_params([FilterDescriptor(prop, operator, value)])


def build_filter_query_string(
    filters: Iterable[FilterDescriptor],
    logical_operator: Union[LogicalOperator, str] = DEFAULT_LOGICAL_OPERATOR,
) -> str:
    """
    Ready-made, percent-encoded query string (same escaping as encodeURIComponent).
    """
    params = build_filter_query_params(filters, logical_operator)
    return "&".join(
        f"{quote(key, safe=_URI_COMPONENT_SAFE)}={quote(value, safe=_URI_COMPONENT_SAFE)}"
        for key, value in params.items()
    )


__all__ = [
    "format_datetime",
    "format_filter_value",
    "filter_to_expression",
    "build_filter_expression",
    "build_filter_query_params",
    "build_single_filter_query_param",
    "build_filter_query_string",
]
