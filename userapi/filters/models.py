# userapi/filters/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import json

import jsonschema

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class FilterOperator(str, Enum):
    # comparison
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GE = "ge"
    LT = "lt"
    LE = "le"
    # string
    CONTAINS = "contains"
    STARTSWITH = "startswith"
    ENDSWITH = "endswith"
    # membership
    IN = "in"
    NOT_IN = "notIn"
    # null checks
    IS_NULL = "isNull"
    IS_NOT_NULL = "isNotNull"

    @classmethod
    def lookup(cls, text: str) -> Optional["FilterOperator"]:
        """
        Case-insensitive match of an operator token, e.g. 'NOTIN' -> NOT_IN.
        Returns None for anything that is not an operator.
        """
        return _OPERATORS_BY_LOWER.get(text.lower())


_OPERATORS_BY_LOWER: Dict[str, FilterOperator] = {op.value.lower(): op for op in FilterOperator}

NULL_CHECK_OPERATORS = frozenset({FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL})
ARRAY_OPERATORS = frozenset({FilterOperator.IN, FilterOperator.NOT_IN})
LIKE_OPERATORS = frozenset({FilterOperator.CONTAINS, FilterOperator.STARTSWITH, FilterOperator.ENDSWITH})
RANGE_OPERATORS = frozenset({FilterOperator.GT, FilterOperator.GE, FilterOperator.LT, FilterOperator.LE})


class LogicalOperator(str, Enum):
    AND = "and"
    OR = "or"


DEFAULT_LOGICAL_OPERATOR = LogicalOperator.AND


class ValueKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    ARRAY = "array"


Scalar = Union[str, int, float, bool]
FilterValue = Union[Scalar, Tuple[Scalar, ...], None]


def value_kind(value: Any) -> ValueKind:
    """
    Classify a filter value. bool is checked before number since bool is an int.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, date):
        return ValueKind.DATE
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    return ValueKind.STRING


# ---------------------------------------------------------------------------
# Core filter model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FilterDescriptor:
    """
    One predicate: a property, an operator and a value.
    Array values are frozen into tuples so the descriptor stays immutable.
    """
    prop: str
    operator: FilterOperator = FilterOperator.EQ
    value: FilterValue = None

    def __post_init__(self) -> None:
        if isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))

    @property
    def kind(self) -> ValueKind:
        return value_kind(self.value)

    # camelCase JSON helpers
    def to_dict(self) -> Dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {"prop": self.prop, "operator": self.operator.value, "value": value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterDescriptor":
        return cls(
            prop=data["prop"],
            operator=FilterOperator(data.get("operator", FilterOperator.EQ.value)),
            value=data.get("value"),
        )


# ---------------------------------------------------------------------------
# JSON search request
# ---------------------------------------------------------------------------

SEARCH_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "User SearchRequest",
    "$defs": {
        "Scalar": {"type": ["string", "number", "boolean", "null"]},
        "FilterDescriptor": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "prop": {"type": "string", "minLength": 1},
                "operator": {"type": "string", "enum": [op.value for op in FilterOperator]},
                "value": {},
            },
            "required": ["prop", "operator"],
            "allOf": [
                # in / notIn carry an array
                {
                    "if": {"properties": {"operator": {"enum": ["in", "notIn"]}}},
                    "then": {
                        "required": ["value"],
                        "properties": {"value": {"type": "array", "items": {"$ref": "#/$defs/Scalar"}}},
                    },
                    "else": {"properties": {"value": {"$ref": "#/$defs/Scalar"}}},
                },
            ],
        },
    },
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "filters": {"type": "array", "items": {"$ref": "#/$defs/FilterDescriptor"}},
        "logicalOperator": {"type": "string", "enum": ["and", "or"]},
        "page": {"type": "integer", "minimum": 1},
        "pageSize": {"type": "integer", "minimum": 0},
        "sortBy": {"type": "string"},
        "sortOrder": {"type": "string", "enum": ["asc", "desc"]},
    },
}


@dataclass
class SearchRequest:
    """
    Python-idiomatic model (snake_case) with camelCase JSON interop.
    """
    filters: List[FilterDescriptor] = field(default_factory=list)
    logical_operator: LogicalOperator = DEFAULT_LOGICAL_OPERATOR
    page: int = 1
    page_size: int = 0
    sort_by: str = ""
    sort_order: str = "asc"

    def groups(self) -> List[List[FilterDescriptor]]:
        """
        Conjunctive groups joined by OR: one group for AND, one group per filter for OR.
        """
        if not self.filters:
            return []
        if self.logical_operator == LogicalOperator.OR:
            return [[f] for f in self.filters]
        return [list(self.filters)]

    # camelCase JSON helpers
    def to_dict(self) -> Dict[str, Any]:
        return {
            "filters": [f.to_dict() for f in self.filters],
            "logicalOperator": self.logical_operator.value,
            "page": self.page,
            "pageSize": self.page_size,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchRequest":
        return cls(
            filters=[FilterDescriptor.from_dict(f) for f in data.get("filters", [])],
            logical_operator=LogicalOperator(data.get("logicalOperator", DEFAULT_LOGICAL_OPERATOR.value)),
            page=int(data.get("page", 1) or 1),
            page_size=int(data.get("pageSize", 0) or 0),
            sort_by=str(data.get("sortBy", "") or ""),
            sort_order=str(data.get("sortOrder", "asc") or "asc"),
        )


def parse_search_request_json(
    payload: Union[str, Dict[str, Any]],
    *,
    validate: bool = True,
) -> SearchRequest:
    """
    Accept a JSON string or dict and return a SearchRequest.
    Raises jsonschema.ValidationError when validation is on and the payload is malformed.
    """
    data = json.loads(payload) if isinstance(payload, str) else payload
    if validate:
        jsonschema.validate(instance=data, schema=SEARCH_SCHEMA)
    return SearchRequest.from_dict(data)


def flatten_groups(groups: Sequence[Sequence[FilterDescriptor]]) -> List[FilterDescriptor]:
    return [f for group in groups for f in group]


__all__ = [
    "FilterOperator",
    "LogicalOperator",
    "DEFAULT_LOGICAL_OPERATOR",
    "NULL_CHECK_OPERATORS",
    "ARRAY_OPERATORS",
    "LIKE_OPERATORS",
    "RANGE_OPERATORS",
    "ValueKind",
    "value_kind",
    "Scalar",
    "FilterValue",
    "FilterDescriptor",
    "SearchRequest",
    "SEARCH_SCHEMA",
    "parse_search_request_json",
    "flatten_groups",
]
