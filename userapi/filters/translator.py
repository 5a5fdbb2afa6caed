"""Translate parsed filters into data-access predicates."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from .models import FilterDescriptor, FilterOperator, ValueKind, value_kind
from .parser import parse_filter_query_result

logger = logging.getLogger(__name__)


class PredicateKind(str, Enum):
    EQUAL = "equal"
    MORE_THAN = "more_than"
    MORE_THAN_OR_EQUAL = "more_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IN = "in"
    IS_NULL = "is_null"
    ALL = "all"  # conjunction of `operands` on the same property


@dataclass(frozen=True)
class Predicate:
    kind: PredicateKind
    value: Any = None
    negated: bool = False
    operands: Tuple["Predicate", ...] = ()

    def negate(self) -> "Predicate":
        return Predicate(self.kind, self.value, not self.negated, self.operands)

    def conjoin(self, other: "Predicate") -> "Predicate":
        """
        AND two predicates on the same property, flattening nested ALLs.
        """
        left = self.operands if self.kind == PredicateKind.ALL and not self.negated else (self,)
        right = other.operands if other.kind == PredicateKind.ALL and not other.negated else (other,)
        return Predicate(PredicateKind.ALL, operands=left + right)


PredicateMap = Dict[str, Predicate]

_RANGE_KINDS = {
    FilterOperator.GT: PredicateKind.MORE_THAN,
    FilterOperator.GE: PredicateKind.MORE_THAN_OR_EQUAL,
    FilterOperator.LT: PredicateKind.LESS_THAN,
    FilterOperator.LE: PredicateKind.LESS_THAN_OR_EQUAL,
}

_PATTERN_KINDS = {
    FilterOperator.CONTAINS: PredicateKind.CONTAINS,
    FilterOperator.STARTSWITH: PredicateKind.STARTS_WITH,
    FilterOperator.ENDSWITH: PredicateKind.ENDS_WITH,
}


def _operator_of(descriptor: FilterDescriptor):
    op = descriptor.operator
    if isinstance(op, FilterOperator):
        return op
    return FilterOperator.lookup(str(op))


def translate_filter(descriptor: FilterDescriptor) -> Predicate | None:
    """
    Predicate for one filter, or None when the filter cannot constrain anything
    (in / notIn without a non-empty list).
    """
    op = _operator_of(descriptor)
    value = descriptor.value
    kind = value_kind(value)

    if op == FilterOperator.EQ:
        if kind == ValueKind.NULL:
            return Predicate(PredicateKind.IS_NULL)
        return Predicate(PredicateKind.EQUAL, value)

    if op == FilterOperator.NE:
        if kind == ValueKind.NULL:
            return Predicate(PredicateKind.IS_NULL, negated=True)
        return Predicate(PredicateKind.EQUAL, value, negated=True)

    if op in _RANGE_KINDS:
        return Predicate(_RANGE_KINDS[op], value)

    if op in _PATTERN_KINDS:
        return Predicate(_PATTERN_KINDS[op], value)

    if op in (FilterOperator.IN, FilterOperator.NOT_IN):
        if kind != ValueKind.ARRAY or not value:
            logger.debug("Skipping %s on %s without a non-empty list", op.value, descriptor.prop)
            return None
        return Predicate(PredicateKind.IN, tuple(value), negated=op == FilterOperator.NOT_IN)

    if op == FilterOperator.IS_NULL:
        return Predicate(PredicateKind.IS_NULL)

    if op == FilterOperator.IS_NOT_NULL:
        return Predicate(PredicateKind.IS_NULL, negated=True)

    return Predicate(PredicateKind.EQUAL, value)


def translate_filters(filters: Iterable[FilterDescriptor]) -> PredicateMap:
    """
    One predicate per property, in first-seen order. Repeated properties are
    combined with AND, so "age ge 18 and age le 65" keeps both bounds.
    """
    where: PredicateMap = {}
    for f in filters:
        predicate = translate_filter(f)
        if predicate is None:
            continue
        existing = where.get(f.prop)
        where[f.prop] = predicate if existing is None else existing.conjoin(predicate)
    return where


def translate_groups(groups: Sequence[Sequence[FilterDescriptor]]) -> List[PredicateMap]:
    """
    One predicate map per AND-group; a row matches when any map matches.
    A group that constrains nothing matches every row, so it makes the whole
    disjunction unconstrained and the result is [].
    """
    out: List[PredicateMap] = []
    for group in groups:
        where = translate_filters(group)
        if not where:
            logger.debug("Filter group %r constrains nothing; matching every row", list(group))
            return []
        out.append(where)
    return out


def parse_filters_from_query(query: Mapping[str, Any], *, strict: bool = False) -> List[PredicateMap]:
    return translate_groups(parse_filter_query_result(query, strict=strict).groups)


__all__ = [
    "PredicateKind",
    "Predicate",
    "PredicateMap",
    "translate_filter",
    "translate_filters",
    "translate_groups",
    "parse_filters_from_query",
]
