import logging
import re
from typing import List, Sequence

from .. import config
from ..registry import RegistryEntry
from ..filters import FilterDescriptor
from ..filters.models import LIKE_OPERATORS, RANGE_OPERATORS

logger = logging.getLogger(__name__)

_TEXTY = {"TEXT"}
_ORDERABLE = {"NUMBER", "TIMESTAMP", "TEXT"}


def _to_snake(name: str) -> str:
    """
    Convert camelCase string to snake_case.
    Example: 'createdAt' -> 'created_at'
    """
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1).lower()


def _assert_sorts_allowed(entity: str, sorts: List[str], reg: RegistryEntry) -> None:
    allowed = set(reg["columns"].keys())
    for s in sorts or []:
        s = s.strip()
        if not s:
            continue
        col = s[1:] if s.startswith("-") else s.split(":")[0].split()[0]
        if col not in allowed:
            raise ValueError(f"Sort field not allowed for {entity}: {col}")


def _filter_problem(f: FilterDescriptor, column: str, reg: RegistryEntry) -> str:
    allowed = reg["columns"]
    if column not in allowed:
        return f"Filter column not allowed: {f.prop}"
    typ = allowed[column]
    if f.operator in LIKE_OPERATORS and typ not in _TEXTY:
        return f"Operator {f.operator.value} not allowed on non-text column {f.prop}"
    if f.operator in RANGE_OPERATORS and typ not in _ORDERABLE:
        return f"Operator {f.operator.value} not allowed on column {f.prop} of type {typ}"
    return ""


def _check_filters(
    entity: str,
    groups: Sequence[Sequence[FilterDescriptor]],
    reg: RegistryEntry,
    *,
    strict: bool = False,
) -> List[List[FilterDescriptor]]:
    """
    Map camelCase props to columns and keep only filters the table can answer.
    Rejected filters are dropped with a warning, or raise ValueError when strict.
    A group left with nothing to check matches every row, which leaves the
    whole disjunction unconstrained: the result is then [].
    """
    out: List[List[FilterDescriptor]] = []
    for group in groups:
        kept: List[FilterDescriptor] = []
        for f in group:
            column = _to_snake(f.prop)
            problem = _filter_problem(f, column, reg)
            if problem:
                if strict:
                    raise ValueError(f"{problem} (entity {entity})")
                logger.warning("Dropping filter on %s - %s", entity, problem)
                continue
            kept.append(FilterDescriptor(column, f.operator, f.value))
        if not kept:
            logger.warning("Filter group on %s no longer constrains anything; ignoring the filter", entity)
            return []
        out.append(kept)
    return out


def _cap_page_size(entity: str, page_size: int, reg: RegistryEntry) -> int:
    cap = int(reg.get("maxPageSize", config.GLOBAL_MAX_PAGE_SIZE))
    if page_size <= 0:
        return min(config.DEFAULT_PAGE_SIZE, cap)
    return min(page_size, cap)
