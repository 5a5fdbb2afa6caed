from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple, Union, Iterable, Optional
import re

from ..filters import Predicate, PredicateKind, PredicateMap

_UNQUOTED_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")

def _quote_identifier(name: str, *, quote_identifiers: bool) -> str:
    """
    Quote an identifier if needed. Doubles internal quotes.
    """
    if not quote_identifiers and _UNQUOTED_IDENT_RE.match(name):
        return name
    escaped = name.replace('"', '""')
    return f'"{escaped}"'

def _quote_dotted_identifier(name: str, *, quote_identifiers: bool) -> str:
    """
    Quote a possibly dotted identifier (e.g., schema.table).
    """
    parts = [p.strip() for p in name.split(".")]
    return ".".join(_quote_identifier(p, quote_identifiers=quote_identifiers) for p in parts)

def _escape_like(value: str) -> str:
    """
    Escape \\, %, _ in LIKE patterns. We'll use ESCAPE '\\' in SQL.
    """
    value = value.replace("\\", "\\\\")
    value = value.replace("%", "\\%").replace("_", "\\_")
    return value

class _ParamSink:
    """
    Collects params and returns the correct placeholder per paramstyle.
      - 'qmark' -> ?, params is a list
      - 'named' -> :p1, params is a dict
    """
    def __init__(self, paramstyle: str = "qmark", *, prefix: str = "p", start_index: int = 1):
        if paramstyle not in {"qmark", "named"}:
            raise ValueError("paramstyle must be 'qmark' or 'named'")
        self.paramstyle = paramstyle
        self.prefix = prefix
        self.next_idx = start_index
        self.params_list: List[Any] = []
        self.params_dict: Dict[str, Any] = {}

    def add(self, value: Any) -> str:
        if self.paramstyle == "qmark":
            self.params_list.append(value)
            return "?"
        else:
            name = f"{self.prefix}{self.next_idx}"
            self.next_idx += 1
            self.params_dict[name] = value
            return f":{name}"

    def bundle(self) -> Union[List[Any], Dict[str, Any]]:
        return self.params_list if self.paramstyle == "qmark" else self.params_dict

def _format_like_pattern(val: Any, kind: PredicateKind) -> str:
    lit = _escape_like(str(val))
    if kind == PredicateKind.CONTAINS:
        return f"%{lit}%"
    if kind == PredicateKind.STARTS_WITH:
        return f"{lit}%"
    if kind == PredicateKind.ENDS_WITH:
        return f"%{lit}"
    raise AssertionError("LIKE pattern requested for non-like predicate")

_COMPARISONS = {
    PredicateKind.EQUAL: ("=", "<>"),
    PredicateKind.MORE_THAN: (">", "<="),
    PredicateKind.MORE_THAN_OR_EQUAL: (">=", "<"),
    PredicateKind.LESS_THAN: ("<", ">="),
    PredicateKind.LESS_THAN_OR_EQUAL: ("<=", ">"),
}

def _build_predicate_sql(col: str, p: Predicate, sink: _ParamSink) -> str:
    kind = p.kind

    # several predicates on one column
    if kind == PredicateKind.ALL:
        parts = [_build_predicate_sql(col, o, sink) for o in p.operands]
        body = " AND ".join(parts) if parts else "1=1"
        return f"NOT ({body})" if p.negated else f"({body})"

    # IS NULL / IS NOT NULL
    if kind == PredicateKind.IS_NULL:
        return f"{col} IS NOT NULL" if p.negated else f"{col} IS NULL"

    # LIKE family
    if kind in (PredicateKind.CONTAINS, PredicateKind.STARTS_WITH, PredicateKind.ENDS_WITH):
        ph = sink.add(_format_like_pattern(p.value, kind))
        neg = "NOT " if p.negated else ""
        return f"{col} {neg}LIKE {ph} ESCAPE '\\'"

    # IN / NOT IN
    if kind == PredicateKind.IN:
        vals = list(p.value or ())
        if not vals:
            # IN () is always false; NOT IN () is always true
            return "1=1" if p.negated else "1=0"
        phs = ", ".join(sink.add(v) for v in vals)
        neg = "NOT " if p.negated else ""
        return f"{col} {neg}IN ({phs})"

    # Scalar compares
    if kind in _COMPARISONS:
        op, negated_op = _COMPARISONS[kind]
        rhs = sink.add(p.value)
        return f"{col} {negated_op if p.negated else op} {rhs}"

    raise ValueError(f"Unsupported predicate: {kind}")

def _combine(parts: List[str], joiner: str) -> str:
    if not parts:
        return ""
    if len(parts) == 1:
        return f"({parts[0]})"
    return "(" + f" {joiner} ".join(parts) + ")"

def build_where_clause_and_params(
    where: Sequence[PredicateMap],
    *,
    paramstyle: str = "qmark",        # 'qmark' -> ?,  'named' -> :p1
    quote_identifiers: bool = False,
    default_when_empty: str = "1=1",
    include_where_keyword: bool = True,
    param_name_prefix: str = "p",
    param_start_index: int = 1,
    extra: Optional[PredicateMap] = None,
) -> Tuple[str, Union[List[Any], Dict[str, Any]]]:
    """
    Returns (where_sql, params) for predicate maps joined by OR, each map's
    columns joined by AND. An empty map matches every row, so it drops the
    whole disjunction. `extra` is ANDed onto the whole disjunction.
    If `include_where_keyword` is True, where_sql will be 'WHERE ...';
    otherwise it's just the predicate text.
    """
    sink = _ParamSink(paramstyle, prefix=param_name_prefix, start_index=param_start_index)

    def render_map(m: PredicateMap) -> str:
        parts = [
            _build_predicate_sql(_quote_identifier(col, quote_identifiers=quote_identifiers), p, sink)
            for col, p in m.items()
        ]
        return _combine(parts, "AND")

    maps = list(where or [])
    if any(not m for m in maps):
        maps = []
    groups = [render_map(m) for m in maps]
    outer: List[str] = []
    if groups:
        outer.append(groups[0] if len(groups) == 1 else _combine(groups, "OR"))
    if extra:
        outer.append(render_map(extra))

    if not outer:
        body = default_when_empty
    elif len(outer) == 1:
        # drop outer parens for prettiness
        body = outer[0][1:-1]
    else:
        body = " AND ".join(outer)

    if not body:
        return "", sink.bundle()
    where_sql = f"WHERE {body}" if include_where_keyword else body
    return where_sql, sink.bundle()

# -----------------------------------------------------------------------------
# SELECT builder
# -----------------------------------------------------------------------------
def _normalize_columns(columns: Iterable[str], *, quote_identifiers: bool) -> str:
    """
    Turn a list of column names into a SELECT list.
    - If empty -> '*'
    - '*' is passed through as-is.
    - Dotted identifiers are quoted segment-by-segment when quoting enabled.
    """
    cols = list(columns or [])
    if not cols:
        return "*"

    out: List[str] = []
    for c in cols:
        s = c.strip()
        if s == "*":
            out.append("*")
        elif "." in s:
            out.append(_quote_dotted_identifier(s, quote_identifiers=quote_identifiers))
        else:
            out.append(_quote_identifier(s, quote_identifiers=quote_identifiers))
    return ", ".join(out)

def _parse_sort_item(item: str) -> Tuple[str, str]:
    """
    Accepts:
      - '-age'            -> ('age','DESC')
      - 'age'             -> ('age','ASC')
      - 'age DESC'        -> ('age','DESC')
      - 'age:desc'        -> ('age','DESC')
    """
    s = item.strip()
    if not s:
        return ("", "ASC")

    if s.startswith("-"):
        return (s[1:].strip(), "DESC")

    if ":" in s and s.count(":") == 1:
        col, dir_ = s.split(":")
        d = dir_.strip().upper()
        return (col.strip(), "DESC" if d in ("DESC", "D") else "ASC")

    parts = s.split()
    if len(parts) == 2 and parts[1].upper() in ("ASC", "DESC"):
        return (parts[0].strip(), parts[1].upper())

    return (s, "ASC")

def _build_order_by(sort_list: Iterable[str], *, quote_identifiers: bool) -> str:
    pairs = [p for p in (_parse_sort_item(x) for x in (sort_list or [])) if p[0]]
    if not pairs:
        return ""
    rendered: List[str] = []
    for col, direction in pairs:
        if "." in col:
            ident = _quote_dotted_identifier(col, quote_identifiers=quote_identifiers)
        else:
            ident = _quote_identifier(col, quote_identifiers=quote_identifiers)
        rendered.append(f"{ident} {direction}")
    return "ORDER BY " + ", ".join(rendered)

@dataclass
class SearchModel:
    """
    What to read from one table: columns, predicate maps (ORed), sort and paging.
    page_index is zero-based.
    """
    entity_name: str = ""
    columns: List[str] = field(default_factory=list)
    where: List[PredicateMap] = field(default_factory=list)
    sort: List[str] = field(default_factory=list)
    page_size: int = 0
    page_index: int = 0
    extra: PredicateMap = field(default_factory=dict)

@dataclass
class SelectBuildResult:
    sql: str
    params: Union[List[Any], Dict[str, Any]]
    count_sql: Optional[str] = None
    count_params: Optional[Union[List[Any], Dict[str, Any]]] = None

def build_select_from_search(
    sm: SearchModel,
    *,
    paramstyle: str = "qmark",
    quote_identifiers: bool = False,
    include_count: bool = False,
) -> SelectBuildResult:
    """
    Build a complete SELECT from a SearchModel.
    - SELECT list from sm.columns
    - FROM from sm.entity_name (supports schema.table)
    - WHERE from sm.where / sm.extra (parametrized)
    - ORDER BY from sm.sort (supports '-col', 'col DESC', 'col:desc')
    - LIMIT/OFFSET from sm.page_size / sm.page_index
    """
    if not sm.entity_name:
        raise ValueError("SearchModel.entity_name is required")

    select_list = _normalize_columns(sm.columns, quote_identifiers=quote_identifiers)
    from_name = _quote_dotted_identifier(sm.entity_name, quote_identifiers=quote_identifiers)

    # WHERE (skip adding WHERE if filter is empty)
    where_body, params = build_where_clause_and_params(
        sm.where,
        paramstyle=paramstyle,
        quote_identifiers=quote_identifiers,
        include_where_keyword=False,
        default_when_empty="",  # IMPORTANT: don't emit WHERE 1=1 in SELECT
        extra=sm.extra,
    )
    where_clause = f"WHERE {where_body}" if where_body.strip() else ""

    order_clause = _build_order_by(sm.sort, quote_identifiers=quote_identifiers)

    # Paging
    limit_clause = ""
    if sm.page_size and sm.page_size > 0:
        limit_clause = f"LIMIT {int(sm.page_size)}"
        if sm.page_index and sm.page_index > 0:
            offset = int(sm.page_index) * int(sm.page_size)
            limit_clause += f" OFFSET {offset}"

    sql = f"SELECT {select_list} FROM {from_name}"
    if where_clause:
        sql += f" {where_clause}"
    if order_clause:
        sql += f" {order_clause}"
    if limit_clause:
        sql += f" {limit_clause}"

    # Optional COUNT(*) mirror
    count_sql = None
    count_params = None
    if include_count:
        where_only, count_params = build_where_clause_and_params(
            sm.where,
            paramstyle=paramstyle,
            quote_identifiers=quote_identifiers,
            include_where_keyword=False,
            default_when_empty="",  # mirror behavior
            extra=sm.extra,
        )
        if where_only.strip():
            count_sql = f"SELECT COUNT(*) FROM {from_name} WHERE {where_only}"
        else:
            count_sql = f"SELECT COUNT(*) FROM {from_name}"

    return SelectBuildResult(sql=sql, params=params, count_sql=count_sql, count_params=count_params)

# -----------------------------------------------------------------------------
# Public exports
# -----------------------------------------------------------------------------
__all__ = [
    "build_where_clause_and_params",
    "build_select_from_search",
    "SearchModel",
    "SelectBuildResult",
]
