import pytest

from userapi.filters import Predicate, PredicateKind, parse_filters_from_query
from userapi.query import SearchModel, build_select_from_search, build_where_clause_and_params
from userapi.query.builder import _parse_sort_item


def eq(v, negated=False):
    return Predicate(PredicateKind.EQUAL, v, negated=negated)


def test_empty_where():
    assert build_where_clause_and_params([]) == ("WHERE 1=1", [])
    assert build_where_clause_and_params([], default_when_empty="", include_where_keyword=False) == ("", [])


def test_empty_map_unconstrains_the_disjunction():
    sql, params = build_where_clause_and_params([{"age": Predicate(PredicateKind.MORE_THAN, 18)}, {}])
    assert sql == "WHERE 1=1"
    assert params == []

    sql, params = build_where_clause_and_params([{}], extra={"is_active": eq(True)})
    assert sql == "WHERE is_active = ?"
    assert params == [True]


def test_single_map_is_anded():
    sql, params = build_where_clause_and_params(
        [{"age": Predicate(PredicateKind.MORE_THAN, 18), "status": eq("active")}]
    )
    assert sql == "WHERE age > ? AND status = ?"
    assert params == [18, "active"]


def test_maps_are_ored():
    sql, params = build_where_clause_and_params([{"a": eq(1)}, {"b": eq(2)}])
    assert sql == "WHERE (a = ?) OR (b = ?)"
    assert params == [1, 2]


def test_extra_is_anded_onto_disjunction():
    sql, params = build_where_clause_and_params([{"a": eq(1)}, {"b": eq(2)}], extra={"is_active": eq(True)})
    assert sql == "WHERE ((a = ?) OR (b = ?)) AND (is_active = ?)"
    assert params == [1, 2, True]


def test_negated_comparisons_use_the_opposite_operator():
    sql, _ = build_where_clause_and_params([{"status": eq("x", negated=True)}])
    assert sql == "WHERE status <> ?"
    sql, _ = build_where_clause_and_params([{"age": Predicate(PredicateKind.MORE_THAN, 1, negated=True)}])
    assert sql == "WHERE age <= ?"


def test_like_patterns_are_escaped():
    sql, params = build_where_clause_and_params([{"name": Predicate(PredicateKind.CONTAINS, "50%_x")}])
    assert sql == "WHERE name LIKE ? ESCAPE '\\'"
    assert params == ["%50\\%\\_x%"]

    _, params = build_where_clause_and_params([{"name": Predicate(PredicateKind.STARTS_WITH, "Jo")}])
    assert params == ["Jo%"]
    _, params = build_where_clause_and_params([{"name": Predicate(PredicateKind.ENDS_WITH, "hn")}])
    assert params == ["%hn"]


def test_membership():
    sql, params = build_where_clause_and_params([{"role": Predicate(PredicateKind.IN, ("a", "b"))}])
    assert sql == "WHERE role IN (?, ?)"
    assert params == ["a", "b"]
    sql, _ = build_where_clause_and_params([{"role": Predicate(PredicateKind.IN, ("a",), negated=True)}])
    assert sql == "WHERE role NOT IN (?)"
    sql, params = build_where_clause_and_params([{"role": Predicate(PredicateKind.IN, ())}])
    assert sql == "WHERE 1=0"
    assert params == []


def test_null_checks():
    sql, _ = build_where_clause_and_params([{"deleted_at": Predicate(PredicateKind.IS_NULL)}])
    assert sql == "WHERE deleted_at IS NULL"
    sql, _ = build_where_clause_and_params([{"deleted_at": Predicate(PredicateKind.IS_NULL, negated=True)}])
    assert sql == "WHERE deleted_at IS NOT NULL"


def test_merged_range():
    where = parse_filters_from_query({"filter": "age ge 18 and age le 65"})
    sql, params = build_where_clause_and_params(where)
    assert sql == "WHERE (age >= ? AND age <= ?)"
    assert params == [18, 65]


def test_named_paramstyle():
    sql, params = build_where_clause_and_params(
        [{"age": Predicate(PredicateKind.MORE_THAN, 18), "name": eq("Al")}], paramstyle="named"
    )
    assert sql == "WHERE age > :p1 AND name = :p2"
    assert params == {"p1": 18, "p2": "Al"}


def test_unknown_paramstyle():
    with pytest.raises(ValueError):
        build_where_clause_and_params([], paramstyle="pyformat")


def test_quoted_identifiers():
    sql, _ = build_where_clause_and_params([{"first_name": eq("A")}], quote_identifiers=True)
    assert sql == 'WHERE "first_name" = ?'


@pytest.mark.parametrize(
    "item,expected",
    [
        ("age", ("age", "ASC")),
        ("-age", ("age", "DESC")),
        ("age DESC", ("age", "DESC")),
        ("age:desc", ("age", "DESC")),
        ("age:asc", ("age", "ASC")),
    ],
)
def test_sort_items(item, expected):
    assert _parse_sort_item(item) == expected


def test_select_with_paging_and_count():
    sm = SearchModel(
        entity_name="users",
        where=[{"age": Predicate(PredicateKind.MORE_THAN, 18)}],
        sort=["-created_at"],
        page_size=10,
        page_index=2,
    )
    res = build_select_from_search(sm, include_count=True)
    assert res.sql == "SELECT * FROM users WHERE age > ? ORDER BY created_at DESC LIMIT 10 OFFSET 20"
    assert res.params == [18]
    assert res.count_sql == "SELECT COUNT(*) FROM users WHERE age > ?"
    assert res.count_params == [18]


def test_select_without_filters():
    res = build_select_from_search(SearchModel(entity_name="users", columns=["id", "email"]))
    assert res.sql == "SELECT id, email FROM users"
    assert res.count_sql is None


def test_select_requires_entity():
    with pytest.raises(ValueError):
        build_select_from_search(SearchModel())
