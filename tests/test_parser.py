import pytest

from userapi.filters import (
    FilterDescriptor,
    FilterOperator,
    FilterSyntaxError,
    build_filter_expression,
    parse_filter_expression,
    parse_filter_expression_with_diagnostics,
    parse_filter_groups,
    parse_filter_query_params,
    parse_filter_query_result,
    parse_value,
)
from userapi.filters import parser as p


def fd(prop, op, value=None):
    return FilterDescriptor(prop, op, value)


class TestParseValue:
    def test_literals(self):
        assert parse_value("null") is None
        assert parse_value("true") is True
        assert parse_value("false") is False
        assert parse_value("active") == "active"

    def test_quoted_strings(self):
        assert parse_value("'John Smith'") == "John Smith"
        assert parse_value('"John Smith"') == "John Smith"
        assert parse_value("'O''Brien'") == "O'Brien"
        assert parse_value("''") == ""
        # quoted literals stay strings
        assert parse_value("'18'") == "18"
        assert parse_value("'null'") == "null"

    def test_numbers(self):
        assert parse_value("18") == 18
        assert isinstance(parse_value("18"), int)
        assert parse_value("-3") == -3
        assert parse_value("1.5") == 1.5
        assert parse_value("1e3") == 1000.0

    def test_non_finite_and_non_numeric_stay_raw(self):
        assert parse_value("inf") == "inf"
        assert parse_value("NaN") == "NaN"
        assert parse_value("12abc") == "12abc"
        assert parse_value("2024-01-02T03:04:05.000Z") == "2024-01-02T03:04:05.000Z"

    def test_lists(self):
        assert parse_value("(admin, editor)") == ("admin", "editor")
        assert parse_value("(1, 2, 3)") == (1, 2, 3)
        assert parse_value("(admin, 'chief editor')") == ("admin", "chief editor")
        assert parse_value("('a,b', c)") == ("a,b", "c")
        assert parse_value("(admin,)") == ("admin",)
        assert parse_value("()") == ()


class TestParseExpression:
    def test_empty(self):
        assert parse_filter_expression("") == []
        assert parse_filter_expression("   ") == []
        assert parse_filter_expression(None) == []

    def test_conjunction(self):
        assert parse_filter_expression("age gt 18 and status eq active") == [
            fd("age", FilterOperator.GT, 18),
            fd("status", FilterOperator.EQ, "active"),
        ]

    def test_membership_list(self):
        assert parse_filter_expression("role in (admin, editor)") == [
            fd("role", FilterOperator.IN, ["admin", "editor"]),
        ]

    def test_null_check_consumes_two_tokens(self):
        assert parse_filter_expression("deletedAt isNull") == [fd("deletedAt", FilterOperator.IS_NULL)]
        assert parse_filter_expression("deletedAt isNull and bio isNotNull and age gt 1") == [
            fd("deletedAt", FilterOperator.IS_NULL),
            fd("bio", FilterOperator.IS_NOT_NULL),
            fd("age", FilterOperator.GT, 1),
        ]

    def test_unknown_operator_is_dropped(self):
        assert parse_filter_expression("name bogus x") == []
        assert parse_filter_expression("name bogus x and age gt 1") == [fd("age", FilterOperator.GT, 1)]

    def test_operators_match_case_insensitively(self):
        assert parse_filter_expression("role NOTIN (a, b) AND deletedAt ISNULL and name StartsWith Jo") == [
            fd("role", FilterOperator.NOT_IN, ["a", "b"]),
            fd("deletedAt", FilterOperator.IS_NULL),
            fd("name", FilterOperator.STARTSWITH, "Jo"),
        ]

    def test_quoted_joiner_is_not_split(self):
        assert parse_filter_expression("bio eq 'rock and roll' and age gt 1") == [
            fd("bio", FilterOperator.EQ, "rock and roll"),
            fd("age", FilterOperator.GT, 1),
        ]

    def test_list_followed_by_more_filters(self):
        assert parse_filter_expression("role in (a, b) and age le 65") == [
            fd("role", FilterOperator.IN, ["a", "b"]),
            fd("age", FilterOperator.LE, 65),
        ]

    def test_trailing_fragment_is_dropped(self):
        assert parse_filter_expression("age gt 18 and status") == [fd("age", FilterOperator.GT, 18)]
        assert parse_filter_expression("age gt") == []


class TestGroups:
    def test_and_binds_tighter_than_or(self):
        groups = parse_filter_groups("a eq 1 and b eq 2 or c eq 3")
        assert groups == [
            [fd("a", FilterOperator.EQ, 1), fd("b", FilterOperator.EQ, 2)],
            [fd("c", FilterOperator.EQ, 3)],
        ]

    def test_flat_view_keeps_every_filter_in_order(self):
        assert parse_filter_expression("a eq 1 or b eq 2") == [
            fd("a", FilterOperator.EQ, 1),
            fd("b", FilterOperator.EQ, 2),
        ]

    def test_leading_or_does_not_create_empty_group(self):
        assert parse_filter_groups("or a eq 1") == [[fd("a", FilterOperator.EQ, 1)]]

    def test_alternative_with_only_dropped_terms_stays_as_empty_group(self):
        assert parse_filter_groups("a eq 1 or x bogus y") == [[fd("a", FilterOperator.EQ, 1)], []]
        assert parse_filter_groups("x bogus y or a eq 1") == [[], [fd("a", FilterOperator.EQ, 1)]]
        assert parse_filter_groups("name bogus x") == [[]]
        assert parse_filter_expression("a eq 1 or x bogus y") == [fd("a", FilterOperator.EQ, 1)]

    def test_trailing_or_adds_no_group(self):
        assert parse_filter_groups("a eq 1 or") == [[fd("a", FilterOperator.EQ, 1)]]


class TestDiagnostics:
    def codes(self, expr):
        return [d.code for d in parse_filter_expression_with_diagnostics(expr).diagnostics]

    def test_clean_expression_has_none(self):
        result = parse_filter_expression_with_diagnostics("age gt 18 or role in (a, b)")
        assert result.ok
        assert len(result.filters) == 2

    def test_unknown_operator(self):
        result = parse_filter_expression_with_diagnostics("name bogus x")
        assert [d.code for d in result.diagnostics] == [p.UNKNOWN_OPERATOR]
        assert result.diagnostics[0].position == 1
        assert result.diagnostics[0].token == "bogus"

    def test_incomplete(self):
        assert p.INCOMPLETE_EXPRESSION in self.codes("age gt")

    def test_dangling_joiner(self):
        assert self.codes("age gt 18 and") == [p.DANGLING_JOINER]
        assert self.codes("and age gt 18") == [p.DANGLING_JOINER]

    def test_unterminated_quote(self):
        result = parse_filter_expression_with_diagnostics("name eq 'abc")
        assert result.diagnostics[0].code == p.UNTERMINATED_QUOTE

    def test_unbalanced_list_still_yields_filter(self):
        result = parse_filter_expression_with_diagnostics("role in (a, b")
        assert result.filters == [fd("role", FilterOperator.IN, ["a", "b"])]
        assert [d.code for d in result.diagnostics] == [p.UNBALANCED_PARENTHESIS]

    def test_grouping_parentheses_are_reported(self):
        result = parse_filter_expression_with_diagnostics("(age gt 1)")
        assert result.filters == [fd("age", FilterOperator.GT, 1)]
        assert [d.code for d in result.diagnostics] == [p.UNSUPPORTED_GROUPING, p.UNSUPPORTED_GROUPING]


class TestQueryParams:
    def test_reads_filter_param(self):
        assert parse_filter_query_params({"filter": "age gt 18", "page": "2"}) == [fd("age", FilterOperator.GT, 18)]

    def test_missing_or_non_string(self):
        assert parse_filter_query_params({}) == []
        assert parse_filter_query_params({"filter": 5}) == []
        assert parse_filter_query_params({"filter": ["age gt 1"]}) == []

    def test_lenient_mode_degrades(self):
        assert parse_filter_query_params({"filter": "name bogus x and age gt 1"}) == [fd("age", FilterOperator.GT, 1)]

    def test_strict_mode_raises(self):
        with pytest.raises(FilterSyntaxError) as info:
            parse_filter_query_result({"filter": "name bogus x"}, strict=True)
        assert isinstance(info.value, ValueError)
        assert info.value.expression == "name bogus x"
        assert info.value.diagnostics[0].code == p.UNKNOWN_OPERATOR

    def test_strict_mode_accepts_valid_input(self):
        result = parse_filter_query_result({"filter": "age gt 18"}, strict=True)
        assert result.filters == [fd("age", FilterOperator.GT, 18)]


ROUND_TRIP = [
    fd("age", FilterOperator.GT, 18),
    fd("score", FilterOperator.LE, 2.5),
    fd("status", FilterOperator.EQ, "active"),
    fd("status", FilterOperator.NE, "banned"),
    fd("role", FilterOperator.IN, ["admin", "chief editor"]),
    fd("role", FilterOperator.NOT_IN, [1, 2]),
    fd("deletedAt", FilterOperator.IS_NULL),
    fd("bio", FilterOperator.IS_NOT_NULL),
    fd("name", FilterOperator.CONTAINS, "John Smith"),
    fd("email", FilterOperator.ENDSWITH, "@example.com"),
    fd("isActive", FilterOperator.EQ, True),
    fd("lastName", FilterOperator.EQ, "O'Brien"),
    fd("bio", FilterOperator.EQ, ""),
    fd("manager", FilterOperator.EQ, None),
    fd("bio", FilterOperator.EQ, "01234"),
    fd("code", FilterOperator.EQ, "42"),
    fd("flag", FilterOperator.EQ, "true"),
    fd("note", FilterOperator.EQ, "null"),
    fd("role", FilterOperator.IN, ["", "z"]),
    fd("tag", FilterOperator.IN, ["1", "false", "a,b"]),
]


def test_round_trip():
    assert parse_filter_expression(build_filter_expression(ROUND_TRIP)) == ROUND_TRIP


def test_round_trip_with_or():
    expr = build_filter_expression(ROUND_TRIP[:3], "or")
    assert parse_filter_groups(expr) == [[f] for f in ROUND_TRIP[:3]]
