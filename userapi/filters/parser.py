"""Parse OData-like filter expressions back into filter descriptors.

The parser is lenient by default: unknown operators, trailing fragments and
unbalanced quotes or parentheses degrade the filter instead of failing the
request. Every degradation is also recorded as a ParseDiagnostic so callers
that want strict behaviour can refuse the expression instead.

Logical joiners are resolved at token level with `and` binding tighter than
`or`, so the result is a list of AND-groups joined by OR.
"""
from __future__ import annotations
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from .models import (
    ARRAY_OPERATORS,
    NULL_CHECK_OPERATORS,
    FilterDescriptor,
    FilterOperator,
    FilterValue,
    LogicalOperator,
    flatten_groups,
)
from .tokenizer import tokenize_with_diagnostics

logger = logging.getLogger(__name__)

FILTER_PARAM = "filter"

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_JOINERS = {op.value: op for op in LogicalOperator}


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

UNKNOWN_OPERATOR = "unknown_operator"
INCOMPLETE_EXPRESSION = "incomplete_expression"
UNTERMINATED_QUOTE = "unterminated_quote"
UNBALANCED_PARENTHESIS = "unbalanced_parenthesis"
UNSUPPORTED_GROUPING = "unsupported_grouping"
DANGLING_JOINER = "dangling_joiner"


@dataclass(frozen=True)
class ParseDiagnostic:
    code: str
    position: int  # token index
    token: str
    message: str

    def to_dict(self) -> dict:
        return {"code": self.code, "position": self.position, "token": self.token, "message": self.message}


@dataclass
class ParseResult:
    groups: List[List[FilterDescriptor]] = field(default_factory=list)
    diagnostics: List[ParseDiagnostic] = field(default_factory=list)

    @property
    def filters(self) -> List[FilterDescriptor]:
        return flatten_groups(self.groups)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


class FilterSyntaxError(ValueError):
    """Raised in strict mode when a filter expression had to be degraded."""

    def __init__(self, expression: str, diagnostics: List[ParseDiagnostic]):
        self.expression = expression
        self.diagnostics = list(diagnostics)
        summary = "; ".join(d.message for d in self.diagnostics) or "invalid filter"
        super().__init__(f"Invalid filter expression: {summary}")


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

def _split_array_items(content: str) -> List[str]:
    """Split on commas that sit outside quotes."""
    items: List[str] = []
    current: List[str] = []
    quote_char: Optional[str] = None
    for ch in content:
        if quote_char is not None:
            current.append(ch)
            if ch == quote_char:
                quote_char = None
        elif ch in ("'", '"'):
            quote_char = ch
            current.append(ch)
        elif ch == ",":
            items.append("".join(current))
            current = []
        else:
            current.append(ch)
    items.append("".join(current))
    return [s.strip() for s in items if s.strip()]


def _parse_number(token: str) -> Optional[Union[int, float]]:
    if not _NUMBER_RE.match(token):
        return None
    if _INTEGER_RE.match(token):
        return int(token)
    num = float(token)
    return num if math.isfinite(num) else None


def parse_value(token: str) -> FilterValue:
    """
    Typed value of a single token. First match wins:
    null, quoted string, parenthesised list, boolean, finite number, raw text.
    """
    if token == "null":
        return None

    if len(token) >= 2 and token[0] == token[-1] and token[0] in ("'", '"'):
        return token[1:-1].replace("''", "'")

    if len(token) >= 2 and token.startswith("(") and token.endswith(")"):
        return tuple(parse_value(item) for item in _split_array_items(token[1:-1]))

    if token == "true":
        return True
    if token == "false":
        return False

    num = _parse_number(token)
    if num is not None:
        return num

    return token


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

class _ExpressionParser:
    """
    Cursor over one token stream. Not shared between calls.
    """

    def __init__(self, tokens: List[str]):
        self.tokens = tokens
        self.pos = 0
        self.groups: List[List[FilterDescriptor]] = [[]]
        # groups that saw at least one term, even if every term was dropped
        self.attempted: set = set()
        self.diagnostics: List[ParseDiagnostic] = []

    def _diag(self, code: str, position: int, message: str) -> None:
        token = self.tokens[position] if position < len(self.tokens) else ""
        self.diagnostics.append(ParseDiagnostic(code, position, token, message))

    def _remaining(self) -> int:
        return len(self.tokens) - self.pos

    def _joiner(self, position: int) -> Optional[LogicalOperator]:
        if position >= len(self.tokens):
            return None
        return _JOINERS.get(self.tokens[position].lower())

    def _collect_list(self, start: int) -> str:
        """
        Reassemble tokens after an opening parenthesis into one '(...)' token
        and move the cursor past the matching ')'.
        """
        j = start
        parts: List[str] = []
        while j < len(self.tokens) and self.tokens[j] != ")":
            if self.tokens[j] != "(":
                parts.append(self.tokens[j])
            j += 1
        if j >= len(self.tokens):
            self._diag(UNBALANCED_PARENTHESIS, start - 1, "list value is missing its closing ')'")
        self.pos = j + 1
        return "(" + " ".join(parts) + ")"

    def parse(self) -> List[List[FilterDescriptor]]:
        expecting_operand = False
        while self.pos < len(self.tokens):
            token = self.tokens[self.pos]

            joiner = self._joiner(self.pos)
            if joiner is not None:
                if expecting_operand or not self._group_started():
                    self._diag(DANGLING_JOINER, self.pos, f"'{token}' has nothing on its left")
                if joiner == LogicalOperator.OR and self._group_started():
                    self.groups.append([])
                expecting_operand = True
                self.pos += 1
                continue

            if token in ("(", ")"):
                self._diag(UNSUPPORTED_GROUPING, self.pos, "parenthesised grouping is not supported")
                self.pos += 1
                continue

            start = self.pos
            self.attempted.add(len(self.groups) - 1)
            if self._remaining() < 2:
                self._diag(INCOMPLETE_EXPRESSION, start, f"'{token}' is missing an operator and a value")
                self.pos += 1
                expecting_operand = False
                continue

            prop = token
            op_token = self.tokens[start + 1]
            operator = FilterOperator.lookup(op_token)

            if operator in NULL_CHECK_OPERATORS:
                self.pos += 2
                self._append(FilterDescriptor(prop, operator, None))
                expecting_operand = False
                continue

            if self._remaining() < 3:
                self._diag(INCOMPLETE_EXPRESSION, start, f"'{prop} {op_token}' is missing a value")
                self.pos += 1
                expecting_operand = False
                continue

            value_token = self.tokens[start + 2]
            if operator in ARRAY_OPERATORS and value_token == "(":
                value_token = self._collect_list(start + 3)
            else:
                self.pos += 3

            expecting_operand = False
            if operator is None:
                self._diag(UNKNOWN_OPERATOR, start + 1, f"'{op_token}' is not a filter operator")
                continue

            self._append(FilterDescriptor(prop, operator, parse_value(value_token)))

        if expecting_operand:
            self._diag(DANGLING_JOINER, len(self.tokens) - 1, "expression ends with a logical operator")

        # a group whose terms were all dropped constrains nothing; keep it empty
        return [g for i, g in enumerate(self.groups) if g or i in self.attempted]

    def _group_started(self) -> bool:
        return bool(self.groups[-1]) or len(self.groups) - 1 in self.attempted

    def _append(self, descriptor: FilterDescriptor) -> None:
        self.groups[-1].append(descriptor)


def parse_filter_expression_with_diagnostics(expression: Optional[str]) -> ParseResult:
    if not expression or not expression.strip():
        return ParseResult()

    scanned = tokenize_with_diagnostics(expression)
    parser = _ExpressionParser(scanned.tokens)
    groups = parser.parse()

    diagnostics = list(parser.diagnostics)
    if scanned.unterminated_quote is not None:
        diagnostics.insert(
            0,
            ParseDiagnostic(
                UNTERMINATED_QUOTE,
                max(len(scanned.tokens) - 1, 0),
                scanned.tokens[-1] if scanned.tokens else "",
                f"unterminated {scanned.unterminated_quote} quote",
            ),
        )

    if diagnostics:
        logger.debug(
            "Filter expression degraded - expression=%r, diagnostics=%s",
            expression,
            [d.code for d in diagnostics],
        )
    return ParseResult(groups=groups, diagnostics=diagnostics)


def parse_filter_groups(expression: Optional[str]) -> List[List[FilterDescriptor]]:
    """
    AND-groups joined by OR:
    "a eq 1 and b eq 2 or c eq 3" -> [[a, b], [c]].
    """
    return parse_filter_expression_with_diagnostics(expression).groups


def parse_filter_expression(expression: Optional[str]) -> List[FilterDescriptor]:
    """
    Every parsed filter in input order, regardless of the joiners between them.
    """
    return parse_filter_expression_with_diagnostics(expression).filters


def _filter_expression_from_query(query: Mapping[str, Any]) -> Optional[str]:
    expression = query.get(FILTER_PARAM) if query is not None else None
    if not isinstance(expression, str):
        return None
    return expression


def parse_filter_query_result(query: Mapping[str, Any], *, strict: bool = False) -> ParseResult:
    """
    Parse the `filter` entry of a request's query parameters.
    In strict mode any diagnostic raises FilterSyntaxError.
    """
    expression = _filter_expression_from_query(query)
    result = parse_filter_expression_with_diagnostics(expression)
    if strict and result.diagnostics:
        raise FilterSyntaxError(expression or "", result.diagnostics)
    if result.diagnostics:
        logger.warning(
            "Ignoring malformed parts of filter - filter=%r, issues=%d",
            expression,
            len(result.diagnostics),
        )
    return result


def parse_filter_query_params(query: Mapping[str, Any], *, strict: bool = False) -> List[FilterDescriptor]:
    return parse_filter_query_result(query, strict=strict).filters


__all__ = [
    "FILTER_PARAM",
    "ParseDiagnostic",
    "ParseResult",
    "FilterSyntaxError",
    "parse_value",
    "parse_filter_expression",
    "parse_filter_groups",
    "parse_filter_expression_with_diagnostics",
    "parse_filter_query_result",
    "parse_filter_query_params",
    "UNKNOWN_OPERATOR",
    "INCOMPLETE_EXPRESSION",
    "UNTERMINATED_QUOTE",
    "UNBALANCED_PARENTHESIS",
    "UNSUPPORTED_GROUPING",
    "DANGLING_JOINER",
]
