"""
Lexical scanner for OData-like filter expressions.

Quoted spans ('...' or "...") are kept verbatim, quotes included. A backslash
right before a quote keeps that quote from opening or closing a span, and
inside a single-quoted span a doubled '' is an escaped quote. Parentheses are
standalone tokens; whitespace outside quotes separates tokens.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

_QUOTES = ("'", '"')
_PARENS = ("(", ")")


@dataclass
class TokenizeResult:
    tokens: List[str] = field(default_factory=list)
    # quote character of a span still open at end of input
    unterminated_quote: Optional[str] = None


def tokenize_with_diagnostics(expression: str) -> TokenizeResult:
    tokens: List[str] = []
    current: List[str] = []
    quote_char: Optional[str] = None

    def flush() -> None:
        text = "".join(current).strip()
        if text:
            tokens.append(text)
        current.clear()

    i = 0
    n = len(expression)
    while i < n:
        ch = expression[i]
        escaped = i > 0 and expression[i - 1] == "\\"

        if ch in _QUOTES and not escaped:
            if quote_char is None:
                flush()
                quote_char = ch
                current.append(ch)
            elif ch == quote_char:
                if ch == "'" and i + 1 < n and expression[i + 1] == "'":
                    current.append("''")
                    i += 2
                    continue
                current.append(ch)
                quote_char = None
                tokens.append("".join(current))
                current.clear()
            else:
                current.append(ch)
            i += 1
            continue

        if quote_char is not None:
            current.append(ch)
        elif ch.isspace():
            flush()
        elif ch in _PARENS:
            flush()
            tokens.append(ch)
        else:
            current.append(ch)
        i += 1

    unterminated = quote_char
    flush()
    return TokenizeResult(tokens=tokens, unterminated_quote=unterminated)


def tokenize(expression: str) -> List[str]:
    """
    Ordered, non-empty tokens of `expression`.

        >>> tokenize("role in (admin, 'chief editor')")
        ['role', 'in', '(', 'admin,', "'chief editor'", ')']
    """
    return tokenize_with_diagnostics(expression).tokens


__all__ = ["TokenizeResult", "tokenize", "tokenize_with_diagnostics"]
