"""Arithmetic for amount fields, e.g. ``"12000 + 3500*2"``.

Only numbers, ``+ - * /``, parentheses and whitespace are accepted. The input
is tokenised and evaluated by a small recursive-descent parser over Decimal.
"""

from __future__ import annotations

import re
from decimal import Decimal, DivisionByZero, InvalidOperation
from typing import List, Tuple


MAX_EXPRESSION_LENGTH = 200
MAX_NESTING = 32

_TOKEN = re.compile(r"\s*(?:(\d+\.?\d*|\.\d+)|(.))")


class ExpressionError(ValueError):
    pass


def _tokenize(text: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    for number, symbol in _TOKEN.findall(text):
        if number:
            tokens.append(("number", number))
        elif symbol in "+-*/()":
            tokens.append(("op", symbol))
        elif symbol.strip():
            raise ExpressionError(f"Unexpected character {symbol!r}")
    return tokens


class _Parser:
    def __init__(self, tokens: List[Tuple[str, str]]) -> None:
        self.tokens = tokens
        self.index = 0
        self.depth = 0

    def peek(self) -> Tuple[str, str]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return ("end", "")

    def advance(self) -> Tuple[str, str]:
        token = self.peek()
        self.index += 1
        return token

    def expression(self) -> Decimal:
        value = self.term()
        while self.peek() in (("op", "+"), ("op", "-")):
            _, op = self.advance()
            right = self.term()
            value = value + right if op == "+" else value - right
        return value

    def term(self) -> Decimal:
        value = self.factor()
        while self.peek() in (("op", "*"), ("op", "/")):
            _, op = self.advance()
            right = self.factor()
            if op == "*":
                value = value * right
            else:
                if right == 0:
                    raise ExpressionError("Division by zero")
                value = value / right
        return value

    def factor(self) -> Decimal:
        kind, text = self.advance()
        if kind == "number":
            return Decimal(text)
        if (kind, text) in (("op", "+"), ("op", "-")):
            value = self.nested(self.factor)
            return value if text == "+" else -value
        if (kind, text) == ("op", "("):
            value = self.nested(self.expression)
            if self.advance() != ("op", ")"):
                raise ExpressionError("Missing closing parenthesis")
            return value
        if kind == "end":
            raise ExpressionError("Unexpected end of expression")
        raise ExpressionError(f"Unexpected {text!r}")

    def nested(self, rule) -> Decimal:
        self.depth += 1
        if self.depth > MAX_NESTING:
            raise ExpressionError("Expression is nested too deeply")
        try:
            return rule()
        finally:
            self.depth -= 1


def evaluate(text) -> Decimal:
    """Evaluate an amount expression, raising ``ExpressionError`` if it is invalid."""

    if text is None:
        raise ExpressionError("Empty expression")
    text = str(text)
    if not text.strip():
        raise ExpressionError("Empty expression")
    if len(text) > MAX_EXPRESSION_LENGTH:
        raise ExpressionError("Expression is too long")

    parser = _Parser(_tokenize(text))
    try:
        value = parser.expression()
    except (InvalidOperation, DivisionByZero) as exc:
        raise ExpressionError("Invalid arithmetic") from exc
    if parser.peek()[0] != "end":
        raise ExpressionError(f"Unexpected {parser.peek()[1]!r}")
    return value
