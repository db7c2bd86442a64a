"""
Arithmetic Expression Evaluation

Evaluates calculator-style expressions without eval(). Supports decimal
numbers, + - * / ^, unary minus and parentheses.

Grammar (recursive descent):

    expression := term (('+' | '-') term)*
    term       := factor (('*' | '/') factor)*
    factor     := '-' factor | power
    power      := primary ('^' factor)?
    primary    := number | '(' expression ')'

Exponentiation is right-associative and its operand may carry a sign, so
"2^3^2" is 512 and "2^-1" is 0.5. Unary minus negates a whole power, so
"-2^2" is -4.

Arithmetic follows IEEE 754: division by zero gives +/-inf and undefined
powers give nan. Callers decide what to do with non-finite results.
"""

import re
from dataclasses import dataclass, field
from typing import List, NamedTuple

import numpy as np

from fincalc.calculations.errors import ExpressionSyntaxError

# Keypad glyphs mapped to their ASCII operators
GLYPHS = {
    "×": "*",  # multiplication sign
    "·": "*",  # middle dot
    "÷": "/",  # division sign
    "−": "-",  # minus sign
}

# Deepest nesting of parentheses and exponents accepted
MAX_DEPTH = 100

_WHITESPACE = re.compile(r"\s+")
_LEGAL = re.compile(r"[0-9.+\-*/^()]")


class Token(NamedTuple):
    """A number literal or single-character operator."""

    text: str
    position: int

    @property
    def is_number(self) -> bool:
        return self.text[0].isdigit() or self.text[0] == "."


def normalize(expression: str) -> str:
    """Replace operator glyphs with ASCII and strip whitespace."""
    for glyph, ascii_op in GLYPHS.items():
        expression = expression.replace(glyph, ascii_op)
    return _WHITESPACE.sub("", expression)


def validate(expression: str) -> None:
    """Reject any character outside digits, '.', operators and parentheses."""
    for position, char in enumerate(expression):
        if not _LEGAL.fullmatch(char):
            raise ExpressionSyntaxError("illegal character", char, position)


def tokenize(expression: str) -> List[Token]:
    """Split a normalized expression into number runs and operators."""
    tokens: List[Token] = []
    start = None

    for position, char in enumerate(expression):
        if char.isdigit() or char == ".":
            if start is None:
                start = position
            continue
        if start is not None:
            tokens.append(Token(expression[start:position], start))
            start = None
        tokens.append(Token(char, position))

    if start is not None:
        tokens.append(Token(expression[start:], start))

    return tokens


def _divide(left: float, right: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.divide(np.float64(left), np.float64(right)))


def _power(base: float, exponent: float) -> float:
    with np.errstate(all="ignore"):
        return float(np.power(np.float64(base), np.float64(exponent)))


@dataclass
class _Parser:
    """Cursor over one expression's tokens. Created per evaluate() call."""

    tokens: List[Token]
    position: int = field(default=0)
    depth: int = field(default=0)

    def peek(self) -> str:
        if self.position < len(self.tokens):
            return self.tokens[self.position].text
        return ""

    def _error(self, message: str) -> ExpressionSyntaxError:
        if self.position < len(self.tokens):
            token = self.tokens[self.position]
            return ExpressionSyntaxError(message, token.text, token.position)
        return ExpressionSyntaxError(message)

    def _descend(self) -> None:
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise self._error("expression too deeply nested")

    def parse(self) -> float:
        result = self.expression()
        if self.position < len(self.tokens):
            if self.peek() == ")":
                raise self._error("unbalanced parentheses")
            raise self._error("trailing input")
        return result

    def expression(self) -> float:
        left = self.term()
        while self.peek() in ("+", "-"):
            operator = self.peek()
            self.position += 1
            right = self.term()
            left = left + right if operator == "+" else left - right
        return left

    def term(self) -> float:
        left = self.factor()
        while self.peek() in ("*", "/"):
            operator = self.peek()
            self.position += 1
            right = self.factor()
            left = left * right if operator == "*" else _divide(left, right)
        return left

    def factor(self) -> float:
        sign = 1.0
        while self.peek() == "-":
            self.position += 1
            sign = -sign
        return sign * self.power()

    def power(self) -> float:
        base = self.primary()
        if self.peek() == "^":
            self._descend()
            self.position += 1
            exponent = self.factor()
            self.depth -= 1
            return _power(base, exponent)
        return base

    def primary(self) -> float:
        if self.position >= len(self.tokens):
            raise self._error("unexpected end of input")

        token = self.tokens[self.position]

        if token.is_number:
            try:
                value = float(token.text)
            except ValueError:
                raise self._error("unparseable token") from None
            self.position += 1
            return value

        if token.text == "(":
            self._descend()
            self.position += 1
            result = self.expression()
            if self.peek() != ")":
                raise ExpressionSyntaxError(
                    "unbalanced parentheses", "(", token.position
                )
            self.position += 1
            self.depth -= 1
            return result

        raise self._error("unexpected token")


def evaluate(expression: str) -> float:
    """
    Evaluate an arithmetic expression.

    Args:
        expression: Expression text, e.g. "(2+3)×4"

    Returns:
        Value as float (may be inf or nan, see module docstring)

    Raises:
        ExpressionSyntaxError: Illegal character, unbalanced parentheses,
            trailing input, malformed number, missing operand or
            nesting deeper than MAX_DEPTH
    """
    if not isinstance(expression, str):
        raise TypeError(f"expression must be str, not {type(expression).__name__}")

    normalized = normalize(expression)
    validate(normalized)
    try:
        return _Parser(tokenize(normalized)).parse()
    except RecursionError:
        raise ExpressionSyntaxError("expression too deeply nested") from None


def percent(value: float) -> float:
    """Keypad percent key: 50 -> 0.5."""
    return value / 100
