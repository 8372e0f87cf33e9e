from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from fractions import Fraction

from .errors import (
    CovenantErrorKind,
    CovenantEvaluationError,
    DivisionByZeroError,
    MissingInputError,
)
from .models import FIGURE_NAMES, SCALE

_OPERATORS: frozenset[str] = frozenset({"+", "-", "*", "/"})
_PRECEDENCE: dict[str, int] = {"+": 1, "-": 1, "*": 2, "/": 2}


class FormulaParseError(CovenantEvaluationError):
    """Raised when a custom covenant formula is not a valid expression."""

    kind: CovenantErrorKind = "invalid_formula"


def _tokenize(formula: str) -> list[str]:
    """
    Split a formula into operators, parentheses, numbers and figure names.

    Raises FormulaParseError on invalid characters.
    """
    tokens: list[str] = []
    current: list[str] = []

    for char in formula:
        if char.isspace():
            if current:
                tokens.append("".join(current))
                current = []
        elif char in _OPERATORS or char in ("(", ")"):
            if current:
                tokens.append("".join(current))
                current = []
            tokens.append(char)
        elif char.isalnum() or char in ("_", "."):
            current.append(char)
        else:
            raise FormulaParseError(f"Invalid character in formula: {char!r}")

    if current:
        tokens.append("".join(current))

    if not tokens:
        raise FormulaParseError("Formula is empty")
    return tokens


def _to_rpn(tokens: Sequence[str]) -> list[str]:
    """
    Convert infix tokens to Reverse Polish Notation (shunting-yard).

    Raises FormulaParseError on mismatched parentheses.
    """
    output: list[str] = []
    operator_stack: list[str] = []

    for token in tokens:
        if token in _OPERATORS:
            while (
                operator_stack
                and operator_stack[-1] in _OPERATORS
                and _PRECEDENCE[operator_stack[-1]] >= _PRECEDENCE[token]
            ):
                output.append(operator_stack.pop())
            operator_stack.append(token)
        elif token == "(":
            operator_stack.append(token)
        elif token == ")":
            while operator_stack and operator_stack[-1] != "(":
                output.append(operator_stack.pop())
            if not operator_stack:
                raise FormulaParseError("Mismatched parentheses")
            operator_stack.pop()
        else:
            output.append(token)

    while operator_stack:
        op = operator_stack.pop()
        if op == "(":
            raise FormulaParseError("Mismatched parentheses")
        output.append(op)

    return output


def _apply_operator(operator: str, a: Fraction, b: Fraction) -> Fraction:
    """Apply a binary operator to two scaled operands, keeping the scale."""
    if operator == "+":
        return a + b
    if operator == "-":
        return a - b
    if operator == "*":
        return a * b / SCALE
    if b == 0:
        raise DivisionByZeroError("formula", "custom")
    return a * SCALE / b


def _parse_literal(token: str) -> int:
    whole, dot, frac = token.partition(".")
    if not whole.isdigit() or (dot and not frac.isdigit()) or len(frac) > 6:
        raise FormulaParseError(f"Invalid number in formula: {token!r}")
    return int(whole) * SCALE + (int(frac.ljust(6, "0")) if frac else 0)


def _parse_operand(token: str, figures: Mapping[str, int | None]) -> Fraction:
    """
    Resolve a token as a numeric literal or a figure name.

    Raises FormulaParseError for unknown names and MissingInputError for
    figures that were not supplied.
    """
    if token[0].isdigit() or token[0] == ".":
        return Fraction(_parse_literal(token))
    if token not in FIGURE_NAMES:
        raise FormulaParseError(f"Unknown figure in formula: {token!r}")
    value = figures.get(token)
    if value is None:
        raise MissingInputError(token, "custom")
    return Fraction(value)


def _evaluate_rpn(rpn: Sequence[str], figures: Mapping[str, int | None]) -> Fraction:
    stack: list[Fraction] = []

    for token in rpn:
        if token in _OPERATORS:
            if len(stack) < 2:
                raise FormulaParseError("Invalid expression: insufficient operands")
            b = stack.pop()
            a = stack.pop()
            stack.append(_apply_operator(token, a, b))
        else:
            stack.append(_parse_operand(token, figures))

    if len(stack) != 1:
        raise FormulaParseError("Invalid expression: wrong number of values")

    return stack[0]


def evaluate_formula_exact(formula: str, figures: Mapping[str, int | None]) -> Fraction:
    """
    Evaluate an arithmetic formula over financial figures.

    Operands are figure names (``total_debt``, ``ebitda``, ...) and numeric
    literals such as ``2`` or ``1.25``; operators are ``+ - * /`` with
    parentheses. Arithmetic is exact; nothing is rounded until the caller
    floors the result.

    Raises:
        FormulaParseError: invalid syntax or unknown figure name
        MissingInputError: a referenced figure is None
        DivisionByZeroError: a divisor evaluates to zero
    """
    tokens = _tokenize(formula)
    rpn = _to_rpn(tokens)
    return _evaluate_rpn(rpn, figures)


def evaluate_formula(formula: str, figures: Mapping[str, int | None]) -> int:
    """Scaled floor of ``evaluate_formula_exact``."""
    return math.floor(evaluate_formula_exact(formula, figures))


__all__ = [
    "FormulaParseError",
    "evaluate_formula",
    "evaluate_formula_exact",
]
