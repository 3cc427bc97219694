"""Sandboxed arithmetic evaluator used by the calculate tool.

Expressions are parsed with :mod:`ast` and only a small set of node types is
walked; nothing is ever handed to ``eval``.
"""

from __future__ import annotations

import ast
import math
import operator

MAX_EXPONENT = 10000
# Stays below the int-to-str conversion limit (4300 digits)
MAX_RESULT_BITS = 13000
MAX_EXPRESSION_LENGTH = 500


class CalculatorError(ValueError):
    """Raised when an expression is malformed or uses something not allowed."""


_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

CONSTANTS = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
}

FUNCTIONS = {
    "sqrt": math.sqrt,
    "abs": abs,
    "round": round,
    "min": min,
    "max": max,
    "floor": math.floor,
    "ceil": math.ceil,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "log": math.log,
    "log10": math.log10,
    "exp": math.exp,
    "pow": math.pow,
}


def _eval(node: ast.AST) -> int | float:
    if isinstance(node, ast.Expression):
        return _eval(node.body)

    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise CalculatorError(f"Unsupported literal: {node.value!r}")
        return node.value

    if isinstance(node, ast.BinOp):
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise CalculatorError(f"Unsupported operator: {type(node.op).__name__}")
        left = _eval(node.left)
        right = _eval(node.right)
        if isinstance(node.op, ast.Pow):
            if abs(right) > MAX_EXPONENT:
                raise CalculatorError("Exponent too large")
            if isinstance(left, int) and right > 0 and (left.bit_length() - 1) * right > MAX_RESULT_BITS:
                raise CalculatorError("Result too large")
        return op(left, right)

    if isinstance(node, ast.UnaryOp):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise CalculatorError(f"Unsupported operator: {type(node.op).__name__}")
        return op(_eval(node.operand))

    if isinstance(node, ast.Name):
        if node.id not in CONSTANTS:
            raise CalculatorError(f"Unknown name: {node.id}")
        return CONSTANTS[node.id]

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS:
            raise CalculatorError("Unsupported function call")
        if node.keywords:
            raise CalculatorError("Keyword arguments are not supported")
        args = [_eval(arg) for arg in node.args]
        return FUNCTIONS[node.func.id](*args)

    raise CalculatorError(f"Unsupported expression element: {type(node).__name__}")


def evaluate(expression: str) -> int | float:
    """Evaluate an arithmetic expression.

    Raises:
        CalculatorError: On syntax errors, disallowed constructs, or math
            errors such as division by zero.
    """
    text = (expression or "").strip()
    if not text:
        raise CalculatorError("Empty expression")
    if len(text) > MAX_EXPRESSION_LENGTH:
        raise CalculatorError("Expression too long")
    # Allow the caret as exponent, as most calculators do
    text = text.replace("^", "**")

    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError:
        raise CalculatorError(f"Invalid mathematical expression: {expression}") from None

    try:
        value = _eval(tree)
    except CalculatorError:
        raise
    except (ArithmeticError, ValueError, TypeError) as exc:
        raise CalculatorError(f"Cannot evaluate {expression}: {exc}") from None

    if isinstance(value, int) and value.bit_length() > MAX_RESULT_BITS:
        raise CalculatorError("Result too large")
    return value


def format_number(value: int | float) -> str:
    """Render a result the way a calculator display would."""
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)
