"""Literal evaluator

Reduces an expression that references no identifiers to a plain value
(str, int, float, bool, list, dict or None). Operators follow JavaScript
semantics where they are total; anything that would produce NaN, Infinity
or a type coercion surprise is an EvaluationError instead.
"""

from __future__ import annotations

import json
import logging
import math
from decimal import Decimal
from typing import Any

from varbind.exceptions import EvaluationError, ValueDependsOnVariablesError
from varbind.expression.parser import (
    NESTING_ERROR,
    ArrayLiteral,
    Binary,
    Conditional,
    Identifier,
    Literal,
    Member,
    ObjectLiteral,
    Unary,
    parse,
)
from varbind.expression.validator import validate_expression
from varbind.models.variable import VariableValue, to_variable_value

log = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _truthy(value: Any) -> bool:
    if value is None or value is False:
        return False
    if _is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def _typeof(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"


def _to_string(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _number_to_string(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return ",".join("" if item is None else _to_string(item) for item in value)
    return "[object Object]"


def _number_to_string(value: int | float) -> str:
    """Number text as JavaScript prints it: `1e-7`, `1e+21`, `0.000001`."""
    if isinstance(value, int) and abs(value) < 10**21:
        return str(value)
    try:
        value = float(value)
    except OverflowError as e:
        raise EvaluationError("Expression does not evaluate to a finite number") from e
    if not math.isfinite(value):
        raise EvaluationError("Expression does not evaluate to a finite number")
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    # repr gives the shortest digits that round trip, as JavaScript does
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(map(str, digit_tuple))
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + digits
    mantissa = digits[0] + ("." + digits[1:] if k > 1 else "")
    return f"{sign}{mantissa}e{n - 1:+d}"


def _normalize_number(value: int | float) -> int | float:
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise EvaluationError("Expression does not evaluate to a finite number")
        if value.is_integer() and abs(value) < 2**53:
            return int(value)
    return value


def _strict_equals(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    if isinstance(left, (list, dict)):
        return left is right
    return left == right


class Evaluator:
    """Evaluates a parsed literal expression."""

    def evaluate(self, node) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Identifier):
            raise ValueDependsOnVariablesError([node.name])
        if isinstance(node, ArrayLiteral):
            return [self.evaluate(element) for element in node.elements]
        if isinstance(node, ObjectLiteral):
            result: dict[str, Any] = {}
            for key, value in node.entries:
                if not isinstance(key, str):
                    key = _to_string(self.evaluate(key))
                result[key] = self.evaluate(value)
            return result
        if isinstance(node, Unary):
            return self._unary(node)
        if isinstance(node, Binary):
            return self._binary(node)
        if isinstance(node, Conditional):
            if _truthy(self.evaluate(node.test)):
                return self.evaluate(node.consequent)
            return self.evaluate(node.alternate)
        if isinstance(node, Member):
            return self._member(node)
        raise EvaluationError(f"Unsupported expression: {type(node).__name__}")

    def _unary(self, node: Unary) -> Any:
        operand = self.evaluate(node.operand)
        if node.op == "!":
            return not _truthy(operand)
        if node.op == "typeof":
            return _typeof(operand)
        if not _is_number(operand):
            raise EvaluationError(
                f"Unary {node.op} requires a number, got {_typeof(operand)}"
            )
        return -operand if node.op == "-" else operand

    def _binary(self, node: Binary) -> Any:
        op = node.op
        left = self.evaluate(node.left)

        # short-circuit operators return one of the operands
        if op == "&&":
            return self.evaluate(node.right) if _truthy(left) else left
        if op == "||":
            return left if _truthy(left) else self.evaluate(node.right)
        if op == "??":
            return self.evaluate(node.right) if left is None else left

        right = self.evaluate(node.right)

        if op in ("==", "==="):
            return _strict_equals(left, right)
        if op in ("!=", "!=="):
            return not _strict_equals(left, right)

        if op == "+" and (isinstance(left, str) or isinstance(right, str)):
            return _to_string(left) + _to_string(right)

        if op in ("<", "<=", ">", ">="):
            comparable = (_is_number(left) and _is_number(right)) or (
                isinstance(left, str) and isinstance(right, str)
            )
            if not comparable:
                raise EvaluationError(
                    f"Cannot compare {_typeof(left)} and {_typeof(right)} with {op}"
                )
            if op == "<":
                return left < right
            if op == "<=":
                return left <= right
            if op == ">":
                return left > right
            return left >= right

        if not (_is_number(left) and _is_number(right)):
            raise EvaluationError(
                f"Cannot apply {op} to {_typeof(left)} and {_typeof(right)}"
            )
        if op == "+":
            return _normalize_number(left + right)
        if op == "-":
            return _normalize_number(left - right)
        if op == "*":
            return _normalize_number(left * right)
        if right == 0:
            raise EvaluationError("Division by zero")
        if op == "/":
            if isinstance(left, int) and isinstance(right, int) and left % right == 0:
                return left // right
            return _normalize_number(left / right)
        if op == "%":
            if isinstance(left, int) and isinstance(right, int):
                remainder = abs(left) % abs(right)
                return remainder if left >= 0 else -remainder
            return _normalize_number(math.fmod(left, right))
        raise EvaluationError(f"Unknown operator {op}")

    def _member(self, node: Member) -> Any:
        obj = self.evaluate(node.object)
        if obj is None:
            if node.optional:
                return None
            raise EvaluationError("Cannot read properties of null")

        key = self.evaluate(node.property) if node.computed else node.property

        if isinstance(obj, (str, list)):
            if key == "length":
                return len(obj)
            index = key
            if isinstance(key, str) and key.isdigit():
                index = int(key)
            if isinstance(index, float) and index.is_integer():
                index = int(index)
            if isinstance(index, int) and not isinstance(index, bool):
                if 0 <= index < len(obj):
                    return obj[index]
            return None
        if isinstance(obj, dict):
            return obj.get(_to_string(key))
        return None


def evaluate_expression(text: str) -> Any:
    """Evaluate expression text that references no variables.

    Raises:
        ParseError: Malformed text.
        ValueDependsOnVariablesError: The text references identifiers.
        EvaluationError: The text is blank or cannot be reduced to a value.
    """
    identifiers: list[str] = []

    def collect(identifier: str) -> str:
        if identifier not in identifiers:
            identifiers.append(identifier)
        return identifier

    code = validate_expression(text, optional=True, transform_identifier=collect)
    if identifiers:
        raise ValueDependsOnVariablesError(identifiers)
    if code == "":
        raise EvaluationError("Variable value is required")

    try:
        value = Evaluator().evaluate(parse(code))
    except RecursionError as e:
        raise EvaluationError(NESTING_ERROR) from e
    _check_value(value)
    log.debug(f"Evaluated {text!r} to {value!r}")
    return value


def _check_value(value: Any) -> None:
    try:
        json.dumps(value, allow_nan=False)
    except ValueError as e:
        raise EvaluationError(f"Expression does not evaluate to data: {e}") from e


def parse_variable_value(text: str) -> VariableValue:
    """Evaluate a value variable's text into a typed literal."""
    return to_variable_value(evaluate_expression(text))
