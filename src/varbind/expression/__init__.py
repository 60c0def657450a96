"""Restricted expression language: codec, validator, evaluator."""

from varbind.expression.codec import VARIABLE_PREFIX, decode_variable, encode_variable
from varbind.expression.evaluator import evaluate_expression, parse_variable_value
from varbind.expression.format import format_value, format_value_preview
from varbind.expression.validator import (
    DEFAULT_EFFECTS,
    collect_variables,
    expression_variables,
    validate_expression,
)

__all__ = [
    "DEFAULT_EFFECTS",
    "VARIABLE_PREFIX",
    "collect_variables",
    "decode_variable",
    "encode_variable",
    "evaluate_expression",
    "expression_variables",
    "format_value",
    "format_value_preview",
    "parse_variable_value",
    "validate_expression",
]
