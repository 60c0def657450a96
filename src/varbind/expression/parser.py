"""Expression parser - lark LALR parser building a small typed AST."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Union

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError

from varbind.exceptions import ParseError
from varbind.expression.grammar import GRAMMAR, RESERVED_WORDS

log = logging.getLogger(__name__)

NESTING_ERROR = "Expression is too deeply nested"


# ============================================================
# AST Node Definitions
# ============================================================


@dataclass
class Literal:
    value: Any


@dataclass
class Identifier:
    name: str
    start: int
    end: int
    # `{name}` in an object literal, the name is both key and value
    shorthand: bool = False


@dataclass
class ArrayLiteral:
    elements: list["Expr"]


@dataclass
class ObjectLiteral:
    # keys are plain strings, or expressions for computed keys
    entries: list[tuple[Union[str, "Expr"], "Expr"]]


@dataclass
class Unary:
    op: str
    operand: "Expr"


@dataclass
class Binary:
    op: str
    left: "Expr"
    right: "Expr"


@dataclass
class Conditional:
    test: "Expr"
    consequent: "Expr"
    alternate: "Expr"


@dataclass
class Member:
    object: "Expr"
    property: Union[str, "Expr"]
    computed: bool = False
    optional: bool = False


@dataclass
class Assignment:
    target: Identifier
    op: str
    value: "Expr"


@dataclass
class EffectCall:
    name: str
    args: list["Expr"] = field(default_factory=list)


Expr = Union[Literal, Identifier, ArrayLiteral, ObjectLiteral, Unary, Binary, Conditional, Member]
Effect = Union[Assignment, EffectCall]


# ============================================================
# String literal unescaping (JavaScript escape rules)
# ============================================================

_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])"
)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    "\n": "",
    "\r\n": "",
}


def _unescape_string(raw: str) -> str:
    def replace(match: re.Match) -> str:
        seq = match.group(1)
        if seq.startswith("u{"):
            return chr(int(seq[2:-1], 16))
        if seq[0] in "ux" and len(seq) > 1:
            return chr(int(seq[1:], 16))
        return _SIMPLE_ESCAPES.get(seq, seq)

    return _ESCAPE_RE.sub(replace, raw[1:-1])


def _parse_number(raw: str) -> int | float:
    if re.fullmatch(r"\d+", raw):
        try:
            return int(raw)
        except ValueError:
            # past the int conversion limit, far beyond float range anyway
            return float(raw)
    value = float(raw)
    return int(value) if value.is_integer() and abs(value) < 2**53 else value


# ============================================================
# AST Builder (Lark Transformer)
# ============================================================


@v_args(inline=True)
class ASTBuilder(Transformer):
    def expression(self, expr):
        return expr

    def effects(self, *effects):
        return list(effects)

    # --- Effects ---

    def assignment(self, target: Token, op: Token, value):
        return Assignment(target=self._identifier(target), op=str(op), value=value)

    def effect_call(self, name: Token, *args):
        return EffectCall(name=str(name), args=list(args))

    # --- Operators ---

    def conditional(self, test, consequent, alternate):
        return Conditional(test=test, consequent=consequent, alternate=alternate)

    def binary(self, left, op: Token, right):
        return Binary(op=str(op), left=left, right=right)

    def unary(self, op: Token, operand):
        return Unary(op=str(op), operand=operand)

    def member(self, obj, name: str):
        return Member(object=obj, property=name)

    def optional_member(self, obj, _dot, name: str):
        return Member(object=obj, property=name, optional=True)

    def index(self, obj, key):
        return Member(object=obj, property=key, computed=True)

    def optional_index(self, obj, _dot, key):
        return Member(object=obj, property=key, computed=True, optional=True)

    def member_name(self, token: Token):
        return str(token)

    # --- Atoms ---

    def number(self, token: Token):
        return Literal(_parse_number(str(token)))

    def string(self, token: Token):
        return Literal(self._string(token))

    def true(self, _token):
        return Literal(True)

    def false(self, _token):
        return Literal(False)

    def null(self, _token):
        return Literal(None)

    def identifier(self, token: Token):
        return self._identifier(token)

    def array(self, *elements):
        return ArrayLiteral(elements=list(elements))

    def object(self, *entries):
        return ObjectLiteral(entries=list(entries))

    def pair(self, key: str, value):
        return key, value

    def computed_pair(self, key, value):
        return key, value

    def shorthand_pair(self, token: Token):
        ident = self._identifier(token)
        ident.shorthand = True
        return ident.name, ident

    def property_key(self, token: Token):
        if token.type == "STRING":
            return self._string(token)
        if token.type == "NUMBER":
            return json.dumps(_parse_number(str(token)))
        return str(token)

    @staticmethod
    def _string(token: Token) -> str:
        try:
            return _unescape_string(str(token))
        except ValueError as e:
            raise ParseError(
                "Invalid escape sequence", line=token.line, column=token.column
            ) from e

    @staticmethod
    def _identifier(token: Token) -> Identifier:
        name = str(token)
        if name in RESERVED_WORDS:
            raise ParseError(
                f'Unexpected keyword "{name}"', line=token.line, column=token.column
            )
        return Identifier(name=name, start=token.start_pos, end=token.end_pos)


# ============================================================
# Parser Helper
# ============================================================


@lru_cache(maxsize=1)
def get_parser() -> Lark:
    return Lark(
        GRAMMAR,
        start=["expression", "effects"],
        parser="lalr",
        propagate_positions=True,
    )


def _describe(error: UnexpectedInput) -> str:
    if isinstance(error, UnexpectedEOF):
        return "Unexpected end of expression"
    if isinstance(error, UnexpectedToken):
        token = error.token
        if token.type == "$END":
            return "Unexpected end of expression"
        if token.type == "LPAR":
            return "Function calls are not allowed"
        if token.type == "ASSIGN_OP" or str(token) == "=":
            return "Assignment is not allowed"
        if token.type == "IDENT" and str(token) in RESERVED_WORDS:
            return f'Unexpected keyword "{token}"'
        return f'Unexpected token "{token}"'
    if isinstance(error, UnexpectedCharacters):
        return f'Unexpected character "{error.char}"'
    return "Invalid expression"


def parse(text: str, effectful: bool = False) -> Expr | list[Effect]:
    """Parse expression text into an AST.

    Args:
        text: Source text, must not be blank.
        effectful: Parse an action body (list of effects) instead of a
            single expression.

    Raises:
        ParseError: On any syntax error or disallowed construct.
    """
    start = "effects" if effectful else "expression"
    try:
        tree = get_parser().parse(text, start=start)
        return ASTBuilder().transform(tree)
    except UnexpectedInput as e:
        log.debug(f"Failed to parse {text!r}: {e}")
        line = e.line if e.line and e.line > 0 else None
        column = e.column if e.column and e.column > 0 else None
        raise ParseError(_describe(e), line=line, column=column) from e
    except VisitError as e:
        if isinstance(e.orig_exc, ParseError):
            raise e.orig_exc from e
        if isinstance(e.orig_exc, RecursionError):
            raise ParseError(NESTING_ERROR) from e
        raise
    except RecursionError as e:
        raise ParseError(NESTING_ERROR) from e
