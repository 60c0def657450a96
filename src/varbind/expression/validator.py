"""Expression validation and identifier rewriting

`validate_expression` is the single pass every caller goes through:
collecting referenced variables, rejecting unknown identifiers and
rewriting identifiers all use the `transform_identifier` callback, so they
always agree on what counts as a reference.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from varbind.exceptions import ParseError
from varbind.expression.codec import decode_variable
from varbind.expression.parser import (
    NESTING_ERROR,
    ArrayLiteral,
    Assignment,
    Binary,
    Conditional,
    EffectCall,
    Identifier,
    Literal,
    Member,
    ObjectLiteral,
    Unary,
    parse,
)

DEFAULT_EFFECTS = frozenset({"navigate", "emit"})

TransformIdentifier = Callable[[str], str]


def iter_identifiers(node) -> Iterator[Identifier]:
    """Yield bare identifiers of an AST (or list of effects) in source order."""
    if isinstance(node, list):
        for item in node:
            yield from iter_identifiers(item)
    elif isinstance(node, Identifier):
        yield node
    elif isinstance(node, Literal):
        return
    elif isinstance(node, ArrayLiteral):
        for element in node.elements:
            yield from iter_identifiers(element)
    elif isinstance(node, ObjectLiteral):
        for key, value in node.entries:
            if not isinstance(key, str):
                yield from iter_identifiers(key)
            yield from iter_identifiers(value)
    elif isinstance(node, Unary):
        yield from iter_identifiers(node.operand)
    elif isinstance(node, Binary):
        yield from iter_identifiers(node.left)
        yield from iter_identifiers(node.right)
    elif isinstance(node, Conditional):
        yield from iter_identifiers(node.test)
        yield from iter_identifiers(node.consequent)
        yield from iter_identifiers(node.alternate)
    elif isinstance(node, Member):
        yield from iter_identifiers(node.object)
        if node.computed:
            yield from iter_identifiers(node.property)
    elif isinstance(node, Assignment):
        yield node.target
        yield from iter_identifiers(node.value)
    elif isinstance(node, EffectCall):
        # the callee is an effect token, not a reference
        for arg in node.args:
            yield from iter_identifiers(arg)
    else:
        raise TypeError(f"Unknown expression node: {node!r}")


def validate_expression(
    text: str,
    *,
    optional: bool = False,
    effectful: bool = False,
    transform_identifier: TransformIdentifier | None = None,
    effects: Iterable[str] | None = None,
) -> str:
    """Validate expression text and return it with identifiers rewritten.

    Args:
        text: Expression source.
        optional: Accept blank text, returned as "".
        effectful: Parse as an action body (assignments and effect calls).
        transform_identifier: Called once per bare identifier in source order.
            Its return value replaces the identifier, raising rejects the
            whole expression.
        effects: Effect names callable from an action body, defaults to
            DEFAULT_EFFECTS.

    Returns:
        The input text with only the transformed identifiers replaced.

    Raises:
        ParseError: Malformed text or disallowed construct.
    """
    if text.strip() == "":
        if optional:
            return ""
        raise ParseError("Expression cannot be empty")

    ast = parse(text, effectful=effectful)

    if effectful:
        allowed = DEFAULT_EFFECTS if effects is None else frozenset(effects)
        if not ast:
            if optional:
                return ""
            raise ParseError("Action cannot be empty")
        for effect in ast:
            if isinstance(effect, EffectCall) and effect.name not in allowed:
                raise ParseError(f'Effect "{effect.name}" is not allowed')

    try:
        identifiers = list(iter_identifiers(ast))
    except RecursionError as e:
        raise ParseError(NESTING_ERROR) from e

    replacements: list[tuple[int, int, str]] = []
    for ident in identifiers:
        if transform_identifier is None:
            continue
        replacement = transform_identifier(ident.name)
        if replacement == ident.name:
            continue
        if ident.shorthand:
            replacement = f"{ident.name}: {replacement}"
        replacements.append((ident.start, ident.end, replacement))

    result = text
    for start, end, replacement in sorted(replacements, reverse=True):
        result = result[:start] + replacement + result[end:]
    return result


def collect_variables(
    text: str, effectful: bool = False, effects: Iterable[str] | None = None
) -> set[str]:
    """Decoded ids of the variables referenced by expression text.

    Blank text references nothing. ParseError propagates.
    """
    variable_ids: set[str] = set()

    def collect(identifier: str) -> str:
        variable_id = decode_variable(identifier)
        if variable_id is not None:
            variable_ids.add(variable_id)
        return identifier

    validate_expression(
        text,
        optional=True,
        effectful=effectful,
        transform_identifier=collect,
        effects=effects,
    )
    return variable_ids


def expression_variables(text: str) -> set[str]:
    """Variables referenced by an expression prop value."""
    return collect_variables(text)
