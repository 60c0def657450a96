"""Identifier codec - variable ids <-> expression identifiers

Variable ids are opaque tokens (uuid7 strings by default) and may contain
characters that are not legal in an identifier. Encoded form:

    $ws$dataSource$<body>

where ASCII letters and digits of the id are copied and every other code
point is written as `$<lowercase hex>$`. Only identifier characters are
produced, and the canonical form makes the mapping a bijection between
non-empty ids and encoded identifiers.
"""

from __future__ import annotations

import re

VARIABLE_PREFIX = "$ws$dataSource$"

_PLAIN_RE = re.compile(r"[A-Za-z0-9]")
_BODY_RE = re.compile(r"(?:[A-Za-z0-9]|\$(?:0|[1-9a-f][0-9a-f]*)\$)+")
_ESCAPE_RE = re.compile(r"\$([0-9a-f]+)\$")


def _escape(char: str) -> str:
    if char.isascii() and _PLAIN_RE.fullmatch(char):
        return char
    return f"${ord(char):x}$"


def encode_variable(variable_id: str) -> str:
    """Encode a variable id as an expression identifier."""
    if not variable_id:
        raise ValueError("Variable id cannot be empty")
    return VARIABLE_PREFIX + "".join(_escape(char) for char in variable_id)


def decode_variable(identifier: str) -> str | None:
    """Decode an expression identifier back to a variable id.

    Returns None for any identifier outside the reserved encoding, so user
    chosen names never collide with variable references.
    """
    if not identifier.startswith(VARIABLE_PREFIX):
        return None
    body = identifier[len(VARIABLE_PREFIX):]
    if not _BODY_RE.fullmatch(body):
        return None

    decoded: list[str] = []
    pos = 0
    for match in _ESCAPE_RE.finditer(body):
        code_point = int(match.group(1), 16)
        if code_point > 0x10FFFF:
            return None
        char = chr(code_point)
        # escapes for plain characters are not canonical
        if _escape(char) != match.group(0):
            return None
        decoded.append(body[pos:match.start()])
        decoded.append(char)
        pos = match.end()
    decoded.append(body[pos:])
    return "".join(decoded)


def is_variable_identifier(identifier: str) -> bool:
    return decode_variable(identifier) is not None
