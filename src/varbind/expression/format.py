"""Value formatting - literal values back to expression text."""

from __future__ import annotations

import json
from typing import Any

PREVIEW_LENGTH = 64


def format_value(value: Any) -> str:
    """Expression text that evaluates back to `value`.

    Structured data is indented so it stays editable.
    """
    if isinstance(value, (list, dict)):
        return json.dumps(value, indent=2, ensure_ascii=False)
    return json.dumps(value, ensure_ascii=False)


def format_value_preview(value: Any) -> str:
    """Single line preview of a runtime value."""
    try:
        text = json.dumps(value, ensure_ascii=False, default=str)
    except ValueError:
        # NaN and friends from resource payloads
        text = str(value)
    if len(text) > PREVIEW_LENGTH:
        text = text[: PREVIEW_LENGTH - 1] + "…"
    return text
