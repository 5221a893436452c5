"""Normalization helpers.

Centralizes numeric coercion for both payload grammars and pushed patches.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    """Convert *value* to a finite float, or ``None`` when that is not possible.

    Booleans are not numbers here; ``True`` yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(result):
        return None
    return result


def coerce_number(value: Any) -> float:
    """Lenient conversion used by the structured grammar.

    Anything that fails to convert (missing, empty, text, containers,
    non-finite) becomes ``0.0`` instead of failing the payload. Booleans
    count as ``1.0``/``0.0``.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    parsed = safe_float(value)
    return 0.0 if parsed is None else parsed


def parse_tokens(tokens: list[str]) -> list[float] | None:
    """Strictly parse every token; ``None`` if any is not a finite number."""
    values: list[float] = []
    for token in tokens:
        # float() accepts digit separators; senders never emit them.
        if "_" in token:
            return None
        parsed = safe_float(token)
        if parsed is None:
            return None
        values.append(parsed)
    return values
