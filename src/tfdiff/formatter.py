"""Render single values as bounded-length display strings."""

from __future__ import annotations

import json
import math
from decimal import Decimal

from tfdiff.value import Value, Null, Bool, Number, String, Array, Object, is_integral, canonical

MAX_VALUE_LENGTH = 200
MAX_EXPAND_DEPTH = 2


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def format_number(number: float) -> str:
    """Integral numbers without a decimal point, everything else in %g layout.

    The digits are the shortest ones that round-trip; exponent form is used
    when the decimal exponent is below -4 or at least 6.
    """
    if is_integral(number):
        return str(int(number))
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "+Inf" if number > 0 else "-Inf"

    digits = Decimal(repr(number)).normalize()
    exponent = digits.adjusted()
    precision = len(digits.as_tuple().digits)
    if exponent < -4 or exponent >= 6:
        return f"{number:.{precision - 1}e}"
    return f"{number:.{max(precision - 1 - exponent, 0)}f}"


def format_value(value: Value, depth: int = 0) -> str:
    """Format a value for display, truncating very large or deeply nested values.

    Args:
        value: The value to render
        depth: Nesting level; containers deeper than 2 are only counted

    Returns:
        Display string. Strings over 200 characters are cut with a
        ``... (truncated)`` marker; arrays and objects whose rendering would
        exceed 200 characters collapse to ``[...N items]`` / ``{...N keys}``.
    """
    if isinstance(value, Null):
        return "null"
    if isinstance(value, String):
        if len(value.value) > MAX_VALUE_LENGTH:
            return f"{_quote(value.value[:MAX_VALUE_LENGTH])}... (truncated)"
        return _quote(value.value)
    if isinstance(value, Number):
        return format_number(value.value)
    if isinstance(value, Bool):
        return "true" if value.value else "false"
    if isinstance(value, Array):
        count = len(value.items)
        if count == 0:
            return "[]"
        if depth > MAX_EXPAND_DEPTH:
            return f"[...{count} items]"
        joined = ", ".join(format_value(item, depth + 1) for item in value.items)
        if len(joined) > MAX_VALUE_LENGTH:
            return f"[...{count} items]"
        return f"[{joined}]"
    if isinstance(value, Object):
        count = len(value.fields)
        if count == 0:
            return "{}"
        if depth > MAX_EXPAND_DEPTH:
            return f"{{...{count} keys}}"
        encoded = canonical(value)
        if len(encoded) > MAX_VALUE_LENGTH:
            return f"{{...{count} keys}}"
        return encoded
    return str(value)


def format_output_value(value: Value) -> str:
    """Format a state output value as inline Markdown."""
    if isinstance(value, Null):
        return "`null`"
    if isinstance(value, String):
        return f"`{value.value}`"
    if isinstance(value, Number):
        return f"`{format_number(value.value)}`"
    if isinstance(value, Bool):
        return "`true`" if value.value else "`false`"
    if isinstance(value, (Array, Object)):
        return f"```json\n{canonical(value)}\n```"
    return f"`{value}`"
