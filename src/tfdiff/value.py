"""JSON-like value model used by the formatter and differ.

Plan and state documents are decoded into plain Python objects first and then
lifted into the tagged variants below. Every number, integral or not, becomes a
``Number`` holding a float, so "is this integral" is decided at render time.

Lifting and encoding walk the tree with an explicit stack, so nesting depth is
bounded only by memory.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Union

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63


@dataclass(frozen=True)
class Null:
    pass


@dataclass(frozen=True)
class Bool:
    value: bool


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class String:
    value: str


@dataclass(frozen=True)
class Array:
    items: tuple[Value, ...] = ()

    __hash__ = None


@dataclass(frozen=True)
class Object:
    fields: dict[str, Value] = field(default_factory=dict)

    __hash__ = None


Value = Union[Null, Bool, Number, String, Array, Object]

NULL = Null()


def _to_float(number: int | float) -> float:
    try:
        return float(number)
    except OverflowError:
        return math.inf if number > 0 else -math.inf


def _scalar(obj: Any) -> Value:
    if obj is None:
        return NULL
    if isinstance(obj, bool):
        return Bool(obj)
    if isinstance(obj, (int, float)):
        return Number(_to_float(obj))
    if isinstance(obj, str):
        return String(obj)
    return String(str(obj))


def from_python(obj: Any) -> Value:
    """Lift a decoded JSON/YAML object into a Value tree.

    Anything that is not a JSON type (dates from YAML, for instance) is kept as
    its string form.
    """
    results: list[Value] = []
    stack: list[tuple[Any, bool]] = [(obj, False)]
    while stack:
        node, expanded = stack.pop()
        if isinstance(node, dict):
            if not expanded:
                stack.append((node, True))
                stack.extend((v, False) for v in reversed(list(node.values())))
                continue
            start = len(results) - len(node)
            values = results[start:]
            del results[start:]
            results.append(Object({str(k): v for k, v in zip(node, values)}))
        elif isinstance(node, (list, tuple)):
            if not expanded:
                stack.append((node, True))
                stack.extend((v, False) for v in reversed(node))
                continue
            start = len(results) - len(node)
            items = tuple(results[start:])
            del results[start:]
            results.append(Array(items))
        else:
            results.append(_scalar(node))
    return results[0]


def is_integral(number: float) -> bool:
    """True when the number has an exact signed 64-bit integer form."""
    return math.isfinite(number) and number.is_integer() and INT64_MIN <= number < INT64_MAX


# Escapes: HTML-sensitive characters, line/paragraph separators
# and control characters as \u00xx, except the short forms below.
_ESCAPES = {i: f"\\u{i:04x}" for i in range(0x20)}
_ESCAPES.update({
    ord('"'): '\\"',
    ord("\\"): "\\\\",
    ord("\b"): "\\b",
    ord("\f"): "\\f",
    ord("\n"): "\\n",
    ord("\r"): "\\r",
    ord("\t"): "\\t",
    ord("<"): "\\u003c",
    ord(">"): "\\u003e",
    ord("&"): "\\u0026",
    0x2028: "\\u2028",
    0x2029: "\\u2029",
})


def encode_string(text: str) -> str:
    return '"' + text.translate(_ESCAPES) + '"'


def encode_number(number: float) -> str:
    """Shortest digits, plain decimal unless |n| < 1e-6 or |n| >= 1e21."""
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "+Inf" if number > 0 else "-Inf"

    digits = Decimal(repr(number)).normalize()
    magnitude = abs(number)
    if magnitude == 0 or 1e-6 <= magnitude < 1e21:
        return format(digits, "f")

    sign, coefficient, _ = digits.as_tuple()
    mantissa = "".join(str(d) for d in coefficient)
    if len(mantissa) > 1:
        mantissa = mantissa[0] + "." + mantissa[1:]
    exponent = digits.adjusted()
    exp_text = f"e-{-exponent}" if exponent < 0 else f"e+{exponent:02d}"
    return ("-" if sign else "") + mantissa + exp_text


def _encode_scalar(value: Value) -> str:
    if isinstance(value, Null):
        return "null"
    if isinstance(value, Bool):
        return "true" if value.value else "false"
    if isinstance(value, Number):
        return encode_number(value.value)
    if isinstance(value, String):
        return encode_string(value.value)
    return encode_string(str(value))


def canonical(value: Value) -> str:
    """Compact canonical JSON text: sorted keys, no whitespace."""
    parts = []
    # Plain strings on the stack are literal output, Values still need encoding
    stack: list[Any] = [value]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, Array):
            seq: list[Any] = ["["]
            for i, child in enumerate(item.items):
                if i:
                    seq.append(",")
                seq.append(child)
            seq.append("]")
            stack.extend(reversed(seq))
        elif isinstance(item, Object):
            seq = ["{"]
            for i, key in enumerate(sorted(item.fields)):
                if i:
                    seq.append(",")
                seq.append(encode_string(key) + ":")
                seq.append(item.fields[key])
            seq.append("}")
            stack.extend(reversed(seq))
        else:
            parts.append(_encode_scalar(item))
    return "".join(parts)


def loads(text: str) -> Value:
    """Parse JSON text straight into a Value."""
    return from_python(json.loads(text))
