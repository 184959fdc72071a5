"""
Value kind classification.

`classify` is total: every input maps to exactly one `ValueKind`.
"""

from __future__ import annotations

from typing import Any

from ...config import LONG_TEXT_THRESHOLD
from .models import (
    ArrayValue,
    NumberValue,
    RawValue,
    StringValue,
    ValueKind,
    to_raw_value,
)


def classify_raw(raw: RawValue) -> ValueKind:
    if isinstance(raw, StringValue):
        if len(raw.value) > LONG_TEXT_THRESHOLD:
            return ValueKind.LONG_TEXT
        return ValueKind.TEXT
    if isinstance(raw, NumberValue):
        # NaN and infinities are still numbers.
        return ValueKind.NUMBER
    if isinstance(raw, ArrayValue):
        # Only the first element is inspected.
        if raw.items and isinstance(raw.items[0], str):
            return ValueKind.TEXT_LIST
        return ValueKind.UNSUPPORTED
    # NullValue, BoolValue, ObjectValue
    return ValueKind.UNSUPPORTED


def classify(value: Any) -> ValueKind:
    """Classify a raw metadata value."""
    return classify_raw(to_raw_value(value))
