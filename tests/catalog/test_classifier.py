import datetime
import math

from fieldcat_backend.features.catalog.classifier import classify
from fieldcat_backend.features.catalog.models import (
    ArrayValue,
    BoolValue,
    NullValue,
    NumberValue,
    ObjectValue,
    StringValue,
    ValueKind,
    to_raw_value,
)


def test_length_boundary_between_text_and_long_text() -> None:
    assert classify("x" * 30) == ValueKind.TEXT
    assert classify("x" * 31) == ValueKind.LONG_TEXT


def test_empty_string_is_text() -> None:
    assert classify("") == ValueKind.TEXT


def test_numbers_including_nan_and_infinity() -> None:
    assert classify(0) == ValueKind.NUMBER
    assert classify(-12.5) == ValueKind.NUMBER
    assert classify(math.nan) == ValueKind.NUMBER
    assert classify(math.inf) == ValueKind.NUMBER


def test_booleans_are_not_numbers() -> None:
    assert classify(True) == ValueKind.UNSUPPORTED
    assert classify(False) == ValueKind.UNSUPPORTED


def test_array_rule_inspects_first_element_only() -> None:
    assert classify(["a"]) == ValueKind.TEXT_LIST
    assert classify([]) == ValueKind.UNSUPPORTED
    assert classify([None, "a"]) == ValueKind.UNSUPPORTED
    assert classify([1, 2, 3]) == ValueKind.UNSUPPORTED
    assert classify(["", "b"]) == ValueKind.TEXT_LIST
    assert classify(("a", 1)) == ValueKind.TEXT_LIST


def test_everything_else_is_unsupported() -> None:
    samples = [None, {"a": 1}, {}, datetime.date(2024, 1, 1), len, object(), b"bytes"]
    for value in samples:
        assert classify(value) == ValueKind.UNSUPPORTED


def test_classify_is_total_over_mixed_inputs() -> None:
    samples = ["s", 1, 1.5, [], ["a"], {}, None, True, lambda: None, datetime.datetime.now(), set()]
    for value in samples:
        assert isinstance(classify(value), ValueKind)


def test_raw_value_wrapping() -> None:
    assert to_raw_value(None) == NullValue()
    assert to_raw_value(True) == BoolValue(True)
    assert to_raw_value("a") == StringValue("a")
    assert to_raw_value(3) == NumberValue(3)
    assert to_raw_value(["a", 1]) == ArrayValue(("a", 1))
    assert isinstance(to_raw_value({"k": "v"}), ObjectValue)
