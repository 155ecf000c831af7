"""
Scalar coercion per attribute type, and allowed-set validation.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import numpy as np
import pandas as pd
import pytest

from typed_store.codec import AttributeType, coerce, validate_allowed
from typed_store.core.errors import CoercionError, DisallowedValueError

B = AttributeType.BOOLEAN
I = AttributeType.INTEGER
F = AttributeType.FLOAT
S = AttributeType.STRING
T = AttributeType.TEXT
D = AttributeType.DATETIME


@pytest.mark.parametrize(
    "raw,expected",
    [
        (True, True),
        (False, False),
        ("true", True),
        (" Yes ", True),
        ("on", True),
        ("1", True),
        ("false", False),
        ("off", False),
        ("0", False),
        (1, True),
        (0, False),
        (np.bool_(True), True),
    ],
)
def test_boolean_tokens(raw, expected):
    assert coerce(raw, B) is expected


@pytest.mark.parametrize("raw", [2, -1, "maybe", 1.5, [True]])
def test_boolean_rejects_non_tokens(raw):
    with pytest.raises(CoercionError):
        coerce(raw, B, attribute="flag")


def test_none_passes_through_every_type():
    for attr_type in AttributeType:
        assert coerce(None, attr_type) is None


def test_blank_string_is_none_except_for_textual_types():
    assert coerce("", B) is None
    assert coerce("  ", I) is None
    assert coerce("", F) is None
    assert coerce("", D) is None
    assert coerce("", S) == ""
    assert coerce("", T) == ""


@pytest.mark.parametrize(
    "raw,expected",
    [(42, 42), ("42", 42), (" -7 ", -7), ("3.0", 3), (3.0, 3), (np.int64(9), 9), (True, 1)],
)
def test_integer_coercion(raw, expected):
    value = coerce(raw, I)
    assert value == expected
    assert type(value) is int


@pytest.mark.parametrize("raw", ["abc", 3.5, "3.5", float("inf"), float("nan"), [1]])
def test_integer_rejects_non_integral(raw):
    with pytest.raises(CoercionError):
        coerce(raw, I, attribute="max_replies")


@pytest.mark.parametrize("raw,expected", [(1.5, 1.5), ("2.25", 2.25), (3, 3.0), (np.float32(0.5), 0.5)])
def test_float_coercion(raw, expected):
    value = coerce(raw, F)
    assert value == expected
    assert type(value) is float


@pytest.mark.parametrize("raw", [True, "nan", float("inf"), "-inf", "x", [1.0]])
def test_float_rejects_bool_and_non_finite(raw):
    with pytest.raises(CoercionError):
        coerce(raw, F)


def test_string_and_text_coercion():
    assert coerce("hello", S) == "hello"
    assert coerce(42, S) == "42"
    assert coerce(np.int64(5), T) == "5"
    assert coerce(b"caf\xc3\xa9", T) == "café"
    with pytest.raises(CoercionError):
        coerce(["a"], S)
    with pytest.raises(CoercionError):
        coerce(b"\xff", S)


def test_datetime_naive_string_becomes_utc():
    value = coerce("2026-01-02T03:04:05", D)
    assert value == datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert value.tzinfo is not None


def test_datetime_offset_normalized_to_utc():
    value = coerce("2026-01-02T03:04:05+02:00", D)
    assert value == datetime(2026, 1, 2, 1, 4, 5, tzinfo=timezone.utc)
    assert value.utcoffset() == timedelta(0)


def test_datetime_from_other_inputs():
    assert coerce(0, D) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert coerce(date(2026, 1, 2), D) == datetime(2026, 1, 2, tzinfo=timezone.utc)
    assert coerce(np.datetime64("2026-01-02T00:00"), D) == datetime(2026, 1, 2, tzinfo=timezone.utc)
    nanos = coerce("2026-01-02T10:30:00.123456789+00:00", D)
    assert nanos.replace(microsecond=0) == datetime(2026, 1, 2, 10, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "raw", ["not a date", "now", "today", " Tomorrow ", "2 Jan 2026 10:30", "01/02/2026", True, [2026, 1, 2]]
)
def test_datetime_rejects_garbage(raw):
    with pytest.raises(CoercionError) as exc_info:
        coerce(raw, D, attribute="published_at")
    assert exc_info.value.attribute == "published_at"
    assert exc_info.value.type is D


@pytest.mark.parametrize("raw", [pd.NaT, np.datetime64("NaT"), np.datetime64("NaT", "ns")])
def test_missing_timestamp_markers_become_none(raw):
    assert coerce(raw, D) is None


def test_string_with_lone_surrogate_rejected():
    for attr_type in (S, T):
        with pytest.raises(CoercionError):
            coerce("bad \ud800 text", attr_type, attribute="signature")


def test_coercion_error_is_value_error():
    with pytest.raises(ValueError):
        coerce("x", I)


def test_validate_allowed():
    allowed = frozenset({"light", "dark"})
    validate_allowed("dark", allowed)
    validate_allowed(None, allowed)
    validate_allowed("anything", None)
    with pytest.raises(DisallowedValueError) as exc_info:
        validate_allowed("blue", allowed, attribute="theme")
    assert exc_info.value.value == "blue"
    assert "light" in str(exc_info.value)
