import pytest

from kvcast.core.models import FieldKind, FieldValue, RawPair
from kvcast.parsing.classifier import classify, parse_number


@pytest.mark.parametrize("text", ["true", "TRUE", "True", "tRuE"])
def test_true_any_case(text):
    assert classify(RawPair("k", text)) == FieldValue.boolean(True)


@pytest.mark.parametrize("text", ["false", "FALSE", "False"])
def test_false_any_case(text):
    assert classify(RawPair("k", text)) == FieldValue.boolean(False)


def test_quoted_always_string():
    value = classify(RawPair("k", '"true"', was_quoted=True))
    assert value == FieldValue.string('"true"')

    value = classify(RawPair("k", '"42"', was_quoted=True))
    assert value.kind is FieldKind.STRING


@pytest.mark.parametrize("text, expected", [
    ("42", 42.0),
    ("-7", -7.0),
    ("+3", 3.0),
    ("3.14e2", 314.0),
    ("1E-3", 0.001),
    (".5", 0.5),
    ("5.", 5.0),
    ("0", 0.0),
])
def test_numbers(text, expected):
    value = classify(RawPair("k", text))
    assert value.kind is FieldKind.NUMBER
    assert value.value == pytest.approx(expected)


@pytest.mark.parametrize("text", [
    "4MB", "1.2.3", "e5", "1e", "inf", "nan", "Infinity", "0x10", "1_000", "+", ".", "٣",
])
def test_non_numbers_stay_strings(text):
    assert classify(RawPair("k", text)) == FieldValue.string(text)


def test_overflow_is_not_a_number():
    assert parse_number("1e999") is None
    assert classify(RawPair("k", "1e999")) == FieldValue.string("1e999")


def test_parse_number_requires_full_consumption():
    assert parse_number("12abc") is None
    assert parse_number("12") == 12.0
