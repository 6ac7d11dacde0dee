#!/usr/bin/env python3
"""
KVCAST CLASSIFIER - Type Inference
----------------------------------
Maps each RawPair to a typed FieldValue. Rules, first match wins:

1. quoted text                      -> String (quotes included)
2. "true" / "false", any case       -> Boolean
3. full decimal float literal       -> Number (overflow falls through)
4. anything else                    -> String

Author: KvCast Team
Date: 2026-10-19
"""

import math
import re
from typing import Optional

from kvcast.core.models import FieldValue, RawPair

# Decimal floating-point literal: optional sign, digits with optional point
# (or a leading point), optional exponent. No inf/nan, hex or underscores.
NUMBER_PATTERN = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?', re.ASCII)


def parse_number(text: str) -> Optional[float]:
    """
    Strict string-to-float: the literal must span the whole text and
    stay within float range. Returns None otherwise.
    """
    if not NUMBER_PATTERN.fullmatch(text):
        return None
    value = float(text)
    if math.isinf(value):
        return None
    return value


def classify(pair: RawPair) -> FieldValue:
    if pair.was_quoted:
        return FieldValue.string(pair.raw_value)

    lowered = pair.raw_value.lower()
    if lowered == "true":
        return FieldValue.boolean(True)
    if lowered == "false":
        return FieldValue.boolean(False)

    number = parse_number(pair.raw_value)
    if number is not None:
        return FieldValue.number(number)
    return FieldValue.string(pair.raw_value)
