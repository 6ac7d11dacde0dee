#!/usr/bin/env python3
"""
KVCAST CORE MODELS
------------------
Defines the fundamental data structures used across the KvCast engine.
These models represent a single input line at every stage of parsing:
raw pairs from the lexer, typed field values, and the assembled record.

Author: KvCast Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple, Union

# Largest key or value accepted by the lexer, measured in UTF-8 bytes.
MAX_TOKEN_BYTES = 1024


class FieldKind(Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"


class ErrorKind(Enum):
    """Every reason a line can be discarded."""
    EMPTY_LINE = "empty line"
    WHITESPACE_IN_KEY = "whitespace in key"
    QUOTE_IN_KEY = "quote in key"
    BACKSLASH_IN_KEY = "backslash in key"
    MISSING_COLON = "missing colon after key"
    EMPTY_KEY = "empty key"
    KEY_TOO_LONG = "key too long"
    WHITESPACE_AFTER_COLON = "whitespace after colon"
    TRAILING_BACKSLASH_IN_QUOTED_VALUE = "trailing backslash in quoted value"
    UNRECOGNIZED_ESCAPE = "unrecognized escape sequence"
    VALUE_TOO_LONG = "value too long"
    UNCLOSED_QUOTE = "unclosed quote"
    BACKSLASH_IN_UNQUOTED_VALUE = "backslash in unquoted value"
    EMPTY_VALUE = "empty value"
    NO_PAIRS_PARSED = "no pairs parsed"


@dataclass(frozen=True)
class FieldValue:
    """
    Tagged union of the three scalar types a record can carry.

    Build instances through string(), boolean() or number() so the tag
    and the Python type always agree.
    """
    kind: FieldKind
    value: Union[str, bool, float]

    @classmethod
    def string(cls, s: str) -> "FieldValue":
        return cls(FieldKind.STRING, s)

    @classmethod
    def boolean(cls, b: bool) -> "FieldValue":
        return cls(FieldKind.BOOLEAN, bool(b))

    @classmethod
    def number(cls, n: float) -> "FieldValue":
        return cls(FieldKind.NUMBER, float(n))

    def to_json(self) -> Union[str, bool, int, float]:
        """Python value handed to the JSON encoder (integral numbers as int, like %g)."""
        if self.kind is FieldKind.NUMBER and self.value.is_integer() and abs(self.value) < 1e15:
            return int(self.value)
        return self.value


@dataclass(frozen=True)
class Field:
    name: str
    value: FieldValue


@dataclass(frozen=True)
class RawPair:
    """
    Intermediate (key, value-text, was-quoted) triple produced by the lexer.
    Quoted values keep their surrounding quote characters.
    """
    key: str
    raw_value: str
    was_quoted: bool = False


@dataclass(frozen=True)
class Record:
    """
    One parsed line's worth of typed fields, in input order.

    Duplicate names are kept as distinct insertions; as_dict() gives the
    JSON object view where the last duplicate wins.
    """
    fields: Tuple[Field, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def get(self, name: str) -> Optional[FieldValue]:
        """Returns the last value stored under name, or None."""
        found = None
        for f in self.fields:
            if f.name == name:
                found = f.value
        return found

    def as_dict(self) -> Dict[str, FieldValue]:
        return {f.name: f.value for f in self.fields}


@dataclass(frozen=True)
class LineError:
    kind: ErrorKind
    position: int = 0
    detail: Optional[str] = None

    @property
    def reason(self) -> str:
        """Human-readable diagnostic, e.g. "unrecognized escape sequence '\\q' at column 7"."""
        text = self.kind.value
        if self.detail is not None:
            text += f" '{self.detail}'"
        return f"{text} at column {self.position + 1}"


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one line: exactly one of record / error is set."""
    record: Optional[Record] = None
    error: Optional[LineError] = None
    line_no: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.record is not None
