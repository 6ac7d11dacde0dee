#!/usr/bin/env python3
"""
KVCAST LEXER - Line Tokenizer
-----------------------------
Decomposes one line of `key:value` text into RawPair models.

The lexer is a hand-written state machine over an explicit cursor into the
(immutable) line:

    SKIP_LEADING -> SCAN_KEY -> SCAN_VALUE -> SKIP_LEADING ... -> DONE

The first malformed token raises TokenizeError; nothing scanned before it
on the same line is ever handed out as a result.

Author: KvCast Team
Date: 2026-10-19
"""

import logging
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from kvcast.core.errors import TokenizeError
from kvcast.core.models import MAX_TOKEN_BYTES, ErrorKind, RawPair

logger = logging.getLogger("kvcast.lexer")

# Matches C isspace() in the "C" locale.
WHITESPACE = frozenset(" \t\n\v\f\r")
KEY_TERMINATORS = WHITESPACE | frozenset(':"\\')
ESCAPES = {'"': '"', '\\': '\\', 'n': '\n', 't': '\t', 'r': '\r'}


class LexState(Enum):
    SKIP_LEADING = 1
    SCAN_KEY = 2
    SCAN_VALUE = 3
    DONE = 4


def _utf8_len(text: str) -> int:
    return len(text.encode('utf-8'))


class LineLexer:
    """
    Converts a single line into an ordered stream of RawPairs.
    Holds no per-line state, so one instance can be shared freely.
    """

    def __init__(self, max_token_bytes: int = MAX_TOKEN_BYTES):
        self.max_token_bytes = max_token_bytes

    def _line_end(self, line: str) -> int:
        """A trailing newline terminates the line and is never part of a token."""
        idx = line.find('\n')
        return len(line) if idx == -1 else idx

    def _skip_whitespace(self, line: str, pos: int, end: int) -> int:
        while pos < end and line[pos] in WHITESPACE:
            pos += 1
        return pos

    def _scan_key(self, line: str, pos: int, end: int) -> Tuple[str, int]:
        """Returns the key and the position just past its colon."""
        start = pos
        while pos < end and line[pos] not in KEY_TERMINATORS:
            pos += 1
        key = line[start:pos]

        if _utf8_len(key) > self.max_token_bytes:
            raise TokenizeError(ErrorKind.KEY_TOO_LONG, start)
        if pos >= end:
            raise TokenizeError(ErrorKind.MISSING_COLON, pos)

        stop = line[pos]
        if stop in WHITESPACE:
            raise TokenizeError(ErrorKind.WHITESPACE_IN_KEY, pos)
        if stop == '"':
            raise TokenizeError(ErrorKind.QUOTE_IN_KEY, pos)
        if stop == '\\':
            raise TokenizeError(ErrorKind.BACKSLASH_IN_KEY, pos)
        if not key:
            raise TokenizeError(ErrorKind.EMPTY_KEY, pos)
        return key, pos + 1

    def _scan_value(self, line: str, pos: int, end: int) -> Tuple[str, bool, int]:
        """Returns (value, was_quoted, position after the value)."""
        if pos >= end:
            raise TokenizeError(ErrorKind.EMPTY_VALUE, pos)
        if line[pos] in WHITESPACE:
            raise TokenizeError(ErrorKind.WHITESPACE_AFTER_COLON, pos)
        if line[pos] == '"':
            value, pos = self._scan_quoted(line, pos, end)
            return value, True, pos
        value, pos = self._scan_unquoted(line, pos, end)
        return value, False, pos

    def _scan_quoted(self, line: str, pos: int, end: int) -> Tuple[str, int]:
        """
        Walks a quoted value starting at its opening quote. Both quote
        characters are kept in the stored text; escapes are decoded.
        """
        start = pos
        chars = ['"']
        size = 1
        pos += 1

        while pos < end:
            ch = line[pos]
            closing = False
            if ch == '\\':
                if pos + 1 >= end:
                    raise TokenizeError(ErrorKind.TRAILING_BACKSLASH_IN_QUOTED_VALUE, pos)
                decoded = ESCAPES.get(line[pos + 1])
                if decoded is None:
                    raise TokenizeError(ErrorKind.UNRECOGNIZED_ESCAPE, pos, line[pos + 1])
                pos += 2
            else:
                decoded = ch
                closing = ch == '"'
                pos += 1

            size += _utf8_len(decoded)
            if size > self.max_token_bytes:
                raise TokenizeError(ErrorKind.VALUE_TOO_LONG, start)
            chars.append(decoded)
            if closing:
                return ''.join(chars), pos

        raise TokenizeError(ErrorKind.UNCLOSED_QUOTE, start)

    def _scan_unquoted(self, line: str, pos: int, end: int) -> Tuple[str, int]:
        start = pos
        while pos < end and line[pos] not in WHITESPACE and line[pos] != '\\':
            pos += 1
        value = line[start:pos]

        if _utf8_len(value) > self.max_token_bytes:
            raise TokenizeError(ErrorKind.VALUE_TOO_LONG, start)
        if pos < end and line[pos] == '\\':
            raise TokenizeError(ErrorKind.BACKSLASH_IN_UNQUOTED_VALUE, pos)
        return value, pos

    def scan_pair(self, line: str, pos: int = 0) -> Tuple[int, Optional[RawPair]]:
        """
        Single step of the machine: skips whitespace from pos and scans one
        pair. Returns (next_position, pair), or (line_end, None) when only
        whitespace remains.
        """
        end = self._line_end(line)
        pos = self._skip_whitespace(line, pos, end)
        if pos >= end:
            return end, None
        key, pos = self._scan_key(line, pos, end)
        value, quoted, pos = self._scan_value(line, pos, end)
        return pos, RawPair(key=key, raw_value=value, was_quoted=quoted)

    def iter_pairs(self, line: str) -> Iterator[RawPair]:
        """
        Yields RawPairs in line order. Raises TokenizeError on the first
        reject, including EMPTY_LINE for a blank line.
        """
        end = self._line_end(line)
        pos = 0
        key = ""
        emitted = 0
        state = LexState.SKIP_LEADING

        try:
            while state is not LexState.DONE:
                if state is LexState.SKIP_LEADING:
                    pos = self._skip_whitespace(line, pos, end)
                    if pos < end:
                        state = LexState.SCAN_KEY
                    elif emitted:
                        state = LexState.DONE
                    else:
                        raise TokenizeError(ErrorKind.EMPTY_LINE, pos)
                elif state is LexState.SCAN_KEY:
                    key, pos = self._scan_key(line, pos, end)
                    state = LexState.SCAN_VALUE
                else:
                    value, quoted, pos = self._scan_value(line, pos, end)
                    emitted += 1
                    yield RawPair(key=key, raw_value=value, was_quoted=quoted)
                    state = LexState.SKIP_LEADING
        except TokenizeError as e:
            logger.debug(f"Rejected line: {e}")
            raise

    def tokenize(self, line: str) -> List[RawPair]:
        """All pairs of the line, or TokenizeError. Never a partial list."""
        return list(self.iter_pairs(line))
