#!/usr/bin/env python3
"""
KVCAST PARSING PIPELINE - Record Assembler
------------------------------------------
Central coordinator for turning one line of text into zero or one Record.
Lexing and classification happen in a strict sequence, and any reject
anywhere on the line discards the whole record: parsing is atomic per line.

The pipeline never raises for bad input. Every failure comes back as a
ParseResult carrying a LineError so the caller can skip to the next line.

Author: KvCast Team
Date: 2026-10-19
"""

from typing import Iterable, Iterator, List, Optional

from kvcast.core.errors import TokenizeError
from kvcast.core.models import ErrorKind, Field, LineError, ParseResult, Record
from kvcast.parsing.classifier import classify
from kvcast.parsing.lexer import LineLexer


class RecordAssembler:
    """
    The Orchestrator: pulls RawPairs from the lexer, types them with the
    classifier and seals the result into an immutable Record.
    """

    def __init__(self, lexer: Optional[LineLexer] = None):
        self.lexer = lexer or LineLexer()

    def assemble(self, line: str, line_no: Optional[int] = None) -> ParseResult:
        fields: List[Field] = []
        try:
            for pair in self.lexer.iter_pairs(line):
                fields.append(Field(name=pair.key, value=classify(pair)))
        except TokenizeError as e:
            # In-progress fields are dropped with the line
            return ParseResult(error=e.as_line_error(), line_no=line_no)

        if not fields:
            return ParseResult(error=LineError(ErrorKind.NO_PAIRS_PARSED), line_no=line_no)
        return ParseResult(record=Record(tuple(fields)), line_no=line_no)

    def assemble_lines(self, lines: Iterable[str]) -> Iterator[ParseResult]:
        """One ParseResult per input line, numbered from 1."""
        for line_no, line in enumerate(lines, 1):
            yield self.assemble(line, line_no)


_default_assembler = RecordAssembler()


def parse_line(line: str) -> Optional[Record]:
    """Parses one line; returns the Record, or None when the line is discarded."""
    return _default_assembler.assemble(line).record


def parse_lines(lines: Iterable[str]) -> Iterator[ParseResult]:
    return _default_assembler.assemble_lines(lines)
