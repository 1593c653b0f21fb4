"""
Character-level CSV tokenizer.

One forward scan with one character of lookahead turns text into rows of
field strings. Quoted fields keep delimiters and line breaks verbatim, ``""``
inside quotes is a literal quote, and malformed input never raises: an
unterminated quote simply runs to the end of the text.

When the first scan looks wrong (a single row, or a single column) the
delimiter is sniffed from raw character counts and the text is scanned once
more with the winner.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import InvalidDelimiterError
from .rules import CANDIDATE_DELIMITERS, DEFAULT_DELIMITER, QUOTE

LOGGER = logging.getLogger(__name__)

Row = List[str]


@dataclass
class ParsedTable:
    rows: List[Row]
    delimiter: str
    sniffed: bool = False


@dataclass
class _ScanState:
    in_quotes: bool = False
    buffer: List[str] = field(default_factory=list)
    row: Row = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)

    def end_field(self) -> None:
        self.row.append("".join(self.buffer))
        self.buffer.clear()

    def end_row(self) -> None:
        self.rows.append(self.row)
        self.row = []


def _check_delimiter(delimiter: str) -> None:
    if len(delimiter) != 1 or delimiter in (QUOTE, "\r", "\n"):
        raise InvalidDelimiterError(delimiter)


def _scan(text: str, delimiter: str) -> List[Row]:
    state = _ScanState()
    i = 0
    n = len(text)

    while i < n:
        char = text[i]

        if state.in_quotes:
            if char == QUOTE:
                if i + 1 < n and text[i + 1] == QUOTE:
                    # escaped quote
                    state.buffer.append(QUOTE)
                    i += 2
                    continue
                state.in_quotes = False
            else:
                state.buffer.append(char)
            i += 1
            continue

        if char == QUOTE:
            state.in_quotes = True
        elif char == delimiter:
            state.end_field()
        elif char == "\n":
            state.end_field()
            state.end_row()
            if i + 1 < n and text[i + 1] == "\r":
                i += 1
        elif char == "\r":
            # a following \n starts an empty row of its own
            state.end_field()
            state.end_row()
        else:
            state.buffer.append(char)
        i += 1

    # last line needs no terminator
    state.end_field()
    state.end_row()
    return state.rows


def _is_degenerate(rows: List[Row]) -> bool:
    return len(rows) <= 1 or len(rows[0]) == 1


def detect_delimiter(text: str) -> Optional[str]:
    """Return the most frequent candidate delimiter in ``text``, or None if none occurs."""
    best = None
    best_count = 0
    for candidate in CANDIDATE_DELIMITERS:
        count = text.count(candidate)
        if count > best_count:
            best = candidate
            best_count = count
    return best


def tokenize(text: str, delimiter: str = DEFAULT_DELIMITER) -> ParsedTable:
    """
    Split ``text`` into rows and report which delimiter produced them.

    At most two scans: the requested delimiter first, then the sniffed one if
    the first result is degenerate and sniffing picks something different.
    """
    _check_delimiter(delimiter)

    table = ParsedTable(rows=_scan(text, delimiter), delimiter=delimiter)
    if _is_degenerate(table.rows):
        alternate = detect_delimiter(text)
        if alternate is not None and alternate != delimiter:
            LOGGER.debug("Retrying scan with sniffed delimiter %r (was %r)", alternate, delimiter)
            table = ParsedTable(rows=_scan(text, alternate), delimiter=alternate, sniffed=True)
    return table


def parse(text: str, delimiter: str = DEFAULT_DELIMITER) -> List[Row]:
    """Parse CSV ``text`` into rows of field strings."""
    return tokenize(text, delimiter).rows
