"""Splitting assembly source into numbered lines of tokens."""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from dataclasses import dataclass

MAX_LINE_LENGTH = 1024

# Longest record read in one go; longer physical lines are split.
_RECORD_LENGTH = MAX_LINE_LENGTH - 1
_WHITESPACE = " \t\n\v\f\r"
_DELIMITERS = frozenset(" ,\t\n")
_PHYSICAL_LINE = re.compile(r"[^\n]*\n|[^\n]+\Z")


@dataclass(frozen=True)
class Line:
    """One source line: its number, its text and the tokens found in it."""

    line_number: int
    raw_line: str
    tokens: tuple[str, ...] = ()

    @property
    def token_count(self) -> int:
        return len(self.tokens)


def tokenize_string(src: str) -> list[str]:
    """Split src on spaces, commas, tabs and newlines, keeping quoted strings whole.

    A token is only taken when a delimiter ends it and it is at least two
    characters long; a quoted string keeps its quotes.
    """
    tokens: list[str] = []
    start = 0
    quoted = False
    for i, char in enumerate(src):
        finished = False
        if char == '"':
            if not quoted:
                quoted = True
                finished = True
            elif src[i - 1] != "'":
                finished = True
        if not quoted and not finished and char in _DELIMITERS:
            finished = True
        if not finished:
            continue
        if i > start + 1 or (quoted and i > 0 and src[i - 1] == '"'):
            if quoted:
                tokens.append(src[max(start - 1, 0) : i + 1])
                quoted = False
            else:
                tokens.append(src[start:i])
        start = i + 1
    return tokens


def tokenize_line(line: str, line_number: int) -> Line:
    """Tokenize one line of text and remember where it came from."""
    return Line(line_number, line, tuple(tokenize_string(line)))


def _records(text: str) -> Iterator[str]:
    for match in _PHYSICAL_LINE.finditer(text):
        physical = match.group()
        for offset in range(0, len(physical), _RECORD_LENGTH):
            yield physical[offset : offset + _RECORD_LENGTH]


def tokenize_text(text: str) -> list[Line]:
    """Tokenize every non-blank line of text; blank lines still count for numbering."""
    lines: list[Line] = []
    for number, record in enumerate(_records(text), start=1):
        trimmed = record.lstrip(_WHITESPACE)
        if trimmed:
            lines.append(tokenize_line(trimmed, number))
    return lines


def tokenize_file(path: str | os.PathLike[str]) -> list[Line]:
    """Read a source file and tokenize it."""
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as handle:
        return tokenize_text(handle.read())