"""Operand syntax: numbers, character literals, registers and pointers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

MAX_TOKENS = 100
MAX_N_ALIASES = 512
MAX_BIN_SIZE = 2 * 64 * 1024

# Parameter classification.
CONSTANT = 1
REGISTER = 2
S_REGISTER = 3
INVALID = 0xFFFF

POINTER = 4
W_OFFSET = 8

# Where an argument ends up in the encoded instruction.
FIRST_NIBBLE = 0b10000000000
SECOND_NIBBLE = 0b01000000000
FOLLOWING = 0b00100000000
OFFSET_FOLLOWING = 0b00010000000
FOLLOWING_MASK = 0b00111111111

MAX_PARAMS = 3
WORD_MASK = 0xFFFF

_DECIMAL = frozenset("0123456789")
_HEXADECIMAL = frozenset("0123456789abcdefABCDEF")
_BINARY = frozenset("01")

_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    "'": "'",
    '"': '"',
    "?": "?",
}


@dataclass(frozen=True)
class Parameter:
    """A parsed instruction argument: its kind, value and pointer offset."""

    kind: int
    value: int = 0
    offset: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", self.value & WORD_MASK)
        object.__setattr__(self, "offset", self.offset & WORD_MASK)


def _radix(body: str) -> tuple[str, frozenset[str], int]:
    prefix = body[:2]
    if prefix in ("0x", "0X"):
        return body[2:], _HEXADECIMAL, 16
    if prefix in ("0b", "0B"):
        return body[2:], _BINARY, 2
    return body, _DECIMAL, 10


def is_number(text: str) -> bool:
    """Tell whether text is a decimal, 0x-hex or 0b-binary integer, optionally negative."""
    body = text[1:] if text.startswith("-") else text
    digits, allowed, _ = _radix(body)
    return all(char in allowed for char in digits)


def parse_number(text: str) -> int:
    """Return the integer value of a number literal; an empty body counts as zero."""
    if text.startswith("-"):
        return -parse_number(text[1:])
    digits, allowed, base = _radix(text)
    if not all(char in allowed for char in digits):
        raise ValueError(f"not a number: {text!r}")
    return int(digits, base) if digits else 0


def is_char(text: str) -> bool:
    """Tell whether text is a quoted character literal such as 'a' or '\\n'."""
    if len(text) < 3 or text[0] != "'":
        return False
    if text[1] == "\\":
        return len(text) == 4 and text[3] == "'"
    return text[2] == "'"


def parse_char(text: str) -> int:
    """Return the code of a character literal; unknown escapes give zero."""
    if not is_char(text):
        raise ValueError(f"not a character literal: {text!r}")
    if text[1] == "\\":
        return ord(_ESCAPES.get(text[2], "\0"))
    return ord(text[1])


def _first_sign(text: str) -> int:
    return next((i for i, char in enumerate(text) if char in "+-"), len(text))


def _invalid(text: str) -> ValueError:
    return ValueError(f"invalid parameter {text!r}")


def _parse_pointer(text: str, aliases: Mapping[str, str], seen: frozenset[str]) -> Parameter:
    if text[1:2] == "(":
        inside = text[2:]
        close = inside.find(")")
        if close < 0 or close != len(inside) - 1:
            raise _invalid(text)
        expression = inside[:close]
        split = _first_sign(expression)
        offset_text = expression[split:]
        if offset_text.startswith("+"):
            offset_text = offset_text[1:]
        try:
            offset_param = _parse(offset_text, aliases, seen)
        except ValueError as exc:
            raise _invalid(text) from exc
        if offset_param.kind != CONSTANT or offset_param.offset:
            raise _invalid(text)
        base = _parse(expression[:split], aliases, seen)
        return Parameter(base.kind | POINTER, base.value, offset_param.value)

    base = _parse(text[1:], aliases, seen)
    if base.offset:
        raise _invalid(text)
    return Parameter(base.kind | POINTER, base.value)


def _parse_plain(text: str, aliases: Mapping[str, str], seen: frozenset[str]) -> Parameter:
    if text.startswith("sr") and is_number(text[2:]):
        return Parameter(S_REGISTER, parse_number(text[2:]))
    if text.startswith("r") and is_number(text[1:]):
        return Parameter(REGISTER, parse_number(text[1:]))
    if is_number(text):
        return Parameter(CONSTANT, parse_number(text))
    if is_char(text):
        return Parameter(CONSTANT, parse_char(text))
    replacer = aliases.get(text)
    if replacer is None or text in seen:
        raise _invalid(text)
    return _parse(replacer, aliases, seen | {text})


def _parse(text: str, aliases: Mapping[str, str], seen: frozenset[str]) -> Parameter:
    if text.startswith("*"):
        result = _parse_pointer(text, aliases, seen)
    else:
        result = _parse_plain(text, aliases, seen)
    if result.offset:
        return Parameter(result.kind | W_OFFSET, result.value, result.offset)
    return result


def parse_parameter(text: str, aliases: Mapping[str, str] | None = None) -> Parameter:
    """Classify an argument token, resolving aliases; raise ValueError if it is not valid."""
    return _parse(text, {} if aliases is None else aliases, frozenset())