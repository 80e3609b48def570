"""The instruction table and the encoding of instructions into words."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .params import (
    CONSTANT,
    FIRST_NIBBLE,
    FOLLOWING,
    FOLLOWING_MASK,
    OFFSET_FOLLOWING,
    POINTER,
    REGISTER,
    S_REGISTER,
    SECOND_NIBBLE,
    W_OFFSET,
    WORD_MASK,
    Parameter,
)

N_INSTR = 107

FUNCTION_CALL = 0x80
PLAIN_GOTO = 0x01
GOTO_C_ZERO = 0x02
GOTO_C_NONZERO = 0x03
GOTO_C_NEGATIVE = 0x04
GOTO_C_NONNEGATIVE = 0x05
GOTO_C_POSITIVE = 0x06
GOTO_C_NONPOSITIVE = 0x07

GOTO_CODES = {
    "goto": PLAIN_GOTO,
    "call": FUNCTION_CALL,
    "goto_if_zero": GOTO_C_ZERO,
    "goto_if_nonzero": GOTO_C_NONZERO,
    "goto_if_negative": GOTO_C_NEGATIVE,
    "goto_if_nonnegative": GOTO_C_NONNEGATIVE,
    "goto_if_positive": GOTO_C_POSITIVE,
    "goto_if_nonpositive": GOTO_C_NONPOSITIVE,
}


@dataclass(frozen=True)
class Instruction:
    """A mnemonic with its opcode and the type and placement of each argument."""

    name: str
    code: int
    arg_types: tuple[int, ...] = ()
    arg_positions: tuple[int, ...] = ()

    @property
    def n_args(self) -> int:
        return len(self.arg_types)

    def encode(self, params: Sequence[Parameter]) -> list[int]:
        """Return the instruction word followed by any trailing argument words."""
        params = list(params)
        if len(params) != self.n_args:
            raise ValueError(
                f"{self.name!r} takes {self.n_args} arguments, got {len(params)}"
            )
        placed = list(zip(params, self.arg_positions))

        word = self.code
        for param, position in placed:
            if position & FIRST_NIBBLE:
                word += param.value * 0x1000
            if position & SECOND_NIBBLE:
                word += param.value * 0x0100
        words = [word & WORD_MASK]

        for slot in range(1, len(params) + 1):
            for param, position in placed:
                tail = position & FOLLOWING_MASK
                if tail == FOLLOWING + slot:
                    words.append(param.value)
                elif tail == OFFSET_FOLLOWING + slot:
                    words.append(param.offset)
        return words


def _fol(n: int) -> int:
    return FOLLOWING + n


def _ofol(n: int) -> int:
    return OFFSET_FOLLOWING + n


def _op(name: str, code: int, *args: tuple[int, int]) -> Instruction:
    return Instruction(
        name,
        code,
        tuple(kind for kind, _ in args),
        tuple(position for _, position in args),
    )


_C = CONSTANT
_CP = CONSTANT | POINTER
_R = REGISTER
_RP = REGISTER | POINTER
_RPO = REGISTER | POINTER | W_OFFSET
_S = S_REGISTER
_SP = S_REGISTER | POINTER
_SPO = S_REGISTER | POINTER | W_OFFSET
_N1 = FIRST_NIBBLE
_N2 = SECOND_NIBBLE
_N12 = FIRST_NIBBLE | SECOND_NIBBLE


def _rr(name: str, code: int) -> Instruction:
    return _op(name, code, (_R, _N1), (_R, _N2))


def _r(name: str, code: int) -> Instruction:
    return _op(name, code, (_R, _N12))


INSTRUCTIONS: tuple[Instruction, ...] = (
    _op("chill", 0x00),
    # setting
    _op("set", 0x10, (_CP, _fol(1)), (_C, _fol(2))),
    _op("set", 0x11, (_CP, _fol(1)), (_CP, _fol(2))),
    _op("set", 0x12, (_CP, _fol(1)), (_R, _N1)),
    _op("set", 0x13, (_CP, _fol(1)), (_RP, _N1)),
    _op("set", 0x14, (_CP, _fol(1)), (_RPO, _N1 | _fol(2))),
    _op("set", 0x15, (_CP, _fol(1)), (_S, _N1)),
    _op("set", 0x16, (_CP, _fol(1)), (_SP, _N1)),
    _op("set", 0x17, (_CP, _fol(1)), (_SPO, _N1 | _fol(2))),
    _op("set", 0x18, (_R, _N1), (_C, _fol(1))),
    _op("set", 0x19, (_R, _N1), (_CP, _fol(1))),
    _op("set", 0x1A, (_R, _N1), (_R, _N2)),
    _op("set", 0x1B, (_R, _N1), (_RP, _N2)),
    _op("set", 0x1C, (_R, _N1), (_RPO, _N2 | _ofol(1))),
    _op("set", 0x1E, (_R, _N1), (_S, _N2)),
    _op("set", 0x1F, (_R, _N1), (_SP, _N2)),
    _op("set", 0x20, (_R, _N1), (_SPO, _N2 | _ofol(1))),
    _op("set", 0x21, (_RP, _N1), (_C, _fol(1))),
    _op("set", 0x22, (_RP, _N1), (_CP, _fol(1))),
    _op("set", 0x23, (_RP, _N1), (_R, _N2)),
    _op("set", 0x24, (_RP, _N1), (_RP, _N2)),
    _op("set", 0x25, (_RP, _N1), (_RPO, _N2 | _ofol(1))),
    _op("set", 0x26, (_RP, _N1), (_S, _N2)),
    _op("set", 0x27, (_RP, _N1), (_SP, _N2)),
    _op("set", 0x28, (_RP, _N1), (_SPO, _N2 | _ofol(1))),
    _op("set", 0x29, (_RPO, _N1 | _ofol(1)), (_C, _fol(2))),
    _op("set", 0x2A, (_RPO, _N1 | _ofol(1)), (_CP, _fol(2))),
    _op("set", 0x2B, (_RPO, _N1 | _ofol(1)), (_R, _N2)),
    _op("set", 0x2C, (_RPO, _N1 | _ofol(1)), (_RP, _N2)),
    _op("set", 0x2D, (_RPO, _N1 | _ofol(1)), (_RPO, _N2 | _ofol(2))),
    _op("set", 0x2E, (_RPO, _N1 | _ofol(1)), (_S, _N2)),
    _op("set", 0x2F, (_RPO, _N1 | _ofol(1)), (_SP, _N2)),
    _op("set", 0x30, (_RPO, _N1 | _ofol(1)), (_SPO, _N2 | _ofol(2))),
    _op("set", 0x31, (_S, _N1), (_C, _fol(1))),
    _op("set", 0x32, (_S, _N1), (_CP, _fol(1))),
    _op("set", 0x33, (_S, _N1), (_R, _N2)),
    _op("set", 0x34, (_S, _N1), (_RP, _N2)),
    _op("set", 0x35, (_S, _N1), (_RPO, _N2 | _ofol(1))),
    _op("set", 0x36, (_S, _N1), (_S, _N2)),
    _op("set", 0x37, (_S, _N1), (_SP, _N2)),
    _op("set", 0x38, (_S, _N1), (_SPO, _N2 | _ofol(1))),
    _op("set", 0x39, (_SP, _N1), (_C, _fol(1))),
    _op("set", 0x3A, (_SP, _N1), (_CP, _fol(1))),
    _op("set", 0x3B, (_SP, _N1), (_R, _N2)),
    _op("set", 0x3C, (_SP, _N1), (_RP, _N2)),
    _op("set", 0x3D, (_SP, _N1), (_RPO, _N2 | _ofol(1))),
    _op("set", 0x3E, (_SP, _N1), (_S, _N2)),
    _op("set", 0x3F, (_SP, _N1), (_SP, _N2)),
    _op("set", 0x40, (_SP, _N1), (_SPO, _N2 | _ofol(1))),
    _op("set", 0x41, (_SPO, _N1 | _ofol(1)), (_C, _fol(2))),
    _op("set", 0x42, (_SPO, _N1 | _ofol(1)), (_CP, _fol(2))),
    _op("set", 0x43, (_SPO, _N1 | _ofol(1)), (_R, _N2)),
    _op("set", 0x44, (_SPO, _N1 | _ofol(1)), (_RP, _N2)),
    _op("set", 0x45, (_SPO, _N1 | _ofol(1)), (_RPO, _N2 | _ofol(2))),
    _op("set", 0x46, (_SPO, _N1 | _ofol(1)), (_S, _N2)),
    _op("set", 0x47, (_SPO, _N1 | _ofol(1)), (_SP, _N2)),
    _op("set", 0x48, (_SPO, _N1 | _ofol(1)), (_SPO, _N2 | _ofol(2))),
    # ALU
    _rr("add", 0x50),
    _rr("sub", 0x51),
    _rr("subtract", 0x51),
    _rr("mul", 0x52),
    _rr("multiply", 0x52),
    _r("increment", 0x53),
    _r("decrement", 0x54),
    _r("negate", 0x55),
    _rr("compare_unsigned", 0x56),
    _rr("compare", 0x57),
    _r("sign", 0x58),
    _rr("and", 0x59),
    _rr("or", 0x5A),
    _rr("xor", 0x5B),
    _rr("not", 0x5C),
    _r("lshift", 0x5D),
    _rr("shift", 0x5D),
    _r("rshift", 0x5E),
    # pushes
    _op("push", 0x60),
    _op("push", 0x61, (_C, _fol(1))),
    _op("push", 0x62, (_CP, _fol(1))),
    _op("push", 0x63, (_R, _N1)),
    _op("push", 0x64, (_RP, _N1)),
    _op("push", 0x65, (_RPO, _N1 | _ofol(1))),
    _op("push", 0x66, (_S, _N1)),
    _op("push", 0x67, (_SP, _N1)),
    _op("push", 0x68, (_SPO, _N1 | _ofol(1))),
    # pops
    _op("pop", 0x69),
    _op("pop", 0x6A, (_C, _fol(1))),
    _op("pop", 0x6B, (_CP, _fol(1))),
    _op("pop", 0x6C, (_R, _N1)),
    _op("pop", 0x6D, (_RP, _N1)),
    _op("pop", 0x6E, (_RPO, _N1 | _ofol(1))),
    _op("pop", 0x6F, (_S, _N1)),
    _op("pop", 0x70, (_SP, _N1)),
    _op("pop", 0x71, (_SPO, _N1 | _ofol(1))),
    # functions
    _op("return", 0x81),
    # I/O pins
    _op("pinmode_input", 0xA0, (_C, _N1)),
    _op("pinmode_output", 0xA1, (_C, _N1)),
    _op("pinmode_input", 0xA2, (_R, _N1)),
    _op("pinmode_output", 0xA3, (_R, _N1)),
    _op("set_pin_low", 0xA4, (_C, _N1)),
    _op("set_pin_high", 0xA5, (_C, _N1)),
    _op("set_pin_low", 0xA6, (_R, _N1)),
    _op("set_pin_high", 0xA7, (_R, _N1)),
    _op("read_pin", 0xA8, (_C, _N1), (_R, _N2)),
    _op("write_pin", 0xA9, (_C, _N1), (_R, _N2)),
    _op("read_pin", 0xAA, (_R, _N1), (_R, _N2)),
    _op("write_pin", 0xAB, (_R, _N1), (_R, _N2)),
    _op("halt_and_catch_fire", 0xFF),
)


def find_instruction(name: str, arg_types: Iterable[int]) -> Instruction | None:
    """Return the first instruction with this name and argument signature, if any."""
    signature = tuple(arg_types)
    return next(
        (instr for instr in INSTRUCTIONS if instr.name == name and instr.arg_types == signature),
        None,
    )