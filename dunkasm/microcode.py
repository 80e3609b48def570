"""Generation of the micro-code and instruction-decoder ROM images."""

from __future__ import annotations

import argparse
import os
import struct
import sys
from collections.abc import Iterator, Sequence
from contextlib import ExitStack
from dataclasses import dataclass

N_REGISTERS = 16
N_SPECIAL_REGS = 5
N_PINS = 16
N_ALU_OPS = 8

BINSIZE = 2 * 64 * 1024
NWORDS = 64 * 1024
DECODER_SIZE = 256

WORD_MASK = 0xFFFF
MIX_IN = 0b0000000010000000

DO_NOTHING = 0x0000
BEGIN_INSTRUCTION = 0x0001

PK_TO_DATA = 0x0002
PK_TO_ADDR = 0x0003
PK_PTR_OUT = 0x0004
PK_PTR_OUT_O = 0x0005
DATA_TO_PK = 0x0006

SP_TO_DATA = 0x1002
SP_TO_ADDR = 0x1003
SP_PTR_TO_DATA = 0x1004
SP_PTR_TO_DATA_O = 0x1005
DATA_TO_SP = 0x1006

TMPA_TO_DATA = 0x2002
TMPA_TO_ADDR = 0x2003
TMPA_PTR_TO_DATA = 0x2004
TMPA_PTR_TO_DATA_O = 0x2005
DATA_TO_TMPA = 0x2006

TMPB_TO_DATA = 0x3002
TMPB_TO_ADDR = 0x3003
TMPB_PTR_TO_DATA = 0x3004
TMPB_PTR_TO_DATA_O = 0x3005
DATA_TO_TMPB = 0x3006

OFFS_TO_DATA = 0x4002
OFFS_TO_ADDR = 0x4003
OFFS_PTR_TO_DATA = 0x4004
OFFS_PTR_TO_DATA_O = 0x4005
DATA_TO_OFFS = 0x4006

INCREMENT_PK = 0x0010
PK_PTR_OUT_INC = 0x0011
TMPA_TO_PK = 0x0012
TMPB_TO_PK = 0x0013
TMPA_TO_PK_IF_Z = 0x0014
TMPA_TO_PK_IF_NZ = 0x0015
TMPA_TO_PK_IF_N = 0x0016
TMPA_TO_PK_IF_NN = 0x0017
TMPA_TO_PK_IF_P = 0x0018
TMPA_TO_PK_IF_NP = 0x0019

INCREMENT_SP = 0x1010
DECREMENT_SP = 0x1011

WRITE_RAM = 0x0025
WRITE_RAM_O = 0x0026
READ_RAM = 0x0027
READ_RAM_O = 0x0028

HOLD_DATA = 0x0050
HOLD_ADDR = 0x0051
HOLD_ADDR_DATA = 0x0052
HOLD_DATA_ADDR = 0x0053

DONE = 0xFFFE
RESET = 0xFFFF

ROM_FILE_NAMES = ("main_rom_1", "main_rom_2", "decoder_rom")


def _mixed(word: int) -> int:
    return (word | MIX_IN) & WORD_MASK


def sreg_to_data(n: int) -> int:
    """Special register n onto the data bus."""
    return _mixed(0x0002 + 0x1000 * n)


def sreg_to_addr(n: int) -> int:
    """Special register n onto the address bus."""
    return _mixed(0x0003 + 0x1000 * n)


def sreg_ptr_to_data(n: int) -> int:
    """Memory at special register n onto the data bus."""
    return _mixed(0x0004 + 0x1000 * n)


def sreg_ptr_to_data_offset(n: int) -> int:
    """Memory at special register n plus the offset onto the data bus."""
    return _mixed(0x0005 + 0x1000 * n)


def data_to_sreg(n: int) -> int:
    """Data bus into special register n."""
    return _mixed(0x0006 + 0x1000 * n)


def reg_to_data(n: int) -> int:
    """Register n onto the data bus."""
    return _mixed(0x0020 + 0x1000 * n)


def reg_to_addr(n: int) -> int:
    """Register n onto the address bus."""
    return _mixed(0x0021 + 0x0100 * n)


def reg_ptr_to_data(n: int) -> int:
    """Memory at register n onto the data bus."""
    return _mixed(0x0022 + 0x0100 * n)


def reg_ptr_to_data_offset(n: int) -> int:
    """Memory at register n plus the offset onto the data bus."""
    return _mixed(0x0023 + 0x0100 * n)


def data_to_reg(n: int) -> int:
    """Data bus into register n."""
    return _mixed(0x0024 + 0x1000 * n)


def pin_mode_in(n: int) -> int:
    """Make pin n an input."""
    return _mixed(0x0030 + 0x1000 * n)


def pin_mode_out(n: int) -> int:
    """Make pin n an output."""
    return _mixed(0x0031 + 0x1000 * n)


def set_pin_low(n: int) -> int:
    """Drive pin n low."""
    return _mixed(0x0032 + 0x1000 * n)


def set_pin_high(n: int) -> int:
    """Drive pin n high."""
    return _mixed(0x0033 + 0x1000 * n)


def pin_to_data(n: int) -> int:
    """Pin n onto the data bus."""
    return _mixed(0x0034 + 0x1000 * n)


def data_to_pin(n: int) -> int:
    """Data bus onto pin n."""
    return _mixed(0x0035 + 0x1000 * n)


def alu_op(x: int, y: int, op: int) -> int:
    """ALU operation op on the registers selected by nibbles x and y."""
    return _mixed(0x0040 + 0x1000 * x + 0x0100 * y + op)


Step = "int | tuple[int, int]"


def _sequences() -> Iterator[tuple[int, list]]:
    """Yield (opcode, steps) in ROM order; DONE is appended to each by the caller."""
    inc = PK_PTR_OUT_INC
    r1, r2 = 1, 2

    yield 0x00, [DO_NOTHING]
    yield 0x01, [PK_PTR_OUT, DATA_TO_PK]

    conditions = (
        TMPA_TO_PK_IF_Z,
        TMPA_TO_PK_IF_NZ,
        TMPA_TO_PK_IF_N,
        TMPA_TO_PK_IF_NN,
        TMPA_TO_PK_IF_P,
        TMPA_TO_PK_IF_NP,
    )
    for opcode, jump in enumerate(conditions, start=0x02):
        yield opcode, [inc, (DATA_TO_TMPA, reg_to_data(r1)), jump]

    yield 0x10, [inc, (DATA_TO_TMPA, inc), (DATA_TO_TMPB, TMPA_TO_ADDR),
                 (TMPB_TO_DATA, HOLD_ADDR), WRITE_RAM]
    yield 0x11, [inc, (DATA_TO_TMPA, inc), (DATA_TO_TMPB, HOLD_DATA_ADDR), READ_RAM]
    yield 0x12, [inc, (HOLD_DATA_ADDR, reg_to_data(r1)), WRITE_RAM]
    yield 0x13, [inc, (DATA_TO_TMPA, reg_ptr_to_data(r1)), DATA_TO_TMPB,
                 (TMPA_TO_ADDR, TMPB_TO_DATA), WRITE_RAM]
    yield 0x14, [inc, (DATA_TO_TMPA, PK_PTR_OUT), DATA_TO_OFFS,
                 reg_ptr_to_data_offset(r1), (HOLD_DATA, TMPA_TO_ADDR), WRITE_RAM]
    yield 0x15, [inc, (HOLD_DATA_ADDR, sreg_to_data(r1)), WRITE_RAM]
    yield 0x16, [inc, (DATA_TO_TMPA, sreg_ptr_to_data(r1)), DATA_TO_TMPB,
                 (TMPA_TO_ADDR, TMPB_TO_DATA), WRITE_RAM]
    yield 0x17, [inc, (DATA_TO_TMPA, inc), DATA_TO_OFFS,
                 sreg_ptr_to_data_offset(r1), (HOLD_DATA, TMPA_TO_ADDR), WRITE_RAM]

    yield 0x18, [inc, data_to_reg(r1)]
    yield 0x19, [inc, (HOLD_DATA_ADDR, READ_RAM), data_to_reg(r1)]
    yield 0x1A, [reg_to_data(r2), data_to_reg(r1)]
    yield 0x1B, [reg_ptr_to_data(r2), data_to_reg(r1)]
    yield 0x1C, [inc, DATA_TO_OFFS, reg_ptr_to_data_offset(r2), data_to_reg(r1)]
    yield 0x1E, [sreg_to_data(r2), data_to_reg(r1)]
    yield 0x1F, [sreg_ptr_to_data(r2), data_to_reg(r1)]
    yield 0x20, [inc, DATA_TO_OFFS, sreg_ptr_to_data_offset(r2), data_to_reg(r1)]

    yield 0x21, [inc, (HOLD_DATA, reg_to_addr(r1)), WRITE_RAM]
    yield 0x22, [inc, (HOLD_DATA_ADDR, READ_RAM), (HOLD_DATA, reg_to_addr(r1)), WRITE_RAM]
    yield 0x23, [(reg_to_addr(r1), reg_to_data(r2)), WRITE_RAM]
    yield 0x24, [reg_ptr_to_data(r2), (HOLD_DATA, reg_to_addr(r1)), WRITE_RAM]
    yield 0x25, [inc, DATA_TO_OFFS, reg_ptr_to_data_offset(r2),
                 (HOLD_DATA, reg_to_addr(r1)), WRITE_RAM]
    yield 0x26, [(reg_to_addr(r1), sreg_to_data(r2)), WRITE_RAM]
    yield 0x27, [sreg_ptr_to_data(r2), (HOLD_DATA, reg_to_addr(r1)), WRITE_RAM]
    yield 0x28, [inc, DATA_TO_OFFS, sreg_ptr_to_data_offset(r2),
                 (HOLD_DATA, reg_to_addr(r1)), WRITE_RAM]

    yield 0x29, [inc, (DATA_TO_OFFS, inc), DATA_TO_TMPA, (reg_to_addr(r1), HOLD_ADDR),
                 (TMPA_TO_DATA, HOLD_ADDR), WRITE_RAM_O]
    yield 0x2A, [inc, (DATA_TO_OFFS, inc), (HOLD_DATA_ADDR, READ_RAM),
                 (HOLD_DATA, reg_to_addr(r1)), WRITE_RAM_O]
    yield 0x2B, [inc, DATA_TO_OFFS, (reg_to_data(r2), reg_to_addr(r1)), WRITE_RAM_O]
    yield 0x2C, [inc, (DATA_TO_OFFS, reg_ptr_to_data(r2)),
                 (HOLD_DATA, reg_to_addr(r1)), WRITE_RAM_O]
    yield 0x2D, [inc, DATA_TO_OFFS, reg_ptr_to_data_offset(r2), (DATA_TO_TMPA, inc),
                 DATA_TO_OFFS, (TMPA_TO_DATA, reg_to_addr(r1)), WRITE_RAM_O]
    yield 0x2E, [inc, DATA_TO_OFFS, (sreg_to_data(r2), reg_to_addr(r1)), WRITE_RAM_O]
    yield 0x2F, [inc, (DATA_TO_OFFS, sreg_ptr_to_data(r2)),
                 (HOLD_DATA, reg_to_addr(r1)), WRITE_RAM_O]
    yield 0x30, [inc, (DATA_TO_TMPA, inc), DATA_TO_OFFS, sreg_ptr_to_data_offset(r2),
                 (DATA_TO_TMPB, TMPA_TO_DATA), DATA_TO_OFFS,
                 (TMPB_TO_DATA, reg_to_addr(r1)), WRITE_RAM_O]

    yield 0x31, [inc, data_to_sreg(r1)]
    yield 0x32, [inc, (HOLD_DATA_ADDR, READ_RAM), data_to_sreg(r1)]
    yield 0x33, [reg_to_data(r2), data_to_sreg(r1)]
    yield 0x34, [reg_to_addr(r2), READ_RAM, data_to_sreg(r1)]
    yield 0x35, [inc, (DATA_TO_OFFS, reg_to_addr(r2)), READ_RAM_O, data_to_sreg(r1)]
    yield 0x36, [sreg_to_data(r2), data_to_sreg(r1)]
    yield 0x37, [sreg_to_addr(r2), READ_RAM, data_to_sreg(r1)]
    yield 0x38, [inc, (DATA_TO_OFFS, sreg_to_addr(r2)), READ_RAM_O, data_to_sreg(r1)]

    yield 0x39, [inc, (HOLD_DATA, sreg_to_addr(r1)), WRITE_RAM]
    yield 0x3A, [inc, (HOLD_DATA_ADDR, READ_RAM), (HOLD_DATA, sreg_to_addr(r1)), WRITE_RAM]
    yield 0x3B, [(reg_to_data(r2), sreg_to_addr(r1)), WRITE_RAM]
    yield 0x3C, [reg_ptr_to_data(r2), (HOLD_DATA, sreg_to_addr(r1)), WRITE_RAM]
    yield 0x3D, [inc, DATA_TO_OFFS, reg_ptr_to_data_offset(r2),
                 (HOLD_DATA, sreg_to_addr(r1)), WRITE_RAM]
    yield 0x3E, [(sreg_to_data(r2), sreg_to_addr(r1)), WRITE_RAM]
    yield 0x3F, [sreg_ptr_to_data(r2), (HOLD_DATA, sreg_to_addr(r1)), WRITE_RAM]
    yield 0x40, [inc, DATA_TO_OFFS, sreg_ptr_to_data_offset(r2),
                 (HOLD_DATA, sreg_to_addr(r1)), WRITE_RAM]

    yield 0x41, [inc, DATA_TO_OFFS, inc, (HOLD_DATA, sreg_to_addr(r1)), WRITE_RAM_O]
    yield 0x42, [inc, DATA_TO_OFFS, inc, (HOLD_DATA_ADDR, READ_RAM),
                 (HOLD_DATA, sreg_to_addr(r1)), WRITE_RAM_O]
    yield 0x43, [inc, DATA_TO_OFFS, (reg_to_data(r2), sreg_to_addr(r1)), WRITE_RAM_O]
    yield 0x44, [inc, (DATA_TO_OFFS, reg_ptr_to_data(r2)),
                 (HOLD_DATA, sreg_to_addr(r1)), WRITE_RAM_O]
    yield 0x45, [inc, (DATA_TO_TMPA, inc), (DATA_TO_OFFS, reg_ptr_to_data_offset(r2)),
                 (DATA_TO_TMPB, TMPA_TO_DATA), DATA_TO_OFFS,
                 (TMPB_TO_DATA, sreg_to_addr(r1)), WRITE_RAM_O]
    yield 0x46, [inc, DATA_TO_OFFS, (sreg_to_data(r2), sreg_to_addr(r1)), WRITE_RAM_O]
    yield 0x47, [inc, (DATA_TO_OFFS, sreg_ptr_to_data(r2)),
                 (HOLD_DATA, sreg_to_addr(r1)), WRITE_RAM_O]
    yield 0x48, [inc, (DATA_TO_TMPA, inc), DATA_TO_OFFS, sreg_ptr_to_data_offset(r2),
                 (DATA_TO_TMPB, TMPA_TO_DATA), DATA_TO_OFFS,
                 (TMPB_TO_DATA, sreg_to_addr(r1)), WRITE_RAM_O]

    for n in range(16):
        yield 0x50 + n, [alu_op(r1, r2, n), data_to_reg(r1)]

    # pushes
    yield 0x60, [DECREMENT_SP]
    yield 0x61, [(inc, DECREMENT_SP), (HOLD_DATA, SP_TO_ADDR), WRITE_RAM]
    yield 0x62, [inc, (HOLD_DATA, SP_TO_ADDR), (WRITE_RAM, DECREMENT_SP)]
    yield 0x63, [(SP_TO_ADDR, reg_to_data(r1)), (WRITE_RAM, DECREMENT_SP)]
    yield 0x64, [reg_ptr_to_data(r1), (HOLD_DATA, SP_TO_ADDR), (WRITE_RAM, DECREMENT_SP)]
    yield 0x65, [inc, (DATA_TO_OFFS, reg_ptr_to_data(r1)), (HOLD_DATA, SP_TO_ADDR),
                 (WRITE_RAM_O, DECREMENT_SP)]
    yield 0x66, [(SP_TO_ADDR, sreg_to_data(r1)), (WRITE_RAM, DECREMENT_SP)]
    yield 0x67, [sreg_ptr_to_data(r1), (HOLD_DATA, SP_TO_ADDR), (WRITE_RAM, DECREMENT_SP)]
    yield 0x68, [inc, (DATA_TO_OFFS, sreg_to_data(r1)), (HOLD_DATA, SP_TO_ADDR),
                 (WRITE_RAM_O, DECREMENT_SP)]

    # pops
    yield 0x69, [INCREMENT_SP]
    yield 0x6A, [inc, (DATA_TO_TMPA, SP_PTR_TO_DATA), (HOLD_DATA, TMPA_TO_ADDR),
                 (WRITE_RAM, INCREMENT_SP)]
    yield 0x6B, [SP_PTR_TO_DATA, (data_to_reg(r1), INCREMENT_SP)]
    yield 0x6C, [SP_PTR_TO_DATA, (HOLD_DATA, reg_to_addr(r1)), (WRITE_RAM, INCREMENT_SP)]
    yield 0x6D, [inc, (DATA_TO_OFFS, SP_PTR_TO_DATA), (HOLD_DATA, reg_to_addr(r1)),
                 (WRITE_RAM_O, INCREMENT_SP)]
    yield 0x6E, [SP_PTR_TO_DATA, (data_to_sreg(r1), INCREMENT_SP)]
    yield 0x6F, [SP_PTR_TO_DATA, (HOLD_DATA, sreg_to_addr(r1)), (WRITE_RAM, INCREMENT_SP)]
    yield 0x70, [inc, (DATA_TO_OFFS, SP_PTR_TO_DATA), (HOLD_DATA, sreg_to_addr(r1)),
                 (WRITE_RAM_O, INCREMENT_SP)]

    # functions
    yield 0x80, [(inc, DECREMENT_SP), (DATA_TO_TMPA, PK_TO_DATA), (HOLD_DATA, SP_TO_ADDR),
                 (WRITE_RAM, TMPA_TO_PK)]
    yield 0x81, [SP_PTR_TO_DATA, (DATA_TO_PK, INCREMENT_SP)]

    # I/O pins
    yield 0xA0, [pin_mode_in(r1)]
    yield 0xA1, [pin_mode_out(r1)]
    yield 0xA2, [pin_mode_in(r1)]
    yield 0xA3, [pin_mode_out(r1)]
    yield 0xA4, [set_pin_low(r1)]
    yield 0xA5, [set_pin_high(r1)]
    yield 0xA6, [set_pin_low(r1)]
    yield 0xA7, [set_pin_high(r1)]
    yield 0xA8, [pin_to_data(r1), data_to_reg(r2)]
    yield 0xA9, [reg_to_data(r2), data_to_pin(r1)]
    yield 0xAA, [pin_to_data(r2), data_to_reg(r1)]
    yield 0xAB, [reg_to_data(r2), data_to_pin(r1)]


def _pack(words: Sequence[int]) -> bytes:
    return struct.pack(f"<{len(words)}H", *words)


@dataclass(frozen=True)
class MicrocodeRoms:
    """The two parallel micro-code ROMs and the opcode-to-address decoder ROM."""

    main_rom_1: tuple[int, ...]
    main_rom_2: tuple[int, ...]
    decoder: tuple[int, ...]

    def main_rom_1_bytes(self) -> bytes:
        """The first micro-code ROM as little-endian 16-bit words."""
        return _pack(self.main_rom_1)

    def main_rom_2_bytes(self) -> bytes:
        """The second micro-code ROM as little-endian 16-bit words."""
        return _pack(self.main_rom_2)

    def decoder_rom_bytes(self) -> bytes:
        """The decoder ROM, all 256 entries, as little-endian 16-bit words."""
        return _pack(self.decoder)


def generate_roms() -> MicrocodeRoms:
    """Build the micro-code sequences for every opcode."""
    rom1: list[int] = []
    rom2: list[int] = []
    decoder = [0] * DECODER_SIZE

    def append(step: int | tuple[int, int]) -> None:
        first, second = step if isinstance(step, tuple) else (step, 0)
        rom1.append(first & WORD_MASK)
        rom2.append(second & WORD_MASK)

    # Fetch and decode the next instruction; every sequence returns here.
    append(PK_PTR_OUT_INC)
    append(BEGIN_INSTRUCTION)

    for opcode, steps in _sequences():
        decoder[opcode] = len(rom1) & WORD_MASK
        for step in steps:
            append(step)
        append(DONE)

    return MicrocodeRoms(tuple(rom1), tuple(rom2), tuple(decoder))


def write_roms(roms: MicrocodeRoms, directory: str | os.PathLike[str] = "roms") -> None:
    """Write the three ROM images into directory, which must already exist."""
    paths = [os.path.join(directory, name) for name in ROM_FILE_NAMES]
    images = (roms.main_rom_1_bytes(), roms.main_rom_2_bytes(), roms.decoder_rom_bytes())
    with ExitStack() as stack:
        handles = [stack.enter_context(open(path, "wb")) for path in paths]
        for handle, image in zip(handles, images):
            handle.write(image)


def main(argv: Sequence[str] | None = None) -> int:
    """Generate the ROM images and write them; return the exit status."""
    parser = argparse.ArgumentParser(description="Generate micro-code ROM images.")
    parser.add_argument("directory", nargs="?", default="roms",
                        help="directory to write the ROM files into (default: roms)")
    args = parser.parse_args(sys.argv[1:] if argv is None else list(argv))
    try:
        write_roms(generate_roms(), args.directory)
    except OSError as exc:
        print(f"Error opening ROM file: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())