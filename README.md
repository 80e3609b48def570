# dunkasm

Tools for the Dunk 16-bit CPU:

- `dunkasm`, an assembler that turns Dunk assembly source into a flat
  binary of little-endian 16-bit words, and
- `dunkprog`, which generates the CPU's microcode ROM images
  (`main_rom_1`, `main_rom_2` and `decoder_rom`).

## Installation

```
pip install .
```

## Assembling programs

```
dunkasm program.dasm -o program.bin
```

You can give several input files. They are assembled one after another into
a single image, and labels may be referenced across files. Without `-o` the
output is written next to the first input as `<first input>-assembled`.
While assembling, each processed line and its tokens are echoed to standard
output.

### Source syntax

Each line holds one instruction followed by its arguments, separated by
spaces, tabs or commas. Everything from a token starting with `%` to the end
of the line is a comment.

```
% count down from ten
set r1, 10
loop:
    decrement r1
    goto_if_nonzero r1 loop
halt_and_catch_fire
```

Tokenizing rules worth knowing:

- a token is only kept when it is at least two characters long, so write a
  one-digit constant as e.g. `0x5` or `05`;
- a token is only complete once a delimiter follows it, so end the last line
  of a file with a newline;
- text in double quotes is kept as one token, quotes included.

Arguments can be:

- constants: decimal (`42`, `-3`), hexadecimal (`0x2a`), binary (`0b101010`)
  or characters (`'a'`, `'\n'`);
- registers `rN` and special registers `srN`;
- pointers through any of these: `*0x100`, `*r2`, `*sr1`;
- pointers with a constant offset: `*(r2+4)`, `*(sr1-1)`.

Labels are defined on a line of their own with a trailing colon (`loop:`)
and used by `goto`, `call` and the conditional jumps `goto_if_zero`,
`goto_if_nonzero`, `goto_if_negative`, `goto_if_nonnegative`,
`goto_if_positive` and `goto_if_nonpositive`, which take a register and a
label. Each jump takes two words; the second is filled with the label's
address once all files have been assembled.

### Aliases

`alias name replacement` makes `name` stand for `replacement` for the rest of
the file; `dealias name …` removes aliases again. Aliases defined in one file
do not carry over to the next. These are always available:

| alias                          | means        |
|--------------------------------|--------------|
| `pk`                           | `sr0`        |
| `sp`                           | `sr1`        |
| `argument`, `result`           | `*(sr1+1)`   |
| `argument0` … `argument8`      | `*(sr1+N)`   |

Errors such as undefined labels, unknown instructions or arguments that do
not fit any form of an instruction are reported with the line they occur on,
and the assembler exits with a non-zero status.

## Using the assembler from Python

```python
from dunkasm.assembler import Assembler

asm = Assembler()
asm.process_source("set r1, 10\nincrement r1\n", "example.dasm")
image = asm.finish()
```

`Assembler.process_file` reads a file from disk instead, and
`AssemblyError` (from `dunkasm.assembler`) is raised for anything the
assembler rejects. Pass a text stream as `Assembler(echo=...)` to have each
line traced to it.

Lower-level pieces are available too:

- `dunkasm.tokenizer`: `tokenize_string`, `tokenize_line`, `tokenize_text`,
  `tokenize_file` and the `Line` record;
- `dunkasm.params`: `parse_parameter`, which classifies an operand into a
  `Parameter` (raising `ValueError` for invalid ones), plus `is_number`,
  `parse_number`, `is_char` and `parse_char`;
- `dunkasm.aliases`: `AliasTable` and `default_aliases()`;
- `dunkasm.instructions`: the `INSTRUCTIONS` table, `find_instruction` and
  `Instruction.encode`.

## Generating the microcode ROMs

```
dunkprog [directory]
```

This writes `main_rom_1`, `main_rom_2` and `decoder_rom` as binary images of
little-endian 16-bit words into `directory` (default `roms`), which must
already exist. From Python, `dunkasm.microcode.generate_roms()` returns a
`MicrocodeRoms` object whose `main_rom_1_bytes()`, `main_rom_2_bytes()` and
`decoder_rom_bytes()` give the images, and `write_roms()` saves them to a
directory.

## What is not included

The package assembles programs and builds ROM images; it does not simulate
the CPU or run the assembled programs.

## Running the tests

```
pip install .[test]
pytest
```