"""Assembling tokenized source into a binary image of 16-bit words."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from itertools import takewhile
from typing import TextIO

from .aliases import AliasTable
from .instructions import FUNCTION_CALL, GOTO_CODES, PLAIN_GOTO, find_instruction
from .params import MAX_BIN_SIZE, MAX_PARAMS, WORD_MASK, parse_parameter
from .tokenizer import Line, tokenize_file, tokenize_text

MAX_LABEL_LENGTH = 64
MAX_LABELS = 1024
MAX_LABEL_REFS = 1024
MAX_WORDS = MAX_BIN_SIZE // 2

_COMMENT = "%"


class AssemblyError(Exception):
    """A problem in the assembly source."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number


@dataclass(frozen=True)
class LabelRef:
    """A jump whose target address is filled in once every label is known."""

    label: str
    position: int
    line_number: int
    fname: str


def encode_goto(line: Line, aliases: Mapping[str, str] | None = None) -> int:
    """Return the instruction word for a goto, call or conditional goto line."""
    name = line.tokens[0]
    number = line.line_number
    if name == "goto":
        return PLAIN_GOTO
    if name == "call":
        return FUNCTION_CALL
    if not name.startswith("goto_if_"):
        raise AssemblyError(f'nonsense ``goto"-type statement ``{name}" on line {number}.', number)
    code = GOTO_CODES.get(name)
    if code is None:
        raise AssemblyError(
            f'invalid ``goto" code statement ``{name}" on line {number}.', number
        )
    if len(line.tokens) < 3:
        raise AssemblyError(f'too few arguments for ``{name}" on line {number}.', number)
    try:
        value = parse_parameter(line.tokens[1], aliases).value
    except ValueError:
        value = 0
    return (code + 0x1000 * value) & WORD_MASK


class Assembler:
    """Collects the words of one program, its labels and the jumps that use them."""

    def __init__(self, echo: TextIO | None = None) -> None:
        self.words: list[int] = []
        self.labels: dict[str, int] = {}
        self.label_refs: list[LabelRef] = []
        self.aliases = AliasTable()
        self._echo = echo
        self._label_count = 0

    @property
    def position(self) -> int:
        """Index of the next word to be written."""
        return len(self.words)

    def _emit(self, words: Iterable[int], line_number: int) -> None:
        words = [word & WORD_MASK for word in words]
        if len(self.words) + len(words) > MAX_WORDS:
            raise AssemblyError(
                f"program exceeds {MAX_WORDS} words on line {line_number}.", line_number
            )
        self.words.extend(words)

    def _trace(self, line: Line) -> None:
        if self._echo is None:
            return
        listed = ", ".join(f'``{token}"' for token in line.tokens)
        self._echo.write(
            f'Processing line {line.line_number}, "{line.raw_line}", which has '
            f"{line.token_count} tokens, which are\n    {listed}\n"
        )

    def process_line(self, line: Line, fname: str = "<input>") -> None:
        """Assemble one tokenized line."""
        if not line.tokens:
            return
        self._trace(line)
        head = line.tokens[0]
        number = line.line_number

        if head == "alias":
            if line.token_count != 3:
                raise AssemblyError(
                    f"syntax error defining alias on line {number}; "
                    "usage is alias [replacee] [replacer].",
                    number,
                )
            try:
                self.aliases.define(line.tokens[1], line.tokens[2])
            except ValueError as exc:
                raise AssemblyError(f"{exc} (line {number}).", number) from exc
        elif head == "dealias":
            for name in line.tokens[1:]:
                self.aliases.remove(name)
        elif line.token_count == 1 and head.endswith(":"):
            self._define_label(head[:-1], number)
        elif head.startswith("goto") or head == "call":
            self._assemble_jump(line, fname)
        else:
            self._assemble_instruction(line, fname)

    def _define_label(self, name: str, number: int) -> None:
        if self._label_count >= MAX_LABELS:
            raise AssemblyError(f"too many labels on line {number}.", number)
        self._label_count += 1
        self.labels.setdefault(name, self.position)

    def _assemble_jump(self, line: Line, fname: str) -> None:
        number = line.line_number
        code = encode_goto(line, self.aliases)
        target = 1 if code in (PLAIN_GOTO, FUNCTION_CALL) else 2
        if line.token_count <= target:
            raise AssemblyError(
                f'missing label for ``{line.tokens[0]}" on line {number}.', number
            )
        if len(self.label_refs) >= MAX_LABEL_REFS:
            raise AssemblyError(f"too many label references on line {number}.", number)
        self.label_refs.append(LabelRef(line.tokens[target], self.position, number, fname))
        self._emit((code, 0), number)

    def _assemble_instruction(self, line: Line, fname: str) -> None:
        number = line.line_number
        tokens = list(line.tokens)
        for replacee, replacer in self.aliases.entries:
            tokens = [replacer if token == replacee else token for token in tokens]

        name, args = tokens[0], tokens[1:]
        if len(args) >= MAX_PARAMS:
            raise AssemblyError(f'too many arguments on ``{fname}", line {number}.', number)

        params = []
        for arg in args:
            try:
                params.append(parse_parameter(arg, self.aliases))
            except ValueError as exc:
                raise AssemblyError(
                    f'invalid argument ``{arg}" for instruction ``{name}" on line {number}.',
                    number,
                ) from exc

        instruction = find_instruction(name, (param.kind for param in params))
        if instruction is None:
            signature = ", ".join(str(param.kind) for param in params)
            raise AssemblyError(
                f'no instruction ``{name}" with the matching type signature '
                f"({signature}) on line {number}.",
                number,
            )
        self._emit(instruction.encode(params), number)

    def _process_lines(self, lines: Sequence[Line], fname: str) -> None:
        try:
            for line in lines:
                tokens = tuple(takewhile(lambda token: not token.startswith(_COMMENT), line.tokens))
                self.process_line(replace(line, tokens=tokens), fname)
        finally:
            # Aliases declared in one file never carry over to the next.
            self.aliases.reset()

    def process_source(self, text: str, fname: str = "<input>") -> None:
        """Assemble a whole source text; comments start at a token beginning with %."""
        self._process_lines(tokenize_text(text), fname)

    def process_file(self, path: str | os.PathLike[str]) -> None:
        """Assemble one source file."""
        self._process_lines(tokenize_file(path), os.fspath(path))

    def insert_label_addresses(self) -> None:
        """Write the address of each referenced label after its jump instruction."""
        for ref in self.label_refs:
            address = self.labels.get(ref.label)
            if address is None:
                raise AssemblyError(
                    f"label ``{ref.label}'', referenced on line {ref.line_number}, "
                    "was never defined.",
                    ref.line_number,
                )
            self.words[ref.position + 1] = address

    def finish(self) -> bytes:
        """Resolve labels and return the program as little-endian 16-bit words."""
        self.insert_label_addresses()
        return b"".join(word.to_bytes(2, "little") for word in self.words)


def _parse_arguments(args: Sequence[str]) -> tuple[list[str], str | None]:
    inputs: list[str] = []
    output: str | None = None
    remaining = iter(args)
    for arg in remaining:
        if arg == "-o":
            output = next(remaining, None)
            if output is None:
                raise AssemblyError("-o needs an output file.")
        else:
            inputs.append(arg)
    return inputs, output


def main(argv: Sequence[str] | None = None) -> int:
    """Assemble the given files into one binary; return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Usage: dunkasm <input file(s)> [-o <output file>]", file=sys.stderr)
        return 1
    try:
        inputs, output = _parse_arguments(args)
    except AssemblyError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if not inputs:
        print("Error: No input files specified.", file=sys.stderr)
        return 1
    output_path = output if output is not None else f"{inputs[0]}-assembled"

    assembler = Assembler(echo=sys.stdout)
    try:
        for path in inputs:
            assembler.process_file(path)
        image = assembler.finish()
    except AssemblyError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error opening input file: {exc}", file=sys.stderr)
        return 1

    try:
        with open(output_path, "wb") as handle:
            handle.write(image)
    except OSError as exc:
        print(f"Error opening output file: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())