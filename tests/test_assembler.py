import io
import struct

import pytest

from dunkasm.assembler import AssemblyError, Assembler, LabelRef, encode_goto, main
from dunkasm.instructions import (
    FUNCTION_CALL,
    GOTO_C_NONZERO,
    GOTO_C_ZERO,
    PLAIN_GOTO,
    find_instruction,
)
from dunkasm.params import CONSTANT, REGISTER, S_REGISTER, Parameter
from dunkasm.tokenizer import Line, tokenize_line


def _encode(name, *params):
    return find_instruction(name, [p.kind for p in params]).encode(params)


def _assemble(text):
    assembler = Assembler()
    assembler.process_source(text)
    return assembler


def test_encode_plain_goto_and_call():
    assert encode_goto(tokenize_line("goto there\n", 1)) == PLAIN_GOTO
    assert encode_goto(tokenize_line("call there\n", 1)) == FUNCTION_CALL


def test_encode_conditional_goto_places_register():
    code = encode_goto(tokenize_line("goto_if_zero r3, there\n", 1))
    assert code & 0xFF == GOTO_C_ZERO
    assert code >> 12 == 3


@pytest.mark.parametrize(
    "text",
    ["goto_if_bogus r1, there\n", "goto_if_zero r1\n", "gotox there\n"],
)
def test_encode_goto_errors(text):
    with pytest.raises(AssemblyError):
        encode_goto(tokenize_line(text, 4))


def test_register_to_register_set():
    assembler = _assemble("set r1, r2\n")
    assert assembler.words == _encode("set", Parameter(REGISTER, 1), Parameter(REGISTER, 2))


def test_constant_follows_instruction():
    assembler = _assemble("set r1, 0x10\n")
    assert assembler.words == _encode("set", Parameter(REGISTER, 1), Parameter(CONSTANT, 0x10))


def test_process_line_directly():
    assembler = Assembler()
    assembler.process_line(Line(1, "chill\n", ("chill",)))
    assembler.process_line(Line(2, "\n", ()))
    assert assembler.words == _encode("chill")


def test_backward_label():
    assembler = _assemble("chill\nloop:\nchill\ngoto loop\n")
    data = assembler.finish()
    assert assembler.words[2] == PLAIN_GOTO
    assert assembler.words[3] == assembler.labels["loop"]
    assert struct.unpack(f"<{len(assembler.words)}H", data) == tuple(assembler.words)


def test_forward_label_and_reference_record():
    assembler = _assemble("goto end\nchill\nend:\n")
    assert assembler.label_refs == [LabelRef("end", 0, 1, "<input>")]
    assembler.insert_label_addresses()
    assert assembler.words[1] == assembler.labels["end"]
    assert assembler.labels["end"] == assembler.position


def test_call_and_return():
    assembler = _assemble("call func\nfunc:\nreturn\n")
    assembler.insert_label_addresses()
    assert assembler.words[0] == FUNCTION_CALL
    assert assembler.words[1] == assembler.labels["func"]
    assert assembler.words[2:] == _encode("return")


def test_conditional_goto_uses_third_token_as_label():
    assembler = _assemble("goto_if_nonzero r2, done\ndone:\n")
    assert assembler.label_refs[0].label == "done"
    assert assembler.words[0] & 0xFF == GOTO_C_NONZERO


def test_undefined_label():
    assembler = _assemble("goto nowhere\n")
    with pytest.raises(AssemblyError) as info:
        assembler.finish()
    assert info.value.line_number == 1


def test_user_alias_and_reset():
    assembler = _assemble("alias counter r4\nincrement counter\n")
    assert assembler.words == _encode("increment", Parameter(REGISTER, 4))
    assert assembler.aliases.lookup("counter") is None
    with pytest.raises(AssemblyError):
        assembler.process_source("increment counter\n")


def test_default_alias():
    assembler = _assemble("push sp\n")
    assert assembler.words == _encode("push", Parameter(S_REGISTER, 1))


def test_alias_needs_two_arguments():
    with pytest.raises(AssemblyError):
        _assemble("alias counter\n")


def test_dealias():
    with pytest.raises(AssemblyError):
        _assemble("alias counter r4\ndealias counter\nincrement counter\n")


def test_comments_are_ignored():
    assert _assemble("push r3 %comment here\n").words == _assemble("push r3\n").words


@pytest.mark.parametrize(
    "text",
    ["set r1, r2, r3\n", "push r1x\n", "add r1, 0x10\n", "goto\n"],
)
def test_bad_instructions(text):
    with pytest.raises(AssemblyError):
        _assemble(text)


def test_error_reports_line_number():
    with pytest.raises(AssemblyError) as info:
        _assemble("chill\nfrobnicate r1\n")
    assert info.value.line_number == 2


def test_echo_output():
    echo = io.StringIO()
    assembler = Assembler(echo=echo)
    assembler.process_source("push r3\n")
    assert echo.getvalue().startswith('Processing line 1, "push r3\n", which has 2 tokens')


def test_main_writes_output(tmp_path):
    source = tmp_path / "prog.dasm"
    source.write_text("loop:\nset r1, 0x10\ngoto loop\n")
    output = tmp_path / "prog.bin"
    assert main([str(source), "-o", str(output)]) == 0
    expected = _assemble(source.read_text()).finish()
    assert output.read_bytes() == expected


def test_main_default_output_path(tmp_path):
    source = tmp_path / "prog.dasm"
    source.write_text("push r3\n")
    assert main([str(source)]) == 0
    assert (tmp_path / "prog.dasm-assembled").read_bytes() == _assemble("push r3\n").finish()


def test_main_labels_span_files(tmp_path):
    first = tmp_path / "a.dasm"
    first.write_text("start:\nchill\n")
    second = tmp_path / "b.dasm"
    second.write_text("goto start\n")
    output = tmp_path / "out.bin"
    assert main([str(first), str(second), "-o", str(output)]) == 0
    assert output.read_bytes() == _assemble("start:\nchill\ngoto start\n").finish()


def test_main_aliases_do_not_span_files(tmp_path, capsys):
    first = tmp_path / "a.dasm"
    first.write_text("alias counter r4\n")
    second = tmp_path / "b.dasm"
    second.write_text("increment counter\n")
    assert main([str(first), str(second), "-o", str(tmp_path / "out.bin")]) == 1
    assert "Error:" in capsys.readouterr().err


@pytest.mark.parametrize("args", [[], ["-o", "out.bin"], ["-o"]])
def test_main_argument_errors(args):
    assert main(args) == 1


def test_main_missing_input(tmp_path):
    assert main([str(tmp_path / "absent.dasm")]) == 1