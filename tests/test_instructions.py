import pytest

from dunkasm.instructions import INSTRUCTIONS, N_INSTR, find_instruction
from dunkasm.params import (
    CONSTANT,
    POINTER,
    REGISTER,
    W_OFFSET,
    Parameter,
    parse_parameter,
)


def _encode(name, *texts):
    params = [parse_parameter(text) for text in texts]
    instr = find_instruction(name, [p.kind for p in params])
    return instr, instr.encode(params)


@pytest.mark.parametrize(
    "name, code",
    [
        ("chill", 0x00),
        ("push", 0x60),
        ("pop", 0x69),
        ("return", 0x81),
        ("halt_and_catch_fire", 0xFF),
    ],
)
def test_table_size_and_nullary_codes(name, code):
    assert len(INSTRUCTIONS) == N_INSTR
    instr = find_instruction(name, ())
    assert instr.code == code
    assert instr.encode([]) == [code]


def test_every_signature_finds_itself():
    for instr in INSTRUCTIONS:
        assert find_instruction(instr.name, instr.arg_types) == instr


def test_chill_encodes_to_single_word():
    instr, words = _encode("chill")
    assert instr.code == 0x00
    assert words == [0x00]


def test_set_register_to_constant():
    instr, words = _encode("set", "r3", "42")
    assert instr.code == 0x18
    assert words[0] & 0xFF == 0x18
    assert words[0] >> 12 == 3
    assert words[1:] == [42]


def test_binary_alu_places_both_registers():
    instr, words = _encode("add", "r1", "r2")
    assert instr.code == 0x50
    assert len(words) == 1
    assert words[0] >> 12 == 1
    assert (words[0] >> 8) & 0xF == 2


def test_unary_alu_uses_both_nibbles():
    _, words = _encode("increment", "r7")
    assert words[0] >> 12 == 7
    assert (words[0] >> 8) & 0xF == 7
    assert words[0] & 0xFF == 0x53


def test_offset_then_constant_follow():
    instr, words = _encode("set", "*(r1+5)", "7")
    assert instr.code == 0x29
    assert words[1:] == [5, 7]


def test_two_offsets_follow_in_order():
    instr, words = _encode("set", "*(r1+5)", "*(r2+6)")
    assert instr.code == 0x2D
    assert words[1:] == [5, 6]


def test_pointer_constant_and_constant():
    instr, words = _encode("set", "*100", "7")
    assert instr.code == 0x10
    assert words == [0x10, 100, 7]


def test_constant_pointer_with_offset_register_emits_register_number():
    instr, words = _encode("set", "*100", "*(r2+6)")
    assert instr.code == 0x14
    assert words[1:] == [100, 2]


def test_synonyms_share_opcode():
    sig = (REGISTER, REGISTER)
    assert find_instruction("sub", sig).code == find_instruction("subtract", sig).code
    assert find_instruction("mul", sig).code == find_instruction("multiply", sig).code


def test_unknown_signature():
    assert find_instruction("set", (CONSTANT, CONSTANT)) is None
    assert find_instruction("frobnicate", ()) is None


def test_wrong_argument_count():
    instr = find_instruction("add", (REGISTER, REGISTER))
    with pytest.raises(ValueError):
        instr.encode([Parameter(REGISTER, 1)])


def test_instruction_word_stays_within_sixteen_bits():
    instr = find_instruction("add", (REGISTER, REGISTER))
    words = instr.encode([Parameter(REGISTER, 0x10), Parameter(REGISTER, 0x10)])
    assert 0 <= words[0] <= 0xFFFF
    assert words[0] & 0xFF == 0x50


def test_push_pointer_with_offset():
    instr = find_instruction("push", (REGISTER | POINTER | W_OFFSET,))
    assert instr.code == 0x65
    words = instr.encode([parse_parameter("*(r4+9)")])
    assert words[0] >> 12 == 4
    assert words[1:] == [9]