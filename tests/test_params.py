import pytest

from dunkasm.params import (
    CONSTANT,
    POINTER,
    REGISTER,
    S_REGISTER,
    W_OFFSET,
    Parameter,
    is_char,
    is_number,
    parse_char,
    parse_number,
    parse_parameter,
)


@pytest.mark.parametrize(
    "text", ["0", "42", "-7", "0x1f", "0XAB", "0b101", "-0b1", "", "-"]
)
def test_is_number_accepts(text):
    assert is_number(text) is True


@pytest.mark.parametrize("text", ["abc", "0b102", "0xg", "--1", "1.5", "12a"])
def test_is_number_rejects(text):
    assert is_number(text) is False


def test_parse_number_values():
    assert parse_number("0") == 0
    assert parse_number("42") == 42
    assert parse_number("0x1f") == 0x1F
    assert parse_number("0b101") == 0b101
    assert parse_number("-0x10") == -0x10
    assert parse_number("") == 0


def test_parse_number_rejects_garbage():
    with pytest.raises(ValueError):
        parse_number("abc")


@pytest.mark.parametrize("text", ["'a'", "'\\n'", "'''"])
def test_is_char_accepts(text):
    assert is_char(text) is True


@pytest.mark.parametrize("text", ["ab", "'a", "'\\nx", "''"])
def test_is_char_rejects(text):
    assert is_char(text) is False


def test_parse_char():
    assert parse_char("'a'") == ord("a")
    assert parse_char("'\\n'") == ord("\n")
    assert parse_char("'\\''") == ord("'")
    assert parse_char("'\\q'") == 0


def test_parse_char_rejects_non_literal():
    with pytest.raises(ValueError):
        parse_char("abc")


def test_registers_and_constants():
    assert parse_parameter("r3") == Parameter(REGISTER, 3)
    assert parse_parameter("sr1") == Parameter(S_REGISTER, 1)
    assert parse_parameter("42") == Parameter(CONSTANT, 42)
    assert parse_parameter("'a'") == Parameter(CONSTANT, ord("a"))


def test_negative_constant_wraps_to_word():
    assert parse_parameter("-1").value == 0xFFFF


def test_plain_pointer():
    assert parse_parameter("*r2") == Parameter(REGISTER | POINTER, 2)
    assert parse_parameter("*100") == Parameter(CONSTANT | POINTER, 100)


def test_pointer_with_offset():
    param = parse_parameter("*(r2+5)")
    assert param == Parameter(REGISTER | POINTER | W_OFFSET, 2, 5)


def test_pointer_with_negative_offset():
    param = parse_parameter("*(sr1-1)")
    assert param.kind == S_REGISTER | POINTER | W_OFFSET
    assert param.offset == 0xFFFF


def test_zero_offset_is_not_flagged():
    assert parse_parameter("*(r1+0)") == Parameter(REGISTER | POINTER, 1)
    assert parse_parameter("*(r1)") == Parameter(REGISTER | POINTER, 1)


@pytest.mark.parametrize(
    "text", ["*(r1+r2)", "*(r1", "*(r1)x", "**(r1+1)", "bogus", "*(r1+*3)"]
)
def test_invalid_parameters(text):
    with pytest.raises(ValueError):
        parse_parameter(text)


def test_alias_resolution():
    assert parse_parameter("bogus", {"bogus": "r4"}) == Parameter(REGISTER, 4)


def test_alias_with_offset_inside_parentheses():
    aliases = {"argument": "*(sr1+1)"}
    param = parse_parameter("*(argument+2)", aliases)
    assert param == Parameter(S_REGISTER | POINTER | W_OFFSET, 1, 2)


def test_alias_with_offset_cannot_be_dereferenced_plainly():
    with pytest.raises(ValueError):
        parse_parameter("*argument", {"argument": "*(sr1+1)"})


def test_self_referential_alias_is_invalid():
    with pytest.raises(ValueError):
        parse_parameter("loop", {"loop": "loop"})