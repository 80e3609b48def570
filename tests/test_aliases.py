import pytest

from dunkasm.aliases import N_DEFAULT_ALIASES, AliasTable, default_aliases
from dunkasm.params import MAX_N_ALIASES


def test_default_aliases_layout():
    pairs = default_aliases()
    assert len(pairs) == N_DEFAULT_ALIASES
    assert pairs[0] == ("pk", "sr0")
    assert pairs[1] == ("sp", "sr1")
    assert pairs[2] == ("argument", "*(sr1+1)")
    assert pairs[3] == ("result", "*(sr1+1)")


def test_argument_aliases_follow_stack_pointer():
    table = AliasTable()
    assert table.lookup("argument1") == "*(sr1+1)"
    assert table.lookup("argument0") == "*(sr1+0)"
    assert table.lookup("argument9") is None


def test_define_and_lookup():
    table = AliasTable()
    table.define("counter", "r5")
    assert table.lookup("counter") == "r5"
    assert table["counter"] == "r5"
    assert "counter" in table


def test_first_definition_wins():
    table = AliasTable([])
    table.define("x", "r1")
    table.define("x", "r2")
    assert table.lookup("x") == "r1"
    assert len(table) == 1
    assert table.entries == (("x", "r1"), ("x", "r2"))


def test_remove_drops_all_matches():
    table = AliasTable([])
    table.define("x", "r1")
    table.define("x", "r2")
    table.define("y", "r3")
    assert table.remove("x") == 2
    assert table.lookup("x") is None
    assert list(table) == ["y"]


def test_remove_missing_name():
    table = AliasTable()
    assert table.remove("nothing") == 0
    assert len(table.entries) == N_DEFAULT_ALIASES


def test_reset_restores_defaults():
    table = AliasTable()
    table.define("counter", "r5")
    table.remove("pk")
    table.reset()
    assert table.lookup("counter") is None
    assert table.lookup("pk") == "sr0"
    assert table.entries == tuple(default_aliases())


def test_missing_key_raises():
    with pytest.raises(KeyError):
        AliasTable()["nope"]


def test_table_size_is_limited():
    table = AliasTable([])
    for i in range(MAX_N_ALIASES):
        table.define(f"name{i}", "r1")
    with pytest.raises(ValueError):
        table.define("overflow", "r1")
    with pytest.raises(ValueError):
        AliasTable([("a", "r1")] * (MAX_N_ALIASES + 1))