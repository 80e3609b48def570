"""Textual aliases that stand in for operands."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from .params import MAX_N_ALIASES

N_ARGUMENT_ALIASES = 9
N_DEFAULT_ALIASES = 4 + N_ARGUMENT_ALIASES


def default_aliases() -> list[tuple[str, str]]:
    """Return the built-in (replacee, replacer) pairs in lookup order."""
    pairs = [
        ("pk", "sr0"),
        ("sp", "sr1"),
        ("argument", "*(sr1+1)"),
        ("result", "*(sr1+1)"),
    ]
    pairs.extend((f"argument{i}", f"*(sr1+{i})") for i in range(N_ARGUMENT_ALIASES))
    return pairs


class AliasTable(Mapping[str, str]):
    """An ordered alias table; the earliest definition of a name wins a lookup."""

    def __init__(self, entries: Iterable[tuple[str, str]] | None = None) -> None:
        self._entries = list(default_aliases() if entries is None else entries)
        if len(self._entries) > MAX_N_ALIASES:
            raise ValueError(f"at most {MAX_N_ALIASES} aliases may be defined")

    @property
    def entries(self) -> tuple[tuple[str, str], ...]:
        """All (replacee, replacer) pairs in definition order, duplicates included."""
        return tuple(self._entries)

    def define(self, replacee: str, replacer: str) -> None:
        """Add an alias after the existing ones."""
        if len(self._entries) >= MAX_N_ALIASES:
            raise ValueError(f"at most {MAX_N_ALIASES} aliases may be defined")
        self._entries.append((replacee, replacer))

    def remove(self, name: str) -> int:
        """Drop every alias named name and return how many were dropped."""
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry[0] != name]
        return before - len(self._entries)

    def lookup(self, name: str) -> str | None:
        """Return the replacement text for name, or None if it is not an alias."""
        return next((replacer for replacee, replacer in self._entries if replacee == name), None)

    def reset(self) -> None:
        """Forget user aliases and restore the built-in ones."""
        self._entries = default_aliases()

    def __getitem__(self, name: str) -> str:
        replacer = self.lookup(name)
        if replacer is None:
            raise KeyError(name)
        return replacer

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(replacee for replacee, _ in self._entries))

    def __len__(self) -> int:
        return len({replacee for replacee, _ in self._entries})