"""
Symbol Table
============

Labels and their resolved addresses. The resolver owns the table while it
relaxes the layout, then freezes it; the encoder and everything downstream
only ever read it.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from asm65.errors import DuplicateSymbolError, SourceLocation


@dataclass(frozen=True)
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Label name (case-sensitive)
        address: Resolved address (16-bit, or 24-bit with bank on 65816)
        location: Where the label was defined
    """
    name: str
    address: int
    location: SourceLocation

    @property
    def bank(self) -> int:
        return self.address >> 16


class SymbolTable:
    """
    Name -> Symbol mapping with duplicate detection and a read-only phase.

    Usage:
        table = SymbolTable()
        table.define("start", 0x8000, location)
        table.freeze()
        table.address("start")   # 0x8000
    """

    def __init__(self):
        self._symbols: dict[str, Symbol] = {}
        self._frozen = False

    def define(self, name: str, address: int, location: SourceLocation) -> Symbol:
        """
        Add a label.

        Raises:
            DuplicateSymbolError: If the name is already defined
            RuntimeError: If the table has been frozen
        """
        if self._frozen:
            raise RuntimeError("symbol table is frozen")
        existing = self._symbols.get(name)
        if existing is not None:
            raise DuplicateSymbolError(
                name, location=location, original_location=existing.location
            )
        symbol = Symbol(name, address, location)
        self._symbols[name] = symbol
        return symbol

    def freeze(self) -> "SymbolTable":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)

    def address(self, name: str) -> Optional[int]:
        symbol = self._symbols.get(name)
        return symbol.address if symbol else None

    def as_dict(self) -> dict[str, int]:
        """Return a plain name -> address copy."""
        return {name: sym.address for name, sym in self._symbols.items()}

    def find_similar(self, name: str) -> list[str]:
        """
        Find labels with similar names for error hints.

        Matches a case difference, or names within two edits of each other
        whose lengths differ by at most one.
        """
        name_lower = name.lower()
        similar = []

        for sym in self._symbols:
            sym_lower = sym.lower()
            if (
                sym_lower == name_lower or
                abs(len(sym) - len(name)) <= 1 and
                _edit_distance(name_lower, sym_lower) <= 2
            ):
                similar.append(sym)

        return similar[:3]

    def __contains__(self, name: object) -> bool:
        return name in self._symbols

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"SymbolTable({len(self)} symbols, {state})"


def _edit_distance(s1: str, s2: str) -> int:
    """Levenshtein distance between two strings."""
    if len(s1) < len(s2):
        return _edit_distance(s2, s1)
    if not s2:
        return len(s1)

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous[j + 1] + 1
            deletions = current[j] + 1
            substitutions = previous[j] + (c1 != c2)
            current.append(min(insertions, deletions, substitutions))
        previous = current

    return previous[-1]
