"""
Validated Opcode Tables
=======================

An OpcodeTable maps (mnemonic, addressing mode) to the opcode byte and
timing of one instruction form. Tables are built once from plain row data
and are immutable afterwards; resolver and encoder receive them by
reference.

Rows
----
Each row is a tuple::

    (mnemonic, mode, opcode, cycles)
    (mnemonic, mode, opcode, cycles, conditions)

Construction rejects:

- the same (mnemonic, mode) registered twice
- one opcode byte claimed by two mnemonics that are not declared synonyms
- a derived table replacing a key its base does not have, or adding a key
  its base already has
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from asm65.cpu.modes import AddressingMode, CycleFlag
from asm65.errors import OpcodeTableError


Row = Union[
    tuple[str, AddressingMode, int, int],
    tuple[str, AddressingMode, int, int, CycleFlag],
]


@dataclass(frozen=True)
class OpcodeInfo:
    """
    One encodable instruction form.

    Attributes:
        mnemonic: Uppercase mnemonic
        mode: Addressing mode of this form
        opcode: Opcode byte
        cycles: Base cycle count
        conditions: Run-time conditions adding cycles
    """
    mnemonic: str
    mode: AddressingMode
    opcode: int
    cycles: int
    conditions: CycleFlag = CycleFlag.NONE

    @property
    def size(self) -> int:
        """Total instruction size in bytes."""
        return 1 + self.mode.width

    def __repr__(self) -> str:
        return (
            f"OpcodeInfo({self.mnemonic} {self.mode.name}, "
            f"opcode=${self.opcode:02X}, cycles={self.cycles})"
        )


class OpcodeTable:
    """
    Immutable (mnemonic, mode) -> OpcodeInfo mapping for one CPU.

    Use OpcodeTable.build() for a fresh table and derive() to extend one.
    """

    def __init__(
        self,
        name: str,
        entries: Mapping[tuple[str, AddressingMode], OpcodeInfo],
        synonyms: Mapping[str, str],
    ):
        self._name = name
        self._entries = MappingProxyType(dict(entries))
        self._synonyms = MappingProxyType(dict(synonyms))
        self._modes_by_mnemonic: dict[str, tuple[AddressingMode, ...]] = {}
        for mnemonic, mode in self._entries:
            self._modes_by_mnemonic.setdefault(mnemonic, ())
            self._modes_by_mnemonic[mnemonic] += (mode,)
        self._check_opcode_collisions()

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def build(
        cls,
        name: str,
        rows: Iterable[Row],
        synonyms: Optional[Mapping[str, str]] = None,
    ) -> "OpcodeTable":
        """
        Build a table from row data.

        Args:
            name: Profile name used in error messages
            rows: Row tuples (see module docstring)
            synonyms: mnemonic -> canonical mnemonic pairs allowed to share
                      opcode bytes (e.g. {"JML": "JMP"})

        Raises:
            OpcodeTableError: On any duplicate key or opcode collision
        """
        entries: dict[tuple[str, AddressingMode], OpcodeInfo] = {}
        for info in _infos(rows):
            key = (info.mnemonic, info.mode)
            if key in entries:
                raise OpcodeTableError(
                    f"{name}: {info.mnemonic} {info.mode} registered twice "
                    f"(${entries[key].opcode:02X} and ${info.opcode:02X})"
                )
            entries[key] = info
        return cls(name, entries, synonyms or {})

    def derive(
        self,
        name: str,
        additions: Iterable[Row] = (),
        replacements: Iterable[Row] = (),
        synonyms: Optional[Mapping[str, str]] = None,
    ) -> "OpcodeTable":
        """
        Build a new table from this one.

        Args:
            name: Name of the derived profile
            additions: Rows for keys this table does not have
            replacements: Rows for keys this table already has (e.g. a
                          different cycle count on a later CPU)
            synonyms: Extra synonym pairs

        Raises:
            OpcodeTableError: If an addition collides or a replacement has
                              nothing to replace
        """
        entries = dict(self._entries)
        for info in _infos(additions):
            key = (info.mnemonic, info.mode)
            if key in entries:
                raise OpcodeTableError(
                    f"{name}: {info.mnemonic} {info.mode} already defined by {self._name}"
                )
            entries[key] = info
        for info in _infos(replacements):
            key = (info.mnemonic, info.mode)
            if key not in self._entries:
                raise OpcodeTableError(
                    f"{name}: cannot replace {info.mnemonic} {info.mode}, "
                    f"not defined by {self._name}"
                )
            entries[key] = info
        merged = dict(self._synonyms)
        merged.update(synonyms or {})
        return OpcodeTable(name, entries, merged)

    def _check_opcode_collisions(self) -> None:
        owners: dict[int, OpcodeInfo] = {}
        for info in self._entries.values():
            other = owners.get(info.opcode)
            if other is None:
                owners[info.opcode] = info
                continue
            if self._canonical(other.mnemonic) != self._canonical(info.mnemonic):
                raise OpcodeTableError(
                    f"{self._name}: opcode ${info.opcode:02X} claimed by both "
                    f"{other.mnemonic} {other.mode} and {info.mnemonic} {info.mode}"
                )

    def _canonical(self, mnemonic: str) -> str:
        return self._synonyms.get(mnemonic, mnemonic)

    # =========================================================================
    # Lookup
    # =========================================================================

    @property
    def name(self) -> str:
        return self._name

    def lookup(self, mnemonic: str, mode: AddressingMode) -> Optional[OpcodeInfo]:
        """
        Look up one instruction form.

        Args:
            mnemonic: Instruction mnemonic (any case)
            mode: Addressing mode

        Returns:
            OpcodeInfo if the profile has this form, None otherwise
        """
        return self._entries.get((mnemonic.upper(), mode))

    def supports(self, mnemonic: str, mode: AddressingMode) -> bool:
        return (mnemonic.upper(), mode) in self._entries

    def has_mnemonic(self, mnemonic: str) -> bool:
        return mnemonic.upper() in self._modes_by_mnemonic

    def modes_for(self, mnemonic: str) -> tuple[AddressingMode, ...]:
        """Return every mode the mnemonic supports, in table order."""
        return self._modes_by_mnemonic.get(mnemonic.upper(), ())

    @property
    def mnemonics(self) -> frozenset[str]:
        return frozenset(self._modes_by_mnemonic)

    @property
    def modes(self) -> frozenset[AddressingMode]:
        """All addressing modes used by at least one instruction."""
        return frozenset(mode for _, mode in self._entries)

    @property
    def opcodes(self) -> frozenset[int]:
        return frozenset(info.opcode for info in self._entries.values())

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __repr__(self) -> str:
        return f"OpcodeTable({self._name!r}, {len(self)} forms)"


def _infos(rows: Iterable[Row]) -> Iterable[OpcodeInfo]:
    for row in rows:
        mnemonic, mode, opcode, cycles, *rest = row
        conditions = rest[0] if rest else CycleFlag.NONE
        if not 0 <= opcode <= 0xFF:
            raise OpcodeTableError(f"{mnemonic} {mode}: opcode ${opcode:X} is not a byte")
        yield OpcodeInfo(mnemonic.upper(), mode, opcode, cycles, conditions)
