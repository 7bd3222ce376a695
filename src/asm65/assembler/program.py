"""
Assembled Program
=================

The result of one assembly run: the emitted bytes as address-ordered chunks,
the frozen symbol table, the resolved lines and every diagnostic. A failed
run still carries its lines, symbols and diagnostics, but no chunks.
"""

from dataclasses import dataclass, field
from typing import Optional

from asm65.assembler.resolver import ResolvedLine
from asm65.assembler.symbols import SymbolTable
from asm65.cpu import ISAProfile
from asm65.errors import Diagnostics


@dataclass
class Chunk:
    """Contiguous bytes starting at address."""
    address: int
    data: bytes

    @property
    def end(self) -> int:
        return self.address + len(self.data)


@dataclass
class AssembledProgram:
    """
    Output of Assembler.assemble().

    Attributes:
        profile: ISA profile the program was assembled for
        origin: Address of the first byte
        chunks: Emitted bytes; empty when any error was recorded
        symbols: Frozen symbol table (empty if preprocessing failed)
        lines: Resolved lines of the entry unit
        code: Bytes of each resolved line, parallel to lines
        diagnostics: All errors and warnings of the run
        entry: Name of the unit that was assembled
    """
    profile: ISAProfile
    origin: int
    chunks: list[Chunk] = field(default_factory=list)
    symbols: SymbolTable = field(default_factory=SymbolTable)
    lines: list[ResolvedLine] = field(default_factory=list)
    code: list[bytes] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    entry: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.diagnostics.has_errors()

    @property
    def has_errors(self) -> bool:
        return self.diagnostics.has_errors()

    @property
    def size(self) -> int:
        return sum(len(chunk.data) for chunk in self.chunks)

    def image(self) -> bytes:
        """
        Flat binary of all chunks.

        Gaps between chunks are not filled; chunks are simply concatenated
        in address order.
        """
        return b"".join(chunk.data for chunk in self.chunks)

    def listing(self) -> str:
        """
        Render the assembly listing.

        One row per source line with address, bytes, cycles and the cleaned
        source text, followed by the symbol table.
        """
        width = 6 if self.profile.is_banked else 4
        rows = [
            f"asm65 listing ({self.profile.name})",
            "=" * 72,
            "",
            f"{'Addr':<{width}}  {'Code':<12}  {'Cycles':<14}  Location  Source",
            "-" * 72,
        ]

        for resolved, code in zip(self.lines, self.code or [b""] * len(self.lines)):
            line = resolved.line
            if not line.text:
                continue
            hex_bytes = " ".join(f"{b:02X}" for b in code)
            cycles = str(resolved.cycles) if resolved.cycles else ""
            rows.append(
                f"{resolved.address:0{width}X}  {hex_bytes:<12}  {cycles:<14}  "
                f"L{line.location.line:<7} {line.text}"
            )

        rows.append("")
        rows.append(self.symbol_report())
        return "\n".join(rows)

    def symbol_report(self) -> str:
        """Render the symbol table, sorted by name, one ``name $ADDR`` per line."""
        width = 6 if self.profile.is_banked else 4
        rows = ["Symbol Table", "-" * 30]
        for symbol in sorted(self.symbols, key=lambda s: s.name):
            rows.append(f"{symbol.name:20s} ${symbol.address:0{width}X}")
        return "\n".join(rows)
