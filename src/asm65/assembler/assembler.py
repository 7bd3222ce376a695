"""
6502-Family Assembler - Main Interface
======================================

This module provides the Assembler class, the single entry point that runs
the whole pipeline over a set of named source units:

1. Ingest: clean every unit (comments and whitespace stripped)
2. Preprocess: expand .define and .include to a fixed point
3. Select the entry unit; every other remaining unit is ignored with a
   warning
4. Classify each line against the profile's operand grammars
5. Resolve addresses and label widths to a fixed point
6. Encode, and emit bytes only if no error was recorded

Per-line problems never raise: they become diagnostics on the returned
AssembledProgram. Only bad configuration (unknown profile, origin outside
the address space) raises.

Example Usage
-------------
>>> from asm65 import Assembler
>>> program = Assembler(profile="65C02").assemble({
...     "main.asm": '''
... start:
...     LDA #$05
...     STZ $10
...     BRA start
... ''',
... })
>>> program.ok
True
>>> program.image().hex(" ")
'a9 05 64 10 80 fa'
"""

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from asm65.assembler.classifier import LineClassifier
from asm65.assembler.encoder import Encoder
from asm65.assembler.preprocessor import Preprocessor
from asm65.assembler.program import AssembledProgram, Chunk
from asm65.assembler.resolver import DEFAULT_ORIGIN, ResolvedLine, Resolver
from asm65.assembler.source import SourceLine, SourceUnit
from asm65.cpu import ISAProfile, get_profile
from asm65.errors import (
    AssemblerError,
    DiagnosticKind,
    Diagnostics,
    DirectiveError,
    TooManyErrors,
)

logger = logging.getLogger(__name__)

Sources = Union[Mapping[str, str], Mapping[str, SourceUnit]]


class Assembler:
    """
    Main 6502-family assembler class.

    Attributes:
        profile: Target ISA profile (6502, 65C02 or 65816)
        origin: Address of the first emitted byte
        entry: Name of the unit to assemble (default: first remaining unit)
        strict_directives: If False, malformed directives are recorded and
                           dropped instead of aborting
        max_errors: Error limit before the run is cut short
    """

    def __init__(
        self,
        profile: Union[str, ISAProfile] = "6502",
        origin: int = DEFAULT_ORIGIN,
        entry: Optional[str] = None,
        strict_directives: bool = True,
        max_errors: int = 100,
    ):
        """
        Raises:
            ValueError: Unknown profile, or origin outside the address space
        """
        self.profile = get_profile(profile)
        if not 0 <= origin < self.profile.address_limit:
            raise ValueError(
                f"origin ${origin:X} is outside the {self.profile.address_bits}-bit "
                f"address space of {self.profile.name}"
            )
        self.origin = origin
        self.entry = entry
        self.strict_directives = strict_directives
        self.max_errors = max_errors

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble(self, sources: Sources) -> AssembledProgram:
        """
        Assemble a set of source units.

        Args:
            sources: Unit name -> raw text (or SourceUnit), in input order.
                     The first unit is the entry unit unless one was given.

        Returns:
            AssembledProgram; check .ok or .diagnostics before using the bytes
        """
        diagnostics = Diagnostics(self.max_errors)
        program = AssembledProgram(self.profile, self.origin, diagnostics=diagnostics)

        units = {
            name: unit if isinstance(unit, SourceUnit) else SourceUnit.from_text(name, unit)
            for name, unit in sources.items()
        }
        logger.debug("assembling %d unit(s) for %s at $%04X",
                     len(units), self.profile.name, self.origin)

        try:
            self._run(units, program)
        except TooManyErrors as e:
            diagnostics.records.append(e.to_diagnostic())
            logger.debug("stopped early: %s", e.message)

        if program.has_errors:
            program.chunks = []
            logger.info("assembly failed: %d error(s)", diagnostics.error_count())
        else:
            logger.info("assembled %d byte(s) from %s", program.size, program.entry)

        return program

    def assemble_files(self, paths: Sequence[Union[str, Path]]) -> AssembledProgram:
        """
        Read and assemble source files. Unit names are the paths as given.

        Raises:
            OSError: If a file cannot be read
        """
        sources = {}
        for path in paths:
            sources[str(path)] = Path(path).read_text()
        return self.assemble(sources)

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _run(self, units: dict[str, SourceUnit], program: AssembledProgram) -> None:
        diagnostics = program.diagnostics

        preprocessor = Preprocessor(diagnostics, strict=self.strict_directives)
        try:
            flat = preprocessor.process(units)
        except DirectiveError as e:
            diagnostics.add(e)
            return

        lines = self._select_entry(flat, program)
        if lines is None:
            return

        classified = LineClassifier(self.profile, diagnostics).classify_all(lines)

        resolver = Resolver(self.profile, diagnostics)
        resolved, symbols = resolver.resolve(classified, self.origin)
        program.lines = resolved
        program.symbols = symbols

        program.code = Encoder(self.profile, diagnostics).encode_all(resolved, symbols)
        if not diagnostics.has_errors():
            program.chunks = _chunks(resolved, program.code)

    def _select_entry(
        self,
        flat: dict[str, list[SourceLine]],
        program: AssembledProgram,
    ) -> Optional[list[SourceLine]]:
        if not flat:
            logger.warning("no source units to assemble")
            return []

        entry = self.entry if self.entry is not None else next(iter(flat))
        if entry not in flat:
            program.diagnostics.add(AssemblerError(
                f"entry unit '{entry}' not found",
                hint="it may have been consumed by an .include",
            ))
            return None

        program.entry = entry
        for name in flat:
            if name != entry:
                program.diagnostics.warn(
                    f"unit '{name}' is never included and was ignored",
                    kind=DiagnosticKind.UNUSED_UNIT,
                )
        return flat[entry]


def _chunks(resolved: Sequence[ResolvedLine], code: Sequence[bytes]) -> list[Chunk]:
    """Group line bytes into contiguous address ranges."""
    chunks: list[Chunk] = []
    for line, data in zip(resolved, code):
        if not data:
            continue
        if chunks and chunks[-1].end == line.address:
            chunks[-1].data += data
        else:
            chunks.append(Chunk(line.address, data))
    return chunks


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(
    sources: Union[str, Sources],
    profile: Union[str, ISAProfile] = "6502",
    origin: int = DEFAULT_ORIGIN,
) -> AssembledProgram:
    """
    Convenience function to assemble source text.

    Args:
        sources: A single source string (unit name "<input>") or a mapping of
                 unit name -> text
        profile: ISA profile name or alias
        origin: Address of the first byte

    Returns:
        AssembledProgram
    """
    if isinstance(sources, str):
        sources = {"<input>": sources}
    return Assembler(profile=profile, origin=origin).assemble(sources)


def assemble_file(
    filepath: Union[str, Path],
    profile: Union[str, ISAProfile] = "6502",
    origin: int = DEFAULT_ORIGIN,
) -> AssembledProgram:
    """Convenience function to assemble a single file."""
    return Assembler(profile=profile, origin=origin).assemble_files([filepath])
