"""
asm65 - Two-Pass Assembler for the 6502 Family
==============================================

This package assembles source for the MOS 6502 (NES/Famicom), the WDC 65C02
and the WDC 65816 (SNES/Super Famicom) into a flat binary image, with an
optional listing and symbol file.

Main Components
---------------
- **cpu**: Addressing modes, validated opcode tables and ISA profiles
- **assembler**: Preprocessor, line classifier, resolver and encoder
- **cli**: The ``asm65`` command-line tool

Quick Start
-----------
    >>> from asm65 import Assembler
    >>> program = Assembler(profile="6502", origin=0x1234).assemble({
    ...     "main.asm": "LABEL:\\nJMP LABEL",
    ... })
    >>> program.image().hex(" ")
    '4c 34 12'

Or use the command-line tool:
    $ asm65 main.asm lib.asm -i 65c02 -o game.bin -l game.lst
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from asm65.assembler import AssembledProgram, Assembler, assemble, assemble_file
from asm65.cpu import AddressingMode, ISAProfile, get_profile, profile_names
from asm65.errors import (
    Asm65Error,
    AssemblerError,
    AssemblySyntaxError,
    BranchRangeError,
    Diagnostic,
    DiagnosticKind,
    Diagnostics,
    DirectiveError,
    DuplicateSymbolError,
    MalformedDirectiveError,
    MissingIncludeError,
    OpcodeTableError,
    OperandOverflowError,
    Severity,
    SourceLocation,
    TooManyErrors,
    UndefinedSymbolError,
    UnsupportedModeError,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "AssembledProgram",
    "assemble",
    "assemble_file",
    # CPU
    "AddressingMode",
    "ISAProfile",
    "get_profile",
    "profile_names",
    # Diagnostics
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "Severity",
    "SourceLocation",
    # Exception hierarchy
    "Asm65Error",
    "OpcodeTableError",
    "AssemblerError",
    "DirectiveError",
    "MalformedDirectiveError",
    "MissingIncludeError",
    "AssemblySyntaxError",
    "DuplicateSymbolError",
    "UndefinedSymbolError",
    "BranchRangeError",
    "OperandOverflowError",
    "UnsupportedModeError",
    "TooManyErrors",
]
