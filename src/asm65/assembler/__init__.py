"""
6502-Family Assembler
=====================

This package assembles 6502, 65C02 and 65816 source into a flat binary.

Assembly Process
----------------
1. **Preprocessing (Preprocessor)**:
   - ``.define KEYWORD text`` rewrites KEYWORD across all units
   - ``.include UNIT`` splices a unit in place and consumes it
   - Repeated until no directive is left

2. **Classification (LineClassifier)**:
   - Each line becomes a Label, Instruction, Blank or Invalid line
   - The operand grammar picks the addressing mode

3. **Resolution (Resolver)**:
   - Addresses and label operand widths are relaxed to a fixed point
   - Branch ranges, undefined labels and address overflow are checked

4. **Encoding (Encoder)**:
   - Opcode plus little-endian operand per instruction
   - Bytes are emitted only if no error was recorded

Example Usage
-------------
>>> from asm65.assembler import Assembler
>>> program = Assembler().assemble({"main.asm": "LDA #$05"})
>>> program.image()
b'\\xa9\\x05'
"""

from asm65.assembler.assembler import Assembler, assemble, assemble_file
from asm65.assembler.classifier import (
    Blank,
    ClassifiedLine,
    Instruction,
    Invalid,
    Label,
    LineClassifier,
    Operand,
    classify_line,
)
from asm65.assembler.encoder import Encoder, encode
from asm65.assembler.preprocessor import MAX_APPLICATIONS, Preprocessor, preprocess
from asm65.assembler.program import AssembledProgram, Chunk
from asm65.assembler.resolver import (
    DEFAULT_ORIGIN,
    CycleInfo,
    ResolvedLine,
    Resolver,
    resolve,
)
from asm65.assembler.source import SourceLine, SourceUnit, clean_line, units_from_texts
from asm65.assembler.symbols import Symbol, SymbolTable

__all__ = [
    # Main interface
    "Assembler",
    "assemble",
    "assemble_file",
    "AssembledProgram",
    "Chunk",
    "DEFAULT_ORIGIN",
    # Source ingestion
    "SourceLine",
    "SourceUnit",
    "clean_line",
    "units_from_texts",
    # Preprocessing
    "Preprocessor",
    "preprocess",
    "MAX_APPLICATIONS",
    # Classification
    "ClassifiedLine",
    "Blank",
    "Label",
    "Instruction",
    "Invalid",
    "Operand",
    "LineClassifier",
    "classify_line",
    # Resolution
    "Resolver",
    "resolve",
    "ResolvedLine",
    "CycleInfo",
    "Symbol",
    "SymbolTable",
    # Encoding
    "Encoder",
    "encode",
]
