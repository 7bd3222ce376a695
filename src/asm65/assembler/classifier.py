"""
Line Classifier
===============

This module turns each cleaned, directive-free source line into a typed
ClassifiedLine:

- Blank        empty line (kept for line numbering)
- Label        ``name:``
- Instruction  mnemonic + addressing mode + parsed operand
- Invalid      anything else (an AssemblySyntaxError is recorded)

Operand Syntax
--------------
Literals are ``$`` followed by hex digits. The digit count selects the
operand width, which is how zero page and absolute are told apart:

    LDA $12        zero page      (1-2 digits)
    LDA $0012      absolute       (3-4 digits)
    LDA $7E0012    absolute long  (5-6 digits, 65816)

A bare identifier stands for a label. Labels are accepted wherever an
address is: the absolute family, the indirect jump forms and branch
targets. The resolver later picks the narrowest encoding the label's
address allows.

Branch targets may also be written as an address in the current bank
(``BNE $8010``, ``BNE $12``) or relative to the branch itself
(``BNE *+$05``, ``BNE *-$03``).

``A`` alone is always the accumulator, so ``A`` (or ``a``) cannot be used
as a label name.

Grammar Order
-------------
For mnemonics the profile registers with a branch mode, the branch grammar
is tried first. Otherwise every addressing mode legal in the active profile
is tried in the fixed order of OPERAND_GRAMMARS; the first match wins.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from asm65.assembler.source import SourceLine
from asm65.cpu import AddressingMode, ISAProfile
from asm65.errors import AssemblySyntaxError, Diagnostics, SourceLocation


# =============================================================================
# Classified Line Types
# =============================================================================

@dataclass(frozen=True)
class Operand:
    """
    A parsed instruction operand.

    Attributes:
        text: Operand text as written
        value: Literal value (address, immediate, branch target or
               displacement for pc-relative targets; destination bank for
               block moves)
        symbol: Referenced label, if the operand names one
        pc_relative: True for ``*+$nn`` / ``*-$nn`` branch targets
        lead_byte: Leading byte of two-part operands: the zero page
                   address of BBRn/BBSn, the source bank of MVN/MVP
    """
    text: str = ""
    value: Optional[int] = None
    symbol: Optional[str] = None
    pc_relative: bool = False
    lead_byte: Optional[int] = None

    @property
    def is_symbolic(self) -> bool:
        return self.symbol is not None


@dataclass(frozen=True)
class ClassifiedLine:
    """
    Base class for classified lines.

    Attributes:
        location: Unit and line the text came from
        text: Cleaned source text
    """
    location: SourceLocation
    text: str


@dataclass(frozen=True)
class Blank(ClassifiedLine):
    pass


@dataclass(frozen=True)
class Label(ClassifiedLine):
    """Label definition: ``name:``."""
    name: str = ""


@dataclass(frozen=True)
class Instruction(ClassifiedLine):
    """
    Machine instruction.

    Attributes:
        mnemonic: Uppercase mnemonic
        mode: Addressing mode selected by the operand grammar
        operand: Parsed operand (empty for implied/accumulator)
    """
    mnemonic: str = ""
    mode: AddressingMode = AddressingMode.IMPLIED
    operand: Operand = Operand()


@dataclass(frozen=True)
class Invalid(ClassifiedLine):
    """Line that matches no grammar; reason holds the syntax error message."""
    reason: str = ""


# =============================================================================
# Grammar
# =============================================================================

LABEL_PATTERN = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*):$")

# 3-4 characters; the fourth may be a bit index (BBR0, SMB7)
INSTRUCTION_PATTERN = re.compile(
    r"^(?P<mnemonic>[A-Za-z]{3}[A-Za-z0-7]?)(?:\s+(?P<operand>.*))?$"
)

_BYTE = r"\$(?P<value>[0-9A-Fa-f]{1,2})"
_WORD = r"\$(?P<value>[0-9A-Fa-f]{3,4})"
_LONG = r"\$(?P<value>[0-9A-Fa-f]{5,6})"
_IDENT = r"(?P<symbol>[A-Za-z_][A-Za-z0-9_]*)"
_ADDRESS = rf"(?:{_WORD}|{_IDENT})"
_LEAD = r"\$(?P<lead>[0-9A-Fa-f]{1,2})\s*,\s*"
_X = r"\s*,\s*[Xx]"
_Y = r"\s*,\s*[Yy]"
_S = r"\s*,\s*[Ss]"

# Any literal up to a word: branch targets are addresses within the current bank
_TARGET = (
    rf"(?:\$(?P<value>[0-9A-Fa-f]{{1,4}})|{_IDENT}"
    r"|\*\s*(?P<sign>[+-])\s*\$(?P<offset>[0-9A-Fa-f]{1,4}))"
)


def _grammar(mode: AddressingMode, pattern: str) -> tuple[AddressingMode, re.Pattern]:
    return mode, re.compile(pattern)


# Priority order: first match wins
OPERAND_GRAMMARS: list[tuple[AddressingMode, re.Pattern]] = [
    _grammar(AddressingMode.ACCUMULATOR, r"[Aa]"),
    _grammar(AddressingMode.IMMEDIATE, rf"#{_BYTE}"),
    _grammar(AddressingMode.IMMEDIATE_WORD, rf"#{_WORD}"),
    _grammar(AddressingMode.INDIRECT_X, rf"\(\s*{_BYTE}{_X}\s*\)"),
    _grammar(AddressingMode.INDIRECT_Y, rf"\(\s*{_BYTE}\s*\){_Y}"),
    _grammar(AddressingMode.STACK_RELATIVE_INDIRECT_Y, rf"\(\s*{_BYTE}{_S}\s*\){_Y}"),
    _grammar(AddressingMode.ZERO_PAGE_INDIRECT, rf"\(\s*{_BYTE}\s*\)"),
    _grammar(AddressingMode.ABSOLUTE_INDEXED_INDIRECT, rf"\(\s*{_ADDRESS}{_X}\s*\)"),
    _grammar(AddressingMode.INDIRECT, rf"\(\s*{_ADDRESS}\s*\)"),
    _grammar(AddressingMode.DIRECT_INDIRECT_LONG_Y, rf"\[\s*{_BYTE}\s*\]{_Y}"),
    _grammar(AddressingMode.DIRECT_INDIRECT_LONG, rf"\[\s*{_BYTE}\s*\]"),
    _grammar(AddressingMode.ABSOLUTE_INDIRECT_LONG, rf"\[\s*{_ADDRESS}\s*\]"),
    _grammar(AddressingMode.STACK_RELATIVE, rf"{_BYTE}{_S}"),
    _grammar(AddressingMode.BLOCK_MOVE, rf"{_LEAD}{_BYTE}"),
    _grammar(AddressingMode.ZERO_PAGE_X, rf"{_BYTE}{_X}"),
    _grammar(AddressingMode.ZERO_PAGE_Y, rf"{_BYTE}{_Y}"),
    _grammar(AddressingMode.ZERO_PAGE, _BYTE),
    _grammar(AddressingMode.ABSOLUTE_LONG_X, rf"{_LONG}{_X}"),
    _grammar(AddressingMode.ABSOLUTE_LONG, _LONG),
    _grammar(AddressingMode.ABSOLUTE_X, rf"{_ADDRESS}{_X}"),
    _grammar(AddressingMode.ABSOLUTE_Y, rf"{_ADDRESS}{_Y}"),
    _grammar(AddressingMode.ABSOLUTE, _ADDRESS),
]

BRANCH_GRAMMARS: dict[AddressingMode, re.Pattern] = {
    AddressingMode.RELATIVE: re.compile(_TARGET),
    AddressingMode.RELATIVE_LONG: re.compile(_TARGET),
    AddressingMode.ZERO_PAGE_RELATIVE: re.compile(rf"{_LEAD}{_TARGET}"),
}


def _operand_from_match(text: str, match: re.Match) -> Operand:
    groups = match.groupdict()
    value = int(groups["value"], 16) if groups.get("value") else None
    lead = int(groups["lead"], 16) if groups.get("lead") else None
    if groups.get("offset"):
        offset = int(groups["offset"], 16)
        value = -offset if groups["sign"] == "-" else offset
        return Operand(text, value=value, pc_relative=True, lead_byte=lead)
    return Operand(text, value=value, symbol=groups.get("symbol"), lead_byte=lead)


# =============================================================================
# Classification
# =============================================================================

def classify_line(
    text: str,
    profile: ISAProfile,
    location: Optional[SourceLocation] = None,
) -> ClassifiedLine:
    """
    Classify one cleaned line against a profile's grammar.

    Args:
        text: Cleaned line (no comment, no surrounding whitespace)
        profile: Active ISA profile
        location: Where the line came from (defaults to "<input>" L0)

    Returns:
        Blank, Label, Instruction or Invalid
    """
    location = location or SourceLocation("<input>", 0)

    if not text:
        return Blank(location, text)

    label = LABEL_PATTERN.match(text)
    if label:
        name = label.group("name")
        if name.upper() == "A":
            return Invalid(location, text,
                           reason="'A' names the accumulator and cannot be a label")
        return Label(location, text, name=name)

    match = INSTRUCTION_PATTERN.match(text)
    if match is None:
        return Invalid(location, text, reason="expected a label or an instruction")

    mnemonic = match.group("mnemonic").upper()
    operand_text = (match.group("operand") or "").strip()

    if not operand_text:
        return Instruction(location, text, mnemonic, AddressingMode.IMPLIED, Operand())

    branch_modes = [m for m in profile.table.modes_for(mnemonic) if m.is_branch]
    if branch_modes:
        mode = branch_modes[0]
        found = BRANCH_GRAMMARS[mode].fullmatch(operand_text)
        if found:
            return Instruction(location, text, mnemonic, mode,
                               _operand_from_match(operand_text, found))

    legal = profile.modes
    for mode, pattern in OPERAND_GRAMMARS:
        if mode not in legal:
            continue
        found = pattern.fullmatch(operand_text)
        if found:
            return Instruction(location, text, mnemonic, mode,
                               _operand_from_match(operand_text, found))

    return Invalid(location, text, reason=_explain(mnemonic, operand_text, profile))


def _explain(mnemonic: str, operand_text: str, profile: ISAProfile) -> str:
    """Build the syntax error message for an operand no legal grammar accepts."""
    for mode, pattern in OPERAND_GRAMMARS:
        if pattern.fullmatch(operand_text):
            return (
                f"{mode} operand '{operand_text}' is not available on {profile.name}"
            )
    return f"invalid operand '{operand_text}' for {mnemonic}"


class LineClassifier:
    """
    Classifies lines and records a syntax error for every Invalid line.

    Classification never stops at the first error, so one run reports
    every bad line.
    """

    def __init__(self, profile: ISAProfile, diagnostics: Optional[Diagnostics] = None):
        self.profile = profile
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def classify(self, line: SourceLine) -> ClassifiedLine:
        classified = classify_line(line.text, self.profile, line.location)
        if isinstance(classified, Invalid):
            self.diagnostics.add(AssemblySyntaxError(
                classified.reason,
                location=line.location,
                source_line=line.text,
            ))
        return classified

    def classify_all(self, lines: Iterable[SourceLine]) -> list[ClassifiedLine]:
        return [self.classify(line) for line in lines]
