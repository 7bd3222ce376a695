"""
Instruction Encoder
===================

Turns resolved instruction lines into bytes: the opcode from the active
profile's table followed by the operand, least significant byte first.

Operand layouts:

    width 0         opcode
    width 1/2/3     opcode  lo [hi [bank]]
    branch          opcode  displacement (1 byte, or 2 for BRL/PER)
    BBRn/BBSn       opcode  zero-page  displacement
    MVN/MVP         opcode  destination-bank  source-bank

A value that does not fit its encoding raises OperandOverflowError; nothing
is masked or wrapped. Label values in 2-byte absolute operands are taken
relative to the instruction's bank, so they must be in the same bank.
"""

import logging
from typing import Optional, Sequence

from asm65.assembler.classifier import Instruction
from asm65.assembler.resolver import ResolvedLine
from asm65.assembler.symbols import SymbolTable
from asm65.cpu import BRANCH_RANGES, AddressingMode, ISAProfile
from asm65.errors import (
    AssemblerError,
    BranchRangeError,
    Diagnostics,
    OperandOverflowError,
    UndefinedSymbolError,
    UnsupportedModeError,
)

logger = logging.getLogger(__name__)


def encode(resolved: ResolvedLine, symbols: SymbolTable, profile: ISAProfile) -> bytes:
    """
    Encode one resolved line.

    Args:
        resolved: Output of the resolver; non-instruction lines encode to b""
        symbols: Frozen symbol table
        profile: Active ISA profile

    Returns:
        Opcode byte followed by the operand bytes

    Raises:
        UnsupportedModeError: The profile has no opcode for (mnemonic, mode)
        UndefinedSymbolError: The operand names an unknown label
        BranchRangeError: Branch displacement does not fit
        OperandOverflowError: Operand value does not fit its width
    """
    line = resolved.line
    if not isinstance(line, Instruction):
        return b""

    mode = resolved.mode
    info = profile.lookup(line.mnemonic, mode)
    if info is None:
        raise UnsupportedModeError(
            line.mnemonic, str(mode), profile.name,
            location=line.location,
            source_line=line.text,
            valid_modes=[str(m) for m in profile.table.modes_for(line.mnemonic)],
        )

    return bytes([info.opcode]) + _operand_bytes(resolved, line, symbols)


def _operand_bytes(resolved: ResolvedLine, line: Instruction, symbols: SymbolTable) -> bytes:
    mode = resolved.mode
    operand = line.operand

    if mode.width == 0:
        return b""

    if mode is AddressingMode.BLOCK_MOVE:
        return bytes([operand.value, operand.lead_byte])

    if mode in BRANCH_RANGES:
        displacement = _branch_bytes(resolved, line)
        if mode is AddressingMode.ZERO_PAGE_RELATIVE:
            return bytes([operand.lead_byte]) + displacement
        return displacement

    if operand.is_symbolic:
        value = _symbol_value(resolved, line, symbols)
    else:
        value = operand.value

    if not 0 <= value < 1 << (8 * mode.width):
        raise OperandOverflowError(
            f"value ${value:X} does not fit a {mode.width}-byte {mode} operand",
            location=line.location,
            source_line=line.text,
        )
    return value.to_bytes(mode.width, "little")


def _branch_bytes(resolved: ResolvedLine, line: Instruction) -> bytes:
    operand = line.operand
    if resolved.offset is None:
        raise UndefinedSymbolError(
            operand.symbol or operand.text,
            location=line.location,
            source_line=line.text,
        )

    low, high = BRANCH_RANGES[resolved.mode]
    if not low <= resolved.offset <= high:
        raise BranchRangeError(
            operand.symbol or operand.text,
            resolved.offset,
            low=low,
            high=high,
            location=line.location,
            source_line=line.text,
        )

    size = 1 if resolved.mode is AddressingMode.ZERO_PAGE_RELATIVE else resolved.width
    return resolved.offset.to_bytes(size, "little", signed=True)


def _symbol_value(resolved: ResolvedLine, line: Instruction, symbols: SymbolTable) -> int:
    name = line.operand.symbol
    symbol = symbols.get(name)
    if symbol is None:
        raise UndefinedSymbolError(
            name,
            location=line.location,
            source_line=line.text,
            similar_symbols=symbols.find_similar(name),
        )

    if resolved.width == 2:
        if symbol.bank != resolved.address >> 16:
            raise OperandOverflowError(
                f"label '{name}' at ${symbol.address:06X} is outside bank "
                f"${resolved.address >> 16:02X}",
                location=line.location,
                hint="use a long addressing mode",
                source_line=line.text,
            )
        return symbol.address & 0xFFFF

    return symbol.address


class Encoder:
    """
    Encodes every resolved line, recording errors instead of stopping.

    Undefined labels and out-of-range branches are reported by the resolver,
    so the encoder leaves those lines empty without recording them again.
    """

    def __init__(self, profile: ISAProfile, diagnostics: Optional[Diagnostics] = None):
        self.profile = profile
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def encode_all(self, resolved: Sequence[ResolvedLine], symbols: SymbolTable) -> list[bytes]:
        """Return the bytes of each line, in order (b"" for failed lines)."""
        encoded = []
        for item in resolved:
            try:
                code = encode(item, symbols, self.profile)
            except (UndefinedSymbolError, BranchRangeError):
                code = b""
            except AssemblerError as e:
                self.diagnostics.add(e)
                code = b""
            encoded.append(code)

        logger.debug("encoded %d byte(s)", sum(len(code) for code in encoded))
        return encoded
