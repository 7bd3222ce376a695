"""
asm65 CPU Package
=================

Instruction-set definitions for the 6502 family, shared by every stage of
the assembler.

Modules:
    modes:     AddressingMode, width families and CycleFlag
    table:     OpcodeTable, the validated (mnemonic, mode) -> opcode mapping
    mos6502:   NMOS 6502 opcodes
    wdc65c02:  65C02 opcodes
    wdc65816:  65816 opcodes
    profiles:  ISAProfile and profile selection

Usage:
    from asm65.cpu import AddressingMode, get_profile

    profile = get_profile("65C02")
    info = profile.lookup("STZ", AddressingMode.ZERO_PAGE)
    assert info.opcode == 0x64
"""

from asm65.cpu.modes import (
    AddressingMode,
    BRANCH_MODES,
    BRANCH_RANGES,
    CycleFlag,
    IMPLIED_FAMILY,
    MODE_FAMILIES,
)
from asm65.cpu.table import OpcodeInfo, OpcodeTable
from asm65.cpu.profiles import (
    ISAProfile,
    MOS_6502,
    WDC_65C02,
    WDC_65816,
    PROFILES,
    PROFILE_ALIASES,
    get_profile,
    profile_names,
)

__all__ = [
    # Addressing modes
    "AddressingMode",
    "BRANCH_MODES",
    "BRANCH_RANGES",
    "CycleFlag",
    "IMPLIED_FAMILY",
    "MODE_FAMILIES",
    # Tables
    "OpcodeInfo",
    "OpcodeTable",
    # Profiles
    "ISAProfile",
    "MOS_6502",
    "WDC_65C02",
    "WDC_65816",
    "PROFILES",
    "PROFILE_ALIASES",
    "get_profile",
    "profile_names",
]
