"""
ISA Profiles
============

An ISAProfile names a target CPU and owns its opcode table. Profiles differ
only in data: the table contents, the set of legal addressing modes and the
width of the address space.

Profile selectors are case-insensitive and accept console aliases:

=============================  =======
Selector                       Profile
=============================  =======
6502, nes, famicom             6502
65c02                          65C02
65816, snes, superfamicom      65816
=============================  =======
"""

from dataclasses import dataclass
from typing import Union

from asm65.cpu.modes import AddressingMode
from asm65.cpu.mos6502 import MOS6502
from asm65.cpu.table import OpcodeInfo, OpcodeTable
from asm65.cpu.wdc65c02 import WDC65C02
from asm65.cpu.wdc65816 import W65816


@dataclass(frozen=True)
class ISAProfile:
    """
    A target CPU.

    Attributes:
        name: Canonical profile name ("6502", "65C02" or "65816")
        table: The profile's validated opcode table
        address_bits: Width of the address space (16 or 24)
        description: One-line description for help text
    """
    name: str
    table: OpcodeTable
    address_bits: int
    description: str = ""

    @property
    def address_limit(self) -> int:
        """One past the highest addressable byte."""
        return 1 << self.address_bits

    @property
    def modes(self) -> frozenset[AddressingMode]:
        """Addressing modes legal on this CPU."""
        return self.table.modes

    @property
    def is_banked(self) -> bool:
        """True when addresses carry a bank byte above the low 16 bits."""
        return self.address_bits > 16

    def lookup(self, mnemonic: str, mode: AddressingMode) -> OpcodeInfo | None:
        return self.table.lookup(mnemonic, mode)

    def __str__(self) -> str:
        return self.name


MOS_6502 = ISAProfile("6502", MOS6502, 16, "NMOS 6502 / 2A03 (Famicom, NES)")
WDC_65C02 = ISAProfile("65C02", WDC65C02, 16, "CMOS 65C02 with Rockwell bit instructions")
WDC_65816 = ISAProfile("65816", W65816, 24, "65816 / 5A22 (Super Famicom, SNES)")

PROFILES: dict[str, ISAProfile] = {
    "6502": MOS_6502,
    "65C02": WDC_65C02,
    "65816": WDC_65816,
}

PROFILE_ALIASES: dict[str, str] = {
    "NES": "6502",
    "FAMICOM": "6502",
    "SNES": "65816",
    "SUPERFAMICOM": "65816",
}


def get_profile(selector: Union[str, ISAProfile]) -> ISAProfile:
    """
    Resolve a profile selector.

    Args:
        selector: Profile name, console alias, or an ISAProfile (returned as is)

    Returns:
        The matching ISAProfile

    Raises:
        ValueError: If the selector names no known profile
    """
    if isinstance(selector, ISAProfile):
        return selector
    key = selector.strip().upper()
    key = PROFILE_ALIASES.get(key, key)
    try:
        return PROFILES[key]
    except KeyError:
        valid = ", ".join(list(PROFILES) + [a.lower() for a in PROFILE_ALIASES])
        raise ValueError(
            f"unknown instruction set '{selector}' (valid: {valid})"
        ) from None


def profile_names() -> list[str]:
    """Every accepted selector, canonical names first."""
    return list(PROFILES) + [alias.lower() for alias in PROFILE_ALIASES]
