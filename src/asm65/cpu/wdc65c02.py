"""
WDC 65C02 Instruction Set
=========================

The CMOS 65C02 keeps every 6502 opcode and fills most of the unused ones:

- (zero page) indirect addressing for the ALU, load and store group
- BIT with immediate, zp,X and abs,X operands
- BRA, PHX, PHY, PLX, PLY, STZ, TRB, TSB, INC A, DEC A
- JMP (absolute,X)
- the Rockwell bit instructions: RMBn/SMBn (reset/set bit n of a zero page
  byte) and BBRn/BBSn (branch if bit n is reset/set), n = 0..7
- WDC's WAI and STP

The CMOS additions shared with the 65816 live in CMOS_ROWS so the 65816
table can reuse them; the bit instructions are 65C02-only.
"""

from asm65.cpu.modes import AddressingMode, CycleFlag
from asm65.cpu.mos6502 import MOS6502


IMP = AddressingMode.IMPLIED
ACC = AddressingMode.ACCUMULATOR
IMM = AddressingMode.IMMEDIATE
ZP = AddressingMode.ZERO_PAGE
ZPX = AddressingMode.ZERO_PAGE_X
ZPI = AddressingMode.ZERO_PAGE_INDIRECT
ZPR = AddressingMode.ZERO_PAGE_RELATIVE
ABS = AddressingMode.ABSOLUTE
ABX = AddressingMode.ABSOLUTE_X
IND = AddressingMode.INDIRECT
IAX = AddressingMode.ABSOLUTE_INDEXED_INDIRECT
REL = AddressingMode.RELATIVE

PAGE = CycleFlag.PAGE_CROSS
TAKEN = CycleFlag.BRANCH_TAKEN


CMOS_ROWS: list[tuple] = [
    # (zero page) indirect
    ("ORA", ZPI, 0x12, 5),
    ("AND", ZPI, 0x32, 5),
    ("EOR", ZPI, 0x52, 5),
    ("ADC", ZPI, 0x72, 5),
    ("STA", ZPI, 0x92, 5),
    ("LDA", ZPI, 0xB2, 5),
    ("CMP", ZPI, 0xD2, 5),
    ("SBC", ZPI, 0xF2, 5),

    ("BIT", IMM, 0x89, 2),
    ("BIT", ZPX, 0x34, 4),
    ("BIT", ABX, 0x3C, 4, PAGE),

    ("BRA", REL, 0x80, 3, PAGE),

    ("INC", ACC, 0x1A, 2),
    ("DEC", ACC, 0x3A, 2),

    ("JMP", IAX, 0x7C, 6),

    ("PHX", IMP, 0xDA, 3),
    ("PHY", IMP, 0x5A, 3),
    ("PLX", IMP, 0xFA, 4),
    ("PLY", IMP, 0x7A, 4),

    ("STZ", ZP, 0x64, 3),
    ("STZ", ZPX, 0x74, 4),
    ("STZ", ABS, 0x9C, 4),
    ("STZ", ABX, 0x9E, 5),

    ("TRB", ZP, 0x14, 5),
    ("TRB", ABS, 0x1C, 6),
    ("TSB", ZP, 0x04, 5),
    ("TSB", ABS, 0x0C, 6),
]


def _bit_rows() -> list[tuple]:
    rows = []
    for bit in range(8):
        rows.append((f"RMB{bit}", ZP, 0x07 + bit * 0x10, 5))
        rows.append((f"SMB{bit}", ZP, 0x87 + bit * 0x10, 5))
        rows.append((f"BBR{bit}", ZPR, 0x0F + bit * 0x10, 5, TAKEN))
        rows.append((f"BBS{bit}", ZPR, 0x8F + bit * 0x10, 5, TAKEN))
    return rows


WDC65C02 = MOS6502.derive(
    "65C02",
    additions=[
        *CMOS_ROWS,
        *_bit_rows(),
        ("WAI", IMP, 0xCB, 3),
        ("STP", IMP, 0xDB, 3),
    ],
    replacements=[
        # The NMOS page-wrap bug is fixed at the cost of a cycle
        ("JMP", IND, 0x6C, 6),
    ],
)
