"""
WDC 65816 Instruction Set
=========================

The 65816 (Super Famicom/SNES 5A22, Apple IIgs) uses all 256 opcodes. It
keeps the 6502 set and the 65C02 CMOS additions, but not the Rockwell bit
instructions, whose opcodes it reassigns to long and stack-relative forms.

New in the 65816:

- 24-bit addressing: absolute long ($nnnnnn), absolute long,X, direct
  indirect long ([dp], [dp],Y) and JML [abs]
- stack relative: sr,S and (sr,S),Y
- 16-bit immediates when the M or X flag is clear (written #$nnnn)
- BRL and PER with a signed 16-bit displacement
- JSL/RTL, JML, PEA, PEI, MVN/MVP block moves, REP/SEP, COP, WDM
- bank, direct page and stack register transfers, XBA and XCE

Timing depends on the M, X and E flags and on the low byte of the direct
page register; those dependencies are recorded as CycleFlag conditions on
top of the 8-bit, emulation-mode base counts.
"""

from asm65.cpu.modes import AddressingMode, CycleFlag
from asm65.cpu.mos6502 import NMOS_ROWS
from asm65.cpu.table import OpcodeTable
from asm65.cpu.wdc65c02 import CMOS_ROWS


IMP = AddressingMode.IMPLIED
IMM = AddressingMode.IMMEDIATE
IMW = AddressingMode.IMMEDIATE_WORD
ZP = AddressingMode.ZERO_PAGE
ZPI = AddressingMode.ZERO_PAGE_INDIRECT
ABS = AddressingMode.ABSOLUTE
IAX = AddressingMode.ABSOLUTE_INDEXED_INDIRECT
ABL = AddressingMode.ABSOLUTE_LONG
ALX = AddressingMode.ABSOLUTE_LONG_X
DIL = AddressingMode.DIRECT_INDIRECT_LONG
DLY = AddressingMode.DIRECT_INDIRECT_LONG_Y
AIL = AddressingMode.ABSOLUTE_INDIRECT_LONG
SR = AddressingMode.STACK_RELATIVE
SRY = AddressingMode.STACK_RELATIVE_INDIRECT_Y
BRL = AddressingMode.RELATIVE_LONG
MOV = AddressingMode.BLOCK_MOVE

M16 = CycleFlag.M16
X16 = CycleFlag.X16
DP = CycleFlag.DIRECT_PAGE
NATIVE = CycleFlag.NATIVE


# Mnemonics whose operand size follows the M flag
ACCUMULATOR_OPS = frozenset({
    "ORA", "AND", "EOR", "ADC", "STA", "LDA", "CMP", "SBC", "BIT",
    "STZ", "TRB", "TSB", "ASL", "ROL", "LSR", "ROR", "INC", "DEC",
    "PHA", "PLA",
})

# Mnemonics whose operand size follows the X flag
INDEX_OPS = frozenset({
    "LDX", "LDY", "STX", "STY", "CPX", "CPY", "PHX", "PHY", "PLX", "PLY",
})

DIRECT_PAGE_MODES = frozenset({
    AddressingMode.ZERO_PAGE,
    AddressingMode.ZERO_PAGE_X,
    AddressingMode.ZERO_PAGE_Y,
    AddressingMode.ZERO_PAGE_INDIRECT,
    AddressingMode.INDIRECT_X,
    AddressingMode.INDIRECT_Y,
    AddressingMode.DIRECT_INDIRECT_LONG,
    AddressingMode.DIRECT_INDIRECT_LONG_Y,
})


def _native(rows: list[tuple]) -> list[tuple]:
    """Add the 65816 register-width and direct-page conditions to 6502 rows."""
    converted = []
    for mnemonic, mode, opcode, cycles, *rest in rows:
        conditions = rest[0] if rest else CycleFlag.NONE
        if mode is not AddressingMode.ACCUMULATOR:
            if mnemonic in ACCUMULATOR_OPS:
                conditions |= M16
            elif mnemonic in INDEX_OPS:
                conditions |= X16
        if mode in DIRECT_PAGE_MODES:
            conditions |= DP
        converted.append((mnemonic, mode, opcode, cycles, conditions))
    return converted


def _long_alu(mnemonic: str, base: int) -> list[tuple]:
    """
    The six 65816-only forms of the ALU/load/store group.

    Like the 6502 group they sit at fixed offsets from the (dp,X) opcode.
    """
    return [
        (mnemonic, SR, base + 0x02, 4, M16),
        (mnemonic, DIL, base + 0x06, 6, M16 | DP),
        (mnemonic, ABL, base + 0x0E, 5, M16),
        (mnemonic, SRY, base + 0x12, 7, M16),
        (mnemonic, DLY, base + 0x16, 6, M16 | DP),
        (mnemonic, ALX, base + 0x1E, 5, M16),
    ]


W65816_ROWS: list[tuple] = [
    *_long_alu("ORA", 0x01),
    *_long_alu("AND", 0x21),
    *_long_alu("EOR", 0x41),
    *_long_alu("ADC", 0x61),
    *_long_alu("STA", 0x81),
    *_long_alu("LDA", 0xA1),
    *_long_alu("CMP", 0xC1),
    *_long_alu("SBC", 0xE1),

    # =========================================================================
    # 16-bit immediates (same opcode as the 8-bit form)
    # =========================================================================
    ("ORA", IMW, 0x09, 3),
    ("AND", IMW, 0x29, 3),
    ("EOR", IMW, 0x49, 3),
    ("ADC", IMW, 0x69, 3),
    ("BIT", IMW, 0x89, 3),
    ("LDA", IMW, 0xA9, 3),
    ("CMP", IMW, 0xC9, 3),
    ("SBC", IMW, 0xE9, 3),
    ("LDY", IMW, 0xA0, 3),
    ("LDX", IMW, 0xA2, 3),
    ("CPY", IMW, 0xC0, 3),
    ("CPX", IMW, 0xE0, 3),

    ("REP", IMM, 0xC2, 3),
    ("SEP", IMM, 0xE2, 3),
    ("COP", IMM, 0x02, 7, NATIVE),
    ("WDM", IMM, 0x42, 2),

    # =========================================================================
    # Control flow
    # =========================================================================
    ("BRL", BRL, 0x82, 4),
    ("PER", BRL, 0x62, 6),
    ("JMP", ABL, 0x5C, 4),
    ("JMP", AIL, 0xDC, 6),
    ("JML", ABL, 0x5C, 4),
    ("JML", AIL, 0xDC, 6),
    ("JSL", ABL, 0x22, 8),
    ("JSR", IAX, 0xFC, 8),
    ("RTL", IMP, 0x6B, 6),

    # =========================================================================
    # Block moves: MVN/MVP srcbank,destbank
    # =========================================================================
    ("MVN", MOV, 0x54, 7, CycleFlag.PER_BYTE),
    ("MVP", MOV, 0x44, 7, CycleFlag.PER_BYTE),

    # =========================================================================
    # Stack
    # =========================================================================
    ("PEA", ABS, 0xF4, 5),
    ("PEI", ZPI, 0xD4, 6, DP),
    ("PHB", IMP, 0x8B, 3),
    ("PHD", IMP, 0x0B, 4),
    ("PHK", IMP, 0x4B, 3),
    ("PLB", IMP, 0xAB, 4),
    ("PLD", IMP, 0x2B, 5),

    # =========================================================================
    # Register transfers and processor control
    # =========================================================================
    ("TCD", IMP, 0x5B, 2),
    ("TDC", IMP, 0x7B, 2),
    ("TCS", IMP, 0x1B, 2),
    ("TSC", IMP, 0x3B, 2),
    ("TXY", IMP, 0x9B, 2),
    ("TYX", IMP, 0xBB, 2),
    ("XBA", IMP, 0xEB, 3),
    ("XCE", IMP, 0xFB, 2),
    ("WAI", IMP, 0xCB, 3),
    ("STP", IMP, 0xDB, 3),
]


W65816 = OpcodeTable.build(
    "65816",
    [*_native(NMOS_ROWS), *_native(CMOS_ROWS), *W65816_ROWS],
    synonyms={"JML": "JMP"},
)
