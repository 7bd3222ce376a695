"""
MOS 6502 Instruction Set
========================

The 151 documented opcodes of the NMOS 6502 (as used in the Famicom/NES
2A03). Undocumented opcodes are not included.

Cycle counts are the base counts from the MOS programming manual; forms
marked PAGE_CROSS take one more cycle when indexing crosses a page, and
branches take one more when taken (plus one if the target is in another
page).
"""

from asm65.cpu.modes import AddressingMode, CycleFlag
from asm65.cpu.table import OpcodeTable


IMP = AddressingMode.IMPLIED
ACC = AddressingMode.ACCUMULATOR
IMM = AddressingMode.IMMEDIATE
ZP = AddressingMode.ZERO_PAGE
ZPX = AddressingMode.ZERO_PAGE_X
ZPY = AddressingMode.ZERO_PAGE_Y
ABS = AddressingMode.ABSOLUTE
ABX = AddressingMode.ABSOLUTE_X
ABY = AddressingMode.ABSOLUTE_Y
IND = AddressingMode.INDIRECT
IZX = AddressingMode.INDIRECT_X
IZY = AddressingMode.INDIRECT_Y
REL = AddressingMode.RELATIVE

PAGE = CycleFlag.PAGE_CROSS
TAKEN = CycleFlag.BRANCH_TAKEN


def _alu(mnemonic: str, base: int) -> list[tuple]:
    """
    The eight-mode group shared by ADC, AND, CMP, EOR, LDA, ORA and SBC.

    The group's opcodes sit at fixed offsets from the (indirect,X) opcode.
    """
    return [
        (mnemonic, IMM, base + 0x08, 2),
        (mnemonic, ZP, base + 0x04, 3),
        (mnemonic, ZPX, base + 0x14, 4),
        (mnemonic, ABS, base + 0x0C, 4),
        (mnemonic, ABX, base + 0x1C, 4, PAGE),
        (mnemonic, ABY, base + 0x18, 4, PAGE),
        (mnemonic, IZX, base + 0x00, 6),
        (mnemonic, IZY, base + 0x10, 5, PAGE),
    ]


def _shift(mnemonic: str, base: int) -> list[tuple]:
    """ASL, LSR, ROL and ROR: accumulator plus four memory forms."""
    return [
        (mnemonic, ACC, base + 0x0A, 2),
        (mnemonic, ZP, base + 0x06, 5),
        (mnemonic, ZPX, base + 0x16, 6),
        (mnemonic, ABS, base + 0x0E, 6),
        (mnemonic, ABX, base + 0x1E, 7),
    ]


NMOS_ROWS: list[tuple] = [
    # =========================================================================
    # Load / store / arithmetic / logic
    # =========================================================================
    *_alu("ORA", 0x01),
    *_alu("AND", 0x21),
    *_alu("EOR", 0x41),
    *_alu("ADC", 0x61),
    *_alu("LDA", 0xA1),
    *_alu("CMP", 0xC1),
    *_alu("SBC", 0xE1),

    ("STA", ZP, 0x85, 3),
    ("STA", ZPX, 0x95, 4),
    ("STA", ABS, 0x8D, 4),
    ("STA", ABX, 0x9D, 5),
    ("STA", ABY, 0x99, 5),
    ("STA", IZX, 0x81, 6),
    ("STA", IZY, 0x91, 6),

    ("LDX", IMM, 0xA2, 2),
    ("LDX", ZP, 0xA6, 3),
    ("LDX", ZPY, 0xB6, 4),
    ("LDX", ABS, 0xAE, 4),
    ("LDX", ABY, 0xBE, 4, PAGE),

    ("LDY", IMM, 0xA0, 2),
    ("LDY", ZP, 0xA4, 3),
    ("LDY", ZPX, 0xB4, 4),
    ("LDY", ABS, 0xAC, 4),
    ("LDY", ABX, 0xBC, 4, PAGE),

    ("STX", ZP, 0x86, 3),
    ("STX", ZPY, 0x96, 4),
    ("STX", ABS, 0x8E, 4),

    ("STY", ZP, 0x84, 3),
    ("STY", ZPX, 0x94, 4),
    ("STY", ABS, 0x8C, 4),

    ("CPX", IMM, 0xE0, 2),
    ("CPX", ZP, 0xE4, 3),
    ("CPX", ABS, 0xEC, 4),

    ("CPY", IMM, 0xC0, 2),
    ("CPY", ZP, 0xC4, 3),
    ("CPY", ABS, 0xCC, 4),

    ("BIT", ZP, 0x24, 3),
    ("BIT", ABS, 0x2C, 4),

    # =========================================================================
    # Read-modify-write
    # =========================================================================
    *_shift("ASL", 0x00),
    *_shift("ROL", 0x20),
    *_shift("LSR", 0x40),
    *_shift("ROR", 0x60),

    ("DEC", ZP, 0xC6, 5),
    ("DEC", ZPX, 0xD6, 6),
    ("DEC", ABS, 0xCE, 6),
    ("DEC", ABX, 0xDE, 7),

    ("INC", ZP, 0xE6, 5),
    ("INC", ZPX, 0xF6, 6),
    ("INC", ABS, 0xEE, 6),
    ("INC", ABX, 0xFE, 7),

    # =========================================================================
    # Branches (signed 8-bit displacement from the next instruction)
    # =========================================================================
    ("BPL", REL, 0x10, 2, TAKEN),
    ("BMI", REL, 0x30, 2, TAKEN),
    ("BVC", REL, 0x50, 2, TAKEN),
    ("BVS", REL, 0x70, 2, TAKEN),
    ("BCC", REL, 0x90, 2, TAKEN),
    ("BCS", REL, 0xB0, 2, TAKEN),
    ("BNE", REL, 0xD0, 2, TAKEN),
    ("BEQ", REL, 0xF0, 2, TAKEN),

    # =========================================================================
    # Jumps and subroutines
    # =========================================================================
    ("JMP", ABS, 0x4C, 3),
    ("JMP", IND, 0x6C, 5),
    ("JSR", ABS, 0x20, 6),
    ("RTS", IMP, 0x60, 6),
    ("RTI", IMP, 0x40, 6),
    ("BRK", IMP, 0x00, 7),

    # =========================================================================
    # Implied register, stack and flag instructions
    # =========================================================================
    ("CLC", IMP, 0x18, 2),
    ("SEC", IMP, 0x38, 2),
    ("CLI", IMP, 0x58, 2),
    ("SEI", IMP, 0x78, 2),
    ("CLV", IMP, 0xB8, 2),
    ("CLD", IMP, 0xD8, 2),
    ("SED", IMP, 0xF8, 2),

    ("TAX", IMP, 0xAA, 2),
    ("TXA", IMP, 0x8A, 2),
    ("TAY", IMP, 0xA8, 2),
    ("TYA", IMP, 0x98, 2),
    ("TSX", IMP, 0xBA, 2),
    ("TXS", IMP, 0x9A, 2),

    ("INX", IMP, 0xE8, 2),
    ("INY", IMP, 0xC8, 2),
    ("DEX", IMP, 0xCA, 2),
    ("DEY", IMP, 0x88, 2),

    ("PHA", IMP, 0x48, 3),
    ("PHP", IMP, 0x08, 3),
    ("PLA", IMP, 0x68, 4),
    ("PLP", IMP, 0x28, 4),

    ("NOP", IMP, 0xEA, 2),
]


MOS6502 = OpcodeTable.build("6502", NMOS_ROWS)
