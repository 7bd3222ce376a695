"""
6502-Family Addressing Modes
============================

Every instruction line is classified into exactly one AddressingMode. The
mode fixes the operand syntax and the number of operand bytes that follow
the opcode.

Addressing Modes
----------------
Common to all profiles:

==================  ===============  =====
Mode                Syntax           Bytes
==================  ===============  =====
IMPLIED             (none)           0
ACCUMULATOR         A                0
IMMEDIATE           #$nn             1
ZERO_PAGE           $nn              1
ZERO_PAGE_X         $nn,X            1
ZERO_PAGE_Y         $nn,Y            1
INDIRECT_X          ($nn,X)          1
INDIRECT_Y          ($nn),Y          1
RELATIVE            label            1
ABSOLUTE            $nnnn | label    2
ABSOLUTE_X          $nnnn,X          2
ABSOLUTE_Y          $nnnn,Y          2
INDIRECT            ($nnnn)          2
==================  ===============  =====

65C02 additions:

==========================  ==============  =====
ZERO_PAGE_INDIRECT          ($nn)           1
ABSOLUTE_INDEXED_INDIRECT   ($nnnn,X)       2
ZERO_PAGE_RELATIVE          $nn,label       2
==========================  ==============  =====

65816 additions:

==========================  ==============  =====
IMMEDIATE_WORD              #$nnnn          2
RELATIVE_LONG               label           2
ABSOLUTE_LONG               $nnnnnn         3
ABSOLUTE_LONG_X             $nnnnnn,X       3
DIRECT_INDIRECT_LONG        [$nn]           1
DIRECT_INDIRECT_LONG_Y      [$nn],Y         1
ABSOLUTE_INDIRECT_LONG      [$nnnn]         2
STACK_RELATIVE              $nn,S           1
STACK_RELATIVE_INDIRECT_Y   ($nn,S),Y       1
BLOCK_MOVE                  $ss,$dd         2
==========================  ==============  =====

On the 65816 the zero-page modes address the direct page.
"""

from enum import Enum, IntFlag


# =============================================================================
# Addressing Mode Enumeration
# =============================================================================

class AddressingMode(Enum):
    """
    6502-family addressing modes.

    The value of each member is (name for messages, operand byte width).
    """
    IMPLIED = ("implied", 0)
    ACCUMULATOR = ("accumulator", 0)
    IMMEDIATE = ("immediate", 1)
    IMMEDIATE_WORD = ("16-bit immediate", 2)
    ZERO_PAGE = ("zero page", 1)
    ZERO_PAGE_X = ("zero page,X", 1)
    ZERO_PAGE_Y = ("zero page,Y", 1)
    ZERO_PAGE_INDIRECT = ("(zero page)", 1)
    INDIRECT_X = ("(indirect,X)", 1)
    INDIRECT_Y = ("(indirect),Y", 1)
    RELATIVE = ("relative", 1)
    RELATIVE_LONG = ("long relative", 2)
    ZERO_PAGE_RELATIVE = ("zero page relative", 2)
    ABSOLUTE = ("absolute", 2)
    ABSOLUTE_X = ("absolute,X", 2)
    ABSOLUTE_Y = ("absolute,Y", 2)
    INDIRECT = ("(indirect)", 2)
    ABSOLUTE_INDEXED_INDIRECT = ("(absolute,X)", 2)
    ABSOLUTE_LONG = ("absolute long", 3)
    ABSOLUTE_LONG_X = ("absolute long,X", 3)
    DIRECT_INDIRECT_LONG = ("[direct]", 1)
    DIRECT_INDIRECT_LONG_Y = ("[direct],Y", 1)
    ABSOLUTE_INDIRECT_LONG = ("[absolute]", 2)
    STACK_RELATIVE = ("stack relative", 1)
    STACK_RELATIVE_INDIRECT_Y = ("(stack relative),Y", 1)
    BLOCK_MOVE = ("block move", 2)

    def __init__(self, label: str, width: int):
        self.label = label
        self.width = width

    def __str__(self) -> str:
        """Return human-readable name for error messages."""
        return self.label

    @property
    def is_branch(self) -> bool:
        """True for the modes whose operand is a PC-relative displacement."""
        return self in BRANCH_MODES


# Modes encoding a displacement from the following instruction
BRANCH_MODES: frozenset[AddressingMode] = frozenset({
    AddressingMode.RELATIVE,
    AddressingMode.RELATIVE_LONG,
    AddressingMode.ZERO_PAGE_RELATIVE,
})

# Signed displacement range per branch mode: (low, high)
BRANCH_RANGES: dict[AddressingMode, tuple[int, int]] = {
    AddressingMode.RELATIVE: (-128, 127),
    AddressingMode.ZERO_PAGE_RELATIVE: (-128, 127),
    AddressingMode.RELATIVE_LONG: (-32768, 32767),
}


# =============================================================================
# Width Families
# =============================================================================
# A symbolic operand written in one of these modes may be encoded with any
# member of its family that the profile supports. Members are ordered widest
# first: the resolver starts at the widest and only ever moves right.
# =============================================================================

MODE_FAMILIES: dict[AddressingMode, tuple[AddressingMode, ...]] = {
    AddressingMode.ABSOLUTE: (
        AddressingMode.ABSOLUTE_LONG,
        AddressingMode.ABSOLUTE,
        AddressingMode.ZERO_PAGE,
    ),
    AddressingMode.ABSOLUTE_X: (
        AddressingMode.ABSOLUTE_LONG_X,
        AddressingMode.ABSOLUTE_X,
        AddressingMode.ZERO_PAGE_X,
    ),
    AddressingMode.ABSOLUTE_Y: (
        AddressingMode.ABSOLUTE_Y,
        AddressingMode.ZERO_PAGE_Y,
    ),
}

# "ASL" and "ASL A" are the same instruction
IMPLIED_FAMILY: tuple[AddressingMode, ...] = (
    AddressingMode.IMPLIED,
    AddressingMode.ACCUMULATOR,
)


# =============================================================================
# Cycle Conditions
# =============================================================================

class CycleFlag(IntFlag):
    """
    Run-time conditions that add cycles to an instruction's base count.

    These are metadata for listings and timing tools; they never change
    the bytes that are emitted.
    """
    NONE = 0
    PAGE_CROSS = 1        # +1 if indexing crosses a page boundary
    BRANCH_TAKEN = 2      # +1 if taken, +1 more if the target is in another page
    M16 = 4               # 65816: +1 (or +2 read-modify-write) with 16-bit accumulator
    X16 = 8               # 65816: +1 with 16-bit index registers
    DIRECT_PAGE = 16      # 65816: +1 if the low byte of D is non-zero
    NATIVE = 32           # 65816: +1 in native mode
    PER_BYTE = 64         # block move: base count is per byte moved

    def describe(self) -> list[str]:
        """Return short labels for the set flags, in declaration order."""
        names = {
            CycleFlag.PAGE_CROSS: "page",
            CycleFlag.BRANCH_TAKEN: "taken",
            CycleFlag.M16: "m16",
            CycleFlag.X16: "x16",
            CycleFlag.DIRECT_PAGE: "dp",
            CycleFlag.NATIVE: "native",
            CycleFlag.PER_BYTE: "per-byte",
        }
        return [label for flag, label in names.items() if flag in self]
