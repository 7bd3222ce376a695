#!/usr/bin/env python3
"""
asm65 Assembler Demo
====================

This script demonstrates how to use the asm65 library API to:
1. Assemble a program split across several source units
2. Inspect the listing and symbol table
3. Collect diagnostics from a broken program
4. Target the 65816 with long addressing

Usage:
    source .venv/bin/activate
    python examples/assembler_demo.py
"""

from pathlib import Path

from asm65 import Assembler


MAIN = """\
; Count down from COUNT, clearing a zero-page byte each time
.include hw.asm

reset:
    LDX #COUNT
loop:
    STZ SCRATCH
    JSR wait
    DEX
    BNE loop
    BRA reset

.include lib.asm
"""

HW = """\
.define COUNT $10
.define SCRATCH $20
"""

LIB = """\
wait:
    NOP
    NOP
    RTS
"""

BROKEN = """\
start:
    LDA #$01
    JMP strat
    STA #$02
    !!!
"""


def main():
    output_dir = Path("build")
    output_dir.mkdir(exist_ok=True)

    # ==========================================================================
    # 1. Assemble a multi-unit 65C02 program
    # ==========================================================================
    # Units are consumed by .include; the first remaining unit is assembled.

    print("Assembling for the 65C02...")
    program = Assembler(profile="65c02", origin=0xC000).assemble({
        "main.asm": MAIN,
        "hw.asm": HW,
        "lib.asm": LIB,
    })

    print(f"  OK: {program.ok}")
    print(f"  Size: {program.size} bytes")
    print(f"  Bytes: {program.image().hex(' ')}")

    binary = output_dir / "demo.bin"
    binary.write_bytes(program.image())
    print(f"  Wrote {binary}")

    # ==========================================================================
    # 2. Listing and symbols
    # ==========================================================================

    print("\n" + program.listing())

    # ==========================================================================
    # 3. Diagnostics
    # ==========================================================================
    # Every problem is reported at once, and no bytes are produced.

    print("\nAssembling a broken program...")
    broken = Assembler().assemble({"broken.asm": BROKEN})
    print(broken.diagnostics.report())
    print(f"  Image is empty: {broken.image() == b''}")

    # ==========================================================================
    # 4. 65816 long addressing
    # ==========================================================================
    # Labels in the current bank shrink to 2-byte operands; others stay long.

    print("\nAssembling for the SNES (65816)...")
    snes = Assembler(profile="snes", origin=0x008000).assemble({
        "main.asm": "LDA $7E0010\nJSL far\nMVN $7E,$7F\nRTL\nfar:\nRTL\n",
    })
    print(f"  Bytes: {snes.image().hex(' ')}")
    print(snes.symbol_report())


if __name__ == "__main__":
    main()
