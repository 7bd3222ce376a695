"""
asm65 Command-Line Interface
============================

- **asm65**: 6502 / 65C02 / 65816 assembler

The tool is a Click-based CLI application with shared exit codes and
error handling (see cli.errors).
"""

__all__ = ["asm65"]
