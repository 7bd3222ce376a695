# =============================================================================
# test_encoder.py - Instruction Encoder Tests
# =============================================================================
# Tests for opcode + operand byte generation.
#
# Test coverage includes:
#   - Implied, immediate, zero page, absolute and indirect forms
#   - Little-endian operands and bank-relative label values
#   - Relative, long relative and bit-relative branches
#   - 65C02 and 65816 additions (STZ, block moves, long addressing)
#   - Unsupported modes and operand overflow
# =============================================================================

import pytest

from asm65.assembler import Assembler
from asm65.assembler.classifier import classify_line
from asm65.assembler.encoder import encode
from asm65.assembler.resolver import ResolvedLine
from asm65.assembler.symbols import SymbolTable
from asm65.cpu import AddressingMode, MOS_6502, WDC_65C02
from asm65.errors import (
    BranchRangeError,
    DiagnosticKind,
    OperandOverflowError,
    SourceLocation,
    UnsupportedModeError,
)


# =============================================================================
# Helper Functions
# =============================================================================

def assemble(source: str, profile: str = "6502", origin: int = 0x8000) -> bytes:
    """Assemble source and return the image, failing on any diagnostic error."""
    program = Assembler(profile=profile, origin=origin).assemble({"main.asm": source})
    assert program.ok, program.diagnostics.report()
    return program.image()


def errors_of(source: str, profile: str = "6502", origin: int = 0x8000):
    program = Assembler(profile=profile, origin=origin).assemble({"main.asm": source})
    assert program.image() == b""
    return program.diagnostics.errors


# =============================================================================
# 6502 Encoding
# =============================================================================

class TestBasicInstructions:
    """Single instructions on the 6502."""

    @pytest.mark.parametrize("source,expected", [
        ("NOP", [0xEA]),
        ("RTS", [0x60]),
        ("ASL A", [0x0A]),
        ("ASL", [0x0A]),
        ("LDA #$05", [0xA9, 0x05]),
        ("LDA $12", [0xA5, 0x12]),
        ("LDA $12,X", [0xB5, 0x12]),
        ("LDX $12,Y", [0xB6, 0x12]),
        ("LDA $1234", [0xAD, 0x34, 0x12]),
        ("LDA $1234,X", [0xBD, 0x34, 0x12]),
        ("LDA $1234,Y", [0xB9, 0x34, 0x12]),
        ("LDA ($12,X)", [0xA1, 0x12]),
        ("LDA ($12),Y", [0xB1, 0x12]),
        ("JMP ($FFFC)", [0x6C, 0xFC, 0xFF]),
        ("JSR $C000", [0x20, 0x00, 0xC0]),
    ])
    def test_encoding(self, source, expected):
        assert assemble(source) == bytes(expected)

    def test_zero_page_written_as_word_stays_absolute(self):
        assert assemble("LDA $0012") == bytes([0xAD, 0x12, 0x00])


# =============================================================================
# Labels
# =============================================================================

class TestLabelOperands:
    """Label values in operands."""

    def test_jmp_label(self):
        assert assemble("LABEL:\nJMP LABEL", origin=0x1234) == bytes([0x4C, 0x34, 0x12])

    def test_forward_jsr(self):
        code = assemble("JSR sub\nRTS\nsub:\nRTS")
        assert code == bytes([0x20, 0x04, 0x80, 0x60, 0x60])

    def test_zero_page_label(self):
        code = assemble("JMP start\nvar:\nNOP\nstart:\nLDA var", origin=0)
        assert code == bytes([0x4C, 0x04, 0x00, 0xEA, 0xA5, 0x03])

    def test_indexed_label(self):
        code = assemble("LDA table,X\nRTS\ntable:")
        assert code == bytes([0xBD, 0x04, 0x80, 0x60])

    def test_bank_relative_absolute(self):
        code = assemble("LDA target\ntarget:", profile="65816", origin=0x018000)
        assert code == bytes([0xAD, 0x03, 0x80])

    def test_long_label(self):
        code = assemble("LDA far\nfar:", profile="65816", origin=0x00FFFC)
        assert code == bytes([0xAF, 0x00, 0x00, 0x01])

    def test_label_near_bank_boundary_keeps_long_form(self):
        source = "start:\nLDA start\n" + "NOP\n" * 4 + "L:\nNOP\nLDA L"
        code = assemble(source, profile="65816", origin=0x00FFF8)
        assert code == bytes([0xAD, 0xF8, 0xFF] + [0xEA] * 5 + [0xAF, 0xFF, 0xFF, 0x00])

    def test_label_in_other_bank_without_long_form(self):
        errors = errors_of("LDX far\nfar:", profile="65816", origin=0x00FFFE)
        assert [e.kind for e in errors] == [DiagnosticKind.OPERAND_OVERFLOW]
        assert "outside bank $00" in errors[0].message


# =============================================================================
# Branches
# =============================================================================

class TestBranches:
    """Relative displacements."""

    def test_backward_branch(self):
        assert assemble("loop:\nDEX\nBNE loop") == bytes([0xCA, 0xD0, 0xFD])

    def test_forward_branch(self):
        assert assemble("BEQ done\nNOP\ndone:") == bytes([0xF0, 0x01, 0xEA])

    def test_bmi_has_its_own_opcode(self):
        assert assemble("here:\nBMI here") == bytes([0x30, 0xFE])

    def test_max_forward(self):
        code = assemble("BNE target\n" + "NOP\n" * 127 + "target:")
        assert code[:2] == bytes([0xD0, 0x7F])

    def test_max_backward(self):
        code = assemble("target:\n" + "NOP\n" * 126 + "BNE target")
        assert code[-2:] == bytes([0xD0, 0x80])

    def test_out_of_range_reported_once(self):
        errors = errors_of("BNE target\n" + "NOP\n" * 128 + "target:")
        assert [e.kind for e in errors] == [DiagnosticKind.BRANCH_OUT_OF_RANGE]

    def test_absolute_target_in_bank_one(self):
        code = assemble("BNE $8010", profile="65816", origin=0x018000)
        assert code == bytes([0xD0, 0x0E])

    def test_pc_relative(self):
        assert assemble("BNE *+$02\nNOP") == bytes([0xD0, 0x00, 0xEA])

    def test_bra(self):
        assert assemble("top:\nBRA top", profile="65c02") == bytes([0x80, 0xFE])

    def test_long_branch(self):
        code = assemble("BRL target\ntarget:", profile="65816")
        assert code == bytes([0x82, 0x00, 0x00])

    def test_long_branch_backward(self):
        code = assemble("target:\nBRL target", profile="65816")
        assert code == bytes([0x82, 0xFD, 0xFF])

    def test_bit_branch(self):
        code = assemble("loop:\nBBR3 $12,loop", profile="65c02")
        assert code == bytes([0x3F, 0x12, 0xFD])

    def test_branch_range_error_from_encode(self):
        line = classify_line("BNE $9000", MOS_6502, SourceLocation("main.asm", 1))
        resolved = ResolvedLine(line, 0x8000, AddressingMode.RELATIVE, 1,
                                target=0x9000, offset=0x0FFE)
        with pytest.raises(BranchRangeError):
            encode(resolved, SymbolTable().freeze(), MOS_6502)


# =============================================================================
# 65C02 and 65816 Additions
# =============================================================================

class TestExtendedInstructions:
    """Instructions outside the NMOS set."""

    def test_stz_on_65c02(self):
        assert assemble("STZ $10", profile="65c02") == bytes([0x64, 0x10])

    def test_stz_on_6502_is_unsupported(self):
        errors = errors_of("STZ $10")
        assert [e.kind for e in errors] == [DiagnosticKind.UNSUPPORTED_MODE]
        assert "not a 6502 instruction" in errors[0].message

    def test_wrong_mode_lists_valid_modes(self):
        errors = errors_of("STA #$41")
        assert "does not support immediate" in errors[0].message
        assert "zero page" in errors[0].message

    def test_zero_page_indirect(self):
        assert assemble("LDA ($20)", profile="65c02") == bytes([0xB2, 0x20])

    def test_rockwell_bits(self):
        assert assemble("SMB2 $30\nRMB2 $30", profile="65c02") == bytes([0xA7, 0x30, 0x27, 0x30])

    def test_block_move(self):
        # Source bank first in the source, destination bank first in the code
        assert assemble("MVN $01,$02", profile="65816") == bytes([0x54, 0x02, 0x01])

    def test_long_addressing(self):
        code = assemble("LDA $7E0012\nSTA $7F1234,X", profile="snes")
        assert code == bytes([0xAF, 0x12, 0x00, 0x7E, 0x9F, 0x34, 0x12, 0x7F])

    def test_word_immediate(self):
        assert assemble("LDA #$1234", profile="65816") == bytes([0xA9, 0x34, 0x12])

    def test_stack_relative(self):
        assert assemble("LDA $03,S\nLDA ($05,S),Y", profile="65816") == bytes([0xA3, 0x03, 0xB3, 0x05])

    def test_jml_and_jsl(self):
        code = assemble("JML [$0200]\nJSL $018000", profile="65816")
        assert code == bytes([0xDC, 0x00, 0x02, 0x22, 0x00, 0x80, 0x01])

    def test_unknown_mnemonic(self):
        errors = errors_of("FOO")
        assert errors[0].message == "'FOO' is not a 6502 instruction"


# =============================================================================
# Direct encode() Calls
# =============================================================================

class TestEncodeFunction:
    """encode() on hand-built resolved lines."""

    def test_non_instruction_is_empty(self):
        line = classify_line("start:", MOS_6502)
        assert encode(ResolvedLine(line, 0x8000), SymbolTable(), MOS_6502) == b""

    def test_unsupported_mode_raises(self):
        line = classify_line("STZ $10", MOS_6502, SourceLocation("main.asm", 4))
        resolved = ResolvedLine(line, 0x8000, AddressingMode.ZERO_PAGE, 1)
        with pytest.raises(UnsupportedModeError) as exc_info:
            encode(resolved, SymbolTable(), MOS_6502)
        assert exc_info.value.location.line == 4

    def test_label_too_wide_for_zero_page(self):
        symbols = SymbolTable()
        symbols.define("far", 0x1234, SourceLocation("main.asm", 1))
        line = classify_line("LDA far", WDC_65C02)
        resolved = ResolvedLine(line, 0x8000, AddressingMode.ZERO_PAGE, 1)
        with pytest.raises(OperandOverflowError):
            encode(resolved, symbols.freeze(), WDC_65C02)
