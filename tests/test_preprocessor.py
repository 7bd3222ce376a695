# =============================================================================
# test_preprocessor.py - Directive Preprocessor Tests
# =============================================================================
# Tests for .define / .include expansion across source units.
#
# Test coverage includes:
#   - Source ingestion (comment stripping, line numbering)
#   - Global whole-token .define
#   - Consuming .include, nesting, location tracking
#   - Malformed directives in strict and lenient mode
#   - Fixed point and the application limit
# =============================================================================

import pytest

from asm65.assembler.preprocessor import Preprocessor, is_directive_line
from asm65.assembler.source import SourceUnit, clean_line, units_from_texts
from asm65.errors import (
    DiagnosticKind,
    Diagnostics,
    DirectiveError,
    MalformedDirectiveError,
    MissingIncludeError,
    SourceLocation,
)


# =============================================================================
# Helper Functions
# =============================================================================

def expand(sources: dict[str, str], **kwargs) -> dict[str, list[str]]:
    """Preprocess raw texts and return the remaining units as text lists."""
    flat = Preprocessor(**kwargs).process(units_from_texts(sources))
    return {name: [line.text for line in lines] for name, lines in flat.items()}


# =============================================================================
# Source Ingestion
# =============================================================================

class TestSourceUnits:
    """Raw text to cleaned lines."""

    def test_comment_and_whitespace_stripped(self):
        assert clean_line("   LDA #$01   ; load one") == "LDA #$01"

    def test_comment_only_line_is_blank(self):
        assert clean_line("; header") == ""

    def test_line_numbers_start_at_one(self):
        unit = SourceUnit.from_text("main.asm", "NOP\n\nRTS")
        assert [line.location.line for line in unit.lines] == [1, 2, 3]
        assert unit.texts() == ["NOP", "", "RTS"]
        assert unit.lines[1].is_blank

    def test_crlf_line_endings(self):
        unit = SourceUnit.from_text("main.asm", "NOP\r\nRTS\r\n")
        assert unit.texts() == ["NOP", "RTS"]

    def test_input_units_not_modified(self):
        units = units_from_texts({"main.asm": ".define X $01\nLDA #X"})
        Preprocessor().process(units)
        assert units["main.asm"].texts() == [".define X $01", "LDA #X"]


# =============================================================================
# .define
# =============================================================================

class TestDefine:
    """Keyword substitution."""

    def test_define_replaces_and_is_removed(self):
        result = expand({"main.asm": ".define SPEED $04\nLDA #SPEED"})
        assert result == {"main.asm": ["LDA #$04"]}

    def test_define_is_global(self):
        result = expand({
            "main.asm": "LDA #SPEED",
            "defs.asm": ".define SPEED $04",
        })
        assert result["main.asm"] == ["LDA #$04"]
        assert result["defs.asm"] == []

    def test_define_reaches_units_not_yet_included(self):
        result = expand({
            "main.asm": ".define PORT $2000\n.include io.asm",
            "io.asm": "STA PORT",
        })
        assert result == {"main.asm": ["STA $2000"]}

    def test_whole_tokens_only(self):
        result = expand({"main.asm": ".define VAL $01\nLDA #VAL\nLDA VALUE\nLDA MY_VAL"})
        assert result["main.asm"] == ["LDA #$01", "LDA VALUE", "LDA MY_VAL"]

    def test_every_occurrence_replaced(self):
        result = expand({"main.asm": ".define PTR $10\nLDA (PTR),Y\nSTA (PTR,X)"})
        assert result["main.asm"] == ["LDA ($10),Y", "STA ($10,X)"]

    def test_empty_replacement(self):
        result = expand({"main.asm": ".define FAST\nNOP FAST"})
        assert result["main.asm"] == ["NOP"]

    def test_tab_separated_keyword(self):
        result = expand({"main.asm": ".define\tZP\t$80\nLDA ZP"})
        assert result["main.asm"] == ["LDA $80"]

    def test_define_rewrites_include_argument(self):
        result = expand({
            "main.asm": ".define LIB lib.asm\n.include LIB",
            "lib.asm": "NOP",
        })
        assert result == {"main.asm": ["NOP"]}

    def test_directive_name_is_not_rewritten(self):
        result = expand({"main.asm": ".define include NOP\n.include lib.asm", "lib.asm": "RTS"})
        assert result == {"main.asm": ["RTS"]}

    def test_later_define_sees_earlier_substitution(self):
        result = expand({"main.asm": ".define A1 $01\n.define B1 A1\nLDA #B1"})
        assert result["main.asm"] == ["LDA #$01"]


# =============================================================================
# .include
# =============================================================================

class TestInclude:
    """Unit splicing."""

    def test_include_splices_and_consumes(self):
        result = expand({
            "main.asm": ".include lib.asm\nRTS",
            "lib.asm": "NOP\nNOP",
        })
        assert result == {"main.asm": ["NOP", "NOP", "RTS"]}

    def test_nested_include(self):
        result = expand({
            "main.asm": ".include a.asm\nRTS",
            "a.asm": ".include b.asm\nINX",
            "b.asm": "INY",
        })
        assert result == {"main.asm": ["INY", "INX", "RTS"]}

    def test_included_lines_keep_location(self):
        units = units_from_texts({
            "main.asm": "NOP\n.include lib.asm",
            "lib.asm": "; library\nRTS",
        })
        flat = Preprocessor().process(units)
        assert flat["main.asm"][2].text == "RTS"
        assert flat["main.asm"][2].location == SourceLocation("lib.asm", 2)

    def test_unincluded_units_remain(self):
        result = expand({"main.asm": "NOP", "other.asm": "RTS"})
        assert list(result) == ["main.asm", "other.asm"]

    def test_missing_include(self):
        with pytest.raises(MissingIncludeError) as exc_info:
            expand({"main.asm": "NOP\n.include nope.asm", "lib.asm": "RTS"})
        error = exc_info.value
        assert error.included_unit == "nope.asm"
        assert error.location == SourceLocation("main.asm", 2)
        assert "lib.asm" in error.available

    def test_second_include_of_same_unit_fails(self):
        with pytest.raises(MissingIncludeError):
            expand({
                "main.asm": ".include lib.asm\n.include lib.asm",
                "lib.asm": "NOP",
            })

    def test_self_include(self):
        with pytest.raises(DirectiveError, match="includes itself"):
            expand({"main.asm": ".include main.asm"})


# =============================================================================
# Malformed Directives
# =============================================================================

class TestMalformedDirectives:
    """Lines starting with '.' that are not one well-formed directive."""

    @pytest.mark.parametrize("line", [
        ".define",
        ".include",
        ".org $8000",
        ".define A B .include C",
        ".",
    ])
    def test_strict_mode_raises(self, line):
        with pytest.raises(MalformedDirectiveError):
            expand({"main.asm": line})

    def test_unknown_directive_hint(self):
        with pytest.raises(MalformedDirectiveError) as exc_info:
            expand({"main.asm": ".org $8000"})
        assert ".define, .include" in str(exc_info.value)

    def test_lenient_mode_records_and_drops(self):
        diagnostics = Diagnostics()
        result = expand(
            {"main.asm": "NOP\n.org $8000\nRTS"},
            diagnostics=diagnostics,
            strict=False,
        )
        assert result["main.asm"] == ["NOP", "RTS"]
        records = diagnostics.of_kind(DiagnosticKind.MALFORMED_DIRECTIVE)
        assert len(records) == 1
        assert records[0].line == 2

    def test_lenient_mode_still_fails_missing_include(self):
        with pytest.raises(MissingIncludeError):
            expand({"main.asm": ".include nope.asm"}, strict=False)

    def test_directive_name_case_insensitive(self):
        result = expand({"main.asm": ".DEFINE X $01\nLDA #X"})
        assert result["main.asm"] == ["LDA #$01"]


# =============================================================================
# Fixed Point
# =============================================================================

class TestFixedPoint:
    """Expansion runs until no directive is left."""

    def test_no_directive_lines_remain(self):
        result = expand({
            "main.asm": ".define ONE $01\n.include lib.asm\nLDA #ONE",
            "lib.asm": ".define TWO $02\nLDX #TWO\n.include util.asm",
            "util.asm": "LDY #ONE",
        })
        for lines in result.values():
            assert not any(is_directive_line(text) for text in lines)
        assert result == {"main.asm": ["LDX #$02", "LDY #$01", "LDA #$01"]}

    def test_application_count(self):
        preprocessor = Preprocessor()
        preprocessor.process(units_from_texts({
            "main.asm": ".define A1 $01\n.include lib.asm",
            "lib.asm": "NOP",
        }))
        assert preprocessor.applications == 2

    def test_application_limit(self):
        with pytest.raises(DirectiveError, match="fixed point"):
            expand(
                {"main.asm": ".define A1 $01\n.define B1 $02\nNOP"},
                max_applications=1,
            )
