# =============================================================================
# test_cli.py - Command-Line Interface Tests
# =============================================================================
# Tests for the asm65 command: argument handling, output files and exit
# codes.
# =============================================================================

from pathlib import Path

import pytest

from asm65.cli.asm65 import parse_address
from asm65.cli.errors import ExitCode, handle_cli_exception


PROGRAM = """\
start:
    LDX #$03
loop:
    DEX
    BNE loop
    RTS
"""


# =============================================================================
# Successful Runs
# =============================================================================

class TestAssembleCommand:
    """asm65 FILES..."""

    def test_writes_output(self, tmp_path):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        source = tmp_path / "main.asm"
        source.write_text(PROGRAM)
        output = tmp_path / "game.bin"

        runner = CliRunner()
        result = runner.invoke(main, [str(source), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.read_bytes() == bytes([0xA2, 0x03, 0xCA, 0xD0, 0xFD, 0x60])

    def test_default_output_name(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text("NOP\n")
            result = runner.invoke(main, ["main.asm"])

            assert result.exit_code == 0, result.output
            assert Path("out.bin").read_bytes() == bytes([0xEA])

    def test_include_across_files(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text(".include lib.asm\nRTS\n")
            Path("lib.asm").write_text("NOP\n")
            result = runner.invoke(main, ["main.asm", "lib.asm"])

            assert result.exit_code == 0, result.output
            assert Path("out.bin").read_bytes() == bytes([0xEA, 0x60])

    def test_instruction_set_alias(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text("LDA $7E0012\n")
            result = runner.invoke(main, ["-i", "SNES", "main.asm"])

            assert result.exit_code == 0, result.output
            assert Path("out.bin").read_bytes() == bytes([0xAF, 0x12, 0x00, 0x7E])

    def test_origin(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text("here:\nJMP here\n")
            result = runner.invoke(main, ["--origin", "$C000", "main.asm"])

            assert result.exit_code == 0, result.output
            assert Path("out.bin").read_bytes() == bytes([0x4C, 0x00, 0xC0])

    def test_listing_and_symbols(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text(PROGRAM)
            result = runner.invoke(main, ["main.asm", "-l", "main.lst", "-s", "main.sym"])

            assert result.exit_code == 0, result.output
            listing = Path("main.lst").read_text()
            assert "8000  A2 03" in listing
            symbols = Path("main.sym").read_text().splitlines()
            assert symbols[2].split() == ["loop", "$8002"]
            assert symbols[3].split() == ["start", "$8000"]

    def test_unused_unit_warning(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text("NOP\n")
            Path("extra.asm").write_text("RTS\n")
            result = runner.invoke(main, ["main.asm", "extra.asm"])

            assert result.exit_code == 0
            assert "warning: unit 'extra.asm'" in result.output

    def test_verbose(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text("NOP\n")
            result = runner.invoke(main, ["-v", "main.asm"])

            assert result.exit_code == 0
            assert "Instruction set: 6502" in result.output
            assert "Assembly complete: 1 bytes" in result.output

    def test_version(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "asm65" in result.output
        assert "1.0.0" in result.output


# =============================================================================
# Failures and Exit Codes
# =============================================================================

class TestExitCodes:
    """Errors map to distinct exit codes."""

    def test_assembly_error(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text("NOP\nJMP nowhere\n!!!\n")
            result = runner.invoke(main, ["main.asm"])

            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "main.asm L2: undefined symbol 'nowhere'" in result.output
            assert "main.asm L3:" in result.output
            assert "2 error(s), no output written" in result.output
            assert not Path("out.bin").exists()

    def test_missing_include(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text(".include nope.asm\n")
            result = runner.invoke(main, ["main.asm"])

            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "included unit 'nope.asm' not found" in result.output

    def test_unknown_instruction_set(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text("NOP\n")
            result = runner.invoke(main, ["-i", "z80", "main.asm"])

            assert result.exit_code == ExitCode.INVALID_ARGS

    def test_missing_file(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["nope.asm"])

            assert result.exit_code == ExitCode.INVALID_ARGS

    def test_no_files(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        result = CliRunner().invoke(main, [])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_bad_origin(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text("NOP\n")
            result = runner.invoke(main, ["--origin", "$XYZ", "main.asm"])

            assert result.exit_code == ExitCode.INVALID_ARGS

    def test_origin_outside_address_space(self):
        from click.testing import CliRunner
        from asm65.cli.asm65 import main

        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("main.asm").write_text("NOP\n")
            result = runner.invoke(main, ["--origin", "$10000", "main.asm"])

            assert result.exit_code == ExitCode.INVALID_ARGS
            assert "outside" in result.output

    def test_internal_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(RuntimeError("boom"))
        assert exc_info.value.code == ExitCode.INTERNAL_ERROR
        assert "Internal error: boom" in capsys.readouterr().err


# =============================================================================
# Address Parsing
# =============================================================================

class TestParseAddress:
    """--origin value formats."""

    @pytest.mark.parametrize("text,expected", [
        ("$8000", 0x8000),
        ("0xC000", 0xC000),
        ("0XFF", 0xFF),
        ("4096", 4096),
        ("$7E0000", 0x7E0000),
        (" $10 ", 0x10),
    ])
    def test_formats(self, text, expected):
        assert parse_address(text) == expected

    @pytest.mark.parametrize("text", ["", "$", "zz", "-1", "$-10"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_address(text)
