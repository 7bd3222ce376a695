"""
asm65 - 6502 Family Assembler Command-Line Interface
====================================================

Usage Examples
--------------
Basic assembly (writes out.bin):
    $ asm65 main.asm

Several units; main.asm pulls the others in with .include:
    $ asm65 main.asm lib.asm macros.asm -o game.bin

Another instruction set and origin:
    $ asm65 -i snes --origin $008000 main.asm

Listing and symbol files:
    $ asm65 main.asm -l main.lst -s main.sym

Verbose mode:
    $ asm65 -v main.asm
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from asm65 import __version__
from asm65.assembler import DEFAULT_ORIGIN, Assembler
from asm65.cli.errors import ExitCode, handle_cli_exception
from asm65.cpu import profile_names


def parse_address(value: str) -> int:
    """
    Parse an address given as ``$hex``, ``0xhex`` or decimal.

    Raises:
        ValueError: If the text is not a non-negative number
    """
    text = value.strip()
    if text.startswith("$"):
        address = int(text[1:], 16)
    elif text.lower().startswith("0x"):
        address = int(text[2:], 16)
    else:
        address = int(text)
    if address < 0:
        raise ValueError(f"negative address: {value}")
    return address


def _origin_callback(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> int:
    if value is None:
        return DEFAULT_ORIGIN
    try:
        return parse_address(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not an address ($hex, 0xhex or decimal)")


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False),
)
@click.option(
    "-i", "--instruction",
    type=click.Choice(profile_names(), case_sensitive=False),
    default="6502",
    show_default=True,
    help="Instruction set (or console alias)",
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("out.bin"),
    show_default=True,
    help="Output binary file",
)
@click.option(
    "--origin",
    callback=_origin_callback,
    help="Address of the first byte ($hex, 0xhex or decimal). Default: $8000",
)
@click.option(
    "-e", "--entry",
    help="Unit to assemble (default: the first file that is not included)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--lenient-directives",
    is_flag=True,
    help="Report malformed directives and skip them instead of stopping",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="asm65")
def main(
    files: tuple[str, ...],
    instruction: str,
    output: Path,
    origin: int,
    entry: Optional[str],
    listing: Optional[Path],
    symbols: Optional[Path],
    lenient_directives: bool,
    verbose: bool,
) -> None:
    """
    Assemble 6502, 65C02 or 65816 source into a flat binary.

    FILES are the source units. Each unit is named by its path exactly as
    given, which is the name .include refers to.

    \b
    Examples:
        asm65 main.asm                   # Outputs out.bin
        asm65 main.asm lib.asm -o a.bin  # main.asm includes lib.asm
        asm65 -i 65c02 main.asm          # Enable 65C02 instructions
        asm65 -i snes --origin $8000 main.asm
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        assembler = Assembler(
            profile=instruction,
            origin=origin,
            entry=entry,
            strict_directives=not lenient_directives,
        )

        if verbose:
            click.echo(f"Instruction set: {assembler.profile.name}")
            click.echo(f"Assembling {', '.join(files)} at ${origin:04X}...")

        program = assembler.assemble_files(files)

        for diagnostic in program.diagnostics.records:
            if diagnostic.is_error:
                click.echo(str(diagnostic), err=True)
            else:
                click.echo(f"warning: {diagnostic}", err=True)

        if program.has_errors:
            count = program.diagnostics.error_count()
            click.echo(f"{count} error(s), no output written", err=True)
            sys.exit(ExitCode.BUILD_ERROR)

        output.write_bytes(program.image())
        if verbose:
            click.echo(f"Wrote {program.size} bytes to {output}")

        if listing:
            listing.write_text(program.listing() + "\n")
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if symbols:
            symbols.write_text(program.symbol_report() + "\n")
            if verbose:
                click.echo(f"Wrote symbols to {symbols}")

        if verbose:
            click.echo(f"Assembly complete: {program.size} bytes, "
                       f"{len(program.symbols)} symbols")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
