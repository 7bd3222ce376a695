"""
Directive Preprocessor
======================

This module resolves the two source-level directives before any line is
classified:

.define KEYWORD replacement text
    Rewrites every whole-token occurrence of KEYWORD in every unit that is
    still known, then deletes the .define line. The replacement is the rest
    of the line after the keyword and may be empty.

.include UNIT
    Replaces the .include line with the current lines of UNIT and removes
    UNIT from the unit set. A unit can therefore be included only once; a
    second .include of the same name is a MissingIncludeError.

Exactly one directive is allowed per line. Any line starting with ``.`` that
is not a single well-formed directive raises MalformedDirectiveError.

Fixed Point
-----------
Directives are applied one at a time, always the first remaining one in
unit order and then line order, until no directive line is left. Every
application changes the unit set or the line lists, so the scan restarts
after each one. An include removes a unit and a define removes a line, which
bounds the loop; MAX_APPLICATIONS only guards against definitions whose
replacement text manufactures new directives without end.

Example
-------
>>> from asm65.assembler.source import units_from_texts
>>> units = units_from_texts({
...     "main.asm": ".define SCREEN $2000\\n.include lib.asm\\nSTA SCREEN",
...     "lib.asm": "LDA #$01",
... })
>>> flat = Preprocessor().process(units)
>>> [line.text for line in flat["main.asm"]]
['LDA #$01', 'STA $2000']
"""

import logging
import re
from typing import Mapping, Optional

from asm65.assembler.source import SourceLine, SourceUnit
from asm65.errors import (
    Diagnostics,
    DirectiveError,
    MalformedDirectiveError,
    MissingIncludeError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Directive Grammar
# =============================================================================

DIRECTIVE_PREFIX = "."

# ".name arguments" - the whole line
DIRECTIVE_PATTERN = re.compile(r"^\.(\S+)\s+(.+)$")

# A second directive hiding in the arguments of the first
EMBEDDED_DIRECTIVE_PATTERN = re.compile(
    r"(?:^|\s)\.(?:define|include)(?:\s|$)", re.IGNORECASE
)

DEFINE = "define"
INCLUDE = "include"
KNOWN_DIRECTIVES = frozenset({DEFINE, INCLUDE})

# Characters that make up a token for .define matching
TOKEN_CHARS = "A-Za-z0-9_"

MAX_APPLICATIONS = 10000


def is_directive_line(text: str) -> bool:
    return text.startswith(DIRECTIVE_PREFIX)


def keyword_pattern(keyword: str) -> re.Pattern:
    """Match KEYWORD as a whole token."""
    return re.compile(
        rf"(?<![{TOKEN_CHARS}]){re.escape(keyword)}(?![{TOKEN_CHARS}])"
    )


# =============================================================================
# Preprocessor
# =============================================================================

class Preprocessor:
    """
    Expands .define and .include across a set of source units.

    Attributes:
        strict: If True (default) a malformed directive aborts preprocessing.
                If False it is recorded in the diagnostics, the line is
                dropped and processing continues.
    """

    def __init__(
        self,
        diagnostics: Optional[Diagnostics] = None,
        strict: bool = True,
        max_applications: int = MAX_APPLICATIONS,
    ):
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.strict = strict
        self.max_applications = max_applications
        self._units: dict[str, SourceUnit] = {}
        self.applications = 0

    def process(self, units: Mapping[str, SourceUnit]) -> dict[str, list[SourceLine]]:
        """
        Resolve all directives.

        Args:
            units: Source units by name, in input order. The mapping and the
                   units themselves are not modified.

        Returns:
            Remaining unit names mapped to their flat, directive-free lines,
            in input order

        Raises:
            MissingIncludeError: An .include target does not exist
            MalformedDirectiveError: A malformed directive in strict mode
            DirectiveError: Self-inclusion, or no fixed point was reached
        """
        self._units = {
            name: SourceUnit(unit.name, list(unit.lines))
            for name, unit in units.items()
        }
        self.applications = 0

        while True:
            found = self._next_directive()
            if found is None:
                break

            self.applications += 1
            if self.applications > self.max_applications:
                unit_name, index = found
                line = self._units[unit_name].lines[index]
                raise DirectiveError(
                    f"directives did not reach a fixed point after "
                    f"{self.max_applications} applications",
                    location=line.location,
                    source_line=line.text,
                )

            self._apply(*found)

        logger.debug(
            "preprocessed %d unit(s) with %d directive application(s)",
            len(self._units), self.applications,
        )
        return {name: unit.lines for name, unit in self._units.items()}

    # =========================================================================
    # Fixed-Point Loop
    # =========================================================================

    def _next_directive(self) -> Optional[tuple[str, int]]:
        """Find the first directive line, in unit order then line order."""
        for name, unit in self._units.items():
            for index, line in enumerate(unit.lines):
                if is_directive_line(line.text):
                    return name, index
        return None

    def _apply(self, unit_name: str, index: int) -> None:
        line = self._units[unit_name].lines[index]
        try:
            name, arguments = self._parse(line)
        except MalformedDirectiveError as e:
            if self.strict:
                raise
            self.diagnostics.add(e)
            del self._units[unit_name].lines[index]
            return

        if name == DEFINE:
            self._apply_define(unit_name, index, arguments)
        else:
            self._apply_include(unit_name, index, arguments)

    def _parse(self, line: SourceLine) -> tuple[str, str]:
        """
        Split a directive line into (name, arguments).

        Raises:
            MalformedDirectiveError: If the line is not exactly one
                                     recognized directive
        """
        match = DIRECTIVE_PATTERN.match(line.text)
        if match is None:
            raise MalformedDirectiveError(
                "directive needs a name and arguments",
                location=line.location,
                source_line=line.text,
            )

        name, arguments = match.group(1).lower(), match.group(2).strip()
        if name not in KNOWN_DIRECTIVES:
            raise MalformedDirectiveError(
                f"unknown directive '.{match.group(1)}'",
                location=line.location,
                hint="supported directives: .define, .include",
                source_line=line.text,
            )
        if EMBEDDED_DIRECTIVE_PATTERN.search(arguments):
            raise MalformedDirectiveError(
                "only one directive is allowed per line",
                location=line.location,
                source_line=line.text,
            )
        return name, arguments

    # =========================================================================
    # Directives
    # =========================================================================

    def _apply_define(self, unit_name: str, index: int, arguments: str) -> None:
        keyword, *rest = arguments.split(None, 1)
        replacement = rest[0].strip() if rest else ""
        pattern = keyword_pattern(keyword)
        defining = self._units[unit_name].lines[index]

        logger.debug("%s: define %s -> %r", defining.location, keyword, replacement)

        for unit in self._units.values():
            for i, line in enumerate(unit.lines):
                if line is defining:
                    continue
                text = self._substitute(line.text, pattern, replacement).strip()
                if text != line.text:
                    unit.lines[i] = line.with_text(text)

        del self._units[unit_name].lines[index]

    @staticmethod
    def _substitute(text: str, pattern: re.Pattern, replacement: str) -> str:
        # Directive names are not tokens: only rewrite the arguments
        match = DIRECTIVE_PATTERN.match(text)
        if match is not None:
            arguments = pattern.sub(lambda m: replacement, match.group(2))
            return f".{match.group(1)} {arguments}"
        return pattern.sub(lambda m: replacement, text)

    def _apply_include(self, unit_name: str, index: int, target: str) -> None:
        unit = self._units[unit_name]
        line = unit.lines[index]

        if target == unit_name:
            raise DirectiveError(
                f"unit '{target}' includes itself",
                location=line.location,
                source_line=line.text,
            )
        if target not in self._units:
            raise MissingIncludeError(
                target,
                location=line.location,
                source_line=line.text,
                available=[name for name in self._units if name != unit_name],
            )

        logger.debug("%s: include %s (%d lines)", line.location, target,
                     len(self._units[target]))

        unit.lines[index:index + 1] = self._units[target].lines
        del self._units[target]


def preprocess(
    units: Mapping[str, SourceUnit],
    diagnostics: Optional[Diagnostics] = None,
    strict: bool = True,
) -> dict[str, list[SourceLine]]:
    """Convenience wrapper around Preprocessor.process()."""
    return Preprocessor(diagnostics, strict=strict).process(units)
