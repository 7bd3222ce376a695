"""
Source Units
============

A SourceUnit is one named piece of assembly text (normally one file) as a
list of cleaned lines. Cleaning removes everything after the first ``;``
and surrounding whitespace. Lines that end up empty are kept as blank
placeholders so that line numbers in diagnostics stay correct.

Each SourceLine carries its SourceLocation, so a line spliced into another
unit by ``.include`` still reports the file and line it came from.
"""

from dataclasses import dataclass, field, replace
from typing import Mapping

from asm65.errors import SourceLocation


COMMENT_CHAR = ";"


def clean_line(raw: str) -> str:
    """Strip the comment and surrounding whitespace from one raw line."""
    return raw.split(COMMENT_CHAR, 1)[0].strip()


@dataclass(frozen=True)
class SourceLine:
    """A cleaned line and where it came from."""
    text: str
    location: SourceLocation

    @property
    def is_blank(self) -> bool:
        return not self.text

    def with_text(self, text: str) -> "SourceLine":
        return replace(self, text=text)


@dataclass
class SourceUnit:
    """
    A named, ordered list of cleaned source lines.

    Attributes:
        name: Unit identifier, used by .include and in diagnostics
        lines: Cleaned lines in source order
    """
    name: str
    lines: list[SourceLine] = field(default_factory=list)

    @classmethod
    def from_text(cls, name: str, text: str) -> "SourceUnit":
        """
        Ingest raw source text.

        Args:
            name: Unit name (usually the path of the file the text was read from)
            text: Raw text; any line ending is accepted
        """
        lines = [
            SourceLine(clean_line(raw), SourceLocation(name, number))
            for number, raw in enumerate(text.splitlines(), start=1)
        ]
        return cls(name, lines)

    def texts(self) -> list[str]:
        return [line.text for line in self.lines]

    def __len__(self) -> int:
        return len(self.lines)


def units_from_texts(sources: Mapping[str, str]) -> dict[str, SourceUnit]:
    """Ingest a name -> text mapping, keeping its order."""
    return {name: SourceUnit.from_text(name, text) for name, text in sources.items()}
