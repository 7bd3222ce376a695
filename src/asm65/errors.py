"""
asm65 Error Hierarchy and Diagnostics
=====================================

This module defines the exception hierarchy for the whole toolchain and the
diagnostic records the assembler collects while it runs. All exceptions
inherit from Asm65Error, allowing callers to catch every toolchain error with
a single except clause if desired.

Exception Hierarchy
-------------------
Asm65Error (base)
├── OpcodeTableError - invalid ISA table data (raised at import time)
└── AssemblerError (assembler-related)
    ├── DirectiveError - error in a preprocessor directive
    │   ├── MalformedDirectiveError - line is not a single well-formed directive
    │   └── MissingIncludeError - .include names an unknown source unit
    ├── AssemblySyntaxError - line matches no label/instruction grammar
    ├── DuplicateSymbolError - label defined more than once
    ├── UndefinedSymbolError - reference to undefined label
    ├── BranchRangeError - branch displacement does not fit
    ├── OperandOverflowError - operand value wider than its encoding
    ├── UnsupportedModeError - (mnemonic, mode) not in the active profile
    └── TooManyErrors - collector limit reached

Diagnostics
-----------
Per-line problems are not raised to the caller. The pipeline stages raise
the exceptions above and the Diagnostics collector turns each one into a
Diagnostic record:

    {unit, line, severity, kind, message}

rendered as ``"<unit> L<line>: <message>"``. An assembly run emits bytes only
when the collector holds no error records.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Asm65Error(Exception):
    """
    Base exception for all asm65 errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch every toolchain error with a single except clause:

        try:
            program = Assembler().assemble({"main.asm": source})
        except Asm65Error as e:
            print(f"Error: {e}")
    """
    pass


class OpcodeTableError(Asm65Error):
    """
    Invalid instruction-set table data.

    Raised while an OpcodeTable is being built when the same
    (mnemonic, addressing mode) pair is registered twice, when two unrelated
    mnemonics claim the same opcode byte, or when a derived table tries to
    replace a key the base table does not have.
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a line of a source unit for error reporting.

    Lines keep their original location even after .include has spliced them
    into another unit, so diagnostics always point at the file the user wrote.

    Attributes:
        unit: Name of the source unit (usually the file path as given)
        line: Line number (1-indexed)
    """
    unit: str
    line: int

    def __str__(self) -> str:
        """Format as '<unit> L<line>' for error messages."""
        return f"{self.unit} L{self.line}"


# =============================================================================
# Diagnostic Records
# =============================================================================

class Severity(Enum):
    """Diagnostic severity. Only errors block emission."""
    ERROR = "error"
    WARNING = "warning"

    def __str__(self) -> str:
        return self.value


class DiagnosticKind(Enum):
    """Stable classification of every diagnostic the assembler produces."""
    MALFORMED_DIRECTIVE = "MalformedDirective"
    MISSING_INCLUDE = "MissingInclude"
    SYNTAX_ERROR = "SyntaxError"
    DUPLICATE_SYMBOL = "DuplicateSymbol"
    UNDEFINED_SYMBOL = "UndefinedSymbol"
    BRANCH_OUT_OF_RANGE = "BranchOutOfRange"
    OPERAND_OVERFLOW = "OperandOverflow"
    UNSUPPORTED_MODE = "UnsupportedMode"
    DIRECTIVE = "Directive"
    UNUSED_UNIT = "UnusedUnit"
    GENERAL = "General"


@dataclass(frozen=True)
class Diagnostic:
    """
    One line-addressed message produced during assembly.

    Attributes:
        unit: Source unit name ("" when the message has no location)
        line: 1-based line number (0 when the message has no location)
        severity: ERROR or WARNING
        kind: DiagnosticKind classifying the message
        message: Human-readable description
    """
    unit: str
    line: int
    severity: Severity
    kind: DiagnosticKind
    message: str

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        if self.unit:
            return f"{self.unit} L{self.line}: {self.message}"
        return self.message


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Asm65Error):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The cleaned source text at the error location (optional)
    """

    kind = DiagnosticKind.GENERAL

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            main.asm L15: error: undefined symbol 'prnt_char'
                JSR prnt_char
            hint: did you mean 'print_char'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line:
            parts.append(f"    {self.source_line}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)

    def to_diagnostic(self, severity: Severity = Severity.ERROR) -> Diagnostic:
        """Convert this exception into a Diagnostic record."""
        message = self.message
        if self.hint:
            message = f"{message} ({self.hint})"
        if self.location is None:
            return Diagnostic("", 0, severity, self.kind, message)
        return Diagnostic(
            self.location.unit, self.location.line, severity, self.kind, message
        )


class DirectiveError(AssemblerError):
    """
    Error in a preprocessor directive.

    Also raised when directive expansion fails to reach a fixed point within
    the application limit (a definition that keeps reproducing directives).
    """

    kind = DiagnosticKind.DIRECTIVE


class MalformedDirectiveError(DirectiveError):
    """
    A dot-line that is not exactly one well-formed directive.

    Examples:
        .define             ; no keyword
        .org $8000          ; unknown directive
        .define A B .include C   ; two directives on one line
    """

    kind = DiagnosticKind.MALFORMED_DIRECTIVE


class MissingIncludeError(DirectiveError):
    """
    .include names a source unit that does not (or no longer) exist.

    Units are consumed when included, so including the same unit a second
    time also raises this error.
    """

    kind = DiagnosticKind.MISSING_INCLUDE

    def __init__(
        self,
        unit_name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        available: Optional[list[str]] = None,
    ):
        self.included_unit = unit_name
        self.available = available or []

        hint = None
        if self.available:
            hint = "known units: " + ", ".join(self.available)

        super().__init__(
            f"included unit '{unit_name}' not found or already included",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Raised by the line classifier when a line is neither a label, nor a
    mnemonic followed by an operand in one of the active profile's
    addressing-mode grammars.
    """

    kind = DiagnosticKind.SYNTAX_ERROR


class DuplicateSymbolError(AssemblerError):
    """
    Label defined multiple times.

    Includes the location of the original definition in the hint.
    """

    kind = DiagnosticKind.DUPLICATE_SYMBOL

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"duplicate symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UndefinedSymbolError(AssemblerError):
    """
    Reference to a label that no line defines.

    The resolver suggests similarly-named labels to help catch typos.
    """

    kind = DiagnosticKind.UNDEFINED_SYMBOL

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class BranchRangeError(AssemblerError):
    """
    Branch target is out of range.

    6502-family branches encode a signed 8-bit displacement measured from
    the instruction that follows the branch, so the target must lie within
    -128 to +127 bytes. The 65816 BRL/PER forms use a signed 16-bit
    displacement instead.

    Typical fix is a trampoline:
           BNE skip
           JMP far_target
       skip:
    """

    kind = DiagnosticKind.BRANCH_OUT_OF_RANGE

    def __init__(
        self,
        target: str,
        offset: int,
        low: int = -128,
        high: int = 127,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.target = target
        self.offset = offset

        hint = f"range is {low} to +{high}; consider a JMP trampoline"

        super().__init__(
            f"branch target '{target}' is out of range (offset: {offset})",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class OperandOverflowError(AssemblerError):
    """
    Operand value does not fit the width of its encoding.

    Raised instead of masking or wrapping the value, e.g. a label beyond
    $FFFF referenced through a 16-bit absolute operand, or code that runs
    past the end of the profile's address space.
    """

    kind = DiagnosticKind.OPERAND_OVERFLOW


class UnsupportedModeError(AssemblerError):
    """
    The active ISA profile has no opcode for (mnemonic, addressing mode).

    Example:
        STZ $10     ; 6502: STZ is a 65C02 instruction
        STA #$41    ; no profile can store to an immediate
    """

    kind = DiagnosticKind.UNSUPPORTED_MODE

    def __init__(
        self,
        mnemonic: str,
        mode: str,
        profile: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        valid_modes: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.mode = mode
        self.profile = profile
        self.valid_modes = valid_modes or []

        if self.valid_modes:
            message = f"'{mnemonic}' does not support {mode} addressing mode on {profile}"
            hint = f"{mnemonic} supports: {', '.join(self.valid_modes)}"
        else:
            message = f"'{mnemonic}' is not a {profile} instruction"
            hint = None

        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


class TooManyErrors(AssemblerError):
    """
    Raised when too many errors have been encountered.

    This stops a run early when the input is fundamentally broken
    (for example when a binary file was passed in as source).
    """

    def __init__(self, message: str = "Too many errors"):
        super().__init__(message)


# =============================================================================
# Diagnostic Collection for Multiple Error Reporting
# =============================================================================

class Diagnostics:
    """
    Collects diagnostics for batch reporting.

    Every pipeline stage records into the same collector so that a single
    assembly run reports every defect in the input, not just the first one.
    Emission of bytes is gated on has_errors().

    Example:
        diagnostics = Diagnostics(max_errors=100)
        try:
            ...
            diagnostics.add(UndefinedSymbolError("loop", location))
        except TooManyErrors:
            pass

        if diagnostics.has_errors():
            print(diagnostics.report())
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the collector.

        Args:
            max_errors: Maximum errors to collect before raising TooManyErrors
        """
        self.records: list[Diagnostic] = []
        self.max_errors = max_errors

    def add(self, error: AssemblerError) -> None:
        """
        Record an error.

        Raises:
            TooManyErrors: If max_errors has been reached
        """
        self.records.append(error.to_diagnostic())
        if self.error_count() >= self.max_errors:
            raise TooManyErrors(f"Too many errors ({self.max_errors}), stopping")

    def warn(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        kind: DiagnosticKind = DiagnosticKind.GENERAL,
    ) -> None:
        """Record a warning."""
        unit, line = (location.unit, location.line) if location else ("", 0)
        self.records.append(Diagnostic(unit, line, Severity.WARNING, kind, message))

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.records if d.is_error]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.records if not d.is_error]

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        """Return all records of one kind, in the order they were added."""
        return [d for d in self.records if d.kind is kind]

    def has_errors(self) -> bool:
        """Return True if any error has been collected."""
        return any(d.is_error for d in self.records)

    def error_count(self) -> int:
        return sum(1 for d in self.records if d.is_error)

    def warning_count(self) -> int:
        return sum(1 for d in self.records if not d.is_error)

    def report(self) -> str:
        """
        Format all errors and warnings for display.

        Returns:
            One line per diagnostic followed by a summary line
        """
        lines = [f"{d.severity}: {d}" for d in self.records]

        errors = self.error_count()
        warnings = self.warning_count()
        error_word = "error" if errors == 1 else "errors"
        warning_word = "warning" if warnings == 1 else "warnings"
        lines.append(f"{errors} {error_word}, {warnings} {warning_word}")

        return "\n".join(lines)

    def clear(self) -> None:
        self.records.clear()
