"""
Address Resolver
================

This module assigns an address to every classified line and resolves every
label reference to its final encoding width.

Width Relaxation
----------------
A label operand written in the absolute family (``LDA table``,
``STA buffer,X``) may be encoded with any member of its width family the
profile supports (see MODE_FAMILIES). The right choice depends on the
label's address, which depends on the widths of everything before it.

The resolver breaks the cycle by iteration:

1. Every symbolic operand starts at the WIDEST supported member.
2. Lay out the program: assign addresses, record label addresses.
3. Shrink every operand whose label now fits a narrower member:
   - zero page when the label address is below $100
   - absolute instead of absolute long when the label is in the same bank
     as the instruction (65816; assumes D=0 and DBR=PBR)
4. If anything shrank, go back to 2.

Widths never grow, so every pass either shrinks at least one operand or
ends the loop, which converges in at most one pass per shrinkable operand.

Addresses only move down, so a zero-page label keeps fitting zero page.
The same-bank test is not monotonic: a later shrink can pull the label
into the previous bank while the instruction stays put. An address can
drop by at most the bytes still shrinkable in front of it (its slack), so
absolute is only chosen when the label and the instruction stay in the
same bank even after moving down by their slack. A decision once made is
therefore never invalidated, and the final layout is a fixed point.

After convergence the resolver checks what layout cannot fix: branch
displacements, undefined labels and code that runs off the end of the
profile's address space. Every problem is recorded; nothing stops at the
first error.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from asm65.assembler.classifier import ClassifiedLine, Instruction, Label
from asm65.assembler.symbols import SymbolTable
from asm65.cpu import (
    BRANCH_RANGES,
    IMPLIED_FAMILY,
    MODE_FAMILIES,
    AddressingMode,
    CycleFlag,
    ISAProfile,
)
from asm65.errors import (
    AssemblerError,
    BranchRangeError,
    Diagnostics,
    DuplicateSymbolError,
    OperandOverflowError,
    UndefinedSymbolError,
)

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = 0x8000


# =============================================================================
# Resolved Lines
# =============================================================================

@dataclass(frozen=True)
class CycleInfo:
    """
    Timing metadata for one instruction.

    Attributes:
        base: Base cycle count from the opcode table
        conditions: Run-time conditions that may add cycles
        page_crossed: For relative branches, True when the target lies in a
                      different page than the next instruction (the taken
                      branch costs one more cycle)
    """
    base: int
    conditions: CycleFlag = CycleFlag.NONE
    page_crossed: bool = False

    def __str__(self) -> str:
        extras = self.conditions.describe()
        if self.page_crossed:
            extras.append("crossed")
        if extras:
            return f"{self.base}+[{','.join(extras)}]"
        return str(self.base)


@dataclass(frozen=True)
class ResolvedLine:
    """
    A classified line with its final address and encoding width.

    Attributes:
        line: The classified line
        address: Address of the first byte (or of the next byte for
                 lines that emit nothing)
        mode: Final addressing mode (instructions only)
        width: Operand bytes for the final mode
        target: Branch target address (branch modes only)
        offset: Branch displacement from the following instruction
        cycles: Timing metadata (instructions the profile supports)
    """
    line: ClassifiedLine
    address: int
    mode: Optional[AddressingMode] = None
    width: int = 0
    target: Optional[int] = None
    offset: Optional[int] = None
    cycles: Optional[CycleInfo] = None

    @property
    def is_instruction(self) -> bool:
        return isinstance(self.line, Instruction)

    @property
    def size(self) -> int:
        """Total bytes this line occupies (opcode plus operand)."""
        return 1 + self.width if self.is_instruction else 0


@dataclass
class _WidthPlan:
    """Candidate modes for one instruction, widest first, and the current pick."""
    candidates: tuple[AddressingMode, ...]
    index: int = 0

    @property
    def mode(self) -> AddressingMode:
        return self.candidates[self.index]

    @property
    def size(self) -> int:
        return 1 + self.mode.width

    @property
    def slack(self) -> int:
        """Bytes this instruction could still lose by shrinking to its narrowest candidate."""
        return self.mode.width - self.candidates[-1].width


# =============================================================================
# Resolver
# =============================================================================

class Resolver:
    """
    Lays out classified lines and builds the symbol table.

    Usage:
        resolver = Resolver(profile, diagnostics)
        resolved, symbols = resolver.resolve(lines, origin=0x8000)
    """

    def __init__(self, profile: ISAProfile, diagnostics: Optional[Diagnostics] = None):
        self.profile = profile
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.passes = 0
        self._lines: list[ClassifiedLine] = []
        self._plans: list[Optional[_WidthPlan]] = []
        self._origin = DEFAULT_ORIGIN

    def resolve(
        self,
        lines: Sequence[ClassifiedLine],
        origin: int = DEFAULT_ORIGIN,
    ) -> tuple[list[ResolvedLine], SymbolTable]:
        """
        Run width relaxation to a fixed point and check the result.

        Args:
            lines: Classified lines of the entry unit, in order
            origin: Address of the first emitted byte

        Returns:
            (resolved lines, frozen symbol table)
        """
        self._lines = list(lines)
        self._plans = [self._plan(line) for line in self._lines]
        self._origin = origin

        # Each productive pass shrinks at least one operand
        max_passes = 1 + sum(
            len(plan.candidates) - 1 for plan in self._plans if plan is not None
        )
        for iteration in range(max_passes):
            self.passes = iteration + 1
            if not self.relax():
                break
        else:
            raise AssemblerError(
                f"address resolution did not converge after {max_passes} passes"
            )

        logger.debug("layout converged after %d pass(es)", self.passes)
        return self._finish()

    def layout(self) -> tuple[list[int], dict[str, int]]:
        """
        Assign addresses for the current operand widths.

        Returns:
            (address of every line, first definition address of every label)
        """
        addresses = []
        labels: dict[str, int] = {}
        pc = self._origin

        for line, plan in zip(self._lines, self._plans):
            addresses.append(pc)
            if isinstance(line, Label):
                labels.setdefault(line.name, pc)
            elif plan is not None:
                pc += plan.size

        return addresses, labels

    def relax(self) -> bool:
        """
        One layout-and-shrink pass.

        Returns:
            True if any operand got narrower
        """
        addresses, labels = self.layout()
        line_slack, label_slack = self._slack()
        changed = False

        for line, plan, address, slack in zip(self._lines, self._plans, addresses, line_slack):
            if plan is None or plan.index == len(plan.candidates) - 1:
                continue
            target = labels.get(line.operand.symbol)
            if target is None:
                continue
            target_slack = label_slack[line.operand.symbol]
            while (
                plan.index < len(plan.candidates) - 1 and
                self._fits(plan.candidates[plan.index + 1], target, address,
                           target_slack, slack)
            ):
                plan.index += 1
                changed = True

        return changed

    def _slack(self) -> tuple[list[int], dict[str, int]]:
        """
        Bytes that could still be shrunk away in front of each line and label.

        Later passes can move an address down by at most this much.
        """
        line_slack = []
        label_slack: dict[str, int] = {}
        running = 0

        for line, plan in zip(self._lines, self._plans):
            line_slack.append(running)
            if isinstance(line, Label):
                label_slack.setdefault(line.name, running)
            elif plan is not None:
                running += plan.slack

        return line_slack, label_slack

    # =========================================================================
    # Width Candidates
    # =========================================================================

    def _plan(self, line: ClassifiedLine) -> Optional[_WidthPlan]:
        if not isinstance(line, Instruction):
            return None

        table = self.profile.table
        mode = line.mode

        if mode is AddressingMode.IMPLIED:
            family = IMPLIED_FAMILY
        elif line.operand.is_symbolic and mode in MODE_FAMILIES:
            family = MODE_FAMILIES[mode]
        else:
            return _WidthPlan((mode,))

        candidates = tuple(m for m in family if table.supports(line.mnemonic, m))
        # Nothing fits: keep the written mode and let the encoder report it
        return _WidthPlan(candidates or (mode,))

    @staticmethod
    def _fits(
        mode: AddressingMode,
        target: int,
        address: int,
        target_slack: int = 0,
        address_slack: int = 0,
    ) -> bool:
        if mode.width == 1:
            return target < 0x100
        if mode.width == 2:
            # Both ends must stay in one bank however far later shrinks move them
            bank = address >> 16
            return (
                target >> 16 == bank and
                (target - target_slack) >> 16 == bank and
                (address - address_slack) >> 16 == bank
            )
        return True

    # =========================================================================
    # Final Pass
    # =========================================================================

    def _finish(self) -> tuple[list[ResolvedLine], SymbolTable]:
        addresses, _ = self.layout()
        symbols = SymbolTable()

        for line, address in zip(self._lines, addresses):
            if isinstance(line, Label):
                try:
                    symbols.define(line.name, address, line.location)
                except DuplicateSymbolError as e:
                    self.diagnostics.add(DuplicateSymbolError(
                        line.name,
                        location=line.location,
                        original_location=e.original_location,
                        source_line=line.text,
                    ))

        resolved = []
        overflowed = False
        limit = self.profile.address_limit

        for line, plan, address in zip(self._lines, self._plans, addresses):
            if plan is None:
                resolved.append(ResolvedLine(line, address))
                continue

            result = self._resolve_instruction(line, plan.mode, address, symbols)
            resolved.append(result)

            if not overflowed and address + result.size > limit:
                overflowed = True
                self.diagnostics.add(OperandOverflowError(
                    f"code at ${address:04X} runs past the end of the "
                    f"{self.profile.address_bits}-bit address space",
                    location=line.location,
                    source_line=line.text,
                ))

        symbols.freeze()
        logger.debug("resolved %d line(s), %d symbol(s)", len(resolved), len(symbols))
        return resolved, symbols

    def _resolve_instruction(
        self,
        line: Instruction,
        mode: AddressingMode,
        address: int,
        symbols: SymbolTable,
    ) -> ResolvedLine:
        operand = line.operand
        size = 1 + mode.width
        info = self.profile.lookup(line.mnemonic, mode)

        if operand.is_symbolic and operand.symbol not in symbols:
            self.diagnostics.add(UndefinedSymbolError(
                operand.symbol,
                location=line.location,
                source_line=line.text,
                similar_symbols=symbols.find_similar(operand.symbol),
            ))

        target = offset = None
        page_crossed = False

        if mode in BRANCH_RANGES:
            if operand.pc_relative:
                target = address + operand.value
            elif operand.is_symbolic:
                target = symbols.address(operand.symbol)
            else:
                # Literal targets are 16-bit addresses in the branch's own bank
                target = (address & 0xFF0000) | operand.value

            if target is not None:
                offset = target - (address + size)
                low, high = BRANCH_RANGES[mode]
                if not low <= offset <= high:
                    self.diagnostics.add(BranchRangeError(
                        operand.symbol or f"${target & 0xFFFF:04X}",
                        offset,
                        low=low,
                        high=high,
                        location=line.location,
                        source_line=line.text,
                    ))
                page_crossed = (
                    mode is AddressingMode.RELATIVE and
                    (address + size) >> 8 != target >> 8
                )

        cycles = None
        if info is not None:
            cycles = CycleInfo(info.cycles, info.conditions, page_crossed)

        return ResolvedLine(
            line, address, mode, mode.width,
            target=target, offset=offset, cycles=cycles,
        )


def resolve(
    lines: Sequence[ClassifiedLine],
    profile: ISAProfile,
    origin: int = DEFAULT_ORIGIN,
    diagnostics: Optional[Diagnostics] = None,
) -> tuple[list[ResolvedLine], SymbolTable]:
    """Convenience wrapper around Resolver.resolve()."""
    return Resolver(profile, diagnostics).resolve(lines, origin)
