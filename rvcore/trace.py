"""
Execution trace lines and trace comparison

Trace line format: 0xPC;0xINSTR;mnemonic;effect;effect...
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from .disasm import disassemble
from .isa import MASK32, NOP, Instruction
from .regfile import RegisterFile

if TYPE_CHECKING:
    from .core import StepResult


@dataclass
class TraceEntry:
    pc: str
    instr: str
    mnemonic: str
    touch: List[str] = field(default_factory=list)


@dataclass
class TraceMismatch:
    index: int
    kind: str
    expected: Optional[TraceEntry]
    actual: Optional[TraceEntry]

    def __str__(self) -> str:
        where = (self.expected or self.actual).pc
        return (f"Error: {self.kind} mismatch at PC {where}\n"
                f"expected: {self.expected}\nactual: {self.actual}")


def step_effects(result: "StepResult") -> List[str]:
    """Resources touched by a committed step.

    The register field carries the committed value, so a destination of x0
    shows 0. Jumps show the link value even when rd is x0.
    """
    resources = []
    if result.control.reg_write and not result.stalled:
        rd = Instruction(result.instruction).rd
        if result.reg_write is not None:
            value = result.reg_write[1]
        elif result.control.jump:
            value = (result.pc + 4) & MASK32
        else:
            value = 0
        resources.append(f"{RegisterFile.get_name(rd)}=0x{value:08X}")
    if result.mem_write is not None:
        txn = result.mem_write
        stored_val = txn.write_data & ((1 << (txn.size.width * 8)) - 1)
        resources.append(f"mem[0x{txn.address:08X}]=0x{stored_val:08X}")
    if result.irq:
        resources.append("irq")
        resources.append(f"pc=0x{result.next_pc:08X}")
    elif result.control.branch_enable:
        if result.branch_taken:
            resources.append("taken=true")
            resources.append(f"pc=0x{result.next_pc:08X}")
        else:
            resources.append("taken=false")
    elif result.control.jump:
        resources.append(f"pc=0x{result.next_pc:08X}")
    return resources


def format_step(result: "StepResult") -> Optional[str]:
    """Trace line for a step, or None for a stalled step or a NOP"""
    if result.stalled or result.instruction == NOP:
        return None
    fields = [f"0x{result.pc:08X}", f"0x{result.instruction:08X}",
              disassemble(result.instruction)]
    fields.extend(step_effects(result))
    return ";".join(fields)


def parse_trace(text: str) -> List[TraceEntry]:
    entries = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        parts = line.split(";")
        entries.append(TraceEntry(parts[0], parts[1],
                                  parts[2] if len(parts) > 2 else "",
                                  parts[3:]))
    return entries


def compare_traces(expected: List[TraceEntry],
                   actual: List[TraceEntry]) -> Optional[TraceMismatch]:
    """First difference between two traces, or None if they agree.

    PC, instruction and effects are compared case-insensitively; the
    mnemonic is informational only.
    """
    for idx, exp in enumerate(expected):
        if idx >= len(actual):
            return TraceMismatch(idx, 'length', exp, None)
        act = actual[idx]
        if exp.pc.upper() != act.pc.upper():
            return TraceMismatch(idx, 'PC', exp, act)
        if exp.instr.upper() != act.instr.upper():
            return TraceMismatch(idx, 'instruction', exp, act)
        if [t.upper() for t in exp.touch] != [t.upper() for t in act.touch]:
            return TraceMismatch(idx, 'result', exp, act)
    if len(actual) > len(expected):
        return TraceMismatch(len(expected), 'length', None, actual[len(expected)])
    return None
