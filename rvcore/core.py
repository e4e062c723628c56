"""
Single-cycle RV32IM core

One call to Core.step() is one clock edge. Everything combinational is
evaluated first from the committed state; the register write, the granted
memory write and the new PC are then committed together. A cycle in which
DMA holds the data port is a stall: only the DMA write commits.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from .alu import alu
from .branch import branch_taken
from .config import CoreConfig
from .decoder import ControlBundle, decode
from .disasm import disassemble
from .errors import SimulationTimeout
from .immediate import extract_immediate
from .isa import MASK32, Instruction, Opcode, WritebackSource
from .memory import BusArbiter, BusGrant, DmaRequest, Memory, MemoryTransaction
from .muldiv import mult_div
from .pc import ProgramCounter
from .regfile import RegisterFile
from .trace import step_effects

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepResult:
    """What one clock step observed and committed"""
    cycle: int
    pc: int
    instruction: int
    control: ControlBundle
    next_pc: int
    stalled: bool
    irq: bool
    branch_taken: bool
    alu_zero: bool
    # (rd, value) when the instruction wrote a register this step
    reg_write: Optional[Tuple[int, int]]
    # CPU store committed this step
    mem_write: Optional[MemoryTransaction]
    grant: BusGrant

    @property
    def dma_grant(self) -> bool:
        return self.grant.dma_grant

    @property
    def dma_read_data(self) -> int:
        return self.grant.read_data if self.grant.dma_grant else 0


class Core:
    """Machine state (PC, registers, memory) plus the per-cycle transition"""

    def __init__(self, config: Optional[CoreConfig] = None):
        self.config = config or CoreConfig()
        self.regs = RegisterFile()
        self.memory = Memory(self.config.memory_words)
        self.bus = BusArbiter(self.memory)
        self.pc_reg = ProgramCounter(self.config.reset_vector,
                                     self.config.irq_vector)
        self.cycles = 0

    @property
    def pc(self) -> int:
        return self.pc_reg.pc

    def reset(self, clear_memory: bool = False):
        """Return to the reset vector with all registers zeroed"""
        self.pc_reg.reset()
        self.regs.reset()
        if clear_memory:
            self.memory.reset()
        self.cycles = 0

    def load_program(self, words: Iterable[int], base_index: int = 0):
        """Seed memory with 32-bit words before the first step"""
        self.memory.load_words(words, base_index)

    def read_register(self, reg: int) -> int:
        return self.regs.read(reg)

    def read_memory_word(self, address: int) -> int:
        return self.memory.read_word(address)

    def step(self, irq: bool = False,
             dma: Optional[DmaRequest] = None) -> StepResult:
        """Advance the core by one clock edge"""
        pc = self.pc_reg.pc
        word = self.memory.fetch(pc)
        inst = Instruction(word)
        ctrl = decode(word)
        imm = extract_immediate(word, ctrl.immediate_format)

        rs1_val = self.regs.read(inst.rs1)
        rs2_val = self.regs.read(inst.rs2)

        operand_a = pc if inst.opcode == Opcode.AUIPC else rs1_val
        operand_b = imm if ctrl.alu_src_is_imm else rs2_val
        alu_result, alu_zero = alu(ctrl.alu_op, operand_a, operand_b)
        md_result = mult_div(ctrl.mult_div_op, rs1_val, rs2_val,
                             ctrl.mult_div_valid)

        if ctrl.is_jalr:
            target = alu_result & ~1 & MASK32
        else:
            target = (pc + imm) & MASK32
        taken = branch_taken(inst.funct3, rs1_val, rs2_val, ctrl.branch_enable)

        data = None
        if ctrl.mem_read or ctrl.mem_write:
            data = MemoryTransaction(alu_result, ctrl.memory_access_size,
                                     rs2_val, ctrl.mem_write)
        grant = self.bus.arbitrate(data, dma)
        stalled = grant.stall

        source = ctrl.writeback_source
        if source == WritebackSource.MEMORY:
            writeback = grant.read_data
        elif source == WritebackSource.PC_PLUS4:
            writeback = self.pc_reg.pc_plus4
        elif source == WritebackSource.IMMEDIATE:
            writeback = imm
        elif source == WritebackSource.MULT_DIV:
            writeback = md_result
        else:
            writeback = alu_result

        # Commit
        self.bus.commit(grant)
        reg_write = None
        if ctrl.reg_write and not stalled:
            self.regs.write(inst.rd, writeback)
            if inst.rd != 0:
                reg_write = (inst.rd, self.regs.read(inst.rd))
        next_pc = self.pc_reg.advance(irq, ctrl.jump, taken, target, stalled)

        result = StepResult(
            cycle=self.cycles, pc=pc, instruction=word, control=ctrl,
            next_pc=next_pc, stalled=stalled, irq=irq and not stalled,
            branch_taken=taken and not stalled, alu_zero=alu_zero,
            reg_write=reg_write,
            mem_write=grant.write if grant.write is not None and not stalled else None,
            grant=grant)
        self.cycles += 1

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("[%d] pc=0x%08X inst=0x%08X %s;%s%s -> pc=0x%08X",
                         result.cycle, pc, word, disassemble(word),
                         ";".join(step_effects(result)),
                         " (stalled)" if stalled else "", next_pc)
        return result

    def run(self, cycles: int, irq: bool = False) -> List[StepResult]:
        """Run exactly *cycles* steps"""
        return [self.step(irq=irq) for _ in range(cycles)]

    def run_until(self, done: Callable[["Core"], bool],
                  max_cycles: Optional[int] = None) -> int:
        """Step until done(core) holds; return the number of steps taken.

        Raises SimulationTimeout when the cycle budget runs out first.
        """
        budget = max_cycles if max_cycles is not None else self.config.max_cycles
        taken = 0
        while not done(self):
            if taken >= budget:
                raise SimulationTimeout(budget, self.pc)
            self.step()
            taken += 1
        return taken

    def run_to_pc(self, stop_pc: int, max_cycles: Optional[int] = None) -> int:
        """Step until the PC reaches *stop_pc*"""
        return self.run_until(lambda core: core.pc == stop_pc, max_cycles)
