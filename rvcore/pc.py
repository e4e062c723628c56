"""
Program counter sequencer
"""

from .isa import MASK32

RESET_VECTOR = 0x00000000
IRQ_VECTOR = 0x00000100


def select_next_pc(pc: int, irq_pending: bool, jump: bool, branch_taken: bool,
                   target: int, irq_vector: int = IRQ_VECTOR,
                   stall: bool = False) -> int:
    """Pick the next PC: stall hold, then IRQ > jump > taken branch > pc+4"""
    if stall:
        return pc
    if irq_pending:
        return irq_vector & MASK32
    if jump or branch_taken:
        return target & MASK32
    return (pc + 4) & MASK32


class ProgramCounter:
    """PC register with reset and a single per-cycle advance"""

    def __init__(self, reset_vector: int = RESET_VECTOR,
                 irq_vector: int = IRQ_VECTOR):
        self.reset_vector = reset_vector & MASK32
        self.irq_vector = irq_vector & MASK32
        self.pc = self.reset_vector

    @property
    def pc_plus4(self) -> int:
        return (self.pc + 4) & MASK32

    def reset(self):
        self.pc = self.reset_vector

    def next_pc(self, irq_pending: bool = False, jump: bool = False,
                branch_taken: bool = False, target: int = 0,
                stall: bool = False) -> int:
        """Next PC for the given inputs, without committing it"""
        return select_next_pc(self.pc, irq_pending, jump, branch_taken,
                              target, self.irq_vector, stall)

    def advance(self, irq_pending: bool = False, jump: bool = False,
                branch_taken: bool = False, target: int = 0,
                stall: bool = False) -> int:
        """Commit the next PC and return it"""
        self.pc = self.next_pc(irq_pending, jump, branch_taken, target, stall)
        return self.pc
