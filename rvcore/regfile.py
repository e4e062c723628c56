"""
Register file
"""

from typing import List

from .isa import MASK32

NUM_REGS = 32


class RegisterFile:
    """31 stored RISC-V registers (x1-x31); x0 is hardwired to 0"""

    def __init__(self):
        self.regs: List[int] = [0] * (NUM_REGS - 1)

    @staticmethod
    def _check(reg: int):
        if not 0 <= reg < NUM_REGS:
            raise ValueError(f"Register index {reg} out of range (x0-x31)")

    def read(self, reg: int) -> int:
        """Read register value (x0 always returns 0)"""
        self._check(reg)
        if reg == 0:
            return 0
        return self.regs[reg - 1]

    def write(self, reg: int, value: int, enable: bool = True):
        """Write register value (x0 writes and disabled writes are ignored)"""
        self._check(reg)
        if not enable or reg == 0:
            return
        self.regs[reg - 1] = value & MASK32

    def reset(self):
        self.regs = [0] * (NUM_REGS - 1)

    def snapshot(self) -> List[int]:
        """All 32 architectural register values, x0 included"""
        return [0] + list(self.regs)

    @staticmethod
    def get_name(reg: int) -> str:
        """Get register name (x0-x31)"""
        return f"x{reg}"
