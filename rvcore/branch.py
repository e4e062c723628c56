"""
Branch condition evaluator
"""

from .isa import BranchCondition, MASK32, to_signed32


def branch_taken(cond: int, a: int, b: int, enable: bool = True) -> bool:
    """Evaluate branch condition *cond* (funct3) over rs1/rs2 values"""
    if not enable:
        return False
    a &= MASK32
    b &= MASK32
    if cond == BranchCondition.BEQ:
        return a == b
    if cond == BranchCondition.BNE:
        return a != b
    if cond == BranchCondition.BLT:
        return to_signed32(a) < to_signed32(b)
    if cond == BranchCondition.BGE:
        return to_signed32(a) >= to_signed32(b)
    if cond == BranchCondition.BLTU:
        return a < b
    if cond == BranchCondition.BGEU:
        return a >= b
    # 010 and 011 are unused encodings
    return False
