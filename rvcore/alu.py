"""
Integer ALU
"""

from typing import Tuple

from .isa import AluOp, MASK32, to_signed32


def alu(op: int, a: int, b: int) -> Tuple[int, bool]:
    """Compute *op* over two 32-bit operands and return (result, zero)"""
    a &= MASK32
    b &= MASK32
    shamt = b & 0x1F

    if op == AluOp.ADD:
        result = a + b
    elif op == AluOp.SUB:
        result = a - b
    elif op == AluOp.AND:
        result = a & b
    elif op == AluOp.OR:
        result = a | b
    elif op == AluOp.XOR:
        result = a ^ b
    elif op == AluOp.SLL:
        result = a << shamt
    elif op == AluOp.SRL:
        result = a >> shamt
    elif op == AluOp.SRA:
        # Python's >> on a negative int keeps the sign
        result = to_signed32(a) >> shamt
    elif op == AluOp.SLT:
        result = 1 if to_signed32(a) < to_signed32(b) else 0
    elif op == AluOp.SLTU:
        result = 1 if a < b else 0
    elif op == AluOp.PASS_B:
        result = b
    else:
        result = 0

    result &= MASK32
    return result, result == 0
