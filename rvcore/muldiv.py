"""
M-extension multiply/divide unit
"""

from .isa import MASK32, MulDivOp, to_signed32

INT32_MIN = -0x80000000


def _div_trunc(dividend: int, divisor: int) -> int:
    """Signed division rounding toward zero"""
    # Python's // rounds toward -infinity
    quotient = abs(dividend) // abs(divisor)
    if (dividend < 0) != (divisor < 0):
        quotient = -quotient
    return quotient


def mult_div(op: int, a: int, b: int, valid: bool = True) -> int:
    """Compute M-extension *op* over rs1 value *a* and rs2 value *b*.

    Returns 0 when *valid* is false. Division by zero and signed overflow
    follow the RISC-V substitution table and never raise.
    """
    if not valid:
        return 0

    a &= MASK32
    b &= MASK32
    sa = to_signed32(a)
    sb = to_signed32(b)

    if op == MulDivOp.MUL:
        result = sa * sb
    elif op == MulDivOp.MULH:
        result = (sa * sb) >> 32
    elif op == MulDivOp.MULHSU:
        result = (sa * b) >> 32
    elif op == MulDivOp.MULHU:
        result = (a * b) >> 32
    elif op == MulDivOp.DIV:
        if sb == 0:
            result = -1
        elif sa == INT32_MIN and sb == -1:
            result = INT32_MIN
        else:
            result = _div_trunc(sa, sb)
    elif op == MulDivOp.DIVU:
        result = MASK32 if b == 0 else a // b
    elif op == MulDivOp.REM:
        if sb == 0:
            result = sa
        elif sa == INT32_MIN and sb == -1:
            result = 0
        else:
            result = sa - _div_trunc(sa, sb) * sb
    elif op == MulDivOp.REMU:
        result = a if b == 0 else a % b
    else:
        result = 0

    return result & MASK32
