"""
Immediate extraction for the five RV32 instruction formats
"""

from .isa import ImmFormat, sign_extend


def extract_immediate(inst: int, fmt: int) -> int:
    """Gather and sign-extend the immediate of *inst* for format *fmt*.

    The result is a 32-bit unsigned value; unknown formats yield 0.
    """
    if fmt == ImmFormat.I:
        return sign_extend(inst >> 20, 12)
    if fmt == ImmFormat.S:
        imm = ((inst >> 25) & 0x7F) << 5
        imm |= (inst >> 7) & 0x1F
        return sign_extend(imm, 12)
    if fmt == ImmFormat.B:
        imm = ((inst >> 31) & 0x1) << 12
        imm |= ((inst >> 7) & 0x1) << 11
        imm |= ((inst >> 25) & 0x3F) << 5
        imm |= ((inst >> 8) & 0xF) << 1
        return sign_extend(imm, 13)
    if fmt == ImmFormat.U:
        return inst & 0xFFFFF000
    if fmt == ImmFormat.J:
        imm = ((inst >> 31) & 0x1) << 20
        imm |= ((inst >> 12) & 0xFF) << 12
        imm |= ((inst >> 20) & 0x1) << 11
        imm |= ((inst >> 21) & 0x3FF) << 1
        return sign_extend(imm, 21)
    return 0
