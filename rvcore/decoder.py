"""
Instruction decoder: instruction word -> control signals
"""

from dataclasses import dataclass, replace
from typing import Dict

from .isa import (AluOp, ImmFormat, Instruction, MemSize, MulDivOp, Opcode,
                  WritebackSource, FUNCT7_MULDIV)


@dataclass(frozen=True)
class ControlBundle:
    """Control signals for one instruction.

    The defaults are the safe no-op used for FENCE, SYSTEM and any opcode
    the core does not implement.
    """
    reg_write: bool = False
    mem_read: bool = False
    mem_write: bool = False
    alu_src_is_imm: bool = False
    alu_op: AluOp = AluOp.ADD
    writeback_source: WritebackSource = WritebackSource.ALU
    branch_enable: bool = False
    jump: bool = False
    is_jalr: bool = False
    immediate_format: ImmFormat = ImmFormat.NONE
    memory_access_size: MemSize = MemSize.WORD
    mult_div_valid: bool = False
    mult_div_op: MulDivOp = MulDivOp.MUL


SAFE_DEFAULTS = ControlBundle()

# Per-opcode bundles; OP_IMM and OP are refined by funct3/funct7 below
_BASE: Dict[int, ControlBundle] = {
    Opcode.LUI: ControlBundle(
        reg_write=True, alu_src_is_imm=True, alu_op=AluOp.PASS_B,
        immediate_format=ImmFormat.U),
    Opcode.AUIPC: ControlBundle(
        reg_write=True, alu_src_is_imm=True, immediate_format=ImmFormat.U),
    Opcode.JAL: ControlBundle(
        reg_write=True, jump=True, writeback_source=WritebackSource.PC_PLUS4,
        immediate_format=ImmFormat.J),
    Opcode.JALR: ControlBundle(
        reg_write=True, jump=True, is_jalr=True, alu_src_is_imm=True,
        writeback_source=WritebackSource.PC_PLUS4, immediate_format=ImmFormat.I),
    Opcode.BRANCH: ControlBundle(
        branch_enable=True, alu_op=AluOp.SUB, immediate_format=ImmFormat.B),
    Opcode.LOAD: ControlBundle(
        reg_write=True, mem_read=True, alu_src_is_imm=True,
        writeback_source=WritebackSource.MEMORY, immediate_format=ImmFormat.I),
    Opcode.STORE: ControlBundle(
        mem_write=True, alu_src_is_imm=True, immediate_format=ImmFormat.S),
    Opcode.OP_IMM: ControlBundle(
        reg_write=True, alu_src_is_imm=True, immediate_format=ImmFormat.I),
    Opcode.OP: ControlBundle(reg_write=True),
}

# funct3 -> ALU op for OP_IMM and OP (shift-right and add/sub need funct7)
_FUNCT3_ALU: Dict[int, AluOp] = {
    0b000: AluOp.ADD,
    0b001: AluOp.SLL,
    0b010: AluOp.SLT,
    0b011: AluOp.SLTU,
    0b100: AluOp.XOR,
    0b101: AluOp.SRL,
    0b110: AluOp.OR,
    0b111: AluOp.AND,
}


def _access_size(funct3: int) -> MemSize:
    try:
        return MemSize(funct3)
    except ValueError:
        # reserved encodings access a full word
        return MemSize.WORD


def decode(word: int) -> ControlBundle:
    """Decode a 32-bit instruction word into its control bundle"""
    inst = Instruction(word)
    base = _BASE.get(inst.opcode)
    if base is None:
        return SAFE_DEFAULTS

    opcode = inst.opcode
    funct3 = inst.funct3
    alt = bool(inst.funct7 & 0x20)

    if opcode in (Opcode.LOAD, Opcode.STORE):
        return replace(base, memory_access_size=_access_size(funct3))

    if opcode == Opcode.OP_IMM:
        op = _FUNCT3_ALU[funct3]
        if op == AluOp.SRL and alt:
            op = AluOp.SRA
        return replace(base, alu_op=op)

    if opcode == Opcode.OP:
        if inst.funct7 == FUNCT7_MULDIV:
            return replace(base, mult_div_valid=True,
                           mult_div_op=MulDivOp(funct3),
                           writeback_source=WritebackSource.MULT_DIV)
        op = _FUNCT3_ALU[funct3]
        if alt and op == AluOp.ADD:
            op = AluOp.SUB
        elif alt and op == AluOp.SRL:
            op = AluOp.SRA
        return replace(base, alu_op=op)

    return base
