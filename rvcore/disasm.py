"""
RV32IM disassembler used for execution traces
"""

from .immediate import extract_immediate
from .isa import (FUNCT7_MULDIV, ImmFormat, Instruction, Opcode, to_signed32)
from .regfile import RegisterFile

BRANCH_OPS = {0: 'beq', 1: 'bne', 4: 'blt', 5: 'bge', 6: 'bltu', 7: 'bgeu'}
LOAD_OPS = {0: 'lb', 1: 'lh', 2: 'lw', 4: 'lbu', 5: 'lhu'}
STORE_OPS = {0: 'sb', 1: 'sh', 2: 'sw'}
OP_IMM_OPS = {0: 'addi', 2: 'slti', 3: 'sltiu', 4: 'xori', 6: 'ori', 7: 'andi'}
OP_OPS = {0: 'add', 1: 'sll', 2: 'slt', 3: 'sltu', 4: 'xor', 5: 'srl', 6: 'or', 7: 'and'}
MULDIV_OPS = {0: 'mul', 1: 'mulh', 2: 'mulhsu', 3: 'mulhu',
              4: 'div', 5: 'divu', 6: 'rem', 7: 'remu'}


def fmt_imm(val: int) -> str:
    """Show as hex, using 8 digits for negative values"""
    val = to_signed32(val)
    if val < 0:
        return f"0x{val & 0xFFFFFFFF:08X}"
    return f"0x{val:X}"


def disassemble(word: int) -> str:
    """Disassemble instruction word to assembly string"""
    inst = Instruction(word)
    opcode = inst.opcode
    name = RegisterFile.get_name
    rd, rs1, rs2 = name(inst.rd), name(inst.rs1), name(inst.rs2)
    funct3 = inst.funct3

    if opcode == Opcode.LUI:
        return f"lui {rd},{fmt_imm(word >> 12)}"
    if opcode == Opcode.AUIPC:
        return f"auipc {rd},{fmt_imm(word >> 12)}"
    if opcode == Opcode.JAL:
        return f"jal {rd},{fmt_imm(extract_immediate(word, ImmFormat.J))}"
    if opcode == Opcode.JALR:
        return f"jalr {rd},{rs1},{fmt_imm(extract_immediate(word, ImmFormat.I))}"

    if opcode == Opcode.BRANCH and funct3 in BRANCH_OPS:
        imm = extract_immediate(word, ImmFormat.B)
        return f"{BRANCH_OPS[funct3]} {rs1},{rs2},{fmt_imm(imm)}"
    if opcode == Opcode.LOAD and funct3 in LOAD_OPS:
        imm = extract_immediate(word, ImmFormat.I)
        return f"{LOAD_OPS[funct3]} {rd},{fmt_imm(imm)}({rs1})"
    if opcode == Opcode.STORE and funct3 in STORE_OPS:
        imm = extract_immediate(word, ImmFormat.S)
        return f"{STORE_OPS[funct3]} {rs2},{fmt_imm(imm)}({rs1})"

    if opcode == Opcode.OP_IMM:
        imm = extract_immediate(word, ImmFormat.I)
        if funct3 == 1:
            return f"slli {rd},{rs1},{imm & 0x1F}"
        if funct3 == 5:
            op = 'srai' if inst.funct7 & 0x20 else 'srli'
            return f"{op} {rd},{rs1},{imm & 0x1F}"
        return f"{OP_IMM_OPS[funct3]} {rd},{rs1},{fmt_imm(imm)}"

    if opcode == Opcode.OP:
        if inst.funct7 == FUNCT7_MULDIV:
            op = MULDIV_OPS[funct3]
        elif inst.funct7 & 0x20 and funct3 == 0:
            op = 'sub'
        elif inst.funct7 & 0x20 and funct3 == 5:
            op = 'sra'
        else:
            op = OP_OPS[funct3]
        return f"{op} {rd},{rs1},{rs2}"

    if opcode == Opcode.SYSTEM and funct3 == 0:
        imm = word >> 20
        if imm == 0:
            return "ecall"
        if imm == 1:
            return "ebreak"

    if opcode == Opcode.FENCE:
        return "fence"

    return f"unknown(0x{word & 0xFFFFFFFF:08X})"
