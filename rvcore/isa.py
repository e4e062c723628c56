"""
RV32IM encodings and bit helpers
"""

from enum import IntEnum

MASK32 = 0xFFFFFFFF

# ADDI x0, x0, 0
NOP = 0x00000013


class Opcode(IntEnum):
    """Major opcodes (instruction bits [6:0])"""
    LOAD = 0x03
    FENCE = 0x0F
    OP_IMM = 0x13
    AUIPC = 0x17
    STORE = 0x23
    OP = 0x33
    LUI = 0x37
    BRANCH = 0x63
    JALR = 0x67
    JAL = 0x6F
    SYSTEM = 0x73


class AluOp(IntEnum):
    ADD = 0
    SUB = 1
    AND = 2
    OR = 3
    XOR = 4
    SLL = 5
    SRL = 6
    SRA = 7
    SLT = 8
    SLTU = 9
    PASS_B = 10


class MulDivOp(IntEnum):
    """M-extension operations, numbered by their funct3"""
    MUL = 0b000
    MULH = 0b001
    MULHSU = 0b010
    MULHU = 0b011
    DIV = 0b100
    DIVU = 0b101
    REM = 0b110
    REMU = 0b111


class BranchCondition(IntEnum):
    """Branch conditions, numbered by their funct3"""
    BEQ = 0b000
    BNE = 0b001
    BLT = 0b100
    BGE = 0b101
    BLTU = 0b110
    BGEU = 0b111


class ImmFormat(IntEnum):
    NONE = 0
    I = 1
    S = 2
    B = 3
    U = 4
    J = 5


class MemSize(IntEnum):
    """Load/store access sizes, numbered by their funct3"""
    BYTE = 0b000
    HALF = 0b001
    WORD = 0b010
    BYTE_UNSIGNED = 0b100
    HALF_UNSIGNED = 0b101

    @property
    def unsigned(self) -> bool:
        return self in (MemSize.BYTE_UNSIGNED, MemSize.HALF_UNSIGNED)

    @property
    def width(self) -> int:
        """Access width in bytes"""
        return {0b00: 1, 0b01: 2}.get(self & 0b11, 4)


class WritebackSource(IntEnum):
    ALU = 0
    MEMORY = 1
    PC_PLUS4 = 2
    IMMEDIATE = 3
    MULT_DIV = 4


# funct7 value that routes an OP instruction to the multiply/divide unit
FUNCT7_MULDIV = 0b0000001


class Instruction:
    """Read-only field views over a 32-bit instruction word"""

    __slots__ = ('word',)

    def __init__(self, word: int):
        self.word = word & MASK32

    @property
    def opcode(self) -> int:
        return self.word & 0x7F

    @property
    def rd(self) -> int:
        return (self.word >> 7) & 0x1F

    @property
    def funct3(self) -> int:
        return (self.word >> 12) & 0x7

    @property
    def rs1(self) -> int:
        return (self.word >> 15) & 0x1F

    @property
    def rs2(self) -> int:
        return (self.word >> 20) & 0x1F

    @property
    def funct7(self) -> int:
        return (self.word >> 25) & 0x7F

    def __repr__(self) -> str:
        return f"Instruction(0x{self.word:08X})"


def u32(value: int) -> int:
    """Mask to unsigned 32 bits"""
    return value & MASK32


def to_signed32(value: int) -> int:
    """Convert 32-bit unsigned value to signed integer"""
    value = value & MASK32
    if value & 0x80000000:
        return value - 0x100000000
    return value


def sign_extend(value: int, bits: int) -> int:
    """Sign extend a *bits*-wide value to 32 bits (result is unsigned)"""
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        return value | (~((1 << bits) - 1) & MASK32)
    return value
