"""Opcode decoding.

Every 16-bit word decodes to exactly one ``Op`` kind. Words with no
defined instruction decode to ``Op.UNKNOWN`` so the interpreter can
report them instead of skipping them.
"""

from enum import Enum
from functools import lru_cache
from typing import NamedTuple


class Op(Enum):
    CLS = "00E0"
    RET = "00EE"
    SYS = "0nnn"
    JP = "1nnn"
    CALL = "2nnn"
    SE_VX_KK = "3xkk"
    SNE_VX_KK = "4xkk"
    SE_VX_VY = "5xy0"
    LD_VX_KK = "6xkk"
    ADD_VX_KK = "7xkk"
    LD_VX_VY = "8xy0"
    OR = "8xy1"
    AND = "8xy2"
    XOR = "8xy3"
    ADD_VX_VY = "8xy4"
    SUB = "8xy5"
    SHR = "8xy6"
    SUBN = "8xy7"
    SHL = "8xyE"
    SNE_VX_VY = "9xy0"
    LD_I = "Annn"
    JP_V0 = "Bnnn"
    RND = "Cxkk"
    DRW = "Dxyn"
    SKP = "Ex9E"
    SKNP = "ExA1"
    LD_VX_DT = "Fx07"
    LD_VX_K = "Fx0A"
    LD_DT_VX = "Fx15"
    LD_ST_VX = "Fx18"
    ADD_I_VX = "Fx1E"
    LD_F_VX = "Fx29"
    LD_B_VX = "Fx33"
    LD_MEM_VX = "Fx55"
    LD_VX_MEM = "Fx65"
    UNKNOWN = "????"


class Instruction(NamedTuple):
    op: Op
    raw: int
    x: int    # second nibble (Vx)
    y: int    # third nibble (Vy)
    n: int    # fourth nibble
    kk: int   # low byte
    nnn: int  # low 12 bits


# (mask, pattern, op) - first match wins, so the exact 00E0/00EE
# entries must come before the 0nnn catch-all.
OPCODE_TABLE = (
    (0xFFFF, 0x00E0, Op.CLS),
    (0xFFFF, 0x00EE, Op.RET),
    (0xF000, 0x0000, Op.SYS),
    (0xF000, 0x1000, Op.JP),
    (0xF000, 0x2000, Op.CALL),
    (0xF000, 0x3000, Op.SE_VX_KK),
    (0xF000, 0x4000, Op.SNE_VX_KK),
    (0xF00F, 0x5000, Op.SE_VX_VY),
    (0xF000, 0x6000, Op.LD_VX_KK),
    (0xF000, 0x7000, Op.ADD_VX_KK),

    (0xF00F, 0x8000, Op.LD_VX_VY),
    (0xF00F, 0x8001, Op.OR),
    (0xF00F, 0x8002, Op.AND),
    (0xF00F, 0x8003, Op.XOR),
    (0xF00F, 0x8004, Op.ADD_VX_VY),
    (0xF00F, 0x8005, Op.SUB),
    (0xF00F, 0x8006, Op.SHR),
    (0xF00F, 0x8007, Op.SUBN),
    (0xF00F, 0x800E, Op.SHL),

    (0xF00F, 0x9000, Op.SNE_VX_VY),
    (0xF000, 0xA000, Op.LD_I),
    (0xF000, 0xB000, Op.JP_V0),
    (0xF000, 0xC000, Op.RND),
    (0xF000, 0xD000, Op.DRW),

    (0xF0FF, 0xE09E, Op.SKP),
    (0xF0FF, 0xE0A1, Op.SKNP),

    (0xF0FF, 0xF007, Op.LD_VX_DT),
    (0xF0FF, 0xF00A, Op.LD_VX_K),
    (0xF0FF, 0xF015, Op.LD_DT_VX),
    (0xF0FF, 0xF018, Op.LD_ST_VX),
    (0xF0FF, 0xF01E, Op.ADD_I_VX),
    (0xF0FF, 0xF029, Op.LD_F_VX),
    (0xF0FF, 0xF033, Op.LD_B_VX),
    (0xF0FF, 0xF055, Op.LD_MEM_VX),
    (0xF0FF, 0xF065, Op.LD_VX_MEM),
)


def classify(opcode):
    for mask, pattern, op in OPCODE_TABLE:
        if opcode & mask == pattern:
            return op
    return Op.UNKNOWN


@lru_cache(maxsize=None)
def decode(opcode):
    opcode &= 0xFFFF
    return Instruction(
        op=classify(opcode),
        raw=opcode,
        x=(opcode & 0x0F00) >> 8,
        y=(opcode & 0x00F0) >> 4,
        n=opcode & 0x000F,
        kk=opcode & 0x00FF,
        nnn=opcode & 0x0FFF,
    )
