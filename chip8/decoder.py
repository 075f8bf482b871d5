"""
CHIP-8 Instruction Decoder
Turns a 16-bit opcode into an Instruction with named operand fields.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Optional

from .errors import InvalidOpcodeError


class Op(Enum):
    """CHIP-8 instructions, named after their conventional mnemonics."""
    CLS = auto()         # 00E0
    RET = auto()         # 00EE
    JP = auto()          # 1nnn
    CALL = auto()        # 2nnn
    SE_BYTE = auto()     # 3xnn
    SNE_BYTE = auto()    # 4xnn
    SE_REG = auto()      # 5xy0
    LD_BYTE = auto()     # 6xnn
    ADD_BYTE = auto()    # 7xnn
    LD_REG = auto()      # 8xy0
    OR = auto()          # 8xy1
    AND = auto()         # 8xy2
    XOR = auto()         # 8xy3
    ADD_REG = auto()     # 8xy4
    SUB = auto()         # 8xy5
    SHR = auto()         # 8xy6
    SUBN = auto()        # 8xy7
    SHL = auto()         # 8xyE
    SNE_REG = auto()     # 9xy0
    LD_I = auto()        # Annn
    JP_V0 = auto()       # Bnnn
    RND = auto()         # Cxnn
    DRW = auto()         # Dxyn
    SKP = auto()         # Ex9E
    SKNP = auto()        # ExA1
    LD_VX_DT = auto()    # Fx07
    LD_VX_K = auto()     # Fx0A
    LD_DT_VX = auto()    # Fx15
    LD_ST_VX = auto()    # Fx18
    ADD_I = auto()       # Fx1E
    LD_F = auto()        # Fx29
    LD_B = auto()        # Fx33
    LD_MEM_VX = auto()   # Fx55
    LD_VX_MEM = auto()   # Fx65


# Families with a single instruction, keyed by top nibble
_PRIMARY: Dict[int, Op] = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x5: Op.SE_REG,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0x9: Op.SNE_REG,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

# Families with a secondary selector
_FAMILY_0: Dict[int, Op] = {
    0xE0: Op.CLS,
    0xEE: Op.RET,
}

_FAMILY_8: Dict[int, Op] = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

_FAMILY_E: Dict[int, Op] = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

_FAMILY_F: Dict[int, Op] = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}


@dataclass(frozen=True)
class Instruction:
    """Decoded instruction with all operand fields extracted."""
    op: Op
    opcode: int
    x: int    # bits 8-11, register index
    y: int    # bits 4-7, register index
    n: int    # bits 0-3
    nn: int   # bits 0-7, immediate byte
    nnn: int  # bits 0-11, address
    
    def __str__(self) -> str:
        return disassemble_instruction(self)


def decode(opcode: int, pc: Optional[int] = None) -> Instruction:
    """Decode a 16-bit opcode. Raises InvalidOpcodeError for unknown patterns."""
    family = (opcode & 0xF000) >> 12
    
    if family == 0x0:
        op = _FAMILY_0.get(opcode & 0x00FF)
    elif family == 0x8:
        op = _FAMILY_8.get(opcode & 0x000F)
    elif family == 0xE:
        op = _FAMILY_E.get(opcode & 0x00FF)
    elif family == 0xF:
        op = _FAMILY_F.get(opcode & 0x00FF)
    else:
        op = _PRIMARY.get(family)
    
    if op is None:
        raise InvalidOpcodeError(opcode, pc)
    
    return Instruction(
        op=op,
        opcode=opcode,
        x=(opcode & 0x0F00) >> 8,
        y=(opcode & 0x00F0) >> 4,
        n=opcode & 0x000F,
        nn=opcode & 0x00FF,
        nnn=opcode & 0x0FFF,
    )


def disassemble_instruction(ins: Instruction) -> str:
    """Format an instruction in conventional CHIP-8 assembler syntax."""
    x, y = ins.x, ins.y
    formats = {
        Op.CLS: "CLS",
        Op.RET: "RET",
        Op.JP: f"JP 0x{ins.nnn:03X}",
        Op.CALL: f"CALL 0x{ins.nnn:03X}",
        Op.SE_BYTE: f"SE V{x:X}, 0x{ins.nn:02X}",
        Op.SNE_BYTE: f"SNE V{x:X}, 0x{ins.nn:02X}",
        Op.SE_REG: f"SE V{x:X}, V{y:X}",
        Op.LD_BYTE: f"LD V{x:X}, 0x{ins.nn:02X}",
        Op.ADD_BYTE: f"ADD V{x:X}, 0x{ins.nn:02X}",
        Op.LD_REG: f"LD V{x:X}, V{y:X}",
        Op.OR: f"OR V{x:X}, V{y:X}",
        Op.AND: f"AND V{x:X}, V{y:X}",
        Op.XOR: f"XOR V{x:X}, V{y:X}",
        Op.ADD_REG: f"ADD V{x:X}, V{y:X}",
        Op.SUB: f"SUB V{x:X}, V{y:X}",
        Op.SHR: f"SHR V{x:X}, V{y:X}",
        Op.SUBN: f"SUBN V{x:X}, V{y:X}",
        Op.SHL: f"SHL V{x:X}, V{y:X}",
        Op.SNE_REG: f"SNE V{x:X}, V{y:X}",
        Op.LD_I: f"LD I, 0x{ins.nnn:03X}",
        Op.JP_V0: f"JP V0, 0x{ins.nnn:03X}",
        Op.RND: f"RND V{x:X}, 0x{ins.nn:02X}",
        Op.DRW: f"DRW V{x:X}, V{y:X}, {ins.n}",
        Op.SKP: f"SKP V{x:X}",
        Op.SKNP: f"SKNP V{x:X}",
        Op.LD_VX_DT: f"LD V{x:X}, DT",
        Op.LD_VX_K: f"LD V{x:X}, K",
        Op.LD_DT_VX: f"LD DT, V{x:X}",
        Op.LD_ST_VX: f"LD ST, V{x:X}",
        Op.ADD_I: f"ADD I, V{x:X}",
        Op.LD_F: f"LD F, V{x:X}",
        Op.LD_B: f"LD B, V{x:X}",
        Op.LD_MEM_VX: f"LD [I], V{x:X}",
        Op.LD_VX_MEM: f"LD V{x:X}, [I]",
    }
    return formats[ins.op]


def disassemble(program: bytes, origin: int = 0x200) -> List[str]:
    """
    Disassemble a program image, one line per 2-byte word.
    
    Words that do not decode (data, sprites) are shown as raw bytes.
    """
    lines = []
    for offset in range(0, len(program) - 1, 2):
        opcode = (program[offset] << 8) | program[offset + 1]
        addr = origin + offset
        try:
            text = str(decode(opcode, addr))
        except InvalidOpcodeError:
            text = f"DW 0x{opcode:04X}"
        lines.append(f"0x{addr:03X}: {opcode:04X}  {text}")
    return lines
