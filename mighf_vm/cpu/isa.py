"""
mighf VM — Instruction Set + Instruction Encoding

Every instruction has the same shape, whatever the opcode:

  opcode    — one of the 23 Opcode values below (0–22)
  op1, op2  — 8-bit operand selectors (register index, or PRINT mode)
  imm       — 32-bit immediate (literal, address, shift amount, or the
              packed TDRAW_PIXEL fields)

Fixed-width word layout (Instruction.encode / Instruction.decode):

  bits  0–7   opcode
  bits  8–15  op1
  bits 16–23  op2
  bits 24–31  (zero)
  bits 32–63  imm

TDRAW_PIXEL packs its three arguments into imm:

  bits  0–7   x register selector
  bits  8–15  y register selector
  bits 16–23  character code
  bits 24–31  (zero)
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

from ..config import BYTE_MASK, WORD_MASK


class Opcode(IntEnum):
    NOP = 0
    MOV = 1           # MOV Rn imm
    ADD = 2           # ADD Rn Rm
    SUB = 3           # SUB Rn Rm
    LOAD = 4          # LOAD Rn addr
    STORE = 5         # STORE Rn addr
    JMP = 6           # JMP addr
    CMP = 7           # CMP Rn Rm
    JE = 8            # JE addr
    HALT = 9
    AND = 10
    ORR = 11
    EOR = 12
    LSL = 13          # LSL Rn amount
    LSR = 14          # LSR Rn amount
    MUL = 15
    UDIV = 16
    NEG = 17          # NEG Rn
    MOVZ = 18         # MOVZ Rn imm
    MOVN = 19         # MOVN Rn imm
    PRINT = 20        # PRINT REG|MEM idx
    TDRAW_CLEAR = 21
    TDRAW_PIXEL = 22  # TDRAW_PIXEL Rx Ry c


# PRINT mode selector, carried in op1
PRINT_REG = 0
PRINT_MEM = 1


class IllegalOpcode(Exception):
    """Raised when a word carries an opcode value outside Opcode."""
    def __init__(self, value: int):
        self.value = value
        super().__init__(f"Illegal opcode value {value}")


def decode_opcode(value: int) -> Opcode:
    """Map a raw opcode number to Opcode, rejecting unknown values."""
    try:
        return Opcode(value)
    except ValueError:
        raise IllegalOpcode(value) from None


# ──────────────────────────────────────────────
# TDRAW_PIXEL immediate
# ──────────────────────────────────────────────

def pack_pixel(x_reg: int, y_reg: int, char_code: int) -> int:
    """Pack two register selectors and a character code into an immediate."""
    return ((x_reg & BYTE_MASK)
            | ((y_reg & BYTE_MASK) << 8)
            | ((char_code & BYTE_MASK) << 16))


def unpack_pixel(imm: int) -> Tuple[int, int, int]:
    """Inverse of pack_pixel → (x_reg, y_reg, char_code)."""
    return (imm & BYTE_MASK,
            (imm >> 8) & BYTE_MASK,
            (imm >> 16) & BYTE_MASK)


# ──────────────────────────────────────────────
# Instruction
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """One decoded instruction. Immutable once assembled.

    Fields are normalised on construction: opcode must be a known Opcode
    value (IllegalOpcode otherwise), op1/op2 keep their low 8 bits and imm
    wraps to 32 bits, the same widths the instruction word carries.
    """
    opcode: Opcode = Opcode.NOP
    op1: int = 0
    op2: int = 0
    imm: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'opcode', decode_opcode(self.opcode))
        object.__setattr__(self, 'op1', self.op1 & BYTE_MASK)
        object.__setattr__(self, 'op2', self.op2 & BYTE_MASK)
        object.__setattr__(self, 'imm', self.imm & WORD_MASK)

    def encode(self) -> int:
        """Pack into the 64-bit instruction word."""
        return (int(self.opcode)
                | ((self.op1 & BYTE_MASK) << 8)
                | ((self.op2 & BYTE_MASK) << 16)
                | ((self.imm & WORD_MASK) << 32))

    @classmethod
    def decode(cls, word: int) -> "Instruction":
        """Unpack a 64-bit instruction word.

        Raises IllegalOpcode if the opcode byte is not a known Opcode.
        """
        return cls(
            opcode=decode_opcode(word & BYTE_MASK),
            op1=(word >> 8) & BYTE_MASK,
            op2=(word >> 16) & BYTE_MASK,
            imm=(word >> 32) & WORD_MASK,
        )

    def __str__(self) -> str:
        return f"{self.opcode.name} op1={self.op1} op2={self.op2} imm={self.imm}"


NOP_INSTRUCTION = Instruction()
