"""
mighf Line Assembler.

Turns one line of mnemonic text into one Instruction. There are no labels,
directives or comments: a program is just a list of lines, and line N that
assembles becomes the next free slot of the instruction store.

Line format:
    MNEMONIC [ARG1 [ARG2 [ARG3]]]

  - Fields are separated by whitespace. Each field is scanned at most
    FIELD_LEN (31) characters at a time; a longer word spills over into the
    next field. Only the first MAX_FIELDS (4) fields are looked at.
  - Mnemonics are case-sensitive and must be given the exact number of
    arguments listed in the opcode table, otherwise the line is rejected.
  - Register arguments are R0..R7. Only the second character is read, as a
    digit; anything else yields an out-of-range selector, which the engine
    ignores at run time.
  - Numeric arguments are decimal, read like C atoi(): leading digits with
    an optional sign, anything non-numeric reads as 0, wrapped to 32 bits.

Operand forms:
  NONE     —                     e.g. NOP, HALT, TDRAW_CLEAR
  REG_IMM  — Rn imm              e.g. MOV R0 42, LOAD R1 100
  REG_REG  — Rn Rm               e.g. ADD R0 R1
  REG      — Rn                  e.g. NEG R3
  IMM      — imm                 e.g. JMP 0, JE 12
  PRINT    — REG|MEM idx         e.g. PRINT REG 0, PRINT MEM 100
  PIXEL    — Rx Ry c             e.g. TDRAW_PIXEL R0 R1 #
             (c is the first character of the field and must be
             a single-byte character, code point 0..255)
"""

from __future__ import annotations
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import re

from .config import BYTE_MASK, WORD_MASK, FIELD_LEN, MAX_FIELDS
from .cpu.isa import (
    Instruction, Opcode, PRINT_REG, PRINT_MEM, pack_pixel, unpack_pixel,
)

__all__ = ['Assembler', 'AssemblerError', 'assemble', 'assemble_line',
           'disassemble', 'atoi', 'OPCODES']


class AssemblerError(Exception):
    """Raised when a line cannot be assembled."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


# ──────────────────────────────────────────────
# Operand forms
# ──────────────────────────────────────────────

NONE = 'NONE'
REG = 'REG'
REG_REG = 'REG_REG'
REG_IMM = 'REG_IMM'
IMM = 'IMM'
PRINT = 'PRINT'
PIXEL = 'PIXEL'

# Argument count per form
FORM_ARGC = {
    NONE: 0,
    REG: 1,
    IMM: 1,
    REG_REG: 2,
    REG_IMM: 2,
    PRINT: 2,
    PIXEL: 3,
}

PRINT_MODES = {'REG': PRINT_REG, 'MEM': PRINT_MEM}


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: { 'MNEMONIC': (Opcode, form) }

OPCODES: Dict[str, Tuple[Opcode, str]] = {}

def _op(mnemonic: str, opcode: Opcode, form: str):
    """Register an opcode entry."""
    OPCODES[mnemonic] = (opcode, form)

_op('NOP',         Opcode.NOP,         NONE)
_op('MOV',         Opcode.MOV,         REG_IMM)
_op('ADD',         Opcode.ADD,         REG_REG)
_op('SUB',         Opcode.SUB,         REG_REG)
_op('LOAD',        Opcode.LOAD,        REG_IMM)
_op('STORE',       Opcode.STORE,       REG_IMM)
_op('JMP',         Opcode.JMP,         IMM)
_op('CMP',         Opcode.CMP,         REG_REG)
_op('JE',          Opcode.JE,          IMM)
_op('HALT',        Opcode.HALT,        NONE)
_op('AND',         Opcode.AND,         REG_REG)
_op('ORR',         Opcode.ORR,         REG_REG)
_op('EOR',         Opcode.EOR,         REG_REG)
_op('LSL',         Opcode.LSL,         REG_IMM)
_op('LSR',         Opcode.LSR,         REG_IMM)
_op('MUL',         Opcode.MUL,         REG_REG)
_op('UDIV',        Opcode.UDIV,        REG_REG)
_op('NEG',         Opcode.NEG,         REG)
_op('MOVZ',        Opcode.MOVZ,        REG_IMM)
_op('MOVN',        Opcode.MOVN,        REG_IMM)
_op('PRINT',       Opcode.PRINT,       PRINT)
_op('TDRAW_CLEAR', Opcode.TDRAW_CLEAR, NONE)
_op('TDRAW_PIXEL', Opcode.TDRAW_PIXEL, PIXEL)

# Reverse lookup for the disassembler
FORMS: Dict[Opcode, Tuple[str, str]] = {
    opcode: (mnem, form) for mnem, (opcode, form) in OPCODES.items()
}


# ──────────────────────────────────────────────
# Field scanning
# ──────────────────────────────────────────────

_ATOI_RE = re.compile(r'\s*([+-]?[0-9]+)')


def _scan_fields(line: str) -> List[str]:
    """Split a line into at most MAX_FIELDS fields of at most FIELD_LEN chars."""
    fields = []
    for word in line.split():
        for i in range(0, len(word), FIELD_LEN):
            fields.append(word[i:i + FIELD_LEN])
            if len(fields) == MAX_FIELDS:
                return fields
    return fields


def _parse_reg(token: str) -> int:
    """R<digit> → register selector. Not validated here."""
    code = ord(token[1]) if len(token) > 1 else 0
    return (code - ord('0')) & BYTE_MASK


def atoi(text: str) -> int:
    """C atoi(): optional leading whitespace and sign, then digits; else 0.

    Not wrapped. The shell uses it as is for addresses.
    """
    m = _ATOI_RE.match(text)
    return int(m.group(1)) if m else 0


def _parse_imm(token: str) -> int:
    """Decimal immediate with atoi() semantics, wrapped to 32 bits."""
    return atoi(token) & WORD_MASK


def _encode(opcode: Opcode, form: str, args: List[str]) -> Instruction:
    if form == NONE:
        return Instruction(opcode)
    if form == REG:
        return Instruction(opcode, op1=_parse_reg(args[0]))
    if form == IMM:
        return Instruction(opcode, imm=_parse_imm(args[0]))
    if form == REG_REG:
        return Instruction(opcode, op1=_parse_reg(args[0]), op2=_parse_reg(args[1]))
    if form == REG_IMM:
        return Instruction(opcode, op1=_parse_reg(args[0]), imm=_parse_imm(args[1]))
    if form == PRINT:
        mode = PRINT_MODES.get(args[0])
        if mode is None:
            raise AssemblerError(f"PRINT mode must be REG or MEM, got '{args[0]}'")
        return Instruction(opcode, op1=mode, imm=_parse_imm(args[1]))
    if form == PIXEL:
        char_code = ord(args[2][0])
        if char_code > BYTE_MASK:
            raise AssemblerError(f"pixel character '{args[2][0]}' does not fit in one byte")
        imm = pack_pixel(_parse_reg(args[0]), _parse_reg(args[1]), char_code)
        return Instruction(opcode, imm=imm)
    raise ValueError(f"Unknown operand form: {form}")


# ──────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────

def assemble_line(line: str, line_num: int = 0) -> Instruction:
    """Assemble one line of text.

    Raises AssemblerError for an empty line, an unknown mnemonic, a wrong
    argument count, an unknown PRINT mode, or a pixel character
    outside 0..255.
    """
    fields = _scan_fields(line)
    if not fields:
        raise AssemblerError("empty line", line_num, line)

    mnem, args = fields[0], fields[1:]
    entry = OPCODES.get(mnem)
    if entry is None:
        raise AssemblerError(f"unknown mnemonic '{mnem}'", line_num, line)

    opcode, form = entry
    if len(args) != FORM_ARGC[form]:
        raise AssemblerError(
            f"{mnem} takes {FORM_ARGC[form]} argument(s), got {len(args)}",
            line_num, line)

    try:
        return _encode(opcode, form, args)
    except AssemblerError as e:
        raise AssemblerError(str(e), line_num, line) from None


def assemble(line: str) -> Tuple[Optional[Instruction], bool]:
    """Assemble one line → (instruction, success).

    On failure the instruction is None and success is False; the caller
    is expected to skip the line.
    """
    try:
        return assemble_line(line), True
    except AssemblerError:
        return None, False


def disassemble(inst: Instruction) -> str:
    """Render an instruction as assembler text.

    Re-assembling the text gives back the same instruction as long as the
    register selectors are single digits and a pixel character is printable.
    """
    mnem, form = FORMS[inst.opcode]
    if form == NONE:
        return mnem
    if form == REG:
        return f"{mnem} R{inst.op1}"
    if form == IMM:
        return f"{mnem} {inst.imm}"
    if form == REG_REG:
        return f"{mnem} R{inst.op1} R{inst.op2}"
    if form == REG_IMM:
        return f"{mnem} R{inst.op1} {inst.imm}"
    if form == PRINT:
        names = {v: k for k, v in PRINT_MODES.items()}
        return f"{mnem} {names.get(inst.op1, f'?{inst.op1}')} {inst.imm}"
    if form == PIXEL:
        x_reg, y_reg, char_code = unpack_pixel(inst.imm)
        return f"{mnem} R{x_reg} R{y_reg} {chr(char_code)}"
    raise ValueError(f"Unknown operand form: {form}")


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

class Assembler:
    """Assemble a whole program, one instruction per line.

    Usage:
        asm = Assembler()
        instructions = asm.assemble(source_text)
        print(asm.get_listing())

    In permissive mode bad lines are collected in self.errors and skipped.
    In strict mode the first bad line raises AssemblerError.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.instructions: List[Instruction] = []
        self.errors: List[AssemblerError] = []
        self._sources: List[Tuple[int, str]] = []   # (line_num, raw text) per instruction

    def iter_lines(self, lines: Iterable[str]) -> Iterator[Tuple[int, Instruction]]:
        """Yield (line_num, instruction) for every line that assembles."""
        for line_num, line in enumerate(lines, 1):
            try:
                inst = assemble_line(line, line_num)
            except AssemblerError as e:
                if self.strict:
                    raise
                self.errors.append(e)
                continue
            self.instructions.append(inst)
            self._sources.append((line_num, line.rstrip('\r\n')))
            yield line_num, inst

    def assemble(self, source: str) -> List[Instruction]:
        """Assemble source text, return the instructions in order."""
        self.instructions = []
        self.errors = []
        self._sources = []
        for _ in self.iter_lines(source.splitlines()):
            pass
        return self.instructions

    def get_listing(self) -> str:
        """Return a listing: store index, source line, disassembly."""
        lines = [f"{'IDX':>4}  {'LINE':>4}  {'DISASSEMBLY':<28}  SOURCE", "-" * 60]
        for idx, (inst, (line_num, raw)) in enumerate(zip(self.instructions, self._sources)):
            lines.append(f"{idx:4d}  {line_num:4d}  {disassemble(inst):<28}  {raw.strip()}")
        return '\n'.join(lines)
