"""
mighf VM — a minimal virtual CPU
================================
Eight 32-bit registers, 1024 bytes of memory, a 1024-slot instruction
store and a fetch-decode-execute loop, fed by a line assembler.

Architecture:
    ┌───────────┐    ┌───────────┐    ┌─────────────┐    ┌──────────┐
    │ Program   │───>│ Assembler │───>│ Instruction │───>│ Machine  │───> Terminal
    │ text      │    │ (per line)│    │ store       │    │ (engine) │
    └───────────┘    └───────────┘    └─────────────┘    └──────────┘

    - assembler.py:       line → Instruction, plus disassembler + listing
    - loader.py:          text/file → InstructionStore, skipping bad lines
    - emu.py:             Machine: step/run, per-opcode handlers, faults
    - cpu/isa.py:         Opcode, Instruction, pixel packing, word encoding
    - cpu/regs.py:        R0–R7, PC, zero flag, run flag
    - cpu/alu.py:         32-bit wrapping arithmetic
    - mem/memory.py:      data memory + instruction store
    - periph/terminal.py: ANSI clear / place-character / PRINT output
    - shell.py:           interactive coreshell
"""

__version__ = "0.1.0"

from .config import VMConfig
from .cpu.isa import Opcode, Instruction, IllegalOpcode
from .assembler import Assembler, AssemblerError, assemble, assemble_line, disassemble
from .emu import Machine, StopReason, Fault
from .loader import LoadResult
