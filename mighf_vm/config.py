"""
mighf VM — Machine Geometry + Run Options

Geometry is fixed for the ISA and shared by every module:

  MEM_SIZE   1024 bytes of data memory, also the instruction store capacity
  REG_COUNT  8 general registers, R0–R7
  WORD_MASK  registers and immediates are unsigned 32-bit
  FIELD_LEN  assembler fields are scanned at most 31 characters at a time

Run-time options (strict mode, step limit, trace) are carried by VMConfig
and handed to Machine. The CLI builds one from its arguments.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
#  MACHINE GEOMETRY
# =============================================================================
MEM_SIZE = 1024           # data memory bytes == instruction store slots
REG_COUNT = 8             # R0..R7
WORD_BITS = 32
WORD_MASK = 0xFFFFFFFF    # register / immediate width
BYTE_MASK = 0xFF          # memory cell + operand selector width
HALF_MASK = 0xFFFF        # MOVZ keeps the low halfword


# =============================================================================
#  ASSEMBLER LIMITS
# =============================================================================
MAX_FIELDS = 4            # mnemonic + up to 3 arguments
FIELD_LEN = 31            # characters per scanned field


# =============================================================================
#  SHELL
# =============================================================================
PROMPT = "coreshell> "
BANNER = "Welcome to mighf-embedded micro-arch shell!"


@dataclass
class VMConfig:
    """Run-time options for a Machine.

    strict:     stop a run on the first fault and make the loader raise
                on the first line it cannot assemble
    max_steps:  stop a run after this many executed instructions
                (None = run until HALT or the end of the store)
    trace:      log every executed instruction at DEBUG level
    """
    strict: bool = False
    max_steps: Optional[int] = None
    trace: bool = False
