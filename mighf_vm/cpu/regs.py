"""
mighf VM — CPU Register Set + Flags

Register model:
  R0–R7    — 8 general registers, unsigned 32-bit, wrap on write
  PC       — index of the next instruction in the instruction store
  zero     — zero flag: written only by CMP, read only by JE
  running  — run flag: cleared by HALT (or by reaching the end of the store)

PC is a plain Python int. JMP/JE store ``target - 1`` and the step loop
adds 1 afterwards, so for a jump to 0 it briefly holds -1.
"""

from ..config import REG_COUNT, WORD_MASK


class Registers:
    """General register file plus PC and the two machine flags."""

    __slots__ = ('_r', 'PC', 'zero', 'running')

    def __init__(self):
        self._r = [0] * REG_COUNT
        self.PC: int = 0          # Program counter (store index)
        self.zero: bool = False   # Zero flag
        self.running: bool = True

    # --- Register access ---

    @staticmethod
    def valid(index: int) -> bool:
        """True if index selects one of R0–R7."""
        return 0 <= index < REG_COUNT

    def __getitem__(self, index: int) -> int:
        return self._r[index]

    def __setitem__(self, index: int, value: int):
        self._r[index] = value & WORD_MASK

    def __len__(self) -> int:
        return REG_COUNT

    def values(self) -> list:
        """Copy of R0–R7, for snapshots and comparisons."""
        return list(self._r)

    # --- Display ---

    def display(self) -> str:
        """One-line register dump for trace output."""
        regs = ' '.join(f"R{i}={v:08X}" for i, v in enumerate(self._r))
        flags = ('Z' if self.zero else '.') + ('R' if self.running else '.')
        return f"PC={self.PC:04d} {regs} [{flags}]"

    def start(self):
        """Re-enter Running at PC 0. Registers and flags are kept."""
        self.PC = 0
        self.running = True

    def reset(self):
        """Reset to power-on state."""
        self._r = [0] * REG_COUNT
        self.PC = 0
        self.zero = False
        self.running = True
