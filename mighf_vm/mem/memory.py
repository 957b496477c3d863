"""
mighf VM — Data Memory + Instruction Store

Two separate address spaces share one size (MEM_SIZE = 1024):

  Memory            1024 unsigned bytes, addressed by LOAD/STORE/PRINT MEM
  InstructionStore  1024 Instruction slots, addressed by the PC

Neither raises on a bad address during execution; the engine checks
valid() first and skips the instruction. The raw accessors here do raise
IndexError, so a caller that forgets the check fails loudly in tests.
"""

from typing import Dict, List

from ..config import MEM_SIZE, BYTE_MASK
from ..cpu.isa import Instruction, NOP_INSTRUCTION


class Memory:
    """Flat byte-addressable data memory."""

    SIZE = MEM_SIZE

    def __init__(self):
        self._mem = bytearray(self.SIZE)

    @classmethod
    def valid(cls, addr: int) -> bool:
        return 0 <= addr < cls.SIZE

    def __len__(self) -> int:
        return self.SIZE

    # --- Core read/write ---

    def read8(self, addr: int) -> int:
        if not self.valid(addr):
            raise IndexError(f"memory address {addr} out of range")
        return self._mem[addr]

    def write8(self, addr: int, value: int):
        """Write the low byte of value."""
        if not self.valid(addr):
            raise IndexError(f"memory address {addr} out of range")
        self._mem[addr] = value & BYTE_MASK

    # --- Snapshots ---

    def snapshot(self) -> bytes:
        return bytes(self._mem)

    def diff_snapshots(self, snap_a: bytes, snap_b: bytes) -> Dict[int, tuple]:
        """Compare two snapshots, return {addr: (old, new)} for changes."""
        return {
            addr: (a, b)
            for addr, (a, b) in enumerate(zip(snap_a, snap_b))
            if a != b
        }

    def clear(self):
        self._mem = bytearray(self.SIZE)

    # --- Hex dump ---

    def hexdump(self, start: int = 0, length: int = 64) -> str:
        """Produce a hex dump of memory for debugging."""
        lines = []
        end = min(start + length, self.SIZE)
        for addr in range(start, end, 16):
            row = self._mem[addr:min(addr + 16, end)]
            hex_bytes = ' '.join(f'{b:02X}' for b in row)
            ascii_bytes = ''.join(chr(b) if 0x20 <= b < 0x7F else '.' for b in row)
            lines.append(f'{addr:04d}  {hex_bytes:<47}  {ascii_bytes}')
        return '\n'.join(lines)


class InstructionStore:
    """Fixed-capacity program memory.

    Slots beyond the loaded program hold the all-zero instruction (NOP).
    """

    CAPACITY = MEM_SIZE

    def __init__(self):
        self._slots: List[Instruction] = [NOP_INSTRUCTION] * self.CAPACITY
        self.count = 0

    def __len__(self) -> int:
        return self.CAPACITY

    @property
    def full(self) -> bool:
        return self.count >= self.CAPACITY

    def fetch(self, pc: int) -> Instruction:
        if not 0 <= pc < self.CAPACITY:
            raise IndexError(f"program counter {pc} out of range")
        return self._slots[pc]

    def append(self, inst: Instruction) -> int:
        """Store inst in the next free slot and return its index."""
        if self.full:
            raise IndexError("instruction store is full")
        index = self.count
        self._slots[index] = inst
        self.count += 1
        return index

    def loaded(self) -> List[Instruction]:
        """The instructions of the current program, in order."""
        return self._slots[:self.count]

    def clear(self):
        self._slots = [NOP_INSTRUCTION] * self.CAPACITY
        self.count = 0
