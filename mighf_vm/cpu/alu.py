"""
mighf VM — ALU Operations

All operands and results are unsigned 32-bit. Every function returns the
wrapped result; the engine decides whether the operation runs at all
(bounds checks, divide-by-zero) before calling in here.
"""

from ..config import WORD_BITS, WORD_MASK, HALF_MASK


def add32(a: int, b: int) -> int:
    return (a + b) & WORD_MASK


def sub32(a: int, b: int) -> int:
    return (a - b) & WORD_MASK


def mul32(a: int, b: int) -> int:
    """Low 32 bits of the product."""
    return (a * b) & WORD_MASK


def udiv32(a: int, b: int) -> int:
    """Unsigned quotient, truncated. Caller guarantees b != 0."""
    return (a // b) & WORD_MASK


def neg32(a: int) -> int:
    """Two's-complement negation: 0 stays 0, 1 becomes 0xFFFFFFFF."""
    return (-a) & WORD_MASK


def not32(a: int) -> int:
    return ~a & WORD_MASK


def lsl32(a: int, amount: int) -> int:
    """Logical shift left. Shifting by 32 or more clears the register."""
    if amount >= WORD_BITS:
        return 0
    return (a << amount) & WORD_MASK


def lsr32(a: int, amount: int) -> int:
    """Logical shift right. Shifting by 32 or more clears the register."""
    if amount >= WORD_BITS:
        return 0
    return (a & WORD_MASK) >> amount


def zext16(a: int) -> int:
    """Keep the low halfword, zero-extended to 32 bits."""
    return a & HALF_MASK
