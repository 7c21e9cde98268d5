"""
bfvm — 16-bit ALU

Every operation takes and returns plain ints in 0..0xFFFF. Wraparound is
the only overflow policy; nothing here can fail.

  inc16 / dec16   `+` `-` `>` `<` `}` `{`
  rotr16          `~`  (rotate right, bit0 -> bit15)
  nand16          `&`  (NOT (a AND b))
"""

from ..config import CELL_BITS, CELL_MASK


def inc16(value: int) -> int:
    return (value + 1) & CELL_MASK


def dec16(value: int) -> int:
    return (value - 1) & CELL_MASK


def rotr16(value: int, amount: int = 1) -> int:
    """Rotate a 16-bit value right by `amount` bits.

    With amount=1 the low bit moves to bit 15 and every other bit shifts
    down one place. Amounts are taken modulo 16.
    """
    amount %= CELL_BITS
    value &= CELL_MASK
    if not amount:
        return value
    return ((value >> amount) | (value << (CELL_BITS - amount))) & CELL_MASK


def nand16(a: int, b: int) -> int:
    """Bitwise NAND over 16 bits: 0xFFFF - (a & b)."""
    return ~(a & b) & CELL_MASK
