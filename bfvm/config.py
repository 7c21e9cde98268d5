"""
bfvm — Machine Geometry and Run Defaults

The geometry is fixed by the instruction set: `@` and `#` reinterpret a
cell as an offset or a page index, so cell width, offset width and page
index width are all the same 16 bits. None of these are user-configurable.

Memory layout:
  page    0x0000–0xFFFF   65536 pages, allocated on first write
  offset  0x0000–0xFFFF   65536 cells per page
  cell    0x0000–0xFFFF   16-bit unsigned, wraps on overflow

Peripheral tapes are addressed by the 16-bit register:
  RO tape  0x0000–0xFFFF  external input, reads past the end return 0
  WO tape  0x0000–0xFFFF  external output, each write overwrites its slot
"""

# =============================================================================
#  CELL / ADDRESS WIDTH
# =============================================================================
CELL_BITS = 16
CELL_MASK = 0xFFFF          # every cell, offset, page and register wraps here

PAGE_SIZE = 0x10000         # cells per page
TAPE_SIZE = 0x10000         # slots on each peripheral tape

# Byte size of a materialized page (array('H') backing, 2 bytes per cell)
PAGE_BYTES = PAGE_SIZE * 2


# =============================================================================
#  INSTRUCTION ALPHABET
# =============================================================================
ALPHABET = "><+-[].,@^*~&#}{"
ALPHABET_SET = frozenset(ALPHABET)


# =============================================================================
#  RUN DEFAULTS
# =============================================================================
DEFAULT_MAX_STEPS = None    # None = run until halt; the core enforces no timeout
DEFAULT_ROTATE_AMOUNT = 1   # `~` rotates right by this many bits

# Hexdump layout used by the memory diagnostics and the CLI --dump flag
HEXDUMP_WIDTH = 8           # cells per line
