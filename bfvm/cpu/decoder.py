"""
bfvm — Opcode Table

Maps each instruction token to (mnemonic, description). The engine builds
its dispatch table from the mnemonics; the descriptions feed the CLI
--opcodes listing and debug logs.

Group layout:
  pointer   >  <  @          offset moves (wrap within the page)
  page      }  {  #          page moves (wrap across pages)
  cell      +  -  ~  &       cell arithmetic (wrap modulo 65536)
  register  ^  *             transfer between R and the current cell
  I/O       .  ,             peripheral tapes addressed by R
  control   [  ]             loop brackets via the precomputed jump table
"""

from ..errors import RuntimeFault

# token -> (mnemonic, description)
OPCODES = {
    # ── Pointer ──
    '>': ('NEXT',  'offset = offset + 1'),
    '<': ('PREV',  'offset = offset - 1'),
    '@': ('JOFF',  'offset = cell'),

    # ── Page ──
    '}': ('NPAGE', 'page = page + 1'),
    '{': ('PPAGE', 'page = page - 1'),
    '#': ('JPAGE', 'page = cell'),

    # ── Cell ──
    '+': ('INC',   'cell = cell + 1'),
    '-': ('DEC',   'cell = cell - 1'),
    '~': ('ROR',   'cell = rotate_right(cell)'),
    '&': ('NAND',  'cell = ~(cell & R)'),

    # ── Register ──
    '^': ('LDR',   'R = cell'),
    '*': ('STR',   'cell = R'),

    # ── Peripheral I/O ──
    '.': ('OUT',   'wo_tape[R] = cell'),
    ',': ('IN',    'cell = ro_tape[R]'),

    # ── Control ──
    '[': ('LOOP',  'if cell == 0: jump past matching ]'),
    ']': ('END',   'if cell != 0: jump back past matching ['),
}


class IllegalOpcode(RuntimeFault):
    """Token outside the instruction alphabet reached the engine."""


def decode_opcode(token: str) -> str:
    """Return the mnemonic for one instruction token."""
    try:
        return OPCODES[token][0]
    except KeyError:
        raise IllegalOpcode(f"Illegal instruction {token!r}") from None


def opcode_listing() -> str:
    """Formatted opcode table."""
    return '\n'.join(f"  {tok}  {mnem:6s} {desc}"
                     for tok, (mnem, desc) in OPCODES.items())
