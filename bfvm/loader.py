"""
Program Loader / Validator for bfvm.

Turns raw source text into an immutable Program: the instruction tokens
with every non-instruction character dropped, plus a jump table pairing
each `[` with its `]` in both directions.

The jump table is built once, here, with a single stack scan. The
engine then resolves every bracket jump with one dict lookup instead of
rescanning the program for the partner bracket.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple, Union

from .config import ALPHABET_SET
from .errors import UnbalancedBrackets

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Program:
    """A validated instruction sequence.

    code:       instruction tokens, one character each
    jumps:      bracket index -> partner bracket index (both directions)
    positions:  (line, col) in the raw source for each token
    """
    code: str
    jumps: Dict[int, int] = field(default_factory=dict, repr=False)
    positions: Tuple[Tuple[int, int], ...] = field(default=(), repr=False,
                                                   compare=False)

    def __len__(self) -> int:
        return len(self.code)

    def __getitem__(self, index: int) -> str:
        return self.code[index]

    def match(self, index: int) -> int:
        """Index of the bracket paired with the one at `index`."""
        return self.jumps[index]

    def source_position(self, index: int) -> Tuple[int, int]:
        """(line, col) of instruction `index` in the original source."""
        if index < len(self.positions):
            return self.positions[index]
        return (0, 0)

    @property
    def loop_count(self) -> int:
        return len(self.jumps) // 2


def load(source: Union[str, bytes]) -> Program:
    """Filter `source` to the instruction alphabet and pair its brackets.

    Bytes are decoded as latin-1 so each byte is one character.

    Raises:
        UnbalancedBrackets: a `]` with nothing open, or a `[` still open
            at the end of the source.
    """
    if isinstance(source, (bytes, bytearray)):
        source = bytes(source).decode('latin-1')

    tokens: List[str] = []
    positions: List[Tuple[int, int]] = []
    jumps: Dict[int, int] = {}
    pending: List[int] = []

    line, col = 1, 0
    for ch in source:
        if ch == '\n':
            line += 1
            col = 0
            continue
        col += 1
        if ch not in ALPHABET_SET:
            continue

        index = len(tokens)
        tokens.append(ch)
        positions.append((line, col))

        if ch == '[':
            pending.append(index)
        elif ch == ']':
            if not pending:
                raise UnbalancedBrackets(index, ']', line, col)
            opener = pending.pop()
            jumps[opener] = index
            jumps[index] = opener

    if pending:
        index = pending[-1]
        raise UnbalancedBrackets(index, '[', *positions[index])

    program = Program(''.join(tokens), jumps, tuple(positions))
    log.debug("Loaded program: %d instructions, %d loops",
              len(program), program.loop_count)
    return program


def load_file(path: Union[str, Path]) -> Program:
    """Read a program file and load it.

    Undecodable bytes are replaced; they are never instructions anyway.
    """
    text = Path(path).read_text(encoding='utf-8', errors='replace')
    return load(text)
