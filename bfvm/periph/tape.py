"""
bfvm — Peripheral Tapes

Two tapes, both addressed by the 16-bit register R:

  InputTape   read-only, supplied before the run. `,` copies ro[R] into
              the current cell. Addresses past the supplied data read 0.
  OutputTape  write-only from the program's side. `.` stores the current
              cell at wo[R], overwriting whatever was there. Only written
              slots exist; the rest read 0.

Neither tape is a live stream: the core never blocks on I/O. To watch
output as it is produced, pass a `sink` callable to OutputTape; it is
called with (addr, value) on every write, before the slot is stored. A
sink that raises leaves the slot and the write count untouched.

Slot values in the surrogate range $D800-$DFFF have no character of their
own; the text view shows them as U+FFFD.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from ..config import CELL_MASK, TAPE_SIZE

log = logging.getLogger(__name__)

SURROGATE_LO = 0xD800
SURROGATE_HI = 0xDFFF


def slot_char(value: int) -> str:
    """One tape slot as a printable character."""
    if SURROGATE_LO <= value <= SURROGATE_HI:
        return '\ufffd'
    return chr(value)


class InputTape:
    """Read-only peripheral tape."""

    def __init__(self, values: Iterable[int] = ()):
        data = [v & CELL_MASK for v in values]
        if len(data) > TAPE_SIZE:
            log.warning("Input tape has %d values; only the first %d are "
                        "addressable", len(data), TAPE_SIZE)
            data = data[:TAPE_SIZE]
        self._data = tuple(data)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'InputTape':
        """One tape slot per byte."""
        return cls(bytes(data))

    @classmethod
    def from_text(cls, text: str) -> 'InputTape':
        """One tape slot per character (code point masked to 16 bits)."""
        return cls(ord(ch) for ch in text)

    def read(self, addr: int) -> int:
        addr &= CELL_MASK
        if addr < len(self._data):
            return self._data[addr]
        return 0

    @property
    def values(self) -> tuple:
        return self._data

    def __len__(self) -> int:
        return len(self._data)


class OutputTape:
    """Write-only peripheral tape with sparse storage."""

    def __init__(self, sink: Optional[Callable[[int, int], None]] = None):
        self._slots: Dict[int, int] = {}
        self.sink = sink
        self.writes: int = 0

    def write(self, addr: int, value: int):
        addr &= CELL_MASK
        value &= CELL_MASK
        if self.sink is not None:
            self.sink(addr, value)
        self._slots[addr] = value
        self.writes += 1

    def read(self, addr: int) -> int:
        """Inspect a slot from outside the VM. Unwritten slots are 0."""
        return self._slots.get(addr & CELL_MASK, 0)

    @property
    def contents(self) -> Dict[int, int]:
        """Written slots as {addr: value}, in address order."""
        return {addr: self._slots[addr] for addr in sorted(self._slots)}

    def to_list(self) -> List[int]:
        """Dense copy from slot 0 up to the highest written slot."""
        if not self._slots:
            return []
        return [self._slots.get(i, 0) for i in range(max(self._slots) + 1)]

    def to_bytes(self) -> bytes:
        """Dense copy, low byte of each slot."""
        return bytes(v & 0xFF for v in self.to_list())

    def to_text(self) -> str:
        """Dense copy, each slot as one character."""
        return ''.join(slot_char(v) for v in self.to_list())

    def clear(self):
        self._slots.clear()
        self.writes = 0

    def __len__(self) -> int:
        return len(self._slots)
