"""
bfvm — Register and Pointer State

  R       — 16-bit transfer/address register (peripheral address for `.` `,`)
  page    — 16-bit current page index
  offset  — 16-bit data pointer within the page
  pc      — instruction cursor into the Program (not a data address)
  steps   — executed instruction counter

(page, offset) is the data pointer. Both halves wrap modulo 65536 on
every write, so the pointer always names a valid cell.
"""

from ..config import CELL_MASK


class Registers:
    """Machine register set.

    `register`, `page` and `offset` mask on assignment. `pc` is an
    unbounded index into the program and is not masked.
    """

    __slots__ = ('_register', '_page', '_offset', 'pc', 'steps')

    def __init__(self):
        self._register: int = 0
        self._page: int = 0
        self._offset: int = 0
        self.pc: int = 0
        self.steps: int = 0

    @property
    def register(self) -> int:
        return self._register

    @register.setter
    def register(self, value: int):
        self._register = value & CELL_MASK

    @property
    def page(self) -> int:
        return self._page

    @page.setter
    def page(self, value: int):
        self._page = value & CELL_MASK

    @property
    def offset(self) -> int:
        return self._offset

    @offset.setter
    def offset(self, value: int):
        self._offset = value & CELL_MASK

    @property
    def pointer(self) -> tuple:
        """(page, offset)"""
        return (self._page, self._offset)

    # --- Display ---

    def display(self) -> str:
        """One-line state dump for logs."""
        return (f"PC={self.pc:<6d} PAGE={self._page:04X} "
                f"OFF={self._offset:04X} R={self._register:04X} "
                f"STEPS={self.steps}")

    def reset(self):
        """Back to power-on state."""
        self._register = 0
        self._page = 0
        self._offset = 0
        self.pc = 0
        self.steps = 0
