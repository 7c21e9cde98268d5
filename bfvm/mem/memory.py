"""
bfvm — Paged Memory

Address space:
  65536 pages × 65536 cells × 16 bits = 8 GiB if fully materialized.

Only touched pages exist. The page table is a dict of page index ->
array('H'); a page is created on its first write. Reads of an absent page
return 0 and leave the page table alone, so a program that only scans
memory never allocates.

read() and write() are total: page, offset and value are masked to 16
bits and there is no bounds error. Pointer wraparound is the engine's job.
"""

from array import array
from typing import Dict, Iterable, List, Tuple

from ..config import CELL_MASK, PAGE_BYTES, PAGE_SIZE, HEXDUMP_WIDTH


class PagedMemory:
    """Sparse 16-bit paged memory."""

    def __init__(self):
        # page index -> 65536-cell backing array
        self._pages: Dict[int, array] = {}

    # --- Core read/write ---

    def read(self, page: int, offset: int) -> int:
        """Read the cell at (page, offset). Absent pages read as 0."""
        data = self._pages.get(page & CELL_MASK)
        if data is None:
            return 0
        return data[offset & CELL_MASK]

    def write(self, page: int, offset: int, value: int):
        """Write the cell at (page, offset), materializing the page."""
        page &= CELL_MASK
        data = self._pages.get(page)
        if data is None:
            data = self._materialize(page)
        data[offset & CELL_MASK] = value & CELL_MASK

    def _materialize(self, page: int) -> array:
        data = array('H', bytes(PAGE_BYTES))
        self._pages[page] = data
        return data

    # --- Page table inspection ---

    def is_materialized(self, page: int) -> bool:
        return (page & CELL_MASK) in self._pages

    @property
    def pages(self) -> List[int]:
        """Sorted indices of materialized pages."""
        return sorted(self._pages)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def clear(self):
        """Drop every page (all cells back to 0)."""
        self._pages.clear()

    # --- Bulk load ---

    def load_page(self, page: int, values: Iterable[int], start: int = 0):
        """Preload consecutive cells of one page starting at `start`.

        Values are masked to 16 bits. Writing past offset $FFFF wraps to
        the start of the same page, matching `>` semantics.
        """
        for i, value in enumerate(values):
            self.write(page, start + i, value)

    # --- Snapshots ---

    def snapshot(self, page: int, start: int = 0,
                 end: int = PAGE_SIZE - 1) -> Tuple[int, ...]:
        """Copy cells start..end (inclusive) of one page.

        start and end are masked to 16 bits like any offset. An end below
        start wraps past $FFFF back to $0000 within the same page, as
        hexdump() does.
        """
        start &= CELL_MASK
        length = ((end - start) & CELL_MASK) + 1
        data = self._pages.get(page & CELL_MASK)
        if data is None:
            return (0,) * length
        if start + length <= PAGE_SIZE:
            return tuple(data[start:start + length])
        return tuple(data[start:]) + tuple(data[:start + length - PAGE_SIZE])

    @staticmethod
    def diff_snapshots(snap_a: Tuple[int, ...], snap_b: Tuple[int, ...],
                       base: int = 0) -> Dict[int, Tuple[int, int]]:
        """Compare two snapshots, return {offset: (old, new)} for changes."""
        changes = {}
        for i in range(min(len(snap_a), len(snap_b))):
            if snap_a[i] != snap_b[i]:
                changes[base + i] = (snap_a[i], snap_b[i])
        return changes

    # --- Hex dump ---

    def hexdump(self, page: int, start: int, length: int = 64) -> str:
        """Hex dump of `length` cells of one page, HEXDUMP_WIDTH per line."""
        page &= CELL_MASK
        lines = []
        for row in range(0, length, HEXDUMP_WIDTH):
            offset = (start + row) & CELL_MASK
            cells = ' '.join(f'{self.read(page, offset + i):04X}'
                             for i in range(min(HEXDUMP_WIDTH, length - row)))
            lines.append(f'{page:04X}:{offset:04X}  {cells}')
        return '\n'.join(lines)
