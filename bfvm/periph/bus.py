"""
bfvm — Peripheral Bus

Routes register-addressed I/O (`.` and `,`) to whatever backs the
address. Lookup order for an address A:

  1. native handler   native_read[A] / native_write[A]
  2. device           devices[A]  (devices are numbered 0..n-1)
  3. tape             InputTape for reads, OutputTape for writes

With no devices or handlers attached, every access lands on the tapes,
which is the plain machine. Devices and native handlers let a host put
live behaviour (a console, a clock, a random source) at chosen addresses.

Wiring rule: native handlers must sit above the device range. A native
address lower than the device count is rejected with
OverlappingPeripheralAddresses.

Any exception raised by a device, a handler or the output tape's sink is
re-raised as PeripheralIOError, so the engine sees a single RuntimeFault
type. A failed tape write stores nothing.
"""

import logging
from typing import Callable, Dict, Optional, Protocol, Sequence

from ..config import CELL_MASK
from ..errors import OverlappingPeripheralAddresses, PeripheralIOError
from .tape import InputTape, OutputTape

log = logging.getLogger(__name__)


class Peripheral(Protocol):
    """A device on the bus. Values are 16-bit."""

    def read(self) -> int:
        ...

    def write(self, value: int) -> None:
        ...


class PeripheralBus:
    """Register-addressed I/O router."""

    def __init__(self, input_tape: Optional[InputTape] = None,
                 output_tape: Optional[OutputTape] = None,
                 devices: Sequence[Peripheral] = (),
                 native_read: Optional[Dict[int, Callable[[], int]]] = None,
                 native_write: Optional[Dict[int, Callable[[int], None]]] = None):
        self.input_tape = input_tape if input_tape is not None else InputTape()
        self.output_tape = output_tape if output_tape is not None else OutputTape()
        self._devices = list(devices)

        # addr -> handler
        self._native_read: Dict[int, Callable[[], int]] = {}
        self._native_write: Dict[int, Callable[[int], None]] = {}
        for addr, fn in (native_read or {}).items():
            self.register_io_handler(addr, read_fn=fn)
        for addr, fn in (native_write or {}).items():
            self.register_io_handler(addr, write_fn=fn)

    # --- Handler registration ---

    def register_io_handler(self, addr: int,
                            read_fn: Optional[Callable[[], int]] = None,
                            write_fn: Optional[Callable[[int], None]] = None):
        """Attach native read/write handlers at one address.

        Raises:
            OverlappingPeripheralAddresses: addr falls in the device range.
        """
        addr &= CELL_MASK
        if addr < len(self._devices):
            raise OverlappingPeripheralAddresses(len(self._devices), addr)
        if read_fn:
            self._native_read[addr] = read_fn
        if write_fn:
            self._native_write[addr] = write_fn
        log.debug("Native handler at $%04X (read=%s write=%s)",
                  addr, read_fn is not None, write_fn is not None)

    @property
    def device_count(self) -> int:
        return len(self._devices)

    # --- I/O ---

    def read(self, addr: int) -> int:
        """Read a 16-bit value for `,`."""
        addr &= CELL_MASK
        fn = self._native_read.get(addr)
        if fn is None and addr < len(self._devices):
            fn = self._devices[addr].read
        if fn is None:
            return self.input_tape.read(addr)
        try:
            return fn() & CELL_MASK
        except Exception as e:
            raise PeripheralIOError(addr, None, str(e)) from e

    def write(self, addr: int, value: int):
        """Write a 16-bit value for `.`."""
        addr &= CELL_MASK
        value &= CELL_MASK
        fn = self._native_write.get(addr)
        if fn is None and addr < len(self._devices):
            fn = self._devices[addr].write
        try:
            if fn is None:
                self.output_tape.write(addr, value)
            else:
                fn(value)
        except Exception as e:
            raise PeripheralIOError(addr, value, str(e)) from e
