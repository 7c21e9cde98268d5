"""
bfvm — Error Taxonomy

  VMError
   ├── LoadError
   │    └── UnbalancedBrackets        program rejected, no VM constructed
   ├── RuntimeFault
   │    ├── PeripheralIOError         device/handler failed during `.` or `,`
   │    └── IllegalOpcode             (cpu.decoder) token outside the alphabet
   └── OverlappingPeripheralAddresses bus wiring rejected (also ValueError)

Nominal instructions never fault: arithmetic wraps and memory access is
total. RuntimeFault comes from attached peripheral devices, or from a
hand-built Program carrying a token outside the alphabet.
"""

from typing import Optional


class VMError(Exception):
    """Base class for every error raised by bfvm."""


class LoadError(VMError):
    """Raised when a program cannot be loaded."""


class UnbalancedBrackets(LoadError):
    """A `[` without a matching `]` or the other way round.

    `index` is the position in the filtered instruction stream; `line`
    and `col` point into the raw source (1-based).
    """
    def __init__(self, index: int, char: str, line: int = 0, col: int = 0):
        self.index = index
        self.char = char
        self.line = line
        self.col = col
        what = "Unmatched '['" if char == '[' else "Unexpected ']'"
        where = f" (line {line}, col {col})" if line else ""
        super().__init__(f"{what} at instruction {index}{where}")


class RuntimeFault(VMError):
    """Fatal condition during execution. The faulting step is not applied."""


class PeripheralIOError(RuntimeFault):
    """A peripheral device, native handler or output sink failed.

    `value` is None for reads.
    """
    def __init__(self, address: int, value: Optional[int] = None,
                 reason: str = ""):
        self.address = address
        self.value = value
        op = "read from" if value is None else f"write of ${value:04X} to"
        msg = f"Peripheral {op} ${address:04X} failed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class OverlappingPeripheralAddresses(VMError, ValueError):
    """Native handler addresses collide with the device address range."""
    def __init__(self, device_count: int, lowest_native: int):
        self.device_count = device_count
        self.lowest_native = lowest_native
        super().__init__(
            f"{device_count} devices occupy $0000-${device_count - 1:04X} "
            f"but a native handler is mapped at ${lowest_native:04X}"
        )
