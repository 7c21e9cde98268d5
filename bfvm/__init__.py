"""
bfvm — Paged 16-bit Tape Machine
================================
A virtual machine for an augmented tape language: 16-bit cells, 65536
pages of 65536 cells, a transfer/address register, indirect page and
offset jumps, NAND, rotate, and two register-addressed peripheral tapes.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────────────────────────┐
    │  Source  │───>│  Loader  │───>│            BFVM              │
    │  (text)  │    │ (Program │    │  Registers   PagedMemory     │
    └──────────┘    │  + jumps)│    │  PeripheralBus ─┬─ InputTape │
                    └──────────┘    │                 └─ OutputTape│
                                    └──────────────────────────────┘

    - loader.py:        alphabet filter + bracket jump table
    - mem/memory.py:    sparse page table, pages made on first write
    - cpu/regs.py:      register, page, offset, pc
    - cpu/alu.py:       16-bit wrap, rotate, NAND
    - cpu/decoder.py:   token -> mnemonic table
    - periph/:          RO/WO tapes and the device bus in front of them
    - emu.py:           fetch/execute loop, StopReason, snapshots

Instruction set:
    >  <     offset +1 / -1            }  {     page +1 / -1
    +  -     cell +1 / -1              @  #     offset = cell / page = cell
    [  ]     loop while cell != 0      ^  *     R = cell / cell = R
    .  ,     wo[R] = cell / cell = ro[R]
    ~        cell = rotate right 1     &        cell = ~(cell & R)
"""

__version__ = "0.1.0"

from .errors import (VMError, LoadError, UnbalancedBrackets, RuntimeFault,
                     PeripheralIOError, OverlappingPeripheralAddresses)
from .loader import Program, load, load_file
from .mem.memory import PagedMemory
from .cpu.regs import Registers
from .periph.tape import InputTape, OutputTape
from .periph.bus import Peripheral, PeripheralBus
from .emu import BFVM, StopReason, VMSnapshot


def run_source(source, input_data=(), *, max_steps=None, **kwargs) -> BFVM:
    """Load, build and run a program in one call.

    Full pipeline: load() -> BFVM -> run(max_steps). The returned VM holds
    the final state; `vm.last_stop` says why it stopped.

    Args:
        source: Program text (str or bytes).
        input_data: Values for the read-only tape, or an InputTape.
        max_steps: Instruction budget; None runs until the program stops.
        **kwargs: Passed through to BFVM (devices, output_tape, ...).

    Raises:
        LoadError: the program does not load.
    """
    vm = BFVM.from_source(source, input_data, **kwargs)
    vm.run(max_steps=max_steps)
    return vm
