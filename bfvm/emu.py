"""
bfvm — Execution Engine

Integrates:
  - Program + jump table (loader.py)
  - Paged memory (mem/memory.py)
  - Register / pointer state (cpu/regs.py)
  - 16-bit ALU (cpu/alu.py)
  - Peripheral bus + tapes (periph/)

Execution model, one step:
  1. If pc is past the last instruction → HALT, nothing changes
  2. Fetch token at pc, look up its handler
  3. Run the handler → update memory, pointer, register, tapes
  4. pc += 1 (bracket handlers first move pc onto the partner bracket)
  5. steps += 1

Termination reasons:
  - HALT:     pc ran off the end of the program
  - TIMEOUT:  run(max_steps) budget used up before HALT
  - FAULT:    a RuntimeFault (peripheral device failure, illegal token)

A faulting step changes nothing: handlers compute everything that can
fail before they write any state, and pc is only advanced after the
handler returns. The fault is kept in `vm.fault` and every later step
reports FAULT again until reset().
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple, Union

from .config import DEFAULT_MAX_STEPS, DEFAULT_ROTATE_AMOUNT
from .cpu import alu
from .cpu.decoder import OPCODES, IllegalOpcode, decode_opcode
from .cpu.regs import Registers
from .errors import RuntimeFault
from .loader import Program, load
from .mem.memory import PagedMemory
from .periph.bus import Peripheral, PeripheralBus
from .periph.tape import InputTape, OutputTape

log = logging.getLogger(__name__)


class StopReason(Enum):
    HALT = 'HALT'
    TIMEOUT = 'TIMEOUT'
    FAULT = 'FAULT'


@dataclass(frozen=True)
class VMSnapshot:
    """Machine state at one point in time, for diagnostics."""
    pc: int
    page: int
    offset: int
    register: int
    cell: int
    steps: int
    pages: Tuple[int, ...]
    output: Dict[int, int]
    halted: bool
    fault: Optional[str] = None

    def display(self) -> str:
        lines = [
            f"pc={self.pc} steps={self.steps} "
            f"{'HALTED' if self.halted else 'RUNNING'}",
            f"pointer=${self.page:04X}:${self.offset:04X} "
            f"cell=${self.cell:04X} R=${self.register:04X}",
            f"pages={', '.join(f'${p:04X}' for p in self.pages) or 'none'}",
            f"output slots={len(self.output)}",
        ]
        if self.fault:
            lines.append(f"fault: {self.fault}")
        return '\n'.join(lines)


class BFVM:
    """Paged 16-bit tape machine.

    Usage:
        vm = BFVM(load("++>+++[-<+>]"))
        vm.run()                       # StopReason.HALT
        vm.mem.read(0, 0)              # 5

        vm = BFVM.from_source(",^+.", input_data=[7])
        vm.run_to_completion()
        vm.output_tape.read(7)         # 8
    """

    def __init__(self, program: Program,
                 input_tape: Optional[InputTape] = None,
                 output_tape: Optional[OutputTape] = None,
                 devices: Sequence[Peripheral] = (),
                 native_read: Optional[Dict[int, Callable[[], int]]] = None,
                 native_write: Optional[Dict[int, Callable[[int], None]]] = None,
                 rotate_amount: int = DEFAULT_ROTATE_AMOUNT):
        self.program = program

        # Core components
        self.regs = Registers()
        self.mem = PagedMemory()
        self.bus = PeripheralBus(input_tape, output_tape, devices,
                                 native_read, native_write)

        # `~` rotate width, kept swappable
        self.rotate_amount = rotate_amount

        self.fault: Optional[RuntimeFault] = None
        self.last_stop: Optional[StopReason] = None

        # Instruction dispatch table: token -> handler
        self._dispatch = self._build_dispatch()

    @classmethod
    def from_source(cls, source: Union[str, bytes],
                    input_data: Union[InputTape, Iterable[int]] = (),
                    **kwargs) -> 'BFVM':
        """Load `source` and build a VM with `input_data` on the RO tape.

        Raises:
            LoadError: the program does not load.
        """
        program = load(source)
        if not isinstance(input_data, InputTape):
            input_data = InputTape(input_data)
        return cls(program, input_tape=input_data, **kwargs)

    # ══════════════════════════════════════════════
    # State access
    # ══════════════════════════════════════════════

    @property
    def input_tape(self) -> InputTape:
        return self.bus.input_tape

    @property
    def output_tape(self) -> OutputTape:
        return self.bus.output_tape

    @property
    def halted(self) -> bool:
        return self.regs.pc >= len(self.program)

    @property
    def cell(self) -> int:
        """Value of the cell under the data pointer."""
        return self.mem.read(self.regs.page, self.regs.offset)

    def _set_cell(self, value: int):
        self.mem.write(self.regs.page, self.regs.offset, value)

    def register_get(self) -> int:
        return self.regs.register

    def register_set(self, value: int):
        self.regs.register = value

    def peripheral_read(self, addr: int) -> int:
        return self.bus.read(addr)

    def peripheral_write(self, addr: int, value: int):
        self.bus.write(addr, value)

    def snapshot(self) -> VMSnapshot:
        return VMSnapshot(
            pc=self.regs.pc,
            page=self.regs.page,
            offset=self.regs.offset,
            register=self.regs.register,
            cell=self.cell,
            steps=self.regs.steps,
            pages=tuple(self.mem.pages),
            output=self.output_tape.contents,
            halted=self.halted,
            fault=str(self.fault) if self.fault else None,
        )

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None."""
        if self.fault is not None:
            return StopReason.FAULT

        pc = self.regs.pc
        if pc >= len(self.program):
            return StopReason.HALT

        token = self.program.code[pc]
        handler = self._dispatch.get(token)

        try:
            if handler is None:
                raise IllegalOpcode(f"Illegal instruction {token!r}")
            handler()
        except RuntimeFault as e:
            self.fault = e
            line, col = self.program.source_position(pc)
            log.warning("Fault at instruction %d (line %d, col %d): %s",
                        pc, line, col, e)
            return StopReason.FAULT

        self.regs.pc += 1
        self.regs.steps += 1

        if log.isEnabledFor(logging.DEBUG):
            log.debug("%s %-5s %s", token, decode_opcode(token),
                      self.regs.display())
        return None

    execute_one_instruction = step

    def run(self, max_steps: Optional[int] = DEFAULT_MAX_STEPS) -> StopReason:
        """Run until termination condition.

        Args:
            max_steps: Instruction budget for this call. None runs until
                HALT or FAULT with no limit. 0 runs nothing and reports
                TIMEOUT (HALT if already halted).

        Returns:
            StopReason indicating why execution stopped

        Raises:
            ValueError: max_steps is negative.
        """
        if max_steps is not None and max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {max_steps}")
        executed = 0
        reason = None
        while max_steps is None or executed < max_steps:
            reason = self.step()
            if reason is not None:
                break
            executed += 1
        else:
            reason = StopReason.HALT if self.halted else StopReason.TIMEOUT

        self.last_stop = reason
        if reason is StopReason.TIMEOUT:
            log.warning("Step budget of %d exhausted at pc=%d",
                        max_steps, self.regs.pc)
        else:
            log.info("%s after %d steps (%d pages, %d output slots)",
                     reason.value, self.regs.steps, self.mem.page_count,
                     len(self.output_tape))
        return reason

    def run_to_completion(self) -> StopReason:
        return self.run()

    def run_for(self, cycles: int) -> StopReason:
        """Run at most `cycles` steps. 0 runs until the program stops.

        Raises:
            ValueError: cycles is negative.
        """
        if cycles == 0:
            return self.run()
        return self.run(max_steps=cycles)

    def reset(self):
        """Back to the initial state. Program and input tape are kept."""
        self.regs.reset()
        self.mem.clear()
        self.output_tape.clear()
        self.fault = None
        self.last_stop = None

    # ══════════════════════════════════════════════
    # Instruction execution
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> Dict[str, Callable[[], None]]:
        """token -> bound handler, via the mnemonic in cpu/decoder.py."""
        return {token: getattr(self, f'_op_{mnem.lower()}')
                for token, (mnem, _) in OPCODES.items()}

    # ── Pointer ──

    def _op_next(self):
        self.regs.offset = alu.inc16(self.regs.offset)

    def _op_prev(self):
        self.regs.offset = alu.dec16(self.regs.offset)

    def _op_joff(self):
        self.regs.offset = self.cell

    # ── Page ──

    def _op_npage(self):
        self.regs.page = alu.inc16(self.regs.page)

    def _op_ppage(self):
        self.regs.page = alu.dec16(self.regs.page)

    def _op_jpage(self):
        # Offset is left where it was
        self.regs.page = self.cell

    # ── Cell ──

    def _op_inc(self):
        self._set_cell(alu.inc16(self.cell))

    def _op_dec(self):
        self._set_cell(alu.dec16(self.cell))

    def _op_ror(self):
        self._set_cell(alu.rotr16(self.cell, self.rotate_amount))

    def _op_nand(self):
        self._set_cell(alu.nand16(self.cell, self.regs.register))

    # ── Register ──

    def _op_ldr(self):
        self.regs.register = self.cell

    def _op_str(self):
        self._set_cell(self.regs.register)

    # ── Peripheral I/O ──

    def _op_out(self):
        self.bus.write(self.regs.register, self.cell)

    def _op_in(self):
        # Read first: a failing device must leave the cell untouched
        value = self.bus.read(self.regs.register)
        self._set_cell(value)

    # ── Control ──

    def _op_loop(self):
        if self.cell == 0:
            self.regs.pc = self.program.match(self.regs.pc)

    def _op_end(self):
        if self.cell != 0:
            self.regs.pc = self.program.match(self.regs.pc)
