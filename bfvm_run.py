#!/usr/bin/env python3
"""
bfvm-run — run a program on the paged 16-bit tape machine

Usage:
    python bfvm_run.py <program.bf> [--input-file F | --input-text T | --input-words W]
                                    [--max-steps N] [--format text|words|hex]
                                    [--stream] [--dump] [-v] [--log-file PATH]
    python bfvm_run.py -e '<source>' ...

The read-only tape is filled from one of the --input-* options; the
write-only tape is printed after the run (or while running with --stream).

Exit codes:
    0  program halted
    1  usage, file or load error (unbalanced brackets)
    2  --max-steps budget exhausted
    3  runtime fault (peripheral failure)

Examples:
    python bfvm_run.py hello.bf
    python bfvm_run.py echo.bf --input-text "hi" --format words
    python bfvm_run.py -e "++>+++[-<+>]" --dump
    python bfvm_run.py spin.bf --max-steps 100000 -v
"""

import argparse
import logging
import sys
from pathlib import Path

from bfvm import (BFVM, InputTape, OutputTape, LoadError, StopReason,
                  __version__, load)
from bfvm.cpu.decoder import opcode_listing
from bfvm.log_setup import setup_logging
from bfvm.periph.tape import slot_char

EXIT_CODES = {
    StopReason.HALT: 0,
    StopReason.TIMEOUT: 2,
    StopReason.FAULT: 3,
}


def parse_int_arg(value: str) -> int:
    """Parse an integer that may be hex (0x...), $ prefix, or decimal."""
    value = value.strip()
    if value.startswith("0x") or value.startswith("0X"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def parse_words(text: str) -> list:
    """Comma/space separated word list → ints."""
    return [parse_int_arg(tok) for tok in text.replace(",", " ").split()]


def format_output(tape: OutputTape, fmt: str) -> str:
    if fmt == "words":
        return " ".join(str(v) for v in tape.to_list())
    if fmt == "hex":
        return "\n".join(f"${addr:04X}: ${value:04X}"
                         for addr, value in tape.contents.items())
    return tape.to_text()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bfvm-run",
        description="Paged 16-bit tape machine",
        epilog="Use --opcodes to list the instruction set.",
    )
    parser.add_argument("program", nargs="?", help="Program source file")
    parser.add_argument("-e", "--eval", metavar="SOURCE",
                        help="Run SOURCE instead of a file")

    tape = parser.add_mutually_exclusive_group()
    tape.add_argument("--input-file", help="Fill the RO tape with a file's bytes")
    tape.add_argument("--input-text", help="Fill the RO tape with text characters")
    tape.add_argument("--input-words",
                      help="Fill the RO tape with words, e.g. '1,2,$FF,0x10'")

    parser.add_argument("--max-steps", type=parse_int_arg, default=None,
                        help="Instruction budget, 0 for unlimited (default: unlimited)")
    parser.add_argument("--format", choices=["text", "words", "hex"],
                        default="text", help="Output tape format (default: text)")
    parser.add_argument("--stream", action="store_true",
                        help="Print each output write as it happens (as text)")
    parser.add_argument("--dump", action="store_true",
                        help="Print final machine state and a hexdump at the pointer")
    parser.add_argument("--opcodes", action="store_true",
                        help="List the instruction set and exit")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="-v info, -vv per-instruction debug trace")
    parser.add_argument("--log-file", help="Write a DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"bfvm-run {__version__}")
    return parser


def read_input_tape(args) -> InputTape:
    if args.input_file:
        return InputTape.from_bytes(Path(args.input_file).read_bytes())
    if args.input_text is not None:
        return InputTape.from_text(args.input_text)
    if args.input_words:
        return InputTape(parse_words(args.input_words))
    return InputTape()


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.opcodes:
        print(opcode_listing())
        return 0

    console_level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    log = setup_logging("bfvm", console_level=console_level,
                        log_file=args.log_file)

    if args.program is None and args.eval is None:
        parser.print_usage(sys.stderr)
        print("Error: give a program file or -e SOURCE", file=sys.stderr)
        return 1

    if args.max_steps is not None and args.max_steps < 0:
        print(f"Error: --max-steps must be >= 0, got {args.max_steps}", file=sys.stderr)
        return 1

    try:
        if args.eval is not None:
            source = args.eval
        else:
            source = Path(args.program).read_text(encoding="utf-8", errors="replace")
        input_tape = read_input_tape(args)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: Bad input words: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1

    try:
        program = load(source)
    except LoadError as e:
        print(f"Load error: {e}", file=sys.stderr)
        return 1

    log.info("Program: %d instructions, %d loops; input tape: %d words",
             len(program), program.loop_count, len(input_tape))

    sink = None
    if args.stream:
        def sink(addr, value):
            sys.stdout.write(slot_char(value))
            sys.stdout.flush()

    vm = BFVM(program, input_tape=input_tape, output_tape=OutputTape(sink))
    reason = vm.run_for(args.max_steps or 0)

    if args.stream:
        sys.stdout.write("\n")
    else:
        print(format_output(vm.output_tape, args.format))

    if args.dump:
        print(vm.snapshot().display())
        print(vm.mem.hexdump(vm.regs.page, vm.regs.offset & 0xFFF8, 32))

    if reason is StopReason.TIMEOUT:
        print(f"Stopped: step budget of {args.max_steps} exhausted", file=sys.stderr)
    elif reason is StopReason.FAULT:
        print(f"Runtime fault: {vm.fault}", file=sys.stderr)

    return EXIT_CODES[reason]


if __name__ == "__main__":
    sys.exit(main())
