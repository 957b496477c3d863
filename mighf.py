#!/usr/bin/env python3
"""
mighf — micro-architecture VM shell

Usage:
    python mighf.py                      # interactive shell
    python mighf.py <program.asm>        # load, run once, exit
    python mighf.py <program.asm> --listing
                    [--strict] [--max-steps N] [--trace] [--verbose] [--log-dir DIR]
                    [--dump-mem]

Examples:
    python mighf.py programs/count.asm
    python mighf.py loop.asm --max-steps 10000 --trace --verbose
    python mighf.py loop.asm --listing
"""

import argparse
import logging
import sys

from mighf_vm import __version__
from mighf_vm.assembler import Assembler, AssemblerError
from mighf_vm.config import MEM_SIZE, VMConfig
from mighf_vm.emu import Machine, StopReason
from mighf_vm.log_setup import setup_logging
from mighf_vm.shell import Shell


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mighf",
        description="mighf micro-architecture VM: assembler, engine and shell",
    )
    parser.add_argument("program", nargs="?",
                        help="Program file to load and run (omit for the interactive shell)")
    parser.add_argument("--strict", action="store_true",
                        help="Reject bad lines and stop on the first fault")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="Stop a run after this many instructions")
    parser.add_argument("--trace", action="store_true",
                        help="Log every executed instruction (needs --verbose to show)")
    parser.add_argument("--listing", action="store_true",
                        help="Assemble the program, print a listing and exit")
    parser.add_argument("--dump-mem", action="store_true",
                        help="Print a hex dump of data memory after the run")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show debug logging on the console")
    parser.add_argument("--log-dir", default=None,
                        help="Also write a timestamped log file into this directory")
    parser.add_argument("--version", action="version",
                        version=f"mighf {__version__}")
    return parser


def run_file(machine: Machine, fname: str, dump_mem: bool = False) -> int:
    """Non-interactive mode: load, run once. Returns the exit status."""
    try:
        result = machine.load_file(fname)
    except OSError:
        print(f"Cannot open file: {fname}")
        return 1
    except AssemblerError as e:
        print(f"Assembler error: {e}", file=sys.stderr)
        return 1

    print(f"Loaded {result.count} instructions from {fname}")
    reason = machine.run()
    if reason is StopReason.FAULT:
        print(f"Fault: {machine.last_fault.value}", file=sys.stderr)
    print("Program finished.")
    if dump_mem:
        print(machine.mem.hexdump(0, MEM_SIZE))
    return 1 if reason is StopReason.FAULT else 0


def print_listing(fname: str, strict: bool) -> int:
    try:
        with open(fname, "r", encoding="utf-8", errors="replace") as f:
            source = f.read()
    except OSError as e:
        print(f"Error reading {fname}: {e}", file=sys.stderr)
        return 1

    asm = Assembler(strict=strict)
    try:
        asm.assemble(source)
    except AssemblerError as e:
        print(f"Assembler error: {e}", file=sys.stderr)
        return 1

    print(asm.get_listing())
    for err in asm.errors:
        print(f"skipped: {err}", file=sys.stderr)
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    console_level = logging.DEBUG if args.verbose else logging.WARNING
    setup_logging(name="mighf", console_level=console_level, log_dir=args.log_dir)

    if args.listing:
        if not args.program:
            print("Error: --listing needs a program file", file=sys.stderr)
            return 2
        return print_listing(args.program, args.strict)

    config = VMConfig(strict=args.strict, max_steps=args.max_steps, trace=args.trace)
    machine = Machine(config)

    if args.program:
        return run_file(machine, args.program, dump_mem=args.dump_mem)

    Shell(machine).loop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
