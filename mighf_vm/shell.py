"""
mighf VM — Interactive Shell

A read-eval loop over one Machine. Commands are matched by prefix, so
``regsxyz`` still dumps the registers:

    help          list commands
    regs          dump R0–R7
    mem <addr>    show one memory byte
    load <file>   assemble a program file into the instruction store
    run           run the loaded program from index 0
    exit          leave the shell

Machine state survives between commands: ``run`` resets only the PC and
the run flag, so registers and memory carry over from the previous run.
"""

from __future__ import annotations
import logging
import platform
import sys
from typing import Callable, Optional, TextIO

from .assembler import AssemblerError, atoi
from .config import BANNER, PROMPT
from .emu import Machine, StopReason

log = logging.getLogger("mighf.shell")

HELP_TEXT = """Commands:
  load <file>   - Load program
  run           - Run program
  regs          - Show registers
  mem <addr>    - Show memory at addr
  exit          - Exit shell"""


def host_platform() -> str:
    """Describe the host, e.g. 'Linux (x86_64)'."""
    system = platform.system()
    if system == 'Linux':
        return f"Linux ({platform.machine() or 'unknown'})"
    if system == 'Windows':
        return "Windows"
    if system == 'Darwin':
        return "macOS"
    return "Unknown"


class Shell:
    """Interactive command shell around a Machine."""

    def __init__(self, machine: Optional[Machine] = None,
                 out: Optional[TextIO] = None):
        self.machine = machine or Machine()
        self._out = out

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    def _print(self, text: str = ""):
        print(text, file=self.out)

    def banner(self):
        self._print(BANNER)
        self._print(f"Host platform: {host_platform()}")
        self._print("Type 'help' for commands.")

    # ══════════════════════════════════════════════
    # Commands
    # ══════════════════════════════════════════════

    def handle(self, line: str) -> bool:
        """Execute one command line. Returns False when the shell should exit."""
        if line.startswith('exit'):
            return False
        elif line.startswith('help'):
            self._print(HELP_TEXT)
        elif line.startswith('regs'):
            self.cmd_regs()
        elif line.startswith('mem'):
            self.cmd_mem(line[4:])
        elif line.startswith('load'):
            self.cmd_load(line)
        elif line.startswith('run'):
            self.cmd_run()
        else:
            self._print("Unknown command. Type 'help'.")
        return True

    def cmd_regs(self):
        for i in range(len(self.machine.regs)):
            self._print(f"R{i}: {self.machine.regs[i]}")

    def cmd_mem(self, arg: str):
        addr = atoi(arg)
        if self.machine.mem.valid(addr):
            self._print(f"MEM[{addr}]: {self.machine.mem.read8(addr)}")
        else:
            self._print("Invalid address")

    def cmd_load(self, line: str):
        parts = line.split()
        if parts[0] != 'load' or len(parts) < 2:
            self._print("Usage: load <file>")
            return
        fname = parts[1]
        try:
            result = self.machine.load_file(fname)
        except OSError as e:
            log.debug("load %s failed: %s", fname, e)
            self._print("Cannot open file")
            return
        except AssemblerError as e:
            # Strict mode only
            self._print(f"Assembler error: {e}")
            return
        self._print(f"Loaded {result.count} instructions")

    def cmd_run(self):
        reason = self.machine.run()
        if reason is StopReason.FAULT:
            self._print(f"Fault: {self.machine.last_fault.value}")
        self._print("Program finished.")

    # ══════════════════════════════════════════════
    # Loop
    # ══════════════════════════════════════════════

    def loop(self, read: Callable[[str], str] = input):
        """Prompt, read, dispatch until ``exit`` or end of input."""
        self.banner()
        while True:
            try:
                line = read(PROMPT)
            except (EOFError, KeyboardInterrupt):
                break
            if not self.handle(line.strip()):
                break
