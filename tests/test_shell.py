"""
Interactive Shell Tests for the mighf VM.

Drives Shell.handle() / Shell.loop() with scripted input and checks the
text written to the shell's output stream.
"""
import io
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from mighf_vm.config import BANNER, VMConfig
from mighf_vm.emu import Machine
from mighf_vm.periph.terminal import Terminal
from mighf_vm.shell import Shell, host_platform


@pytest.fixture
def shell():
    machine = Machine(terminal=Terminal(io.StringIO()))
    return Shell(machine, out=io.StringIO())


def said(shell: Shell) -> str:
    return shell.out.getvalue()


def scripted(*lines):
    """read() replacement: returns lines in order, then EOF."""
    it = iter(lines)

    def read(prompt):
        try:
            return next(it)
        except StopIteration:
            raise EOFError
    return read


class TestCommands:

    def test_help(self, shell):
        assert shell.handle("help")
        assert "load <file>" in said(shell)
        assert "mem <addr>" in said(shell)

    def test_regs_on_fresh_machine(self, shell):
        shell.handle("regs")
        lines = said(shell).splitlines()
        assert lines == [f"R{i}: 0" for i in range(8)]

    def test_regs_prefix_match(self, shell):
        shell.handle("regsxyz")
        assert said(shell).startswith("R0: 0")

    def test_mem(self, shell):
        shell.machine.mem.write8(10, 77)
        shell.handle("mem 10")
        assert said(shell) == "MEM[10]: 77\n"

    @pytest.mark.parametrize("line", ["mem 2000", "mem -1", "mem 1024"])
    def test_mem_invalid(self, shell, line):
        shell.handle(line)
        assert said(shell) == "Invalid address\n"

    def test_mem_address_not_wrapped(self, shell):
        """2**32 + 10 stays out of range instead of wrapping to 10."""
        shell.handle("mem 4294967306")
        assert said(shell) == "Invalid address\n"

    def test_mem_no_argument_reads_zero(self, shell):
        shell.handle("mem")
        assert said(shell) == "MEM[0]: 0\n"

    def test_unknown(self, shell):
        assert shell.handle("frobnicate")
        assert said(shell) == "Unknown command. Type 'help'.\n"

    def test_exit(self, shell):
        assert shell.handle("exit") is False


class TestLoadAndRun:

    def test_load_and_run(self, shell, tmp_path):
        prog = tmp_path / "p.asm"
        prog.write_text("MOV R0 5\nSTORE R0 3\nPRINT MEM 3\nHALT\n")
        shell.handle(f"load {prog}")
        shell.handle("run")
        shell.handle("mem 3")
        assert said(shell).splitlines() == [
            "Loaded 4 instructions",
            "Program finished.",
            "MEM[3]: 5",
        ]
        assert shell.machine.terminal.stream.getvalue() == "MEM[3] = 5\n"

    def test_load_counts_only_good_lines(self, shell, tmp_path):
        prog = tmp_path / "p.asm"
        prog.write_text("MOV R0 1\nMOV R0\nHALT\n")
        shell.handle(f"load {prog}")
        assert said(shell) == "Loaded 2 instructions\n"

    def test_load_missing_file(self, shell, tmp_path):
        shell.handle(f"load {tmp_path / 'missing.asm'}")
        assert said(shell) == "Cannot open file\n"

    @pytest.mark.parametrize("line", ["load", "load   ", "loadfile x.asm"])
    def test_load_usage(self, shell, line):
        shell.handle(line.strip())
        assert said(shell) == "Usage: load <file>\n"

    def test_run_without_program(self, shell):
        """An empty store is all NOPs: runs off the end and finishes."""
        shell.handle("run")
        assert said(shell) == "Program finished.\n"

    def test_state_carries_between_runs(self, shell, tmp_path):
        prog = tmp_path / "inc.asm"
        prog.write_text("MOV R1 1\nADD R0 R1\nHALT\n")
        shell.handle(f"load {prog}")
        shell.handle("run")
        shell.handle("run")
        assert shell.machine.regs[0] == 2

    def test_strict_load_error(self, tmp_path):
        machine = Machine(VMConfig(strict=True), terminal=Terminal(io.StringIO()))
        sh = Shell(machine, out=io.StringIO())
        prog = tmp_path / "bad.asm"
        prog.write_text("MOV R0 1\nBOGUS\n")
        sh.handle(f"load {prog}")
        assert said(sh).startswith("Assembler error: Line 2")

    def test_strict_fault_reported(self, tmp_path):
        machine = Machine(VMConfig(strict=True), terminal=Terminal(io.StringIO()))
        sh = Shell(machine, out=io.StringIO())
        prog = tmp_path / "div.asm"
        prog.write_text("MOV R0 1\nUDIV R0 R1\nHALT\n")
        sh.handle(f"load {prog}")
        sh.handle("run")
        assert said(sh).splitlines()[1:] == ["Fault: DIVIDE_BY_ZERO", "Program finished."]


class TestLoop:

    def test_banner_and_eof(self, shell):
        shell.loop(read=scripted())
        lines = said(shell).splitlines()
        assert lines[0] == BANNER
        assert lines[1] == f"Host platform: {host_platform()}"
        assert lines[2] == "Type 'help' for commands."

    def test_exit_stops_reading(self, shell):
        shell.loop(read=scripted("regs", "exit", "help"))
        assert "R7: 0" in said(shell)
        assert "Commands:" not in said(shell)

    def test_input_is_stripped(self, shell):
        shell.loop(read=scripted("   mem 1   "))
        assert "MEM[1]: 0" in said(shell)

