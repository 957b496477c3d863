"""
Command-line Tests for mighf.py — non-interactive run, listing, options.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

import mighf
from mighf_vm import __version__


def write_prog(tmp_path, text, name="prog.asm"):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


class TestRunFile:

    def test_load_and_run(self, tmp_path, capsys):
        prog = write_prog(tmp_path, "MOV R0 7\nPRINT REG 0\nHALT\n")
        assert mighf.main([prog]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == [
            f"Loaded 3 instructions from {prog}",
            "R0 = 7",
            "Program finished.",
        ]

    def test_missing_file(self, tmp_path, capsys):
        missing = str(tmp_path / "missing.asm")
        assert mighf.main([missing]) == 1
        assert capsys.readouterr().out == f"Cannot open file: {missing}\n"

    def test_permissive_fault_ignored(self, tmp_path, capsys):
        prog = write_prog(tmp_path, "MOV R9 1\nHALT\n")
        assert mighf.main([prog]) == 0
        assert "Program finished." in capsys.readouterr().out

    def test_strict_fault(self, tmp_path, capsys):
        prog = write_prog(tmp_path, "MOV R9 1\nHALT\n")
        assert mighf.main([prog, "--strict"]) == 1
        captured = capsys.readouterr()
        assert "Program finished." in captured.out
        assert "Fault: BAD_REGISTER" in captured.err

    def test_strict_assembler_error(self, tmp_path, capsys):
        prog = write_prog(tmp_path, "HALT\nNOPE\n")
        assert mighf.main([prog, "--strict"]) == 1
        assert "Line 2" in capsys.readouterr().err

    def test_max_steps_stops_endless_loop(self, tmp_path, capsys):
        prog = write_prog(tmp_path, "MOV R1 1\nADD R0 R1\nJMP 1\n")
        assert mighf.main([prog, "--max-steps", "100"]) == 0
        assert capsys.readouterr().out.endswith("Program finished.\n")


    def test_dump_mem_after_run(self, tmp_path, capsys):
        prog = write_prog(tmp_path, "MOV R0 65\nSTORE R0 0\nSTORE R0 1023\nHALT\n")
        assert mighf.main([prog, "--dump-mem"]) == 0
        out = capsys.readouterr().out.splitlines()
        dump = out[out.index("Program finished.") + 1:]
        assert len(dump) == 64
        assert dump[0].startswith("0000  41 00")
        assert dump[-1].startswith("1008  ")
        assert dump[-1].endswith("...............A")

    def test_no_dump_by_default(self, tmp_path, capsys):
        prog = write_prog(tmp_path, "HALT\n")
        mighf.main([prog])
        assert capsys.readouterr().out.splitlines()[-1] == "Program finished."


class TestListing:

    def test_listing(self, tmp_path, capsys):
        prog = write_prog(tmp_path, "MOV R0 1\njunk\nHALT\n")
        assert mighf.main([prog, "--listing"]) == 0
        captured = capsys.readouterr()
        assert "MOV R0 1" in captured.out
        assert "HALT" in captured.out
        assert "skipped: Line 2" in captured.err

    def test_listing_needs_program(self, capsys):
        assert mighf.main(["--listing"]) == 2

    def test_listing_missing_file(self, tmp_path):
        assert mighf.main([str(tmp_path / "none.asm"), "--listing"]) == 1


class TestParser:

    def test_defaults(self):
        args = mighf.build_parser().parse_args([])
        assert args.program is None
        assert args.max_steps is None
        assert not args.strict
        assert not args.trace

    def test_options(self):
        args = mighf.build_parser().parse_args(
            ["p.asm", "--strict", "--max-steps", "50", "--trace", "-v"])
        assert args.program == "p.asm"
        assert args.max_steps == 50
        assert args.strict and args.trace and args.verbose

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            mighf.main(["--version"])
        assert exc.value.code == 0
        assert f"mighf {__version__}" in capsys.readouterr().out
