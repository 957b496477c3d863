"""
mighf VM — Main Machine Class

Integrates:
  - CPU registers + flags (cpu/regs.py)
  - Data memory + instruction store (mem/memory.py)
  - Instruction set (cpu/isa.py) and ALU (cpu/alu.py)
  - Terminal output sink (periph/terminal.py)

Execution model, one step:
  1. Check PC against the store capacity
  2. Fetch the instruction at PC
  3. Execute it → update registers, memory, flags, or the terminal
  4. PC += 1 (JMP/JE wrote target - 1, so this lands on the target)

Invalid operands never raise. A handler that finds a register selector
>= 8, an address >= 1024, a zero divisor or a bad PRINT mode does nothing
and returns a Fault. In the default permissive mode the fault is only
logged and the run goes on; with VMConfig.strict the run stops with
StopReason.FAULT and the fault is kept in last_fault.

Stop reasons:
  - HALT:     HALT executed
  - END:      PC ran off the end of the instruction store
  - FAULT:    strict mode, an instruction faulted
  - TIMEOUT:  VMConfig.max_steps reached
"""

from __future__ import annotations
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from .config import VMConfig
from .cpu.regs import Registers
from .cpu.isa import Instruction, Opcode, PRINT_REG, PRINT_MEM, unpack_pixel
from .cpu import alu
from .mem.memory import Memory, InstructionStore
from .periph.terminal import Terminal
from . import loader

log = logging.getLogger("mighf.emu")


class StopReason(Enum):
    HALT = 'HALT'
    END = 'END'
    FAULT = 'FAULT'
    TIMEOUT = 'TIMEOUT'


class Fault(Enum):
    BAD_REGISTER = 'BAD_REGISTER'
    BAD_ADDRESS = 'BAD_ADDRESS'
    DIVIDE_BY_ZERO = 'DIVIDE_BY_ZERO'
    BAD_MODE = 'BAD_MODE'


class Machine:
    """mighf virtual CPU.

    Each Machine owns its registers, memory, instruction store and
    terminal; nothing is shared between instances.

    Usage:
        vm = Machine()
        vm.load_source("MOV R0 42\\nPRINT REG 0\\nHALT")
        reason = vm.run()          # prints "R0 = 42"
        assert vm.regs[0] == 42
    """

    def __init__(self, config: Optional[VMConfig] = None,
                 terminal: Optional[Terminal] = None):
        self.config = config or VMConfig()
        self.regs = Registers()
        self.mem = Memory()
        self.program = InstructionStore()
        self.terminal = terminal or Terminal()

        self.steps: int = 0
        self.last_fault: Optional[Fault] = None

        # Instruction dispatch table (built in _build_dispatch)
        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_file(self, path: Union[str, Path]) -> loader.LoadResult:
        """Load a program file into the instruction store. Raises OSError."""
        return loader.load_file(self.program, path, strict=self.config.strict)

    def load_source(self, text: str) -> loader.LoadResult:
        """Load program text into the instruction store."""
        return loader.load_source(self.program, text, strict=self.config.strict)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None."""
        if not self.regs.running:
            return StopReason.HALT

        pc = self.regs.PC
        if not 0 <= pc < self.program.CAPACITY:
            self.regs.running = False
            return StopReason.END

        inst = self.program.fetch(pc)
        before = None
        if self.config.trace:
            log.debug("%04d: %-28s %s", pc, inst, self.regs.display())
            before = self.mem.snapshot()

        fault = self.execute(inst)
        if before is not None:
            for addr, (old, new) in self.mem.diff_snapshots(before, self.mem.snapshot()).items():
                log.debug("      MEM[%d] %d -> %d", addr, old, new)
        self.regs.PC += 1
        self.steps += 1

        if fault is not None:
            self.last_fault = fault
            if self.config.strict:
                log.warning("Fault %s at %04d: %s", fault.value, pc, inst)
                self.regs.running = False
                return StopReason.FAULT
            log.debug("Ignored %s at %04d: %s", fault.value, pc, inst)

        if not self.regs.running:
            return StopReason.HALT
        if self.regs.PC >= self.program.CAPACITY:
            self.regs.running = False
            return StopReason.END
        return None

    def run(self) -> StopReason:
        """Run the loaded program from index 0 until it stops.

        Registers and memory are kept from any previous run.
        """
        self.regs.start()
        self.steps = 0
        self.last_fault = None
        max_steps = self.config.max_steps

        while True:
            if max_steps is not None and self.steps >= max_steps:
                log.warning("Step limit %d reached at PC %04d", max_steps, self.regs.PC)
                return StopReason.TIMEOUT
            reason = self.step()
            if reason is not None:
                log.info("Run stopped: %s after %d steps", reason.value, self.steps)
                return reason

    def execute(self, inst: Instruction) -> Optional[Fault]:
        """Execute a single instruction against this machine.

        Returns None on success, or the Fault that turned it into a no-op.
        Never raises: Instruction only holds known opcodes and in-range
        fields, and every opcode has a handler.
        """
        return self._dispatch[inst.opcode](inst)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(inst) -> Optional[Fault]

    def _build_dispatch(self) -> Dict[Opcode, Callable[[Instruction], Optional[Fault]]]:
        return {
            Opcode.NOP:         self._op_nop,
            Opcode.MOV:         self._op_mov,
            Opcode.ADD:         self._op_add,
            Opcode.SUB:         self._op_sub,
            Opcode.LOAD:        self._op_load,
            Opcode.STORE:       self._op_store,
            Opcode.JMP:         self._op_jmp,
            Opcode.CMP:         self._op_cmp,
            Opcode.JE:          self._op_je,
            Opcode.HALT:        self._op_halt,
            Opcode.AND:         self._op_and,
            Opcode.ORR:         self._op_orr,
            Opcode.EOR:         self._op_eor,
            Opcode.LSL:         self._op_lsl,
            Opcode.LSR:         self._op_lsr,
            Opcode.MUL:         self._op_mul,
            Opcode.UDIV:        self._op_udiv,
            Opcode.NEG:         self._op_neg,
            Opcode.MOVZ:        self._op_movz,
            Opcode.MOVN:        self._op_movn,
            Opcode.PRINT:       self._op_print,
            Opcode.TDRAW_CLEAR: self._op_tdraw_clear,
            Opcode.TDRAW_PIXEL: self._op_tdraw_pixel,
        }

    # ── Operand checks ──

    def _check_regs(self, *indices: int) -> Optional[Fault]:
        for index in indices:
            if not self.regs.valid(index):
                return Fault.BAD_REGISTER
        return None

    def _binary(self, inst: Instruction, fn) -> Optional[Fault]:
        """r1 := fn(r1, r2) for the register-register ALU ops."""
        fault = self._check_regs(inst.op1, inst.op2)
        if fault:
            return fault
        self.regs[inst.op1] = fn(self.regs[inst.op1], self.regs[inst.op2])
        return None

    def _unary_imm(self, inst: Instruction, fn) -> Optional[Fault]:
        """r1 := fn(r1, imm) for the register-immediate ops."""
        fault = self._check_regs(inst.op1)
        if fault:
            return fault
        self.regs[inst.op1] = fn(self.regs[inst.op1], inst.imm)
        return None

    def _jump(self, target: int) -> Optional[Fault]:
        if not 0 <= target < self.program.CAPACITY:
            return Fault.BAD_ADDRESS
        # The step loop adds 1 after every instruction
        self.regs.PC = target - 1
        return None

    # ── Data movement ──

    def _op_nop(self, inst):
        return None

    def _op_mov(self, inst):
        return self._unary_imm(inst, lambda r, imm: imm)

    def _op_movz(self, inst):
        return self._unary_imm(inst, lambda r, imm: alu.zext16(imm))

    def _op_movn(self, inst):
        return self._unary_imm(inst, lambda r, imm: alu.not32(imm))

    def _op_load(self, inst):
        fault = self._check_regs(inst.op1)
        if fault:
            return fault
        if not self.mem.valid(inst.imm):
            return Fault.BAD_ADDRESS
        self.regs[inst.op1] = self.mem.read8(inst.imm)
        return None

    def _op_store(self, inst):
        fault = self._check_regs(inst.op1)
        if fault:
            return fault
        if not self.mem.valid(inst.imm):
            return Fault.BAD_ADDRESS
        self.mem.write8(inst.imm, self.regs[inst.op1])
        return None

    # ── Arithmetic / logic ──

    def _op_add(self, inst):
        return self._binary(inst, alu.add32)

    def _op_sub(self, inst):
        return self._binary(inst, alu.sub32)

    def _op_mul(self, inst):
        return self._binary(inst, alu.mul32)

    def _op_udiv(self, inst):
        fault = self._check_regs(inst.op1, inst.op2)
        if fault:
            return fault
        divisor = self.regs[inst.op2]
        if divisor == 0:
            return Fault.DIVIDE_BY_ZERO
        self.regs[inst.op1] = alu.udiv32(self.regs[inst.op1], divisor)
        return None

    def _op_neg(self, inst):
        fault = self._check_regs(inst.op1)
        if fault:
            return fault
        self.regs[inst.op1] = alu.neg32(self.regs[inst.op1])
        return None

    def _op_and(self, inst):
        return self._binary(inst, lambda a, b: a & b)

    def _op_orr(self, inst):
        return self._binary(inst, lambda a, b: a | b)

    def _op_eor(self, inst):
        return self._binary(inst, lambda a, b: a ^ b)

    def _op_lsl(self, inst):
        return self._unary_imm(inst, alu.lsl32)

    def _op_lsr(self, inst):
        return self._unary_imm(inst, alu.lsr32)

    # ── Compare / control flow ──

    def _op_cmp(self, inst):
        fault = self._check_regs(inst.op1, inst.op2)
        if fault:
            return fault
        self.regs.zero = self.regs[inst.op1] == self.regs[inst.op2]
        return None

    def _op_jmp(self, inst):
        return self._jump(inst.imm)

    def _op_je(self, inst):
        if not 0 <= inst.imm < self.program.CAPACITY:
            return Fault.BAD_ADDRESS
        if self.regs.zero:
            return self._jump(inst.imm)
        return None

    def _op_halt(self, inst):
        self.regs.running = False
        return None

    # ── Output ──

    def _op_print(self, inst):
        idx = inst.imm
        if inst.op1 == PRINT_REG:
            if not self.regs.valid(idx):
                return Fault.BAD_REGISTER
            self.terminal.print_line(f"R{idx} = {self.regs[idx]}")
        elif inst.op1 == PRINT_MEM:
            if not self.mem.valid(idx):
                return Fault.BAD_ADDRESS
            self.terminal.print_line(f"MEM[{idx}] = {self.mem.read8(idx)}")
        else:
            return Fault.BAD_MODE
        return None

    def _op_tdraw_clear(self, inst):
        self.terminal.clear()
        return None

    def _op_tdraw_pixel(self, inst):
        """Place a character at (value of x register, value of y register)."""
        x_reg, y_reg, char_code = unpack_pixel(inst.imm)
        fault = self._check_regs(x_reg, y_reg)
        if fault:
            return fault
        self.terminal.put_char(self.regs[x_reg], self.regs[y_reg], chr(char_code))
        return None

    # ══════════════════════════════════════════════
    # Inspection / reset
    # ══════════════════════════════════════════════

    @property
    def halted(self) -> bool:
        return not self.regs.running

    def reset(self):
        """Full power-on reset: registers, flags, memory and program."""
        self.regs.reset()
        self.mem.clear()
        self.program.clear()
        self.steps = 0
        self.last_fault = None
