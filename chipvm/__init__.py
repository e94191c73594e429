"""Interpreter for the CHIP-8 8-bit virtual machine, written in JAX."""

from chipvm.state import MachineState, StackState, create_state
from chipvm.emulator import (
    execute, fetch, step, run, cycle, report, load_program, load_rom, CycleEvents, cycle_events
)
from chipvm.decode import DecodedInstruction, decode, disassemble
from chipvm.timers import tick_timers
from chipvm.constants import PROGRAM_START, FONT_START, SCREEN_WIDTH, SCREEN_HEIGHT, MAX_PROGRAM_SIZE
from chipvm.errors import (
    VMError, LoadError, ExecutionError, UnimplementedOpcode, StackError, StackOverflow, StackUnderflow
)
from chipvm.interpreter import Interpreter

__all__ = [
    "MachineState",
    "StackState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "run",
    "cycle",
    "report",
    "load_program",
    "load_rom",
    "CycleEvents",
    "cycle_events",
    "tick_timers",
    "DecodedInstruction",
    "decode",
    "disassemble",
    "Interpreter",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "MAX_PROGRAM_SIZE",
    "VMError",
    "LoadError",
    "ExecutionError",
    "UnimplementedOpcode",
    "StackError",
    "StackOverflow",
    "StackUnderflow",
]
