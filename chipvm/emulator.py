"""Fetch-decode-execute engine and program loader."""

import os
from functools import partial
from typing import Optional, Sequence, Union

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from flax.struct import PyTreeNode

from chipvm.state import MachineState
from chipvm.decode import decode
from chipvm.constants import (
    PROGRAM_START, MAX_PROGRAM_SIZE, ADDRESS_MASK,
    FAULT_NONE, FAULT_UNIMPLEMENTED, FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW
)
from chipvm.errors import LoadError, UnimplementedOpcode, StackOverflow, StackUnderflow
from chipvm.instructions.system import execute_system_instruction
from chipvm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_key_instruction
)
from chipvm.instructions.alu import execute_alu_operation
from chipvm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipvm.instructions.display import execute_display
from chipvm.instructions.misc import execute_misc_instruction, store_pressed_key
from chipvm.timers import tick_timers
from chipvm.logging import ConsoleLogger, get_logger, scan_with_progress

# Indexed by the top nibble of the instruction word
PRIMARY_TABLE = [
    execute_system_instruction,
    execute_jump,
    execute_call,
    execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate,
    execute_skip_if_equal_register,
    execute_set,
    execute_add,
    execute_alu_operation,
    execute_skip_if_not_equal_register,
    execute_set_index,
    execute_jump_with_offset,
    execute_random,
    execute_display,
    execute_key_instruction,
    execute_misc_instruction,
]


def execute(state: MachineState, instruction: int) -> MachineState:
    """Execute a single instruction word against the state.

    ``pc`` is expected to already point past the instruction.
    """
    instruction = jnp.asarray(instruction, dtype=jnp.uint16)
    decoded_instruction = decode(instruction)
    state = state.replace(opcode=instruction)
    return jax.lax.switch(decoded_instruction.family, PRIMARY_TABLE, state, decoded_instruction)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: MachineState) -> tuple[MachineState, jnp.uint16]:
    """Fetch next instruction from memory and advance pc past it."""
    address = jnp.astype(state.pc, jnp.int32)
    instruction = _pack_u16(
        state.memory[address & ADDRESS_MASK],
        state.memory[(address + 1) & ADDRESS_MASK]
    )
    return state.replace(pc=state.pc + 2), instruction


def _fetch_and_execute(state: MachineState) -> MachineState:
    state, instruction = fetch(state)
    return execute(state, instruction)


def _resume_wait(state: MachineState) -> MachineState:
    """One cycle of WaitingForKey(X): poll the keypad instead of fetching."""
    return jax.lax.cond(
        jnp.any(state.key),
        lambda s: store_pressed_key(s, s.waiting_register).replace(pc=s.pc + 2),
        lambda s: s,
        state
    )


def _clear_events(state: MachineState) -> MachineState:
    return state.replace(
        tone_start=jnp.zeros((), dtype=jnp.bool_),
        tone_end=jnp.zeros((), dtype=jnp.bool_)
    )


def _cycle(state: MachineState) -> MachineState:
    state = _clear_events(state).replace(fault=jnp.asarray(FAULT_NONE, dtype=jnp.uint8))
    state = jax.lax.cond(state.waiting_for_key, _resume_wait, _fetch_and_execute, state)
    return tick_timers(state)


def step(state: MachineState) -> MachineState:
    """Run one machine cycle: fetch, decode, execute, then tick the timers.

    A machine halted by a stack fault is returned unchanged.
    """
    return jax.lax.cond(state.halted, _clear_events, _cycle, state)


jit_step = jax.jit(step)


class CycleEvents(PyTreeNode):
    """What a host needs to see after a cycle; stacked along time by ``run``."""
    fault: jnp.ndarray
    opcode: jnp.ndarray
    pc: jnp.ndarray
    tone_start: jnp.ndarray
    tone_end: jnp.ndarray


def cycle_events(state: MachineState) -> CycleEvents:
    return CycleEvents(
        fault=state.fault,
        opcode=state.opcode,
        pc=state.pc,
        tone_start=state.tone_start,
        tone_end=state.tone_end,
    )


@partial(jax.jit, static_argnames=("num_cycles", "progress"))
def run(state: MachineState, num_cycles: int, progress: bool = False) -> tuple[MachineState, CycleEvents]:
    """Run ``num_cycles`` cycles under ``jax.lax.scan``.

    Returns:
        Tuple of the final state and the per-cycle ``CycleEvents``
    """
    def run_cycle(state, _):
        state = step(state)
        return state, cycle_events(state)

    if progress:
        run_cycle = scan_with_progress(num_cycles)(run_cycle)

    return jax.lax.scan(run_cycle, state, jnp.arange(num_cycles))


def report(
    events: CycleEvents,
    audio=None,
    logger: Optional[ConsoleLogger] = None,
    strict: bool = False,
    first_cycle: int = 0,
) -> None:
    """Turn recorded cycle events into log lines, callbacks and exceptions.

    Args:
        events: Events of one cycle, or stacked events from ``run``
        audio: Optional ``ToneCallback`` receiving tone start/end events
        logger: Logger for non-fatal faults (default: shared ``chipvm`` logger)
        strict: Raise ``UnimplementedOpcode`` instead of logging it
        first_cycle: Cycle number of the first event, passed to callbacks

    Raises:
        StackOverflow, StackUnderflow: the machine halted on a stack fault
        UnimplementedOpcode: only when ``strict`` is set
    """
    logger = logger or get_logger()
    faults = np.atleast_1d(np.asarray(events.fault))
    opcodes = np.atleast_1d(np.asarray(events.opcode))
    pcs = np.atleast_1d(np.asarray(events.pc))
    starts = np.atleast_1d(np.asarray(events.tone_start))
    ends = np.atleast_1d(np.asarray(events.tone_end))

    for i in np.flatnonzero((faults != FAULT_NONE) | starts | ends):
        cycle = first_cycle + int(i)
        if audio is not None and starts[i]:
            audio.on_tone_start(cycle)

        fault = int(faults[i])
        if fault != FAULT_NONE:
            opcode = int(opcodes[i])
            # Faulting instructions leave pc just past themselves
            address = (int(pcs[i]) - 2) & 0xFFFF
            if fault == FAULT_STACK_OVERFLOW:
                raise StackOverflow(opcode, address)
            if fault == FAULT_STACK_UNDERFLOW:
                raise StackUnderflow(opcode, address)
            if fault == FAULT_UNIMPLEMENTED:
                if strict:
                    raise UnimplementedOpcode(opcode, address)
                logger.warning(f"Invalid opcode: 0x{opcode:04X} at 0x{address:03X}")

        if audio is not None and ends[i]:
            audio.on_tone_end(cycle)


def load_program(state: MachineState, program: Union[bytes, bytearray, Sequence[int]]) -> MachineState:
    """Copy program bytes into memory starting at 0x200.

    Raises:
        LoadError: the program is empty or larger than the space above 0x200
    """
    size = len(program)
    if size == 0:
        raise LoadError("Program is empty")
    if size > MAX_PROGRAM_SIZE:
        raise LoadError(
            f"Program is {size} bytes, at most {MAX_PROGRAM_SIZE} fit above 0x{PROGRAM_START:03X}"
        )
    rom_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + size].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: MachineState, filename: Union[str, os.PathLike]) -> MachineState:
    """Load ROM file data into memory starting at 0x200."""
    try:
        with open(filename, 'rb') as f:
            rom_data = f.read()
    except OSError as err:
        raise LoadError(f'Could not open file "{filename}"') from err
    try:
        return load_program(state, rom_data)
    except LoadError as err:
        raise LoadError(f'Invalid file size for "{filename}": {err}') from err


def cycle(
    state: MachineState,
    audio=None,
    logger: Optional[ConsoleLogger] = None,
    strict: bool = False,
    cycle_number: int = 0,
) -> MachineState:
    """Run one jitted cycle and report its events.

    ``cycle_number`` is handed to the audio callbacks. Raises the same
    exceptions as ``report``.
    """
    state = jit_step(state)
    report(cycle_events(state), audio, logger, strict, first_cycle=cycle_number)
    return state
