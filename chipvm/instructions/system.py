"""System instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import MachineState, with_fault
from chipvm.decode import DecodedInstruction
from chipvm.stack import pop
from chipvm.constants import FAULT_UNIMPLEMENTED, FAULT_STACK_UNDERFLOW


def execute_unimplemented(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Opcode with no handler: report it and leave the state alone."""
    return with_fault(state, FAULT_UNIMPLEMENTED)


def execute_clear_screen(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """00E0 - Clear display."""
    return state.replace(gfx=jnp.zeros_like(state.gfx), draw_flag=jnp.ones((), dtype=jnp.bool_))


def execute_return(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """00EE - Return from subroutine."""
    stack, address, underflow = pop(state.stack)
    return jax.lax.cond(
        underflow,
        lambda s: with_fault(s, FAULT_STACK_UNDERFLOW),
        lambda s: s.replace(stack=stack, pc=address),
        state
    )


def execute_system_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Dispatch system instructions on the low byte."""
    return jax.lax.cond(
        instruction.nn == 0xE0,
        execute_clear_screen,
        lambda state, instruction: jax.lax.cond(
            instruction.nn == 0xEE,
            execute_return,
            execute_unimplemented,
            state, instruction
        ),
        state, instruction
    )
