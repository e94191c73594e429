"""Tests for system instructions (0xxx) and the call stack."""

import jax.numpy as jnp
from chipvm import execute
from chipvm.constants import FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW, FAULT_UNIMPLEMENTED, STACK_SIZE


def test_execute_clear_screen(fresh_state):
    """00E0 - Clear display and request a redraw."""
    state = fresh_state.replace(
        gfx=jnp.ones_like(fresh_state.gfx),
        draw_flag=jnp.zeros((), dtype=jnp.bool_)
    )

    state = execute(state, 0x00E0)

    assert jnp.sum(state.gfx) == 0
    assert state.gfx.shape == (2048,)
    assert bool(state.draw_flag)


def test_execute_call_and_return(fresh_state):
    """2NNN (call) and 00EE (return) round-trip pc."""
    state = fresh_state
    initial_pc = state.pc

    state = execute(state, 0x2300)  # Call 0x300
    assert state.pc == 0x300
    assert state.stack.pointer == 1
    assert state.stack.data[0] == initial_pc

    state = execute(state, 0x00EE)  # Return
    assert state.pc == initial_pc
    assert state.stack.pointer == 0


def test_nested_calls_return_in_order(fresh_state):
    """Returns unwind nested calls last in, first out."""
    state = fresh_state.replace(pc=jnp.asarray(0x202, dtype=jnp.uint16))

    state = execute(state, 0x2400)
    state = state.replace(pc=state.pc + 2)
    state = execute(state, 0x2500)
    assert state.stack.pointer == 2

    state = execute(state, 0x00EE)
    assert state.pc == 0x402
    state = execute(state, 0x00EE)
    assert state.pc == 0x202


def test_call_overflow_reports_fault(fresh_state):
    """A 17th nested call is refused and faults."""
    state = fresh_state
    for _ in range(STACK_SIZE):
        state = execute(state, 0x2300)
    assert state.stack.pointer == STACK_SIZE
    assert state.fault == 0

    before = state
    state = execute(state, 0x2400)

    assert state.fault == FAULT_STACK_OVERFLOW
    assert state.pc == before.pc
    assert state.stack.pointer == STACK_SIZE
    assert jnp.array_equal(state.stack.data, before.stack.data)


def test_return_underflow_reports_fault(fresh_state):
    """Return with an empty stack faults and leaves pc alone."""
    initial_pc = fresh_state.pc

    state = execute(fresh_state, 0x00EE)

    assert state.fault == FAULT_STACK_UNDERFLOW
    assert state.pc == initial_pc
    assert state.stack.pointer == 0


def test_unknown_system_instruction(fresh_state):
    """0NNN machine-code calls are not supported."""
    state = execute(fresh_state, 0x0123)
    assert state.fault == FAULT_UNIMPLEMENTED
    assert state.pc == fresh_state.pc


def test_system_dispatch_uses_low_byte(fresh_state):
    """0xE0 in the low byte clears regardless of the middle nibble."""
    state = fresh_state.replace(gfx=jnp.ones_like(fresh_state.gfx))
    state = execute(state, 0x05E0)
    assert jnp.sum(state.gfx) == 0
