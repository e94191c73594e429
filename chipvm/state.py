"""Machine state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chipvm.constants import (
    MEMORY_SIZE, NUM_REGISTERS, NUM_KEYS, PROGRAM_START, FONT_START, FONT_DATA,
    SCREEN_SIZE, STACK_SIZE, FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW
)


@dataclass(frozen=True)
class StackState:
    """Call stack of return addresses."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))


class MachineState(PyTreeNode):
    """Complete machine state, replaced as a whole by every handler."""
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    gfx: jnp.ndarray = field(default_factory=lambda: jnp.zeros(SCREEN_SIZE, dtype=jnp.uint8))  # row-major, x + 64 * y
    key: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    draw_flag: jnp.ndarray = field(default_factory=lambda: jnp.ones((), dtype=jnp.bool_))
    opcode: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    waiting_register: jnp.ndarray = field(default_factory=lambda: jnp.full((), -1, dtype=jnp.int32))  # WaitingForKey(X) when >= 0
    tone_start: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    tone_end: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    fault: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    index_increment: bool = field(pytree_node=False, default=False)

    @property
    def waiting_for_key(self) -> jnp.ndarray:
        return self.waiting_register >= 0

    @property
    def halted(self) -> jnp.ndarray:
        """True once a stack fault has stopped the machine."""
        return (self.fault == FAULT_STACK_OVERFLOW) | (self.fault == FAULT_STACK_UNDERFLOW)


def with_fault(state: MachineState, code: int) -> MachineState:
    """Record a fault code for the current cycle."""
    return state.replace(fault=jnp.asarray(code, dtype=jnp.uint8))


def create_state(
    rng: jax.random.PRNGKey = jax.random.PRNGKey(0),
    index_increment: bool = False,
) -> MachineState:
    """Create initial machine state with font data loaded.

    Args:
        rng: PRNG key used by the random instruction, split on every use
        index_increment: Advance I past the copied block after FX55/FX65
    """
    state = MachineState(rng, index_increment=index_increment)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))
