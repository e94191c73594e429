"""ALU operations (8xxx).

Each operation maps the register file to a new register file. Operations that
report a flag write VF first and VX second, so with X == F the result wins over
the flag, and the result is computed from the register file as it stands after
the flag write.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import MachineState
from chipvm.decode import DecodedInstruction
from chipvm.constants import FLAG_REGISTER
from chipvm.instructions.system import execute_unimplemented


def _flag(condition) -> jnp.ndarray:
    return jnp.astype(condition, jnp.uint8)


def alu_set(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY0 - Set: VX = VY."""
    return V.at[x].set(V[y])


def alu_or(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY1 - Binary OR: VX |= VY."""
    return V.at[x].set(V[x] | V[y])


def alu_and(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY2 - Binary AND: VX &= VY."""
    return V.at[x].set(V[x] & V[y])


def alu_xor(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY3 - Logical XOR: VX ^= VY."""
    return V.at[x].set(V[x] ^ V[y])


def alu_add(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY4 - Add: VX += VY, VF = carry."""
    total = jnp.astype(V[x], jnp.uint16) + V[y]
    V = V.at[FLAG_REGISTER].set(_flag(total > 0xFF))
    return V.at[x].set(jnp.astype(total & 0xFF, jnp.uint8))


def alu_sub_xy(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY5 - Subtract: VX -= VY, VF = no borrow."""
    V = V.at[FLAG_REGISTER].set(_flag(V[x] >= V[y]))
    return V.at[x].set(V[x] - V[y])


def alu_shift_right(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY6 - Shift right: VF = bit 0, VX >>= 1."""
    V = V.at[FLAG_REGISTER].set(V[x] & 1)
    return V.at[x].set(V[x] >> 1)


def alu_sub_yx(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY7 - Subtract: VX = VY - VX, VF = no borrow."""
    V = V.at[FLAG_REGISTER].set(_flag(V[y] >= V[x]))
    return V.at[x].set(V[y] - V[x])


def alu_shift_left(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY8 - Shift left: VF = bit 7, VX <<= 1."""
    V = V.at[FLAG_REGISTER].set((V[x] >> 7) & 1)
    return V.at[x].set(jnp.astype((V[x] << 1) & 0xFF, jnp.uint8))


def _alu_handler(operation):
    def handler(state: MachineState, instruction: DecodedInstruction) -> MachineState:
        return state.replace(V=operation(state.V, instruction.x, instruction.y))
    handler.__doc__ = operation.__doc__
    return handler


_undefined = execute_unimplemented

# Only slots 0-8 are defined, slot 8 holds the left shift
ALU_TABLE = [
    _alu_handler(alu_set),
    _alu_handler(alu_or),
    _alu_handler(alu_and),
    _alu_handler(alu_xor),
    _alu_handler(alu_add),
    _alu_handler(alu_sub_xy),
    _alu_handler(alu_shift_right),
    _alu_handler(alu_sub_yx),
    _alu_handler(alu_shift_left),
    _undefined, _undefined, _undefined, _undefined,
    _undefined, _undefined, _undefined,
]


def execute_alu_operation(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """8XYN - ALU operations dispatcher."""
    return jax.lax.switch(instruction.n, ALU_TABLE, state, instruction)
