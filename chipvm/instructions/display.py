"""Display operations."""

import jax.numpy as jnp
from chipvm.state import MachineState
from chipvm.decode import DecodedInstruction
from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, ADDRESS_MASK, FLAG_REGISTER

MAX_SPRITE_ROWS = 15

# Pre-computed sprite grid: one row per sprite byte, one column per bit
rows = jnp.arange(MAX_SPRITE_ROWS)
cols = jnp.arange(8)


def execute_display(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """DXYN - XOR an 8xN sprite from memory[I] onto the screen at (VX, VY).

    Every pixel wraps around the screen edges independently. VF is set when a
    lit pixel is switched off.
    """
    origin_x = jnp.astype(state.V[instruction.x], jnp.int32)
    origin_y = jnp.astype(state.V[instruction.y], jnp.int32)

    sprite_bytes = state.memory[(jnp.astype(state.I, jnp.int32) + rows) & ADDRESS_MASK]
    bits = (sprite_bytes[:, None] >> (7 - cols)[None, :]) & 1
    bits = jnp.where((rows < instruction.n)[:, None], bits, 0).astype(jnp.uint8)

    pixel_x = (origin_x + cols) % SCREEN_WIDTH
    pixel_y = (origin_y + rows) % SCREEN_HEIGHT
    # Sprite is narrower and shorter than the screen, so these never repeat
    indices = pixel_x[None, :] + pixel_y[:, None] * SCREEN_WIDTH

    current = state.gfx[indices]
    collision = jnp.any((current & bits) == 1)

    return state.replace(
        gfx=state.gfx.at[indices].set(current ^ bits),
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8)),
        draw_flag=jnp.ones((), dtype=jnp.bool_)
    )
