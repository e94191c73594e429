"""Countdown timers."""

import jax.numpy as jnp
from chipvm.state import MachineState


def _count_down(timer: jnp.ndarray) -> jnp.ndarray:
    return jnp.where(timer > 0, timer - 1, timer)


def tick_timers(state: MachineState) -> MachineState:
    """Decrement both timers once, never below zero.

    The sound timer passing through 1 raises ``tone_end`` for this cycle.
    """
    return state.replace(
        delay_timer=_count_down(state.delay_timer),
        sound_timer=_count_down(state.sound_timer),
        tone_end=state.tone_end | (state.sound_timer == 1)
    )
