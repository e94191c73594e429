"""Tests for timer countdown."""

import jax.numpy as jnp

from chipvm.timers import tick_timers


def with_timers(state, delay, sound):
    return state.replace(
        delay_timer=jnp.asarray(delay, dtype=jnp.uint8),
        sound_timer=jnp.asarray(sound, dtype=jnp.uint8)
    )


def test_both_timers_count_down(fresh_state):
    state = tick_timers(with_timers(fresh_state, 10, 3))
    assert state.delay_timer == 9
    assert state.sound_timer == 2


def test_timers_stop_at_zero(fresh_state):
    state = tick_timers(with_timers(fresh_state, 0, 0))
    assert state.delay_timer == 0
    assert state.sound_timer == 0
    assert not bool(state.tone_end)


def test_tone_ends_when_sound_timer_passes_one(fresh_state):
    state = tick_timers(with_timers(fresh_state, 0, 1))
    assert state.sound_timer == 0
    assert bool(state.tone_end)


def test_tone_keeps_playing_above_one(fresh_state):
    state = tick_timers(with_timers(fresh_state, 0, 2))
    assert not bool(state.tone_end)


def test_timer_dtypes_preserved(fresh_state):
    state = tick_timers(with_timers(fresh_state, 255, 255))
    assert state.delay_timer.dtype == jnp.uint8
    assert state.sound_timer.dtype == jnp.uint8
    assert state.delay_timer == 254
