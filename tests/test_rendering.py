"""Tests for framebuffer access and RGB conversion."""

import jax.numpy as jnp
import numpy as np
import pytest

from chipvm.rendering import framebuffer, framebuffer_to_rgb, create_color_scheme, consume_frame


def lit(state, *pixels):
    gfx = state.gfx
    for x, y in pixels:
        gfx = gfx.at[x + y * 64].set(1)
    return state.replace(gfx=gfx)


def test_framebuffer_shape_and_layout(fresh_state):
    screen = framebuffer(lit(fresh_state, (3, 1), (63, 31)))
    assert screen.shape == (32, 64)
    assert screen.dtype == np.bool_
    assert screen[1, 3]
    assert screen[31, 63]
    assert screen.sum() == 2


def test_rgb_unscaled(fresh_state):
    rgb = framebuffer_to_rgb(lit(fresh_state, (0, 0)).gfx, scale=1)
    assert rgb.shape == (32, 64, 3)
    assert rgb.dtype == np.uint8
    assert tuple(rgb[0, 0]) == (255, 255, 255)
    assert tuple(rgb[0, 1]) == (0, 0, 0)


def test_rgb_scaled(fresh_state):
    rgb = framebuffer_to_rgb(lit(fresh_state, (1, 0)).gfx, scale=4)
    assert rgb.shape == (128, 256, 3)
    assert (rgb[0:4, 4:8] == 255).all()
    assert (rgb[0:4, 0:4] == 0).all()


def test_rgb_custom_colors(fresh_state):
    rgb = framebuffer_to_rgb(lit(fresh_state, (0, 0)).gfx, scale=1, on_color=(1, 2, 3), off_color=(4, 5, 6))
    assert tuple(rgb[0, 0]) == (1, 2, 3)
    assert tuple(rgb[5, 5]) == (4, 5, 6)


def test_invalid_scale(fresh_state):
    with pytest.raises(ValueError):
        framebuffer_to_rgb(fresh_state.gfx, scale=0)


def test_color_schemes():
    assert create_color_scheme("classic") == ((0, 255, 0), (0, 0, 0))
    with pytest.raises(ValueError):
        create_color_scheme("neon")


def test_consume_frame_clears_flag(fresh_state):
    state, frame = consume_frame(fresh_state, scale=2)
    assert frame.shape == (64, 128, 3)
    assert not bool(state.draw_flag)

    state, frame = consume_frame(state)
    assert frame is None


def test_consume_frame_leaves_screen(fresh_state):
    state = lit(fresh_state, (10, 10))
    consumed, _ = consume_frame(state)
    assert jnp.array_equal(consumed.gfx, state.gfx)
