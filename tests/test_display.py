"""Tests for display operations (DXYN)."""

import jax.numpy as jnp
from chipvm import execute
from conftest import setup_bytes_in_memory, set_registers


def pixel(state, x, y):
    return int(state.gfx[x + 64 * y])


def prepare(state, address, sprite, x, y):
    state = setup_bytes_in_memory(state, address, sprite)
    state = set_registers(state, V0=x, V1=y)
    return state.replace(I=jnp.asarray(address, dtype=jnp.uint16))


class TestBasicSprites:
    """Test basic sprite drawing."""

    def test_basic_sprite_draw(self, fresh_state):
        """2x2 box at (10, 5) without collision."""
        state = prepare(fresh_state, 0x300, [0xC0, 0xC0], 10, 5)
        state = state.replace(draw_flag=jnp.zeros((), dtype=jnp.bool_))

        state = execute(state, 0xD012)

        assert pixel(state, 10, 5) == 1
        assert pixel(state, 11, 5) == 1
        assert pixel(state, 10, 6) == 1
        assert pixel(state, 11, 6) == 1
        assert pixel(state, 12, 5) == 0
        assert int(jnp.sum(state.gfx)) == 4
        assert state.V[15] == 0
        assert bool(state.draw_flag)

    def test_row_major_layout(self, fresh_state):
        """A pixel at (x, y) lives at index x + 64 * y."""
        state = prepare(fresh_state, 0x300, [0x80], 3, 2)
        state = execute(state, 0xD011)
        assert int(jnp.argmax(state.gfx)) == 3 + 64 * 2

    def test_collision_detection(self, fresh_state):
        """Drawing over a lit pixel clears it and sets VF."""
        state = prepare(fresh_state, 0x400, [0x80], 20, 10)

        state = execute(state, 0xD011)
        assert pixel(state, 20, 10) == 1
        assert state.V[15] == 0

        state = execute(state, 0xD011)
        assert pixel(state, 20, 10) == 0
        assert state.V[15] == 1

    def test_draw_twice_restores_blank_screen(self, fresh_state):
        """Same sprite twice: every pixel cleared and VF set."""
        sprite = [0xF0, 0x90, 0xF0, 0x90, 0xF0]
        state = prepare(fresh_state, 0x500, sprite, 8, 15)

        state = execute(state, 0xD015)
        assert int(jnp.sum(state.gfx)) == 4 + 2 + 4 + 2 + 4
        assert state.V[15] == 0

        state = execute(state, 0xD015)
        assert int(jnp.sum(state.gfx)) == 0
        assert state.V[15] == 1

    def test_partial_overlap_collision(self, fresh_state):
        """A sprite overlapping one lit pixel still reports collision."""
        state = prepare(fresh_state, 0x600, [0xFF], 0, 0)
        state = execute(state, 0xD011)
        state = set_registers(state, V0=7)

        state = execute(state, 0xD011)

        assert pixel(state, 7, 0) == 0
        assert pixel(state, 8, 0) == 1
        assert state.V[15] == 1


class TestScreenWrapping:
    """Sprites wrap around both screen edges pixel by pixel."""

    def test_wraps_right_edge(self, fresh_state):
        """x = 60, 8 pixels wide: columns 60-63 then 0-3."""
        state = prepare(fresh_state, 0x600, [0xFF], 60, 0)

        state = execute(state, 0xD011)

        for x in (60, 61, 62, 63, 0, 1, 2, 3):
            assert pixel(state, x, 0) == 1
        assert int(jnp.sum(state.gfx)) == 8

    def test_wraps_bottom_edge(self, fresh_state):
        """y = 30, 3 rows: rows 30, 31 then 0."""
        state = prepare(fresh_state, 0x700, [0x80, 0x80, 0x80], 0, 30)

        state = execute(state, 0xD013)

        assert pixel(state, 0, 30) == 1
        assert pixel(state, 0, 31) == 1
        assert pixel(state, 0, 0) == 1

    def test_coordinate_wrapping(self, fresh_state):
        """Origin beyond the screen wraps modulo 64/32."""
        state = prepare(fresh_state, 0x800, [0x80], 70, 37)

        state = execute(state, 0xD011)

        assert pixel(state, 6, 5) == 1

    def test_sprite_rows_wrap_at_end_of_memory(self, fresh_state):
        """Sprite row 1 of a sprite at I = 0xFFF is read from address 0."""
        state = prepare(fresh_state, 0xFFF, [0x80], 0, 0)

        state = execute(state, 0xD012)

        # Row 0 from 0xFFF, row 1 from the top line of glyph 0 (0xF0)
        assert [pixel(state, x, 0) for x in range(8)] == [1, 0, 0, 0, 0, 0, 0, 0]
        assert [pixel(state, x, 1) for x in range(8)] == [1, 1, 1, 1, 0, 0, 0, 0]


class TestSpriteVariations:
    """Test different sprite configurations."""

    def test_different_sprite_heights(self, fresh_state):
        """Only the first N rows are drawn."""
        state = prepare(fresh_state, 0x900, [0x80, 0x40, 0x20, 0x10, 0x08], 10, 8)

        state = execute(state, 0xD013)

        assert pixel(state, 10, 8) == 1
        assert pixel(state, 11, 9) == 1
        assert pixel(state, 12, 10) == 1
        assert pixel(state, 13, 11) == 0

    def test_zero_height_draws_nothing(self, fresh_state):
        """N = 0 changes no pixel but still raises the draw flag."""
        state = prepare(fresh_state, 0x900, [0xFF], 0, 0)
        state = state.replace(draw_flag=jnp.zeros((), dtype=jnp.bool_))

        state = execute(state, 0xD010)

        assert int(jnp.sum(state.gfx)) == 0
        assert bool(state.draw_flag)

    def test_vf_cleared_without_collision(self, fresh_state):
        """VF is cleared when nothing collides."""
        state = prepare(fresh_state, 0xB00, [0x80], 5, 5)
        state = set_registers(state, VF=1)

        state = execute(state, 0xD011)

        assert state.V[15] == 0

    def test_font_glyph(self, fresh_state):
        """Glyph 0 drawn from the built-in font."""
        state = set_registers(fresh_state, V0=0, V1=0)
        state = execute(state, 0xF029)  # I = glyph for V0

        state = execute(state, 0xD015)

        assert [pixel(state, x, 0) for x in range(4)] == [1, 1, 1, 1]
        assert [pixel(state, x, 1) for x in range(4)] == [1, 0, 0, 1]
