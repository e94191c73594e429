"""Render collaborator: framebuffer access and RGB conversion."""

from typing import Optional, Tuple

import jax.numpy as jnp
import numpy as np

from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT
from chipvm.state import MachineState

Color = Tuple[int, int, int]


def framebuffer(state: MachineState) -> np.ndarray:
    """Return the screen as a (32, 64) boolean array, rows first."""
    return np.asarray(state.gfx, dtype=np.uint8).reshape(SCREEN_HEIGHT, SCREEN_WIDTH).astype(np.bool_)


def framebuffer_to_rgb(
    gfx: jnp.ndarray,
    scale: int = 8,
    on_color: Color = (255, 255, 255),
    off_color: Color = (0, 0, 0),
) -> np.ndarray:
    """Convert the packed framebuffer to an RGB image with optional upscaling.

    Args:
        gfx: 2048 cells in row-major order, 1 = lit
        scale: Upscaling factor for better visibility (default: 8x)
        on_color: RGB color for lit pixels (default: white)
        off_color: RGB color for dark pixels (default: black)

    Returns:
        RGB array of shape (32*scale, 64*scale, 3) with uint8 values
    """
    if scale < 1:
        raise ValueError(f"scale must be at least 1, got {scale}")

    pixels = np.asarray(gfx).reshape(SCREEN_HEIGHT, SCREEN_WIDTH).astype(np.bool_)

    rgb_frame = np.zeros((SCREEN_HEIGHT, SCREEN_WIDTH, 3), dtype=np.uint8)
    rgb_frame[pixels] = on_color
    rgb_frame[~pixels] = off_color

    # Nearest neighbour upscaling
    if scale > 1:
        rgb_frame = np.repeat(np.repeat(rgb_frame, scale, axis=0), scale, axis=1)

    return rgb_frame


def create_color_scheme(scheme: str = "mono") -> Tuple[Color, Color]:
    """Get predefined color schemes.

    Args:
        scheme: Color scheme name ("mono", "classic", "amber", "blue", "retro")

    Returns:
        Tuple of (on_color, off_color) as RGB tuples
    """
    schemes = {
        "mono": ((255, 255, 255), (0, 0, 0)),  # White on black
        "classic": ((0, 255, 0), (0, 0, 0)),  # Green on black
        "amber": ((255, 176, 0), (0, 0, 0)),  # Amber on black
        "blue": ((0, 255, 255), (0, 0, 64)),  # Cyan on dark blue
        "retro": ((255, 255, 0), (64, 0, 64)),  # Yellow on purple
    }

    if scheme not in schemes:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(schemes.keys())}"
        )

    return schemes[scheme]


def consume_frame(
    state: MachineState,
    scale: int = 8,
    color_scheme: str = "mono",
) -> Tuple[MachineState, Optional[np.ndarray]]:
    """Take a frame if the screen changed since the last one.

    Returns the state with the draw flag cleared and the RGB frame, or the
    untouched state and None when there is nothing new to draw.
    """
    if not bool(state.draw_flag):
        return state, None
    on_color, off_color = create_color_scheme(color_scheme)
    frame = framebuffer_to_rgb(state.gfx, scale, on_color, off_color)
    return state.replace(draw_flag=jnp.zeros((), dtype=jnp.bool_)), frame
