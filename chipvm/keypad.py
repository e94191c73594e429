"""Input collaborator: keyboard layout and keypad updates.

The machine sees 16 logical keys, 0-F. Hosts map their own key codes onto
that space first; anything that does not map is ignored.
"""

from typing import Iterable, Optional

import jax.numpy as jnp

from chipvm.constants import NUM_KEYS
from chipvm.state import MachineState

# Left-hand block of a QWERTY keyboard laid over the 4x4 hex keypad:
#   1 2 3 4      1 2 3 C
#   q w e r  ->  4 5 6 D
#   a s d f      7 8 9 E
#   z x c v      A 0 B F
KEY_LAYOUT = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
    "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
    "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
}


def map_key(name: str, layout: Optional[dict] = None) -> Optional[int]:
    """Map a host key name to a keypad index, or None if it is not on the keypad."""
    layout = KEY_LAYOUT if layout is None else layout
    return layout.get(name.lower())


def _in_range(key: Optional[int]) -> bool:
    return key is not None and 0 <= key < NUM_KEYS


def press_key(state: MachineState, key: Optional[int]) -> MachineState:
    """Mark ``key`` as held down. Out-of-range keys are ignored."""
    if not _in_range(key):
        return state
    return state.replace(key=state.key.at[key].set(True))


def release_key(state: MachineState, key: Optional[int]) -> MachineState:
    """Mark ``key`` as released. Out-of-range keys are ignored."""
    if not _in_range(key):
        return state
    return state.replace(key=state.key.at[key].set(False))


def set_keys(state: MachineState, pressed: Iterable[int]) -> MachineState:
    """Replace the whole keypad with exactly the keys in ``pressed``."""
    keypad = [False] * NUM_KEYS
    for key in pressed:
        if _in_range(key):
            keypad[key] = True
    return state.replace(key=jnp.array(keypad, dtype=jnp.bool_))
