"""Miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chipvm.state import MachineState
from chipvm.decode import DecodedInstruction
from chipvm.constants import FONT_START, GLYPH_SIZE, ADDRESS_MASK, NUM_REGISTERS
from chipvm.instructions.system import execute_unimplemented


def execute_get_delay_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX18 - Set sound timer to VX."""
    value = state.V[instruction.x]
    starts_tone = (state.sound_timer == 0) & (value > 0)
    return state.replace(sound_timer=value, tone_start=state.tone_start | starts_tone)


def execute_add_to_index(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX1E - Add VX to I. VF is not affected."""
    return state.replace(I=state.I + jnp.astype(state.V[instruction.x], jnp.uint16))


def execute_wait_for_key(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX0A - Wait for key press.

    With no key down the instruction is rewound and the machine enters the
    WaitingForKey(X) sub-state; see ``chipvm.emulator.step``.
    """
    def key_pressed_action(state):
        return store_pressed_key(state, instruction.x)

    def wait_action(state):
        return state.replace(
            pc=state.pc - 2,
            waiting_register=jnp.astype(instruction.x, jnp.int32)
        )

    return jax.lax.cond(jnp.any(state.key), key_pressed_action, wait_action, state)


def store_pressed_key(state: MachineState, register) -> MachineState:
    """Store the lowest pressed key in V[register] and leave WaitingForKey."""
    pressed_key = jnp.astype(jnp.argmax(state.key), jnp.uint8)
    return state.replace(
        V=state.V.at[register].set(pressed_key),
        waiting_register=jnp.full((), -1, dtype=jnp.int32)
    )


def execute_font_character(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.uint16) * GLYPH_SIZE
    return state.replace(I=jnp.astype(font_address, jnp.uint16))


def execute_bcd_conversion(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = (jnp.arange(3) + state.I) & ADDRESS_MASK
    return state.replace(memory=state.memory.at[indices].set(digits))


def _block_indices(state: MachineState, instruction: DecodedInstruction):
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    addresses = (jnp.arange(NUM_REGISTERS) + state.I) & ADDRESS_MASK
    return register_mask, addresses


def _advance_index(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    if state.index_increment:
        return state.replace(I=state.I + jnp.astype(instruction.x, jnp.uint16) + 1)
    return state


def execute_store_registers(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask, addresses = _block_indices(state, instruction)
    new_values = jnp.where(register_mask, state.V, state.memory[addresses])
    state = state.replace(memory=state.memory.at[addresses].set(new_values))
    return _advance_index(state, instruction)


def execute_load_registers(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask, addresses = _block_indices(state, instruction)
    state = state.replace(V=jnp.where(register_mask, state.memory[addresses], state.V))
    return _advance_index(state, instruction)


MISC_HANDLERS = {
    0x07: execute_get_delay_timer,
    0x0A: execute_wait_for_key,
    0x15: execute_set_delay_timer,
    0x18: execute_set_sound_timer,
    0x1E: execute_add_to_index,
    0x29: execute_font_character,
    0x33: execute_bcd_conversion,
    0x55: execute_store_registers,
    0x65: execute_load_registers,
}

_MISC_TABLE = list(MISC_HANDLERS.values()) + [execute_unimplemented]

# Low byte -> position in _MISC_TABLE, unknown bytes land on the last entry
_MISC_INDEX = np.full(256, len(MISC_HANDLERS), dtype=np.int32)
for _position, _low_byte in enumerate(MISC_HANDLERS):
    _MISC_INDEX[_low_byte] = _position


def execute_misc_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Dispatch misc instructions on the low byte."""
    return jax.lax.switch(
        jnp.asarray(_MISC_INDEX)[instruction.nn],
        _MISC_TABLE,
        state, instruction
    )
