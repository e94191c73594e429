"""Test configuration and fixtures for the interpreter tests."""

import pytest
import jax.numpy as jnp
from chipvm import create_state


@pytest.fixture
def fresh_state():
    """Provide a fresh machine state for each test."""
    return create_state()


@pytest.fixture
def incrementing_state():
    """Provide a fresh state where FX55/FX65 advance I."""
    return create_state(index_increment=True)


def setup_bytes_in_memory(state, address, data):
    """Helper to put raw bytes (sprites, programs) in memory."""
    return state.replace(
        memory=state.memory.at[address:address + len(data)].set(
            jnp.array(data, dtype=jnp.uint8)
        )
    )


def set_registers(state, **registers):
    """Helper to set registers by name, e.g. set_registers(state, V1=0x10, VF=1)."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)
