"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from chip8kit import Quirks, create_state, load_program


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def shift_vy_state():
    """Provide a fresh state whose shifts read VY."""
    return create_state(quirks=Quirks(shift_uses_vy=True))


@pytest.fixture
def index_increment_state():
    """Provide a fresh state whose FX55/FX65 advance I."""
    return create_state(quirks=Quirks(index_increment_on_store=True))


@pytest.fixture
def jump_vx_state():
    """Provide a fresh state where BXNN adds VX."""
    return create_state(quirks=Quirks(jump_offset_uses_vx=True))


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program_state(*words, state=None):
    """Fresh state with the given 16-bit words loaded at 0x200."""
    program = b"".join(word.to_bytes(2, "big") for word in words)
    return load_program(state if state is not None else create_state(), program)
