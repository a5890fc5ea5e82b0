"""CHIP-8 hexadecimal keypad state."""

import jax.numpy as jnp

from chip8kit.constants import NUM_KEYS
from chip8kit.state import EmulatorState, RunState


def _check_key(index: int) -> int:
    index = int(index)
    if not 0 <= index < NUM_KEYS:
        raise ValueError(f"Key index must be in 0..{NUM_KEYS - 1}, got {index}")
    return index


def is_pressed(state: EmulatorState, index: int) -> bool:
    return bool(state.keypad[_check_key(index)])


def pressed_keys(state: EmulatorState) -> list[int]:
    return [index for index in range(NUM_KEYS) if bool(state.keypad[index])]


def set_key(state: EmulatorState, index: int, pressed: bool) -> EmulatorState:
    """Record a key event.

    A press while the machine waits on LDK latches the key into the waiting
    register and resumes execution after the LDK instruction.
    """
    index = _check_key(index)
    state = state.replace(keypad=state.keypad.at[index].set(bool(pressed)))
    if pressed and state.status is RunState.AWAITING_KEY:
        state = resolve_key_wait(state, index)
    return state


def resolve_key_wait(state: EmulatorState, key: int) -> EmulatorState:
    """Store ``key`` in the waiting register and step past LDK."""
    register = state.key_wait_register
    return state.replace(
        V=state.V.at[register].set(key),
        pc=jnp.astype(state.pc + 2, jnp.uint16),
        status=RunState.RUNNING,
        key_wait_register=None,
    )
