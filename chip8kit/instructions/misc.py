"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from chip8kit.constants import FONT_HEIGHT, FONT_START, INDEX_MASK
from chip8kit.state import EmulatorState, RunState
from chip8kit.decode import Instruction
from chip8kit.keypad import pressed_keys
from chip8kit.memory import read_bytes, write_bytes
from chip8kit.timers import get_delay, set_delay, set_sound


def execute_get_delay_timer(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(get_delay(state)))


def execute_set_delay_timer(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return set_delay(state, int(state.V[instruction.x]))


def execute_set_sound_timer(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return set_sound(state, int(state.V[instruction.x]))


def execute_add_to_index(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """FX1E - Add VX to I register."""
    new_i = (int(state.I) + int(state.V[instruction.x])) & INDEX_MASK
    return state.replace(I=jnp.astype(new_i, jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """FX0A - Wait for key press.

    With a key already held, the lowest held key is stored right away.
    Otherwise the machine enters AWAITING_KEY with PC rewound onto this
    instruction; the next key press event completes it.
    """
    held = pressed_keys(state)
    if held:
        return state.replace(V=state.V.at[instruction.x].set(held[0]))
    return state.replace(
        pc=jnp.astype(state.pc - 2, jnp.uint16),
        status=RunState.AWAITING_KEY,
        key_wait_register=instruction.x,
    )


def execute_font_character(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + int(state.V[instruction.x]) * FONT_HEIGHT
    return state.replace(I=jnp.astype(font_address, jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = int(state.V[instruction.x])
    digits = [value // 100, (value // 10) % 10, value % 10]
    return write_bytes(state, int(state.I), digits)


def execute_store_registers(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    count = instruction.x + 1
    state = write_bytes(state, int(state.I), state.V[:count])
    if state.quirks.index_increment_on_store:
        state = state.replace(I=jnp.astype(int(state.I) + count, jnp.uint16))
    return state


def execute_load_registers(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    count = instruction.x + 1
    values = read_bytes(state, int(state.I), count)
    state = state.replace(V=state.V.at[:count].set(values))
    if state.quirks.index_increment_on_store:
        state = state.replace(I=jnp.astype(int(state.I) + count, jnp.uint16))
    return state
