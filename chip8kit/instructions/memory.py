"""CHIP-8 memory and register operations."""

import jax
import jax.numpy as jnp
from chip8kit.state import EmulatorState
from chip8kit.decode import Instruction


def execute_set(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """6XNN - Set VX = NN."""
    return state.replace(V=state.V.at[instruction.x].set(instruction.nn))


def execute_add(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """7XNN - Add NN to VX. VF is left alone."""
    result = (int(state.V[instruction.x]) + instruction.nn) & 0xFF
    return state.replace(V=state.V.at[instruction.x].set(result))


def execute_set_index(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """ANNN - Set I = NNN."""
    return state.replace(I=jnp.astype(instruction.nnn, jnp.uint16))


def execute_random(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """CXNN - Set VX = random & NN."""
    key, subkey = jax.random.split(state.rng)
    random_value = int(jax.random.bits(subkey, dtype=jnp.uint8))
    return state.replace(V=state.V.at[instruction.x].set(random_value & instruction.nn), rng=key)
