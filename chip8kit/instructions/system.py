"""CHIP-8 system instructions (0x0xxx)."""

import jax.numpy as jnp
from chip8kit.state import EmulatorState
from chip8kit.decode import Instruction
from chip8kit.display import clear_display
from chip8kit.stack import pop


def execute_clear_screen(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=clear_display(state.display))


def execute_return(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address = pop(state.stack)
    return state.replace(stack=stack, pc=jnp.astype(address, jnp.uint16))
