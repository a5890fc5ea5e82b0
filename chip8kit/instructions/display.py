"""CHIP-8 display operations."""

from chip8kit.constants import FLAG_REGISTER
from chip8kit.state import EmulatorState
from chip8kit.decode import Instruction
from chip8kit.display import draw_sprite
from chip8kit.memory import read_bytes


def execute_display(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N."""
    sprite = read_bytes(state, int(state.I), instruction.n)
    display, collided = draw_sprite(
        state.display,
        int(state.V[instruction.x]),
        int(state.V[instruction.y]),
        sprite,
    )
    return state.replace(
        display=display,
        V=state.V.at[FLAG_REGISTER].set(int(collided)),
    )
