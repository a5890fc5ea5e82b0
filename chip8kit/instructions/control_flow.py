"""CHIP-8 control flow instructions."""

import jax.numpy as jnp
from chip8kit.constants import ADDRESS_MASK
from chip8kit.state import EmulatorState
from chip8kit.decode import Instruction
from chip8kit.keypad import is_pressed
from chip8kit.stack import push


def execute_jump(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16))


def execute_call(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    state = state.replace(stack=push(state.stack, state.pc))
    return execute_jump(state, instruction)


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: EmulatorState, instruction: Instruction) -> EmulatorState:
        if condition_fn(state, instruction):
            return state.replace(pc=jnp.astype(state.pc + 2, jnp.uint16))
        return state
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: int(state.V[inst.x]) == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: int(state.V[inst.x]) != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: int(state.V[inst.x]) == int(state.V[inst.y])
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: int(state.V[inst.x]) != int(state.V[inst.y])
)

# Only the low nibble of VX names a key
execute_skip_if_key = make_skip_instruction(
    lambda state, inst: is_pressed(state, int(state.V[inst.x]) & 0xF)
)

execute_skip_if_not_key = make_skip_instruction(
    lambda state, inst: not is_pressed(state, int(state.V[inst.x]) & 0xF)
)


def execute_jump_with_offset(state: EmulatorState, instruction: Instruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0 (BXNN: NNN + VX with the jump quirk)."""
    register = (instruction.nnn >> 8) if state.quirks.jump_offset_uses_vx else 0
    jump_address = (instruction.nnn + int(state.V[register])) & ADDRESS_MASK
    return state.replace(pc=jnp.astype(jump_address, jnp.uint16))
